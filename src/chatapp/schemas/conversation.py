"""
Pydantic payloads and read projections for the conversation service.

Read models are built straight from ORM objects or row mappings
(`from_attributes=True`). Dump them with `by_alias=True` to get the wire shape
(`totalPage`, `conservation_id`).
"""

from datetime import date, datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from chatapp.config.settings import get_settings
from chatapp.models.conversation import ConversationType

DEFAULT_PAGE = 1


def _positive_int_or(value: Any, default: int) -> int:
    """Coerce `value` to a positive int, falling back to `default` when that is not possible."""
    if isinstance(value, bool):
        return default
    try:
        number = int(value)
    except (TypeError, ValueError):
        return default
    return number if number > 0 else default


# ------------------------------
# Payloads
# ------------------------------
class ConversationCreate(BaseModel):
    members: list[UUID] = Field(default_factory=list)
    type: ConversationType = ConversationType.GROUP


class PageQuery(BaseModel):
    """
    Pagination query. Missing, non-numeric or non-positive values silently
    fall back to page 1 and the configured page size.
    """
    page: int = DEFAULT_PAGE
    limit: int = Field(default_factory=lambda: get_settings().DEFAULT_PAGE_SIZE)

    @field_validator("page", mode="before")
    @classmethod
    def coerce_page(cls, v: Any) -> int:
        return _positive_int_or(v, DEFAULT_PAGE)

    @field_validator("limit", mode="before")
    @classmethod
    def coerce_limit(cls, v: Any) -> int:
        return _positive_int_or(v, get_settings().DEFAULT_PAGE_SIZE)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


class SearchQuery(PageQuery):
    text: str = ""

    @field_validator("text", mode="before")
    @classmethod
    def strip_text(cls, v: Any) -> str:
        return "" if v is None else str(v).strip()


# ------------------------------
# Read projections
# ------------------------------
class ConversationRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    creator_id: UUID = Field(serialization_alias="creator")
    type: ConversationType
    is_deleted: bool
    call_count: int
    message_count: int
    created_at: datetime
    updated_at: datetime


class MemberProfile(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_description: str | None = None
    user_first_name: str
    user_last_name: str
    user_email: str
    user_avatar: str | None = None
    user_gender: str | None = None
    user_dob: date | None = None


class LatestMessage(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    sender_id: UUID | None = None
    content: str
    created_at: datetime


class ConversationView(ConversationRead):
    """A conversation merged with its member profiles and newest message."""
    members: list[MemberProfile] = Field(default_factory=list)
    latest_message: LatestMessage | None = None


class ConversationPage(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    data: list[ConversationView]
    total_page: int = Field(serialization_alias="totalPage")


class SearchResult(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    user_first_name: str
    user_last_name: str
    user_avatar: str | None = None
    conversation_id: UUID = Field(serialization_alias="conservation_id")


class SearchPage(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    data: list[SearchResult]
    total_page: int = Field(serialization_alias="totalPage")
