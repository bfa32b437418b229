from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, UUID
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func
from datetime import datetime
from enum import Enum as PyEnum
from chatapp.database.base import Base
import uuid


# ------------------------------
# Enum to define conversation types
# ------------------------------
class ConversationType(str, PyEnum):
    """Kind of conversation; only group conversations accept join/leave/delete."""
    ONE_TO_ONE = "one_to_one"   # exactly two fixed participants
    GROUP = "group"             # open membership


# ------------------------------
# Conversation Model
# ------------------------------
class Conversation(Base):
    """
    SQLAlchemy model for a Conversation (chat thread).

    The table keeps its historical name `conservation`. Rows are never
    hard-deleted here: removal flips `is_deleted`.

    `call_count` and `message_count` are denormalized counters maintained by
    the mapper listeners in `models/counters.py`; do not write them directly.
    """
    __tablename__ = "conservation"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        index=True
    )

    # User who created the conversation; only they may delete it and they may not leave it
    creator_id: Mapped[uuid.UUID] = mapped_column(
        "creator",
        UUID(as_uuid=True),
        ForeignKey("user.id"),
        nullable=False,
        index=True
    )

    # Stored as the enum *value* ("one_to_one" / "group"), not the member name
    type: Mapped[ConversationType] = mapped_column(
        SQLEnum(
            ConversationType,
            name="conversation_type",
            native_enum=False,
            length=20,
            values_callable=lambda enum_cls: [member.value for member in enum_cls],
        ),
        nullable=False
    )

    # Soft-deletion flag
    is_deleted: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        server_default="0",
        nullable=False,
        index=True
    )

    call_count: Mapped[int] = mapped_column(
        Integer,
        default=0,
        server_default="0",
        nullable=False
    )

    message_count: Mapped[int] = mapped_column(
        Integer,
        default=0,
        server_default="0",
        nullable=False
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False
    )

    @property
    def is_one_to_one(self) -> bool:
        return self.type == ConversationType.ONE_TO_ONE

    def __repr__(self) -> str:
        return (
            f"<Conversation(id={self.id!r}, type={self.type.value!r}, "
            f"creator_id={self.creator_id!r}, is_deleted={self.is_deleted!r})>"
        )
