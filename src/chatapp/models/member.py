from sqlalchemy import DateTime, ForeignKey, UniqueConstraint, UUID
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func
from datetime import datetime
from chatapp.database.base import Base
import uuid


class Member(Base):
    """
    Join row between a user and a conversation.

    A user holds at most one membership per conversation; the unique
    constraint backs up the membership check done by the service layer.
    """
    __tablename__ = "member"
    __table_args__ = (
        UniqueConstraint("user_id", "conservation"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4
    )

    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("user.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    conversation_id: Mapped[uuid.UUID] = mapped_column(
        "conservation",
        UUID(as_uuid=True),
        ForeignKey("conservation.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False
    )

    def __repr__(self) -> str:
        return f"<Member(user_id={self.user_id!r}, conversation_id={self.conversation_id!r})>"
