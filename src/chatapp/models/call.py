from sqlalchemy import DateTime, ForeignKey, UUID
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func
from datetime import datetime
from chatapp.database.base import Base
import uuid


class Call(Base):
    """
    SQLAlchemy model for a voice/video call placed inside a conversation.

    Inserting or deleting a row moves `Conversation.call_count` by one
    (see `models/counters.py`).
    """
    __tablename__ = "call"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        index=True
    )

    # Owning conversation is mandatory
    conversation_id: Mapped[uuid.UUID] = mapped_column(
        "conservation",
        UUID(as_uuid=True),
        ForeignKey("conservation.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    started_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False
    )

    ended_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True
    )

    caller_id: Mapped[uuid.UUID | None] = mapped_column(
        "caller",
        UUID(as_uuid=True),
        ForeignKey("user.id", ondelete="SET NULL"),
        nullable=True
    )

    @property
    def is_active(self) -> bool:
        return self.ended_at is None

    def __repr__(self) -> str:
        return f"<Call(id={self.id!r}, conversation_id={self.conversation_id!r}, caller_id={self.caller_id!r})>"
