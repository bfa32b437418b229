from sqlalchemy import DateTime, ForeignKey, Text, UUID
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func
from datetime import datetime
from chatapp.database.base import Base
import uuid


class Message(Base):
    """
    SQLAlchemy model representing a message in a conversation.

    Only what the conversation views need is modelled here: who sent it,
    what it says, and when. The newest message per conversation drives the
    ordering of conversation listings.
    """
    __tablename__ = "message"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        index=True
    )

    conversation_id: Mapped[uuid.UUID] = mapped_column(
        "conservation",
        UUID(as_uuid=True),
        ForeignKey("conservation.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    sender_id: Mapped[uuid.UUID | None] = mapped_column(
        "sender",
        UUID(as_uuid=True),
        ForeignKey("user.id", ondelete="SET NULL"),
        nullable=True
    )

    content: Mapped[str] = mapped_column(
        Text,
        nullable=False
    )

    # Indexed: "latest message" lookups sort on it
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
        index=True
    )

    def __repr__(self) -> str:
        return f"<Message(id={self.id!r}, conversation_id={self.conversation_id!r})>"
