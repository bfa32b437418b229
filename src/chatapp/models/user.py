from sqlalchemy import Index, String, Text, Date, DateTime, UUID
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func
from datetime import date, datetime
from chatapp.database.base import Base
import uuid


class User(Base):
    """
    SQLAlchemy model for a chat user.

    Accounts and credentials are owned by the authentication service; this
    table only carries the profile fields surfaced in member lists and peer
    search results.
    """
    __tablename__ = "user"

    # MATCH ... AGAINST on MySQL needs a FULLTEXT index over exactly the matched
    # columns; other dialects create a plain composite index
    __table_args__ = (
        Index("ft_user_name", "user_first_name", "user_last_name", mysql_prefix="FULLTEXT"),
    )

    # Unique identifier for the user (primary key)
    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        index=True
    )

    # Name fields are the targets of the peer search
    user_first_name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        index=True
    )

    user_last_name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        index=True
    )

    user_email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False
    )

    user_avatar: Mapped[str | None] = mapped_column(String(512), nullable=True)
    user_description: Mapped[str | None] = mapped_column(Text, nullable=True)
    user_gender: Mapped[str | None] = mapped_column(String(20), nullable=True)
    user_dob: Mapped[date | None] = mapped_column(Date, nullable=True)

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

    def __repr__(self) -> str:
        return f"<User(id={self.id!r}, email={self.user_email!r})>"
