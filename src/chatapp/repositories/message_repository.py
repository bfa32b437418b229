"""
Message repository.

Conversation views only need the newest message per conversation; the
projection helpers here fetch it for one conversation or for a page of
conversations with a single windowed query. Posting and removing messages go
through the ORM so the `message_count` listeners fire.
"""

from datetime import datetime
from typing import Iterable
from uuid import UUID
import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from chatapp.models.conversation import Conversation
from chatapp.models.message import Message
from chatapp.schemas.conversation import LatestMessage
from .base_repository import BaseRepository, NotFoundError, RepositoryError

logger = logging.getLogger(__name__)


class MessageRepository(BaseRepository[Message]):

    def __init__(self, db: AsyncSession):
        super().__init__(Message, db)

    async def post_message(
        self,
        conversation_id: UUID,
        content: str,
        sender_id: UUID | None = None,
        created_at: datetime | None = None,
    ) -> Message:
        """
        Store a message; bumps the conversation's `message_count` in the same flush.

        Raises:
            NotFoundError: If the conversation does not exist.
        """
        found = await self.db.execute(
            select(Conversation.id).where(Conversation.id == conversation_id)
        )
        if found.scalar_one_or_none() is None:
            raise NotFoundError(f"Conversation with ID {conversation_id} not found")

        values = {"conversation_id": conversation_id, "content": content, "sender_id": sender_id}
        if created_at is not None:
            values["created_at"] = created_at
        return await self.create(**values)

    async def remove_message(self, message_id: UUID) -> bool:
        """Delete a message through the session. Returns False if it does not exist."""
        message = await self.get_by_id(message_id)
        if message is None:
            return False

        await self.db.delete(message)
        await self.db.flush()
        logger.info("message_repo.removed", extra={"id": str(message_id)})
        return True

    async def latest_for(self, conversation_id: UUID) -> LatestMessage | None:
        latest = await self.latest_for_many([conversation_id])
        return latest.get(conversation_id)

    async def latest_for_many(self, conversation_ids: Iterable[UUID]) -> dict[UUID, LatestMessage]:
        """
        Newest message per conversation, keyed by conversation id.

        Ties on `created_at` are broken by message id so the answer is stable.
        """
        ids = list(conversation_ids)
        if not ids:
            return {}

        ranked = (
            select(
                Message.id.label("id"),
                Message.conversation_id.label("conversation_id"),
                Message.sender_id.label("sender_id"),
                Message.content.label("content"),
                Message.created_at.label("created_at"),
                func.row_number().over(
                    partition_by=Message.conversation_id,
                    order_by=(Message.created_at.desc(), Message.id.desc()),
                ).label("rn"),
            )
            .where(Message.conversation_id.in_(ids))
            .subquery()
        )
        query = select(ranked).where(ranked.c.rn == 1)

        try:
            result = await self.db.execute(query)
        except Exception as e:
            logger.exception("message_repo.latest_for_many.failed", extra={"conversations": len(ids)})
            raise RepositoryError("Failed to load latest messages") from e

        return {row.conversation_id: LatestMessage.model_validate(row) for row in result}
