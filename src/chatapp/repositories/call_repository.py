"""
Call repository.

Every insert and delete goes through the session so that the mapper
listeners keep `Conversation.call_count` in step (see `models/counters.py`).
Bulk `delete()` statements would bypass them and are not used here.
"""

from uuid import UUID
import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from chatapp.models.call import Call
from chatapp.models.conversation import Conversation
from .base_repository import BaseRepository, NotFoundError

logger = logging.getLogger(__name__)


class CallRepository(BaseRepository[Call]):

    def __init__(self, db: AsyncSession):
        super().__init__(Call, db)

    async def start_call(self, conversation_id: UUID, caller_id: UUID | None = None) -> Call:
        """
        Open a call in a conversation.

        Raises:
            NotFoundError: If the conversation does not exist.
        """
        found = await self.db.execute(
            select(Conversation.id).where(Conversation.id == conversation_id)
        )
        if found.scalar_one_or_none() is None:
            raise NotFoundError(f"Conversation with ID {conversation_id} not found")

        call = await self.create(conversation_id=conversation_id, caller_id=caller_id)
        logger.info(
            "call_repo.started",
            extra={"call_id": str(call.id), "conversation_id": str(conversation_id)},
        )
        return call

    async def end_call(self, call_id: UUID) -> Call:
        """
        Stamp `ended_at` on a call. Ending an already ended call keeps the first timestamp.

        Raises:
            NotFoundError: If the call does not exist.
        """
        call = await self.get_by_id_or_raise(call_id)
        if call.ended_at is None:
            call.ended_at = func.now()
            await self.save(call)
        return call

    async def remove_call(self, call_id: UUID) -> bool:
        call = await self.get_by_id(call_id)
        if call is None:
            return False

        await self.db.delete(call)
        await self.db.flush()
        logger.info("call_repo.removed", extra={"call_id": str(call_id)})
        return True
