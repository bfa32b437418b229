from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from chatapp.database.session import get_async_session
from chatapp.services.conversation_service import ConversationService


async def get_conversation_service(
    session: AsyncSession = Depends(get_async_session),
) -> ConversationService:
    """Request-scoped ConversationService bound to the request's session."""
    return ConversationService(session)
