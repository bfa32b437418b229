from .base_repository import BaseRepository
from .user_repository import UserRepository
from .conversation_repository import ConversationRepository
from .member_repository import MemberRepository
from .message_repository import MessageRepository
from .call_repository import CallRepository

__all__ = [
    "BaseRepository",
    "UserRepository",
    "ConversationRepository",
    "MemberRepository",
    "MessageRepository",
    "CallRepository",
]
