r"""
Centralized access to all database models.

Importing this package also registers the counter listeners in `counters.py`,
so any code that touches Call/Message rows through the ORM keeps
`Conversation.call_count` / `Conversation.message_count` in step.

    from chatapp.models import User, Conversation, ConversationType, Member, Call, Message
"""

from .user import User
from .conversation import Conversation, ConversationType
from .member import Member
from .call import Call
from .message import Message
from . import counters  # noqa: F401  (registers mapper listeners)

__all__ = [
    "User",
    "Conversation",
    "ConversationType",
    "Member",
    "Call",
    "Message",
]
