from .conversation import (
    ConversationCreate,
    PageQuery,
    SearchQuery,
    ConversationRead,
    MemberProfile,
    LatestMessage,
    ConversationView,
    ConversationPage,
    SearchResult,
    SearchPage,
)

__all__ = [
    "ConversationCreate",
    "PageQuery",
    "SearchQuery",
    "ConversationRead",
    "MemberProfile",
    "LatestMessage",
    "ConversationView",
    "ConversationPage",
    "SearchResult",
    "SearchPage",
]
