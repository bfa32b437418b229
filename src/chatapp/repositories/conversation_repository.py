"""
Conversation repository for conversation-specific database operations.

Extends `BaseRepository` with:
  - fresh lookups that bypass stale identity-map state
  - the member listing query, ordered by latest message
  - the one-to-one peer search, which speaks the native full-text dialect of
    PostgreSQL and MySQL and falls back to prefix LIKE matching elsewhere
"""

import logging
import re
from uuid import UUID

from sqlalchemy import Select, and_, case, func, select
from sqlalchemy.dialects.mysql import match as mysql_match
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from chatapp.models.conversation import Conversation, ConversationType
from chatapp.models.member import Member
from chatapp.models.message import Message
from chatapp.models.user import User
from chatapp.schemas.conversation import SearchResult
from .base_repository import BaseRepository, RepositoryError

logger = logging.getLogger(__name__)

# Letters and digits only: no LIKE wildcards, tsquery or boolean-mode operators survive
_SEARCH_WORD = re.compile(r"[^\W_]+", re.UNICODE)


def search_terms(text: str | None) -> list[str]:
    """Split free text into lower-cased search words."""
    return _SEARCH_WORD.findall((text or "").lower())


class ConversationRepository(BaseRepository[Conversation]):
    """Repository for Conversation entity operations."""

    def __init__(self, db: AsyncSession):
        super().__init__(Conversation, db)

    async def create_conversation(self, creator_id: UUID, type: ConversationType) -> Conversation:
        return await self.create(creator_id=creator_id, type=type)

    async def get_fresh(self, conversation_id: UUID) -> Conversation | None:
        """
        Load a conversation, overwriting any copy already in the session.

        The counter listeners update `call_count`/`message_count` behind the
        ORM's back, so a plain identity-map hit could return stale counters.
        """
        try:
            result = await self.db.execute(
                select(Conversation)
                .where(Conversation.id == conversation_id)
                .execution_options(populate_existing=True)
            )
            return result.scalar_one_or_none()
        except Exception as e:
            logger.exception("conversation_repo.get_fresh.failed", extra={"conversation_id": str(conversation_id)})
            raise RepositoryError("Failed to retrieve conversation") from e

    async def get_active(self, conversation_id: UUID) -> Conversation | None:
        """Like `get_fresh()` but returns None for soft-deleted conversations."""
        conversation = await self.get_fresh(conversation_id)
        if conversation is None or conversation.is_deleted:
            return None
        return conversation

    # ------------------------------
    # Listing
    # ------------------------------
    def _member_conversations(self, user_id: UUID, *columns) -> Select:
        return (
            select(*(columns or (Conversation,)))
            .select_from(Conversation)
            .join(Member, Member.conversation_id == Conversation.id)
            .where(
                Member.user_id == user_id,
                Conversation.is_deleted.is_(False),
            )
        )

    async def list_for_member(self, user_id: UUID, offset: int = 0, limit: int = 10) -> list[Conversation]:
        """
        Non-deleted conversations `user_id` belongs to, newest activity first.

        Conversations with messages come first, by latest message time;
        conversations without messages follow, by creation time. Conversation
        id breaks remaining ties so pages never overlap.
        """
        latest = (
            select(
                Message.conversation_id.label("conversation_id"),
                func.max(Message.created_at).label("latest_at"),
            )
            .group_by(Message.conversation_id)
            .subquery("latest_message")
        )

        query = (
            self._member_conversations(user_id)
            .outerjoin(latest, latest.c.conversation_id == Conversation.id)
            .order_by(
                latest.c.latest_at.is_(None),
                latest.c.latest_at.desc(),
                Conversation.created_at.desc(),
                Conversation.id,
            )
            .offset(offset)
            .limit(limit)
            .execution_options(populate_existing=True)
        )

        try:
            result = await self.db.execute(query)
            conversations = list(result.scalars().all())
        except Exception as e:
            logger.exception("conversation_repo.list_for_member.failed", extra={"user_id": str(user_id)})
            raise RepositoryError("Failed to list conversations") from e

        logger.debug(
            "conversation_repo.list_for_member",
            extra={"user_id": str(user_id), "offset": offset, "limit": limit, "returned": len(conversations)},
        )
        return conversations

    async def count_for_member(self, user_id: UUID) -> int:
        query = self._member_conversations(user_id, func.count(Conversation.id))
        try:
            result = await self.db.execute(query)
        except Exception as e:
            logger.exception("conversation_repo.count_for_member.failed", extra={"user_id": str(user_id)})
            raise RepositoryError("Failed to count conversations") from e
        return result.scalar() or 0

    # ------------------------------
    # Peer search
    # ------------------------------
    @property
    def dialect_name(self) -> str:
        return self.db.get_bind().dialect.name

    def _relevance(self, terms: list[str], dialect: str):
        """
        Return (filter, relevance) expressions for `dialect`.
        Both are None when there is nothing to match on.
        """
        if not terms:
            return None, None

        if dialect == "postgresql":
            document = func.to_tsvector("simple", func.concat_ws(" ", User.user_first_name, User.user_last_name))
            tsquery = func.to_tsquery("simple", " | ".join(f"{term}:*" for term in terms))
            return document.op("@@")(tsquery), func.ts_rank(document, tsquery)

        if dialect in ("mysql", "mariadb"):
            relevance = mysql_match(
                User.user_first_name,
                User.user_last_name,
                against=" ".join(f"{term}*" for term in terms),
            ).in_boolean_mode()
            return relevance > 0, relevance

        # Portable fallback: count prefix hits across both name columns
        hits = []
        for term in terms:
            pattern = f"{term}%"
            for column in (User.user_first_name, User.user_last_name):
                hits.append(case((func.lower(column).like(pattern), 1), else_=0))
        relevance = sum(hits[1:], hits[0])
        return relevance > 0, relevance

    def _peer_query(self, user_id: UUID) -> Select:
        """
        Rows of (peer profile, conversation id) for every one-to-one
        conversation the caller belongs to, excluding the caller.
        """
        me = aliased(Member)
        peer = aliased(Member)
        return (
            select(
                User.user_first_name,
                User.user_last_name,
                User.user_avatar,
                Conversation.id.label("conversation_id"),
            )
            .select_from(Conversation)
            .join(me, and_(me.conversation_id == Conversation.id, me.user_id == user_id))
            .join(peer, and_(peer.conversation_id == Conversation.id, peer.user_id != user_id))
            .join(User, User.id == peer.user_id)
            .where(Conversation.type == ConversationType.ONE_TO_ONE)
        )

    def peer_search_queries(self, user_id: UUID, terms: list[str], dialect: str) -> tuple[Select, Select]:
        """
        Build the ranked peer query and its count query for `dialect`.
        The ranked query is not paginated.
        """
        condition, relevance = self._relevance(terms, dialect)

        query = self._peer_query(user_id)
        if condition is not None:
            query = query.where(condition)

        ordering = [] if relevance is None else [relevance.desc()]
        ordering += [User.user_first_name, User.user_last_name, Conversation.id]

        return query.order_by(*ordering), select(func.count()).select_from(query.subquery())

    async def search_one_to_one_peers(
        self,
        user_id: UUID,
        text: str | None,
        offset: int = 0,
        limit: int = 10,
    ) -> tuple[list[SearchResult], int]:
        """
        Search the caller's one-to-one peers by first/last name prefix.

        Returns:
            (page of results ranked by relevance then name, total number of matches)
        """
        terms = search_terms(text)
        ranked_query, count_query = self.peer_search_queries(user_id, terms, self.dialect_name)
        page_query = ranked_query.offset(offset).limit(limit)

        try:
            rows = (await self.db.execute(page_query)).all()
            total = (await self.db.execute(count_query)).scalar() or 0
        except Exception as e:
            logger.exception(
                "conversation_repo.search_one_to_one_peers.failed",
                extra={"user_id": str(user_id), "dialect": self.dialect_name},
            )
            raise RepositoryError("Failed to search conversations") from e

        logger.debug(
            "conversation_repo.search_one_to_one_peers",
            extra={"user_id": str(user_id), "terms": len(terms), "returned": len(rows), "total": total},
        )
        return [SearchResult.model_validate(row) for row in rows], total
