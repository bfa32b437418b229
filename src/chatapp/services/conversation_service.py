"""
Conversation service: business rules for the conversation lifecycle.

Each public method receives the caller's id and a payload/query object, works
through the repositories bound to the injected session, and returns pydantic
projections. Writes run inside `unit_of_work`, so a failure at any step
leaves no partial state behind.
"""

import logging
import math
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from chatapp.database.session import unit_of_work
from chatapp.exceptions import (
    BadRequestError,
    ConflictError,
    DuplicateError,
    ForbiddenError,
)
from chatapp.models.conversation import Conversation, ConversationType
from chatapp.repositories import (
    ConversationRepository,
    MemberRepository,
    MessageRepository,
    UserRepository,
)
from chatapp.schemas.conversation import (
    ConversationCreate,
    ConversationPage,
    ConversationRead,
    ConversationView,
    LatestMessage,
    MemberProfile,
    PageQuery,
    SearchPage,
    SearchQuery,
)

logger = logging.getLogger(__name__)


def total_pages(count: int, limit: int) -> int:
    """Number of pages needed to show `count` rows, `limit` at a time."""
    return math.ceil(count / limit) if count else 0


def build_view(
    conversation: Conversation,
    members: list[MemberProfile],
    latest_message: LatestMessage | None,
) -> ConversationView:
    fields = ConversationRead.model_validate(conversation).model_dump()
    return ConversationView(**fields, members=members, latest_message=latest_message)


class ConversationService:
    """
    Create, join, leave, read, delete, list and search conversations.

    The session is passed in (FastAPI dependency, test fixture or script), and
    nothing here commits outside `unit_of_work`.
    """

    def __init__(self, db: AsyncSession):
        self.db = db
        self.users = UserRepository(db)
        self.conversations = ConversationRepository(db)
        self.members = MemberRepository(db)
        self.messages = MessageRepository(db)

    async def _get_or_bad_request(self, conversation_id: UUID, *, active_only: bool = False) -> Conversation:
        if active_only:
            conversation = await self.conversations.get_active(conversation_id)
        else:
            conversation = await self.conversations.get_fresh(conversation_id)

        if conversation is None:
            logger.info("conversation.not_found", extra={"conversation_id": str(conversation_id)})
            raise BadRequestError("Conversation not found", fields=["conversation_id"])
        return conversation

    # ------------------------------
    # Writes
    # ------------------------------
    async def create_conversation(self, user_id: UUID, payload: ConversationCreate) -> ConversationRead:
        """
        Create a conversation owned by `user_id` whose members are
        `payload.members` plus the creator.

        Raises:
            BadRequestError: If a member id does not resolve to a user, or a
                one_to_one conversation would not have exactly two members.
        """
        member_ids = list(dict.fromkeys([*payload.members, user_id]))

        existing = await self.users.get_existing_ids(member_ids)
        unknown = [member_id for member_id in member_ids if member_id not in existing]
        if unknown:
            logger.info(
                "conversation.create.invalid_members",
                extra={"user_id": str(user_id), "unknown_count": len(unknown)},
            )
            raise BadRequestError("Invalid members", fields=["members"])

        # A valid member set for one_to_one also has exactly two ids after adding the
        # creator, so it still yields one membership row per id in members | {creator}
        if payload.type == ConversationType.ONE_TO_ONE and len(member_ids) != 2:
            logger.info(
                "conversation.create.bad_one_to_one",
                extra={"user_id": str(user_id), "member_count": len(member_ids)},
            )
            raise BadRequestError("A one_to_one conversation needs exactly two members", fields=["members"])

        async with unit_of_work(self.db):
            conversation = await self.conversations.create_conversation(user_id, payload.type)
            await self.members.add_members(conversation.id, member_ids)

        logger.info(
            "conversation.created",
            extra={
                "conversation_id": str(conversation.id),
                "type": conversation.type.value,
                "member_count": len(member_ids),
            },
        )
        return ConversationRead.model_validate(conversation)

    async def join_conversation(self, conversation_id: UUID, user_id: UUID) -> ConversationRead:
        """
        Raises:
            BadRequestError: Conversation missing, soft-deleted or one_to_one.
            ConflictError: The user is already a member.
        """
        async with unit_of_work(self.db):
            conversation = await self._get_or_bad_request(conversation_id, active_only=True)

            if conversation.type == ConversationType.ONE_TO_ONE:
                logger.info("conversation.join.one_to_one", extra={"conversation_id": str(conversation_id)})
                raise BadRequestError("Cannot join a one_to_one conversation")

            if await self.members.is_member(conversation_id, user_id):
                logger.info(
                    "conversation.join.already_member",
                    extra={"conversation_id": str(conversation_id), "user_id": str(user_id)},
                )
                raise ConflictError("User is already a member of this conversation")

            try:
                await self.members.add_member(conversation_id, user_id)
            except DuplicateError as exc:
                # A concurrent join won the unique constraint
                raise ConflictError("User is already a member of this conversation") from exc

        logger.info(
            "conversation.joined",
            extra={"conversation_id": str(conversation_id), "user_id": str(user_id)},
        )
        return ConversationRead.model_validate(conversation)

    async def leave_conversation(self, conversation_id: UUID, user_id: UUID) -> ConversationRead:
        """
        Remove the caller's membership; the conversation is soft-deleted once
        nobody is left in it.

        Members are counted after the removal, in the same transaction, so a
        concurrent leave cannot slip between the count and the delete.

        Raises:
            BadRequestError: Conversation missing or one_to_one.
            ConflictError: The user is not a member.
            ForbiddenError: The user created the conversation.
        """
        async with unit_of_work(self.db):
            conversation = await self._get_or_bad_request(conversation_id)

            if not await self.members.is_member(conversation_id, user_id):
                logger.info(
                    "conversation.leave.not_member",
                    extra={"conversation_id": str(conversation_id), "user_id": str(user_id)},
                )
                raise ConflictError("User is not a member of this conversation")

            if conversation.type == ConversationType.ONE_TO_ONE:
                raise BadRequestError("Cannot leave a one_to_one conversation")

            if conversation.creator_id == user_id:
                logger.info("conversation.leave.creator", extra={"conversation_id": str(conversation_id)})
                raise ForbiddenError("The creator cannot leave the conversation")

            await self.members.remove(conversation_id, user_id)
            remaining = await self.members.count_members(conversation_id)
            if remaining == 0:
                conversation.is_deleted = True
            await self.conversations.save(conversation)

        logger.info(
            "conversation.left",
            extra={
                "conversation_id": str(conversation_id),
                "user_id": str(user_id),
                "remaining": remaining,
                "soft_deleted": conversation.is_deleted,
            },
        )
        return ConversationRead.model_validate(conversation)

    async def delete_conversation(self, conversation_id: UUID, user_id: UUID) -> None:
        """
        Soft-delete a group conversation. Only its creator may do this.

        Raises:
            BadRequestError: Conversation missing or one_to_one.
            ForbiddenError: The caller is not the creator.
        """
        async with unit_of_work(self.db):
            conversation = await self._get_or_bad_request(conversation_id)

            if conversation.type == ConversationType.ONE_TO_ONE:
                raise BadRequestError("Cannot delete a one_to_one conversation")

            if conversation.creator_id != user_id:
                logger.info(
                    "conversation.delete.not_creator",
                    extra={"conversation_id": str(conversation_id), "user_id": str(user_id)},
                )
                raise ForbiddenError("Only the creator can delete the conversation")

            conversation.is_deleted = True
            await self.conversations.save(conversation)

        logger.info("conversation.deleted", extra={"conversation_id": str(conversation_id)})

    # ------------------------------
    # Reads
    # ------------------------------
    async def get_conversation(self, conversation_id: UUID) -> ConversationView:
        """
        Raises:
            BadRequestError: Conversation missing.
        """
        conversation = await self._get_or_bad_request(conversation_id)
        members = await self.members.profiles_for(conversation_id)
        latest = await self.messages.latest_for(conversation_id)
        return build_view(conversation, members, latest)

    async def get_conversations(self, user_id: UUID, query: PageQuery) -> ConversationPage:
        """One page of the caller's conversations, most recent activity first."""
        total = await self.conversations.count_for_member(user_id)
        conversations = await self.conversations.list_for_member(user_id, query.offset, query.limit)

        ids = [conversation.id for conversation in conversations]
        members = await self.members.profiles_for_many(ids)
        latest = await self.messages.latest_for_many(ids)

        data = [
            build_view(conversation, members.get(conversation.id, []), latest.get(conversation.id))
            for conversation in conversations
        ]
        logger.debug(
            "conversation.list",
            extra={"user_id": str(user_id), "page": query.page, "returned": len(data), "total": total},
        )
        return ConversationPage(data=data, total_page=total_pages(total, query.limit))

    async def search(self, user_id: UUID, query: SearchQuery) -> SearchPage:
        """Find one_to_one peers of the caller by name."""
        results, total = await self.conversations.search_one_to_one_peers(
            user_id, query.text, query.offset, query.limit
        )
        return SearchPage(data=results, total_page=total_pages(total, query.limit))
