"""
Member repository: the user <-> conversation join table.

Besides membership bookkeeping this module owns the member profile
projection used by conversation views, fetched for one conversation or for a
whole page of conversations in a single query.
"""

from collections import defaultdict
from typing import Iterable
from uuid import UUID
import logging

from sqlalchemy import and_, delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from chatapp.models.member import Member
from chatapp.models.user import User
from chatapp.schemas.conversation import MemberProfile
from .base_repository import BaseRepository, RepositoryError

logger = logging.getLogger(__name__)

# Columns exposed for each member, in projection order
PROFILE_COLUMNS = (
    User.id,
    User.user_description,
    User.user_first_name,
    User.user_last_name,
    User.user_email,
    User.user_avatar,
    User.user_gender,
    User.user_dob,
)


class MemberRepository(BaseRepository[Member]):

    def __init__(self, db: AsyncSession):
        super().__init__(Member, db)

    async def get_membership(self, conversation_id: UUID, user_id: UUID) -> Member | None:
        try:
            result = await self.db.execute(
                select(Member).where(
                    and_(
                        Member.conversation_id == conversation_id,
                        Member.user_id == user_id,
                    )
                )
            )
            return result.scalar_one_or_none()
        except Exception as e:
            logger.exception("member_repo.get_membership.failed")
            raise RepositoryError("Failed to retrieve membership") from e

    async def is_member(self, conversation_id: UUID, user_id: UUID) -> bool:
        return await self.get_membership(conversation_id, user_id) is not None

    async def count_members(self, conversation_id: UUID) -> int:
        return await self.count(conversation_id=conversation_id)

    async def add_member(self, conversation_id: UUID, user_id: UUID) -> Member:
        """
        Raises:
            DuplicateError: If the user is already a member (pre-check or unique constraint).
        """
        return await self.create(conversation_id=conversation_id, user_id=user_id)

    async def add_members(self, conversation_id: UUID, user_ids: Iterable[UUID]) -> list[Member]:
        """Insert one membership per distinct user id in a single flush."""
        unique_ids = list(dict.fromkeys(user_ids))
        return await self.create_many(
            {"conversation_id": conversation_id, "user_id": user_id} for user_id in unique_ids
        )

    async def remove(self, conversation_id: UUID, user_id: UUID) -> bool:
        """
        Delete the membership of `user_id` in `conversation_id` only; the
        user's other memberships are untouched.

        Returns:
            True if a row was deleted.
        """
        try:
            result = await self.db.execute(
                delete(Member).where(
                    and_(
                        Member.conversation_id == conversation_id,
                        Member.user_id == user_id,
                    )
                )
            )
        except Exception as e:
            logger.exception("member_repo.remove.failed")
            raise RepositoryError("Failed to remove membership") from e

        removed = result.rowcount > 0
        logger.debug(
            "member_repo.remove",
            extra={"conversation_id": str(conversation_id), "user_id": str(user_id), "removed": removed},
        )
        return removed

    async def profiles_for(self, conversation_id: UUID) -> list[MemberProfile]:
        profiles = await self.profiles_for_many([conversation_id])
        return profiles.get(conversation_id, [])

    async def profiles_for_many(self, conversation_ids: Iterable[UUID]) -> dict[UUID, list[MemberProfile]]:
        """
        Member profiles grouped by conversation id, one query for all ids.
        Conversations without members are absent from the result.
        """
        ids = list(conversation_ids)
        if not ids:
            return {}

        query = (
            select(Member.conversation_id.label("conversation_id"), *PROFILE_COLUMNS)
            .join(User, User.id == Member.user_id)
            .where(Member.conversation_id.in_(ids))
            .order_by(Member.created_at, User.user_first_name, User.id)
        )
        try:
            result = await self.db.execute(query)
        except Exception as e:
            logger.exception("member_repo.profiles_for_many.failed", extra={"conversations": len(ids)})
            raise RepositoryError("Failed to load member profiles") from e

        grouped: dict[UUID, list[MemberProfile]] = defaultdict(list)
        for row in result:
            grouped[row.conversation_id].append(MemberProfile.model_validate(row))
        return dict(grouped)
