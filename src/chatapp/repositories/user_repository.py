"""
User repository.

Users are owned by the authentication service; this repository only creates
profile rows (fixtures, sync jobs) and resolves ids for membership checks.
"""

from datetime import date
from typing import Iterable
from uuid import UUID
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from chatapp.models.user import User
from .base_repository import BaseRepository, RepositoryError

logger = logging.getLogger(__name__)


class UserRepository(BaseRepository[User]):
    """Repository for User entity operations."""

    def __init__(self, db: AsyncSession):
        super().__init__(User, db)

    async def create_user(
        self,
        first_name: str,
        last_name: str,
        email: str,
        *,
        avatar: str | None = None,
        description: str | None = None,
        gender: str | None = None,
        dob: date | None = None,
    ) -> User:
        """
        Create a user profile, normalizing names and email.

        Raises:
            DuplicateError: If the email is already taken.
        """
        return await self.create(
            user_first_name=first_name.strip(),
            user_last_name=last_name.strip(),
            user_email=email.strip().lower(),
            user_avatar=avatar,
            user_description=description,
            user_gender=gender,
            user_dob=dob,
        )

    async def get_by_email(self, email: str) -> User | None:
        try:
            result = await self.db.execute(
                select(User).where(User.user_email == email.strip().lower())
            )
            return result.scalar_one_or_none()
        except Exception as e:
            logger.exception("user_repo.get_by_email.failed")
            raise RepositoryError("Failed to retrieve user by email") from e

    async def get_existing_ids(self, user_ids: Iterable[UUID]) -> set[UUID]:
        """
        Return the subset of `user_ids` that belong to existing users.

        One query for the whole set; callers compare the result with their
        input to find unknown ids.
        """
        ids = set(user_ids)
        if not ids:
            return set()

        try:
            result = await self.db.execute(select(User.id).where(User.id.in_(ids)))
            found = set(result.scalars().all())
        except Exception as e:
            logger.exception("user_repo.get_existing_ids.failed", extra={"requested": len(ids)})
            raise RepositoryError("Failed to resolve user ids") from e

        logger.debug(
            "user_repo.get_existing_ids",
            extra={"requested": len(ids), "found": len(found)},
        )
        return found
