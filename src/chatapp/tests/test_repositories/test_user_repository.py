import uuid

import pytest

from chatapp.exceptions import DuplicateError


@pytest.mark.asyncio
class TestUserRepository:

    async def test_create_user_normalizes_input(self, user_repository):
        """
        Behavior:
            - Names are stripped, the email is stripped and lower-cased.

        Importance:
            - Uniqueness of emails must not depend on case or stray whitespace.
        """
        user = await user_repository.create_user("  Grace ", " Hopper ", "  Grace@Example.COM ")

        assert user.user_first_name == "Grace"
        assert user.user_last_name == "Hopper"
        assert user.user_email == "grace@example.com"

    async def test_create_user_duplicate_email_case_insensitive(self, user_repository, make_user):
        await make_user(email="grace@example.com")

        with pytest.raises(DuplicateError):
            await user_repository.create_user("Grace", "Hopper", "GRACE@example.com")

    async def test_get_by_email(self, user_repository, make_user):
        user = await make_user(email="linus@example.com")

        assert (await user_repository.get_by_email(" Linus@Example.com")).id == user.id
        assert await user_repository.get_by_email("nobody@example.com") is None

    async def test_get_existing_ids_returns_known_subset(self, user_repository, users):
        """
        Behavior:
            - Mix known and unknown ids in one call.

        Importance:
            - Conversation creation relies on this to reject unknown members
              with a single query.
        """
        unknown = uuid.uuid4()

        found = await user_repository.get_existing_ids([users[0].id, users[1].id, unknown])

        assert found == {users[0].id, users[1].id}

    async def test_get_existing_ids_empty_input(self, user_repository):
        assert await user_repository.get_existing_ids([]) == set()
