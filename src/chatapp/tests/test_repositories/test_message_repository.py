import uuid
from datetime import datetime, timedelta, timezone

import pytest

from chatapp.database.session import unit_of_work
from chatapp.exceptions import NotFoundError

T0 = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


@pytest.mark.asyncio
class TestMessageCounter:

    async def test_post_message_increments_message_count(self, message_repository, group_conversation, users, db_session):
        """
        Behavior:
            - Post two messages through the repository.

        Importance:
            - The after_insert listener must bump message_count by exactly one
              per row, in the same flush.
        """
        # Act
        await message_repository.post_message(group_conversation.id, "hello", users[0].id, T0)
        await message_repository.post_message(group_conversation.id, "again", users[1].id, T0 + timedelta(seconds=1))

        # Assert
        await db_session.refresh(group_conversation)
        assert group_conversation.message_count == 2
        assert group_conversation.call_count == 0

    async def test_remove_message_decrements_message_count(self, message_repository, group_conversation, db_session):
        message = await message_repository.post_message(group_conversation.id, "bye", created_at=T0)

        removed = await message_repository.remove_message(message.id)

        assert removed is True
        await db_session.refresh(group_conversation)
        assert group_conversation.message_count == 0

    async def test_remove_missing_message_returns_false(self, message_repository):
        assert await message_repository.remove_message(uuid.uuid4()) is False

    async def test_post_message_unknown_conversation(self, message_repository):
        with pytest.raises(NotFoundError):
            await message_repository.post_message(uuid.uuid4(), "lost")

    async def test_counter_rolls_back_with_message(self, message_repository, conversation_repository, group_conversation):
        """
        Behavior:
            - Post a message inside a unit of work that then fails.

        Importance:
            - The counter update shares the message's transaction: neither the
              row nor the increment may survive the rollback.
        """
        conversation_id = group_conversation.id

        with pytest.raises(RuntimeError):
            async with unit_of_work(message_repository.db):
                await message_repository.post_message(conversation_id, "doomed", created_at=T0)
                raise RuntimeError("boom")

        conversation = await conversation_repository.get_fresh(conversation_id)
        assert conversation.message_count == 0
        assert await message_repository.count(conversation_id=conversation_id) == 0


@pytest.mark.asyncio
class TestLatestMessage:

    async def test_latest_for_picks_newest(self, message_repository, group_conversation, users):
        await message_repository.post_message(group_conversation.id, "first", users[0].id, T0)
        newest = await message_repository.post_message(group_conversation.id, "second", users[1].id, T0 + timedelta(minutes=5))
        await message_repository.post_message(group_conversation.id, "middle", users[2].id, T0 + timedelta(minutes=1))

        latest = await message_repository.latest_for(group_conversation.id)

        assert latest.id == newest.id
        assert latest.content == "second"
        assert latest.sender_id == users[1].id

    async def test_latest_for_without_messages_is_none(self, message_repository, group_conversation):
        assert await message_repository.latest_for(group_conversation.id) is None

    async def test_latest_for_many_one_row_per_conversation(
        self, message_repository, group_conversation, one_to_one_conversation
    ):
        await message_repository.post_message(group_conversation.id, "g1", created_at=T0)
        await message_repository.post_message(group_conversation.id, "g2", created_at=T0 + timedelta(seconds=10))
        await message_repository.post_message(one_to_one_conversation.id, "p1", created_at=T0 + timedelta(seconds=5))

        latest = await message_repository.latest_for_many([group_conversation.id, one_to_one_conversation.id])

        assert latest[group_conversation.id].content == "g2"
        assert latest[one_to_one_conversation.id].content == "p1"

    async def test_latest_for_many_empty_input(self, message_repository):
        assert await message_repository.latest_for_many([]) == {}
