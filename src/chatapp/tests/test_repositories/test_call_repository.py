import uuid

import pytest

from chatapp.database.session import unit_of_work
from chatapp.exceptions import NotFoundError
from chatapp.models import Call


@pytest.mark.asyncio
class TestCallCounter:

    async def test_start_call_increments_call_count(self, call_repository, group_conversation, users, db_session):
        """
        Behavior:
            - Start one call in a conversation.

        Importance:
            - Creating a call increments its conversation's call_count by exactly one.
        """
        # Act
        call = await call_repository.start_call(group_conversation.id, users[0].id)

        # Assert
        await db_session.refresh(group_conversation)
        assert group_conversation.call_count == 1
        assert call.conversation_id == group_conversation.id
        assert call.caller_id == users[0].id
        assert call.started_at is not None
        assert call.is_active

    async def test_remove_call_decrements_call_count(self, call_repository, group_conversation, db_session):
        call = await call_repository.start_call(group_conversation.id)

        removed = await call_repository.remove_call(call.id)

        assert removed is True
        await db_session.refresh(group_conversation)
        assert group_conversation.call_count == 0

    async def test_create_destroy_pairs_net_to_zero(self, call_repository, group_conversation, db_session):
        """
        Behavior:
            - Start three calls, remove two of them.

        Importance:
            - The counter tracks the set of surviving call rows.
        """
        calls = [await call_repository.start_call(group_conversation.id) for _ in range(3)]
        for call in calls[:2]:
            await call_repository.remove_call(call.id)

        await db_session.refresh(group_conversation)
        assert group_conversation.call_count == 1
        assert await call_repository.count(conversation_id=group_conversation.id) == 1

    async def test_counters_are_per_conversation(
        self, call_repository, group_conversation, one_to_one_conversation, db_session
    ):
        await call_repository.start_call(group_conversation.id)

        await db_session.refresh(one_to_one_conversation)
        assert one_to_one_conversation.call_count == 0

    async def test_plain_orm_insert_also_fires_hook(self, group_conversation, db_session):
        """
        Behavior:
            - Add a Call directly through the session, bypassing the repository.

        Importance:
            - The hook lives on the mapper, so every ORM write path keeps the counter right.
        """
        db_session.add(Call(conversation_id=group_conversation.id))
        await db_session.flush()

        await db_session.refresh(group_conversation)
        assert group_conversation.call_count == 1

    async def test_start_call_unknown_conversation(self, call_repository):
        with pytest.raises(NotFoundError):
            await call_repository.start_call(uuid.uuid4())

    async def test_remove_missing_call_returns_false(self, call_repository):
        assert await call_repository.remove_call(uuid.uuid4()) is False

    async def test_counter_rolls_back_with_call(self, call_repository, conversation_repository, group_conversation):
        conversation_id = group_conversation.id

        with pytest.raises(RuntimeError):
            async with unit_of_work(call_repository.db):
                await call_repository.start_call(conversation_id)
                raise RuntimeError("boom")

        conversation = await conversation_repository.get_fresh(conversation_id)
        assert conversation.call_count == 0


@pytest.mark.asyncio
class TestEndCall:

    async def test_end_call_sets_ended_at(self, call_repository, group_conversation):
        call = await call_repository.start_call(group_conversation.id)

        ended = await call_repository.end_call(call.id)

        assert ended.ended_at is not None
        assert not ended.is_active

    async def test_end_call_keeps_first_timestamp(self, call_repository, group_conversation):
        call = await call_repository.start_call(group_conversation.id)
        first = (await call_repository.end_call(call.id)).ended_at

        second = (await call_repository.end_call(call.id)).ended_at

        assert second == first

    async def test_end_unknown_call(self, call_repository):
        with pytest.raises(NotFoundError):
            await call_repository.end_call(uuid.uuid4())
