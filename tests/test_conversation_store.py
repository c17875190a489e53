import asyncio

import pytest

from paperbot.services.conversation_store import ConversationStore
from paperbot.services.state_machine import ConversationState


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


class TestUserState:
    def test_unknown_user_has_no_pending_request(self, store):
        assert store.get_state("user-1") == ConversationState.NO_PENDING

    def test_set_and_reset(self, store):
        store.set_state("user-1", ConversationState.AWAITING_TOPIC)
        assert store.get_state("user-1") == ConversationState.AWAITING_TOPIC

        store.reset("user-1")
        assert store.get_state("user-1") == ConversationState.NO_PENDING
        assert store.snapshot()["pending_users"] == 0

    def test_setting_no_pending_removes_entry(self, store):
        store.set_state("user-1", ConversationState.AWAITING_JOURNAL_QUERY)
        store.set_state("user-1", ConversationState.NO_PENDING)
        assert store.snapshot()["pending_users"] == 0

    def test_users_are_independent(self, store):
        store.set_state("user-1", ConversationState.AWAITING_TOPIC)
        assert store.get_state("user-2") == ConversationState.NO_PENDING


class TestProcessedMessages:
    def test_first_time_is_accepted(self, store):
        assert store.mark_processed("wamid.1") is True
        assert store.snapshot()["processed_message_ids"] == 1

    def test_duplicate_is_rejected(self, store):
        store.mark_processed("wamid.1")
        assert store.mark_processed("wamid.1") is False

    def test_ids_expire_after_ttl(self):
        clock = FakeClock()
        store = ConversationStore(ttl_seconds=60, clock=clock)
        store.mark_processed("wamid.1")

        clock.now += 59
        assert store.mark_processed("wamid.1") is False

        clock.now += 2
        assert store.mark_processed("wamid.1") is True

    def test_oldest_ids_evicted_over_capacity(self):
        store = ConversationStore(max_entries=2)
        store.mark_processed("wamid.1")
        store.mark_processed("wamid.2")
        store.mark_processed("wamid.3")

        assert store.snapshot()["processed_message_ids"] == 2
        assert store.mark_processed("wamid.3") is False
        assert store.mark_processed("wamid.2") is False
        assert store.mark_processed("wamid.1") is True

    def test_invalid_capacity(self):
        with pytest.raises(ValueError):
            ConversationStore(max_entries=0)


class TestLocks:
    def test_same_user_shares_lock(self, store):
        async def run():
            first = store.lock_for("user-1")
            second = store.lock_for("user-1")
            other = store.lock_for("user-2")
            return first is second, first is other

        same, shared_with_other = asyncio.run(run())
        assert same is True
        assert shared_with_other is False

    def test_lock_serializes_same_user(self, store):
        order = []

        async def worker(name):
            async with store.lock_for("user-1"):
                order.append(f"{name}-start")
                await asyncio.sleep(0.01)
                order.append(f"{name}-end")

        async def run():
            await asyncio.gather(worker("a"), worker("b"))

        asyncio.run(run())
        assert order == ["a-start", "a-end", "b-start", "b-end"]
