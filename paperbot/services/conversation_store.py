"""In-process conversation state and webhook dedup bookkeeping."""

import asyncio
import time
import weakref
from collections import OrderedDict
from typing import Callable, Dict

from paperbot.logging_config import get_logger
from paperbot.services.state_machine import ConversationState

logger = get_logger("conversation_store")

DEFAULT_TTL_SECONDS = 86400.0
DEFAULT_MAX_ENTRIES = 10000


class ConversationStore:
    """Per-user pending-request state plus the set of handled message ids.

    Everything lives in process memory and is lost on restart. Processed ids
    expire after ``ttl_seconds`` and the oldest ones are dropped once more than
    ``max_entries`` are tracked.
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        clock: Callable[[], float] = time.monotonic,
    ):
        if max_entries < 1:
            raise ValueError("max_entries must be positive")
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self._clock = clock
        self._states: Dict[str, ConversationState] = {}
        self._processed: "OrderedDict[str, float]" = OrderedDict()
        self._locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = weakref.WeakValueDictionary()

    def get_state(self, user_id: str) -> ConversationState:
        return self._states.get(user_id, ConversationState.NO_PENDING)

    def set_state(self, user_id: str, state: ConversationState) -> None:
        if state == ConversationState.NO_PENDING:
            self.reset(user_id)
            return
        self._states[user_id] = state

    def reset(self, user_id: str) -> None:
        self._states.pop(user_id, None)

    def mark_processed(self, message_id: str) -> bool:
        """Record a message id. Returns False if it was already handled."""
        now = self._clock()
        self._purge_expired(now)

        if message_id in self._processed:
            return False

        self._processed[message_id] = now + self.ttl_seconds
        while len(self._processed) > self.max_entries:
            evicted, _ = self._processed.popitem(last=False)
            logger.debug(f"Evicted processed message id {evicted}")
        return True

    def lock_for(self, user_id: str) -> asyncio.Lock:
        """Lock serializing one user's events; dropped once nobody holds it."""
        lock = self._locks.get(user_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[user_id] = lock
        return lock

    def snapshot(self) -> dict:
        return {
            "pending_users": len(self._states),
            "processed_message_ids": len(self._processed),
        }

    def _purge_expired(self, now: float) -> None:
        # Insertion order matches expiry order because the TTL is constant.
        while self._processed:
            message_id, expires_at = next(iter(self._processed.items()))
            if expires_at > now:
                break
            del self._processed[message_id]
