"""Per-debate asyncio locks."""

import asyncio


class DebateLocks:
    """
    Lazily created asyncio.Lock per debate ID.

    Locks are not reentrant; use separate registries for resources that may
    be held at the same time (turn numbering vs. event sequencing).
    """

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}

    def for_debate(self, debate_id: str) -> asyncio.Lock:
        lock = self._locks.get(debate_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[debate_id] = lock
        return lock

    def discard(self, debate_id: str) -> None:
        """Forget a debate's lock, unless someone holds it."""
        lock = self._locks.get(debate_id)
        if lock is not None and not lock.locked():
            del self._locks[debate_id]

    def __contains__(self, debate_id: str) -> bool:
        return debate_id in self._locks
