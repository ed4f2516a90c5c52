"""
Retention cleanup for finished debates.

Terminal debates older than the retention window are removed together with
their turns, events and action records. Active debates are never touched.
"""

import asyncio
import logging
from datetime import datetime, timedelta
from typing import Optional, Sequence

from .credentials import CredentialCache
from .interfaces import IDebateStore
from .locks import DebateLocks
from .models import utc_now

logger = logging.getLogger(__name__)


class RetentionCleaner:
    """
    Deletes expired debates and stale cached credentials.

    Per-debate lock registries handed in are released for each purged debate.
    """

    def __init__(
        self,
        store: IDebateStore,
        retention: timedelta = timedelta(hours=24),
        credential_cache: Optional[CredentialCache] = None,
        locks: Sequence[DebateLocks] = (),
    ):
        self._store = store
        self.retention = retention
        self._credentials = credential_cache
        self._locks = tuple(locks)

    def purge(self, now: Optional[datetime] = None) -> int:
        """
        Delete terminal debates created before now - retention.

        Returns:
            Number of debates deleted
        """
        cutoff = (now or utc_now()) - self.retention
        debate_ids = self._store.list_expired_debate_ids(cutoff)

        for debate_id in debate_ids:
            self._store.delete_turns(debate_id)
            self._store.delete_events(debate_id)
            self._store.delete_actions(debate_id)
            self._store.delete_debate(debate_id)
            if self._credentials is not None:
                self._credentials.delete(debate_id)
            for registry in self._locks:
                registry.discard(debate_id)

        evicted = self._credentials.evict_expired() if self._credentials is not None else 0

        if debate_ids or evicted:
            logger.info(
                f"Retention cleanup removed {len(debate_ids)} debate(s) "
                f"and {evicted} expired credential(s)"
            )
        return len(debate_ids)

    async def run_periodically(
        self,
        interval: timedelta,
        stop: Optional[asyncio.Event] = None,
    ) -> None:
        """Purge every interval until stop is set or the task is cancelled."""
        seconds = interval.total_seconds()
        while stop is None or not stop.is_set():
            try:
                self.purge()
            except Exception:
                logger.exception("Retention cleanup failed")
            if stop is None:
                await asyncio.sleep(seconds)
                continue
            try:
                await asyncio.wait_for(stop.wait(), timeout=seconds)
            except asyncio.TimeoutError:
                pass
