"""
Background execution of debate loops.

One asyncio.Task per active debate. A crashing loop only takes down its own
task; the failure is logged when the task finishes.
"""

import asyncio
import logging
from functools import partial
from typing import Optional

from .engine import DebateEngine

logger = logging.getLogger(__name__)


class DebateRunner:
    """Schedules and tracks orchestration loops."""

    def __init__(self, engine: DebateEngine):
        self._engine = engine
        self._tasks: dict[str, asyncio.Task] = {}

    def launch(self, debate_id: str, credential: str) -> bool:
        """
        Start the debate's loop unless one is already alive.

        Returns:
            True if a new loop was scheduled
        """
        task = self._tasks.get(debate_id)
        if task is not None and not task.done():
            logger.debug(f"Debate {debate_id}: loop already running")
            return False

        task = asyncio.create_task(
            self._engine.run(debate_id, credential),
            name=f"debate-{debate_id}",
        )
        self._tasks[debate_id] = task
        task.add_done_callback(partial(self._on_done, debate_id))
        return True

    def is_running(self, debate_id: str) -> bool:
        task = self._tasks.get(debate_id)
        return task is not None and not task.done()

    def task_for(self, debate_id: str) -> Optional[asyncio.Task]:
        return self._tasks.get(debate_id)

    async def wait(self, debate_id: str) -> None:
        """Wait for the debate's current loop, if any, to finish."""
        task = self._tasks.get(debate_id)
        if task is not None:
            await asyncio.wait({task})

    async def shutdown(self) -> None:
        """Cancel every running loop and wait for them to exit."""
        tasks = [t for t in self._tasks.values() if not t.done()]
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
            logger.info(f"Cancelled {len(tasks)} debate loop(s)")
        self._tasks.clear()

    def _on_done(self, debate_id: str, task: asyncio.Task) -> None:
        if self._tasks.get(debate_id) is task:
            del self._tasks[debate_id]
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error(f"Debate {debate_id}: loop crashed: {error!r}", exc_info=error)
