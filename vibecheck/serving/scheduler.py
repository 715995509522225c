"""
Fixed-interval asyncio tasks.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional

logger = logging.getLogger(__name__)


class PeriodicTask:
    """
    Runs an async callback every `interval_s` seconds until stopped.

    A failing tick is logged and the loop keeps going; the next tick
    retries. stop() may be called from inside the callback, in which case
    the loop exits after the current tick.
    """

    def __init__(
        self,
        name: str,
        interval_s: float,
        callback: Callable[[], Awaitable[object]],
        run_immediately: bool = True,
    ):
        self.name = name
        self.interval_s = interval_s
        self.callback = callback
        self.run_immediately = run_immediately
        self._task: Optional[asyncio.Task] = None
        self._stopping = False

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.is_running:
            return
        self._stopping = False
        self._task = asyncio.create_task(self._run(), name=self.name)
        logger.info("Started %s (every %.0fs)", self.name, self.interval_s)

    async def stop(self) -> None:
        self._stopping = True
        task = self._task
        if task is None:
            return
        if task is asyncio.current_task():
            # Called from our own callback: let the loop exit on its own
            return

        self._task = None
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.info("Stopped %s", self.name)

    async def _run(self) -> None:
        if not self.run_immediately:
            await asyncio.sleep(self.interval_s)

        while not self._stopping:
            try:
                await self.callback()
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("%s tick failed", self.name)

            if self._stopping:
                break
            await asyncio.sleep(self.interval_s)
