"""
Auto-Complete Monitor Background Worker
Runs the monitor once at startup and then on a fixed interval
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional

from ..config import AUTO_COMPLETE_INTERVAL_SECONDS
from ..run_lock import RunLock
from ..services.auto_complete_monitor import run_auto_complete_monitor

logger = logging.getLogger(__name__)


class AutoCompleteScheduler:
    """
    Interval ticker around one monitor run.

    A tick that finds the previous run still going is skipped rather than
    queued, so runs never overlap inside this process. The optional RunLock
    extends that guarantee across processes.
    """

    def __init__(
        self,
        interval_seconds: float = AUTO_COMPLETE_INTERVAL_SECONDS,
        run_func: Optional[Callable[[], Awaitable[dict]]] = None,
        run_lock: Optional[RunLock] = None,
    ):
        self.interval_seconds = interval_seconds
        self.run_func = run_func or run_auto_complete_monitor
        self.run_lock = run_lock
        self.last_summary: Optional[dict] = None
        self.skipped_ticks = 0
        self._loop_task: Optional[asyncio.Task] = None
        self._current_run: Optional[asyncio.Task] = None

    @property
    def is_running(self) -> bool:
        return self._loop_task is not None and not self._loop_task.done()

    def start(self) -> asyncio.Task:
        """Start ticking; returns the loop task as the cancellation handle"""
        if self.is_running:
            return self._loop_task

        logger.info(f"🚀 Starting auto-complete monitor with {self.interval_seconds}s interval")
        self._loop_task = asyncio.create_task(self._run_forever())
        return self._loop_task

    async def stop(self) -> None:
        """Stop ticking and let an in-flight run finish"""
        if self._loop_task:
            self._loop_task.cancel()
            try:
                await self._loop_task
            except asyncio.CancelledError:
                pass
            self._loop_task = None

        if self._current_run and not self._current_run.done():
            await self._current_run

        logger.info("👋 Auto-complete monitor stopped")

    def tick(self) -> bool:
        """Start a run unless one is still in flight"""
        if self._current_run is not None and not self._current_run.done():
            self.skipped_ticks += 1
            logger.warning("⏭️ Previous auto-complete run still in progress, skipping this tick")
            return False

        self._current_run = asyncio.create_task(self.run_once())
        return True

    async def run_once(self) -> Optional[dict]:
        if self.run_lock and not self.run_lock.acquire():
            return None

        try:
            self.last_summary = await self.run_func()
            return self.last_summary
        except Exception as e:
            logger.error(f"❌ Auto-complete monitor run failed: {e}")
            return None
        finally:
            if self.run_lock:
                self.run_lock.release()

    async def _run_forever(self) -> None:
        while True:
            self.tick()
            await asyncio.sleep(self.interval_seconds)


async def run_auto_complete_worker():
    """
    Main worker loop - runs until cancelled
    """
    scheduler = AutoCompleteScheduler(run_lock=RunLock())
    loop_task = scheduler.start()
    try:
        await loop_task
    finally:
        await scheduler.stop()
