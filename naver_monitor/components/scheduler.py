"""
Polling scheduler.

A single repeating asyncio timer drives pipeline ticks. Each tick runs as
its own task so that stopping the timer never cancels a fetch that is
already under way; that tick completes and applies its effects. A new tick
is skipped while the previous one is still running.
"""

import asyncio
import logging
from typing import Optional

from ..interfaces import IMatchPipeline
from ..models.post import TickResult, TickStatus
from ..models.state import MonitorState

logger = logging.getLogger(__name__)


class Scheduler:
    """Fixed-period timer that runs the match pipeline while checking."""

    def __init__(
        self,
        pipeline: IMatchPipeline,
        state: MonitorState,
        interval_seconds: float = 3.0,
    ):
        """
        Initialize the scheduler.

        Args:
            pipeline: Pipeline whose run_tick() is called every period
            state: Shared monitor state; owns the "checking" flag
            interval_seconds: Timer period
        """
        self.pipeline = pipeline
        self.state = state
        self.interval_seconds = interval_seconds

        self._timer_task: Optional[asyncio.Task] = None
        self._tick_task: Optional[asyncio.Task] = None
        self.skipped_ticks = 0
        self.last_result: Optional[TickResult] = None

    @property
    def is_checking(self) -> bool:
        return self.state.is_checking

    @property
    def tick_in_flight(self) -> bool:
        return self._tick_task is not None and not self._tick_task.done()

    def start(self) -> bool:
        """
        Arm the timer and flag the monitor as checking.

        Returns:
            True if the timer was armed, False if it was already running
        """
        if self.state.is_checking and self._timer_task and not self._timer_task.done():
            logger.warning("Checking is already running")
            return False

        self.state.is_checking = True
        self._timer_task = asyncio.create_task(self._timer_loop())
        logger.info(f"Started checking every {self.interval_seconds}s")
        return True

    def stop(self) -> None:
        """Clear the checking flag and cancel the timer; an in-flight tick finishes."""
        self.state.is_checking = False

        if self._timer_task and not self._timer_task.done():
            self._timer_task.cancel()
        self._timer_task = None

        logger.info("Stopped checking")

    async def shutdown(self) -> None:
        """Stop the timer and wait for any in-flight tick to finish."""
        self.stop()

        if self._tick_task is not None:
            await asyncio.gather(self._tick_task, return_exceptions=True)
            self._tick_task = None

    def tick_now(self) -> Optional[asyncio.Task]:
        """
        Start a tick immediately unless one is already running.

        Returns:
            The tick task, or None if the tick was skipped
        """
        if self.tick_in_flight:
            self.skipped_ticks += 1
            logger.debug("Previous tick still running, skipping this one")
            return None

        self._tick_task = asyncio.create_task(self._run_tick())
        return self._tick_task

    async def _timer_loop(self) -> None:
        while True:
            await asyncio.sleep(self.interval_seconds)

            if not self.state.is_checking:
                logger.debug("Checking flag cleared, timer exiting")
                return

            self.tick_now()

    async def _run_tick(self) -> TickResult:
        try:
            result = await self.pipeline.run_tick()
        except Exception as e:
            # Pipelines are expected to contain their own failures
            logger.error(f"Tick raised unexpectedly: {e}", exc_info=True)
            result = TickResult(status=TickStatus.FAILED, error=str(e) or type(e).__name__)

        self.last_result = result
        return result
