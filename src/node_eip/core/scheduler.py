import asyncio
import logging
from typing import Awaitable, Callable, Optional, Union

from .config import parse_interval

logger = logging.getLogger(__name__)

CycleFunc = Callable[[], Awaitable[Optional[bool]]]


class Scheduler:
    """
    Runs an async cycle function on a fixed interval until stopped.

    A cycle that raises is logged and the next cycle runs after the normal
    interval. A cycle that returns False ends the loop. The stop token is
    checked before each cycle and while sleeping; a cycle already in flight
    is never interrupted.
    """

    def __init__(self, stop_event: Optional[asyncio.Event] = None):
        self._stop_event = stop_event or asyncio.Event()
        logger.debug("Scheduler initialized.")

    @property
    def stopped(self) -> bool:
        return self._stop_event.is_set()

    def stop(self):
        """Requests the loop to end at its next suspension point."""
        if not self._stop_event.is_set():
            logger.info("Stopping scheduler...")
        self._stop_event.set()

    async def _sleep(self, interval_seconds: float) -> None:
        try:
            await asyncio.wait_for(self._stop_event.wait(), timeout=interval_seconds)
        except asyncio.TimeoutError:
            pass

    async def run_periodically(self, job_func: CycleFunc, interval: Union[int, float, str]) -> None:
        interval_seconds = parse_interval(interval) if isinstance(interval, str) else interval
        name = getattr(job_func, "__name__", repr(job_func))
        logger.info(f"Running job '{name}' every {interval_seconds}s.")

        while not self._stop_event.is_set():
            try:
                keep_running = await job_func()
            except Exception as e:
                logger.error(f"Error in scheduled job '{name}': {e}", exc_info=True)
            else:
                if keep_running is False:
                    logger.info(f"Job '{name}' finished.")
                    return
            await self._sleep(interval_seconds)

        logger.info(f"Job '{name}' stopped.")
