"""Debounced scheduling of overlay reprocessing passes."""

import asyncio
from collections.abc import Callable
from typing import Any

from ..codemap_logging import LogCategory, get_category_logger

logger = get_category_logger(LogCategory.OVERLAY)


class ReprocessScheduler:
    """Cancel-and-reschedule timer on the running event loop.

    At most one pass is ever pending: every ``schedule()`` call cancels the
    pending timer and starts a new one, so a burst of mutations coalesces
    into a single callback ``delay`` seconds after the last of them.
    """

    def __init__(self, callback: Callable[[], Any], delay: float = 0.5):
        self.callback = callback
        self.delay = delay
        self._handle: asyncio.TimerHandle | None = None
        self._scheduled = 0
        self._fired = 0

    @property
    def pending(self) -> bool:
        """Whether a pass is waiting on the timer."""
        return self._handle is not None

    def schedule(self) -> None:
        """(Re)start the timer.

        Outside a running event loop there is nothing to debounce against,
        so the callback runs immediately.
        """
        self._scheduled += 1
        self.cancel()
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop, reprocessing immediately")
            self._fire()
            return
        self._handle = loop.call_later(self.delay, self._fire)

    def cancel(self) -> None:
        """Drop the pending pass, if any."""
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _fire(self) -> None:
        self._handle = None
        self._fired += 1
        self.callback()

    def get_stats(self) -> dict[str, Any]:
        """Get scheduler statistics."""
        return {
            "pending": self.pending,
            "scheduled": self._scheduled,
            "fired": self._fired,
            "delay": self.delay,
        }
