"""
Repeating Timer

asyncio has no periodic timer, and a sleeping task cannot be stopped
synchronously (cancel() only takes effect at the next await). This
timer chains loop.call_later handles instead: stop() cancels the
pending handle immediately, so a reconfiguration never races with a
tick that is already queued.
"""

import asyncio
import logging
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class RepeatingTimer:
    """
    Calls a function every `interval` milliseconds on an event loop.

    Args:
        callback: Function to call on every tick (no arguments)
        interval: Period in milliseconds
        loop: Event loop to schedule on (defaults to the running loop
              when the timer is first started)
    """

    def __init__(self, callback: Callable[[], object], interval: int = 0,
                 loop: Optional[asyncio.AbstractEventLoop] = None):
        self.callback = callback
        self._interval = interval
        self._loop = loop
        self._handle: Optional[asyncio.TimerHandle] = None

    @property
    def interval(self) -> int:
        return self._interval

    @interval.setter
    def interval(self, value: int):
        self._interval = value

    @property
    def is_active(self) -> bool:
        return self._handle is not None

    def start(self):
        """Start (or restart) the timer with the current interval."""
        self.stop()
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        self._schedule()

    def stop(self):
        """Stop the timer. Takes effect immediately."""
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def restart(self, interval: int):
        """
        Apply a new period: stop, set the interval, run the callback
        once right away, then start again.
        """
        self.stop()
        self._interval = interval
        self._run()
        self.start()

    def _schedule(self):
        self._handle = self._loop.call_later(self._interval / 1000.0, self._fire)

    def _fire(self):
        # Schedule the next tick first so the callback may stop() us
        self._schedule()
        self._run()

    def _run(self):
        try:
            self.callback()
        except Exception as e:
            logger.error(f"Timer callback error: {e}", exc_info=True)
