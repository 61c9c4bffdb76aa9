"""
Feedback channel for the order entry panel.

Holds at most one Error/Success message. Every change advances a generation
counter; a deferred clear only fires if the generation it was scheduled for is
still current, so a stale timer never erases newer feedback.
"""

import asyncio
import logging
from typing import Any, Callable, Optional

from .models import Feedback, FeedbackKind

logger = logging.getLogger(__name__)

Scheduler = Callable[[float, Callable[[], None]], Any]


def asyncio_scheduler(delay: float, callback: Callable[[], None]) -> Optional[asyncio.TimerHandle]:
    """Default scheduler backed by the running event loop; no auto-clear without one"""
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        logger.debug(f"No running event loop, feedback will not auto-clear after {delay}s")
        return None
    return loop.call_later(delay, callback)


class FeedbackChannel:

    def __init__(self, scheduler: Optional[Scheduler] = None,
                 on_change: Optional[Callable[[Optional[Feedback]], None]] = None):
        self._scheduler = scheduler or asyncio_scheduler
        self._on_change = on_change
        self._current: Optional[Feedback] = None
        self._generation = 0

    @property
    def current(self) -> Optional[Feedback]:
        return self._current

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def error(self) -> Optional[str]:
        if self._current and self._current.kind is FeedbackKind.ERROR:
            return self._current.text
        return None

    @property
    def success(self) -> Optional[str]:
        if self._current and self._current.kind is FeedbackKind.SUCCESS:
            return self._current.text
        return None

    def _replace(self, feedback: Optional[Feedback]) -> int:
        self._generation += 1
        self._current = feedback
        if self._on_change:
            self._on_change(feedback)
        return self._generation

    def show_error(self, text: str, clear_after: Optional[float] = None) -> int:
        """Show an error; with clear_after, schedule a generation-checked clear"""
        generation = self._replace(Feedback(FeedbackKind.ERROR, text))
        if clear_after is not None:
            self._scheduler(clear_after, lambda: self.clear_if_current(generation))
        return generation

    def show_success(self, text: str) -> int:
        return self._replace(Feedback(FeedbackKind.SUCCESS, text))

    def clear(self) -> int:
        return self._replace(None)

    def clear_error(self) -> None:
        if self.error is not None:
            self.clear()

    def clear_success(self) -> None:
        if self.success is not None:
            self.clear()

    def clear_if_current(self, generation: int) -> bool:
        """Clear only when nothing newer was shown since `generation`"""
        if generation != self._generation:
            logger.debug(f"Skipping stale feedback clear (gen {generation}, now {self._generation})")
            return False
        self.clear()
        return True
