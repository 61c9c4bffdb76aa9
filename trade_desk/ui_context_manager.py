"""
Context-aware UI utilities for the trade desk.
Handles notifications and deferred callbacks raised outside a client slot.
"""
import logging
from typing import Any, Callable, Optional

from nicegui import context, ui

logger = logging.getLogger(__name__)


def _is_slot_error(error: RuntimeError) -> bool:
    return "slot stack" in str(error).lower()


class UIContextManager:
    """Runs UI operations only when a client context is available"""

    @staticmethod
    def safe_notify(message: str, notify_type: str = "info", **kwargs) -> bool:
        """
        Show a notification if a client context exists.
        Returns True if the notification was shown.
        """
        try:
            if context.client:
                ui.notify(message, type=notify_type, **kwargs)
                return True
        except RuntimeError as e:
            if _is_slot_error(e):
                logger.warning(f"No UI context available for notification: {message}")
                return False
            raise
        return False

    @staticmethod
    def safe_timer(delay: float, callback: Callable[[], Any]) -> Optional[ui.timer]:
        """
        One-shot timer bound to the current client.
        Returns None when called outside a UI context.
        """
        try:
            return ui.timer(delay, callback, once=True)
        except RuntimeError as e:
            if _is_slot_error(e):
                logger.warning(f"No UI context available for timer: {getattr(callback, '__name__', callback)}")
                return None
            raise


ui_context_manager = UIContextManager()


def safe_notify(message: str, notify_type: str = "info", **kwargs) -> bool:
    """Global function for safe notifications"""
    return ui_context_manager.safe_notify(message, notify_type, **kwargs)


def ui_timer_scheduler(delay: float, callback: Callable[[], Any]) -> Optional[ui.timer]:
    """Feedback scheduler for the order entry engine"""
    return ui_context_manager.safe_timer(delay, callback)
