"""
Order Draft State Machine

Tracks the order-type tab, the free-text limit price and the submission
state, and applies the feedback/reset rules for tab switches and
submission outcomes. States are {open-tab, limit-tab} x {idle, submitting}.
"""

import logging
import math
from typing import Any, Callable, Optional, Union

from .exceptions import OrderValidationError
from .feedback import FeedbackChannel
from .models import OrderType, SubmissionState, TradeAction

logger = logging.getLogger(__name__)

LIMIT_PRICE_REQUIRED = "Please enter a limit price"


def parse_limit_price(text: Any) -> Optional[float]:
    """Positive finite price from user text, or None"""
    if text is None:
        return None
    try:
        price = float(str(text).strip())
    except ValueError:
        return None
    if not math.isfinite(price) or price <= 0:
        return None
    return price


class OrderDraft:

    def __init__(self, feedback: FeedbackChannel, order_type: OrderType = OrderType.MARKET,
                 on_change: Optional[Callable[[], None]] = None):
        self.feedback = feedback
        self._on_change = on_change
        self.order_type = order_type
        self.limit_price = ""
        self.submission_state = SubmissionState.IDLE

    @property
    def submitting(self) -> bool:
        return self.submission_state is SubmissionState.SUBMITTING

    def switch_tab(self, tab: Union[OrderType, str]) -> OrderType:
        """Select the open/limit tab; clears feedback, keeps sizing"""
        if not isinstance(tab, OrderType):
            try:
                tab = OrderType(tab)
            except ValueError:
                raise OrderValidationError(f"Unknown order tab: {tab}")
        self.order_type = tab
        self.feedback.clear()
        return tab

    def set_limit_price(self, text: Any) -> None:
        self.limit_price = "" if text is None else str(text)

    def resolve_limit_price(self) -> float:
        price = parse_limit_price(self.limit_price)
        if price is None:
            raise OrderValidationError(LIMIT_PRICE_REQUIRED)
        return price

    def begin_submission(self) -> None:
        if self.submitting:
            raise RuntimeError("A submission is already in flight")
        self.submission_state = SubmissionState.SUBMITTING
        if self._on_change:
            self._on_change()

    def end_submission(self) -> None:
        self.submission_state = SubmissionState.IDLE
        if self._on_change:
            self._on_change()

    def record_success(self, action: TradeAction, order_type: Optional[OrderType] = None) -> str:
        """Show the success message; `order_type` is the tab the order was sent from"""
        self.feedback.clear_error()
        message = f"{action.value.upper()} order submitted successfully!"
        self.feedback.show_success(message)
        if (order_type or self.order_type) is OrderType.LIMIT:
            self.limit_price = ""
        return message

    def record_failure(self, message: str) -> None:
        self.feedback.clear_success()
        self.feedback.show_error(message)
