"""
Quantity/Margin Synchronizer

Keeps the notional quantity and the margin it requires consistent for a given
leverage. Margin is never stored: it is derived from quantity and leverage on
every read, and every mutation of either input goes through `_apply`, which
tags the update with its reason.
"""

import logging
import math
from typing import Any, Optional

from .exceptions import OrderValidationError
from .feedback import FeedbackChannel
from .models import AccountSnapshot, QuantityChange

logger = logging.getLogger(__name__)

INSUFFICIENT_BALANCE_FOR_SIZE = "Insufficient balance for this trade size"


def _safe_float(value: Any, default: float = 0.0) -> float:
    try:
        result = float(value)
    except (TypeError, ValueError):
        return default
    if not math.isfinite(result):
        return default
    return result


def compute_margin(quantity: float, leverage: float) -> float:
    """Margin required to open `quantity` notional at `leverage`:1"""
    if leverage <= 0:
        raise OrderValidationError("Leverage must be positive")
    return quantity / leverage


def quantity_step(ceiling: float, divisor: float = 100.0) -> float:
    """Increment used by the +/- controls; shrinks with the account ceiling"""
    return ceiling / divisor


def spread_percent(bid: Optional[float], ask: Optional[float]) -> Optional[float]:
    """Bid/ask spread as a percentage of the mid price"""
    if not bid or not ask:
        return None
    mid = (bid + ask) / 2
    return (ask - bid) / mid * 100


class QuantityMarginSynchronizer:

    def __init__(self, account: AccountSnapshot, feedback: FeedbackChannel,
                 leverage: float = 30, quantity: Optional[float] = None,
                 step_divisor: float = 100.0, clear_after: float = 3.0):
        if leverage <= 0:
            raise OrderValidationError("Leverage must be positive")
        self._account = account
        self._feedback = feedback
        self._step_divisor = step_divisor
        self._clear_after = clear_after
        self._leverage = leverage
        self._quantity = 0.0
        self._apply(max(account.ceiling if quantity is None else quantity, 0.0),
                    leverage, QuantityChange.INITIAL)

    @property
    def quantity(self) -> float:
        return self._quantity

    @property
    def leverage(self) -> float:
        return self._leverage

    @property
    def margin(self) -> float:
        return compute_margin(self._quantity, self._leverage)

    @property
    def ceiling(self) -> float:
        return self._account.ceiling

    @property
    def step(self) -> float:
        return quantity_step(self.ceiling, self._step_divisor)

    @property
    def account(self) -> AccountSnapshot:
        return self._account

    def update_account(self, account: AccountSnapshot) -> None:
        # The quantity is kept; the solvency guard re-checks it against the new ceiling.
        self._account = account

    def _apply(self, quantity: float, leverage: float, reason: QuantityChange) -> None:
        self._quantity = quantity
        self._leverage = leverage
        logger.debug(
            f"Quantity update ({reason.value}): quantity={quantity:.2f} "
            f"leverage={leverage} margin={self.margin:.2f}"
        )

    def increase(self) -> bool:
        """Step the quantity up; rejected with feedback if the margin would not fit"""
        candidate = max(min(self._quantity + self.step, self.ceiling), 0.0)
        candidate_margin = compute_margin(candidate, self._leverage)
        if candidate_margin > self.ceiling:
            logger.warning(
                f"Rejected quantity increase to {candidate:.2f}: margin {candidate_margin:.2f} "
                f"exceeds {self.ceiling:.2f}"
            )
            self._feedback.show_error(INSUFFICIENT_BALANCE_FOR_SIZE, clear_after=self._clear_after)
            return False
        self._apply(candidate, self._leverage, QuantityChange.INCREASE)
        return True

    def decrease(self) -> bool:
        """Step the quantity down while it stays above one step"""
        step = self.step
        if self._quantity <= step:
            return False
        self._apply(self._quantity - step, self._leverage, QuantityChange.DECREASE)
        return True

    def set_from_text(self, value: Any) -> float:
        """Manual entry: unparseable input is 0, values over the ceiling clamp silently"""
        parsed = max(_safe_float(value), 0.0)
        limit = max(self.ceiling, 0.0)
        if parsed > limit:
            self._apply(limit, self._leverage, QuantityChange.CLAMPED)
        else:
            self._apply(parsed, self._leverage, QuantityChange.MANUAL)
        return self._quantity

    def set_leverage(self, leverage: Any) -> float:
        value = _safe_float(leverage)
        if value <= 0:
            raise OrderValidationError("Leverage must be positive")
        if value.is_integer():
            value = int(value)
        self._apply(self._quantity, value, QuantityChange.LEVERAGE)
        return self.margin
