"""
Solvency Guard - pure predicates deciding whether an order is affordable.

A strictly positive cash balance is required on top of the blended
balance + credit ceiling: credit alone never funds a trade.
"""

from typing import Optional

from .exceptions import OrderValidationError
from .models import AccountSnapshot

INCREASE_QUANTITY = "Increase quantity"
INSUFFICIENT_MARGIN = "Insufficient balance for required margin"
DEPOSIT_REQUIRED = "Deposit funds required. Cannot trade on credit alone."


def ceiling(account: AccountSnapshot) -> float:
    return account.balance + account.credit


def can_afford(margin: float, account: AccountSnapshot) -> bool:
    return margin <= ceiling(account)


def has_cash(account: AccountSnapshot) -> bool:
    return account.balance > 0 and ceiling(account) > 0


def submit_enabled(margin: float, account: AccountSnapshot,
                   loading: bool = False, submitting: bool = False) -> bool:
    """Whether the buy/sell controls are enabled"""
    return (
        not loading
        and not submitting
        and can_afford(margin, account)
        and has_cash(account)
    )


def advisory(account: AccountSnapshot) -> Optional[str]:
    """Standing notice shown while the cash balance is not positive"""
    if account.balance <= 0:
        return DEPOSIT_REQUIRED
    return None


def validate_submission(quantity: float, margin: float, account: AccountSnapshot) -> None:
    """Raise OrderValidationError for the first failing submit precondition"""
    if quantity == 0:
        raise OrderValidationError(INCREASE_QUANTITY)
    if not can_afford(margin, account):
        raise OrderValidationError(INSUFFICIENT_MARGIN)
    if not has_cash(account):
        raise OrderValidationError(DEPOSIT_REQUIRED)
