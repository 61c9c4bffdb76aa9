"""
Order entry models - enums and read-only snapshots shared across the engine
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class OrderType(Enum):
    """Order entry tab"""
    MARKET = "open"
    LIMIT = "limit"

    @property
    def wire_name(self) -> str:
        return "market" if self is OrderType.MARKET else "limit"


class TradeAction(Enum):
    BUY = "buy"
    SELL = "sell"


class SubmissionState(Enum):
    IDLE = "idle"
    SUBMITTING = "submitting"


class FeedbackKind(Enum):
    ERROR = "error"
    SUCCESS = "success"


class QuantityChange(Enum):
    """Reason tag recorded with every quantity/leverage update"""
    INITIAL = "initial"
    INCREASE = "increase"
    DECREASE = "decrease"
    MANUAL = "manual"
    CLAMPED = "clamped"
    LEVERAGE = "leverage"


@dataclass(frozen=True)
class Feedback:
    kind: FeedbackKind
    text: str


@dataclass(frozen=True)
class AccountSnapshot:
    """Account figures as last reported by the profile endpoint"""
    balance: float = 0.0
    credit: float = 0.0
    access: bool = False

    @property
    def ceiling(self) -> float:
        return self.balance + self.credit

    @classmethod
    def from_profile(cls, profile: dict) -> "AccountSnapshot":
        user = profile.get("user", profile) if isinstance(profile, dict) else {}
        return cls(
            balance=float(user.get("balance") or 0.0),
            credit=float(user.get("credit") or 0.0),
            access=bool(user.get("access", False)),
        )


@dataclass(frozen=True)
class PricedPair:
    bid: float
    ask: float


@dataclass(frozen=True)
class MarketSnapshot:
    """Selected instrument, its feed category and latest quote"""
    pair: Optional[str] = None
    feed: Optional[str] = None
    price: Optional[PricedPair] = None
    loading: bool = False

    @property
    def has_pair(self) -> bool:
        return bool(self.pair)
