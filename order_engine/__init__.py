from .config import EngineConfig, get_config
from .engine import OrderEntryEngine
from .exceptions import BackendError, OrderEntryError, OrderValidationError, TransportError
from .models import (
    AccountSnapshot,
    Feedback,
    FeedbackKind,
    MarketSnapshot,
    OrderType,
    PricedPair,
    SubmissionState,
    TradeAction,
)
from .submission import SubmissionResult

__all__ = [
    "AccountSnapshot",
    "BackendError",
    "EngineConfig",
    "Feedback",
    "FeedbackKind",
    "MarketSnapshot",
    "OrderEntryEngine",
    "OrderEntryError",
    "OrderType",
    "OrderValidationError",
    "PricedPair",
    "SubmissionResult",
    "SubmissionState",
    "TradeAction",
    "TransportError",
    "get_config",
]
