"""
Order Entry Engine

Facade owning one order draft for one mounted trade panel: wires the
synchronizer, solvency guard, draft state machine and submission coordinator
together and notifies registered listeners after every state change.
"""

import logging
from typing import Any, Callable, Optional, Set, Union

from . import solvency
from .config import EngineConfig, get_config
from .draft import OrderDraft
from .feedback import FeedbackChannel, Scheduler
from .margin import QuantityMarginSynchronizer, spread_percent
from .models import AccountSnapshot, Feedback, MarketSnapshot, OrderType, TradeAction
from .submission import (
    ProfileRefresh,
    SubmissionCoordinator,
    SubmissionResult,
    TransactionsRefresh,
)

logger = logging.getLogger(__name__)


class OrderEntryEngine:

    def __init__(self, account: AccountSnapshot, client, market: Optional[MarketSnapshot] = None,
                 config: Optional[EngineConfig] = None, scheduler: Optional[Scheduler] = None,
                 refresh_profile: Optional[ProfileRefresh] = None,
                 refresh_transactions: Optional[TransactionsRefresh] = None,
                 current_page: Optional[Callable[[], int]] = None):
        self.config = config or get_config()
        self._market = market or MarketSnapshot()
        self._listeners: Set[Callable[["OrderEntryEngine"], Any]] = set()

        self.feedback = FeedbackChannel(scheduler=scheduler, on_change=lambda _: self._changed())
        self.synchronizer = QuantityMarginSynchronizer(
            account,
            self.feedback,
            leverage=self.config.default_leverage,
            step_divisor=self.config.quantity_step_divisor,
            clear_after=self.config.feedback_clear_seconds,
        )
        self.draft = OrderDraft(self.feedback, on_change=self._changed)
        self.coordinator = SubmissionCoordinator(
            self.draft,
            self.synchronizer,
            market=lambda: self._market,
            client=client,
            refresh_profile=refresh_profile,
            refresh_transactions=refresh_transactions,
            current_page=current_page,
        )
        logger.info(
            f"Order entry engine ready: quantity={self.quantity:.2f} leverage={self.leverage} "
            f"ceiling={self.ceiling:.2f}"
        )

    # Listeners

    def add_listener(self, callback: Callable[["OrderEntryEngine"], Any]) -> None:
        self._listeners.add(callback)

    def remove_listener(self, callback: Callable[["OrderEntryEngine"], Any]) -> None:
        self._listeners.discard(callback)

    def _changed(self) -> None:
        for callback in list(self._listeners):
            try:
                callback(self)
            except Exception as e:
                logger.error(f"Order entry listener failed: {e}")

    # Snapshots

    def update_account(self, account: AccountSnapshot) -> None:
        self.synchronizer.update_account(account)
        self._changed()

    def update_market(self, market: MarketSnapshot) -> None:
        self._market = market
        self._changed()

    @property
    def account(self) -> AccountSnapshot:
        return self.synchronizer.account

    @property
    def market(self) -> MarketSnapshot:
        return self._market

    # Derived state

    @property
    def quantity(self) -> float:
        return self.synchronizer.quantity

    @property
    def leverage(self) -> float:
        return self.synchronizer.leverage

    @property
    def margin(self) -> float:
        return self.synchronizer.margin

    @property
    def ceiling(self) -> float:
        return self.synchronizer.ceiling

    @property
    def order_type(self) -> OrderType:
        return self.draft.order_type

    @property
    def limit_price(self) -> str:
        return self.draft.limit_price

    @property
    def submitting(self) -> bool:
        return self.draft.submitting

    @property
    def current_feedback(self) -> Optional[Feedback]:
        return self.feedback.current

    @property
    def submit_enabled(self) -> bool:
        return self._market.has_pair and solvency.submit_enabled(
            self.margin, self.account, loading=self._market.loading, submitting=self.submitting
        )

    @property
    def advisory(self) -> Optional[str]:
        return solvency.advisory(self.account)

    @property
    def spread(self) -> Optional[float]:
        quote = self._market.price
        if quote is None:
            return None
        return spread_percent(quote.bid, quote.ask)

    # User input

    def increase_quantity(self) -> bool:
        accepted = self.synchronizer.increase()
        if accepted:
            self._changed()
        return accepted

    def decrease_quantity(self) -> bool:
        accepted = self.synchronizer.decrease()
        if accepted:
            self._changed()
        return accepted

    def set_quantity(self, value: Any) -> float:
        quantity = self.synchronizer.set_from_text(value)
        self._changed()
        return quantity

    def set_leverage(self, value: Any) -> float:
        margin = self.synchronizer.set_leverage(value)
        self._changed()
        return margin

    def switch_tab(self, tab: Union[OrderType, str]) -> OrderType:
        return self.draft.switch_tab(tab)

    def set_limit_price(self, text: Any) -> None:
        self.draft.set_limit_price(text)
        self._changed()

    async def submit(self, action: Union[TradeAction, str], page: Optional[int] = None) -> SubmissionResult:
        return await self.coordinator.submit(action, page=page)
