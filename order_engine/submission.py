"""
Submission Coordinator

Validates the current draft, builds the outbound order payload, performs the
single POST /trade/{action} call and applies the outcome to the draft. On
success the profile and transaction-list refresh collaborators are notified.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional, Union

from . import solvency
from .draft import OrderDraft
from .exceptions import OrderEntryError, OrderValidationError, TransportError
from .margin import QuantityMarginSynchronizer
from .models import MarketSnapshot, OrderType, TradeAction
from .schemas import TradeMetaData, TradeOrderRequest, TradeResponse

logger = logging.getLogger(__name__)

NO_PAIR_SELECTED = "No pair selected"
PRICES_LOADING = "Prices are still loading"
COMMODITY_FEED = "commodity"

ProfileRefresh = Callable[[], Union[Awaitable[Any], Any]]
TransactionsRefresh = Callable[[int], Union[Awaitable[Any], Any]]


@dataclass
class SubmissionResult:
    ok: bool
    action: TradeAction
    message: Optional[str] = None
    payload: Optional[Dict[str, Any]] = None
    response: Any = None
    sent: bool = False


def resolve_pair_name(pair: str, feed: Optional[str]) -> str:
    """Commodity symbols are sent without separators (XAU/USD -> XAUUSD)"""
    if feed == COMMODITY_FEED:
        return pair.replace("/", "")
    return pair


def resolve_entry_price(draft: OrderDraft, market: MarketSnapshot, action: TradeAction) -> float:
    if draft.order_type is OrderType.LIMIT:
        return draft.resolve_limit_price()
    quote = market.price
    price = None
    if quote is not None:
        price = quote.ask if action is TradeAction.BUY else quote.bid
    if not price:
        raise OrderValidationError(f"Price unavailable for {market.pair}")
    return price


def build_trade_payload(pair: str, feed: Optional[str], leverage: float, margin: float,
                        quantity: float, order_type: OrderType, price: float) -> TradeOrderRequest:
    meta = TradeMetaData(
        pair=resolve_pair_name(pair, feed),
        leverage=leverage,
        margin=margin,
        quantity=quantity,
        order_type=order_type.wire_name,
        bought_at=str(price),
        profit_loss=0,
        profit_loss_percentage=0,
    )
    return TradeOrderRequest(meta_data=meta, price=quantity)


async def _notify(callback, *args) -> None:
    try:
        result = callback(*args)
        if asyncio.iscoroutine(result):
            await result
    except Exception as e:
        logger.error(f"Refresh after trade failed in {getattr(callback, '__name__', callback)}: {e}")


class SubmissionCoordinator:

    def __init__(self, draft: OrderDraft, synchronizer: QuantityMarginSynchronizer,
                 market: Callable[[], MarketSnapshot], client,
                 refresh_profile: Optional[ProfileRefresh] = None,
                 refresh_transactions: Optional[TransactionsRefresh] = None,
                 current_page: Optional[Callable[[], int]] = None):
        self.draft = draft
        self.synchronizer = synchronizer
        self._market = market
        self._client = client
        self._refresh_profile = refresh_profile
        self._refresh_transactions = refresh_transactions
        self._current_page = current_page or (lambda: 1)

    def _prepare(self, action: TradeAction) -> TradeOrderRequest:
        market = self._market()
        account = self.synchronizer.account
        if not market.has_pair:
            raise OrderValidationError(NO_PAIR_SELECTED)
        quantity = self.synchronizer.quantity
        margin = self.synchronizer.margin
        solvency.validate_submission(quantity, margin, account)
        if market.loading:
            raise OrderValidationError(PRICES_LOADING)
        price = resolve_entry_price(self.draft, market, action)
        return build_trade_payload(
            pair=market.pair,
            feed=market.feed,
            leverage=self.synchronizer.leverage,
            margin=margin,
            quantity=quantity,
            order_type=self.draft.order_type,
            price=price,
        )

    async def submit(self, action: Union[TradeAction, str], page: Optional[int] = None) -> SubmissionResult:
        action = TradeAction(action)
        if self.draft.submitting:
            logger.warning(f"Ignoring {action.value} while another submission is in flight")
            return SubmissionResult(ok=False, action=action)

        self.draft.feedback.clear()
        try:
            request = self._prepare(action)
        except OrderValidationError as e:
            logger.warning(f"{action.value.upper()} order rejected before sending: {e.message}")
            self.draft.record_failure(e.message)
            return SubmissionResult(ok=False, action=action, message=e.message)

        payload = request.to_wire()
        order_type = self.draft.order_type
        result = SubmissionResult(ok=False, action=action, payload=payload, sent=True)
        self.draft.begin_submission()
        try:
            logger.info(
                f"Submitting {action.value.upper()} {payload['meta_data']['order_type']} order "
                f"for {payload['meta_data']['pair']} at {payload['meta_data']['boughtAt']}"
            )
            result.response = await self._client.post_trade(action.value, payload)
            if isinstance(result.response, dict):
                logger.info(f"Trade backend replied: {TradeResponse.model_validate(result.response).message}")
            result.message = self.draft.record_success(action, order_type)
            result.ok = True
        except OrderEntryError as e:
            logger.error(f"{action.value.upper()} order failed: {e.message}")
            self.draft.record_failure(e.message)
            result.message = e.message
        except Exception as e:
            logger.exception(f"Unexpected error submitting {action.value} order: {e}")
            message = TransportError().message
            self.draft.record_failure(message)
            result.message = message
        finally:
            self.draft.end_submission()

        if result.ok:
            if self._refresh_profile:
                await _notify(self._refresh_profile)
            if self._refresh_transactions:
                await _notify(self._refresh_transactions, page if page is not None else self._current_page())
        return result
