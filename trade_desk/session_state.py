# Trade Session State - session_state.py
# Per-client snapshot of account, selected instrument and transaction history

import logging
from typing import Any, Callable, Dict, List, Optional, Set

from order_engine.models import AccountSnapshot, MarketSnapshot, PricedPair

logger = logging.getLogger(__name__)


class TradeSession:
    """
    Holds the read-only snapshots the order entry engine consumes and
    provides the two refresh collaborators called after a successful trade.

    Args:
        client: TradeApiClient used for profile and transaction requests
    """

    def __init__(self, client):
        self.client = client
        self.account = AccountSnapshot()
        self.market = MarketSnapshot()
        self.transactions: List[Dict[str, Any]] = []
        self.total_pages = 1
        self.current_page = 1
        self.last_error: Optional[str] = None
        self._account_listeners: Set[Callable[[AccountSnapshot], Any]] = set()
        self._market_listeners: Set[Callable[[MarketSnapshot], Any]] = set()
        self._transaction_listeners: Set[Callable[[List[Dict[str, Any]]], Any]] = set()

    def on_account_change(self, callback: Callable[[AccountSnapshot], Any]) -> None:
        self._account_listeners.add(callback)

    def on_market_change(self, callback: Callable[[MarketSnapshot], Any]) -> None:
        self._market_listeners.add(callback)

    def on_transactions_change(self, callback: Callable[[List[Dict[str, Any]]], Any]) -> None:
        self._transaction_listeners.add(callback)

    @staticmethod
    def _emit(listeners, value) -> None:
        for cb in list(listeners):
            try:
                cb(value)
            except Exception as e:
                logger.error(f"Session listener failed: {e}")

    async def refresh_profile(self) -> AccountSnapshot:
        """Re-fetch the profile and publish the new account snapshot"""
        response = await self.client.get_profile()
        if not isinstance(response, dict) or response.get("error"):
            error = response.get("error") if isinstance(response, dict) else None
            self.last_error = (error or {}).get("message", "Profile unavailable")
            logger.error(f"Failed to refresh profile: {self.last_error}")
            return self.account
        self.account = AccountSnapshot.from_profile(response)
        logger.info(f"Profile refreshed: balance={self.account.balance:.2f} credit={self.account.credit:.2f}")
        self._emit(self._account_listeners, self.account)
        return self.account

    async def fetch_transactions(self, page: int) -> List[Dict[str, Any]]:
        """Re-fetch one page of the transaction list"""
        response = await self.client.get_transactions(page)
        if isinstance(response, dict) and response.get("error"):
            self.last_error = response["error"].get("message", "Transactions unavailable")
            logger.error(f"Failed to fetch transactions page {page}: {self.last_error}")
            return self.transactions
        if isinstance(response, dict):
            self.transactions = list(response.get("transactions", []))
            self.total_pages = int(response.get("totalPages", response.get("total_pages", 1)) or 1)
        else:
            self.transactions = list(response or [])
        self.current_page = page
        self._emit(self._transaction_listeners, self.transactions)
        return self.transactions

    def select_pair(self, pair: Optional[str], feed: Optional[str] = None) -> MarketSnapshot:
        # A new instrument starts without a quote until the feed delivers one.
        self.market = MarketSnapshot(pair=pair, feed=feed, price=None, loading=bool(pair))
        self._emit(self._market_listeners, self.market)
        return self.market

    def update_quote(self, bid: float, ask: float) -> MarketSnapshot:
        self.market = MarketSnapshot(
            pair=self.market.pair,
            feed=self.market.feed,
            price=PricedPair(bid=bid, ask=ask),
            loading=False,
        )
        self._emit(self._market_listeners, self.market)
        return self.market
