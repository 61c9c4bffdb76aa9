import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from order_engine import OrderEntryEngine
from order_engine.exceptions import BackendError, TransportError
from order_engine.models import AccountSnapshot, MarketSnapshot, OrderType, PricedPair, TradeAction
from order_engine.submission import build_trade_payload, resolve_pair_name

from mock_backend import ManualScheduler, MockTradeClient, make_config


def make_engine(client=None, balance=1000.0, credit=0.0, pair="EUR/USD", feed="forex",
                bid=1.0840, ask=1.0845, loading=False, **kwargs):
    price = PricedPair(bid=bid, ask=ask) if bid is not None else None
    return OrderEntryEngine(
        AccountSnapshot(balance=balance, credit=credit, access=True),
        client or MockTradeClient(),
        market=MarketSnapshot(pair=pair, feed=feed, price=price, loading=loading),
        config=make_config(),
        scheduler=ManualScheduler(),
        **kwargs,
    )


class TestPayload:

    def test_commodity_pairs_drop_separator(self):
        assert resolve_pair_name("XAU/USD", "commodity") == "XAUUSD"
        assert resolve_pair_name("XAU/USD", "forex") == "XAU/USD"
        assert resolve_pair_name("BTC/USD", None) == "BTC/USD"

    def test_wire_shape(self):
        request = build_trade_payload("XAU/USD", "commodity", 30, 33.33, 1000.0, OrderType.LIMIT, 1950.5)
        assert request.to_wire() == {
            "meta_data": {
                "pair": "XAUUSD",
                "leverage": 30,
                "margin": 33.33,
                "quantity": 1000.0,
                "order_type": "limit",
                "boughtAt": "1950.5",
                "profitLoss": 0,
                "profitLossPercentage": 0,
            },
            "price": 1000.0,
        }


class TestSubmit:

    @pytest.mark.asyncio
    async def test_market_buy_uses_ask_and_posts_once(self):
        client = MockTradeClient()
        engine = make_engine(client)
        result = await engine.submit("buy")

        assert result.ok
        client.post_trade.assert_awaited_once()
        action, payload = client.post_trade.await_args.args
        assert action == "buy"
        assert payload["meta_data"]["boughtAt"] == "1.0845"
        assert payload["meta_data"]["order_type"] == "market"
        assert payload["meta_data"]["margin"] == pytest.approx(1000 / 30)
        assert payload["price"] == 1000.0

    @pytest.mark.asyncio
    async def test_market_sell_uses_bid(self):
        client = MockTradeClient()
        engine = make_engine(client)
        result = await engine.submit(TradeAction.SELL)
        assert result.ok
        assert client.post_trade.await_args.args[1]["meta_data"]["boughtAt"] == "1.084"
        assert engine.feedback.success == "SELL order submitted successfully!"

    @pytest.mark.asyncio
    async def test_limit_order_uses_entered_price_and_resets_it(self):
        client = MockTradeClient()
        engine = make_engine(client, pair="XAU/USD", feed="commodity")
        engine.switch_tab("limit")
        engine.set_limit_price("1950.25")
        result = await engine.submit("sell")

        assert result.ok
        meta = client.post_trade.await_args.args[1]["meta_data"]
        assert meta["pair"] == "XAUUSD"
        assert meta["order_type"] == "limit"
        assert meta["boughtAt"] == "1950.25"
        assert engine.limit_price == ""

    @pytest.mark.asyncio
    async def test_zero_quantity_rejected_locally(self):
        client = MockTradeClient()
        engine = make_engine(client)
        engine.set_quantity("0")
        result = await engine.submit("buy")
        assert not result.ok and not result.sent
        assert engine.feedback.error == "Increase quantity"
        client.post_trade.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_margin_over_ceiling_rejected_locally(self):
        client = MockTradeClient()
        engine = make_engine(client)
        engine.update_account(AccountSnapshot(balance=10, credit=0))
        engine.set_leverage(1)
        result = await engine.submit("buy")
        assert engine.feedback.error == "Insufficient balance for required margin"
        assert engine.quantity == 1000
        client.post_trade.assert_not_awaited()
        assert not result.ok

    @pytest.mark.asyncio
    async def test_no_pair_rejected_locally(self):
        client = MockTradeClient()
        engine = make_engine(client, pair=None, bid=None)
        await engine.submit("buy")
        assert engine.feedback.error == "No pair selected"
        client.post_trade.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_credit_only_account_rejected_locally(self):
        client = MockTradeClient()
        engine = make_engine(client, balance=0, credit=1000)
        await engine.submit("buy")
        assert engine.feedback.error == "Deposit funds required. Cannot trade on credit alone."
        client.post_trade.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_missing_market_price_rejected_locally(self):
        client = MockTradeClient()
        engine = make_engine(client, bid=None)
        await engine.submit("buy")
        assert engine.feedback.error == "Price unavailable for EUR/USD"
        client.post_trade.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_loading_feed_rejected_locally(self):
        client = MockTradeClient()
        engine = make_engine(client, loading=True)
        await engine.submit("buy")
        assert engine.feedback.error == "Prices are still loading"
        client.post_trade.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_backend_message_surfaced_verbatim(self):
        client = MockTradeClient(error=BackendError("Market closed", status=400))
        refresh_profile = AsyncMock()
        engine = make_engine(client, refresh_profile=refresh_profile)
        engine.set_leverage(10)
        result = await engine.submit("buy")

        assert not result.ok and result.sent
        assert engine.feedback.error == "Market closed"
        assert engine.submitting is False
        assert engine.quantity == 1000 and engine.leverage == 10
        refresh_profile.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_transport_failure_surfaced_as_unknown_error(self):
        client = MockTradeClient(error=TransportError())
        engine = make_engine(client)
        await engine.submit("sell")
        assert engine.feedback.error == "An unknown error occurred"
        assert engine.submitting is False

    @pytest.mark.asyncio
    async def test_unexpected_exception_releases_submitting(self):
        client = MockTradeClient(error=ValueError("boom"))
        engine = make_engine(client)
        result = await engine.submit("buy")
        assert not result.ok
        assert engine.submitting is False
        assert engine.feedback.error == "An unknown error occurred"

    @pytest.mark.asyncio
    async def test_second_submit_while_in_flight_is_ignored(self):
        release = asyncio.Event()

        async def slow_post(action, payload):
            await release.wait()
            return {"message": "ok"}

        client = MockTradeClient()
        client.post_trade = AsyncMock(side_effect=slow_post)
        engine = make_engine(client)

        first = asyncio.create_task(engine.submit("buy"))
        await asyncio.sleep(0)
        assert engine.submitting
        assert engine.submit_enabled is False

        second = await engine.submit("sell")
        assert not second.ok and not second.sent

        release.set()
        assert (await first).ok
        assert client.post_trade.await_count == 1
        assert engine.submitting is False

    @pytest.mark.asyncio
    async def test_refresh_failure_does_not_undo_success(self):
        refresh_profile = AsyncMock(side_effect=RuntimeError("profile down"))
        refresh_transactions = MagicMock()
        engine = make_engine(refresh_profile=refresh_profile,
                             refresh_transactions=refresh_transactions)
        result = await engine.submit("buy", page=4)
        assert result.ok
        assert engine.feedback.success == "BUY order submitted successfully!"
        refresh_transactions.assert_called_once_with(4)
