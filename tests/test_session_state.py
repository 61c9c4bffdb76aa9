from unittest.mock import AsyncMock, MagicMock

import pytest

from order_engine.models import AccountSnapshot
from trade_desk.session_state import TradeSession

from mock_backend import MockTradeClient


@pytest.mark.asyncio
async def test_refresh_profile_publishes_snapshot():
    client = MockTradeClient()
    client.get_profile.return_value = {"user": {"balance": 1500.5, "credit": 200, "access": True}}
    session = TradeSession(client)
    listener = MagicMock()
    session.on_account_change(listener)

    account = await session.refresh_profile()

    assert account == AccountSnapshot(balance=1500.5, credit=200.0, access=True)
    assert account.ceiling == 1700.5
    listener.assert_called_once_with(account)


@pytest.mark.asyncio
async def test_refresh_profile_error_keeps_previous_account():
    client = MockTradeClient()
    session = TradeSession(client)
    await session.refresh_profile()
    previous = session.account

    client.get_profile = AsyncMock(return_value={"error": {"code": "API_ERROR", "message": "Unauthorized"},
                                                 "status": 401})
    assert await session.refresh_profile() is previous
    assert session.last_error == "Unauthorized"


@pytest.mark.asyncio
async def test_fetch_transactions_tracks_page_and_total():
    client = MockTradeClient()
    client.get_transactions.return_value = {"transactions": [{"id": 7}], "totalPages": 4}
    session = TradeSession(client)

    rows = await session.fetch_transactions(3)

    client.get_transactions.assert_awaited_once_with(3)
    assert rows == [{"id": 7}]
    assert session.current_page == 3
    assert session.total_pages == 4


@pytest.mark.asyncio
async def test_fetch_transactions_accepts_plain_list():
    client = MockTradeClient()
    client.get_transactions.return_value = [{"id": 1}, {"id": 2}]
    session = TradeSession(client)
    assert len(await session.fetch_transactions(1)) == 2


def test_selecting_pair_waits_for_quote():
    session = TradeSession(MockTradeClient())
    market = session.select_pair("XAU/USD", "commodity")
    assert market.loading and market.price is None

    market = session.update_quote(1950.1, 1950.6)
    assert not market.loading
    assert market.pair == "XAU/USD"
    assert market.price.ask == 1950.6


def test_clearing_pair_is_not_loading():
    session = TradeSession(MockTradeClient())
    assert session.select_pair(None).loading is False
