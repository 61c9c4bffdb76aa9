import logging
import secrets
from pathlib import Path

from nicegui import Client, app, ui

from order_engine import OrderEntryEngine, get_config
from order_engine.api_client import TradeApiClient
from order_engine.config import validate_config

from .auth_gate import STORAGE_TOKEN_KEY, resolve_redirect
from .place_trade import render_place_trade
from .session_state import TradeSession
from .ui_context_manager import safe_notify, ui_timer_scheduler

logger = logging.getLogger(__name__)

config = get_config()

QUOTE_POLL_SECONDS = 1.0

# Instruments offered per feed category
FEED_PAIRS = {
    'forex': ['EUR/USD', 'GBP/USD', 'USD/JPY', 'AUD/USD'],
    'crypto': ['BTC/USD', 'ETH/USD'],
    'commodity': ['XAU/USD', 'XAG/USD', 'WTI/USD'],
}


def configure_logging(level=logging.INFO):
    """Console plus file logging under <project>/logs"""
    log_dir = Path(__file__).parent.parent / "logs"
    log_dir.mkdir(exist_ok=True)
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.FileHandler(log_dir / "trade_desk.log", mode='a'),
            logging.StreamHandler()
        ]
    )


def _token():
    try:
        return app.storage.user.get(STORAGE_TOKEN_KEY)
    except RuntimeError:
        return None


def gate(path: str) -> bool:
    """Redirect when the path is not servable for this session; True when served"""
    target = resolve_redirect(path, _token())
    if target:
        ui.navigate.to(target)
        return False
    return True


def new_api_client() -> TradeApiClient:
    return TradeApiClient(config.api_base_url, token_provider=_token, timeout=config.api_timeout_seconds)


@ui.page('/')
async def landing_page(client: Client):
    await client.connected()
    with ui.column().classes('w-full items-center p-10 gap-4'):
        ui.label('Leverage Trade Desk').classes('text-3xl font-bold')
        if _token():
            ui.button('Open Trade Desk', on_click=lambda: ui.navigate.to('/trade'))
        else:
            ui.button('Log In', on_click=lambda: ui.navigate.to('/login'))


@ui.page('/login')
async def login_page(client: Client, redirect: str = '/trade'):
    await client.connected()
    if not gate('/login'):
        return
    api = new_api_client()
    client.on_disconnect(api.close)

    async def handle_login():
        if not email.value or not password.value:
            ui.notify("Email and password are required.", type="warning")
            return
        response = await api.fetch_api(
            "/auth/login", method="POST",
            data={"email": email.value, "password": password.value}, retries=1
        )
        if isinstance(response, dict) and response.get("token"):
            app.storage.user[STORAGE_TOKEN_KEY] = response["token"]
            logger.info(f"User {email.value} logged in")
            ui.navigate.to(redirect if redirect.startswith('/') and not redirect.startswith('//') else '/trade')
        else:
            message = (response or {}).get("error", {}).get("message", "Login failed") \
                if isinstance(response, dict) else "Login failed"
            ui.notify(message, type="negative")

    with ui.card().classes('mx-auto mt-20 p-6 w-96 gap-3'):
        ui.label('Log In').classes('text-2xl font-semibold')
        email = ui.input('Email').classes('w-full')
        password = ui.input('Password', password=True, password_toggle_button=True).classes('w-full')
        ui.button('Log In', on_click=handle_login).classes('w-full')


@ui.page('/trade')
async def trade_page(client: Client, page: int = 1):
    await client.connected()
    if not gate('/trade'):
        return

    api = new_api_client()
    client.on_disconnect(api.close)
    session = TradeSession(api)
    await session.refresh_profile()
    if session.last_error:
        safe_notify(f"Profile unavailable: {session.last_error}", "warning")

    engine = OrderEntryEngine(
        session.account,
        api,
        market=session.market,
        config=config,
        scheduler=ui_timer_scheduler,
        refresh_profile=session.refresh_profile,
        refresh_transactions=session.fetch_transactions,
        current_page=lambda: session.current_page,
    )
    session.on_account_change(engine.update_account)
    session.on_market_change(engine.update_market)

    with ui.row().classes('w-full gap-6 p-6 flex-nowrap items-start'):
        with ui.column().classes('flex-1 gap-4'):
            with ui.row().classes('w-full gap-3'):
                feed_select = ui.select(options=list(FEED_PAIRS), value=None, label='Market').classes('w-40')
                pair_select = ui.select(options=[], value=None, label='Pair').classes('w-40')

            ui.label('Transactions').classes('text-lg font-semibold')
            columns = [
                {'name': 'pair', 'label': 'Pair', 'field': 'pair'},
                {'name': 'type', 'label': 'Type', 'field': 'type'},
                {'name': 'order_type', 'label': 'Order', 'field': 'order_type'},
                {'name': 'quantity', 'label': 'Quantity', 'field': 'quantity'},
                {'name': 'margin', 'label': 'Margin', 'field': 'margin'},
                {'name': 'boughtAt', 'label': 'Price', 'field': 'boughtAt'},
                {'name': 'status', 'label': 'Status', 'field': 'status'},
            ]
            table = ui.table(columns=columns, rows=[], row_key='_id').classes('w-full')
            pager = ui.pagination(1, 1, direction_links=True)

        render_place_trade(engine)

    def show_transactions(rows):
        table.rows = [{**row.get('meta_data', {}), **row} for row in rows]
        table.update()
        pager.max = max(session.total_pages, 1)

    session.on_transactions_change(show_transactions)

    def on_feed_change(e):
        pair_select.options = FEED_PAIRS.get(e.value, [])
        pair_select.value = None
        pair_select.update()
        session.select_pair(None, e.value)

    def on_pair_change(e):
        session.select_pair(e.value, feed_select.value)

    async def on_page_change(e):
        await session.fetch_transactions(int(e.value))

    async def poll_quote():
        market = session.market
        if not market.pair:
            return
        quote = await api.get_quote(market.pair, market.feed)
        if isinstance(quote, dict) and not quote.get('error') and quote.get('bid') and quote.get('ask'):
            # Ignore quotes for a pair the user has since moved away from.
            if session.market.pair == market.pair:
                session.update_quote(float(quote['bid']), float(quote['ask']))

    feed_select.on_value_change(on_feed_change)
    pair_select.on_value_change(on_pair_change)

    await session.fetch_transactions(page)
    pager.value = session.current_page
    pager.on_value_change(on_page_change)
    ui.timer(QUOTE_POLL_SECONDS, poll_quote)


def main():
    configure_logging()
    if not validate_config(config):
        raise SystemExit("Invalid trade desk configuration")
    storage_secret = config.storage_secret or secrets.token_urlsafe(32)
    logger.info(f"Starting trade desk on port {config.desk_port} against {config.api_base_url}")
    ui.run(
        title="Leverage Trade Desk",
        port=config.desk_port,
        reload=False,
        storage_secret=storage_secret,
        show=False,
    )


if __name__ in {"__main__", "__mp_main__"}:
    main()
