# Place Trade Panel - place_trade.py
# Leveraged order entry panel bound to one OrderEntryEngine

import logging

from nicegui import ui

from order_engine import OrderEntryEngine, OrderType, TradeAction
from .ui_context_manager import safe_notify

logger = logging.getLogger(__name__)


def _format_price(value):
    return f"{value}" if value else "Loading..."


def render_place_trade(engine: OrderEntryEngine):
    """
    Render the open/limit order entry panel.

    Args:
        engine: Order entry engine owning the draft for this panel
    """
    view_state = {'syncing': False}

    with ui.card().classes('place-trade-panel w-full lg:w-96 bg-gray-900 text-white p-0 gap-0'):
        no_pair_label = ui.label('No pair selected').classes('text-2xl p-10')

        panel = ui.column().classes('w-full gap-0')
        with panel:
            with ui.tabs().classes('w-full') as tabs:
                ui.tab(OrderType.MARKET.value, label='OPEN DEAL')
                ui.tab(OrderType.LIMIT.value, label='LIMIT ORDER')
            tabs.value = engine.order_type.value

            with ui.column().classes('w-full px-5 mt-5 gap-3'):
                pair_label = ui.label('').classes('text-2xl font-semibold pb-6 border-b border-gray-700 w-full')

                with ui.row().classes('w-full justify-between items-center'):
                    ui.label('BALANCE:').classes('text-gray-400')
                    balance_label = ui.label('').classes('font-semibold')

                with ui.row().classes('w-full justify-between items-center'):
                    ui.label('LEVERAGE:').classes('text-gray-400')
                    leverage_label = ui.label('').classes('font-semibold')
                leverage_slider = ui.slider(
                    min=1,
                    max=engine.config.max_leverage,
                    step=1,
                    value=engine.leverage
                ).classes('w-full')

                with ui.row().classes('w-full justify-between items-center'):
                    ui.label('SPREAD:').classes('text-gray-400')
                    spread_label = ui.label('').classes('font-semibold')

                with ui.row().classes('w-full justify-between items-center'):
                    ui.label('MARGIN REQUIRED:').classes('text-gray-400')
                    margin_label = ui.label('').classes('font-semibold')

                with ui.row().classes('w-full items-center justify-between border border-blue-500 rounded-lg px-3 py-2 mt-5'):
                    ui.button(icon='remove', on_click=lambda: engine.decrease_quantity()).props('flat round')
                    with ui.column().classes('items-center gap-1 flex-1'):
                        quantity_input = ui.number(
                            value=engine.quantity,
                            min=0,
                            format='%.2f'
                        ).classes('w-full text-2xl')
                        ui.label('USD').classes('text-sm')
                    ui.button(icon='add', on_click=lambda: engine.increase_quantity()).props('flat round')

                error_label = ui.label('').classes('bg-red-900/30 border border-red-500 text-red-500 rounded p-2 mt-4 w-full')
                success_label = ui.label('').classes('bg-green-900/30 border border-green-500 text-green-500 rounded p-2 mt-4 w-full')

                buy_button = ui.button(on_click=lambda: handle_submit(TradeAction.BUY)).classes('w-full mt-8')
                with buy_button:
                    with ui.row().classes('w-full justify-between'):
                        buy_text = ui.label('BUY').classes('font-bold')
                        buy_price = ui.label('')

                advisory_label = ui.label('').classes('bg-yellow-900/30 border border-yellow-500 text-yellow-500 rounded p-2 mt-4 w-full')

                sell_button = ui.button(on_click=lambda: handle_submit(TradeAction.SELL)).classes('w-full mt-6')
                with sell_button:
                    with ui.row().classes('w-full justify-between'):
                        sell_text = ui.label('SELL').classes('font-bold')
                        sell_price = ui.label('')

                limit_box = ui.column().classes('w-full mt-6 p-4 bg-gray-800 rounded-md')
                with limit_box:
                    ui.label('Set Limit Price:')
                    limit_input = ui.input(placeholder='Enter price...').props('type=number step=0.0001 min=0').classes('w-full')

    def update_view(_=None):
        view_state['syncing'] = True
        try:
            market = engine.market
            no_pair_label.set_visibility(not market.has_pair)
            panel.set_visibility(market.has_pair)

            pair_label.text = market.pair or ''
            balance_label.text = f"${engine.account.balance:.2f}"
            leverage_label.text = f"1:{engine.leverage}"
            spread = engine.spread
            spread_label.text = '--' if spread is None else f"{'+' if spread >= 0 else ''}{spread:.4f}%"
            margin_label.text = f"${engine.margin:.2f}"

            if quantity_input.value != round(engine.quantity, 2):
                quantity_input.value = round(engine.quantity, 2)
            if leverage_slider.value != engine.leverage:
                leverage_slider.value = engine.leverage
            if limit_input.value != engine.limit_price:
                limit_input.value = engine.limit_price

            error_label.text = engine.feedback.error or ''
            error_label.set_visibility(engine.feedback.error is not None)
            success_label.text = engine.feedback.success or ''
            success_label.set_visibility(engine.feedback.success is not None)
            advisory_label.text = engine.advisory or ''
            advisory_label.set_visibility(engine.advisory is not None)

            submitting = engine.submitting and engine.order_type is OrderType.MARKET
            buy_text.text = 'SUBMITTING...' if submitting else 'BUY'
            sell_text.text = 'SUBMITTING...' if submitting else 'SELL'
            quote = market.price
            buy_price.text = _format_price(quote.ask if quote else None)
            sell_price.text = _format_price(quote.bid if quote else None)
            buy_button.set_enabled(engine.submit_enabled)
            sell_button.set_enabled(engine.submit_enabled)

            limit_box.set_visibility(engine.order_type is OrderType.LIMIT)
        finally:
            view_state['syncing'] = False

    def on_tab_change(e):
        if not view_state['syncing']:
            engine.switch_tab(e.value)

    def on_quantity_change(e):
        if not view_state['syncing']:
            engine.set_quantity(e.value)

    def on_leverage_change(e):
        if not view_state['syncing']:
            engine.set_leverage(e.value)

    def on_limit_change(e):
        if not view_state['syncing']:
            engine.set_limit_price(e.value)

    async def handle_submit(action: TradeAction):
        result = await engine.submit(action)
        if result.ok:
            safe_notify(result.message, 'positive')
        elif result.sent:
            logger.warning(f"{action.value.upper()} order was not accepted: {result.message}")

    tabs.on_value_change(on_tab_change)
    quantity_input.on_value_change(on_quantity_change)
    leverage_slider.on_value_change(on_leverage_change)
    limit_input.on_value_change(on_limit_change)

    engine.add_listener(update_view)
    update_view()
    return update_view
