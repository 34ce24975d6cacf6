"""Depth-of-book exchange: market state from the feed plus user order handling."""

from __future__ import annotations

from decimal import Decimal, InvalidOperation

from rosharbt.l2.config import L2Config, L2Order
from rosharbt.l2.fill import FillModel
from rosharbt.l2.manager import OrderManager
from rosharbt.l2.orderbook import L2OrderBook
from rosharbt.types import (
    EVENT_UPDATE_LEVEL_ASK,
    EVENT_UPDATE_LEVEL_BID,
    Event,
    OrderRequest,
    OrderStatus,
    OrderType,
    Side,
    lot_size_floor,
    price_to_tick,
)

_ZERO = Decimal(0)


def _try_decimal(text: str) -> Decimal | None:
    try:
        value = Decimal(text)
    except (InvalidOperation, TypeError, ValueError):
        return None
    return value if value.is_finite() else None


def _require_decimal(text: str, name: str) -> Decimal:
    value = _try_decimal(text)
    if value is None:
        raise ValueError(f"invalid event {name}: {text!r}")
    return value


class L2Exchange:
    """Keeps the feed's order book and matches user orders against it.

    Market orders fill in full at the best opposite price when that level
    holds enough quantity; limit orders rest and are filled by the fill model.
    """

    def __init__(self, config: L2Config, fill_model: FillModel | None = None) -> None:
        self.tick_size = config.tick_size
        self.lot_size = config.lot_size
        self.orderbook = L2OrderBook(config.tick_size)
        self.order_manager = OrderManager(config, fill_model)

    @property
    def position(self) -> Decimal:
        return self.order_manager.position

    @property
    def next_order_id(self) -> int:
        return self.order_manager.next_order_id

    def clear_bid(self) -> None:
        self.orderbook.clear_bid()

    def clear_ask(self) -> None:
        self.orderbook.clear_ask()

    def clear_bid_level(self, event: Event) -> None:
        """Remove the bid level at the event's price; an unreadable price is ignored."""
        price = _try_decimal(event.px)
        if price is not None:
            self.orderbook.clear_bid_level(price_to_tick(price, self.tick_size))

    def clear_ask_level(self, event: Event) -> None:
        """Remove the ask level at the event's price; an unreadable price is ignored."""
        price = _try_decimal(event.px)
        if price is not None:
            self.orderbook.clear_ask_level(price_to_tick(price, self.tick_size))

    def clear(self) -> None:
        self.orderbook.clear()

    def bbo(self) -> tuple[Decimal, Decimal]:
        return self.orderbook.best_bid(), self.orderbook.best_ask()

    def _execute_market_order(self, order: L2Order) -> None:
        if order.side is Side.BUY:
            opposite, best_price = Side.SELL, self.orderbook.best_ask()
        else:
            opposite, best_price = Side.BUY, self.orderbook.best_bid()
        if best_price == _ZERO:
            return

        best_tick = price_to_tick(best_price, self.tick_size)
        level_qty = self.orderbook.level(opposite, best_tick)
        qty_lots = lot_size_floor(order.qty, self.lot_size)
        if level_qty >= qty_lots:
            order.filled_qty = qty_lots
            order.status = OrderStatus.FILLED
            order.exec_px = best_price
            order.exec_tick = best_tick

    def process_trade(self, event: Event) -> list[int]:
        """Pass a trade to the order manager; returns the ids of orders at its level."""
        return self.order_manager.update_trade(event)

    def update_level(self, event: Event) -> list[int]:
        """Set a book level from the event and return the ids of orders it filled."""
        if event.typ == EVENT_UPDATE_LEVEL_BID:
            side = Side.BUY
        elif event.typ == EVENT_UPDATE_LEVEL_ASK:
            side = Side.SELL
        else:
            raise ValueError("update_level needs a level update event")

        price = _require_decimal(event.px, "price")
        qty = _require_decimal(event.qty, "quantity")
        tick = price_to_tick(price, self.tick_size)
        self.orderbook.update_level(side, tick, lot_size_floor(qty, self.lot_size))
        return self.order_manager.update_level(event, self.orderbook)

    def execute_user_order(self, req: OrderRequest) -> int:
        """Register a user order, filling it at once if it is a market order."""
        oid = self.order_manager.new_order(req)
        order = self.order_manager.get_order(oid)
        if order is not None and order.typ is OrderType.MARKET:
            self._execute_market_order(order)
        return oid

    def cancel_order(self, oid: int) -> None:
        """Cancel an order the exchange has received; raises OrderError if unknown."""
        self.order_manager.cancel_order(oid)

    def level(self, price: Decimal, side: Side) -> Decimal:
        return self.orderbook.level(side, price_to_tick(price, self.tick_size))

    def orders_at(self, price: Decimal) -> list[int] | None:
        return self.order_manager.orders_at(price_to_tick(price, self.tick_size))

    def get_order(self, oid: int) -> L2Order | None:
        return self.order_manager.get_order(oid)

    def working_orders(self) -> list[int]:
        return self.order_manager.working_orders()