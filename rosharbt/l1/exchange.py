"""Top-of-book exchange that fills market orders at the best price."""

from __future__ import annotations

import math
from decimal import Decimal, InvalidOperation

from rosharbt.l1.config import L1Config, L1Order
from rosharbt.l1.orderbook import L1OrderBook
from rosharbt.types import Event, OrderRequest, OrderStatus, Side, price_to_tick


class L1Exchange:
    """Fills every order immediately at the opposite side's best price."""

    def __init__(self, config: L1Config) -> None:
        self.tick_size = config.tick_size
        self._orderbook = L1OrderBook(config.tick_size)
        self._orders: dict[int, L1Order] = {}
        self._next_id = 0

    def bbo(self) -> tuple[Decimal, Decimal]:
        return self._orderbook.best_bid(), self._orderbook.best_ask()

    def update_price(self, event: Event) -> None:
        """Set both bid and ask to the event's price."""
        try:
            price = Decimal(event.px)
        except (InvalidOperation, TypeError, ValueError) as exc:
            raise ValueError(f"invalid event price: {event.px!r}") from exc
        if not price.is_finite():
            raise ValueError(f"invalid event price: {event.px!r}")
        self._orderbook.update_price(price, price)

    def get_order(self, oid: int) -> L1Order | None:
        return self._orders.get(oid)

    def execute_order(self, order: OrderRequest) -> int:
        """Fill the order in full and return its id."""
        if order.side is Side.BUY:
            best_price = self._orderbook.best_ask()
        else:
            best_price = self._orderbook.best_bid()

        if not math.isfinite(order.qty):
            raise ValueError(f"invalid order quantity: {order.qty!r}")
        qty = Decimal(repr(float(order.qty)))

        oid = self._next_id
        self._orders[oid] = L1Order(
            id=oid,
            side=order.side,
            qty=qty,
            exec_px=best_price,
            exec_tick=price_to_tick(best_price, self.tick_size),
            status=OrderStatus.FILLED,
        )
        self._next_id += 1
        return oid