"""Bookkeeping of user orders, their levels, fills and the resulting position."""

from __future__ import annotations

import math
from decimal import Decimal, InvalidOperation

from rosharbt.l2.config import L2Config, L2Order
from rosharbt.l2.fill import FillModel, LevelChgFill
from rosharbt.l2.orderbook import L2OrderBook
from rosharbt.types import (
    Event,
    OrderRequest,
    OrderStatus,
    OrderType,
    Side,
    lot_size_floor,
    price_to_tick,
)

_ZERO = Decimal(0)


class OrderError(Exception):
    """An order could not be found or is inconsistent with its level."""


def _float_to_decimal(value: float, name: str) -> Decimal:
    if not math.isfinite(value):
        raise ValueError(f"invalid order {name}: {value!r}")
    return Decimal(repr(float(value)))


def _parse_price(text: str) -> Decimal:
    try:
        value = Decimal(text)
    except (InvalidOperation, TypeError, ValueError) as exc:
        raise ValueError(f"invalid event price: {text!r}") from exc
    if not value.is_finite():
        raise ValueError(f"invalid event price: {text!r}")
    return value


class OrderManager:
    """Holds user orders, groups them by tick and applies fills from the fill model."""

    def __init__(self, config: L2Config, fill_model: FillModel | None = None) -> None:
        self.tick_size = config.tick_size
        self.lot_size = config.lot_size
        self.fill_model: FillModel = (
            fill_model if fill_model is not None else LevelChgFill(config.tick_size, config.lot_size)
        )
        self._orders: dict[int, L2Order] = {}
        self._by_level: dict[int, list[int]] = {}
        self._next_id = 0
        self._position = _ZERO

    @property
    def position(self) -> Decimal:
        return self._position

    @property
    def next_order_id(self) -> int:
        """The id the next new order will receive."""
        return self._next_id

    def get_order(self, oid: int) -> L2Order | None:
        return self._orders.get(oid)

    def priority(self, oid: int) -> Decimal | None:
        return self.fill_model.priority(oid)

    def new_order(self, req: OrderRequest) -> int:
        """Register an order, rounding its quantity down to the lot size; returns its id."""
        oid = self._next_id
        qty = lot_size_floor(_float_to_decimal(req.qty, "quantity"), self.lot_size).normalize()

        if req.typ is OrderType.LIMIT:
            if req.px is None:
                raise ValueError("a limit order needs a price")
            order_px = _float_to_decimal(req.px, "price")
            order_tick = price_to_tick(order_px, self.tick_size)
        else:
            order_px = _ZERO
            order_tick = 0

        self._orders[oid] = L2Order(
            id=oid,
            side=req.side,
            qty=qty,
            filled_qty=_ZERO,
            order_px=order_px,
            order_tick=order_tick,
            exec_px=_ZERO,
            exec_tick=0,
            typ=req.typ,
            status=OrderStatus.WORKING,
        )
        self._by_level.setdefault(price_to_tick(order_px, self.tick_size), []).append(oid)
        self.fill_model.new_order(oid, qty)
        self._next_id += 1
        return oid

    def cancel_order(self, oid: int) -> None:
        """Mark the order cancelled and take it off its level."""
        order = self._orders.get(oid)
        if order is None:
            raise OrderError("Did not find order")
        order.status = OrderStatus.CANCELLED
        self.fill_model.cancel_order(oid)

        level = self._by_level.get(order.order_tick)
        if level is None:
            raise OrderError("Order present in orders but not in its level")
        try:
            level.remove(oid)
        except ValueError:
            raise OrderError("Order missing from its level") from None

    def orders_at(self, tick: int) -> list[int] | None:
        """Ids of orders resting at a tick, or None if no order was ever placed there."""
        level = self._by_level.get(tick)
        return list(level) if level is not None else None

    def working_orders(self) -> list[int]:
        return [oid for oid, order in self._orders.items() if order.status is OrderStatus.WORKING]

    def update_trade(self, event: Event) -> list[int]:
        """Pass a trade to the fill model; returns the ids of orders at its level."""
        tick = price_to_tick(_parse_price(event.px), self.tick_size)
        tick_orders = self._by_level.get(tick)
        if tick_orders is None:
            return []
        return self.fill_model.update_trade(event, tick_orders)

    def update_level(self, event: Event, orderbook: L2OrderBook) -> list[int]:
        """Apply a level update and return the ids of the orders it filled."""
        tick = price_to_tick(_parse_price(event.px), self.tick_size)
        tick_orders = self._by_level.get(tick)
        if tick_orders is None:
            return []
        self.fill_model.update_level(event, orderbook, tick_orders)

        filled = []
        for oid in tick_orders:
            prio = self.fill_model.priority(oid)
            if prio is None or prio >= _ZERO:
                continue
            order = self._orders[oid]
            filled_qty = min(-prio, lot_size_floor(order.qty, self.lot_size))
            order.filled_qty = filled_qty
            order.status = OrderStatus.FILLED
            if order.side is Side.BUY:
                self._position += filled_qty
            else:
                self._position -= filled_qty
            filled.append(oid)
        return filled