"""Fill models estimating queue position for resting limit orders."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Protocol

from rosharbt.l2.orderbook import L2OrderBook
from rosharbt.types import (
    EVENT_UPDATE_LEVEL_ASK,
    EVENT_UPDATE_LEVEL_BID,
    Event,
    Side,
    lot_size_floor,
    price_to_tick,
)

_ZERO = Decimal(0)
_ONE = Decimal(1)


def _parse_decimal(text: str, name: str) -> Decimal:
    try:
        value = Decimal(text)
    except (InvalidOperation, TypeError, ValueError) as exc:
        raise ValueError(f"invalid event {name}: {text!r}") from exc
    if not value.is_finite():
        raise ValueError(f"invalid event {name}: {text!r}")
    return value


class FillModel(Protocol):
    """Estimates how much of the level stands ahead of each user order."""

    def update_trade(self, event: Event, tick_orders: Iterable[int]) -> list[int]: ...

    def update_level(
        self, event: Event, orderbook: L2OrderBook, tick_orders: Iterable[int]
    ) -> None: ...

    def cancel_order(self, oid: int) -> None: ...

    def new_order(self, oid: int, qty: Decimal) -> None: ...

    def priority(self, oid: int) -> Decimal | None: ...


@dataclass
class _FillState:
    trade_qty_tmp: Decimal
    cum_qty_chg: Decimal


class LevelChgFill:
    """Queue-position model driven by level changes and trades.

    Each order tracks the quantity ahead of it. Trades at the order's level
    remove quantity from the front; any remaining level decrease is split
    between front and back with a probability weighted by the cube of each
    part. A negative priority means the order has been reached and filled.
    """

    def __init__(self, tick_size: Decimal, lot_size: Decimal) -> None:
        self.tick_size = tick_size
        self.lot_size = lot_size
        self._orders: dict[int, _FillState] = {}

    def update_level(
        self, event: Event, orderbook: L2OrderBook, tick_orders: Iterable[int]
    ) -> None:
        """Adjust queue positions for a level update; called before the book changes."""
        if event.typ == EVENT_UPDATE_LEVEL_BID:
            side = Side.BUY
        elif event.typ == EVENT_UPDATE_LEVEL_ASK:
            side = Side.SELL
        else:
            return

        event_px = _parse_decimal(event.px, "price")
        event_qty = _parse_decimal(event.qty, "quantity")
        tick = price_to_tick(event_px, self.tick_size)

        prev_qty = orderbook.level(side, tick)
        event_qty_lots = lot_size_floor(event_qty, self.lot_size)
        chg = prev_qty - event_qty_lots

        for oid in tick_orders:
            state = self._orders[oid]
            chg -= state.trade_qty_tmp
            state.trade_qty_tmp = _ZERO

            if chg <= _ZERO:
                state.cum_qty_chg = min(state.cum_qty_chg, event_qty)
                continue

            front = state.cum_qty_chg
            back = prev_qty - front
            back_weight = back**3
            denominator = back_weight + front**3
            prob = back_weight / denominator if denominator != 0 else _ONE

            est_front = front - (_ONE - prob) * chg + min(back - prob * chg, _ZERO)
            state.cum_qty_chg = min(est_front, event_qty_lots)

    def update_trade(self, event: Event, tick_orders: Iterable[int]) -> list[int]:
        """Move every order at the trade's level forward by the traded quantity."""
        traded = _parse_decimal(event.qty, "quantity")
        touched = []
        for oid in tick_orders:
            state = self._orders[oid]
            state.cum_qty_chg -= traded
            state.trade_qty_tmp -= traded
            touched.append(oid)
        return touched

    def cancel_order(self, oid: int) -> None:
        self._orders.pop(oid, None)

    def new_order(self, oid: int, qty: Decimal) -> None:
        self._orders[oid] = _FillState(trade_qty_tmp=_ZERO, cum_qty_chg=qty)

    def priority(self, oid: int) -> Decimal | None:
        """Quantity estimated ahead of the order, or None for an unknown order."""
        state = self._orders.get(oid)
        return state.cum_qty_chg if state is not None else None