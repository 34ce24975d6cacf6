"""Configuration and order records for the depth-of-book backtest."""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import timedelta
from decimal import Decimal
from typing import Any

from rosharbt.types import OrderStatus, OrderType, Side


def _to_decimal(value: Decimal | float | int | str, name: str) -> Decimal:
    if isinstance(value, float):
        if not math.isfinite(value):
            raise ValueError(f"{name} must be finite")
        return Decimal(repr(value))
    result = Decimal(value)
    if not result.is_finite():
        raise ValueError(f"{name} must be finite")
    return result


@dataclass
class L2Order:
    """A user order tracked by the depth-of-book exchange."""

    id: int
    side: Side
    qty: Decimal
    filled_qty: Decimal
    order_px: Decimal
    order_tick: int
    exec_px: Decimal
    exec_tick: int
    typ: OrderType
    status: OrderStatus


@dataclass
class L2Config:
    """Settings for a depth-of-book backtest.

    ``return_window`` may be given as seconds; it is stored as a timedelta.
    """

    tick_size: Decimal
    lot_size: Decimal
    start_ts: int
    return_window: timedelta
    parser: Any
    lines_read_per_tick: int = 100
    order_buffer_start_size: int = 100
    tick_fill_tracker_start_size: int = 10
    risk_free_rate: Decimal = Decimal("0.02")

    def __post_init__(self) -> None:
        self.tick_size = _to_decimal(self.tick_size, "tick_size")
        if self.tick_size <= 0:
            raise ValueError("tick_size must be positive")
        self.lot_size = _to_decimal(self.lot_size, "lot_size")
        if self.lot_size <= 0:
            raise ValueError("lot_size must be positive")
        self.risk_free_rate = _to_decimal(self.risk_free_rate, "risk_free_rate")
        if not isinstance(self.return_window, timedelta):
            self.return_window = timedelta(seconds=self.return_window)
        if self.lines_read_per_tick < 0:
            raise ValueError("lines_read_per_tick must not be negative")