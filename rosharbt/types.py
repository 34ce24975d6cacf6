"""Core value types shared by the order books, exchanges and backtests."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from decimal import ROUND_CEILING, ROUND_FLOOR, ROUND_HALF_EVEN, Decimal, InvalidOperation

_I64_MIN = -(2**63)
_I64_MAX = 2**63 - 1


class TypFlag(enum.IntEnum):
    """Kind of a market event, stored in the low bits of an event type."""

    LEVEL_UPDATE = 0b00000001
    CLEAR = 0b00000010
    CANDLE = 0b00000100
    TRADE = 0b00001000
    CLEAR_SIDE = 0b00010000


class AttFlag(enum.IntEnum):
    """Side attribute of a market event, stored in the high bits of an event type."""

    NULL = 0b000
    BUY = 0b001 << 32
    SELL = 0b010 << 32


EVENT_UPDATE_LEVEL_BID = TypFlag.LEVEL_UPDATE | AttFlag.BUY
EVENT_UPDATE_LEVEL_ASK = TypFlag.LEVEL_UPDATE | AttFlag.SELL

EVENT_CLEAR_LEVEL_BID = TypFlag.CLEAR | AttFlag.BUY
EVENT_CLEAR_LEVEL_ASK = TypFlag.CLEAR | AttFlag.SELL

EVENT_CLEAR_SIDE_BID = TypFlag.CLEAR_SIDE | AttFlag.BUY
EVENT_CLEAR_SIDE_ASK = TypFlag.CLEAR_SIDE | AttFlag.SELL

EVENT_CLEAR_BOOK = TypFlag.CLEAR | AttFlag.NULL
EVENT_CANDLE = TypFlag.CANDLE | AttFlag.NULL

EVENT_TRADE_BUY = TypFlag.TRADE | AttFlag.BUY
EVENT_TRADE_SELL = TypFlag.TRADE | AttFlag.SELL


class EndOfData(Exception):
    """Raised when a backtest has consumed every event of its source."""

    def __init__(self, message: str = "No more events") -> None:
        super().__init__(message)


@dataclass(frozen=True)
class Event:
    """A single market event; price and quantity are kept as the feed sent them."""

    typ: int
    ts: int
    px: str
    qty: str


class OrderStatus(enum.Enum):
    WORKING = "working"
    FILLED = "filled"
    CANCELLED = "cancelled"


class Side(enum.Enum):
    BUY = "buy"
    SELL = "sell"


class OrderType(enum.Enum):
    MARKET = "market"
    LIMIT = "limit"


@dataclass
class OrderRequest:
    """A user order as submitted; quantity and price may not fit tick or lot size.

    ``ts`` is stamped by the backtest when the request is submitted.
    """

    side: Side
    qty: float
    px: float | None
    typ: OrderType
    ts: int | None = None


def _as_decimal(value: Decimal | float | int | str) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(repr(value))
    return Decimal(value)


def price_to_tick(price: Decimal, tick_size: Decimal) -> int:
    """Convert a price to the nearest tick (ties to even); 0 if out of 64-bit range."""
    ratio = _as_decimal(price) / _as_decimal(tick_size)
    tick = int(ratio.to_integral_value(rounding=ROUND_HALF_EVEN))
    return tick if _I64_MIN <= tick <= _I64_MAX else 0


def tick_to_price(tick: int, tick_size: Decimal) -> Decimal:
    """Convert a tick back to a price rounded to the tick size's decimal places."""
    tick_size = _as_decimal(tick_size)
    if tick_size <= 0:
        raise ValueError("tick size must be positive")
    price = Decimal(tick) * tick_size
    precision = int(abs(tick_size.log10()).to_integral_value(rounding=ROUND_CEILING))
    factor = Decimal(10) ** precision
    return (price * factor).to_integral_value(rounding=ROUND_HALF_EVEN) / factor


def lot_size_floor(qty: Decimal, lot_size: Decimal) -> Decimal:
    """Round a quantity down to a whole number of lots."""
    lot_size = _as_decimal(lot_size)
    lots = (_as_decimal(qty) / lot_size).to_integral_value(rounding=ROUND_FLOOR)
    return lots * lot_size


@dataclass
class Candle:
    high: Decimal
    low: Decimal
    open: Decimal
    close: Decimal
    time: int

    @classmethod
    def from_strings(cls, high: str, low: str, open: str, close: str, time: int) -> Candle:
        """Build a candle from decimal strings; raises ValueError on bad input."""
        values = []
        for name, text in (("high", high), ("low", low), ("open", open), ("close", close)):
            try:
                value = Decimal(text)
            except (InvalidOperation, TypeError, ValueError) as exc:
                raise ValueError(f"invalid {name} value: {text!r}") from exc
            if not value.is_finite():
                raise ValueError(f"invalid {name} value: {text!r}")
            values.append(value)
        high_d, low_d, open_d, close_d = values
        return cls(high=high_d, low=low_d, open=open_d, close=close_d, time=time)