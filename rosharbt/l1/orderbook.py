"""Top-of-book state: a single best bid and best ask, held as ticks."""

from __future__ import annotations

from decimal import Decimal

from rosharbt.types import price_to_tick, tick_to_price

_I64_MIN = -(2**63)
_I64_MAX = 2**63 - 1


class L1OrderBook:
    """Best bid and ask; an empty book has the widest possible spread."""

    def __init__(self, tick_size: Decimal) -> None:
        self.tick_size = tick_size
        self._best_ask = _I64_MAX
        self._best_bid = _I64_MIN

    def best_ask(self) -> Decimal:
        return tick_to_price(self._best_ask, self.tick_size)

    def best_bid(self) -> Decimal:
        return tick_to_price(self._best_bid, self.tick_size)

    def update_price(self, bid: Decimal, ask: Decimal) -> None:
        self._best_bid = price_to_tick(bid, self.tick_size)
        self._best_ask = price_to_tick(ask, self.tick_size)