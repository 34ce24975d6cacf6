"""Depth-of-book market state, keyed by tick on each side."""

from __future__ import annotations

from decimal import Decimal

from sortedcontainers import SortedDict

from rosharbt.types import Side, tick_to_price


class L2OrderBook:
    """Market depth from the feed; user orders never change it.

    Fills are estimated by comparing user orders against this state.
    """

    def __init__(self, tick_size: Decimal) -> None:
        self.tick_size = tick_size
        self._asks: SortedDict = SortedDict()
        self._bids: SortedDict = SortedDict()

    def best_ask(self) -> Decimal:
        """Lowest ask price, or 0 with no asks."""
        if not self._asks:
            return Decimal(0)
        return tick_to_price(self._asks.keys()[0], self.tick_size)

    def best_bid(self) -> Decimal:
        """Highest bid price, or 0 with no bids."""
        if not self._bids:
            return Decimal(0)
        return tick_to_price(self._bids.keys()[-1], self.tick_size)

    def level(self, side: Side, tick: int) -> Decimal:
        """Quantity at a tick on one side, 0 if the level is absent."""
        depth = self._bids if side is Side.BUY else self._asks
        return depth.get(tick, Decimal(0))

    def clear_bid(self) -> None:
        self._bids.clear()

    def clear_ask(self) -> None:
        self._asks.clear()

    def clear_bid_level(self, tick: int) -> None:
        self._bids.pop(tick, None)

    def clear_ask_level(self, tick: int) -> None:
        self._asks.pop(tick, None)

    def clear(self) -> None:
        self.clear_bid()
        self.clear_ask()

    def update_level(self, side: Side, tick: int, qty: Decimal) -> None:
        depth = self._bids if side is Side.BUY else self._asks
        depth[tick] = qty