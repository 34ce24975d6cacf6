"""Depth-of-book backtest driven by a stream of recorded feed lines."""

from __future__ import annotations

import copy
import enum
import logging
from collections import deque
from collections.abc import Iterable
from dataclasses import replace
from decimal import Decimal

from rosharbt.l2.config import L2Config, L2Order
from rosharbt.l2.exchange import L2Exchange
from rosharbt.performance import PerformanceMetrics
from rosharbt.types import (
    EVENT_CLEAR_BOOK,
    EVENT_CLEAR_LEVEL_ASK,
    EVENT_CLEAR_LEVEL_BID,
    EVENT_CLEAR_SIDE_ASK,
    EVENT_CLEAR_SIDE_BID,
    EVENT_TRADE_BUY,
    EVENT_TRADE_SELL,
    EVENT_UPDATE_LEVEL_ASK,
    EVENT_UPDATE_LEVEL_BID,
    EndOfData,
    Event,
    OrderRequest,
)

logger = logging.getLogger(__name__)


class LatencyModel(enum.Enum):
    """Delay between submitting an order and the exchange receiving it."""

    INSTANT = "instant"

    def delay(self) -> int:
        return 0


class L2Backtest:
    """Replays depth and trade data against a depth-of-book exchange.

    ``src`` is any iterable of recorded lines. Once it is exhausted every
    further read counts as an empty source.
    """

    def __init__(
        self,
        config: L2Config,
        src: Iterable[str],
        latency_model: LatencyModel = LatencyModel.INSTANT,
    ) -> None:
        self.exchange = L2Exchange(config)
        self.curr_ts = config.start_ts
        self.line_chunk = config.lines_read_per_tick
        self.latency_model = latency_model
        self.performance = PerformanceMetrics(config.risk_free_rate, config.return_window)
        self.parser = copy.deepcopy(config.parser)
        self._lines = iter(src)
        self._events: deque[Event] = deque()
        self._order_buffer: deque[OrderRequest] = deque()
        self._fills: list[int] = []

    @property
    def last_trades(self) -> list[int]:
        """Ids of orders filled during the most recent elapse."""
        return list(self._fills)

    @property
    def position(self) -> float:
        return float(self.exchange.position.normalize())

    @property
    def next_order_id(self) -> int:
        return self.exchange.next_order_id

    def bbo(self) -> tuple[float, float]:
        bid, ask = self.exchange.bbo()
        return float(bid.normalize()), float(ask.normalize())

    def submit_order(self, req: OrderRequest) -> None:
        """Queue an order stamped with the current time; it reaches the exchange later."""
        self._order_buffer.append(replace(req, ts=self.curr_ts))

    def cancel_order(self, oid: int) -> None:
        self.exchange.cancel_order(oid)

    def update_performance_metrics(self) -> None:
        """Record the current position and mid price."""
        bid, ask = self.bbo()
        mid_price = Decimal(repr((bid + ask) / 2.0))
        self.performance.update(self.curr_ts, self.exchange.position, mid_price)

    def get_order(self, oid: int) -> L2Order | None:
        order = self.exchange.get_order(oid)
        return replace(order) if order is not None else None

    def orders_at(self, price: float) -> list[int] | None:
        return self.exchange.orders_at(Decimal(repr(float(price))))

    def working_orders(self) -> list[int]:
        return self.exchange.working_orders()

    def _next_line(self) -> str | None:
        line = next(self._lines, None)
        if line is None:
            return None
        return line.rstrip("\r\n")

    def _release_orders(self) -> None:
        delay = self.latency_model.delay()
        while self._order_buffer and self._order_buffer[0].ts + delay <= self.curr_ts:
            self.exchange.execute_user_order(self._order_buffer.popleft())

    def _apply(self, event: Event) -> None:
        self.curr_ts = event.ts
        typ = event.typ
        if typ == EVENT_CLEAR_BOOK:
            self.exchange.clear()
        elif typ == EVENT_CLEAR_LEVEL_BID:
            self.exchange.clear_bid_level(event)
        elif typ == EVENT_CLEAR_LEVEL_ASK:
            self.exchange.clear_ask_level(event)
        elif typ in (EVENT_UPDATE_LEVEL_BID, EVENT_UPDATE_LEVEL_ASK):
            self._fills.extend(self.exchange.update_level(event))
        elif typ in (EVENT_TRADE_BUY, EVENT_TRADE_SELL):
            self.exchange.process_trade(event)
        elif typ == EVENT_CLEAR_SIDE_BID:
            self.exchange.clear_bid()
        elif typ == EVENT_CLEAR_SIDE_ASK:
            self.exchange.clear_ask()

    def elapse(self, duration: int) -> None:
        """Process orders and events up to ``duration`` past the current time.

        Raises EndOfData when the source runs out before that time is reached.
        """
        self._fills.clear()
        sim_ended = False
        end_time = self.curr_ts + duration

        while self.curr_ts < end_time:
            self._release_orders()

            if self._events:
                if self._events[0].ts <= end_time:
                    self._apply(self._events.popleft())
                else:
                    self.curr_ts = end_time
                    return
            else:
                if sim_ended:
                    raise EndOfData()
                for _ in range(self.line_chunk):
                    line = self._next_line()
                    if line is None:
                        sim_ended = True
                        continue
                    try:
                        self._events.extend(self.parser.parse_line(line))
                    except ValueError as exc:
                        logger.warning("Failed to parse line: %s", exc)