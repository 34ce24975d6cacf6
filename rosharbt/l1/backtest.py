"""Top-of-book backtest driven by a stream of recorded feed lines."""

from __future__ import annotations

import copy
import logging
from collections import deque
from collections.abc import Iterable
from dataclasses import replace
from decimal import Decimal

from rosharbt.chart import ChartData
from rosharbt.l1.config import L1Config, L1Order
from rosharbt.l1.exchange import L1Exchange
from rosharbt.performance import PerformanceMetrics
from rosharbt.types import EVENT_CANDLE, Candle, EndOfData, Event, OrderRequest, Side

logger = logging.getLogger(__name__)


class L1Backtest:
    """Replays candle data against a top-of-book exchange.

    ``src`` is any iterable of recorded lines. Once it is exhausted every
    further read counts as an empty source.
    """

    def __init__(self, config: L1Config, src: Iterable[str]) -> None:
        self.exchange = L1Exchange(config)
        self.curr_ts = config.start_ts
        self.line_chunk = config.lines_read_per_tick
        self.performance = PerformanceMetrics(config.risk_free_rate, config.return_window)
        self.position = Decimal(0)
        self.parser = copy.deepcopy(config.parser)
        self.last_candle: Candle | None = None
        self._lines = iter(src)
        self._events: deque[Event] = deque()
        self._candles: deque[Candle] = deque()

    def _next_line(self) -> str | None:
        line = next(self._lines, None)
        if line is None:
            return None
        return line.rstrip("\r\n")

    def _apply(self, event: Event) -> None:
        self.curr_ts = event.ts
        if event.typ == EVENT_CANDLE:
            self.exchange.update_price(event)

    def bbo(self) -> tuple[float, float]:
        bid, ask = self.exchange.bbo()
        return float(bid.normalize()), float(ask.normalize())

    def get_order(self, oid: int) -> L1Order | None:
        order = self.exchange.get_order(oid)
        return replace(order) if order is not None else None

    def execute_market_order(self, order: OrderRequest) -> int:
        """Fill the order at the current best price and update the position."""
        oid = self.exchange.execute_order(order)
        executed = self.exchange.get_order(oid)
        if executed is not None:
            if executed.side is Side.BUY:
                self.position += executed.qty
            else:
                self.position -= executed.qty
        return oid

    def _update_performance_metrics(self) -> None:
        bid, ask = self.bbo()
        mid_price = Decimal(repr((bid + ask) / 2.0))
        self.performance.update(self.curr_ts, self.position, mid_price)

    def step(self) -> None:
        """Advance by one event; raises EndOfData once the source is used up."""
        if not self._events:
            for _ in range(self.line_chunk):
                line = self._next_line()
                if line is None:
                    if not self._events:
                        raise EndOfData()
                    continue
                try:
                    self._candles.extend(self.parser.parse_candle(line))
                except ValueError as exc:
                    logger.warning("Failed to parse line: %s", exc)
                try:
                    self._events.extend(self.parser.parse_line(line))
                except ValueError as exc:
                    logger.warning("Failed to parse line: %s", exc)

        if self._events:
            self._apply(self._events.popleft())

        if self._candles:
            self.last_candle = self._candles.popleft()

        self._update_performance_metrics()

    def elapse(self, duration: int) -> None:
        """Process every event up to ``duration`` past the current time.

        Raises EndOfData when the source runs out before that time is reached.
        """
        sim_ended = False
        end_time = self.curr_ts + duration

        while self.curr_ts < end_time:
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
                    except ValueError:
                        pass

    def chart_data(self) -> ChartData:
        return ChartData.from_performance(self.performance)

    def generate_chart(self, output_path: str) -> None:
        """Write the price, return and position chart to ``output_path``."""
        try:
            self.chart_data().create_multi_chart(output_path)
        except (ValueError, OSError) as exc:
            raise RuntimeError(f"Failed to create chart: {exc}") from exc