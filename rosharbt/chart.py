"""Price, position and return charts built from performance history."""

from __future__ import annotations

import math
from collections.abc import Iterable
from dataclasses import dataclass, field
from decimal import Decimal

from matplotlib.figure import Figure

from rosharbt.performance import PerformanceMetrics


@dataclass
class TimeSeriesPoint:
    timestamp: int
    price: Decimal
    position: Decimal
    cumulative_return: Decimal


def _bounds(values: Iterable[float]) -> tuple[float, float]:
    values = list(values)
    return min(values, default=math.inf), max(values, default=-math.inf)


def _limits_usable(low: float, high: float) -> bool:
    return math.isfinite(low) and math.isfinite(high) and low < high


@dataclass
class ChartData:
    data_points: list[TimeSeriesPoint] = field(default_factory=list)

    def add_point(
        self,
        timestamp: int,
        price: Decimal,
        position: Decimal,
        cumulative_return: Decimal,
    ) -> None:
        self.data_points.append(TimeSeriesPoint(timestamp, price, position, cumulative_return))

    @classmethod
    def from_performance(cls, performance: PerformanceMetrics) -> ChartData:
        """One point per recorded price, pairing it with position and cumulative return."""
        chart = cls()
        positions = performance.positions
        cumulative = performance.cumulative_returns
        fallback_position = positions[-1][1] if positions else Decimal(0)
        for index, (timestamp, price) in enumerate(performance.prices):
            position = positions[index][1] if index < len(positions) else fallback_position
            cum_return = cumulative[index] if index < len(cumulative) else Decimal(0)
            chart.add_point(timestamp, price, position, cum_return)
        return chart

    def _require_points(self) -> None:
        if not self.data_points:
            raise ValueError("No data points to chart")

    def _series(self, attribute: str) -> tuple[list[int], list[float]]:
        stamps = [p.timestamp for p in self.data_points]
        values = [float(getattr(p, attribute)) for p in self.data_points]
        return stamps, values

    def _set_limits(self, axes, x_range, y_range) -> None:
        if _limits_usable(*x_range):
            axes.set_xlim(*x_range)
        if _limits_usable(*y_range):
            axes.set_ylim(*y_range)

    def create_chart(self, output_path: str, title: str) -> None:
        """Draw the price series into a single 1200x800 image."""
        self._require_points()
        figure = Figure(figsize=(12, 8), dpi=100)
        axes = figure.add_subplot()
        axes.set_title(title, fontsize=20)
        axes.set_xlabel("Time")
        axes.set_ylabel("Price")
        axes.grid(True)

        stamps, prices = self._series("price")
        axes.plot(stamps, prices, color="blue", label="Price")
        self._set_limits(axes, self.time_range(), self.price_range())
        axes.legend()
        figure.savefig(output_path)

    def create_multi_chart(self, output_path: str) -> None:
        """Draw price with cumulative return above, and position below, into one image."""
        self._require_points()
        figure = Figure(figsize=(12, 12), dpi=100)
        top, bottom = figure.subplots(2, 1)
        self._draw_price_return_overlay(top)
        self._draw_positions(bottom)
        figure.tight_layout()
        figure.savefig(output_path)

    def _draw_price_return_overlay(self, axes) -> None:
        axes.set_title("Price & Cumulative Return", fontsize=15)
        axes.set_xlabel("Time")
        axes.set_ylabel("Price")
        axes.grid(True)

        stamps, prices = self._series("price")
        _, returns = self._series("cumulative_return")
        (price_line,) = axes.plot(stamps, prices, color="blue", label="Price")
        self._set_limits(axes, self.time_range(), self.price_range())

        secondary = axes.twinx()
        secondary.set_ylabel("Cumulative Return")
        (return_line,) = secondary.plot(stamps, returns, color="green", label="Cumulative Return")
        low, high = self.cumulative_return_range()
        if _limits_usable(low, high):
            secondary.set_ylim(low, high)

        axes.legend(handles=[price_line, return_line])

    def _draw_positions(self, axes) -> None:
        axes.set_title("Position", fontsize=15)
        axes.set_xlabel("Time")
        axes.set_ylabel("Position Size")
        axes.grid(True)

        stamps, positions = self._series("position")
        axes.plot(stamps, positions, color="red", label="Position")
        first, last = self.data_points[0].timestamp, self.data_points[-1].timestamp
        axes.plot([first, last], [0.0, 0.0], color="black", alpha=0.3)
        self._set_limits(axes, self.time_range(), self.position_range())
        axes.legend()

    def time_range(self) -> tuple[int, int]:
        stamps = [p.timestamp for p in self.data_points]
        return min(stamps, default=0), max(stamps, default=1)

    def price_range(self) -> tuple[float, float]:
        low, high = _bounds(float(p.price) for p in self.data_points)
        padding = (high - low) * 0.05
        return low - padding, high + padding

    def cumulative_return_range(self) -> tuple[float, float]:
        low, high = _bounds(float(p.cumulative_return) for p in self.data_points)
        padding = abs(high - low) * 0.05
        return low - padding, high + padding

    def position_range(self) -> tuple[float, float]:
        low, high = _bounds(float(p.position) for p in self.data_points)
        padding = abs(high - low) * 0.1
        return low - padding, high + padding