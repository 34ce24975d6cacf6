"""Running position, return and Sharpe-ratio bookkeeping for a backtest."""

from __future__ import annotations

from datetime import timedelta
from decimal import Decimal

_SECONDS_PER_YEAR = 365.0 * 24.0 * 60.0 * 60.0


class PerformanceMetrics:
    """Tracks prices, positions and the returns earned by holding positions."""

    def __init__(self, risk_free_rate: Decimal, return_window: timedelta | float) -> None:
        self.risk_free_rate = Decimal(risk_free_rate) if not isinstance(risk_free_rate, float) else Decimal(repr(risk_free_rate))
        if not isinstance(return_window, timedelta):
            return_window = timedelta(seconds=return_window)
        self.return_window = return_window
        self.prices: list[tuple[int, Decimal]] = []
        self.positions: list[tuple[int, Decimal]] = []
        self.returns: list[Decimal] = []
        self.cumulative_returns: list[Decimal] = []
        self.cumulative_return = Decimal(0)
        self._last_price: Decimal | None = None
        self._last_position = Decimal(0)

    def update(self, timestamp: int, position: Decimal, mid_price: Decimal) -> None:
        """Record a new observation; the return uses the position held before it."""
        self.prices.append((timestamp, mid_price))
        self.positions.append((timestamp, position))

        if self._last_price is None:
            self.cumulative_returns.append(Decimal(0))
        else:
            price_return = (mid_price - self._last_price) / self._last_price
            position_return = self._last_position * price_return
            self.returns.append(position_return)
            self.cumulative_return += position_return
            self.cumulative_returns.append(self.cumulative_return)

        self._last_price = mid_price
        self._last_position = position

    def sharpe_ratio(self) -> Decimal:
        """Annualised Sharpe ratio of the recorded returns; 0 without variation."""
        if not self.returns:
            return Decimal(0)
        count = Decimal(len(self.returns))
        mean_return = sum(self.returns, Decimal(0)) / count
        variance = sum(((r - mean_return) ** 2 for r in self.returns), Decimal(0)) / count
        std_dev = variance.sqrt() if variance >= 0 else Decimal(0)
        if std_dev == 0:
            return Decimal(0)

        window_seconds = self.return_window.total_seconds()
        if window_seconds > 0:
            annualization_factor = Decimal(repr(_SECONDS_PER_YEAR / window_seconds))
        else:
            annualization_factor = Decimal(1)
        annualized_mean = mean_return * annualization_factor
        annualized_std = std_dev * annualization_factor.sqrt()
        return (annualized_mean - self.risk_free_rate) / annualized_std