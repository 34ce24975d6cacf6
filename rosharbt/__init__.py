"""Event-driven backtesting of trading strategies on recorded market data."""

__version__ = "0.1.1"