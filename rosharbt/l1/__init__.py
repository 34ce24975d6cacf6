"""Top-of-book backtesting driven by candle prices."""