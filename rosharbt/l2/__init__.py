"""Depth-of-book backtesting with queue-position fill simulation."""