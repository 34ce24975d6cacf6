"""Hyperliquid, Bybit and Kraken message readers that turn feed messages into backtest events."""