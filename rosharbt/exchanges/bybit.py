"""Bybit websocket messages and their conversion to backtest events."""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from rosharbt.exchanges.hyperliquid import MessageParseError
from rosharbt.types import (
    EVENT_TRADE_BUY,
    EVENT_TRADE_SELL,
    EVENT_UPDATE_LEVEL_ASK,
    EVENT_UPDATE_LEVEL_BID,
    Event,
)


def _load(data: str | bytes | Mapping[str, Any]) -> Mapping[str, Any]:
    if isinstance(data, (str, bytes, bytearray)):
        try:
            data = json.loads(data)
        except json.JSONDecodeError as exc:
            raise MessageParseError(f"invalid JSON: {exc}") from exc
    if not isinstance(data, Mapping):
        raise MessageParseError("expected a JSON object")
    return data


def _matches(value: Any, kind: type) -> bool:
    if kind is int:
        return isinstance(value, int) and not isinstance(value, bool)
    return isinstance(value, kind)


def _get(obj: Mapping[str, Any], key: str, kind: type) -> Any:
    if key not in obj:
        raise MessageParseError(f"missing field {key!r}")
    value = obj[key]
    if not _matches(value, kind):
        raise MessageParseError(f"field {key!r} has the wrong type")
    return value


def _optional(obj: Mapping[str, Any], key: str, kind: type) -> Any:
    value = obj.get(key)
    if value is None:
        return None
    if not _matches(value, kind):
        raise MessageParseError(f"field {key!r} has the wrong type")
    return value


def _pairs(obj: Mapping[str, Any], key: str) -> tuple[tuple[str, str], ...]:
    pairs = []
    for item in _get(obj, key, list):
        if not isinstance(item, list) or len(item) != 2 or not all(isinstance(v, str) for v in item):
            raise MessageParseError(f"field {key!r} must hold [price, qty] string pairs")
        pairs.append((item[0], item[1]))
    return tuple(pairs)


@dataclass(frozen=True)
class ByBitMessage:
    """A request sent to the Bybit websocket."""

    req_id: str
    op: str
    args: list[str] | None = None

    def to_json(self) -> str:
        payload: dict[str, Any] = {"req_id": self.req_id, "op": self.op}
        if self.args is not None:
            payload["args"] = list(self.args)
        return json.dumps(payload, separators=(",", ":"))


@dataclass(frozen=True)
class ByBitDepthMessage:
    """An order book snapshot or delta."""

    topic: str
    snapshot_type: str
    ts: int
    symbol: str
    bids: tuple[tuple[str, str], ...]
    asks: tuple[tuple[str, str], ...]
    update_id: int
    seq: int
    cts: int

    @classmethod
    def from_json(cls, data: str | bytes | Mapping[str, Any]) -> ByBitDepthMessage:
        obj = _load(data)
        book = _get(obj, "data", Mapping)
        return cls(
            topic=_get(obj, "topic", str),
            snapshot_type=_get(obj, "type", str),
            ts=_get(obj, "ts", int),
            symbol=_get(book, "s", str),
            bids=_pairs(book, "b"),
            asks=_pairs(book, "a"),
            update_id=_get(book, "u", int),
            seq=_get(book, "seq", int),
            cts=_get(obj, "cts", int),
        )

    def to_events(self) -> list[Event]:
        """Level updates for every bid, then every ask, stamped with the message time."""
        events = [Event(EVENT_UPDATE_LEVEL_BID, self.ts, px, qty) for px, qty in self.bids]
        events.extend(Event(EVENT_UPDATE_LEVEL_ASK, self.ts, px, qty) for px, qty in self.asks)
        return events


@dataclass(frozen=True)
class _ByBitTrade:
    trade_time: int
    symbol: str
    side: str
    size: str
    price: str
    tick_direction: str | None
    trade_id: str
    is_block_trade: bool
    is_rpi_trade: bool | None

    @classmethod
    def from_mapping(cls, obj: Any) -> _ByBitTrade:
        if not isinstance(obj, Mapping):
            raise MessageParseError("trade entry must be a JSON object")
        return cls(
            trade_time=_get(obj, "T", int),
            symbol=_get(obj, "s", str),
            side=_get(obj, "S", str),
            size=_get(obj, "v", str),
            price=_get(obj, "p", str),
            tick_direction=_optional(obj, "L", str),
            trade_id=_get(obj, "i", str),
            is_block_trade=_get(obj, "BT", bool),
            is_rpi_trade=_optional(obj, "RPI", bool),
        )


@dataclass(frozen=True)
class ByBitTradesMessage:
    """A batch of public trades."""

    topic: str
    snapshot_type: str
    ts: int
    trades: tuple[_ByBitTrade, ...]

    @classmethod
    def from_json(cls, data: str | bytes | Mapping[str, Any]) -> ByBitTradesMessage:
        obj = _load(data)
        return cls(
            topic=_get(obj, "topic", str),
            snapshot_type=_get(obj, "type", str),
            ts=_get(obj, "ts", int),
            trades=tuple(_ByBitTrade.from_mapping(t) for t in _get(obj, "data", list)),
        )

    def to_events(self) -> list[Event]:
        """One trade event per trade, stamped with the message time."""
        return [
            Event(
                EVENT_TRADE_BUY if trade.side == "Buy" else EVENT_TRADE_SELL,
                self.ts,
                trade.price,
                trade.size,
            )
            for trade in self.trades
        ]