"""Kraken futures feed messages and their conversion to backtest events."""

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


def _object(value: Any) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise MessageParseError("expected a JSON object")
    return value


@dataclass(frozen=True)
class _KrakenLevel:
    price: str
    qty: str

    @classmethod
    def from_mapping(cls, obj: Any) -> _KrakenLevel:
        obj = _object(obj)
        return cls(price=_get(obj, "price", str), qty=_get(obj, "qty", str))


@dataclass(frozen=True)
class KrakenBookSnapshotMessage:
    """A full order book snapshot."""

    feed: str
    product_id: str
    timestamp: int
    seq: int
    tick_size: str | None
    bids: tuple[_KrakenLevel, ...]
    asks: tuple[_KrakenLevel, ...]

    @classmethod
    def from_json(cls, data: str | bytes | Mapping[str, Any]) -> KrakenBookSnapshotMessage:
        obj = _load(data)
        return cls(
            feed=_get(obj, "feed", str),
            product_id=_get(obj, "product_id", str),
            timestamp=_get(obj, "timestamp", int),
            seq=_get(obj, "seq", int),
            tick_size=_optional(obj, "tickSize", str),
            bids=tuple(_KrakenLevel.from_mapping(x) for x in _get(obj, "bids", list)),
            asks=tuple(_KrakenLevel.from_mapping(x) for x in _get(obj, "asks", list)),
        )

    def to_events(self) -> list[Event]:
        """Level updates for every bid, then every ask."""
        events = [
            Event(EVENT_UPDATE_LEVEL_BID, self.timestamp, level.price, level.qty)
            for level in self.bids
        ]
        events.extend(
            Event(EVENT_UPDATE_LEVEL_ASK, self.timestamp, level.price, level.qty)
            for level in self.asks
        )
        return events


@dataclass(frozen=True)
class KrakenBookDeltaMessage:
    """A change to one level of the order book."""

    feed: str
    product_id: str
    timestamp: int
    seq: int
    side: str
    price: str
    qty: str

    @classmethod
    def from_json(cls, data: str | bytes | Mapping[str, Any]) -> KrakenBookDeltaMessage:
        obj = _load(data)
        return cls(
            feed=_get(obj, "feed", str),
            product_id=_get(obj, "product_id", str),
            timestamp=_get(obj, "timestamp", int),
            seq=_get(obj, "seq", int),
            side=_get(obj, "side", str),
            price=_get(obj, "price", str),
            qty=_get(obj, "qty", str),
        )

    def to_events(self) -> list[Event]:
        typ = EVENT_UPDATE_LEVEL_BID if self.side == "buy" else EVENT_UPDATE_LEVEL_ASK
        return [Event(typ, self.timestamp, self.price, self.qty)]


@dataclass(frozen=True)
class _KrakenTrade:
    feed: str
    product_id: str
    uid: str
    side: str
    type_field: str
    seq: int
    time: int
    qty: str
    price: str

    @classmethod
    def from_mapping(cls, obj: Any) -> _KrakenTrade:
        obj = _object(obj)
        return cls(
            feed=_get(obj, "feed", str),
            product_id=_get(obj, "product_id", str),
            uid=_get(obj, "uid", str),
            side=_get(obj, "side", str),
            type_field=_get(obj, "type", str),
            seq=_get(obj, "seq", int),
            time=_get(obj, "time", int),
            qty=_get(obj, "qty", str),
            price=_get(obj, "price", str),
        )


@dataclass(frozen=True)
class KrakenTradeSnapshotMessage:
    """A batch of recent trades."""

    feed: str
    product_id: str
    trades: tuple[_KrakenTrade, ...]

    @classmethod
    def from_json(cls, data: str | bytes | Mapping[str, Any]) -> KrakenTradeSnapshotMessage:
        obj = _load(data)
        return cls(
            feed=_get(obj, "feed", str),
            product_id=_get(obj, "product_id", str),
            trades=tuple(_KrakenTrade.from_mapping(t) for t in _get(obj, "trades", list)),
        )

    def to_events(self) -> list[Event]:
        """One trade event per trade, stamped with the trade's own time."""
        return [
            Event(
                EVENT_TRADE_BUY if trade.side == "buy" else EVENT_TRADE_SELL,
                trade.time,
                trade.price,
                trade.qty,
            )
            for trade in self.trades
        ]