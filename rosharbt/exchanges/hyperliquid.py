"""Hyperliquid feed messages and line parsers for recorded data files."""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from rosharbt.types import (
    EVENT_CANDLE,
    EVENT_CLEAR_SIDE_ASK,
    EVENT_CLEAR_SIDE_BID,
    EVENT_TRADE_BUY,
    EVENT_TRADE_SELL,
    EVENT_UPDATE_LEVEL_ASK,
    EVENT_UPDATE_LEVEL_BID,
    Candle,
    Event,
)

# Each recorded line starts with a fixed-width receive timestamp followed by a space.
_RECV_TS_WIDTH = 20


class MessageParseError(ValueError):
    """A feed message could not be decoded."""


def _load(data: str | bytes | Mapping[str, Any]) -> Mapping[str, Any]:
    if isinstance(data, (str, bytes, bytearray)):
        try:
            data = json.loads(data)
        except json.JSONDecodeError as exc:
            raise MessageParseError(f"invalid JSON: {exc}") from exc
    if not isinstance(data, Mapping):
        raise MessageParseError("expected a JSON object")
    return data


def _get(obj: Mapping[str, Any], key: str, kind: type, *, unsigned: bool = False) -> Any:
    if key not in obj:
        raise MessageParseError(f"missing field {key!r}")
    value = obj[key]
    if kind is int:
        valid = isinstance(value, int) and not isinstance(value, bool)
        if valid and unsigned and value < 0:
            valid = False
    else:
        valid = isinstance(value, kind)
    if not valid:
        raise MessageParseError(f"field {key!r} has the wrong type")
    return value


def _object(value: Any) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise MessageParseError("expected a JSON object")
    return value


def _payload(line: str) -> str:
    if len(line) < _RECV_TS_WIDTH:
        raise MessageParseError("line is shorter than its receive timestamp prefix")
    return line[_RECV_TS_WIDTH:]


@dataclass(frozen=True)
class HyperliquidCandleMessage:
    """A candle update; the same candle is resent until its period ends."""

    channel: str
    coin: str
    interval: str
    t_start: int
    t_end: int
    open: str
    high: str
    low: str
    close: str
    volume: str
    trade_count: int

    @classmethod
    def from_json(cls, data: str | bytes | Mapping[str, Any]) -> HyperliquidCandleMessage:
        obj = _load(data)
        body = _object(_get(obj, "data", Mapping))
        return cls(
            channel=_get(obj, "channel", str),
            coin=_get(body, "s", str),
            interval=_get(body, "i", str),
            t_start=_get(body, "t", int),
            t_end=_get(body, "T", int),
            open=_get(body, "o", str),
            high=_get(body, "h", str),
            low=_get(body, "l", str),
            close=_get(body, "c", str),
            volume=_get(body, "v", str),
            trade_count=_get(body, "n", int),
        )

    def to_candle(self) -> Candle:
        return Candle.from_strings(self.high, self.low, self.open, self.close, self.t_end)

    def to_events(self) -> list[Event]:
        """A single candle event at the period start, priced at the close."""
        return [Event(EVENT_CANDLE, self.t_start, self.close, "0.0")]


@dataclass(frozen=True)
class _BookLevel:
    n: int
    px: str
    sz: str

    @classmethod
    def from_mapping(cls, obj: Any) -> _BookLevel:
        obj = _object(obj)
        return cls(
            n=_get(obj, "n", int, unsigned=True),
            px=_get(obj, "px", str),
            sz=_get(obj, "sz", str),
        )


def _levels(raw: Any) -> tuple[_BookLevel, ...]:
    if not isinstance(raw, list):
        raise MessageParseError("book side must be a list")
    return tuple(_BookLevel.from_mapping(level) for level in raw)


@dataclass(frozen=True)
class HyperliquidBookMessage:
    """A full L2 book snapshot for one coin."""

    channel: str
    coin: str
    time: int
    bids: tuple[_BookLevel, ...]
    asks: tuple[_BookLevel, ...]

    @classmethod
    def from_json(cls, data: str | bytes | Mapping[str, Any]) -> HyperliquidBookMessage:
        obj = _load(data)
        body = _object(_get(obj, "data", Mapping))
        sides = [_levels(side) for side in _get(body, "levels", list)]
        if len(sides) < 2:
            raise MessageParseError("book must hold a bid side and an ask side")
        return cls(
            channel=_get(obj, "channel", str),
            coin=_get(body, "coin", str),
            time=_get(body, "time", int, unsigned=True),
            bids=sides[0],
            asks=sides[1],
        )

    def to_events(self) -> list[Event]:
        """Clear both sides, then set every bid level, then every ask level."""
        events = [
            Event(EVENT_CLEAR_SIDE_ASK, self.time, "0.0", "0.0"),
            Event(EVENT_CLEAR_SIDE_BID, self.time, "0.0", "0.0"),
        ]
        events.extend(Event(EVENT_UPDATE_LEVEL_BID, self.time, lv.px, lv.sz) for lv in self.bids)
        events.extend(Event(EVENT_UPDATE_LEVEL_ASK, self.time, lv.px, lv.sz) for lv in self.asks)
        return events


@dataclass(frozen=True)
class _Trade:
    coin: str
    hash: str
    px: str
    side: str
    sz: str
    tid: int
    time: int
    users: tuple[str, ...]

    @classmethod
    def from_mapping(cls, obj: Any) -> _Trade:
        obj = _object(obj)
        users = _get(obj, "users", list)
        if not all(isinstance(user, str) for user in users):
            raise MessageParseError("field 'users' must hold strings")
        return cls(
            coin=_get(obj, "coin", str),
            hash=_get(obj, "hash", str),
            px=_get(obj, "px", str),
            side=_get(obj, "side", str),
            sz=_get(obj, "sz", str),
            tid=_get(obj, "tid", int, unsigned=True),
            time=_get(obj, "time", int, unsigned=True),
            users=tuple(users),
        )


@dataclass(frozen=True)
class HyperliquidTradesMessage:
    """A batch of trades."""

    channel: str
    trades: tuple[_Trade, ...]

    @classmethod
    def from_json(cls, data: str | bytes | Mapping[str, Any]) -> HyperliquidTradesMessage:
        obj = _load(data)
        return cls(
            channel=_get(obj, "channel", str),
            trades=tuple(_Trade.from_mapping(t) for t in _get(obj, "data", list)),
        )

    def to_events(self) -> list[Event]:
        """One trade event per trade; side "B" is a buy, anything else a sell."""
        return [
            Event(
                EVENT_TRADE_BUY if trade.side == "B" else EVENT_TRADE_SELL,
                trade.time,
                trade.px,
                trade.sz,
            )
            for trade in self.trades
        ]


def _advance(
    store: dict[str, HyperliquidCandleMessage], msg: HyperliquidCandleMessage
) -> HyperliquidCandleMessage | None:
    """Store the latest message for its coin; return the previous one if its period closed."""
    previous = store.get(msg.coin)
    store[msg.coin] = msg
    if previous is not None and previous.t_end != msg.t_end:
        return previous
    return None


class HyperliquidCandleParser:
    """Turns recorded candle lines into events and candles once each candle completes.

    Event and candle production keep separate per-coin state.
    """

    def __init__(self) -> None:
        self._last_for_events: dict[str, HyperliquidCandleMessage] = {}
        self._last_for_candles: dict[str, HyperliquidCandleMessage] = {}

    def parse_line(self, line: str) -> list[Event]:
        if not line:
            return []
        msg = HyperliquidCandleMessage.from_json(_payload(line))
        completed = _advance(self._last_for_events, msg)
        return completed.to_events() if completed is not None else []

    def parse_candle(self, line: str) -> list[Candle]:
        msg = HyperliquidCandleMessage.from_json(_payload(line))
        completed = _advance(self._last_for_candles, msg)
        return [completed.to_candle()] if completed is not None else []


class HyperliquidParser:
    """Turns recorded book and trade lines into events."""

    def parse_line(self, line: str) -> list[Event]:
        data = _payload(line)
        try:
            return HyperliquidBookMessage.from_json(data).to_events()
        except MessageParseError:
            return HyperliquidTradesMessage.from_json(data).to_events()