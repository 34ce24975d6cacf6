import json
from decimal import Decimal

import pytest

from rosharbt.exchanges.hyperliquid import (
    HyperliquidBookMessage,
    HyperliquidCandleMessage,
    HyperliquidCandleParser,
    HyperliquidParser,
    HyperliquidTradesMessage,
    MessageParseError,
)
from rosharbt.types import (
    EVENT_CANDLE,
    EVENT_CLEAR_SIDE_ASK,
    EVENT_CLEAR_SIDE_BID,
    EVENT_TRADE_BUY,
    EVENT_TRADE_SELL,
    EVENT_UPDATE_LEVEL_ASK,
    EVENT_UPDATE_LEVEL_BID,
)

EV0 = '1000000000000000000 {"channel":"candle","data":{"T":100,"c":"100.0","h":"100.0","i":"1m","l":"100.0","n":1,"o":"100.0","s":"AAVE","t":100,"v":"0.21"}}'
EV1 = '1010000000000000000 {"channel":"candle","data":{"T":101,"c":"104.0","h":"104.0","i":"1m","l":"104.0","n":1,"o":"104.0","s":"AAVE","t":101,"v":"0.21"}}'
EV2 = '1020000000000000000 {"channel":"candle","data":{"T":102,"c":"106.0","h":"106.0","i":"1m","l":"106.0","n":1,"o":"106.0","s":"AAVE","t":102,"v":"0.21"}}'

PREFIX = "1000000000000000000 "

BOOK = {
    "channel": "l2Book",
    "data": {
        "coin": "ETH",
        "time": 1739491140000,
        "levels": [
            [{"n": 2, "px": "2700.1", "sz": "1.5"}],
            [{"n": 1, "px": "2700.2", "sz": "0.7"}, {"n": 3, "px": "2700.3", "sz": "4.0"}],
        ],
    },
}

TRADES = {
    "channel": "trades",
    "data": [
        {"coin": "ETH", "hash": "0xabc", "px": "2700.2", "side": "B", "sz": "0.1",
         "tid": 1, "time": 1739491140001, "users": ["user-a", "user-b"]},
        {"coin": "ETH", "hash": "0xdef", "px": "2700.1", "side": "A", "sz": "0.3",
         "tid": 2, "time": 1739491140002, "users": ["user-c", "user-d"]},
    ],
}


def test_candle_parser_emits_previous_candle_when_period_changes():
    parser = HyperliquidCandleParser()
    assert parser.parse_line(EV0) == []
    (event,) = parser.parse_line(EV1)
    assert (event.typ, event.ts, event.px, event.qty) == (EVENT_CANDLE, 100, "100.0", "0.0")
    (event,) = parser.parse_line(EV2)
    assert (event.ts, event.px) == (101, "104.0")


def test_candle_parser_empty_line_yields_nothing():
    assert HyperliquidCandleParser().parse_line("") == []


def test_candle_parser_candles_are_independent_of_events():
    parser = HyperliquidCandleParser()
    parser.parse_line(EV0)
    parser.parse_line(EV1)
    assert parser.parse_candle(EV0) == []
    (candle,) = parser.parse_candle(EV1)
    assert candle.high == Decimal("100.0")
    assert candle.close == Decimal("100.0")
    assert candle.time == 100


def test_candle_parser_same_period_replaces_stored_message():
    parser = HyperliquidCandleParser()
    parser.parse_line(EV0)
    update = EV0.replace('"c":"100.0"', '"c":"100.5"')
    assert parser.parse_line(update) == []
    (event,) = parser.parse_line(EV1)
    assert event.px == "100.5"


def test_candle_parser_tracks_coins_separately():
    parser = HyperliquidCandleParser()
    other = EV1.replace('"AAVE"', '"ETH"')
    assert parser.parse_line(EV0) == []
    assert parser.parse_line(other) == []


def test_candle_parser_short_line_raises():
    with pytest.raises(MessageParseError):
        HyperliquidCandleParser().parse_candle("")


def test_candle_message_fields():
    msg = HyperliquidCandleMessage.from_json(EV1[20:])
    assert (msg.coin, msg.t_start, msg.t_end, msg.close) == ("AAVE", 101, 101, "104.0")
    assert msg.to_candle().open == Decimal("104.0")


def test_book_events_order():
    events = HyperliquidParser().parse_line(PREFIX + json.dumps(BOOK))
    assert [(e.typ, e.px, e.qty) for e in events] == [
        (EVENT_CLEAR_SIDE_ASK, "0.0", "0.0"),
        (EVENT_CLEAR_SIDE_BID, "0.0", "0.0"),
        (EVENT_UPDATE_LEVEL_BID, "2700.1", "1.5"),
        (EVENT_UPDATE_LEVEL_ASK, "2700.2", "0.7"),
        (EVENT_UPDATE_LEVEL_ASK, "2700.3", "4.0"),
    ]
    assert {e.ts for e in events} == {BOOK["data"]["time"]}


def test_book_needs_two_sides():
    broken = json.loads(json.dumps(BOOK))
    broken["data"]["levels"] = broken["data"]["levels"][:1]
    with pytest.raises(MessageParseError):
        HyperliquidBookMessage.from_json(broken)


def test_parser_falls_back_to_trades():
    events = HyperliquidParser().parse_line(PREFIX + json.dumps(TRADES))
    assert [e.typ for e in events] == [EVENT_TRADE_BUY, EVENT_TRADE_SELL]
    assert [(e.ts, e.px, e.qty) for e in events] == [
        (1739491140001, "2700.2", "0.1"),
        (1739491140002, "2700.1", "0.3"),
    ]


def test_trades_message_round_trip_of_users():
    msg = HyperliquidTradesMessage.from_json(TRADES)
    assert msg.trades[0].users == ("user-a", "user-b")


def test_parser_rejects_garbage():
    with pytest.raises(MessageParseError):
        HyperliquidParser().parse_line(PREFIX + '{"channel":"other","data":{}}')