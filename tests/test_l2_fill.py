from decimal import Decimal

import pytest

from rosharbt.l2.fill import LevelChgFill
from rosharbt.l2.orderbook import L2OrderBook
from rosharbt.types import (
    EVENT_CANDLE,
    EVENT_TRADE_SELL,
    EVENT_UPDATE_LEVEL_BID,
    Event,
    Side,
)


@pytest.fixture
def book():
    ob = L2OrderBook(Decimal(1))
    ob.update_level(Side.BUY, 100, Decimal(100))
    ob.update_level(Side.SELL, 101, Decimal(100))
    return ob


@pytest.fixture
def model():
    return LevelChgFill(Decimal(1), Decimal(1))


def test_new_order_priority_is_its_quantity(model):
    model.new_order(0, Decimal(100))
    assert model.priority(0) == Decimal(100)


def test_unknown_order_has_no_priority(model):
    assert model.priority(7) is None


def test_cancel_removes_priority(model):
    model.new_order(0, Decimal(100))
    model.cancel_order(0)
    assert model.priority(0) is None


def test_trade_moves_order_forward(model):
    model.new_order(0, Decimal(100))
    touched = model.update_trade(Event(EVENT_TRADE_SELL, 101, "100.0", "10.0"), [0])
    assert touched == [0]
    assert model.priority(0) == Decimal(90)


def test_trade_with_no_orders_touches_nothing(model):
    assert model.update_trade(Event(EVENT_TRADE_SELL, 101, "100.0", "10.0"), []) == []


def test_big_trade_then_level_drop_reaches_front(model, book):
    model.new_order(0, Decimal(100))
    model.update_trade(Event(EVENT_TRADE_SELL, 101, "100.0", "100.0"), [0])
    model.update_level(Event(EVENT_UPDATE_LEVEL_BID, 101, "100.0", "10.0"), book, [0])
    assert model.priority(0) == Decimal(-90)


def test_cancel_in_front_never_increases_priority(model, book):
    model.new_order(0, Decimal(100))
    model.update_level(Event(EVENT_UPDATE_LEVEL_BID, 101, "100.0", "90.0"), book, [0])
    prio = model.priority(0)
    assert prio <= Decimal(100)
    assert prio >= Decimal(0)


def test_level_increase_caps_priority_at_new_size(model, book):
    model.new_order(0, Decimal(100))
    model.update_level(Event(EVENT_UPDATE_LEVEL_BID, 101, "100.0", "50.0"), book, [0])
    assert model.priority(0) <= Decimal(50)


def test_non_level_event_is_ignored(model, book):
    model.new_order(0, Decimal(100))
    model.update_level(Event(EVENT_CANDLE, 101, "100.0", "0.0"), book, [0])
    assert model.priority(0) == Decimal(100)


def test_bad_quantity_raises(model, book):
    model.new_order(0, Decimal(100))
    with pytest.raises(ValueError):
        model.update_level(Event(EVENT_UPDATE_LEVEL_BID, 101, "100.0", "abc"), book, [0])