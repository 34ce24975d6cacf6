from decimal import Decimal

import pytest

from rosharbt.l2.config import L2Config
from rosharbt.l2.manager import OrderError, OrderManager
from rosharbt.l2.orderbook import L2OrderBook
from rosharbt.types import (
    EVENT_TRADE_BUY,
    EVENT_TRADE_SELL,
    EVENT_UPDATE_LEVEL_ASK,
    EVENT_UPDATE_LEVEL_BID,
    Event,
    OrderRequest,
    OrderStatus,
    OrderType,
    Side,
)


@pytest.fixture
def setup():
    config = L2Config(
        tick_size=1.0, lot_size=1.0, start_ts=100, return_window=1, parser=None
    )
    ob = L2OrderBook(config.tick_size)
    ob.update_level(Side.BUY, 100, Decimal(100))
    ob.update_level(Side.SELL, 101, Decimal(100))
    return ob, config


def _limit(side, qty, px):
    return OrderRequest(side, qty, px, OrderType.LIMIT)


def test_trade_increases_q_position(setup):
    ob, config = setup
    mgr = OrderManager(config)
    mgr.new_order(_limit(Side.BUY, 100.0, 100.0))
    mgr.new_order(_limit(Side.SELL, 100.0, 101.0))

    mgr.update_trade(Event(EVENT_TRADE_SELL, 101, "100.0", "10.0"))
    mgr.update_trade(Event(EVENT_TRADE_BUY, 101, "101.0", "10.0"))

    fills = mgr.update_level(Event(EVENT_UPDATE_LEVEL_BID, 101, "100.0", "90.0"), ob)
    fills += mgr.update_level(Event(EVENT_UPDATE_LEVEL_BID, 101, "101.0", "90.0"), ob)

    assert fills == []
    assert mgr.priority(0) <= Decimal(100)
    assert mgr.priority(1) <= Decimal(100)


def test_cancel_increases_q_position(setup):
    ob, config = setup
    mgr = OrderManager(config)
    mgr.new_order(_limit(Side.BUY, 100.0, 100.0))
    mgr.new_order(_limit(Side.SELL, 100.0, 101.0))

    fills = mgr.update_level(Event(EVENT_UPDATE_LEVEL_BID, 101, "100.0", "90.0"), ob)
    fills += mgr.update_level(Event(EVENT_UPDATE_LEVEL_BID, 101, "101.0", "90.0"), ob)

    assert fills == []
    assert mgr.priority(0) <= Decimal(100)
    assert mgr.priority(1) <= Decimal(100)


def test_order_fills_with_big_trade(setup):
    ob, config = setup
    mgr = OrderManager(config)
    mgr.new_order(_limit(Side.BUY, 100.0, 100.0))
    mgr.new_order(_limit(Side.SELL, 100.0, 101.0))

    mgr.update_trade(Event(EVENT_TRADE_SELL, 101, "100.0", "100.0"))
    mgr.update_trade(Event(EVENT_TRADE_BUY, 101, "101.0", "100.0"))

    fills = mgr.update_level(Event(EVENT_UPDATE_LEVEL_BID, 101, "100.0", "10.0"), ob)
    fills += mgr.update_level(Event(EVENT_UPDATE_LEVEL_ASK, 101, "101.0", "10.0"), ob)

    assert fills
    assert mgr.get_order(0).status is OrderStatus.FILLED
    assert mgr.get_order(1).status is OrderStatus.FILLED


def test_cancel_order(setup):
    _, config = setup
    mgr = OrderManager(config)
    oid = mgr.new_order(_limit(Side.BUY, 100.0, 100.0))

    mgr.cancel_order(oid)

    assert mgr.get_order(oid).status is OrderStatus.CANCELLED
    assert mgr.priority(oid) is None
    assert mgr.orders_at(100) == []


def test_cancel_order_at_same_level(setup):
    _, config = setup
    mgr = OrderManager(config)
    oid_0 = mgr.new_order(_limit(Side.BUY, 100.0, 100.0))
    oid_1 = mgr.new_order(_limit(Side.BUY, 200.0, 100.0))

    mgr.cancel_order(oid_0)

    assert mgr.get_order(oid_0).status is OrderStatus.CANCELLED
    assert mgr.priority(oid_0) is None
    assert mgr.get_order(oid_1).status is not OrderStatus.CANCELLED
    assert mgr.priority(oid_1) == Decimal(200)
    assert mgr.orders_at(100) == [oid_1]


def test_position_is_tracked(setup):
    ob, config = setup
    mgr = OrderManager(config)
    fills = []

    mgr.new_order(_limit(Side.BUY, 10.0, 100.0))
    mgr.update_trade(Event(EVENT_TRADE_SELL, 101, "100.0", "110.0"))
    fills += mgr.update_level(Event(EVENT_UPDATE_LEVEL_BID, 101, "100.0", "10.0"), ob)
    assert mgr.position == Decimal(10)

    mgr.new_order(_limit(Side.SELL, 20.0, 101.0))
    mgr.update_trade(Event(EVENT_TRADE_BUY, 101, "101.0", "120.0"))
    fills += mgr.update_level(Event(EVENT_UPDATE_LEVEL_ASK, 101, "101.0", "10.00"), ob)
    assert mgr.position == Decimal(-10)

    assert fills


def test_order_with_incorrect_lot_size_gets_rounded(setup):
    ob, config = setup
    mgr = OrderManager(config)
    mgr.new_order(_limit(Side.BUY, 100.890923, 100.0))

    mgr.update_trade(Event(EVENT_TRADE_SELL, 101, "100.0", "100.0"))
    fills = mgr.update_level(Event(EVENT_UPDATE_LEVEL_BID, 101, "100.0", "10.0"), ob)

    assert fills
    order = mgr.get_order(0)
    assert order.status is OrderStatus.FILLED
    assert order.qty == Decimal(100)
    assert order.filled_qty == Decimal(90)


def test_cancel_unknown_order_raises(setup):
    _, config = setup
    mgr = OrderManager(config)
    with pytest.raises(OrderError):
        mgr.cancel_order(5)


def test_limit_order_without_price_raises(setup):
    _, config = setup
    mgr = OrderManager(config)
    with pytest.raises(ValueError):
        mgr.new_order(OrderRequest(Side.BUY, 10.0, None, OrderType.LIMIT))


def test_ids_increase_and_working_orders_listed(setup):
    _, config = setup
    mgr = OrderManager(config)
    first = mgr.new_order(_limit(Side.BUY, 10.0, 100.0))
    second = mgr.new_order(OrderRequest(Side.SELL, 5.0, None, OrderType.MARKET))
    assert (first, second) == (0, 1)
    assert mgr.next_order_id == 2
    assert mgr.working_orders() == [0, 1]
    assert mgr.orders_at(0) == [1]
    mgr.cancel_order(first)
    assert mgr.working_orders() == [1]


def test_trade_at_empty_level_touches_nothing(setup):
    _, config = setup
    mgr = OrderManager(config)
    mgr.new_order(_limit(Side.BUY, 10.0, 100.0))
    assert mgr.update_trade(Event(EVENT_TRADE_SELL, 101, "99.0", "5.0")) == []
    assert mgr.priority(0) == Decimal(10)