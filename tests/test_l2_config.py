from datetime import timedelta
from decimal import Decimal

import pytest

from rosharbt.exchanges.hyperliquid import HyperliquidParser
from rosharbt.l2.config import L2Config, L2Order
from rosharbt.types import OrderStatus, OrderType, Side


def make_config(**overrides):
    values = dict(
        tick_size=0.01, lot_size=1.0, start_ts=100, return_window=1, parser=HyperliquidParser()
    )
    values.update(overrides)
    return L2Config(**values)


def test_defaults_match_builder():
    config = make_config()
    assert config.lines_read_per_tick == 100
    assert config.order_buffer_start_size == 100
    assert config.tick_fill_tracker_start_size == 10
    assert config.risk_free_rate == Decimal("0.02")


def test_floats_become_exact_decimals():
    config = make_config()
    assert config.tick_size == Decimal("0.01")
    assert config.lot_size == Decimal("1.0")


def test_return_window_seconds_become_timedelta():
    config = make_config(return_window=3600)
    assert config.return_window == timedelta(seconds=3600)


def test_timedelta_window_kept():
    window = timedelta(minutes=5)
    assert make_config(return_window=window).return_window == window


def test_missing_parser_rejected():
    with pytest.raises(TypeError):
        L2Config(tick_size=0.01, lot_size=1.0, start_ts=100, return_window=1)


@pytest.mark.parametrize("field", ["tick_size", "lot_size"])
def test_non_positive_sizes_rejected(field):
    with pytest.raises(ValueError):
        make_config(**{field: 0.0})


def test_non_finite_tick_size_rejected():
    with pytest.raises(ValueError):
        make_config(tick_size=float("nan"))


def test_order_is_mutable_record():
    order = L2Order(
        id=0,
        side=Side.BUY,
        qty=Decimal(100),
        filled_qty=Decimal(0),
        order_px=Decimal(100),
        order_tick=100,
        exec_px=Decimal(0),
        exec_tick=0,
        typ=OrderType.LIMIT,
        status=OrderStatus.WORKING,
    )
    order.status = OrderStatus.FILLED
    order.filled_qty = Decimal(100)
    assert order.status is OrderStatus.FILLED
    assert order.filled_qty == order.qty