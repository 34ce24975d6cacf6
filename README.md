# rosharbt

Backtesting of trading strategies against recorded exchange market data.

`rosharbt` replays recorded exchange messages through a simulated exchange.
The input has one JSON message per line. Your strategy places orders, and
the backtest reports when they fill, what position you hold and how that
position performed.

There are two levels of simulation:

- **Level 1** (`rosharbt.l1`) keeps a single best price, which it takes
  from candle data. Market orders fill in full at once at that price.
- **Level 2** (`rosharbt.l2`) keeps the full depth of book on both sides.
  - A market order fills only if the best opposite level holds enough
    quantity.
  - A limit order rests in a simulated queue. Its place in the queue moves
    as trades print and as its level shrinks. `LevelChgFill`, a
    probabilistic queue-position model, drives this.

## Installation

```
pip install rosharbt
```

With the test dependencies:

```
pip install "rosharbt[test]"
```

## Prices, ticks and lots (`rosharbt.types`)

Inside the simulation, prices and quantities are `decimal.Decimal` values.

```python
from decimal import Decimal
from rosharbt.types import price_to_tick, tick_to_price, lot_size_floor

price_to_tick(Decimal("10.0111234154"), Decimal("0.01"))   # 1001
tick_to_price(1001, Decimal("0.01"))                       # Decimal("10.01")
lot_size_floor(Decimal("100.547807"), Decimal("1"))        # Decimal("100")
```

- `price_to_tick` rounds to the nearest tick, with ties going to the even
  tick.
- `tick_to_price` rounds the result to the number of decimal places in the
  tick size.
- `lot_size_floor` always rounds down.

The module also defines these types:

- `Event(typ, ts, px, qty)`: one market event. `px` and `qty` stay strings,
  exactly as the feed sent them. The event type combines a `TypFlag` with
  an `AttFlag`. The combinations have named constants, such as
  `EVENT_UPDATE_LEVEL_BID`, `EVENT_TRADE_SELL`, `EVENT_CLEAR_SIDE_ASK` and
  `EVENT_CANDLE`.
- `OrderRequest(side, qty, px, typ)`: an order as the user submits it.
  - `side` is a `Side`: `BUY` or `SELL`.
  - `typ` is an `OrderType`: `MARKET` or `LIMIT`.
  - `px` is `None` for market orders.
- `OrderStatus`: `WORKING`, `FILLED` or `CANCELLED`.
- `Candle`: high, low, open, close and time. `Candle.from_strings(...)`
  raises `ValueError` on bad input.
- `EndOfData`: raised by a backtest once its input is used up.

## Exchange messages (`rosharbt.exchanges`)

Every message class has `from_json(data)` and `to_events()`. `data` may be
a JSON string, bytes or an already decoded mapping. Malformed messages
raise `MessageParseError`, a subclass of `ValueError`.

| Module | Classes |
| --- | --- |
| `rosharbt.exchanges.hyperliquid` | `HyperliquidBookMessage`, `HyperliquidTradesMessage`, `HyperliquidCandleMessage` (which also has `to_candle()`) |
| `rosharbt.exchanges.bybit` | `ByBitDepthMessage`, `ByBitTradesMessage`; `ByBitMessage.to_json()` builds a request |
| `rosharbt.exchanges.kraken` | `KrakenBookSnapshotMessage`, `KrakenBookDeltaMessage`, `KrakenTradeSnapshotMessage` |

Two line parsers read recorded Hyperliquid files. Each recorded line starts
with a 20-character receive-timestamp prefix, which the parsers skip.

- `HyperliquidParser().parse_line(line)` reads a book snapshot or trade
  line and returns its events. A book snapshot yields clear-side events,
  then every bid level, then every ask level.
- `HyperliquidCandleParser` holds the latest candle for each coin. It
  returns data for a candle only once a later message for that coin has a
  different end time.
  - `parse_line` returns the completed candle's `EVENT_CANDLE` event.
  - `parse_candle` returns the completed candle as a `Candle`.
  - The two methods keep separate state.

## Level 1 backtests (`rosharbt.l1`)

```python
from rosharbt.exchanges.hyperliquid import HyperliquidCandleParser
from rosharbt.l1.backtest import L1Backtest
from rosharbt.l1.config import L1Config
from rosharbt.types import OrderRequest, OrderType, Side

lines = [
    '1000000000000000000 {"channel":"candle","data":{"T":100,"c":"100.0","h":"100.0","i":"1m","l":"100.0","n":1,"o":"100.0","s":"AAVE","t":100,"v":"0.21"}}',
    '1010000000000000000 {"channel":"candle","data":{"T":101,"c":"104.0","h":"104.0","i":"1m","l":"104.0","n":1,"o":"104.0","s":"AAVE","t":101,"v":"0.21"}}',
    '1020000000000000000 {"channel":"candle","data":{"T":102,"c":"106.0","h":"106.0","i":"1m","l":"106.0","n":1,"o":"106.0","s":"AAVE","t":102,"v":"0.21"}}',
]

config = L1Config(tick_size=0.1, start_ts=100, return_window=1,
                  parser=HyperliquidCandleParser())
bt = L1Backtest(config, lines)
bt.elapse(1)
oid = bt.execute_market_order(OrderRequest(Side.BUY, 50.0, None, OrderType.MARKET))
bt.get_order(oid).exec_px   # filled at 104
bt.position                 # Decimal("50.0")
```

`L1Config` takes the following settings:

| Setting | Meaning |
| --- | --- |
| `tick_size` | Required. Must be positive. |
| `start_ts` | Required. |
| `return_window` | Required. Seconds or a `timedelta`. |
| `parser` | Required. |
| `lines_read_per_tick` | Optional. Default 100. |
| `risk_free_rate` | Optional. Default 0.02. |

Invalid settings raise `ValueError`.

`L1Backtest` provides the following:

- `step()` processes one event, then records the position and mid price in
  `performance`.
- `elapse(duration)` processes every event up to `duration` past the
  current time. It does not record performance.
- Both raise `EndOfData` when the input runs out.
- `execute_market_order(order)` fills the order in full at the best
  opposite price and updates `position`.
- `bbo()` returns the best bid and ask as floats.
- `get_order(oid)` returns a copy of the `L1Order`, or `None`.
- `chart_data()` returns the recorded history as a `ChartData`.
- `generate_chart(output_path)` writes the multi-panel chart. On failure
  it raises `RuntimeError`.

## Level 2 backtests (`rosharbt.l2`)

```python
from rosharbt.exchanges.hyperliquid import HyperliquidParser
from rosharbt.l2.backtest import L2Backtest
from rosharbt.l2.config import L2Config
from rosharbt.types import OrderRequest, OrderType, Side

config = L2Config(tick_size=0.01, lot_size=1.0, start_ts=100,
                  return_window=1, parser=HyperliquidParser())
with open("book_and_trades.txt") as lines:
    bt = L2Backtest(config, lines)
    bt.submit_order(OrderRequest(Side.BUY, 10.0, 9.99, OrderType.LIMIT))
    bt.elapse(1000)
    bt.working_orders(), bt.last_trades, bt.position
```

`L2Config` takes the same settings as `L1Config`, plus a required positive
`lot_size`.

### `L2Backtest`

- `submit_order(req)` stamps the request with the current time and queues
  it. During `elapse`, an order reaches the exchange once its time plus the
  `LatencyModel` delay has passed. The only model is
  `LatencyModel.INSTANT`, with a delay of 0.
- `elapse(duration)` applies book, trade and clear events up to
  `duration` past the current time. It raises `EndOfData` when the input
  runs out first.
- `last_trades` holds the ids of orders filled during the most recent
  `elapse`.
- `cancel_order(oid)` cancels an order.
- `get_order(oid)` returns a copy of the `L2Order`.
- `orders_at(price)` lists the ids of orders resting at a price.
- `working_orders()` lists the ids of orders that are still working.
- `bbo()` returns the best bid and ask as floats.
- `position` is a float.
- `next_order_id` is the id the next order will receive.
- `update_performance_metrics()` records the current position and mid
  price.

Quantities are rounded down to the lot size.

### Lower-level classes

| Class | Role |
| --- | --- |
| `L2Exchange` (`rosharbt.l2.exchange`) | Applies events to an `L2OrderBook` and matches market orders against it. |
| `OrderManager` (`rosharbt.l2.manager`) | Tracks orders, their ticks, their fills and the position. |
| `LevelChgFill` (`rosharbt.l2.fill`) | Estimates each limit order's queue priority, meaning the quantity ahead of it. A negative priority means the order has filled. |

Any object matching the `FillModel` protocol can be passed to
`L2Exchange` or `OrderManager` in place of `LevelChgFill`.

Cancelling an unknown order raises `OrderError`.

## Performance and charts

`PerformanceMetrics` (`rosharbt.performance`) keeps the recorded history:

- `prices`
- `positions`
- `returns`
- `cumulative_returns`
- `cumulative_return`

Each return is the position held before an update multiplied by the
relative price change at that update. `sharpe_ratio()` annualises the
returns over `return_window`. It returns 0 when there are no returns or
when the returns do not vary.

`ChartData` (`rosharbt.chart`) builds charts from that history with
matplotlib:

- `ChartData.from_performance(performance)` builds the series.
- `create_chart(output_path, title)` draws price alone.
- `create_multi_chart(output_path)` draws two panels. The first shows
  price with cumulative return on a second axis. The second shows
  position.
- Both raise `ValueError` when there are no points.
- `time_range()`, `price_range()`, `cumulative_return_range()` and
  `position_range()` give the axis ranges. All except `time_range()`
  include padding.

## What the package does not do

- It has no input layer of its own. A backtest reads any iterable of
  lines, such as a list, an open file or `gzip.open(path, "rt")`. It does
  not itself open compressed files or fetch data from remote storage.
- It does not connect to live exchange feeds.
- It has no command-line program. You use it as a library.
- The level 2 backtest has no `step()` and no chart helper. It is driven
  only by `elapse`.