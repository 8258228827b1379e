# itchbook

An order book that takes a stream of ITCH 5.0 style order messages and keeps
the active orders. The supported messages are Add (`A`), Cancel (`X`),
Execute (`E`) and Replace (`U`). The book sorts the orders into bid and ask
price levels, and each level is a FIFO queue in arrival order.

Bytes reach the book through `DataFabric`, a bounded FIFO of byte chunks.
When a chunk does not fit, `write_chunk` refuses the whole chunk, returns
`False` and counts a backpressure event.

## Installation

```
pip install .
```

The only runtime dependency is `sortedcontainers`.

## Modules

- `itchbook.fabric`: `DataFabric` and its `FIFOStats` counters.
  - The default capacity is 4096 bytes.
  - The counters cover backpressure events, bytes written, dropped and read, and the high-water mark.
- `itchbook.itch`: `ITCHParser.parse_one` decodes the message at the front of a buffer into a `ParseResult`. `message_length` gives the size of a message type.
- `itchbook.messages`: `build_add_order`, `build_cancel_order`, `build_execute_order` and `build_replace_order` build the matching messages as `bytes`. The stock locate and tracking fields are zero.
- `itchbook.orderbook`: `OrderBook`, which reads from a `DataFabric`. Also `Order`, `ErrorStats` and `MarketDepth`.
- `itchbook.book`: the price-level engine. It holds `Side`, `BookSide`, `OrderBookEngine`, `OrderInfo` and `Trade`.

## Usage

```python
from itchbook.fabric import DataFabric
from itchbook.orderbook import OrderBook
from itchbook.messages import build_add_order, build_execute_order

fabric = DataFabric(4096)
book = OrderBook(fabric)

fabric.write_chunk(build_add_order(12345, 10000, 50, "B", 1_000_000))
fabric.write_chunk(build_add_order(12346, 10050, 100, "S", 1_000_100))
fabric.write_chunk(build_execute_order(12345, 20))
book.process()

print(book.best_bid())   # (10000, 30)
print(book.best_ask())   # (10050, 100)
print(book.spread())     # 50
print(book.depth(5))     # MarketDepth(bids=[(10000, 30)], asks=[(10050, 100)])
```

`process()` drains the fabric and applies every complete message in it. A
message can arrive split across several chunks. The book keeps the partial
bytes until a later `process()` call completes them.

If more than 512 unparsed bytes accumulate, the book clears its buffer and
counts a buffer overflow.

These `OrderBook` methods can also be called directly:

- `add_order`
- `cancel_order`
- `execute_order`
- `replace_order`

Each returns `True` or `False`. A replace keeps the old order's side and
timestamp. `find_order` returns the active `Order` with a given id, or `None`.

`book.error_stats` counts four kinds of problem:

- bytes skipped because their message type is unknown
- buffer overflows
- incomplete messages that are still waiting for data
- invalid operations, such as cancelling an unknown order or executing more than remains

`reset_error_stats()` sets these counters back to zero. Parse problems are
also reported through the standard `logging` module.

`set_event_callback(fn)` registers a function. After each change it is called
with the event type (`"A"`, `"X"`, `"E"` or `"U"`) and the `Order`.
`print_orders(stream)` writes a table of all orders.

To match a taker quantity against the resting orders on the opposite side,
use `OrderBookEngine.on_aggressive(side, qty)` from `itchbook.book`. It
returns the filled quantity and a list of `Trade(order_id, quantity, price)`.

## Command line

```
itchbook [--log PATH]
```

This runs a demonstration session that covers:

- chunked delivery
- execute, cancel and replace
- a batch of adds
- market data queries
- error handling
- FIFO backpressure

It prints the report to standard output and writes the same report to the log
file. The default log file is `../debug/orderbook_verification_test_results.log`.
The command creates the log file's directory if it does not exist. If the file
cannot be opened, the command exits with status 1.

## What it does not do

- It does not connect to a market data feed. Bytes must be written into a `DataFabric` by your own code.
- It decodes only the four order messages listed above. Any other message type byte is skipped.
- Messages read from the fabric only update resting orders. No crossing or matching happens on their account. Matching is available only through `OrderBookEngine.on_aggressive`.
- Nothing is stored between runs.