"""Command-line walkthrough that feeds ITCH messages through a fabric into an order book."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Optional, Sequence, TextIO

from .fabric import DataFabric
from .messages import (
    build_add_order,
    build_cancel_order,
    build_execute_order,
    build_replace_order,
)
from .orderbook import Order, OrderBook

DEFAULT_LOG_PATH = Path("../debug/orderbook_verification_test_results.log")

_EVENT_NAMES = {"A": "ADD", "X": "CANCEL", "E": "EXECUTE", "U": "REPLACE"}


class _Tee:
    """Writes everything to several text streams at once."""

    def __init__(self, *streams: TextIO) -> None:
        self._streams = streams

    def write(self, text: str) -> int:
        for stream in self._streams:
            stream.write(text)
        return len(text)

    def flush(self) -> None:
        for stream in self._streams:
            stream.flush()


def _event_printer(out: _Tee):
    def on_event(event: str, order: Order) -> None:
        name = _EVENT_NAMES.get(event, "UNKNOWN")
        out.write(
            f"[EVENT] {name} - Order {order.order_id} | Price: {order.price}"
            f" | Qty: {order.quantity} | Side: {order.side}"
            f" | Timestamp: {order.timestamp}"
            f" | Active: {'Yes' if order.active else 'No'}\n"
        )

    return on_event


def _outcome(ok: bool, kind: str) -> str:
    return "Success" if ok else "Failed (expected)"


def _run(out: _Tee, log_path: Path) -> None:
    out.write("=== OrderBook with Data Fabric Simulation ===\n")
    out.write("Test Run Date: 2025-11-30\n")
    out.write(f"Log File: {log_path}\n\n")

    fabric = DataFabric()
    book = OrderBook(fabric)
    book.set_event_callback(_event_printer(out))

    # Add orders, the first one delivered in two chunks.
    out.write("--- Test 1: Add Orders (with chunking) ---\n")
    msg1 = build_add_order(12345, 10000, 50, "B", 1000000)
    msg2 = build_add_order(12346, 10050, 100, "S", 1000100)

    fabric.write_chunk(msg1[:10])
    book.process()
    out.write(f"After chunk 1: {book.active_order_count()} orders\n")

    fabric.write_chunk(msg1[10:])
    book.process()
    out.write(f"After chunk 2: {book.active_order_count()} orders\n")

    fabric.write_chunk(msg2)
    book.process()
    out.write(f"After msg2: {book.active_order_count()} orders\n\n")

    out.write("--- Test 2: Execute Partial Order ---\n")
    fabric.write_chunk(build_execute_order(12345, 20))
    book.process()
    order = book.find_order(12345)
    if order is not None:
        out.write(f"Order 12345 after execution: qty={order.quantity}\n\n")

    out.write("--- Test 3: Cancel Order ---\n")
    fabric.write_chunk(build_cancel_order(12346))
    book.process()
    out.write(f"After cancel: {book.active_order_count()} active orders\n\n")

    out.write("--- Test 4: Order Replace ---\n")
    out.write("Before replace:\n")
    old_order = book.find_order(12345)
    if old_order is not None:
        out.write(f"  Order 12345: price={old_order.price}, qty={old_order.quantity}\n")

    fabric.write_chunk(build_replace_order(12345, 12347, 10050, 100, 3500000))
    book.process()

    out.write("After replace:\n")
    old_order = book.find_order(12345)
    out.write(f"  Order 12345 exists: {'Yes' if old_order is not None else 'No'}\n")
    new_order = book.find_order(12347)
    if new_order is not None:
        out.write(f"  Order 12347: price={new_order.price}, qty={new_order.quantity}\n")
    out.write("\n")

    out.write("--- Test 5: Batch Add Orders ---\n")
    for order_id in range(20000, 20005):
        fabric.write_chunk(
            build_add_order(order_id, 9900 + order_id % 10, 10, "B", 2000000 + order_id)
        )
    for order_id in range(30000, 30005):
        fabric.write_chunk(
            build_add_order(order_id, 10100 + order_id % 10, 15, "S", 3000000 + order_id)
        )
    book.process()
    out.write(
        f"Total orders: {book.order_count()} | Active: {book.active_order_count()}\n\n"
    )

    out.write("--- Test 6: Market Data Queries ---\n")
    bid = book.best_bid()
    if bid is not None:
        out.write(f"Best Bid: {bid[0]} @ {bid[1]}\n")
    ask = book.best_ask()
    if ask is not None:
        out.write(f"Best Ask: {ask[0]} @ {ask[1]}\n")
    spread = book.spread()
    if spread is not None:
        out.write(f"Spread: {spread}\n")

    out.write("\nMarket Depth (Top 5 levels):\n")
    depth = book.depth(5)
    out.write("  BIDS:\n")
    for price, qty in depth.bids:
        out.write(f"    {price} @ {qty}\n")
    out.write("  ASKS:\n")
    for price, qty in depth.asks:
        out.write(f"    {price} @ {qty}\n")
    out.write("\n")

    out.write("--- Test 7: Error Handling ---\n")
    book.reset_error_stats()

    out.write("Test 7a: Unknown message type\n")
    fabric.write_chunk(bytes([0xFF, 0x01, 0x02, 0x03]))
    book.process()
    out.write(f"  Unknown message types: {book.error_stats.unknown_message_types}\n")

    out.write("Test 7b: Buffer overflow (simulated large garbage data)\n")
    fabric.write_chunk(bytes([0xAA]) * 600)
    book.process()
    out.write(f"  Buffer overflows: {book.error_stats.buffer_overflows}\n")

    out.write("Test 7c: Incomplete message handling\n")
    partial_add = build_add_order(99999, 15000, 200, "B", 5000000)
    fabric.write_chunk(partial_add[:15])
    book.process()
    out.write(
        "  Incomplete messages (waiting for data): "
        f"{book.error_stats.incomplete_messages}\n"
    )
    fabric.write_chunk(partial_add[15:])
    book.process()
    out.write(
        f"  Message completed successfully, order count: {book.order_count()}\n"
    )

    out.write("Test 7d: Invalid operations (cancel non-existent order)\n")
    before = book.error_stats.invalid_operations
    ok = book.cancel_order(999999)
    out.write(f"  Cancel result: {_outcome(ok, 'cancel')}\n")
    out.write(f"  Invalid operations: {book.error_stats.invalid_operations - before} new\n")

    out.write("Test 7e: Execute with excessive quantity\n")
    before = book.error_stats.invalid_operations
    ok = book.execute_order(99999, 10000)
    out.write(f"  Execute result: {_outcome(ok, 'execute')}\n")
    out.write(f"  Invalid operations: {book.error_stats.invalid_operations - before} new\n")

    out.write("Test 7f: Replace non-existent order\n")
    before = book.error_stats.invalid_operations
    ok = book.replace_order(888888, 888889, 12000, 50)
    out.write(f"  Replace result: {_outcome(ok, 'replace')}\n")
    out.write(f"  Invalid operations: {book.error_stats.invalid_operations - before} new\n")

    stats = book.error_stats
    out.write("\nFinal Error Statistics:\n")
    out.write(f"  Unknown message types: {stats.unknown_message_types}\n")
    out.write(f"  Buffer overflows: {stats.buffer_overflows}\n")
    out.write(f"  Incomplete messages: {stats.incomplete_messages}\n")
    out.write(f"  Invalid operations: {stats.invalid_operations}\n")
    out.write("\n")

    out.write("--- Test 8: FIFO Backpressure ---\n")
    small_fabric = DataFabric(256)
    small_book = OrderBook(small_fabric)
    out.write("FIFO Configuration: 256 bytes max\n")

    accepted = 0
    refused = 0
    for i in range(20):
        msg = build_add_order(80000 + i, 10000 + i * 10, 100, "B", 8000000 + i)
        if small_fabric.write_chunk(msg):
            accepted += 1
        else:
            refused += 1

    out.write("Attempted writes: 20 messages (720 bytes total)\n")
    out.write(f"Successful writes: {accepted} messages\n")
    out.write(f"Backpressure events: {refused} (FIFO full)\n")

    fifo_stats = small_fabric.stats
    out.write("\nFIFO Statistics:\n")
    out.write(f"  Current depth: {small_fabric.depth_bytes()} bytes\n")
    out.write(f"  Utilization: {small_fabric.utilization() * 100:g}%\n")
    out.write(f"  High-water mark: {fifo_stats.max_depth_reached} bytes\n")
    out.write(f"  Total bytes written: {fifo_stats.total_bytes_written}\n")
    out.write(f"  Total bytes dropped: {fifo_stats.total_bytes_dropped}\n")
    out.write(f"  Backpressure events: {fifo_stats.backpressure_events}\n")

    out.write("\nDraining FIFO...\n")
    small_book.process()
    out.write(f"After processing: {small_book.order_count()} orders added\n")
    out.write(f"FIFO depth after drain: {small_fabric.depth_bytes()} bytes\n")
    out.write("\n")

    out.write("--- Final OrderBook State ---\n")
    book.print_orders(out)

    out.write("\n=== Test Run Complete ===\n")
    out.write(f"Results saved to: {log_path}\n")


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the order book walkthrough, echoing its report to stdout and a log file."""
    parser = argparse.ArgumentParser(
        prog="itchbook",
        description="Feed sample ITCH messages through a data fabric into an order book.",
    )
    parser.add_argument(
        "--log",
        type=Path,
        default=DEFAULT_LOG_PATH,
        help="file the report is also written to (default: %(default)s)",
    )
    args = parser.parse_args(argv)
    log_path: Path = args.log

    try:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        logfile = log_path.open("w", encoding="utf-8")
    except OSError:
        print("ERROR: Could not open log file for writing", file=sys.stderr)
        return 1

    with logfile:
        _run(_Tee(sys.stdout, logfile), log_path)
    return 0


if __name__ == "__main__":
    sys.exit(main())