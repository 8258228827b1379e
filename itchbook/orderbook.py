"""Order book fed by ITCH messages read from a DataFabric."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Optional, TextIO

from .book import OrderBookEngine, OrderInfo, Side
from .fabric import DataFabric
from .itch import MAX_BUFFER_SIZE, ITCHParser, ParseResult, message_length

logger = logging.getLogger(__name__)


@dataclass
class Order:
    """A live order as seen by the book."""

    order_id: int
    price: int
    quantity: int
    side: str
    timestamp: int
    active: bool = True
    book_info: Optional[OrderInfo] = field(default=None, repr=False, compare=False)

    @property
    def book_side(self) -> Side:
        return Side.BID if self.side in ("B", "b") else Side.ASK


@dataclass
class ErrorStats:
    """Counters for malformed input and rejected operations."""

    unknown_message_types: int = 0
    buffer_overflows: int = 0
    incomplete_messages: int = 0
    invalid_operations: int = 0


@dataclass
class MarketDepth:
    """Aggregated (price, quantity) levels on each side, best first."""

    bids: list[tuple[int, int]] = field(default_factory=list)
    asks: list[tuple[int, int]] = field(default_factory=list)


EventCallback = Callable[[str, Order], None]


class OrderBook:
    """Tracks orders and price levels from a stream of ITCH messages."""

    def __init__(self, fabric: DataFabric) -> None:
        self.fabric = fabric
        self._buffer = bytearray()
        self._parser = ITCHParser()
        self._orders: dict[int, Order] = {}
        self._book = OrderBookEngine()
        self._callback: Optional[EventCallback] = None
        self.error_stats = ErrorStats()

    def set_event_callback(self, callback: Optional[EventCallback]) -> None:
        """Register a function called with (event type, order) after each change."""
        self._callback = callback

    def _emit(self, event: str, order: Order) -> None:
        if self._callback is not None:
            self._callback(event, order)

    def process(self) -> None:
        """Drain the fabric and apply every complete message it delivered."""
        for chunk in self.fabric:
            self._buffer.extend(chunk)

        if len(self._buffer) > MAX_BUFFER_SIZE:
            logger.error(
                "Buffer overflow detected (%d bytes). Likely truncated frame or "
                "connection issue. Clearing buffer.",
                len(self._buffer),
            )
            self._buffer.clear()
            self.error_stats.buffer_overflows += 1
            return

        while True:
            result = self._parser.parse_one(self._buffer)
            if result is None:
                if self._buffer:
                    code = self._buffer[0]
                    if message_length(code) == 0:
                        logger.error("Skipping unknown message type byte: 0x%02x", code)
                        del self._buffer[0]
                        self.error_stats.unknown_message_types += 1
                        continue
                    self.error_stats.incomplete_messages += 1
                break
            if result.bytes_consumed == 0:
                break
            self._handle_message(result)
            del self._buffer[: result.bytes_consumed]

    def _handle_message(self, result: ParseResult) -> None:
        if result.type == "A":
            self.add_order(
                Order(result.order_id, result.price, result.quantity, result.side, result.timestamp)
            )
        elif result.type == "X":
            self.cancel_order(result.order_id)
        elif result.type == "E":
            self.execute_order(result.order_id, result.quantity)
        elif result.type == "U":
            self.replace_order(
                result.order_id, result.new_order_id, result.price, result.quantity
            )

    def _insert(self, order: Order) -> Order:
        stored = Order(order.order_id, order.price, order.quantity, order.side, order.timestamp)
        stored.active = order.active
        stored.book_info = self._book.on_add(
            stored.order_id, stored.book_side, stored.price, stored.quantity
        )
        self._orders[stored.order_id] = stored
        return stored

    def add_order(self, order: Order) -> bool:
        """Add a new order; return False if its id is already in use."""
        if order.order_id in self._orders:
            return False
        self._insert(order)
        self._emit("A", order)
        return True

    def cancel_order(self, order_id: int) -> bool:
        """Remove an order entirely; return False if it is unknown."""
        order = self._orders.get(order_id)
        if order is None:
            self.error_stats.invalid_operations += 1
            return False
        if order.book_info is not None:
            self._book.on_cancel(order.book_info)
            order.book_info = None
        order.active = False
        self._emit("X", order)
        del self._orders[order_id]
        return True

    def execute_order(self, order_id: int, quantity: int) -> bool:
        """Reduce an order by an executed quantity, removing it once filled."""
        order = self._orders.get(order_id)
        if order is None or not order.active or order.quantity < quantity:
            self.error_stats.invalid_operations += 1
            return False
        order.quantity -= quantity
        fully_filled = order.quantity == 0
        if fully_filled:
            order.active = False
        if order.book_info is not None:
            self._book.on_execute(order.book_info, quantity)
            if fully_filled:
                order.book_info = None
        self._emit("E", order)
        if fully_filled:
            del self._orders[order_id]
        return True

    def replace_order(
        self, old_order_id: int, new_order_id: int, new_price: int, new_quantity: int
    ) -> bool:
        """Replace an order with a new id, price and size, keeping side and timestamp.

        The old order is removed even when the new id turns out to be taken,
        in which case False is returned.
        """
        old = self._orders.get(old_order_id)
        if old is None or not old.active:
            self.error_stats.invalid_operations += 1
            return False
        if old.book_info is not None:
            self._book.on_cancel(old.book_info)
            old.book_info = None
        del self._orders[old_order_id]

        if new_order_id in self._orders:
            return False
        stored = self._insert(Order(new_order_id, new_price, new_quantity, old.side, old.timestamp))
        self._emit("U", stored)
        return True

    def find_order(self, order_id: int) -> Optional[Order]:
        """Return the active order with this id, or None."""
        order = self._orders.get(order_id)
        if order is None or not order.active:
            return None
        return order

    def order_count(self) -> int:
        return len(self._orders)

    def active_order_count(self) -> int:
        return sum(1 for order in self._orders.values() if order.active)

    def reset_error_stats(self) -> None:
        self.error_stats = ErrorStats()

    def print_orders(self, stream: TextIO) -> None:
        """Write a table of all orders to stream."""
        stream.write(f"OrderBook: {self.active_order_count()} active orders\n")
        stream.write(
            f"{'OrderID':>12}{'Price':>10}{'Quantity':>10}{'Side':>6}"
            f"{'Timestamp':>15}{'Active':>10}\n"
        )
        stream.write("-" * 73 + "\n")
        for order in self._orders.values():
            stream.write(
                f"{order.order_id:>12}{order.price:>10}{order.quantity:>10}"
                f"{order.side:>6}{order.timestamp:>15}"
                f"{'Yes' if order.active else 'No':>10}\n"
            )

    def best_bid(self) -> Optional[tuple[int, int]]:
        """(price, total quantity) of the highest bid level, or None."""
        return self._book.best_bid()

    def best_ask(self) -> Optional[tuple[int, int]]:
        """(price, total quantity) of the lowest ask level, or None."""
        return self._book.best_ask()

    def spread(self) -> Optional[int]:
        """Best ask minus best bid, or None if a side is empty or the market is crossed."""
        bid = self._book.best_bid()
        ask = self._book.best_ask()
        if bid is None or ask is None:
            return None
        if ask[0] <= bid[0]:
            return None
        return ask[0] - bid[0]

    def depth(self, levels: int) -> MarketDepth:
        """Up to `levels` aggregated levels per side."""
        return MarketDepth(
            bids=self._book.top_k_bids(levels), asks=self._book.top_k_asks(levels)
        )