"""Price-level order book: FIFO queues per price on each side of the market."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Iterator, NamedTuple, Optional

from sortedcontainers import SortedDict


class Side(enum.IntEnum):
    """Side of the book an order rests on."""

    BID = 0
    ASK = 1


class Trade(NamedTuple):
    """A fill against a resting order."""

    order_id: int
    quantity: int
    price: int


@dataclass(eq=False)
class OrderNode:
    """A resting order's entry in the FIFO queue of its price level."""

    order_id: int
    quantity: int


@dataclass
class PriceLevel:
    """All resting orders at one price, in arrival order, with their total size."""

    price: int
    total_qty: int = 0
    _orders: dict = field(default_factory=dict, repr=False)

    def append(self, node: OrderNode) -> None:
        self._orders[node] = None
        self.total_qty += node.quantity

    def unlink(self, node: OrderNode) -> bool:
        """Remove a node from the queue without touching the total.

        Returns True when the queue is left empty.
        """
        self._orders.pop(node)
        return not self._orders

    @property
    def head(self) -> Optional[OrderNode]:
        return next(iter(self._orders), None)

    def __iter__(self) -> Iterator[OrderNode]:
        return iter(list(self._orders))

    def __len__(self) -> int:
        return len(self._orders)


@dataclass
class OrderInfo:
    """Where an order sits in the book and how much of it remains."""

    side: Side = Side.BID
    price: int = 0
    quantity: int = 0
    node: Optional[OrderNode] = None


class BookSide:
    """One side of the book: price levels ordered from best to worst."""

    def __init__(self, side: Side) -> None:
        self.side = Side(side)
        self._levels: SortedDict = SortedDict()

    def _best_key(self) -> int:
        return self._levels.peekitem(-1 if self.side is Side.BID else 0)[0]

    def _level_for(self, price: int) -> PriceLevel:
        level = self._levels.get(price)
        if level is None:
            level = PriceLevel(price)
            self._levels[price] = level
        return level

    def add_order(self, order_id: int, price: int, qty: int) -> OrderNode:
        """Queue an order at the tail of its price level and return its node."""
        node = OrderNode(order_id, qty)
        self._level_for(price).append(node)
        return node

    def _remove(self, level: PriceLevel, node: OrderNode) -> None:
        if level.unlink(node):
            del self._levels[level.price]

    def cancel_order(self, node: Optional[OrderNode], price: int) -> None:
        """Take an order off the book; unknown prices are ignored."""
        if node is None:
            return
        level = self._levels.get(price)
        if level is None:
            return
        level.total_qty -= node.quantity
        self._remove(level, node)

    def update_quantity(self, node: Optional[OrderNode], price: int, new_qty: int) -> None:
        """Set an order's remaining size, removing it when that reaches zero."""
        if node is None:
            return
        level = self._levels.get(price)
        if level is None:
            return
        level.total_qty = level.total_qty - node.quantity + new_qty
        node.quantity = new_qty
        if new_qty == 0:
            self._remove(level, node)

    def match_at_best(self, incoming_qty: int) -> tuple[int, list[Trade]]:
        """Fill an aggressive quantity against the best levels in time priority.

        Returns the filled quantity and the trades made.
        """
        filled = 0
        trades: list[Trade] = []
        while incoming_qty > 0 and self._levels:
            level = self._levels[self._best_key()]
            for node in level:
                if incoming_qty <= 0:
                    break
                trade_qty = min(node.quantity, incoming_qty)
                trades.append(Trade(node.order_id, trade_qty, level.price))
                node.quantity -= trade_qty
                level.total_qty -= trade_qty
                incoming_qty -= trade_qty
                filled += trade_qty
                if node.quantity != 0:
                    break
                level.unlink(node)
            if not level:
                del self._levels[level.price]
        return filled, trades

    def is_empty(self) -> bool:
        return not self._levels

    def best_price(self) -> Optional[tuple[int, int]]:
        """Return (price, total quantity) of the best level, or None if empty."""
        if not self._levels:
            return None
        level = self._levels[self._best_key()]
        return level.price, level.total_qty

    def top_k(self, k: int) -> list[tuple[int, int]]:
        """Return up to k (price, total quantity) levels, best first."""
        if k <= 0:
            return []
        levels = self._levels.values()
        ordered = reversed(levels) if self.side is Side.BID else iter(levels)
        result: list[tuple[int, int]] = []
        for level in ordered:
            if len(result) >= k:
                break
            if level.total_qty > 0:
                result.append((level.price, level.total_qty))
        return result


class OrderBookEngine:
    """Both sides of the book together."""

    def __init__(self) -> None:
        self.bids = BookSide(Side.BID)
        self.asks = BookSide(Side.ASK)

    def _book(self, side: Side) -> BookSide:
        return self.bids if side is Side.BID else self.asks

    def on_add(self, order_id: int, side: Side, price: int, qty: int) -> OrderInfo:
        """Add a resting order and return its book entry."""
        side = Side(side)
        node = self._book(side).add_order(order_id, price, qty)
        return OrderInfo(side=side, price=price, quantity=qty, node=node)

    def on_cancel(self, info: OrderInfo) -> None:
        """Remove the order described by info from the book."""
        if info.node is None:
            return
        self._book(info.side).cancel_order(info.node, info.price)
        info.node = None
        info.quantity = 0

    def on_execute(self, info: OrderInfo, executed_qty: int) -> None:
        """Reduce an order by an executed quantity; over-executions are ignored."""
        if info.node is None or info.quantity < executed_qty:
            return
        new_qty = info.quantity - executed_qty
        info.quantity = new_qty
        self._book(info.side).update_quantity(info.node, info.price, new_qty)
        if new_qty == 0:
            info.node = None

    def on_aggressive(self, taking_side: Side, qty: int) -> tuple[int, list[Trade]]:
        """Match an incoming order against the opposite side."""
        opposite = self.asks if Side(taking_side) is Side.BID else self.bids
        return opposite.match_at_best(qty)

    def best_bid(self) -> Optional[tuple[int, int]]:
        return self.bids.best_price()

    def best_ask(self) -> Optional[tuple[int, int]]:
        return self.asks.best_price()

    def top_k_bids(self, k: int) -> list[tuple[int, int]]:
        return self.bids.top_k(k)

    def top_k_asks(self, k: int) -> list[tuple[int, int]]:
        return self.asks.top_k(k)