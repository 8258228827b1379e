import pytest

from itchbook.book import BookSide, OrderBookEngine, OrderInfo, Side, Trade


@pytest.fixture
def engine():
    return OrderBookEngine()


def test_empty_side_has_no_best_price():
    side = BookSide(Side.BID)
    assert side.is_empty()
    assert side.best_price() is None
    assert side.top_k(5) == []


def test_bid_best_is_highest_price():
    side = BookSide(Side.BID)
    side.add_order(1, 100, 10)
    side.add_order(2, 105, 20)
    side.add_order(3, 95, 30)
    assert side.best_price() == (105, 20)


def test_ask_best_is_lowest_price():
    side = BookSide(Side.ASK)
    side.add_order(1, 100, 10)
    side.add_order(2, 105, 20)
    side.add_order(3, 95, 30)
    assert side.best_price() == (95, 30)


def test_same_price_aggregates_quantity():
    side = BookSide(Side.ASK)
    side.add_order(1, 100, 10)
    side.add_order(2, 100, 25)
    assert side.best_price() == (100, 10 + 25)


def test_top_k_order_and_limit():
    bids = BookSide(Side.BID)
    asks = BookSide(Side.ASK)
    for oid, price in enumerate([100, 102, 101, 99]):
        bids.add_order(oid, price, 5)
        asks.add_order(oid, price, 5)
    assert bids.top_k(3) == [(102, 5), (101, 5), (100, 5)]
    assert asks.top_k(2) == [(99, 5), (100, 5)]
    assert bids.top_k(0) == []
    assert len(asks.top_k(10)) == 4


def test_cancel_removes_empty_level():
    side = BookSide(Side.BID)
    node = side.add_order(1, 100, 10)
    side.cancel_order(node, 100)
    assert side.is_empty()


def test_cancel_keeps_other_orders_at_level():
    side = BookSide(Side.BID)
    first = side.add_order(1, 100, 10)
    side.add_order(2, 100, 7)
    side.cancel_order(first, 100)
    assert side.best_price() == (100, 7)


def test_cancel_none_or_unknown_price_is_ignored():
    side = BookSide(Side.ASK)
    node = side.add_order(1, 100, 10)
    side.cancel_order(None, 100)
    side.cancel_order(node, 200)
    assert side.best_price() == (100, 10)


def test_update_quantity_changes_total():
    side = BookSide(Side.ASK)
    node = side.add_order(1, 100, 10)
    side.add_order(2, 100, 5)
    side.update_quantity(node, 100, 4)
    assert node.quantity == 4
    assert side.best_price() == (100, 4 + 5)


def test_update_quantity_to_zero_removes_order():
    side = BookSide(Side.ASK)
    node = side.add_order(1, 100, 10)
    side.update_quantity(node, 100, 0)
    assert side.is_empty()


def test_match_fifo_within_level():
    side = BookSide(Side.ASK)
    side.add_order(1, 100, 10)
    side.add_order(2, 100, 10)
    filled, trades = side.match_at_best(15)
    assert filled == 15
    assert trades == [Trade(1, 10, 100), Trade(2, 5, 100)]
    assert side.best_price() == (100, 5)


def test_match_sweeps_levels_best_first():
    side = BookSide(Side.BID)
    side.add_order(1, 100, 10)
    side.add_order(2, 101, 10)
    filled, trades = side.match_at_best(50)
    assert filled == 20
    assert [t.price for t in trades] == [101, 100]
    assert side.is_empty()


def test_match_on_empty_side_fills_nothing():
    side = BookSide(Side.ASK)
    assert side.match_at_best(10) == (0, [])


def test_engine_add_returns_info(engine):
    info = engine.on_add(7, Side.BID, 100, 30)
    assert info.side is Side.BID
    assert info.price == 100
    assert info.quantity == 30
    assert info.node.order_id == 7
    assert engine.best_bid() == (100, 30)
    assert engine.best_ask() is None


def test_engine_cancel_clears_info(engine):
    info = engine.on_add(7, Side.ASK, 100, 30)
    engine.on_cancel(info)
    assert info.node is None
    assert info.quantity == 0
    assert engine.best_ask() is None


def test_engine_cancel_without_node_is_ignored(engine):
    engine.on_add(1, Side.ASK, 100, 30)
    info = OrderInfo(side=Side.ASK, price=100, quantity=30)
    engine.on_cancel(info)
    assert info.quantity == 30
    assert engine.best_ask() == (100, 30)


def test_engine_partial_and_full_execute(engine):
    info = engine.on_add(1, Side.BID, 100, 50)
    engine.on_execute(info, 20)
    assert info.quantity == 50 - 20
    assert engine.best_bid() == (100, 50 - 20)
    engine.on_execute(info, 30)
    assert info.node is None
    assert engine.best_bid() is None


def test_engine_over_execute_is_ignored(engine):
    info = engine.on_add(1, Side.BID, 100, 50)
    engine.on_execute(info, 51)
    assert info.quantity == 50
    assert engine.best_bid() == (100, 50)


def test_engine_aggressive_hits_opposite_side(engine):
    engine.on_add(1, Side.ASK, 101, 10)
    engine.on_add(2, Side.BID, 99, 10)
    filled, trades = engine.on_aggressive(Side.BID, 4)
    assert filled == 4
    assert trades == [Trade(1, 4, 101)]
    assert engine.best_bid() == (99, 10)
    filled, trades = engine.on_aggressive(Side.ASK, 10)
    assert trades == [Trade(2, 10, 99)]
    assert engine.best_bid() is None


def test_engine_top_k(engine):
    engine.on_add(1, Side.BID, 99, 1)
    engine.on_add(2, Side.BID, 98, 2)
    engine.on_add(3, Side.ASK, 101, 3)
    engine.on_add(4, Side.ASK, 102, 4)
    assert engine.top_k_bids(5) == [(99, 1), (98, 2)]
    assert engine.top_k_asks(1) == [(101, 3)]


def test_trade_fields():
    trade = Trade(order_id=5, quantity=3, price=100)
    order_id, quantity, price = trade
    assert (order_id, quantity, price) == (5, 3, 100)


def test_side_values_match_wire_codes():
    assert Side(0) is Side.BID
    assert Side(1) is Side.ASK