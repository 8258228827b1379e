import struct

import pytest

from itchbook import itch
from itchbook.itch import ITCHParser, message_length
from itchbook.messages import (
    build_add_order,
    build_cancel_order,
    build_execute_order,
    build_replace_order,
)


@pytest.fixture
def parser():
    return ITCHParser()


@pytest.mark.parametrize(
    "msg_type, length",
    [("A", 36), ("X", 23), ("E", 31), ("U", 35), (ord("A"), 36), ("Z", 0), (0xFF, 0)],
)
def test_message_length(msg_type, length):
    assert message_length(msg_type) == length


def test_parse_first_message_of_long_buffer(parser):
    msg = build_add_order(1, 2, 3, "B", 4)
    result = parser.parse_one(msg + bytes(itch.MAX_BUFFER_SIZE))
    assert result.bytes_consumed == 36
    assert (result.order_id, result.price, result.quantity) == (1, 2, 3)


def test_empty_buffer(parser):
    assert parser.parse_one(b"") is None


def test_unknown_type(parser):
    assert parser.parse_one(bytes([0xFF, 0x01, 0x02, 0x03])) is None


def test_incomplete_message(parser):
    msg = build_add_order(99999, 15000, 200, "B", 5000000)
    assert parser.parse_one(msg[:15]) is None
    assert parser.parse_one(msg[:-1]) is None


def test_parse_add(parser):
    msg = build_add_order(12345, 10000, 50, "B", 1000000)
    result = parser.parse_one(msg)
    assert result.type == "A"
    assert result.bytes_consumed == len(msg) == 36
    assert result.order_id == 12345
    assert result.price == 10000
    assert result.quantity == 50
    assert result.side == "B"
    assert result.timestamp == 1000000


def test_parse_add_hand_built(parser):
    raw = (
        b"A"
        + b"\x00" * 4
        + (7).to_bytes(6, "little")
        + struct.pack("<Q", 42)
        + b"S"
        + struct.pack("<I", 15)
        + b"TEST    "
        + struct.pack("<I", 10100)
    )
    result = parser.parse_one(raw)
    assert (result.order_id, result.side, result.quantity, result.price, result.timestamp) == (
        42,
        "S",
        15,
        10100,
        7,
    )


def test_parse_cancel(parser):
    result = parser.parse_one(build_cancel_order(12346, 5))
    assert result.type == "X"
    assert result.bytes_consumed == 23
    assert result.order_id == 12346
    assert result.quantity == 5
    assert result.timestamp == 0


def test_parse_execute(parser):
    result = parser.parse_one(build_execute_order(12345, 20))
    assert result.type == "E"
    assert result.bytes_consumed == 31
    assert result.order_id == 12345
    assert result.quantity == 20


def test_parse_replace(parser):
    result = parser.parse_one(build_replace_order(12345, 12347, 10050, 100, 3500000))
    assert result.type == "U"
    assert result.bytes_consumed == 35
    assert result.order_id == 12345
    assert result.new_order_id == 12347
    assert result.price == 10050
    assert result.quantity == 100
    assert result.timestamp == 3500000


def test_parse_only_first_of_several(parser):
    first = build_execute_order(1, 2)
    second = build_cancel_order(3)
    result = parser.parse_one(first + second)
    assert result.type == "E"
    assert result.bytes_consumed == len(first)
    rest = (first + second)[result.bytes_consumed :]
    assert parser.parse_one(rest).order_id == 3


def test_accepts_bytearray(parser):
    buf = bytearray(build_add_order(5, 6, 7, "S", 8))
    result = parser.parse_one(buf)
    assert (result.order_id, result.price, result.quantity, result.side) == (5, 6, 7, "S")