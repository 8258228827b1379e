"""Builders for the ITCH 5.0 order messages, with zeroed locate and tracking fields."""

from __future__ import annotations

import struct
from typing import Union

_U32 = 0xFFFFFFFF
_U48 = 0xFFFFFFFFFFFF
_U64 = 0xFFFFFFFFFFFFFFFF

_STOCK = b"TEST    "

_ADD = struct.Struct("<cHH6sQcI8sI")
_CANCEL = struct.Struct("<cHH6sQI")
_EXECUTE = struct.Struct("<cHH6sQIQ")
_REPLACE = struct.Struct("<cHH6sQQII")


def _ts(timestamp: int) -> bytes:
    return (timestamp & _U48).to_bytes(6, "little")


def _side(side: Union[str, bytes, int]) -> bytes:
    if isinstance(side, int):
        return bytes([side & 0xFF])
    if isinstance(side, str):
        side = side.encode("latin-1")
    if len(side) != 1:
        raise ValueError(f"side must be a single character, got {side!r}")
    return side


def build_add_order(
    order_id: int, price: int, quantity: int, side: Union[str, bytes, int], timestamp: int
) -> bytes:
    """Add Order (no MPID attribution), 36 bytes."""
    return _ADD.pack(
        b"A",
        0,
        0,
        _ts(timestamp),
        order_id & _U64,
        _side(side),
        quantity & _U32,
        _STOCK,
        price & _U32,
    )


def build_cancel_order(order_id: int, cancelled_shares: int = 0) -> bytes:
    """Order Cancel, 23 bytes; zero cancelled shares means the whole order."""
    return _CANCEL.pack(b"X", 0, 0, _ts(0), order_id & _U64, cancelled_shares & _U32)


def build_execute_order(order_id: int, quantity: int) -> bytes:
    """Order Executed, 31 bytes, with a zero match number."""
    return _EXECUTE.pack(b"E", 0, 0, _ts(0), order_id & _U64, quantity & _U32, 0)


def build_replace_order(
    old_order_id: int,
    new_order_id: int,
    new_price: int,
    new_quantity: int,
    timestamp: int = 0,
) -> bytes:
    """Order Replace, 35 bytes."""
    return _REPLACE.pack(
        b"U",
        0,
        0,
        _ts(timestamp),
        old_order_id & _U64,
        new_order_id & _U64,
        new_quantity & _U32,
        new_price & _U32,
    )