"""Decoding of the ITCH 5.0 order messages the book understands."""

from __future__ import annotations

import logging
import struct
from dataclasses import dataclass
from typing import Optional, Union

logger = logging.getLogger(__name__)

ADD_MSG_SIZE = 36
CANCEL_MSG_SIZE = 23
EXECUTE_MSG_SIZE = 31
REPLACE_MSG_SIZE = 35

# Largest amount of unparsed data kept before it is discarded as garbage.
MAX_BUFFER_SIZE = 512

_LENGTHS = {
    ord("A"): ADD_MSG_SIZE,
    ord("X"): CANCEL_MSG_SIZE,
    ord("E"): EXECUTE_MSG_SIZE,
    ord("U"): REPLACE_MSG_SIZE,
}

# Layouts after the type byte; all integers little-endian.
_ADD = struct.Struct("<4x6sQcI8xI")
_CANCEL = struct.Struct("<4x6xQI")
_EXECUTE = struct.Struct("<4x6xQI8x")
_REPLACE = struct.Struct("<4x6sQQII")


def message_length(msg_type: Union[int, str]) -> int:
    """Length in bytes of a message of the given type, or 0 if the type is unknown."""
    code = ord(msg_type) if isinstance(msg_type, str) else msg_type
    return _LENGTHS.get(code, 0)


@dataclass(frozen=True)
class ParseResult:
    """One decoded message and how many bytes it occupied."""

    bytes_consumed: int
    type: str
    order_id: int = 0
    new_order_id: int = 0
    price: int = 0
    quantity: int = 0
    side: str = "\0"
    timestamp: int = 0


def _timestamp(raw: bytes) -> int:
    return int.from_bytes(raw, "little")


class ITCHParser:
    """Decodes the first complete message at the start of a buffer."""

    def parse_one(self, buffer: bytes) -> Optional[ParseResult]:
        """Decode the message at the front of buffer.

        Returns None when the buffer is empty, holds only part of a message,
        or starts with an unknown message type.
        """
        if not buffer:
            return None
        code = buffer[0]
        expected = message_length(code)
        if expected == 0:
            logger.error("Unknown ITCH message type: %r (0x%02x)", chr(code), code)
            return None
        if len(buffer) < expected:
            return None

        msg_type = chr(code)
        if msg_type == "A":
            ts, order_id, side, qty, price = _ADD.unpack_from(buffer, 1)
            return ParseResult(
                bytes_consumed=ADD_MSG_SIZE,
                type="A",
                order_id=order_id,
                price=price,
                quantity=qty,
                side=side.decode("latin-1"),
                timestamp=_timestamp(ts),
            )
        if msg_type == "X":
            order_id, qty = _CANCEL.unpack_from(buffer, 1)
            return ParseResult(
                bytes_consumed=CANCEL_MSG_SIZE, type="X", order_id=order_id, quantity=qty
            )
        if msg_type == "E":
            order_id, qty = _EXECUTE.unpack_from(buffer, 1)
            return ParseResult(
                bytes_consumed=EXECUTE_MSG_SIZE, type="E", order_id=order_id, quantity=qty
            )
        ts, old_id, new_id, qty, price = _REPLACE.unpack_from(buffer, 1)
        return ParseResult(
            bytes_consumed=REPLACE_MSG_SIZE,
            type="U",
            order_id=old_id,
            new_order_id=new_id,
            price=price,
            quantity=qty,
            timestamp=_timestamp(ts),
        )