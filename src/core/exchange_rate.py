"""
Oracle exchange-rate message codec.

Fixed-width record signed by the price oracle:

    [0, 8)    timestamp        little-endian unsigned
    [8, 24)   price            little-endian unsigned, implicit decimals
    [24]      decimal scale    consumed by callers, not by decode
    [25]      reserved
    [26, 58)  symbol           32-byte pair tag

The offsets are a compatibility commitment of every deployed bet.
"""

from __future__ import annotations

from dataclasses import dataclass

from ..state.canonical import int_to_le, le_to_int
from .errors import MalformedMessage


TIMESTAMP_RANGE = (0, 8)
PRICE_RANGE = (8, 24)
DECIMALS_OFFSET = 24
RESERVED_OFFSET = 25
SYMBOL_RANGE = (26, 58)

MESSAGE_LENGTH = SYMBOL_RANGE[1]
SYMBOL_LEN = SYMBOL_RANGE[1] - SYMBOL_RANGE[0]


@dataclass(frozen=True)
class ExchangeRate:
    """Decoded oracle payload."""

    timestamp: int
    price: int
    symbol: bytes


def symbol_bytes(text: str) -> bytes:
    """ASCII pair tag, left aligned and NUL-filled (or truncated) to 32 bytes."""
    raw = text.encode("ascii")[:SYMBOL_LEN]
    return raw.ljust(SYMBOL_LEN, b"\x00")


def decode_exchange_rate(message: bytes) -> ExchangeRate:
    """Decode the fixed-offset fields. Bytes past the record are ignored."""
    if not isinstance(message, (bytes, bytearray)):
        raise MalformedMessage(f"message must be bytes, got {type(message).__name__}")
    if len(message) < MESSAGE_LENGTH:
        raise MalformedMessage(f"message too short: {len(message)} < {MESSAGE_LENGTH}")
    message = bytes(message)
    return ExchangeRate(
        timestamp=le_to_int(message[slice(*TIMESTAMP_RANGE)]),
        price=le_to_int(message[slice(*PRICE_RANGE)]),
        symbol=message[slice(*SYMBOL_RANGE)],
    )


def decimal_scale(message: bytes) -> int:
    if len(message) < MESSAGE_LENGTH:
        raise MalformedMessage(f"message too short: {len(message)} < {MESSAGE_LENGTH}")
    return message[DECIMALS_OFFSET]


def encode_exchange_rate(timestamp: int, price: int, symbol: bytes, decimals: int = 0) -> bytes:
    if len(symbol) != SYMBOL_LEN:
        raise ValueError(f"symbol must be {SYMBOL_LEN} bytes, got {len(symbol)}")
    if not (0 <= decimals <= 0xFF):
        raise ValueError(f"decimals out of range: {decimals}")
    return (
        int_to_le(timestamp, TIMESTAMP_RANGE[1] - TIMESTAMP_RANGE[0])
        + int_to_le(price, PRICE_RANGE[1] - PRICE_RANGE[0])
        + bytes([decimals, 0])
        + symbol
    )
