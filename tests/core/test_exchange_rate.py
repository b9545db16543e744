"""Tests for src/core/exchange_rate.py (oracle message codec)."""

from __future__ import annotations

import importlib.util

import pytest

from src.core.errors import MalformedMessage
from src.core.exchange_rate import (
    MESSAGE_LENGTH,
    ExchangeRate,
    decimal_scale,
    decode_exchange_rate,
    encode_exchange_rate,
    symbol_bytes,
)


def _message(timestamp: int = 1_673_000_000, price: int = 4_523_000, symbol: str = "BSV_USDC") -> bytes:
    return encode_exchange_rate(timestamp, price, symbol_bytes(symbol), decimals=5)


class TestDecode:
    def test_fields_at_fixed_offsets(self):
        msg = (
            (1234).to_bytes(8, "little")
            + (98765).to_bytes(16, "little")
            + b"\x04\x00"
            + symbol_bytes("BSV_USDC")
        )
        rate = decode_exchange_rate(msg)
        assert rate == ExchangeRate(timestamp=1234, price=98765, symbol=symbol_bytes("BSV_USDC"))
        assert decimal_scale(msg) == 4

    def test_unsigned_little_endian(self):
        msg = b"\xff" * 8 + b"\xff" * 16 + b"\x00\x00" + b"\x00" * 32
        rate = decode_exchange_rate(msg)
        assert rate.timestamp == 2**64 - 1
        assert rate.price == 2**128 - 1

    def test_trailing_bytes_ignored(self):
        msg = _message()
        assert decode_exchange_rate(msg + b"\xde\xad") == decode_exchange_rate(msg)

    def test_short_message_rejected(self):
        with pytest.raises(MalformedMessage):
            decode_exchange_rate(_message()[: MESSAGE_LENGTH - 1])

    def test_empty_message_rejected(self):
        with pytest.raises(MalformedMessage):
            decode_exchange_rate(b"")


class TestEncode:
    def test_length(self):
        assert len(_message()) == MESSAGE_LENGTH

    def test_reserved_byte_zero(self):
        assert _message()[25] == 0

    def test_price_too_wide(self):
        with pytest.raises(ValueError):
            encode_exchange_rate(1, 2**128, symbol_bytes("X"))

    def test_symbol_wrong_length(self):
        with pytest.raises(ValueError):
            encode_exchange_rate(1, 1, b"BSV_USDC")


class TestSymbolBytes:
    def test_padded(self):
        s = symbol_bytes("BSV_USDC")
        assert len(s) == 32
        assert s.startswith(b"BSV_USDC")
        assert s[8:] == b"\x00" * 24

    def test_truncated(self):
        assert symbol_bytes("A" * 40) == b"A" * 32


if importlib.util.find_spec("hypothesis") is not None:
    import hypothesis.strategies as st
    from hypothesis import given

    @given(
        timestamp=st.integers(min_value=0, max_value=2**64 - 1),
        price=st.integers(min_value=0, max_value=2**128 - 1),
        symbol=st.binary(min_size=32, max_size=32),
    )
    def test_decode_inverts_encode(timestamp: int, price: int, symbol: bytes) -> None:
        rate = decode_exchange_rate(encode_exchange_rate(timestamp, price, symbol))
        assert (rate.timestamp, rate.price, rate.symbol) == (timestamp, price, symbol)
