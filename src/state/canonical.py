"""
Deterministic byte-level encoding primitives for the ledger format.

These helpers are intended for consensus-critical hashing: output commitments,
sighash preimages and covenant locking scripts are all built from them.
"""

from __future__ import annotations

import hashlib
import re


_HEX_CHARS_RE = re.compile(r"^[0-9a-fA-F]*$")

OP_0 = 0x00
OP_PUSHDATA1 = 0x4C
OP_PUSHDATA2 = 0x4D
OP_PUSHDATA4 = 0x4E
OP_RETURN = 0x6A


def sha256(data: bytes) -> bytes:
    return hashlib.sha256(data).digest()


def hash256(data: bytes) -> bytes:
    """The ledger's two-round digest: SHA-256 applied twice."""
    return hashlib.sha256(hashlib.sha256(data).digest()).digest()


def _require_uint(value: int, name: str) -> None:
    if not isinstance(value, int) or isinstance(value, bool) or value < 0:
        raise ValueError(f"{name} must be a non-negative int, got {value!r}")


def int_to_le(value: int, nbytes: int) -> bytes:
    """Fixed-width little-endian unsigned encoding."""
    _require_uint(value, "value")
    if value >= 1 << (8 * nbytes):
        raise ValueError(f"value does not fit in {nbytes} bytes: {value}")
    return value.to_bytes(nbytes, "little")


def le_to_int(data: bytes) -> int:
    """Little-endian unsigned decoding; no sign extension."""
    return int.from_bytes(data, "little", signed=False)


def encode_varint(value: int) -> bytes:
    """CompactSize length prefix."""
    _require_uint(value, "varint")
    if value < 0xFD:
        return bytes([value])
    if value <= 0xFFFF:
        return b"\xfd" + value.to_bytes(2, "little")
    if value <= 0xFFFFFFFF:
        return b"\xfe" + value.to_bytes(4, "little")
    if value <= 0xFFFFFFFFFFFFFFFF:
        return b"\xff" + value.to_bytes(8, "little")
    raise ValueError(f"varint too large: {value}")


def read_varint(data: bytes, offset: int) -> tuple[int, int]:
    """
    Decode a CompactSize at `offset`.

    Returns (value, next_offset). Raises ValueError on truncation or on a
    non-minimal encoding.
    """
    if offset >= len(data):
        raise ValueError("truncated varint")
    first = data[offset]
    if first < 0xFD:
        return first, offset + 1
    width = {0xFD: 2, 0xFE: 4, 0xFF: 8}[first]
    end = offset + 1 + width
    if end > len(data):
        raise ValueError("truncated varint")
    value = le_to_int(data[offset + 1:end])
    if encode_varint(value) != data[offset:end]:
        raise ValueError("non-minimal varint")
    return value, end


def encode_bytes(value: bytes) -> bytes:
    """CompactSize-prefixed byte string."""
    if not isinstance(value, (bytes, bytearray)):
        raise TypeError("value must be bytes")
    value_bytes = bytes(value)
    return encode_varint(len(value_bytes)) + value_bytes


def push_data(value: bytes) -> bytes:
    """Minimal script push of a data element."""
    if not isinstance(value, (bytes, bytearray)):
        raise TypeError("value must be bytes")
    n = len(value)
    if n == 0:
        return bytes([OP_0])
    if n <= 75:
        return bytes([n]) + bytes(value)
    if n <= 0xFF:
        return bytes([OP_PUSHDATA1, n]) + bytes(value)
    if n <= 0xFFFF:
        return bytes([OP_PUSHDATA2]) + n.to_bytes(2, "little") + bytes(value)
    return bytes([OP_PUSHDATA4]) + n.to_bytes(4, "little") + bytes(value)


def hex_to_bytes(hex_str: str, *, name: str) -> bytes:
    """Decode a hex string, accepting an optional 0x prefix."""
    if not isinstance(hex_str, str):
        raise TypeError(f"{name} must be a str")
    body = hex_str[2:] if hex_str.startswith(("0x", "0X")) else hex_str
    if len(body) % 2 != 0 or not _HEX_CHARS_RE.fullmatch(body):
        raise ValueError(f"{name} must be valid hex")
    return bytes.fromhex(body)


def hex_to_bytes_fixed(hex_str: str, *, nbytes: int, name: str) -> bytes:
    if not isinstance(nbytes, int) or isinstance(nbytes, bool) or nbytes <= 0:
        raise ValueError("nbytes must be a positive int")
    out = hex_to_bytes(hex_str, name=name)
    if len(out) != nbytes:
        raise ValueError(f"{name} must decode to exactly {nbytes} bytes")
    return out


def hex_to_int(hex_str: str, *, name: str) -> int:
    """Big-endian hex integer (as printed by ``hex(n)``)."""
    if not isinstance(hex_str, str):
        raise TypeError(f"{name} must be a str")
    body = hex_str[2:] if hex_str.startswith(("0x", "0X")) else hex_str
    if not body or not _HEX_CHARS_RE.fullmatch(body):
        raise ValueError(f"{name} must be a non-empty hex integer")
    return int(body, 16)


def bytes_to_hex(value: bytes) -> str:
    return "0x" + bytes(value).hex()


def read_push(data: bytes, offset: int) -> tuple[bytes, int]:
    """
    Decode one push-data element at `offset`.

    Returns (payload, next_offset). Only minimal pushes (as produced by
    `push_data`) are accepted.
    """
    if offset >= len(data):
        raise ValueError("truncated push")
    op = data[offset]
    if op == OP_0:
        return b"", offset + 1
    if 1 <= op <= 75:
        n, start = op, offset + 1
    elif op == OP_PUSHDATA1:
        if offset + 2 > len(data):
            raise ValueError("truncated push")
        n, start = data[offset + 1], offset + 2
    elif op == OP_PUSHDATA2:
        if offset + 3 > len(data):
            raise ValueError("truncated push")
        n, start = le_to_int(data[offset + 1:offset + 3]), offset + 3
    elif op == OP_PUSHDATA4:
        if offset + 5 > len(data):
            raise ValueError("truncated push")
        n, start = le_to_int(data[offset + 1:offset + 5]), offset + 5
    else:
        raise ValueError(f"not a push opcode: 0x{op:02x}")
    end = start + n
    if end > len(data):
        raise ValueError("truncated push")
    payload = data[start:end]
    if push_data(payload) != data[offset:end]:
        raise ValueError("non-minimal push")
    return payload, end
