"""
Rabin signature verification for oracle messages.

Relation checked:

    s^2 mod n == H(message || padding) mod n

where H is a full-domain hash: SHA-256 in counter mode, expanded to the byte
width of n and read little-endian. Bare modular-square matching is forgeable
(any square of a chosen s "signs" something), so the relation is only
evaluated after the redundancy checks:

- the modulus is odd and at least `min_key_bits` long,
- 0 < s < n,
- the padding is a short run of zero bytes (the signer's residue search).

Only public material is handled here. Failures return False, never raise.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass


DEFAULT_MIN_KEY_BITS = 1024
DEFAULT_MAX_PADDING_BYTES = 256


@dataclass(frozen=True)
class RabinPublicKey:
    n: int

    @property
    def byte_length(self) -> int:
        return (self.n.bit_length() + 7) // 8


@dataclass(frozen=True)
class RabinSignature:
    s: int
    padding: bytes = b""


def rabin_hash(data: bytes, width: int) -> int:
    """Expand SHA-256(data || counter) blocks to `width` bytes, little-endian."""
    if width <= 0:
        raise ValueError(f"width must be positive: {width}")
    out = bytearray()
    counter = 0
    while len(out) < width:
        out += hashlib.sha256(data + counter.to_bytes(4, "big")).digest()
        counter += 1
    return int.from_bytes(bytes(out[:width]), "little")


def is_canonical_padding(padding: bytes, max_padding_bytes: int = DEFAULT_MAX_PADDING_BYTES) -> bool:
    if not isinstance(padding, (bytes, bytearray)):
        return False
    if len(padding) > max_padding_bytes:
        return False
    return padding.count(0) == len(padding)


def verify(
    message: bytes,
    signature: RabinSignature,
    public_key: RabinPublicKey,
    *,
    min_key_bits: int = DEFAULT_MIN_KEY_BITS,
    max_padding_bytes: int = DEFAULT_MAX_PADDING_BYTES,
) -> bool:
    """Return True iff `signature` is a valid oracle signature over `message`."""
    n = getattr(public_key, "n", None)
    s = getattr(signature, "s", None)
    padding = getattr(signature, "padding", None)
    if not isinstance(n, int) or isinstance(n, bool) or n % 2 == 0:
        return False
    if n.bit_length() < min_key_bits:
        return False
    if not isinstance(s, int) or isinstance(s, bool) or not (0 < s < n):
        return False
    if not isinstance(message, (bytes, bytearray)):
        return False
    if not is_canonical_padding(padding, max_padding_bytes):
        return False

    h = rabin_hash(bytes(message) + bytes(padding), (n.bit_length() + 7) // 8)
    return (s * s) % n == h % n
