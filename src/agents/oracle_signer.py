"""
Rabin signing for oracle operators and test tooling.

Key custody is out of scope for the verification core: callers supply the
primes. Nothing under src/core imports this module.
"""

from __future__ import annotations

from dataclasses import dataclass

from ..core.exchange_rate import encode_exchange_rate, symbol_bytes
from ..core.rabin import DEFAULT_MAX_PADDING_BYTES, RabinPublicKey, RabinSignature, rabin_hash


@dataclass(frozen=True)
class RabinPrivateKey:
    p: int
    q: int

    def __post_init__(self) -> None:
        if self.p == self.q:
            raise ValueError("p and q must be distinct")
        for name in ("p", "q"):
            v = getattr(self, name)
            if v < 3 or v % 4 != 3:
                raise ValueError(f"{name} must be a prime congruent to 3 mod 4")

    @property
    def public_key(self) -> RabinPublicKey:
        return RabinPublicKey(n=self.p * self.q)


def _is_residue(h: int, prime: int) -> bool:
    return pow(h % prime, (prime - 1) // 2, prime) in (0, 1)


def sign(message: bytes, key: RabinPrivateKey, *, max_padding_bytes: int = DEFAULT_MAX_PADDING_BYTES) -> RabinSignature:
    """
    Sign `message`, searching for the shortest zero-byte padding that makes
    the digest a square modulo both primes.
    """
    p, q = key.p, key.q
    n = p * q
    width = key.public_key.byte_length
    for pad_len in range(max_padding_bytes + 1):
        padding = b"\x00" * pad_len
        h = rabin_hash(message + padding, width) % n
        if not (_is_residue(h, p) and _is_residue(h, q)):
            continue
        sp = pow(h, (p + 1) // 4, p)
        sq = pow(h, (q + 1) // 4, q)
        s = (sp * q * pow(q, -1, p) + sq * p * pow(p, -1, q)) % n
        if s == 0:
            continue
        return RabinSignature(s=s, padding=padding)
    raise ValueError("no quadratic residue found within padding limit")


def sign_exchange_rate(
    key: RabinPrivateKey,
    *,
    timestamp: int,
    price: int,
    symbol: str,
    decimals: int = 0,
) -> tuple[bytes, RabinSignature]:
    """Encode and sign one price record; returns (message, signature)."""
    message = encode_exchange_rate(timestamp, price, symbol_bytes(symbol), decimals)
    return message, sign(message, key)
