"""
Output commitment.

A spending transaction commits to its outputs through a single digest
(`hashOutputs` in the sighash preimage). Contracts never see the outputs
themselves; they rebuild the outputs they expect and compare digests.

Serialization matches the ledger wire format exactly:

    amount (8 bytes LE) || CompactSize(len(script)) || script

and `canonical_hash(outputs)` is hash256 over the concatenation, in order.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Sequence

from .canonical import encode_bytes, hash256, int_to_le, le_to_int, read_varint


MAX_AMOUNT = 21_000_000 * 100_000_000
PKH_LEN = 20

OP_DUP = 0x76
OP_HASH160 = 0xA9
OP_EQUALVERIFY = 0x88
OP_CHECKSIG = 0xAC


@dataclass(frozen=True)
class TxOutput:
    """A (locking script, amount) pair; the unit of an output commitment."""

    script: bytes
    amount: int

    def __post_init__(self) -> None:
        if not isinstance(self.script, bytes):
            raise TypeError("script must be bytes")
        if not isinstance(self.amount, int) or isinstance(self.amount, bool):
            raise TypeError("amount must be an int")
        if not amount_in_range(self.amount):
            raise ValueError(f"amount out of range: {self.amount}")

    def serialize(self) -> bytes:
        return int_to_le(self.amount, 8) + encode_bytes(self.script)


def amount_in_range(amount: int) -> bool:
    return isinstance(amount, int) and not isinstance(amount, bool) and 0 <= amount <= MAX_AMOUNT


def p2pkh_script(pkh: bytes) -> bytes:
    """Pay-to-public-key-hash locking script for a 20-byte key hash."""
    if not isinstance(pkh, bytes) or len(pkh) != PKH_LEN:
        raise ValueError("pkh must be 20 bytes")
    return bytes([OP_DUP, OP_HASH160, PKH_LEN]) + pkh + bytes([OP_EQUALVERIFY, OP_CHECKSIG])


def build_output(script: bytes, amount: int) -> TxOutput:
    return TxOutput(script=script, amount=amount)


def build_p2pkh_output(pkh: bytes, amount: int) -> TxOutput:
    """The `build(destination, amount)` operation for address destinations."""
    return TxOutput(script=p2pkh_script(pkh), amount=amount)


def serialize_outputs(outputs: Iterable[TxOutput]) -> bytes:
    return b"".join(o.serialize() for o in outputs)


def canonical_hash(outputs: Sequence[TxOutput]) -> bytes:
    """hash256 of the ordered output serialization (the `hashOutputs` value)."""
    return hash256(serialize_outputs(outputs))


def parse_outputs(raw: bytes) -> list[TxOutput]:
    """Inverse of `serialize_outputs`; rejects truncated or trailing bytes."""
    out: list[TxOutput] = []
    offset = 0
    while offset < len(raw):
        if offset + 8 > len(raw):
            raise ValueError("truncated output amount")
        amount = le_to_int(raw[offset:offset + 8])
        script_len, offset = read_varint(raw, offset + 8)
        end = offset + script_len
        if end > len(raw):
            raise ValueError("truncated output script")
        out.append(TxOutput(script=raw[offset:end], amount=amount))
        offset = end
    return out


def commitment_matches(expected: Sequence[TxOutput], declared_digest: bytes) -> bool:
    """Bit-exact equality of the expected outputs' digest and the declared one."""
    if not isinstance(declared_digest, bytes) or len(declared_digest) != 32:
        return False
    return canonical_hash(expected) == declared_digest
