"""
Signature-hash preimage (BIP143 layout, forkid variant).

The preimage is the only view of the spending transaction a contract gets:
the spent output's locking script and value, and the digest of the outputs
the transaction commits to.
"""

from __future__ import annotations

from dataclasses import dataclass

from .canonical import encode_bytes, hash256, int_to_le, le_to_int, read_varint


SIGHASH_ALL = 0x01
SIGHASH_NONE = 0x02
SIGHASH_SINGLE = 0x03
SIGHASH_FORKID = 0x40
SIGHASH_ANYONECANPAY = 0x80

DEFAULT_SIGHASH_TYPE = SIGHASH_ALL | SIGHASH_FORKID


class MalformedPreimage(ValueError):
    """Raised when raw preimage bytes do not follow the fixed layout."""


@dataclass(frozen=True)
class Outpoint:
    txid: bytes
    index: int

    def __post_init__(self) -> None:
        if not isinstance(self.txid, bytes) or len(self.txid) != 32:
            raise ValueError("txid must be 32 bytes")
        if not isinstance(self.index, int) or not (0 <= self.index <= 0xFFFFFFFF):
            raise ValueError(f"index out of range: {self.index!r}")

    def serialize(self) -> bytes:
        return self.txid + int_to_le(self.index, 4)


@dataclass(frozen=True)
class SighashPreimage:
    """Parsed preimage. Field order is the serialization order."""

    version: int
    hash_prevouts: bytes
    hash_sequence: bytes
    outpoint: Outpoint
    script_code: bytes
    value: int
    sequence: int
    hash_outputs: bytes
    locktime: int
    sighash_type: int = DEFAULT_SIGHASH_TYPE

    def __post_init__(self) -> None:
        for name in ("hash_prevouts", "hash_sequence", "hash_outputs"):
            v = getattr(self, name)
            if not isinstance(v, bytes) or len(v) != 32:
                raise ValueError(f"{name} must be 32 bytes")
        if not isinstance(self.script_code, bytes):
            raise TypeError("script_code must be bytes")
        for name, width in (("version", 4), ("value", 8), ("sequence", 4), ("locktime", 4), ("sighash_type", 4)):
            v = getattr(self, name)
            if not isinstance(v, int) or isinstance(v, bool) or not (0 <= v < 1 << (8 * width)):
                raise ValueError(f"{name} out of range: {v!r}")

    def serialize(self) -> bytes:
        return b"".join(
            (
                int_to_le(self.version, 4),
                self.hash_prevouts,
                self.hash_sequence,
                self.outpoint.serialize(),
                encode_bytes(self.script_code),
                int_to_le(self.value, 8),
                int_to_le(self.sequence, 4),
                self.hash_outputs,
                int_to_le(self.locktime, 4),
                int_to_le(self.sighash_type, 4),
            )
        )

    @classmethod
    def parse(cls, raw: bytes) -> "SighashPreimage":
        if not isinstance(raw, (bytes, bytearray)):
            raise TypeError("preimage must be bytes")
        raw = bytes(raw)
        reader = _Reader(raw)
        try:
            version = le_to_int(reader.take(4))
            hash_prevouts = reader.take(32)
            hash_sequence = reader.take(32)
            outpoint = Outpoint(txid=reader.take(32), index=le_to_int(reader.take(4)))
            script_len = reader.varint()
            script_code = reader.take(script_len)
            value = le_to_int(reader.take(8))
            sequence = le_to_int(reader.take(4))
            hash_outputs = reader.take(32)
            locktime = le_to_int(reader.take(4))
            sighash_type = le_to_int(reader.take(4))
        except ValueError as exc:
            raise MalformedPreimage(str(exc)) from exc
        if reader.offset != len(raw):
            raise MalformedPreimage(f"trailing bytes after preimage: {len(raw) - reader.offset}")
        return cls(
            version=version,
            hash_prevouts=hash_prevouts,
            hash_sequence=hash_sequence,
            outpoint=outpoint,
            script_code=script_code,
            value=value,
            sequence=sequence,
            hash_outputs=hash_outputs,
            locktime=locktime,
            sighash_type=sighash_type,
        )


class _Reader:
    def __init__(self, data: bytes) -> None:
        self.data = data
        self.offset = 0

    def take(self, n: int) -> bytes:
        end = self.offset + n
        if end > len(self.data):
            raise ValueError(f"truncated preimage at offset {self.offset} (need {n} bytes)")
        out = self.data[self.offset:end]
        self.offset = end
        return out

    def varint(self) -> int:
        value, self.offset = read_varint(self.data, self.offset)
        return value


def sighash_digest(preimage: SighashPreimage) -> bytes:
    """The 32-byte message a standard signature over this input signs."""
    return hash256(preimage.serialize())
