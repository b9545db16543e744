"""
Standard signature check (secp256k1 ECDSA) over a sighash preimage.

Wire forms:
- public key: 33-byte compressed SEC point,
- signature: strict DER (low-S) followed by one sighash-type byte.

Point decoding, DER parsing and verification come from the `ecdsa` library.
Every parse or range failure is a plain False so callers can report a single
`SignatureCheckFailed`.
"""

from __future__ import annotations

from typing import Optional

from ecdsa import SECP256k1, BadSignatureError, MalformedPointError, VerifyingKey, util
from ecdsa.der import UnexpectedDER

from ..state.sighash import SighashPreimage, sighash_digest


PUBKEY_LEN = 33

CURVE_ORDER = SECP256k1.order
HALF_ORDER = CURVE_ORDER // 2
_FIELD_PRIME = SECP256k1.curve.p()


def decode_pubkey(raw: bytes) -> Optional[VerifyingKey]:
    """Compressed SEC point to a verifying key; None if it is not a valid curve point."""
    if not isinstance(raw, (bytes, bytearray)) or len(raw) != PUBKEY_LEN or raw[0] not in (2, 3):
        return None
    if int.from_bytes(raw[1:], "big") >= _FIELD_PRIME:
        return None
    try:
        return VerifyingKey.from_string(bytes(raw), curve=SECP256k1)
    except MalformedPointError:
        return None


def decode_der(raw: bytes) -> tuple[int, int]:
    """Strict DER `SEQUENCE { r INTEGER, s INTEGER }`; ValueError otherwise."""
    try:
        return util.sigdecode_der(bytes(raw), CURVE_ORDER)
    except UnexpectedDER as exc:
        raise ValueError(f"bad DER signature: {exc}") from exc


def encode_der(r: int, s: int) -> bytes:
    return util.sigencode_der(r, s, CURVE_ORDER)


def check_sig(signature: bytes, pubkey: bytes, preimage: SighashPreimage) -> bool:
    """Verify `signature` by `pubkey` over the spending input's preimage."""
    if not isinstance(signature, (bytes, bytearray)) or len(signature) < 9:
        return False
    vk = decode_pubkey(pubkey)
    if vk is None:
        return False
    if signature[-1] != (preimage.sighash_type & 0xFF):
        return False
    der = bytes(signature[:-1])
    try:
        r, s = decode_der(der)
    except ValueError:
        return False
    if not (1 <= r < CURVE_ORDER and 1 <= s <= HALF_ORDER):
        return False
    try:
        return vk.verify_digest(der, sighash_digest(preimage), sigdecode=util.sigdecode_der)
    except (BadSignatureError, UnexpectedDER):
        return False
