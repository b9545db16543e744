"""
secp256k1 signing of a spending input's sighash preimage.

Wallet-side helper for tooling and tests; the verification core only ever
calls `src.core.ecdsa.check_sig`.
"""

from __future__ import annotations

from ecdsa import SECP256k1, VerifyingKey
from py_ecc.secp256k1.secp256k1 import ecdsa_raw_sign, privtopub

from ..core.ecdsa import CURVE_ORDER, HALF_ORDER, encode_der
from ..state.sighash import SighashPreimage, sighash_digest


def _require_private_key(private_key: bytes) -> None:
    if not isinstance(private_key, bytes) or len(private_key) != 32:
        raise ValueError("private_key must be 32 bytes")


def pubkey_from_private(private_key: bytes) -> bytes:
    """Compressed SEC public key for a 32-byte private key."""
    _require_private_key(private_key)
    x, y = privtopub(private_key)
    vk = VerifyingKey.from_string(x.to_bytes(32, "big") + y.to_bytes(32, "big"), curve=SECP256k1)
    return vk.to_string("compressed")


def sign_preimage(private_key: bytes, preimage: SighashPreimage) -> bytes:
    """DER signature plus sighash-type byte, as pushed in an unlocking script."""
    _require_private_key(private_key)
    _v, r, s = ecdsa_raw_sign(sighash_digest(preimage), private_key)
    if s > HALF_ORDER:
        s = CURVE_ORDER - s
    return encode_der(r, s) + bytes([preimage.sighash_type & 0xFF])
