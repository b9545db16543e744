"""
Two-party price bet settled by an oracle-signed exchange rate.

Lifecycle: Open (funded output) -> Settled (spent once into a single payout).
`settle` runs the checks in order and stops at the first failure:

1. oracle signature over the raw message,
2. message decoding,
3. timestamp inside [timestamp_from, timestamp_to],
4. symbol equality,
5. the spending transaction pays the whole balance to the winner and nothing else.

Party A wins when price >= target_price; ties go to party A.
"""

from __future__ import annotations

from dataclasses import dataclass

from ..state.outputs import PKH_LEN, amount_in_range, build_p2pkh_output, commitment_matches
from ..state.sighash import SighashPreimage
from . import rabin
from .errors import FailureCode, MalformedMessage, error_for
from .exchange_rate import SYMBOL_LEN, ExchangeRate, decode_exchange_rate
from .rabin import RabinPublicKey, RabinSignature
from .results import SettleResult, reject_settle


@dataclass(frozen=True)
class PriceBetParams:
    """Immutable bet parameters, fixed when the bet is funded."""

    target_price: int
    symbol: bytes
    timestamp_from: int
    timestamp_to: int
    oracle_pubkey: RabinPublicKey
    alice_pkh: bytes
    bob_pkh: bytes

    def __post_init__(self) -> None:
        for name in ("target_price", "timestamp_from", "timestamp_to"):
            v = getattr(self, name)
            if not isinstance(v, int) or isinstance(v, bool) or v < 0:
                raise ValueError(f"{name} must be a non-negative int: {v!r}")
        if self.timestamp_from > self.timestamp_to:
            raise ValueError("timestamp_from must be <= timestamp_to")
        if not isinstance(self.symbol, bytes) or len(self.symbol) != SYMBOL_LEN:
            raise ValueError(f"symbol must be {SYMBOL_LEN} bytes")
        for name in ("alice_pkh", "bob_pkh"):
            v = getattr(self, name)
            if not isinstance(v, bytes) or len(v) != PKH_LEN:
                raise ValueError(f"{name} must be {PKH_LEN} bytes")


def winner(params: PriceBetParams, rate: ExchangeRate) -> bytes:
    return params.alice_pkh if rate.price >= params.target_price else params.bob_pkh


def settle(
    params: PriceBetParams,
    message: bytes,
    signature: RabinSignature,
    preimage: SighashPreimage,
    *,
    min_key_bits: int = rabin.DEFAULT_MIN_KEY_BITS,
    max_padding_bytes: int = rabin.DEFAULT_MAX_PADDING_BYTES,
) -> SettleResult:
    """Check that `preimage`'s transaction may spend the bet."""
    if not rabin.verify(
        message,
        signature,
        params.oracle_pubkey,
        min_key_bits=min_key_bits,
        max_padding_bytes=max_padding_bytes,
    ):
        return reject_settle(FailureCode.ORACLE_SIGNATURE_INVALID, "oracle sig verify failed")

    try:
        rate = decode_exchange_rate(message)
    except MalformedMessage as exc:
        return reject_settle(FailureCode.MALFORMED_MESSAGE, exc.detail)

    if rate.timestamp < params.timestamp_from:
        return reject_settle(FailureCode.TIMESTAMP_OUT_OF_WINDOW, "too early")
    if rate.timestamp > params.timestamp_to:
        return reject_settle(FailureCode.TIMESTAMP_OUT_OF_WINDOW, "too late")

    if rate.symbol != params.symbol:
        return reject_settle(FailureCode.SYMBOL_MISMATCH, "wrong symbol")

    pkh = winner(params, rate)
    if not amount_in_range(preimage.value):
        return reject_settle(FailureCode.OUTPUT_COMMITMENT_MISMATCH, "amount out of range")
    out = build_p2pkh_output(pkh, preimage.value)
    if not commitment_matches([out], preimage.hash_outputs):
        return reject_settle(FailureCode.OUTPUT_COMMITMENT_MISMATCH, "hashOutputs mismatch")

    return SettleResult(accepted=True, winner_pkh=pkh, outputs=(out,))


def settle_or_raise(
    params: PriceBetParams,
    message: bytes,
    signature: RabinSignature,
    preimage: SighashPreimage,
    **kwargs: int,
) -> SettleResult:
    """Like ``settle()`` but raises the matching ``VerificationError``."""
    result = settle(params, message, signature, preimage, **kwargs)
    if result.accepted:
        return result
    raise error_for(result.rejection, result.detail)  # type: ignore[arg-type]
