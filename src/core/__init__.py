"""
Contract verification kernels.
"""

from .errors import FailureCode, VerificationError
from .exchange_rate import ExchangeRate, decode_exchange_rate, encode_exchange_rate, symbol_bytes
from .rabin import RabinPublicKey, RabinSignature
from .rabin import verify as verify_rabin
from .price_bet import PriceBetParams, settle, settle_or_raise
from .multisig import (
    MultiSigInstance,
    add_validation,
    add_validation_or_raise,
    new_instance,
    pay,
    pay_or_raise,
)
from .results import CovenantStepResult, SettleResult

__all__ = [
    "FailureCode",
    "VerificationError",
    "ExchangeRate",
    "decode_exchange_rate",
    "encode_exchange_rate",
    "symbol_bytes",
    "RabinPublicKey",
    "RabinSignature",
    "verify_rabin",
    "PriceBetParams",
    "settle",
    "settle_or_raise",
    "MultiSigInstance",
    "add_validation",
    "add_validation_or_raise",
    "new_instance",
    "pay",
    "pay_or_raise",
    "CovenantStepResult",
    "SettleResult",
]
