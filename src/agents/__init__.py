"""
Off-core signers for oracle operators and wallets
"""

from .oracle_signer import RabinPrivateKey, sign, sign_exchange_rate
from .tx_signer import pubkey_from_private, sign_preimage

__all__ = [
    "RabinPrivateKey",
    "sign",
    "sign_exchange_rate",
    "pubkey_from_private",
    "sign_preimage",
]
