"""
Ledger-level encodings: outputs, output commitments, sighash preimages
"""

from .outputs import TxOutput, build_output, build_p2pkh_output, canonical_hash, p2pkh_script
from .sighash import DEFAULT_SIGHASH_TYPE, MalformedPreimage, Outpoint, SighashPreimage, sighash_digest

__all__ = [
    "TxOutput",
    "build_output",
    "build_p2pkh_output",
    "canonical_hash",
    "p2pkh_script",
    "DEFAULT_SIGHASH_TYPE",
    "MalformedPreimage",
    "Outpoint",
    "SighashPreimage",
    "sighash_digest",
]
