"""Shared deterministic keys and preimage construction for the test suite."""

from __future__ import annotations

from typing import Callable, Sequence

import pytest

from src.agents.oracle_signer import RabinPrivateKey
from src.agents.tx_signer import pubkey_from_private
from src.state.outputs import TxOutput, canonical_hash
from src.state.sighash import Outpoint, SighashPreimage


# Mersenne primes; both are 3 mod 4, giving a 1128-bit modulus.
ORACLE_P = 2**521 - 1
ORACLE_Q = 2**607 - 1

BALANCE = 10_000


@pytest.fixture(scope="session")
def oracle_key() -> RabinPrivateKey:
    return RabinPrivateKey(p=ORACLE_P, q=ORACLE_Q)


@pytest.fixture(scope="session")
def participant_privkeys() -> list[bytes]:
    return [bytes([i + 1]) * 32 for i in range(3)]


@pytest.fixture(scope="session")
def participant_pubkeys(participant_privkeys) -> list[bytes]:
    return [pubkey_from_private(k) for k in participant_privkeys]


@pytest.fixture(scope="session")
def make_preimage() -> Callable[..., SighashPreimage]:
    def _make(
        outputs: Sequence[TxOutput],
        *,
        value: int = BALANCE,
        script_code: bytes = b"\x51",
    ) -> SighashPreimage:
        return SighashPreimage(
            version=1,
            hash_prevouts=b"\x11" * 32,
            hash_sequence=b"\x22" * 32,
            outpoint=Outpoint(txid=b"\x33" * 32, index=0),
            script_code=script_code,
            value=value,
            sequence=0xFFFFFFFF,
            hash_outputs=canonical_hash(outputs),
            locktime=0,
        )

    return _make
