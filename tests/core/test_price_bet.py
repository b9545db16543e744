"""Tests for src/core/price_bet.py (oracle-settled two-party bet)."""

from __future__ import annotations

import importlib.util
from dataclasses import replace

import pytest

from src.agents.oracle_signer import sign, sign_exchange_rate
from src.core.errors import (
    FailureCode,
    OracleSignatureInvalid,
    OutputCommitmentMismatch,
    TimestampOutOfWindow,
)
from src.core.exchange_rate import symbol_bytes
from src.core.price_bet import PriceBetParams, settle, settle_or_raise
from src.state.outputs import MAX_AMOUNT, build_p2pkh_output


ALICE = b"\xaa" * 20
BOB = b"\xbb" * 20
TARGET = 36_000_000
T_FROM = 1_700_000_000
T_TO = 1_700_086_400
BALANCE = 10_000


def _make_params(oracle_key, **kwargs) -> PriceBetParams:
    base = PriceBetParams(
        target_price=TARGET,
        symbol=symbol_bytes("BSV_USDC"),
        timestamp_from=T_FROM,
        timestamp_to=T_TO,
        oracle_pubkey=oracle_key.public_key,
        alice_pkh=ALICE,
        bob_pkh=BOB,
    )
    return replace(base, **kwargs)


def _signed(oracle_key, *, timestamp=T_FROM + 60, price=TARGET, symbol="BSV_USDC"):
    return sign_exchange_rate(oracle_key, timestamp=timestamp, price=price, symbol=symbol, decimals=6)


def _pay_to(make_preimage, pkh, amount=BALANCE):
    return make_preimage([build_p2pkh_output(pkh, amount)], value=BALANCE)


# ---------------------------------------------------------------------------
# winner selection
# ---------------------------------------------------------------------------

class TestWinner:
    def test_price_above_target_pays_alice(self, oracle_key, make_preimage):
        msg, sig = _signed(oracle_key, price=TARGET + 1)
        r = settle(_make_params(oracle_key), msg, sig, _pay_to(make_preimage, ALICE))
        assert r.accepted
        assert r.winner_pkh == ALICE
        assert r.outputs == (build_p2pkh_output(ALICE, BALANCE),)

    def test_price_below_target_pays_bob(self, oracle_key, make_preimage):
        msg, sig = _signed(oracle_key, price=TARGET - 1)
        r = settle(_make_params(oracle_key), msg, sig, _pay_to(make_preimage, BOB))
        assert r.accepted
        assert r.winner_pkh == BOB

    def test_tie_pays_alice(self, oracle_key, make_preimage):
        msg, sig = _signed(oracle_key, price=TARGET)
        r = settle(_make_params(oracle_key), msg, sig, _pay_to(make_preimage, ALICE))
        assert r.accepted
        assert r.winner_pkh == ALICE

    def test_paying_loser_rejected(self, oracle_key, make_preimage):
        msg, sig = _signed(oracle_key, price=TARGET + 1)
        r = settle(_make_params(oracle_key), msg, sig, _pay_to(make_preimage, BOB))
        assert not r.accepted
        assert r.rejection is FailureCode.OUTPUT_COMMITMENT_MISMATCH

    def test_partial_amount_rejected(self, oracle_key, make_preimage):
        msg, sig = _signed(oracle_key, price=TARGET + 1)
        r = settle(_make_params(oracle_key), msg, sig, _pay_to(make_preimage, ALICE, BALANCE - 1))
        assert r.rejection is FailureCode.OUTPUT_COMMITMENT_MISMATCH

    def test_extra_output_rejected(self, oracle_key, make_preimage):
        msg, sig = _signed(oracle_key, price=TARGET + 1)
        preimage = make_preimage(
            [build_p2pkh_output(ALICE, BALANCE), build_p2pkh_output(BOB, 0)],
            value=BALANCE,
        )
        r = settle(_make_params(oracle_key), msg, sig, preimage)
        assert r.rejection is FailureCode.OUTPUT_COMMITMENT_MISMATCH


# ---------------------------------------------------------------------------
# oracle data checks
# ---------------------------------------------------------------------------

class TestOracleChecks:
    def test_tampered_message(self, oracle_key, make_preimage):
        msg, sig = _signed(oracle_key, price=TARGET - 1)
        tampered = bytearray(msg)
        tampered[8] ^= 0x80  # price field
        r = settle(_make_params(oracle_key), bytes(tampered), sig, _pay_to(make_preimage, ALICE))
        assert r.rejection is FailureCode.ORACLE_SIGNATURE_INVALID

    def test_short_signed_message(self, oracle_key, make_preimage):
        msg = b"\x01" * 30
        r = settle(_make_params(oracle_key), msg, sign(msg, oracle_key), _pay_to(make_preimage, ALICE))
        assert r.rejection is FailureCode.MALFORMED_MESSAGE

    def test_too_early(self, oracle_key, make_preimage):
        msg, sig = _signed(oracle_key, timestamp=T_FROM - 1, price=TARGET + 1)
        r = settle(_make_params(oracle_key), msg, sig, _pay_to(make_preimage, ALICE))
        assert r.rejection is FailureCode.TIMESTAMP_OUT_OF_WINDOW
        assert r.detail == "too early"

    def test_too_late(self, oracle_key, make_preimage):
        msg, sig = _signed(oracle_key, timestamp=T_TO + 1, price=TARGET - 1)
        r = settle(_make_params(oracle_key), msg, sig, _pay_to(make_preimage, BOB))
        assert r.rejection is FailureCode.TIMESTAMP_OUT_OF_WINDOW
        assert r.detail == "too late"

    @pytest.mark.parametrize("timestamp", [T_FROM, T_TO])
    def test_window_inclusive(self, oracle_key, make_preimage, timestamp):
        msg, sig = _signed(oracle_key, timestamp=timestamp, price=TARGET)
        r = settle(_make_params(oracle_key), msg, sig, _pay_to(make_preimage, ALICE))
        assert r.accepted

    def test_wrong_symbol(self, oracle_key, make_preimage):
        msg, sig = _signed(oracle_key, symbol="BTC_USDC", price=TARGET + 1)
        r = settle(_make_params(oracle_key), msg, sig, _pay_to(make_preimage, ALICE))
        assert r.rejection is FailureCode.SYMBOL_MISMATCH

    def test_signature_checked_first(self, oracle_key, make_preimage):
        # Out of window and wrong symbol, but the forged signature is reported.
        msg, sig = _signed(oracle_key, timestamp=T_TO + 5, symbol="ETH_USDC")
        forged = replace(sig, s=sig.s + 1)
        r = settle(_make_params(oracle_key), msg, forged, _pay_to(make_preimage, ALICE))
        assert r.rejection is FailureCode.ORACLE_SIGNATURE_INVALID


class TestAmountRange:
    def test_oversized_spent_value_is_rejected(self, oracle_key, make_preimage):
        msg, sig = _signed(oracle_key, price=TARGET + 1)
        preimage = make_preimage([], value=MAX_AMOUNT + 1)
        r = settle(_make_params(oracle_key), msg, sig, preimage)
        assert r.rejection is FailureCode.OUTPUT_COMMITMENT_MISMATCH
        assert r.detail == "amount out of range"

    def test_largest_amount_settles(self, oracle_key, make_preimage):
        msg, sig = _signed(oracle_key, price=TARGET + 1)
        preimage = make_preimage([build_p2pkh_output(ALICE, MAX_AMOUNT)], value=MAX_AMOUNT)
        assert settle(_make_params(oracle_key), msg, sig, preimage).accepted


class TestParams:
    def test_inverted_window(self, oracle_key):
        with pytest.raises(ValueError):
            _make_params(oracle_key, timestamp_from=T_TO, timestamp_to=T_FROM)

    def test_symbol_must_be_32_bytes(self, oracle_key):
        with pytest.raises(ValueError):
            _make_params(oracle_key, symbol=b"BSV_USDC")

    def test_pkh_length(self, oracle_key):
        with pytest.raises(ValueError):
            _make_params(oracle_key, alice_pkh=b"\xaa" * 19)


class TestSettleOrRaise:
    def test_returns_result(self, oracle_key, make_preimage):
        msg, sig = _signed(oracle_key, price=TARGET + 1)
        assert settle_or_raise(_make_params(oracle_key), msg, sig, _pay_to(make_preimage, ALICE)).accepted

    def test_raises_timestamp(self, oracle_key, make_preimage):
        msg, sig = _signed(oracle_key, timestamp=T_FROM - 1)
        with pytest.raises(TimestampOutOfWindow, match="too early"):
            settle_or_raise(_make_params(oracle_key), msg, sig, _pay_to(make_preimage, ALICE))

    def test_raises_signature(self, oracle_key, make_preimage):
        msg, sig = _signed(oracle_key)
        with pytest.raises(OracleSignatureInvalid):
            settle_or_raise(_make_params(oracle_key), msg, replace(sig, s=1), _pay_to(make_preimage, ALICE))

    def test_raises_commitment(self, oracle_key, make_preimage):
        msg, sig = _signed(oracle_key)
        with pytest.raises(OutputCommitmentMismatch):
            settle_or_raise(_make_params(oracle_key), msg, sig, _pay_to(make_preimage, BOB))


if importlib.util.find_spec("hypothesis") is not None:
    import hypothesis.strategies as st
    from hypothesis import given, settings

    from src.agents.oracle_signer import RabinPrivateKey
    from src.state.outputs import canonical_hash
    from src.state.sighash import Outpoint, SighashPreimage

    _KEY = RabinPrivateKey(p=2**521 - 1, q=2**607 - 1)

    @settings(max_examples=25, deadline=None)
    @given(
        price=st.integers(min_value=0, max_value=2**128 - 1),
        timestamp=st.integers(min_value=T_FROM, max_value=T_TO),
    )
    def test_winner_is_alice_iff_price_at_least_target(price: int, timestamp: int) -> None:
        msg, sig = _signed(_KEY, timestamp=timestamp, price=price)
        expected = ALICE if price >= TARGET else BOB
        preimage = SighashPreimage(
            version=1,
            hash_prevouts=b"\x00" * 32,
            hash_sequence=b"\x00" * 32,
            outpoint=Outpoint(txid=b"\x00" * 32, index=0),
            script_code=b"\x51",
            value=BALANCE,
            sequence=0,
            hash_outputs=canonical_hash([build_p2pkh_output(expected, BALANCE)]),
            locktime=0,
        )
        r = settle(_make_params(_KEY), msg, sig, preimage)
        assert r.accepted
        assert r.winner_pkh == expected
