"""
Stateful M-of-N multi-signature covenant.

Fixed parameters (in the code part): destination key hash, threshold N and
the M participant public keys. Persisted state: one validated flag per
participant.

States:
    Collecting (valid_count < N) --add_validation--> Collecting / Payable
    Payable    (valid_count == N) --pay--> spent into the destination payout

Flags only ever go from False to True, one per transaction, and only with a
signature from the matching participant key over the spending input.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Optional, Sequence

from ..state.canonical import push_data, read_push
from ..state.outputs import PKH_LEN, TxOutput, amount_in_range, build_p2pkh_output
from ..state.sighash import SighashPreimage
from .covenant import (
    check_current_instance,
    check_outputs,
    locking_script,
    split_locking_script,
    successor_output,
    successor_violation,
)
from .ecdsa import PUBKEY_LEN, check_sig
from .errors import FailureCode, error_for
from .results import CovenantStepResult, reject_step


TEMPLATE_TAG = b"stateful-multisig:v1"

DEFAULT_M = 3
DEFAULT_N = 2

_FLAG_TRUE = 0x01
_FLAG_FALSE = 0x00


@dataclass(frozen=True)
class MultiSigInstance:
    dest_pkh: bytes
    pubkeys: tuple[bytes, ...]
    validated: tuple[bool, ...]
    threshold: int

    def __post_init__(self) -> None:
        if not isinstance(self.dest_pkh, bytes) or len(self.dest_pkh) != PKH_LEN:
            raise ValueError(f"dest_pkh must be {PKH_LEN} bytes")
        m = len(self.pubkeys)
        if m == 0 or m > 0xFF:
            raise ValueError(f"participant count out of range: {m}")
        if len(self.validated) != m:
            raise ValueError(f"validated must have {m} flags, got {len(self.validated)}")
        if not all(isinstance(v, bool) for v in self.validated):
            raise TypeError("validated flags must be bool")
        for pk in self.pubkeys:
            if not isinstance(pk, bytes) or len(pk) != PUBKEY_LEN:
                raise ValueError(f"pubkeys must be {PUBKEY_LEN}-byte compressed keys")
        if len(set(self.pubkeys)) != m:
            raise ValueError("pubkeys must be distinct")
        threshold = self.threshold
        if not isinstance(threshold, int) or isinstance(threshold, bool) or not (1 <= threshold <= m):
            raise ValueError(f"threshold must be in [1, {m}]: {self.threshold!r}")

    @property
    def m(self) -> int:
        return len(self.pubkeys)

    @property
    def valid_count(self) -> int:
        return sum(1 for v in self.validated if v)

    @property
    def payable(self) -> bool:
        return self.valid_count >= self.threshold

    def code_part(self) -> bytes:
        parts = [
            push_data(TEMPLATE_TAG),
            push_data(self.dest_pkh),
            push_data(bytes([self.m])),
            push_data(bytes([self.threshold])),
        ]
        parts.extend(push_data(pk) for pk in self.pubkeys)
        return b"".join(parts)

    def state_bytes(self) -> bytes:
        return bytes(_FLAG_TRUE if v else _FLAG_FALSE for v in self.validated)

    def locking_script(self) -> bytes:
        return locking_script(self)

    def with_validated(self, index: int) -> "MultiSigInstance":
        flags = list(self.validated)
        flags[index] = True
        return replace(self, validated=tuple(flags))

    @classmethod
    def from_locking_script(cls, script: bytes) -> "MultiSigInstance":
        code, state = split_locking_script(script)
        items: list[bytes] = []
        offset = 0
        while offset < len(code):
            item, offset = read_push(code, offset)
            items.append(item)
        if len(items) < 5 or items[0] != TEMPLATE_TAG:
            raise ValueError("not a multisig covenant script")
        m_raw, n_raw = items[2], items[3]
        if len(m_raw) != 1 or len(n_raw) != 1:
            raise ValueError("malformed participant counts")
        pubkeys = tuple(items[4:])
        if len(pubkeys) != m_raw[0]:
            raise ValueError("participant count does not match key list")
        if any(b not in (_FLAG_TRUE, _FLAG_FALSE) for b in state):
            raise ValueError("flag bytes must be 0x00 or 0x01")
        return cls(
            dest_pkh=items[1],
            pubkeys=pubkeys,
            validated=tuple(b == _FLAG_TRUE for b in state),
            threshold=n_raw[0],
        )


def new_instance(dest_pkh: bytes, pubkeys: Sequence[bytes], threshold: int = DEFAULT_N) -> MultiSigInstance:
    """Fresh instance with every flag unset."""
    return MultiSigInstance(
        dest_pkh=dest_pkh,
        pubkeys=tuple(pubkeys),
        validated=(False,) * len(pubkeys),
        threshold=threshold,
    )


def add_validation(
    instance: MultiSigInstance,
    index: int,
    signature: bytes,
    preimage: SighashPreimage,
    *,
    next_balance: Optional[int] = None,
    change_output: Optional[TxOutput] = None,
    declared_successor: Optional[MultiSigInstance] = None,
) -> CovenantStepResult:
    """
    Check a spend that records participant `index`'s signature.

    The spending transaction must commit to the successor instance (flag
    `index` set, everything else carried forward) holding `next_balance`
    (default: the spent value), optionally followed by `change_output`.
    """
    code = check_current_instance(instance, preimage)
    if code is not None:
        return reject_step(code, "preimage does not spend this instance")
    if instance.payable:
        return reject_step(FailureCode.THRESHOLD_ALREADY_REACHED, "instance is already payable")

    if not isinstance(index, int) or isinstance(index, bool) or not (0 <= index < instance.m):
        return reject_step(FailureCode.INVALID_INDEX_OR_ALREADY_SET, f"invalid pubKeyIdx: {index!r}")
    if instance.validated[index]:
        return reject_step(FailureCode.INVALID_INDEX_OR_ALREADY_SET, f"flag {index} already set")

    if not check_sig(signature, instance.pubkeys[index], preimage):
        return reject_step(FailureCode.SIGNATURE_CHECK_FAILED, "signature check failed")

    successor = instance.with_validated(index)
    if declared_successor is not None:
        violation = successor_violation(instance, declared_successor, [index])
        if violation is None and declared_successor != successor:
            violation = f"successor must set flag {index}"
        if violation is not None:
            return reject_step(FailureCode.OUTPUT_COMMITMENT_MISMATCH, violation)

    balance = preimage.value if next_balance is None else next_balance
    if not amount_in_range(balance):
        return reject_step(FailureCode.OUTPUT_COMMITMENT_MISMATCH, "amount out of range")
    outputs = [successor_output(successor, balance)]
    if change_output is not None:
        outputs.append(change_output)
    code = check_outputs(outputs, preimage)
    if code is not None:
        return reject_step(code, "hashOutputs mismatch")

    return CovenantStepResult(accepted=True, successor=successor, outputs=tuple(outputs))


def pay(instance: MultiSigInstance, preimage: SighashPreimage) -> CovenantStepResult:
    """Check a spend that releases the full balance to the destination."""
    code = check_current_instance(instance, preimage)
    if code is not None:
        return reject_step(code, "preimage does not spend this instance")
    if not instance.payable:
        return reject_step(
            FailureCode.THRESHOLD_NOT_REACHED,
            f"Not enough valid signatures. ({instance.valid_count}/{instance.threshold})",
        )
    if not amount_in_range(preimage.value):
        return reject_step(FailureCode.OUTPUT_COMMITMENT_MISMATCH, "amount out of range")

    out = build_p2pkh_output(instance.dest_pkh, preimage.value)
    code = check_outputs([out], preimage)
    if code is not None:
        return reject_step(code, "hashOutputs mismatch")
    return CovenantStepResult(accepted=True, outputs=(out,))


def _or_raise(result: CovenantStepResult) -> CovenantStepResult:
    if result.accepted:
        return result
    raise error_for(result.rejection, result.detail)  # type: ignore[arg-type]


def add_validation_or_raise(
    instance: MultiSigInstance,
    index: int,
    signature: bytes,
    preimage: SighashPreimage,
    **kwargs,
) -> CovenantStepResult:
    return _or_raise(add_validation(instance, index, signature, preimage, **kwargs))


def pay_or_raise(instance: MultiSigInstance, preimage: SighashPreimage) -> CovenantStepResult:
    return _or_raise(pay(instance, preimage))
