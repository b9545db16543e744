"""
Stateful covenant pattern.

A stateful instance is one unspent output whose locking script is

    code_part || OP_RETURN || state || len(state) (4 bytes LE) || version

`code_part` is the immutable contract logic together with its fixed
parameters; `state` is the persisted data carried from one instance to the
next. Spending an instance is only valid when the spending transaction's
output commitment equals the outputs derived locally: either the unique
successor (same code part, state updated by the contract's rule) or the
unique terminal payout.

Nothing here holds a reference to the next instance; the successor is a plain
value rebuilt from the current one.
"""

from __future__ import annotations

from typing import Protocol, Sequence

from ..state.canonical import OP_RETURN, int_to_le, le_to_int
from ..state.outputs import TxOutput, build_output, commitment_matches
from ..state.sighash import SighashPreimage
from .errors import FailureCode


STATE_VERSION = 0
_STATE_TRAILER_LEN = 5  # 4-byte length + version


class StatefulContract(Protocol):
    def code_part(self) -> bytes: ...

    def state_bytes(self) -> bytes: ...


def build_locking_script(code_part: bytes, state: bytes) -> bytes:
    if not code_part:
        raise ValueError("code_part must not be empty")
    return code_part + bytes([OP_RETURN]) + state + int_to_le(len(state), 4) + bytes([STATE_VERSION])


def locking_script(contract: StatefulContract) -> bytes:
    return build_locking_script(contract.code_part(), contract.state_bytes())


def split_locking_script(script: bytes) -> tuple[bytes, bytes]:
    """Recover (code_part, state); ValueError if `script` is not stateful."""
    if len(script) < _STATE_TRAILER_LEN + 2:
        raise ValueError("script too short for a stateful instance")
    if script[-1] != STATE_VERSION:
        raise ValueError(f"unsupported state version: {script[-1]}")
    state_len = le_to_int(script[-_STATE_TRAILER_LEN:-1])
    state_end = len(script) - _STATE_TRAILER_LEN
    state_start = state_end - state_len
    marker = state_start - 1
    if marker < 1 or script[marker] != OP_RETURN:
        raise ValueError("missing OP_RETURN state separator")
    return script[:marker], script[state_start:state_end]


def check_current_instance(contract: StatefulContract, preimage: SighashPreimage) -> FailureCode | None:
    """The preimage must describe the spend of exactly this instance."""
    if preimage.script_code != locking_script(contract):
        return FailureCode.INSTANCE_MISMATCH
    return None


def successor_output(successor: StatefulContract, balance: int) -> TxOutput:
    return build_output(locking_script(successor), balance)


def changed_positions(prev_state: bytes, next_state: bytes) -> list[int]:
    if len(prev_state) != len(next_state):
        raise ValueError("state length changed")
    return [i for i, (a, b) in enumerate(zip(prev_state, next_state)) if a != b]


def successor_violation(
    current: StatefulContract,
    successor: StatefulContract,
    allowed_positions: Sequence[int],
) -> str | None:
    """
    Describe why `successor` is not a permitted carry-forward of `current`.

    The code part must be identical and only bytes at `allowed_positions` of
    the state may differ. Returns None when the successor is permitted.
    """
    if successor.code_part() != current.code_part():
        return "successor code part differs"
    try:
        changed = changed_positions(current.state_bytes(), successor.state_bytes())
    except ValueError as exc:
        return str(exc)
    extra = [i for i in changed if i not in allowed_positions]
    if extra:
        return f"successor state changed outside allowed positions: {extra}"
    return None


def check_outputs(expected: Sequence[TxOutput], preimage: SighashPreimage) -> FailureCode | None:
    if not commitment_matches(expected, preimage.hash_outputs):
        return FailureCode.OUTPUT_COMMITMENT_MISMATCH
    return None
