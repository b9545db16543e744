"""Tagged results returned by contract operations."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from ..state.outputs import TxOutput
from .errors import FailureCode

if TYPE_CHECKING:
    from .multisig import MultiSigInstance


@dataclass(frozen=True)
class SettleResult:
    """Outcome of a price-bet settlement check."""

    accepted: bool
    winner_pkh: bytes | None = None
    outputs: tuple[TxOutput, ...] = ()
    rejection: FailureCode | None = None
    detail: str | None = None


@dataclass(frozen=True)
class CovenantStepResult:
    """Outcome of one covenant transition (`add_validation` or `pay`)."""

    accepted: bool
    successor: "MultiSigInstance | None" = None
    outputs: tuple[TxOutput, ...] = ()
    rejection: FailureCode | None = None
    detail: str | None = None


def reject_settle(code: FailureCode, detail: str | None = None) -> SettleResult:
    return SettleResult(accepted=False, rejection=code, detail=detail)


def reject_step(code: FailureCode, detail: str | None = None) -> CovenantStepResult:
    return CovenantStepResult(accepted=False, rejection=code, detail=detail)
