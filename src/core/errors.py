"""Failure taxonomy for contract verification.

Contract operations return tagged results carrying a ``FailureCode``.
The ``*_or_raise`` variants raise the matching ``VerificationError``
subclass for callers that prefer exceptions.
"""

from __future__ import annotations

from enum import Enum, unique


@unique
class FailureCode(Enum):
    ORACLE_SIGNATURE_INVALID = "OracleSignatureInvalid"
    MALFORMED_MESSAGE = "MalformedMessage"
    TIMESTAMP_OUT_OF_WINDOW = "TimestampOutOfWindow"
    SYMBOL_MISMATCH = "SymbolMismatch"
    OUTPUT_COMMITMENT_MISMATCH = "OutputCommitmentMismatch"
    INVALID_INDEX_OR_ALREADY_SET = "InvalidIndexOrAlreadySet"
    SIGNATURE_CHECK_FAILED = "SignatureCheckFailed"
    THRESHOLD_NOT_REACHED = "ThresholdNotReached"
    THRESHOLD_ALREADY_REACHED = "ThresholdAlreadyReached"
    INSTANCE_MISMATCH = "InstanceMismatch"


class VerificationError(Exception):
    """Base class: a terminal, non-retryable verification failure."""

    code: FailureCode

    def __init__(self, detail: str | None = None) -> None:
        self.detail = detail
        msg = self.code.value if not detail else f"{self.code.value}: {detail}"
        super().__init__(msg)


class OracleSignatureInvalid(VerificationError):
    code = FailureCode.ORACLE_SIGNATURE_INVALID


class MalformedMessage(VerificationError):
    code = FailureCode.MALFORMED_MESSAGE


class TimestampOutOfWindow(VerificationError):
    code = FailureCode.TIMESTAMP_OUT_OF_WINDOW


class SymbolMismatch(VerificationError):
    code = FailureCode.SYMBOL_MISMATCH


class OutputCommitmentMismatch(VerificationError):
    code = FailureCode.OUTPUT_COMMITMENT_MISMATCH


class InvalidIndexOrAlreadySet(VerificationError):
    code = FailureCode.INVALID_INDEX_OR_ALREADY_SET


class SignatureCheckFailed(VerificationError):
    code = FailureCode.SIGNATURE_CHECK_FAILED


class ThresholdNotReached(VerificationError):
    code = FailureCode.THRESHOLD_NOT_REACHED


class ThresholdAlreadyReached(VerificationError):
    code = FailureCode.THRESHOLD_ALREADY_REACHED


class InstanceMismatch(VerificationError):
    code = FailureCode.INSTANCE_MISMATCH


_ERRORS: dict[FailureCode, type[VerificationError]] = {
    cls.code: cls
    for cls in (
        OracleSignatureInvalid,
        MalformedMessage,
        TimestampOutOfWindow,
        SymbolMismatch,
        OutputCommitmentMismatch,
        InvalidIndexOrAlreadySet,
        SignatureCheckFailed,
        ThresholdNotReached,
        ThresholdAlreadyReached,
        InstanceMismatch,
    )
}


def error_for(code: FailureCode, detail: str | None = None) -> VerificationError:
    return _ERRORS[code](detail)
