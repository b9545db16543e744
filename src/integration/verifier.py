"""
Spend verification service (imperative shell).

Decodes request envelopes, dispatches them to the pure contract kernels and
reports the verdict. Verification is stateless per request, so batches are a
plain ordered map over a thread pool.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Iterable, Optional

from ..core import multisig, price_bet
from ..core.results import CovenantStepResult, SettleResult
from .config import VerifierConfig
from .requests import (
    ACTION_ADD,
    CONTRACT_MULTISIG,
    CONTRACT_PRICE_BET,
    MalformedRequest,
    MultiSigRequest,
    PriceBetRequest,
    SpendRequest,
    parse_request,
)


logger = logging.getLogger(__name__)

MALFORMED_REQUEST = "MalformedRequest"


@dataclass(frozen=True)
class VerificationReport:
    ok: bool
    contract: Optional[str]
    code: Optional[str] = None
    detail: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {"ok": self.ok, "contract": self.contract, "code": self.code, "detail": self.detail}


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _run(request: SpendRequest, config: VerifierConfig) -> SettleResult | CovenantStepResult:
    if isinstance(request, PriceBetRequest):
        return price_bet.settle(
            request.params,
            request.message,
            request.signature,
            request.preimage,
            min_key_bits=config.min_rabin_key_bits,
            max_padding_bytes=config.max_rabin_padding_bytes,
        )
    if request.action == ACTION_ADD:
        return multisig.add_validation(
            request.instance,
            request.index,  # type: ignore[arg-type]
            request.signature,  # type: ignore[arg-type]
            request.preimage,
            next_balance=request.next_balance,
            change_output=request.change_output,
        )
    return multisig.pay(request.instance, request.preimage)


def verify_request(payload: Any, config: Optional[VerifierConfig] = None) -> VerificationReport:
    """Verify one JSON-decoded request. Never raises on bad input."""
    config = config or VerifierConfig()
    contract = payload.get("contract") if isinstance(payload, dict) else None
    try:
        request = parse_request(payload)
    except MalformedRequest as exc:
        logger.info("rejected %s request: %s: %s", contract, MALFORMED_REQUEST, exc)
        return VerificationReport(ok=False, contract=contract, code=MALFORMED_REQUEST, detail=str(exc))

    kind = CONTRACT_PRICE_BET if isinstance(request, PriceBetRequest) else CONTRACT_MULTISIG
    if isinstance(request, MultiSigRequest):
        kind = f"{kind}.{request.action}"

    try:
        result = _run(request, config)
    except (TypeError, ValueError) as exc:
        logger.warning("rejected %s spend: %s: %s", kind, MALFORMED_REQUEST, exc)
        return VerificationReport(ok=False, contract=contract, code=MALFORMED_REQUEST, detail=str(exc))
    if result.accepted:
        logger.debug("accepted %s spend", kind)
        return VerificationReport(ok=True, contract=contract)

    code = result.rejection.value if result.rejection else None
    logger.info("rejected %s spend: %s: %s", kind, code, result.detail)
    return VerificationReport(ok=False, contract=contract, code=code, detail=result.detail)


def verify_batch(payloads: Iterable[Any], config: Optional[VerifierConfig] = None) -> list[VerificationReport]:
    """Verify independent requests concurrently; results keep input order."""
    config = config or VerifierConfig()
    items = list(payloads)
    if not items:
        return []
    with ThreadPoolExecutor(max_workers=min(config.batch_workers, len(items))) as pool:
        return list(pool.map(lambda p: verify_request(p, config), items))
