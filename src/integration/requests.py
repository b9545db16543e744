"""
JSON request envelopes for spend verification.

Byte fields are hex strings (0x prefix optional); Rabin integers are
big-endian hex. Parsing is strict: anything unexpected raises
`MalformedRequest` before any contract check runs.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional, Union

from ..core.exchange_rate import symbol_bytes
from ..core.multisig import MultiSigInstance
from ..core.price_bet import PriceBetParams
from ..core.rabin import RabinPublicKey, RabinSignature
from ..state.canonical import hex_to_bytes, hex_to_bytes_fixed, hex_to_int
from ..state.outputs import MAX_AMOUNT, PKH_LEN, TxOutput, amount_in_range
from ..state.sighash import MalformedPreimage, SighashPreimage


CONTRACT_PRICE_BET = "price_bet"
CONTRACT_MULTISIG = "multisig"

ACTION_ADD = "add"
ACTION_PAY = "pay"


class MalformedRequest(ValueError):
    """Raised when a request envelope cannot be decoded."""


@dataclass(frozen=True)
class PriceBetRequest:
    params: PriceBetParams
    message: bytes
    signature: RabinSignature
    preimage: SighashPreimage


@dataclass(frozen=True)
class MultiSigRequest:
    instance: MultiSigInstance
    action: str
    preimage: SighashPreimage
    index: Optional[int] = None
    signature: Optional[bytes] = None
    next_balance: Optional[int] = None
    change_output: Optional[TxOutput] = None


SpendRequest = Union[PriceBetRequest, MultiSigRequest]


def _field(obj: Mapping[str, Any], key: str) -> Any:
    if key not in obj:
        raise MalformedRequest(f"missing field: {key}")
    return obj[key]


def _mapping(obj: Any, name: str) -> Mapping[str, Any]:
    if not isinstance(obj, Mapping):
        raise MalformedRequest(f"{name} must be an object")
    return obj


def _int(obj: Any, name: str) -> int:
    if not isinstance(obj, int) or isinstance(obj, bool) or obj < 0:
        raise MalformedRequest(f"{name} must be a non-negative integer")
    return obj


def _amount(obj: Any, name: str) -> int:
    if not amount_in_range(obj):
        raise MalformedRequest(f"{name} must be an amount in [0, {MAX_AMOUNT}]")
    return obj


def _preimage(payload: Mapping[str, Any]) -> SighashPreimage:
    raw = hex_to_bytes(_field(payload, "preimage"), name="preimage")
    try:
        return SighashPreimage.parse(raw)
    except MalformedPreimage as exc:
        raise MalformedRequest(f"preimage: {exc}") from exc


def _price_bet(payload: Mapping[str, Any]) -> PriceBetRequest:
    p = _mapping(_field(payload, "params"), "params")
    sig = _mapping(_field(payload, "signature"), "signature")
    symbol = _field(p, "symbol")
    if not isinstance(symbol, str):
        raise MalformedRequest("params.symbol must be a string")
    params = PriceBetParams(
        target_price=_int(_field(p, "target_price"), "params.target_price"),
        symbol=symbol_bytes(symbol),
        timestamp_from=_int(_field(p, "timestamp_from"), "params.timestamp_from"),
        timestamp_to=_int(_field(p, "timestamp_to"), "params.timestamp_to"),
        oracle_pubkey=RabinPublicKey(n=hex_to_int(_field(p, "oracle_pubkey"), name="params.oracle_pubkey")),
        alice_pkh=hex_to_bytes_fixed(_field(p, "alice_pkh"), nbytes=PKH_LEN, name="params.alice_pkh"),
        bob_pkh=hex_to_bytes_fixed(_field(p, "bob_pkh"), nbytes=PKH_LEN, name="params.bob_pkh"),
    )
    return PriceBetRequest(
        params=params,
        message=hex_to_bytes(_field(payload, "message"), name="message"),
        signature=RabinSignature(
            s=hex_to_int(_field(sig, "s"), name="signature.s"),
            padding=hex_to_bytes(sig.get("padding", ""), name="signature.padding"),
        ),
        preimage=_preimage(payload),
    )


def _multisig(payload: Mapping[str, Any]) -> MultiSigRequest:
    inst = _mapping(_field(payload, "instance"), "instance")
    pubkeys = _field(inst, "pubkeys")
    validated = _field(inst, "validated")
    if not isinstance(pubkeys, list) or not isinstance(validated, list):
        raise MalformedRequest("instance.pubkeys and instance.validated must be lists")
    instance = MultiSigInstance(
        dest_pkh=hex_to_bytes_fixed(_field(inst, "dest_pkh"), nbytes=PKH_LEN, name="instance.dest_pkh"),
        pubkeys=tuple(hex_to_bytes(pk, name="instance.pubkeys[]") for pk in pubkeys),
        validated=tuple(validated),
        threshold=_int(_field(inst, "threshold"), "instance.threshold"),
    )
    action = _field(payload, "action")
    preimage = _preimage(payload)
    if action == ACTION_PAY:
        return MultiSigRequest(instance=instance, action=action, preimage=preimage)
    if action != ACTION_ADD:
        raise MalformedRequest(f"unknown multisig action: {action!r}")

    next_balance = payload.get("next_balance")
    change = payload.get("change")
    change_output = None
    if change is not None:
        change = _mapping(change, "change")
        change_output = TxOutput(
            script=hex_to_bytes(_field(change, "script"), name="change.script"),
            amount=_amount(_field(change, "amount"), "change.amount"),
        )
    return MultiSigRequest(
        instance=instance,
        action=action,
        preimage=preimage,
        index=_int(_field(payload, "index"), "index"),
        signature=hex_to_bytes(_field(payload, "signature"), name="signature"),
        next_balance=None if next_balance is None else _amount(next_balance, "next_balance"),
        change_output=change_output,
    )


def parse_request(payload: Any) -> SpendRequest:
    """Decode one request envelope; raises `MalformedRequest`."""
    payload = _mapping(payload, "request")
    contract = _field(payload, "contract")
    try:
        if contract == CONTRACT_PRICE_BET:
            return _price_bet(payload)
        if contract == CONTRACT_MULTISIG:
            return _multisig(payload)
    except MalformedRequest:
        raise
    except (TypeError, ValueError) as exc:
        raise MalformedRequest(str(exc)) from exc
    raise MalformedRequest(f"unknown contract: {contract!r}")
