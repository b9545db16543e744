"""
Spend verification shell: configuration, request decoding, dispatch
"""

from .config import VerifierConfig, load_config
from .requests import MalformedRequest, parse_request
from .verifier import VerificationReport, configure_logging, verify_batch, verify_request

__all__ = [
    "VerifierConfig",
    "load_config",
    "MalformedRequest",
    "parse_request",
    "VerificationReport",
    "configure_logging",
    "verify_batch",
    "verify_request",
]
