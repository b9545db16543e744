"""
Verifier configuration (imperative shell).

Settings come from the environment (`VerifierConfig.from_env`) or from a YAML
file (`load_config`). The kernels take these values as plain arguments.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Mapping

import yaml

from ..core.rabin import DEFAULT_MAX_PADDING_BYTES, DEFAULT_MIN_KEY_BITS


_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _env_int(name: str, default: int, *, lo: int, hi: int) -> int:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return int(default)
    try:
        v = int(raw.strip())
    except ValueError:
        return int(default)
    if v < lo:
        return int(lo)
    if v > hi:
        return int(hi)
    return int(v)


def _env_str(name: str, default: str) -> str:
    raw = os.environ.get(name)
    if raw is None:
        return default
    v = raw.strip()
    return v if v else default


@dataclass(frozen=True)
class VerifierConfig:
    min_rabin_key_bits: int = DEFAULT_MIN_KEY_BITS
    max_rabin_padding_bytes: int = DEFAULT_MAX_PADDING_BYTES
    batch_workers: int = 4
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        for name in ("min_rabin_key_bits", "max_rabin_padding_bytes", "batch_workers"):
            v = getattr(self, name)
            if not isinstance(v, int) or isinstance(v, bool):
                raise ValueError(f"{name} must be an int: {v!r}")
        if self.min_rabin_key_bits < 2:
            raise ValueError(f"min_rabin_key_bits must be >= 2: {self.min_rabin_key_bits}")
        if self.max_rabin_padding_bytes < 0:
            raise ValueError(f"max_rabin_padding_bytes must be non-negative: {self.max_rabin_padding_bytes}")
        if self.batch_workers < 1:
            raise ValueError(f"batch_workers must be positive: {self.batch_workers}")
        if self.log_level not in _LOG_LEVELS:
            raise ValueError(f"log_level must be one of {_LOG_LEVELS}: {self.log_level!r}")

    @classmethod
    def from_env(cls) -> "VerifierConfig":
        level = _env_str("COVENANT_LOG_LEVEL", "INFO").upper()
        return cls(
            min_rabin_key_bits=_env_int("COVENANT_MIN_RABIN_KEY_BITS", DEFAULT_MIN_KEY_BITS, lo=512, hi=16384),
            max_rabin_padding_bytes=_env_int("COVENANT_MAX_RABIN_PADDING", DEFAULT_MAX_PADDING_BYTES, lo=0, hi=4096),
            batch_workers=_env_int("COVENANT_BATCH_WORKERS", 4, lo=1, hi=64),
            log_level=level if level in _LOG_LEVELS else "INFO",
        )

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "VerifierConfig":
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"unknown config keys: {unknown}")
        return cls(**dict(data))


def load_config(path: str | Path) -> VerifierConfig:
    """Read a YAML mapping of `VerifierConfig` fields."""
    text = Path(path).read_text(encoding="utf-8")
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ValueError(f"invalid YAML in {path}: {exc}") from exc
    if data is None:
        return VerifierConfig()
    if not isinstance(data, dict):
        raise ValueError(f"config file must contain a mapping: {path}")
    return VerifierConfig.from_mapping(data)
