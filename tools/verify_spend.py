#!/usr/bin/env python3
"""
Verify spend requests offline before submitting them.

Usage:
    python tools/verify_spend.py request.json [--config verifier.yaml]

The file holds one request object or a list of them. Prints one JSON report
per request; exits 0 only when every request is accepted.
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from src.integration.config import VerifierConfig, load_config
from src.integration.verifier import configure_logging, verify_batch


def main(argv: list[str] | None = None) -> int:
    ap = argparse.ArgumentParser(description=__doc__.split("\n\n")[0].strip())
    ap.add_argument("request", type=Path, help="JSON request file")
    ap.add_argument("--config", type=Path, default=None, help="YAML verifier config (default: environment)")
    args = ap.parse_args(argv)

    try:
        config = load_config(args.config) if args.config else VerifierConfig.from_env()
    except (OSError, ValueError) as exc:
        print(f"invalid config: {exc}", file=sys.stderr)
        return 2
    configure_logging(config.log_level)

    try:
        payload = json.loads(args.request.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        print(f"cannot read request: {exc}", file=sys.stderr)
        return 2

    requests = payload if isinstance(payload, list) else [payload]
    reports = verify_batch(requests, config)
    for report in reports:
        print(json.dumps(report.to_dict(), sort_keys=True))
    return 0 if all(r.ok for r in reports) else 1


if __name__ == "__main__":
    raise SystemExit(main())
