#!/usr/bin/env python3
"""
Run the chain engine over a JSON snapshot of entities and print JSON results.

Snapshot file: JSON array of {"id": ..., "growthSignals": [{id, type,
description, confidence, score, detectedDate}, ...]} (snake_case keys also
accepted), or an object with an "entities" array.

Usage:
  python -m backend_signals.tools.analyze_snapshot snapshot.json chains ENTITY_ID
  python -m backend_signals.tools.analyze_snapshot snapshot.json clusters
  python -m backend_signals.tools.analyze_snapshot snapshot.json predict ENTITY_ID --max-depth 2

Config comes from SIGNAL_CHAIN_* env vars (see config/env.py); flags override.
Exit codes: 0 ok, 1 unreadable snapshot, 2 invalid config or signals.
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Sequence

from backend_signals.chain_engine.detector import SignalChainDetector
from backend_signals.config import get_settings
from backend_signals.core.exceptions import SignalEngineError
from backend_signals.signals_logging import get_logger

logger = get_logger(__name__)


def load_snapshot(path: Path) -> list[dict[str, Any]]:
    """Read entity records from a snapshot file."""
    with open(path, encoding="utf-8") as f:
        data = json.load(f)
    if isinstance(data, dict):
        data = data.get("entities", [])
    if not isinstance(data, list):
        raise ValueError("snapshot must be a JSON array of entities")
    return data


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="analyze_snapshot",
        description="Detect growth-signal chains, clusters and predictions for a snapshot.",
    )
    parser.add_argument("snapshot", type=Path, help="Path to JSON snapshot of entities")
    parser.add_argument("command", choices=("chains", "clusters", "predict"))
    parser.add_argument("entity_id", nargs="?", help="Entity id (chains / predict)")
    parser.add_argument("--max-depth", type=int, default=None)
    parser.add_argument("--min-confidence", type=float, default=None)
    parser.add_argument("--correlation-threshold", type=float, default=None)
    parser.add_argument("--indent", type=int, default=2)
    return parser


def run(args: argparse.Namespace) -> dict[str, Any]:
    settings = get_settings()
    config = settings.signal_config.with_overrides(
        max_depth=args.max_depth,
        min_confidence=args.min_confidence,
        correlation_threshold=args.correlation_threshold,
    )
    detector = SignalChainDetector(
        load_snapshot(args.snapshot),
        cache_ttl_sec=settings.cache_ttl_sec,
        concurrency=settings.concurrency,
    )
    if args.command == "clusters":
        result: Any = detector.analyze_signal_clusters(config).to_dict()
    elif args.command == "chains":
        result = [c.to_dict() for c in detector.detect_signal_chains(args.entity_id, config)]
    else:
        result = [p.to_dict() for p in detector.predict_next_signals(args.entity_id, config)]
    return {"command": args.command, "config": config.to_dict(), "result": result}


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.command in ("chains", "predict") and not args.entity_id:
        parser.error(f"{args.command} requires ENTITY_ID")
    try:
        output = run(args)
    except SignalEngineError as e:
        logger.error("analyze_snapshot_failed", error_code=e.code, error=e.message)
        return 2
    except (OSError, ValueError) as e:
        logger.error("analyze_snapshot_unreadable", path=str(args.snapshot), error=str(e))
        return 1
    print(json.dumps(output, indent=args.indent))
    return 0


if __name__ == "__main__":
    sys.exit(main())
