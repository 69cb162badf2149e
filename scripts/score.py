#!/usr/bin/env python3
# ruff: noqa: E402
from __future__ import annotations

import argparse
import os
import sys

# Allow running this script directly via `python scripts/score.py`
# by adding the repo root (which contains `src/`) to sys.path.
REPO_ROOT = os.path.dirname(os.path.dirname(__file__))
if REPO_ROOT not in sys.path:
    sys.path.insert(0, REPO_ROOT)

from src.engine.position import Position
from src.engine.scoring import compare


def main() -> int:
    parser = argparse.ArgumentParser(description="Score a reproduced position against a target")
    parser.add_argument("--user", type=str, required=True, help="FEN of the reproduced position")
    parser.add_argument("--target", type=str, required=True, help="FEN of the target position")
    parser.add_argument("--strict", action="store_true", help="Reject malformed placements")
    parser.add_argument("--verbose", action="store_true", help="List mismatching squares")
    args = parser.parse_args()

    user = Position()
    target = Position()
    for label, pos, fen in (("user", user, args.user), ("target", target, args.target)):
        result = pos.populate_from_fen(fen, strict=args.strict)
        if not result.ok:
            print(f"invalid {label} FEN: {'; '.join(result.errors)}", file=sys.stderr)
            return 2

    report = compare(user, target)
    print(f"score={report.correct}/{report.total} solved={str(report.solved).lower()}")
    if args.verbose:
        for d in report.mismatches:
            print(f"{d.name}: expected={d.expected!r} actual={d.actual!r}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
