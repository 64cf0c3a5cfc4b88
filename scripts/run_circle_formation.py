#!/usr/bin/env python3
"""Run circle formation locally.

Usage:
    python scripts/run_circle_formation.py
    python scripts/run_circle_formation.py --seed 42

Forms up to MAX_CIRCLES_PER_RUN circles from unseated eligible founders.
Exits 0 on success, 1 on failure.
"""

from __future__ import annotations

import argparse
import random
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from app.db.session import SessionLocal
from app.services.jobs.circle_formation import run_circle_formation
from app.services.override_policy import get_override_policy


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Form founder circles")
    parser.add_argument("--seed", type=int, default=None, help="Seed for circle names")
    args = parser.parse_args(argv)

    db = SessionLocal()
    try:
        result = run_circle_formation(
            db, policy=get_override_policy(), rng=random.Random(args.seed)
        )
        print(
            f"success={result['success']} "
            f"job_run_id={result['job_run_id']} "
            f"created={result['created']}"
        )
        for error in result["errors"]:
            print(f"error={error}", file=sys.stderr)
        return 0 if result["success"] else 1
    except Exception as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
