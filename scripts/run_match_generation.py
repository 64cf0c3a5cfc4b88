#!/usr/bin/env python3
"""Run match generation locally.

Usage:
    python scripts/run_match_generation.py
    python scripts/run_match_generation.py --founder-id <uuid>

Scores every active, onboarded founder (or one founder) against the pool and
persists new suggested matches. Exits 0 on success, 1 on failure.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from uuid import UUID

# Add project root to path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from app.db.session import SessionLocal
from app.services.jobs.match_generation import run_match_generation
from app.services.override_policy import get_override_policy


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Generate suggested founder matches")
    parser.add_argument("--founder-id", type=UUID, default=None, help="Only this founder")
    args = parser.parse_args(argv)

    db = SessionLocal()
    try:
        result = run_match_generation(
            db, policy=get_override_policy(), founder_id=args.founder_id
        )
        print(
            f"success={result['success']} "
            f"job_run_id={result['job_run_id']} "
            f"processed={result['processed']} "
            f"created={result['created']} "
            f"skipped={result['skipped']}"
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
