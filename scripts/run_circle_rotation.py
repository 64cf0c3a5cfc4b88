#!/usr/bin/env python3
"""Run the circle rotation / dissolution pass locally.

Usage:
    python scripts/run_circle_rotation.py

Exits 0 on success, 1 on failure.
"""

from __future__ import annotations

import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from app.db.session import SessionLocal
from app.services.jobs.circle_rotation import run_circle_rotation
from app.services.override_policy import get_override_policy


def main() -> int:
    db = SessionLocal()
    try:
        result = run_circle_rotation(db, policy=get_override_policy())
        print(
            f"success={result['success']} "
            f"job_run_id={result['job_run_id']} "
            f"processed={result['processed']} "
            f"activated={result['activated']} "
            f"rotated={result['rotated']} "
            f"dissolved={result['dissolved']}"
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
