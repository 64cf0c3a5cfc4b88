"""Tests for JobRun bookkeeping in the job executor."""

from __future__ import annotations

import json
from unittest.mock import patch

import pytest

from app.models import JobRun
from app.services.jobs import (
    run_circle_formation,
    run_circle_rotation,
    run_match_generation,
    run_trust_decay,
)
from app.services.jobs.executor import fail_job_run, start_job_run
from tests.factories import NOW, add_founder


class TestFailJobRun:
    def test_merges_job_counts_into_summary(self, db) -> None:
        job = start_job_run(db, "match_generation")

        result = fail_job_run(
            db, job, RuntimeError("lost connection"), NOW, counts={"created": 2, "skipped": 0}
        )

        assert result == {
            "success": False,
            "processed": 0,
            "created": 2,
            "skipped": 0,
            "errors": ["lost connection"],
            "timestamp": NOW.isoformat(),
            "job_run_id": job.id,
        }
        row = db.query(JobRun).one()
        assert row.status == "failed"
        assert row.error_message == "lost connection"
        assert json.loads(row.summary)["created"] == 2

    def test_counts_are_optional(self, db) -> None:
        job = start_job_run(db, "trust_decay")

        result = fail_job_run(db, job, ValueError("bad row"), NOW)

        assert set(result) == {"success", "processed", "errors", "timestamp", "job_run_id"}


JOBS = [
    ("match_generation", run_match_generation, {"created", "skipped"}),
    (
        "circle_rotation",
        run_circle_rotation,
        {"activated", "rotated", "dissolved", "members_exited", "members_joined"},
    ),
    ("trust_decay", run_trust_decay, {"boosted", "decayed", "unchanged", "skipped"}),
    ("circle_formation", run_circle_formation, {"created", "circle_ids"}),
]


class TestUnexpectedJobFailure:
    @pytest.mark.parametrize(("module", "job", "keys"), JOBS)
    def test_failure_summary_keeps_job_keys(self, db, module: str, job, keys: set) -> None:
        """A crash outside the per-record loop still returns every summary count."""
        with patch(
            f"app.services.jobs.{module}.finish_job_run",
            side_effect=RuntimeError("summary write failed"),
        ):
            result = job(db, now=NOW)

        assert result["success"] is False
        assert result["errors"] == ["summary write failed"]
        assert keys <= set(result)
        assert db.query(JobRun).one().status == "failed"

    def test_committed_matches_stay_counted(self, db) -> None:
        add_founder(db)
        add_founder(db)

        with patch(
            "app.services.jobs.match_generation.finish_job_run",
            side_effect=RuntimeError("summary write failed"),
        ):
            result = run_match_generation(db, now=NOW)

        assert result["processed"] == 2
        assert result["created"] == 1
        assert result["skipped"] == 0
