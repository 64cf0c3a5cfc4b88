"""Tests for the match generation job."""

from __future__ import annotations

import uuid
from unittest.mock import patch

import pytest

from app.models import JobRun, Match, pair_key
from app.services.jobs import run_job, run_match_generation
from app.services.override_policy import OverridePolicy
from tests.factories import NOW, add_founder
from tests.test_constants import TEST_OVERRIDE_EMAIL


class TestRunMatchGeneration:
    def test_creates_one_match_per_pair(self, db) -> None:
        """Three compatible founders yield three matches, never both directions."""
        founders = [add_founder(db) for _ in range(3)]

        result = run_match_generation(db, now=NOW)

        assert result["success"] is True
        assert result["processed"] == 3
        assert result["created"] == 3
        assert result["errors"] == []
        keys = {m.pair_key for m in db.query(Match).all()}
        assert keys == {
            pair_key(founders[0].id, founders[1].id),
            pair_key(founders[0].id, founders[2].id),
            pair_key(founders[1].id, founders[2].id),
        }

    def test_second_run_creates_nothing(self, db) -> None:
        for _ in range(3):
            add_founder(db)
        run_match_generation(db, now=NOW)

        result = run_match_generation(db, now=NOW)

        assert result["created"] == 0
        assert db.query(Match).count() == 3

    def test_persisted_match_fields(self, db) -> None:
        a = add_founder(db)
        b = add_founder(db)

        run_match_generation(db, now=NOW)

        match = db.query(Match).one()
        assert match.subject_id == a.id
        assert match.candidate_id == b.id
        assert match.status == "suggested"
        assert match.score >= 40
        assert set(match.breakdown) == {
            "needs_offers",
            "stage",
            "archetype",
            "timezone",
            "availability",
            "intent",
            "trust",
        }

    def test_low_scores_are_not_persisted(self, db) -> None:
        add_founder(db)
        add_founder(
            db,
            timezone="Asia/Tokyo",
            availability="focused",
            project_stage="scaling",
            archetype="explorer",
            trust_score=0,
        )

        result = run_match_generation(db, now=NOW)

        assert result["created"] == 0
        assert db.query(Match).count() == 0

    def test_pending_cap_skips_founder(self, db, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("MAX_PENDING_MATCHES", "1")
        for _ in range(3):
            add_founder(db)

        result = run_match_generation(db, now=NOW)

        # First founder takes the second; the second is then at the cap
        assert result["created"] == 2
        assert result["skipped"] == 1

    def test_non_onboarded_founders_are_left_out(self, db) -> None:
        add_founder(db)
        add_founder(db, onboarding_completed=False)

        assert run_match_generation(db, now=NOW)["created"] == 0


class TestOverrideIdentities:
    def _founder_at_cap(self, db):
        subject = add_founder(db, email=TEST_OVERRIDE_EMAIL)
        paused = add_founder(db, status="paused")
        db.add(
            Match(
                subject_id=subject.id,
                candidate_id=paused.id,
                pair_key=pair_key(subject.id, paused.id),
                score=60,
                breakdown={},
                reasons=[],
                status="suggested",
                suggested_at=NOW,
            )
        )
        db.commit()
        add_founder(db)
        return subject

    def test_cap_applies_without_override(self, db, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("MAX_PENDING_MATCHES", "1")
        subject = self._founder_at_cap(db)

        result = run_match_generation(db, founder_id=subject.id, now=NOW)

        assert result["skipped"] == 1
        assert result["created"] == 0

    def test_override_bypasses_cap(self, db, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("MAX_PENDING_MATCHES", "1")
        subject = self._founder_at_cap(db)
        policy = OverridePolicy.from_emails([TEST_OVERRIDE_EMAIL.upper()])

        result = run_match_generation(db, policy=policy, founder_id=subject.id, now=NOW)

        assert result["created"] == 1

    def test_override_bypasses_onboarding(self, db) -> None:
        add_founder(db)
        add_founder(db, email=TEST_OVERRIDE_EMAIL, onboarding_completed=False)
        policy = OverridePolicy.from_emails([TEST_OVERRIDE_EMAIL])

        assert run_match_generation(db, policy=policy, now=NOW)["created"] == 1


class TestTargetedMode:
    def test_only_target_is_processed(self, db) -> None:
        target = add_founder(db)
        add_founder(db)
        add_founder(db)

        result = run_match_generation(db, founder_id=target.id, now=NOW)

        assert result["processed"] == 1
        assert result["created"] == 2

    def test_unknown_founder_fails(self, db) -> None:
        result = run_match_generation(db, founder_id=uuid.uuid4(), now=NOW)

        assert result["success"] is False
        assert "not found" in result["errors"][0]
        job = db.query(JobRun).one()
        assert job.status == "failed"


class TestJobRunAudit:
    def test_job_run_row_records_summary(self, db) -> None:
        for _ in range(2):
            add_founder(db)

        result = run_match_generation(db, now=NOW)

        job = db.query(JobRun).one()
        assert job.id == result["job_run_id"]
        assert job.job_type == "match_generation"
        assert job.status == "completed"
        assert job.records_processed == 2
        assert job.error_message is None

    def test_fetch_failure_marks_run_failed(self, db) -> None:
        with patch(
            "app.services.repository.load_matchable_founders",
            side_effect=RuntimeError("db down"),
        ):
            result = run_match_generation(db, now=NOW)

        assert result["success"] is False
        assert "db down" in result["errors"][0]
        assert db.query(JobRun).one().status == "failed"

    def test_idempotency_key_replays_completed_run(self, db) -> None:
        for _ in range(2):
            add_founder(db)

        first = run_job(db, "match_generation", idempotency_key="nightly-1", now=NOW)
        second = run_job(db, "match_generation", idempotency_key="nightly-1", now=NOW)

        assert first["created"] == 1
        assert second["idempotent_replay"] is True
        assert second["job_run_id"] == first["job_run_id"]
        assert second["created"] == 1
        assert db.query(JobRun).count() == 1

    def test_failed_run_is_not_replayed(self, db) -> None:
        missing = uuid.uuid4()
        run_job(db, "match_generation", idempotency_key="k", founder_id=missing, now=NOW)
        again = run_job(db, "match_generation", idempotency_key="k", founder_id=missing, now=NOW)

        assert "idempotent_replay" not in again
        assert db.query(JobRun).count() == 2

    def test_unknown_job_type_raises(self, db) -> None:
        with pytest.raises(ValueError, match="Unknown job_type"):
            run_job(db, "reindex_everything")
