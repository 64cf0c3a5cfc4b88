"""Tests for the circle formation job."""

from __future__ import annotations

import random
from datetime import timedelta

import pytest

from app.models import Activity, Circle, CircleMembership, JobRun
from app.services.jobs import run_circle_formation
from app.services.jobs.circle_formation import clamp_cadence
from app.services.trust import as_utc
from tests.factories import NOW, add_circle, add_diverse_founders, add_founder


def seats(db, circle_id) -> list[CircleMembership]:
    return db.query(CircleMembership).filter(CircleMembership.circle_id == circle_id).all()


class TestRunCircleFormation:
    def test_persists_forming_circle(self, db) -> None:
        founders = add_diverse_founders(db, 6)

        result = run_circle_formation(db, rng=random.Random(3), now=NOW)

        assert result["success"] is True
        assert result["processed"] == 6
        assert result["created"] == 1
        circle = db.query(Circle).one()
        assert str(circle.id) == result["circle_ids"][0]
        assert circle.status == "forming"
        assert as_utc(circle.formed_at) == NOW
        assert as_utc(circle.rotation_date) == NOW + timedelta(days=90)
        assert circle.formation_score is not None
        assert circle.meta["formation_score"] == circle.formation_score
        assert {m.founder_id for m in seats(db, circle.id)} == {f.id for f in founders}

    def test_facilitator_is_assigned(self, db) -> None:
        founders = add_diverse_founders(db, 6)
        connector = founders[2]

        run_circle_formation(db, rng=random.Random(3), now=NOW)

        roles = {m.founder_id: m.role for m in db.query(CircleMembership).all()}
        # 80 * 0.4 + connector 15 + open availability 10 beats every other member
        assert roles[connector.id] == "facilitator"
        assert list(roles.values()).count("facilitator") == 1

    def test_logs_circle_formed(self, db) -> None:
        add_diverse_founders(db, 6)

        result = run_circle_formation(db, rng=random.Random(3), now=NOW)

        (activity,) = db.query(Activity).filter(Activity.activity_type == "circle_formed").all()
        assert str(activity.circle_id) == result["circle_ids"][0]
        assert len(activity.details["member_ids"]) == 6

    def test_seated_founders_are_not_reused(self, db) -> None:
        seated = add_diverse_founders(db, 4)
        add_circle(db, seated)
        free = add_diverse_founders(db, 4)

        result = run_circle_formation(db, rng=random.Random(3), now=NOW)

        assert result["processed"] == 4
        assert result["created"] == 1
        new_circle = db.query(Circle).filter(Circle.status == "forming").one()
        assert {m.founder_id for m in seats(db, new_circle.id)} == {f.id for f in free}

    def test_low_trust_and_unavailable_are_left_out(self, db) -> None:
        add_diverse_founders(db, 4)
        add_founder(db, trust_score=10, archetype="explorer")
        add_founder(db, availability="unavailable", archetype="explorer")

        result = run_circle_formation(db, rng=random.Random(3), now=NOW)

        assert result["processed"] == 4

    def test_small_pool_creates_nothing(self, db) -> None:
        add_diverse_founders(db, 3)

        result = run_circle_formation(db, now=NOW)

        assert result["success"] is True
        assert result["created"] == 0
        assert db.query(Circle).count() == 0

    def test_respects_max_circles_per_run(self, db, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("MAX_CIRCLES_PER_RUN", "1")
        add_diverse_founders(db, 6)
        add_diverse_founders(db, 6)

        result = run_circle_formation(db, rng=random.Random(3), now=NOW)

        assert result["created"] == 1

    def test_second_run_reuses_nobody(self, db) -> None:
        add_diverse_founders(db, 6)
        run_circle_formation(db, rng=random.Random(3), now=NOW)

        result = run_circle_formation(db, rng=random.Random(3), now=NOW)

        assert result["processed"] == 0
        assert result["created"] == 0

    def test_job_run_row(self, db) -> None:
        result = run_circle_formation(db, now=NOW)

        job = db.query(JobRun).one()
        assert job.job_type == "circle_formation"
        assert job.status == "completed"
        assert job.id == result["job_run_id"]


@pytest.mark.parametrize(("days", "expected"), [(30, 60), (60, 60), (90, 90), (365, 120)])
def test_clamp_cadence(days: int, expected: int) -> None:
    assert clamp_cadence(days) == expected
