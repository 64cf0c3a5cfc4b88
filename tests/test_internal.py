"""Tests for internal job endpoints (/internal/jobs/*, /internal/trust/boost, /internal/reports/*)."""

from __future__ import annotations

import uuid
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from app.services.override_policy import OverridePolicy
from tests.factories import add_circle, add_diverse_founders, add_founder
from tests.test_constants import TEST_INTERNAL_JOB_TOKEN

HEADERS = {"X-Internal-Token": TEST_INTERNAL_JOB_TOKEN}

JOB_ROUTES = [
    ("/internal/jobs/matches", "match_generation"),
    ("/internal/jobs/circles/rotate", "circle_rotation"),
    ("/internal/jobs/circles/form", "circle_formation"),
    ("/internal/jobs/trust", "trust_decay"),
]


# ── Token ───────────────────────────────────────────────────────────


class TestInternalToken:
    def test_missing_token_returns_422(self, client: TestClient) -> None:
        """Header is required; FastAPI rejects the request before the handler."""
        assert client.post("/internal/jobs/matches").status_code == 422

    def test_wrong_token_returns_403(self, client: TestClient) -> None:
        response = client.post("/internal/jobs/trust", headers={"X-Internal-Token": "wrong"})
        assert response.status_code == 403

    def test_unset_token_rejects_everything(
        self, client: TestClient, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("INTERNAL_JOB_TOKEN", "")
        from app.config import get_settings

        get_settings.cache_clear()

        response = client.post("/internal/jobs/trust", headers={"X-Internal-Token": "anything"})
        assert response.status_code == 403


# ── Job triggers ────────────────────────────────────────────────────


class TestJobEndpoints:
    @pytest.mark.parametrize(("path", "job_type"), JOB_ROUTES)
    @patch("app.services.jobs.executor.run_job")
    def test_dispatches_job_type(self, mock_run, path: str, job_type: str, client) -> None:
        mock_run.return_value = {"success": True, "processed": 0, "job_run_id": 7}

        response = client.post(path, headers=HEADERS)

        assert response.status_code == 200
        assert response.json()["job_run_id"] == 7
        args, kwargs = mock_run.call_args
        assert args[1] == job_type
        assert kwargs["idempotency_key"] is None
        assert isinstance(kwargs["policy"], OverridePolicy)

    @patch("app.services.jobs.executor.run_job")
    def test_idempotency_key_is_forwarded(self, mock_run, client: TestClient) -> None:
        mock_run.return_value = {"success": True}

        client.post(
            "/internal/jobs/circles/rotate",
            headers={**HEADERS, "X-Idempotency-Key": "rotate-2026-06-01"},
        )

        assert mock_run.call_args[1]["idempotency_key"] == "rotate-2026-06-01"

    @patch("app.services.jobs.executor.run_job")
    def test_targeted_match_generation(self, mock_run, client: TestClient) -> None:
        mock_run.return_value = {"success": True}
        founder_id = uuid.uuid4()

        client.post(f"/internal/jobs/matches?founder_id={founder_id}", headers=HEADERS)

        assert mock_run.call_args[1]["founder_id"] == founder_id

    def test_malformed_founder_id_returns_422(self, client: TestClient) -> None:
        response = client.post("/internal/jobs/matches?founder_id=not-a-uuid", headers=HEADERS)

        assert response.status_code == 422
        assert "founder_id" in response.json()["detail"]

    @patch("app.services.jobs.executor.run_job", side_effect=RuntimeError("pool exhausted"))
    def test_job_exception_returns_failure_body(self, _mock_run, client: TestClient) -> None:
        response = client.post("/internal/jobs/circles/form", headers=HEADERS)

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is False
        assert data["errors"] == ["pool exhausted"]

    def test_match_generation_end_to_end(self, client_with_db: TestClient, db) -> None:
        add_founder(db)
        add_founder(db)

        response = client_with_db.post(
            "/internal/jobs/matches", headers={**HEADERS, "X-Idempotency-Key": "e2e"}
        )
        replay = client_with_db.post(
            "/internal/jobs/matches", headers={**HEADERS, "X-Idempotency-Key": "e2e"}
        )

        assert response.json()["success"] is True
        assert response.json()["created"] == 1
        assert replay.json()["idempotent_replay"] is True
        assert replay.json()["job_run_id"] == response.json()["job_run_id"]


# ── Readiness probes ────────────────────────────────────────────────


class TestReadiness:
    @pytest.mark.parametrize("name", ["matches", "circles/rotate", "circles/form", "trust"])
    def test_known_job_is_ready(self, client: TestClient, name: str) -> None:
        response = client.get(f"/internal/jobs/{name}", headers=HEADERS)

        assert response.status_code == 200
        assert response.json()["job"] == name
        assert response.json()["status"] == "ready"

    def test_unknown_job_returns_404(self, client: TestClient) -> None:
        assert client.get("/internal/jobs/reindex", headers=HEADERS).status_code == 404

    def test_probe_requires_token(self, client: TestClient) -> None:
        response = client.get("/internal/jobs/trust", headers={"X-Internal-Token": "nope"})
        assert response.status_code == 403


# ── Trust boost ─────────────────────────────────────────────────────


class TestTrustBoost:
    def test_boosts_existing_founder(self, client_with_db: TestClient, db) -> None:
        founder = add_founder(db, trust_score=50)

        response = client_with_db.post(
            "/internal/trust/boost",
            headers=HEADERS,
            json={"founder_id": str(founder.id), "action": "match_accepted"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["previous_score"] == 50
        assert data["new_score"] == 53

    def test_unknown_founder_returns_404(self, client_with_db: TestClient) -> None:
        response = client_with_db.post(
            "/internal/trust/boost",
            headers=HEADERS,
            json={"founder_id": str(uuid.uuid4()), "action": "feedback_given"},
        )

        assert response.status_code == 404

    def test_unknown_action_returns_422(self, client_with_db: TestClient, db) -> None:
        founder = add_founder(db)

        response = client_with_db.post(
            "/internal/trust/boost",
            headers=HEADERS,
            json={"founder_id": str(founder.id), "action": "posted_meme"},
        )

        assert response.status_code == 422


# ── Reports ─────────────────────────────────────────────────────────


class TestReports:
    def test_circle_health(self, client_with_db: TestClient, db) -> None:
        add_circle(db, add_diverse_founders(db, 5))
        add_circle(db, add_diverse_founders(db, 4))

        response = client_with_db.get("/internal/reports/circle-health", headers=HEADERS)

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert (data["healthy"], data["at_risk"], data["critical"]) == (1, 1, 0)
        assert data["total"] == 2

    def test_trust_distribution(self, client_with_db: TestClient, db) -> None:
        add_founder(db, trust_score=85)
        add_founder(db, trust_score=10)

        response = client_with_db.get("/internal/reports/trust-distribution", headers=HEADERS)

        data = response.json()
        assert data["success"] is True
        assert data["distribution"]["excellent"] == 1
        assert data["distribution"]["critical"] == 1
        assert data["total"] == 2
