"""
Health endpoint and application factory tests.
"""

from unittest.mock import MagicMock, patch

from fastapi.testclient import TestClient

from app import __version__


def _connected():
    conn = MagicMock()
    cm = MagicMock()
    cm.__enter__ = MagicMock(return_value=conn)
    cm.__exit__ = MagicMock(return_value=False)
    return cm


def test_health_reports_connected_database(client: TestClient) -> None:
    """200 with the package version when SELECT 1 succeeds."""
    from app.db import engine

    with patch.object(engine, "connect", return_value=_connected()):
        response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {
        "status": "ok",
        "version": __version__,
        "database": "connected",
    }


def test_health_returns_503_when_db_unreachable(client: TestClient) -> None:
    from app.db import engine

    with patch.object(engine, "connect", side_effect=Exception("Connection refused")):
        response = client.get("/health")

    assert response.status_code == 503
    data = response.json()
    assert data["status"] == "unhealthy"
    assert data["database"] == "disconnected"


def test_lifespan_checks_database_on_startup() -> None:
    """Entering the app context runs the startup connectivity check."""
    from app.main import app

    with patch("app.main.check_db_connection") as check:
        with TestClient(app):
            pass

    check.assert_called_once()


def test_docs_hidden_unless_debug(client: TestClient) -> None:
    assert client.get("/docs").status_code == 404


def test_only_internal_routes_are_mounted(client: TestClient) -> None:
    """Internal routes answer (422 without a token); nothing else is served."""
    assert client.post("/internal/jobs/matches").status_code == 422
    assert client.post("/internal/trust/boost").status_code == 422
    assert client.get("/api/companies").status_code == 404
    assert client.get("/").status_code == 404
