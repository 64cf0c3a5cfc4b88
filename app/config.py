"""
Application configuration. Loads from environment variables.
Secrets and sensitive config must never be hardcoded.
"""

import os

from dotenv import load_dotenv

load_dotenv()
from functools import lru_cache


@lru_cache(maxsize=1)
def get_settings() -> "Settings":
    """Return cached settings instance."""
    return Settings()


class Settings:
    """Application settings loaded from environment."""

    # App
    app_name: str = "FounderCircles"
    debug: bool = False

    # Database (postgresql+psycopg for psycopg3; sqlite:// accepted for local tests)
    database_url: str = "postgresql+psycopg://localhost:5432/founder_circles_dev"
    db_connect_timeout: int = 10  # seconds

    # Security
    internal_job_token: str = ""  # Required for /internal/* endpoints

    # Override identities: exempt from trust decay, match caps, onboarding gating
    # and circle rules. Comma-separated emails.
    override_emails: list[str]

    # Matching
    min_match_score: int = 40  # matches below this are never persisted
    max_pending_matches: int = 5  # per-founder cap on "suggested" matches

    # Circles
    rotation_cadence_days: int = 90
    max_circles_per_run: int = 20  # upper bound for one formation job

    def __init__(self) -> None:
        self.app_name = os.getenv("APP_NAME", self.app_name)
        self.debug = os.getenv("DEBUG", "false").lower() == "true"

        default_user = os.getenv("PGUSER") or os.getenv("USER") or "postgres"
        default_url = (
            f"postgresql+psycopg://{default_user}:"
            f"{os.getenv('PGPASSWORD', '')}@"
            f"{os.getenv('PGHOST', 'localhost')}:"
            f"{os.getenv('PGPORT', '5432')}/"
            f"{os.getenv('PGDATABASE', 'founder_circles_dev')}"
        )
        raw_url = os.getenv("DATABASE_URL", default_url)
        # Ensure psycopg3 driver if URL uses generic postgresql://
        if raw_url.startswith("postgresql://") and not raw_url.startswith("postgresql+psycopg"):
            raw_url = raw_url.replace("postgresql://", "postgresql+psycopg://", 1)
        self.database_url = raw_url
        self.db_connect_timeout = int(os.getenv("DB_CONNECT_TIMEOUT", str(self.db_connect_timeout)))

        self.internal_job_token = os.getenv("INTERNAL_JOB_TOKEN", "")

        _overrides = os.getenv("OVERRIDE_EMAILS", "").strip()
        self.override_emails = [s.strip().lower() for s in _overrides.split(",") if s.strip()]

        self.min_match_score = int(os.getenv("MIN_MATCH_SCORE", str(self.min_match_score)))
        self.max_pending_matches = int(
            os.getenv("MAX_PENDING_MATCHES", str(self.max_pending_matches))
        )
        self.rotation_cadence_days = int(
            os.getenv("ROTATION_CADENCE_DAYS", str(self.rotation_cadence_days))
        )
        self.max_circles_per_run = int(
            os.getenv("MAX_CIRCLES_PER_RUN", str(self.max_circles_per_run))
        )
