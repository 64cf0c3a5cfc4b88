"""Trust score decay and boost engine."""

from app.services.trust.trust_engine import (
    ActivityCounts,
    TrustConfig,
    TrustEngine,
    TrustUpdate,
    UnknownTrustActionError,
    as_utc,
    clamp_trust,
    days_since,
    trust_bucket,
)

__all__ = [
    "ActivityCounts",
    "TrustConfig",
    "TrustEngine",
    "TrustUpdate",
    "UnknownTrustActionError",
    "as_utc",
    "clamp_trust",
    "days_since",
    "trust_bucket",
]
