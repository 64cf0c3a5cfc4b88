"""Match model: suggested pairwise connection between two founders."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import JSON, DateTime, ForeignKey, Index, Integer, String, Uuid
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from app.db.session import Base


def pair_key(a: uuid.UUID | str, b: uuid.UUID | str) -> str:
    """Order-independent key for an unordered founder pair."""
    low, high = sorted((str(a), str(b)))
    return f"{low}:{high}"


class Match(Base):
    """Match row. At most one row per unordered pair (uq on pair_key)."""

    __tablename__ = "matches"

    __table_args__ = (
        Index("uq_matches_pair_key", "pair_key", unique=True),
        Index("ix_matches_status", "status"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    subject_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("founder_profiles.id", ondelete="CASCADE"), nullable=False, index=True
    )
    candidate_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("founder_profiles.id", ondelete="CASCADE"), nullable=False, index=True
    )
    pair_key: Mapped[str] = mapped_column(String(80), nullable=False)
    score: Mapped[int] = mapped_column(Integer, nullable=False)
    breakdown: Mapped[dict] = mapped_column(
        JSON().with_variant(JSONB, "postgresql"), default=dict, nullable=False
    )
    reasons: Mapped[list] = mapped_column(
        JSON().with_variant(JSONB, "postgresql"), default=list, nullable=False
    )
    status: Mapped[str] = mapped_column(String(32), default="suggested", nullable=False)
    suggested_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False
    )
    responded_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
