"""Append-only activity log (rotations, dissolutions, trust-relevant actions)."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import JSON, DateTime, ForeignKey, Integer, String, Uuid
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from app.db.session import Base


class Activity(Base):
    """Activity record. Never updated after insert."""

    __tablename__ = "activities"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    activity_type: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    founder_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("founder_profiles.id", ondelete="SET NULL"), nullable=True, index=True
    )
    circle_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("circles.id", ondelete="SET NULL"), nullable=True, index=True
    )
    details: Mapped[dict] = mapped_column(
        JSON().with_variant(JSONB, "postgresql"), default=dict, nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False
    )
