"""Circle (peer group) and membership models."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Integer, String, Text, Uuid
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.session import Base


class Circle(Base):
    """Small founder cohort with a rotation cadence."""

    __tablename__ = "circles"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    status: Mapped[str] = mapped_column(String(32), default="forming", nullable=False, index=True)
    rotation_cadence_days: Mapped[int] = mapped_column(Integer, default=90, nullable=False)
    rotation_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    formed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False
    )
    last_rotation_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    dissolved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    dissolution_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    formation_score: Mapped[int | None] = mapped_column(Integer, nullable=True)
    meta: Mapped[dict] = mapped_column(
        JSON().with_variant(JSONB, "postgresql"), default=dict, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    memberships: Mapped[list["CircleMembership"]] = relationship(
        "CircleMembership", back_populates="circle", cascade="all, delete-orphan"
    )


class CircleMembership(Base):
    """Founder seat in a circle. Deactivated (not deleted) on exit."""

    __tablename__ = "circle_memberships"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    circle_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("circles.id", ondelete="CASCADE"), nullable=False, index=True
    )
    founder_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("founder_profiles.id", ondelete="CASCADE"), nullable=False, index=True
    )
    role: Mapped[str] = mapped_column(String(32), default="member", nullable=False)
    active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    joined_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False
    )
    left_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    exit_reason: Mapped[str | None] = mapped_column(String(32), nullable=True)
    # First time an exit rule with a grace period fired for this seat
    exit_flagged_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    circle: Mapped["Circle"] = relationship("Circle", back_populates="memberships")
