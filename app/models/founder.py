"""Founder profile model with declared skills and needs."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import JSON, Boolean, CheckConstraint, DateTime, ForeignKey, Integer, String, Uuid
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.session import Base


class FounderProfile(Base):
    """Member profile read by matching and circle jobs.

    The core only writes trust_score, last_active_at and trust_evaluated_at;
    everything else is owned by the onboarding flow.
    """

    __tablename__ = "founder_profiles"

    __table_args__ = (
        CheckConstraint(
            "trust_score >= 0 AND trust_score <= 100", name="ck_founder_profiles_trust_range"
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    email: Mapped[str] = mapped_column(String(320), nullable=False, unique=True)
    display_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    project_stage: Mapped[str | None] = mapped_column(String(32), nullable=True)
    archetype: Mapped[str | None] = mapped_column(String(32), nullable=True)
    availability: Mapped[str] = mapped_column(String(32), default="limited", nullable=False)
    timezone: Mapped[str] = mapped_column(String(64), default="UTC", nullable=False)
    trust_score: Mapped[int] = mapped_column(Integer, default=50, nullable=False)
    intent_signals: Mapped[dict] = mapped_column(
        JSON().with_variant(JSONB, "postgresql"), default=dict, nullable=False
    )
    status: Mapped[str] = mapped_column(String(32), default="pending", nullable=False, index=True)
    onboarding_completed: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    last_active_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    trust_evaluated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    skills: Mapped[list["FounderSkill"]] = relationship(
        "FounderSkill", back_populates="founder", cascade="all, delete-orphan"
    )
    needs: Mapped[list["FounderNeed"]] = relationship(
        "FounderNeed", back_populates="founder", cascade="all, delete-orphan"
    )


class FounderSkill(Base):
    """Skill a founder offers; only willing_to_help skills satisfy needs."""

    __tablename__ = "founder_skills"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    founder_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("founder_profiles.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    proficiency: Mapped[str] = mapped_column(String(32), default="competent", nullable=False)
    willing_to_help: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    founder: Mapped["FounderProfile"] = relationship("FounderProfile", back_populates="skills")


class FounderNeed(Base):
    """Support a founder is seeking."""

    __tablename__ = "founder_needs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    founder_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("founder_profiles.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    priority: Mapped[str] = mapped_column(String(32), default="medium", nullable=False)
    fulfilled: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    founder: Mapped["FounderProfile"] = relationship("FounderProfile", back_populates="needs")
