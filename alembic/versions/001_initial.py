"""initial schema: founders, matches, circles, activities, job runs

Revision ID: 001
Revises:
Create Date: 2026-10-18

"""

from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

_json = sa.JSON().with_variant(postgresql.JSONB(), "postgresql")


def upgrade() -> None:
    op.create_table(
        "founder_profiles",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("email", sa.String(length=320), nullable=False),
        sa.Column("display_name", sa.String(length=255), nullable=True),
        sa.Column("project_stage", sa.String(length=32), nullable=True),
        sa.Column("archetype", sa.String(length=32), nullable=True),
        sa.Column("availability", sa.String(length=32), nullable=False),
        sa.Column("timezone", sa.String(length=64), nullable=False),
        sa.Column("trust_score", sa.Integer(), nullable=False),
        sa.Column("intent_signals", _json, nullable=False),
        sa.Column("status", sa.String(length=32), nullable=False),
        sa.Column("onboarding_completed", sa.Boolean(), nullable=False),
        sa.Column("last_active_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("trust_evaluated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            "trust_score >= 0 AND trust_score <= 100", name="ck_founder_profiles_trust_range"
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email"),
    )
    op.create_index("ix_founder_profiles_status", "founder_profiles", ["status"])

    op.create_table(
        "founder_skills",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("founder_id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(length=128), nullable=False),
        sa.Column("proficiency", sa.String(length=32), nullable=False),
        sa.Column("willing_to_help", sa.Boolean(), nullable=False),
        sa.ForeignKeyConstraint(["founder_id"], ["founder_profiles.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_founder_skills_founder_id", "founder_skills", ["founder_id"])

    op.create_table(
        "founder_needs",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("founder_id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(length=128), nullable=False),
        sa.Column("priority", sa.String(length=32), nullable=False),
        sa.Column("fulfilled", sa.Boolean(), nullable=False),
        sa.ForeignKeyConstraint(["founder_id"], ["founder_profiles.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_founder_needs_founder_id", "founder_needs", ["founder_id"])

    op.create_table(
        "matches",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("subject_id", sa.Uuid(), nullable=False),
        sa.Column("candidate_id", sa.Uuid(), nullable=False),
        sa.Column("pair_key", sa.String(length=80), nullable=False),
        sa.Column("score", sa.Integer(), nullable=False),
        sa.Column("breakdown", _json, nullable=False),
        sa.Column("reasons", _json, nullable=False),
        sa.Column("status", sa.String(length=32), nullable=False),
        sa.Column("suggested_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("responded_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["subject_id"], ["founder_profiles.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["candidate_id"], ["founder_profiles.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("uq_matches_pair_key", "matches", ["pair_key"], unique=True)
    op.create_index("ix_matches_status", "matches", ["status"])
    op.create_index("ix_matches_subject_id", "matches", ["subject_id"])
    op.create_index("ix_matches_candidate_id", "matches", ["candidate_id"])

    op.create_table(
        "circles",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("status", sa.String(length=32), nullable=False),
        sa.Column("rotation_cadence_days", sa.Integer(), nullable=False),
        sa.Column("rotation_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("formed_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("last_rotation_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("dissolved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("dissolution_reason", sa.Text(), nullable=True),
        sa.Column("formation_score", sa.Integer(), nullable=True),
        sa.Column("meta", _json, nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_circles_status", "circles", ["status"])

    op.create_table(
        "circle_memberships",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("circle_id", sa.Uuid(), nullable=False),
        sa.Column("founder_id", sa.Uuid(), nullable=False),
        sa.Column("role", sa.String(length=32), nullable=False),
        sa.Column("active", sa.Boolean(), nullable=False),
        sa.Column("joined_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("left_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("exit_reason", sa.String(length=32), nullable=True),
        sa.Column("exit_flagged_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["circle_id"], ["circles.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["founder_id"], ["founder_profiles.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_circle_memberships_circle_id", "circle_memberships", ["circle_id"])
    op.create_index("ix_circle_memberships_founder_id", "circle_memberships", ["founder_id"])

    op.create_table(
        "activities",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("activity_type", sa.String(length=64), nullable=False),
        sa.Column("founder_id", sa.Uuid(), nullable=True),
        sa.Column("circle_id", sa.Uuid(), nullable=True),
        sa.Column("details", _json, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["founder_id"], ["founder_profiles.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["circle_id"], ["circles.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_activities_activity_type", "activities", ["activity_type"])
    op.create_index("ix_activities_founder_id", "activities", ["founder_id"])
    op.create_index("ix_activities_circle_id", "activities", ["circle_id"])

    op.create_table(
        "job_runs",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("job_type", sa.String(length=64), nullable=False),
        sa.Column("status", sa.String(length=32), nullable=False),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("finished_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("records_processed", sa.Integer(), nullable=True),
        sa.Column("summary", sa.Text(), nullable=True),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("idempotency_key", sa.String(length=255), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_job_runs_idempotency_key", "job_runs", ["idempotency_key"])


def downgrade() -> None:
    op.drop_index("ix_job_runs_idempotency_key", table_name="job_runs")
    op.drop_table("job_runs")
    op.drop_index("ix_activities_circle_id", table_name="activities")
    op.drop_index("ix_activities_founder_id", table_name="activities")
    op.drop_index("ix_activities_activity_type", table_name="activities")
    op.drop_table("activities")
    op.drop_index("ix_circle_memberships_founder_id", table_name="circle_memberships")
    op.drop_index("ix_circle_memberships_circle_id", table_name="circle_memberships")
    op.drop_table("circle_memberships")
    op.drop_index("ix_circles_status", table_name="circles")
    op.drop_table("circles")
    op.drop_index("ix_matches_candidate_id", table_name="matches")
    op.drop_index("ix_matches_subject_id", table_name="matches")
    op.drop_index("ix_matches_status", table_name="matches")
    op.drop_index("uq_matches_pair_key", table_name="matches")
    op.drop_table("matches")
    op.drop_index("ix_founder_needs_founder_id", table_name="founder_needs")
    op.drop_table("founder_needs")
    op.drop_index("ix_founder_skills_founder_id", table_name="founder_skills")
    op.drop_table("founder_skills")
    op.drop_index("ix_founder_profiles_status", table_name="founder_profiles")
    op.drop_table("founder_profiles")
