"""Life system schema: users, imports, calendar, downstream systems, onboarding, body scans, blueprint."""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "202610010900"
down_revision = None
branch_labels = None
depends_on = None


def _id() -> sa.Column:
    return sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False)


def _user_id() -> sa.Column:
    return sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False)


def _blueprint_id(unique: bool) -> sa.Column:
    return sa.Column("blueprint_id", postgresql.UUID(as_uuid=True), nullable=False, unique=unique)


def _timestamp(name: str) -> sa.Column:
    return sa.Column(name, sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()"))


def _jsonb(name: str, nullable: bool = True, default: str | None = None) -> sa.Column:
    kwargs = {"server_default": sa.text(default)} if default else {}
    return sa.Column(name, postgresql.JSONB(astext_type=sa.Text()), nullable=nullable, **kwargs)


def _user_fk() -> sa.ForeignKeyConstraint:
    return sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE")


def _blueprint_fk() -> sa.ForeignKeyConstraint:
    return sa.ForeignKeyConstraint(["blueprint_id"], ["wellness_blueprints.id"], ondelete="CASCADE")


def upgrade() -> None:
    op.create_table(
        "users",
        _id(),
        sa.Column("system_name", sa.Text(), nullable=True),
        sa.Column("onboarding_completed", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        _timestamp("created_at"),
    )

    op.create_table(
        "activity_log",
        _id(),
        _user_id(),
        sa.Column("action_type", sa.Text(), nullable=False),
        _jsonb("action_payload", nullable=False, default="'{}'::jsonb"),
        sa.Column("reason", sa.Text(), nullable=True),
        _timestamp("created_at"),
        _user_fk(),
    )
    op.create_index("ix_activity_log_user_id", "activity_log", ["user_id"], unique=False)

    op.create_table(
        "imported_documents",
        _id(),
        _user_id(),
        sa.Column("kind", sa.String(length=20), nullable=False, server_default=sa.text("'document'")),
        sa.Column("file_name", sa.Text(), nullable=False),
        sa.Column("mime_type", sa.String(length=120), nullable=False),
        sa.Column("size_bytes", sa.Integer(), nullable=False),
        sa.Column("context", sa.String(length=20), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False, server_default=sa.text("'uploaded'")),
        sa.Column("extracted_text", sa.Text(), nullable=True),
        sa.Column("content", sa.LargeBinary(), nullable=True),
        sa.Column("document_title", sa.Text(), nullable=True),
        sa.Column("summary", sa.Text(), nullable=True),
        _jsonb("analysis_json"),
        sa.Column("error_code", sa.String(length=50), nullable=True),
        _jsonb("metadata"),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        _user_fk(),
    )
    op.create_index("ix_imported_documents_user_id", "imported_documents", ["user_id"], unique=False)
    op.create_index("ix_imported_documents_status", "imported_documents", ["status"], unique=False)

    op.create_table(
        "document_items",
        _id(),
        sa.Column("document_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("item_type", sa.String(length=30), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        _jsonb("details"),
        sa.Column("confidence", sa.Float(), nullable=False, server_default=sa.text("0.5")),
        sa.Column("destination_system", sa.String(length=30), nullable=False),
        sa.Column("is_selected", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("linked_entity_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("linked_entity_type", sa.String(length=30), nullable=True),
        _timestamp("created_at"),
        sa.ForeignKeyConstraint(["document_id"], ["imported_documents.id"], ondelete="CASCADE"),
    )
    op.create_index("ix_document_items_document_id", "document_items", ["document_id"], unique=False)

    op.create_table(
        "calendar_events",
        _id(),
        _user_id(),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("event_date", sa.Date(), nullable=False),
        sa.Column("start_time", sa.String(length=5), nullable=True),
        sa.Column("end_time", sa.String(length=5), nullable=True),
        sa.Column("all_day", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("category", sa.String(length=30), nullable=True),
        sa.Column("recurrence", sa.String(length=30), nullable=True),
        sa.Column("source", sa.String(length=30), nullable=False, server_default=sa.text("'manual'")),
        _jsonb("metadata"),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        _user_fk(),
    )
    op.create_index("ix_calendar_events_user_id", "calendar_events", ["user_id"], unique=False)
    op.create_index("ix_calendar_events_event_date", "calendar_events", ["event_date"], unique=False)

    op.create_table(
        "routines",
        _id(),
        _user_id(),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        _jsonb("steps", nullable=False, default="'[]'::jsonb"),
        sa.Column("time_of_day", sa.String(length=20), nullable=True),
        sa.Column("source", sa.String(length=30), nullable=False, server_default=sa.text("'manual'")),
        sa.Column("source_document_id", postgresql.UUID(as_uuid=True), nullable=True),
        _timestamp("created_at"),
        _user_fk(),
    )
    op.create_index("ix_routines_user_id", "routines", ["user_id"], unique=False)

    op.create_table(
        "workout_plans",
        _id(),
        _user_id(),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        _jsonb("details"),
        sa.Column("source", sa.String(length=30), nullable=False, server_default=sa.text("'manual'")),
        sa.Column("source_document_id", postgresql.UUID(as_uuid=True), nullable=True),
        _timestamp("created_at"),
        _user_fk(),
    )
    op.create_index("ix_workout_plans_user_id", "workout_plans", ["user_id"], unique=False)

    op.create_table(
        "meal_plans",
        _id(),
        _user_id(),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("source", sa.String(length=30), nullable=False, server_default=sa.text("'manual'")),
        sa.Column("source_document_id", postgresql.UUID(as_uuid=True), nullable=True),
        _timestamp("created_at"),
        _user_fk(),
    )
    op.create_index("ix_meal_plans_user_id", "meal_plans", ["user_id"], unique=False)

    op.create_table(
        "meals",
        _id(),
        sa.Column("meal_plan_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("meal_type", sa.String(length=20), nullable=True),
        sa.Column("day", sa.String(length=12), nullable=True),
        _jsonb("ingredients", nullable=False, default="'[]'::jsonb"),
        sa.Column("instructions", sa.Text(), nullable=True),
        _jsonb("details"),
        sa.ForeignKeyConstraint(["meal_plan_id"], ["meal_plans.id"], ondelete="CASCADE"),
    )
    op.create_index("ix_meals_meal_plan_id", "meals", ["meal_plan_id"], unique=False)

    op.create_table(
        "goals",
        _id(),
        _user_id(),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("wellness_dimension", sa.String(length=30), nullable=True),
        sa.Column("progress", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("target_value", sa.Integer(), nullable=False, server_default=sa.text("100")),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        _timestamp("created_at"),
        _user_fk(),
    )
    op.create_index("ix_goals_user_id", "goals", ["user_id"], unique=False)

    op.create_table(
        "habits",
        _id(),
        _user_id(),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("frequency", sa.String(length=20), nullable=False, server_default=sa.text("'daily'")),
        sa.Column("reminder_time", sa.String(length=10), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("streak", sa.Integer(), nullable=False, server_default=sa.text("0")),
        _timestamp("created_at"),
        _user_fk(),
    )
    op.create_index("ix_habits_user_id", "habits", ["user_id"], unique=False)

    op.create_table(
        "onboarding_profiles",
        _id(),
        _user_id(),
        _jsonb("responsibilities", nullable=False, default="'[]'::jsonb"),
        _jsonb("priorities", nullable=False, default="'[]'::jsonb"),
        sa.Column("free_time_hours", sa.String(length=10), nullable=True),
        sa.Column("peak_motivation_time", sa.String(length=20), nullable=True),
        _jsonb("wellness_focus", nullable=False, default="'[]'::jsonb"),
        sa.Column("wake_time", sa.String(length=10), nullable=True),
        sa.Column("sleep_time", sa.String(length=10), nullable=True),
        _jsonb("conversation_data"),
        _timestamp("created_at"),
        _user_fk(),
    )
    op.create_index("ix_onboarding_profiles_user_id", "onboarding_profiles", ["user_id"], unique=False)

    op.create_table(
        "life_systems",
        _id(),
        _user_id(),
        sa.Column("name", sa.Text(), nullable=False),
        _jsonb("weekly_schedule"),
        _jsonb("suggested_habits"),
        _jsonb("schedule_blocks"),
        _jsonb("meal_suggestions"),
        sa.Column("source", sa.String(length=20), nullable=False, server_default=sa.text("'fallback'")),
        _timestamp("created_at"),
        _user_fk(),
    )
    op.create_index("ix_life_systems_user_id", "life_systems", ["user_id"], unique=False)

    op.create_table(
        "body_scans",
        _id(),
        _user_id(),
        sa.Column("current_state", sa.Text(), nullable=True),
        sa.Column("body_goal", sa.String(length=20), nullable=True),
        _jsonb("focus_areas", nullable=False, default="'[]'::jsonb"),
        sa.Column("energy_level", sa.String(length=20), nullable=True),
        sa.Column("height_cm", sa.Integer(), nullable=True),
        sa.Column("weight_kg", sa.Integer(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        _jsonb("photo_poses", nullable=False, default="'[]'::jsonb"),
        _timestamp("created_at"),
        _user_fk(),
    )
    op.create_index("ix_body_scans_user_id", "body_scans", ["user_id"], unique=False)

    op.create_table(
        "wellness_blueprints",
        _id(),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False, unique=True),
        sa.Column("title", sa.Text(), nullable=False, server_default=sa.text("'My Wellness Blueprint'")),
        sa.Column("current_section", sa.String(length=30), nullable=True),
        sa.Column("is_complete", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        _user_fk(),
    )

    op.create_table(
        "baseline_profiles",
        _id(),
        _blueprint_id(unique=True),
        sa.Column("energy_baseline", sa.Integer(), nullable=True),
        sa.Column("sleep_hours", sa.Integer(), nullable=True),
        sa.Column("stress_baseline", sa.Integer(), nullable=True),
        sa.Column("feels_like_myself", sa.Text(), nullable=True),
        _timestamp("updated_at"),
        _blueprint_fk(),
    )

    op.create_table(
        "stress_signals",
        _id(),
        _blueprint_id(unique=True),
        _jsonb("physical", nullable=False, default="'[]'::jsonb"),
        _jsonb("emotional", nullable=False, default="'[]'::jsonb"),
        _jsonb("behavioral", nullable=False, default="'[]'::jsonb"),
        sa.Column("early_warning", sa.Text(), nullable=True),
        _timestamp("updated_at"),
        _blueprint_fk(),
    )

    op.create_table(
        "stabilizing_actions",
        _id(),
        _blueprint_id(unique=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("category", sa.String(length=30), nullable=True),
        sa.Column("duration_min", sa.Integer(), nullable=True),
        sa.Column("is_favorite", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        _timestamp("created_at"),
        _blueprint_fk(),
    )
    op.create_index("ix_stabilizing_actions_blueprint_id", "stabilizing_actions", ["blueprint_id"], unique=False)

    op.create_table(
        "support_preferences",
        _id(),
        _blueprint_id(unique=True),
        _jsonb("preferred_support", nullable=False, default="'[]'::jsonb"),
        _jsonb("trusted_contacts", nullable=False, default="'[]'::jsonb"),
        sa.Column("avoid", sa.Text(), nullable=True),
        _timestamp("updated_at"),
        _blueprint_fk(),
    )

    op.create_table(
        "recovery_reflections",
        _id(),
        _blueprint_id(unique=False),
        sa.Column("prompt", sa.Text(), nullable=True),
        sa.Column("response", sa.Text(), nullable=False),
        sa.Column("what_helped", sa.Text(), nullable=True),
        _timestamp("created_at"),
        _blueprint_fk(),
    )
    op.create_index("ix_recovery_reflections_blueprint_id", "recovery_reflections", ["blueprint_id"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_recovery_reflections_blueprint_id", table_name="recovery_reflections")
    op.drop_table("recovery_reflections")
    op.drop_table("support_preferences")
    op.drop_index("ix_stabilizing_actions_blueprint_id", table_name="stabilizing_actions")
    op.drop_table("stabilizing_actions")
    op.drop_table("stress_signals")
    op.drop_table("baseline_profiles")
    op.drop_table("wellness_blueprints")
    for table in (
        "body_scans",
        "life_systems",
        "onboarding_profiles",
        "habits",
        "goals",
    ):
        op.drop_index(f"ix_{table}_user_id", table_name=table)
        op.drop_table(table)
    op.drop_index("ix_meals_meal_plan_id", table_name="meals")
    op.drop_table("meals")
    for table in ("meal_plans", "workout_plans", "routines"):
        op.drop_index(f"ix_{table}_user_id", table_name=table)
        op.drop_table(table)
    op.drop_index("ix_calendar_events_event_date", table_name="calendar_events")
    op.drop_index("ix_calendar_events_user_id", table_name="calendar_events")
    op.drop_table("calendar_events")
    op.drop_index("ix_document_items_document_id", table_name="document_items")
    op.drop_table("document_items")
    op.drop_index("ix_imported_documents_status", table_name="imported_documents")
    op.drop_index("ix_imported_documents_user_id", table_name="imported_documents")
    op.drop_table("imported_documents")
    op.drop_index("ix_activity_log_user_id", table_name="activity_log")
    op.drop_table("activity_log")
    op.drop_table("users")
