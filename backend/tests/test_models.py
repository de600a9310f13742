from app.db.base import Base
from app.db import models  # noqa: F401  ensure models are loaded


def test_metadata_contains_life_system_tables() -> None:
    table_names = set(Base.metadata.tables.keys())
    expected = {
        "users",
        "activity_log",
        "imported_documents",
        "document_items",
        "calendar_events",
        "routines",
        "workout_plans",
        "meal_plans",
        "meals",
        "goals",
        "habits",
        "onboarding_profiles",
        "life_systems",
        "wellness_blueprints",
        "baseline_profiles",
        "stress_signals",
        "support_preferences",
        "stabilizing_actions",
        "recovery_reflections",
        "body_scans",
    }

    assert expected.issubset(table_names)


def test_document_items_cascade_with_their_document() -> None:
    foreign_keys = Base.metadata.tables["document_items"].foreign_keys

    assert {fk.target_fullname for fk in foreign_keys} == {"imported_documents.id"}
    assert all(fk.ondelete == "CASCADE" for fk in foreign_keys)
