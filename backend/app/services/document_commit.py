"""Route selected document items into the downstream life systems."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
import logging
from typing import Dict, List, Optional, Sequence
from uuid import UUID, uuid4

from fastapi import status
from sqlalchemy.orm import Session

from app.core.errors import UserFacingError
from app.db.models.calendar_event import CalendarEvent
from app.db.models.document import DocumentItem, ImportedDocument
from app.db.models.systems import Meal, MealPlan, Routine, WorkoutPlan
from app.services.dates import parse_clock, resolve_event_date

logger = logging.getLogger(__name__)

IMPORT_SOURCE = "document_import"

SYSTEM_LABELS = {
    "calendar": "Calendar",
    "nutrition": "Meal Prep",
    "workout": "Workouts",
    "routines": "Routines",
}


@dataclass
class CommitOutcome:
    committed: Dict[str, int] = field(default_factory=dict)
    already_linked: int = 0
    skipped: int = 0

    @property
    def total(self) -> int:
        return sum(self.committed.values())

    @property
    def message(self) -> str:
        if not self.committed:
            if self.already_linked:
                return "Those items were already saved."
            return "Nothing was saved."
        parts = [f"{count} to {SYSTEM_LABELS.get(system, system)}" for system, count in self.committed.items()]
        noun = "item" if self.total == 1 else "items"
        return f"Saved {self.total} {noun}: {', '.join(parts)}."


def commit_document_items(
    db: Session,
    document: ImportedDocument,
    item_ids: Sequence[UUID],
    *,
    today: Optional[date] = None,
) -> CommitOutcome:
    """
    Create downstream rows for the selected items and link each item to its entity.

    Items already linked are left alone, so repeating a commit never duplicates
    rows. Items outside ``item_ids`` are not modified. The caller commits.
    """
    if not item_ids:
        raise UserFacingError(
            "NO_ITEMS_SELECTED",
            "Select at least one item to save.",
            ["Tick the items you want to keep"],
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        )

    by_id = {item.id: item for item in document.items}
    unknown = [str(item_id) for item_id in item_ids if item_id not in by_id]
    if unknown:
        raise UserFacingError(
            "UNKNOWN_ITEMS",
            "Some of the selected items no longer exist. Please re-run the analysis.",
            ["Analyze the document again"],
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        )

    today = today or date.today()
    outcome = CommitOutcome()
    meal_plan: Optional[MealPlan] = None

    for item_id in dict.fromkeys(item_ids):
        item = by_id[item_id]
        item.is_selected = True
        if item.linked_entity_id is not None:
            outcome.already_linked += 1
            continue

        system = item.destination_system
        if system == "calendar":
            entity_id, entity_type = _create_calendar_event(db, document, item, today), "calendar_event"
        elif system == "workout":
            entity_id, entity_type = _create_workout_plan(db, document, item), "workout_plan"
        elif system == "nutrition":
            if meal_plan is None:
                meal_plan = _meal_plan_for(db, document)
            entity_id, entity_type = _create_meal(db, meal_plan, item), "meal"
        elif system == "routines":
            entity_id, entity_type = _create_routine(db, document, item), "routine"
        else:
            logger.info("Skipping item %s with destination %r", item.id, system)
            outcome.skipped += 1
            continue

        item.linked_entity_id = entity_id
        item.linked_entity_type = entity_type
        outcome.committed[system] = outcome.committed.get(system, 0) + 1

    if outcome.committed:
        document.status = "committed"
    return outcome


def _details(item: DocumentItem) -> dict:
    return item.details if isinstance(item.details, dict) else {}


def _create_calendar_event(db: Session, document: ImportedDocument, item: DocumentItem, today: date) -> UUID:
    details = _details(item)
    start = parse_clock(details.get("time") or details.get("startTime"))
    end = parse_clock(details.get("endTime"))
    event = CalendarEvent(
        id=uuid4(),
        user_id=document.user_id,
        title=item.title,
        description=item.description,
        event_date=resolve_event_date(details, today),
        start_time=start,
        end_time=end,
        all_day=start is None,
        category=details.get("category") if isinstance(details.get("category"), str) else "imported",
        recurrence=details.get("recurrence") if isinstance(details.get("recurrence"), str) else None,
        source=IMPORT_SOURCE,
        metadata_json={"document_id": str(document.id), "item_id": str(item.id)},
    )
    db.add(event)
    return event.id


def _create_workout_plan(db: Session, document: ImportedDocument, item: DocumentItem) -> UUID:
    plan = WorkoutPlan(
        id=uuid4(),
        user_id=document.user_id,
        title=item.title,
        description=item.description,
        details=_details(item) or None,
        source=IMPORT_SOURCE,
        source_document_id=document.id,
    )
    db.add(plan)
    return plan.id


def _meal_plan_for(db: Session, document: ImportedDocument) -> MealPlan:
    existing = (
        db.query(MealPlan)
        .filter(MealPlan.source_document_id == document.id, MealPlan.user_id == document.user_id)
        .first()
    )
    if existing:
        return existing
    plan = MealPlan(
        id=uuid4(),
        user_id=document.user_id,
        title=document.document_title or document.file_name,
        description=document.summary,
        source=IMPORT_SOURCE,
        source_document_id=document.id,
    )
    db.add(plan)
    return plan


def _create_meal(db: Session, meal_plan: MealPlan, item: DocumentItem) -> UUID:
    details = _details(item)
    ingredients = details.get("ingredients")
    meal = Meal(
        id=uuid4(),
        meal_plan_id=meal_plan.id,
        position=len(meal_plan.meals),
        title=item.title,
        meal_type=details.get("mealType") if isinstance(details.get("mealType"), str) else None,
        day=details.get("day") if isinstance(details.get("day"), str) else None,
        ingredients=[str(value) for value in ingredients] if isinstance(ingredients, list) else [],
        instructions=details.get("instructions") if isinstance(details.get("instructions"), str) else item.description,
        details=details or None,
    )
    meal_plan.meals.append(meal)
    return meal.id


def _create_routine(db: Session, document: ImportedDocument, item: DocumentItem) -> UUID:
    details = _details(item)
    steps: List[str] = []
    raw_steps = details.get("steps")
    if isinstance(raw_steps, list):
        steps = [str(step) for step in raw_steps if str(step).strip()]
    routine = Routine(
        id=uuid4(),
        user_id=document.user_id,
        title=item.title,
        description=item.description,
        steps=steps,
        time_of_day=details.get("timeOfDay") if isinstance(details.get("timeOfDay"), str) else None,
        source=IMPORT_SOURCE,
        source_document_id=document.id,
    )
    db.add(routine)
    return routine.id
