"""Meal-plan import: scan a PDF or photo into meals, a prep routine and calendar blocks."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
import logging
import re
from typing import Any, Dict, List, Optional, Sequence, Tuple, Type, TypeVar
from uuid import uuid4

from pydantic import Field, ValidationError, field_validator, model_validator
from sqlalchemy.orm import Session

from app.api.schemas.common import CamelModel
from app.api.schemas.meal_import import (
    DEFAULT_ROUTINE_TITLE,
    ImportCalendarSuggestion,
    ImportMeal,
    ImportRecurrence,
    ImportRoutine,
    ImportRoutineStep,
)
from app.core.errors import UserFacingError
from app.db.models.calendar_event import CalendarEvent
from app.db.models.document import ImportedDocument
from app.db.models.systems import Meal, MealPlan, Routine
from app.services import llm
from app.services.dates import WEEKDAYS, next_weekday, parse_clock

logger = logging.getLogger(__name__)

IMPORT_SOURCE = "meal_plan_import"
MEAL_TYPES = ("breakfast", "lunch", "dinner", "snack")
MAX_MEALS = 40

M = TypeVar("M", bound=CamelModel)

SYSTEM_PROMPT = (
    "You turn meal plans into structured data. Respond with JSON only: "
    '{"planTitle": str, "meals": [{"title": str, "mealType": "breakfast|lunch|dinner|snack|other", '
    '"day": str|null, "ingredients": [str]}], "routine": {"title": str, "steps": [str]}, '
    '"calendarSuggestions": [{"title": str, "dayOfWeek": str, "time": "HH:MM", "durationMinutes": int, '
    '"recurrence": "none|daily|weekly"}], "questions": [str]}'
)


@dataclass
class MealPlanScan:
    plan_title: str
    meals: List[ImportMeal] = field(default_factory=list)
    routine: ImportRoutine = field(default_factory=ImportRoutine)
    calendar_suggestions: List[ImportCalendarSuggestion] = field(default_factory=list)
    questions: List[str] = field(default_factory=list)
    source: str = "heuristic"


def scan_meal_plan(
    *,
    text: str,
    file_name: str,
    image: Optional[bytes] = None,
    mime_type: Optional[str] = None,
    request_id: Optional[str] = None,
) -> MealPlanScan:
    has_text = bool(text and text.strip())
    if llm.llm_available() and (has_text or image):
        prompt = f"Meal plan document ({file_name}):\n\n{text or '(see attached image)'}"
        content = llm.image_content(prompt, image, mime_type or "image/png") if image else prompt
        payload = llm.request_json(
            SYSTEM_PROMPT,
            content,
            trace_name="meal_import.scan.llm",
            metadata={"file_name": file_name},
            request_id=request_id,
        )
        scan = _scan_from_payload(payload, file_name)
        if scan is not None:
            return scan
        logger.info("LLM meal-plan scan unusable for %s; using line heuristics", file_name)

    if not has_text:
        raise UserFacingError(
            "NO_CONTENT",
            "We couldn't read any meals from that file.",
            ["Try a clearer photo", "Upload a text-based PDF"],
            status_code=422,
        )
    return heuristic_scan(text, file_name)


def _keep_valid(model: Type[M], entries: Any, limit: Optional[int] = None) -> Any:
    if not isinstance(entries, list):
        return entries
    kept: List[M] = []
    for raw in entries[:limit]:
        try:
            kept.append(model.model_validate(raw))
        except ValidationError:
            logger.debug("Dropping unusable %s: %r", model.__name__, raw)
    return kept


class ScannedMeal(CamelModel):
    title: str
    meal_type: str = "other"
    day: Optional[str] = None
    ingredients: List[str] = Field(default_factory=list)

    @field_validator("title", mode="before")
    @classmethod
    def _title(cls, value: Any) -> str:
        text = str(value or "").strip()
        if not text:
            raise ValueError("meal needs a title")
        return text[:200]

    @field_validator("meal_type", mode="before")
    @classmethod
    def _meal_type(cls, value: Any) -> str:
        meal_type = str(value or "").lower()
        return meal_type if meal_type in MEAL_TYPES else "other"

    @field_validator("day", mode="before")
    @classmethod
    def _day(cls, value: Any) -> Optional[str]:
        return str(value) if value else None

    @field_validator("ingredients", mode="before")
    @classmethod
    def _ingredients(cls, value: Any) -> List[str]:
        return [str(entry) for entry in value] if isinstance(value, list) else []


class ScannedRoutine(CamelModel):
    title: str = DEFAULT_ROUTINE_TITLE
    steps: List[str] = Field(default_factory=list)

    @field_validator("title", mode="before")
    @classmethod
    def _title(cls, value: Any) -> str:
        return str(value) if value else DEFAULT_ROUTINE_TITLE

    @field_validator("steps", mode="before")
    @classmethod
    def _steps(cls, value: Any) -> List[str]:
        if not isinstance(value, list):
            return []
        # Steps come back either as strings or as {"text": ...} objects.
        return [str(step.get("text") or "") if isinstance(step, dict) else str(step) for step in value]


class ScannedSuggestion(CamelModel):
    title: str
    day_of_week: Optional[str] = None
    time: Optional[str] = None
    duration_minutes: int = 60
    recurrence: str = "none"

    @field_validator("title", mode="before")
    @classmethod
    def _title(cls, value: Any) -> str:
        if not value:
            raise ValueError("suggestion needs a title")
        return str(value)[:200]

    @field_validator("day_of_week", mode="before")
    @classmethod
    def _day(cls, value: Any) -> Optional[str]:
        return str(value) if value else None

    @field_validator("time", mode="before")
    @classmethod
    def _time(cls, value: Any) -> Optional[str]:
        return parse_clock(value)

    @field_validator("duration_minutes", mode="before")
    @classmethod
    def _minutes(cls, value: Any) -> int:
        try:
            minutes = int(value)
        except (TypeError, ValueError):
            return 60
        return min(max(minutes, 5), 24 * 60)

    @field_validator("recurrence", mode="before")
    @classmethod
    def _recurrence(cls, value: Any) -> str:
        if isinstance(value, dict):
            value = value.get("frequency")
        return value if value in ("none", "daily", "weekly") else "none"


class ScannedMealPlan(CamelModel):
    """Model output for a meal-plan scan. ``meals`` must be a list; bad entries are dropped."""

    plan_title: Optional[str] = None
    meals: List[ScannedMeal]
    routine: ScannedRoutine = Field(default_factory=ScannedRoutine)
    calendar_suggestions: List[ScannedSuggestion] = Field(default_factory=list)
    questions: List[str] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _drop_unusable_entries(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        cleaned = dict(data)
        cleaned["meals"] = _keep_valid(ScannedMeal, data.get("meals"), MAX_MEALS)
        suggestions = data.get("calendarSuggestions")
        cleaned["calendarSuggestions"] = _keep_valid(ScannedSuggestion, suggestions) if isinstance(suggestions, list) else []
        if not isinstance(data.get("routine"), (dict, ScannedRoutine)):
            cleaned.pop("routine", None)
        return cleaned

    @field_validator("questions", mode="before")
    @classmethod
    def _questions(cls, value: Any) -> List[str]:
        return [str(question) for question in value] if isinstance(value, list) else []


def _scan_from_payload(payload: Optional[Dict[str, Any]], file_name: str) -> Optional[MealPlanScan]:
    try:
        parsed = ScannedMealPlan.model_validate(payload)
    except ValidationError as exc:
        logger.info("Model meal-plan scan rejected: %s", exc.error_count())
        return None

    return MealPlanScan(
        plan_title=parsed.plan_title or _title_from_file_name(file_name),
        meals=[
            ImportMeal(
                id=f"meal-{index + 1}",
                title=meal.title,
                meal_type=meal.meal_type,
                day=meal.day,
                ingredients=meal.ingredients,
            )
            for index, meal in enumerate(parsed.meals)
        ],
        routine=ImportRoutine(
            title=parsed.routine.title,
            steps=[ImportRoutineStep(id=f"step-{index + 1}", text=text) for index, text in enumerate(parsed.routine.steps)],
        ),
        calendar_suggestions=[
            ImportCalendarSuggestion(
                id=f"cal-{index + 1}",
                title=suggestion.title,
                day_of_week=suggestion.day_of_week,
                time=suggestion.time,
                duration_minutes=suggestion.duration_minutes,
                recurrence=ImportRecurrence(frequency=suggestion.recurrence),
            )
            for index, suggestion in enumerate(parsed.calendar_suggestions)
        ]
        or default_suggestions(),
        questions=parsed.questions,
        source="llm",
    )


_DAY_RE = re.compile(r"^\s*(?:day\s*\d+|" + "|".join(WEEKDAYS) + r")\b[:\-\s]*", re.IGNORECASE)
_MEAL_RE = re.compile(r"^\s*(breakfast|lunch|dinner|snack)s?\s*[:\-]\s*(.+)$", re.IGNORECASE)
_STEP_RE = re.compile(r"^\s*(?:step\s*)?(\d+)[.):]\s+(.+)$", re.IGNORECASE)
_PREP_HINTS = ("prep", "batch", "chop", "marinate", "portion", "store", "cook ")


def heuristic_scan(text: str, file_name: str) -> MealPlanScan:
    """Read ``Breakfast: ...`` style lines, weekday headings and numbered prep steps."""
    meals: List[ImportMeal] = []
    steps: List[ImportRoutineStep] = []
    current_day: Optional[str] = None

    for line in text.splitlines():
        stripped = line.strip().lstrip("-*• ").strip()
        if not stripped:
            continue

        day_match = _DAY_RE.match(stripped)
        if day_match:
            current_day = day_match.group(0).strip(" :-").title()
            stripped = stripped[day_match.end():].strip()
            if not stripped:
                continue

        meal_match = _MEAL_RE.match(stripped)
        if meal_match and len(meals) < MAX_MEALS:
            title, ingredients = _split_ingredients(meal_match.group(2))
            meals.append(
                ImportMeal(
                    id=f"meal-{len(meals) + 1}",
                    title=title[:200],
                    meal_type=meal_match.group(1).lower(),
                    day=current_day,
                    ingredients=ingredients,
                )
            )
            continue

        step_match = _STEP_RE.match(stripped)
        lowered = f"{stripped.lower()} "
        if step_match or any(hint in lowered for hint in _PREP_HINTS):
            step_text = step_match.group(2) if step_match else stripped
            steps.append(ImportRoutineStep(id=f"step-{len(steps) + 1}", text=step_text.strip()))

    questions: List[str] = []
    if not meals:
        questions.append("We couldn't spot any meals. Does the plan list breakfast, lunch or dinner?")
    return MealPlanScan(
        plan_title=_title_from_file_name(file_name),
        meals=meals,
        routine=ImportRoutine(title=DEFAULT_ROUTINE_TITLE, steps=steps),
        calendar_suggestions=default_suggestions(),
        questions=questions,
        source="heuristic",
    )


def default_suggestions() -> List[ImportCalendarSuggestion]:
    return [
        ImportCalendarSuggestion(
            id="cal-1",
            title="Meal prep session",
            day_of_week="Sunday",
            time="10:00",
            duration_minutes=120,
            recurrence=ImportRecurrence(frequency="weekly"),
        ),
        ImportCalendarSuggestion(
            id="cal-2",
            title="Grocery run",
            day_of_week="Saturday",
            time="11:00",
            duration_minutes=60,
            recurrence=ImportRecurrence(frequency="weekly"),
        ),
    ]


def commit_meal_plan(
    db: Session,
    document: ImportedDocument,
    plan_title: str,
    meals: Sequence[ImportMeal],
    routine: Optional[ImportRoutine],
) -> Tuple[MealPlan, int, Optional[Routine]]:
    """Persist the selected meals as a plan plus an optional prep routine. The caller commits."""
    selected = [meal for meal in meals if meal.is_selected and meal.title.strip()]
    if not selected and not (routine and routine.steps):
        raise UserFacingError(
            "NOTHING_TO_SAVE",
            "Select at least one meal or keep a prep step to save.",
            ["Tick the meals you want to keep"],
            status_code=422,
        )

    plan = MealPlan(
        id=uuid4(),
        user_id=document.user_id,
        title=plan_title.strip(),
        source=IMPORT_SOURCE,
        source_document_id=document.id,
    )
    for position, meal in enumerate(selected):
        plan.meals.append(
            Meal(
                id=uuid4(),
                meal_plan_id=plan.id,
                position=position,
                title=meal.title.strip(),
                meal_type=meal.meal_type,
                day=meal.day,
                ingredients=list(meal.ingredients),
            )
        )
    db.add(plan)

    saved_routine: Optional[Routine] = None
    step_texts = [step.text.strip() for step in (routine.steps if routine else []) if step.text.strip()]
    if step_texts:
        saved_routine = Routine(
            id=uuid4(),
            user_id=document.user_id,
            title=(routine.title or DEFAULT_ROUTINE_TITLE).strip(),
            steps=step_texts,
            source=IMPORT_SOURCE,
            source_document_id=document.id,
        )
        db.add(saved_routine)

    document.status = "committed"
    return plan, len(selected), saved_routine


def schedule_suggestions(
    db: Session,
    document: ImportedDocument,
    suggestions: Sequence[ImportCalendarSuggestion],
    *,
    today: Optional[date] = None,
) -> List[CalendarEvent]:
    """Create one calendar event per selected suggestion on its next matching weekday."""
    today = today or date.today()
    events: List[CalendarEvent] = []
    for suggestion in suggestions:
        if not suggestion.is_selected:
            continue
        event_date = next_weekday(suggestion.day_of_week, today) if suggestion.day_of_week else None
        start = parse_clock(suggestion.time) if suggestion.time else None
        event = CalendarEvent(
            id=uuid4(),
            user_id=document.user_id,
            title=suggestion.title,
            event_date=event_date or today,
            start_time=start,
            end_time=_add_minutes(start, suggestion.duration_minutes) if start else None,
            all_day=start is None,
            category="meal_prep",
            recurrence=None if suggestion.recurrence.frequency == "none" else suggestion.recurrence.frequency,
            source=IMPORT_SOURCE,
            metadata_json={"document_id": str(document.id), "suggestion_id": suggestion.id},
        )
        db.add(event)
        events.append(event)
    return events


def _add_minutes(clock: str, minutes: int) -> str:
    start = datetime.strptime(clock, "%H:%M")
    end = start + timedelta(minutes=minutes)
    if end.date() != start.date():
        return "23:59"
    return end.strftime("%H:%M")


def _split_ingredients(text: str) -> Tuple[str, List[str]]:
    # "Oats with berries (oats, blueberries, milk)" -> title plus ingredients
    match = re.match(r"^(.*?)\s*\((.+)\)\s*$", text)
    if not match:
        return text.strip(), []
    ingredients = [part.strip() for part in match.group(2).split(",") if part.strip()]
    return match.group(1).strip() or text.strip(), ingredients


def _title_from_file_name(file_name: str) -> str:
    stem = file_name.rsplit(".", 1)[0] if "." in file_name else file_name
    cleaned = re.sub(r"[_\-]+", " ", stem).strip()
    return cleaned.title() if cleaned else "Imported Meal Plan"
