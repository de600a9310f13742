"""Document analysis: LLM extraction with a deterministic keyword fallback."""
from __future__ import annotations

from dataclasses import dataclass, field
import logging
import re
from typing import Any, Dict, List, Optional

from pydantic import Field, ValidationError, field_validator, model_validator

from app.api.schemas.common import CamelModel
from app.core.config import settings
from app.core.errors import UserFacingError
from app.services import llm
from app.services.dates import to_24h

logger = logging.getLogger(__name__)

DESTINATION_SYSTEMS = ("calendar", "nutrition", "workout", "routines")
ITEM_TYPES = ("meal", "workout", "routine", "calendar", "plan")
CONTEXTS = ("workout", "nutrition", "calendar", "general")

DESTINATION_BY_ITEM_TYPE = {
    "meal": "nutrition",
    "workout": "workout",
    "routine": "routines",
    "calendar": "calendar",
}
ITEM_TYPE_BY_DESTINATION = {value: key for key, value in DESTINATION_BY_ITEM_TYPE.items()}

MAX_HEURISTIC_ITEMS = 25
DEFAULT_CONFIDENCE = 0.5

SYSTEM_PROMPT = "You are a calm, helpful AI assistant that organizes life systems. Respond with valid JSON only."


@dataclass
class AnalyzedItem:
    ref: str
    item_type: str
    title: str
    description: str
    details: Dict[str, Any]
    destination_system: str
    confidence: float
    is_selected: bool = True


@dataclass
class AnalysisOutcome:
    document_title: str
    summary: str
    confidence: float
    items: List[AnalyzedItem] = field(default_factory=list)
    clarifying_questions: List[str] = field(default_factory=list)
    source: str = "heuristic"


def build_analysis_prompt(text: str, context: Optional[str] = None) -> str:
    """Prompt asking the model for items, per-item destination and a 0-100 confidence."""
    excerpt = text[: settings.analysis_max_chars]
    focus = f"\nThe user is importing this from the {context} area; favour items for it.\n" if context else ""
    return (
        "Analyze this document and extract structured items that can be saved into the user's systems.\n\n"
        f"DOCUMENT TEXT:\n{excerpt}\n{focus}\n"
        "INSTRUCTIONS:\n"
        "1. Identify repeating patterns, schedules, or structured content.\n"
        "2. Extract items into these categories: meals (recipes, meal plans, prep steps), "
        "workouts (exercise routines, sets/reps, rest days), routines (step-by-step processes, "
        "morning/evening routines), calendar (specific dates, recurring events, reminders), "
        "plan (the overall program name).\n"
        "3. For each item give: id, itemType (meal|workout|routine|calendar|plan), title, description, "
        "details (ingredients, sets/reps, date as YYYY-MM-DD, time as HH:MM), "
        "destinationSystem (nutrition|workout|routines|calendar) and confidence 0-100.\n"
        "4. If confidence is below 60 for any major section, include clarifying questions.\n\n"
        'Return JSON: {"documentTitle": str, "summary": str, "confidence": 0-100, '
        '"items": [...], "clarifyingQuestions": [str]}'
    )


def normalize_confidence(value: Any, default: float = DEFAULT_CONFIDENCE) -> float:
    """
    Read a model confidence on the 0-100 scale the prompt asks for.

    A fraction strictly between 0 and 1 is taken as already normalised, so
    ``1`` means 1% rather than 100%.
    """
    try:
        score = float(value)
    except (TypeError, ValueError):
        return default
    if score != score:  # NaN
        return default
    if not 0 < score < 1:
        score = score / 100
    return round(min(max(score, 0.0), 1.0), 4)


def resolve_destination(item_type: str, destination: Optional[str]) -> str:
    candidate = (destination or "").strip().lower()
    if candidate in DESTINATION_SYSTEMS:
        return candidate
    return DESTINATION_BY_ITEM_TYPE.get(item_type, "other")


class ModelAnalysisItem(CamelModel):
    """One extracted item as the model returns it."""

    id: str
    item_type: str
    title: str
    description: str = ""
    details: Dict[str, Any] = Field(default_factory=dict)
    destination_system: Optional[str] = None
    confidence: float = DEFAULT_CONFIDENCE
    is_selected: bool = True

    @field_validator("id", "item_type", "title", mode="before")
    @classmethod
    def _required_text(cls, value: Any) -> str:
        text = "" if value is None else str(value).strip()
        if not text:
            raise ValueError("must not be empty")
        return text

    @field_validator("item_type")
    @classmethod
    def _lower_type(cls, value: str) -> str:
        return value.lower()

    @field_validator("description", mode="before")
    @classmethod
    def _optional_text(cls, value: Any) -> str:
        return "" if value is None else str(value)

    @field_validator("details", mode="before")
    @classmethod
    def _details_mapping(cls, value: Any) -> Dict[str, Any]:
        return value if isinstance(value, dict) else {}

    @field_validator("confidence", mode="before")
    @classmethod
    def _percent_confidence(cls, value: Any) -> float:
        return normalize_confidence(value)

    @field_validator("is_selected", mode="before")
    @classmethod
    def _selected_unless_false(cls, value: Any) -> bool:
        return value is not False

    @model_validator(mode="after")
    def _route(self) -> "ModelAnalysisItem":
        self.destination_system = resolve_destination(self.item_type, self.destination_system)
        return self


class ModelAnalysis(CamelModel):
    """Envelope the model must return; incomplete items are dropped, not fatal."""

    document_title: str
    summary: str
    confidence: float = DEFAULT_CONFIDENCE
    items: List[ModelAnalysisItem]
    clarifying_questions: List[str] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _drop_unusable_items(cls, data: Any) -> Any:
        if not isinstance(data, dict) or not isinstance(data.get("items"), list):
            return data
        kept: List[ModelAnalysisItem] = []
        for raw in data["items"]:
            try:
                kept.append(ModelAnalysisItem.model_validate(raw))
            except ValidationError:
                logger.debug("Dropping incomplete analysis item: %r", raw)
        return {**data, "items": kept}

    @field_validator("document_title", "summary", mode="before")
    @classmethod
    def _non_blank(cls, value: Any) -> str:
        if not isinstance(value, str) or not value.strip():
            raise ValueError("must be a non-empty string")
        return value.strip()

    @field_validator("confidence", mode="before")
    @classmethod
    def _percent_confidence(cls, value: Any) -> float:
        return normalize_confidence(value)

    @field_validator("clarifying_questions", mode="before")
    @classmethod
    def _questions(cls, value: Any) -> List[str]:
        return [str(question) for question in value] if isinstance(value, list) else []

    def to_outcome(self) -> AnalysisOutcome:
        return AnalysisOutcome(
            document_title=self.document_title,
            summary=self.summary,
            confidence=self.confidence,
            items=[
                AnalyzedItem(
                    ref=item.id,
                    item_type=item.item_type,
                    title=item.title,
                    description=item.description,
                    details=item.details,
                    destination_system=item.destination_system or "other",
                    confidence=item.confidence,
                    is_selected=item.is_selected,
                )
                for item in self.items
            ],
            clarifying_questions=self.clarifying_questions,
            source="llm",
        )


def validate_analysis(payload: Any) -> Optional[AnalysisOutcome]:
    """Validate a model response; ``None`` when the envelope is unusable."""
    try:
        return ModelAnalysis.model_validate(payload).to_outcome()
    except ValidationError as exc:
        logger.info("Model analysis rejected: %s", exc.error_count())
        return None


def analyze_document(
    *,
    text: str,
    file_name: str,
    context: Optional[str] = None,
    image: Optional[bytes] = None,
    mime_type: Optional[str] = None,
    request_id: Optional[str] = None,
) -> AnalysisOutcome:
    """Analyze extracted text (or an image) and return validated items."""
    has_text = bool(text and text.strip())
    if llm.llm_available() and (has_text or image):
        prompt = build_analysis_prompt(text or "(see attached image)", context)
        content = llm.image_content(prompt, image, mime_type or "image/png") if image else prompt
        payload = llm.request_json(
            SYSTEM_PROMPT,
            content,
            trace_name="document.analyze.llm",
            metadata={"file_name": file_name, "context": context, "text_length": len(text or "")},
            request_id=request_id,
        )
        outcome = validate_analysis(payload)
        if outcome is not None:
            return outcome
        logger.info("LLM analysis unusable for %s; using keyword analysis", file_name)

    if not has_text:
        raise UserFacingError(
            "NO_CONTENT",
            "We couldn't find any readable text in that file.",
            ["Upload a text-based PDF or Word document", "Paste the content into a .txt file"],
            status_code=422,
        )
    return heuristic_analysis(text, file_name, context)


KEYWORDS: Dict[str, List[str]] = {
    "nutrition": [
        "breakfast", "lunch", "dinner", "snack", "meal", "recipe", "ingredients", "cup", "tbsp", "tsp",
        "protein", "calories", "salad", "oats", "chicken", "eggs", "smoothie", "rice", "vegetables",
    ],
    "workout": [
        "workout", "squat", "push-up", "pushup", "lunge", "plank", "deadlift", "bench", "reps", "sets",
        "cardio", "hiit", "yoga", "stretch", "run", "jog", "cycling", "rest day", "warm-up", "cool-down",
    ],
    "routines": [
        "routine", "morning", "evening", "bedtime", "wake up", "journal", "meditate", "skincare",
        "step ", "prep", "habit", "checklist",
    ],
    "calendar": [
        "appointment", "meeting", "deadline", "reminder", "schedule", "every monday", "every week",
        "monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday",
    ],
}
# Ties between categories resolve in this order.
CATEGORY_PRIORITY = ("nutrition", "workout", "routines", "calendar")

_BULLET_RE = re.compile(r"^\s*(?:[-*•]+|\d+[.)])\s*")
_DATE_RE = re.compile(r"\b(\d{4})-(\d{2})-(\d{2})\b")
_TIME_RE = re.compile(r"\b(\d{1,2}):(\d{2})\s*(am|pm)?\b", re.IGNORECASE)
_WORD_RE = re.compile(r"[a-z][a-z\-]*")


def heuristic_analysis(text: str, file_name: str, context: Optional[str] = None) -> AnalysisOutcome:
    """Classify each line by keyword hits; deterministic and offline."""
    items: List[AnalyzedItem] = []
    counts: Dict[str, int] = {name: 0 for name in CATEGORY_PRIORITY}

    for line in text.splitlines():
        cleaned = _BULLET_RE.sub("", line).strip()
        if len(cleaned) < 3 or len(items) >= MAX_HEURISTIC_ITEMS:
            continue
        category, hits = _classify_line(cleaned)
        if not category:
            continue

        confidence = 0.75 if hits >= 2 else 0.55
        if context and context == category:
            confidence += 0.1
        counts[category] += 1
        item_type = ITEM_TYPE_BY_DESTINATION[category]
        items.append(
            AnalyzedItem(
                ref=f"item-{len(items) + 1}",
                item_type=item_type,
                title=cleaned[:120],
                description=cleaned if len(cleaned) > 120 else "",
                details=_line_details(cleaned, category),
                destination_system=category,
                confidence=round(min(confidence, 1.0), 4),
            )
        )

    title = _title_from_text(text) or _title_from_file_name(file_name)
    found = [f"{counts[name]} {name}" for name in CATEGORY_PRIORITY if counts[name]]
    if found:
        summary = f"Found {len(items)} items ({', '.join(found)}) in {file_name}."
    else:
        summary = f"No schedules, meals, workouts or routines were recognised in {file_name}."

    questions: List[str] = []
    if not items:
        questions.append("What would you like to save from this document?")
    elif all(item.confidence < 0.6 for item in items):
        questions.append("Are these items meant for your calendar, meals, workouts or routines?")

    overall = round(sum(item.confidence for item in items) / len(items), 4) if items else 0.0
    return AnalysisOutcome(
        document_title=title,
        summary=summary,
        confidence=overall,
        items=items,
        clarifying_questions=questions,
        source="heuristic",
    )


def _classify_line(line: str) -> tuple[Optional[str], int]:
    lowered = f" {line.lower()} "
    best: Optional[str] = None
    best_hits = 0
    for category in CATEGORY_PRIORITY:
        hits = sum(1 for keyword in KEYWORDS[category] if keyword in lowered)
        if category == "calendar" and _DATE_RE.search(line):
            hits += 2
        if hits > best_hits:
            best, best_hits = category, hits
    return best, best_hits


def _line_details(line: str, category: str) -> Dict[str, Any]:
    details: Dict[str, Any] = {}
    date_match = _DATE_RE.search(line)
    if date_match:
        details["date"] = date_match.group(0)
    time_match = _TIME_RE.search(line)
    if time_match:
        details["time"] = to_24h(int(time_match.group(1)), int(time_match.group(2)), time_match.group(3))
    if category == "nutrition":
        for meal_type in ("breakfast", "lunch", "dinner", "snack"):
            if meal_type in line.lower():
                details["mealType"] = meal_type
                break
    return details


def _title_from_text(text: str) -> str:
    for line in text.splitlines():
        cleaned = _BULLET_RE.sub("", line).strip().strip("#").strip()
        if cleaned and len(_WORD_RE.findall(cleaned.lower())) <= 10:
            return cleaned[:120]
    return ""


def _title_from_file_name(file_name: str) -> str:
    stem = file_name.rsplit(".", 1)[0] if "." in file_name else file_name
    cleaned = re.sub(r"[_\-]+", " ", stem).strip()
    return cleaned.title() if cleaned else "Imported Document"
