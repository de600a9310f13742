"""Meal-plan import wizard: one PDF or photo in, meals and a prep routine out."""
from __future__ import annotations

from enum import IntEnum
import logging
from typing import Any, Callable, Dict, List, Optional

from app.client.api import ApiClient, ApiError
from app.client.notifier import LoggingNotifier, Notifier
from app.client.query_cache import MEAL_IMPORT_COMMIT_KEYS, QueryCache
from app.core.errors import UserFacingError
from app.services.upload_rules import MEAL_PLAN_RULES, validate_upload
from app.wizards.document_import import QueuedFile
from app.wizards.machine import StepMachine

logger = logging.getLogger(__name__)


class MealImportStep(IntEnum):
    UPLOAD = 0
    SCANNING = 1
    PREVIEW = 2
    SAVING = 3
    DONE = 4


class MealPlanImportWizard:
    def __init__(
        self,
        api: ApiClient,
        cache: QueryCache,
        *,
        notifier: Optional[Notifier] = None,
        on_complete: Optional[Callable[[Dict[str, Any]], None]] = None,
    ) -> None:
        self.api = api
        self.cache = cache
        self.notifier = notifier or LoggingNotifier()
        self.on_complete = on_complete
        self.machine: StepMachine[MealImportStep] = StepMachine(list(MealImportStep))
        self.generation = 0
        self._clear()

    def _clear(self) -> None:
        self.file: Optional[QueuedFile] = None
        self.document_id: Optional[str] = None
        self.plan_title = ""
        self.meals: List[Dict[str, Any]] = []
        self.routine: Dict[str, Any] = {"title": "Meal Prep Routine", "steps": []}
        self.suggestions: List[Dict[str, Any]] = []
        self.questions: List[str] = []
        self.saved: Optional[Dict[str, Any]] = None
        self.events_created = 0
        self.error: Optional[UserFacingError] = None

    @property
    def step(self) -> MealImportStep:
        return self.machine.step

    @property
    def selected_meals(self) -> List[Dict[str, Any]]:
        return [meal for meal in self.meals if meal.get("isSelected", True)]

    # Upload and scan -----------------------------------------------------------

    def select_file(self, queued: QueuedFile) -> bool:
        try:
            queued.mime_type = validate_upload(queued.file_name, queued.mime_type, queued.size_bytes, MEAL_PLAN_RULES)
        except UserFacingError as exc:
            self.error = exc
            self.notifier.toast("Couldn't use that file", exc.user_message, variant="destructive")
            return False
        self.error = None
        self.file = queued
        self.document_id = None
        return True

    def scan(self) -> MealImportStep:
        if self.file is None:
            self.error = UserFacingError("NO_FILES", "Choose a meal plan to import.", ["Choose a PDF or photo"])
            return self.step

        generation = self.generation
        self.error = None
        self.machine.go_to(MealImportStep.SCANNING)
        try:
            if self.document_id is None:
                uploaded = self.api.api_request(
                    "POST",
                    "/api/import/upload",
                    files={"file": (self.file.file_name, self.file.content, self.file.mime_type)},
                    data={"user_id": str(self.api.user_id)},
                )
                if generation != self.generation:
                    return self.step
                self.document_id = str(uploaded["documentId"])
            analysis = self.api.api_request(
                "POST",
                f"/api/import/analyze/{self.document_id}",
                json={"userId": str(self.api.user_id)},
            )
        except ApiError as exc:
            if generation != self.generation:
                return self.step
            logger.warning("Meal plan scan failed", extra={"code": exc.code})
            self.error = exc
            self.notifier.toast("Couldn't read that meal plan", exc.user_message, variant="destructive")
            self.machine.go_to(MealImportStep.UPLOAD)
            return self.step

        if generation != self.generation:
            return self.step
        self.plan_title = analysis.get("planTitle") or "Imported Meal Plan"
        self.meals = [dict(meal) for meal in analysis.get("meals") or []]
        self.routine = dict(analysis.get("routine") or self.routine)
        self.suggestions = [dict(suggestion) for suggestion in analysis.get("calendarSuggestions") or []]
        self.questions = list(analysis.get("questions") or [])
        self.machine.go_to(MealImportStep.PREVIEW)
        return self.step

    # Editing -------------------------------------------------------------------

    def set_plan_title(self, title: str) -> None:
        self.plan_title = title

    def toggle_meal(self, meal_id: str) -> None:
        meal = self._find(self.meals, meal_id)
        meal["isSelected"] = not meal.get("isSelected", True)

    def rename_meal(self, meal_id: str, title: str) -> None:
        if not title.strip():
            raise ValueError("meal title must not be empty")
        self._find(self.meals, meal_id)["title"] = title.strip()

    def update_routine_step(self, step_id: str, text: str) -> None:
        self._find(self.routine.get("steps") or [], step_id)["text"] = text

    def remove_routine_step(self, step_id: str) -> None:
        self.routine["steps"] = [step for step in self.routine.get("steps") or [] if step.get("id") != step_id]

    def toggle_suggestion(self, suggestion_id: str) -> None:
        suggestion = self._find(self.suggestions, suggestion_id)
        suggestion["isSelected"] = not suggestion.get("isSelected", True)

    @staticmethod
    def _find(entries: List[Dict[str, Any]], entry_id: str) -> Dict[str, Any]:
        for entry in entries:
            if entry.get("id") == entry_id:
                return entry
        raise KeyError(entry_id)

    # Save ----------------------------------------------------------------------

    def save(self) -> bool:
        if self.step != MealImportStep.PREVIEW:
            return False
        steps = [step for step in self.routine.get("steps") or [] if str(step.get("text") or "").strip()]
        if not self.selected_meals and not steps:
            self.error = UserFacingError("NOTHING_TO_SAVE", "Select at least one meal to save.", ["Select a meal"])
            return False
        if not self.plan_title.strip():
            self.error = UserFacingError("MISSING_TITLE", "Give your meal plan a name.", ["Add a plan title"])
            return False

        generation = self.generation
        self.error = None
        self.machine.go_to(MealImportStep.SAVING)
        try:
            saved = self.api.api_request(
                "POST",
                f"/api/import/commit/{self.document_id}",
                json={
                    "userId": str(self.api.user_id),
                    "planTitle": self.plan_title.strip(),
                    "meals": self.meals,
                    "routine": {"title": self.routine.get("title") or "Meal Prep Routine", "steps": steps},
                },
            )
        except ApiError as exc:
            if generation != self.generation:
                return False
            self.error = exc
            self.notifier.toast("Save failed", exc.user_message, variant="destructive")
            self.machine.go_to(MealImportStep.PREVIEW)
            return False

        if generation != self.generation:
            return False
        self.saved = saved
        self.cache.invalidate(*MEAL_IMPORT_COMMIT_KEYS)
        count = int(saved.get("mealsCount") or 0)
        self.notifier.toast("Meal plan saved", f"Saved {count} meal{'s' if count != 1 else ''}.")
        self.machine.go_to(MealImportStep.DONE)
        if self.on_complete:
            self.on_complete(saved)
        return True

    def add_to_calendar(self) -> int:
        """Create events for the selected suggestions; only offered once saved."""
        if self.step != MealImportStep.DONE:
            return 0
        chosen = [suggestion for suggestion in self.suggestions if suggestion.get("isSelected", True)]
        if not chosen:
            self.error = UserFacingError("NOTHING_SELECTED", "Select at least one suggestion.", ["Select a suggestion"])
            return 0
        self.error = None
        try:
            result = self.api.api_request(
                "POST",
                f"/api/import/calendar/{self.document_id}",
                json={"userId": str(self.api.user_id), "suggestions": chosen},
            )
        except ApiError as exc:
            self.error = exc
            self.notifier.toast("Couldn't update your calendar", exc.user_message, variant="destructive")
            return 0
        created = int(result.get("eventsCreated") or 0)
        self.events_created += created
        self.cache.invalidate("/api/calendar")
        self.notifier.toast("Calendar updated", f"Added {created} events to your calendar.")
        return created

    def close(self) -> None:
        self.generation += 1
        self._clear()
        self.machine.reset()
