"""Multi-file document import: upload, analyze, review and commit each file in turn."""
from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
import logging
from typing import Any, Callable, Dict, Iterable, List, Optional, Set

from app.client.api import ApiClient, ApiError
from app.client.guest_storage import GuestStorage
from app.client.notifier import LoggingNotifier, Notifier
from app.client.query_cache import DOCUMENT_COMMIT_KEYS, QueryCache
from app.core.config import settings
from app.core.errors import UserFacingError
from app.services.upload_rules import DOCUMENT_RULES, validate_upload
from app.wizards.machine import StepMachine

logger = logging.getLogger(__name__)

UPLOAD_FALLBACK_SUGGESTIONS = ["Try uploading again", "Try a different file"]

# Destination systems whose items are also kept as local resources.
RESOURCE_TYPE_BY_DESTINATION = {"workout": "workout", "nutrition": "meal_plan"}


class ImportStep(IntEnum):
    UPLOAD = 0
    ANALYZING = 1
    PREVIEW = 2
    SAVING = 3
    COMPLETE = 4


@dataclass
class QueuedFile:
    file_name: str
    content: bytes
    mime_type: str

    @property
    def size_bytes(self) -> int:
        return len(self.content)


@dataclass
class FileQueueItem:
    file: QueuedFile
    status: str = "pending"  # pending|uploading|analyzing|done|error|skipped
    document_id: Optional[str] = None
    error: Optional[UserFacingError] = None


class DocumentImportWizard:
    """Processes the queue one file at a time.

    Committing or skipping file *i* uploads and analyzes file *i + 1*; after the
    last file the wizard is COMPLETE. Any failure returns to UPLOAD with the
    cursor unchanged so ``retry`` or ``skip_file`` can continue.
    """

    def __init__(
        self,
        api: ApiClient,
        storage: GuestStorage,
        cache: QueryCache,
        *,
        notifier: Optional[Notifier] = None,
        context: Optional[str] = None,
        on_complete: Optional[Callable[[List[Dict[str, Any]]], None]] = None,
        preselect_threshold: Optional[float] = None,
    ) -> None:
        self.api = api
        self.storage = storage
        self.cache = cache
        self.notifier = notifier or LoggingNotifier()
        self.context = context
        self.on_complete = on_complete
        self.preselect_threshold = (
            settings.analysis_preselect_confidence if preselect_threshold is None else preselect_threshold
        )
        self.machine: StepMachine[ImportStep] = StepMachine(list(ImportStep))
        self.generation = 0
        self._clear()

    def _clear(self) -> None:
        self.queue: List[FileQueueItem] = []
        self.cursor = 0
        self.analysis: Optional[Dict[str, Any]] = None
        self.selected: Set[str] = set()
        self.error: Optional[UserFacingError] = None
        self.results: List[Dict[str, Any]] = []

    @property
    def step(self) -> ImportStep:
        return self.machine.step

    @property
    def current(self) -> Optional[FileQueueItem]:
        return self.queue[self.cursor] if self.cursor < len(self.queue) else None

    @property
    def items(self) -> List[Dict[str, Any]]:
        return list(self.analysis.get("items") or []) if self.analysis else []

    # Queue -------------------------------------------------------------------

    def add_files(self, files: Iterable[QueuedFile]) -> List[UserFacingError]:
        """Queue valid files; rejected ones are reported and never sent."""
        rejected: List[UserFacingError] = []
        for queued in files:
            try:
                queued.mime_type = validate_upload(queued.file_name, queued.mime_type, queued.size_bytes, DOCUMENT_RULES)
            except UserFacingError as exc:
                rejected.append(exc)
                self.notifier.toast("Couldn't process that file", f"{queued.file_name}: {exc.user_message}", variant="destructive")
                continue
            self.queue.append(FileQueueItem(file=queued))
        return rejected

    def remove_file(self, index: int) -> None:
        if self.step != ImportStep.UPLOAD or index < self.cursor:
            raise ValueError("only files that have not been processed can be removed")
        del self.queue[index]

    # Processing --------------------------------------------------------------

    def start(self) -> ImportStep:
        if not self.current:
            self.error = UserFacingError("NO_FILES", "Add a file to import.", ["Choose a file"])
            return self.step
        self._process_current()
        return self.step

    def retry(self) -> ImportStep:
        if self.step == ImportStep.UPLOAD and self.current is not None:
            self._process_current()
        return self.step

    def _process_current(self) -> None:
        generation = self.generation
        entry = self.current
        self.error = None
        self.analysis = None
        self.selected = set()
        self.machine.go_to(ImportStep.ANALYZING)

        stage = "upload"
        try:
            if entry.document_id is None:
                entry.status = "uploading"
                uploaded = self.api.api_request(
                    "POST",
                    "/api/documents/upload",
                    files={"file": (entry.file.file_name, entry.file.content, entry.file.mime_type)},
                    data=self._upload_form(),
                )
                if generation != self.generation:
                    return
                entry.document_id = str(uploaded["documentId"])

            stage = "analyze"
            entry.status = "analyzing"
            analysis = self.api.api_request(
                "POST",
                f"/api/documents/{entry.document_id}/analyze",
                json={"userId": str(self.api.user_id)},
            )
        except ApiError as exc:
            if generation != self.generation:
                return
            self._fail(entry, exc, stage)
            return

        if generation != self.generation:
            return
        self.analysis = analysis
        self.selected = {
            item["id"]
            for item in analysis.get("items") or []
            if float(item.get("confidence") or 0) >= self.preselect_threshold and not item.get("linkedEntityId")
        }
        self.machine.go_to(ImportStep.PREVIEW)

    def _fail(self, entry: FileQueueItem, exc: ApiError, stage: str) -> None:
        if stage == "upload" and not exc.suggestions:
            exc.suggestions = list(UPLOAD_FALLBACK_SUGGESTIONS)
        entry.status = "error"
        entry.error = exc
        self.error = exc
        title = "Couldn't process that file" if stage == "upload" else "Analysis failed"
        logger.warning("Document import step failed", extra={"stage": stage, "code": exc.code})
        self.notifier.toast(title, exc.user_message, variant="destructive")
        self.machine.go_to(ImportStep.UPLOAD)

    # Review ------------------------------------------------------------------

    def toggle_item(self, item_id: str) -> None:
        if item_id in self.selected:
            self.selected.discard(item_id)
        else:
            self.selected.add(item_id)

    def select_all(self) -> None:
        self.selected = {item["id"] for item in self.items if not item.get("linkedEntityId")}

    def select_none(self) -> None:
        self.selected = set()

    def commit(self) -> bool:
        if self.step != ImportStep.PREVIEW or self.current is None:
            return False
        if not self.selected:
            self.error = UserFacingError(
                "NO_ITEMS_SELECTED",
                "Select at least one item to save.",
                ["Select an item", "Skip this file"],
            )
            return False

        generation = self.generation
        entry = self.current
        chosen = [item for item in self.items if item["id"] in self.selected]
        self.error = None
        self.machine.go_to(ImportStep.SAVING)
        try:
            result = self.api.api_request(
                "POST",
                f"/api/documents/{entry.document_id}/commit",
                json={"userId": str(self.api.user_id), "itemIds": [item["id"] for item in chosen]},
            )
        except ApiError as exc:
            if generation != self.generation:
                return False
            self.error = exc
            self.notifier.toast("Save failed", exc.user_message, variant="destructive")
            self.machine.go_to(ImportStep.PREVIEW)
            return False

        if generation != self.generation:
            return False
        self._save_resources(chosen)
        self.cache.invalidate(*DOCUMENT_COMMIT_KEYS)
        entry.status = "done"
        self.results.append(result)
        self.notifier.toast("Items saved", str(result.get("message") or ""))
        self._advance()
        return True

    def _save_resources(self, items: List[Dict[str, Any]]) -> None:
        for item in items:
            resource_type = RESOURCE_TYPE_BY_DESTINATION.get(item.get("destinationSystem"))
            if resource_type is None:
                continue
            self.storage.save_user_resource(
                resource_type,
                "file",
                item.get("title") or "Imported item",
                item.get("description") or "",
                tags=[item.get("itemType") or resource_type, "imported"],
            )

    def skip_file(self) -> ImportStep:
        """Leave the current file uncommitted and move on."""
        entry = self.current
        if entry is None or self.step not in (ImportStep.UPLOAD, ImportStep.PREVIEW):
            return self.step
        entry.status = "skipped"
        self._advance()
        return self.step

    def _advance(self) -> None:
        self.analysis = None
        self.selected = set()
        self.error = None
        if self.cursor + 1 < len(self.queue):
            self.cursor += 1
            self._process_current()
            return
        self.cursor = len(self.queue)
        self.machine.go_to(ImportStep.COMPLETE)
        if self.on_complete:
            self.on_complete(list(self.results))

    # Teardown ----------------------------------------------------------------

    def close(self) -> None:
        """Drop all state; responses still in flight are ignored."""
        self.generation += 1
        self._clear()
        self.machine.reset()

    def _upload_form(self) -> Dict[str, str]:
        form = {"user_id": str(self.api.user_id)}
        if self.context:
            form["context"] = self.context
        return form
