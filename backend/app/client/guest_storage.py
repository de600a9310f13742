"""Local draft store for partially-completed wizard state and guest data.

Values are JSON documents stored under stable ``dwai_*`` keys. The store
assumes a single writer; two writers racing on one key resolve as last write
wins at the next read.
"""
from __future__ import annotations

import json
import logging
import os
from pathlib import Path
import tempfile
import threading
import time
from typing import Any, Callable, Dict, Iterable, List, Optional, Protocol, Type, TypeVar
from uuid import uuid4

from pydantic import ValidationError

from app.client.records import (
    BodyProfile,
    BodyProfileDraft,
    ChatMessage,
    LocalEvent,
    MoodCheckIn,
    OnboardingData,
    OnboardingDraft,
    SavedRoutine,
    StoredRecord,
    UserResource,
)

logger = logging.getLogger(__name__)

BODY_PROFILE_KEY = "dwai_body_profile"
BODY_PROFILE_DRAFT_KEY = "dwai_body_profile_draft"
ONBOARDING_DRAFT_KEY = "dwai_onboarding_draft"
EXCLUSIONS_KEY = "dwai_exclusions"
MOOD_CHECKINS_KEY = "dwai_mood_checkins"
TRACKER_SETTINGS_KEY = "dwai_tracker_settings"
USER_RESOURCES_KEY = "dwai_user_resources"
SAVED_ROUTINES_KEY = "dwai_saved_routines"
LOCAL_EVENTS_KEY = "dwai_local_events"

STORAGE_KEYS = (
    BODY_PROFILE_KEY,
    BODY_PROFILE_DRAFT_KEY,
    ONBOARDING_DRAFT_KEY,
    EXCLUSIONS_KEY,
    MOOD_CHECKINS_KEY,
    TRACKER_SETTINGS_KEY,
    USER_RESOURCES_KEY,
    SAVED_ROUTINES_KEY,
    LOCAL_EVENTS_KEY,
)

T = TypeVar("T", bound=StoredRecord)


def epoch_ms() -> int:
    return int(time.time() * 1000)


class StorageBackend(Protocol):
    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...

    def remove(self, key: str) -> None: ...


class MemoryStorage:
    """Process-local backend, the default for tests and guests."""

    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)


class JsonFileStorage:
    """Backend persisting every key into one JSON file, replaced atomically."""

    def __init__(self, path: os.PathLike | str) -> None:
        self.path = Path(path)
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._load().get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            data = self._load()
            data[key] = value
            self._dump(data)

    def remove(self, key: str) -> None:
        with self._lock:
            data = self._load()
            if key in data:
                del data[key]
                self._dump(data)

    def _load(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError):
            logger.warning("Guest storage file unreadable; starting empty", extra={"path": str(self.path)})
            return {}
        if not isinstance(data, dict):
            return {}
        return {str(key): value for key, value in data.items() if isinstance(value, str)}

    def _dump(self, data: Dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, prefix=".guest-", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(data, handle)
            os.replace(tmp_path, self.path)
        except Exception:
            os.unlink(tmp_path)
            raise


class GuestStorage:
    """Typed accessors over a storage backend."""

    def __init__(self, backend: Optional[StorageBackend] = None, *, clock: Callable[[], int] = epoch_ms) -> None:
        self.backend: StorageBackend = backend if backend is not None else MemoryStorage()
        self.clock = clock

    # Raw JSON access -----------------------------------------------------

    def read(self, key: str) -> Any:
        raw = self.backend.get(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Ignoring unreadable guest storage entry", extra={"key": key})
            return None

    def write(self, key: str, value: Any) -> None:
        self.backend.set(key, json.dumps(value))

    def remove(self, key: str) -> None:
        self.backend.remove(key)

    def clear_all(self) -> None:
        for key in STORAGE_KEYS:
            self.backend.remove(key)

    def _read_record(self, key: str, record_type: Type[T]) -> Optional[T]:
        data = self.read(key)
        if data is None:
            return None
        try:
            return record_type.model_validate(data)
        except ValidationError:
            logger.warning("Ignoring malformed guest storage record", extra={"key": key})
            return None

    def _read_records(self, key: str, record_type: Type[T]) -> List[T]:
        data = self.read(key)
        if not isinstance(data, list):
            return []
        records: List[T] = []
        for entry in data:
            try:
                records.append(record_type.model_validate(entry))
            except ValidationError:
                logger.warning("Skipping malformed guest storage entry", extra={"key": key})
        return records

    def _write_records(self, key: str, records: Iterable[StoredRecord]) -> None:
        self.write(key, [record.to_storage() for record in records])

    # Body profile ----------------------------------------------------------

    def get_body_profile(self) -> Optional[BodyProfile]:
        return self._read_record(BODY_PROFILE_KEY, BodyProfile)

    def save_body_profile(self, profile: BodyProfile) -> None:
        self.write(BODY_PROFILE_KEY, profile.to_storage())

    def get_body_profile_draft(self) -> Optional[BodyProfileDraft]:
        return self._read_record(BODY_PROFILE_DRAFT_KEY, BodyProfileDraft)

    def write_body_profile_draft(self, profile: BodyProfile) -> BodyProfileDraft:
        draft = BodyProfileDraft(profile=profile, saved_at=self.clock())
        self.write(BODY_PROFILE_DRAFT_KEY, draft.to_storage())
        return draft

    def clear_body_profile_draft(self) -> None:
        self.remove(BODY_PROFILE_DRAFT_KEY)

    # Onboarding --------------------------------------------------------------

    def get_onboarding_draft(self) -> Optional[OnboardingDraft]:
        return self._read_record(ONBOARDING_DRAFT_KEY, OnboardingDraft)

    def write_onboarding_draft(self, data: OnboardingData, messages: List[ChatMessage], step: int) -> OnboardingDraft:
        draft = OnboardingDraft(data=data, messages=list(messages), step=step, saved_at=self.clock())
        self.write(ONBOARDING_DRAFT_KEY, draft.to_storage())
        return draft

    def clear_onboarding_draft(self) -> None:
        self.remove(ONBOARDING_DRAFT_KEY)

    # Exclusions --------------------------------------------------------------

    def get_exclusions(self) -> List[str]:
        data = self.read(EXCLUSIONS_KEY)
        return [str(item) for item in data] if isinstance(data, list) else []

    def add_exclusion(self, ingredient: str) -> List[str]:
        name = ingredient.strip()
        exclusions = self.get_exclusions()
        if name and name.lower() not in {item.lower() for item in exclusions}:
            exclusions.append(name)
            self.write(EXCLUSIONS_KEY, exclusions)
        return exclusions

    def remove_exclusion(self, ingredient: str) -> List[str]:
        target = ingredient.strip().lower()
        exclusions = [item for item in self.get_exclusions() if item.lower() != target]
        self.write(EXCLUSIONS_KEY, exclusions)
        return exclusions

    # Mood check-ins ----------------------------------------------------------

    def get_mood_checkins(self) -> List[MoodCheckIn]:
        return self._read_records(MOOD_CHECKINS_KEY, MoodCheckIn)

    def add_mood_checkin(self, mood: str, energy: Optional[int] = None, note: str = "") -> MoodCheckIn:
        checkin = MoodCheckIn(id=str(uuid4()), mood=mood, energy=energy, note=note, timestamp=self.clock())
        checkins = self.get_mood_checkins()
        checkins.append(checkin)
        self._write_records(MOOD_CHECKINS_KEY, checkins)
        return checkin

    # Tracker settings --------------------------------------------------------

    def get_tracker_settings(self) -> Dict[str, Any]:
        data = self.read(TRACKER_SETTINGS_KEY)
        return dict(data) if isinstance(data, dict) else {}

    def update_tracker_settings(self, **changes: Any) -> Dict[str, Any]:
        current = self.get_tracker_settings()
        current.update(changes)
        self.write(TRACKER_SETTINGS_KEY, current)
        return current

    # User resources ----------------------------------------------------------

    def get_user_resources(self, resource_type: Optional[str] = None) -> List[UserResource]:
        resources = self._read_records(USER_RESOURCES_KEY, UserResource)
        if resource_type is None:
            return resources
        return [resource for resource in resources if resource.resource_type == resource_type]

    def save_user_resource(
        self,
        resource_type: str,
        variant: str,
        title: str,
        description: str = "",
        tags: Optional[List[str]] = None,
    ) -> UserResource:
        resource = UserResource(
            id=str(uuid4()),
            resource_type=resource_type,
            variant=variant,
            title=title,
            description=description,
            tags=list(tags or []),
            created_at=self.clock(),
        )
        resources = self.get_user_resources()
        resources.append(resource)
        self._write_records(USER_RESOURCES_KEY, resources)
        return resource

    def delete_user_resource(self, resource_id: str) -> bool:
        resources = self.get_user_resources()
        remaining = [resource for resource in resources if resource.id != resource_id]
        self._write_records(USER_RESOURCES_KEY, remaining)
        return len(remaining) != len(resources)

    # Saved routines ----------------------------------------------------------

    def get_saved_routines(self) -> List[SavedRoutine]:
        return self._read_records(SAVED_ROUTINES_KEY, SavedRoutine)

    def save_routine(self, title: str, steps: List[str]) -> SavedRoutine:
        routine = SavedRoutine(id=str(uuid4()), title=title, steps=list(steps), created_at=self.clock())
        routines = self.get_saved_routines()
        routines.append(routine)
        self._write_records(SAVED_ROUTINES_KEY, routines)
        return routine

    # Local calendar events ---------------------------------------------------

    def get_local_events(self) -> List[LocalEvent]:
        return self._read_records(LOCAL_EVENTS_KEY, LocalEvent)

    def add_local_event(self, event: LocalEvent) -> LocalEvent:
        if not event.id:
            event.id = str(uuid4())
        if not event.created_at:
            event.created_at = self.clock()
        events = self.get_local_events()
        events.append(event)
        self._write_records(LOCAL_EVENTS_KEY, events)
        return event

    def remove_local_event(self, event_id: str) -> bool:
        events = self.get_local_events()
        remaining = [event for event in events if event.id != event_id]
        self._write_records(LOCAL_EVENTS_KEY, remaining)
        return len(remaining) != len(events)


def default_guest_storage() -> GuestStorage:
    """Storage backed by the configured JSON file, or memory when unset."""
    from app.core.config import settings

    if settings.guest_storage_path:
        return GuestStorage(JsonFileStorage(settings.guest_storage_path))
    return GuestStorage()
