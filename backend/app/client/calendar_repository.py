"""One calendar view over locally stored events and server events."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date
import logging
from typing import Any, Dict, List, Optional, Protocol

from app.client.api import ApiClient, ApiError
from app.client.guest_storage import GuestStorage
from app.client.query_cache import QueryCache
from app.client.records import LocalEvent

logger = logging.getLogger(__name__)

LOCAL = "local"
SERVER = "server"
CALENDAR_PATH = "/api/calendar"


@dataclass(frozen=True)
class EventDraft:
    title: str
    event_date: date
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    all_day: bool = False
    category: Optional[str] = None
    description: Optional[str] = None


@dataclass(frozen=True)
class DisplayEvent:
    id: str
    title: str
    event_date: date
    start_time: Optional[str]
    end_time: Optional[str]
    all_day: bool
    category: Optional[str]
    description: Optional[str]
    origin: str

    @property
    def sort_key(self):
        return (self.event_date, not self.all_day, self.start_time or "", self.title.lower())


class CalendarAdapter(Protocol):
    origin: str

    def list_events(self, start: Optional[date], end: Optional[date]) -> List[DisplayEvent]: ...

    def add_event(self, draft: EventDraft) -> DisplayEvent: ...

    def remove_event(self, event_id: str) -> bool: ...


def _in_range(day: date, start: Optional[date], end: Optional[date]) -> bool:
    return (start is None or day >= start) and (end is None or day <= end)


class LocalCalendarAdapter:
    origin = LOCAL

    def __init__(self, storage: GuestStorage) -> None:
        self.storage = storage

    def list_events(self, start: Optional[date], end: Optional[date]) -> List[DisplayEvent]:
        events: List[DisplayEvent] = []
        for event in self.storage.get_local_events():
            try:
                day = date.fromisoformat(event.event_date)
            except ValueError:
                logger.warning("Skipping local event with bad date", extra={"event_id": event.id})
                continue
            if _in_range(day, start, end):
                events.append(self._to_display(event, day))
        return events

    def add_event(self, draft: EventDraft) -> DisplayEvent:
        stored = self.storage.add_local_event(
            LocalEvent(
                id="",
                title=draft.title,
                event_date=draft.event_date.isoformat(),
                start_time=None if draft.all_day else draft.start_time,
                end_time=None if draft.all_day else draft.end_time,
                all_day=draft.all_day or draft.start_time is None,
                category=draft.category,
                description=draft.description,
            )
        )
        return self._to_display(stored, draft.event_date)

    def remove_event(self, event_id: str) -> bool:
        return self.storage.remove_local_event(event_id)

    def _to_display(self, event: LocalEvent, day: date) -> DisplayEvent:
        return DisplayEvent(
            id=event.id,
            title=event.title,
            event_date=day,
            start_time=event.start_time,
            end_time=event.end_time,
            all_day=event.all_day,
            category=event.category,
            description=event.description,
            origin=LOCAL,
        )


class RemoteCalendarAdapter:
    origin = SERVER

    def __init__(self, api: ApiClient, cache: QueryCache) -> None:
        self.api = api
        self.cache = cache

    def list_events(self, start: Optional[date], end: Optional[date]) -> List[DisplayEvent]:
        params: Dict[str, Any] = {"user_id": str(self.api.user_id)}
        if start:
            params["from"] = start.isoformat()
        if end:
            params["to"] = end.isoformat()
        key = (CALENDAR_PATH, str(self.api.user_id), params.get("from"), params.get("to"))
        rows = self.cache.fetch(key, lambda: self.api.api_request("GET", CALENDAR_PATH, params=params))
        return [self._to_display(row) for row in rows or []]

    def add_event(self, draft: EventDraft) -> DisplayEvent:
        row = self.api.api_request(
            "POST",
            CALENDAR_PATH,
            json={
                "userId": str(self.api.user_id),
                "title": draft.title,
                "eventDate": draft.event_date.isoformat(),
                "startTime": draft.start_time,
                "endTime": draft.end_time,
                "allDay": draft.all_day,
                "category": draft.category,
                "description": draft.description,
            },
        )
        self.cache.invalidate(CALENDAR_PATH)
        return self._to_display(row)

    def remove_event(self, event_id: str) -> bool:
        self.api.api_request("DELETE", f"{CALENDAR_PATH}/{event_id}", params={"user_id": str(self.api.user_id)})
        self.cache.invalidate(CALENDAR_PATH)
        return True

    def _to_display(self, row: Dict[str, Any]) -> DisplayEvent:
        return DisplayEvent(
            id=str(row["id"]),
            title=row["title"],
            event_date=date.fromisoformat(row["eventDate"]),
            start_time=row.get("startTime"),
            end_time=row.get("endTime"),
            all_day=bool(row.get("allDay")),
            category=row.get("category"),
            description=row.get("description"),
            origin=SERVER,
        )


class CalendarRepository:
    """Merges the adapters into one date-ordered list.

    Writes go to the server when a remote adapter is configured and the user
    is known, otherwise to local storage. A failed server read falls back to
    local events and is kept on ``last_error`` for the caller to surface.
    """

    def __init__(self, local: LocalCalendarAdapter, remote: Optional[RemoteCalendarAdapter] = None) -> None:
        self.local = local
        self.remote = remote
        self.last_error: Optional[ApiError] = None

    def _remote_ready(self) -> bool:
        return self.remote is not None and self.remote.api.user_id is not None

    def list_events(self, start: Optional[date] = None, end: Optional[date] = None) -> List[DisplayEvent]:
        events = self.local.list_events(start, end)
        self.last_error = None
        if self._remote_ready():
            try:
                events.extend(self.remote.list_events(start, end))
            except ApiError as exc:
                logger.warning("Server calendar unavailable; showing local events", extra={"code": exc.code})
                self.last_error = exc
        return sorted(events, key=lambda event: event.sort_key)

    def add_event(self, draft: EventDraft) -> DisplayEvent:
        if self._remote_ready():
            return self.remote.add_event(draft)
        return self.local.add_event(draft)

    def remove_event(self, event: DisplayEvent) -> bool:
        if event.origin == SERVER:
            if self.remote is None:
                raise ValueError("No server calendar configured")
            return self.remote.remove_event(event.id)
        return self.local.remove_event(event.id)
