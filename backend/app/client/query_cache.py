"""Cache of GET results keyed by query, invalidated after mutations succeed."""
from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Dict, List, Tuple

logger = logging.getLogger(__name__)

QueryKey = Tuple[Any, ...]

# Queries affected by a successful document import commit.
DOCUMENT_COMMIT_KEYS = (
    "/api/documents",
    "/api/calendar",
    "/api/routines",
    "/api/workout-plans",
    "/api/meal-plans",
)
MEAL_IMPORT_COMMIT_KEYS = ("/api/meal-plans", "/api/routines")


class QueryCache:
    """Query keys are tuples whose first element is the endpoint path."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._entries: Dict[QueryKey, Any] = {}
        self._listeners: Dict[str, List[Callable[[str], None]]] = {}

    def get(self, key: QueryKey) -> Any:
        with self._lock:
            return self._entries.get(key)

    def set(self, key: QueryKey, value: Any) -> None:
        with self._lock:
            self._entries[key] = value

    def contains(self, key: QueryKey) -> bool:
        with self._lock:
            return key in self._entries

    def fetch(self, key: QueryKey, fetcher: Callable[[], Any]) -> Any:
        with self._lock:
            if key in self._entries:
                return self._entries[key]
        value = fetcher()
        self.set(key, value)
        return value

    def invalidate(self, *prefixes: str) -> int:
        """Drop every entry under the given endpoint paths and notify subscribers."""
        with self._lock:
            stale = [key for key in self._entries if key and key[0] in prefixes]
            for key in stale:
                del self._entries[key]
            listeners = [(prefix, list(self._listeners.get(prefix, []))) for prefix in prefixes]
        for prefix, callbacks in listeners:
            for callback in callbacks:
                callback(prefix)
        logger.debug("Invalidated queries", extra={"prefixes": list(prefixes), "dropped": len(stale)})
        return len(stale)

    def subscribe(self, prefix: str, callback: Callable[[str], None]) -> Callable[[], None]:
        with self._lock:
            self._listeners.setdefault(prefix, []).append(callback)

        def unsubscribe() -> None:
            with self._lock:
                callbacks = self._listeners.get(prefix, [])
                if callback in callbacks:
                    callbacks.remove(callback)

        return unsubscribe
