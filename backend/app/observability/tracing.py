"""Span helpers for the import, calendar and onboarding routes.

Every helper degrades to a no-op when Opik is off, so callers never branch
on whether tracing is configured.
"""
from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, Callable, Dict, Iterator, Optional

from app.observability import client as opik_client

if TYPE_CHECKING:  # pragma: no cover - typing helper
    from opik.api_objects.trace.trace_client import Trace
else:  # pragma: no cover - typing helper
    Trace = object  # type: ignore[assignment]

logger = logging.getLogger(__name__)


def get_opik_client():
    return opik_client.get_opik_client()


def _span_metadata(metadata: Optional[Dict[str, Any]], user_id: Optional[str], request_id: Optional[str]) -> Dict[str, Any]:
    merged = {key: value for key, value in (metadata or {}).items() if value is not None}
    if user_id:
        merged.setdefault("user_id", str(user_id))
    if request_id:
        merged.setdefault("request_id", request_id)
    return merged


def _quietly(action: Callable[[], Any], what: str) -> None:
    try:
        action()
    except Exception:  # pragma: no cover - tracing must not break requests
        logger.debug("Opik %s failed", what, exc_info=True)


@contextmanager
def trace(
    name: str,
    metadata: Optional[Dict[str, Any]] = None,
    user_id: Optional[str] = None,
    request_id: Optional[str] = None,
) -> Iterator[Optional["Trace"]]:
    """Open a span named ``name``; yields ``None`` when tracing is off."""
    span: Optional["Trace"] = None
    client = get_opik_client()
    if client:
        try:
            span = client.trace(name=name, metadata=_span_metadata(metadata, user_id, request_id) or None)
        except Exception as exc:  # pragma: no cover - third-party failure
            logger.debug("Could not open span %s: %s", name, exc)

    try:
        yield span
    except Exception as exc:
        if span:
            _quietly(lambda: span.update(error_info={"message": str(exc)}), f"error update for {name}")
        raise
    finally:
        if span:
            _quietly(span.end, f"end of {name}")


def annotate(span: Optional["Trace"], **metadata: Any) -> None:
    if span:
        _quietly(lambda: span.update(metadata=metadata), "annotation")
