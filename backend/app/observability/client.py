"""Lazily built Opik client shared by tracing and metrics."""
from __future__ import annotations

import logging
from threading import Lock
from typing import Optional

from app.core.config import settings

try:
    from opik import Opik
except ImportError:  # pragma: no cover
    Opik = None  # type: ignore[assignment]

logger = logging.getLogger(__name__)

_lock = Lock()
_state = {"client": None, "resolved": False}


def _disabled_reason() -> Optional[str]:
    if Opik is None:
        return "opik package is not installed"
    if not settings.opik_enabled:
        return "OPIK_ENABLED is false"
    if not settings.opik_api_key:
        return "OPIK_API_KEY is not set"
    return None


def _build_client() -> Optional["Opik"]:
    reason = _disabled_reason()
    if reason:
        # A missing key is a misconfiguration, the other reasons are expected.
        log = logger.warning if settings.opik_enabled and Opik is not None else logger.debug
        log("Import tracing off: %s", reason)
        return None
    try:
        built = Opik(project_name=settings.opik_project, api_key=settings.opik_api_key)
    except Exception as exc:  # pragma: no cover - third-party init
        logger.warning("Opik client could not be created, tracing stays off: %s", exc)
        return None
    logger.info("Import tracing on (project=%s)", settings.opik_project)
    return built


def init_opik() -> Optional["Opik"]:
    """Resolve the client on first use; later calls return the same answer."""
    with _lock:
        if not _state["resolved"]:
            _state["client"] = _build_client()
            _state["resolved"] = True
        return _state["client"]


def get_opik_client() -> Optional["Opik"]:
    return _state["client"] if _state["resolved"] else init_opik()


def reset_opik_client() -> None:
    """Forget the resolved client so settings are read again."""
    with _lock:
        _state["client"] = None
        _state["resolved"] = False
