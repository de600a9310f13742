"""Toast notifications raised by the wizards."""
from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import List, Protocol

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Toast:
    title: str
    description: str = ""
    variant: str = "default"


class Notifier(Protocol):
    def toast(self, title: str, description: str = "", *, variant: str = "default") -> None: ...


class LoggingNotifier:
    """Logs each toast and keeps a history for whoever renders them."""

    def __init__(self) -> None:
        self.history: List[Toast] = []

    def toast(self, title: str, description: str = "", *, variant: str = "default") -> None:
        self.history.append(Toast(title=title, description=description, variant=variant))
        level = logging.WARNING if variant == "destructive" else logging.INFO
        logger.log(level, "Toast: %s", title, extra={"description": description, "variant": variant})

    @property
    def last(self) -> Toast | None:
        return self.history[-1] if self.history else None
