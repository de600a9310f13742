"""Small date and clock parsing helpers for imported content."""
from __future__ import annotations

from datetime import date, timedelta
import re
from typing import Any, Optional

WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")

_CLOCK_RE = re.compile(r"^\s*(\d{1,2})(?::(\d{2}))?\s*(am|pm|a\.m\.|p\.m\.)?\s*$", re.IGNORECASE)


def to_24h(hour: int, minute: int, meridiem: Optional[str]) -> str:
    if meridiem:
        meridiem = meridiem.lower().replace(".", "")
        if meridiem == "pm" and hour < 12:
            hour += 12
        elif meridiem == "am" and hour == 12:
            hour = 0
    return f"{hour % 24:02d}:{minute % 60:02d}"


def parse_clock(value: Any) -> Optional[str]:
    """Accept ``"18:30"``, ``"6:30 PM"`` or ``"7am"`` and return ``"HH:MM"``."""
    if not isinstance(value, str):
        return None
    match = _CLOCK_RE.match(value)
    if not match:
        return None
    hour = int(match.group(1))
    minute = int(match.group(2) or 0)
    if hour > 23 or minute > 59:
        return None
    if match.group(2) is None and not match.group(3):
        return None
    return to_24h(hour, minute, match.group(3))


def parse_iso_date(value: Any) -> Optional[date]:
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None
    try:
        return date.fromisoformat(value.strip()[:10])
    except ValueError:
        return None


def next_weekday(name: str, today: date) -> Optional[date]:
    """Next occurrence of a weekday, counting today."""
    lowered = name.strip().lower()
    for index, weekday in enumerate(WEEKDAYS):
        if lowered.startswith(weekday[:3]):
            return today + timedelta(days=(index - today.weekday()) % 7)
    return None


def resolve_event_date(details: dict, today: date) -> date:
    """Pick the best date hint from item details, defaulting to today."""
    explicit = parse_iso_date(details.get("date"))
    if explicit:
        return explicit
    day = details.get("day")
    if isinstance(day, str):
        upcoming = next_weekday(day, today)
        if upcoming:
            return upcoming
    return today
