"""Best-effort field extraction from free-text onboarding answers.

Nothing here raises: text that matches no pattern leaves the field as an
empty string. Keyword phrases are checked before explicit numbers so a stated
time or amount wins over a vague phrase in the same answer.
"""
from __future__ import annotations

from dataclasses import dataclass
import re
from typing import Optional

_CLOCK = r"(\d{1,2})(?::(\d{2}))?\s*(a\.?m\.?|p\.?m\.?)?"

WAKE_RE = re.compile(r"\b(?:wake|waking|woke|get up|getting up|up at|rise|alarm)\b\D{0,15}?" + _CLOCK)
SLEEP_RE = re.compile(
    r"\b(?:bed|bedtime|asleep|sleep(?!\s+in\b)|turn in|lights out)\b\D{0,15}?" + _CLOCK + r"(?!\s*(?:hours?|hrs?)\b)"
)
AMOUNT_RE = re.compile(r"(\d+(?:\.\d+)?)\s*\+?\s*(hours?|hrs?|minutes?|mins?)\b")


@dataclass
class ExtractedFields:
    wake_time: str = ""
    sleep_time: str = ""
    free_time_hours: str = ""


def format_clock(hour: int, minute: int, meridiem: Optional[str]) -> Optional[str]:
    """Render as ``H:MM AM``; a missing meridiem must be decided by the caller."""
    if minute > 59 or hour > 23:
        return None
    if hour > 12:
        return f"{hour - 12}:{minute:02d} PM"
    if hour == 0:
        return f"12:{minute:02d} AM"
    suffix = (meridiem or "AM").replace(".", "").upper()
    return f"{hour}:{minute:02d} {suffix}"


def _clock_from_match(match: re.Match, default_meridiem) -> Optional[str]:
    hour = int(match.group(1))
    minute = int(match.group(2) or 0)
    meridiem = match.group(3)
    if meridiem is None and hour <= 12:
        meridiem = default_meridiem(hour)
    return format_clock(hour, minute, meridiem)


def _wake_meridiem(hour: int) -> str:
    return "PM" if hour == 12 else "AM"


def _sleep_meridiem(hour: int) -> str:
    # 12 and the small hours are after midnight; everything else is evening
    return "AM" if hour == 12 or hour < 5 else "PM"


def free_time_bucket(hours: float) -> str:
    if hours < 1:
        return "less-1"
    if hours <= 2:
        return "1-2"
    if hours < 4:
        return "2-4"
    return "4-plus"


def extract_data_from_response(text: str) -> ExtractedFields:
    fields = ExtractedFields()
    lowered = (text or "").lower()
    if not lowered.strip():
        return fields

    if "early bird" in lowered or "sunrise" in lowered:
        fields.wake_time = "6:00 AM"
    elif "sleep in" in lowered or "late riser" in lowered:
        fields.wake_time = "9:00 AM"
    match = WAKE_RE.search(lowered)
    if match:
        fields.wake_time = _clock_from_match(match, _wake_meridiem) or fields.wake_time

    if "night owl" in lowered or "after midnight" in lowered:
        fields.sleep_time = "12:00 AM"
    elif "early to bed" in lowered:
        fields.sleep_time = "9:30 PM"
    match = SLEEP_RE.search(lowered)
    if match:
        fields.sleep_time = _clock_from_match(match, _sleep_meridiem) or fields.sleep_time

    if any(phrase in lowered for phrase in ("no time", "barely", "hardly any", "not much")):
        fields.free_time_hours = "less-1"
    elif "an hour or two" in lowered or "couple of hours" in lowered or "couple hours" in lowered:
        fields.free_time_hours = "1-2"
    elif "a few hours" in lowered or "several hours" in lowered:
        fields.free_time_hours = "2-4"
    elif "plenty" in lowered or "lots of time" in lowered or "all day" in lowered:
        fields.free_time_hours = "4-plus"
    for amount in AMOUNT_RE.finditer(lowered):
        if "sleep" in lowered[max(0, amount.start() - 15) : amount.start()]:
            continue
        value = float(amount.group(1))
        if amount.group(2).startswith("m"):
            value /= 60
        fields.free_time_hours = free_time_bucket(value)
        break

    return fields
