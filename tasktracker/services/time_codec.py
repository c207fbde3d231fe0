"""
Elapsed-time expressions ("1 hour 30 minutes") <-> integer minutes.

Only three canonical forms are accepted, always in 15-minute steps:
    "<n> minutes"                 n in {0, 15, 30, 45}
    "<n> hour" / "<n> hours"
    "<n> hour(s) <m> minutes"     m in {0, 15, 30, 45}
Anything else counts as 0 minutes when aggregating and is rejected as input.
"""

import re
from typing import Iterable, Optional

from tasktracker.core.constants import NOT_SPECIFIED

ALLOWED_MINUTES = (0, 15, 30, 45)

_MINUTES_RE = re.compile(r"^(\d+)\s+minutes$")
_HOURS_RE = re.compile(r"^(\d+)\s+hours?$")
_HOURS_MINUTES_RE = re.compile(r"^(\d+)\s+hours?\s+(\d+)\s+minutes$")


def _match(text: Optional[str]) -> Optional[int]:
    """Minutes for a canonical expression, None otherwise."""
    if not text or not isinstance(text, str):
        return None
    text = text.strip()

    m = _MINUTES_RE.match(text)
    if m:
        minutes = int(m.group(1))
        return minutes if minutes in ALLOWED_MINUTES else None

    m = _HOURS_RE.match(text)
    if m:
        return int(m.group(1)) * 60

    m = _HOURS_MINUTES_RE.match(text)
    if m:
        minutes = int(m.group(2))
        if minutes not in ALLOWED_MINUTES:
            return None
        return int(m.group(1)) * 60 + minutes

    return None


def is_valid_expression(text: Optional[str]) -> bool:
    return _match(text) is not None


def parse_to_minutes(text: Optional[str]) -> int:
    minutes = _match(text)
    return minutes if minutes is not None else 0


def format_minutes(minutes: int, empty: str = "") -> str:
    """
    Render minutes as "2 hours 15 minutes", "1 hour" or "45 minutes".

    `empty` is returned for 0; aggregate displays pass "Not specified".
    """
    if not minutes or minutes <= 0:
        return empty

    hours, rest = divmod(minutes, 60)
    parts = []
    if hours:
        parts.append(f"{hours} hour{'s' if hours > 1 else ''}")
    if rest:
        parts.append(f"{rest} minutes")
    return " ".join(parts)


def aggregate(task_text: Optional[str], subtask_texts: Iterable[Optional[str]] = ()) -> str:
    """Total of a task's time and its (already filtered, non-archived) subtasks' times."""
    total = parse_to_minutes(task_text)
    for text in subtask_texts:
        total += parse_to_minutes(text)
    return format_minutes(total, empty=NOT_SPECIFIED)
