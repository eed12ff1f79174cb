"""Quick-entry fragment parser.

A fragment is one line of free text with optional shorthand for priority
(``!high``), tags (``#work``), a relative day (``today``, ``tomorrow``,
``next week``) and a clock time (``9am``, ``2:30pm``). Each rule strips what it
recognises and hands the rest of the text to the next rule, so the order of
``_RULES`` is the precedence.
"""

import dataclasses
import re
from collections.abc import Callable
from datetime import datetime, timedelta

from ..core.types import Priority
from . import clock

__all__ = ["Fragment", "parse_fragment", "validate_title"]


@dataclasses.dataclass(frozen=True)
class Fragment:
    title: str
    due_at: datetime | None = None
    priority: Priority = "medium"
    tags: list[str] = dataclasses.field(default_factory=list, hash=False)


Rule = Callable[[str, Fragment, datetime], tuple[str, Fragment]]

_PRIORITY_MARKERS: list[tuple[Priority, re.Pattern[str]]] = [
    ("high", re.compile(r"!high", re.IGNORECASE)),
    ("medium", re.compile(r"!med(?:ium)?", re.IGNORECASE)),
    ("low", re.compile(r"!low", re.IGNORECASE)),
]
_TAG_RE = re.compile(r"#(\w+)", re.ASCII)
_TODAY_RE = re.compile(r"\btoday\b", re.IGNORECASE)
_TOMORROW_RE = re.compile(r"\btomorrow\b", re.IGNORECASE)
_NEXT_WEEK_RE = re.compile(r"\bnext week\b", re.IGNORECASE)
_TIME_RE = re.compile(r"\b(\d{1,2})(?::(\d{2}))?\s*(am|pm)\b", re.IGNORECASE)
_SPACES_RE = re.compile(r"\s{2,}")


def validate_title(title: str) -> None:
    """Validate that a title is not empty or whitespace-only.

    Raises ValueError if invalid.
    """
    if not title or not title.strip():
        raise ValueError("Title cannot be empty or whitespace-only")


def _extract_priority(text: str, found: Fragment, now: datetime) -> tuple[str, Fragment]:
    priority = found.priority
    for level, pattern in _PRIORITY_MARKERS:
        text, hits = pattern.subn("", text)
        if hits:
            priority = level
    return text, dataclasses.replace(found, priority=priority)


def _extract_tags(text: str, found: Fragment, now: datetime) -> tuple[str, Fragment]:
    tags = [*found.tags, *_TAG_RE.findall(text)]
    return _TAG_RE.sub("", text), dataclasses.replace(found, tags=tags)


def _extract_relative_day(text: str, found: Fragment, now: datetime) -> tuple[str, Fragment]:
    midnight = now.replace(hour=0, minute=0, second=0, microsecond=0)
    candidates: list[tuple[re.Pattern[str], datetime]] = [
        (_TODAY_RE, midnight.replace(hour=23, minute=59)),
        (_TOMORROW_RE, midnight + timedelta(days=1, hours=9)),
        (_NEXT_WEEK_RE, now + timedelta(days=7)),
    ]
    for pattern, due in candidates:
        if pattern.search(text):
            return pattern.sub("", text), dataclasses.replace(found, due_at=due)
    return text, found


def _extract_time(text: str, found: Fragment, now: datetime) -> tuple[str, Fragment]:
    if found.due_at is None:
        return text, found
    m = _TIME_RE.search(text)
    if not m:
        return text, found
    hour = int(m.group(1))
    minute = int(m.group(2) or 0)
    meridiem = m.group(3).lower()
    if meridiem == "pm" and hour != 12:
        hour += 12
    if meridiem == "am" and hour == 12:
        hour = 0
    # out-of-range values such as "13pm" roll into the next day
    day = found.due_at.replace(hour=0, minute=0, second=0, microsecond=0)
    due = day + timedelta(hours=hour, minutes=minute)
    return text[: m.start()] + text[m.end() :], dataclasses.replace(found, due_at=due)


_RULES: list[Rule] = [
    _extract_priority,
    _extract_tags,
    _extract_relative_day,
    _extract_time,
]


def parse_fragment(text: str, now: datetime | None = None) -> Fragment:
    """Split a quick-entry line into a clean title plus due date, priority and tags.

    Never raises: text that matches no rule is returned as the title.
    """
    now = now or clock.now()
    found = Fragment(title=text)
    for rule in _RULES:
        text, found = rule(text, found, now)
    title = _SPACES_RE.sub(" ", text).strip()
    return dataclasses.replace(found, title=title)
