import re
from datetime import date, datetime, time, timedelta

from dateutil import parser as dateutil_parser
from dateutil.parser import ParserError

from . import clock

END_OF_DAY = time(23, 59)

_DAY_ALIASES = {
    "monday": "mon",
    "tuesday": "tue",
    "wednesday": "wed",
    "thursday": "thu",
    "friday": "fri",
    "saturday": "sat",
    "sunday": "sun",
}
_DAY_MAP = {"mon": 0, "tue": 1, "wed": 2, "thu": 3, "fri": 4, "sat": 5, "sun": 6}
_HAS_TIME_RE = re.compile(r"\d{1,2}:\d{2}|\d\s*(am|pm)\b", re.IGNORECASE)


def day_bounds(now: datetime) -> tuple[datetime, datetime, datetime]:
    """Return (start of today, start of tomorrow, start of today + 7 days)."""
    today_start = datetime.combine(now.date(), time.min)
    return today_start, today_start + timedelta(days=1), today_start + timedelta(days=7)


def end_of_day(d: date) -> datetime:
    return datetime.combine(d, END_OF_DAY)


def _weekday_date(name: str, today: date) -> date:
    days_ahead = (_DAY_MAP[name] - today.weekday() + 7) % 7
    return today + timedelta(days=days_ahead)


def parse_due(due_str: str, now: datetime | None = None) -> datetime | None:
    """Parse an explicit due value (e.g. 'today', 'tomorrow', 'fri', '2026-03-01 14:00').

    Date-only values resolve to the end of that day. Returns None when unparseable.
    """
    now = now or clock.now()
    today = now.date()
    value = due_str.strip()
    lower = value.lower()
    if not lower:
        return None

    if lower == "today":
        return end_of_day(today)
    if lower == "yesterday":
        return end_of_day(today - timedelta(days=1))
    if lower == "tomorrow":
        return end_of_day(today + timedelta(days=1))
    if lower == "next week":
        return now + timedelta(days=7)
    lower = _DAY_ALIASES.get(lower, lower)
    if lower in _DAY_MAP:
        return end_of_day(_weekday_date(lower, today))

    try:
        parsed = dateutil_parser.parse(value, default=datetime.combine(today, time.min))
    except (ParserError, ValueError, OverflowError):
        return None
    parsed = parsed.replace(tzinfo=None)
    if not _HAS_TIME_RE.search(value) and parsed.time() == time.min:
        return end_of_day(parsed.date())
    return parsed
