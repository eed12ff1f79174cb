"""Filter and sort pipeline over an in-memory task collection.

Stages run in a fixed order (view, tag, priority, due bucket, search) and each
one narrows what the previous stage kept; sorting always comes last. Unknown
view, bucket or sort values mean "no filter" and "custom" respectively, so a
query never fails.
"""

import unicodedata
from collections.abc import Callable, Iterable
from datetime import datetime

from .core.models import QuerySpec, Task
from .core.types import PRIORITIES
from .lib import clock
from .lib.dates import day_bounds

__all__ = ["query", "sort_tasks", "view_counts"]

PRIORITY_RANK = {"high": 0, "medium": 1, "low": 2}

Predicate = Callable[[Task], bool]


def _due_within(task: Task, start: datetime, end: datetime) -> bool:
    return task.due_at is not None and start <= task.due_at < end


def _view_predicate(view: str, now: datetime) -> Predicate | None:
    today_start, tomorrow_start, week_end = day_bounds(now)
    views: dict[str, Predicate] = {
        "today": lambda t: not t.done and _due_within(t, today_start, tomorrow_start),
        "upcoming": lambda t: not t.done and _due_within(t, tomorrow_start, week_end),
        "all": lambda t: not t.done,
        "starred": lambda t: not t.done and t.starred,
        "completed": lambda t: t.done,
    }
    return views.get(view)


def _due_predicate(bucket: str | None, now: datetime) -> Predicate | None:
    if not bucket:
        return None
    today_start, tomorrow_start, week_end = day_bounds(now)
    buckets: dict[str, Predicate] = {
        "today": lambda t: _due_within(t, today_start, tomorrow_start),
        "week": lambda t: _due_within(t, today_start, week_end),
        "overdue": lambda t: t.due_at is not None and t.due_at < now and not t.done,
    }
    return buckets.get(bucket)


def _tag_predicate(tag: str | None) -> Predicate | None:
    if not tag:
        return None
    return lambda t: tag in t.tags


def _priority_predicate(priorities: Iterable[str]) -> Predicate | None:
    wanted = {p for p in priorities if p in PRIORITIES}
    if not wanted:
        return None
    return lambda t: t.priority in wanted


def _search_predicate(search: str) -> Predicate | None:
    if not search:
        return None
    q = search.lower()
    return lambda t: (
        q in t.title.lower()
        or q in t.description.lower()
        or any(q in tag.lower() for tag in t.tags)
    )


def _collate_key(title: str) -> tuple[str, str]:
    # accent- and case-insensitive first, lowercase ahead of uppercase on ties
    decomposed = unicodedata.normalize("NFKD", title)
    base = "".join(c for c in decomposed if not unicodedata.combining(c))
    return base.casefold(), title.swapcase()


def _due_key(task: Task) -> tuple[bool, datetime]:
    return task.due_at is None, task.due_at or datetime.min


def sort_tasks(tasks: Iterable[Task], sort: str) -> list[Task]:
    """Stable sort; tasks with equal keys keep their input order."""
    if sort == "dueDate":
        return sorted(tasks, key=_due_key)
    if sort == "priority":
        return sorted(tasks, key=lambda t: PRIORITY_RANK.get(t.priority, 1))
    if sort == "created":
        return sorted(tasks, key=lambda t: t.created_at, reverse=True)
    if sort == "alpha":
        return sorted(tasks, key=lambda t: _collate_key(t.title))
    return sorted(tasks, key=lambda t: t.order)


def query(tasks: Iterable[Task], spec: QuerySpec, now: datetime | None = None) -> list[Task]:
    now = now or clock.now()
    stages = [
        _view_predicate(spec.view, now),
        _tag_predicate(spec.tag),
        _priority_predicate(spec.priorities),
        _due_predicate(spec.due, now),
        _search_predicate(spec.search),
    ]
    result = list(tasks)
    for keep in stages:
        if keep is not None:
            result = [t for t in result if keep(t)]
    return sort_tasks(result, spec.sort)


def view_counts(tasks: Iterable[Task], now: datetime | None = None) -> dict[str, int]:
    """Badge counts for the active (non-completed) views."""
    now = now or clock.now()
    pool = list(tasks)
    counts = {}
    for view in ("today", "upcoming", "all", "starred"):
        keep = _view_predicate(view, now)
        counts[view] = sum(1 for t in pool if keep and keep(t))
    return counts
