import dataclasses
import uuid
from collections.abc import Mapping
from datetime import date, datetime
from typing import Any, cast

from taskflow.core.models import Subtask, Task
from taskflow.core.types import PRIORITIES

TaskRow = tuple[object, ...]


def new_id() -> str:
    return str(uuid.uuid4())


def _parse_datetime(val, fallback: datetime) -> datetime:
    """Parse a datetime value that may be str or numeric timestamp."""
    parsed = _parse_datetime_optional(val)
    return parsed if parsed is not None else fallback


def _parse_datetime_optional(val) -> datetime | None:
    """Parse an optional datetime value that may be str or numeric timestamp."""
    if isinstance(val, bool):
        return None
    if isinstance(val, str) and val:
        try:
            parsed = datetime.fromisoformat(val.replace("Z", "+00:00"))
        except ValueError:
            try:
                return datetime.combine(date.fromisoformat(val), datetime.min.time())
            except ValueError:
                return None
        if parsed.tzinfo is not None:
            parsed = parsed.astimezone().replace(tzinfo=None)
        return parsed
    if isinstance(val, (int, float)):
        try:
            # the original stored epoch milliseconds
            return datetime.fromtimestamp(val / 1000 if val > 1e11 else val)
        except (OverflowError, OSError, ValueError):
            return None
    return None


def _priority(val) -> str:
    return val if val in PRIORITIES else "medium"


def _order(val, fallback: float = 0) -> float:
    if isinstance(val, bool) or not isinstance(val, (int, float)):
        return fallback
    return val


def _iso(dt: datetime | None) -> str | None:
    return dt.isoformat() if dt else None


def dedupe_tags(tags: list[str]) -> list[str]:
    """Drop blanks, a leading '#' and repeats while keeping first-seen order."""
    seen: list[str] = []
    for tag in tags:
        tag = str(tag).strip().lstrip("#")
        if tag and tag not in seen:
            seen.append(tag)
    return seen


def row_to_task(row: TaskRow, fallback: datetime | None = None) -> Task:
    """
    Converts a raw database row from tasks table into a Task object.
    Expected row format: (id, title, description, priority, due_at, completed_at, starred, sort_order, reminder_at, created_at, updated_at)
    Malformed values degrade to field defaults instead of raising.
    """
    fallback = fallback or datetime.min
    created = _parse_datetime(row[9], fallback)
    return Task(
        id=cast(str, row[0]),
        title=cast(str, row[1]) or "",
        description=cast(str, row[2]) or "",
        priority=_priority(row[3]),  # type: ignore[arg-type]
        due_at=_parse_datetime_optional(row[4]),
        completed_at=_parse_datetime_optional(row[5]),
        starred=bool(row[6]),
        order=_order(row[7]),
        reminder_at=_parse_datetime_optional(row[8]),
        created_at=created,
        updated_at=_parse_datetime(row[10], created),
    )


def task_to_row(task: Task) -> tuple[object, ...]:
    return (
        task.id,
        task.title,
        task.description,
        task.priority,
        _iso(task.due_at),
        _iso(task.completed_at),
        int(task.starred),
        task.order,
        _iso(task.reminder_at),
        _iso(task.created_at),
        _iso(task.updated_at),
    )


def subtask_to_dict(subtask: Subtask) -> dict[str, Any]:
    return {"id": subtask.id, "title": subtask.title, "done": subtask.done}


def subtask_from_dict(raw: object) -> Subtask | None:
    if not isinstance(raw, Mapping):
        return None
    title = raw.get("title")
    if not isinstance(title, str) or not title.strip():
        return None
    sid = raw.get("id")
    return Subtask(
        id=str(sid) if sid else new_id(), title=title.strip(), done=bool(raw.get("done"))
    )


def task_to_dict(task: Task) -> dict[str, Any]:
    """Serialize a task with the camelCase keys used by export documents."""
    return {
        "id": task.id,
        "title": task.title,
        "description": task.description,
        "createdAt": _iso(task.created_at),
        "updatedAt": _iso(task.updated_at),
        "dueAt": _iso(task.due_at),
        "completedAt": _iso(task.completed_at),
        "priority": task.priority,
        "tags": list(task.tags),
        "subtasks": [subtask_to_dict(s) for s in task.subtasks],
        "order": task.order,
        "starred": task.starred,
        "reminderAt": _iso(task.reminder_at),
    }


def task_from_dict(raw: Mapping[str, Any], now: datetime, order: float = 0) -> Task:
    """Build a task from an export record, filling anything missing with defaults.

    updatedAt is always regenerated and a future completedAt is pulled back to now.
    Raises ValueError when there is no usable title.
    """
    title = raw.get("title")
    if not isinstance(title, str) or not title.strip():
        raise ValueError("task record has no title")
    tags = raw.get("tags")
    subtasks = raw.get("subtasks")
    description = raw.get("description")
    completed = _parse_datetime_optional(raw.get("completedAt"))
    if completed is not None and completed > now:
        completed = now
    parsed_subtasks: list[Subtask] = []
    if isinstance(subtasks, list):
        parsed_subtasks = [s for s in map(subtask_from_dict, subtasks) if s]
    return Task(
        id=str(raw.get("id") or new_id()),
        title=title.strip(),
        description=description if isinstance(description, str) else "",
        created_at=_parse_datetime(raw.get("createdAt"), now),
        updated_at=now,
        due_at=_parse_datetime_optional(raw.get("dueAt")),
        completed_at=completed,
        priority=_priority(raw.get("priority")),  # type: ignore[arg-type]
        order=_order(raw.get("order"), order),
        starred=bool(raw.get("starred")),
        reminder_at=_parse_datetime_optional(raw.get("reminderAt")),
        tags=dedupe_tags(tags) if isinstance(tags, list) else [],
        subtasks=parsed_subtasks,
    )


def hydrate(task: Task, tags: list[str], subtasks: list[Subtask]) -> Task:
    """
    Attaches tags and subtasks to a Task.
    Returns a new frozen dataclass instance with both populated.
    """
    return dataclasses.replace(task, tags=tags, subtasks=subtasks)
