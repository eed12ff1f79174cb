from datetime import datetime, timedelta

from taskflow.core.models import Task

from . import ansi, clock

__all__ = [
    "format_due",
    "format_elapsed",
    "format_status",
    "format_task",
    "render_task_detail",
]

_PRIORITY_MARK = {"high": "!!", "low": "↓"}


def format_elapsed(dt: datetime, now: datetime | None = None) -> str:
    """Format a datetime as a human-readable relative string (e.g. '5m ago', '3h ago')."""
    if now is None:
        now = clock.now()
    s = int((now - dt).total_seconds())
    if s < 60:
        return f"{s}s ago"
    m = s // 60
    if m < 60:
        return f"{m}m ago"
    h = m // 60
    if h < 24:
        return f"{h}h ago"
    d = h // 24
    if d < 7:
        return f"{d}d ago"
    return dt.strftime("%Y-%m-%d")


def format_due(due: datetime | None, now: datetime | None = None) -> str:
    """Short relative label: 'today 14:30', 'tomorrow 09:00', 'Mar 04 09:00'."""
    if due is None:
        return ""
    now = now or clock.now()
    today_start = now.replace(hour=0, minute=0, second=0, microsecond=0)
    tomorrow = today_start + timedelta(days=1)
    clock_part = due.strftime("%H:%M") if (due.hour, due.minute) != (0, 0) else ""
    if today_start <= due < tomorrow:
        return f"today {clock_part}".strip()
    if tomorrow <= due < tomorrow + timedelta(days=1):
        return f"tomorrow {clock_part}".strip()
    return f"{due.strftime('%b %d')} {clock_part}".strip()


def format_task(task: Task, show_id: bool = True, now: datetime | None = None) -> str:
    """Format a task for display. Returns: [✓|□] [★] [due·] title [!!] [#tags] [n/m] [id]"""
    now = now or clock.now()
    parts = [ansi.muted("✓") if task.done else "□"]

    if task.starred:
        parts.append(ansi.gold("★"))

    if task.due_at:
        label = f"{format_due(task.due_at, now)}·"
        overdue = task.due_at < now and not task.done
        parts.append(ansi.red(label) if overdue else ansi.muted(label))

    parts.append(ansi.muted(task.title) if task.done else task.title)

    mark = _PRIORITY_MARK.get(task.priority)
    if mark:
        parts.append(ansi.coral(mark) if task.priority == "high" else ansi.muted(mark))

    parts.extend(ansi.tag(t) for t in task.tags)

    done, total = task.subtask_progress
    if total:
        parts.append(ansi.muted(f"{done}/{total}"))

    if show_id:
        parts.append(ansi.muted(f"[{task.id[:8]}]"))

    return " ".join(parts)


def format_status(symbol: str, content: str, item_id: str | None = None) -> str:
    """Format status message for action confirmations."""
    if item_id:
        return f"{symbol} {content} {ansi.muted(f'[{item_id[:8]}]')}"
    return f"{symbol} {content}"


def render_task_detail(task: Task, now: datetime | None = None) -> str:
    now = now or clock.now()
    lines = [format_task(task, show_id=False, now=now)]
    lines.append(ansi.muted(f"  id        {task.id}"))
    lines.append(ansi.muted(f"  priority  {task.priority}"))
    if task.due_at:
        lines.append(ansi.muted(f"  due       {task.due_at.strftime('%Y-%m-%d %H:%M')}"))
    if task.reminder_at:
        lines.append(ansi.muted(f"  remind    {task.reminder_at.strftime('%Y-%m-%d %H:%M')}"))
    if task.completed_at:
        lines.append(ansi.muted(f"  done      {format_elapsed(task.completed_at, now)}"))
    lines.append(ansi.muted(f"  created   {format_elapsed(task.created_at, now)}"))
    lines.append(ansi.muted(f"  updated   {format_elapsed(task.updated_at, now)}"))
    if task.description:
        lines.append("")
        lines.extend(f"  {line}" for line in task.description.splitlines())
    if task.subtasks:
        done, total = task.subtask_progress
        lines.append("")
        lines.append(ansi.muted(f"  subtasks {done}/{total} ({round(done / total * 100)}%)"))
        for i, s in enumerate(task.subtasks, start=1):
            box = "✓" if s.done else "□"
            lines.append(f"  {i}. {box} {ansi.muted(s.title) if s.done else s.title}")
    return "\n".join(lines)
