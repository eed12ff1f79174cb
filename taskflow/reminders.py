from collections.abc import Iterable
from datetime import datetime, timedelta

from fncli import cli

from . import config
from .core.models import Task
from .lib import ansi, clock
from .lib.errors import echo
from .lib.format import format_due, format_task

__all__ = ["due_reminders", "reminder_instant"]


def reminder_instant(task: Task, lead_minutes: int) -> datetime | None:
    """Explicit reminder time if set, else `lead_minutes` before the due date."""
    if task.reminder_at is not None:
        return task.reminder_at
    if task.due_at is None:
        return None
    return task.due_at - timedelta(minutes=lead_minutes)


def due_reminders(
    tasks: Iterable[Task], lead_minutes: int, now: datetime | None = None
) -> list[Task]:
    """Open tasks whose reminder has fired but whose due date has not passed."""
    now = now or clock.now()
    fired = []
    for task in tasks:
        if task.done or task.due_at is None:
            continue
        instant = reminder_instant(task, lead_minutes)
        if instant is not None and instant <= now < task.due_at:
            fired.append(task)
    return sorted(fired, key=lambda t: t.due_at or now)


@cli("taskflow")
def remind() -> None:
    """List tasks whose reminder is due"""
    from .state import load_tasks

    settings = config.get_settings()
    now = clock.now()
    fired = due_reminders(load_tasks(), settings.reminder_minutes, now)
    if not fired:
        echo(ansi.muted("no reminders due"))
        return
    for task in fired:
        echo(f"{format_task(task, now=now)}  {ansi.coral('due ' + format_due(task.due_at, now))}")
