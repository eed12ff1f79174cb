from datetime import datetime, timedelta

from taskflow.core.models import Task
from taskflow.reminders import due_reminders, reminder_instant

NOW = datetime(2025, 3, 12, 10, 30)


def _task(tid: str, **kw) -> Task:
    return Task(id=tid, title=tid, created_at=NOW, updated_at=NOW, **kw)


def test_lead_time_before_due():
    soon = _task("soon", due_at=NOW + timedelta(minutes=10))
    later = _task("later", due_at=NOW + timedelta(hours=2))
    assert due_reminders([soon, later], 15, NOW) == [soon]


def test_explicit_reminder_wins():
    t = _task("t", due_at=NOW + timedelta(hours=5), reminder_at=NOW - timedelta(minutes=1))
    assert reminder_instant(t, 15) == t.reminder_at
    assert due_reminders([t], 15, NOW) == [t]


def test_past_due_and_done_are_skipped():
    overdue = _task("overdue", due_at=NOW - timedelta(minutes=1))
    finished = _task("finished", due_at=NOW + timedelta(minutes=5), completed_at=NOW)
    undated = _task("undated")
    assert due_reminders([overdue, finished, undated], 15, NOW) == []


def test_sorted_by_due():
    b = _task("b", due_at=NOW + timedelta(minutes=12))
    a = _task("a", due_at=NOW + timedelta(minutes=3))
    assert due_reminders([b, a], 15, NOW) == [a, b]
