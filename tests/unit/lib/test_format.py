from datetime import datetime, timedelta

from taskflow.core.models import Subtask, Task
from taskflow.lib import ansi
from taskflow.lib.format import format_due, format_elapsed, format_task, render_task_detail

NOW = datetime(2025, 3, 12, 10, 30)


def _task(**kw) -> Task:
    return Task(id="abcdef1234", title="write", created_at=NOW, updated_at=NOW, **kw)


def test_format_elapsed():
    assert format_elapsed(NOW - timedelta(seconds=5), NOW) == "5s ago"
    assert format_elapsed(NOW - timedelta(minutes=3), NOW) == "3m ago"
    assert format_elapsed(NOW - timedelta(hours=2), NOW) == "2h ago"
    assert format_elapsed(NOW - timedelta(days=30), NOW) == "2025-02-10"


def test_format_due():
    assert format_due(NOW.replace(hour=14), NOW) == "today 14:00"
    assert format_due(NOW + timedelta(days=1), NOW) == "tomorrow 10:30"
    assert format_due(datetime(2025, 3, 13), NOW) == "tomorrow"
    assert format_due(datetime(2025, 4, 2, 9, 0), NOW) == "Apr 02 09:00"
    assert format_due(None, NOW) == ""


def test_format_due_keeps_minutes_past_midnight():
    assert format_due(datetime(2025, 3, 12, 0, 30), NOW) == "today 00:30"
    assert format_due(datetime(2025, 4, 2, 0, 5), NOW) == "Apr 02 00:05"


def test_format_task_line():
    line = ansi.strip(format_task(_task(priority="high", tags=["work"], starred=True), now=NOW))
    assert line == "□ ★ write !! #work [abcdef12]"


def test_format_task_subtask_progress():
    task = _task(subtasks=[Subtask("a", "x", True), Subtask("b", "y")])
    assert "1/2" in ansi.strip(format_task(task, show_id=False, now=NOW))


def test_render_detail_lists_subtasks():
    task = _task(description="first line", subtasks=[Subtask("a", "outline", True)])
    detail = ansi.strip(render_task_detail(task, NOW))
    assert "first line" in detail
    assert "subtasks 1/1 (100%)" in detail
    assert "1. ✓ outline" in detail
