import sqlite3
from collections import defaultdict

from fncli import cli

from . import db
from .core.errors import NotFoundError, ValidationError
from .core.models import Subtask
from .lib import clock
from .lib.converters import new_id
from .lib.errors import echo, exit_error
from .lib.format import format_status

__all__ = [
    "add_subtask",
    "load_subtasks_for_tasks",
    "remove_subtask",
    "set_subtasks",
    "toggle_subtask",
]


def set_subtasks(task_id: str, subtasks: list[Subtask], conn: sqlite3.Connection) -> None:
    kept: dict[str, Subtask] = {}
    for s in subtasks:
        if s.title.strip() and s.id not in kept:
            kept[s.id] = s
    conn.execute("DELETE FROM subtasks WHERE task_id = ?", (task_id,))
    conn.executemany(
        "INSERT INTO subtasks (id, task_id, title, done, position) VALUES (?, ?, ?, ?, ?)",
        [(s.id, task_id, s.title, int(s.done), i) for i, s in enumerate(kept.values())],
    )


def load_subtasks_for_tasks(
    task_ids: list[str], conn: sqlite3.Connection
) -> dict[str, list[Subtask]]:
    if not task_ids:
        return {}
    placeholders = ",".join("?" * len(task_ids))
    cursor = conn.execute(
        f"SELECT task_id, id, title, done FROM subtasks WHERE task_id IN ({placeholders}) ORDER BY task_id, position",  # noqa: S608
        task_ids,
    )
    subtask_map: defaultdict[str, list[Subtask]] = defaultdict(list)
    for task_id, sid, title, done in cursor.fetchall():
        subtask_map[task_id].append(Subtask(id=sid, title=title, done=bool(done)))
    return dict(subtask_map)


def _load(conn: sqlite3.Connection, task_id: str) -> list[Subtask]:
    if not conn.execute("SELECT 1 FROM tasks WHERE id = ?", (task_id,)).fetchone():
        raise NotFoundError(f"no task with id '{task_id}'")
    return load_subtasks_for_tasks([task_id], conn).get(task_id, [])


def _touch(conn: sqlite3.Connection, task_id: str) -> None:
    conn.execute(
        "UPDATE tasks SET updated_at = ? WHERE id = ?", (clock.now().isoformat(), task_id)
    )


def _pick(subtasks: list[Subtask], index: int) -> Subtask:
    if index < 1 or index > len(subtasks):
        raise ValidationError(f"no subtask #{index} (task has {len(subtasks)})")
    return subtasks[index - 1]


def add_subtask(task_id: str, title: str) -> Subtask:
    if not title.strip():
        raise ValidationError("Subtask title cannot be empty")
    subtask = Subtask(id=new_id(), title=title.strip())
    with db.get_db() as conn:
        existing = _load(conn, task_id)
        set_subtasks(task_id, [*existing, subtask], conn)
        _touch(conn, task_id)
    return subtask


def toggle_subtask(task_id: str, index: int) -> Subtask:
    """Flip the done flag of the 1-based index-th subtask."""
    with db.get_db() as conn:
        existing = _load(conn, task_id)
        target = _pick(existing, index)
        flipped = Subtask(id=target.id, title=target.title, done=not target.done)
        set_subtasks(task_id, [flipped if s.id == target.id else s for s in existing], conn)
        _touch(conn, task_id)
    return flipped


def remove_subtask(task_id: str, index: int) -> Subtask:
    with db.get_db() as conn:
        existing = _load(conn, task_id)
        target = _pick(existing, index)
        set_subtasks(task_id, [s for s in existing if s.id != target.id], conn)
        _touch(conn, task_id)
    return target


# ── cli ──────────────────────────────────────────────────────────────────────


@cli("taskflow sub", name="add")
def sub_add(ref: str, title: list[str]) -> None:
    """Add a subtask"""
    from .lib.resolve import resolve_task

    t = resolve_task(ref)
    text = " ".join(title)
    if not text.strip():
        exit_error("Usage: taskflow sub add <task> <title>")
    add_subtask(t.id, text)
    echo(format_status("  └ □", text.strip(), t.id))


@cli("taskflow sub", name="done")
def sub_done(ref: str, index: int) -> None:
    """Toggle a subtask by its number"""
    from .lib.resolve import resolve_task

    t = resolve_task(ref)
    s = toggle_subtask(t.id, index)
    echo(format_status("  └ ✓" if s.done else "  └ □", s.title, t.id))


@cli("taskflow sub", name="rm")
def sub_rm(ref: str, index: int) -> None:
    """Remove a subtask by its number"""
    from .lib.resolve import resolve_task

    t = resolve_task(ref)
    s = remove_subtask(t.id, index)
    echo(format_status("  └ ✗", s.title, t.id))
