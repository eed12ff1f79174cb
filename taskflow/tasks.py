import sqlite3
from collections.abc import Iterable
from datetime import datetime

from fncli import UsageError, cli

from . import db
from .core.errors import NotFoundError, ValidationError
from .core.models import Subtask, Task
from .core.types import PRIORITIES, UNSET, Unset
from .lib import ansi, clock
from .lib.converters import hydrate, new_id, row_to_task, task_to_row
from .lib.dates import parse_due
from .lib.errors import echo, exit_error
from .lib.format import format_status, render_task_detail
from .lib.fuzzy import find_in_pool, find_in_pool_exact
from .lib.parsing import validate_title
from .subtasks import load_subtasks_for_tasks, set_subtasks
from .tags import load_tags_for_tasks, set_tags

__all__ = [
    "add_task",
    "clear_all",
    "complete_tasks",
    "delete_task",
    "delete_tasks",
    "find_task",
    "find_task_exact",
    "get_all_tasks",
    "get_task",
    "insert_tasks",
    "next_order",
    "reorder_tasks",
    "toggle_complete",
    "toggle_star",
    "update_task",
]


# ── domain ───────────────────────────────────────────────────────────────────

_TASK_COLS = "id, title, description, priority, due_at, completed_at, starred, sort_order, reminder_at, created_at, updated_at"


def _fetch_tasks(
    conn: sqlite3.Connection, where: str = "1 = 1", params: tuple[object, ...] = ()
) -> list[Task]:
    cursor = conn.execute(
        f"SELECT {_TASK_COLS} FROM tasks WHERE {where} ORDER BY created_at DESC, rowid DESC",  # noqa: S608
        params,
    )
    tasks = [row_to_task(row) for row in cursor.fetchall()]
    task_ids = [t.id for t in tasks]
    tags_map = load_tags_for_tasks(task_ids, conn=conn)
    subtask_map = load_subtasks_for_tasks(task_ids, conn)
    return [hydrate(t, tags_map.get(t.id, []), subtask_map.get(t.id, [])) for t in tasks]


def _require(conn: sqlite3.Connection, task_id: str) -> Task:
    found = _fetch_tasks(conn, "id = ?", (task_id,))
    if not found:
        raise NotFoundError(f"no task with id '{task_id}'")
    return found[0]


def _next_order(conn: sqlite3.Connection) -> float:
    row = conn.execute("SELECT MAX(sort_order) FROM tasks").fetchone()
    return row[0] + 1 if row and row[0] is not None else 0


def next_order() -> float:
    """Order value that places a new task after every existing one."""
    with db.get_db() as conn:
        return _next_order(conn)


def _check_title(title: str) -> str:
    try:
        validate_title(title)
    except ValueError as e:
        raise ValidationError(str(e)) from e
    return title.strip()


def _check_priority(priority: str) -> str:
    if priority not in PRIORITIES:
        raise ValidationError(f"priority must be one of: {', '.join(PRIORITIES)}")
    return priority


def _insert(conn: sqlite3.Connection, task: Task) -> None:
    conn.execute(
        f"INSERT INTO tasks ({_TASK_COLS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",  # noqa: S608
        task_to_row(task),
    )
    set_tags(task.id, task.tags, conn)
    set_subtasks(task.id, task.subtasks, conn)


def add_task(
    title: str,
    description: str = "",
    due_at: datetime | None = None,
    priority: str = "medium",
    tags: list[str] | None = None,
    starred: bool = False,
    subtasks: list[Subtask] | None = None,
    reminder_at: datetime | None = None,
) -> str:
    now = clock.now()
    with db.get_db() as conn:
        task = Task(
            id=new_id(),
            title=_check_title(title),
            description=description.strip(),
            created_at=now,
            updated_at=now,
            due_at=due_at,
            priority=_check_priority(priority),  # type: ignore[arg-type]
            order=_next_order(conn),
            starred=starred,
            reminder_at=reminder_at,
            tags=list(tags or []),
            subtasks=list(subtasks or []),
        )
        try:
            _insert(conn, task)
        except sqlite3.IntegrityError as e:
            raise ValidationError(f"Failed to add task: {e}") from e
    return task.id


def insert_tasks(tasks: Iterable[Task]) -> int:
    """Insert fully-formed tasks in one transaction; all or nothing."""
    count = 0
    with db.get_db() as conn:
        for task in tasks:
            _insert(conn, task)
            count += 1
    return count


def get_task(task_id: str) -> Task | None:
    with db.get_db() as conn:
        found = _fetch_tasks(conn, "id = ?", (task_id,))
    return found[0] if found else None


def get_all_tasks() -> list[Task]:
    with db.get_db() as conn:
        return _fetch_tasks(conn)


def update_task(
    task_id: str,
    title: str | None = None,
    description: str | None = None,
    priority: str | None = None,
    starred: bool | None = None,
    order: float | None = None,
    due_at: datetime | None | Unset = UNSET,
    completed_at: datetime | None | Unset = UNSET,
    reminder_at: datetime | None | Unset = UNSET,
    tags: list[str] | None = None,
    subtasks: list[Subtask] | None = None,
) -> Task:
    updates: dict[str, object] = {}
    if title is not None:
        updates["title"] = _check_title(title)
    if description is not None:
        updates["description"] = description.strip()
    if priority is not None:
        updates["priority"] = _check_priority(priority)
    if starred is not None:
        updates["starred"] = int(starred)
    if order is not None:
        updates["sort_order"] = order
    if due_at is not UNSET:
        updates["due_at"] = due_at.isoformat() if due_at else None
    if completed_at is not UNSET:
        updates["completed_at"] = completed_at.isoformat() if completed_at else None
    if reminder_at is not UNSET:
        updates["reminder_at"] = reminder_at.isoformat() if reminder_at else None
    updates["updated_at"] = clock.now().isoformat()

    set_clauses = [f"{k} = ?" for k in updates]
    with db.get_db() as conn:
        _require(conn, task_id)
        conn.execute(
            f"UPDATE tasks SET {', '.join(set_clauses)} WHERE id = ?",  # noqa: S608
            (*updates.values(), task_id),
        )
        if tags is not None:
            set_tags(task_id, tags, conn)
        if subtasks is not None:
            set_subtasks(task_id, subtasks, conn)
        return _require(conn, task_id)


def toggle_complete(task_id: str) -> Task:
    task = get_task(task_id)
    if not task:
        raise NotFoundError(f"no task with id '{task_id}'")
    return update_task(task_id, completed_at=None if task.done else clock.now())


def complete_tasks(task_ids: Iterable[str]) -> int:
    """Mark every listed open task done. Already-completed tasks are left alone."""
    ids = list(dict.fromkeys(task_ids))
    if not ids:
        return 0
    stamp = clock.now().isoformat()
    placeholders = ",".join("?" * len(ids))
    with db.get_db() as conn:
        cursor = conn.execute(
            f"UPDATE tasks SET completed_at = ?, updated_at = ? WHERE completed_at IS NULL AND id IN ({placeholders})",  # noqa: S608
            (stamp, stamp, *ids),
        )
        return cursor.rowcount


def toggle_star(task_id: str) -> Task:
    task = get_task(task_id)
    if not task:
        raise NotFoundError(f"no task with id '{task_id}'")
    return update_task(task_id, starred=not task.starred)


def reorder_tasks(src_id: str, dest_id: str) -> tuple[Task, Task]:
    """Drop src onto dest by swapping their order values.

    Only the two orders are exchanged; the rest of the collection is not
    renumbered, so orders can repeat or skip after many moves.
    """
    stamp = clock.now().isoformat()
    with db.get_db() as conn:
        src = _require(conn, src_id)
        dest = _require(conn, dest_id)
        if src.id == dest.id:
            return src, dest
        conn.execute(
            "UPDATE tasks SET sort_order = ?, updated_at = ? WHERE id = ?",
            (dest.order, stamp, src.id),
        )
        conn.execute(
            "UPDATE tasks SET sort_order = ?, updated_at = ? WHERE id = ?",
            (src.order, stamp, dest.id),
        )
        return _require(conn, src_id), _require(conn, dest_id)


def delete_task(task_id: str) -> bool:
    with db.get_db() as conn:
        cursor = conn.execute("DELETE FROM tasks WHERE id = ?", (task_id,))
        return cursor.rowcount > 0


def delete_tasks(task_ids: Iterable[str]) -> int:
    ids = list(dict.fromkeys(task_ids))
    if not ids:
        return 0
    placeholders = ",".join("?" * len(ids))
    with db.get_db() as conn:
        cursor = conn.execute(f"DELETE FROM tasks WHERE id IN ({placeholders})", ids)  # noqa: S608
        return cursor.rowcount


def clear_all() -> int:
    with db.get_db() as conn:
        cursor = conn.execute("DELETE FROM tasks")
        return cursor.rowcount


def find_task(ref: str) -> Task | None:
    return find_in_pool(ref, get_all_tasks())


def find_task_exact(ref: str) -> Task | None:
    return find_in_pool_exact(ref, get_all_tasks())


# ── cli ──────────────────────────────────────────────────────────────────────


@cli("taskflow")
def show(ref: list[str]) -> None:
    """Show full task detail"""
    from .lib.resolve import resolve_task

    item_ref = " ".join(ref) if ref else ""
    if not item_ref:
        exit_error("Usage: taskflow show <task>")
    echo(render_task_detail(resolve_task(item_ref)))


@cli("taskflow", flags={"tags": ["-t", "--tags"], "priority": ["-p", "--priority"]})
def edit(
    ref: list[str],
    title: str | None = None,
    desc: str | None = None,
    due: str | None = None,
    priority: str | None = None,
    tags: str | None = None,
    remind: str | None = None,
    clear_due: bool = False,
    clear_remind: bool = False,
) -> None:
    """Edit title, description, due date, reminder, priority or tags"""
    from .lib.resolve import resolve_task

    item_ref = " ".join(ref) if ref else ""
    if not item_ref:
        exit_error("Usage: taskflow edit <task> [--title] [--desc] [--due] [--remind] [-p] [-t]")
    t = resolve_task(item_ref)
    due_at: datetime | None | Unset = UNSET
    if clear_due:
        due_at = None
    elif due is not None:
        due_at = parse_due(due)
        if due_at is None:
            exit_error(f"Could not understand due date '{due}'")
    reminder_at: datetime | None | Unset = UNSET
    if clear_remind:
        reminder_at = None
    elif remind is not None:
        reminder_at = parse_due(remind)
        if reminder_at is None:
            exit_error(f"Could not understand reminder time '{remind}'")
    tag_list = [p for p in tags.replace(",", " ").split() if p] if tags is not None else None
    nothing_set = all(v is None for v in (title, desc, priority, tag_list))
    if nothing_set and due_at is UNSET and reminder_at is UNSET:
        raise UsageError(
            "Nothing to edit. Use --title, --desc, --due, --remind, --clear-due, --clear-remind, -p or -t."
        )
    updated = update_task(
        t.id,
        title=title,
        description=desc,
        priority=priority,
        due_at=due_at,
        reminder_at=reminder_at,
        tags=tag_list,
    )
    echo(format_status("✎", updated.title, updated.id))


@cli("taskflow")
def toggle(ref: list[str]) -> None:
    """Toggle task completion"""
    from .lib.resolve import resolve_task

    t = resolve_task(" ".join(ref))
    updated = toggle_complete(t.id)
    symbol = ansi.green("✓") if updated.done else "□"
    echo(format_status(symbol, updated.title, updated.id))


@cli("taskflow")
def done(ref: list[str]) -> None:
    """Complete one or more tasks"""
    from .lib.resolve import resolve_task

    if not ref:
        exit_error("Usage: taskflow done <task> [task...]")
    picked = [resolve_task(r) for r in ref]
    complete_tasks(t.id for t in picked)
    for t in picked:
        echo(format_status(ansi.green("✓"), t.title, t.id))


@cli("taskflow")
def star(ref: list[str]) -> None:
    """Star or unstar a task"""
    from .lib.resolve import resolve_task

    t = resolve_task(" ".join(ref))
    updated = toggle_star(t.id)
    echo(format_status(ansi.gold("★") if updated.starred else "☆", updated.title, updated.id))


@cli("taskflow")
def rm(ref: list[str]) -> None:
    """Delete one or more tasks"""
    from .lib.resolve import resolve_task_exact

    if not ref:
        exit_error("Usage: taskflow rm <task> [task...]")
    picked = [resolve_task_exact(r) for r in ref]
    delete_tasks(t.id for t in picked)
    for t in picked:
        echo(format_status("✗", t.title, t.id))


@cli("taskflow")
def move(ref: str, onto: str) -> None:
    """Swap a task's custom position with another task"""
    from .lib.resolve import resolve_task

    src = resolve_task(ref)
    dest = resolve_task(onto)
    if src.id == dest.id:
        exit_error("A task cannot be moved onto itself")
    reorder_tasks(src.id, dest.id)
    echo(f"↕ {src.title}  ⇄  {dest.title}")


@cli("taskflow")
def clear(yes: bool = False) -> None:
    """Delete every task"""
    if not yes:
        exit_error("This deletes all tasks. Re-run with --yes to confirm.")
    removed = clear_all()
    from .lib.log import log

    log(f"[clear] removed {removed} tasks")
    echo(f"cleared {removed} tasks")
