import sqlite3
from collections import Counter, defaultdict

from fncli import cli

from . import db
from .core.models import Task
from .lib import ansi
from .lib.converters import dedupe_tags
from .lib.errors import echo
from .lib.log import log

__all__ = [
    "get_tasks_by_tag",
    "list_all_tags",
    "load_tags_for_tasks",
    "set_tags",
    "tag_counts",
]


def set_tags(task_id: str, tags: list[str], conn: sqlite3.Connection) -> list[str]:
    """Replace a task's tags, keeping first-seen order and dropping repeats."""
    cleaned = dedupe_tags(tags)
    conn.execute("DELETE FROM tags WHERE task_id = ?", (task_id,))
    conn.executemany(
        "INSERT INTO tags (task_id, tag, position) VALUES (?, ?, ?)",
        [(task_id, tag, i) for i, tag in enumerate(cleaned)],
    )
    return cleaned


def load_tags_for_tasks(
    task_ids: list[str], conn: sqlite3.Connection | None = None
) -> dict[str, list[str]]:
    """Batch load all tags for multiple tasks.

    Returns dict mapping task_id -> list of tag strings in insertion order.
    """
    if not task_ids:
        return {}

    placeholders = ",".join("?" * len(task_ids))
    query = f"SELECT task_id, tag FROM tags WHERE task_id IN ({placeholders}) ORDER BY task_id, position"  # noqa: S608

    def _run(c: sqlite3.Connection) -> dict[str, list[str]]:
        cursor = c.execute(query, task_ids)
        tags_map: defaultdict[str, list[str]] = defaultdict(list)
        for task_id, tag in cursor.fetchall():
            tags_map[task_id].append(tag)
        return dict(tags_map)

    if conn is not None:
        return _run(conn)
    with db.get_db() as c:
        return _run(c)


def get_tasks_by_tag(tag: str) -> list[Task]:
    from .tasks import get_all_tasks

    return [t for t in get_all_tasks() if tag in t.tags]


def list_all_tags() -> list[str]:
    with db.get_db() as conn:
        cursor = conn.execute("SELECT DISTINCT tag FROM tags ORDER BY tag ASC")
        return [row[0] for row in cursor.fetchall()]


def tag_counts(include_completed: bool = False) -> Counter[str]:
    where = "" if include_completed else "WHERE t.completed_at IS NULL"
    with db.get_db() as conn:
        rows = conn.execute(
            f"SELECT tg.tag FROM tags tg JOIN tasks t ON t.id = tg.task_id {where}"  # noqa: S608
        ).fetchall()
    return Counter(row[0] for row in rows)


@cli("taskflow", name="tags", flags={"include_done": ["-a", "--all"]})
def tags_cmd(include_done: bool = False) -> None:
    """List tags with open task counts"""
    try:
        counts = tag_counts(include_completed=include_done)
        names = list_all_tags()
    except sqlite3.DatabaseError as e:
        log(f"[tags] task store unreadable: {e}")
        counts, names = Counter(), []
    if not names:
        echo("no tags")
        return
    for name in names:
        echo(f"  {ansi.tag(name)}  {ansi.muted(str(counts.get(name, 0)))}")
