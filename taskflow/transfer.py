"""JSON and CSV export, JSON import.

Import merges by id: records whose id already exists locally are skipped and
the rest are written in a single transaction, so a bad file changes nothing.
"""

import csv
import io
import json
import sqlite3
from collections.abc import Iterable
from datetime import datetime
from pathlib import Path
from typing import Any

from fncli import cli

from . import config
from .config import Settings
from .core.errors import ImportFormatError
from .core.models import Task
from .lib import clock
from .lib.converters import task_from_dict, task_to_dict
from .lib.errors import echo, exit_error
from .lib.log import log

__all__ = [
    "CSV_COLUMNS",
    "EXPORT_VERSION",
    "export_csv",
    "export_json",
    "import_file",
    "merge_import",
    "parse_import",
]

EXPORT_VERSION = 1
CSV_COLUMNS = (
    "id",
    "title",
    "description",
    "priority",
    "dueAt",
    "completedAt",
    "tags",
    "starred",
    "createdAt",
)


def export_json(tasks: Iterable[Task], settings: Settings, now: datetime | None = None) -> str:
    now = now or clock.now()
    document = {
        "version": EXPORT_VERSION,
        "exportedAt": now.isoformat(),
        "tasks": [task_to_dict(t) for t in tasks],
        "settings": config.settings_to_dict(settings, camel=True),
    }
    return json.dumps(document, indent=2, ensure_ascii=False)


def _csv_value(record: dict[str, Any], column: str) -> str:
    if column == "tags":
        return ";".join(record["tags"])
    value = record.get(column)
    if not value:
        return ""
    if value is True:
        return "true"
    return str(value)


def export_csv(tasks: Iterable[Task]) -> str:
    """Header row unquoted, every data field quoted, rows joined by newlines."""
    buf = io.StringIO()
    writer = csv.writer(buf, quoting=csv.QUOTE_ALL, lineterminator="\n")
    for task in tasks:
        record = task_to_dict(task)
        writer.writerow([_csv_value(record, c) for c in CSV_COLUMNS])
    body = buf.getvalue().rstrip("\n")
    header = ",".join(CSV_COLUMNS)
    return f"{header}\n{body}" if body else header


def parse_import(payload: str) -> list[dict[str, Any]]:
    """Accept an export document or a bare array of task records."""
    try:
        data = json.loads(payload)
    except (json.JSONDecodeError, TypeError) as e:
        raise ImportFormatError(f"Invalid file format: {e}") from e
    if isinstance(data, list):
        records = data
    elif isinstance(data, dict):
        records = data.get("tasks") or []
    else:
        raise ImportFormatError("Invalid file format: expected an object or a list of tasks")
    if not isinstance(records, list):
        raise ImportFormatError("Invalid file format: 'tasks' must be a list")
    for i, record in enumerate(records, start=1):
        if not isinstance(record, dict):
            raise ImportFormatError(f"Invalid file format: task #{i} is not an object")
    return records


def merge_import(
    records: list[dict[str, Any]],
    existing_ids: Iterable[str],
    now: datetime | None = None,
    start_order: float = 0,
) -> list[Task]:
    """Turn records into new tasks, skipping ids that are already known.

    Records without an order are placed after `start_order`, in file order.
    """
    now = now or clock.now()
    seen = set(existing_ids)
    fresh: list[Task] = []
    for i, record in enumerate(records, start=1):
        try:
            task = task_from_dict(record, now, order=start_order + len(fresh))
        except ValueError as e:
            raise ImportFormatError(f"Invalid file format: task #{i}: {e}") from e
        if task.id in seen:
            continue
        seen.add(task.id)
        fresh.append(task)
    return fresh


def import_file(path: Path) -> tuple[int, int]:
    """Import tasks from a JSON export. Returns (imported, skipped)."""
    from .tasks import get_all_tasks, insert_tasks, next_order

    if path.suffix.lower() != ".json":
        raise ImportFormatError("Only JSON import is supported currently")
    try:
        payload = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ImportFormatError(f"Could not read {path}: {e}") from e
    records = parse_import(payload)
    fresh = merge_import(
        records, (t.id for t in get_all_tasks()), start_order=next_order()
    )
    try:
        imported = insert_tasks(fresh)
    except sqlite3.IntegrityError as e:
        raise ImportFormatError(f"Invalid file format: {e}") from e
    log(f"[import] {path.name}: {imported} imported, {len(records) - imported} skipped")
    return imported, len(records) - imported


# ── cli ──────────────────────────────────────────────────────────────────────


@cli("taskflow", name="export", flags={"fmt": ["-f", "--fmt"], "out": ["-o", "--out"]})
def export_cmd(fmt: str = "json", out: str | None = None) -> None:
    """Export tasks as JSON or CSV"""
    from .state import load_tasks

    tasks = load_tasks()
    if fmt == "json":
        content = export_json(tasks, config.get_settings())
    elif fmt == "csv":
        content = export_csv(tasks)
    else:
        exit_error(f"Unknown format '{fmt}' (json or csv)")
    if out is None:
        echo(content)
        return
    target = Path(out).expanduser()
    target.write_text(content + "\n", encoding="utf-8")
    log(f"[export] {len(tasks)} tasks as {fmt} to {target}")
    echo(f"exported {len(tasks)} tasks to {target}")


@cli("taskflow", name="import")
def import_cmd(path: str) -> None:
    """Merge tasks from a JSON export"""
    try:
        imported, skipped = import_file(Path(path).expanduser())
    except ImportFormatError as e:
        exit_error(str(e))
    note = f", skipped {skipped} already present" if skipped else ""
    echo(f"imported {imported} tasks{note}")
