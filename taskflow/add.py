from fncli import cli

from .lib import ansi
from .lib.dates import parse_due
from .lib.errors import echo, exit_error
from .lib.format import format_due, format_status
from .lib.parsing import parse_fragment


@cli("taskflow", flags={"desc": ["-d", "--desc"], "star": ["-s", "--star"]})
def add(
    text: list[str],
    desc: str | None = None,
    due: str | None = None,
    remind: str | None = None,
    star: bool = False,
):
    """Add a task; understands !high #tag today tomorrow 'next week' 9am"""
    from .tasks import add_task

    raw = " ".join(text) if text else ""
    if not raw.strip():
        exit_error("Usage: taskflow add <task>")
    parsed = parse_fragment(raw)
    if not parsed.title:
        exit_error("Task title cannot be empty")

    due_at = parsed.due_at
    if due is not None:
        due_at = parse_due(due)
        if due_at is None:
            exit_error(f"Could not understand due date '{due}'")

    reminder_at = None
    if remind is not None:
        reminder_at = parse_due(remind)
        if reminder_at is None:
            exit_error(f"Could not understand reminder time '{remind}'")

    task_id = add_task(
        parsed.title,
        description=desc or "",
        due_at=due_at,
        priority=parsed.priority,
        tags=parsed.tags,
        starred=star,
        reminder_at=reminder_at,
    )

    hints = []
    if due_at:
        hints.append(ansi.muted(format_due(due_at)))
    if parsed.priority != "medium":
        hints.append(ansi.coral(parsed.priority) if parsed.priority == "high" else ansi.muted("low"))
    hints.extend(ansi.tag(t) for t in parsed.tags)
    suffix = f"  {' '.join(hints)}" if hints else ""
    echo(format_status("□", parsed.title, task_id) + suffix)
