from taskflow.core.models import Task
from taskflow.tasks import find_task, find_task_exact

from .errors import exit_error

__all__ = ["resolve_task", "resolve_task_exact"]


def resolve_task(ref: str) -> Task:
    task = find_task(ref)
    if not task:
        exit_error(f"No task found: '{ref}'")
    return task


def resolve_task_exact(ref: str) -> Task:
    """Like resolve_task but no fuzzy matching: id prefix or title substring only."""
    task = find_task_exact(ref)
    if not task:
        exit_error(f"No task found: '{ref}'")
    return task
