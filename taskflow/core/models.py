import dataclasses
from datetime import datetime

from .types import DueBucket, Priority, SortKey, View


@dataclasses.dataclass(frozen=True)
class Subtask:
    id: str
    title: str
    done: bool = False


@dataclasses.dataclass(frozen=True)
class Task:
    id: str
    title: str
    created_at: datetime
    updated_at: datetime
    description: str = ""
    due_at: datetime | None = None
    completed_at: datetime | None = None
    priority: Priority = "medium"
    order: float = 0
    starred: bool = False
    reminder_at: datetime | None = None
    tags: list[str] = dataclasses.field(default_factory=list, hash=False)
    subtasks: list[Subtask] = dataclasses.field(default_factory=list, hash=False)

    @property
    def done(self) -> bool:
        return self.completed_at is not None

    @property
    def subtask_progress(self) -> tuple[int, int]:
        return sum(1 for s in self.subtasks if s.done), len(self.subtasks)


@dataclasses.dataclass(frozen=True)
class QuerySpec:
    view: View = "all"
    tag: str | None = None
    priorities: frozenset[str] = frozenset()
    due: DueBucket | None = None
    search: str = ""
    sort: SortKey = "custom"
