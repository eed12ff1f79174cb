"""Application state handed to the query pipeline.

The command line builds one AppState per invocation; nothing here is global.
"""

import dataclasses
import sqlite3
from datetime import datetime

from . import config
from .config import Settings
from .core.models import QuerySpec, Task
from .lib.log import log
from .query import query, view_counts


@dataclasses.dataclass(frozen=True)
class AppState:
    tasks: list[Task]
    settings: Settings
    view: str
    sort: str
    search: str = ""
    tag: str | None = None
    priorities: frozenset[str] = frozenset()
    due: str | None = None

    def spec(self) -> QuerySpec:
        return QuerySpec(
            view=self.view,  # type: ignore[arg-type]
            tag=self.tag,
            priorities=self.priorities,
            due=self.due,  # type: ignore[arg-type]
            search=self.search,
            sort=self.sort,  # type: ignore[arg-type]
        )

    def visible(self, now: datetime | None = None) -> list[Task]:
        return query(self.tasks, self.spec(), now)

    def counts(self, now: datetime | None = None) -> dict[str, int]:
        return view_counts(self.tasks, now)


def load_tasks() -> list[Task]:
    from .tasks import get_all_tasks

    try:
        return get_all_tasks()
    except sqlite3.DatabaseError as e:
        log(f"[state] task store unreadable, starting empty: {e}")
        return []


def load_state(**overrides: object) -> AppState:
    """Load tasks and settings; corrupt storage degrades to an empty list and defaults.

    View and sort come from the settings unless given in overrides.
    """
    settings = config.get_settings()
    state = AppState(
        tasks=load_tasks(),
        settings=settings,
        view=settings.default_view,
        sort=settings.default_sort,
    )
    given = {k: v for k, v in overrides.items() if v is not None}
    return dataclasses.replace(state, **given)
