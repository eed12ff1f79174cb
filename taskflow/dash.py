from fncli import cli

from .core.types import DUE_BUCKETS, PRIORITIES, SORT_KEYS, VIEWS
from .lib import ansi, clock
from .lib.errors import echo, exit_error
from .lib.format import format_task
from .state import AppState, load_state

_TITLES = {
    "today": "TODAY",
    "upcoming": "UPCOMING",
    "all": "ALL TASKS",
    "starred": "STARRED",
    "completed": "COMPLETED",
}

_EMPTY = {
    "today": "all clear for today",
    "upcoming": "nothing upcoming",
    "all": "no tasks yet",
    "starred": "no starred tasks",
    "completed": "nothing completed yet",
}


def render_list(state: AppState) -> str:
    now = clock.now()
    tasks = state.visible(now)
    header = ansi.bold(_TITLES.get(state.view, "TASKS"))
    filters = []
    if state.tag:
        filters.append(ansi.tag(state.tag))
    filters.extend(f"!{p}" for p in sorted(state.priorities, key=PRIORITIES.index))
    if state.due:
        filters.append(f"due:{state.due}")
    if state.sort != "custom":
        filters.append(f"sort:{state.sort}")
    if filters:
        header += "  " + ansi.muted(" ".join(filters))
    lines = [header]
    if not tasks:
        if state.search:
            lines.append(ansi.muted(f"  no tasks match \"{state.search}\""))
        else:
            lines.append(ansi.muted(f"  {_EMPTY.get(state.view, 'no tasks')}"))
    lines.extend(f"  {format_task(t, now=now)}" for t in tasks)
    return "\n".join(lines)


def _check_choice(name: str, value: str | None, choices: tuple[str, ...]) -> None:
    if value is not None and value not in choices:
        exit_error(f"Unknown {name} '{value}' (one of: {', '.join(choices)})")


@cli("taskflow")
def dashboard() -> None:
    """Counts per view and the default view"""
    state = load_state()
    counts = state.counts()
    badges = "  ".join(f"{view} {ansi.bold(str(counts[view]))}" for view in counts)
    echo(ansi.muted(badges))
    echo(render_list(state))


@cli(
    "taskflow",
    flags={
        "view": ["-v", "--view"],
        "tag": ["-t", "--tag"],
        "priority": ["-p", "--priority"],
        "sort": ["-s", "--sort"],
    },
)
def ls(
    view: str | None = None,
    tag: str | None = None,
    priority: list[str] | None = None,
    due: str | None = None,
    search: str | None = None,
    sort: str | None = None,
) -> None:
    """List tasks in a view with optional filters"""
    _check_choice("view", view, VIEWS)
    _check_choice("due bucket", due, DUE_BUCKETS)
    _check_choice("sort", sort, SORT_KEYS)
    for p in priority or []:
        _check_choice("priority", p, PRIORITIES)
    state = load_state(
        view=view,
        tag=tag.lstrip("#") if tag else None,
        priorities=frozenset(priority) if priority else None,
        due=due,
        search=search,
        sort=sort,
    )
    echo(render_list(state))


@cli("taskflow", flags={"sort": ["-s", "--sort"]})
def search(query: list[str], sort: str | None = None) -> None:
    """Search open task titles, descriptions and tags"""
    text = " ".join(query) if query else ""
    if not text.strip():
        exit_error("Usage: taskflow search <text>")
    _check_choice("sort", sort, SORT_KEYS)
    echo(render_list(load_state(view="all", search=text, sort=sort)))
