import re
from collections.abc import Callable
from dataclasses import dataclass, fields
from zlib import crc32

_ANSI_RE = re.compile(r"\x1b\[[0-9;]*m")


@dataclass(frozen=True)
class Theme:
    red: str = "\033[38;5;203m"  # overdue
    green: str = "\033[38;5;114m"  # completed
    coral: str = "\033[38;5;209m"  # high priority
    gold: str = "\033[38;5;220m"  # starred
    muted: str = "\033[90m"
    bold: str = "\033[1m"
    dim: str = "\033[2m"
    reset: str = "\033[0m"


DEFAULT = Theme()
PLAIN = Theme(**{f.name: "" for f in fields(Theme)})

# tag colours, picked by name hash
POOL: tuple[str, ...] = (
    "\033[38;5;215m",
    "\033[38;5;185m",
    "\033[38;5;149m",
    "\033[38;5;116m",
    "\033[38;5;81m",
    "\033[38;5;69m",
    "\033[38;5;134m",
    "\033[38;5;204m",
)

_COLORS = {"red", "green", "coral", "gold", "muted"}
_active: Theme = DEFAULT


def use(theme: Theme) -> None:
    """Switch the theme for everything rendered afterwards (PLAIN when piped)."""
    global _active
    _active = theme


def _paint(code: str, text: str) -> str:
    if not code:
        return text
    return f"{code}{text}{_active.reset}"


def __getattr__(name: str) -> Callable[[str], str]:
    if name not in _COLORS:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")

    def colour(text: str) -> str:
        return _paint(getattr(_active, name), text)

    colour.__name__ = name
    return colour


def bold(text: str) -> str:
    return _paint(_active.bold, text)


def dim(text: str) -> str:
    return _paint(_active.dim, text)


def tag(name: str) -> str:
    if _active is PLAIN:
        return f"#{name}"
    return _paint(POOL[crc32(name.encode()) % len(POOL)], f"#{name}")


def strip(text: str) -> str:
    return _ANSI_RE.sub("", text)
