"""Core type definitions."""

from enum import Enum
from typing import Literal


class _Unset(Enum):
    UNSET = "UNSET"


UNSET: Literal[_Unset.UNSET] = _Unset.UNSET
Unset = Literal[_Unset.UNSET]

Priority = Literal["high", "medium", "low"]
View = Literal["today", "upcoming", "all", "starred", "completed"]
DueBucket = Literal["today", "week", "overdue"]
SortKey = Literal["custom", "dueDate", "priority", "created", "alpha"]

PRIORITIES: tuple[str, ...] = ("high", "medium", "low")
VIEWS: tuple[str, ...] = ("today", "upcoming", "all", "starred", "completed")
DUE_BUCKETS: tuple[str, ...] = ("today", "week", "overdue")
SORT_KEYS: tuple[str, ...] = ("custom", "dueDate", "priority", "created", "alpha")
