from collections.abc import Sequence
from difflib import get_close_matches

from taskflow.core.errors import AmbiguousError
from taskflow.core.models import Task

__all__ = ["find_in_pool", "find_in_pool_exact"]

FUZZY_MATCH_CUTOFF = 0.8


def _match_id_prefix(ref: str, pool: Sequence[Task]) -> Task | None:
    ref_lower = ref.lower()
    exact = next((t for t in pool if t.id == ref), None)
    if exact:
        return exact
    matches = [t for t in pool if len(ref_lower) >= 4 and t.id.lower().startswith(ref_lower)]
    if len(matches) == 1:
        return matches[0]
    if len(matches) > 1:
        sample = [t.id[:8] for t in matches[:3]]
        raise AmbiguousError(ref, count=len(matches), sample=sample)
    return None


def _match_substring(ref: str, pool: Sequence[Task]) -> Task | None:
    ref_lower = ref.lower()
    exact = next((t for t in pool if t.title.lower() == ref_lower), None)
    if exact:
        return exact
    matches = [t for t in pool if ref_lower in t.title.lower()]
    if len(matches) == 1:
        return matches[0]
    if len(matches) > 1:
        sample = [t.title for t in matches[:3]]
        raise AmbiguousError(ref, count=len(matches), sample=sample)
    return None


def _match_fuzzy(ref: str, pool: Sequence[Task]) -> Task | None:
    titles = [t.title.lower() for t in pool]
    matches = get_close_matches(ref.lower(), titles, n=1, cutoff=FUZZY_MATCH_CUTOFF)
    if matches:
        return pool[titles.index(matches[0])]
    return None


def find_in_pool(ref: str, pool: Sequence[Task]) -> Task | None:
    if not pool or not ref.strip():
        return None
    return _match_id_prefix(ref, pool) or _match_substring(ref, pool) or _match_fuzzy(ref, pool)


def find_in_pool_exact(ref: str, pool: Sequence[Task]) -> Task | None:
    if not pool or not ref.strip():
        return None
    return _match_id_prefix(ref, pool) or _match_substring(ref, pool)
