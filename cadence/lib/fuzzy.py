from collections.abc import Sequence
from difflib import get_close_matches

from cadence.core.errors import AmbiguousError
from cadence.core.models import Task

__all__ = ["find_in_pool", "find_in_pool_exact"]

FUZZY_MATCH_CUTOFF = 0.8


def _match_id_prefix(ref: str, pool: Sequence[Task]) -> Task | None:
    ref_lower = ref.lower()
    # short refs match the displayed id, longer ones the full id
    matches = [
        task for task in pool if (task.id if len(ref) > 8 else task.id[:8]).startswith(ref_lower)
    ]
    if len(matches) == 1:
        return matches[0]
    if len(matches) > 1:
        exact = next((task for task in matches if task.id == ref), None)
        if exact:
            return exact

        sample = [task.id[:8] for task in matches[:3]]
        raise AmbiguousError(ref, count=len(matches), sample=sample)
    return None


def _match_substring(ref: str, pool: Sequence[Task]) -> Task | None:
    ref_lower = ref.lower()
    exact = next((task for task in pool if task.name.lower() == ref_lower), None)
    if exact:
        return exact
    matches = [task for task in pool if ref_lower in task.name.lower()]
    if len(matches) == 1:
        return matches[0]
    if len(matches) > 1:
        sample = [task.name for task in matches[:3]]
        raise AmbiguousError(ref, count=len(matches), sample=sample)
    return None


def _match_fuzzy(ref: str, pool: Sequence[Task]) -> Task | None:
    names = [task.name.lower() for task in pool]
    matches = get_close_matches(ref.lower(), names, n=1, cutoff=FUZZY_MATCH_CUTOFF)
    if matches:
        return pool[names.index(matches[0])]
    return None


def find_in_pool(ref: str, pool: Sequence[Task]) -> Task | None:
    if not pool:
        return None
    return _match_id_prefix(ref, pool) or _match_substring(ref, pool) or _match_fuzzy(ref, pool)


def find_in_pool_exact(ref: str, pool: Sequence[Task]) -> Task | None:
    if not pool:
        return None
    return _match_id_prefix(ref, pool) or _match_substring(ref, pool)
