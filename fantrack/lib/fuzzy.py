"""Resolve a typed reference to one tracker or task in a pool."""

from collections.abc import Callable, Sequence
from difflib import get_close_matches
from typing import TypeVar

from fantrack.core.errors import AmbiguousError
from fantrack.core.models import Task, Tracker

__all__ = ["find_in_pool", "label"]

FUZZY_MATCH_CUTOFF = 0.8
_SAMPLE_SIZE = 3

T = TypeVar("T", Task, Tracker)


def label(item: Task | Tracker) -> str:
    return item.title if isinstance(item, Tracker) else item.text


def _short_id(item: Task | Tracker) -> str:
    return item.id[:8]


def _single(
    ref: str, candidates: list[T], describe: Callable[[T], str]
) -> T | None:
    if len(candidates) > 1:
        sample = [describe(c) for c in candidates[:_SAMPLE_SIZE]]
        raise AmbiguousError(ref, count=len(candidates), sample=sample)
    return candidates[0] if candidates else None


def find_in_pool(ref: str, pool: Sequence[T]) -> T | None:
    """Exact id, exact label, id prefix, label substring, then a close label match.

    Prefix and substring steps raise AmbiguousError when more than one item fits.
    """
    ref = ref.strip()
    if not pool or not ref:
        return None
    needle = ref.casefold()

    for item in pool:
        if item.id == ref:
            return item
    for item in pool:
        if label(item).casefold() == needle:
            return item

    by_prefix = [item for item in pool if item.id.casefold().startswith(needle)]
    found = _single(ref, by_prefix, _short_id)
    if found is not None:
        return found

    by_substring = [item for item in pool if needle in label(item).casefold()]
    found = _single(ref, by_substring, label)
    if found is not None:
        return found

    labels = [label(item).casefold() for item in pool]
    close = get_close_matches(needle, labels, n=1, cutoff=FUZZY_MATCH_CUTOFF)
    if not close:
        return None
    return pool[labels.index(close[0])]
