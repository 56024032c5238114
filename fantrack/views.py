"""Derived, read-only projections over trackers and tasks."""

import dataclasses
import locale
from collections.abc import Iterable, Sequence
from enum import Enum

from .core.models import FINANCIAL_KINDS, Task, Tracker, TrackerKind

__all__ = [
    "DashboardSort",
    "DetailState",
    "SortKey",
    "TaskView",
    "derive_view",
    "effective_value",
    "filter_trackers",
    "progress",
    "shows_financials",
    "total_value",
]


class SortKey(Enum):
    CREATED = "created"
    NAME = "name"
    VALUE = "value"


class DashboardSort(Enum):
    NEWEST = "newest"
    OLDEST = "oldest"
    NAME = "name"


@dataclasses.dataclass(frozen=True)
class TaskView:
    filtered: tuple[Task, ...]
    active: tuple[Task, ...]
    completed: tuple[Task, ...]
    show_completed: bool = True

    @property
    def visible_completed(self) -> tuple[Task, ...]:
        return self.completed if self.show_completed else ()


def effective_value(task: Task) -> float:
    return (task.value or 0) * (task.quantity or 1)


def _text_key(text: str) -> str:
    return locale.strxfrm(text.casefold())


def _matches(text: str, query: str) -> bool:
    return query.casefold() in text.casefold()


def derive_view(
    tasks: Iterable[Task],
    query: str = "",
    sort: SortKey = SortKey.CREATED,
    show_completed: bool = True,
) -> TaskView:
    """Filter by substring, sort, then split into active and completed, keeping sort order."""
    filtered = [t for t in tasks if _matches(t.text, query)] if query else list(tasks)

    if sort is SortKey.NAME:
        filtered.sort(key=lambda t: _text_key(t.text))
    elif sort is SortKey.VALUE:
        filtered.sort(key=effective_value, reverse=True)
    else:
        filtered.sort(key=lambda t: t.seq)

    return TaskView(
        filtered=tuple(filtered),
        active=tuple(t for t in filtered if not t.completed),
        completed=tuple(t for t in filtered if t.completed),
        show_completed=show_completed,
    )


def total_value(tracker: Tracker) -> float:
    """Grand total over every task, regardless of any search in progress."""
    return sum(effective_value(t) for t in tracker.tasks)


def progress(tracker: Tracker) -> tuple[int, int]:
    return sum(1 for t in tracker.tasks if t.completed), len(tracker.tasks)


def shows_financials(kind: TrackerKind) -> bool:
    return kind in FINANCIAL_KINDS


def filter_trackers(
    trackers: Sequence[Tracker],
    query: str = "",
    kind: TrackerKind | None = None,
    sort: DashboardSort = DashboardSort.NEWEST,
) -> tuple[Tracker, ...]:
    result = [
        t
        for t in trackers
        if (kind is None or t.kind is kind) and (not query or _matches(t.title, query))
    ]
    if sort is DashboardSort.NAME:
        result.sort(key=lambda t: _text_key(t.title))
    elif sort is DashboardSort.OLDEST:
        result.sort(key=lambda t: t.created_at)
    else:
        result.sort(key=lambda t: t.created_at, reverse=True)
    return tuple(result)


@dataclasses.dataclass(frozen=True)
class DetailState:
    """Presentation state for one open tracker. Never persisted."""

    query: str = ""
    sort: SortKey = SortKey.CREATED
    show_completed: bool = True
    expanded: frozenset[str] = frozenset()
    editing: str | None = None

    def can_toggle(self, task_id: str) -> bool:
        return self.editing != task_id

    def view(self, tracker: Tracker) -> TaskView:
        return derive_view(tracker.tasks, self.query, self.sort, self.show_completed)
