from fantrack.core.errors import NotFoundError, ValidationError
from fantrack.core.models import Task, Tracker

from .fuzzy import find_in_pool

__all__ = ["require_tracker_ref", "resolve_task", "resolve_tracker"]


def resolve_tracker(ref: str) -> Tracker:
    from fantrack.trackers import get_repository

    tracker = find_in_pool(ref, get_repository().all())
    if not tracker:
        raise NotFoundError(f"No tracker found: '{ref}'")
    return tracker


def resolve_task(tracker: Tracker, ref: str) -> Task:
    task = find_in_pool(ref, tracker.tasks)
    if not task:
        raise NotFoundError(f"No task found in '{tracker.title}': '{ref}'")
    return task


def require_tracker_ref(ref: str | None) -> str:
    if not ref or not ref.strip():
        raise ValidationError("Missing tracker, pass it with -t/--tracker")
    return ref
