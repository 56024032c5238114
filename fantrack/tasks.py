import dataclasses
import math
import uuid
from collections.abc import Iterable

from fncli import cli

from .core.errors import NotFoundError, ValidationError
from .core.models import Task, Tracker, TrackerKind
from .lib import ansi
from .lib.errors import echo

__all__ = [
    "add_task",
    "apply_suggestions",
    "clear_completed",
    "delete_all_tasks",
    "delete_task",
    "get_task",
    "next_seq",
    "set_note",
    "toggle_completed",
    "update_task",
]


# ── domain ───────────────────────────────────────────────────────────────────


def _clean_text(text: str) -> str:
    if not text or not text.strip():
        raise ValidationError("Task text cannot be empty or whitespace-only")
    return text.strip()


def _clean_quantity(quantity: int | None) -> int:
    if quantity is None:
        return 1
    if quantity < 1:
        raise ValidationError(f"Quantity must be at least 1, got {quantity}")
    return int(quantity)


def _clean_value(value: float | None) -> float | None:
    if value is None:
        return None
    if not math.isfinite(value):
        raise ValidationError(f"Value must be a finite number, got {value}")
    if value < 0:
        raise ValidationError(f"Value cannot be negative, got {value}")
    return value


def next_seq(tracker: Tracker) -> int:
    return max((t.seq for t in tracker.tasks), default=0) + 1


def get_task(tracker: Tracker, task_id: str) -> Task | None:
    return next((t for t in tracker.tasks if t.id == task_id), None)


def _require_task(tracker: Tracker, task_id: str) -> Task:
    task = get_task(tracker, task_id)
    if task is None:
        raise NotFoundError(f"No task '{task_id}' in '{tracker.title}'")
    return task


def _replace_task(tracker: Tracker, updated: Task) -> Tracker:
    return dataclasses.replace(
        tracker, tasks=tuple(updated if t.id == updated.id else t for t in tracker.tasks)
    )


def add_task(
    tracker: Tracker, text: str, value: float | None = None, quantity: int | None = 1
) -> tuple[Tracker, Task]:
    task = Task(
        id=uuid.uuid4().hex,
        text=_clean_text(text),
        completed=False,
        value=_clean_value(value),
        quantity=_clean_quantity(quantity),
        completed_dates=(),
        seq=next_seq(tracker),
    )
    return dataclasses.replace(tracker, tasks=(*tracker.tasks, task)), task


def update_task(
    tracker: Tracker,
    task_id: str,
    text: str,
    value: float | None = None,
    quantity: int | None = None,
) -> Tracker:
    """Replace text, value and quantity. Absent value clears the price; absent quantity is 1."""
    task = _require_task(tracker, task_id)
    updated = dataclasses.replace(
        task,
        text=_clean_text(text),
        value=_clean_value(value),
        quantity=_clean_quantity(quantity),
    )
    return _replace_task(tracker, updated)


def toggle_completed(tracker: Tracker, task_id: str) -> Tracker:
    task = _require_task(tracker, task_id)
    return _replace_task(tracker, dataclasses.replace(task, completed=not task.completed))


def delete_task(tracker: Tracker, task_id: str) -> Tracker:
    return dataclasses.replace(tracker, tasks=tuple(t for t in tracker.tasks if t.id != task_id))


def clear_completed(tracker: Tracker) -> Tracker:
    return dataclasses.replace(tracker, tasks=tuple(t for t in tracker.tasks if not t.completed))


def delete_all_tasks(tracker: Tracker) -> Tracker:
    return dataclasses.replace(tracker, tasks=())


def set_note(tracker: Tracker, text: str) -> Tracker:
    return dataclasses.replace(tracker, note=text)


def apply_suggestions(tracker: Tracker, suggestions: Iterable[str]) -> tuple[Tracker, tuple[Task, ...]]:
    """Fold AI suggestions into a tracker.

    NOTE trackers get the suggestions as paragraphs appended to the note body;
    every other kind gets one new task per suggestion. Blank entries are skipped.
    """
    items = [s.strip() for s in suggestions if isinstance(s, str) and s.strip()]
    if not items:
        return tracker, ()

    if tracker.kind is TrackerKind.NOTE:
        addition = "\n\n".join(items)
        body = f"{tracker.note}\n\n{addition}" if tracker.note else addition
        return set_note(tracker, body), ()

    added: list[Task] = []
    for text in items:
        tracker, task = add_task(tracker, text)
        added.append(task)
    return tracker, tuple(added)


# ── cli ──────────────────────────────────────────────────────────────────────


def _fmt_money(amount: float) -> str:
    return f"{amount:g}"


@cli(
    "fantrack",
    flags={"text": [], "tracker": ["-t", "--tracker"], "value": ["-v", "--value"], "qty": ["-q", "--qty"]},
)
def add(
    text: list[str],
    tracker: str | None = None,
    value: float | None = None,
    qty: int = 1,
) -> None:
    """Add task to a tracker"""
    from .lib.resolve import require_tracker_ref, resolve_tracker
    from .trackers import get_repository

    t = resolve_tracker(require_tracker_ref(tracker))
    if t.kind is TrackerKind.NOTE:
        raise ValidationError(f"'{t.title}' is a note, use `fantrack note` instead")
    updated, task = add_task(t, " ".join(text), value=value, quantity=qty)
    get_repository().update(updated)
    price = f"  {ansi.muted(_fmt_money((value or 0) * qty))}" if value is not None else ""
    echo(f"+ {task.text}{price}  {ansi.dim('[' + task.id[:8] + ']')}")


@cli(
    "fantrack",
    flags={
        "ref": [],
        "tracker": ["-t", "--tracker"],
        "text": ["-x", "--text"],
        "value": ["-v", "--value"],
        "qty": ["-q", "--qty"],
        "clear_value": ["--clear-value"],
    },
)
def edit(
    ref: list[str],
    tracker: str | None = None,
    text: str | None = None,
    value: float | None = None,
    qty: int | None = None,
    clear_value: bool = False,
) -> None:
    """Edit task text, price and quantity; omitted fields keep their current values"""
    from .lib.resolve import require_tracker_ref, resolve_task, resolve_tracker
    from .trackers import get_repository

    t = resolve_tracker(require_tracker_ref(tracker))
    task = resolve_task(t, " ".join(ref))
    updated = update_task(
        t,
        task.id,
        text if text is not None else task.text,
        value=None if clear_value else (value if value is not None else task.value),
        quantity=qty if qty is not None else task.quantity,
    )
    get_repository().update(updated)
    echo(f"~ {get_task(updated, task.id).text}")


@cli("fantrack", flags={"ref": [], "tracker": ["-t", "--tracker"]})
def done(ref: list[str], tracker: str | None = None) -> None:
    """Toggle task done"""
    from .lib.resolve import require_tracker_ref, resolve_task, resolve_tracker
    from .trackers import get_repository

    t = resolve_tracker(require_tracker_ref(tracker))
    task = resolve_task(t, " ".join(ref))
    updated = toggle_completed(t, task.id)
    get_repository().update(updated)
    if get_task(updated, task.id).completed:
        echo(f"  {ansi.green('✓')} {ansi.muted(task.text)}")
    else:
        echo(f"  □ {task.text}")


@cli("fantrack", name="del", flags={"ref": [], "tracker": ["-t", "--tracker"]})
def delete(ref: list[str], tracker: str | None = None) -> None:
    """Delete a task"""
    from .lib.resolve import require_tracker_ref, resolve_task, resolve_tracker
    from .trackers import get_repository

    t = resolve_tracker(require_tracker_ref(tracker))
    task = resolve_task(t, " ".join(ref))
    get_repository().update(delete_task(t, task.id))
    echo(f"✗ {task.text}")


@cli("fantrack", flags={"ref": [], "yes": ["-y", "--yes"]})
def clear(ref: list[str], yes: bool = False) -> None:
    """Remove completed tasks from a tracker"""
    from .lib.resolve import resolve_tracker
    from .pending import ActionKind, confirm_or_cancel, gate
    from .trackers import get_repository

    t = resolve_tracker(" ".join(ref))
    count = sum(1 for task in t.tasks if task.completed)
    if not count:
        echo("nothing completed")
        return
    gate.stage(
        ActionKind.CLEAR_COMPLETED,
        f"remove {count} completed from '{t.title}'",
        lambda: get_repository().update(clear_completed(t)),
    )
    if confirm_or_cancel(yes):
        echo(f"✗ {count} completed")


@cli("fantrack", flags={"ref": [], "yes": ["-y", "--yes"]})
def wipe(ref: list[str], yes: bool = False) -> None:
    """Delete every task in a tracker"""
    from .lib.resolve import resolve_tracker
    from .pending import ActionKind, confirm_or_cancel, gate
    from .trackers import get_repository

    t = resolve_tracker(" ".join(ref))
    count = len(t.tasks)
    gate.stage(
        ActionKind.DELETE_ALL,
        f"delete all {count} tasks in '{t.title}'",
        lambda: get_repository().update(delete_all_tasks(t)),
    )
    if confirm_or_cancel(yes):
        echo(f"✗ {count} tasks")
