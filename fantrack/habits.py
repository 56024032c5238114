import calendar
import dataclasses
from collections.abc import Iterable
from datetime import date, timedelta

from fncli import UsageError, cli

from .core.errors import NotFoundError, ValidationError
from .core.models import Task, Tracker, TrackerKind
from .lib import ansi, clock
from .lib.dates import is_iso_date, parse_day, parse_month, shift_month_start
from .lib.errors import echo

__all__ = [
    "CalendarDay",
    "MonthGrid",
    "all_expanded",
    "get_streak",
    "month_completions",
    "month_grid",
    "shift_month",
    "toggle_all",
    "toggle_date",
    "toggle_expanded",
    "toggle_habit_date",
]


# ── domain ───────────────────────────────────────────────────────────────────


@dataclasses.dataclass(frozen=True)
class CalendarDay:
    day: int
    date_str: str


@dataclasses.dataclass(frozen=True)
class MonthGrid:
    year: int
    month: int
    days_in_month: int
    offset: int
    days: tuple[CalendarDay, ...]

    @property
    def first(self) -> date:
        return date(self.year, self.month, 1)


def _monday_offset(weekday_from_sunday: int) -> int:
    """Sunday-based weekday index (0=Sun) to a Monday-first column (Sun=6)."""
    return 6 if weekday_from_sunday == 0 else weekday_from_sunday - 1


def month_grid(on: date | None = None) -> MonthGrid:
    """Day grid for the month containing `on` (default: today)."""
    on = on or clock.today()
    year, month = on.year, on.month
    days_in_month = calendar.monthrange(year, month)[1]
    first = date(year, month, 1)
    sunday_based = first.isoweekday() % 7
    days = tuple(
        CalendarDay(day=d, date_str=date(year, month, d).isoformat())
        for d in range(1, days_in_month + 1)
    )
    return MonthGrid(
        year=year,
        month=month,
        days_in_month=days_in_month,
        offset=_monday_offset(sunday_based),
        days=days,
    )


def shift_month(grid: MonthGrid, months: int) -> MonthGrid:
    return month_grid(shift_month_start(grid.first, months))


def toggle_date(task: Task, date_str: str) -> Task:
    """Add `date_str` if absent, remove it if present."""
    if not is_iso_date(date_str):
        raise ValidationError(f"Invalid date '{date_str}', use YYYY-MM-DD")
    if date_str in task.completed_dates:
        dates = tuple(d for d in task.completed_dates if d != date_str)
    else:
        dates = (*task.completed_dates, date_str)
    return dataclasses.replace(task, completed_dates=dates)


def toggle_habit_date(tracker: Tracker, task_id: str, date_str: str) -> Tracker:
    task = next((t for t in tracker.tasks if t.id == task_id), None)
    if task is None:
        raise NotFoundError(f"No habit '{task_id}' in '{tracker.title}'")
    updated = toggle_date(task, date_str)
    return dataclasses.replace(
        tracker, tasks=tuple(updated if t.id == task_id else t for t in tracker.tasks)
    )


def get_streak(task: Task, today: date | None = None) -> int:
    """Consecutive checked days ending today, or ending yesterday if today is still open."""
    today = today or clock.today()
    checked = {date.fromisoformat(d) for d in task.completed_dates if is_iso_date(d)}
    if not checked:
        return 0
    day = today if today in checked else today - timedelta(days=1)
    streak = 0
    while day in checked:
        streak += 1
        day -= timedelta(days=1)
    return streak


def month_completions(task: Task, grid: MonthGrid) -> int:
    in_month = {d.date_str for d in grid.days}
    return sum(1 for d in task.completed_dates if d in in_month)


def _active_ids(tasks: Iterable[Task]) -> frozenset[str]:
    return frozenset(t.id for t in tasks if not t.completed)


def toggle_expanded(expanded: frozenset[str], task_id: str) -> frozenset[str]:
    return expanded - {task_id} if task_id in expanded else expanded | {task_id}


def all_expanded(expanded: frozenset[str], tasks: Iterable[Task]) -> bool:
    active = _active_ids(tasks)
    return bool(active) and active <= expanded


def toggle_all(expanded: frozenset[str], tasks: Iterable[Task]) -> frozenset[str]:
    """Expand every active habit, or collapse them all if they already are.

    Completed habits keep whatever state they had.
    """
    tasks = list(tasks)
    active = _active_ids(tasks)
    if all_expanded(expanded, tasks):
        return expanded - active
    return expanded | active


# ── cli ──────────────────────────────────────────────────────────────────────


_MONTH_STEPS = {"next": 1, "+1": 1, "prev": -1, "previous": -1, "last": -1, "-1": -1}


def _require_habit_tracker(ref: str) -> Tracker:
    from .lib.resolve import resolve_tracker

    tracker = resolve_tracker(ref)
    if tracker.kind is not TrackerKind.HABIT:
        raise ValidationError(f"'{tracker.title}' is not a habit tracker")
    return tracker


@cli("fantrack", flags={"ref": [], "month": ["-m", "--month"]})
def grid(ref: list[str], month: str | None = None) -> None:
    """Show a habit tracker's month grid"""
    from .lib.render import render_habit_grid

    tracker = _require_habit_tracker(" ".join(ref))
    shown = month_grid()
    if month is not None:
        step = _MONTH_STEPS.get(month.strip().lower())
        if step is not None:
            shown = shift_month(shown, step)
        else:
            on = parse_month(month)
            if on is None:
                raise UsageError(f"Unrecognized month '{month}', use YYYY-MM, next, prev")
            shown = month_grid(on)
    echo(render_habit_grid(tracker, shown))


@cli("fantrack", flags={"ref": [], "tracker": ["-t", "--tracker"], "day": ["-d", "--day"]})
def mark(ref: list[str], tracker: str | None = None, day: str = "today") -> None:
    """Toggle a habit's completion for a day"""
    from .lib.resolve import require_tracker_ref, resolve_task
    from .trackers import get_repository

    t = _require_habit_tracker(require_tracker_ref(tracker))
    task = resolve_task(t, " ".join(ref))
    date_str = parse_day(day)
    if date_str is None:
        raise UsageError(f"Unrecognized day '{day}', use today, yesterday, YYYY-MM-DD")
    updated = toggle_habit_date(t, task.id, date_str)
    get_repository().update(updated)
    now_checked = date_str in next(x for x in updated.tasks if x.id == task.id).completed_dates
    check = ansi.green("✓") if now_checked else "□"
    echo(f"  {check} {ansi.muted(f'{task.text.lower()} ({date_str})')}")
