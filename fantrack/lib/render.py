from collections.abc import Sequence

from fantrack.core.models import Task, Tracker, TrackerKind
from fantrack.habits import MonthGrid, get_streak, month_completions
from fantrack.views import SortKey, derive_view, effective_value, progress, shows_financials, total_value

from . import ansi, clock

__all__ = [
    "format_amount",
    "render_habit_grid",
    "render_tracker_detail",
    "render_tracker_list",
]

_WEEKDAYS = ("mo", "tu", "we", "th", "fr", "sa", "su")


def format_amount(amount: float, currency: str | None = None) -> str:
    text = f"{amount:,.0f}" if float(amount).is_integer() else f"{amount:,.2f}"
    return f"{text} {currency}" if currency else text


def _id_str(item: Task | Tracker) -> str:
    return ansi.dim(f"[{item.id[:8]}]")


def render_tracker_list(trackers: Sequence[Tracker]) -> str:
    if not trackers:
        return "No trackers."

    lines = []
    for tracker in trackers:
        done, total = progress(tracker)
        if tracker.kind is TrackerKind.NOTE:
            stats = ""
        elif tracker.kind is TrackerKind.HABIT:
            stats = ansi.muted(f"{total} habits")
        else:
            stats = ansi.muted(f"{done}/{total}")
        dot = ansi.color(tracker.color, "●")
        lines.append(
            f"{dot} {_id_str(tracker)}  {tracker.title}  {ansi.muted(tracker.kind.value)}  {stats}".rstrip()
        )
    return "\n".join(lines)


def _render_task_row(task: Task, tracker: Tracker) -> str:
    status = ansi.gray("✓") if task.completed else "□"
    text = ansi.strikethrough(task.text) if task.completed else task.text
    line = f"  {status} {_id_str(task)}  {text}"
    if shows_financials(tracker.kind) and task.value is not None:
        qty = task.quantity or 1
        price = format_amount(task.value, tracker.currency)
        amount = f"{qty} × {price}" if qty > 1 else price
        line += f"  {ansi.muted(amount)}"
    return line


def _render_note(tracker: Tracker) -> list[str]:
    body = (tracker.note or "").strip()
    if not body:
        return [ansi.muted("  (empty note)")]
    return [f"  {line}" if line else "" for line in body.splitlines()]


def render_tracker_detail(
    tracker: Tracker,
    query: str = "",
    sort: SortKey = SortKey.CREATED,
    show_completed: bool = True,
) -> str:
    dot = ansi.color(tracker.color, "●")
    lines = [f"{dot} {ansi.bold(tracker.title)}  {ansi.muted(tracker.kind.value)}"]
    if tracker.description:
        lines.append(ansi.muted(f"  {tracker.description}"))

    if tracker.kind is TrackerKind.NOTE:
        lines.extend(_render_note(tracker))
        return "\n".join(lines)

    view = derive_view(tracker.tasks, query, sort, show_completed)
    if not view.filtered:
        lines.append(ansi.muted("  no matches" if query else "  no items"))

    for task in view.active:
        lines.append(_render_task_row(task, tracker))

    if view.visible_completed:
        lines.append("")
        lines.append(ansi.muted(f"  done ({len(view.completed)})"))
        for task in view.visible_completed:
            lines.append(_render_task_row(task, tracker))
    elif view.completed:
        lines.append(ansi.muted(f"  {len(view.completed)} done hidden"))

    if shows_financials(tracker.kind):
        lines.append("")
        lines.append(f"  total: {ansi.bold(format_amount(total_value(tracker), tracker.currency))}")
    return "\n".join(lines)


def render_habit_grid(tracker: Tracker, grid: MonthGrid) -> str:
    lines = [f"{ansi.bold(tracker.title)}  {ansi.muted(grid.first.strftime('%B %Y').lower())}"]
    if not tracker.tasks:
        lines.append(ansi.muted("  no habits"))
        return "\n".join(lines)

    today = clock.today()
    today_str = today.isoformat()
    header = "   ".join(_WEEKDAYS)
    for task in sorted(tracker.tasks, key=lambda t: t.seq):
        checked = set(task.completed_dates)
        streak = get_streak(task, today)
        count = month_completions(task, grid)
        lines.append("")
        lines.append(
            f"{_id_str(task)}  {task.text.lower()}  "
            f"{ansi.muted(f'streak {streak} · {count}/{grid.days_in_month}')}"
        )
        lines.append(f"  {ansi.muted(header)}")

        cells = ["  "] * grid.offset
        for day in grid.days:
            if day.date_str in checked:
                cell = ansi.green("✓ ")
            elif day.date_str == today_str:
                cell = ansi.bold("□ ")
            else:
                cell = "□ "
            cells.append(cell)
        for week_start in range(0, len(cells), 7):
            lines.append("  " + "   ".join(cells[week_start : week_start + 7]).rstrip())
    return "\n".join(lines)
