import dataclasses
import logging
import uuid
from collections.abc import Iterable
from pathlib import Path

from fncli import UsageError, cli

from . import db
from .core.errors import ValidationError
from .core.models import (
    DEFAULT_COLOR,
    DEFAULT_ICONS,
    FINANCIAL_KINDS,
    ICONS,
    Tracker,
    TrackerKind,
)
from .core.types import UNSET, Unset
from .lib import ansi, clock
from .lib.converters import dict_to_tracker, tracker_to_dict
from .lib.errors import echo

__all__ = [
    "TRACKERS_KEY",
    "TrackerRepository",
    "edit_tracker",
    "get_repository",
    "parse_kind",
    "reset_repository",
    "resolve_icon",
]

logger = logging.getLogger(__name__)

TRACKERS_KEY = "trackers"


# ── domain ───────────────────────────────────────────────────────────────────


def parse_kind(value: str | TrackerKind) -> TrackerKind:
    if isinstance(value, TrackerKind):
        return value
    try:
        return TrackerKind(value.strip().upper())
    except ValueError:
        valid = ", ".join(k.value.lower() for k in TrackerKind)
        raise ValidationError(f"Unknown tracker kind '{value}', use one of: {valid}") from None


def resolve_icon(kind: TrackerKind, icon: str | None) -> str:
    """Explicit icon if it is a known identifier, else the kind's default."""
    if not icon:
        return DEFAULT_ICONS[kind]
    if icon not in ICONS:
        raise ValidationError(f"Unknown icon '{icon}'")
    return icon


def _clean_title(title: str) -> str:
    if not title or not title.strip():
        raise ValidationError("Title cannot be empty or whitespace-only")
    return title.strip()


def _clean_currency(kind: TrackerKind, currency: str | None) -> str | None:
    if kind not in FINANCIAL_KINDS:
        return None
    return currency.strip() if currency and currency.strip() else None


def edit_tracker(
    tracker: Tracker,
    title: str | None = None,
    color: str | None = None,
    icon: str | None = None,
    currency: str | None | Unset = UNSET,
    description: str | None | Unset = UNSET,
) -> Tracker:
    """Return a copy with the given display fields replaced. Kind is never editable."""
    changes: dict[str, object] = {}
    if title is not None:
        changes["title"] = _clean_title(title)
    if color is not None:
        changes["color"] = color
    if icon is not None:
        changes["icon"] = resolve_icon(tracker.kind, icon)
    if currency is not UNSET:
        changes["currency"] = _clean_currency(tracker.kind, currency)
    if description is not UNSET:
        changes["description"] = description or None
    return dataclasses.replace(tracker, **changes) if changes else tracker


class TrackerRepository:
    """Owns the ordered tracker collection, most recent first.

    Every mutation builds a new tuple, swaps it in, then asks the store to save.
    A failed save leaves the in-memory collection authoritative until the next
    successful save.
    """

    def __init__(self, db_path: Path | None = None) -> None:
        self._db_path = db_path
        self._trackers: tuple[Tracker, ...] = self._load()

    def _load(self) -> tuple[Tracker, ...]:
        raw = db.load(TRACKERS_KEY, [], self._db_path)
        if not isinstance(raw, list):
            logger.warning("stored trackers are not a list, starting empty")
            return ()
        trackers: list[Tracker] = []
        for item in raw:
            try:
                trackers.append(dict_to_tracker(item))
            except ValidationError as e:
                logger.warning("skipping unreadable tracker: %s", e)
        return tuple(trackers)

    def _commit(self, trackers: tuple[Tracker, ...]) -> None:
        self._trackers = trackers
        db.save(TRACKERS_KEY, [tracker_to_dict(t) for t in trackers], self._db_path)

    def all(self) -> tuple[Tracker, ...]:
        return self._trackers

    def get(self, tracker_id: str) -> Tracker | None:
        return next((t for t in self._trackers if t.id == tracker_id), None)

    def create(
        self,
        title: str,
        kind: TrackerKind | str,
        color: str = DEFAULT_COLOR,
        icon: str | None = None,
        currency: str | None = None,
        description: str | None = None,
    ) -> Tracker:
        kind = parse_kind(kind)
        clean_title = _clean_title(title)
        resolved_icon = resolve_icon(kind, icon)
        created_at = clock.now_ms()
        if self._trackers:
            created_at = max(created_at, max(t.created_at for t in self._trackers) + 1)
        tracker = Tracker(
            id=uuid.uuid4().hex,
            title=clean_title,
            kind=kind,
            color=color or DEFAULT_COLOR,
            icon=resolved_icon,
            created_at=created_at,
            currency=_clean_currency(kind, currency),
            tasks=(),
            note="" if kind is TrackerKind.NOTE else None,
            description=description or None,
        )
        self._commit((tracker, *self._trackers))
        return tracker

    def update(self, tracker: Tracker) -> None:
        """Full replace by id. Unknown ids are ignored."""
        current = self.get(tracker.id)
        if current is None:
            return
        if current.kind is not tracker.kind:
            raise ValidationError(f"Tracker kind is fixed at creation ({current.kind.value})")
        self._commit(tuple(tracker if t.id == tracker.id else t for t in self._trackers))

    def delete(self, tracker_id: str) -> None:
        if self.get(tracker_id) is None:
            return
        self._commit(tuple(t for t in self._trackers if t.id != tracker_id))

    def replace_all(self, trackers: Iterable[Tracker]) -> None:
        items = tuple(trackers)
        ids = [t.id for t in items]
        if len(set(ids)) != len(ids):
            raise ValidationError("Tracker ids must be unique")
        self._commit(items)


_repository: TrackerRepository | None = None


def get_repository() -> TrackerRepository:
    global _repository
    if _repository is None:
        _repository = TrackerRepository()
    return _repository


def reset_repository() -> None:
    global _repository
    _repository = None


# ── cli ──────────────────────────────────────────────────────────────────────


@cli(
    "fantrack",
    flags={"title": [], "kind": ["-k", "--kind"], "color": ["-c", "--color"], "icon": ["-i", "--icon"]},
)
def new(
    title: list[str],
    kind: str = "todo",
    color: str = DEFAULT_COLOR,
    icon: str | None = None,
    currency: str | None = None,
) -> None:
    """Create a tracker"""
    tracker = get_repository().create(" ".join(title), kind, color, icon, currency)
    echo(f"+ {ansi.color(tracker.color, tracker.title)}  {ansi.dim(tracker.kind.value.lower())}")


@cli("fantrack", flags={"query": [], "kind": ["-k", "--kind"], "sort": ["-s", "--sort"]})
def ls(query: list[str] | None = None, kind: str | None = None, sort: str = "newest") -> None:
    """List trackers"""
    from .lib.render import render_tracker_list
    from .views import DashboardSort, filter_trackers

    try:
        order = DashboardSort(sort.lower())
    except ValueError:
        raise UsageError(f"Unknown sort '{sort}', use newest, oldest or name") from None
    trackers = filter_trackers(
        get_repository().all(),
        query=" ".join(query) if query else "",
        kind=parse_kind(kind) if kind else None,
        sort=order,
    )
    echo(render_tracker_list(trackers))


@cli("fantrack", flags={"ref": [], "find": ["-f", "--find"], "sort": ["-s", "--sort"]})
def show(ref: list[str], find: str = "", sort: str = "created", hide_done: bool = False) -> None:
    """Show tracker detail"""
    from .lib.render import render_tracker_detail
    from .lib.resolve import resolve_tracker
    from .views import SortKey

    try:
        order = SortKey(sort.lower())
    except ValueError:
        raise UsageError(f"Unknown sort '{sort}', use created, name or value") from None
    tracker = resolve_tracker(" ".join(ref))
    echo(render_tracker_detail(tracker, query=find, sort=order, show_completed=not hide_done))


@cli(
    "fantrack",
    flags={"ref": [], "title": ["-n", "--title"], "color": ["-c", "--color"], "icon": ["-i", "--icon"]},
)
def rename(
    ref: list[str],
    title: str | None = None,
    color: str | None = None,
    icon: str | None = None,
) -> None:
    """Rename or restyle a tracker"""
    from .lib.resolve import resolve_tracker

    tracker = resolve_tracker(" ".join(ref))
    updated = edit_tracker(tracker, title=title, color=color, icon=icon)
    get_repository().update(updated)
    echo(f"→ {updated.title}")


@cli("fantrack", name="rm", flags={"ref": [], "yes": ["-y", "--yes"]})
def rm(ref: list[str], yes: bool = False) -> None:
    """Delete a tracker"""
    from .lib.resolve import resolve_tracker
    from .pending import ActionKind, confirm_or_cancel, gate

    tracker = resolve_tracker(" ".join(ref))
    gate.stage(
        ActionKind.DELETE_TRACKER,
        f"delete '{tracker.title}' and its {len(tracker.tasks)} tasks",
        lambda: get_repository().delete(tracker.id),
    )
    if confirm_or_cancel(yes):
        echo(f"✗ {tracker.title}")


@cli("fantrack", flags={"ref": [], "text": ["-x", "--text"]})
def note(ref: list[str], text: str | None = None, append: bool = False) -> None:
    """Show or write a note tracker's body"""
    from .lib.resolve import resolve_tracker
    from .tasks import set_note

    tracker = resolve_tracker(" ".join(ref))
    if tracker.kind is not TrackerKind.NOTE:
        raise ValidationError(f"'{tracker.title}' is not a note")
    if text is None:
        echo(tracker.note or ansi.muted("(empty)"))
        return
    body = f"{tracker.note}\n\n{text}" if append and tracker.note else text
    get_repository().update(set_note(tracker, body))
    echo(f"~ {tracker.title}")
