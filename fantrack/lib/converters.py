import math
from typing import Any, cast

from fantrack.core.errors import ValidationError
from fantrack.core.models import (
    DEFAULT_COLOR,
    DEFAULT_ICONS,
    AppSettings,
    Language,
    Task,
    Tracker,
    TrackerKind,
)

__all__ = [
    "dict_to_settings",
    "dict_to_task",
    "dict_to_tracker",
    "settings_to_dict",
    "task_to_dict",
    "tracker_to_dict",
]


def _parse_number(val) -> float | None:
    """Parse an optional price/count that may be int, float or numeric string.

    NaN and infinities count as absent.
    """
    if isinstance(val, bool) or val is None:
        return None
    if isinstance(val, str) and val.strip():
        try:
            val = float(val)
        except ValueError:
            return None
    if isinstance(val, int):
        return val
    if isinstance(val, float) and math.isfinite(val):
        return val
    return None


def _parse_quantity(val) -> int | None:
    num = _parse_number(val)
    return int(num) if num is not None else None


def _parse_dates(val) -> tuple[str, ...]:
    """Deduplicate while keeping first-seen order."""
    if not isinstance(val, list):
        return ()
    seen: dict[str, None] = {}
    for item in val:
        if isinstance(item, str) and item:
            seen.setdefault(item, None)
    return tuple(seen)


def _parse_created(val) -> int:
    if isinstance(val, bool):
        return 0
    if isinstance(val, (int, float)):
        return int(val)
    if isinstance(val, str) and val.isdigit():
        return int(val)
    return 0


def dict_to_task(data: dict[str, Any], position: int = 0) -> Task:
    """
    Converts a stored task object into a Task.
    Tasks written before `seq` existed are numbered by list position.
    """
    if not isinstance(data, dict):
        raise ValidationError(f"task must be an object, got {type(data).__name__}")
    task_id = data.get("id")
    if task_id is None or task_id == "":
        raise ValidationError("task is missing an id")
    seq = data.get("seq")
    return Task(
        id=str(task_id),
        text=str(data.get("text", "")),
        completed=bool(data.get("completed", False)),
        value=_parse_number(data.get("value")),
        quantity=_parse_quantity(data.get("quantity")),
        completed_dates=_parse_dates(data.get("completedDates")),
        seq=seq if isinstance(seq, int) and not isinstance(seq, bool) else position + 1,
    )


def task_to_dict(task: Task) -> dict[str, Any]:
    out: dict[str, Any] = {
        "id": task.id,
        "text": task.text,
        "completed": task.completed,
    }
    if task.value is not None:
        out["value"] = task.value
    if task.quantity is not None:
        out["quantity"] = task.quantity
    out["completedDates"] = list(task.completed_dates)
    out["seq"] = task.seq
    return out


def dict_to_tracker(data: dict[str, Any]) -> Tracker:
    """
    Converts a stored tracker object into a Tracker.
    Expected keys: id, title, type, color, icon, currency, createdAt, tasks, noteContent, description
    """
    if not isinstance(data, dict):
        raise ValidationError(f"tracker must be an object, got {type(data).__name__}")
    tracker_id = data.get("id")
    if tracker_id is None or tracker_id == "":
        raise ValidationError("tracker is missing an id")
    try:
        kind = TrackerKind(data.get("type"))
    except ValueError:
        raise ValidationError(f"unknown tracker type: {data.get('type')!r}") from None
    raw_tasks = data.get("tasks") or []
    if not isinstance(raw_tasks, list):
        raise ValidationError("tracker tasks must be a list")
    return Tracker(
        id=str(tracker_id),
        title=str(data.get("title", "")),
        kind=kind,
        color=str(data.get("color") or DEFAULT_COLOR),
        icon=str(data.get("icon") or DEFAULT_ICONS[kind]),
        created_at=_parse_created(data.get("createdAt")),
        currency=cast(str, data["currency"]) if data.get("currency") else None,
        tasks=tuple(dict_to_task(t, i) for i, t in enumerate(raw_tasks)),
        note=cast(str, data["noteContent"]) if data.get("noteContent") is not None else None,
        description=cast(str, data["description"]) if data.get("description") else None,
    )


def tracker_to_dict(tracker: Tracker) -> dict[str, Any]:
    out: dict[str, Any] = {
        "id": tracker.id,
        "title": tracker.title,
        "type": tracker.kind.value,
        "color": tracker.color,
        "icon": tracker.icon,
        "createdAt": tracker.created_at,
        "tasks": [task_to_dict(t) for t in tracker.tasks],
    }
    if tracker.currency is not None:
        out["currency"] = tracker.currency
    if tracker.note is not None:
        out["noteContent"] = tracker.note
    if tracker.description is not None:
        out["description"] = tracker.description
    return out


def dict_to_settings(data: dict[str, Any]) -> AppSettings:
    """Missing keys fall back to AppSettings defaults."""
    if not isinstance(data, dict):
        raise ValidationError(f"settings must be an object, got {type(data).__name__}")
    defaults = AppSettings()
    try:
        language = Language(data.get("language", defaults.language.value))
    except ValueError:
        raise ValidationError(f"unknown language: {data.get('language')!r}") from None
    api_key = data.get("userApiKey")
    return AppSettings(
        theme_id=str(data.get("themeId") or defaults.theme_id),
        pattern_id=str(data.get("patternId") or defaults.pattern_id),
        user_api_key=str(api_key) if api_key else None,
        language=language,
    )


def settings_to_dict(settings: AppSettings) -> dict[str, Any]:
    out: dict[str, Any] = {
        "themeId": settings.theme_id,
        "patternId": settings.pattern_id,
        "language": settings.language.value,
    }
    if settings.user_api_key:
        out["userApiKey"] = settings.user_api_key
    return out
