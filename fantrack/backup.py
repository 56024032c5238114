import dataclasses
import json
from collections.abc import Sequence
from datetime import date
from pathlib import Path
from typing import Any

from fncli import cli

from . import config
from .core.errors import BackupImportError, ValidationError
from .core.models import AppSettings, Tracker
from .lib import clock
from .lib.converters import dict_to_settings, dict_to_tracker, settings_to_dict, tracker_to_dict
from .lib.errors import echo
from .settings import SettingsRepository, get_settings
from .trackers import TrackerRepository, get_repository

__all__ = [
    "StagedImport",
    "apply_import",
    "backup_filename",
    "dumps_backup",
    "export_payload",
    "parse_backup",
    "stage_import",
    "write_backup",
]

_APP_NAME = "fantrack"


@dataclasses.dataclass(frozen=True)
class StagedImport:
    """A parsed backup waiting for confirmation. `None` means the key was absent."""

    trackers: tuple[Tracker, ...] | None
    settings: AppSettings | None
    source: Path | None = None

    @property
    def is_empty(self) -> bool:
        return self.trackers is None and self.settings is None


def export_payload(trackers: Sequence[Tracker], settings: AppSettings) -> dict[str, Any]:
    return {
        "trackers": [tracker_to_dict(t) for t in trackers],
        "settings": settings_to_dict(settings),
    }


def dumps_backup(trackers: Sequence[Tracker], settings: AppSettings) -> str:
    return json.dumps(export_payload(trackers, settings), indent=2, ensure_ascii=False)


def backup_filename(day: date | None = None) -> str:
    day = day or clock.today()
    return f"{_APP_NAME}_backup_{day.isoformat()}.json"


def write_backup(
    trackers: Sequence[Tracker], settings: AppSettings, directory: Path | None = None
) -> Path:
    directory = directory or config.get_backup_dir()
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / backup_filename()
    path.write_text(dumps_backup(trackers, settings) + "\n", encoding="utf-8")
    return path


def _parse_trackers(raw: object) -> tuple[Tracker, ...]:
    if not isinstance(raw, list):
        raise BackupImportError("'trackers' must be a list")
    trackers: list[Tracker] = []
    for i, item in enumerate(raw):
        try:
            trackers.append(dict_to_tracker(item))
        except ValidationError as e:
            raise BackupImportError(f"tracker #{i + 1}: {e}") from e
    ids = [t.id for t in trackers]
    if len(set(ids)) != len(ids):
        raise BackupImportError("duplicate tracker ids in backup")
    return tuple(trackers)


def parse_backup(text: str, source: Path | None = None) -> StagedImport:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise BackupImportError(f"backup is not valid JSON: {e.msg} (line {e.lineno})") from e
    if not isinstance(data, dict):
        raise BackupImportError("backup must be a JSON object")

    trackers = _parse_trackers(data["trackers"]) if "trackers" in data else None
    settings = None
    if "settings" in data:
        try:
            settings = dict_to_settings(data["settings"])
        except ValidationError as e:
            raise BackupImportError(f"settings: {e}") from e
    return StagedImport(trackers=trackers, settings=settings, source=source)


def stage_import(path: Path) -> StagedImport:
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise BackupImportError(f"cannot read {path}: {e}") from e
    return parse_backup(text, source=path)


def apply_import(
    staged: StagedImport, repository: TrackerRepository, settings: SettingsRepository
) -> None:
    """Replace trackers and/or settings wholesale. Nothing is merged."""
    if staged.trackers is not None:
        repository.replace_all(staged.trackers)
    if staged.settings is not None:
        settings.replace(staged.settings)


# ── cli ──────────────────────────────────────────────────────────────────────


@cli("fantrack", name="export", flags={"out": ["-o", "--out"]})
def export_cmd(out: str | None = None) -> None:
    """Write a JSON backup of all trackers and settings"""
    directory = Path(out).expanduser() if out else None
    path = write_backup(get_repository().all(), get_settings().get(), directory)
    echo(str(path))
    echo(f"  {len(get_repository().all())} trackers")


@cli("fantrack", name="import", flags={"yes": ["-y", "--yes"]})
def import_cmd(path: str, yes: bool = False) -> None:
    """Replace all trackers and settings from a backup file"""
    from .pending import ActionKind, confirm_or_cancel, gate

    staged = stage_import(Path(path).expanduser())
    if staged.is_empty:
        echo("backup has neither trackers nor settings, nothing to import")
        return
    parts = []
    if staged.trackers is not None:
        parts.append(f"replace all trackers with {len(staged.trackers)} from backup")
    if staged.settings is not None:
        parts.append("replace settings")
    gate.stage(
        ActionKind.IMPORT,
        " and ".join(parts),
        lambda: apply_import(staged, get_repository(), get_settings()),
    )
    if confirm_or_cancel(yes):
        echo(f"imported {staged.source}")
