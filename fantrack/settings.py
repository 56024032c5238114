import dataclasses
import logging
from pathlib import Path

from fncli import cli

from . import db
from .core.errors import ValidationError
from .core.models import AppSettings, Language
from .core.types import UNSET, Unset
from .lib import ansi
from .lib.converters import dict_to_settings, settings_to_dict
from .lib.errors import echo

__all__ = ["SETTINGS_KEY", "SettingsRepository", "get_settings", "reset_settings"]

logger = logging.getLogger(__name__)

SETTINGS_KEY = "settings"


class SettingsRepository:
    """Process-wide AppSettings. Loaded once, replaced whole, saved after every change."""

    def __init__(self, db_path: Path | None = None) -> None:
        self._db_path = db_path
        self._settings = self._load()

    def _load(self) -> AppSettings:
        raw = db.load(SETTINGS_KEY, None, self._db_path)
        if raw is None:
            return AppSettings()
        try:
            return dict_to_settings(raw)
        except ValidationError as e:
            logger.warning("stored settings unreadable, using defaults: %s", e)
            return AppSettings()

    def get(self) -> AppSettings:
        return self._settings

    def replace(self, settings: AppSettings) -> None:
        self._settings = settings
        db.save(SETTINGS_KEY, settings_to_dict(settings), self._db_path)

    def update(
        self,
        theme_id: str | None = None,
        pattern_id: str | None = None,
        user_api_key: str | None | Unset = UNSET,
        language: Language | str | None = None,
    ) -> AppSettings:
        changes: dict[str, object] = {}
        if theme_id is not None:
            changes["theme_id"] = theme_id
        if pattern_id is not None:
            changes["pattern_id"] = pattern_id
        if user_api_key is not UNSET:
            changes["user_api_key"] = user_api_key or None
        if language is not None:
            changes["language"] = parse_language(language)
        updated = dataclasses.replace(self._settings, **changes)
        self.replace(updated)
        return updated


def parse_language(value: Language | str) -> Language:
    if isinstance(value, Language):
        return value
    try:
        return Language(value.strip().lower())
    except ValueError:
        valid = ", ".join(lang.value for lang in Language)
        raise ValidationError(f"Unknown language '{value}', use one of: {valid}") from None


_settings: SettingsRepository | None = None


def get_settings() -> SettingsRepository:
    global _settings
    if _settings is None:
        _settings = SettingsRepository()
    return _settings


def reset_settings() -> None:
    global _settings
    _settings = None


def _mask(key: str | None) -> str:
    if not key:
        return ansi.muted("(not set)")
    return f"{key[:4]}…{key[-2:]}" if len(key) > 8 else "…"


@cli("fantrack", name="settings")
def settings_cmd(
    theme: str | None = None,
    pattern: str | None = None,
    lang: str | None = None,
    api_key: str | None = None,
    clear_key: bool = False,
) -> None:
    """Show or change settings"""
    repo = get_settings()
    key: str | None | Unset = UNSET
    if clear_key:
        key = None
    elif api_key is not None:
        key = api_key
    if any(v is not None for v in (theme, pattern, lang)) or key is not UNSET:
        repo.update(theme_id=theme, pattern_id=pattern, user_api_key=key, language=lang)
    s = repo.get()
    echo(f"theme     {s.theme_id}")
    echo(f"pattern   {s.pattern_id}")
    echo(f"language  {s.language.value}")
    echo(f"api key   {_mask(s.user_api_key)}")
