from pathlib import Path

import yaml

FANTRACK_DIR = Path.home() / ".fantrack"
DB_PATH = FANTRACK_DIR / "fantrack.db"
CONFIG_PATH = FANTRACK_DIR / "config.yaml"
BACKUP_DIR = Path.home() / "fantrack_backups"

_DEFAULT_AI_MODEL = "gemini-2.5-flash"
_DEFAULT_AI_ENDPOINT = "https://generativelanguage.googleapis.com/v1beta/models"
_DEFAULT_AI_TIMEOUT = 30.0


class Config:
    """Single-instance config manager. Load once, cache in memory."""

    _instance: "Config | None" = None
    _data: dict[str, object]

    def __new__(cls) -> "Config":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._data = {}
            cls._instance._load()
        return cls._instance

    def _load(self) -> None:
        """Load config from disk."""
        if not CONFIG_PATH.exists():
            self._data = {}
            return
        try:
            with CONFIG_PATH.open() as f:
                loaded = yaml.safe_load(f)
        except (OSError, yaml.YAMLError):
            loaded = None
        self._data = loaded if isinstance(loaded, dict) else {}

    def _save(self) -> None:
        """Persist config to disk."""
        CONFIG_PATH.parent.mkdir(parents=True, exist_ok=True)
        with CONFIG_PATH.open("w") as f:
            yaml.dump(self._data, f, default_flow_style=False, allow_unicode=True)

    def get(self, key: str, default: object = None) -> object:
        """Get config value."""
        return self._data.get(key, default)

    def set(self, key: str, value: object) -> None:
        """Set config value and persist."""
        self._data[key] = value
        self._save()

    @classmethod
    def reset(cls) -> None:
        """Drop the cached instance so the next access reloads from disk."""
        cls._instance = None


def get_ai_model() -> str:
    val = Config().get("ai_model")
    return str(val).strip() if val else _DEFAULT_AI_MODEL


def get_ai_endpoint() -> str:
    val = Config().get("ai_endpoint")
    return str(val).rstrip("/") if val else _DEFAULT_AI_ENDPOINT


def get_ai_timeout() -> float:
    val = Config().get("ai_timeout")
    try:
        return float(val) if val is not None else _DEFAULT_AI_TIMEOUT
    except (TypeError, ValueError):
        return _DEFAULT_AI_TIMEOUT


def get_backup_dir() -> Path:
    """Backup directory, overridable with `backup_dir` in config.yaml."""
    val = Config().get("backup_dir")
    return Path(str(val)).expanduser() if val else BACKUP_DIR
