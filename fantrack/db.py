# fantrack/db.py
import json
import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path

from . import config
from .core.errors import StorageError

__all__ = ["get_db", "init", "load", "save"]

logger = logging.getLogger(__name__)

KV_TABLE = "kv"


@contextmanager
def get_db(db_path: Path | None = None):
    db_path = db_path if db_path else config.DB_PATH
    conn = sqlite3.connect(db_path)
    conn.execute("PRAGMA journal_mode=WAL")
    try:
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def init(db_path: Path | None = None) -> None:
    db_path = db_path if db_path else config.DB_PATH
    db_path.parent.mkdir(parents=True, exist_ok=True)
    with get_db(db_path) as conn:
        conn.execute(
            f"CREATE TABLE IF NOT EXISTS {KV_TABLE} "
            "(key TEXT PRIMARY KEY, value TEXT NOT NULL, updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP)"
        )


def load(key: str, default: object = None, db_path: Path | None = None) -> object:
    """Return the JSON value stored under `key`, or `default` when absent or unreadable."""
    try:
        with get_db(db_path) as conn:
            row = conn.execute(
                f"SELECT value FROM {KV_TABLE} WHERE key = ?",  # noqa: S608
                (key,),
            ).fetchone()
    except sqlite3.Error as e:
        logger.warning("load %r failed: %s", key, e)
        return default
    if row is None:
        return default
    try:
        return json.loads(row[0])
    except json.JSONDecodeError as e:
        logger.warning("stored value for %r is malformed: %s", key, e)
        return default


def _write(key: str, value: object, db_path: Path | None) -> None:
    try:
        text = json.dumps(value, ensure_ascii=False)
    except (TypeError, ValueError) as e:
        raise StorageError(f"cannot serialize {key!r}: {e}") from e
    try:
        with get_db(db_path) as conn:
            conn.execute(
                f"INSERT INTO {KV_TABLE} (key, value) VALUES (?, ?) "  # noqa: S608
                "ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = CURRENT_TIMESTAMP",
                (key, text),
            )
    except (sqlite3.Error, OSError) as e:
        raise StorageError(f"cannot save {key!r}: {e}") from e


def save(key: str, value: object, db_path: Path | None = None) -> bool:
    """Best-effort write. Failures are logged and swallowed; returns whether it landed."""
    try:
        _write(key, value, db_path)
    except StorageError as e:
        logger.error("%s", e)
        return False
    return True
