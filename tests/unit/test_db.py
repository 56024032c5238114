# tests/unit/test_db.py
import sqlite3

from fantrack import db


def test_init_creates_kv_table(tmp_fantrack_dir):
    with db.get_db() as conn:
        tables = {
            row[0] for row in conn.execute("SELECT name FROM sqlite_master WHERE type='table'")
        }
    assert "kv" in tables


def test_save_and_load(tmp_fantrack_dir):
    assert db.save("trackers", [{"id": "1", "title": "Трип"}]) is True
    assert db.load("trackers") == [{"id": "1", "title": "Трип"}]


def test_save_overwrites(tmp_fantrack_dir):
    db.save("settings", {"themeId": "a"})
    db.save("settings", {"themeId": "b"})
    assert db.load("settings") == {"themeId": "b"}


def test_load_missing_returns_default(tmp_fantrack_dir):
    assert db.load("nope", default=[]) == []


def test_load_malformed_returns_default(tmp_fantrack_dir):
    with db.get_db() as conn:
        conn.execute("INSERT INTO kv (key, value) VALUES (?, ?)", ("trackers", "{not json"))
    assert db.load("trackers", default=[]) == []


def test_save_unserializable_is_swallowed(tmp_fantrack_dir):
    assert db.save("trackers", {"bad": object()}) is False
    assert db.load("trackers") is None


def test_save_failure_is_swallowed(tmp_path):
    missing = tmp_path / "nowhere" / "deeper" / "fantrack.db"
    assert db.save("trackers", [], db_path=missing) is False


def test_get_db_auto_rollback(tmp_fantrack_dir):
    try:
        with db.get_db() as conn:
            conn.execute("INSERT INTO kv (key, value) VALUES ('x', '1')")
            raise sqlite3.OperationalError("boom")
    except sqlite3.OperationalError:
        pass
    assert db.load("x") is None
