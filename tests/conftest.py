import io
from contextlib import redirect_stderr, redirect_stdout
from dataclasses import dataclass

import keyring
import pytest

from fantrack import cli, config, db, pending, settings, trackers
from fantrack.core.models import Task, Tracker, TrackerKind


@pytest.fixture
def tmp_fantrack_dir(tmp_path, monkeypatch):
    """Point every on-disk path at a temp dir and start from empty state."""
    home = tmp_path / ".fantrack"
    monkeypatch.setattr(config, "FANTRACK_DIR", home)
    monkeypatch.setattr(config, "DB_PATH", home / "fantrack.db")
    monkeypatch.setattr(config, "CONFIG_PATH", home / "config.yaml")
    monkeypatch.setattr(config, "BACKUP_DIR", tmp_path / "backups")
    monkeypatch.setattr(keyring, "get_password", lambda service, name: None)
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    monkeypatch.delenv("API_KEY", raising=False)

    config.Config.reset()
    trackers.reset_repository()
    settings.reset_settings()
    pending.gate.cancel()
    db.init()

    yield home

    config.Config.reset()
    trackers.reset_repository()
    settings.reset_settings()
    pending.gate.cancel()


def make_tracker(kind: TrackerKind = TrackerKind.TODO, *tasks: Task, **kwargs) -> Tracker:
    fields = {
        "id": "t" * 32,
        "title": "Sample",
        "kind": kind,
        "color": "purple",
        "icon": "CheckSquare",
        "created_at": 1_700_000_000_000,
        "tasks": tasks,
    }
    fields.update(kwargs)
    return Tracker(**fields)


@dataclass
class CLIResult:
    exit_code: int
    stdout: str
    stderr: str


class FnCLIRunner:
    """Runs the fantrack CLI in-process and captures its output."""

    def invoke(self, args: list[str]) -> CLIResult:
        out, err = io.StringIO(), io.StringIO()
        with redirect_stdout(out), redirect_stderr(err):
            try:
                code = cli.run(args)
            except SystemExit as e:
                code = e.code if isinstance(e.code, int) else 1
        return CLIResult(exit_code=code, stdout=out.getvalue(), stderr=err.getvalue())
