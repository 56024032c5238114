import json

from fantrack.backup import apply_import, parse_backup, stage_import, write_backup
from fantrack.core.models import AppSettings
from fantrack.settings import get_settings
from fantrack.tasks import add_task
from fantrack.trackers import TrackerRepository, get_repository
from tests.conftest import FnCLIRunner

runner = FnCLIRunner()


def test_export_import_round_trip(tmp_fantrack_dir, tmp_path):
    repo = get_repository()
    groceries = repo.create("Groceries", "shopping", currency="$")
    groceries, _ = add_task(groceries, "Milk", value=3, quantity=2)
    repo.update(groceries)
    repo.create("Gym", "habit")
    before = repo.all()

    path = write_backup(repo.all(), get_settings().get(), tmp_path / "out")
    repo.replace_all([])
    apply_import(stage_import(path), repo, get_settings())

    assert repo.all() == before
    assert TrackerRepository().all() == before


def test_import_without_settings_keeps_settings(tmp_fantrack_dir):
    repo = get_repository()
    repo.create("Work", "todo")
    get_settings().update(theme_id="sunset")

    apply_import(parse_backup('{"trackers": []}'), repo, get_settings())

    assert repo.all() == ()
    assert get_settings().get().theme_id == "sunset"


def test_import_settings_only_keeps_trackers(tmp_fantrack_dir):
    repo = get_repository()
    work = repo.create("Work", "todo")

    apply_import(parse_backup('{"settings": {"language": "ru"}}'), repo, get_settings())

    assert repo.all() == (work,)
    assert get_settings().get().theme_id == AppSettings().theme_id
    assert get_settings().get().language.value == "ru"


def test_export_command_writes_file(tmp_fantrack_dir, tmp_path):
    runner.invoke(["new", "Work"])
    out = tmp_path / "exports"

    result = runner.invoke(["export", "--out", str(out)])

    assert result.exit_code == 0
    files = list(out.glob("fantrack_backup_*.json"))
    assert len(files) == 1
    assert json.loads(files[0].read_text())["trackers"][0]["title"] == "Work"


def test_import_command_replaces(tmp_fantrack_dir, tmp_path):
    runner.invoke(["new", "Old"])
    backup = tmp_path / "b.json"
    backup.write_text(json.dumps({"trackers": [{"id": "1", "title": "New", "type": "TODO"}]}))

    result = runner.invoke(["import", str(backup), "--yes"])

    assert result.exit_code == 0
    assert [t.title for t in get_repository().all()] == ["New"]


def test_import_command_rejects_bad_file(tmp_fantrack_dir, tmp_path):
    runner.invoke(["new", "Keep"])
    backup = tmp_path / "b.json"
    backup.write_text("{broken")

    result = runner.invoke(["import", str(backup), "--yes"])

    assert result.exit_code == 1
    assert "not valid JSON" in result.stderr
    assert [t.title for t in get_repository().all()] == ["Keep"]
