import json

import pytest

from myops.const import CONFIG_STORAGE_KEY, LOCAL_STORAGE_KEY
from scripts import task_sync_agent


@pytest.fixture
def run(tmp_path, capsys):
    path = tmp_path / "myops.json"

    def _run(*args):
        code = task_sync_agent.main(["--storage", str(path), "--grace", "0.01", *args])
        return code, capsys.readouterr().out

    _run.path = path
    return _run


def _stored(path):
    return json.loads(path.read_text())


def test_list_seeds_demo_tasks(run):
    code, out = run("list")
    assert code == 0
    assert "Finalize Q3 System Architecture" in out
    assert len(_stored(run.path)[LOCAL_STORAGE_KEY]) == 5


def test_add_creates_task(run):
    code, out = run("add", "Renew domain", "--date", "2030-01-01", "--priority", "High")
    assert code == 0
    assert "[success] Task created" in out

    _code, out = run("list")
    assert out.splitlines()[0].endswith("Renew domain")


def test_advance_then_delete(run):
    run("list")
    code, out = run("advance", "t-4")
    assert code == 0
    assert "Task updated" in out
    task = next(t for t in _stored(run.path)[LOCAL_STORAGE_KEY] if t["id"] == "t-4")
    assert task["status"] == "In Progress"

    code, out = run("delete", "t-2")
    assert code == 0
    assert "Task deleted" in out
    assert "t-2" not in {t["id"] for t in _stored(run.path)[LOCAL_STORAGE_KEY]}


def test_unknown_task_id(run):
    code, out = run("advance", "nope")
    assert code == 1
    assert "No task matches" in out


def test_purge_done(run):
    code, out = run("purge-done")
    assert code == 0
    assert "Deleted 1 tasks" in out
    assert all(t["status"] != "Done" for t in _stored(run.path)[LOCAL_STORAGE_KEY])


def test_live_mode_without_token_fails(run):
    code, out = run("--mode", "live", "--endpoint", "https://x", "--save-config", "add", "x")
    assert code == 1
    assert "API token required" in out
    assert _stored(run.path)[CONFIG_STORAGE_KEY]["mode"] == "LIVE"
