import json

from taskflow.tasks import add_task, get_all_tasks, get_task
from tests.conftest import FnCLIRunner


def test_add_parses_quick_entry(tmp_taskflow_dir, frozen_now):
    runner = FnCLIRunner()
    result = runner.invoke(["add", "Call", "doctor", "today", "#health", "!high"])

    assert result.exit_code == 0
    assert "Call doctor" in result.stdout
    (task,) = get_all_tasks()
    assert task.title == "Call doctor"
    assert task.priority == "high"
    assert task.tags == ["health"]
    assert task.due_at == frozen_now.replace(hour=23, minute=59)


def test_add_rejects_marker_only_text(tmp_taskflow_dir):
    result = FnCLIRunner().invoke(["add", "#just", "!high"])

    assert result.exit_code != 0
    assert "cannot be empty" in result.stderr
    assert get_all_tasks() == []


def test_dashboard_lists_default_view(tmp_taskflow_dir, frozen_now):
    task_id = add_task("due today", due_at=frozen_now.replace(hour=18))
    add_task("someday")

    result = FnCLIRunner().invoke([])

    assert result.exit_code == 0
    assert "TODAY" in result.stdout
    assert "due today" in result.stdout
    assert "someday" not in result.stdout
    assert task_id[:8] in result.stdout


def test_ls_with_view_and_tag(tmp_taskflow_dir):
    add_task("deploy", tags=["work"])
    add_task("laundry", tags=["home"])

    result = FnCLIRunner().invoke(["ls", "--view", "all", "--tag", "work"])

    assert result.exit_code == 0
    assert "deploy" in result.stdout
    assert "laundry" not in result.stdout


def test_ls_rejects_unknown_view(tmp_taskflow_dir):
    result = FnCLIRunner().invoke(["ls", "--view", "someday"])

    assert result.exit_code != 0
    assert "Unknown view" in result.stderr


def test_search(tmp_taskflow_dir):
    add_task("renew passport", description="bring photos")
    add_task("water plants")

    result = FnCLIRunner().invoke(["search", "photos"])

    assert result.exit_code == 0
    assert "renew passport" in result.stdout
    assert "water plants" not in result.stdout


def test_done_then_rm(tmp_taskflow_dir):
    runner = FnCLIRunner()
    task_id = add_task("test done flag")
    runner.invoke(["done", "test done flag"])
    task = get_task(task_id)
    assert task is not None and task.done

    rm_result = runner.invoke(["rm", "test done flag"])
    assert rm_result.exit_code == 0

    show_result = runner.invoke(["show", "test done flag"])
    assert show_result.exit_code != 0
    assert "No task found" in show_result.stderr


def test_move_swaps_order(tmp_taskflow_dir):
    a = add_task("alpha")
    b = add_task("beta")

    result = FnCLIRunner().invoke(["move", "alpha", "beta"])

    assert result.exit_code == 0
    assert get_task(a).order == 1
    assert get_task(b).order == 0


def test_subtask_commands(tmp_taskflow_dir):
    task_id = add_task("trip")
    runner = FnCLIRunner()
    runner.invoke(["sub", "add", "trip", "book", "hotel"])
    runner.invoke(["sub", "done", "trip", "1"])

    task = get_task(task_id)
    assert task is not None
    assert task.subtask_progress == (1, 1)

    show = runner.invoke(["show", "trip"])
    assert "book hotel" in show.stdout


def test_export_import_round_trip(tmp_taskflow_dir):
    add_task("one", tags=["a"])
    runner = FnCLIRunner()
    out = tmp_taskflow_dir / "export.json"

    assert runner.invoke(["export", "--out", str(out)]).exit_code == 0
    doc = json.loads(out.read_text())
    assert [t["title"] for t in doc["tasks"]] == ["one"]

    result = runner.invoke(["import", str(out)])
    assert result.exit_code == 0
    assert "skipped 1" in result.stdout
    assert len(get_all_tasks()) == 1


def test_import_bad_file_warns_once(tmp_taskflow_dir):
    bad = tmp_taskflow_dir / "bad.json"
    bad.write_text("{nope")

    result = FnCLIRunner().invoke(["import", str(bad)])

    assert result.exit_code != 0
    assert result.stderr.count("Invalid file format") == 1


def test_config_set_and_ls(tmp_taskflow_dir):
    runner = FnCLIRunner()
    assert runner.invoke(["config", "set", "default_view", "all"]).exit_code == 0

    result = runner.invoke(["config", "ls"])
    assert "default_view" in result.stdout
    assert "all" in result.stdout


def test_config_set_bad_value(tmp_taskflow_dir):
    result = FnCLIRunner().invoke(["config", "set", "theme", "neon"])

    assert result.exit_code != 0
    assert "theme must be one of" in result.stderr


def test_clear_needs_confirmation(tmp_taskflow_dir):
    add_task("keep")
    runner = FnCLIRunner()

    assert runner.invoke(["clear"]).exit_code != 0
    assert len(get_all_tasks()) == 1

    assert runner.invoke(["clear", "--yes"]).exit_code == 0
    assert get_all_tasks() == []


def test_tags_lists_counts(tmp_taskflow_dir):
    add_task("a", tags=["work"])
    add_task("b", tags=["work", "home"])

    result = FnCLIRunner().invoke(["tags"])

    assert result.exit_code == 0
    assert "#work  2" in result.stdout
    assert "#home  1" in result.stdout


def test_remind_shows_tasks_inside_lead_time(tmp_taskflow_dir, frozen_now):
    from datetime import timedelta

    add_task("standup", due_at=frozen_now + timedelta(minutes=10))
    add_task("review", due_at=frozen_now + timedelta(hours=3))

    result = FnCLIRunner().invoke(["remind"])

    assert result.exit_code == 0
    assert "standup" in result.stdout
    assert "review" not in result.stdout


def test_corrupt_store_degrades_instead_of_crashing(tmp_taskflow_dir):
    store = tmp_taskflow_dir / "taskflow.db"
    for leftover in ("taskflow.db-wal", "taskflow.db-shm"):
        (tmp_taskflow_dir / leftover).unlink(missing_ok=True)
    store.write_bytes(b"this is not a sqlite database" * 64)
    runner = FnCLIRunner()

    for args in (["ls"], ["tags"], ["remind"], ["export"]):
        result = runner.invoke(args)
        assert result.exit_code == 0, args
        assert "task store unavailable" in result.stderr

    exported = json.loads(runner.invoke(["export"]).stdout)
    assert exported["tasks"] == []

    add = runner.invoke(["add", "anything"])
    assert add.exit_code == 1
    assert "Traceback" not in add.stderr
    assert "task store unavailable" in add.stderr
    assert "unreadable" in (tmp_taskflow_dir / "taskflow.log").read_text()


def test_add_and_edit_reminder(tmp_taskflow_dir, frozen_now):
    from datetime import datetime

    runner = FnCLIRunner()
    assert runner.invoke(["add", "pay", "rent", "--remind", "2025-03-14 08:00"]).exit_code == 0
    (task,) = get_all_tasks()
    assert task.reminder_at == datetime(2025, 3, 14, 8, 0)

    assert runner.invoke(["edit", "pay rent", "--remind", "tomorrow"]).exit_code == 0
    assert get_task(task.id).reminder_at == datetime(2025, 3, 13, 23, 59)

    assert runner.invoke(["edit", "pay rent", "--clear-remind"]).exit_code == 0
    assert get_task(task.id).reminder_at is None


def test_add_rejects_unparseable_reminder(tmp_taskflow_dir):
    result = FnCLIRunner().invoke(["add", "x", "--remind", "whenever"])

    assert result.exit_code != 0
    assert "reminder time" in result.stderr
    assert get_all_tasks() == []
