import io
from contextlib import redirect_stderr, redirect_stdout
from dataclasses import dataclass
from datetime import datetime

import pytest

from taskflow import config, db
from taskflow.lib import ansi, clock

FROZEN_NOW = datetime(2025, 3, 12, 10, 30)


@pytest.fixture
def tmp_taskflow_dir(tmp_path, monkeypatch):
    """Point every taskflow path at a fresh temp dir and migrate the store."""
    monkeypatch.setattr(config, "TASKFLOW_DIR", tmp_path)
    monkeypatch.setattr(config, "DB_PATH", tmp_path / "taskflow.db")
    monkeypatch.setattr(config, "CONFIG_PATH", tmp_path / "config.yaml")
    monkeypatch.setattr(config, "LOG_PATH", tmp_path / "taskflow.log")
    config.Config.reset()
    db.init()
    yield tmp_path
    config.Config.reset()
    ansi.use(ansi.DEFAULT)


@pytest.fixture
def frozen_now(monkeypatch):
    monkeypatch.setattr(clock, "now", lambda: FROZEN_NOW)
    return FROZEN_NOW


@dataclass
class CLIResult:
    exit_code: int
    stdout: str
    stderr: str


class FnCLIRunner:
    """Runs taskflow commands in-process and captures their output."""

    def invoke(self, args: list[str]) -> CLIResult:
        from taskflow.cli import run

        out, err = io.StringIO(), io.StringIO()
        with redirect_stdout(out), redirect_stderr(err):
            try:
                code = run(list(args))
            except SystemExit as e:
                code = e.code if isinstance(e.code, int) else 1
        return CLIResult(exit_code=code or 0, stdout=out.getvalue(), stderr=err.getvalue())
