from __future__ import annotations

import stat
import sys
import time
from pathlib import Path

import allure

from dirac_probe.probe.executor import (
    NOT_STARTED_EXIT_CODE,
    TIMEOUT_EXIT_CODE,
    CommandExecutor,
)

pytestmark = [
    allure.epic("Job Lifecycle"),
    allure.feature("Command Execution"),
]


def test_successful_command_captures_stdout() -> None:
    outcome = CommandExecutor().run([sys.executable, "-c", "print('JobID = 7')"], 10)

    assert outcome.exit_code == 0
    assert not outcome.timed_out
    assert outcome.stdout.strip() == "JobID = 7"
    assert outcome.succeeded


def test_non_zero_exit_is_reported_as_is() -> None:
    outcome = CommandExecutor().run([sys.executable, "-c", "raise SystemExit(3)"], 10)

    assert outcome.exit_code == 3
    assert not outcome.timed_out


def test_slow_command_is_terminated_with_timeout_code() -> None:
    outcome = CommandExecutor().run(
        [sys.executable, "-c", "import time; print('late'); time.sleep(30)"],
        1,
    )

    assert outcome.timed_out
    assert outcome.exit_code == TIMEOUT_EXIT_CODE
    assert outcome.stdout == ""


def test_missing_executable_does_not_raise(tmp_path: Path) -> None:
    outcome = CommandExecutor().run([str(tmp_path / "dirac-wms-job-status"), "1"], 5)

    assert outcome.exit_code == NOT_STARTED_EXIT_CODE
    assert not outcome.timed_out


def _write_script(path: Path, body: str) -> Path:
    path.write_text("#!/bin/bash\n" + body, "utf-8")
    path.chmod(path.stat().st_mode | stat.S_IXUSR)
    return path


def test_shell_wrapper_with_slow_child_times_out(tmp_path: Path) -> None:
    script = _write_script(tmp_path / "dirac-wms-job-status", "sleep 20\necho done\n")

    started = time.monotonic()
    outcome = CommandExecutor().run([str(script), "1"], 1)

    assert outcome.timed_out
    assert outcome.exit_code == TIMEOUT_EXIT_CODE
    assert time.monotonic() - started < 10


def test_background_child_holding_the_pipe_is_stopped(tmp_path: Path) -> None:
    marker = tmp_path / "survived"
    script = _write_script(
        tmp_path / "dirac-wms-job-get-output",
        f"(sleep 5; touch {marker}) &\nwait\n",
    )

    outcome = CommandExecutor().run([str(script)], 1)

    assert outcome.timed_out
    time.sleep(6)
    assert not marker.exists()
