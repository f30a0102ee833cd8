"""Subprocess runner for remote job-management commands."""

from __future__ import annotations

import logging
import os
import signal
import subprocess
from collections.abc import Sequence
from typing import Protocol

from dirac_probe.probe.models import CommandOutcome

logger = logging.getLogger(__name__)

TIMEOUT_EXIT_CODE = 124
NOT_STARTED_EXIT_CODE = 127
_SHUTDOWN_GRACE_SECONDS = 2


class Executor(Protocol):
    """Protocol implemented by command runners."""

    def run(self, argv: Sequence[str], timeout_seconds: int) -> CommandOutcome:
        """Run one command and return its outcome without raising."""


class CommandExecutor:
    """Run one external command under a wall-clock limit.

    Each command gets its own session so a timeout can stop the whole process
    group, including children that inherited the output pipes.
    """

    def run(self, argv: Sequence[str], timeout_seconds: int) -> CommandOutcome:
        logger.info("Running command : %s", " ".join(argv))
        try:
            process = subprocess.Popen(  # noqa: S603
                list(argv),
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                start_new_session=True,
            )
        except OSError as error:
            logger.warning("Command failed to start: %s", error)
            return CommandOutcome(exit_code=NOT_STARTED_EXIT_CODE, stdout="")

        try:
            stdout, stderr = process.communicate(timeout=timeout_seconds)
        except subprocess.TimeoutExpired:
            _terminate_process(process)
            return CommandOutcome(exit_code=TIMEOUT_EXIT_CODE, stdout="", timed_out=True)

        if stderr:
            logger.debug("stderr: %s", stderr.strip())
        return CommandOutcome(exit_code=process.returncode, stdout=stdout or "")


def _terminate_process(process: subprocess.Popen[str]) -> None:
    """Stop the command's process group and release its pipes."""

    _signal_group(process, signal.SIGTERM)
    if not _reap(process):
        _signal_group(process, signal.SIGKILL)
        if not _reap(process):
            logger.warning("Command %s still holds its output after SIGKILL", process.pid)
    for stream in (process.stdout, process.stderr):
        if stream is not None:
            stream.close()


def _signal_group(process: subprocess.Popen[str], signum: int) -> None:
    try:
        os.killpg(process.pid, signum)
    except ProcessLookupError:
        return
    except OSError:
        try:
            process.send_signal(signum)
        except OSError:
            return


def _reap(process: subprocess.Popen[str]) -> bool:
    try:
        process.communicate(timeout=_SHUTDOWN_GRACE_SECONDS)
    except subprocess.TimeoutExpired:
        return False
    return process.returncode is not None
