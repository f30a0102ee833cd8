"""Thin wrapper over the DIRAC workload-management command line tools."""

from __future__ import annotations

import logging
from pathlib import Path

from dirac_probe.probe.executor import Executor
from dirac_probe.probe.models import CommandOutcome
from dirac_probe.probe.tally import RunTally

logger = logging.getLogger(__name__)


class DiracClient:
    """Run DIRAC commands and account every run in the tally.

    Each call goes through the executor with the same per-command timeout and
    is counted once, as a timed-out or completed command.
    """

    def __init__(
        self,
        *,
        scripts_dir: Path,
        timeout_seconds: int,
        executor: Executor,
        tally: RunTally,
    ) -> None:
        self.scripts_dir = scripts_dir
        self.timeout_seconds = timeout_seconds
        self.executor = executor
        self.tally = tally

    def proxy_info(self) -> CommandOutcome:
        return self._run("dirac-proxy-info", "-v")

    def submit(self, jdl_path: Path) -> CommandOutcome:
        return self._run("dirac-wms-job-submit", str(jdl_path))

    def status(self, job_id: str) -> CommandOutcome:
        return self._run("dirac-wms-job-status", job_id)

    def get_output(self, job_id: str, output_root: Path) -> CommandOutcome:
        return self._run("dirac-wms-job-get-output", "-D", str(output_root), job_id)

    def delete(self, job_id: str) -> CommandOutcome:
        logger.info("Deleting job %s", job_id)
        return self._run("dirac-wms-job-delete", job_id)

    def kill(self, job_id: str) -> CommandOutcome:
        logger.info("Killing job %s", job_id)
        return self._run("dirac-wms-job-kill", job_id)

    def reschedule(self, job_id: str) -> CommandOutcome:
        logger.info("Rescheduling job %s", job_id)
        return self._run("dirac-wms-job-reschedule", job_id)

    def _run(self, command: str, *args: str) -> CommandOutcome:
        argv = [str(self.scripts_dir / command), *args]
        outcome = self.executor.run(argv, self.timeout_seconds)
        if outcome.timed_out:
            logger.warning("There was a timeout (%s s) in dirac command", self.timeout_seconds)
            logger.debug("Exit code is %s : timeout", outcome.exit_code)
        elif outcome.exit_code == 0:
            logger.info("Exit code is %s : ok", outcome.exit_code)
        else:
            # Counted as a completed command; callers decide what the code means.
            logger.info("Unexpected exit code %s from %s", outcome.exit_code, command)
        self.tally.record_command(outcome)
        return outcome
