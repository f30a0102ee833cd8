"""Submit and check cycles run by one probe invocation."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass

from dirac_probe.config import Settings
from dirac_probe.probe.classifier import StatusClassifier
from dirac_probe.probe.client import DiracClient
from dirac_probe.probe.environment import ProbeEnvironmentError, check_environment
from dirac_probe.probe.models import JobRecord, Severity, is_job_id, parse_submitted_job_id
from dirac_probe.probe.store import JobStore
from dirac_probe.probe.tally import RunTally

logger = logging.getLogger(__name__)

SUBMISSIONS_PER_CYCLE = 2


@dataclass(slots=True)
class Deadline:
    """Soft run deadline, polled between jobs."""

    started_at: float
    budget_seconds: int
    enabled: bool = True
    clock: Callable[[], float] = time.time

    def expired(self) -> bool:
        if not self.enabled:
            return False
        return self.clock() - self.started_at >= self.budget_seconds


class ProbeRunner:
    """Drive the environment check, submissions and job checks."""

    def __init__(  # noqa: PLR0913
        self,
        *,
        settings: Settings,
        store: JobStore,
        client: DiracClient,
        classifier: StatusClassifier,
        tally: RunTally,
        deadline: Deadline,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.settings = settings
        self.store = store
        self.client = client
        self.classifier = classifier
        self.tally = tally
        self.deadline = deadline
        self.clock = clock

    def submit_cycle(self) -> Severity:
        logger.info("------------- New submission starting --------------")
        if not self._environment_ok():
            return self.tally.severity
        logger.info("Submitting some jobs...")

        last: JobRecord | None = None
        for _ in range(SUBMISSIONS_PER_CYCLE):
            logger.info("---")
            last = self.submit_job()

        if last is None:
            logger.warning("Last Submission failed, cannot kill nonexistent job")
            return self.tally.severity

        logger.info("JobID to be killed : %s", last.remote_job_id)
        outcome = self.client.kill(last.remote_job_id)
        if outcome.succeeded:
            self.tally.record_job(Severity.OK)
        else:
            self.tally.record_job(Severity.WARNING)
        return self.tally.severity

    def submit_job(self) -> JobRecord | None:
        """Submit one canary job and persist its marker on success."""

        logger.info("Submitting job from %s", self.settings.jdl_path)
        outcome = self.client.submit(self.settings.jdl_path)
        job_id = "" if outcome.timed_out else parse_submitted_job_id(outcome.stdout)
        if not job_id:
            logger.error("Cannot submit job !")
            self.tally.record_job(Severity.CRITICAL)
            return None
        logger.info("JobId submitted is %s", job_id)
        record = self.store.create(job_id, now=self.clock())
        self.tally.record_job(Severity.OK)
        return record

    def check_cycle(self) -> Severity:
        logger.info("--------------- New check starting -----------------")
        if not self._environment_ok():
            return self.tally.severity
        logger.info("Checking jobs from files (if any)...")

        allowed = self.settings.timeouts.allowed_seconds
        logger.info(
            "Total allowed running time before skipping jobs : %sm%ss",
            allowed // 60,
            allowed % 60,
        )

        checked_any = False
        for record in self.store.list_all():
            checked_any = True
            logger.info("---")
            if not record.has_valid_id:
                logger.warning(
                    "What is this ? (%s from %s) Is not a JobID !",
                    record.remote_job_id,
                    record.path,
                )
                continue
            if self.deadline.expired():
                logger.warning("The script was launched almost %ss ago...", allowed)
                logger.warning("Skipping job %s", record.remote_job_id)
                self.tally.record_job(Severity.WARNING)
                logger.warning(
                    "JobID %s : NotChecked / Action=Skipping; (WARNING)",
                    record.remote_job_id,
                )
                continue
            logger.info("Found JobID %s from file %s", record.remote_job_id, record.path)
            result = self.classifier.check(record)
            self.tally.record_job(result.severity)

        if not checked_any:
            logger.info("No job found to check.")
        return self.tally.severity

    def _environment_ok(self) -> bool:
        try:
            severity = check_environment(self.settings, self.client)
        except ProbeEnvironmentError as error:
            logger.error("Environment check failed: %s", error)
            self.tally.raise_to(Severity.CRITICAL)
            return False
        self.tally.raise_to(severity)
        if severity >= Severity.CRITICAL:
            logger.error("Environment is not usable, stopping here")
            return False
        return True


def build_runner(
    settings: Settings,
    *,
    store: JobStore,
    client: DiracClient,
    tally: RunTally,
    enforce_deadline: bool = True,
    clock: Callable[[], float] = time.time,
) -> ProbeRunner:
    classifier = StatusClassifier(
        client=client,
        store=store,
        thresholds=settings.thresholds,
        expected_output=settings.job_name,
        clock=clock,
    )
    deadline = Deadline(
        started_at=tally.started_at,
        budget_seconds=settings.timeouts.skip_after_seconds,
        enabled=enforce_deadline,
        clock=clock,
    )
    return ProbeRunner(
        settings=settings,
        store=store,
        client=client,
        classifier=classifier,
        tally=tally,
        deadline=deadline,
        clock=clock,
    )
