"""Job status state machine: remote status to action and severity."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable

from dirac_probe.config import JobThresholds
from dirac_probe.probe.client import DiracClient
from dirac_probe.probe.models import (
    ACTIVE_STATUSES,
    CommandOutcome,
    JobAction,
    JobCheck,
    JobRecord,
    JobStatus,
    Severity,
    parse_job_status,
)
from dirac_probe.probe.store import JobStore

logger = logging.getLogger(__name__)

# Seconds deducted from a job's age for the latency of the status call.
LATENCY_CORRECTION_SECONDS = 1
OUTPUT_FILENAME = "StdOut"


class StatusClassifier:
    """Decide what to do with one job from its remote status and age.

    Every corrective command (delete, reschedule) must complete for the
    action to be reported as successful; a timeout or an error exit
    downgrades it to WARNING.
    """

    def __init__(
        self,
        *,
        client: DiracClient,
        store: JobStore,
        thresholds: JobThresholds,
        expected_output: str,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.client = client
        self.store = store
        self.thresholds = thresholds
        self.expected_output = expected_output
        self.clock = clock

    def check(self, record: JobRecord) -> JobCheck:
        job_id = record.remote_job_id
        logger.info("Checking status of job %s", job_id)
        query = self.client.status(job_id)
        status = parse_job_status(query.stdout)

        if status is None:
            if query.timed_out:
                status = JobStatus.QUERY_TIMEOUT
            else:
                status = JobStatus.NOT_FOUND
        logger.info("Status=%s;", status.value)

        result = self._dispatch(record, status)
        logger.info(result.summary())
        return result

    def _dispatch(self, record: JobRecord, status: JobStatus) -> JobCheck:
        job_id = record.remote_job_id
        if status is JobStatus.QUERY_TIMEOUT:
            return JobCheck(job_id, status, JobAction.TIMEOUT, Severity.WARNING)
        if status is JobStatus.NOT_FOUND:
            self._clean(record)
            return JobCheck(job_id, status, JobAction.CLEANING, Severity.OK)
        if status in ACTIVE_STATUSES:
            severity, action = self._check_age(record, self.thresholds.active_stale_seconds)
            return JobCheck(job_id, status, action, severity)
        if status is JobStatus.DONE:
            return self._check_done(record)
        if status is JobStatus.STALLED:
            return self._check_stalled(record)
        if status is JobStatus.FAILED:
            return self._check_failed(record)
        if status is JobStatus.KILLED:
            return self._check_killed(record)
        logger.warning("Unrecognized status for job %s, leaving it untouched", job_id)
        return JobCheck(job_id, status, JobAction.NOT_DEFINED, Severity.UNKNOWN)

    def _check_done(self, record: JobRecord) -> JobCheck:
        job_id = record.remote_job_id
        logger.info("Checking output of job %s", job_id)
        fetch = self.client.get_output(job_id, self.store.outputs_dir)

        if self._output_matches(job_id):
            logger.info("Output is good !")
            delete = self.client.delete(job_id)
            action = _confirmed_action(delete, JobAction.DELETING)
            if action is JobAction.DELETING:
                self._clean(record)
                return JobCheck(job_id, JobStatus.DONE, action, Severity.OK)
            return JobCheck(job_id, JobStatus.DONE, action, Severity.WARNING)
        if fetch.timed_out:
            logger.warning("Cannot stat Output (timeout)")
            return JobCheck(job_id, JobStatus.DONE, JobAction.TIMEOUT, Severity.WARNING)
        logger.error("Output is bad..")
        return JobCheck(job_id, JobStatus.DONE, JobAction.ERROR, Severity.CRITICAL)

    def _check_stalled(self, record: JobRecord) -> JobCheck:
        job_id = record.remote_job_id
        severity, action = self._check_age(record, self.thresholds.stalled_stale_seconds)
        if severity is Severity.OK:
            return JobCheck(job_id, JobStatus.STALLED, action, severity)
        delete = self.client.delete(job_id)
        action = _confirmed_action(delete, JobAction.DELETING)
        return JobCheck(job_id, JobStatus.STALLED, action, Severity.WARNING)

    def _check_failed(self, record: JobRecord) -> JobCheck:
        job_id = record.remote_job_id
        delete = self.client.delete(job_id)
        action = _confirmed_action(delete, JobAction.DELETING)
        if action is JobAction.DELETING:
            self._clean(record)
        return JobCheck(job_id, JobStatus.FAILED, action, Severity.CRITICAL)

    def _check_killed(self, record: JobRecord) -> JobCheck:
        job_id = record.remote_job_id
        severity, action = self._check_age(
            record,
            self.thresholds.killed_reschedule_seconds,
        )
        if severity is Severity.OK:
            return JobCheck(job_id, JobStatus.KILLED, action, severity)
        reschedule = self.client.reschedule(job_id)
        action = _confirmed_action(reschedule, JobAction.RESCHEDULING)
        if action is JobAction.RESCHEDULING:
            return JobCheck(job_id, JobStatus.KILLED, action, Severity.OK)
        return JobCheck(job_id, JobStatus.KILLED, action, Severity.WARNING)

    def _check_age(self, record: JobRecord, threshold_seconds: int) -> tuple[Severity, JobAction]:
        window = threshold_seconds - LATENCY_CORRECTION_SECONDS
        age = int(self.clock()) - record.submission_epoch - LATENCY_CORRECTION_SECONDS
        logger.info(
            "Checking if job was created less than %sh ago",
            threshold_seconds // 3600,
        )
        logger.info("Time difference is %s s", age)
        if age < window:
            logger.info("Seems good, waiting...")
            return Severity.OK, JobAction.WAITING
        logger.warning("Seems too long !")
        return Severity.WARNING, JobAction.TOO_LONG

    def _output_matches(self, job_id: str) -> bool:
        stdout_path = self.store.output_dir(job_id) / OUTPUT_FILENAME
        if not stdout_path.is_file():
            return False
        return stdout_path.read_text("utf-8").rstrip("\n") == self.expected_output

    def _clean(self, record: JobRecord) -> None:
        logger.info("Cleaning job %s (%s)", record.remote_job_id, record.path)
        self.store.clean_outputs(record.remote_job_id)
        self.store.delete(record.path)


def _confirmed_action(outcome: CommandOutcome, success: JobAction) -> JobAction:
    if outcome.timed_out:
        return JobAction.TIMEOUT
    if outcome.exit_code != 0:
        return JobAction.ERROR
    return success
