"""Domain models for probe jobs, command outcomes and severities."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum, IntEnum
from pathlib import Path


class Severity(IntEnum):
    """Nagios plugin states; the integer value is the process exit code."""

    OK = 0
    WARNING = 1
    CRITICAL = 2
    UNKNOWN = 3
    DEPENDENT = 4


class CommandSignal(str, Enum):
    """Command-level outcome, remapped to a severity before aggregation."""

    COMMAND_OK = "command_ok"
    TIMEOUT = "timeout"

    @property
    def severity(self) -> Severity:
        return Severity.WARNING if self is CommandSignal.TIMEOUT else Severity.OK


class JobStatus(str, Enum):
    """Remote job states reported by the workload management system."""

    RECEIVED = "Received"
    CHECKING = "Checking"
    WAITING = "Waiting"
    RUNNING = "Running"
    MATCHED = "Matched"
    COMPLETED = "Completed"
    DELETED = "Deleted"
    DONE = "Done"
    STALLED = "Stalled"
    FAILED = "Failed"
    KILLED = "Killed"
    NOT_FOUND = "NotFound"
    QUERY_TIMEOUT = "UnKnown"
    UNRECOGNIZED = "Unrecognized"


ACTIVE_STATUSES: frozenset[JobStatus] = frozenset(
    {
        JobStatus.RECEIVED,
        JobStatus.CHECKING,
        JobStatus.WAITING,
        JobStatus.RUNNING,
        JobStatus.MATCHED,
        JobStatus.COMPLETED,
        JobStatus.DELETED,
    },
)


class JobAction(str, Enum):
    """Action label written to the per-job summary line."""

    WAITING = "Waiting"
    TOO_LONG = "Taking too long time !"
    DELETING = "Deleting"
    RESCHEDULING = "Rescheduling"
    CLEANING = "Cleaning"
    TIMEOUT = "None/Timeout"
    ERROR = "None/Error"
    SKIPPING = "Skipping"
    NOT_DEFINED = "Not_defined_yet"


@dataclass(slots=True)
class CommandOutcome:
    """Result of one external command run."""

    exit_code: int
    stdout: str
    timed_out: bool = False

    @property
    def succeeded(self) -> bool:
        return self.exit_code == 0 and not self.timed_out

    @property
    def signal(self) -> CommandSignal:
        return CommandSignal.TIMEOUT if self.timed_out else CommandSignal.COMMAND_OK


@dataclass(slots=True)
class JobRecord:
    """On-disk marker for one submitted canary job."""

    submission_epoch: int
    path: Path
    remote_job_id: str

    @property
    def has_valid_id(self) -> bool:
        return is_job_id(self.remote_job_id)


@dataclass(slots=True)
class JobCheck:
    """Outcome of one status check for one job."""

    job_id: str
    status: JobStatus
    action: JobAction
    severity: Severity

    def summary(self) -> str:
        return (
            f"JobID {self.job_id} : Status={self.status.value}; "
            f"Action={self.action.value}; ({self.severity.name})"
        )


_JOB_ID_RE = re.compile(r"^-?\d+$")
_STATUS_RE = re.compile(r"\bStatus=([A-Za-z]+);")
_SUBMITTED_ID_RE = re.compile(r"JobID\s*=\s*(\d+)")
_TIMELEFT_RE = re.compile(r"^\s*timeleft\s*:\s*(\d+):", re.MULTILINE)


def is_job_id(value: str) -> bool:
    """Return True when value looks like an integer job id."""

    return bool(_JOB_ID_RE.match(value.strip()))


def parse_job_status(output: str) -> JobStatus | None:
    """Extract the job status from `dirac-wms-job-status` output.

    Returns None when the output carries no status at all; the caller decides
    whether that means "not found" or "query timed out".
    """

    match = _STATUS_RE.search(output)
    if match is None:
        return None
    try:
        return JobStatus(match.group(1))
    except ValueError:
        return JobStatus.UNRECOGNIZED


def parse_submitted_job_id(output: str) -> str:
    match = _SUBMITTED_ID_RE.search(output)
    return match.group(1) if match else ""


def parse_proxy_hours_left(output: str) -> int | None:
    """Read the hours part of the `timeleft : HH:MM:SS` line."""

    match = _TIMELEFT_RE.search(output)
    if match is None:
        return None
    return int(match.group(1))
