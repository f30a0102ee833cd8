"""Per-run counters and worst-case severity."""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass, field

from dirac_probe.probe.models import CommandOutcome, CommandSignal, Severity


@dataclass(slots=True)
class RunTally:
    """Aggregates job and command outcomes for one probe invocation.

    The overall severity is the running maximum of everything recorded; it
    never goes down within a run.
    """

    started_at: float = field(default_factory=time.time)
    clock: Callable[[], float] = time.time
    severity: Severity = Severity.OK
    jobs_total: int = 0
    jobs_ok: int = 0
    jobs_warning: int = 0
    jobs_critical: int = 0
    commands_total: int = 0
    commands_timed_out: int = 0
    finished_at: float | None = None

    def record_job(self, severity: Severity) -> None:
        # UNKNOWN and DEPENDENT raise the severity but are not counted as jobs.
        if severity is Severity.OK:
            self.jobs_total += 1
            self.jobs_ok += 1
        elif severity is Severity.WARNING:
            self.jobs_total += 1
            self.jobs_warning += 1
        elif severity is Severity.CRITICAL:
            self.jobs_total += 1
            self.jobs_critical += 1
        self.raise_to(severity)

    def record_command(self, outcome: CommandOutcome) -> None:
        signal = outcome.signal
        self.commands_total += 1
        if signal is CommandSignal.TIMEOUT:
            self.commands_timed_out += 1
        self.raise_to(signal.severity)

    def raise_to(self, severity: Severity) -> None:
        if severity > self.severity:
            self.severity = severity

    def stop(self) -> None:
        """Freeze the elapsed time so every rendering reports the same value."""

        if self.finished_at is None:
            self.finished_at = self.clock()

    @property
    def elapsed_seconds(self) -> int:
        end = self.clock() if self.finished_at is None else self.finished_at
        return int(end - self.started_at)

    def metrics(self) -> list[tuple[str, int]]:
        """Ordered metric name/value pairs used by the report."""

        return [
            ("exec_time", self.elapsed_seconds),
            ("nb_jobs", self.jobs_total),
            ("nb_jobs_ok", self.jobs_ok),
            ("nb_jobs_ko", self.jobs_critical),
            ("nb_jobs_warn", self.jobs_warning),
            ("nb_cmds", self.commands_total),
            ("nb_timeouts", self.commands_timed_out),
        ]
