"""Controller behind the probe command line."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field

from dirac_probe import __version__
from dirac_probe.config import Settings
from dirac_probe.probe.client import DiracClient
from dirac_probe.probe.cycles import build_runner
from dirac_probe.probe.executor import CommandExecutor, Executor
from dirac_probe.probe.models import Severity
from dirac_probe.probe.report import render_report, summary_text
from dirac_probe.probe.store import JobStore
from dirac_probe.probe.tally import RunTally
from dirac_probe.runlog import run_logging

logger = logging.getLogger(__name__)

PROG_NAME = "check-dirac"

USAGE_LINES = [
    f"Usage: {PROG_NAME} [OPTION] ...",
    "Check some workflows on DIRAC",
    "Create a job and check its status",
    "Create a job, delete it, and check its status",
    "",
    "  -h|--help       Print this help message",
    "  -v|--version    Print probe version",
    "  -s|--submit     Submit test jobs",
    "  -c|--check      Check jobs statuses",
    "  -t|--notimeout  Do not stop process after 240s",
    "",
]


class ProbeMode:
    USAGE = "usage"
    VERSION = "version"
    SUBMIT = "submit"
    CHECK = "check"
    INCORRECT = "incorrect"


@dataclass(slots=True)
class ProbeCommand:
    """CLI input for one probe invocation."""

    mode: str
    enforce_deadline: bool = True
    unrecognized: tuple[str, ...] = ()


@dataclass(slots=True)
class ProbeResult:
    """Lines to print and the process exit code."""

    lines: list[str]
    exit_code: int
    usage: list[str] = field(default_factory=list)


class ProbeCliController:
    """Run one probe invocation and render its report."""

    def __init__(
        self,
        *,
        settings_factory: Callable[[], Settings] = Settings.from_env,
        executor: Executor | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.settings_factory = settings_factory
        self.executor = executor or CommandExecutor()
        self.clock = clock

    def run(self, command: ProbeCommand) -> ProbeResult:
        tally = RunTally(started_at=self.clock(), clock=self.clock)
        try:
            settings = self.settings_factory()
        except ValueError as error:
            tally.raise_to(Severity.UNKNOWN)
            tally.stop()
            return ProbeResult(
                lines=render_report(tally, [f"Configuration error: {error}"]),
                exit_code=int(tally.severity),
            )

        store = JobStore(settings.work_dir)
        created = store.ensure_layout()
        usage: list[str] = []
        with run_logging(
            run_log=store.run_log_path(tally.started_at),
            debug_file=settings.resolved_debug_file,
            debug=settings.debug,
        ) as capture:
            for directory in created:
                logger.warning("%s Not found !", directory)
                logger.info("Creating in %s", directory)
            try:
                usage = self._dispatch(command, settings=settings, store=store, tally=tally)
            except Exception:  # noqa: BLE001
                logger.exception("Probe run failed unexpectedly")
                tally.raise_to(Severity.UNKNOWN)

            tally.stop()
            logger.info(summary_text(tally))
            logger.info("Global status : %s", tally.severity.name)
            lines = render_report(tally, list(capture.lines))
        return ProbeResult(lines=lines, exit_code=int(tally.severity), usage=usage)

    def _dispatch(
        self,
        command: ProbeCommand,
        *,
        settings: Settings,
        store: JobStore,
        tally: RunTally,
    ) -> list[str]:
        if not command.enforce_deadline:
            logger.info("Run without a %ss timeout !", settings.timeouts.nagios_seconds)

        if command.mode == ProbeMode.USAGE:
            logger.info("Displaying usage")
            return USAGE_LINES
        if command.mode == ProbeMode.VERSION:
            logger.debug("Displaying version (%s)", __version__)
            logger.info("%s version %s", PROG_NAME, __version__)
            return []
        if command.mode in (ProbeMode.SUBMIT, ProbeMode.CHECK):
            client = DiracClient(
                scripts_dir=settings.resolved_scripts_dir,
                timeout_seconds=settings.timeouts.command_seconds,
                executor=self.executor,
                tally=tally,
            )
            runner = build_runner(
                settings,
                store=store,
                client=client,
                tally=tally,
                enforce_deadline=command.enforce_deadline,
                clock=self.clock,
            )
            if command.mode == ProbeMode.SUBMIT:
                runner.submit_cycle()
            else:
                runner.check_cycle()
            return []

        for argument in command.unrecognized:
            logger.warning("Incorrect input : %s", argument)
        logger.info("Displaying usage")
        tally.raise_to(Severity.CRITICAL)
        return USAGE_LINES
