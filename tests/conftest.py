"""Shared test fixtures."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from pathlib import Path

import pytest

from dirac_probe.config import JobThresholds, ProxySettings, Settings, TimeoutSettings
from dirac_probe.probe.client import DiracClient
from dirac_probe.probe.models import CommandOutcome
from dirac_probe.probe.store import JobStore
from dirac_probe.probe.tally import RunTally

NOW = 1_700_000_000.0

Responder = CommandOutcome | Callable[[Sequence[str]], CommandOutcome]


def ok(stdout: str = "") -> CommandOutcome:
    return CommandOutcome(exit_code=0, stdout=stdout)


def timeout() -> CommandOutcome:
    return CommandOutcome(exit_code=124, stdout="", timed_out=True)


def error(exit_code: int = 1) -> CommandOutcome:
    return CommandOutcome(exit_code=exit_code, stdout="")


def status_output(job_id: str, status: str) -> str:
    return f"JobID={job_id} Status={status}; MinorStatus=Pending; Site=ANY;\n"


@dataclass
class FakeExecutor:
    """Answer DIRAC commands from a script keyed by command name."""

    responses: dict[str, list[Responder]] = field(default_factory=dict)
    calls: list[list[str]] = field(default_factory=list)

    def add(self, command: str, *outcomes: Responder) -> FakeExecutor:
        self.responses.setdefault(command, []).extend(outcomes)
        return self

    def run(self, argv: Sequence[str], timeout_seconds: int) -> CommandOutcome:
        self.calls.append(list(argv))
        command = Path(argv[0]).name
        queue = self.responses.get(command)
        if not queue:
            raise AssertionError(f"Unexpected command: {' '.join(argv)}")
        responder = queue.pop(0) if len(queue) > 1 else queue[0]
        if callable(responder):
            return responder(argv)
        return responder

    def commands(self) -> list[str]:
        return [Path(argv[0]).name for argv in self.calls]


class FakeClock:
    def __init__(self, now: float = NOW) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    proxy_file = tmp_path / "x509up_u500"
    return Settings(
        dirac_path=tmp_path / "dirac",
        scripts_dir=tmp_path / "dirac" / "scripts",
        work_dir=tmp_path / "work",
        debug=True,
        debug_file=tmp_path / "work" / "dirac_debug_log",
        dirac_environment=str(tmp_path / "dirac"),
        timeouts=TimeoutSettings(),
        thresholds=JobThresholds(),
        proxy=ProxySettings(user_proxy=proxy_file),
    )


@pytest.fixture()
def store(settings: Settings) -> JobStore:
    job_store = JobStore(settings.work_dir)
    job_store.ensure_layout()
    return job_store


@pytest.fixture()
def executor() -> FakeExecutor:
    return FakeExecutor()


@pytest.fixture()
def tally(clock: FakeClock) -> RunTally:
    return RunTally(started_at=clock(), clock=clock)


@pytest.fixture()
def client(settings: Settings, executor: FakeExecutor, tally: RunTally) -> DiracClient:
    return DiracClient(
        scripts_dir=settings.resolved_scripts_dir,
        timeout_seconds=settings.timeouts.command_seconds,
        executor=executor,
        tally=tally,
    )
