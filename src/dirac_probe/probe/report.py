"""Nagios plugin output for one probe run."""

from __future__ import annotations

from dirac_probe.probe.tally import RunTally


def summary_text(tally: RunTally) -> str:
    return " ".join(f"{name}={value};" for name, value in tally.metrics())


def perfdata_text(tally: RunTally) -> str:
    return " ".join(f"{name}={value};;;;" for name, value in tally.metrics())


def render_report(tally: RunTally, log_lines: list[str]) -> list[str]:
    """Status line, the run's log lines, then the perfdata line."""

    return [
        f"{tally.severity.name} / {summary_text(tally)}",
        *log_lines,
        f"|{perfdata_text(tally)}",
    ]
