"""Runtime configuration for the DIRAC probe."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

DEFAULT_JOB_NAME = "FG_Monitoring_Simple_Job"


@dataclass(slots=True)
class TimeoutSettings:
    """Per-command and whole-run time limits, in seconds."""

    command_seconds: int = 30
    nagios_seconds: int = 300
    skip_after_seconds: int = 230

    @property
    def allowed_seconds(self) -> int:
        """Run time left after reserving three command timeouts and a margin."""

        return self.nagios_seconds - self.command_seconds * 3 - 2


@dataclass(slots=True)
class JobThresholds:
    """How long a job may sit in a non-terminal status before acting on it."""

    active_stale_seconds: int = 14_400
    stalled_stale_seconds: int = 14_400
    killed_reschedule_seconds: int = 3_600


@dataclass(slots=True)
class ProxySettings:
    """Grid proxy validity thresholds."""

    user_proxy: Path = field(default_factory=lambda: Path(f"/tmp/x509up_u{os.getuid()}"))
    critical_hours: int = 24
    warning_hours: int = 168


@dataclass(slots=True)
class Settings:
    """Probe settings grouped by concern."""

    dirac_path: Path = Path("/usr/lib/dirac")
    scripts_dir: Path | None = None
    work_dir: Path = Path("/tmp")
    debug: bool = True
    debug_file: Path | None = None
    job_name: str = DEFAULT_JOB_NAME
    dirac_environment: str | None = None
    timeouts: TimeoutSettings = field(default_factory=TimeoutSettings)
    thresholds: JobThresholds = field(default_factory=JobThresholds)
    proxy: ProxySettings = field(default_factory=ProxySettings)

    @property
    def resolved_scripts_dir(self) -> Path:
        return self.scripts_dir or self.dirac_path / "scripts"

    @property
    def resolved_debug_file(self) -> Path:
        return self.debug_file or self.work_dir / "dirac_debug_log"

    @property
    def jdl_path(self) -> Path:
        return self.work_dir / f"{self.job_name}.jdl"

    @classmethod
    def from_env(cls) -> Settings:
        """Load settings from environment with the probe's historical defaults."""

        dirac_path = Path(os.getenv("DIRAC_PROBE_DIRAC_PATH", "/usr/lib/dirac"))
        scripts_raw = os.getenv("DIRAC_PROBE_SCRIPTS_DIR") or os.getenv("DIRACSCRIPTS")
        debug_file_raw = os.getenv("DIRAC_PROBE_DEBUG_FILE")
        proxy_raw = os.getenv("X509_USER_PROXY")
        settings = cls(
            dirac_path=dirac_path,
            scripts_dir=Path(scripts_raw) if scripts_raw else None,
            work_dir=Path(os.getenv("DIRAC_PROBE_TMP_PATH", "/tmp")),
            debug=_env_bool("DIRAC_PROBE_DEBUG", default=True),
            debug_file=Path(debug_file_raw) if debug_file_raw else None,
            job_name=os.getenv("DIRAC_PROBE_JOB_NAME", DEFAULT_JOB_NAME),
            dirac_environment=os.getenv("DIRAC") or None,
            timeouts=TimeoutSettings(
                command_seconds=_env_int("DIRAC_PROBE_COMMAND_TIMEOUT", 30),
                nagios_seconds=_env_int("DIRAC_PROBE_NAGIOS_TIMEOUT", 300),
                skip_after_seconds=_env_int("DIRAC_PROBE_SKIP_AFTER", 230),
            ),
            thresholds=JobThresholds(
                active_stale_seconds=_env_int("DIRAC_PROBE_ACTIVE_STALE_SECONDS", 14_400),
                stalled_stale_seconds=_env_int("DIRAC_PROBE_STALLED_STALE_SECONDS", 14_400),
                killed_reschedule_seconds=_env_int(
                    "DIRAC_PROBE_KILLED_RESCHEDULE_SECONDS",
                    3_600,
                ),
            ),
            proxy=ProxySettings(
                user_proxy=(
                    Path(proxy_raw) if proxy_raw else Path(f"/tmp/x509up_u{os.getuid()}")
                ),
                critical_hours=_env_int("DIRAC_PROBE_PROXY_CRITICAL_HOURS", 24),
                warning_hours=_env_int("DIRAC_PROBE_PROXY_WARNING_HOURS", 168),
            ),
        )
        settings.validate()
        return settings

    def validate(self) -> None:
        """Raise configuration error for values the probe cannot work with."""

        if self.timeouts.command_seconds <= 0:
            raise ValueError("DIRAC_PROBE_COMMAND_TIMEOUT must be > 0.")
        if self.timeouts.nagios_seconds <= 0:
            raise ValueError("DIRAC_PROBE_NAGIOS_TIMEOUT must be > 0.")
        if self.timeouts.skip_after_seconds >= self.timeouts.nagios_seconds:
            raise ValueError(
                "DIRAC_PROBE_SKIP_AFTER must be lower than DIRAC_PROBE_NAGIOS_TIMEOUT.",
            )
        for name, value in (
            ("DIRAC_PROBE_ACTIVE_STALE_SECONDS", self.thresholds.active_stale_seconds),
            ("DIRAC_PROBE_STALLED_STALE_SECONDS", self.thresholds.stalled_stale_seconds),
            (
                "DIRAC_PROBE_KILLED_RESCHEDULE_SECONDS",
                self.thresholds.killed_reschedule_seconds,
            ),
        ):
            if value <= 0:
                raise ValueError(f"{name} must be > 0.")
        if self.proxy.critical_hours > self.proxy.warning_hours:
            raise ValueError(
                "DIRAC_PROBE_PROXY_CRITICAL_HOURS must not exceed "
                "DIRAC_PROBE_PROXY_WARNING_HOURS.",
            )
        if not self.job_name or any(char.isspace() for char in self.job_name):
            raise ValueError("DIRAC_PROBE_JOB_NAME must be a non-empty word without spaces.")


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw.strip())
    except ValueError as error:
        raise ValueError(f"Invalid integer value for {name}: {raw!r}") from error


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    raise ValueError(f"Invalid boolean value for {name}: {value!r}")
