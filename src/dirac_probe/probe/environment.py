"""DIRAC environment and proxy validity check."""

from __future__ import annotations

import logging
from pathlib import Path

from dirac_probe.config import Settings
from dirac_probe.probe.client import DiracClient
from dirac_probe.probe.models import Severity, parse_proxy_hours_left

logger = logging.getLogger(__name__)

PROXY_INIT_TIP = "Tip : 'dirac-proxy-init -g biomed_user -v 720:00'"


class ProbeEnvironmentError(RuntimeError):
    """Fatal environment problem that stops the current cycle."""


def check_environment(settings: Settings, client: DiracClient) -> Severity:
    """Check the DIRAC environment and proxy, then write the canary JDL.

    Returns the severity implied by the proxy lifetime. Raises
    ProbeEnvironmentError when the probe cannot talk to DIRAC at all.
    """

    logger.info("Checking environment and proxy...")
    if not settings.dirac_environment:
        logger.error("DIRAC environment not set !")
        logger.error("Please check probe configuration (DIRAC_PATH ?)")
        raise ProbeEnvironmentError("DIRAC environment not set")

    outcome = client.proxy_info()
    hours_left = None if outcome.timed_out else parse_proxy_hours_left(outcome.stdout)
    severity = _proxy_severity(settings, hours_left)

    write_jdl(settings.jdl_path, settings.job_name)
    return severity


def _proxy_severity(settings: Settings, hours_left: int | None) -> Severity:
    if hours_left is None:
        user_proxy = settings.proxy.user_proxy
        if user_proxy.is_file():
            logger.warning("Try to use the current proxy (%s)", user_proxy)
            return Severity.WARNING
        logger.error("Proxy not found !")
        logger.error("Did you initialise it with 'dirac-proxy-init -g biomed_user' ?")
        raise ProbeEnvironmentError("proxy not found")

    if hours_left < settings.proxy.critical_hours:
        logger.error("Proxy is valid for less than a day !!!")
        logger.error(PROXY_INIT_TIP)
        return Severity.CRITICAL
    if hours_left < settings.proxy.warning_hours:
        logger.warning("Proxy is valid for less than a week !!!")
        logger.warning(PROXY_INIT_TIP)
        return Severity.WARNING
    logger.info("Proxy is valid for %s h (%s d)", hours_left, hours_left // 24)
    return Severity.OK


def write_jdl(path: Path, job_name: str) -> Path:
    logger.info("Creating JDL at %s", path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        f'JobName      = "{job_name}";\n'
        'Executable   = "/bin/echo";\n'
        f'Arguments    = "{job_name}";\n'
        'StdOutput    = "StdOut";\n'
        'StdError     = "StdErr";\n'
        'OutputSandbox = {"StdOut","StdErr"};\n',
        "utf-8",
    )
    return path
