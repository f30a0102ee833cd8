"""Per-run log files and in-memory capture for the probe report."""

from __future__ import annotations

import logging
import time
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

PACKAGE_LOGGER = "dirac_probe"

_LEVEL_LETTERS = {
    logging.DEBUG: "D",
    logging.INFO: "I",
    logging.WARNING: "W",
    logging.ERROR: "C",
    logging.CRITICAL: "C",
}


class ProbeFormatter(logging.Formatter):
    """Render records as `YYYY-mm-dd HH:MM:SS TZ [L] message`."""

    def __init__(self) -> None:
        super().__init__(fmt="%(asctime)s [%(letter)s] %(message)s")

    def formatTime(self, record: logging.LogRecord, datefmt: str | None = None) -> str:  # noqa: N802
        return time.strftime("%Y-%m-%d %H:%M:%S %Z", time.localtime(record.created))

    def format(self, record: logging.LogRecord) -> str:
        record.letter = _LEVEL_LETTERS.get(record.levelno, "I")
        return super().format(record)


class CaptureHandler(logging.Handler):
    """Keep formatted lines of the current run for the report body."""

    def __init__(self, level: int = logging.INFO) -> None:
        super().__init__(level)
        self.lines: list[str] = []

    def emit(self, record: logging.LogRecord) -> None:
        try:
            self.lines.append(self.format(record))
        except Exception:  # noqa: BLE001
            self.handleError(record)


class _DebugOnlyFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno <= logging.DEBUG


@contextmanager
def run_logging(
    *,
    run_log: Path | None,
    debug_file: Path | None,
    debug: bool,
) -> Iterator[CaptureHandler]:
    """Attach run log, debug log and capture handlers to the package logger.

    The debug file always receives DEBUG records and, when debug is enabled,
    everything else as well.
    """

    package_logger = logging.getLogger(PACKAGE_LOGGER)
    previous_level = package_logger.level
    package_logger.setLevel(logging.DEBUG)
    formatter = ProbeFormatter()

    capture = CaptureHandler()
    capture.setFormatter(formatter)
    handlers: list[logging.Handler] = [capture]

    if run_log is not None:
        run_log.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(run_log, encoding="utf-8")
        file_handler.setLevel(logging.INFO)
        handlers.append(file_handler)

    if debug_file is not None:
        debug_file.parent.mkdir(parents=True, exist_ok=True)
        debug_handler = logging.FileHandler(debug_file, encoding="utf-8")
        debug_handler.setLevel(logging.DEBUG)
        if not debug:
            debug_handler.addFilter(_DebugOnlyFilter())
        handlers.append(debug_handler)

    for handler in handlers:
        if handler is not capture:
            handler.setFormatter(formatter)
        package_logger.addHandler(handler)
    try:
        yield capture
    finally:
        for handler in handlers:
            package_logger.removeHandler(handler)
            handler.close()
        package_logger.setLevel(previous_level)
