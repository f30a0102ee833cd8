"""File-per-job record store and sibling output/log directories."""

from __future__ import annotations

import logging
import shutil
import time
from collections.abc import Iterator
from datetime import datetime
from pathlib import Path

from dirac_probe.probe.models import JobRecord

logger = logging.getLogger(__name__)

JOBS_DIRNAME = "dirac-jobs"
OUTPUTS_DIRNAME = "dirac-outputs"
LOGS_DIRNAME = "dirac-logs"


class JobStore:
    """Persist one marker file per submitted job under a base directory.

    Marker filenames are the submission epoch in seconds and their content is
    the remote job id. Two records created within the same second share a
    filename; the later one wins.
    """

    def __init__(self, base_dir: Path) -> None:
        self.base_dir = base_dir
        self.jobs_dir = base_dir / JOBS_DIRNAME
        self.outputs_dir = base_dir / OUTPUTS_DIRNAME
        self.logs_dir = base_dir / LOGS_DIRNAME

    def ensure_layout(self) -> list[Path]:
        """Create missing directories and return the ones that were created."""

        created: list[Path] = []
        for directory in (self.jobs_dir, self.outputs_dir, self.logs_dir):
            if not directory.is_dir():
                directory.mkdir(parents=True, exist_ok=True)
                created.append(directory)
        return created

    def create(self, remote_job_id: str, *, now: float | None = None) -> JobRecord:
        epoch = int(time.time() if now is None else now)
        self.jobs_dir.mkdir(parents=True, exist_ok=True)
        path = self.jobs_dir / str(epoch)
        path.write_text(remote_job_id, "utf-8")
        logger.info("Storing JobId %s in %s", remote_job_id, path)
        return JobRecord(submission_epoch=epoch, path=path, remote_job_id=remote_job_id)

    def list_all(self) -> Iterator[JobRecord]:
        """Yield records oldest first from a fresh directory scan."""

        if not self.jobs_dir.is_dir():
            return
        paths = sorted(
            (p for p in self.jobs_dir.iterdir() if p.is_file()),
            key=_record_sort_key,
        )
        for path in paths:
            yield JobRecord(
                submission_epoch=_epoch_from_name(path.name),
                path=path,
                remote_job_id=self.read(path),
            )

    def read(self, path: Path) -> str:
        try:
            return path.read_text("utf-8").strip()
        except FileNotFoundError:
            return ""

    def delete(self, path: Path) -> None:
        try:
            path.unlink()
        except FileNotFoundError:
            logger.info("File %s Not found (so not removed)...", path)
            return
        logger.info("Removing %s", path)

    def output_dir(self, remote_job_id: str) -> Path:
        return self.outputs_dir / remote_job_id

    def clean_outputs(self, remote_job_id: str) -> None:
        if not remote_job_id.strip():
            return
        directory = self.output_dir(remote_job_id)
        if not directory.is_dir():
            logger.info("Directory %s not found (so not deleted)...", directory)
            return
        shutil.rmtree(directory)
        logger.info("Removing %s", directory)

    def run_log_path(self, started_at: float) -> Path:
        stamp = datetime.fromtimestamp(started_at).strftime("%Y%m%d_%H%M%S")
        return self.logs_dir / f"{stamp}.log"


def _epoch_from_name(name: str) -> int:
    try:
        return int(name)
    except ValueError:
        return 0


def _record_sort_key(path: Path) -> tuple[int, str]:
    return _epoch_from_name(path.name), path.name
