import json
import re
from datetime import datetime
from pathlib import Path

import structlog

from jobsift.models import JobRecord

logger = structlog.get_logger(logger_name=__name__)


def output_path_for(keyword: str, now: datetime, output_dir: Path) -> Path:
    """File the matches of a run are written to."""
    slug = re.sub(r"[^a-z0-9]+", "-", keyword.lower()).strip("-") or "jobs"
    return output_dir / f"{slug}_{now.strftime('%Y%m%d-%H%M%S')}.json"


def save_job_infos(path: Path, job_infos: list[JobRecord]) -> None:
    """Write all jobs to ``path`` as one JSON array, replacing the file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    data = [job.model_dump(by_alias=True) for job in job_infos]
    with path.open("w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, ensure_ascii=False)
    logger.debug("Saved jobs", path=str(path), count=len(job_infos))


class MatchSet:
    """Jobs accepted during a run, saved to disk after every addition."""

    def __init__(self, path: Path):
        self.path = path
        self._jobs: list[JobRecord] = []

    def append(self, job: JobRecord) -> JobRecord:
        """Add a job without its description and save the whole set."""
        stored = job.model_copy(update={"description": ""})
        self._jobs.append(stored)
        save_job_infos(self.path, self._jobs)
        return stored

    @property
    def jobs(self) -> list[JobRecord]:
        return list(self._jobs)

    def __len__(self) -> int:
        return len(self._jobs)
