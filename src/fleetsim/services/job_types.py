"""Job type catalog: maps a job label to its on-site service duration."""

from __future__ import annotations

import csv
import logging
from pathlib import Path
from typing import Iterable, Optional

from ..config import settings
from ..models.domain import JobType

logger = logging.getLogger(__name__)


class JobTypeCatalog:
    """Static job type table. Unknown job types fall back to a default duration."""

    def __init__(self, job_types: Iterable[JobType] = (), default_minutes: int | None = None) -> None:
        self.default_minutes = default_minutes if default_minutes is not None else settings.default_service_minutes
        self._job_types: dict[str, JobType] = {}
        for job_type in job_types:
            self._job_types[job_type.job] = job_type

    @classmethod
    def from_csv(cls, path: Path, default_minutes: int | None = None) -> "JobTypeCatalog":
        """Load ``id,job,service_time`` rows (minutes).

        A missing, empty or malformed file yields an empty catalog so every job
        type uses the default duration.
        """

        catalog = cls(default_minutes=default_minutes)
        if not path.exists():
            logger.warning(f"Job type file not found: {path}; using default service time ({catalog.default_minutes} min)")
            return catalog

        with path.open(mode="r", encoding="utf-8-sig", newline="") as handle:
            reader = csv.DictReader(handle)
            fieldnames = [name.strip() for name in reader.fieldnames or []]
            if "job" not in fieldnames or "service_time" not in fieldnames:
                logger.warning(f"Job type file '{path}' lacks job/service_time columns; using defaults")
                return catalog
            for row in reader:
                row = {(key or "").strip(): (value or "").strip() for key, value in row.items()}
                job = row.get("job")
                try:
                    minutes = int(row.get("service_time", ""))
                except ValueError:
                    continue
                if job:
                    catalog.add(JobType(job=job, service_minutes=minutes, job_type_id=row.get("id") or None))

        if not catalog._job_types:
            logger.warning(f"No valid job types in '{path}'; using default service time ({catalog.default_minutes} min)")
        else:
            logger.info(f"Loaded {len(catalog._job_types)} job types from {path}")
        return catalog

    def add(self, job_type: JobType) -> None:
        self._job_types[job_type.job] = job_type

    def service_minutes(self, job_type: str) -> int:
        info = self._job_types.get(job_type)
        return info.service_minutes if info else self.default_minutes

    def service_seconds(self, job_type: str) -> int:
        return self.service_minutes(job_type) * 60

    def info(self, job_type: str) -> Optional[JobType]:
        return self._job_types.get(job_type)

    def has(self, job_type: str) -> bool:
        return job_type in self._job_types

    def all(self) -> list[JobType]:
        return list(self._job_types.values())

    def statistics(self) -> dict:
        job_types = self.all()
        average = sum(jt.service_minutes for jt in job_types) / len(job_types) if job_types else 0.0
        return {
            "total_types": len(job_types),
            "average_service_minutes": round(average, 2),
            "default_service_minutes": self.default_minutes,
        }

    def to_dict(self) -> dict[str, int]:
        return {jt.job: jt.service_minutes for jt in self.all()}
