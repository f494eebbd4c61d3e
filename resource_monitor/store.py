"""
Append-only storage for samples.

The store only inserts and reads. Each call opens its own short session so
the collector and API threads never share one.
"""

import logging
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import sessionmaker

from resource_monitor.models import ResourceUsage
from resource_monitor.schemas import MetricStats, NewSample, Sample, UsageStats

logger = logging.getLogger(__name__)

METRICS = ("file_count", "disk_usage_mb", "available_inodes", "available_space_mb")


def utcnow() -> datetime:
    """Current time as naive UTC, the form `checked_at` is stored in."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def as_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


class SampleStore:
    def __init__(self, session_factory: sessionmaker) -> None:
        self.session_factory = session_factory

    def insert(self, new_sample: NewSample) -> Sample:
        """Persist one sample and return it with its assigned id."""
        row = ResourceUsage(
            monitored_path=new_sample.monitored_path,
            file_count=new_sample.file_count,
            disk_usage_mb=new_sample.disk_usage_mb,
            available_inodes=new_sample.available_inodes,
            available_space_mb=new_sample.available_space_mb,
            checked_at=as_naive_utc(new_sample.checked_at),
        )
        with self.session_factory() as db:
            with db.begin():
                db.add(row)
            sample = Sample.model_validate(row)

        logger.debug("Stored sample %s for %s", sample.id, sample.monitored_path)
        return sample

    def latest(self, path: str) -> Optional[Sample]:
        """Most recent sample for `path`, or None if there is none yet."""
        q = (
            select(ResourceUsage)
            .where(ResourceUsage.monitored_path == path)
            .order_by(ResourceUsage.checked_at.desc(), ResourceUsage.id.desc())
            .limit(1)
        )
        with self.session_factory() as db:
            row = db.execute(q).scalars().first()
            return Sample.model_validate(row) if row is not None else None

    def range(self, path: str, start: datetime, end: datetime) -> List[Sample]:
        """Samples for `path` with start <= checked_at <= end, oldest first."""
        q = (
            select(ResourceUsage)
            .where(
                ResourceUsage.monitored_path == path,
                ResourceUsage.checked_at.between(as_naive_utc(start), as_naive_utc(end)),
            )
            .order_by(ResourceUsage.checked_at.asc(), ResourceUsage.id.asc())
        )
        with self.session_factory() as db:
            return [Sample.model_validate(row) for row in db.execute(q).scalars()]

    def stats(self, path: str, start: datetime, end: datetime) -> Optional[UsageStats]:
        """
        Per-metric current/max/min/avg over a window.

        Returns None when the window holds no samples.
        """
        where = (
            ResourceUsage.monitored_path == path,
            ResourceUsage.checked_at.between(as_naive_utc(start), as_naive_utc(end)),
        )
        columns = []
        for name in METRICS:
            column = getattr(ResourceUsage, name)
            columns += [func.max(column), func.min(column), func.avg(column)]

        with self.session_factory() as db:
            count = db.execute(
                select(func.count(ResourceUsage.id)).where(*where)
            ).scalar_one()
            if count == 0:
                return None

            aggregates = db.execute(select(*columns).where(*where)).one()
            last = db.execute(
                select(ResourceUsage)
                .where(*where)
                .order_by(ResourceUsage.checked_at.desc(), ResourceUsage.id.desc())
                .limit(1)
            ).scalars().first()

            values = {}
            for i, name in enumerate(METRICS):
                max_, min_, avg = aggregates[i * 3:i * 3 + 3]
                values[name] = MetricStats(
                    current=getattr(last, name),
                    max=int(max_),
                    min=int(min_),
                    avg=round(float(avg), 2),
                )
        return UsageStats(**values)
