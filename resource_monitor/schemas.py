"""
Pydantic models ("schemas") for samples and API responses.

We keep these separate from the ORM models so neither the API layer nor
the collector handles SQLAlchemy rows directly.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict


class NewSample(BaseModel):
    """
    A complete measurement that has not been stored yet.
    """

    model_config = ConfigDict(frozen=True)

    monitored_path: str
    file_count: int
    disk_usage_mb: int
    available_inodes: int
    available_space_mb: int
    checked_at: datetime


class Sample(NewSample):
    """
    A stored ResourceUsage row, including the id the store assigned.
    """

    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: int


class MetricStats(BaseModel):
    """
    Summary of one metric over a window:

    - current: value of the most recent sample in the window
    - max / min: extremes over the window
    - avg: mean rounded to 2 decimals
    """

    current: int
    max: int
    min: int
    avg: float


class StatsPeriod(BaseModel):
    days: int
    start_date: datetime
    end_date: datetime


class UsageStats(BaseModel):
    file_count: MetricStats
    disk_usage_mb: MetricStats
    available_inodes: MetricStats
    available_space_mb: MetricStats


class UsageStatsOut(UsageStats):
    period: StatsPeriod


class HistoryMeta(BaseModel):
    base_path: str
    days: int
    start_date: datetime
    end_date: datetime
    total_records: int


class HistoryOut(BaseModel):
    data: List[Sample]
    meta: HistoryMeta


class CheckQueuedOut(BaseModel):
    base_path: Optional[str]
    queued_at: datetime


class StatusOut(BaseModel):
    message: str
    timestamp: datetime
    version: str
