"""
Sampler: turns command output into one stored ResourceUsage row.

A sample is all-or-nothing. If any extractor fails, nothing is written and
the failure comes back in the CheckResult.
"""

import logging
import os
from dataclasses import dataclass
from typing import Optional

from resource_monitor.config import Settings
from resource_monitor.errors import ConfigurationError, ResourceCheckError
from resource_monitor.extractors import build_extractors
from resource_monitor.runner import CommandRunner
from resource_monitor.schemas import NewSample, Sample
from resource_monitor.store import SampleStore, utcnow

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Measurements:
    file_count: int
    disk_usage_mb: int
    available_inodes: int
    available_space_mb: int


@dataclass(frozen=True)
class CheckResult:
    """
    Outcome of one sample attempt.

    - ok=True:  `sample` holds the stored row
    - ok=False: `error` says which step failed and why
    """

    path: Optional[str]
    sample: Optional[Sample] = None
    error: Optional[ResourceCheckError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class Sampler:
    def __init__(
        self,
        settings: Settings,
        store: SampleStore,
        runner: Optional[CommandRunner] = None,
    ) -> None:
        self.settings = settings
        self.store = store
        self.runner = runner or CommandRunner()
        self.extractors = build_extractors(settings, self.runner)

    def run_check(self) -> CheckResult:
        """Sample the configured monitored path."""
        return self.sample(self.settings.base_path)

    def sample(self, path: Optional[str]) -> CheckResult:
        try:
            _validate_path(path)
            measurements = self.measure(path)
        except ResourceCheckError as exc:
            logger.error(
                "Resource usage check failed for %s: [%s] %s",
                path, exc.kind, exc,
            )
            return CheckResult(path=path, error=exc)

        sample = self.store.insert(
            NewSample(
                monitored_path=path,
                file_count=measurements.file_count,
                disk_usage_mb=measurements.disk_usage_mb,
                available_inodes=measurements.available_inodes,
                available_space_mb=measurements.available_space_mb,
                checked_at=utcnow(),
            )
        )
        return CheckResult(path=path, sample=sample)

    def measure(self, path: str) -> Measurements:
        """Run every extractor; the first failure propagates."""
        file_count, disk_usage, inodes, space = (
            extractor.measure(path) for extractor in self.extractors
        )
        return Measurements(
            file_count=file_count,
            disk_usage_mb=disk_usage,
            available_inodes=inodes,
            available_space_mb=space,
        )


def _validate_path(path: Optional[str]) -> None:
    if not path:
        raise ConfigurationError(
            "Base path not configured. Please set BASE_PATH in your environment variables."
        )
    if not os.path.isdir(path):
        raise ConfigurationError(f"Directory does not exist: {path}")
