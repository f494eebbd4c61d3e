"""
The resource usage check job.

Wraps Sampler.run_check with logging and a fixed number of attempts. Only
timeouts and command failures are retried; configuration and parse errors
will not go away by running the same commands again.
"""

import logging

from resource_monitor.sampler import CheckResult, Sampler

logger = logging.getLogger(__name__)


def run_check(sampler: Sampler, attempts: int = 3) -> CheckResult:
    """
    Run one resource usage check, retrying retryable failures.

    Returns the result of the last attempt.
    """
    base_path = sampler.settings.base_path
    logger.info("Starting resource usage check for %s", base_path)

    result = None
    for attempt in range(1, attempts + 1):
        result = sampler.run_check()

        if result.ok:
            sample = result.sample
            logger.info(
                "Resource usage check completed: id=%s path=%s file_count=%s "
                "disk_usage_mb=%s available_inodes=%s available_space_mb=%s",
                sample.id,
                sample.monitored_path,
                sample.file_count,
                sample.disk_usage_mb,
                sample.available_inodes,
                sample.available_space_mb,
            )
            return result

        error = result.error
        if not error.retryable:
            break
        if attempt < attempts:
            logger.warning(
                "Attempt %s/%s failed (%s), retrying", attempt, attempts, error,
            )

    logger.error(
        "Resource usage job failed permanently for %s: [%s] %s",
        base_path, result.error.kind, result.error,
    )
    return result
