"""
Metric extractors.

Each extractor produces one integer for a directory via `measure(path)`:

1. File count      (`find <path>`, or a native os.scandir walk)
2. Disk usage      (`du -sm <path>`)
3. Free inodes     (`df -i <path>`)
4. Free space (MB) (`df -m <path>`)

The inode and space extractors can be wrapped in StaticOverride so an
operator can pin the value (for example inside a container, where `df`
reports the host's filesystem rather than the allotted quota).
"""

from __future__ import annotations

import logging
import os
from typing import Optional, Protocol

from resource_monitor.config import Settings
from resource_monitor.errors import ParseError, SubprocessFailure, SubprocessTimeout
from resource_monitor.runner import CommandOutcome, CommandResult, CommandRunner

logger = logging.getLogger(__name__)

FILE_COUNT = "file_count"
DISK_USAGE = "disk_usage"
AVAILABLE_INODES = "available_inodes"
AVAILABLE_SPACE = "available_space"


class Extractor(Protocol):
    step: str

    def measure(self, path: str) -> int:
        ...


# ---------------------------------------------------------------------------
# Output parsers
# ---------------------------------------------------------------------------


def parse_du_output(output: str, step: str = DISK_USAGE) -> int:
    """
    Parse a `du -s` report such as "31041\t/some/path" and return the size.
    """
    text = output.strip()
    parts = text.split()
    if len(parts) < 2:
        raise ParseError(f"Unexpected disk usage output format: {text!r}", step)
    return _to_int(parts[0], text, step)


def parse_df_output(output: str, step: str) -> int:
    """
    Parse a `df` report and return the 4th column of the first data line.

    Both `df -i` (IAvail) and `df -m` (Available) put the value we want in
    that column:

        Filesystem     Inodes  IUsed   IFree IUse% Mounted on
        /dev/sda1     6553600 412398 6141202    7% /
    """
    lines = output.strip().splitlines()
    if len(lines) < 2:
        raise ParseError("Unexpected df output format: missing data line", step)

    data_line = lines[1]
    parts = data_line.split()
    if len(parts) < 4:
        raise ParseError(f"Unexpected df output format: {data_line!r}", step)
    return _to_int(parts[3], data_line, step)


def _to_int(value: str, context: str, step: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise ParseError(f"Expected an integer, got {value!r} in {context!r}", step)
    if number < 0:
        raise ParseError(f"Negative value {number} in {context!r}", step)
    return number


def _check(result: CommandResult, step: str, what: str) -> None:
    """Translate a runner result into the matching error, if any."""
    if result.outcome is CommandOutcome.TIMEOUT:
        raise SubprocessTimeout(f"Timed out while trying to {what}", step)
    if result.outcome is CommandOutcome.LAUNCH_ERROR:
        raise SubprocessFailure(f"Failed to {what}: {result.error}", step)
    if result.outcome is CommandOutcome.FAILED:
        raise SubprocessFailure(
            f"Failed to {what}: {result.stderr.strip() or f'exit status {result.returncode}'}",
            step,
        )


# ---------------------------------------------------------------------------
# Command based extractors
# ---------------------------------------------------------------------------


class FindFileCountExtractor:
    """Counts the lines `find <path>` prints (root included)."""

    step = FILE_COUNT

    def __init__(self, runner: CommandRunner, timeout: float = 180) -> None:
        self.runner = runner
        self.timeout = timeout

    def measure(self, path: str) -> int:
        result = self.runner.run(["find", path], self.timeout)

        count = result.stdout.count("\n")

        # find exits 1 when some subdirectory is unreadable but still lists
        # everything else. It also prints the root before failing to read
        # it, so a listing of just the root means traversal never started.
        if result.outcome is CommandOutcome.FAILED and count > 1:
            logger.warning(
                "find reported errors under %s, counting what was listed: %s",
                path, result.stderr.strip(),
            )
        else:
            _check(result, self.step, "count files")

        return count


class DiskUsageExtractor:
    """Space used by a directory tree in whole MB (`du -sm`)."""

    step = DISK_USAGE

    def __init__(self, runner: CommandRunner, timeout: float = 300) -> None:
        self.runner = runner
        self.timeout = timeout

    def measure(self, path: str) -> int:
        result = self.runner.run(["du", "-sm", path], self.timeout)
        _check(result, self.step, "get disk usage")
        return parse_du_output(result.stdout, self.step)


class DfExtractor:
    """Reads the available column of `df <flag> <path>`."""

    def __init__(
        self,
        runner: CommandRunner,
        flag: str,
        step: str,
        timeout: float = 60,
    ) -> None:
        self.runner = runner
        self.flag = flag
        self.step = step
        self.timeout = timeout

    def measure(self, path: str) -> int:
        result = self.runner.run(["df", self.flag, path], self.timeout)
        _check(result, self.step, f"get {self.step.replace('_', ' ')}")
        return parse_df_output(result.stdout, self.step)


def inode_extractor(runner: CommandRunner, timeout: float = 60) -> DfExtractor:
    return DfExtractor(runner, "-i", AVAILABLE_INODES, timeout)


def space_extractor(runner: CommandRunner, timeout: float = 60) -> DfExtractor:
    return DfExtractor(runner, "-m", AVAILABLE_SPACE, timeout)


# ---------------------------------------------------------------------------
# Native extractor (no subprocess)
# ---------------------------------------------------------------------------


class NativeFileCountExtractor:
    """
    Counts entries with os.scandir, matching `find <path> | wc -l`.

    Directory symlinks are counted but not followed, like find's default.
    """

    step = FILE_COUNT

    def measure(self, path: str) -> int:
        count = 1  # the root itself
        pending = [path]
        while pending:
            current = pending.pop()
            try:
                entries = os.scandir(current)
            except OSError as exc:
                if current == path:
                    raise SubprocessFailure(f"Failed to count files: {exc}", self.step)
                logger.warning("Skipping unreadable directory %s: %s", current, exc)
                continue

            with entries:
                for entry in entries:
                    count += 1
                    try:
                        if entry.is_dir(follow_symlinks=False):
                            pending.append(entry.path)
                    except OSError:
                        continue
        return count


# ---------------------------------------------------------------------------
# Overrides
# ---------------------------------------------------------------------------


class StaticOverride:
    """
    Returns `value` when it is set, otherwise delegates to `inner`.
    """

    def __init__(self, inner: Extractor, value: Optional[int]) -> None:
        self.inner = inner
        self.value = value
        self.step = inner.step

    def measure(self, path: str) -> int:
        if self.value is not None:
            logger.debug("Using configured %s override: %s", self.step, self.value)
            return int(self.value)
        return self.inner.measure(path)


# ---------------------------------------------------------------------------
# Public API used by the sampler
# ---------------------------------------------------------------------------


def build_extractors(settings: Settings, runner: CommandRunner) -> list:
    """
    Build the four extractors in measurement order from `settings`.
    """
    if settings.file_count_strategy == "native":
        file_count: Extractor = NativeFileCountExtractor()
    else:
        file_count = FindFileCountExtractor(runner, settings.find_timeout_seconds)

    return [
        file_count,
        DiskUsageExtractor(runner, settings.du_timeout_seconds),
        StaticOverride(
            inode_extractor(runner, settings.df_timeout_seconds),
            settings.available_inode,
        ),
        StaticOverride(
            space_extractor(runner, settings.df_timeout_seconds),
            settings.available_space,
        ),
    ]
