"""
Run external commands with a hard timeout.

The runner never raises for command problems; it reports them in the
returned CommandResult and leaves interpretation to the caller.
"""

from __future__ import annotations

import enum
import logging
import os
import signal
import subprocess
from dataclasses import dataclass
from typing import Optional, Sequence

logger = logging.getLogger(__name__)


class CommandOutcome(str, enum.Enum):
    OK = "ok"
    FAILED = "failed"
    TIMEOUT = "timeout"
    LAUNCH_ERROR = "launch_error"


@dataclass(frozen=True)
class CommandResult:
    """
    What happened to one command.

    - OK:           exit status 0, stdout captured
    - FAILED:       non-zero exit status, stderr captured
    - TIMEOUT:      killed after `timeout` seconds
    - LAUNCH_ERROR: the process could not be started, see `error`
    """

    args: tuple
    outcome: CommandOutcome
    returncode: Optional[int] = None
    stdout: str = ""
    stderr: str = ""
    pid: Optional[int] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.outcome is CommandOutcome.OK


class CommandRunner:
    """Executes argv-style commands in a subprocess (no shell)."""

    def run(self, args: Sequence[str], timeout: float) -> CommandResult:
        args = tuple(args)
        logger.debug("Running %s (timeout %ss)", " ".join(args), timeout)

        try:
            proc = subprocess.Popen(
                args,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                errors="replace",
                # Own process group so a timeout can kill any children too
                start_new_session=True,
            )
        except OSError as exc:
            return CommandResult(
                args=args,
                outcome=CommandOutcome.LAUNCH_ERROR,
                error=str(exc),
            )

        try:
            stdout, stderr = proc.communicate(timeout=timeout)
        except subprocess.TimeoutExpired:
            _kill_group(proc)
            stdout, stderr = proc.communicate()
            logger.warning(
                "Command %s timed out after %ss (pid %s killed)",
                args[0], timeout, proc.pid,
            )
            return CommandResult(
                args=args,
                outcome=CommandOutcome.TIMEOUT,
                returncode=proc.returncode,
                stdout=stdout,
                stderr=stderr,
                pid=proc.pid,
            )

        outcome = CommandOutcome.OK if proc.returncode == 0 else CommandOutcome.FAILED
        return CommandResult(
            args=args,
            outcome=outcome,
            returncode=proc.returncode,
            stdout=stdout,
            stderr=stderr,
            pid=proc.pid,
        )


def _kill_group(proc: subprocess.Popen) -> None:
    try:
        os.killpg(proc.pid, signal.SIGKILL)
    except ProcessLookupError:
        pass
    except PermissionError:
        proc.kill()
