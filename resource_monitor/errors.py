"""
Errors raised while taking a resource usage sample.

Every error names the step that failed so the caller can log it and decide
whether another attempt is worthwhile.
"""

from typing import Optional


class ResourceCheckError(Exception):
    """Base class for failures that abort a sample."""

    kind = "error"
    retryable = False

    def __init__(self, message: str, step: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.step = step

    def __str__(self) -> str:
        if self.step:
            return f"{self.step}: {self.message}"
        return self.message


class ConfigurationError(ResourceCheckError):
    """A required setting is missing or invalid."""

    kind = "configuration"


class SubprocessTimeout(ResourceCheckError):
    """A measurement command ran past its timeout and was killed."""

    kind = "timeout"
    retryable = True


class SubprocessFailure(ResourceCheckError):
    """A measurement command exited non-zero or could not be started."""

    kind = "subprocess"
    retryable = True


class ParseError(ResourceCheckError):
    """A measurement command succeeded but its output was not understood."""

    kind = "parse"
