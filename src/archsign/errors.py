"""Error taxonomy for archsign.

ConfigurationError is fatal and raised before any archive is handed to the
signing tool. TaskFailure and its subclasses describe the failure of one
archive and carry the task they belong to, so the dispatcher can record
them without losing which archive failed.
"""
from __future__ import annotations

from typing import Optional

from archsign.models import ArchiveTask, FailureKind


class ArchsignError(Exception):
    """Base class for every error raised by archsign."""


class ConfigurationError(ArchsignError):
    """Fatal setup problem: bad config, scan failure, decryption failure."""


class DecryptionError(ArchsignError):
    """Raised by a credential service that cannot decrypt a secret."""


class JavaToolError(ArchsignError):
    """The external tool could not be launched at all."""


class TaskFailure(ArchsignError):
    """Failure of a single archive task."""

    kind: FailureKind = FailureKind.NONE
    exit_code: Optional[int] = None
    command_line: Optional[str] = None

    def __init__(self, message: str, task: Optional[ArchiveTask] = None) -> None:
        super().__init__(message)
        self.task = task


class PreProcessError(TaskFailure):
    """Raised by a pre-process hook for one archive."""

    kind = FailureKind.PRE_PROCESS


class SigningFailure(TaskFailure):
    """The signing tool failed for one archive."""


class NonzeroExitError(SigningFailure):
    """The tool ran but returned a nonzero exit status."""

    kind = FailureKind.NONZERO_EXIT

    def __init__(
        self,
        message: str,
        *,
        exit_code: int,
        command_line: str,
        task: Optional[ArchiveTask] = None,
    ) -> None:
        super().__init__(message, task=task)
        self.exit_code = exit_code
        self.command_line = command_line


class InvocationError(SigningFailure):
    """The tool could not be run; the launch error is chained as __cause__."""

    kind = FailureKind.INVOCATION_ERROR


__all__ = [
    "ArchsignError",
    "ConfigurationError",
    "DecryptionError",
    "JavaToolError",
    "TaskFailure",
    "PreProcessError",
    "SigningFailure",
    "NonzeroExitError",
    "InvocationError",
]
