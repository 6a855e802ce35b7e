"""Data model shared by the matcher, invoker, dispatcher and controller."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Optional


class InputMode(Enum):
    """Where an archive task came from."""
    EXPLICIT = "explicit"
    PROJECT_ARTIFACT = "project-artifact"
    DIRECTORY_SCAN = "directory-scan"


class FailureKind(Enum):
    NONE = "none"
    NONZERO_EXIT = "nonzero-exit"
    INVOCATION_ERROR = "invocation-error"
    PRE_PROCESS = "pre-process"


class CandidateStatus(Enum):
    """Fate of one project artifact during selection."""
    SELECTED = "selected"
    SKIPPED_NOT_ARCHIVE = "skipped-not-archive"
    SKIPPED_FILTERED = "skipped-filtered"


class RunStatus(Enum):
    SUCCESS = "success"
    ABORTED = "aborted"
    DISABLED = "disabled"


@dataclass(frozen=True)
class ArchiveTask:
    """One file to hand to the signing tool."""
    path: Path
    mode: InputMode
    classifier: Optional[str] = None
    index: int = 0

    def describe(self) -> str:
        if self.classifier:
            return f"{self.path} ({self.classifier})"
        return str(self.path)

    def to_dict(self) -> dict:
        return {
            "path": str(self.path),
            "mode": self.mode.value,
            "classifier": self.classifier,
            "index": self.index,
        }


@dataclass(frozen=True)
class SigningOutcome:
    """Result of invoking the signing tool for one task."""
    task: ArchiveTask
    exit_code: Optional[int] = None
    failure_kind: FailureKind = FailureKind.NONE
    detail: Optional[str] = None
    command_line: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.failure_kind is FailureKind.NONE

    @classmethod
    def from_failure(cls, task: ArchiveTask, exc: Any) -> "SigningOutcome":
        """Build an outcome from a TaskFailure raised for ``task``."""
        return cls(
            task=task,
            exit_code=exc.exit_code,
            failure_kind=exc.kind,
            detail=str(exc),
            command_line=exc.command_line,
        )

    def to_dict(self) -> dict:
        return {
            "task": self.task.to_dict(),
            "exit_code": self.exit_code,
            "failure_kind": self.failure_kind.value,
            "detail": self.detail,
            "command_line": self.command_line,
        }


@dataclass(frozen=True)
class FilterCriteria:
    """Classifier sets applied to project attachments.

    A non-empty include set admits only its members. The exclude set always
    wins, so a classifier listed in both is excluded.
    """
    include: frozenset[str] = frozenset()
    exclude: frozenset[str] = frozenset()

    @classmethod
    def of(cls, include=None, exclude=None) -> "FilterCriteria":
        return cls(frozenset(include or ()), frozenset(exclude or ()))

    def accepts(self, classifier: Optional[str]) -> bool:
        if self.include and classifier not in self.include:
            return False
        if classifier in self.exclude:
            return False
        return True


@dataclass(frozen=True)
class CandidateDecision:
    """Selection verdict for one project artifact."""
    path: Optional[Path]
    classifier: Optional[str]
    status: CandidateStatus

    def to_dict(self) -> dict:
        return {
            "path": str(self.path) if self.path else None,
            "classifier": self.classifier,
            "status": self.status.value,
        }


@dataclass
class Selection:
    """Ordered tasks plus the decisions taken for project candidates."""
    tasks: list[ArchiveTask] = field(default_factory=list)
    decisions: list[CandidateDecision] = field(default_factory=list)

    @property
    def skipped(self) -> list[CandidateDecision]:
        return [d for d in self.decisions if d.status is not CandidateStatus.SELECTED]

    def extend(self, other: "Selection") -> None:
        self.tasks.extend(other.tasks)
        self.decisions.extend(other.decisions)


@dataclass
class RunSummary:
    """Aggregate result of one run."""
    status: RunStatus
    attempted: int = 0
    outcomes: list[SigningOutcome] = field(default_factory=list)
    failures: list[SigningOutcome] = field(default_factory=list)
    skipped: list[CandidateDecision] = field(default_factory=list)
    first_error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.status is not RunStatus.ABORTED

    def to_dict(self) -> dict:
        return {
            "status": self.status.value,
            "attempted": self.attempted,
            "succeeded": len(self.outcomes),
            "failures": [f.to_dict() for f in self.failures],
            "skipped": [s.to_dict() for s in self.skipped],
            "first_error": str(self.first_error) if self.first_error else None,
        }


__all__ = [
    "InputMode",
    "FailureKind",
    "CandidateStatus",
    "RunStatus",
    "ArchiveTask",
    "SigningOutcome",
    "FilterCriteria",
    "CandidateDecision",
    "Selection",
    "RunSummary",
]
