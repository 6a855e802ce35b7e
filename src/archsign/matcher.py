"""Candidate selection: which archives a run should process.

Three input modes produce ordered ArchiveTask lists:

- explicit:  one file given by the user, taken as-is (the tool reports
             missing files itself)
- project:   the build's main artifact and its attachments, filtered by
             classifier and kept only when the file has zip content
- directory: files under a root matching Ant-style include/exclude patterns

Project candidates that are dropped are recorded as CandidateDecisions so a
caller can see why an attachment was not processed.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, Optional

from archsign.errors import ConfigurationError
from archsign.messages import get_message
from archsign.models import (
    ArchiveTask,
    CandidateDecision,
    CandidateStatus,
    FilterCriteria,
    InputMode,
    Selection,
)
from archsign.project import BuildProject, ProjectArtifact, is_signable
from archsign.scan import DEFAULT_INCLUDES, Patterns, get_files, split_patterns

logger = logging.getLogger(__name__)


def progress(verbose: bool, message: str) -> None:
    if verbose:
        logger.info(message)
    else:
        logger.debug(message)


def select_explicit(archive: Path) -> Selection:
    path = Path(archive).absolute()
    return Selection(tasks=[ArchiveTask(path=path, mode=InputMode.EXPLICIT)])


def _consider(artifact: ProjectArtifact, selection: Selection, verbose: bool) -> None:
    if is_signable(artifact):
        path = Path(artifact.file).absolute()
        selection.tasks.append(
            ArchiveTask(path=path, mode=InputMode.PROJECT_ARTIFACT, classifier=artifact.classifier)
        )
        selection.decisions.append(CandidateDecision(path, artifact.classifier, CandidateStatus.SELECTED))
    else:
        progress(verbose, get_message("unsupported", artifact))
        selection.decisions.append(
            CandidateDecision(artifact.file, artifact.classifier, CandidateStatus.SKIPPED_NOT_ARCHIVE)
        )


def select_main_artifact(project: BuildProject, *, verbose: bool = False) -> Selection:
    selection = Selection()
    if project.artifact is not None:
        _consider(project.artifact, selection, verbose)
    return selection


def select_attachments(
    project: BuildProject,
    criteria: FilterCriteria = FilterCriteria(),
    *,
    verbose: bool = False,
) -> Selection:
    """Attachments passing ``criteria`` and the zip check, in build order."""
    selection = Selection()
    for artifact in project.attached:
        if not criteria.accepts(artifact.classifier):
            logger.debug(get_message("filtered", artifact))
            selection.decisions.append(
                CandidateDecision(artifact.file, artifact.classifier, CandidateStatus.SKIPPED_FILTERED)
            )
            continue
        _consider(artifact, selection, verbose)
    return selection


def select_project(
    project: BuildProject,
    criteria: FilterCriteria = FilterCriteria(),
    *,
    process_main: bool = True,
    process_attachments: bool = True,
    verbose: bool = False,
) -> Selection:
    selection = Selection()
    if process_main:
        selection.extend(select_main_artifact(project, verbose=verbose))
    if process_attachments:
        selection.extend(select_attachments(project, criteria, verbose=verbose))
    else:
        progress(verbose, get_message("ignoringAttachments"))
    return selection


def select_directory(
    root: Path,
    includes: Patterns = DEFAULT_INCLUDES,
    excludes: Patterns = None,
) -> Selection:
    """Scan ``root`` for archives.

    Raises:
        ConfigurationError: if the directory cannot be scanned.
    """
    include_list = split_patterns(includes) or [DEFAULT_INCLUDES]
    try:
        files = get_files(Path(root), include_list, split_patterns(excludes))
    except OSError as e:
        raise ConfigurationError(get_message("scanFailed", e)) from e
    return Selection(tasks=[ArchiveTask(path=f, mode=InputMode.DIRECTORY_SCAN) for f in files])


def deduplicate(tasks: Iterable[ArchiveTask], seen: Optional[set[Path]] = None) -> list[ArchiveTask]:
    """Drop tasks whose resolved path was already taken; first occurrence wins.

    ``seen`` is updated in place so several task lists can share one set.
    """
    seen = set() if seen is None else seen
    unique = []
    for task in tasks:
        key = Path(task.path).resolve()
        if key in seen:
            logger.debug("Skipping duplicate archive %s", task.path)
            continue
        seen.add(key)
        unique.append(task)
    return unique


def select_archives(
    mode: InputMode,
    *,
    archive: Optional[Path] = None,
    project: Optional[BuildProject] = None,
    criteria: FilterCriteria = FilterCriteria(),
    process_main: bool = True,
    process_attachments: bool = True,
    scan_root: Optional[Path] = None,
    includes: Patterns = DEFAULT_INCLUDES,
    excludes: Patterns = None,
    verbose: bool = False,
) -> Selection:
    """Resolve the tasks for one input mode."""
    if mode is InputMode.EXPLICIT:
        if archive is None:
            raise ValueError("archive is required for explicit mode")
        return select_explicit(archive)
    if mode is InputMode.PROJECT_ARTIFACT:
        if project is None:
            return Selection()
        return select_project(
            project,
            criteria,
            process_main=process_main,
            process_attachments=process_attachments,
            verbose=verbose,
        )
    if mode is InputMode.DIRECTORY_SCAN:
        if scan_root is None:
            return Selection()
        return select_directory(scan_root, includes, excludes)
    raise ValueError(f"Unknown input mode: {mode}")


__all__ = [
    "deduplicate",
    "progress",
    "select_archives",
    "select_explicit",
    "select_main_artifact",
    "select_attachments",
    "select_project",
    "select_directory",
]
