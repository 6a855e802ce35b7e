"""Run controller: the single entry point for a signing or verification run.

Order of work:

1. ``skip`` set → nothing happens, the run is reported as disabled.
2. A ``jdk`` toolchain is looked up and, when found, bound to the tool.
3. Passwords are decrypted; a failure aborts before any archive is touched.
4. Inputs:
   - an explicit archive wins over everything else;
   - otherwise the project's main artifact, then its attachments, then the
     archive directory scan, all in the same run.
   Every source is selected before the first task is dispatched, and an
   archive reached through two sources is processed once.
5. The "N archive(s) processed" message is logged only when nothing failed.

Collaborators (tool, credential service, toolchain manager, project) are
passed in; ``create_controller`` wires the real ones from a SignerConfig.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from archsign.config import SignerConfig
from archsign.credentials import CredentialService, MasterKeyCredentials
from archsign.dispatcher import PartitionedDispatcher
from archsign.errors import TaskFailure
from archsign.invoker import (
    ArchiveOperation,
    SignOperation,
    SigningInvoker,
    SigningTool,
    VerifyOperation,
)
from archsign.jarsigner import JarSigner
from archsign.matcher import deduplicate, select_archives
from archsign.messages import get_message
from archsign.models import ArchiveTask, FilterCriteria, InputMode, RunStatus, RunSummary, Selection
from archsign.project import BuildProject, load_project_manifest
from archsign.toolchain import SessionContext, ToolchainManager

logger = logging.getLogger(__name__)

OPERATIONS: dict[str, type[ArchiveOperation]] = {
    "sign": SignOperation,
    "verify": VerifyOperation,
}


class RunController:
    """Selects archives and dispatches them to the signing tool."""

    def __init__(
        self,
        operation: ArchiveOperation,
        *,
        tool: SigningTool,
        credentials: Optional[CredentialService] = None,
        toolchain_manager: Optional[ToolchainManager] = None,
        project: Optional[BuildProject] = None,
        session: Optional[SessionContext] = None,
    ) -> None:
        self.operation = operation
        self.config: SignerConfig = operation.config
        self.tool = tool
        self.credentials = credentials
        self.toolchain_manager = toolchain_manager
        self.project = project
        self.session = session or SessionContext()
        self.dispatcher: Optional[PartitionedDispatcher] = None

    def _bind_toolchain(self) -> None:
        if self.toolchain_manager is None:
            return
        toolchain = self.toolchain_manager.resolve("jdk", self.session)
        if toolchain is not None:
            logger.info(get_message("toolchain", toolchain))
            self.tool.set_toolchain(toolchain)

    def _select_inputs(self, selection: Selection) -> list[tuple[list[ArchiveTask], int]]:
        """Resolve every enabled source before anything is dispatched.

        Returns batches of (tasks, worker count). Project tasks run on one
        worker; the scan uses the operation's fork count. A path selected by
        an earlier source is not selected again.

        Raises:
            ConfigurationError: if the archive directory cannot be scanned.
        """
        cfg = self.config
        if cfg.archive is not None:
            explicit = select_archives(InputMode.EXPLICIT, archive=cfg.archive)
            selection.extend(explicit)
            return [(explicit.tasks, 1)]

        if cfg.attachments is not None:
            logger.warning("'attachments' is deprecated, use 'process_attached_artifacts'")

        project = select_archives(
            InputMode.PROJECT_ARTIFACT,
            project=self.project,
            criteria=FilterCriteria.of(cfg.include_classifiers, cfg.exclude_classifiers),
            process_main=cfg.process_main_artifact,
            process_attachments=cfg.attachments_enabled,
            verbose=cfg.verbose,
        )
        scanned = select_archives(
            InputMode.DIRECTORY_SCAN,
            scan_root=cfg.archive_directory,
            includes=cfg.includes,
            excludes=cfg.excludes,
        )
        selection.extend(project)
        selection.extend(scanned)

        seen: set[Path] = set()
        return [
            (deduplicate(project.tasks, seen), 1),
            (deduplicate(scanned.tasks, seen), self.operation.fork_count()),
        ]

    def run(self) -> RunSummary:
        """Execute the run.

        Raises:
            ConfigurationError: scan or decryption failure, before dispatch.
        """
        if self.config.skip:
            logger.info(get_message("disabled"))
            return RunSummary(status=RunStatus.DISABLED)

        self._bind_toolchain()

        working_directory = self.project.basedir if self.project else None
        invoker = SigningInvoker(self.operation, self.tool, self.credentials, working_directory)
        invoker.prepare()

        selection = Selection()
        batches = self._select_inputs(selection)

        dispatcher = PartitionedDispatcher(invoker.invoke)
        self.dispatcher = dispatcher
        try:
            for tasks, worker_count in batches:
                dispatcher.dispatch(tasks, worker_count)
        except TaskFailure as e:
            return RunSummary(
                status=RunStatus.ABORTED,
                attempted=dispatcher.attempted,
                outcomes=list(dispatcher.outcomes),
                failures=dispatcher.failures,
                skipped=selection.skipped,
                first_error=e,
            )

        logger.info(get_message("processed", dispatcher.attempted))
        return RunSummary(
            status=RunStatus.SUCCESS,
            attempted=dispatcher.attempted,
            outcomes=list(dispatcher.outcomes),
            skipped=selection.skipped,
        )


def create_controller(
    config: SignerConfig,
    kind: str = "sign",
    *,
    tool: Optional[SigningTool] = None,
    credentials: Optional[CredentialService] = None,
    toolchain_manager: Optional[ToolchainManager] = None,
    project: Optional[BuildProject] = None,
    session: Optional[SessionContext] = None,
) -> RunController:
    """Wire a RunController with the default collaborators for ``config``."""
    try:
        operation = OPERATIONS[kind](config)
    except KeyError:
        raise ValueError(f"Unknown operation: {kind!r} (expected one of {sorted(OPERATIONS)})") from None

    if project is None and config.project_manifest is not None and config.archive is None:
        project = load_project_manifest(config.project_manifest)

    return RunController(
        operation,
        tool=tool or JarSigner(timeout=config.tool_timeout),
        credentials=credentials or MasterKeyCredentials.from_environment(),
        toolchain_manager=toolchain_manager or ToolchainManager.from_file(config.toolchains_file),
        project=project,
        session=session,
    )


__all__ = ["RunController", "create_controller", "OPERATIONS"]
