"""Per-archive invocation of the signing tool.

An ArchiveOperation knows what kind of jarsigner run to perform (sign or
verify): it creates the request for an archive, optionally prepares the
archive first, and says how many workers the directory scan may use.

SigningInvoker is the uniform part: it runs the pre-process hook, fills in
the options common to every request, decrypts passwords once, runs the tool
and turns a nonzero exit or a launch failure into a SigningFailure.
"""
from __future__ import annotations

import logging
import threading
import zipfile
from pathlib import Path
from typing import Optional, Protocol

from archsign.config import SignerConfig
from archsign.credentials import CredentialService, PlainCredentials
from archsign.errors import (
    ConfigurationError,
    DecryptionError,
    InvocationError,
    JavaToolError,
    NonzeroExitError,
    PreProcessError,
    TaskFailure,
)
from archsign.jarsigner import (
    JarSignerRequest,
    JarSignerSignRequest,
    JarSignerVerifyRequest,
    JavaToolResult,
)
from archsign.messages import get_message
from archsign.models import ArchiveTask, SigningOutcome
from archsign.redact import redact_password, redact_secrets
from archsign.signatures import is_archive_signed, unsign_archive
from archsign.toolchain import Toolchain

logger = logging.getLogger(__name__)


class SigningTool(Protocol):
    """What the invoker needs from the external tool binding."""

    def execute(self, request: JarSignerRequest) -> JavaToolResult:  # pragma: no cover - protocol definition
        ...

    def set_toolchain(self, toolchain: Optional[Toolchain]) -> None:  # pragma: no cover - protocol definition
        ...


# ─────────────────────────────────────────────────────────────────
# Operations
# ─────────────────────────────────────────────────────────────────

class ArchiveOperation:
    """Base for one kind of jarsigner run."""

    name = "jarsigner"

    def __init__(self, config: SignerConfig) -> None:
        self.config = config

    def create_request(self, archive: Path) -> JarSignerRequest:
        raise NotImplementedError

    def pre_process(self, task: ArchiveTask) -> None:
        """Prepare ``task.path`` before the tool runs. Default: nothing."""

    def fork_count(self) -> int:
        return self.config.threads

    def secrets(self) -> dict[str, Optional[str]]:
        """Configured secrets, by request attribute, still possibly encrypted."""
        return {"storepass": self.config.storepass}


class SignOperation(ArchiveOperation):
    name = "sign"

    def create_request(self, archive: Path) -> JarSignerRequest:
        opts = self.config.sign
        return JarSignerSignRequest(sigfile=opts.sigfile, tsa=opts.tsa, tsacert=opts.tsacert)

    def secrets(self) -> dict[str, Optional[str]]:
        return {"storepass": self.config.storepass, "keypass": self.config.sign.keypass}

    def pre_process(self, task: ArchiveTask) -> None:
        if not self.config.sign.remove_existing_signatures:
            return
        try:
            if unsign_archive(task.path):
                logger.debug("Removed existing signatures from %s", task.path)
        except (OSError, ValueError, zipfile.BadZipFile) as e:
            raise PreProcessError(get_message("unsignFailed", task.path, e), task=task) from e


class VerifyOperation(ArchiveOperation):
    name = "verify"

    def create_request(self, archive: Path) -> JarSignerRequest:
        return JarSignerVerifyRequest(certs=self.config.verify.certs)

    def pre_process(self, task: ArchiveTask) -> None:
        if not self.config.verify.error_when_not_signed:
            return
        try:
            signed = is_archive_signed(task.path)
        except (OSError, ValueError, zipfile.BadZipFile) as e:
            raise PreProcessError(f"Could not inspect {task.path}: {e}", task=task) from e
        if not signed:
            raise PreProcessError(get_message("notSigned", task.path), task=task)


# ─────────────────────────────────────────────────────────────────
# Invoker
# ─────────────────────────────────────────────────────────────────

class SigningInvoker:
    """Runs the tool for one ArchiveTask at a time; safe to share across threads."""

    def __init__(
        self,
        operation: ArchiveOperation,
        tool: SigningTool,
        credentials: Optional[CredentialService] = None,
        working_directory: Optional[Path] = None,
    ) -> None:
        self.operation = operation
        self.config = operation.config
        self.tool = tool
        self.credentials = credentials or PlainCredentials()
        self.working_directory = self.config.working_directory or working_directory
        self._secrets: Optional[dict[str, Optional[str]]] = None
        self._lock = threading.Lock()

    def prepare(self) -> None:
        """Decrypt configured secrets. Failure is fatal for the whole run.

        Raises:
            ConfigurationError: if the credential service cannot decrypt.
        """
        with self._lock:
            if self._secrets is not None:
                return
            decrypted: dict[str, Optional[str]] = {}
            for attr, value in self.operation.secrets().items():
                try:
                    decrypted[attr] = self.credentials.decrypt(value)
                except DecryptionError as e:
                    logger.error(get_message("decryptFailed", e))
                    raise ConfigurationError(get_message("decryptFailed", e)) from e
            self._secrets = decrypted

    def build_request(self, task: ArchiveTask) -> JarSignerRequest:
        self.prepare()
        cfg = self.config
        request = self.operation.create_request(task.path)
        request.verbose = cfg.verbose
        request.alias = cfg.alias
        request.archive = task.path
        request.keystore = cfg.keystore
        request.storetype = cfg.storetype
        request.provider_arg = cfg.provider_arg
        request.provider_class = cfg.provider_class
        request.provider_name = cfg.provider_name
        request.working_directory = self.working_directory
        request.max_memory = cfg.max_memory
        request.arguments = list(cfg.arguments)
        request.protected_authentication_path = cfg.protected_authentication_path
        for attr, value in (self._secrets or {}).items():
            setattr(request, attr, value)
        return request

    def redact(self, command_line: str) -> str:
        # longest first, so a secret containing another is masked whole
        secrets = sorted((v for v in (self._secrets or {}).values() if v), key=len, reverse=True)
        for value in secrets:
            command_line = redact_password(command_line, value)
        return command_line

    def invoke(self, task: ArchiveTask) -> SigningOutcome:
        """Process one archive.

        Raises:
            PreProcessError: the pre-process hook rejected the archive.
            NonzeroExitError: the tool exited with a nonzero status.
            InvocationError: the tool could not be run.
        """
        try:
            self.operation.pre_process(task)
        except TaskFailure as e:
            if e.task is None:
                e.task = task
            raise

        message = get_message("processing", task.describe())
        if self.config.verbose:
            logger.info(message)
        else:
            logger.debug(message)

        request = self.build_request(task)
        try:
            result = self.tool.execute(request)
        except JavaToolError as e:
            raise InvocationError(get_message("commandLineException", e), task=task) from e

        for stream in (result.stdout, result.stderr):
            if stream:
                logger.debug(redact_secrets(self.redact(stream.rstrip())))

        command_line = self.redact(result.command_line_text)
        if result.exit_code != 0:
            raise NonzeroExitError(
                get_message("failure", command_line, result.exit_code),
                exit_code=result.exit_code,
                command_line=command_line,
                task=task,
            )
        return SigningOutcome(task=task, exit_code=result.exit_code, command_line=command_line)


__all__ = [
    "SigningTool",
    "ArchiveOperation",
    "SignOperation",
    "VerifyOperation",
    "SigningInvoker",
]
