"""Binding to the JDK ``jarsigner`` executable.

A request describes one jarsigner invocation. ``JarSigner.execute`` turns it
into an argv list, runs it, and returns the exit code together with the
command line that was used. Nonzero exit codes are returned, not raised;
only a failure to launch the process raises ``JavaToolError``.

The executable is taken from the bound toolchain first, then from
``$JAVA_HOME/bin``, then from ``PATH``.
"""
from __future__ import annotations

import os
import shlex
import shutil
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from archsign.errors import JavaToolError
from archsign.toolchain import Toolchain
from archsign.utils import run_subprocess

TOOL_NAME = "jarsigner"


@dataclass
class JarSignerRequest:
    """Options shared by signing and verification."""
    archive: Optional[Path] = None
    alias: Optional[str] = None
    verbose: bool = False
    keystore: Optional[str] = None
    storetype: Optional[str] = None
    storepass: Optional[str] = None
    provider_name: Optional[str] = None
    provider_class: Optional[str] = None
    provider_arg: Optional[str] = None
    working_directory: Optional[Path] = None
    max_memory: Optional[str] = None
    arguments: list[str] = field(default_factory=list)
    protected_authentication_path: bool = False

    def mode_arguments(self) -> list[str]:
        return []

    def extra_arguments(self) -> list[str]:
        return []


@dataclass
class JarSignerSignRequest(JarSignerRequest):
    keypass: Optional[str] = None
    sigfile: Optional[str] = None
    tsa: Optional[str] = None
    tsacert: Optional[str] = None

    def extra_arguments(self) -> list[str]:
        args: list[str] = []
        if self.keypass:
            args += ["-keypass", self.keypass]
        if self.sigfile:
            args += ["-sigfile", self.sigfile]
        if self.tsa:
            args += ["-tsa", self.tsa]
        if self.tsacert:
            args += ["-tsacert", self.tsacert]
        return args


@dataclass
class JarSignerVerifyRequest(JarSignerRequest):
    certs: bool = False

    def mode_arguments(self) -> list[str]:
        args = ["-verify"]
        if self.certs:
            args.append("-certs")
        return args


@dataclass
class JavaToolResult:
    """Exit status and command line of one tool run."""
    exit_code: int
    command_line: list[str]
    stdout: str = ""
    stderr: str = ""

    @property
    def command_line_text(self) -> str:
        return shlex.join(self.command_line)


def build_command(executable: str, request: JarSignerRequest) -> list[str]:
    """Lay out jarsigner's argv for ``request``."""
    if request.archive is None:
        raise ValueError("request.archive is required")

    cmd = [executable]
    if request.max_memory:
        cmd.append(f"-J-Xmx{request.max_memory}")
    cmd += request.mode_arguments()
    if request.verbose:
        cmd.append("-verbose")
    if request.keystore:
        cmd += ["-keystore", request.keystore]
    if request.storetype:
        cmd += ["-storetype", request.storetype]
    if request.storepass:
        cmd += ["-storepass", request.storepass]
    cmd += request.extra_arguments()
    if request.provider_name:
        cmd += ["-providerName", request.provider_name]
    if request.provider_class:
        cmd += ["-providerClass", request.provider_class]
    if request.provider_arg:
        cmd += ["-providerArg", request.provider_arg]
    if request.protected_authentication_path:
        cmd.append("-protected")
    cmd += [str(a) for a in request.arguments if a]
    cmd.append(str(request.archive))
    if request.alias:
        cmd.append(request.alias)
    return cmd


class JarSigner:
    """Runs jarsigner for a request."""

    def __init__(self, timeout: Optional[float] = None) -> None:
        self.timeout = timeout
        self.toolchain: Optional[Toolchain] = None

    def set_toolchain(self, toolchain: Optional[Toolchain]) -> None:
        self.toolchain = toolchain

    def find_executable(self) -> str:
        if self.toolchain is not None:
            found = self.toolchain.find_tool(TOOL_NAME)
            if found is not None:
                return str(found)
        java_home = os.environ.get("JAVA_HOME")
        if java_home:
            for candidate in (TOOL_NAME, f"{TOOL_NAME}.exe"):
                path = Path(java_home) / "bin" / candidate
                if path.is_file():
                    return str(path)
        return shutil.which(TOOL_NAME) or TOOL_NAME

    def execute(self, request: JarSignerRequest) -> JavaToolResult:
        cmd = build_command(self.find_executable(), request)
        cwd = str(request.working_directory) if request.working_directory else None
        try:
            proc = run_subprocess(cmd, timeout=self.timeout, cwd=cwd)
        except (OSError, subprocess.SubprocessError) as e:
            raise JavaToolError(f"{type(e).__name__}: {e}") from e
        return JavaToolResult(
            exit_code=proc.returncode,
            command_line=cmd,
            stdout=proc.stdout or "",
            stderr=proc.stderr or "",
        )


__all__ = [
    "JarSignerRequest",
    "JarSignerSignRequest",
    "JarSignerVerifyRequest",
    "JavaToolResult",
    "JarSigner",
    "build_command",
]
