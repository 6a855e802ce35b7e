"""Common utilities - workspace detection, subprocess execution."""
from __future__ import annotations

import os
import subprocess
from pathlib import Path
from typing import Optional


def find_workspace_root(start_path: Optional[Path] = None) -> Path:
    """Find the directory holding the archsign workspace.

    Searches upward from start_path (or cwd) for marker directories:
        1. .archsign/ directory (workspace initialized)
        2. .git/ directory (repo root fallback)

    Falls back to the start path if no markers are found.
    """
    start = Path(start_path).resolve() if start_path else Path.cwd()

    for parent in [start] + list(start.parents):
        if (parent / ".archsign").is_dir():
            return parent
        if (parent / ".git").is_dir():
            return parent

    return start


def get_workspace_root() -> Path:
    """Get workspace root, respecting ARCHSIGN_WORKSPACE_ROOT if set."""
    env_root = os.environ.get("ARCHSIGN_WORKSPACE_ROOT")
    if env_root:
        return Path(env_root)
    return find_workspace_root()


def run_subprocess(
    cmd: list[str],
    timeout: Optional[float] = None,
    capture_output: bool = True,
    text: bool = True,
    check: bool = False,
    **kwargs,
) -> "subprocess.CompletedProcess[str]":
    """Run subprocess with argv discipline and captured output.

    Args:
        cmd: Command as list of strings (NO shell strings)
        timeout: Timeout in seconds (default: none)
        capture_output: Capture stdout/stderr (default True)
        text: Return strings not bytes (default True)
        check: Raise on non-zero exit (default False)
        **kwargs: Additional subprocess.run arguments

    Raises:
        TypeError: If cmd is not a list
        OSError: If the executable cannot be started
        subprocess.TimeoutExpired: If timeout exceeded
    """
    if isinstance(cmd, (str, bytes)):
        raise TypeError(
            "cmd must be a list of args, not a shell string. "
            "Pass ['jarsigner', '-verify', 'a.jar'] not 'jarsigner -verify a.jar'"
        )

    return subprocess.run(
        cmd,
        timeout=timeout,
        capture_output=capture_output,
        text=text,
        check=check,
        **kwargs,
    )


__all__ = ["find_workspace_root", "get_workspace_root", "run_subprocess"]
