"""Directory scanning with Ant-style include/exclude patterns.

Patterns are relative to the scan root and use ``/`` as separator:

- ``*`` matches any run of characters inside one path segment
- ``?`` matches exactly one character inside one path segment
- ``**`` matches zero or more whole directories
- a trailing ``/`` is shorthand for ``/**``

Version-control metadata directories are always excluded.
"""
from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Iterable, Union

DEFAULT_INCLUDES = "**/*.?ar"

DEFAULT_EXCLUDES = (
    "**/*~",
    "**/#*#",
    "**/.#*",
    "**/%*%",
    "**/._*",
    "**/CVS/**",
    "**/.cvsignore",
    "**/.svn/**",
    "**/.git/**",
    "**/.gitignore",
    "**/.gitattributes",
    "**/.hg/**",
    "**/.bzr/**",
    "**/.DS_Store",
)

Patterns = Union[str, Iterable[str], None]


def split_patterns(patterns: Patterns) -> list[str]:
    """Normalize a comma-joined string or an iterable into a pattern list."""
    if patterns is None:
        return []
    if isinstance(patterns, str):
        items = patterns.split(",")
    else:
        items = [p for chunk in patterns for p in str(chunk).split(",")]
    return [item.strip() for item in items if item.strip()]


def _segment_regex(segment: str) -> str:
    out = []
    for ch in segment:
        if ch == "*":
            out.append("[^/]*")
        elif ch == "?":
            out.append("[^/]")
        else:
            out.append(re.escape(ch))
    return "".join(out)


def compile_pattern(pattern: str) -> re.Pattern[str]:
    """Translate one Ant-style pattern into an anchored regex."""
    pattern = pattern.replace("\\", "/")
    if pattern.endswith("/"):
        pattern += "**"
    pattern = pattern.lstrip("/")

    segments = pattern.split("/")
    parts: list[str] = []
    for i, segment in enumerate(segments):
        last = i == len(segments) - 1
        if segment == "**":
            parts.append(".*" if last else "(?:[^/]+/)*")
        else:
            parts.append(_segment_regex(segment) + ("" if last else "/"))
    return re.compile("".join(parts))


def _matches_any(rel_path: str, compiled: list[re.Pattern[str]]) -> bool:
    return any(p.fullmatch(rel_path) for p in compiled)


def _raise(error: OSError) -> None:
    raise error


def get_files(
    root: Path,
    includes: Patterns = DEFAULT_INCLUDES,
    excludes: Patterns = None,
    *,
    add_default_excludes: bool = True,
) -> list[Path]:
    """Return files under ``root`` matching ``includes`` and not ``excludes``.

    Results are absolute paths sorted by their path relative to ``root``.

    Raises:
        OSError: if ``root`` is missing, not a directory, or unreadable.
    """
    root = Path(root)
    if not root.exists():
        raise FileNotFoundError(f"Archive directory does not exist: {root}")
    if not root.is_dir():
        raise NotADirectoryError(f"Archive directory is not a directory: {root}")

    include_list = split_patterns(includes) or ["**"]
    exclude_list = split_patterns(excludes)
    if add_default_excludes:
        exclude_list.extend(DEFAULT_EXCLUDES)

    include_re = [compile_pattern(p) for p in include_list]
    exclude_re = [compile_pattern(p) for p in exclude_list]

    found: list[tuple[str, Path]] = []
    for dirpath, dirs, files in os.walk(root, onerror=_raise):
        dirs.sort()
        rel_dir = os.path.relpath(dirpath, root)
        rel_dir = "" if rel_dir == "." else rel_dir.replace(os.sep, "/") + "/"
        for fname in files:
            rel = rel_dir + fname
            if _matches_any(rel, include_re) and not _matches_any(rel, exclude_re):
                found.append((rel, (Path(dirpath) / fname).absolute()))

    found.sort(key=lambda item: item[0])
    return [path for _rel, path in found]


__all__ = [
    "DEFAULT_INCLUDES",
    "DEFAULT_EXCLUDES",
    "split_patterns",
    "compile_pattern",
    "get_files",
]
