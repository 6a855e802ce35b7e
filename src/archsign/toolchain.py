"""JDK toolchain lookup.

Toolchains are declared in a YAML or JSON file (default
``~/.archsign/toolchains.yaml``):

    toolchains:
      - type: jdk
        provides:
          version: "17"
          vendor: temurin
        configuration:
          jdk_home: /opt/jdk-17

``resolve("jdk", session)`` returns the first declared toolchain of that type
whose ``provides`` satisfy every requirement of the session. Not finding one
is normal and yields ``None``.
"""
from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import yaml

from archsign.credentials import archsign_home
from archsign.errors import ConfigurationError


@dataclass(frozen=True)
class SessionContext:
    """Requirements the current run places on toolchains."""
    requirements: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class Toolchain:
    type: str
    home: Path
    provides: dict[str, str] = field(default_factory=dict)

    def find_tool(self, name: str) -> Optional[Path]:
        """Locate ``bin/<name>`` inside this toolchain, if present."""
        for candidate in (name, f"{name}.exe"):
            path = self.home / "bin" / candidate
            if path.is_file():
                return path
        return None

    def __str__(self) -> str:
        extras = ", ".join(f"{k}={v}" for k, v in sorted(self.provides.items()))
        return f"{self.type.upper()}[{self.home}]" + (f" ({extras})" if extras else "")


def default_toolchains_file() -> Path:
    return archsign_home() / "toolchains.yaml"


class ToolchainManager:
    """Reads declared toolchains and picks one matching a session."""

    def __init__(self, toolchains: Optional[list[Toolchain]] = None) -> None:
        self.toolchains = list(toolchains or [])

    @classmethod
    def from_file(cls, path: Optional[Path] = None) -> "ToolchainManager":
        path = Path(path) if path else default_toolchains_file()
        if not path.exists():
            return cls([])
        try:
            text = path.read_text()
            data = json.loads(text) if path.suffix.lower() == ".json" else yaml.safe_load(text)
        except (OSError, json.JSONDecodeError, yaml.YAMLError) as e:
            raise ConfigurationError(f"Could not read toolchains file {path}: {e}") from e
        entries = (data or {}).get("toolchains", []) if isinstance(data, dict) else []
        return cls([_toolchain_from_dict(entry, path) for entry in entries])

    def resolve(self, kind: str, session: Optional[SessionContext] = None) -> Optional[Toolchain]:
        requirements = session.requirements if session else {}
        for toolchain in self.toolchains:
            if toolchain.type != kind:
                continue
            if all(toolchain.provides.get(k) == str(v) for k, v in requirements.items()):
                return toolchain
        return None


def _toolchain_from_dict(entry: Any, source: Path) -> Toolchain:
    if not isinstance(entry, dict):
        raise ConfigurationError(f"Toolchain entry in {source} must be a mapping")
    configuration = entry.get("configuration") or {}
    home = configuration.get("jdk_home") or configuration.get("jdkHome")
    if not home:
        raise ConfigurationError(f"Toolchain entry in {source} has no configuration.jdk_home")
    provides = {str(k): str(v) for k, v in (entry.get("provides") or {}).items()}
    return Toolchain(type=str(entry.get("type", "jdk")), home=Path(os.path.expanduser(home)), provides=provides)


__all__ = ["SessionContext", "Toolchain", "ToolchainManager", "default_toolchains_file"]
