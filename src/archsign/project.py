"""Build project description: main artifact plus attached artifacts.

A build tool (or a CI step) writes a manifest describing what it produced:

    basedir: .
    artifact:
      artifact_id: app
      version: 1.0
      type: jar
      file: target/app.jar
    attached:
      - classifier: sources
        type: jar
        file: target/app-sources.jar

JSON and YAML manifests are both accepted. Relative ``file`` entries resolve
against ``basedir``, which itself defaults to the manifest's directory.
"""
from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import yaml

from archsign.errors import ConfigurationError

ZIP_LOCAL_HEADER = b"PK\x03\x04"


@dataclass(frozen=True)
class ProjectArtifact:
    """One output of the build."""
    artifact_id: str
    file: Optional[Path] = None
    classifier: Optional[str] = None
    group_id: Optional[str] = None
    version: Optional[str] = None
    type: str = "jar"

    def __str__(self) -> str:
        coords = [self.group_id or "", self.artifact_id, self.type]
        if self.classifier:
            coords.append(self.classifier)
        if self.version:
            coords.append(str(self.version))
        return ":".join(coords)


@dataclass
class BuildProject:
    """Outputs of one build, in the order the build attached them."""
    basedir: Path
    artifact: Optional[ProjectArtifact] = None
    attached: list[ProjectArtifact] = field(default_factory=list)


def is_zip_file(path: Optional[Path]) -> bool:
    """True when ``path`` is a regular file starting with a zip entry header."""
    if path is None:
        return False
    try:
        with open(path, "rb") as f:
            return f.read(4) == ZIP_LOCAL_HEADER
    except OSError:
        return False


def is_signable(artifact: Optional[ProjectArtifact]) -> bool:
    """An artifact is signable when it has a file with zip content."""
    return artifact is not None and artifact.file is not None and is_zip_file(artifact.file)


def _artifact_from_dict(data: dict[str, Any], basedir: Path, default_id: str) -> ProjectArtifact:
    if not isinstance(data, dict):
        raise ConfigurationError(f"Artifact entry must be a mapping, got {data!r}")
    file_value = data.get("file")
    file_path = None
    if file_value:
        file_path = Path(file_value)
        if not file_path.is_absolute():
            file_path = basedir / file_path
    version = data.get("version")
    return ProjectArtifact(
        artifact_id=str(data.get("artifact_id", default_id)),
        file=file_path,
        classifier=data.get("classifier") or None,
        group_id=data.get("group_id"),
        version=str(version) if version is not None else None,
        type=str(data.get("type", "jar")),
    )


def _read_manifest(path: Path) -> dict[str, Any]:
    try:
        text = path.read_text()
    except OSError as e:
        raise ConfigurationError(f"Could not read project manifest {path}: {e}") from e
    try:
        if path.suffix.lower() == ".json":
            data = json.loads(text)
        else:
            data = yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise ConfigurationError(f"Malformed project manifest {path}: {e}") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Project manifest {path} must contain a mapping")
    return data


def load_project_manifest(path: Path) -> BuildProject:
    """Load a BuildProject from a JSON or YAML manifest file."""
    path = Path(path)
    data = _read_manifest(path)

    basedir = Path(data.get("basedir") or ".")
    if not basedir.is_absolute():
        basedir = (path.parent / basedir).resolve()

    main = data.get("artifact")
    artifact = _artifact_from_dict(main, basedir, basedir.name) if main else None
    default_id = artifact.artifact_id if artifact else basedir.name

    attached_raw = data.get("attached") or []
    if not isinstance(attached_raw, list):
        raise ConfigurationError(f"'attached' in {path} must be a list")
    attached = [_artifact_from_dict(item, basedir, default_id) for item in attached_raw]

    return BuildProject(basedir=basedir, artifact=artifact, attached=attached)


__all__ = [
    "ProjectArtifact",
    "BuildProject",
    "is_zip_file",
    "is_signable",
    "load_project_manifest",
]
