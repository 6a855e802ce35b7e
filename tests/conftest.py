"""Pytest configuration and fixtures for archsign tests."""
from __future__ import annotations

import logging
import os
import threading
import zipfile
from pathlib import Path
from typing import Optional

import pytest

from archsign.config import SignerConfig
from archsign.errors import JavaToolError
from archsign.jarsigner import JarSignerRequest, JavaToolResult, build_command
from archsign.project import BuildProject, ProjectArtifact


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    """Keep ARCHSIGN_* settings from the developer's shell out of tests."""
    for name in list(os.environ):
        if name.startswith("ARCHSIGN_"):
            monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("ARCHSIGN_HOME", str(tmp_path / "archsign-home"))
    yield
    logger = logging.getLogger("archsign")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


def write_jar(
    path: Path,
    entries: Optional[dict[str, bytes]] = None,
    manifest: bytes = b"Manifest-Version: 1.0\r\n\r\n",
) -> Path:
    """Write a small zip archive at ``path``."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(path, "w") as zf:
        zf.writestr("META-INF/MANIFEST.MF", manifest)
        for name, data in (entries or {"com/example/App.class": b"\xca\xfe\xba\xbe"}).items():
            zf.writestr(name, data)
    return path


@pytest.fixture
def make_jar():
    return write_jar


class FakeJarSigner:
    """Stands in for JarSigner: records requests, returns scripted exit codes."""

    def __init__(self, exit_codes: Optional[dict[str, int]] = None, broken: tuple[str, ...] = ()):
        self.exit_codes = dict(exit_codes or {})
        self.broken = set(broken)
        self.requests: list[JarSignerRequest] = []
        self.toolchain = None
        self.threads: set[str] = set()
        self._lock = threading.Lock()

    def set_toolchain(self, toolchain) -> None:
        self.toolchain = toolchain

    @property
    def archives(self) -> list[str]:
        return [Path(r.archive).name for r in self.requests]

    def execute(self, request: JarSignerRequest) -> JavaToolResult:
        name = Path(request.archive).name
        with self._lock:
            self.requests.append(request)
            self.threads.add(threading.current_thread().name)
        if name in self.broken:
            raise JavaToolError(f"FileNotFoundError: jarsigner not found for {name}")
        return JavaToolResult(
            exit_code=self.exit_codes.get(name, 0),
            command_line=build_command("jarsigner", request),
        )


@pytest.fixture
def fake_tool():
    return FakeJarSigner()


@pytest.fixture
def config_factory():
    def _make(**kwargs) -> SignerConfig:
        return SignerConfig.from_dict(kwargs)
    return _make


@pytest.fixture
def sample_project(tmp_path, make_jar):
    """Project with a jar main artifact and four attachments.

    Attachments: sources (jar), javadoc (jar), tests (jar), dist (not a zip).
    """
    base = tmp_path / "project"
    target = base / "target"
    main = make_jar(target / "app.jar")
    sources = make_jar(target / "app-sources.jar")
    javadoc = make_jar(target / "app-javadoc.jar")
    tests = make_jar(target / "app-tests.jar")
    dist = target / "app-dist.txt"
    dist.write_text("not an archive")
    return BuildProject(
        basedir=base,
        artifact=ProjectArtifact("app", main, version="1.0"),
        attached=[
            ProjectArtifact("app", sources, classifier="sources"),
            ProjectArtifact("app", javadoc, classifier="javadoc"),
            ProjectArtifact("app", tests, classifier="tests"),
            ProjectArtifact("app", dist, classifier="dist", type="txt"),
        ],
    )
