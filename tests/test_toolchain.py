"""Tests for toolchain declaration and lookup."""
from __future__ import annotations

import pytest

from archsign.errors import ConfigurationError
from archsign.toolchain import SessionContext, Toolchain, ToolchainManager

TOOLCHAINS_YAML = """\
toolchains:
  - type: jdk
    provides:
      version: 11
    configuration:
      jdk_home: {home}/jdk11
  - type: jdk
    provides:
      version: "17"
      vendor: temurin
    configuration:
      jdk_home: {home}/jdk17
"""


def test_missing_file_is_empty(tmp_path):
    assert ToolchainManager.from_file(tmp_path / "none.yaml").toolchains == []


def test_resolve_first_matching(tmp_path):
    path = tmp_path / "toolchains.yaml"
    path.write_text(TOOLCHAINS_YAML.format(home=tmp_path))
    manager = ToolchainManager.from_file(path)
    assert manager.resolve("jdk").home == tmp_path / "jdk11"
    found = manager.resolve("jdk", SessionContext({"version": "17"}))
    assert found.home == tmp_path / "jdk17"
    assert manager.resolve("jdk", SessionContext({"version": "21"})) is None
    assert manager.resolve("maven") is None


def test_entry_without_home(tmp_path):
    path = tmp_path / "toolchains.yaml"
    path.write_text("toolchains:\n  - type: jdk\n")
    with pytest.raises(ConfigurationError, match="jdk_home"):
        ToolchainManager.from_file(path)


def test_find_tool(tmp_path):
    (tmp_path / "bin").mkdir()
    (tmp_path / "bin" / "jarsigner").write_text("#!/bin/sh\n")
    toolchain = Toolchain("jdk", tmp_path, {"version": "17"})
    assert toolchain.find_tool("jarsigner") == tmp_path / "bin" / "jarsigner"
    assert toolchain.find_tool("keytool") is None
    assert str(toolchain) == f"JDK[{tmp_path}] (version=17)"
