"""CLI tests for archsign sign / verify / encrypt-password."""
from __future__ import annotations

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from archsign import __version__
from archsign.cli import cli
from archsign.cli.common import render_summary
from archsign.credentials import MasterKeyCredentials
from archsign.jarsigner import JarSignerVerifyRequest
from archsign.models import ArchiveTask, InputMode, RunStatus, RunSummary, SigningOutcome

from conftest import FakeJarSigner


def _summary(output: str) -> dict:
    """The JSON summary is the last thing printed."""
    return json.loads(output[output.index("{\n"):])


@pytest.fixture
def tool(monkeypatch):
    fake = FakeJarSigner()
    monkeypatch.setattr("archsign.controller.JarSigner", lambda timeout=None: fake)
    return fake


@pytest.fixture
def workspace(tmp_path):
    ws = tmp_path / "ws"
    ws.mkdir()
    return ws


def test_version():
    result = CliRunner().invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output


class TestSign:
    def test_explicit_archive(self, tool, workspace):
        result = CliRunner().invoke(cli, [
            "sign", str(workspace / "app.jar"), "-w", str(workspace),
            "-k", "ks.p12", "-a", "release", "--storepass", "sp", "--tsa", "https://tsa.example", "--json",
        ])
        assert result.exit_code == 0, result.output
        data = _summary(result.output)
        assert data["operation"] == "sign"
        assert data["status"] == "success"
        assert data["attempted"] == 1
        request = tool.requests[0]
        assert (request.alias, request.storepass, request.tsa) == ("release", "sp", "https://tsa.example")

    def test_directory_scan_failure(self, monkeypatch, workspace, make_jar):
        fake = FakeJarSigner(exit_codes={"b.jar": 1})
        monkeypatch.setattr("archsign.controller.JarSigner", lambda timeout=None: fake)
        for name in ("a.jar", "b.jar", "c.jar"):
            make_jar(workspace / "dist" / name)
        result = CliRunner().invoke(cli, [
            "sign", "-d", str(workspace / "dist"), "-j", "2", "-w", str(workspace),
            "--storepass", "hunter2", "--json",
        ])
        assert result.exit_code == 1
        assert "exitCode 1" in result.output
        assert "hunter2" not in result.output
        data = _summary(result.output[:result.output.rindex("Error:")])
        assert data["status"] == "aborted"
        assert data["attempted"] == 3
        assert len(data["failures"]) == 1

    def test_workspace_config_file(self, tool, workspace, make_jar):
        (workspace / ".archsign").mkdir()
        (workspace / ".archsign" / "config.yaml").write_text("alias: from-config\nkeystore: ks.jks\n")
        make_jar(workspace / "dist" / "a.jar")
        result = CliRunner().invoke(cli, ["sign", "-d", str(workspace / "dist"), "-w", str(workspace)])
        assert result.exit_code == 0, result.output
        assert tool.requests[0].alias == "from-config"
        assert tool.requests[0].keystore == "ks.jks"

    def test_flags_override_config_file(self, tool, workspace, tmp_path):
        config = tmp_path / "signing.json"
        config.write_text(json.dumps({"alias": "from-config"}))
        result = CliRunner().invoke(cli, [
            "sign", str(workspace / "a.jar"), "--config", str(config), "-a", "from-flag", "-w", str(workspace),
        ])
        assert result.exit_code == 0, result.output
        assert tool.requests[0].alias == "from-flag"

    def test_skip(self, tool, workspace):
        result = CliRunner().invoke(cli, ["sign", str(workspace / "a.jar"), "--skip", "-w", str(workspace), "--json"])
        assert result.exit_code == 0
        assert _summary(result.output)["status"] == "disabled"
        assert tool.requests == []

    def test_missing_directory_is_error(self, tool, workspace):
        result = CliRunner().invoke(cli, ["sign", "-d", str(workspace / "nope"), "-w", str(workspace)])
        assert result.exit_code == 1
        assert "Failed to scan archive directory for JARs" in result.output

    def test_project_manifest(self, tool, workspace, make_jar):
        make_jar(workspace / "target" / "app.jar")
        make_jar(workspace / "target" / "app-sources.jar")
        manifest = workspace / "artifacts.yaml"
        manifest.write_text(
            "artifact:\n  artifact_id: app\n  file: target/app.jar\n"
            "attached:\n  - classifier: sources\n    file: target/app-sources.jar\n"
        )
        result = CliRunner().invoke(cli, [
            "sign", "-p", str(manifest), "--exclude-classifier", "sources", "-w", str(workspace), "--json",
        ])
        assert result.exit_code == 0, result.output
        assert tool.archives == ["app.jar"]
        skipped = _summary(result.output)["skipped"]
        assert [s["status"] for s in skipped] == ["skipped-filtered"]


class TestVerify:
    def test_certs(self, tool, workspace):
        result = CliRunner().invoke(cli, ["verify", str(workspace / "a.jar"), "--certs", "-w", str(workspace)])
        assert result.exit_code == 0, result.output
        request = tool.requests[0]
        assert isinstance(request, JarSignerVerifyRequest)
        assert request.certs is True

    def test_error_when_not_signed(self, tool, workspace, make_jar):
        jar = make_jar(workspace / "a.jar")
        result = CliRunner().invoke(cli, ["verify", str(jar), "--error-when-not-signed", "-w", str(workspace)])
        assert result.exit_code == 1
        assert "is not signed" in result.output
        assert tool.requests == []


class TestEncryptPassword:
    def test_generate_then_encrypt(self, tmp_path, monkeypatch):
        monkeypatch.setenv("ARCHSIGN_HOME", str(tmp_path / "home"))
        runner = CliRunner()
        result = runner.invoke(cli, ["encrypt-password", "--generate-key"])
        assert result.exit_code == 0, result.output
        assert (tmp_path / "home" / "master.key").exists()

        again = runner.invoke(cli, ["encrypt-password", "--generate-key"])
        assert again.exit_code == 1
        assert "already exists" in again.output

        result = runner.invoke(cli, ["encrypt-password"], input="hunter2\nhunter2\n")
        assert result.exit_code == 0, result.output
        token = result.output.strip().splitlines()[-1]
        assert MasterKeyCredentials.from_environment().decrypt(token) == "hunter2"

    def test_encrypted_storepass_used_for_signing(self, tool, tmp_path, workspace, monkeypatch):
        monkeypatch.setenv("ARCHSIGN_HOME", str(tmp_path / "home"))
        runner = CliRunner()
        runner.invoke(cli, ["encrypt-password", "--generate-key"])
        token = runner.invoke(cli, ["encrypt-password", "--password", "s3cret"]).output.strip()
        result = runner.invoke(cli, ["sign", str(workspace / "a.jar"), "--storepass", token, "-w", str(workspace)])
        assert result.exit_code == 0, result.output
        assert tool.requests[0].storepass == "s3cret"

    def test_without_master_key(self, tmp_path, monkeypatch):
        monkeypatch.setenv("ARCHSIGN_HOME", str(tmp_path / "empty"))
        result = CliRunner().invoke(cli, ["encrypt-password", "--password", "x"])
        assert result.exit_code == 1
        assert "No master key configured" in result.output


class TestRenderSummary:
    def test_bracketed_path_printed_verbatim(self, capsys):
        task = ArchiveTask(Path("/d/[b]a.jar"), InputMode.DIRECTORY_SCAN, classifier="[x]")
        summary = RunSummary(status=RunStatus.SUCCESS, outcomes=[SigningOutcome(task=task, exit_code=0)], attempted=1)
        render_summary(summary, "sign")
        out = capsys.readouterr().out
        assert "[b]a.jar" in out
        assert "[x]" in out
