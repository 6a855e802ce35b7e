"""Shared plumbing for the sign and verify commands.

Both commands take the same input-selection and keystore options, build an
override dict from whatever flags were given, load the layered config and
hand it to a RunController. Only flags the user actually passed end up in
the overrides, so config file and environment values are not clobbered by
click defaults.
"""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Callable, Optional

import click
from rich.box import ROUNDED
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table
from rich.text import Text

from archsign.config import load_config
from archsign.controller import create_controller
from archsign.errors import ArchsignError
from archsign.models import RunStatus, RunSummary
from archsign.utils import get_workspace_root

_HANDLER_MARK = "_archsign_cli_handler"


def configure_logging(debug: bool = False) -> None:
    """Route the ``archsign`` logger through rich, replacing any earlier CLI handler."""
    logger = logging.getLogger("archsign")
    for handler in list(logger.handlers):
        if getattr(handler, _HANDLER_MARK, False):
            logger.removeHandler(handler)

    handler = RichHandler(
        console=Console(stderr=True),
        show_time=debug,
        show_path=debug,
        markup=False,
        rich_tracebacks=debug,
    )
    setattr(handler, _HANDLER_MARK, True)
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if debug else logging.INFO)
    logger.propagate = False


def common_options(func: Callable) -> Callable:
    """Options shared by ``archsign sign`` and ``archsign verify``."""
    options = [
        click.argument("archive", required=False, type=click.Path(dir_okay=False)),
        click.option("--archive-directory", "-d", type=click.Path(file_okay=False),
                     help="Scan this directory for archives"),
        click.option("--include", "includes", multiple=True,
                     help="Ant-style include pattern for the scan (default: **/*.?ar)"),
        click.option("--exclude", "excludes", multiple=True,
                     help="Ant-style exclude pattern for the scan"),
        click.option("--project-manifest", "-p", type=click.Path(exists=True, dir_okay=False),
                     help="YAML/JSON manifest listing the build's artifacts"),
        click.option("--skip-main-artifact", is_flag=True,
                     help="Do not process the project's main artifact"),
        click.option("--no-attachments", is_flag=True,
                     help="Do not process the project's attached artifacts"),
        click.option("--include-classifier", "include_classifiers", multiple=True,
                     help="Only process attachments with this classifier"),
        click.option("--exclude-classifier", "exclude_classifiers", multiple=True,
                     help="Never process attachments with this classifier"),
        click.option("--keystore", "-k", help="Keystore location"),
        click.option("--storetype", help="Keystore type"),
        click.option("--storepass", help="Keystore password (plain or {encrypted})"),
        click.option("--alias", "-a", help="Key alias"),
        click.option("--provider-name", help="Cryptographic provider name"),
        click.option("--provider-class", help="Cryptographic provider class"),
        click.option("--provider-arg", help="Cryptographic provider argument"),
        click.option("--max-memory", help="Maximum heap for jarsigner, e.g. 256m"),
        click.option("--working-directory", type=click.Path(file_okay=False),
                     help="Directory jarsigner runs in"),
        click.option("--arg", "arguments", multiple=True,
                     help="Extra argument passed to jarsigner (repeatable)"),
        click.option("--protected", "protected_authentication_path", is_flag=True,
                     help="Use a protected authentication path"),
        click.option("--threads", "-j", type=int, default=None,
                     help="Workers for the directory scan (default: 1)"),
        click.option("--timeout", "tool_timeout", type=float, default=None,
                     help="Seconds before a jarsigner run is abandoned"),
        click.option("--toolchains", "toolchains_file", type=click.Path(dir_okay=False),
                     help="Toolchains file (default: ~/.archsign/toolchains.yaml)"),
        click.option("--skip", is_flag=True, help="Do nothing and report the run as disabled"),
        click.option("--verbose", "-v", is_flag=True, help="Log each archive and pass -verbose to jarsigner"),
        click.option("--config", "config_path", type=click.Path(exists=True, dir_okay=False),
                     help="Config file (default: <workspace>/.archsign/config.json|yaml)"),
        click.option("--workspace", "-w", type=click.Path(file_okay=False),
                     help="Workspace root (default: auto-detected)"),
        click.option("--debug", is_flag=True, help="Debug logging"),
        click.option("--json", "output_json", is_flag=True, help="Print the run summary as JSON"),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def build_overrides(params: dict[str, Any]) -> dict[str, Any]:
    """Translate parsed click params into a config override dict."""
    overrides: dict[str, Any] = {
        "archive": params.get("archive"),
        "archive_directory": params.get("archive_directory"),
        "includes": list(params.get("includes") or ()) or None,
        "excludes": list(params.get("excludes") or ()) or None,
        "project_manifest": params.get("project_manifest"),
        "process_main_artifact": False if params.get("skip_main_artifact") else None,
        "process_attached_artifacts": False if params.get("no_attachments") else None,
        "include_classifiers": list(params.get("include_classifiers") or ()) or None,
        "exclude_classifiers": list(params.get("exclude_classifiers") or ()) or None,
        "keystore": params.get("keystore"),
        "storetype": params.get("storetype"),
        "storepass": params.get("storepass"),
        "alias": params.get("alias"),
        "provider_name": params.get("provider_name"),
        "provider_class": params.get("provider_class"),
        "provider_arg": params.get("provider_arg"),
        "max_memory": params.get("max_memory"),
        "working_directory": params.get("working_directory"),
        "arguments": list(params.get("arguments") or ()) or None,
        "protected_authentication_path": True if params.get("protected_authentication_path") else None,
        "threads": params.get("threads"),
        "tool_timeout": params.get("tool_timeout"),
        "toolchains_file": params.get("toolchains_file"),
        "skip": True if params.get("skip") else None,
        "verbose": True if params.get("verbose") else None,
    }
    return overrides


def _cell(value: Any) -> Text:
    """Plain table cell; paths may contain square brackets."""
    return Text("" if value is None else str(value))


def render_summary(summary: RunSummary, kind: str, output_json: bool = False) -> None:
    if output_json:
        data = summary.to_dict()
        data["operation"] = kind
        click.echo(json.dumps(data, indent=2))
        return

    console = Console()
    if summary.status is RunStatus.DISABLED:
        console.print(f"[dim]archsign {kind}: skipped[/dim]")
        return

    table = Table(title=f"archsign {kind}", box=ROUNDED, show_header=True, header_style="bold")
    table.add_column("Archive")
    table.add_column("Classifier")
    table.add_column("Result")
    for outcome in sorted(summary.outcomes, key=lambda o: (o.task.mode.value, o.task.index)):
        table.add_row(_cell(outcome.task.path), _cell(outcome.task.classifier), "[green]ok[/green]")
    for failure in summary.failures:
        result = failure.failure_kind.value
        if failure.exit_code is not None:
            result += f" (exit {failure.exit_code})"
        table.add_row(_cell(failure.task.path), _cell(failure.task.classifier), f"[red]{result}[/red]")
    for decision in summary.skipped:
        table.add_row(_cell(decision.path), _cell(decision.classifier), f"[yellow]{decision.status.value}[/yellow]")
    console.print(table)

    status_style = "green" if summary.ok else "red"
    console.print(f"[{status_style}]{summary.status.value}[/{status_style}]: {summary.attempted} attempted")


def run_command(kind: str, params: dict[str, Any], extra: Optional[dict[str, Any]] = None) -> RunSummary:
    """Load config, run the controller, print the summary.

    Raises:
        click.ClickException: on a configuration problem or an aborted run.
    """
    configure_logging(debug=params.get("debug", False))

    overrides = build_overrides(params)
    if extra:
        overrides[kind] = extra

    workspace = Path(params["workspace"]) if params.get("workspace") else get_workspace_root()
    config_path = Path(params["config_path"]) if params.get("config_path") else None

    try:
        config = load_config(config_path=config_path, workspace=workspace, overrides=overrides)
        summary = create_controller(config, kind).run()
    except ArchsignError as e:
        raise click.ClickException(str(e)) from e

    render_summary(summary, kind, params.get("output_json", False))
    if not summary.ok:
        raise click.ClickException(str(summary.first_error))
    return summary


__all__ = ["configure_logging", "common_options", "build_overrides", "render_summary", "run_command"]
