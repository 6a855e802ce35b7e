"""archsign verify - check archive signatures with jarsigner -verify."""
from __future__ import annotations

import click

from .common import common_options, run_command


@click.command("verify")
@common_options
@click.option("--certs", is_flag=True, help="Show certificate details (jarsigner -certs)")
@click.option("--error-when-not-signed", is_flag=True,
              help="Fail an archive that carries no signature at all")
def verify_command(certs: bool, error_when_not_signed: bool, **params) -> None:
    """Verify the signatures of JAR archives.

    Inputs are selected exactly as for `archsign sign`.
    """
    extra = {
        "certs": True if certs else None,
        "error_when_not_signed": True if error_when_not_signed else None,
    }
    run_command("verify", params, extra)


__all__ = ["verify_command"]
