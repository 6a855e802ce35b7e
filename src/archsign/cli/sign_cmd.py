"""archsign sign - sign archives with jarsigner.

Usage:
    archsign sign dist/app.jar --keystore keystore.p12 --alias release
    archsign sign -d dist -j 4 --keystore keystore.p12 --alias release
    archsign sign -p build/artifacts.yaml --exclude-classifier sources
"""
from __future__ import annotations

import click

from .common import common_options, run_command


@click.command("sign")
@common_options
@click.option("--keypass", help="Key password (plain or {encrypted})")
@click.option("--sigfile", help="Base name for the .SF and signature block files")
@click.option("--tsa", help="Time stamping authority URL")
@click.option("--tsacert", help="Alias of the time stamping authority certificate")
@click.option("--remove-existing-signatures", is_flag=True,
              help="Strip signatures already present before signing")
def sign_command(
    keypass: str | None,
    sigfile: str | None,
    tsa: str | None,
    tsacert: str | None,
    remove_existing_signatures: bool,
    **params,
) -> None:
    """Sign JAR archives.

    An ARCHIVE argument wins over every other input. Otherwise the project
    manifest's main artifact and attachments are signed, then every archive
    found under --archive-directory.

    \b
    Examples:
        archsign sign dist/app.jar -k keystore.p12 -a release --storepass {gAAAA...}
        archsign sign -d dist -j 4 -k keystore.p12 -a release
    """
    extra = {
        "keypass": keypass,
        "sigfile": sigfile,
        "tsa": tsa,
        "tsacert": tsacert,
        "remove_existing_signatures": True if remove_existing_signatures else None,
    }
    run_command("sign", params, extra)


__all__ = ["sign_command"]
