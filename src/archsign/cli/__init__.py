"""archsign CLI - batch signing and verification of JAR archives.

Commands:
    sign              - Sign archives with jarsigner
    verify            - Verify archive signatures
    encrypt-password  - Encrypt a password for use in config files
"""
from __future__ import annotations

import click

from archsign import __version__

from .encrypt_cmd import encrypt_password_command
from .sign_cmd import sign_command
from .verify_cmd import verify_command


@click.group()
@click.version_option(version=__version__, prog_name="archsign")
def cli() -> None:
    """archsign - sign and verify JAR archives with jarsigner

    \b
    Quick start:
      archsign encrypt-password --generate-key
      archsign sign dist/app.jar -k keystore.p12 -a release
      archsign sign -d dist -j 4          Sign everything under dist/
      archsign verify -d dist             Verify signatures
    """


cli.add_command(sign_command, name="sign")
cli.add_command(verify_command, name="verify")
cli.add_command(encrypt_password_command, name="encrypt-password")


def main() -> None:
    """CLI entry point."""
    cli(prog_name="archsign")


if __name__ == "__main__":
    main()
