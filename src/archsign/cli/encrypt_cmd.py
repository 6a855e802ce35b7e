"""archsign encrypt-password - produce {encrypted} values for config files.

Usage:
    archsign encrypt-password --generate-key
    archsign encrypt-password
"""
from __future__ import annotations

import click

from archsign.credentials import MasterKeyCredentials, generate_master_key, master_key_path
from archsign.errors import ArchsignError


@click.command("encrypt-password")
@click.option("--generate-key", is_flag=True, help="Create the master key")
@click.option("--force", is_flag=True, help="Overwrite an existing master key")
@click.option("--password", default=None, help="Password to encrypt (prompted when omitted)")
def encrypt_password_command(generate_key: bool, force: bool, password: str | None) -> None:
    """Encrypt a keystore or key password with the master key.

    The printed {token} can be used for storepass or keypass in a config
    file, an ARCHSIGN_* variable or on the command line.
    """
    if generate_key:
        key_path = master_key_path()
        if key_path.exists() and not force:
            raise click.ClickException(f"Master key already exists at {key_path} (use --force to replace it)")
        generate_master_key(key_path)
        click.echo(f"Master key written to {key_path}")
        return

    credentials = MasterKeyCredentials.from_environment()
    if not credentials.has_master_key:
        raise click.ClickException("No master key configured. Run: archsign encrypt-password --generate-key")

    if password is None:
        password = click.prompt("Password", hide_input=True, confirmation_prompt=True)
    try:
        click.echo(credentials.encrypt(password))
    except ArchsignError as e:
        raise click.ClickException(str(e)) from e


__all__ = ["encrypt_password_command"]
