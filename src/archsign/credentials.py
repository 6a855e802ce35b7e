"""Password decryption for keystore and key passwords.

Passwords in config files may be stored encrypted. An encrypted value is a
Fernet token wrapped in braces, e.g. ``{gAAAAAB...}``; anything else is a
plain value and is returned unchanged.

The master key comes from, in order:
    1. ARCHSIGN_MASTER_KEY environment variable
    2. $ARCHSIGN_HOME/master.key (default ~/.archsign/master.key)

Usage:
    archsign encrypt-password --generate-key    # once
    archsign encrypt-password                   # prompts, prints {token}
"""
from __future__ import annotations

import os
from pathlib import Path
from typing import Optional, Protocol, Union

from cryptography.fernet import Fernet, InvalidToken

from archsign.errors import DecryptionError

MASTER_KEY_ENV = "ARCHSIGN_MASTER_KEY"
HOME_ENV = "ARCHSIGN_HOME"


class CredentialService(Protocol):
    """Anything that can turn a configured secret into plaintext."""

    def decrypt(self, encoded: Optional[str]) -> Optional[str]:  # pragma: no cover - protocol definition
        ...


def archsign_home() -> Path:
    env_home = os.environ.get(HOME_ENV)
    if env_home:
        return Path(env_home)
    return Path.home() / ".archsign"


def master_key_path(home: Optional[Path] = None) -> Path:
    return (home or archsign_home()) / "master.key"


def is_encrypted(value: Optional[str]) -> bool:
    return bool(value) and len(value) > 2 and value.startswith("{") and value.endswith("}")


class PlainCredentials:
    """Returns every value as-is."""

    def decrypt(self, encoded: Optional[str]) -> Optional[str]:
        return encoded


class MasterKeyCredentials:
    """Decrypts ``{token}`` values with a Fernet master key."""

    def __init__(self, master_key: Union[bytes, str, None] = None) -> None:
        if isinstance(master_key, str):
            master_key = master_key.strip().encode()
        self._master_key = master_key or None

    @classmethod
    def from_environment(cls, home: Optional[Path] = None) -> "MasterKeyCredentials":
        env_key = os.environ.get(MASTER_KEY_ENV)
        if env_key:
            return cls(env_key)
        key_path = master_key_path(home)
        if key_path.exists():
            return cls(key_path.read_bytes())
        return cls(None)

    @property
    def has_master_key(self) -> bool:
        return self._master_key is not None

    def _fernet(self) -> Fernet:
        if self._master_key is None:
            raise DecryptionError(
                f"Encrypted password found but no master key is configured "
                f"(set {MASTER_KEY_ENV} or create {master_key_path()})"
            )
        try:
            return Fernet(self._master_key)
        except ValueError as e:
            raise DecryptionError(f"Invalid master key: {e}") from e

    def decrypt(self, encoded: Optional[str]) -> Optional[str]:
        if not is_encrypted(encoded):
            return encoded
        token = encoded[1:-1]
        try:
            return self._fernet().decrypt(token.encode()).decode()
        except InvalidToken as e:
            raise DecryptionError("Encrypted password could not be decrypted with the master key") from e

    def encrypt(self, plaintext: str) -> str:
        token = self._fernet().encrypt(plaintext.encode()).decode()
        return "{" + token + "}"


def generate_master_key(path: Optional[Path] = None) -> Path:
    """Write a fresh master key and return its path."""
    key_path = path or master_key_path()
    key_path.parent.mkdir(parents=True, exist_ok=True)
    key_path.write_bytes(Fernet.generate_key())
    os.chmod(key_path, 0o600)
    return key_path


__all__ = [
    "CredentialService",
    "PlainCredentials",
    "MasterKeyCredentials",
    "generate_master_key",
    "master_key_path",
    "archsign_home",
    "is_encrypted",
]
