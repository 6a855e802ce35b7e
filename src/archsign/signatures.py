"""Inspection and removal of existing JAR signatures.

A signed JAR carries, under META-INF/, one ``.SF`` signature file per signer
plus a signature block (``.RSA``, ``.DSA`` or ``.EC``), and the manifest
lists a digest for every entry. Unsigning drops the signature files and
keeps only the manifest's main section.
"""
from __future__ import annotations

import os
import re
import shutil
import tempfile
import zipfile
from pathlib import Path

MANIFEST_NAME = "META-INF/MANIFEST.MF"

_SIGNATURE_FILE = re.compile(r"^META-INF/(?:[^/]+\.(?:SF|DSA|RSA|EC)|SIG-[^/]+)$", re.IGNORECASE)


def is_signature_file(name: str) -> bool:
    return bool(_SIGNATURE_FILE.match(name))


def is_archive_signed(path: Path) -> bool:
    """True when the archive contains at least one signature file.

    Raises:
        OSError / zipfile.BadZipFile: if the archive cannot be read.
    """
    with zipfile.ZipFile(path) as zf:
        return any(is_signature_file(name) for name in zf.namelist())


def main_manifest_section(manifest: bytes) -> bytes:
    """Return the manifest's main section, dropping per-entry digests."""
    text = manifest.decode("utf-8").replace("\r\n", "\n").replace("\r", "\n")
    main, _sep, _rest = text.partition("\n\n")
    lines = [line for line in main.split("\n") if line]
    return ("\r\n".join(lines) + "\r\n\r\n").encode("utf-8")


def unsign_archive(path: Path) -> bool:
    """Strip signatures from ``path`` in place.

    Returns True when something was removed. The archive is rewritten through
    a temporary file in the same directory and then moved over ``path``.
    """
    path = Path(path)
    with zipfile.ZipFile(path) as src:
        infos = src.infolist()
        if not any(is_signature_file(i.filename) for i in infos):
            return False

        fd, tmp_name = tempfile.mkstemp(prefix=".unsign-", suffix=path.suffix, dir=path.parent)
        os.close(fd)
        try:
            with zipfile.ZipFile(tmp_name, "w") as dst:
                for info in infos:
                    if is_signature_file(info.filename):
                        continue
                    data = src.read(info)
                    if info.filename.upper() == MANIFEST_NAME:
                        data = main_manifest_section(data)
                    dst.writestr(info, data)
        except BaseException:
            os.unlink(tmp_name)
            raise

    shutil.move(tmp_name, path)
    return True


__all__ = [
    "is_signature_file",
    "is_archive_signed",
    "main_manifest_section",
    "unsign_archive",
]
