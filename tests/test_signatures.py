"""Tests for signature inspection and removal."""
from __future__ import annotations

import zipfile

from archsign.signatures import (
    is_archive_signed,
    is_signature_file,
    main_manifest_section,
    unsign_archive,
)

SIGNED_MANIFEST = (
    b"Manifest-Version: 1.0\r\nCreated-By: 17\r\n\r\n"
    b"Name: com/example/App.class\r\nSHA-256-Digest: abc=\r\n\r\n"
)


def test_is_signature_file():
    assert is_signature_file("META-INF/RELEASE.SF")
    assert is_signature_file("META-INF/release.rsa")
    assert is_signature_file("META-INF/SIG-FOO")
    assert not is_signature_file("META-INF/MANIFEST.MF")
    assert not is_signature_file("META-INF/sub/X.SF")
    assert not is_signature_file("com/X.SF")


def test_main_manifest_section():
    assert main_manifest_section(SIGNED_MANIFEST) == b"Manifest-Version: 1.0\r\nCreated-By: 17\r\n\r\n"


def test_unsign_archive(tmp_path):
    jar = tmp_path / "a.jar"
    with zipfile.ZipFile(jar, "w") as zf:
        zf.writestr("META-INF/MANIFEST.MF", SIGNED_MANIFEST)
        zf.writestr("META-INF/RELEASE.SF", b"sf")
        zf.writestr("META-INF/RELEASE.RSA", b"rsa")
        zf.writestr("com/example/App.class", b"\xca\xfe")

    assert is_archive_signed(jar)
    assert unsign_archive(jar) is True
    assert not is_archive_signed(jar)
    with zipfile.ZipFile(jar) as zf:
        assert sorted(zf.namelist()) == ["META-INF/MANIFEST.MF", "com/example/App.class"]
        assert b"SHA-256-Digest" not in zf.read("META-INF/MANIFEST.MF")
    assert [p.name for p in tmp_path.iterdir()] == ["a.jar"]


def test_unsign_unsigned_archive_untouched(tmp_path, make_jar):
    jar = make_jar(tmp_path / "a.jar")
    before = jar.read_bytes()
    assert unsign_archive(jar) is False
    assert jar.read_bytes() == before
