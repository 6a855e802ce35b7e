"""Secret redaction for command lines and tool output.

Two layers:

- ``redact_password`` masks one known secret (the store password) wherever
  it appears literally in a command line. This is what failure messages use.
- ``redact_secrets`` applies generic patterns to free text such as the
  stdout/stderr captured from the tool before it reaches the logs.

Usage:
    from archsign.redact import redact_password

    safe = redact_password(command_line, storepass)
"""
from __future__ import annotations

import re
from typing import Optional

PASSWORD_PLACEHOLDER = "'*****'"

_PATTERNS: list[tuple[re.Pattern[str], str]] = [
    # jarsigner password flags
    (re.compile(r'(-(?:storepass|keypass)\s+)(\'[^\']*\'|"[^"]*"|\S+)'), r'\1' + PASSWORD_PLACEHOLDER),
    (re.compile(r'(-(?:storepass|keypass):(?:env|file)\s+)\S+'), r'\1[REDACTED]'),

    # Generic key=value patterns
    (re.compile(r'(password\s*[=:]\s*)[^\s&"\']+', re.IGNORECASE), r'\1[REDACTED]'),
    (re.compile(r'(secret\s*[=:]\s*)[^\s&"\']+', re.IGNORECASE), r'\1[REDACTED]'),
    (re.compile(r'(token\s*[=:]\s*)[^\s&"\']+', re.IGNORECASE), r'\1[REDACTED]'),

    # URLs with embedded credentials (TSA endpoints)
    (re.compile(r'(https?://[^:/\s]+:)[^@\s]+(@\S+)'), r'\1[REDACTED]\2'),

    # Private keys (PEM format - just redact the whole block marker)
    (re.compile(r'-----BEGIN [A-Z ]+ PRIVATE KEY-----'), '[REDACTED:private_key_start]'),
]


def redact_password(text: str, password: Optional[str]) -> str:
    """Replace every literal occurrence of ``password`` in ``text``.

    An empty or missing password leaves ``text`` untouched.

    Example:
        >>> redact_password("jarsigner -storepass hunter2 a.jar", "hunter2")
        "jarsigner -storepass '*****' a.jar"
    """
    if not text or not password:
        return text
    return text.replace(password, PASSWORD_PLACEHOLDER)


def redact_secrets(text: str) -> str:
    """Redact known secret patterns from text."""
    if not text:
        return text

    result = text
    for pattern, replacement in _PATTERNS:
        result = pattern.sub(replacement, result)
    return result


__all__ = ["PASSWORD_PLACEHOLDER", "redact_password", "redact_secrets"]
