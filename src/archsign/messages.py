"""User-facing message templates.

Keys are shared by the controller, matcher and invoker so that wording stays
in one place. Unknown keys raise KeyError.
"""
from __future__ import annotations

MESSAGES: dict[str, str] = {
    "processed": "{0} archive(s) processed",
    "disabled": "Skipped.",
    "ignoringAttachments": "Ignoring attachments",
    "unsupported": "Unsupported artifact {0}",
    "filtered": "Attachment {0} filtered out by classifier",
    "processing": "Processing {0}",
    "failure": "Failed executing '{0}' - exitCode {1}",
    "commandLineException": "Failed executing 'jarsigner': {0}",
    "toolchain": "Toolchain in archsign: {0}",
    "scanFailed": "Failed to scan archive directory for JARs: {0}",
    "decryptFailed": "error using security dispatcher: {0}",
    "notSigned": "Archive {0} is not signed",
    "unsignFailed": "Could not remove existing signatures from {0}: {1}",
    "workerError": "Error processing {0}",
}


def get_message(key: str, *args: object) -> str:
    """Return the message for ``key`` formatted with ``args``."""
    if key is None:
        raise TypeError("key")
    return MESSAGES[key].format(*args)


__all__ = ["MESSAGES", "get_message"]
