"""Error sanitization utilities to keep credential material out of logs and status."""

from __future__ import annotations

import re

# Patterns that might expose credential material
SENSITIVE_PATTERNS = [
    r"(access[_\s-]?key(?:[_\s-]?id)?[=:\s]+)([A-Za-z0-9/+=]{8,})",
    r"(secret[_\s-]?(?:access[_\s-]?)?key[=:\s]+)([A-Za-z0-9/+=]{8,})",
    r"(session[_\s-]?token[=:\s]+)([A-Za-z0-9/+=]+)",
    r"(password[=:\s]+)([^\s,;\)]+)",
    r"(Credential=)([A-Z0-9]{16,})",
    r"(Signature=)([a-f0-9]{32,})",
]

# Bare AWS style access key IDs
_ACCESS_KEY_ID_RE = re.compile(r"\b(AKIA|ASIA)[A-Z0-9]{16}\b")


def sanitize_error_message(message: str) -> str:
    """Redact credential values from an error message.

    Args:
        message: Original error message

    Returns:
        Message with credential values replaced by ``[REDACTED]``
    """
    sanitized = message
    for pattern in SENSITIVE_PATTERNS:
        sanitized = re.sub(pattern, r"\1[REDACTED]", sanitized, flags=re.IGNORECASE)
    return _ACCESS_KEY_ID_RE.sub("[REDACTED]", sanitized)


def sanitize_exception(error: BaseException) -> str:
    """Sanitize an exception message."""
    return sanitize_error_message(str(error))
