import re
from collections.abc import Iterable

# Skips tokens already masked as a short prefix plus "***", e.g. "sk-t***".
_API_KEY_PATTERN = re.compile(r"sk-(?![A-Za-z0-9_\-]{0,4}\*\*\*)[A-Za-z0-9_\-]*")
_MARKER = "***"


def redact(text: str, secrets: Iterable[str] = ()) -> str:
    """Hide credentials in text bound for a user-visible sink.

    Every configured secret is replaced outright, then any ``sk-`` token
    is collapsed to ``sk-***``. Masked forms such as ``sk-t***`` pass through.
    """
    return _API_KEY_PATTERN.sub(f"sk-{_MARKER}", redact_secrets(text, secrets))


def redact_secrets(text: str, secrets: Iterable[str] = ()) -> str:
    """Replace only the given secrets, leaving the rest of the text untouched."""
    for secret in secrets:
        if secret:
            text = text.replace(secret, _MARKER)
    return text
