"""
Sources-value matching across transport encodings.

The same token can show up on the wire verbatim, URL-escaped
inside a query string, or base64-embedded in a script or socket
message.  ``matches`` checks every form without knowing in advance
which one a channel uses.
"""

from __future__ import annotations

import base64
from collections.abc import Iterable
from urllib import parse

CONTEXT_RADIUS = 100

# Characters encodeURIComponent leaves unescaped on top of
# urllib's always-safe set (letters, digits, "_.-~").
_URI_COMPONENT_SAFE = "!*'()"


def percent_decode(value: str) -> str | None:
    """Strictly percent-decode *value* as UTF-8.

    Returns:
        The decoded text, or ``None`` when an escape sequence
        does not decode to valid UTF-8.
    """
    try:
        return parse.unquote(value, encoding="utf-8", errors="strict")
    except UnicodeDecodeError:
        return None


def percent_encode(value: str) -> str:
    """Percent-encode *value* the way a URI component is escaped."""
    return parse.quote(value, safe=_URI_COMPONENT_SAFE)


def base64_encode(value: str) -> str:
    """Return the standard base64 form of *value*'s UTF-8 bytes."""
    return base64.b64encode(value.encode("utf-8")).decode("ascii")


def matches(content: str | None, secret: str | None) -> bool:
    """Return whether *content* carries *secret* in any known encoding.

    Checks, in order: verbatim, percent-decoded secret,
    percent-encoded secret, base64-encoded secret.  A malformed
    escape in *secret* only disables the decoded check.
    """
    if not content or not secret:
        return False

    if secret in content:
        return True

    decoded = percent_decode(secret)
    if decoded and decoded in content:
        return True

    encoded = percent_encode(secret)
    if encoded != secret and encoded in content:
        return True

    return base64_encode(secret) in content


def find_matches(content: str | None, secrets: Iterable[str]) -> list[str]:
    """Return every secret in *secrets* that *content* carries."""
    if not content:
        return []
    return [secret for secret in secrets if matches(content, secret)]


def extract_context(source: str | None, value: str, radius: int = CONTEXT_RADIUS) -> str:
    """Return the text surrounding the first verbatim occurrence of *value*.

    Args:
        source: Text to search.
        value: The sources value to locate.
        radius: Characters kept either side of the hit.

    Returns:
        The neighbourhood slice, or ``""`` when *value* does not
        appear verbatim (encoded hits have no context).
    """
    if not source or not value:
        return ""
    index = source.find(value)
    if index == -1:
        return ""
    start = max(0, index - radius)
    end = min(len(source), index + len(value) + radius)
    return source[start:end]
