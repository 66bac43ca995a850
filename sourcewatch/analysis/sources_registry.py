"""
Registry of captured sources values.

Values come from the body of the site's ``/getSources?id=``
response.  Extraction is a single-match regex rather than a JSON
parse: the surrounding response shape is not modelled, and only
the first ``"sources":"..."`` occurrence per body is taken.
"""

from __future__ import annotations

import re
from collections.abc import Iterator

from sourcewatch.utils import logger

log = logger.create_logger("Sources")

DEFAULT_PATH_MARKER = "/getSources?id="
SOURCES_PATTERN = re.compile(r'"sources":"([^"]+)"')


def extract_sources_value(body: str | None) -> str | None:
    """Return the first quoted ``sources`` value in *body*, if any."""
    if not body:
        return None
    match = SOURCES_PATTERN.search(body)
    if match is None:
        return None
    return match.group(1)


class SourcesRegistry:
    """Append-only, deduplicated set of sources values.

    Insertion order is kept so matches are reported in the order
    values were discovered.  Nothing is ever removed.
    """

    def __init__(self, path_marker: str = DEFAULT_PATH_MARKER) -> None:
        self._path_marker = path_marker
        self._values: dict[str, None] = {}

    def __len__(self) -> int:
        return len(self._values)

    def __contains__(self, value: object) -> bool:
        return value in self._values

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._values))

    def is_sources_url(self, url: str) -> bool:
        """Return whether *url* points at the sources endpoint."""
        return self._path_marker in url

    def add(self, value: str) -> bool:
        """Register *value*; return False when it was already known."""
        if not value or value in self._values:
            return False
        self._values[value] = None
        return True

    def maybe_capture(self, url: str, body: str | None) -> str | None:
        """Capture the sources value from a response body.

        Args:
            url: The response URL; only the sources endpoint is
                inspected.
            body: The response text.

        Returns:
            The newly registered value, or ``None`` when the URL
            does not match, the body carries no value, or the
            value was already registered.
        """
        if not self.is_sources_url(url):
            return None
        value = extract_sources_value(body)
        if value is None:
            log.debug("No sources value in response", {"url": url})
            return None
        if not self.add(value):
            return None
        log.info("Registered sources value", {"totalValues": len(self)})
        return value
