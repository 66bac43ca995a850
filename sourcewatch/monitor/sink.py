"""
Append-only traffic log.

Every record goes to the console and to the log file, in call
order, with no batching.  The file holds blocks of
``<prefix>\\n<pretty JSON>\\n`` interleaved with bare diagnostic
lines of the form ``<ISO-8601> - <message>``.
"""

from __future__ import annotations

import io
import pathlib
from collections.abc import Mapping

import pydantic
from sourcewatch.models import traffic
from sourcewatch.utils import errors, logger, serialization

log = logger.create_logger("TrafficLog")

ANNOTATED_HEADERS = ("referer", "origin")


def annotate_headers(
    headers: Mapping[str, str] | None,
    target_domain: str,
    marker: str,
) -> dict[str, str]:
    """Return a copy of *headers* with target-domain referer/origin values tagged.

    Only ``referer`` and ``origin`` are considered (any case);
    every other header is copied as-is.
    """
    formatted = dict(headers or {})
    for key, value in formatted.items():
        if key.lower() in ANNOTATED_HEADERS and value and target_domain in value:
            formatted[key] = f"{marker} {value}"
    return formatted


class TrafficLogSink:
    """Writes labelled records to stdout and an append-only file."""

    def __init__(self, path: str | pathlib.Path) -> None:
        self._path = pathlib.Path(path)
        self._stream: io.TextIOWrapper | None = None

    @property
    def path(self) -> pathlib.Path:
        return self._path

    @property
    def closed(self) -> bool:
        """True once the file has been closed (or was never opened)."""
        return self._stream is None

    def open(self) -> None:
        """Open the log file in append mode."""
        if self._stream is not None:
            return
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._stream = open(self._path, "a", encoding="utf-8")  # noqa: SIM115
        log.info("Writing traffic log", {"path": str(self._path)})

    def _write(self, text: str) -> None:
        if self._stream is None:
            return
        try:
            self._stream.write(text)
            self._stream.flush()
        except (OSError, ValueError) as exc:
            log.error("Failed to write traffic log", {"error": errors.get_error_message(exc)})

    def _echo(self, text: str) -> None:
        try:
            print(text)
        except UnicodeEncodeError:
            # Console codec cannot represent the record (e.g. emoji on cp1252).
            print(text.encode("ascii", "backslashreplace").decode("ascii"))

    def emit(self, prefix: str, record: pydantic.BaseModel | dict[str, object]) -> None:
        """Write one labelled, pretty-printed record to the file, then the console."""
        entry = serialization.to_pretty_json(record)
        self._write(f"{prefix}\n{entry}\n")
        self._echo(f"\n{prefix}\n{entry}")

    def note(self, message: str, level: str = "info") -> None:
        """Write a timestamped diagnostic line and echo it to the console."""
        getattr(log, level)(message)
        self._write(f"\n{traffic.now_iso()} - {message}\n")

    def close(self) -> None:
        """Flush and close the file; later writes are console-only."""
        stream = self._stream
        if stream is None:
            return
        self._stream = None
        try:
            stream.flush()
            stream.close()
        except OSError as exc:
            log.warn("Failed to flush/close traffic log", {"error": errors.get_error_message(exc)})
