"""Tests for sourcewatch.utils.serialization — record rendering helpers."""

from __future__ import annotations

import json

import pytest

from sourcewatch.models import traffic
from sourcewatch.utils.serialization import snake_to_camel, to_pretty_json, truncate


class TestSnakeToCamel:
    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("url", "url"),
            ("resource_type", "resourceType"),
            ("is_service_worker", "isServiceWorker"),
        ],
    )
    def test_conversion(self, name: str, expected: str) -> None:
        assert snake_to_camel(name) == expected


class TestTruncate:
    def test_short_text_unchanged(self) -> None:
        assert truncate("abc", 5) == "abc"

    def test_exact_length_unchanged(self) -> None:
        assert truncate("abcde", 5) == "abcde"

    def test_long_text_marked(self) -> None:
        assert truncate("abcdef", 5) == "abcde..."

    def test_none(self) -> None:
        assert truncate(None, 5) is None


class TestToPrettyJson:
    def test_model_uses_aliases_and_drops_none(self) -> None:
        detection = traffic.SourceDetection(channel="console", type="log", url="unknown")
        data = json.loads(to_pretty_json(detection))
        assert data == {"channel": "console", "url": "unknown", "type": "log"}

    def test_dict_indented(self) -> None:
        assert to_pretty_json({"a": 1}) == '{\n  "a": 1\n}'

    def test_non_ascii_kept(self) -> None:
        assert "ü" in to_pretty_json({"v": "ü"})
