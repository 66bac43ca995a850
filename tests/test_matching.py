"""Tests for sourcewatch.analysis.matching — encoding-aware value matching."""

from __future__ import annotations

import pytest

from sourcewatch.analysis.matching import (
    base64_encode,
    extract_context,
    find_matches,
    matches,
    percent_decode,
    percent_encode,
)

# ── matches ─────────────────────────────────────────────────────


class TestMatches:
    """Tests for matches()."""

    @pytest.mark.parametrize("value", ["abc123", "a", "eyJhbGciOi.J9", "ü∂ß"])
    def test_verbatim(self, value: str) -> None:
        assert matches(value, value)

    def test_verbatim_inside_larger_text(self) -> None:
        assert matches("https://site/play?token=abc123&x=1", "abc123")

    @pytest.mark.parametrize("value", ["a b/c", "key=val&x", "tök€n"])
    def test_url_escaped_content(self, value: str) -> None:
        assert matches(percent_encode(value), value)

    @pytest.mark.parametrize("value", ["a b/c", "key=val&x", "tök€n"])
    def test_url_escaped_secret(self, value: str) -> None:
        assert matches(value, percent_encode(value))

    @pytest.mark.parametrize("value", ["abc123", "x", "sources+value/=="])
    def test_base64_embedded(self, value: str) -> None:
        assert matches(f"var blob = '{base64_encode(value)}';", value)

    def test_base64_of_known_value(self) -> None:
        assert matches("/play?t=YWJjMTIz", "abc123")

    @pytest.mark.parametrize("other", ["anything", "", None])
    def test_absent_content(self, other: str | None) -> None:
        assert matches(None, other) is False

    @pytest.mark.parametrize("other", ["anything", "", None])
    def test_absent_secret(self, other: str | None) -> None:
        assert matches(other, None) is False

    def test_empty_strings(self) -> None:
        assert matches("", "abc") is False
        assert matches("abc", "") is False

    def test_malformed_escape_is_not_an_error(self) -> None:
        # %ff is not valid UTF-8; only the decode path is skipped.
        assert matches("nothing here", "bad%ffvalue") is False
        assert matches("xx bad%ffvalue xx", "bad%ffvalue") is True

    def test_unrelated_content(self) -> None:
        assert matches("completely unrelated", "abc123") is False


# ── helpers ─────────────────────────────────────────────────────


class TestEncodingHelpers:
    def test_percent_decode_valid(self) -> None:
        assert percent_decode("a%20b") == "a b"

    def test_percent_decode_invalid_utf8(self) -> None:
        assert percent_decode("%ff") is None

    def test_percent_decode_leaves_plus(self) -> None:
        assert percent_decode("a+b") == "a+b"

    def test_percent_encode_matches_uri_component(self) -> None:
        assert percent_encode("a b/c?d=e") == "a%20b%2Fc%3Fd%3De"
        assert percent_encode("keep-_.!~*'()") == "keep-_.!~*'()"

    def test_base64_encode(self) -> None:
        assert base64_encode("abc123") == "YWJjMTIz"


class TestFindMatches:
    def test_returns_hits_in_order(self) -> None:
        secrets = ["one", "two", "three"]
        assert find_matches("three then one", secrets) == ["one", "three"]

    def test_empty_content(self) -> None:
        assert find_matches(None, ["one"]) == []


class TestExtractContext:
    def test_short_source_returns_whole(self) -> None:
        assert extract_context("abc SECRET def", "SECRET") == "abc SECRET def"

    def test_window_is_bounded(self) -> None:
        source = "x" * 300 + "SECRET" + "y" * 300
        context = extract_context(source, "SECRET")
        assert context == "x" * 100 + "SECRET" + "y" * 100

    def test_missing_value(self) -> None:
        assert extract_context("abc", "SECRET") == ""

    def test_absent_source(self) -> None:
        assert extract_context(None, "SECRET") == ""
