"""Tests for sourcewatch.config — environment-driven settings."""

from __future__ import annotations

import pytest

from sourcewatch import config


class TestMonitorSettings:
    def test_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        for name in ("SOURCEWATCH_TARGET_DOMAIN", "SOURCEWATCH_DOMAIN_FILTER", "SOURCEWATCH_LOG_PATH", "SOURCEWATCH_DEBUG"):
            monkeypatch.delenv(name, raising=False)
        settings = config.MonitorSettings()
        assert settings.target_domain == "rapid-cloud.co"
        assert settings.domain_filter_enabled is True
        assert settings.header_marker == "[RAPID-CLOUD]"
        assert settings.log_path == "traffic.log"
        assert settings.sources_path_marker == "/getSources?id="
        assert settings.headless is False
        assert settings.debug is False

    def test_env_overrides(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SOURCEWATCH_TARGET_DOMAIN", "megacloud.tv")
        monkeypatch.setenv("SOURCEWATCH_DOMAIN_FILTER", "false")
        monkeypatch.setenv("SOURCEWATCH_NAV_TIMEOUT_MS", "5000")
        monkeypatch.setenv("SOURCEWATCH_HEADLESS", "true")
        monkeypatch.setenv("SOURCEWATCH_DEBUG", "true")
        settings = config.MonitorSettings()
        assert settings.target_domain == "megacloud.tv"
        assert settings.domain_filter_enabled is False
        assert settings.navigation_timeout_ms == 5000
        assert settings.headless is True
        assert settings.debug is True

    def test_rejects_non_positive_timeout(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SOURCEWATCH_NAV_TIMEOUT_MS", "0")
        with pytest.raises(ValueError):
            config.MonitorSettings()

    def test_scope_label(self) -> None:
        assert config.MonitorSettings(target_domain="a.co").scope_label() == "(a.co and related traffic)"
        assert config.MonitorSettings(domain_filter_enabled=False).scope_label() == "(all URLs)"

    def test_get_settings_is_cached(self) -> None:
        config.get_settings.cache_clear()
        assert config.get_settings() is config.get_settings()
        config.get_settings.cache_clear()
