"""
Monitor configuration.

Centralises the environment variable names and default values
for the traffic monitor.  Defaults reproduce the stock behaviour:
filter on ``rapid-cloud.co``, track ``/getSources?id=`` responses,
append to ``traffic.log``.

Uses ``pydantic_settings.BaseSettings`` for automatic environment
variable binding, type coercion, and validation.
"""

from __future__ import annotations

import functools

import pydantic
import pydantic_settings

DEFAULT_TARGET_URL = "https://example.com"


class MonitorSettings(pydantic_settings.BaseSettings):
    """Settings for one monitoring session.

    Attributes:
        target_domain: Substring identifying the site of interest.
        domain_filter_enabled: When false every URL is logged.
        header_marker: Tag prepended to referer/origin headers
            that mention the target domain.
        log_path: Append-only traffic log file.
        sources_path_marker: URL substring of the endpoint whose
            body carries the sources value.
        navigation_timeout_ms: Upper bound on the initial
            navigation's wait for network idle.
        headless: Launch the browser without a window.
        debug: Show debug-level diagnostics on stderr.
    """

    model_config = pydantic_settings.SettingsConfigDict(
        env_prefix="SOURCEWATCH_", extra="ignore", populate_by_name=True
    )

    target_domain: str = "rapid-cloud.co"
    domain_filter_enabled: bool = pydantic.Field(
        default=True, validation_alias="SOURCEWATCH_DOMAIN_FILTER"
    )
    header_marker: str = "[RAPID-CLOUD]"
    log_path: str = "traffic.log"
    sources_path_marker: str = pydantic.Field(
        default="/getSources?id=", validation_alias="SOURCEWATCH_SOURCES_PATH"
    )
    navigation_timeout_ms: int = pydantic.Field(
        default=30000, gt=0, validation_alias="SOURCEWATCH_NAV_TIMEOUT_MS"
    )
    headless: bool = False
    debug: bool = False

    def scope_label(self) -> str:
        """Describe which traffic is being logged."""
        if self.domain_filter_enabled:
            return f"({self.target_domain} and related traffic)"
        return "(all URLs)"


@functools.lru_cache(maxsize=1)
def get_settings() -> MonitorSettings:
    """Return the process-wide settings, read once from the environment."""
    return MonitorSettings()
