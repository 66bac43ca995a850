"""
Relevance and exclusion rules for observed traffic.

Relevance is a plain substring test on the URL and the referer /
origin headers; no URL parsing.  Exclusion drops vector graphics
everywhere and images only for page-originated traffic.
"""

from __future__ import annotations

from collections.abc import Mapping

EXCLUDED_SUFFIXES = (".svg",)
EXCLUDED_PAGE_RESOURCE_TYPES = frozenset({"image"})


def get_header(headers: Mapping[str, str] | None, name: str) -> str:
    """Look up *name* as given or Capitalised, returning ``""`` when absent."""
    if not headers:
        return ""
    return headers.get(name) or headers.get(name.capitalize()) or ""


def is_relevant(
    url: str,
    headers: Mapping[str, str] | None,
    target_domain: str,
    enabled: bool = True,
) -> bool:
    """Return whether the traffic belongs to the site of interest."""
    if not enabled:
        return True
    if target_domain in url:
        return True
    if target_domain in get_header(headers, "referer"):
        return True
    return target_domain in get_header(headers, "origin")


def is_excluded(url: str, resource_type: str | None, is_service_worker: bool) -> bool:
    """Return whether the resource is dropped from logging regardless of relevance.

    Service-worker traffic is not subject to the image rule.
    """
    if url.endswith(EXCLUDED_SUFFIXES):
        return True
    return not is_service_worker and resource_type in EXCLUDED_PAGE_RESOURCE_TYPES


def should_log(
    url: str,
    headers: Mapping[str, str] | None,
    resource_type: str | None,
    is_service_worker: bool,
    target_domain: str,
    enabled: bool = True,
) -> bool:
    """Combine exclusion and relevance into the single logging decision."""
    if is_excluded(url, resource_type, is_service_worker):
        return False
    return is_relevant(url, headers, target_domain, enabled)
