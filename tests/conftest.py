"""Shared fixtures for the test suite."""

from __future__ import annotations

import pathlib

import pytest

from fakes import FakeCdp
from sourcewatch import config
from sourcewatch.analysis import sources_registry
from sourcewatch.monitor import handlers, sink as sink_mod


@pytest.fixture()
def settings(tmp_path: pathlib.Path) -> config.MonitorSettings:
    """Default settings writing to a temporary log file."""
    return config.MonitorSettings(log_path=str(tmp_path / "traffic.log"))


@pytest.fixture()
def registry() -> sources_registry.SourcesRegistry:
    return sources_registry.SourcesRegistry()


@pytest.fixture()
def sink(settings: config.MonitorSettings):
    """An open sink, closed after the test."""
    log_sink = sink_mod.TrafficLogSink(settings.log_path)
    log_sink.open()
    yield log_sink
    log_sink.close()


@pytest.fixture()
def cdp() -> FakeCdp:
    return FakeCdp()


@pytest.fixture()
def monitor(
    settings: config.MonitorSettings,
    registry: sources_registry.SourcesRegistry,
    sink: sink_mod.TrafficLogSink,
    cdp: FakeCdp,
) -> handlers.TrafficMonitor:
    return handlers.TrafficMonitor(settings, registry, sink, send=cdp.send)
