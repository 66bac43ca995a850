"""
Session orchestrator: idle → monitoring → terminated.

Launches the browser, wires every channel handler, performs the
single navigation, then waits for an interrupt.  Shutdown closes
the traffic log first, then detaches CDP and closes the browser.
"""

from __future__ import annotations

import asyncio
import signal

from sourcewatch import config
from sourcewatch.analysis import sources_registry
from sourcewatch.browser import session as browser_session
from sourcewatch.models import browser
from sourcewatch.monitor import handlers, sink as sink_mod
from sourcewatch.utils import errors, logger

log = logger.create_logger("Orchestrator")

STOP_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class Orchestrator:
    """Owns one monitoring session from launch to shutdown."""

    def __init__(
        self,
        url: str,
        settings: config.MonitorSettings | None = None,
        session: browser_session.MonitorSession | None = None,
        sink: sink_mod.TrafficLogSink | None = None,
    ) -> None:
        self._url = url
        self._settings = settings or config.get_settings()
        self._session = session or browser_session.MonitorSession(headless=self._settings.headless)
        self._sink = sink or sink_mod.TrafficLogSink(self._settings.log_path)
        self._registry = sources_registry.SourcesRegistry(self._settings.sources_path_marker)
        self._monitor = handlers.TrafficMonitor(
            self._settings, self._registry, self._sink, send=self._session.send
        )
        self._state: browser.SessionState = "idle"
        self._stop = asyncio.Event()

    @property
    def state(self) -> browser.SessionState:
        return self._state

    @property
    def monitor(self) -> handlers.TrafficMonitor:
        return self._monitor

    def request_stop(self) -> None:
        """Ask the monitoring loop to shut down."""
        log.info("Interrupt received")
        self._stop.set()

    # ==========================================================================
    # Transitions
    # ==========================================================================

    async def start(self) -> None:
        """Launch, subscribe every channel, and navigate once.

        Raises whatever the browser launch raises; navigation
        failure is logged and does not stop monitoring.
        """
        self._sink.open()
        await self._session.launch()
        await self._session.enable_interception(self._monitor.handle_route)
        self._session.on_page("response", self._monitor.on_page_response)
        for method, handler in self._monitor.cdp_handlers().items():
            self._session.on_cdp(method, handler)

        log.start_timer("navigation")
        result = await self._session.navigate_to(
            self._url, "networkidle", self._settings.navigation_timeout_ms
        )
        log.end_timer("navigation", "Initial navigation finished")
        if result.success:
            self._sink.note(f"Page loaded successfully: {self._url}", level="success")
        else:
            self._sink.note(f"Error loading page: {result.error_message}", level="error")

        self._state = "monitoring"
        self._sink.note(f"Started monitoring traffic {self._settings.scope_label()}")
        log.info("Press Ctrl+C to stop.")

    async def wait(self) -> None:
        """Block until ``request_stop`` is called."""
        await self._stop.wait()

    async def shutdown(self) -> None:
        """Close the log, detach CDP, close the browser."""
        if self._state == "terminated":
            return
        log.info("Closing browser...")
        self._sink.note("Stopping monitoring")
        self._sink.close()
        await self._session.close()
        self._state = "terminated"

    # ==========================================================================
    # Entry
    # ==========================================================================

    def _install_signal_handlers(self) -> None:
        loop = asyncio.get_running_loop()
        for sig in STOP_SIGNALS:
            try:
                loop.add_signal_handler(sig, self.request_stop)
            except (NotImplementedError, RuntimeError):
                # Windows event loops have no signal handler support.
                signal.signal(sig, lambda *_: loop.call_soon_threadsafe(self.request_stop))

    async def run(self) -> int:
        """Run the whole session; return the process exit code."""
        log.section("Traffic Monitor")
        self._install_signal_handlers()
        try:
            await self.start()
        except Exception as exc:
            self._sink.note(f"Fatal error: {errors.get_error_message(exc)}", level="error")
            await self.shutdown()
            return 1

        await self.wait()
        await self.shutdown()
        return 0
