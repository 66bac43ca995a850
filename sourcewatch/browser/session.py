"""
Browser session management for traffic monitoring.
Owns one Playwright browser, one page, and one CDP session on
that page.  Handlers are attached by the orchestrator; this class
only covers launch, navigation, and teardown.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Any, Literal

from playwright import async_api
from sourcewatch.models import browser
from sourcewatch.utils import errors, logger

log = logger.create_logger("BrowserSession")

# CDP domains required to observe network, runtime and
# service-worker activity.
CDP_DOMAINS = ("Network", "ServiceWorker", "Runtime")

CdpHandler = Callable[[dict[str, Any]], Any]
RouteHandler = Callable[[async_api.Route], Awaitable[None]]


class MonitorSession:
    """
    Manages the single browser session being monitored.
    """

    def __init__(self, headless: bool = False) -> None:
        """Initialise an idle session; nothing is launched yet."""
        self._headless = headless
        self._playwright: async_api.Playwright | None = None
        self._browser: async_api.Browser | None = None
        self._context: async_api.BrowserContext | None = None
        self._page: async_api.Page | None = None
        self._cdp: async_api.CDPSession | None = None

    # ==========================================================================
    # State Getters
    # ==========================================================================

    @property
    def page(self) -> async_api.Page:
        """Return the active page, raising when the browser is not running."""
        if not self._page:
            raise RuntimeError("No browser session active")
        return self._page

    @property
    def cdp(self) -> async_api.CDPSession:
        """Return the CDP session, raising when it is not attached."""
        if not self._cdp:
            raise RuntimeError("No CDP session attached")
        return self._cdp

    # ==========================================================================
    # Browser Lifecycle
    # ==========================================================================

    async def launch(self) -> None:
        """Launch Chromium with a maximised window and attach a CDP session."""
        log.info("Launching browser", {"headless": self._headless})
        pw = await async_api.async_playwright().start()
        self._playwright = pw

        self._browser = await pw.chromium.launch(
            headless=self._headless,
            args=["--start-maximized"],
        )
        # No fixed viewport so the page follows the maximised window.
        self._context = await self._browser.new_context(no_viewport=True)
        self._page = await self._context.new_page()

        self._cdp = await self._context.new_cdp_session(self._page)
        for domain in CDP_DOMAINS:
            await self._cdp.send(f"{domain}.enable")
        log.debug("CDP domains enabled", {"domains": list(CDP_DOMAINS)})

    async def enable_interception(self, handler: RouteHandler) -> None:
        """Route every page request through *handler*.

        The handler is responsible for letting the request
        continue; interception exists only to observe it.
        """
        await self.page.route("**/*", handler)

    def on_page(self, event: str, handler: Callable[..., Any]) -> None:
        """Subscribe *handler* to a Playwright page event."""
        self.page.on(event, handler)

    def on_cdp(self, method: str, handler: CdpHandler) -> None:
        """Subscribe *handler* to a CDP event by method name."""
        self.cdp.on(method, handler)

    async def send(self, method: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        """Send a CDP command and return its result."""
        return await self.cdp.send(method, params)

    # ==========================================================================
    # Navigation
    # ==========================================================================

    async def navigate_to(
        self,
        url: str,
        wait_until: Literal[
            "commit", "domcontentloaded", "load", "networkidle"
        ] = "networkidle",
        timeout: int = 30000,
    ) -> browser.NavigationResult:
        """Navigate the page to *url* and wait for it to settle.

        Failures (timeouts, DNS errors) are returned rather than
        raised so monitoring can continue.
        """
        log.debug("Navigating", {"url": url, "waitUntil": wait_until, "timeout": timeout})
        try:
            await self.page.goto(url, wait_until=wait_until, timeout=timeout)
        except Exception as error:
            log.warn("Navigation error", {"url": url, "error": errors.get_error_message(error)})
            return browser.NavigationResult(success=False, error_message=errors.get_error_message(error))

        final_url = self.page.url
        if final_url != url:
            log.info("Redirected", {"from": url, "to": final_url})
        return browser.NavigationResult(success=True)

    # ==========================================================================
    # Cleanup
    # ==========================================================================

    async def close(self) -> None:
        """Detach the CDP session, close the browser and stop Playwright."""
        log.debug("Closing browser session")
        if self._cdp:
            try:
                await self._cdp.detach()
            except Exception as exc:
                log.debug("CDP detach error (non-fatal)", {"error": str(exc)})
            self._cdp = None

        self._page = None

        if self._context:
            try:
                await self._context.close()
            except Exception as exc:
                log.debug("Context close error (non-fatal)", {"error": str(exc)})
            self._context = None

        if self._browser:
            try:
                await self._browser.close()
            except Exception as exc:
                log.debug("Browser close error (non-fatal)", {"error": str(exc)})
            self._browser = None

        if self._playwright:
            try:
                await self._playwright.stop()
            except Exception as exc:
                log.debug("Playwright stop error (non-fatal)", {"error": str(exc)})
            self._playwright = None

        log.debug("Browser session closed")
