"""
Per-channel event handlers for the traffic monitor.

``TrafficMonitor`` owns one handler per observed channel: page
requests and responses (Playwright), and the raw CDP events for
service-worker traffic, WebSocket frames, console output,
evaluation results, execution contexts and worker versions.

Each handler reads its payload, applies the traffic filter and
the sources matcher, and forwards what qualifies to the sink.
Handlers swallow their own failures so one bad event never stops
monitoring.  None of them needs a live browser: CDP commands go
through the injected ``send`` callable.
"""

from __future__ import annotations

import functools
from collections.abc import Awaitable, Callable, Mapping
from typing import Any, Protocol

from sourcewatch import config
from sourcewatch.analysis import matching, sources_registry, traffic_filter
from sourcewatch.models import traffic
from sourcewatch.monitor import sink as sink_mod
from sourcewatch.utils import errors, logger, serialization

log = logger.create_logger("Monitor")

# ============================================================================
# Log prefixes
# ============================================================================

PREFIX_REQUEST = "🔍 Detected request:"
PREFIX_RESPONSE = "✅ Received response:"
PREFIX_SW_REQUEST = "🤖 Detected Service Worker request:"
PREFIX_SW_RESPONSE = "🤖 Received Service Worker response:"
PREFIX_NEW_SOURCES = "🎯 Found new sources value to monitor:"
PREFIX_FOUND_REQUEST = "🔍 Found sources value in request:"
PREFIX_FOUND_WS_SENT = "📡 Found sources value in WebSocket message (sent):"
PREFIX_FOUND_WS_RECEIVED = "📡 Found sources value in WebSocket message (received):"
PREFIX_FOUND_CONTEXT = "🔍 Found sources value usage:"
PREFIX_FOUND_CONSOLE = "🔍 Found sources value in console:"
PREFIX_FOUND_EVAL = "🔍 Found sources value in evaluation:"
PREFIX_FOUND_SW_SCRIPT = "🔧 Found sources value in Service Worker:"
PREFIX_FOUND_SW_VERSION = "🔧 Found sources value in updated Service Worker:"

BODY_PREVIEW_LIMIT = 1000
PAYLOAD_PREVIEW_LIMIT = 100
VALUE_PREVIEW_LIMIT = 50

CdpSend = Callable[[str, dict[str, Any]], Awaitable[dict[str, Any]]]


class PageRequest(Protocol):
    """The parts of ``playwright.async_api.Request`` the monitor reads."""

    url: str
    method: str
    resource_type: str
    headers: dict[str, str]
    post_data_buffer: bytes | None


def _guarded(handler: Callable[..., Any]) -> Callable[..., Any]:
    """Log and swallow any failure raised by a synchronous handler."""

    @functools.wraps(handler)
    def wrapper(self: TrafficMonitor, *args: Any) -> None:
        try:
            handler(self, *args)
        except Exception as exc:
            log.error("Event handler failed", {"handler": handler.__name__, "error": errors.get_error_message(exc)})

    return wrapper


def _guarded_async(handler: Callable[..., Awaitable[Any]]) -> Callable[..., Awaitable[None]]:
    """Log and swallow any failure raised by a coroutine handler."""

    @functools.wraps(handler)
    async def wrapper(self: TrafficMonitor, *args: Any) -> None:
        try:
            await handler(self, *args)
        except Exception as exc:
            log.error("Event handler failed", {"handler": handler.__name__, "error": errors.get_error_message(exc)})

    return wrapper


def _decode_body(raw: bytes | None) -> str | None:
    """Decode a captured body as UTF-8, replacing undecodable bytes."""
    if raw is None:
        return None
    return raw.decode("utf-8", errors="replace")


class TrafficMonitor:
    """Classifies observed events and forwards qualifying ones to the sink."""

    def __init__(
        self,
        settings: config.MonitorSettings,
        registry: sources_registry.SourcesRegistry,
        sink: sink_mod.TrafficLogSink,
        send: CdpSend | None = None,
    ) -> None:
        self._settings = settings
        self._registry = registry
        self._sink = sink
        self._send = send

    @property
    def registry(self) -> sources_registry.SourcesRegistry:
        return self._registry

    def cdp_handlers(self) -> dict[str, Callable[[dict[str, Any]], Any]]:
        """Map each subscribed CDP event to its handler."""
        return {
            "Network.requestWillBeSent": self.on_network_request,
            "Network.responseReceived": self.on_network_response,
            "Network.webSocketFrameSent": self.on_websocket_frame_sent,
            "Network.webSocketFrameReceived": self.on_websocket_frame_received,
            "Runtime.executionContextCreated": self.on_execution_context_created,
            "Runtime.consoleAPICalled": self.on_console_api_called,
            "Runtime.evaluate": self.on_evaluate,
            "ServiceWorker.scriptResponseReceived": self.on_service_worker_script,
            "ServiceWorker.workerVersionUpdated": self.on_worker_version_updated,
        }

    # ==========================================================================
    # Helpers
    # ==========================================================================

    def _should_log(
        self,
        url: str,
        headers: Mapping[str, str] | None,
        resource_type: str | None,
        is_service_worker: bool,
    ) -> bool:
        return traffic_filter.should_log(
            url,
            headers,
            resource_type,
            is_service_worker,
            self._settings.target_domain,
            self._settings.domain_filter_enabled,
        )

    def _annotate(self, headers: Mapping[str, str] | None) -> dict[str, str]:
        return sink_mod.annotate_headers(
            headers, self._settings.target_domain, self._settings.header_marker
        )

    def _scan_for_context(
        self,
        content: str | None,
        prefix: str,
        channel: traffic.DetectionChannel,
        **fields: Any,
    ) -> int:
        """Emit one detection per registered value found in *content*."""
        hits = matching.find_matches(content, self._registry)
        for value in hits:
            self._sink.emit(
                prefix,
                traffic.SourceDetection(
                    channel=channel,
                    context=matching.extract_context(content, value),
                    **fields,
                ),
            )
        return len(hits)

    def _scan_payload(
        self,
        payload: str | None,
        prefix: str,
        channel: traffic.DetectionChannel,
    ) -> int:
        """Emit one detection with a payload preview per value found."""
        hits = matching.find_matches(payload, self._registry)
        for _ in hits:
            self._sink.emit(
                prefix,
                traffic.SourceDetection(
                    channel=channel,
                    payload=serialization.truncate(payload, PAYLOAD_PREVIEW_LIMIT),
                ),
            )
        return len(hits)

    async def _send_command(self, method: str, params: dict[str, Any]) -> dict[str, Any]:
        if self._send is None:
            raise RuntimeError("No CDP session attached")
        return await self._send(method, params)

    # ==========================================================================
    # Page channels (Playwright)
    # ==========================================================================

    @_guarded
    def on_page_request(self, request: PageRequest) -> None:
        """Scan a page request for sources values and log it when relevant."""
        url = request.url
        resource_type = request.resource_type
        headers = request.headers
        post_data = _decode_body(request.post_data_buffer)

        for value in self._registry:
            if matching.matches(url, value) or matching.matches(post_data, value):
                self._sink.emit(
                    PREFIX_FOUND_REQUEST,
                    traffic.SourceDetection(
                        channel="request",
                        url=url,
                        post_data=serialization.truncate(post_data, PAYLOAD_PREVIEW_LIMIT),
                        resource_type=resource_type,
                    ),
                )

        if self._should_log(url, headers, resource_type, is_service_worker=False):
            self._sink.emit(
                PREFIX_REQUEST,
                traffic.TrafficEvent(
                    url=url,
                    method=request.method,
                    headers=self._annotate(headers),
                    resource_type=resource_type,
                    is_service_worker=False,
                ),
            )

    async def handle_route(self, route: Any) -> None:
        """Observe an intercepted request, then always let it proceed."""
        try:
            self.on_page_request(route.request)
        finally:
            try:
                await route.continue_()
            except Exception as exc:
                log.debug("Route continue failed", {"url": route.request.url, "error": errors.get_error_message(exc)})

    async def on_page_response(self, response: Any) -> None:
        """Log a relevant page response, capturing any sources value it carries."""
        try:
            url = response.url
            resource_type = response.request.resource_type
            headers = response.headers
            if not self._should_log(url, headers, resource_type, is_service_worker=False):
                return
            timestamp = traffic.now_iso()
            body = _decode_body(await response.body())

            value = self._registry.maybe_capture(url, body)
            if value is not None:
                self._sink.emit(
                    PREFIX_NEW_SOURCES,
                    traffic.SourceCapture(
                        value=serialization.truncate(value, VALUE_PREVIEW_LIMIT) or "",
                        total_values=len(self._registry),
                    ),
                )

            self._sink.emit(
                PREFIX_RESPONSE,
                traffic.TrafficEvent(
                    timestamp=timestamp,
                    url=url,
                    status=response.status,
                    headers=self._annotate(headers),
                    resource_type=resource_type,
                    is_service_worker=False,
                    body=serialization.truncate(body, BODY_PREVIEW_LIMIT),
                ),
            )
        except Exception as exc:
            self._sink.note(f"Error processing response: {errors.get_error_message(exc)}", level="error")

    # ==========================================================================
    # Network channels (CDP)
    # ==========================================================================

    @_guarded
    def on_network_request(self, event: dict[str, Any]) -> None:
        """Log a CDP-observed request; only the .svg and domain rules apply."""
        request = event["request"]
        url = request["url"]
        headers = request.get("headers") or {}
        if not self._should_log(url, headers, event.get("type"), is_service_worker=True):
            return
        self._sink.emit(
            PREFIX_SW_REQUEST,
            traffic.TrafficEvent(
                url=url,
                method=request.get("method"),
                headers=self._annotate(headers),
                resource_type=event.get("type"),
                is_service_worker=True,
            ),
        )

    @_guarded
    def on_network_response(self, event: dict[str, Any]) -> None:
        """Log a CDP-observed response; only the .svg and domain rules apply."""
        response = event["response"]
        url = response["url"]
        headers = response.get("headers") or {}
        if not self._should_log(url, headers, event.get("type"), is_service_worker=True):
            return
        self._sink.emit(
            PREFIX_SW_RESPONSE,
            traffic.TrafficEvent(
                url=url,
                status=response.get("status"),
                headers=self._annotate(headers),
                resource_type=event.get("type"),
                is_service_worker=True,
            ),
        )

    @staticmethod
    def _frame_payload(event: dict[str, Any]) -> str | None:
        frame = event.get("response") or {}
        return frame.get("payloadData") or event.get("payload")

    @_guarded
    def on_websocket_frame_sent(self, event: dict[str, Any]) -> None:
        self._scan_payload(self._frame_payload(event), PREFIX_FOUND_WS_SENT, "websocket-sent")

    @_guarded
    def on_websocket_frame_received(self, event: dict[str, Any]) -> None:
        self._scan_payload(self._frame_payload(event), PREFIX_FOUND_WS_RECEIVED, "websocket-received")

    # ==========================================================================
    # Runtime channels (CDP)
    # ==========================================================================

    @_guarded_async
    async def on_execution_context_created(self, event: dict[str, Any]) -> None:
        """Fetch the new context's script source and scan it."""
        context = event.get("context") or {}
        aux_data = context.get("auxData") or {}
        try:
            result = await self._send_command(
                "Runtime.getScriptSource", {"scriptId": aux_data.get("frameId")}
            )
        except Exception as exc:
            # Most contexts have no retrievable script.
            log.debug("No script source for context", {"error": errors.get_error_message(exc)})
            return
        self._scan_for_context(
            result.get("scriptSource"),
            PREFIX_FOUND_CONTEXT,
            "execution-context",
            url=aux_data.get("url") or "inline script",
        )

    @_guarded
    def on_console_api_called(self, event: dict[str, Any]) -> None:
        """Scan every console argument's value or description."""
        context = event.get("context") or {}
        for arg in event.get("args") or []:
            value = arg.get("value") or arg.get("description")
            if not value:
                continue
            self._scan_for_context(
                str(value),
                PREFIX_FOUND_CONSOLE,
                "console",
                type=event.get("type"),
                url=context.get("url") or "unknown",
            )

    @_guarded
    def on_evaluate(self, event: dict[str, Any]) -> None:
        result = event.get("result") or {}
        value = result.get("value")
        if value:
            self._scan_for_context(str(value), PREFIX_FOUND_EVAL, "evaluation", url="eval")

    # ==========================================================================
    # Service-worker channels (CDP)
    # ==========================================================================

    @_guarded
    def on_service_worker_script(self, event: dict[str, Any]) -> None:
        self._scan_for_context(
            event.get("body"),
            PREFIX_FOUND_SW_SCRIPT,
            "service-worker-script",
            url=event.get("scriptURL"),
        )

    @_guarded_async
    async def on_worker_version_updated(self, event: dict[str, Any]) -> None:
        """Fetch and scan the source of every updated worker version."""
        for version in event.get("versions") or []:
            worker_id = version.get("versionId") or version.get("id")
            try:
                result = await self._send_command(
                    "ServiceWorker.getWorkerSourceContents", {"workerId": worker_id}
                )
            except Exception as exc:
                log.debug("Worker source unavailable", {"workerId": worker_id, "error": errors.get_error_message(exc)})
                continue
            self._scan_for_context(
                result.get("scriptSource"),
                PREFIX_FOUND_SW_VERSION,
                "service-worker-version",
                url=version.get("scriptURL"),
                status=version.get("status"),
            )
