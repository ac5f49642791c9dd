import asyncio
import logging
import time
from typing import AsyncIterator, List, Optional, Tuple

import httpx
from fastapi import Request
from fastapi.responses import Response, StreamingResponse
from opentelemetry import trace
from starlette.background import BackgroundTask

from cors_proxy.demo import demo_page
from cors_proxy.forwarding.errors import (
    ALLOW_ORIGIN_HEADER,
    ProxyError,
    ProxyErrorKind,
)
from cors_proxy.forwarding.origins import ProxyConfig
from cors_proxy.utils import redact_query
from cors_proxy.utils.exception_logging import (
    describe_exception,
    log_exception_with_details,
)
from cors_proxy.utils.traced_requests import traced_request

tracer = trace.get_tracer(__name__)
logger = logging.getLogger("uvicorn.error")

ALLOWED_METHODS = "GET,HEAD,POST,PUT,DELETE,PATCH,OPTIONS"
PREFLIGHT_MAX_AGE = "86400"
CORS_HEADER_PREFIX = "access-control-"

# Framing of the upstream hop; the server re-derives these for the client
UPSTREAM_FRAMING_HEADERS = {"transfer-encoding", "connection"}

Headers = List[Tuple[str, str]]


def forwardable_request_headers(request: Request) -> Headers:
    """Every inbound header except Host, keeping duplicates and their order."""
    return [
        (name.decode("latin-1"), value.decode("latin-1"))
        for name, value in request.headers.raw
        if name.lower() != b"host"
    ]


def forwardable_response_headers(response: httpx.Response) -> Headers:
    """Upstream headers minus its CORS policy and hop framing."""
    headers = []
    for raw_name, raw_value in response.headers.raw:
        name = raw_name.decode("latin-1")
        name_lower = name.lower()
        if name_lower.startswith(CORS_HEADER_PREFIX):
            continue
        if name_lower in UPSTREAM_FRAMING_HEADERS:
            continue
        headers.append((name, raw_value.decode("latin-1")))
    return headers


def parse_target(target: str) -> httpx.URL:
    try:
        url = httpx.URL(target)
    except (httpx.InvalidURL, TypeError, ValueError):
        raise ProxyError(ProxyErrorKind.INVALID_TARGET_URL)
    if not url.is_absolute_url or not url.host:
        raise ProxyError(ProxyErrorKind.INVALID_TARGET_URL)
    return url


def _has_body(request: Request) -> bool:
    headers = request.headers
    return "content-length" in headers or "transfer-encoding" in headers


class ForwardingHandler:
    """
    Entry point for every inbound request.

    Decides between preflight, demo page and forwarding, and owns everything a
    forward needs: the allow-list, the upstream timeout and the httpx client.
    """

    def __init__(
        self, config: ProxyConfig, client: Optional[httpx.AsyncClient] = None
    ):
        self.config = config
        self.client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(config.timeout),
            follow_redirects=True,
        )

    async def aclose(self) -> None:
        await self.client.aclose()

    async def handle(self, request: Request) -> Response:
        origin = request.headers.get("origin", "")

        if request.method == "OPTIONS":
            return self.preflight(request, origin)

        # First value wins when the parameter is repeated
        values = request.query_params.getlist("url")
        target = values[0] if values else ""
        if not target:
            return demo_page()

        try:
            return await self.forward(request, origin, target)
        except ProxyError as e:
            return e.to_response()

    def preflight(self, request: Request, origin: str) -> Response:
        allow_list = self.config.allow_list
        if not allow_list.is_allowed(origin):
            logger.warning(f"Rejected preflight from origin {origin!r}")
            return Response(status_code=403)

        return Response(
            status_code=204,
            headers={
                ALLOW_ORIGIN_HEADER: allow_list.allow_origin_value(origin),
                "Access-Control-Allow-Methods": ALLOWED_METHODS,
                "Access-Control-Allow-Headers": request.headers.get(
                    "access-control-request-headers", ""
                ),
                "Access-Control-Max-Age": PREFLIGHT_MAX_AGE,
            },
        )

    async def forward(self, request: Request, origin: str, target: str) -> Response:
        allow_list = self.config.allow_list
        if not allow_list.is_allowed(origin):
            logger.warning(f"Rejected {request.method} from origin {origin!r}")
            raise ProxyError(ProxyErrorKind.ORIGIN_REJECTED)

        url = parse_target(target)
        allow_origin = allow_list.allow_origin_value(origin)

        with traced_request(
            tracer,
            "proxy_request",
            f"Proxying {request.method} -> {redact_query(str(url))}",
            extra_attrs={
                "proxy.target_url": redact_query(str(url)),
                "proxy.method": request.method,
                "proxy.origin": origin,
            },
        ) as span:
            try:
                upstream_request = self.client.build_request(
                    request.method,
                    url,
                    headers=forwardable_request_headers(request),
                    content=request.stream() if _has_body(request) else None,
                )
            except Exception as e:
                log_exception_with_details(logger, "[Proxy]", e)
                span.set_attribute("proxy.error", "request_construction_failed")
                raise ProxyError(
                    ProxyErrorKind.REQUEST_CONSTRUCTION_FAILED, describe_exception(e)
                )

            deadline = time.monotonic() + self.config.timeout
            try:
                upstream = await asyncio.wait_for(
                    self.client.send(upstream_request, stream=True),
                    timeout=self.config.timeout,
                )
            except asyncio.TimeoutError:
                logger.error(
                    f"Proxy timeout for {redact_query(str(url))} after {self.config.timeout:g}s"
                )
                span.set_attribute("proxy.error", "timeout")
                raise ProxyError(
                    ProxyErrorKind.UPSTREAM_CALL_FAILED,
                    f"upstream did not respond within {self.config.timeout:g}s",
                    allow_origin=allow_origin,
                )
            except Exception as e:
                log_exception_with_details(logger, "[Proxy]", e)
                span.set_attribute("proxy.error", type(e).__name__)
                raise ProxyError(
                    ProxyErrorKind.UPSTREAM_CALL_FAILED,
                    describe_exception(e),
                    allow_origin=allow_origin,
                )

            span.set_attribute("proxy.status_code", upstream.status_code)

        response = StreamingResponse(
            self._stream_body(upstream, deadline),
            status_code=upstream.status_code,
            background=BackgroundTask(upstream.aclose),
        )
        for name, value in forwardable_response_headers(upstream):
            response.headers.append(name, value)
        response.headers[ALLOW_ORIGIN_HEADER] = allow_origin
        response.headers["Access-Control-Allow-Methods"] = ALLOWED_METHODS
        response.headers["Vary"] = "Origin"
        return response

    async def _stream_body(
        self, upstream: httpx.Response, deadline: float
    ) -> AsyncIterator[bytes]:
        # Raw bytes: any Content-Encoding is passed through untouched
        try:
            async for chunk in upstream.aiter_raw():
                yield chunk
                if time.monotonic() > deadline:
                    logger.warning(
                        f"Upstream body for {redact_query(str(upstream.url))} exceeded "
                        f"{self.config.timeout:g}s, closing stream"
                    )
                    break
        except httpx.HTTPError as e:
            # Status and headers are already sent, so the body is cut short
            logger.warning(
                f"Upstream body for {redact_query(str(upstream.url))} failed mid-stream: "
                f"{describe_exception(e)}"
            )
        finally:
            await upstream.aclose()
