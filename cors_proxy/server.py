import logging
from contextlib import asynccontextmanager
from typing import Sequence

import uvicorn
from fastapi import FastAPI
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import ReadableSpan, TracerProvider
from opentelemetry.sdk.trace.export import (
    BatchSpanProcessor,
    SpanExporter,
    SpanExportResult,
)
from prometheus_client import Info
from prometheus_fastapi_instrumentator import Instrumentator

from cors_proxy.forwarding import ForwardingHandler, load_config, router
from cors_proxy.vars import (
    HOST,
    LOG_LEVEL,
    OTLP_ENDPOINT,
    OTLP_HEADERS,
    PORT,
    SERVICE_NAME,
)

logger = logging.getLogger("uvicorn.error")


class FilteringSpanExporter(SpanExporter):
    """
    Drops the ASGI "http.response.body" spans the FastAPI instrumentation emits
    for every chunk of a relayed upstream body, keeping the proxy_request span
    and the request-level spans.
    """

    def __init__(self, exporter: SpanExporter):
        self.exporter = exporter

    def export(self, spans: Sequence[ReadableSpan]) -> SpanExportResult:
        filtered_spans = [
            span
            for span in spans
            if not (
                span.attributes
                and span.attributes.get("asgi.event.type") == "http.response.body"
            )
        ]
        if filtered_spans:
            return self.exporter.export(filtered_spans)
        return SpanExportResult.SUCCESS

    def shutdown(self):
        return self.exporter.shutdown()

    def force_flush(self, timeout_millis: int = 30000):
        return self.exporter.force_flush(timeout_millis)


@asynccontextmanager
async def lifespan(app: FastAPI):
    config = load_config()
    handler = ForwardingHandler(config)
    app.state.forwarding_handler = handler
    if config.allow_list.allows_any:
        logger.warning("CORS proxy allows every origin")
    else:
        logger.info(
            f"CORS proxy allowed origins: {', '.join(sorted(config.allow_list.origins)) or '<none>'}"
        )
    try:
        yield
    finally:
        await handler.aclose()


app = FastAPI(
    title=SERVICE_NAME,
    lifespan=lifespan,
    docs_url=None,
    redoc_url=None,
    openapi_url=None,
)
instrumentator = Instrumentator()

instrumentator.instrument(app).expose(app, include_in_schema=False)

trace.set_tracer_provider(
    TracerProvider(resource=Resource.create({"service.name": SERVICE_NAME}))
)
tracer_provider = trace.get_tracer_provider()
if OTLP_ENDPOINT:
    otlp_exporter = OTLPSpanExporter(
        endpoint=OTLP_ENDPOINT,
        headers=OTLP_HEADERS or None,
    )
    span_processor = BatchSpanProcessor(FilteringSpanExporter(otlp_exporter))
    tracer_provider.add_span_processor(span_processor)

FastAPIInstrumentor.instrument_app(app, excluded_urls="metrics")

app_info = Info("fastapi_app_info", "Application Info")
app_info.info({"app_name": SERVICE_NAME})

app.include_router(router)


def main():
    uvicorn.run(app, host=HOST, port=PORT, log_level=LOG_LEVEL)


if __name__ == "__main__":
    main()
