import logging
from contextlib import asynccontextmanager
from typing import Optional, Sequence

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from opentelemetry import trace
from prometheus_client import CollectorRegistry, Info
from prometheus_fastapi_instrumentator import Instrumentator

from oryproxy.config import OryConfig
from oryproxy.engine import OryProxy
from oryproxy.routes import create_router
from oryproxy.vars import OTLP_ENDPOINT, OTLP_HEADERS, SERVICE_NAME

logger = logging.getLogger("uvicorn.error")

try:
    from opentelemetry.sdk.resources import Resource
    from opentelemetry.sdk.trace import TracerProvider, ReadableSpan
    from opentelemetry.sdk.trace.export import (
        BatchSpanProcessor,
        SpanExporter,
        SpanExportResult,
    )
    from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
    from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter

    _OTEL_AVAILABLE = True
except ImportError:  # pragma: no cover - tracing stays on the no-op API provider
    Resource = TracerProvider = ReadableSpan = BatchSpanProcessor = SpanExporter = SpanExportResult = None  # type: ignore
    FastAPIInstrumentor = OTLPSpanExporter = None  # type: ignore
    _OTEL_AVAILABLE = False

_tracing_configured = False


# ASGI send/receive spans FastAPIInstrumentor opens for each message
ASGI_MESSAGE_EVENTS = frozenset(
    {"http.request", "http.response.start", "http.response.body"}
)
METRICS_ROUTE = "/metrics"


def is_noise_span(span) -> bool:
    """ASGI message spans and Prometheus scrapes are not proxied exchanges."""
    attributes = span.attributes or {}
    return (
        attributes.get("asgi.event.type") in ASGI_MESSAGE_EVENTS
        or attributes.get("http.route") == METRICS_ROUTE
    )


class FilteringSpanExporter(SpanExporter if _OTEL_AVAILABLE else object):
    """Forwards only the spans of proxied exchanges to the wrapped exporter."""

    def __init__(self, exporter: SpanExporter):
        self.exporter = exporter

    def export(self, spans: Sequence[ReadableSpan]) -> SpanExportResult:
        kept = [span for span in spans if not is_noise_span(span)]
        return self.exporter.export(kept) if kept else SpanExportResult.SUCCESS

    def shutdown(self):
        return self.exporter.shutdown()

    def force_flush(self, timeout_millis: int = 30000):
        return self.exporter.force_flush(timeout_millis)


def configure_tracing() -> None:
    """Install the SDK tracer provider once per process."""
    global _tracing_configured
    if not _OTEL_AVAILABLE or _tracing_configured:
        return
    trace.set_tracer_provider(
        TracerProvider(resource=Resource.create({"service.name": SERVICE_NAME}))
    )
    if OTLP_ENDPOINT:
        otlp_exporter = OTLPSpanExporter(
            endpoint=OTLP_ENDPOINT,
            headers=((OTLP_HEADERS).split(",") if OTLP_HEADERS else None),
        )
        trace.get_tracer_provider().add_span_processor(
            BatchSpanProcessor(FilteringSpanExporter(otlp_exporter))
        )
    _tracing_configured = True


def create_app(
    config: Optional[OryConfig] = None, proxy: Optional[OryProxy] = None
) -> FastAPI:
    """Assemble the proxy application: metrics, tracing, CORS and the proxy routes."""
    config = config or OryConfig.from_env()
    proxy = proxy or OryProxy(config)

    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        logger.info(
            f"[Server] Proxying {config.proxy_route_path_prefix} to {config.ory_project_url or '<unset>'}"
        )
        yield
        await proxy.aclose()

    app = FastAPI(lifespan=lifespan)

    registry = CollectorRegistry()
    Instrumentator(registry=registry).instrument(app).expose(app)
    app_info = Info("fastapi_app_info", "Application Info", registry=registry)
    app_info.info({"app_name": SERVICE_NAME})

    configure_tracing()
    if _OTEL_AVAILABLE:
        FastAPIInstrumentor.instrument_app(app)

    if config.cors_enabled:
        app.add_middleware(CORSMiddleware, **config.cors_options)

    app.state.proxy = proxy
    app.include_router(create_router(proxy, config.proxy_route_path_prefix))
    return app


app = create_app()
