"""
OpenTelemetry tracing for the restroom tracker.

Tracing is opt-in (``TRACING_ENABLED=true``). Once ``setup_tracing`` has run:

- the HTTP middleware opens one span per request, joined to the caller's
  trace when the request carries a W3C ``traceparent`` header;
- the cleaning lifecycle opens ``cleaning.<action>`` spans inside it;
- every structlog entry emitted inside a span gets ``trace_id``/``span_id``.

Without setup the global tracer is a no-op, so ``traced`` costs nothing.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from typing import Any

from opentelemetry import propagate, trace
from opentelemetry.context import Context
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import (
    BatchSpanProcessor,
    SimpleSpanProcessor,
    SpanExporter,
)
from opentelemetry.trace import Span, StatusCode, Tracer

logger = logging.getLogger(__name__)

DEFAULT_OTLP_ENDPOINT = "http://localhost:4317"

_tracing_enabled = False


def _otlp_exporter(endpoint: str) -> SpanExporter:
    from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter

    return OTLPSpanExporter(endpoint=endpoint, insecure=True)


def setup_tracing(
    service_name: str,
    otlp_endpoint: str | None = None,
    *,
    exporter: SpanExporter | None = None,
) -> TracerProvider:
    """
    Install the global TracerProvider.

    Spans go to the OTLP gRPC collector in batches. Passing ``exporter``
    (e.g. ``InMemorySpanExporter`` in tests) exports each span synchronously
    instead.
    """
    global _tracing_enabled

    provider = TracerProvider(resource=Resource.create({"service.name": service_name}))
    if exporter is None:
        endpoint = otlp_endpoint or DEFAULT_OTLP_ENDPOINT
        provider.add_span_processor(BatchSpanProcessor(_otlp_exporter(endpoint)))
    else:
        endpoint = "(custom exporter)"
        provider.add_span_processor(SimpleSpanProcessor(exporter))
    trace.set_tracer_provider(provider)

    _tracing_enabled = True
    logger.info("Tracing enabled: service=%s endpoint=%s", service_name, endpoint)
    return provider


def get_tracer(name: str) -> Tracer:
    return trace.get_tracer(name)


def is_tracing_enabled() -> bool:
    return _tracing_enabled


def flush_traces(timeout_millis: int = 5000) -> None:
    """Export buffered spans, e.g. before the API process exits."""
    provider = trace.get_tracer_provider()
    if isinstance(provider, TracerProvider):
        provider.force_flush(timeout_millis)


def extract_request_context(headers: Mapping[str, str]) -> Context | None:
    """
    Parent context from an incoming ``traceparent`` header.

    Returns None when the header is absent or does not parse to a valid
    span context, so the request starts a fresh trace.
    """
    traceparent = headers.get("traceparent")
    if not traceparent:
        return None

    ctx = propagate.extract({"traceparent": traceparent, "tracestate": headers.get("tracestate", "")})
    if not trace.get_current_span(ctx).get_span_context().is_valid:
        logger.debug("Ignoring malformed traceparent: %s", traceparent)
        return None
    return ctx


@contextmanager
def traced(
    tracer: Tracer,
    name: str,
    attributes: dict[str, Any] | None = None,
    parent_context: Context | None = None,
) -> Iterator[Span]:
    """
    Run the block inside a span; an escaping exception marks the span as failed.

    Usage:
        with traced(get_tracer(__name__), "cleaning.complete", {"task_id": 7}):
            ...
    """
    with tracer.start_as_current_span(
        name,
        context=parent_context,
        attributes=attributes,
        record_exception=False,
        set_status_on_exception=False,
    ) as span:
        try:
            yield span
        except Exception as exc:
            span.set_status(StatusCode.ERROR, str(exc))
            span.record_exception(exc)
            raise


@contextmanager
def request_span(
    tracer: Tracer,
    name: str,
    attributes: dict[str, Any],
    headers: Mapping[str, str],
) -> Iterator[Span]:
    """
    The span covering one HTTP request.

    Recent FastAPI releases open a server span per request themselves; when
    one is already recording it is annotated and reused so a request never
    yields two nested spans. Otherwise a span is opened here, joined to the
    caller's ``traceparent`` when present.
    """
    current = trace.get_current_span()
    if current.is_recording():
        current.set_attributes(attributes)
        try:
            yield current
        except Exception as exc:
            current.set_status(StatusCode.ERROR, str(exc))
            raise
        return

    with traced(tracer, name, attributes, parent_context=extract_request_context(headers)) as span:
        yield span


def add_trace_context(
    logger_: Any, method: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """structlog processor adding ``trace_id``/``span_id`` of the active span."""
    ctx = trace.get_current_span().get_span_context()
    if ctx.is_valid:
        event_dict["trace_id"] = format(ctx.trace_id, "032x")
        event_dict["span_id"] = format(ctx.span_id, "016x")
    return event_dict
