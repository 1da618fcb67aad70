"""
Quiz Platform - Telemetry Module
OpenTelemetry-based tracing for AI agents and LLM calls
"""
import logging
from contextlib import contextmanager
from typing import Optional

from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.trace import Status, StatusCode

from app.core.config import settings

logger = logging.getLogger(__name__)

TRACER_NAME = "quiz.ai"

_provider_installed = False


def init_telemetry() -> trace.Tracer:
    """
    Install a tracer provider with an OTLP exporter.

    Only does anything when TELEMETRY_ENABLED is set and an endpoint is
    configured; otherwise spans go to the no-op provider.
    """
    global _provider_installed

    if _provider_installed or not (settings.TELEMETRY_ENABLED and settings.OTEL_EXPORTER_OTLP_ENDPOINT):
        return get_tracer()

    from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter

    resource = Resource.create({
        "service.name": settings.OTEL_SERVICE_NAME,
        "service.version": settings.APP_VERSION,
        "deployment.environment": settings.ENVIRONMENT,
    })
    provider = TracerProvider(resource=resource)
    provider.add_span_processor(
        BatchSpanProcessor(OTLPSpanExporter(endpoint=settings.OTEL_EXPORTER_OTLP_ENDPOINT, insecure=True))
    )
    trace.set_tracer_provider(provider)
    _provider_installed = True

    logger.info(
        "Telemetry initialized for %s -> %s",
        settings.OTEL_SERVICE_NAME,
        settings.OTEL_EXPORTER_OTLP_ENDPOINT,
    )
    return get_tracer()


def get_tracer() -> trace.Tracer:
    """Tracer for the AI module (no-op until a provider is installed)."""
    return trace.get_tracer(TRACER_NAME, settings.APP_VERSION)


@contextmanager
def agent_span(name: str, agent_name: str, attributes: Optional[dict] = None):
    """
    Context manager for agent execution spans.

    Usage:
        with agent_span("generate_feedback", "FeedbackAgent") as span:
            span.set_attribute("attempt.id", str(attempt.id))
    """
    tracer = get_tracer()
    with tracer.start_as_current_span(name) as span:
        span.set_attribute("agent.name", agent_name)
        span.set_attribute("agent.operation", name)

        if attributes:
            for key, value in attributes.items():
                span.set_attribute(key, str(value) if value is not None else "")

        try:
            yield span
        except Exception as e:
            span.set_status(Status(StatusCode.ERROR, str(e)))
            span.record_exception(e)
            raise
