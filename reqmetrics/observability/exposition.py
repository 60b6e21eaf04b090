from fastapi import Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from .registry import MetricsRegistry, default_registry


def render(registry: MetricsRegistry | None = None) -> bytes:
    """render a registry in prometheus text format"""
    if registry is None:
        registry = default_registry
    return generate_latest(registry.collector_registry)


def metrics_endpoint(registry: MetricsRegistry | None = None) -> Response:
    """prometheus metrics endpoint"""
    return Response(content=render(registry), media_type=CONTENT_TYPE_LATEST)
