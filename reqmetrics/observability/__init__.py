"""observability layer: metric registry and exposition"""

from .exposition import metrics_endpoint, render
from .registry import (
    Counter,
    Gauge,
    Histogram,
    HistogramValue,
    MetricsRegistry,
    default_registry,
)

__all__ = [
    "Counter",
    "Gauge",
    "Histogram",
    "HistogramValue",
    "MetricsRegistry",
    "default_registry",
    "metrics_endpoint",
    "render",
]
