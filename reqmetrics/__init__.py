"""instrument units of work with request, exception, duration and in-progress metrics"""

__version__ = "0.1.0"

from .core.exceptions import (  # noqa: E402
    ConfigurationError,
    MetricConflictError,
    NoBlockError,
    ReqMetricsError,
)
from .observability.registry import MetricsRegistry, default_registry  # noqa: E402
from .request import RequestMeter, exception_class_label  # noqa: E402

__all__ = [
    "ConfigurationError",
    "MetricConflictError",
    "MetricsRegistry",
    "NoBlockError",
    "ReqMetricsError",
    "RequestMeter",
    "default_registry",
    "exception_class_label",
]
