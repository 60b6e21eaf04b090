"""
exceptions raised by reqmetrics itself

failures raised by measured work are never wrapped in these; they
propagate unchanged
"""


class ReqMetricsError(Exception):
    """base exception for reqmetrics"""

    def __init__(self, message: str, details: dict | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class NoBlockError(ReqMetricsError):
    """measure was called without a unit of work"""

    def __init__(self, message: str = "no work supplied to measure", details: dict | None = None):
        super().__init__(message, details)


class MetricConflictError(ReqMetricsError):
    """a metric identifier is already registered with a different shape"""

    pass


class ConfigurationError(ReqMetricsError):
    """invalid configuration"""

    pass
