"""
shared fixtures for the reqmetrics test suite
"""

import pytest

from reqmetrics.observability.registry import MetricsRegistry
from reqmetrics.request import RequestMeter


@pytest.fixture
def registry():
    """fresh registry per test, isolated from the prometheus default one"""
    return MetricsRegistry()


@pytest.fixture
def meter(registry):
    return RequestMeter("ohai", registry=registry)
