"""
registry of labelled metrics backed by prometheus_client

prometheus_client fixes a metric's label names when the metric is created,
while measured work may hand back a different label set on every call. each
metric here therefore keeps one prometheus child metric per distinct set of
label names and merges them into a single family when collected.
"""

import threading
from collections.abc import Iterable, Mapping
from typing import NamedTuple

import prometheus_client
from prometheus_client import CollectorRegistry
from prometheus_client.metrics_core import Metric
from prometheus_client.registry import Collector

from ..core.exceptions import MetricConflictError
from ..core.logging import get_logger

logger = get_logger(__name__)

Labels = Mapping[str, str]


class HistogramValue(NamedTuple):
    """snapshot of one histogram series"""

    count: float
    sum: float
    buckets: dict[str, float]


def normalize_labels(labels: Labels | None) -> dict[str, str]:
    """coerce label names and values to strings"""
    if not labels:
        return {}
    return {str(name): str(value) for name, value in labels.items()}


class LabelledMetric(Collector):
    """
    base for metrics that accept any label schema per update

    subclasses set `kind` (the prometheus metric type) and implement
    `_create_child` to build an unregistered prometheus_client metric for a
    given tuple of label names
    """

    kind = ""

    def __init__(self, identifier: str, documentation: str = ""):
        self.identifier = identifier
        self.documentation = documentation or identifier
        self._children: dict[tuple[str, ...], object] = {}
        self._lock = threading.Lock()

    @property
    def family_name(self) -> str:
        return self.identifier

    def _create_child(self, labelnames: tuple[str, ...]):
        raise NotImplementedError

    def _series(self, labels: Labels | None):
        """return the prometheus series for a label set, creating it on first use"""
        values = normalize_labels(labels)
        labelnames = tuple(sorted(values))

        child = self._children.get(labelnames)
        if child is None:
            with self._lock:
                child = self._children.get(labelnames)
                if child is None:
                    child = self._create_child(labelnames)
                    self._children[labelnames] = child

        if not labelnames:
            return child
        return child.labels(**values)

    def describe(self) -> Iterable[Metric]:
        return [Metric(self.family_name, self.documentation, self.kind)]

    def collect(self) -> Iterable[Metric]:
        family = Metric(self.family_name, self.documentation, self.kind)
        with self._lock:
            children = list(self._children.values())
        for child in children:
            for metric in child.collect():
                family.samples.extend(metric.samples)
        return [family]

    def _sample_value(self, sample_name: str, labels: Labels | None) -> float:
        wanted = normalize_labels(labels)
        for metric in self.collect():
            for sample in metric.samples:
                if sample.name == sample_name and sample.labels == wanted:
                    return sample.value
        return 0.0

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.identifier!r})"


class Counter(LabelledMetric):
    """monotonically increasing labelled counter"""

    kind = "counter"

    @property
    def family_name(self) -> str:
        # prometheus exposes counters as <family>_total
        if self.identifier.endswith("_total"):
            return self.identifier[: -len("_total")]
        return self.identifier

    def _create_child(self, labelnames):
        return prometheus_client.Counter(
            self.identifier, self.documentation, labelnames=labelnames, registry=None
        )

    def increment(self, labels: Labels | None = None, amount: float = 1) -> None:
        self._series(labels).inc(amount)

    def get(self, labels: Labels | None = None) -> float:
        return self._sample_value(f"{self.family_name}_total", labels)


class Gauge(LabelledMetric):
    """labelled gauge representing a current level"""

    kind = "gauge"

    def _create_child(self, labelnames):
        return prometheus_client.Gauge(
            self.identifier, self.documentation, labelnames=labelnames, registry=None
        )

    def increment(self, labels: Labels | None = None, amount: float = 1) -> None:
        self._series(labels).inc(amount)

    def decrement(self, labels: Labels | None = None, amount: float = 1) -> None:
        self._series(labels).dec(amount)

    def set(self, value: float, labels: Labels | None = None) -> None:
        self._series(labels).set(value)

    def get(self, labels: Labels | None = None) -> float:
        return self._sample_value(self.family_name, labels)


class Histogram(LabelledMetric):
    """labelled histogram with fixed buckets"""

    kind = "histogram"

    def __init__(
        self,
        identifier: str,
        buckets: Iterable[float] | None = None,
        documentation: str = "",
    ):
        super().__init__(identifier, documentation)
        self.buckets = tuple(
            float(b) for b in (buckets or prometheus_client.Histogram.DEFAULT_BUCKETS)
        )

    def _create_child(self, labelnames):
        return prometheus_client.Histogram(
            self.identifier,
            self.documentation,
            labelnames=labelnames,
            registry=None,
            buckets=self.buckets,
        )

    def observe(self, value: float, labels: Labels | None = None) -> None:
        self._series(labels).observe(value)

    def get(self, labels: Labels | None = None) -> HistogramValue:
        wanted = normalize_labels(labels)
        count = total = 0.0
        buckets: dict[str, float] = {}
        for metric in self.collect():
            for sample in metric.samples:
                series = {k: v for k, v in sample.labels.items() if k != "le"}
                if series != wanted:
                    continue
                if sample.name == f"{self.family_name}_count":
                    count = sample.value
                elif sample.name == f"{self.family_name}_sum":
                    total = sample.value
                elif sample.name == f"{self.family_name}_bucket":
                    buckets[sample.labels["le"]] = sample.value
        return HistogramValue(count=count, sum=total, buckets=buckets)


class MetricsRegistry:
    """
    creates and looks up labelled metrics by identifier

    every metric is registered as a collector on `collector_registry`, so the
    usual prometheus_client exposition and sample lookup work against it
    """

    def __init__(self, collector_registry: CollectorRegistry | None = None):
        if collector_registry is None:
            collector_registry = CollectorRegistry(auto_describe=True)
        self.collector_registry = collector_registry
        self._metrics: dict[str, LabelledMetric] = {}
        self._lock = threading.Lock()

    def get(self, identifier: str) -> LabelledMetric | None:
        return self._metrics.get(identifier)

    def get_or_create_counter(self, identifier: str, documentation: str = "") -> Counter:
        return self._get_or_create(Counter, identifier, lambda: Counter(identifier, documentation))

    def get_or_create_gauge(self, identifier: str, documentation: str = "") -> Gauge:
        return self._get_or_create(Gauge, identifier, lambda: Gauge(identifier, documentation))

    def get_or_create_histogram(
        self,
        identifier: str,
        buckets: Iterable[float] | None = None,
        documentation: str = "",
    ) -> Histogram:
        # buckets may be a one-shot iterable; read it once
        if buckets is not None:
            buckets = tuple(float(b) for b in buckets)

        histogram = self._get_or_create(
            Histogram, identifier, lambda: Histogram(identifier, buckets, documentation)
        )
        if buckets is not None and histogram.buckets != buckets:
            raise MetricConflictError(
                f"histogram {identifier} already registered with different buckets",
                details={"identifier": identifier, "buckets": list(histogram.buckets)},
            )
        return histogram

    def _get_or_create(self, cls, identifier, factory):
        with self._lock:
            metric = self._metrics.get(identifier)
            if metric is not None:
                if not isinstance(metric, cls):
                    raise MetricConflictError(
                        f"{identifier} already registered as {metric.kind}",
                        details={"identifier": identifier, "kind": metric.kind},
                    )
                return metric

            metric = factory()
            try:
                self.collector_registry.register(metric)
            except ValueError as e:
                raise MetricConflictError(str(e), details={"identifier": identifier}) from e

            self._metrics[identifier] = metric
            logger.info("metric registered", identifier=identifier, kind=metric.kind)
            return metric

    def __iter__(self):
        return iter(list(self._metrics.values()))

    def __len__(self) -> int:
        return len(self._metrics)


default_registry = MetricsRegistry(prometheus_client.REGISTRY)
