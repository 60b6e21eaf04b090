import functools
import inspect
import time
from collections.abc import Awaitable, Callable, Iterable
from typing import Any, TypeVar

from .core.exceptions import ConfigurationError, NoBlockError
from .core.logging import get_logger
from .observability.registry import Labels, MetricsRegistry, default_registry

logger = get_logger(__name__)

R = TypeVar("R")


def exception_class_label(exc: BaseException) -> str:
    """
    name the kind of failure for the exceptions counter

    exception types may set a `metric_class` string to report a stable name
    of their own; otherwise the type name is used
    """
    name = getattr(exc, "metric_class", None)
    if isinstance(name, str) and name:
        return name
    return type(exc).__name__


def _check_arguments(labels, work) -> None:
    if work is None:
        if callable(labels):
            raise TypeError(
                "work was passed in place of labels; call measure(labels, work) "
                "or measure(work=work)"
            )
        raise NoBlockError()


class RequestMeter:
    """
    measures units of work with four metrics

    given a base name `N`, registers

    - `N_requests_total`: counter of all measured calls
    - `N_exceptions_total`: counter of calls whose work raised, with an
      additional `class` label naming the exception
    - `N_request_duration_seconds`: histogram of the duration of calls that
      completed normally
    - `N_in_progress_count`: gauge of calls currently running

    the labels passed to `measure` apply to the gauge and both counters.
    the work receives a copy of them which it may change freely; whatever
    that copy holds when the work returns labels the duration observation.
    """

    def __init__(
        self,
        name: str,
        registry: MetricsRegistry | None = None,
        description: str | None = None,
        buckets: Iterable[float] | None = None,
    ):
        if not name:
            raise ConfigurationError("request meter needs a non-empty name")

        self.name = name
        self.registry = default_registry if registry is None else registry
        description = description or name

        self._requests = self.registry.get_or_create_counter(
            f"{name}_requests_total", f"Number of {description} requests"
        )
        self._exceptions = self.registry.get_or_create_counter(
            f"{name}_exceptions_total",
            f"Number of exceptions encountered while performing {description}",
        )
        self._durations = self.registry.get_or_create_histogram(
            f"{name}_request_duration_seconds",
            buckets=buckets,
            documentation=f"Time taken to perform {description}",
        )
        self._in_progress = self.registry.get_or_create_gauge(
            f"{name}_in_progress_count", f"Number of {description} currently in progress"
        )

    def measure(
        self,
        labels: Labels | None = None,
        work: Callable[[dict[str, str]], R] | None = None,
    ) -> R:
        """
        run `work(labels)` and record it

        returns whatever the work returns; anything the work raises is counted
        and re-raised unchanged

        raises NoBlockError if no work is given
        """
        _check_arguments(labels, work)

        base = dict(labels or {})
        working = dict(base)

        self._in_progress.increment(base)
        start = time.perf_counter()
        try:
            result = work(working)
        except BaseException as e:
            self._record_failure(base, e)
            raise
        finally:
            elapsed = time.perf_counter() - start
            self._in_progress.decrement(base)
            self._requests.increment(base)

        self._durations.observe(elapsed, working)
        return result

    async def measure_async(
        self,
        labels: Labels | None = None,
        work: Callable[[dict[str, str]], Awaitable[R]] | None = None,
    ) -> R:
        """same as `measure`, awaiting the result of `work(labels)`"""
        _check_arguments(labels, work)

        base = dict(labels or {})
        working = dict(base)

        self._in_progress.increment(base)
        start = time.perf_counter()
        try:
            result = await work(working)
        except BaseException as e:
            # includes asyncio.CancelledError
            self._record_failure(base, e)
            raise
        finally:
            elapsed = time.perf_counter() - start
            self._in_progress.decrement(base)
            self._requests.increment(base)

        self._durations.observe(elapsed, working)
        return result

    def instrument(
        self, labels: Labels | None = None
    ) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
        """
        decorator measuring every call of a function or coroutine function

        the function is called with the working labels as keyword `labels`,
        so `labels` is reserved: callers of the decorated function must not
        pass it themselves (TypeError)
        """

        def reject_labels(func, kwargs):
            if "labels" in kwargs:
                raise TypeError(
                    f"{func.__qualname__}() receives labels from the request meter; "
                    "do not pass labels= to it"
                )

        def decorator(func):
            if inspect.iscoroutinefunction(func):

                @functools.wraps(func)
                async def async_wrapper(*args, **kwargs):
                    reject_labels(func, kwargs)
                    return await self.measure_async(
                        labels, lambda working: func(*args, labels=working, **kwargs)
                    )

                return async_wrapper

            @functools.wraps(func)
            def wrapper(*args, **kwargs):
                reject_labels(func, kwargs)
                return self.measure(labels, lambda working: func(*args, labels=working, **kwargs))

            return wrapper

        return decorator

    def _record_failure(self, base: dict[str, str], exc: BaseException) -> None:
        exception_class = exception_class_label(exc)
        logger.debug(
            "measured work raised",
            meter=self.name,
            labels=base,
            exception_class=exception_class,
        )
        self._exceptions.increment({**base, "class": exception_class})

    def __repr__(self) -> str:
        return f"RequestMeter({self.name!r})"
