"""
Tests for RequestMeter.measure_async and async instrumented functions.
"""

import asyncio

import pytest

from reqmetrics.core.exceptions import NoBlockError


class TestMeasureAsync:
    def test_returns_awaited_value(self, registry, meter):
        async def work(labels):
            await asyncio.sleep(0)
            labels["kind"] = "async"
            return 42

        assert asyncio.run(meter.measure_async({"foo": "bar"}, work)) == 42
        assert registry.get("ohai_requests_total").get({"foo": "bar"}) == 1
        assert registry.get("ohai_in_progress_count").get({"foo": "bar"}) == 0
        durations = registry.get("ohai_request_duration_seconds")
        assert durations.get({"foo": "bar", "kind": "async"}).count == 1
        assert durations.get({"foo": "bar"}).count == 0

    def test_requires_work(self, registry, meter):
        with pytest.raises(NoBlockError):
            asyncio.run(meter.measure_async({}))

        assert registry.get("ohai_in_progress_count").get() == 0

    def test_work_passed_as_labels(self, meter):
        async def work(labels):
            return 1

        with pytest.raises(TypeError, match="in place of labels"):
            asyncio.run(meter.measure_async(work))

    def test_counts_failure(self, registry, meter):
        async def work(labels):
            raise LookupError("missing")

        with pytest.raises(LookupError, match="missing"):
            asyncio.run(meter.measure_async({}, work))

        assert registry.get("ohai_exceptions_total").get({"class": "LookupError"}) == 1
        assert registry.get("ohai_requests_total").get() == 1
        assert registry.get("ohai_request_duration_seconds").get().count == 0

    def test_cancellation_is_a_failure(self, registry, meter):
        """A cancelled task still releases the in-progress gauge and is counted."""
        in_flight = []

        async def work(labels):
            in_flight.append(registry.get("ohai_in_progress_count").get())
            await asyncio.sleep(10)

        async def main():
            task = asyncio.create_task(meter.measure_async({}, work))
            await asyncio.sleep(0.01)
            task.cancel()
            with pytest.raises(asyncio.CancelledError):
                await task

        asyncio.run(main())

        assert in_flight == [1]
        assert registry.get("ohai_in_progress_count").get() == 0
        assert registry.get("ohai_requests_total").get() == 1
        assert registry.get("ohai_exceptions_total").get({"class": "CancelledError"}) == 1
        assert registry.get("ohai_request_duration_seconds").get().count == 0

    def test_timeout_is_a_failure(self, registry, meter):
        async def work(labels):
            await asyncio.sleep(10)

        async def main():
            await asyncio.wait_for(meter.measure_async({}, work), timeout=0.01)

        with pytest.raises(asyncio.TimeoutError):
            asyncio.run(main())

        assert registry.get("ohai_in_progress_count").get() == 0
        assert registry.get("ohai_exceptions_total").get({"class": "CancelledError"}) == 1


class TestInstrumentAsync:
    def test_measures_coroutine_function(self, registry, meter):
        @meter.instrument({"job": "fetch"})
        async def fetch(key, labels):
            labels["key"] = key
            return key.upper()

        assert asyncio.run(fetch("abc")) == "ABC"
        assert registry.get("ohai_requests_total").get({"job": "fetch"}) == 1
        assert (
            registry.get("ohai_request_duration_seconds").get({"job": "fetch", "key": "abc"}).count
            == 1
        )

    def test_labels_keyword_reserved(self, registry, meter):
        @meter.instrument()
        async def work(labels):
            return labels

        with pytest.raises(TypeError, match="do not pass labels"):
            asyncio.run(work(labels={}))

        assert registry.get("ohai_requests_total").get() == 0
