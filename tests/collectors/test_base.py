#!/usr/bin/env python3
"""
Tests for metric source polling

Verifies poll_source handles every supported source shape:
- Plain functions (run in a worker thread)
- Coroutine functions
- BaseMetricSource subclasses with sync or async collect()
"""

import threading

import pytest

from trendwatch.collectors.base import BaseMetricSource, poll_source, source_name


class SyncSource(BaseMetricSource):
    """Source whose collect() is a plain method"""

    def __init__(self, samples):
        super().__init__(name="sync-source")
        self.samples = samples
        self.thread_name = None

    def collect(self):
        self.thread_name = threading.current_thread().name
        return self.samples


class AsyncSource(BaseMetricSource):
    """Source whose collect() is a coroutine"""

    def __init__(self, samples):
        super().__init__(name="async-source")
        self.samples = samples

    async def collect(self):
        return self.samples


class TestPollSource:
    """Test polling of the supported source shapes"""

    @pytest.mark.asyncio
    async def test_plain_function(self, sample_factory, base_time):
        """Test a plain function's samples are returned as a list"""
        sample = sample_factory("m", 1.0, base_time)

        result = await poll_source(lambda: (s for s in [sample]))

        assert result == [sample]

    @pytest.mark.asyncio
    async def test_coroutine_function(self, sample_factory, base_time):
        """Test a coroutine function is awaited directly"""
        sample = sample_factory("m", 2.0, base_time)

        async def source():
            return [sample]

        assert await poll_source(source) == [sample]

    @pytest.mark.asyncio
    async def test_sync_subclass_runs_off_loop(self, sample_factory, base_time):
        """Test a synchronous collect() runs in a worker thread"""
        source = SyncSource([sample_factory("m", 3.0, base_time)])

        result = await poll_source(source)

        assert len(result) == 1
        assert source.thread_name != threading.main_thread().name

    @pytest.mark.asyncio
    async def test_async_subclass(self, sample_factory, base_time):
        """Test an async collect() is awaited"""
        source = AsyncSource([sample_factory("m", 4.0, base_time)])

        result = await poll_source(source)

        assert [s.value for s in result] == [4.0]

    @pytest.mark.asyncio
    async def test_none_becomes_empty_list(self):
        """Test a source returning None yields no samples"""
        assert await poll_source(lambda: None) == []

    @pytest.mark.asyncio
    async def test_failure_propagates(self):
        """Test source errors are left for the caller to handle"""

        def broken():
            raise ConnectionError("upstream down")

        with pytest.raises(ConnectionError, match="upstream down"):
            await poll_source(broken)


class TestSourceName:
    """Test source labels used in logs"""

    def test_subclass_uses_name(self):
        assert source_name(SyncSource([])) == "sync-source"

    def test_function_uses_qualname(self):
        def ci_results():
            return []

        assert source_name(ci_results).endswith("ci_results")

    def test_abstract_base_cannot_be_instantiated(self):
        with pytest.raises(TypeError):
            BaseMetricSource("abstract")
