"""
Metric source abstraction

The engine does not fetch data itself. A metric source is any collaborator
that returns fresh MetricSample objects when polled: a BaseMetricSource
subclass, a plain function, or a coroutine function.

Synchronous sources run in a worker thread via asyncio.to_thread() so a slow
source never blocks the event loop.
"""

import asyncio
import inspect
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable, Iterable

from trendwatch.domain.metrics import MetricSample

MetricSource = Callable[[], Iterable[MetricSample] | Awaitable[Iterable[MetricSample]]]


class BaseMetricSource(ABC):
    """Base class for pollable metric sources.

    Subclasses implement collect(), either as a plain method or as a
    coroutine method.
    """

    def __init__(self, name: str):
        self.name = name

    @abstractmethod
    def collect(self) -> Iterable[MetricSample] | Awaitable[Iterable[MetricSample]]:
        """Return the samples available since the previous poll."""
        pass

    def __call__(self) -> Iterable[MetricSample] | Awaitable[Iterable[MetricSample]]:
        return self.collect()


def source_name(source: MetricSource) -> str:
    """Best-effort label for logging."""
    if isinstance(source, BaseMetricSource):
        return source.name
    return getattr(source, "__qualname__", None) or source.__class__.__name__


def _is_coroutine_source(source: MetricSource) -> bool:
    if isinstance(source, BaseMetricSource):
        return inspect.iscoroutinefunction(source.collect)
    return inspect.iscoroutinefunction(source) or inspect.iscoroutinefunction(getattr(source, "__call__", None))


async def poll_source(source: MetricSource) -> list[MetricSample]:
    """
    Poll *source* once without blocking the event loop.

    Returns:
        Samples returned by the source (empty list for None)

    Raises:
        Whatever the source raises; callers decide whether a failure is fatal.
    """
    if _is_coroutine_source(source):
        result = await source()
    else:
        result = await asyncio.to_thread(source)
        if inspect.isawaitable(result):
            result = await result
    return list(result or [])
