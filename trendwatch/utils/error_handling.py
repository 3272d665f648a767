"""
Error Handling Utility Module

Reusable error handling patterns so that failures at the engine's edges
(metric sources, alert subscribers, per-metric analyses) are logged with
structured context instead of being swallowed or crashing a loop.

This module provides three utilities:
1. log_and_continue() - Log error and continue execution (for expected failures)
2. log_and_raise() - Log error with context and re-raise (for unexpected errors)
3. call_isolated() - Invoke a collaborator callback, logging instead of propagating failures
"""

import logging
from collections.abc import Callable
from typing import Any, TypeVar

# Type variable for generic function return types
T = TypeVar("T")


def log_and_continue(
    logger: logging.Logger,
    error: Exception,
    context: dict[str, Any],
    error_type: str = "Operation",
) -> None:
    """
    Log an error with structured context and continue execution gracefully.

    Use this when encountering expected errors that should not halt execution
    (e.g., a metric source failing during one collection cycle).

    Args:
        logger: Logger instance from get_logger(__name__)
        error: The caught exception
        context: Structured data about what failed (metric_id, cycle, etc.)
        error_type: Human-readable description of the operation

    Example:
        try:
            samples = source()
        except Exception as e:
            log_and_continue(logger, e, context={"cycle": cycle}, error_type="Metric collection")
            return
    """
    logger.warning(
        f"{error_type} failed: {error}",
        extra={
            "error_type": error_type,
            "exception_class": error.__class__.__name__,
            "context": context,
        },
    )


def log_and_raise(
    logger: logging.Logger,
    error: Exception,
    context: dict[str, Any],
    error_type: str = "Operation",
) -> None:
    """
    Log an error with context and re-raise it (for unexpected errors).

    Args:
        logger: Logger instance
        error: The caught exception
        context: Structured data about what failed
        error_type: Human-readable description

    Raises:
        The original exception after logging

    Example:
        try:
            config = get_config().get_analytics_config()
        except ConfigurationError as e:
            log_and_raise(logger, e, context={"source": "environment"}, error_type="Configuration")
    """
    logger.error(
        f"{error_type} failed critically: {error}",
        exc_info=True,
        extra={
            "error_type": error_type,
            "exception_class": error.__class__.__name__,
            "context": context,
        },
    )
    raise error


def call_isolated(
    logger: logging.Logger,
    func: Callable[..., T],
    *args: Any,
    context: dict[str, Any] | None = None,
    error_type: str = "Callback",
) -> tuple[bool, T | None]:
    """
    Call *func* and log, rather than propagate, any exception it raises.

    Returns:
        (succeeded, result) where result is None on failure

    Example:
        delivered, _ = call_isolated(logger, subscriber, insight, error_type="Alert delivery")
    """
    try:
        return True, func(*args)
    except Exception as e:
        log_and_continue(logger, e, context or {}, error_type)
        return False, None
