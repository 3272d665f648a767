"""
Core Infrastructure - Logging and Configuration

This package provides centralized infrastructure utilities that should be used
throughout the engine instead of direct library calls.

Usage:
    from trendwatch.core import get_config, get_logger

    logger = get_logger(__name__)
    config = get_config().get_analytics_config()
"""

from ..secure_config import (
    AnalyticsConfig,
    ConfigurationError,
    ImpactWeights,
    ProjectionConfig,
    SecureConfig,
    get_config,
)
from .logging_config import get_logger, log_with_context, setup_logging

__all__ = [
    # Configuration
    "get_config",
    "ConfigurationError",
    "SecureConfig",
    "AnalyticsConfig",
    "ImpactWeights",
    "ProjectionConfig",
    # Logging
    "get_logger",
    "setup_logging",
    "log_with_context",
]
