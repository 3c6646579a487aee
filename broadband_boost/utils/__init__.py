"""
BroadbandBoost - Utilities Package

Configuration and logging helpers.
"""

from broadband_boost.utils.config import (
    Config,
    EligibilityPolicy,
    OperationalConfig,
    SnowflakeConfig,
    ACCESS_COMPARISON_STRICT,
    ACCESS_COMPARISON_INCLUSIVE
)
from broadband_boost.utils.logging_config import setup_logging, LogContext

__all__ = [
    "Config",
    "EligibilityPolicy",
    "OperationalConfig",
    "SnowflakeConfig",
    "ACCESS_COMPARISON_STRICT",
    "ACCESS_COMPARISON_INCLUSIVE",
    "setup_logging",
    "LogContext"
]
