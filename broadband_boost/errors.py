"""
BroadbandBoost - Error Types

Exceptions surfaced to callers of the eligibility engine.

NotFound conditions (unknown device, unknown customer) are not exceptions;
they are represented as empty results or skipped entries.
"""

from typing import Optional


class BroadbandBoostError(Exception):
    """Base class for all BroadbandBoost errors."""


class ValidationError(BroadbandBoostError):
    """
    Exception raised for malformed or out-of-range caller input.
    
    Raised before any computation is attempted.
    """
    def __init__(self, field: str, message: str):
        super().__init__(f"{field}: {message}")
        self.field = field
        self.message = message


class DataUnavailableError(BroadbandBoostError):
    """
    Exception raised when an external data source fails or times out.
    
    Fatal for the current call: callers must not fall back to stale or
    empty data.
    """
    def __init__(self, source: str, message: str, timeout_seconds: Optional[float] = None):
        super().__init__(f"{source} unavailable: {message}")
        self.source = source
        self.timeout_seconds = timeout_seconds
