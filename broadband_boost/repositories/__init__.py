"""
BroadbandBoost - Repositories Package

Data source interfaces and implementations.
"""

from broadband_boost.repositories.base import (
    CustomerRepository,
    TopologyRepository,
    StandardsRepository
)
from broadband_boost.repositories.memory import InMemoryRepository
from broadband_boost.repositories.snowflake_repository import (
    SnowflakeConnection,
    SnowflakeRepository
)

__all__ = [
    "CustomerRepository",
    "TopologyRepository",
    "StandardsRepository",
    "InMemoryRepository",
    "SnowflakeConnection",
    "SnowflakeRepository"
]
