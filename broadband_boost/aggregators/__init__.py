"""
BroadbandBoost - Aggregators Package

Topology rollup modules.
"""

from broadband_boost.aggregators.device_aggregator import (
    AggregationEngine,
    DeviceRollups,
    RollupCalculator,
    CPU_COUNT
)

__all__ = [
    "AggregationEngine",
    "DeviceRollups",
    "RollupCalculator",
    "CPU_COUNT"
]
