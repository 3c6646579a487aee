"""
BroadbandBoost - Topology Package

In-memory network topology representation.
"""

from broadband_boost.topology.graph import TopologyGraph

__all__ = [
    "TopologyGraph"
]
