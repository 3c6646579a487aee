"""
BroadbandBoost - Device Aggregator

Rolls topology links up into per-device utilization statistics at two
hierarchy levels:

- Access rollup: Up links where the device itself is the child
- Uplink rollup: Up links one hop further up, where the device's parents
  are the child

The two rollups answer different capacity questions and are never merged.
"""

import logging
import math
import os
import statistics
from collections import Counter
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence

from broadband_boost.models.facts import LAYER_ACCESS, DeviceRollup, TopologyEdge
from broadband_boost.topology.graph import TopologyGraph


logger = logging.getLogger(__name__)

# CPU count for parallel processing
CPU_COUNT = min(os.cpu_count() or 4, 8)


@dataclass(frozen=True)
class DeviceRollups:
    """Access and uplink rollups for one device (either may be absent)."""
    device_id: str
    access: Optional[DeviceRollup]
    uplink: Optional[DeviceRollup]


class RollupCalculator:
    """
    Helper class for rollup statistics.

    Provides shared calculation methods for both hierarchy levels.
    """

    @staticmethod
    def summarize(
        device_id: str,
        edges: Iterable[TopologyEdge],
        source_device_ids: Sequence[str] = ()
    ) -> Optional[DeviceRollup]:
        """
        Summarize Up edges into a DeviceRollup.

        Args:
            device_id: Device the rollup is reported for
            edges: Candidate edges (non-Up edges are ignored)
            source_device_ids: Upstream devices aggregated (uplink rollups)

        Returns:
            DeviceRollup, or None when no Up edge contributes
        """
        up_edges = [edge for edge in edges if edge.is_up]
        if not up_edges:
            return None

        utilizations = [edge.utilization_pct for edge in up_edges]
        lag_types = [edge.lag_type for edge in up_edges]

        return DeviceRollup(
            device_id=device_id,
            avg_utilization_pct=statistics.fmean(utilizations),
            max_utilization_pct=max(utilizations),
            total_bandwidth_gbps=math.fsum(edge.bandwidth_gbps for edge in up_edges),
            dominant_lag_type=RollupCalculator.dominant_lag_type(lag_types),
            edge_count=len(up_edges),
            lag_types=tuple(dict.fromkeys(lag_types)),
            source_device_ids=tuple(source_device_ids)
        )

    @staticmethod
    def dominant_lag_type(lag_types: List[Optional[str]]) -> Optional[str]:
        """
        Most frequent LAG type, ties broken by first occurrence.

        Args:
            lag_types: LAG types in edge order

        Returns:
            Dominant LAG type or None if empty
        """
        if not lag_types:
            return None
        # most_common orders equal counts by first insertion
        return Counter(lag_types).most_common(1)[0][0]


class AggregationEngine:
    """
    Computes access and uplink rollups from a TopologyGraph.

    Devices are independent of each other, so bulk rollups fan out over a
    thread pool once the device count passes parallel_threshold.
    """

    def __init__(
        self,
        graph: TopologyGraph,
        parallel_threshold: int = 10,
        max_workers: int = CPU_COUNT
    ):
        """
        Initialize the aggregation engine.

        Args:
            graph: Topology to aggregate
            parallel_threshold: Minimum device count for thread fan-out
            max_workers: Thread pool size
        """
        self.graph = graph
        self.parallel_threshold = parallel_threshold
        self.max_workers = max(1, max_workers)
        logger.debug("AggregationEngine initialized")

    def access_rollup(self, device_id: str) -> Optional[DeviceRollup]:
        """
        Roll up Up access links where the device is the child.

        Args:
            device_id: Access device identifier

        Returns:
            DeviceRollup, or None when the device has no Up access links
        """
        rollup = RollupCalculator.summarize(
            device_id, self.graph.up_edges_where_child(device_id, LAYER_ACCESS)
        )
        if rollup is not None and rollup.has_mixed_lag_types:
            logger.warning(
                f"[WARN] Device {device_id} has mixed LAG types {list(rollup.lag_types)}; "
                f"using dominant type '{rollup.dominant_lag_type}'"
            )
        return rollup

    def uplink_rollup(self, device_id: str) -> Optional[DeviceRollup]:
        """
        Roll up the upstream links feeding a device.

        Takes the parents of the device's Up access links and aggregates the
        Up links where any of those parents is the child.

        Args:
            device_id: Access device identifier

        Returns:
            DeviceRollup reported under device_id with the parents in
            source_device_ids, or None when no upstream Up link exists
        """
        parents = self.graph.parents_of(device_id, LAYER_ACCESS)
        upstream_edges: List[TopologyEdge] = []
        for parent_id in parents:
            upstream_edges.extend(self.graph.up_edges_where_child(parent_id))

        return RollupCalculator.summarize(device_id, upstream_edges, source_device_ids=parents)

    def rollups_for(self, device_id: str) -> DeviceRollups:
        """Compute both rollups for a single device."""
        return DeviceRollups(
            device_id=device_id,
            access=self.access_rollup(device_id),
            uplink=self.uplink_rollup(device_id)
        )

    def build_rollups(
        self,
        device_ids: Iterable[str],
        use_parallel: bool = True
    ) -> Dict[str, DeviceRollups]:
        """
        Compute rollups for many devices.

        A failure for any device fails the whole call; partial rollup sets
        are never returned.

        Args:
            device_ids: Devices to roll up (duplicates are collapsed)
            use_parallel: Whether to use ThreadPoolExecutor (default True)

        Returns:
            Dictionary mapping device_id to DeviceRollups, in input order
        """
        unique_ids = list(dict.fromkeys(device_ids))
        if not unique_ids:
            return {}

        if use_parallel and len(unique_ids) > self.parallel_threshold:
            logger.info(f"[...] Building rollups for {len(unique_ids)} devices in parallel")
            with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
                rollups = list(executor.map(self.rollups_for, unique_ids))
        else:
            rollups = [self.rollups_for(device_id) for device_id in unique_ids]

        logger.info(f"[OK] Built rollups for {len(rollups)} devices")
        return {rollup.device_id: rollup for rollup in rollups}
