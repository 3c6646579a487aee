"""
BroadbandBoost - Topology Graph

In-memory index over directed parent -> child topology links.
"""

import logging
from collections import defaultdict
from typing import Dict, Iterable, List, Optional, Tuple

from broadband_boost.models.facts import LAYER_ACCESS, LinkSummary, TopologyEdge


logger = logging.getLogger(__name__)


class TopologyGraph:
    """
    Read-only index of topology edges by parent and child device.

    Queries for unknown devices return empty sequences: a customer's
    device may simply not be wired yet.
    """

    def __init__(self, edges: Iterable[TopologyEdge] = ()):
        """
        Build the graph.

        Args:
            edges: Topology edges in source order
        """
        self._edges: Tuple[TopologyEdge, ...] = tuple(edges)
        self._by_child: Dict[str, List[TopologyEdge]] = defaultdict(list)
        self._by_parent: Dict[str, List[TopologyEdge]] = defaultdict(list)

        for edge in self._edges:
            self._by_child[edge.child_device_id].append(edge)
            self._by_parent[edge.parent_device_id].append(edge)

        logger.debug(
            f"TopologyGraph initialized with {len(self._edges)} edges, "
            f"{len(self._by_child)} child devices"
        )

    def __len__(self) -> int:
        return len(self._edges)

    @property
    def edges(self) -> Tuple[TopologyEdge, ...]:
        """All edges in source order."""
        return self._edges

    def edges_for(self, device_id: str) -> List[TopologyEdge]:
        """
        Get all edges where the device is the parent or the child.

        Args:
            device_id: Device identifier

        Returns:
            Edges in source order (empty for unknown devices)
        """
        return [
            edge for edge in self._edges
            if edge.parent_device_id == device_id or edge.child_device_id == device_id
        ]

    def edges_where_child(self, device_id: str) -> List[TopologyEdge]:
        """Get edges of any status where the device is the child."""
        return list(self._by_child.get(device_id, ()))

    def up_edges_where_child(
        self,
        device_id: str,
        layer: Optional[str] = None
    ) -> List[TopologyEdge]:
        """Get Up edges where the device is the child, optionally in one layer."""
        return [
            edge for edge in self._by_child.get(device_id, ())
            if edge.is_up and (layer is None or edge.layer == layer)
        ]

    def parents_of(self, device_id: str, layer: Optional[str] = None) -> List[str]:
        """
        Get the distinct upstream devices of a device over its Up links.

        Args:
            device_id: Device identifier
            layer: Only follow links in this layer (any layer if None)

        Returns:
            Parent device ids in first-seen order
        """
        parents: List[str] = []
        for edge in self.up_edges_where_child(device_id, layer):
            if edge.parent_device_id not in parents:
                parents.append(edge.parent_device_id)
        return parents

    def device_ids(self) -> List[str]:
        """
        Get sorted distinct access devices that have at least one Up link.

        Aggregation devices that are only children of uplink links are not
        listed.
        """
        return sorted(
            device_id for device_id, edges in self._by_child.items()
            if any(edge.is_up and edge.layer == LAYER_ACCESS for edge in edges)
        )

    def link_summary(self, device_id: str) -> LinkSummary:
        """
        Count links where the device is the child, regardless of status.

        Args:
            device_id: Device identifier

        Returns:
            LinkSummary (all zero for unknown devices)
        """
        edges = self._by_child.get(device_id, ())
        links_up = sum(1 for edge in edges if edge.is_up)
        return LinkSummary(
            total_links=len(edges),
            links_up=links_up,
            links_down=len(edges) - links_up,
            connected_parents=len({edge.parent_device_id for edge in edges})
        )
