"""
BroadbandBoost - Fact Models

Topology link facts and the derived records computed from them.
Grain: one directed parent -> child link.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Optional, Tuple

from broadband_boost.models.dimensions import (
    CONTACT_CHANNELS,
    Customer,
    OversubscriptionStandard
)
from broadband_boost.models.fields import clamp_pct, parse_float, parse_optional_str


LINK_STATUS_UP = "Up"

LAYER_ACCESS = "access"
LAYER_UPLINK = "uplink"
LAYERS = (LAYER_ACCESS, LAYER_UPLINK)


@dataclass(frozen=True)
class TopologyEdge:
    """
    Fact record for a directed topology link.

    Edges are immutable facts ingested from the topology source. The layer
    records which table the link came from: access links feed customer
    devices, uplink links feed the aggregation tier above them.
    """
    parent_device_id: str
    child_device_id: str
    link_status: str
    utilization_pct: float
    bandwidth_gbps: float
    lag_type: Optional[str] = None
    layer: str = LAYER_ACCESS

    @property
    def is_up(self) -> bool:
        """Check if the link is operationally up."""
        return self.link_status == LINK_STATUS_UP

    def to_dict(self) -> dict:
        """Convert to dictionary using topology table column names."""
        return {
            "parent_device_id": self.parent_device_id,
            "child_device_id": self.child_device_id,
            "link_status": self.link_status,
            "link_utilization_percentage": self.utilization_pct,
            "link_bandwidth_gbps": self.bandwidth_gbps,
            "lag_type": self.lag_type,
            "layer": self.layer
        }

    @classmethod
    def from_row(cls, row: Dict[str, Any], layer: Optional[str] = None) -> "TopologyEdge":
        """
        Create TopologyEdge from a raw topology table row.

        This is the ingestion boundary: utilization is clamped into [0, 100]
        and negative bandwidth is floored at 0 here, never later.

        Args:
            row: Row dictionary (link_utilization_percentage / utilization_pct
                and link_bandwidth_gbps / bandwidth_gbps are both accepted)
            layer: Topology layer; overrides a layer column in the row,
                which itself defaults to access

        Returns:
            TopologyEdge instance
        """
        data = {str(key).lower(): value for key, value in row.items()}

        parent = parse_optional_str(data.get("parent_device_id"))
        child = parse_optional_str(data.get("child_device_id"))
        if parent is None or child is None:
            raise ValueError("Topology row requires parent_device_id and child_device_id")

        layer = layer or (parse_optional_str(data.get("layer")) or LAYER_ACCESS).lower()
        if layer not in LAYERS:
            raise ValueError(f"Unknown topology layer '{layer}'")

        utilization = data.get("link_utilization_percentage", data.get("utilization_pct"))
        bandwidth = data.get("link_bandwidth_gbps", data.get("bandwidth_gbps"))

        return cls(
            parent_device_id=parent,
            child_device_id=child,
            link_status=parse_optional_str(data.get("link_status")) or "",
            utilization_pct=clamp_pct(parse_float(utilization)),
            bandwidth_gbps=max(0.0, parse_float(bandwidth)),
            lag_type=parse_optional_str(data.get("lag_type")),
            layer=layer
        )


@dataclass(frozen=True)
class DeviceRollup:
    """
    Aggregated utilization statistics for one device at one hierarchy level.

    Computed per evaluation pass, never persisted.
    """
    device_id: str
    avg_utilization_pct: float
    max_utilization_pct: float
    total_bandwidth_gbps: float
    dominant_lag_type: Optional[str]
    edge_count: int
    lag_types: Tuple[Optional[str], ...] = ()
    source_device_ids: Tuple[str, ...] = ()  # upstream devices (uplink rollups only)

    @property
    def has_mixed_lag_types(self) -> bool:
        """True when contributing edges carry more than one LAG type."""
        return len(self.lag_types) > 1

    def to_dict(self) -> dict:
        """Convert to dictionary for API consumption."""
        return {
            "device_id": self.device_id,
            "avg_utilization_pct": self.avg_utilization_pct,
            "max_utilization_pct": self.max_utilization_pct,
            "total_bandwidth_gbps": self.total_bandwidth_gbps,
            "dominant_lag_type": self.dominant_lag_type,
            "edge_count": self.edge_count,
            "lag_types": list(self.lag_types),
            "source_device_ids": list(self.source_device_ids)
        }


@dataclass(frozen=True)
class LinkSummary:
    """Link counts for a device over all edges where it is the child."""
    total_links: int = 0
    links_up: int = 0
    links_down: int = 0
    connected_parents: int = 0

    def to_dict(self) -> dict:
        """Convert to dictionary for API consumption."""
        return {
            "total_links": self.total_links,
            "links_up": self.links_up,
            "links_down": self.links_down,
            "connected_parents": self.connected_parents
        }


@dataclass(frozen=True)
class EligibilityResult:
    """
    Read-only projection of one eligible customer and the evidence for it.

    Never persisted; recomputed per query.
    """
    customer: Customer
    access_rollup: DeviceRollup
    uplink_rollup: Optional[DeviceRollup]
    standard: OversubscriptionStandard
    capacity_note: Optional[str] = None

    @property
    def device_id(self) -> str:
        """Access device the customer is served by."""
        return self.access_rollup.device_id

    @property
    def access_utilization_pct(self) -> float:
        """Average utilization of the access rollup (primary ranking key)."""
        return self.access_rollup.avg_utilization_pct

    def to_dict(self) -> dict:
        """Flatten into the eligible-customer row shape."""
        row = {
            "olt": self.device_id,
            "avg_link_utilization_percentage": self.access_rollup.avg_utilization_pct,
            "max_link_utilization_percentage": self.access_rollup.max_utilization_pct,
            "total_link_bandwidth_gbps": self.access_rollup.total_bandwidth_gbps,
            "avg_uplink_utilization_percentage": (
                self.uplink_rollup.avg_utilization_pct if self.uplink_rollup else None
            ),
            "total_uplink_bandwidth_gbps": (
                self.uplink_rollup.total_bandwidth_gbps if self.uplink_rollup else None
            ),
            "max_lag_type": self.access_rollup.dominant_lag_type,
            "max_utilization_pct": self.standard.max_utilization_pct,
            "capacity_notes": self.capacity_note
        }
        row.update(self.customer.to_dict())
        return row


@dataclass
class EligibilityReport:
    """Outcome of one eligibility evaluation."""
    results: List[EligibilityResult]
    evaluated_on: date
    criteria: Optional[Any] = None  # FilterCriteria

    @property
    def count(self) -> int:
        """Number of eligible customers."""
        return len(self.results)

    def to_dict(self) -> dict:
        """Convert to dictionary for API consumption."""
        return {
            "count": self.count,
            "evaluated_on": self.evaluated_on.isoformat(),
            "criteria": self.criteria.to_dict() if self.criteria is not None else None,
            "data": [result.to_dict() for result in self.results]
        }


@dataclass
class TopologySnapshot:
    """
    Topology view of a single device.

    Unknown devices produce an empty snapshot rather than an error.
    """
    device_id: str
    edges: List[TopologyEdge] = field(default_factory=list)
    access_rollup: Optional[DeviceRollup] = None
    uplink_rollup: Optional[DeviceRollup] = None
    customer_count: int = 0
    link_summary: LinkSummary = field(default_factory=LinkSummary)
    capacity_notes: Dict[str, str] = field(default_factory=dict)  # customer_id -> note

    def to_dict(self) -> dict:
        """Convert to dictionary for API consumption."""
        return {
            "device_id": self.device_id,
            "edges": [edge.to_dict() for edge in self.edges],
            "access_rollup": self.access_rollup.to_dict() if self.access_rollup else None,
            "uplink_rollup": self.uplink_rollup.to_dict() if self.uplink_rollup else None,
            "customer_count": self.customer_count,
            "statistics": self.link_summary.to_dict(),
            "capacity_notes": dict(self.capacity_notes)
        }


@dataclass
class OfferRecordResult:
    """Outcome of a bulk offer recording."""
    requested_count: int
    recorded: List[Customer]
    channel_breakdown: Dict[str, int]
    offer_date: date

    @property
    def recorded_count(self) -> int:
        """Number of customers whose offer date was recorded."""
        return len(self.recorded)

    @property
    def skipped_count(self) -> int:
        """Number of requested ids that matched no customer."""
        return self.requested_count - self.recorded_count

    @property
    def message(self) -> str:
        """Human-readable summary."""
        text = f"Recorded upgrade offers for {self.recorded_count} customer(s)"
        if self.skipped_count:
            text += f"; {self.skipped_count} id(s) not found"
        return text

    def to_dict(self) -> dict:
        """Convert to dictionary for API consumption."""
        return {
            "requested": self.requested_count,
            "sent": self.recorded_count,
            "skipped": self.skipped_count,
            "offer_date": self.offer_date.isoformat(),
            "message": self.message,
            "breakdown": dict(self.channel_breakdown),
            "customer_ids": [customer.customer_id for customer in self.recorded]
        }


def empty_channel_breakdown() -> Dict[str, int]:
    """Breakdown with a zero count for every known contact channel."""
    return {channel: 0 for channel in CONTACT_CHANNELS}
