"""
BroadbandBoost - Data Models Package

Dataclass models for dimensions and facts.
"""

from broadband_boost.models.dimensions import (
    Customer,
    OversubscriptionStandard,
    CONTACT_CHANNELS,
    DEFAULT_CONTACT_CHANNEL
)
from broadband_boost.models.facts import (
    TopologyEdge,
    DeviceRollup,
    LinkSummary,
    EligibilityResult,
    EligibilityReport,
    TopologySnapshot,
    OfferRecordResult,
    LINK_STATUS_UP
)

__all__ = [
    "Customer",
    "OversubscriptionStandard",
    "CONTACT_CHANNELS",
    "DEFAULT_CONTACT_CHANNEL",
    "TopologyEdge",
    "DeviceRollup",
    "LinkSummary",
    "EligibilityResult",
    "EligibilityReport",
    "TopologySnapshot",
    "OfferRecordResult",
    "LINK_STATUS_UP"
]
