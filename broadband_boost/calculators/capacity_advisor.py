"""
BroadbandBoost - Capacity Advisor

Compares a device's access rollup against the oversubscription standard for
its LAG type and against the owning customer's own usage.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from broadband_boost.calculators.standards import OversubscriptionStandards
from broadband_boost.models.dimensions import Customer, OversubscriptionStandard
from broadband_boost.models.facts import DeviceRollup
from broadband_boost.utils.config import ACCESS_COMPARISON_INCLUSIVE, ACCESS_COMPARISON_STRICT


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CapacityAssessment:
    """
    Advisor output for one customer/device pair.

    excluded is set when capacity is unknown (no standard resolves).
    note is advisory only and never blocks eligibility by itself.
    """
    standard: Optional[OversubscriptionStandard]
    note: Optional[str] = None

    @property
    def excluded(self) -> bool:
        """True when no standard resolved for the device."""
        return self.standard is None


class CapacityAdvisor:
    """
    Advisor for shared-capacity warnings.

    Outcomes:
    - No standard for the rollup's dominant LAG type: excluded, no note
    - Standard ceiling below the customer's own usage: standard notes
    - Otherwise: healthy, no note
    """

    def __init__(
        self,
        standards: OversubscriptionStandards,
        access_comparison: str = ACCESS_COMPARISON_STRICT
    ):
        """
        Initialize capacity advisor.

        Args:
            standards: Standards lookup
            access_comparison: "strict" (<) or "inclusive" (<=) relation between
                rollup utilization and the standard ceiling
        """
        if access_comparison not in (ACCESS_COMPARISON_STRICT, ACCESS_COMPARISON_INCLUSIVE):
            raise ValueError(f"Unknown access comparison '{access_comparison}'")
        self.standards = standards
        self.access_comparison = access_comparison
        logger.debug("CapacityAdvisor initialized")

    def advise(self, access_rollup: DeviceRollup, customer: Customer) -> CapacityAssessment:
        """
        Assess one customer against its device's access rollup.

        Args:
            access_rollup: Access rollup of the customer's device
            customer: Customer owning the device link

        Returns:
            CapacityAssessment
        """
        standard = self.standards.standard_for(access_rollup.dominant_lag_type)
        if standard is None:
            logger.debug(
                f"No standard for LAG type '{access_rollup.dominant_lag_type}' "
                f"on device {access_rollup.device_id}; capacity unknown"
            )
            return CapacityAssessment(standard=None)

        if standard.max_utilization_pct < customer.avg_usage_percentage:
            return CapacityAssessment(standard=standard, note=standard.notes)

        return CapacityAssessment(standard=standard)

    def note_for(self, access_rollup: DeviceRollup, customer: Customer) -> Optional[str]:
        """Get only the advisory note for a customer/device pair."""
        return self.advise(access_rollup, customer).note

    def within_standard(self, access_rollup: DeviceRollup, standard: OversubscriptionStandard) -> bool:
        """
        Check the rollup's average utilization against the standard ceiling.

        Args:
            access_rollup: Access rollup of the device
            standard: Resolved standard for the rollup's LAG type

        Returns:
            True if the device has headroom under the configured relation
        """
        if self.access_comparison == ACCESS_COMPARISON_INCLUSIVE:
            return access_rollup.avg_utilization_pct <= standard.max_utilization_pct
        return access_rollup.avg_utilization_pct < standard.max_utilization_pct
