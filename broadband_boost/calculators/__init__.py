"""
BroadbandBoost - Calculators Package

Capacity standard lookup and advisory modules.
"""

from broadband_boost.calculators.standards import OversubscriptionStandards
from broadband_boost.calculators.capacity_advisor import CapacityAdvisor, CapacityAssessment

__all__ = [
    "OversubscriptionStandards",
    "CapacityAdvisor",
    "CapacityAssessment"
]
