"""
BroadbandBoost - Eligibility Package

Filter criteria, eligibility predicates and the evaluator.
"""

from broadband_boost.eligibility.filters import (
    AllOf,
    Candidate,
    FilterCriteria,
    Predicate,
    build_eligibility_predicate,
    subtract_months
)
from broadband_boost.eligibility.evaluator import EligibilityEvaluator, rank_results

__all__ = [
    "AllOf",
    "Candidate",
    "FilterCriteria",
    "Predicate",
    "build_eligibility_predicate",
    "subtract_months",
    "EligibilityEvaluator",
    "rank_results"
]
