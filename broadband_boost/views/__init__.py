"""
BroadbandBoost - Views Package

Presentation transforms over computed eligibility results.
"""

from broadband_boost.views.eligibility_views import (
    EligibilityViews,
    ResultPage,
    SortField,
    SortOrder
)

__all__ = [
    "EligibilityViews",
    "ResultPage",
    "SortField",
    "SortOrder"
]
