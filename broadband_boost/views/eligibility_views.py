"""
BroadbandBoost - Eligibility Views

Paging and re-sorting over an already ranked eligibility result list.
Views never re-derive eligibility; they only reorder and slice.
"""

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Sequence, Tuple

from broadband_boost.errors import ValidationError
from broadband_boost.models.facts import EligibilityResult


logger = logging.getLogger(__name__)


class SortField(Enum):
    """Columns available for re-sorting."""
    RANK = "rank"
    UTILIZATION = "utilization"
    USAGE = "usage"
    SPEED = "speed"
    DEVICE = "device"
    CUSTOMER = "customer"
    NAME = "name"


class SortOrder(Enum):
    """Sort direction."""
    ASCENDING = "asc"
    DESCENDING = "desc"


_SORT_KEYS: Dict[SortField, Callable[[EligibilityResult], Any]] = {
    SortField.UTILIZATION: lambda result: result.access_utilization_pct,
    SortField.USAGE: lambda result: result.customer.avg_usage_percentage,
    SortField.SPEED: lambda result: result.customer.current_download_mbps,
    SortField.DEVICE: lambda result: result.device_id,
    SortField.CUSTOMER: lambda result: result.customer.customer_id,
    SortField.NAME: lambda result: result.customer.name.lower(),
}


@dataclass
class ResultPage:
    """One page of eligibility results."""
    items: List[EligibilityResult]
    page: int
    page_size: int
    total_items: int
    sort_field: SortField
    sort_order: SortOrder

    @property
    def total_pages(self) -> int:
        """Number of pages (at least 1)."""
        return max(1, math.ceil(self.total_items / self.page_size))

    @property
    def has_next(self) -> bool:
        """True when a later page exists."""
        return self.page < self.total_pages

    def to_dict(self) -> dict:
        """Convert to dictionary for API consumption."""
        return {
            "page": self.page,
            "page_size": self.page_size,
            "total_items": self.total_items,
            "total_pages": self.total_pages,
            "sort": self.sort_field.value,
            "order": self.sort_order.value,
            "data": [result.to_dict() for result in self.items]
        }


class EligibilityViews:
    """
    Stateless transforms over ranked eligibility results.

    Provides:
    - Re-sorting by a display column
    - Page slicing
    - Per-device grouping
    """

    DEFAULT_PAGE_SIZE = 25
    MAX_PAGE_SIZE = 500

    @staticmethod
    def sort_results(
        results: Sequence[EligibilityResult],
        sort_field: SortField = SortField.RANK,
        sort_order: SortOrder = SortOrder.ASCENDING
    ) -> List[EligibilityResult]:
        """
        Re-sort results by a display column.

        SortField.RANK keeps the ranked order (reversed for descending).
        Ties keep ranked order in either direction.

        Args:
            results: Ranked eligibility results
            sort_field: Column to sort by
            sort_order: Sort direction

        Returns:
            New sorted list
        """
        descending = sort_order == SortOrder.DESCENDING

        if sort_field == SortField.RANK:
            ordered = list(results)
            if descending:
                ordered.reverse()
            return ordered

        key = _SORT_KEYS[sort_field]
        return sorted(results, key=key, reverse=descending)

    def paginate(
        self,
        results: Sequence[EligibilityResult],
        page: int = 1,
        page_size: int = DEFAULT_PAGE_SIZE,
        sort_field: SortField = SortField.RANK,
        sort_order: SortOrder = SortOrder.ASCENDING
    ) -> ResultPage:
        """
        Sort and slice results into a page.

        Pages past the end are returned empty rather than raising.

        Args:
            results: Ranked eligibility results
            page: 1-based page number
            page_size: Items per page (1 to MAX_PAGE_SIZE)
            sort_field: Column to sort by
            sort_order: Sort direction

        Returns:
            ResultPage

        Raises:
            ValidationError: If page or page_size is out of range
        """
        if isinstance(page, bool) or not isinstance(page, int) or page < 1:
            raise ValidationError("page", "must be an integer >= 1")
        if (
            isinstance(page_size, bool)
            or not isinstance(page_size, int)
            or not 1 <= page_size <= self.MAX_PAGE_SIZE
        ):
            raise ValidationError("page_size", f"must be an integer between 1 and {self.MAX_PAGE_SIZE}")

        ordered = self.sort_results(results, sort_field, sort_order)
        start = (page - 1) * page_size

        logger.debug(f"Paging {len(ordered)} results: page {page}, size {page_size}")

        return ResultPage(
            items=ordered[start:start + page_size],
            page=page,
            page_size=page_size,
            total_items=len(ordered),
            sort_field=sort_field,
            sort_order=sort_order
        )

    @staticmethod
    def group_by_device(results: Sequence[EligibilityResult]) -> Dict[str, List[EligibilityResult]]:
        """Group results by access device, preserving ranked order within and across groups."""
        groups: Dict[str, List[EligibilityResult]] = {}
        for result in results:
            groups.setdefault(result.device_id, []).append(result)
        return groups

    @staticmethod
    def parse_sort(sort: str = "rank", order: str = "asc") -> Tuple[SortField, SortOrder]:
        """
        Parse sort parameters from strings.

        Raises:
            ValidationError: If either value is unknown
        """
        try:
            sort_field = SortField(sort.lower())
        except ValueError as error:
            choices = ", ".join(item.value for item in SortField)
            raise ValidationError("sort", f"must be one of: {choices}") from error
        try:
            sort_order = SortOrder(order.lower())
        except ValueError as error:
            raise ValidationError("order", "must be 'asc' or 'desc'") from error
        return sort_field, sort_order
