"""
BroadbandBoost - Oversubscription Standards

Lookup of capacity standards by LAG type.
"""

import logging
from typing import Dict, Iterable, List, Optional

from broadband_boost.models.dimensions import OversubscriptionStandard


logger = logging.getLogger(__name__)


class OversubscriptionStandards:
    """
    Immutable LAG type -> standard lookup.

    Loaded once per evaluation batch; reloading means building a new instance.
    """

    def __init__(self, standards: Iterable[OversubscriptionStandard] = ()):
        """
        Initialize the lookup.

        Args:
            standards: Standards to index

        Raises:
            ValueError: If two standards share a LAG type
        """
        self._by_lag_type: Dict[str, OversubscriptionStandard] = {}
        for standard in standards:
            if standard.lag_type in self._by_lag_type:
                raise ValueError(f"Duplicate oversubscription standard for LAG type '{standard.lag_type}'")
            self._by_lag_type[standard.lag_type] = standard
        logger.debug(f"OversubscriptionStandards loaded with {len(self._by_lag_type)} LAG types")

    def __len__(self) -> int:
        return len(self._by_lag_type)

    def __contains__(self, lag_type: object) -> bool:
        return lag_type in self._by_lag_type

    def standard_for(self, lag_type: Optional[str]) -> Optional[OversubscriptionStandard]:
        """
        Resolve the standard for a LAG type.

        Args:
            lag_type: LAG type (None never resolves)

        Returns:
            OversubscriptionStandard, or None when no standard exists
        """
        if lag_type is None:
            return None
        return self._by_lag_type.get(lag_type)

    def lag_types(self) -> List[str]:
        """Get all LAG types with a standard, sorted."""
        return sorted(self._by_lag_type)
