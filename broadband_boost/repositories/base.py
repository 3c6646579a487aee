"""
BroadbandBoost - Repository Interfaces

Explicit data source contracts injected into the engine and the campaign
notifier. Lifecycle (connections, files) is owned by the caller.
"""

from abc import ABC, abstractmethod
from datetime import date
from typing import List, Optional, Sequence

from broadband_boost.models.dimensions import Customer, OversubscriptionStandard
from broadband_boost.models.facts import TopologyEdge


class CustomerRepository(ABC):
    """Source of customer records and sink for offer dates."""

    @abstractmethod
    def fetch_customers(self) -> List[Customer]:
        """Get a consistent snapshot of all customers."""

    @abstractmethod
    def get_customer(self, customer_id: str) -> Optional[Customer]:
        """Get one customer, or None if unknown."""

    @abstractmethod
    def count_customers_on_device(self, device_id: str) -> int:
        """Count customers whose device_id matches."""

    @abstractmethod
    def record_offers(self, customer_ids: Sequence[str], offer_date: date) -> List[Customer]:
        """
        Set last_promo_offer_date for the given customers.

        The read of the matching customers and the write must happen as one
        atomic unit scoped to exactly customer_ids. Unknown ids are skipped.

        Args:
            customer_ids: Distinct customer ids
            offer_date: Date to record

        Returns:
            Updated customers, in customer_ids order
        """


class TopologyRepository(ABC):
    """Source of topology link facts."""

    @abstractmethod
    def fetch_edges(self) -> List[TopologyEdge]:
        """Get all access and uplink topology edges."""


class StandardsRepository(ABC):
    """Source of oversubscription standards."""

    @abstractmethod
    def fetch_standards(self) -> List[OversubscriptionStandard]:
        """Get all oversubscription standards."""
