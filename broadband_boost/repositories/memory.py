"""
BroadbandBoost - In-Memory Repository

Thread-safe repository over in-process records, loadable from CSV extracts
of the customers, topology and standards tables.
"""

import csv
import logging
import threading
from dataclasses import replace
from datetime import date
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Union

from broadband_boost.models.dimensions import Customer, OversubscriptionStandard
from broadband_boost.models.facts import LAYER_ACCESS, LAYER_UPLINK, TopologyEdge
from broadband_boost.repositories.base import (
    CustomerRepository,
    StandardsRepository,
    TopologyRepository
)


logger = logging.getLogger(__name__)

CUSTOMERS_FILE = "customers.csv"
ACCESS_EDGES_FILE = "network_topology_edges.csv"
UPLINK_EDGES_FILE = "uplink_topology_edges.csv"
STANDARDS_FILE = "oversubscription_standards.csv"


class InMemoryRepository(CustomerRepository, TopologyRepository, StandardsRepository):
    """
    Repository backed by in-process dictionaries.

    Customer records are frozen; record_offers swaps in updated copies
    under a lock so readers always see whole snapshots.
    """

    def __init__(
        self,
        customers: Iterable[Customer] = (),
        edges: Iterable[TopologyEdge] = (),
        standards: Iterable[OversubscriptionStandard] = ()
    ):
        """
        Initialize the repository.

        Args:
            customers: Customer records (customer_id must be unique)
            edges: Topology edges
            standards: Oversubscription standards

        Raises:
            ValueError: If two customers share a customer_id
        """
        self._lock = threading.Lock()
        self._customers: Dict[str, Customer] = {}
        for customer in customers:
            if customer.customer_id in self._customers:
                raise ValueError(f"Duplicate customer_id '{customer.customer_id}'")
            self._customers[customer.customer_id] = customer
        self._edges: List[TopologyEdge] = list(edges)
        self._standards: List[OversubscriptionStandard] = list(standards)
        logger.debug(
            f"InMemoryRepository initialized with {len(self._customers)} customers, "
            f"{len(self._edges)} edges, {len(self._standards)} standards"
        )

    def fetch_customers(self) -> List[Customer]:
        """Get a snapshot of all customers."""
        with self._lock:
            return list(self._customers.values())

    def get_customer(self, customer_id: str) -> Optional[Customer]:
        """Get one customer, or None if unknown."""
        with self._lock:
            return self._customers.get(customer_id)

    def count_customers_on_device(self, device_id: str) -> int:
        """Count customers served by a device."""
        with self._lock:
            return sum(1 for customer in self._customers.values() if customer.device_id == device_id)

    def record_offers(self, customer_ids: Sequence[str], offer_date: date) -> List[Customer]:
        """
        Set last_promo_offer_date atomically for the known ids.

        Args:
            customer_ids: Distinct customer ids
            offer_date: Date to record

        Returns:
            Updated customers, in customer_ids order
        """
        updated: List[Customer] = []
        with self._lock:
            for customer_id in customer_ids:
                customer = self._customers.get(customer_id)
                if customer is None:
                    continue
                customer = replace(customer, last_promo_offer_date=offer_date)
                self._customers[customer_id] = customer
                updated.append(customer)
        return updated

    def fetch_edges(self) -> List[TopologyEdge]:
        """Get all topology edges."""
        return list(self._edges)

    def fetch_standards(self) -> List[OversubscriptionStandard]:
        """Get all oversubscription standards."""
        return list(self._standards)

    @classmethod
    def from_csv_dir(cls, data_dir: Union[str, Path]) -> "InMemoryRepository":
        """
        Load a repository from CSV extracts.

        Expects customers.csv, network_topology_edges.csv and
        oversubscription_standards.csv; uplink_topology_edges.csv is optional
        and merged into the topology as uplink-layer edges.

        Args:
            data_dir: Directory containing the extracts

        Returns:
            InMemoryRepository instance

        Raises:
            FileNotFoundError: If a required extract is missing
        """
        data_dir = Path(data_dir)
        logger.info(f"[...] Loading CSV extracts from {data_dir}")

        customers = [Customer.from_row(row) for row in _read_csv(data_dir / CUSTOMERS_FILE)]
        edges = [
            TopologyEdge.from_row(row, layer=LAYER_ACCESS)
            for row in _read_csv(data_dir / ACCESS_EDGES_FILE)
        ]

        uplink_path = data_dir / UPLINK_EDGES_FILE
        if uplink_path.exists():
            edges.extend(
                TopologyEdge.from_row(row, layer=LAYER_UPLINK)
                for row in _read_csv(uplink_path)
            )

        standards = [
            OversubscriptionStandard.from_row(row) for row in _read_csv(data_dir / STANDARDS_FILE)
        ]

        logger.info(
            f"[OK] Loaded {len(customers)} customers, {len(edges)} edges, "
            f"{len(standards)} standards"
        )
        return cls(customers=customers, edges=edges, standards=standards)


def _read_csv(path: Path) -> List[Dict[str, str]]:
    """Read a CSV file with a header row into dictionaries."""
    with open(path, newline="", encoding="utf-8") as handle:
        return list(csv.DictReader(handle))
