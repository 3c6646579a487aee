"""
BroadbandBoost - Eligibility Engine

Facade over the repositories, the aggregation engine, the evaluator and the
campaign notifier. Every repository call, read or write, runs under a
caller-imposed timeout; a timeout or a source failure fails the whole call.
"""

import logging
import time
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeoutError
from datetime import date
from typing import Any, Callable, Dict, Iterable, List, Optional

from broadband_boost.aggregators.device_aggregator import AggregationEngine
from broadband_boost.calculators.capacity_advisor import CapacityAdvisor
from broadband_boost.calculators.standards import OversubscriptionStandards
from broadband_boost.campaigns.notifier import CampaignNotifier
from broadband_boost.eligibility.evaluator import EligibilityEvaluator
from broadband_boost.eligibility.filters import FilterCriteria
from broadband_boost.errors import DataUnavailableError, ValidationError
from broadband_boost.models.dimensions import Customer
from broadband_boost.models.facts import (
    EligibilityReport,
    OfferRecordResult,
    TopologySnapshot
)
from broadband_boost.repositories.base import (
    CustomerRepository,
    StandardsRepository,
    TopologyRepository
)
from broadband_boost.topology.graph import TopologyGraph
from broadband_boost.utils.config import EligibilityPolicy, OperationalConfig


logger = logging.getLogger(__name__)


class EligibilityEngine:
    """
    Entry point for eligibility queries and offer recording.

    Holds no per-call state: each query fetches a fresh snapshot of
    customers, topology and standards.
    """

    def __init__(
        self,
        customer_repository: CustomerRepository,
        topology_repository: TopologyRepository,
        standards_repository: StandardsRepository,
        policy: Optional[EligibilityPolicy] = None,
        operational: Optional[OperationalConfig] = None
    ):
        """
        Initialize the engine.

        Args:
            customer_repository: Customer source and offer sink
            topology_repository: Topology edge source
            standards_repository: Oversubscription standards source
            policy: Eligibility policy (defaults if None)
            operational: Timeouts and fan-out settings (defaults if None)
        """
        self.customer_repository = customer_repository
        self.topology_repository = topology_repository
        self.standards_repository = standards_repository
        self.policy = policy or EligibilityPolicy()
        self.operational = operational or OperationalConfig()
        self.evaluator = EligibilityEvaluator(
            policy=self.policy,
            parallel_threshold=self.operational.parallel_threshold,
            max_workers=self.operational.max_workers
        )
        self.notifier = CampaignNotifier(customer_repository)
        logger.debug("EligibilityEngine initialized")

    def _call_sources(self, sources: Dict[str, Callable[[], Any]]) -> Dict[str, Any]:
        """
        Run source calls concurrently under one shared deadline.

        Args:
            sources: Mapping of source name to zero-argument callable

        Returns:
            Mapping of source name to returned value

        Raises:
            ValidationError: Re-raised unchanged from a callable
            DataUnavailableError: If any call fails or the deadline passes
        """
        timeout = self.operational.fetch_timeout_seconds
        deadline = time.monotonic() + timeout
        results: Dict[str, Any] = {}

        executor = ThreadPoolExecutor(max_workers=len(sources))
        try:
            futures = {name: executor.submit(fetch) for name, fetch in sources.items()}
            for name, future in futures.items():
                remaining = max(0.0, deadline - time.monotonic())
                try:
                    results[name] = future.result(timeout=remaining)
                except ValidationError:
                    raise
                except FutureTimeoutError as error:
                    logger.error(f"[ERROR] Source {name} timed out after {timeout}s")
                    raise DataUnavailableError(
                        name, f"timed out after {timeout}s", timeout_seconds=timeout
                    ) from error
                except Exception as error:
                    logger.error(f"[ERROR] Source {name} failed: {error}")
                    raise DataUnavailableError(name, str(error)) from error
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

        return results

    def evaluate_eligibility(
        self,
        criteria: Optional[FilterCriteria] = None,
        today: Optional[date] = None
    ) -> EligibilityReport:
        """
        Evaluate upgrade eligibility over a fresh snapshot.

        Args:
            criteria: Optional caller filters
            today: Evaluation date (defaults to the current date)

        Returns:
            EligibilityReport with ranked results

        Raises:
            ValidationError: If criteria are invalid
            DataUnavailableError: If a source fails or times out
        """
        criteria = criteria or FilterCriteria()
        criteria.validate(self.policy.supported_technologies)
        today = today or date.today()

        snapshot = self._call_sources({
            "customers": self.customer_repository.fetch_customers,
            "topology": self.topology_repository.fetch_edges,
            "standards": self.standards_repository.fetch_standards
        })

        return self.evaluator.evaluate(
            customers=snapshot["customers"],
            graph=TopologyGraph(snapshot["topology"]),
            standards=OversubscriptionStandards(snapshot["standards"]),
            today=today,
            criteria=criteria
        )

    def fetch_topology(self, device_id: str) -> TopologySnapshot:
        """
        Get the topology view of one device.

        Unknown devices produce an empty snapshot.

        Args:
            device_id: Device identifier

        Returns:
            TopologySnapshot with edges, rollups, link counts, customer count
            and capacity notes for the customers on the device

        Raises:
            DataUnavailableError: If a source fails or times out
        """
        snapshot = self._call_sources({
            "topology": self.topology_repository.fetch_edges,
            "standards": self.standards_repository.fetch_standards,
            "customers": self.customer_repository.fetch_customers,
            "customer_count": lambda: self.customer_repository.count_customers_on_device(device_id)
        })

        graph = TopologyGraph(snapshot["topology"])
        edges = graph.edges_for(device_id)
        if not edges:
            logger.info(f"[INFO] No topology found for device {device_id}")
            return TopologySnapshot(device_id=device_id, customer_count=snapshot["customer_count"])

        aggregation = AggregationEngine(graph)
        rollups = aggregation.rollups_for(device_id)

        capacity_notes: Dict[str, str] = {}
        if rollups.access is not None:
            advisor = CapacityAdvisor(
                OversubscriptionStandards(snapshot["standards"]),
                self.policy.access_comparison
            )
            for customer in snapshot["customers"]:
                if customer.device_id != device_id:
                    continue
                note = advisor.note_for(rollups.access, customer)
                if note:
                    capacity_notes[customer.customer_id] = note

        return TopologySnapshot(
            device_id=device_id,
            edges=edges,
            access_rollup=rollups.access,
            uplink_rollup=rollups.uplink,
            customer_count=snapshot["customer_count"],
            link_summary=graph.link_summary(device_id),
            capacity_notes=capacity_notes
        )

    def record_offer(
        self,
        customer_ids: Iterable[str],
        offer_date: Optional[date] = None
    ) -> OfferRecordResult:
        """
        Record upgrade offers for the given customers.

        The write runs under the same deadline as the reads. A timed-out
        write is reported as unavailable but may still complete.

        Raises:
            ValidationError: If no customer ids are given
            DataUnavailableError: If the write fails or times out
        """
        customer_ids = list(customer_ids)
        return self._call_sources({
            "offers": lambda: self.notifier.record_offer(customer_ids, offer_date)
        })["offers"]

    def list_devices(self) -> List[str]:
        """Get sorted access device ids that have at least one Up link as the child."""
        edges = self._call_sources({"topology": self.topology_repository.fetch_edges})["topology"]
        return TopologyGraph(edges).device_ids()

    def list_technologies(self) -> List[str]:
        """Get sorted supported technologies present in the customer base."""
        customers = self._call_sources({
            "customers": self.customer_repository.fetch_customers
        })["customers"]
        supported = set(self.policy.supported_technologies)
        return sorted({
            customer.olt_technology for customer in customers
            if customer.olt_technology in supported
        })

    def get_customer(self, customer_id: str) -> Optional[Customer]:
        """Get one customer, or None if unknown."""
        return self._call_sources({
            "customer": lambda: self.customer_repository.get_customer(customer_id)
        })["customer"]
