"""
BroadbandBoost - Eligibility Evaluator

Joins customers with device rollups and capacity assessments, applies the
eligibility predicate and ranks the survivors.
"""

import logging
from datetime import date
from typing import Iterable, List, Optional

from broadband_boost.aggregators.device_aggregator import AggregationEngine, CPU_COUNT
from broadband_boost.calculators.capacity_advisor import CapacityAdvisor
from broadband_boost.calculators.standards import OversubscriptionStandards
from broadband_boost.eligibility.filters import (
    Candidate,
    FilterCriteria,
    build_eligibility_predicate
)
from broadband_boost.models.dimensions import Customer
from broadband_boost.models.facts import EligibilityReport, EligibilityResult
from broadband_boost.topology.graph import TopologyGraph
from broadband_boost.utils.config import EligibilityPolicy


logger = logging.getLogger(__name__)


def rank_results(results: Iterable[EligibilityResult]) -> List[EligibilityResult]:
    """
    Order eligibility results.

    Keys: access utilization ascending (least saturated equipment first),
    device_id ascending, customer usage descending. Remaining ties keep
    input order.
    """
    return sorted(
        results,
        key=lambda result: (
            result.access_utilization_pct,
            result.device_id,
            -result.customer.avg_usage_percentage
        )
    )


class EligibilityEvaluator:
    """
    Evaluator for upgrade eligibility.

    Stateless between calls: every input, including the evaluation date,
    is passed to evaluate().
    """

    def __init__(
        self,
        policy: Optional[EligibilityPolicy] = None,
        parallel_threshold: int = 10,
        max_workers: int = CPU_COUNT
    ):
        """
        Initialize the evaluator.

        Args:
            policy: Eligibility policy constants (defaults if None)
            parallel_threshold: Device count above which rollups fan out
            max_workers: Rollup thread pool size
        """
        self.policy = policy or EligibilityPolicy()
        self.parallel_threshold = parallel_threshold
        self.max_workers = max_workers
        logger.debug("EligibilityEvaluator initialized")

    def evaluate(
        self,
        customers: Iterable[Customer],
        graph: TopologyGraph,
        standards: OversubscriptionStandards,
        today: date,
        criteria: Optional[FilterCriteria] = None
    ) -> EligibilityReport:
        """
        Evaluate eligibility for a customer snapshot.

        Args:
            customers: Customer snapshot
            graph: Topology snapshot
            standards: Oversubscription standards for this batch
            today: Evaluation date for cooldown windows
            criteria: Optional caller filters

        Returns:
            EligibilityReport with ranked results

        Raises:
            ValidationError: If criteria conflict with the policy
        """
        criteria = criteria or FilterCriteria()
        criteria.validate(self.policy.supported_technologies)

        logger.info("[...] Evaluating upgrade eligibility")

        advisor = CapacityAdvisor(standards, self.policy.access_comparison)
        predicate = build_eligibility_predicate(criteria, self.policy, advisor, today)

        customer_list = [customer for customer in customers if customer.device_id]
        if criteria.device_id is not None:
            customer_list = [
                customer for customer in customer_list if customer.device_id == criteria.device_id
            ]

        engine = AggregationEngine(graph, self.parallel_threshold, self.max_workers)
        rollups_by_device = engine.build_rollups(customer.device_id for customer in customer_list)

        results: List[EligibilityResult] = []

        for customer in customer_list:
            rollups = rollups_by_device.get(customer.device_id)
            access = rollups.access if rollups else None
            assessment = advisor.advise(access, customer) if access is not None else None

            candidate = Candidate(customer=customer, rollups=rollups, assessment=assessment)
            failure = predicate.first_failure(candidate)
            if failure is not None:
                logger.debug(f"Customer {customer.customer_id} excluded by {failure}")
                continue

            results.append(EligibilityResult(
                customer=customer,
                access_rollup=access,
                uplink_rollup=rollups.uplink,
                standard=assessment.standard,
                capacity_note=assessment.note
            ))

        ranked = rank_results(results)
        logger.info(f"[OK] {len(ranked)} of {len(customer_list)} customers eligible")

        return EligibilityReport(results=ranked, evaluated_on=today, criteria=criteria)
