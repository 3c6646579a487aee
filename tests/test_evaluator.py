"""
BroadbandBoost - Eligibility Evaluator Tests

Unit tests for eligibility evaluation, ranking and policy variants.
"""

import unittest
from datetime import date

from broadband_boost.calculators.standards import OversubscriptionStandards
from broadband_boost.eligibility.evaluator import EligibilityEvaluator
from broadband_boost.eligibility.filters import FilterCriteria
from broadband_boost.errors import ValidationError
from broadband_boost.models.dimensions import Customer, OversubscriptionStandard
from broadband_boost.models.facts import TopologyEdge
from broadband_boost.topology.graph import TopologyGraph
from broadband_boost.utils.config import EligibilityPolicy


TODAY = date(2025, 8, 15)


def _edge(parent, child, util, lag_type="LAG-4x10G", status="Up", bandwidth=10.0):
    """Helper to create a topology edge."""
    return TopologyEdge(
        parent_device_id=parent,
        child_device_id=child,
        link_status=status,
        utilization_pct=util,
        bandwidth_gbps=bandwidth,
        lag_type=lag_type
    )


def _customer(customer_id="C1", device_id="OLT-1", **overrides):
    """Helper to create an eligible-by-default customer."""
    values = {
        "customer_id": customer_id,
        "device_id": device_id,
        "account_status": "Active",
        "olt_technology": "XGS-PON",
        "avg_usage_percentage": 75.0,
        "current_download_mbps": 500.0,
        "contact_preference": "email",
    }
    values.update(overrides)
    return Customer(**values)


class TestEligibilityEvaluator(unittest.TestCase):
    """Test cases for EligibilityEvaluator."""

    def setUp(self):
        """Set up test fixtures."""
        self.edges = [
            _edge("AGG-1", "OLT-1", 40.0),
            _edge("CORE-1", "AGG-1", 30.0),
            _edge("AGG-2", "OLT-2", 20.0),
            _edge("CORE-1", "AGG-2", 30.0),
        ]
        self.graph = TopologyGraph(self.edges)
        self.standards = OversubscriptionStandards([
            OversubscriptionStandard("LAG-4x10G", 80.0, "Plan LAG expansion")
        ])
        self.evaluator = EligibilityEvaluator()

    def _evaluate(self, customers, criteria=None, graph=None, standards=None, evaluator=None):
        """Helper to run an evaluation with the fixture topology."""
        return (evaluator or self.evaluator).evaluate(
            customers=customers,
            graph=graph or self.graph,
            standards=standards or self.standards,
            today=TODAY,
            criteria=criteria
        )

    def test_included_with_full_evidence(self):
        """Test that a healthy customer is included with rollups attached."""
        report = self._evaluate([_customer()])

        self.assertEqual(report.count, 1)
        result = report.results[0]
        self.assertEqual(result.device_id, "OLT-1")
        self.assertEqual(result.access_rollup.avg_utilization_pct, 40.0)
        self.assertEqual(result.uplink_rollup.avg_utilization_pct, 30.0)
        self.assertEqual(result.standard.max_utilization_pct, 80.0)
        self.assertIsNone(result.capacity_note)

    def test_standard_below_rollup_excludes(self):
        """Test exclusion when the standard ceiling is below the access rollup."""
        standards = OversubscriptionStandards([
            OversubscriptionStandard("LAG-4x10G", 30.0, "Shared capacity constrained")
        ])

        report = self._evaluate([_customer()], standards=standards)

        self.assertEqual(report.count, 0)

    def test_upgrade_cooldown(self):
        """Test that recent upgrades are excluded and older ones are not."""
        recent = _customer("C1", last_upgrade_date=date(2025, 5, 15))
        older = _customer("C2", last_upgrade_date=date(2025, 1, 15))

        report = self._evaluate([recent, older])

        self.assertEqual([result.customer.customer_id for result in report.results], ["C2"])

    def test_promo_cooldown(self):
        """Test that customers offered in the last two months are excluded."""
        recent = _customer("C1", last_promo_offer_date=date(2025, 7, 1))
        older = _customer("C2", last_promo_offer_date=date(2025, 5, 1))

        report = self._evaluate([recent, older])

        self.assertEqual([result.customer.customer_id for result in report.results], ["C2"])

    def test_offered_within_days_replaces_cooldown(self):
        """Test that the offer window selects the customers the cooldown drops."""
        recent = _customer("C1", last_promo_offer_date=date(2025, 8, 1))
        never = _customer("C2")
        criteria = FilterCriteria(offered_within_days=30)

        with_window = self._evaluate([recent, never], criteria=criteria)
        without_window = self._evaluate([recent, never])

        window_ids = {result.customer.customer_id for result in with_window.results}
        default_ids = {result.customer.customer_id for result in without_window.results}
        self.assertEqual(window_ids, {"C1"})
        self.assertEqual(default_ids, {"C2"})
        self.assertFalse(window_ids & default_ids)

    def test_inactive_and_unsupported_excluded(self):
        """Test the account status and technology rules."""
        customers = [
            _customer("C1", account_status="Suspended"),
            _customer("C2", olt_technology="GPON"),
            _customer("C3", avg_usage_percentage=50.0),
            _customer("C4", device_id=None),
        ]

        self.assertEqual(self._evaluate(customers).count, 0)

    def test_unknown_device_excluded(self):
        """Test that a customer on a device without topology is excluded."""
        report = self._evaluate([_customer(device_id="OLT-404")])

        self.assertEqual(report.count, 0)

    def test_missing_standard_excludes(self):
        """Test that an unknown LAG type excludes the device."""
        graph = TopologyGraph([
            _edge("AGG-1", "OLT-1", 40.0, lag_type="LAG-NEW"),
            _edge("CORE-1", "AGG-1", 30.0),
        ])

        self.assertEqual(self._evaluate([_customer()], graph=graph).count, 0)

    def test_uplink_ceiling(self):
        """Test that a saturated uplink excludes and that the rule can be disabled."""
        graph = TopologyGraph([
            _edge("AGG-1", "OLT-1", 40.0),
            _edge("CORE-1", "AGG-1", 91.0),
        ])
        relaxed = EligibilityEvaluator(policy=EligibilityPolicy(enforce_uplink_ceiling=False))

        self.assertEqual(self._evaluate([_customer()], graph=graph).count, 0)
        self.assertEqual(self._evaluate([_customer()], graph=graph, evaluator=relaxed).count, 1)

    def test_missing_uplink_excludes_when_enforced(self):
        """Test that a device without an uplink rollup is excluded under the ceiling rule."""
        graph = TopologyGraph([_edge("AGG-1", "OLT-1", 40.0)])

        self.assertEqual(self._evaluate([_customer()], graph=graph).count, 0)

    def test_strict_and_inclusive_access_comparison(self):
        """Test equality at the standard ceiling under both relations."""
        graph = TopologyGraph([
            _edge("AGG-1", "OLT-1", 80.0),
            _edge("CORE-1", "AGG-1", 30.0),
        ])
        inclusive = EligibilityEvaluator(policy=EligibilityPolicy(access_comparison="inclusive"))

        self.assertEqual(self._evaluate([_customer()], graph=graph).count, 0)
        self.assertEqual(self._evaluate([_customer()], graph=graph, evaluator=inclusive).count, 1)

    def test_capacity_note_for_heavy_user(self):
        """Test that a customer above the standard ceiling carries its notes."""
        report = self._evaluate([_customer(avg_usage_percentage=85.0)])

        self.assertEqual(report.results[0].capacity_note, "Plan LAG expansion")

    def test_ranking(self):
        """Test ordering by utilization, then device, then usage descending."""
        customers = [
            _customer("C1", "OLT-1", avg_usage_percentage=60.0),
            _customer("C2", "OLT-2", avg_usage_percentage=55.0),
            _customer("C3", "OLT-1", avg_usage_percentage=90.0),
            _customer("C4", "OLT-2", avg_usage_percentage=95.0),
        ]

        report = self._evaluate(customers)

        self.assertEqual(
            [result.customer.customer_id for result in report.results],
            ["C4", "C2", "C3", "C1"]
        )

    def test_filters_only_narrow_results(self):
        """Test that adding filters never adds customers."""
        customers = [
            _customer("C1", "OLT-1", avg_usage_percentage=60.0, current_download_mbps=300.0),
            _customer("C2", "OLT-2", avg_usage_percentage=85.0, current_download_mbps=500.0),
            _customer("C3", "OLT-1", avg_usage_percentage=95.0, olt_technology="25XGS-PON"),
        ]
        baseline = {result.customer.customer_id for result in self._evaluate(customers).results}

        for criteria in (
            FilterCriteria(device_id="OLT-1"),
            FilterCriteria(technology="25XGS-PON"),
            FilterCriteria(min_usage_percentage=80.0),
            FilterCriteria(min_current_speed_mbps=400.0),
            FilterCriteria(min_current_speed_mbps=300.0, exact_speed_match=True),
            FilterCriteria(device_id="OLT-1", min_usage_percentage=90.0),
        ):
            narrowed = {
                result.customer.customer_id
                for result in self._evaluate(customers, criteria=criteria).results
            }
            self.assertTrue(narrowed <= baseline, criteria)

    def test_device_filter(self):
        """Test that the device filter limits results to one device."""
        customers = [_customer("C1", "OLT-1"), _customer("C2", "OLT-2")]

        report = self._evaluate(customers, criteria=FilterCriteria(device_id="OLT-2"))

        self.assertEqual([result.customer.customer_id for result in report.results], ["C2"])

    def test_unsupported_technology_filter_rejected(self):
        """Test that a technology outside the allow-list raises ValidationError."""
        with self.assertRaises(ValidationError):
            self._evaluate([_customer()], criteria=FilterCriteria(technology="GPON"))

    def test_report_to_dict(self):
        """Test report serialization."""
        data = self._evaluate([_customer()]).to_dict()

        self.assertEqual(data["count"], 1)
        self.assertEqual(data["evaluated_on"], "2025-08-15")
        self.assertEqual(data["data"][0]["olt"], "OLT-1")
        self.assertEqual(data["data"][0]["max_lag_type"], "LAG-4x10G")
        self.assertEqual(data["data"][0]["customer_id"], "C1")


if __name__ == "__main__":
    unittest.main()
