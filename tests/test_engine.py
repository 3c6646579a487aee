"""
BroadbandBoost - Eligibility Engine Tests

Unit tests for the engine facade: snapshot fetches, timeouts and lookups.
"""

import tempfile
import threading
import unittest
from datetime import date
from pathlib import Path
from unittest.mock import MagicMock

from broadband_boost.engine import EligibilityEngine
from broadband_boost.errors import DataUnavailableError, ValidationError
from broadband_boost.eligibility.filters import FilterCriteria
from broadband_boost.models.dimensions import Customer, OversubscriptionStandard
from broadband_boost.models.facts import LAYER_UPLINK, TopologyEdge
from broadband_boost.repositories.memory import InMemoryRepository
from broadband_boost.utils.config import OperationalConfig


TODAY = date(2025, 8, 15)


def _edge(parent, child, util, lag_type="LAG-4x10G", status="Up", layer="access"):
    """Helper to create a topology edge."""
    return TopologyEdge(
        parent_device_id=parent,
        child_device_id=child,
        link_status=status,
        utilization_pct=util,
        bandwidth_gbps=10.0,
        lag_type=lag_type,
        layer=layer
    )


def _customer(customer_id, device_id="OLT-1", technology="XGS-PON", usage=75.0, preference=None):
    """Helper to create a customer."""
    return Customer(
        customer_id=customer_id,
        device_id=device_id,
        account_status="Active",
        olt_technology=technology,
        avg_usage_percentage=usage,
        contact_preference=preference
    )


class TestEligibilityEngine(unittest.TestCase):
    """Test cases for EligibilityEngine."""

    def setUp(self):
        """Set up test fixtures."""
        self.repository = InMemoryRepository(
            customers=[
                _customer("C1", usage=75.0, preference="text"),
                _customer("C2", usage=95.0),
                _customer("C3", device_id="OLT-2", technology="25XGS-PON"),
                _customer("C4", device_id="OLT-2", technology="GPON"),
            ],
            edges=[
                _edge("AGG-1", "OLT-1", 40.0),
                _edge("AGG-1", "OLT-1", 0.0, status="Down"),
                _edge("CORE-1", "AGG-1", 30.0, layer=LAYER_UPLINK),
                _edge("AGG-2", "OLT-2", 10.0, status="Down"),
            ],
            standards=[OversubscriptionStandard("LAG-4x10G", 80.0, "Plan LAG expansion")]
        )
        self.engine = self._engine(self.repository)

    @staticmethod
    def _engine(repository, timeout=5.0):
        """Helper to build an engine over one repository."""
        return EligibilityEngine(
            customer_repository=repository,
            topology_repository=repository,
            standards_repository=repository,
            operational=OperationalConfig(fetch_timeout_seconds=timeout)
        )

    def test_evaluate_eligibility(self):
        """Test a full evaluation through the facade."""
        report = self.engine.evaluate_eligibility(today=TODAY)

        self.assertEqual(
            [result.customer.customer_id for result in report.results],
            ["C2", "C1"]
        )
        self.assertEqual(report.evaluated_on, TODAY)

    def test_invalid_criteria_rejected_before_fetch(self):
        """Test that validation runs before any source is touched."""
        repository = MagicMock()
        engine = self._engine(repository)

        with self.assertRaises(ValidationError):
            engine.evaluate_eligibility(FilterCriteria(technology="GPON"), TODAY)

        repository.fetch_customers.assert_not_called()

    def test_repository_failure_raises_data_unavailable(self):
        """Test that a failing source fails the whole call."""
        repository = MagicMock()
        repository.fetch_customers.return_value = []
        repository.fetch_edges.side_effect = ConnectionError("warehouse down")
        repository.fetch_standards.return_value = []
        engine = self._engine(repository)

        with self.assertRaises(DataUnavailableError) as context:
            engine.evaluate_eligibility(today=TODAY)

        self.assertEqual(context.exception.source, "topology")
        self.assertIsInstance(context.exception.__cause__, ConnectionError)

    def test_fetch_timeout_raises_data_unavailable(self):
        """Test that a slow source times out instead of returning partial data."""
        release = threading.Event()
        self.addCleanup(release.set)

        repository = MagicMock()
        repository.fetch_customers.side_effect = lambda: release.wait(5) and []
        repository.fetch_edges.return_value = []
        repository.fetch_standards.return_value = []
        engine = self._engine(repository, timeout=0.1)

        with self.assertRaises(DataUnavailableError) as context:
            engine.evaluate_eligibility(today=TODAY)

        self.assertEqual(context.exception.timeout_seconds, 0.1)

    def test_fetch_topology(self):
        """Test the device topology view."""
        snapshot = self.engine.fetch_topology("OLT-1")

        self.assertEqual(len(snapshot.edges), 2)
        self.assertEqual(snapshot.customer_count, 2)
        self.assertEqual(snapshot.access_rollup.avg_utilization_pct, 40.0)
        self.assertEqual(snapshot.uplink_rollup.avg_utilization_pct, 30.0)
        self.assertEqual(snapshot.link_summary.links_down, 1)
        self.assertEqual(snapshot.capacity_notes, {"C2": "Plan LAG expansion"})

    def test_fetch_topology_constrained_device_carries_notes(self):
        """Test that an excluded device still reports notes for its customers."""
        repository = InMemoryRepository(
            customers=[_customer("C1", usage=75.0)],
            edges=[
                _edge("AGG-1", "OLT-1", 40.0),
                _edge("CORE-1", "AGG-1", 30.0, layer=LAYER_UPLINK)
            ],
            standards=[OversubscriptionStandard("LAG-4x10G", 30.0, "Shared capacity constrained")]
        )
        engine = self._engine(repository)

        self.assertEqual(engine.evaluate_eligibility(today=TODAY).count, 0)
        self.assertEqual(
            engine.fetch_topology("OLT-1").capacity_notes,
            {"C1": "Shared capacity constrained"}
        )

    def test_fetch_topology_unknown_device(self):
        """Test that an unknown device gives an empty snapshot."""
        snapshot = self.engine.fetch_topology("OLT-404")

        self.assertEqual(snapshot.edges, [])
        self.assertIsNone(snapshot.access_rollup)
        self.assertEqual(snapshot.to_dict()["statistics"]["total_links"], 0)

    def test_fetch_topology_down_only_device(self):
        """Test a device whose links are all down."""
        snapshot = self.engine.fetch_topology("OLT-2")

        self.assertEqual(len(snapshot.edges), 1)
        self.assertIsNone(snapshot.access_rollup)
        self.assertEqual(snapshot.customer_count, 2)

    def test_record_offer(self):
        """Test offer recording through the facade."""
        result = self.engine.record_offer(["C1", "C9"], TODAY)

        self.assertEqual(result.recorded_count, 1)
        self.assertEqual(result.channel_breakdown["text"], 1)
        self.assertEqual(self.engine.get_customer("C1").last_promo_offer_date, TODAY)

    def test_record_offer_requires_ids(self):
        """Test that an empty id list is a validation error, not a source failure."""
        with self.assertRaises(ValidationError):
            self.engine.record_offer(["", ""], TODAY)

    def test_record_offer_write_failure_raises_data_unavailable(self):
        """Test that a failing offer write is reported like a failing read."""
        repository = MagicMock()
        repository.record_offers.side_effect = ConnectionError("warehouse down")
        engine = self._engine(repository)

        with self.assertRaises(DataUnavailableError) as context:
            engine.record_offer(["C1"], TODAY)

        self.assertEqual(context.exception.source, "offers")
        self.assertIsInstance(context.exception.__cause__, ConnectionError)

    def test_record_offer_write_timeout(self):
        """Test that a hanging offer write is bounded by the fetch timeout."""
        release = threading.Event()
        self.addCleanup(release.set)

        repository = MagicMock()
        repository.record_offers.side_effect = lambda ids, offer_date: release.wait(5) and []
        engine = self._engine(repository, timeout=0.1)

        with self.assertRaises(DataUnavailableError) as context:
            engine.record_offer(["C1"], TODAY)

        self.assertEqual(context.exception.timeout_seconds, 0.1)

    def test_list_devices(self):
        """Test that only access devices with Up links are listed."""
        self.assertEqual(self.engine.list_devices(), ["OLT-1"])

    def test_list_devices_excludes_aggregation_tier_from_extracts(self):
        """Test that children of uplink extract rows are not access devices."""
        with tempfile.TemporaryDirectory() as temp_dir:
            data_dir = Path(temp_dir)
            header = (
                "parent_device_id,child_device_id,link_status,link_utilization_percentage,"
                "link_bandwidth_gbps,lag_type\n"
            )
            (data_dir / "customers.csv").write_text(
                "customer_id,device_id,account_status,olt_technology,avg_usage_percentage\n"
                "C1,OLT-1,Active,XGS-PON,75\n",
                encoding="utf-8"
            )
            (data_dir / "network_topology_edges.csv").write_text(
                header + "AGG-1,OLT-1,Up,40,10,LAG-4x10G\n", encoding="utf-8"
            )
            (data_dir / "uplink_topology_edges.csv").write_text(
                header + "CORE-1,AGG-1,Up,30,100,LAG-4x100G\n", encoding="utf-8"
            )
            (data_dir / "oversubscription_standards.csv").write_text(
                "lag_type,max_utilization_pct,notes\nLAG-4x10G,80,Plan LAG expansion\n",
                encoding="utf-8"
            )
            engine = self._engine(InMemoryRepository.from_csv_dir(data_dir))

            self.assertEqual(engine.list_devices(), ["OLT-1"])
            self.assertEqual(
                engine.evaluate_eligibility(FilterCriteria(device_id="AGG-1"), TODAY).count, 0
            )

    def test_fetch_topology_aggregation_device_has_no_access_rollup(self):
        """Test that uplink links of an aggregation device are not rolled up as access."""
        snapshot = self.engine.fetch_topology("AGG-1")

        self.assertEqual(len(snapshot.edges), 3)
        self.assertIsNone(snapshot.access_rollup)
        self.assertIsNone(snapshot.uplink_rollup)
        self.assertEqual(snapshot.link_summary.links_up, 1)

    def test_list_technologies(self):
        """Test that only supported technologies in use are listed."""
        self.assertEqual(self.engine.list_technologies(), ["25XGS-PON", "XGS-PON"])

    def test_get_customer_unknown(self):
        """Test that an unknown customer is None."""
        self.assertIsNone(self.engine.get_customer("C9"))


if __name__ == "__main__":
    unittest.main()
