"""
BroadbandBoost - In-Memory Repository Tests

Unit tests for the in-memory repository and CSV loading.
"""

import tempfile
import threading
import unittest
from datetime import date
from pathlib import Path

from broadband_boost.models.dimensions import Customer
from broadband_boost.repositories.memory import InMemoryRepository


def _customer(customer_id, device_id="OLT-1"):
    """Helper to create a customer."""
    return Customer(
        customer_id=customer_id,
        device_id=device_id,
        account_status="Active",
        olt_technology="XGS-PON",
        avg_usage_percentage=75.0
    )


class TestInMemoryRepository(unittest.TestCase):
    """Test cases for InMemoryRepository."""

    def setUp(self):
        """Set up test fixtures."""
        self.repository = InMemoryRepository(customers=[
            _customer("C1"),
            _customer("C2"),
            _customer("C3", device_id="OLT-2"),
        ])

    def test_get_customer(self):
        """Test lookup by id."""
        self.assertEqual(self.repository.get_customer("C3").device_id, "OLT-2")
        self.assertIsNone(self.repository.get_customer("C9"))

    def test_count_customers_on_device(self):
        """Test per-device customer counts."""
        self.assertEqual(self.repository.count_customers_on_device("OLT-1"), 2)
        self.assertEqual(self.repository.count_customers_on_device("OLT-404"), 0)

    def test_duplicate_customer_rejected(self):
        """Test that duplicate customer ids raise ValueError."""
        with self.assertRaises(ValueError):
            InMemoryRepository(customers=[_customer("C1"), _customer("C1")])

    def test_record_offers_returns_in_request_order(self):
        """Test that updated customers come back in request order."""
        updated = self.repository.record_offers(["C3", "C9", "C1"], date(2025, 8, 15))

        self.assertEqual([customer.customer_id for customer in updated], ["C3", "C1"])
        self.assertTrue(all(
            customer.last_promo_offer_date == date(2025, 8, 15) for customer in updated
        ))

    def test_concurrent_record_offers_last_write_wins(self):
        """Test that concurrent writers leave one consistent date per customer."""
        dates = [date(2025, 8, day) for day in range(1, 21)]
        threads = [
            threading.Thread(target=self.repository.record_offers, args=(["C1", "C2"], offer_date))
            for offer_date in dates
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        first = self.repository.get_customer("C1").last_promo_offer_date
        second = self.repository.get_customer("C2").last_promo_offer_date
        self.assertIn(first, dates)
        self.assertEqual(first, second)


class TestCsvLoading(unittest.TestCase):
    """Test cases for InMemoryRepository.from_csv_dir."""

    def setUp(self):
        """Set up test fixtures."""
        self.temp_dir = tempfile.TemporaryDirectory()
        self.data_dir = Path(self.temp_dir.name)
        (self.data_dir / "customers.csv").write_text(
            "customer_id,device_id,account_status,olt_technology,avg_usage_percentage,"
            "current_download_mbps,last_upgrade_date,last_promo_offer_date,contact_preference,"
            "first_name,last_name\n"
            "C1,OLT-1,Active,XGS-PON,75,500,,2025-05-01,Text,Pat,Lee\n"
            "C2,OLT-1,Active,25XGS-PON,82.5,1000,2024-12-01,,,Sam,Wu\n",
            encoding="utf-8"
        )
        (self.data_dir / "network_topology_edges.csv").write_text(
            "parent_device_id,child_device_id,link_status,link_utilization_percentage,"
            "link_bandwidth_gbps,lag_type\n"
            "AGG-1,OLT-1,Up,40,10,LAG-4x10G\n"
            "AGG-1,OLT-1,Down,120,-5,LAG-4x10G\n",
            encoding="utf-8"
        )
        (self.data_dir / "oversubscription_standards.csv").write_text(
            "lag_type,max_utilization_pct,notes\n"
            "LAG-4x10G,80,Plan LAG expansion\n",
            encoding="utf-8"
        )

    def tearDown(self):
        """Clean up temporary files."""
        self.temp_dir.cleanup()

    def test_loads_all_tables(self):
        """Test that every extract is parsed into models."""
        repository = InMemoryRepository.from_csv_dir(self.data_dir)

        customers = repository.fetch_customers()
        self.assertEqual(len(customers), 2)
        self.assertEqual(customers[0].contact_preference, "text")
        self.assertEqual(customers[0].last_promo_offer_date, date(2025, 5, 1))
        self.assertIsNone(customers[0].last_upgrade_date)
        self.assertEqual(customers[1].avg_usage_percentage, 82.5)
        self.assertIsNone(customers[1].contact_preference)

        self.assertEqual(len(repository.fetch_standards()), 1)

    def test_edges_clamped_at_ingestion(self):
        """Test that utilization is clamped and bandwidth floored on load."""
        edges = InMemoryRepository.from_csv_dir(self.data_dir).fetch_edges()

        self.assertEqual(edges[1].utilization_pct, 100.0)
        self.assertEqual(edges[1].bandwidth_gbps, 0.0)

    def test_uplink_extract_merged(self):
        """Test that the optional uplink extract is merged into the topology."""
        (self.data_dir / "uplink_topology_edges.csv").write_text(
            "parent_device_id,child_device_id,link_status,link_utilization_percentage,"
            "link_bandwidth_gbps,lag_type\n"
            "CORE-1,AGG-1,Up,30,100,LAG-4x100G\n",
            encoding="utf-8"
        )

        edges = InMemoryRepository.from_csv_dir(self.data_dir).fetch_edges()

        self.assertEqual(len(edges), 3)
        self.assertEqual(edges[2].child_device_id, "AGG-1")

    def test_edges_tagged_with_source_layer(self):
        """Test that each edge records the extract it was loaded from."""
        (self.data_dir / "uplink_topology_edges.csv").write_text(
            "parent_device_id,child_device_id,link_status,link_utilization_percentage,"
            "link_bandwidth_gbps,lag_type\n"
            "CORE-1,AGG-1,Up,30,100,LAG-4x100G\n",
            encoding="utf-8"
        )

        edges = InMemoryRepository.from_csv_dir(self.data_dir).fetch_edges()

        self.assertEqual([edge.layer for edge in edges], ["access", "access", "uplink"])

    def test_missing_extract_raises(self):
        """Test that a missing required extract raises FileNotFoundError."""
        (self.data_dir / "customers.csv").unlink()

        with self.assertRaises(FileNotFoundError):
            InMemoryRepository.from_csv_dir(self.data_dir)


if __name__ == "__main__":
    unittest.main()
