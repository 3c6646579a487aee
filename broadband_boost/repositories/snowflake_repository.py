"""
BroadbandBoost - Snowflake Repository

Reads customers, topology and standards from the Snowflake warehouse and
records offer dates back to the customers table.
"""

import logging
from datetime import date
from typing import Any, Dict, List, Optional, Sequence

# Handle optional snowflake dependency
SNOWFLAKE_AVAILABLE = False
snowflake_connector = None
DictCursor = None

try:
    import snowflake.connector as snowflake_connector
    from snowflake.connector import DictCursor
    SNOWFLAKE_AVAILABLE = True
except ImportError:
    pass

from broadband_boost.models.dimensions import Customer, OversubscriptionStandard
from broadband_boost.models.facts import LAYER_ACCESS, LAYER_UPLINK, TopologyEdge
from broadband_boost.repositories.base import (
    CustomerRepository,
    StandardsRepository,
    TopologyRepository
)
from broadband_boost.utils.config import SnowflakeConfig


logger = logging.getLogger(__name__)


CUSTOMER_COLUMNS = """
    customer_id, device_id, account_status, olt_technology,
    avg_usage_percentage, avg_download_usage_mbps, current_download_mbps,
    last_upgrade_date, last_promo_offer_date, contact_preference,
    first_name, last_name, address, phone, email
"""

EDGE_COLUMNS = """
    parent_device_id, child_device_id, link_status,
    link_utilization_percentage, link_bandwidth_gbps, lag_type
"""


class SnowflakeConnection:
    """
    Manages Snowflake database connections.

    Handles:
    - Connection establishment and teardown
    - Query execution primitives
    - Explicit transactions
    """

    def __init__(self, config: SnowflakeConfig):
        """
        Initialize the Snowflake connection manager.

        Args:
            config: Snowflake connection configuration

        Raises:
            ImportError: If snowflake-connector-python is not installed
        """
        if not SNOWFLAKE_AVAILABLE:
            raise ImportError(
                "snowflake-connector-python is required. "
                "Install with: pip install broadband-boost[snowflake]"
            )

        self.config = config
        self.connection = None
        logger.info("[INFO] Initializing Snowflake connection manager")

    def connect(self) -> None:
        """Establish connection to Snowflake."""
        try:
            logger.info("[...] Connecting to Snowflake")
            self.connection = snowflake_connector.connect(
                account=self.config.account,
                user=self.config.user,
                password=self.config.password,
                database=self.config.database,
                schema=self.config.schema,
                warehouse=self.config.warehouse,
                role=self.config.role
            )

            logger.info("[OK] Connected to Snowflake")
            logger.debug(f"Database: {self.config.database}, Schema: {self.config.schema}")

        except Exception as error:
            logger.error(f"[ERROR] Failed to connect to Snowflake: {error}")
            raise

    def disconnect(self) -> None:
        """Close Snowflake connection."""
        if self.connection:
            self.connection.close()
            self.connection = None
            logger.debug("Disconnected from Snowflake")

    def execute(
        self,
        sql: str,
        params: Optional[Sequence[Any]] = None
    ) -> List[Dict[str, Any]]:
        """
        Execute SQL statement and return results.

        Args:
            sql: SQL statement with %s placeholders
            params: Optional positional parameters

        Returns:
            List of result dictionaries
        """
        if not self.connection:
            raise RuntimeError("Not connected to Snowflake. Call connect() first.")

        cursor = self.connection.cursor(DictCursor)
        try:
            if params:
                cursor.execute(sql, params)
            else:
                cursor.execute(sql)

            results: List[Dict[str, Any]] = cursor.fetchall()
            return results
        finally:
            cursor.close()

    def begin(self) -> None:
        """Start an explicit transaction."""
        self.execute("BEGIN")

    def commit(self) -> None:
        """Commit the current transaction."""
        if self.connection:
            self.connection.commit()

    def rollback(self) -> None:
        """Roll back the current transaction."""
        if self.connection:
            self.connection.rollback()

    def __enter__(self):
        """Context manager entry."""
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.disconnect()
        return False


class SnowflakeRepository(CustomerRepository, TopologyRepository, StandardsRepository):
    """
    Repository backed by the warehouse tables.

    Tables: customers, network_topology_edges, uplink_topology_edges,
    oversubscription_standards (in the configured schema).
    """

    def __init__(self, connection: SnowflakeConnection):
        """
        Initialize the repository.

        Args:
            connection: Connected SnowflakeConnection (lifecycle owned by caller)
        """
        self.connection = connection

    def fetch_customers(self) -> List[Customer]:
        """Get all customers."""
        rows = self.connection.execute(f"SELECT {CUSTOMER_COLUMNS} FROM customers")
        logger.debug(f"Fetched {len(rows)} customer rows")
        return [Customer.from_row(row) for row in rows]

    def get_customer(self, customer_id: str) -> Optional[Customer]:
        """Get one customer, or None if unknown."""
        rows = self.connection.execute(
            f"SELECT {CUSTOMER_COLUMNS} FROM customers WHERE customer_id = %s",
            [customer_id]
        )
        return Customer.from_row(rows[0]) if rows else None

    def count_customers_on_device(self, device_id: str) -> int:
        """Count customers served by a device."""
        rows = self.connection.execute(
            "SELECT COUNT(*) AS customer_count FROM customers WHERE device_id = %s",
            [device_id]
        )
        if not rows:
            return 0
        row = {str(key).lower(): value for key, value in rows[0].items()}
        return int(row.get("customer_count") or 0)

    def record_offers(self, customer_ids: Sequence[str], offer_date: date) -> List[Customer]:
        """
        Read the matching customers and set their offer date in one transaction.

        Args:
            customer_ids: Distinct customer ids
            offer_date: Date to record

        Returns:
            Updated customers, in customer_ids order
        """
        if not customer_ids:
            return []

        placeholders = ", ".join(["%s"] * len(customer_ids))
        ids = list(customer_ids)

        self.connection.begin()
        try:
            rows = self.connection.execute(
                f"SELECT {CUSTOMER_COLUMNS} FROM customers WHERE customer_id IN ({placeholders})",
                ids
            )
            self.connection.execute(
                f"UPDATE customers SET last_promo_offer_date = %s "
                f"WHERE customer_id IN ({placeholders})",
                [offer_date.isoformat()] + ids
            )
            self.connection.commit()
        except Exception as error:
            logger.error(f"[ERROR] Offer recording failed, rolling back: {error}")
            self.connection.rollback()
            raise

        found = {}
        for row in rows:
            customer = Customer.from_row({**row, "last_promo_offer_date": offer_date})
            found[customer.customer_id] = customer

        return [found[customer_id] for customer_id in customer_ids if customer_id in found]

    def fetch_edges(self) -> List[TopologyEdge]:
        """Get access and uplink topology edges, each tagged with its layer."""
        rows = self.connection.execute(
            f"SELECT {EDGE_COLUMNS}, '{LAYER_ACCESS}' AS layer FROM network_topology_edges "
            f"UNION ALL SELECT {EDGE_COLUMNS}, '{LAYER_UPLINK}' AS layer FROM uplink_topology_edges"
        )
        logger.debug(f"Fetched {len(rows)} topology rows")
        return [TopologyEdge.from_row(row) for row in rows]

    def fetch_standards(self) -> List[OversubscriptionStandard]:
        """Get all oversubscription standards."""
        rows = self.connection.execute(
            "SELECT lag_type, max_utilization_pct, notes FROM oversubscription_standards"
        )
        return [OversubscriptionStandard.from_row(row) for row in rows]
