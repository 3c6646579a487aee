"""
BroadbandBoost - Dimension Models

Reference records joined against topology facts: subscribers and
oversubscription standards.
"""

from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, Optional

from broadband_boost.models.fields import parse_date, parse_float, parse_optional_str


CONTACT_CHANNELS = ("email", "phone", "text")
DEFAULT_CONTACT_CHANNEL = "email"


@dataclass(frozen=True)
class Customer:
    """
    Subscriber record.

    Primary Key: customer_id
    device_id references the access device serving the customer; the device
    is not required to exist in the topology.
    """
    customer_id: str
    device_id: Optional[str]
    account_status: str
    olt_technology: Optional[str]
    avg_usage_percentage: float
    avg_download_usage_mbps: float = 0.0
    current_download_mbps: float = 0.0
    last_upgrade_date: Optional[date] = None
    last_promo_offer_date: Optional[date] = None
    contact_preference: Optional[str] = None  # email, phone, text
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None

    @property
    def name(self) -> str:
        """Display name built from first and last name."""
        return " ".join(part for part in (self.first_name, self.last_name) if part)

    @property
    def contact_channel(self) -> str:
        """Contact preference, defaulting unset preference to email."""
        return self.contact_preference or DEFAULT_CONTACT_CHANNEL

    def to_dict(self) -> dict:
        """Convert to dictionary for API consumption."""
        return {
            "customer_id": self.customer_id,
            "account_id": self.customer_id,
            "name": self.name,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "address": self.address,
            "phone": self.phone,
            "email": self.email,
            "device_id": self.device_id,
            "account_status": self.account_status,
            "olt_technology": self.olt_technology,
            "avg_usage_percentage": self.avg_usage_percentage,
            "avg_download_usage_mbps": self.avg_download_usage_mbps,
            "current_download_mbps": self.current_download_mbps,
            "last_upgrade_date": self.last_upgrade_date.isoformat() if self.last_upgrade_date else None,
            "last_promo_offer_date": (
                self.last_promo_offer_date.isoformat() if self.last_promo_offer_date else None
            ),
            "contact_preference": self.contact_preference
        }

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Customer":
        """
        Create Customer from a raw customers table row.

        Column names follow the customers table; keys are matched
        case-insensitively so warehouse cursors returning upper-case
        column names are accepted.

        Args:
            row: Row dictionary

        Returns:
            Customer instance

        Raises:
            ValueError: If customer_id is missing or a numeric column is malformed
        """
        data = {str(key).lower(): value for key, value in row.items()}

        customer_id = parse_optional_str(data.get("customer_id"))
        if customer_id is None:
            raise ValueError("Customer row is missing customer_id")

        preference = parse_optional_str(data.get("contact_preference"))

        return cls(
            customer_id=customer_id,
            device_id=parse_optional_str(data.get("device_id")),
            account_status=parse_optional_str(data.get("account_status")) or "",
            olt_technology=parse_optional_str(data.get("olt_technology")),
            avg_usage_percentage=parse_float(data.get("avg_usage_percentage")),
            avg_download_usage_mbps=parse_float(data.get("avg_download_usage_mbps")),
            current_download_mbps=parse_float(data.get("current_download_mbps")),
            last_upgrade_date=parse_date(data.get("last_upgrade_date")),
            last_promo_offer_date=parse_date(data.get("last_promo_offer_date")),
            contact_preference=preference.lower() if preference else None,
            first_name=parse_optional_str(data.get("first_name")),
            last_name=parse_optional_str(data.get("last_name")),
            address=parse_optional_str(data.get("address")),
            phone=parse_optional_str(data.get("phone")),
            email=parse_optional_str(data.get("email"))
        )


@dataclass(frozen=True)
class OversubscriptionStandard:
    """
    Capacity standard for a LAG type.

    Primary Key: lag_type
    """
    lag_type: str
    max_utilization_pct: float
    notes: Optional[str] = None

    def to_dict(self) -> dict:
        """Convert to dictionary for API consumption."""
        return {
            "lag_type": self.lag_type,
            "max_utilization_pct": self.max_utilization_pct,
            "notes": self.notes
        }

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "OversubscriptionStandard":
        """Create OversubscriptionStandard from a raw standards table row."""
        data = {str(key).lower(): value for key, value in row.items()}

        lag_type = parse_optional_str(data.get("lag_type"))
        if lag_type is None:
            raise ValueError("Standard row is missing lag_type")

        return cls(
            lag_type=lag_type,
            max_utilization_pct=parse_float(data.get("max_utilization_pct")),
            notes=parse_optional_str(data.get("notes"))
        )
