"""
BroadbandBoost - Campaign Notifier

Records upgrade offers for selected customers and summarizes them by
preferred contact channel. Delivery itself is handled elsewhere.
"""

import logging
from datetime import date
from typing import Iterable, List, Optional

from broadband_boost.errors import ValidationError
from broadband_boost.models.facts import OfferRecordResult, empty_channel_breakdown
from broadband_boost.repositories.base import CustomerRepository


logger = logging.getLogger(__name__)


class CampaignNotifier:
    """
    Records offer dates through a customer repository.

    Recording is idempotent for a given day; the last write wins.
    """

    def __init__(self, repository: CustomerRepository):
        """
        Initialize the notifier.

        Args:
            repository: Customer repository that owns the offer dates
        """
        self.repository = repository

    def record_offer(
        self,
        customer_ids: Iterable[str],
        offer_date: Optional[date] = None
    ) -> OfferRecordResult:
        """
        Record an upgrade offer for each known customer id.

        Args:
            customer_ids: Customer ids (duplicates are collapsed)
            offer_date: Date to record (defaults to today)

        Returns:
            OfferRecordResult with per-channel breakdown

        Raises:
            ValidationError: If no customer ids are given
        """
        unique_ids = _dedupe(customer_ids)
        if not unique_ids:
            raise ValidationError("customer_ids", "at least one customer id is required")

        offer_date = offer_date or date.today()
        logger.info(f"[...] Recording upgrade offers for {len(unique_ids)} customer(s)")

        recorded = self.repository.record_offers(unique_ids, offer_date)

        breakdown = empty_channel_breakdown()
        for customer in recorded:
            channel = customer.contact_channel
            breakdown[channel] = breakdown.get(channel, 0) + 1
            logger.info(f"Would send {channel} to {customer.name} ({customer.customer_id})")

        result = OfferRecordResult(
            requested_count=len(unique_ids),
            recorded=recorded,
            channel_breakdown=breakdown,
            offer_date=offer_date
        )

        if result.skipped_count:
            logger.warning(f"[WARN] {result.skipped_count} customer id(s) not found")
        logger.info(f"[OK] {result.message}")

        return result


def _dedupe(customer_ids: Iterable[str]) -> List[str]:
    """Drop blank and repeated ids, keeping first-seen order."""
    seen = set()
    unique: List[str] = []
    for customer_id in customer_ids:
        if not customer_id or customer_id in seen:
            continue
        seen.add(customer_id)
        unique.append(customer_id)
    return unique
