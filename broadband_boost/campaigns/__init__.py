"""
BroadbandBoost - Campaigns Package

Offer recording for eligible customers.
"""

from broadband_boost.campaigns.notifier import CampaignNotifier

__all__ = ["CampaignNotifier"]
