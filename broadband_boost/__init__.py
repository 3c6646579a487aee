"""
BroadbandBoost - Broadband Upgrade Eligibility Engine

This package identifies broadband subscribers eligible for a speed upgrade by
combining customer usage telemetry, two-level network topology utilization
rollups, and oversubscription standards keyed by LAG type.
"""

__version__ = "26.10.19"
__author__ = "Broadband Network Planning"
