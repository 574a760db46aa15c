"""Toilet status aggregation.

Components:
- DerivedToiletStatus: Computed view of one toilet
- derive_status: Pure derivation from source records
- StatusAggregator: Reads the stores and derives statuses on every call
"""

from src.status.aggregator import StatusAggregator, derive_status, has_unresolved_problems
from src.status.schemas import DerivedToiletStatus

__all__ = [
    "DerivedToiletStatus",
    "StatusAggregator",
    "derive_status",
    "has_unresolved_problems",
]
