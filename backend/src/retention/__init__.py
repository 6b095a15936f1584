"""Retention scheduling.

Computes disposal-eligibility dates from retention policies, starts
event-based clocks when business events fire and suspends clocks while a
document is under legal hold.
"""

from .engine import RetentionEngine
from .schedule import compute_expiration, elapsed_whole_days
from .schemas import RetentionView

__all__ = ["RetentionEngine", "RetentionView", "compute_expiration", "elapsed_whole_days"]
