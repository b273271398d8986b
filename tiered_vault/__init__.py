"""
Tiered Multi-Party Vault - custody with tiered approvals and rate limits
"""

from .vault import TieredVault
from .tiers import Tier, TierSchedule, INVALID_TIER, classify
from .ledger import Request
from .events import EventKind, EventLog
from .units import UNIT, parse_amount, format_amount

__version__ = "0.1.0"
__all__ = [
    "TieredVault",
    "Tier",
    "TierSchedule",
    "INVALID_TIER",
    "classify",
    "Request",
    "EventKind",
    "EventLog",
    "UNIT",
    "parse_amount",
    "format_amount"
]
