"""
Host collaborators - roles, custody, clock and account keys
"""

from .roles import Role, RoleOracle, RoleRegistry, role_id
from .custody import Custody, InMemoryCustody
from .clock import Clock, ManualClock, SystemClock
from .keys import AccountKey

__all__ = [
    "Role",
    "RoleOracle",
    "RoleRegistry",
    "role_id",
    "Custody",
    "InMemoryCustody",
    "Clock",
    "ManualClock",
    "SystemClock",
    "AccountKey"
]
