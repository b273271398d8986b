"""
Capability oracle: who holds the requester, approver and admin roles

The vault core only ever asks has_role(principal, role). How roles are
granted is up to the host; RoleRegistry is the in-process implementation.
"""

import hashlib
import logging
from enum import Enum
from typing import Dict, Optional, Protocol, Set

from ..exceptions import Unauthorized

logger = logging.getLogger(__name__)


class Role(Enum):
    ADMIN = "DEFAULT_ADMIN_ROLE"
    REQUESTER = "REQUESTER_ROLE"
    APPROVER = "APPROVER_ROLE"


def role_id(role: Role) -> str:
    """32-byte role identifier; the admin role is all zeroes"""
    if role is Role.ADMIN:
        return "0x" + "00" * 32
    return "0x" + hashlib.sha3_256(role.value.encode()).hexdigest()


class RoleOracle(Protocol):
    def has_role(self, principal: str, role: Role) -> bool:
        ...


def require_role(oracle: RoleOracle, principal: str, role: Role) -> None:
    """Raise Unauthorized unless principal holds role"""
    if not oracle.has_role(principal, role):
        raise Unauthorized(
            f"Account {principal} is missing role {role.value}",
            account=principal,
            role=role.value
        )


class RoleRegistry:
    """In-memory role table. The deployer starts out as the only admin."""

    def __init__(self, admin: Optional[str] = None):
        self._members: Dict[Role, Set[str]] = {role: set() for role in Role}
        if admin:
            self._members[Role.ADMIN].add(admin)

    def has_role(self, principal: str, role: Role) -> bool:
        return principal in self._members[role]

    def grant(self, granter: str, role: Role, account: str) -> bool:
        """Grant role to account. Returns False if it was already held."""
        require_role(self, granter, Role.ADMIN)
        if account in self._members[role]:
            return False
        self._members[role].add(account)
        logger.info("Granted %s to %s", role.value, account)
        return True

    def revoke(self, granter: str, role: Role, account: str) -> bool:
        """Revoke role from account. Returns False if it was not held."""
        require_role(self, granter, Role.ADMIN)
        if account not in self._members[role]:
            return False
        self._members[role].discard(account)
        logger.info("Revoked %s from %s", role.value, account)
        return True

    def members(self, role: Role) -> Set[str]:
        return set(self._members[role])
