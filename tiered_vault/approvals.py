"""
Approval tracking and tier-dependent quorum
"""

import logging

from .exceptions import AlreadyApproved, AlreadyWithdrawn
from .host.roles import Role, RoleOracle, require_role
from .ledger import Request, RequestLedger
from .tiers import TierSchedule

logger = logging.getLogger(__name__)


class ApprovalTracker:
    """Records distinct approvers per request and checks quorum"""

    def __init__(self, roles: RoleOracle, ledger: RequestLedger, schedule: TierSchedule):
        self.roles = roles
        self.ledger = ledger
        self.schedule = schedule

    def approve(self, caller: str, request_id: int) -> int:
        """Add caller's approval. Returns the new approval count."""
        require_role(self.roles, caller, Role.APPROVER)

        request = self.ledger.get(request_id)

        if request.withdrawn:
            raise AlreadyWithdrawn(request_id=request_id)

        if caller in request.approvers:
            raise AlreadyApproved(request_id=request_id, approver=caller)

        request.approvers.add(caller)
        logger.info("Request %d approved by %s (%d/%d)",
                    request_id, caller, request.approvals, self.quorum_for(request))
        return request.approvals

    def quorum_for(self, request: Request) -> int:
        """Approvals the request's tier requires"""
        return self.schedule.tier_by_id(request.tier_id).quorum

    def is_approved(self, request_id: int) -> bool:
        """True once distinct approvals reach the tier quorum. NotFound for unknown ids."""
        request = self.ledger.get(request_id)
        return request.approvals >= self.quorum_for(request)

    def missing_approvals(self, request_id: int) -> int:
        request = self.ledger.get(request_id)
        return max(0, self.quorum_for(request) - request.approvals)
