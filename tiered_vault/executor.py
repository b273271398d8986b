"""
Withdrawal executor: one-time settlement of approved requests
"""

import logging

from .approvals import ApprovalTracker
from .exceptions import AlreadyWithdrawn, InsufficientFunds, QuorumNotMet, ReentrantCall, TransferFailed
from .host.custody import Custody
from .host.roles import Role, RoleOracle, require_role
from .ledger import Request, RequestLedger

logger = logging.getLogger(__name__)


class WithdrawalExecutor:
    """
    Moves funds for approved requests, exactly once per request.

    The request is marked withdrawn before custody.transfer runs, so a
    beneficiary that calls back into the vault during the transfer already
    sees the settled state. A nested withdraw is refused outright.
    """

    def __init__(self, roles: RoleOracle, ledger: RequestLedger,
                 approvals: ApprovalTracker, custody: Custody):
        self.roles = roles
        self.ledger = ledger
        self.approvals = approvals
        self.custody = custody
        self._entered = False

    def withdraw(self, caller: str, request_id: int, now: int) -> Request:
        """Settle request_id, transferring its amount to the beneficiary"""
        if self._entered:
            raise ReentrantCall(request_id=request_id)

        require_role(self.roles, caller, Role.ADMIN)

        request = self.ledger.get(request_id)

        if request.withdrawn:
            raise AlreadyWithdrawn(request_id=request_id)

        quorum = self.approvals.quorum_for(request)
        if request.approvals < quorum:
            raise QuorumNotMet(
                f"Transaction has {request.approvals} of {quorum} approvals",
                request_id=request_id,
                approvals=request.approvals,
                quorum=quorum
            )

        balance = self.custody.balance()
        if balance < request.amount:
            raise InsufficientFunds(
                f"Insufficient balance: need {request.amount}, have {balance}",
                request_id=request_id
            )

        self._entered = True
        try:
            request.withdrawn = True
            request.withdrawn_at = now
            try:
                sent = self.custody.transfer(request.beneficiary, request.amount)
            except Exception as e:
                request.withdrawn = False
                request.withdrawn_at = None
                raise TransferFailed(f"Transfer to beneficiary failed: {e}", request_id=request_id) from e
            if not sent:
                request.withdrawn = False
                request.withdrawn_at = None
                raise TransferFailed(request_id=request_id)
        finally:
            self._entered = False

        logger.info("Request %d withdrawn: %d to %s", request_id, request.amount, request.beneficiary)
        return request
