"""
Request ledger: caller-chosen request ids mapped to disbursement records
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Set

from .exceptions import (
    AlreadyExists, AmountTooLarge, InvalidAmount, InvalidBeneficiary, InvalidRequestId, NotFound
)
from .host.keys import is_address
from .host.roles import Role, RoleOracle, require_role
from .rate_limiter import RateLimiter
from .tiers import TierSchedule

logger = logging.getLogger(__name__)


@dataclass
class Request:
    """One pending or settled disbursement"""
    request_id: int
    beneficiary: str
    amount: int  # base units, fixed at creation
    tier_id: int  # cached classification of amount
    requester: str
    created_at: int
    approvers: Set[str] = field(default_factory=set)
    withdrawn: bool = False
    withdrawn_at: Optional[int] = None

    @property
    def approvals(self) -> int:
        return len(self.approvers)

    def copy(self) -> 'Request':
        """Detached copy safe to hand out to readers"""
        return Request.from_dict(self.to_dict())

    def to_dict(self) -> dict:
        return {
            'request_id': self.request_id,
            'beneficiary': self.beneficiary,
            'amount': self.amount,
            'tier_id': self.tier_id,
            'requester': self.requester,
            'created_at': self.created_at,
            'approvers': sorted(self.approvers),
            'approvals': self.approvals,
            'withdrawn': self.withdrawn,
            'withdrawn_at': self.withdrawn_at
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'Request':
        return cls(
            request_id=data['request_id'],
            beneficiary=data['beneficiary'],
            amount=data['amount'],
            tier_id=data['tier_id'],
            requester=data['requester'],
            created_at=data['created_at'],
            approvers=set(data.get('approvers', [])),
            withdrawn=data.get('withdrawn', False),
            withdrawn_at=data.get('withdrawn_at')
        )


def _is_request_id(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


class RequestLedger:
    """Stores every request ever created. Ids are never reused or deleted."""

    def __init__(self, roles: RoleOracle, schedule: TierSchedule, rate_limiter: RateLimiter):
        self.roles = roles
        self.schedule = schedule
        self.rate_limiter = rate_limiter
        self._requests: Dict[int, Request] = {}

    def create(self, caller: str, request_id: int, beneficiary: str, amount: int, now: int) -> Request:
        """
        Validate and store a new request.

        All checks run before anything is written, so a rejected call leaves
        both the ledger and the cooldown table untouched. The beneficiary
        must be an account address other than the requester's own.
        """
        require_role(self.roles, caller, Role.REQUESTER)

        if not _is_request_id(request_id):
            raise InvalidRequestId(request_id=repr(request_id))

        if not is_address(beneficiary):
            raise InvalidBeneficiary(beneficiary=repr(beneficiary))
        if beneficiary.lower() == caller.lower():
            raise InvalidBeneficiary("Requester cannot be the beneficiary", beneficiary=beneficiary)

        if request_id in self._requests:
            raise AlreadyExists(request_id=request_id)

        if isinstance(amount, int) and not isinstance(amount, bool) and amount > self.schedule.max_amount:
            raise AmountTooLarge(amount=amount, max_amount=self.schedule.max_amount)

        tier = self.schedule.classify(amount)
        if not tier.is_valid:
            raise InvalidAmount(amount=repr(amount))

        self.rate_limiter.check(caller, tier, now)

        request = Request(
            request_id=request_id,
            beneficiary=beneficiary,
            amount=amount,
            tier_id=tier.tier_id,
            requester=caller,
            created_at=now
        )
        self._requests[request_id] = request
        self.rate_limiter.record(caller, tier, now)

        logger.info("Request %d created: %d to %s (tier %d)", request_id, amount, beneficiary, tier.tier_id)
        return request

    def get(self, request_id: int) -> Request:
        """Look up a request, raising NotFound for unknown ids"""
        if not _is_request_id(request_id) or request_id not in self._requests:
            raise NotFound(request_id=repr(request_id))
        return self._requests[request_id]

    def exists(self, request_id: int) -> bool:
        return _is_request_id(request_id) and request_id in self._requests

    def pending(self) -> List[Request]:
        """Requests not yet settled"""
        return [r for r in self._requests.values() if not r.withdrawn]

    def __contains__(self, request_id) -> bool:
        return self.exists(request_id)

    def __len__(self):
        return len(self._requests)

    def __iter__(self) -> Iterator[Request]:
        return iter(list(self._requests.values()))

    @staticmethod
    def parse(records: List[dict]) -> Dict[int, Request]:
        """Build a request table from serialized requests without touching the ledger"""
        requests = {}
        for data in records:
            request = Request.from_dict(data)
            requests[request.request_id] = request
        return requests

    def load(self, records) -> None:
        """Replace the ledger from serialized requests or a table built by parse()"""
        self._requests = records if isinstance(records, dict) else self.parse(records)
