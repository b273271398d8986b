import json
import logging
import threading
from pathlib import Path
from typing import Optional

from .approvals import ApprovalTracker
from .events import EventKind, EventLog
from .exceptions import VaultError
from .executor import WithdrawalExecutor
from .host.clock import Clock, SystemClock
from .host.custody import Custody
from .host.roles import RoleOracle
from .ledger import Request, RequestLedger
from .rate_limiter import RateLimiter
from .tiers import TierSchedule

logger = logging.getLogger(__name__)

STATE_VERSION = 1


class TieredVault:
    """
    Custody vault releasing funds after tiered multi-party approval.

    Every public operation runs as one serialized critical section: checks
    first, then writes, then the event. A rejected call changes nothing.
    """

    def __init__(self, roles: RoleOracle, custody: Custody, clock: Optional[Clock] = None,
                 schedule: Optional[TierSchedule] = None, event_log: Optional[EventLog] = None):
        self.roles = roles
        self.custody = custody
        self.clock = clock if clock is not None else SystemClock()
        self.schedule = schedule if schedule is not None else TierSchedule.default()
        self.events = event_log if event_log is not None else EventLog()

        self.rate_limiter = RateLimiter()
        self.ledger = RequestLedger(roles, self.schedule, self.rate_limiter)
        self.approvals = ApprovalTracker(roles, self.ledger, self.schedule)
        self.executor = WithdrawalExecutor(roles, self.ledger, self.approvals, custody)

        self._lock = threading.RLock()

    def tier(self, amount: int) -> int:
        """Tier id for amount; 0 when it fits no tier"""
        return self.schedule.classify(amount).tier_id

    def request(self, caller: str, request_id: int, beneficiary: str, amount: int) -> Request:
        """Open a disbursement request (requester role)"""
        with self._lock:
            now = self.clock.now()
            try:
                created = self.ledger.create(caller, request_id, beneficiary, amount, now)
            except VaultError as e:
                logger.warning("Request %r rejected for %s: %s", request_id, caller, e.code)
                raise

            self.events.emit(
                EventKind.REQUEST_CREATED, request_id, caller,
                {'id': request_id, 'beneficiary': beneficiary, 'amount': amount},
                now
            )
            return created.copy()

    def approve(self, caller: str, request_id: int) -> int:
        """Approve a request (approver role). Returns the approval count."""
        with self._lock:
            try:
                count = self.approvals.approve(caller, request_id)
            except VaultError as e:
                logger.warning("Approval of %r by %s rejected: %s", request_id, caller, e.code)
                raise

            self.events.emit(
                EventKind.REQUEST_APPROVED, request_id, caller,
                {'id': request_id, 'approver': caller},
                self.clock.now()
            )
            return count

    def is_approved(self, request_id: int) -> bool:
        with self._lock:
            return self.approvals.is_approved(request_id)

    def withdraw(self, caller: str, request_id: int) -> Request:
        """Settle an approved request (admin role)"""
        with self._lock:
            now = self.clock.now()
            try:
                settled = self.executor.withdraw(caller, request_id, now)
            except VaultError as e:
                logger.warning("Withdrawal of %r by %s rejected: %s", request_id, caller, e.code)
                raise

            self.events.emit(
                EventKind.REQUEST_WITHDRAWN, request_id, caller,
                {'id': request_id, 'beneficiary': settled.beneficiary, 'amount': settled.amount},
                now
            )
            return settled.copy()

    def txs(self, request_id: int) -> Request:
        """Full record of a request (copy)"""
        with self._lock:
            return self.ledger.get(request_id).copy()

    def balance(self) -> int:
        return self.custody.balance()

    def cooldown_remaining(self, requester: str, amount: int) -> int:
        """Seconds before requester may ask for amount again (0 when free or invalid)"""
        tier = self.schedule.classify(amount)
        if not tier.is_valid:
            return 0
        with self._lock:
            return self.rate_limiter.remaining(requester, tier, self.clock.now())

    def snapshot(self) -> dict:
        """Serialize requests and the cooldown table"""
        with self._lock:
            return {
                'version': STATE_VERSION,
                'requests': [r.to_dict() for r in self.ledger],
                'cooldowns': [c.to_dict() for c in self.rate_limiter.records()]
            }

    def restore(self, state: dict) -> None:
        """
        Load state produced by snapshot(), replacing the current one.

        Both tables are parsed before either is swapped in, so a malformed
        snapshot raises ValueError and leaves the live vault as it was.
        """
        if not isinstance(state, dict) or state.get('version') != STATE_VERSION:
            version = state.get('version') if isinstance(state, dict) else None
            raise ValueError(f"Unsupported state version {version!r}")
        try:
            requests = RequestLedger.parse(state.get('requests', []))
            cooldowns = RateLimiter.parse(state.get('cooldowns', []))
        except (KeyError, TypeError, AttributeError) as e:
            raise ValueError(f"Malformed vault state: {e!r}") from e

        with self._lock:
            self.ledger.load(requests)
            self.rate_limiter.load(cooldowns)
        logger.info("Restored %d requests and %d cooldowns", len(requests), len(cooldowns))

    def save(self, path) -> None:
        """Write snapshot() to a JSON file"""
        path = Path(path)
        tmp = path.with_suffix(path.suffix + '.tmp')
        tmp.write_text(json.dumps(self.snapshot(), indent=2, sort_keys=True), encoding='utf-8')
        tmp.replace(path)

    def load(self, path) -> None:
        """Restore from a JSON file written by save()"""
        self.restore(json.loads(Path(path).read_text(encoding='utf-8')))
