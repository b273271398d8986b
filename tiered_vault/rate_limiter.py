"""
Per-(requester, tier) cooldown tracking
"""

import logging
from dataclasses import dataclass, asdict
from typing import Dict, List, Tuple

from .exceptions import CooldownActive
from .tiers import Tier

logger = logging.getLogger(__name__)


@dataclass
class CooldownRecord:
    """Time of the last accepted request for one (requester, tier) pair"""
    requester: str
    tier_id: int
    last_request_at: int  # unix seconds

    def to_dict(self) -> dict:
        return asdict(self)


class RateLimiter:
    """Owns the cooldown table. Cooldowns are scoped per tier, not globally."""

    def __init__(self):
        self._records: Dict[Tuple[str, int], CooldownRecord] = {}

    def remaining(self, requester: str, tier: Tier, now: int) -> int:
        """Seconds left before requester may submit again in tier (0 when free)"""
        record = self._records.get((requester, tier.tier_id))
        if record is None:
            return 0

        elapsed = now - record.last_request_at
        if elapsed >= tier.cooldown_seconds:
            return 0
        return tier.cooldown_seconds - elapsed

    def check(self, requester: str, tier: Tier, now: int) -> None:
        """Raise CooldownActive if the window has not elapsed. No state change."""
        retry_after = self.remaining(requester, tier, now)
        if retry_after > 0:
            raise CooldownActive(retry_after=retry_after, tier=tier.tier_id)

    def record(self, requester: str, tier: Tier, now: int) -> CooldownRecord:
        """Stamp an accepted request"""
        record = CooldownRecord(requester, tier.tier_id, now)
        self._records[(requester, tier.tier_id)] = record
        logger.debug("Cooldown started for %s in tier %d at %d", requester, tier.tier_id, now)
        return record

    def check_and_record(self, requester: str, tier: Tier, now: int) -> CooldownRecord:
        """Check the window and, if free, stamp it"""
        self.check(requester, tier, now)
        return self.record(requester, tier, now)

    def get(self, requester: str, tier_id: int):
        return self._records.get((requester, tier_id))

    def records(self) -> List[CooldownRecord]:
        return list(self._records.values())

    @staticmethod
    def parse(records: List[dict]) -> Dict[Tuple[str, int], CooldownRecord]:
        """Build a cooldown table from serialized records without touching this one"""
        table = {}
        for data in records:
            record = CooldownRecord(**data)
            table[(record.requester, record.tier_id)] = record
        return table

    def load(self, records) -> None:
        """Replace the table from serialized records or a table built by parse()"""
        self._records = records if isinstance(records, dict) else self.parse(records)
