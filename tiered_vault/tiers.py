"""
Value tiers: amount brackets with their approval quorum and cooldown
"""

from dataclasses import dataclass
from typing import Iterable, Tuple

from .units import UNIT

HOUR = 60 * 60
DAY = 24 * HOUR


@dataclass(frozen=True)
class Tier:
    """One value bracket. Bounds are inclusive, amounts in base units"""

    tier_id: int
    min_amount: int
    max_amount: int
    quorum: int  # distinct approvals required before withdrawal
    cooldown_seconds: int  # per requester, per tier

    @property
    def is_valid(self) -> bool:
        return self.tier_id != 0

    def contains(self, amount: int) -> bool:
        """Check if amount falls inside this bracket"""
        return self.is_valid and self.min_amount <= amount <= self.max_amount

    def to_dict(self) -> dict:
        return {
            'tier': self.tier_id,
            'min_amount': self.min_amount,
            'max_amount': self.max_amount,
            'quorum': self.quorum,
            'cooldown_seconds': self.cooldown_seconds
        }


# Amounts outside every bracket classify here
INVALID_TIER = Tier(tier_id=0, min_amount=0, max_amount=0, quorum=0, cooldown_seconds=0)


class TierSchedule:
    """Immutable lookup table of tiers, ordered by increasing value"""

    def __init__(self, tiers: Iterable[Tier]):
        self.tiers: Tuple[Tier, ...] = tuple(tiers)
        self._validate()

    def _validate(self):
        if not self.tiers:
            raise ValueError("Tier schedule needs at least one tier")

        previous = None
        for position, tier in enumerate(self.tiers, start=1):
            if tier.tier_id != position:
                raise ValueError(f"Tier ids must run 1..n in order, got {tier.tier_id} at position {position}")
            if tier.min_amount <= 0 or tier.min_amount > tier.max_amount:
                raise ValueError(f"Tier {tier.tier_id} has an empty or non-positive range")
            if tier.quorum < 1:
                raise ValueError(f"Tier {tier.tier_id} needs a quorum of at least 1")
            if tier.cooldown_seconds < 0:
                raise ValueError(f"Tier {tier.tier_id} has a negative cooldown")
            if previous is not None:
                if tier.min_amount <= previous.max_amount:
                    raise ValueError(f"Tier {tier.tier_id} overlaps tier {previous.tier_id}")
                if tier.quorum < previous.quorum:
                    raise ValueError(f"Tier {tier.tier_id} quorum is lower than tier {previous.tier_id}")
            previous = tier

    @classmethod
    def default(cls) -> 'TierSchedule':
        """The four standard brackets: 0.01-0.05, 0.1-0.5, 1-5 and 10-20"""
        return cls.from_rows([
            (UNIT // 100, UNIT * 5 // 100, 1, HOUR),
            (UNIT // 10, UNIT // 2, 2, 6 * HOUR),
            (UNIT, 5 * UNIT, 3, DAY),
            (10 * UNIT, 20 * UNIT, 4, 7 * DAY),
        ])

    @classmethod
    def from_rows(cls, rows: Iterable[Tuple[int, int, int, int]]) -> 'TierSchedule':
        """Build a schedule from (min, max, quorum, cooldown_seconds) rows"""
        return cls(
            Tier(tier_id=i, min_amount=lo, max_amount=hi, quorum=quorum, cooldown_seconds=cooldown)
            for i, (lo, hi, quorum, cooldown) in enumerate(rows, start=1)
        )

    def with_cooldowns(self, cooldowns: dict) -> 'TierSchedule':
        """Copy of this schedule with some tier cooldowns replaced"""
        return TierSchedule(
            Tier(t.tier_id, t.min_amount, t.max_amount, t.quorum, cooldowns.get(t.tier_id, t.cooldown_seconds))
            for t in self.tiers
        )

    @property
    def max_amount(self) -> int:
        """System-wide cap: the top of the highest bracket"""
        return self.tiers[-1].max_amount

    def classify(self, amount) -> Tier:
        """Map an amount to its tier, or INVALID_TIER. Never raises."""
        if isinstance(amount, bool) or not isinstance(amount, int):
            return INVALID_TIER

        for tier in self.tiers:
            if tier.contains(amount):
                return tier

        return INVALID_TIER

    def tier_by_id(self, tier_id: int) -> Tier:
        """Look up a tier by its id"""
        if 1 <= tier_id <= len(self.tiers):
            return self.tiers[tier_id - 1]
        raise KeyError(f"Unknown tier {tier_id}")

    def __iter__(self):
        return iter(self.tiers)

    def __len__(self):
        return len(self.tiers)

    def to_list(self) -> list:
        return [t.to_dict() for t in self.tiers]


DEFAULT_SCHEDULE = TierSchedule.default()


def classify(amount) -> Tier:
    """Classify against the default schedule"""
    return DEFAULT_SCHEDULE.classify(amount)
