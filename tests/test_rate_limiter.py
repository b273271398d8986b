import unittest

from tiered_vault.exceptions import CooldownActive
from tiered_vault.rate_limiter import RateLimiter
from tiered_vault.tiers import HOUR, TierSchedule


class TestRateLimiter(unittest.TestCase):

    def setUp(self):
        """Set up test fixtures"""
        self.limiter = RateLimiter()
        self.schedule = TierSchedule.default()
        self.tier1 = self.schedule.tier_by_id(1)
        self.tier3 = self.schedule.tier_by_id(3)
        self.now = 1_700_000_000

    def test_first_request_is_free(self):
        self.assertEqual(self.limiter.remaining("alice", self.tier1, self.now), 0)
        record = self.limiter.check_and_record("alice", self.tier1, self.now)
        self.assertEqual(record.last_request_at, self.now)
        self.assertEqual(record.tier_id, 1)

    def test_second_request_inside_window_is_rejected(self):
        """Within the window: CooldownActive, and the stored stamp is unchanged"""
        self.limiter.record("alice", self.tier1, self.now)

        with self.assertRaises(CooldownActive) as ctx:
            self.limiter.check_and_record("alice", self.tier1, self.now + 60)

        self.assertEqual(ctx.exception.retry_after, HOUR - 60)
        self.assertEqual(self.limiter.get("alice", 1).last_request_at, self.now)

    def test_window_boundary_is_inclusive(self):
        """Exactly one cooldown later the requester may ask again"""
        self.limiter.record("alice", self.tier1, self.now)

        with self.assertRaises(CooldownActive):
            self.limiter.check("alice", self.tier1, self.now + HOUR - 1)

        self.limiter.check_and_record("alice", self.tier1, self.now + HOUR)
        self.assertEqual(self.limiter.get("alice", 1).last_request_at, self.now + HOUR)

    def test_cooldowns_are_per_tier(self):
        """A cooldown in tier 1 does not block tier 3"""
        self.limiter.record("alice", self.tier1, self.now)
        self.limiter.check_and_record("alice", self.tier3, self.now + 1)

        self.assertGreater(self.limiter.remaining("alice", self.tier1, self.now + 2), 0)
        self.assertGreater(self.limiter.remaining("alice", self.tier3, self.now + 2), 0)

    def test_cooldowns_are_per_requester(self):
        self.limiter.record("alice", self.tier1, self.now)
        self.limiter.check("bob", self.tier1, self.now)

    def test_zero_cooldown_never_blocks(self):
        schedule = TierSchedule.from_rows([(1, 10, 1, 0)])
        tier = schedule.tier_by_id(1)
        self.limiter.record("alice", tier, self.now)
        self.limiter.check("alice", tier, self.now)

    def test_records_can_be_reloaded(self):
        self.limiter.record("alice", self.tier1, self.now)
        self.limiter.record("bob", self.tier3, self.now + 5)

        other = RateLimiter()
        other.load([r.to_dict() for r in self.limiter.records()])

        self.assertEqual(other.get("bob", 3).last_request_at, self.now + 5)
        with self.assertRaises(CooldownActive):
            other.check("alice", self.tier1, self.now + 1)


if __name__ == '__main__':
    unittest.main()
