import unittest

from tiered_vault.approvals import ApprovalTracker
from tiered_vault.exceptions import AlreadyApproved, AlreadyWithdrawn, NotFound, Unauthorized
from tiered_vault.host.roles import Role, RoleRegistry
from tiered_vault.ledger import RequestLedger
from tiered_vault.rate_limiter import RateLimiter
from tiered_vault.tiers import TierSchedule
from tiered_vault.units import parse_amount

ADMIN = "0x" + "aa" * 20
REQUESTER = "0x" + "bb" * 20
RECEIVER = "0x" + "cc" * 20
APPROVERS = ["0x" + f"{i:02x}" * 20 for i in range(1, 5)]


class TestApprovalTracker(unittest.TestCase):

    def setUp(self):
        """Set up test fixtures"""
        self.roles = RoleRegistry(ADMIN)
        self.roles.grant(ADMIN, Role.REQUESTER, REQUESTER)
        for approver in APPROVERS:
            self.roles.grant(ADMIN, Role.APPROVER, approver)

        schedule = TierSchedule.default()
        self.ledger = RequestLedger(self.roles, schedule, RateLimiter())
        self.tracker = ApprovalTracker(self.roles, self.ledger, schedule)

        now = 1_700_000_000
        self.ledger.create(REQUESTER, 1, RECEIVER, parse_amount("0.05"), now)  # tier 1
        self.ledger.create(REQUESTER, 2, RECEIVER, parse_amount("5"), now)  # tier 3

    def test_single_approval_meets_tier1_quorum(self):
        self.assertFalse(self.tracker.is_approved(1))
        self.assertEqual(self.tracker.approve(APPROVERS[0], 1), 1)
        self.assertTrue(self.tracker.is_approved(1))

    def test_tier3_needs_three_distinct_approvers(self):
        """Quorum is reached exactly at the third approval and stays reached"""
        for i, approver in enumerate(APPROVERS[:3], start=1):
            self.assertFalse(self.tracker.is_approved(2))
            self.assertEqual(self.tracker.missing_approvals(2), 4 - i)
            self.assertEqual(self.tracker.approve(approver, 2), i)

        self.assertTrue(self.tracker.is_approved(2))
        self.assertEqual(self.tracker.missing_approvals(2), 0)

        self.tracker.approve(APPROVERS[3], 2)
        self.assertTrue(self.tracker.is_approved(2))

    def test_duplicate_approval_rejected(self):
        """Same approver twice: second call fails and the count is unchanged"""
        self.tracker.approve(APPROVERS[0], 2)

        with self.assertRaises(AlreadyApproved):
            self.tracker.approve(APPROVERS[0], 2)
        self.assertEqual(self.ledger.get(2).approvals, 1)

    def test_requires_approver_role(self):
        with self.assertRaises(Unauthorized):
            self.tracker.approve(REQUESTER, 1)
        self.assertEqual(self.ledger.get(1).approvals, 0)

    def test_unknown_request(self):
        with self.assertRaises(NotFound):
            self.tracker.approve(APPROVERS[0], 10)
        with self.assertRaises(NotFound):
            self.tracker.is_approved(10)

    def test_withdrawn_request_cannot_be_approved(self):
        self.tracker.approve(APPROVERS[0], 1)
        self.ledger.get(1).withdrawn = True

        with self.assertRaises(AlreadyWithdrawn):
            self.tracker.approve(APPROVERS[1], 1)
        self.assertEqual(self.ledger.get(1).approvals, 1)

    def test_withdrawn_check_precedes_duplicate_check(self):
        self.tracker.approve(APPROVERS[0], 1)
        self.ledger.get(1).withdrawn = True

        with self.assertRaises(AlreadyWithdrawn):
            self.tracker.approve(APPROVERS[0], 1)


if __name__ == '__main__':
    unittest.main()
