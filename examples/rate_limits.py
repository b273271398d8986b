#!/usr/bin/env python3
"""
Example: Per-tier cooldowns for a single requester
"""

from tiered_vault.exceptions import CooldownActive
from tiered_vault.host.clock import ManualClock
from tiered_vault.host.custody import InMemoryCustody
from tiered_vault.host.keys import AccountKey
from tiered_vault.host.roles import Role, RoleRegistry
from tiered_vault.tiers import HOUR
from tiered_vault.units import parse_amount
from tiered_vault.vault import TieredVault


def main():
    print("=== Tiered Cooldowns ===")
    print()

    admin = AccountKey().address
    requester = AccountKey().address
    vendor = AccountKey().address

    roles = RoleRegistry(admin)
    roles.grant(admin, Role.REQUESTER, requester)

    clock = ManualClock(1_700_000_000)
    vault = TieredVault(roles, InMemoryCustody(parse_amount("10")), clock)

    def attempt(request_id, amount):
        try:
            tx = vault.request(requester, request_id, vendor, parse_amount(amount))
            print(f"   ✅ #{request_id} {amount} accepted (tier {tx.tier_id})")
        except CooldownActive as e:
            print(f"   ⏳ #{request_id} {amount} blocked, retry in {e.retry_after}s")

    print("⏱️  t = 0")
    attempt(1, "0.02")
    attempt(2, "0.04")   # same tier
    attempt(3, "0.3")    # different tier, independent cooldown

    clock.advance(HOUR)
    print()
    print("⏱️  t = 1h")
    attempt(4, "0.04")   # tier 1 window elapsed
    attempt(5, "0.2")    # tier 2 still has 5h left


if __name__ == "__main__":
    main()
