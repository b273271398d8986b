#!/usr/bin/env python3
"""
Complete demo of the Tiered Multi-Party Vault
"""

from tiered_vault.exceptions import VaultError
from tiered_vault.host.clock import ManualClock
from tiered_vault.host.custody import InMemoryCustody
from tiered_vault.host.keys import AccountKey
from tiered_vault.host.roles import Role, RoleRegistry
from tiered_vault.units import format_amount, parse_amount
from tiered_vault.vault import TieredVault


def main():
    print("=" * 60)
    print("🏦 TIERED MULTI-PARTY VAULT - COMPLETE DEMO")
    print("=" * 60)
    print()

    # Step 1: Setup
    print("🔧 STEP 1: Setting up participants")
    print("-" * 40)

    people = {}
    for name in ["Treasury", "Operator", "Vendor", "Alice", "Bob", "Carol"]:
        people[name] = AccountKey().address
        print(f"✅ {name}: {people[name]}")

    roles = RoleRegistry(people["Treasury"])
    roles.grant(people["Treasury"], Role.REQUESTER, people["Operator"])
    for name in ["Alice", "Bob", "Carol"]:
        roles.grant(people["Treasury"], Role.APPROVER, people[name])
    print("✅ Operator may request; Alice, Bob and Carol may approve; Treasury settles")
    print()

    # Step 2: Create Vault
    print("🏗️  STEP 2: Creating the vault")
    print("-" * 40)

    clock = ManualClock(1_700_000_000)
    custody = InMemoryCustody()
    custody.deposit(parse_amount("50"))
    vault = TieredVault(roles, custody, clock)

    print(f"✅ Balance: {format_amount(vault.balance())}")
    for tier in vault.schedule:
        print(f"✅ Tier {tier.tier_id}: {format_amount(tier.min_amount)}-{format_amount(tier.max_amount)}, "
              f"{tier.quorum} approval(s), cooldown {tier.cooldown_seconds // 3600}h")
    print()

    # Step 3: Requests
    print("📝 STEP 3: Submitting requests")
    print("-" * 40)

    attempts = [
        (1, "0.05", "small payment"),
        (2, "5", "large payment"),
        (1, "0.5", "reused id"),
        (3, "20.01", "above the cap"),
        (3, "0.05", "same tier again"),
    ]
    for request_id, amount, label in attempts:
        try:
            tx = vault.request(people["Operator"], request_id, people["Vendor"], parse_amount(amount))
            print(f"✅ #{request_id} {amount} ({label}): tier {tx.tier_id}")
        except VaultError as e:
            print(f"❌ #{request_id} {amount} ({label}): {e}")
    print()

    # Step 4: Approvals
    print("🗳️  STEP 4: Collecting approvals")
    print("-" * 40)

    vault.approve(people["Alice"], 1)
    print(f"Request #1 approved: {vault.is_approved(1)}")

    for name in ["Alice", "Bob", "Carol"]:
        count = vault.approve(people[name], 2)
        print(f"Request #2: {name} approved ({count}/3), quorum met: {vault.is_approved(2)}")

    try:
        vault.approve(people["Alice"], 1)
    except VaultError as e:
        print(f"❌ Alice again on #1: {e}")
    print()

    # Step 5: Settlement
    print("💰 STEP 5: Settling")
    print("-" * 40)

    for request_id in [1, 2, 1]:
        try:
            vault.withdraw(people["Treasury"], request_id)
            print(f"✅ #{request_id} paid out")
        except VaultError as e:
            print(f"❌ #{request_id}: {e}")

    print(f"Vendor received: {format_amount(custody.balance_of(people['Vendor']))}")
    print(f"Vault balance:   {format_amount(vault.balance())}")
    print()

    # Step 6: Audit trail
    print("📜 STEP 6: Audit trail")
    print("-" * 40)
    for event in vault.events.events():
        print(f"{event.sequence:>2} {event.kind.value:<18} #{event.request_id} {event.event_hash[:23]}...")

    print()
    print("🎉 Demo complete")


if __name__ == "__main__":
    main()
