#!/usr/bin/env python3
"""
Example: Testing various withdrawal scenarios
"""

from tiered_vault.exceptions import VaultError
from tiered_vault.host.clock import ManualClock
from tiered_vault.host.custody import InMemoryCustody
from tiered_vault.host.keys import AccountKey
from tiered_vault.host.roles import Role, RoleRegistry
from tiered_vault.units import format_amount, parse_amount
from tiered_vault.vault import TieredVault


def main():
    print("=== Testing Withdrawal Scenarios ===")
    print()

    admin = AccountKey().address
    requester = AccountKey().address
    vendor = AccountKey().address
    approvers = [AccountKey().address for _ in range(4)]

    roles = RoleRegistry(admin)
    roles.grant(admin, Role.REQUESTER, requester)
    for approver in approvers:
        roles.grant(admin, Role.APPROVER, approver)

    custody = InMemoryCustody(parse_amount("12"))
    vault = TieredVault(roles, custody, ManualClock(1_700_000_000))
    print(f"   Vault Balance: {format_amount(vault.balance())}")
    print()

    scenarios = [
        {
            'name': 'Tier 1 with one approval',
            'amount': "0.03",
            'approvers': approvers[:1],
            'should_pass': True
        },
        {
            'name': 'Tier 2 with one approval - Should fail',
            'amount': "0.2",
            'approvers': approvers[:1],
            'should_pass': False
        },
        {
            'name': 'Tier 3 with three approvals',
            'amount': "2",
            'approvers': approvers[:3],
            'should_pass': True
        },
        {
            'name': 'Tier 4 beyond vault balance - Should fail',
            'amount': "15",
            'approvers': approvers,
            'should_pass': False
        },
    ]

    for request_id, scenario in enumerate(scenarios, start=1):
        print(f"🧪 {scenario['name']}")
        try:
            vault.request(requester, request_id, vendor, parse_amount(scenario['amount']))
            for approver in scenario['approvers']:
                vault.approve(approver, request_id)
            vault.withdraw(admin, request_id)
            passed = True
            print(f"   ✅ Paid {scenario['amount']}")
        except VaultError as e:
            passed = False
            print(f"   ❌ {e}")

        status = "as expected" if passed == scenario['should_pass'] else "UNEXPECTED"
        print(f"   Result {status}")
        print()

    print(f"Vendor received: {format_amount(custody.balance_of(vendor))}")
    print(f"Vault balance:   {format_amount(vault.balance())}")


if __name__ == "__main__":
    main()
