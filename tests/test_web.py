import os
import tempfile
import unittest

from flask import Flask

from tiered_vault.config import VaultSettings
from tiered_vault.host.clock import ManualClock
from tiered_vault.host.custody import InMemoryCustody
from tiered_vault.host.keys import AccountKey
from tiered_vault.host.roles import Role, RoleRegistry
from tiered_vault.units import UNIT, parse_amount
from tiered_vault.vault import TieredVault
from web_interface.app import build_vault, create_app


def signed(key: AccountKey, operation: str, *args, **body) -> dict:
    body.update({
        'caller': key.address,
        'public_key': key.get_public_key_hex(),
        'signature': key.sign_call(operation, *args)
    })
    return body


class TestWebInterface(unittest.TestCase):

    def setUp(self):
        """Set up test fixtures"""
        self.owner = AccountKey()
        self.requester = AccountKey()
        self.approver = AccountKey()
        self.receiver = AccountKey().address

        roles = RoleRegistry(self.owner.address)
        roles.grant(self.owner.address, Role.REQUESTER, self.requester.address)
        roles.grant(self.owner.address, Role.APPROVER, self.approver.address)

        self.custody = InMemoryCustody(10 * UNIT)
        self.vault = TieredVault(roles, self.custody, ManualClock(1_700_000_000))
        self.client = create_app(self.vault, VaultSettings()).test_client()

    def _create(self, request_id=1, amount="0.05", key=None):
        key = key or self.requester
        base_units = parse_amount(amount)
        return self.client.post('/api/requests', json=signed(
            key, 'request', request_id, self.receiver, base_units,
            request_id=request_id, beneficiary=self.receiver, amount=amount
        ))

    def test_tier_endpoint(self):
        response = self.client.get('/api/tier/0.05')
        self.assertEqual(response.get_json()['tier'], 1)
        self.assertEqual(self.client.get('/api/tier/21').get_json()['tier'], 0)
        self.assertEqual(self.client.get('/api/tier/abc').status_code, 400)

    def test_full_flow(self):
        response = self._create()
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.get_json()['request']['approvals'], 0)

        self.assertFalse(self.client.get('/api/requests/1/approved').get_json()['approved'])

        response = self.client.post('/api/requests/1/approve', json=signed(self.approver, 'approve', 1))
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.get_json()['approved'])

        response = self.client.post('/api/requests/1/withdraw', json=signed(self.owner, 'withdraw', 1))
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.get_json()['request']['withdrawn'])
        self.assertEqual(self.custody.balance_of(self.receiver), parse_amount("0.05"))

        record = self.client.get('/api/requests/1').get_json()
        self.assertEqual(record['amount_display'], "0.05")
        self.assertTrue(record['withdrawn'])

        kinds = [e['kind'] for e in self.client.get('/api/events').get_json()['events']]
        self.assertEqual(kinds, ['request_created', 'request_approved', 'request_withdrawn'])

    def test_error_mapping(self):
        self._create()

        self.assertEqual(self._create().status_code, 409)
        self.assertEqual(self._create(request_id=2).status_code, 429)
        self.assertEqual(self._create(request_id=3, amount="20.01").status_code, 400)
        self.assertEqual(self.client.get('/api/requests/99').status_code, 404)

        response = self.client.post('/api/requests/1/withdraw', json=signed(self.owner, 'withdraw', 1))
        self.assertEqual(response.status_code, 422)
        self.assertEqual(response.get_json()['code'], 'quorum_not_met')

    def test_role_checks(self):
        response = self._create(key=self.approver)
        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.get_json()['code'], 'unauthorized')

    def test_forged_signature(self):
        body = signed(self.approver, 'approve', 1)
        body['caller'] = self.owner.address
        response = self.client.post('/api/requests/1/approve', json=body)
        self.assertEqual(response.status_code, 401)

        body = signed(self.approver, 'approve', 2)
        response = self.client.post('/api/requests/1/approve', json=body)
        self.assertEqual(response.status_code, 401)

    def test_grant_role(self):
        newcomer = AccountKey()
        body = signed(self.owner, 'grant', Role.APPROVER.value, newcomer.address,
                      role='approver', account=newcomer.address)
        response = self.client.post('/api/roles', json=body)
        self.assertTrue(response.get_json()['granted'])
        self.assertTrue(self.vault.roles.has_role(newcomer.address, Role.APPROVER))

        body = signed(newcomer, 'grant', Role.ADMIN.value, newcomer.address,
                      role='admin', account=newcomer.address)
        self.assertEqual(self.client.post('/api/roles', json=body).status_code, 403)

        response = self.client.post('/api/roles', json={'role': 'nobody'})
        self.assertEqual(response.status_code, 400)

    def test_vault_overview(self):
        self._create()
        data = self.client.get('/api/vault').get_json()
        self.assertEqual(data['balance'], 10 * UNIT)
        self.assertEqual(data['balance_display'], "10")
        self.assertEqual(data['requests'], 1)
        self.assertEqual(data['pending'], 1)
        self.assertEqual(len(data['tiers']), 4)


class TestStatePersistence(unittest.TestCase):

    def test_state_survives_restart(self):
        owner = AccountKey()
        vendor = AccountKey().address
        with tempfile.TemporaryDirectory() as tmp:
            settings = VaultSettings(
                admin=owner.address,
                initial_balance=UNIT,
                state_path=os.path.join(tmp, "state.json"),
                event_log_path=os.path.join(tmp, "events.jsonl")
            )
            client = create_app(settings=settings).test_client()
            body = signed(owner, 'grant', Role.REQUESTER.value, owner.address,
                          role='requester', account=owner.address)
            client.post('/api/roles', json=body)

            amount = parse_amount("0.02")
            client.post('/api/requests', json=signed(
                owner, 'request', 5, vendor, amount,
                request_id=5, beneficiary=vendor, amount="0.02"
            ))

            restarted = build_vault(settings)

        self.assertEqual(restarted.txs(5).amount, amount)
        self.assertEqual(len(restarted.events), 1)
        self.assertEqual(restarted.balance(), UNIT)

    def test_module_level_app(self):
        from web_interface import app as web_app

        self.assertIsInstance(web_app.app, Flask)
        self.assertIsInstance(web_app.app.config['VAULT'], TieredVault)
        self.assertEqual(web_app.app.test_client().get('/api/tier/0.05').get_json()['tier'], 1)


if __name__ == '__main__':
    unittest.main()
