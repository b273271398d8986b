#!/usr/bin/env python3
"""
Web interface for the Tiered Multi-Party Vault

Mutating calls are authenticated by a secp256k1 signature over the call
payload, e.g. "approve:7" or "request:7:<beneficiary>:<amount in base units>".
"""

import logging
import os
from pathlib import Path

from flask import Flask, jsonify, request

from tiered_vault.config import VaultSettings
from tiered_vault.events import EventKind, EventLog
from tiered_vault.exceptions import InvalidRequestId, VaultError
from tiered_vault.host.clock import SystemClock
from tiered_vault.host.custody import InMemoryCustody
from tiered_vault.host.keys import authenticate_call
from tiered_vault.host.roles import Role, RoleRegistry
from tiered_vault.units import format_amount, parse_amount
from tiered_vault.vault import TieredVault

logger = logging.getLogger(__name__)

ERROR_STATUS = {
    'unauthorized': 403,
    'invalid_signature': 401,
    'not_found': 404,
    'already_exists': 409,
    'already_approved': 409,
    'already_withdrawn': 409,
    'reentrant_call': 409,
    'cooldown_active': 429,
    'quorum_not_met': 422,
    'insufficient_funds': 422,
    'transfer_failed': 502,
}


def build_vault(settings: VaultSettings) -> TieredVault:
    """Assemble a vault from settings, restoring saved state if present"""
    roles = RoleRegistry(settings.admin)
    custody = InMemoryCustody(settings.initial_balance)
    event_log = EventLog(Path(settings.event_log_path)) if settings.event_log_path else None
    vault = TieredVault(roles, custody, SystemClock(), settings.schedule(), event_log)

    if settings.state_path and os.path.exists(settings.state_path):
        vault.load(settings.state_path)
        logger.info("Restored vault state from %s", settings.state_path)
    return vault


def request_to_json(tx) -> dict:
    data = tx.to_dict()
    data['amount_display'] = format_amount(tx.amount)
    return data


def _caller(data: dict, operation: str, *args) -> str:
    return authenticate_call(
        data.get('caller', ''),
        data.get('public_key', ''),
        data.get('signature', ''),
        operation,
        *args
    )


def _request_id(raw: str) -> int:
    try:
        return int(raw)
    except ValueError:
        raise InvalidRequestId(request_id=raw)


def create_app(vault: TieredVault = None, settings: VaultSettings = None) -> Flask:
    if settings is None:
        settings = VaultSettings.from_env()
    if vault is None:
        vault = build_vault(settings)

    app = Flask(__name__)
    app.config['VAULT'] = vault
    app.config['SETTINGS'] = settings

    def persist():
        if settings.state_path:
            vault.save(settings.state_path)

    @app.errorhandler(VaultError)
    def handle_vault_error(e):
        return jsonify({'success': False, **e.to_dict()}), ERROR_STATUS.get(e.code, 400)

    @app.route('/api/tier/<amount>')
    def get_tier(amount):
        """Classify an amount given in whole native units"""
        base_units = parse_amount(amount)
        return jsonify({'amount': base_units, 'tier': vault.tier(base_units)})

    @app.route('/api/vault')
    def get_vault():
        """Vault overview"""
        return jsonify({
            'balance': vault.balance(),
            'balance_display': format_amount(vault.balance()),
            'tiers': vault.schedule.to_list(),
            'requests': len(vault.ledger),
            'pending': len(vault.ledger.pending())
        })

    @app.route('/api/requests', methods=['POST'])
    def create_request():
        data = request.get_json(silent=True) or {}
        if 'request_id' not in data or 'amount' not in data:
            return jsonify({'success': False, 'error': 'request_id and amount are required'}), 400

        request_id = data['request_id']
        beneficiary = data.get('beneficiary')
        amount = parse_amount(data['amount'])
        caller = _caller(data, 'request', request_id, beneficiary, amount)

        tx = vault.request(caller, request_id, beneficiary, amount)
        persist()
        return jsonify({'success': True, 'request': request_to_json(tx)}), 201

    @app.route('/api/requests/<raw_id>')
    def get_request(raw_id):
        tx = vault.txs(_request_id(raw_id))
        return jsonify(request_to_json(tx))

    @app.route('/api/requests/<raw_id>/approve', methods=['POST'])
    def approve_request(raw_id):
        request_id = _request_id(raw_id)
        data = request.get_json(silent=True) or {}
        caller = _caller(data, 'approve', request_id)

        approvals = vault.approve(caller, request_id)
        persist()
        return jsonify({
            'success': True,
            'approvals': approvals,
            'approved': vault.is_approved(request_id)
        })

    @app.route('/api/requests/<raw_id>/approved')
    def request_approved(raw_id):
        request_id = _request_id(raw_id)
        return jsonify({'request_id': request_id, 'approved': vault.is_approved(request_id)})

    @app.route('/api/requests/<raw_id>/withdraw', methods=['POST'])
    def withdraw_request(raw_id):
        request_id = _request_id(raw_id)
        data = request.get_json(silent=True) or {}
        caller = _caller(data, 'withdraw', request_id)

        tx = vault.withdraw(caller, request_id)
        persist()
        return jsonify({
            'success': True,
            'request': request_to_json(tx),
            'remaining_balance': vault.balance()
        })

    @app.route('/api/roles', methods=['POST'])
    def grant_role():
        """Grant a role; the signer must hold the admin role"""
        data = request.get_json(silent=True) or {}
        try:
            role = Role[str(data.get('role', '')).upper()]
        except KeyError:
            return jsonify({'success': False, 'error': f"Unknown role {data.get('role')!r}"}), 400

        account = data.get('account', '')
        caller = _caller(data, 'grant', role.value, account)
        granted = vault.roles.grant(caller, role, account)
        return jsonify({'success': True, 'granted': granted})

    @app.route('/api/events')
    def get_events():
        kind = request.args.get('kind')
        try:
            kind = EventKind(kind) if kind else None
        except ValueError:
            return jsonify({'success': False, 'error': f"Unknown event kind {kind!r}"}), 400
        return jsonify({'events': [e.to_dict() for e in vault.events.events(kind)]})

    return app


app = create_app()


if __name__ == "__main__":
    settings = app.config['SETTINGS']
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )
    if not settings.admin:
        logger.warning("VAULT_ADMIN is not set; nobody can grant roles or withdraw")

    app.run(
        host=settings.host,
        port=settings.port,
        debug=False
    )
