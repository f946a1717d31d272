#!/usr/bin/env python3
"""
Read-only inspection console for a guardian wallet account.

Operators use it to look at on-chain protocol state before resuming a run
that was aborted mid-way.
"""

from flask import Flask, jsonify
import logging
import os
import sys

# Add project root to path
sys.path.append(os.path.join(os.path.dirname(__file__), '..'))

from guardian_wallet.config import Settings
from guardian_wallet.contract import AccountClient
from guardian_wallet.rules import from_wei
from guardian_wallet.zksync_stack.provider import NetworkProvider, ProviderError, Web3Provider

logger = logging.getLogger(__name__)


def create_app(provider: NetworkProvider, account_address: str) -> Flask:
    """Build the console for one account"""
    app = Flask(__name__)
    account = AccountClient(provider, account_address)

    @app.errorhandler(ProviderError)
    def provider_error(e):
        logger.error("Network query failed: %s", e)
        return jsonify({'success': False, 'error': str(e)}), 502

    @app.route('/api/account')
    def get_account():
        """Balance, signer, guardians and threshold"""
        balance = account.balance()
        return jsonify({
            'success': True,
            'address': account.address,
            'balance_wei': balance,
            'balance_eth': from_wei(balance),
            'signing_address': account.signing_address(),
            'guardians': list(account.guardians()),
            'withdraw_threshold': account.withdraw_threshold(),
        })

    @app.route('/api/account/recovery')
    def get_recovery():
        """Current recovery process"""
        process = account.recovery_process()
        return jsonify({
            'success': True,
            'state': process.state.value,
            'initiator': process.initiator,
            'proposed_signer': process.proposed_signer,
            'supporters': list(process.supporters),
        })

    @app.route('/api/account/withdrawals')
    def get_withdrawals():
        """All withdraw requests with their derived state"""
        requests = account.withdraw_requests()
        return jsonify({
            'success': True,
            'withdrawals': [
                {
                    'request_id': r.request_id,
                    'amount_wei': r.amount,
                    'recipient': r.recipient,
                    'approvers': list(r.approvers),
                    'approvals_missing': r.approvals_missing,
                    'state': r.state.value,
                }
                for r in requests
            ],
        })

    @app.route('/api/account/withdrawals/<int:request_id>')
    def get_withdrawal(request_id):
        """One withdraw request"""
        requests = account.withdraw_requests()
        if request_id >= len(requests):
            return jsonify({'success': False, 'error': 'Withdraw request not found'}), 404
        r = requests[request_id]
        return jsonify({
            'success': True,
            'request_id': r.request_id,
            'amount_wei': r.amount,
            'recipient': r.recipient,
            'approvers': list(r.approvers),
            'approvals_missing': r.approvals_missing,
            'state': r.state.value,
        })

    return app


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    settings = Settings.load()
    app = create_app(Web3Provider.from_url(settings.require("RPC_URL")), settings.require("WALLET_ADDRESS"))
    port = int(os.environ.get("PORT", 10000))
    app.run(
        host="0.0.0.0",
        port=port,
        debug=False
    )
