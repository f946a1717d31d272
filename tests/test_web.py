import os
import sys
import unittest

# Add project root to path
sys.path.append(os.path.join(os.path.dirname(__file__), '..'))

from guardian_wallet.credentials import SigningCredential
from guardian_wallet.rules import to_wei
from guardian_wallet.vault import VaultWorkflow
from web_interface.app import create_app
from devnet_fixtures import build_wallet


class TestInspectionConsole(unittest.TestCase):

    def setUp(self):
        self.fx = build_wallet()
        self.client = create_app(self.fx.network, self.fx.wallet).test_client()

    def test_account(self):
        data = self.client.get('/api/account').get_json()

        self.assertTrue(data['success'])
        self.assertEqual(data['address'], self.fx.wallet)
        self.assertEqual(data['signing_address'], self.fx.owner.credential.address)
        self.assertEqual(data['guardians'], [self.fx.guardian_1.address, self.fx.guardian_2.address])
        self.assertEqual(data['withdraw_threshold'], 2)

    def test_recovery(self):
        data = self.client.get('/api/account/recovery').get_json()
        self.assertEqual(data['state'], 'none')
        self.assertEqual(data['supporters'], [])

    def test_withdrawals(self):
        VaultWorkflow(self.fx.executor, self.fx.registry, self.fx.wallet).create_request(
            to_wei(0.001), SigningCredential.generate().address
        )

        data = self.client.get('/api/account/withdrawals').get_json()
        self.assertEqual(len(data['withdrawals']), 1)
        self.assertEqual(data['withdrawals'][0]['state'], 'created')
        self.assertEqual(data['withdrawals'][0]['approvals_missing'], 2)

        response = self.client.get('/api/account/withdrawals/0')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.get_json()['amount_wei'], to_wei(0.001))

        response = self.client.get('/api/account/withdrawals/1')
        self.assertEqual(response.status_code, 404)
        self.assertFalse(response.get_json()['success'])

    def test_undeployed_account(self):
        client = create_app(self.fx.network, SigningCredential.generate().address).test_client()
        response = client.get('/api/account')
        self.assertEqual(response.status_code, 502)
        self.assertFalse(response.get_json()['success'])


if __name__ == '__main__':
    unittest.main()
