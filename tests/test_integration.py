import unittest

from guardian_wallet.actors import guardian_name
from guardian_wallet.credentials import SigningCredential
from guardian_wallet.errors import InvalidTransition
from guardian_wallet.recovery import RecoveryWorkflow
from guardian_wallet.rules import to_wei
from guardian_wallet.states import RecoveryState, WithdrawState
from guardian_wallet.vault import VaultWorkflow
from devnet_fixtures import build_wallet


class TestGuardianWalletIntegration(unittest.TestCase):

    def setUp(self):
        self.fx = build_wallet()
        self.vault = VaultWorkflow(self.fx.executor, self.fx.registry, self.fx.wallet)
        self.recovery = RecoveryWorkflow(self.fx.executor, self.fx.registry, self.fx.wallet)

    def test_complete_workflow(self):
        """Guardians registered, withdrawal paid out, second request cancelled, signing key recovered"""
        recipient = SigningCredential.generate().address
        amount = to_wei(0.001)

        # 1. Threshold-approved withdrawal
        request = self.vault.run_withdrawal(amount, recipient)
        self.assertEqual(request.state, WithdrawState.EXECUTED)
        self.assertEqual(self.fx.network.get_balance(recipient), amount)

        # 2. Second request cancelled before any approval
        second = self.vault.create_request(amount, recipient)
        self.assertEqual(second.request_id, 1)
        self.vault.cancel(second.request_id)
        with self.assertRaises(InvalidTransition):
            self.vault.approve(second.request_id)
        self.assertEqual(self.fx.network.get_balance(recipient), amount)

        # 3. Recovery by two distinct guardians
        process, credential = self.recovery.run(guardian_name(1), guardian_name(2))
        self.assertEqual(process.state, RecoveryState.EXECUTED)
        self.assertEqual(self.recovery.account.signing_address(), credential.address)

        # 4. Owner operates with the recovered key
        third = self.vault.run_withdrawal(amount, recipient)
        self.assertEqual(third.request_id, 2)
        self.assertEqual(self.fx.network.get_balance(recipient), 2 * amount)

        states = [r.state for r in self.vault.requests()]
        self.assertEqual(states, [WithdrawState.EXECUTED, WithdrawState.CANCELLED, WithdrawState.EXECUTED])

    def test_every_step_confirmed(self):
        """No step starts before the previous one is buried under the confirmation depth"""
        receipts = []
        execute = self.fx.executor.execute

        def recording(*args, **kwargs):
            receipt = execute(*args, **kwargs)
            receipts.append((receipt, self.fx.network.height))
            return receipt

        self.fx.executor.execute = recording
        self.vault.run_withdrawal(to_wei(0.001), SigningCredential.generate().address)

        self.assertEqual(len(receipts), 4)
        for receipt, height in receipts:
            self.assertGreaterEqual(height - receipt.block_number + 1, self.fx.executor.pipeline.confirmations)
        blocks = [receipt.block_number for receipt, _ in receipts]
        self.assertEqual(blocks, sorted(blocks))


if __name__ == '__main__':
    unittest.main()
