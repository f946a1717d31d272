import unittest

from eth_utils import to_checksum_address

from guardian_wallet.errors import InvalidTransition, PreconditionFailure
from guardian_wallet.rules import ProtocolRules, from_wei, to_wei
from guardian_wallet.states import (
    ZERO_ADDRESS,
    RecoveryProcess,
    RecoveryState,
    WithdrawRequest,
    WithdrawState,
)

GUARDIAN_A = "0x" + "aa" * 20
GUARDIAN_B = "0x" + "bb" * 20
RECIPIENT = "0x" + "cc" * 20


class TestProtocolRules(unittest.TestCase):

    def setUp(self):
        self.rules = ProtocolRules.default()

    def test_unit_conversion(self):
        self.assertEqual(to_wei(0.001), 10 ** 15)
        self.assertEqual(from_wei(to_wei(1.5)), 1.5)

    def test_balance_floors(self):
        valid, msg = self.rules.check_balances(to_wei(1), to_wei(0.01))
        self.assertTrue(valid)

        valid, msg = self.rules.check_balances(to_wei(0.001), to_wei(0.01))
        self.assertFalse(valid)
        self.assertIn("Funder", msg)

        valid, msg = self.rules.check_balances(None, to_wei(0.001))
        self.assertFalse(valid)
        self.assertIn("Account", msg)

    def test_withdrawal_validation(self):
        self.assertTrue(self.rules.validate_withdrawal(100, 1000)[0])
        self.assertFalse(self.rules.validate_withdrawal(0, 1000)[0])
        self.assertFalse(self.rules.validate_withdrawal(1001, 1000)[0])

        capped = ProtocolRules(0, 0, max_single_withdrawal=50)
        valid, msg = capped.validate_withdrawal(100, 1000)
        self.assertFalse(valid)
        self.assertIn("exceeds", msg)

    def test_require(self):
        self.rules.require((True, "ok"))
        with self.assertRaises(PreconditionFailure) as ctx:
            self.rules.require((False, "too poor"), step="preflight")
        self.assertEqual(ctx.exception.step, "preflight")

    def test_permissive(self):
        self.assertTrue(ProtocolRules.permissive().check_balances(0, 0)[0])


class TestRecoveryProcess(unittest.TestCase):

    def test_from_chain(self):
        self.assertEqual(RecoveryProcess.from_chain(ZERO_ADDRESS, ZERO_ADDRESS, []).state, RecoveryState.NONE)

        initiated = RecoveryProcess.from_chain(GUARDIAN_A, RECIPIENT, [])
        self.assertEqual(initiated.state, RecoveryState.INITIATED)

        supported = RecoveryProcess.from_chain(GUARDIAN_A, RECIPIENT, [GUARDIAN_B])
        self.assertEqual(supported.state, RecoveryState.SUPPORTED)
        self.assertEqual(supported.supporters, (to_checksum_address(GUARDIAN_B),))

    def test_transitions_in_order(self):
        none = RecoveryProcess(RecoveryState.NONE)
        self.assertTrue(none.check_transition(RecoveryState.INITIATED)[0])
        self.assertFalse(none.check_transition(RecoveryState.SUPPORTED)[0])
        self.assertFalse(none.check_transition(RecoveryState.EXECUTED)[0])
        with self.assertRaises(InvalidTransition):
            none.require_transition(RecoveryState.EXECUTED)

        initiated = RecoveryProcess.from_chain(GUARDIAN_A, RECIPIENT, [])
        self.assertFalse(initiated.check_transition(RecoveryState.EXECUTED)[0])
        self.assertTrue(initiated.check_transition(RecoveryState.SUPPORTED)[0])

    def test_supporter_distinct_from_initiator(self):
        initiated = RecoveryProcess.from_chain(GUARDIAN_A, RECIPIENT, [])
        self.assertFalse(initiated.check_supporter(GUARDIAN_A)[0])
        self.assertTrue(initiated.check_supporter(GUARDIAN_B)[0])


class TestWithdrawRequest(unittest.TestCase):

    def request(self, approvers=(), executed=False, cancelled=False):
        return WithdrawRequest.from_chain(0, (100, RECIPIENT, list(approvers), executed, cancelled), 2)

    def test_derived_state(self):
        self.assertEqual(self.request().state, WithdrawState.CREATED)
        self.assertEqual(self.request([GUARDIAN_A]).state, WithdrawState.CREATED)
        self.assertEqual(self.request([GUARDIAN_A, GUARDIAN_B]).state, WithdrawState.APPROVED)
        self.assertEqual(self.request([GUARDIAN_A, GUARDIAN_B], executed=True).state, WithdrawState.EXECUTED)
        self.assertEqual(self.request([GUARDIAN_A], cancelled=True).state, WithdrawState.CANCELLED)

    def test_approvals_missing(self):
        self.assertEqual(self.request().approvals_missing, 2)
        self.assertEqual(self.request([GUARDIAN_A]).approvals_missing, 1)
        self.assertEqual(self.request([GUARDIAN_A, GUARDIAN_B]).approvals_missing, 0)

    def test_cancelled_is_terminal(self):
        cancelled = self.request(cancelled=True)
        self.assertTrue(cancelled.is_terminal)
        for target in WithdrawState:
            self.assertFalse(cancelled.check_transition(target)[0])
        self.assertFalse(cancelled.check_approver(GUARDIAN_A)[0])

    def test_execute_needs_threshold(self):
        self.assertFalse(self.request([GUARDIAN_A]).check_transition(WithdrawState.EXECUTED)[0])
        self.assertTrue(self.request([GUARDIAN_A, GUARDIAN_B]).check_transition(WithdrawState.EXECUTED)[0])

    def test_only_current_guardians_count(self):
        request = WithdrawRequest.from_chain(0, (100, RECIPIENT, [GUARDIAN_A, GUARDIAN_B], False, False), 2,
                                             guardians=[GUARDIAN_B])
        self.assertEqual(request.counted_approvers, (to_checksum_address(GUARDIAN_B),))
        self.assertEqual(request.state, WithdrawState.CREATED)
        self.assertEqual(request.approvals_missing, 1)
        self.assertFalse(request.check_transition(WithdrawState.EXECUTED)[0])
        # a guardian whose approval is recorded cannot approve again
        self.assertFalse(request.check_approver(GUARDIAN_A)[0])

    def test_duplicate_approver(self):
        self.assertFalse(self.request([GUARDIAN_A]).check_approver(to_checksum_address(GUARDIAN_A))[0])


if __name__ == '__main__':
    unittest.main()
