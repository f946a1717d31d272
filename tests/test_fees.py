import unittest
from unittest import mock

from guardian_wallet.credentials import SigningCredential
from guardian_wallet.envelope import EnvelopeBuilder
from guardian_wallet.errors import FeeQueryFailure
from guardian_wallet.fees import FALLBACK_GAS_LIMIT, FeeEstimator
from guardian_wallet.zksync_stack.provider import NetworkProvider, ProviderError


class TestFeeEstimator(unittest.TestCase):

    def setUp(self):
        self.provider = mock.Mock(spec=NetworkProvider)
        self.provider.estimate_gas.return_value = 180_000
        self.provider.gas_price.return_value = 250_000_000
        self.estimator = FeeEstimator(self.provider)
        self.builder = EnvelopeBuilder(
            SigningCredential.generate().address, b"\x01", 270, SigningCredential.generate().address
        )

    def test_simulated_limit(self):
        self.assertEqual(self.estimator.estimate(self.builder), (180_000, 250_000_000))
        self.provider.estimate_gas.assert_called_once_with(self.builder.draft())

    def test_fallback_on_simulation_failure(self):
        """A failing simulation never aborts the step"""
        self.provider.estimate_gas.side_effect = ProviderError("execution reverted")

        with self.assertLogs("guardian_wallet.fees", level="WARNING") as logs:
            gas_limit, gas_price = self.estimator.estimate(self.builder)

        self.assertEqual(gas_limit, FALLBACK_GAS_LIMIT)
        self.assertEqual(gas_price, 250_000_000)
        self.assertIn("fallback", logs.output[0])

    def test_fallback_on_unexpected_error(self):
        self.provider.estimate_gas.side_effect = RuntimeError("connection reset")
        self.assertEqual(self.estimator.estimate_gas_limit({}), FALLBACK_GAS_LIMIT)

    def test_fallback_on_malformed_estimate(self):
        for bad in (0, -5, None, "0x10", True):
            with self.subTest(estimate=bad):
                self.provider.estimate_gas.return_value = bad
                self.assertEqual(self.estimator.estimate_gas_limit({}), FALLBACK_GAS_LIMIT)

    def test_custom_fallback(self):
        self.provider.estimate_gas.side_effect = ProviderError("boom")
        estimator = FeeEstimator(self.provider, fallback_gas_limit=1_000_000)
        self.assertEqual(estimator.estimate_gas_limit({}), 1_000_000)

    def test_fee_price_failure_is_fatal(self):
        self.provider.gas_price.side_effect = ProviderError("unreachable")
        with self.assertRaises(FeeQueryFailure):
            self.estimator.estimate(self.builder)

    def test_malformed_fee_price(self):
        self.provider.gas_price.return_value = 0
        with self.assertRaises(FeeQueryFailure):
            self.estimator.gas_price()


if __name__ == '__main__':
    unittest.main()
