import unittest

from guardian_wallet.credentials import SigningCredential
from guardian_wallet.envelope import (
    DEFAULT_GAS_PER_PUBDATA_LIMIT,
    EIP712_TX_TYPE,
    EnvelopeBuilder,
    decode_envelope,
)
from guardian_wallet.errors import SigningError
from guardian_wallet.signer import sign


class TestEnvelopeBuilder(unittest.TestCase):

    def setUp(self):
        self.origin = SigningCredential.generate().address
        self.target = SigningCredential.generate().address
        self.builder = EnvelopeBuilder(self.target, b"\x12\x34", 270, self.origin)

    def test_draft(self):
        draft = self.builder.draft()
        self.assertEqual(draft["from"], self.origin)
        self.assertEqual(draft["to"], self.target)
        self.assertEqual(draft["data"], "0x1234")
        self.assertEqual(draft["value"], 0)

    def test_fields_set_once(self):
        self.builder.with_nonce(3)
        with self.assertRaises(ValueError):
            self.builder.with_nonce(4)

        self.builder.with_fees(100_000, 250_000_000)
        with self.assertRaises(ValueError):
            self.builder.with_fees(200_000, 250_000_000)

        self.assertEqual(self.builder.nonce, 3)
        self.assertEqual(self.builder.gas_limit, 100_000)

    def test_finalize_requires_all_fields(self):
        self.assertEqual(self.builder.missing_fields(), ["nonce", "gas_limit", "gas_price"])
        with self.assertRaises(SigningError):
            self.builder.finalize()

        self.builder.with_nonce(0)
        with self.assertRaises(SigningError):
            self.builder.finalize()

    def test_finalized_envelope(self):
        envelope = self.builder.with_nonce(7).with_fees(100_000, 250_000_000).finalize()

        self.assertEqual(envelope.tx_type, EIP712_TX_TYPE)
        self.assertEqual(envelope.gas_per_pubdata, DEFAULT_GAS_PER_PUBDATA_LIMIT)
        self.assertEqual(envelope.max_fee_per_gas, envelope.max_priority_fee_per_gas)
        self.assertEqual(envelope.factory_deps, ())
        self.assertIsNone(envelope.paymaster)
        self.assertFalse(envelope.is_signed)

    def test_negative_values_rejected(self):
        with self.assertRaises(ValueError):
            EnvelopeBuilder(self.target, b"", 270, self.origin, value=-1)
        with self.assertRaises(ValueError):
            self.builder.with_nonce(-1)


class TestEnvelopeWireFormat(unittest.TestCase):

    def setUp(self):
        self.credential = SigningCredential.generate()
        self.envelope = EnvelopeBuilder(
            SigningCredential.generate().address, b"\xab" * 36, 270, self.credential.address, value=5
        ).with_nonce(1).with_fees(150_000, 250_000_000).finalize()

    def test_unsigned_envelope_not_serialized(self):
        with self.assertRaises(SigningError):
            self.envelope.serialize()

    def test_signed_once(self):
        signed = sign(self.envelope, self.credential)
        with self.assertRaises(SigningError):
            signed.with_signature(b"\x00" * 65)

    def test_decode_signed_envelope(self):
        signed = sign(self.envelope, self.credential)
        raw = signed.serialize()

        self.assertEqual(raw[0], EIP712_TX_TYPE)
        self.assertEqual(decode_envelope(raw), signed)

    def test_decode_rejects_other_types(self):
        with self.assertRaises(ValueError):
            decode_envelope(b"\x02" + b"\xc0")
        with self.assertRaises(ValueError):
            decode_envelope(b"")


if __name__ == '__main__':
    unittest.main()
