import unittest

from guardian_wallet.credentials import SigningCredential, recover_address, verify
from guardian_wallet.errors import SigningError
from eth_utils import keccak

SECP256K1_HALF_ORDER = 0x7FFFFFFFFFFFFFFFFFFFFFFFFFFFFFFF5D576E7357A4501DDFE92F46681B20A0


class TestSigningCredential(unittest.TestCase):

    def setUp(self):
        self.credential = SigningCredential.generate()
        self.digest = keccak(text="guardian wallet")

    def test_known_address(self):
        """Private key 1 maps to the well-known address"""
        credential = SigningCredential.from_hex("0x" + "00" * 31 + "01")
        self.assertEqual(credential.address, "0x7E5F4552091A69125d5DfCb7b8C2659029395Bdf")

    def test_hex_round_trip(self):
        loaded = SigningCredential.from_hex(self.credential.private_key_hex)
        self.assertEqual(loaded.address, self.credential.address)

        bare = SigningCredential.from_hex(self.credential.private_key_hex[2:])
        self.assertEqual(bare.address, self.credential.address)

    def test_malformed_keys(self):
        with self.assertRaises(SigningError):
            SigningCredential(b"\x01" * 31)
        with self.assertRaises(SigningError):
            SigningCredential.from_hex("0xnothex")
        with self.assertRaises(SigningError):
            SigningCredential.from_hex(1234)

    def test_signature_shape(self):
        """65 bytes, low s, v in {27, 28}"""
        signature = self.credential.sign_digest(self.digest)
        self.assertEqual(len(signature), 65)
        self.assertIn(signature[64], (27, 28))
        self.assertLessEqual(int.from_bytes(signature[32:64], "big"), SECP256K1_HALF_ORDER)

    def test_recover_signer(self):
        signature = self.credential.sign_digest(self.digest)
        self.assertEqual(recover_address(self.digest, signature), self.credential.address)
        self.assertTrue(verify(signature, self.digest, self.credential.address))

    def test_verify_rejects_other_digest_and_signer(self):
        signature = self.credential.sign_digest(self.digest)
        self.assertFalse(verify(signature, keccak(text="something else"), self.credential.address))
        self.assertFalse(verify(signature, self.digest, SigningCredential.generate().address))
        self.assertFalse(verify(signature[:64], self.digest, self.credential.address))

    def test_digest_length(self):
        with self.assertRaises(SigningError):
            self.credential.sign_digest(b"short")


if __name__ == '__main__':
    unittest.main()
