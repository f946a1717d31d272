import hashlib
import unittest

from guardian_wallet.create2 import CREATE2_PREFIX, ZERO_SALT, account_address, create2_address, hash_bytecode
from eth_abi import encode
from eth_utils import keccak

FACTORY = "0x" + "11" * 20
SIGNER = "0x" + "22" * 20
CODE_HASH = keccak(text="code")


class TestCreate2(unittest.TestCase):

    def test_preimage_layout(self):
        constructor_input = encode(["address"], [SIGNER])
        preimage = CREATE2_PREFIX + b"\x00" * 12 + b"\x11" * 20 + ZERO_SALT + CODE_HASH + keccak(constructor_input)
        expected = keccak(preimage)[12:]

        address = create2_address(FACTORY, CODE_HASH, ZERO_SALT, constructor_input)
        self.assertEqual(bytes.fromhex(address[2:]), expected)
        self.assertEqual(account_address(FACTORY, CODE_HASH, SIGNER), address)

    def test_inputs_change_address(self):
        base = account_address(FACTORY, CODE_HASH, SIGNER)
        self.assertNotEqual(account_address(FACTORY, CODE_HASH, SIGNER, b"\x01" * 32), base)
        self.assertNotEqual(account_address(FACTORY, keccak(text="other"), SIGNER), base)
        self.assertNotEqual(account_address(FACTORY, CODE_HASH, "0x" + "33" * 20), base)

    def test_lengths_checked(self):
        with self.assertRaises(ValueError):
            create2_address(FACTORY, b"\x00" * 31, ZERO_SALT, b"")
        with self.assertRaises(ValueError):
            create2_address(FACTORY, CODE_HASH, b"\x00", b"")


class TestBytecodeHash(unittest.TestCase):

    def test_version_and_length_prefix(self):
        bytecode = bytes(range(96))
        bytecode_hash = hash_bytecode(bytecode)
        self.assertEqual(len(bytecode_hash), 32)
        self.assertEqual(bytecode_hash[:4], b"\x01\x00\x00\x03")
        self.assertEqual(bytecode_hash[4:], hashlib.sha256(bytecode).digest()[4:])

    def test_malformed_bytecode(self):
        for bytecode in (b"\x00" * 31, b"\x00" * 64, b""):
            with self.subTest(length=len(bytecode)):
                with self.assertRaises(ValueError):
                    hash_bytecode(bytecode)


if __name__ == '__main__':
    unittest.main()
