"""
Deterministic address of an account deployed through the factory
"""

import hashlib

from eth_abi import encode
from eth_utils import keccak, to_canonical_address, to_checksum_address

CREATE2_PREFIX = keccak(text="zksyncCreate2")
ZERO_SALT = b"\x00" * 32

BYTECODE_HASH_VERSION = 1
MAX_BYTECODE_WORDS = 2 ** 16


def hash_bytecode(bytecode: bytes) -> bytes:
    """Versioned bytecode hash: sha256 with the first four bytes replaced by
    version, zero and the length in 32-byte words"""
    if len(bytecode) % 32:
        raise ValueError("Bytecode length must be a multiple of 32 bytes")
    words = len(bytecode) // 32
    if words >= MAX_BYTECODE_WORDS or words % 2 == 0:
        raise ValueError(f"Bytecode must be an odd number of words below {MAX_BYTECODE_WORDS}, got {words}")
    digest = hashlib.sha256(bytecode).digest()
    return bytes([BYTECODE_HASH_VERSION, 0]) + words.to_bytes(2, "big") + digest[4:]


def create2_address(sender: str, bytecode_hash: bytes, salt: bytes, constructor_input: bytes) -> str:
    """Address the factory at `sender` will deploy code `bytecode_hash` to"""
    if len(bytecode_hash) != 32 or len(salt) != 32:
        raise ValueError("Bytecode hash and salt must be 32 bytes")

    preimage = (
        CREATE2_PREFIX
        + to_canonical_address(sender).rjust(32, b"\x00")
        + salt
        + bytecode_hash
        + keccak(constructor_input)
    )
    return to_checksum_address(keccak(preimage)[12:])


def account_address(factory: str, bytecode_hash: bytes, signing_address: str, salt: bytes = ZERO_SALT) -> str:
    """Address of an account whose constructor takes its signing address"""
    return create2_address(factory, bytecode_hash, salt, encode(["address"], [to_checksum_address(signing_address)]))
