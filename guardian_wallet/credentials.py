"""
secp256k1 signing credentials for account owners and guardians
"""

import hashlib
from typing import Optional

from ecdsa import SigningKey, SECP256k1, VerifyingKey
from ecdsa.util import sigencode_strings_canonize, sigdecode_string
from eth_utils import keccak, to_checksum_address

from .errors import SigningError

SIGNATURE_LENGTH = 65  # r (32) + s (32) + v (1)


class SigningCredential:
    """Private signing key bound to an Ethereum-style address"""

    def __init__(self, private_key: Optional[bytes] = None):
        if private_key is None:
            self._signing_key = SigningKey.generate(curve=SECP256k1)
        else:
            if len(private_key) != 32:
                raise SigningError(f"Private key must be 32 bytes, got {len(private_key)}")
            try:
                self._signing_key = SigningKey.from_string(private_key, curve=SECP256k1)
            except Exception as exc:
                raise SigningError(f"Malformed private key: {exc}") from exc

        self._verifying_key = self._signing_key.get_verifying_key()
        self.address = public_key_to_address(self._verifying_key)

    @classmethod
    def generate(cls) -> 'SigningCredential':
        """Create a fresh random credential"""
        return cls()

    @classmethod
    def from_hex(cls, private_key_hex: str) -> 'SigningCredential':
        """Load a credential from a 0x-prefixed (or bare) hex private key"""
        if not isinstance(private_key_hex, str):
            raise SigningError("Private key must be a hex string")
        value = private_key_hex.strip()
        if value.startswith(("0x", "0X")):
            value = value[2:]
        try:
            raw = bytes.fromhex(value)
        except ValueError as exc:
            raise SigningError("Private key is not valid hex") from exc
        return cls(raw)

    @property
    def private_key_hex(self) -> str:
        return "0x" + self._signing_key.to_string().hex()

    def sign_digest(self, digest: bytes) -> bytes:
        """Sign a 32-byte digest without any message prefix.

        Returns r || s || v with a low s value and v in {27, 28}.
        """
        if len(digest) != 32:
            raise SigningError(f"Digest must be 32 bytes, got {len(digest)}")

        r, s = self._signing_key.sign_digest_deterministic(
            digest,
            hashfunc=hashlib.sha256,
            sigencode=sigencode_strings_canonize,
        )
        rs = r + s

        candidates = VerifyingKey.from_public_key_recovery_with_digest(
            rs, digest, curve=SECP256k1, hashfunc=hashlib.sha256, sigdecode=sigdecode_string
        )
        for recovery_id, candidate in enumerate(candidates):
            if candidate.to_string() == self._verifying_key.to_string():
                return rs + bytes([27 + recovery_id])

        raise SigningError("Could not determine signature recovery id")

    def __repr__(self) -> str:
        return f"SigningCredential(address={self.address})"


def public_key_to_address(verifying_key: VerifyingKey) -> str:
    """Checksum address of an uncompressed secp256k1 public key"""
    return to_checksum_address(keccak(verifying_key.to_string())[-20:])


def recover_address(digest: bytes, signature: bytes) -> str:
    """Recover the signer address from a 65-byte r || s || v signature"""
    if len(signature) != SIGNATURE_LENGTH:
        raise SigningError(f"Signature must be {SIGNATURE_LENGTH} bytes, got {len(signature)}")

    v = signature[64]
    recovery_id = v - 27 if v >= 27 else v
    if recovery_id not in (0, 1):
        raise SigningError(f"Invalid recovery byte {v}")

    try:
        candidates = VerifyingKey.from_public_key_recovery_with_digest(
            signature[:64], digest, curve=SECP256k1, hashfunc=hashlib.sha256, sigdecode=sigdecode_string
        )
    except Exception as exc:
        raise SigningError(f"Signature recovery failed: {exc}") from exc

    return public_key_to_address(candidates[recovery_id])


def verify(signature: bytes, digest: bytes, address: str) -> bool:
    """Check that signature over digest was produced by address"""
    try:
        return recover_address(digest, signature) == to_checksum_address(address)
    except (SigningError, ValueError):
        return False
