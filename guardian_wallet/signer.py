"""
Digest & Signer for the custom transaction envelope.

The digest is EIP-712 typed data over the zkSync ``Transaction`` struct.
The order of TRANSACTION_FIELDS is a compatibility contract with the
account contract's signature validation: adding or reordering a field
invalidates every signature produced before the change.
"""

from eth_abi import encode
from eth_utils import keccak, to_canonical_address

from .create2 import hash_bytecode
from .credentials import SigningCredential, verify
from .envelope import TransactionEnvelope
from .errors import SigningError

DOMAIN_NAME = "zkSync"
DOMAIN_VERSION = "2"

TRANSACTION_FIELDS = (
    ("txType", "uint256"),
    ("from", "uint256"),
    ("to", "uint256"),
    ("gasLimit", "uint256"),
    ("gasPerPubdataByteLimit", "uint256"),
    ("maxFeePerGas", "uint256"),
    ("maxPriorityFeePerGas", "uint256"),
    ("paymaster", "uint256"),
    ("nonce", "uint256"),
    ("value", "uint256"),
    ("data", "bytes"),
    ("factoryDeps", "bytes32[]"),
    ("paymasterInput", "bytes"),
)

DOMAIN_TYPE_HASH = keccak(text="EIP712Domain(string name,string version,uint256 chainId)")
TRANSACTION_TYPE_HASH = keccak(
    text="Transaction(" + ",".join(f"{kind} {name}" for name, kind in TRANSACTION_FIELDS) + ")"
)


def _address_as_int(address) -> int:
    if address is None:
        return 0
    return int.from_bytes(to_canonical_address(address), "big")


def domain_separator(chain_id: int) -> bytes:
    return keccak(encode(
        ["bytes32", "bytes32", "bytes32", "uint256"],
        [DOMAIN_TYPE_HASH, keccak(text=DOMAIN_NAME), keccak(text=DOMAIN_VERSION), chain_id],
    ))


def _check_complete(envelope: TransactionEnvelope):
    missing = [
        name for name in ("nonce", "chain_id", "gas_limit", "gas_price")
        if getattr(envelope, name) is None
    ]
    if missing:
        raise SigningError(f"Cannot digest incomplete envelope, missing: {', '.join(missing)}")


def _factory_deps_hash(envelope: TransactionEnvelope) -> bytes:
    # the envelope carries full bytecode; the struct member is bytes32[] of their versioned hashes
    try:
        return keccak(b"".join(hash_bytecode(dep) for dep in envelope.factory_deps))
    except ValueError as exc:
        raise SigningError(f"Malformed factory dependency: {exc}") from exc


def struct_hash(envelope: TransactionEnvelope) -> bytes:
    values = {
        "txType": envelope.tx_type,
        "from": _address_as_int(envelope.origin),
        "to": _address_as_int(envelope.to),
        "gasLimit": envelope.gas_limit,
        "gasPerPubdataByteLimit": envelope.gas_per_pubdata,
        "maxFeePerGas": envelope.max_fee_per_gas,
        "maxPriorityFeePerGas": envelope.max_priority_fee_per_gas,
        "paymaster": _address_as_int(envelope.paymaster),
        "nonce": envelope.nonce,
        "value": envelope.value,
        # dynamic members are hashed per EIP-712 encodeData
        "data": keccak(envelope.data),
        "factoryDeps": _factory_deps_hash(envelope),
        "paymasterInput": keccak(envelope.paymaster_input),
    }
    types = ["bytes32"]
    args = [TRANSACTION_TYPE_HASH]
    for name, kind in TRANSACTION_FIELDS:
        types.append("uint256" if kind == "uint256" else "bytes32")
        args.append(values[name])
    return keccak(encode(types, args))


def digest(envelope: TransactionEnvelope) -> bytes:
    """32-byte signing digest of the envelope"""
    _check_complete(envelope)
    return keccak(b"\x19\x01" + domain_separator(envelope.chain_id) + struct_hash(envelope))


def sign(envelope: TransactionEnvelope, credential: SigningCredential) -> TransactionEnvelope:
    """Sign the envelope and return a copy with the signature embedded"""
    if not isinstance(credential, SigningCredential):
        raise SigningError(f"Malformed credential: {type(credential).__name__}")
    signature = credential.sign_digest(digest(envelope))
    return envelope.with_signature(signature)


def verify_envelope(envelope: TransactionEnvelope, address: str) -> bool:
    """True when the embedded signature was made by address over this exact envelope"""
    if not envelope.is_signed:
        return False
    return verify(envelope.custom_signature, digest(envelope), address)
