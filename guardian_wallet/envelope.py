"""
Custom transaction envelope (type 113) and its append-only builder
"""

from dataclasses import dataclass, field, replace
from typing import Optional, Tuple

import rlp
from eth_utils import big_endian_to_int, encode_hex, to_canonical_address, to_checksum_address

from .errors import SigningError

EIP712_TX_TYPE = 0x71  # 113
DEFAULT_GAS_PER_PUBDATA_LIMIT = 50_000


@dataclass(frozen=True)
class TransactionEnvelope:
    """Complete envelope; every field except custom_signature is covered by the digest"""
    to: str
    origin: str
    data: bytes
    nonce: int
    chain_id: int
    gas_limit: int
    gas_price: int
    value: int = 0
    tx_type: int = EIP712_TX_TYPE
    gas_per_pubdata: int = DEFAULT_GAS_PER_PUBDATA_LIMIT
    factory_deps: Tuple[bytes, ...] = ()
    paymaster: Optional[str] = None
    paymaster_input: bytes = b""
    custom_signature: bytes = field(default=b"", repr=False)

    @property
    def max_fee_per_gas(self) -> int:
        return self.gas_price

    @property
    def max_priority_fee_per_gas(self) -> int:
        return self.gas_price

    @property
    def is_signed(self) -> bool:
        return len(self.custom_signature) > 0

    def with_signature(self, signature: bytes) -> 'TransactionEnvelope':
        """Copy of this envelope carrying the signature in its auxiliary data"""
        if self.is_signed:
            raise SigningError("Envelope is already signed")
        return replace(self, custom_signature=bytes(signature))

    def serialize(self) -> bytes:
        """Wire encoding: 0x71 || rlp(fields)"""
        if not self.is_signed:
            raise SigningError("Refusing to serialize an unsigned envelope")

        paymaster_params = []
        if self.paymaster is not None:
            paymaster_params = [to_canonical_address(self.paymaster), self.paymaster_input]

        fields = [
            self.nonce,
            self.max_priority_fee_per_gas,
            self.max_fee_per_gas,
            self.gas_limit,
            to_canonical_address(self.to),
            self.value,
            self.data,
            self.chain_id,
            b"",
            b"",
            self.chain_id,
            to_canonical_address(self.origin),
            self.gas_per_pubdata,
            list(self.factory_deps),
            self.custom_signature,
            paymaster_params,
        ]
        return bytes([self.tx_type]) + rlp.encode(fields)


def decode_envelope(raw: bytes) -> TransactionEnvelope:
    """Parse the wire encoding produced by TransactionEnvelope.serialize"""
    if not raw or raw[0] != EIP712_TX_TYPE:
        raise ValueError("Not a type 113 envelope")

    fields = rlp.decode(raw[1:])
    if len(fields) != 16:
        raise ValueError(f"Expected 16 envelope fields, got {len(fields)}")

    (nonce, _priority_fee, max_fee, gas_limit, to, value, data, chain_id,
     _r, _s, _chain_id, origin, gas_per_pubdata, factory_deps, signature,
     paymaster_params) = fields

    paymaster = None
    paymaster_input = b""
    if paymaster_params:
        paymaster = to_checksum_address(paymaster_params[0])
        paymaster_input = paymaster_params[1]

    return TransactionEnvelope(
        to=to_checksum_address(to),
        origin=to_checksum_address(origin),
        data=data,
        nonce=big_endian_to_int(nonce),
        chain_id=big_endian_to_int(chain_id),
        gas_limit=big_endian_to_int(gas_limit),
        gas_price=big_endian_to_int(max_fee),
        value=big_endian_to_int(value),
        gas_per_pubdata=big_endian_to_int(gas_per_pubdata),
        factory_deps=tuple(factory_deps),
        paymaster=paymaster,
        paymaster_input=paymaster_input,
        custom_signature=signature,
    )


class EnvelopeBuilder:
    """Collects envelope fields as each stage makes them available.

    Fields can be set once. ``finalize`` checks that nothing is missing and
    returns an immutable envelope ready for signing.
    """

    def __init__(self, target: str, payload: bytes, chain_id: int, origin: str, value: int = 0):
        if value < 0:
            raise ValueError("Value must be non-negative")
        self.target = to_checksum_address(target)
        self.origin = to_checksum_address(origin)
        self.payload = bytes(payload)
        self.chain_id = chain_id
        self.value = value
        self.nonce: Optional[int] = None
        self.gas_limit: Optional[int] = None
        self.gas_price: Optional[int] = None

    def with_nonce(self, nonce: int) -> 'EnvelopeBuilder':
        if self.nonce is not None:
            raise ValueError("Nonce already set")
        if nonce < 0:
            raise ValueError("Nonce must be non-negative")
        self.nonce = nonce
        return self

    def with_fees(self, gas_limit: int, gas_price: int) -> 'EnvelopeBuilder':
        if self.gas_limit is not None or self.gas_price is not None:
            raise ValueError("Fees already set")
        self.gas_limit = gas_limit
        self.gas_price = gas_price
        return self

    def draft(self) -> dict:
        """Call parameters for fee simulation"""
        return {
            "from": self.origin,
            "to": self.target,
            "data": encode_hex(self.payload),
            "value": self.value,
        }

    def missing_fields(self) -> list:
        missing = []
        for name in ("nonce", "chain_id", "gas_limit", "gas_price"):
            if getattr(self, name) is None:
                missing.append(name)
        return missing

    def finalize(self) -> TransactionEnvelope:
        missing = self.missing_fields()
        if missing:
            raise SigningError(f"Envelope incomplete, missing: {', '.join(missing)}")

        return TransactionEnvelope(
            to=self.target,
            origin=self.origin,
            data=self.payload,
            nonce=self.nonce,
            chain_id=self.chain_id,
            gas_limit=self.gas_limit,
            gas_price=self.gas_price,
            value=self.value,
        )
