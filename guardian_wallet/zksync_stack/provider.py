"""
Network provider surface and its web3.py JSON-RPC implementation
"""

import logging
from dataclasses import dataclass
from typing import Optional

from eth_utils import encode_hex, to_checksum_address
from web3 import Web3
from web3.exceptions import TransactionNotFound, Web3Exception

logger = logging.getLogger(__name__)


class ProviderError(Exception):
    """Network call failed or the network rejected the request"""


@dataclass(frozen=True)
class Receipt:
    """Inclusion record for a broadcast envelope"""
    tx_hash: str
    block_number: int
    status: int
    gas_used: int = 0

    @property
    def succeeded(self) -> bool:
        return self.status == 1


class NetworkProvider:
    """Operations the orchestration layer needs from a network"""

    def chain_id(self) -> int:
        raise NotImplementedError

    def gas_price(self) -> int:
        raise NotImplementedError

    def estimate_gas(self, call: dict) -> int:
        raise NotImplementedError

    def get_transaction_count(self, address: str) -> int:
        raise NotImplementedError

    def get_balance(self, address: str) -> int:
        raise NotImplementedError

    def call(self, to: str, data: bytes) -> bytes:
        raise NotImplementedError

    def send_raw_transaction(self, raw: bytes) -> str:
        """Broadcast; returns the transaction hash as 0x-hex"""
        raise NotImplementedError

    def get_transaction_receipt(self, tx_hash: str) -> Optional[Receipt]:
        """Receipt once included, None while pending"""
        raise NotImplementedError

    def block_number(self) -> int:
        raise NotImplementedError


# web3 raises RPC errors as ValueError on older releases and transport
# errors as requests' IOError subclasses
_WEB3_ERRORS = (Web3Exception, ValueError, OSError)


class Web3Provider(NetworkProvider):
    """NetworkProvider backed by a zkSync JSON-RPC endpoint"""

    def __init__(self, w3: Web3):
        self.w3 = w3

    @classmethod
    def from_url(cls, rpc_url: str, timeout: int = 30) -> 'Web3Provider':
        return cls(Web3(Web3.HTTPProvider(rpc_url, request_kwargs={"timeout": timeout})))

    def _rpc(self, what: str, fn, *args):
        try:
            return fn(*args)
        except _WEB3_ERRORS as exc:
            raise ProviderError(f"{what} failed: {exc}") from exc

    def chain_id(self) -> int:
        return int(self._rpc("eth_chainId", lambda: self.w3.eth.chain_id))

    def gas_price(self) -> int:
        return int(self._rpc("eth_gasPrice", lambda: self.w3.eth.gas_price))

    def estimate_gas(self, call: dict) -> int:
        return self._rpc("eth_estimateGas", self.w3.eth.estimate_gas, call)

    def get_transaction_count(self, address: str) -> int:
        return int(self._rpc(
            "eth_getTransactionCount", self.w3.eth.get_transaction_count, to_checksum_address(address)
        ))

    def get_balance(self, address: str) -> int:
        return int(self._rpc("eth_getBalance", self.w3.eth.get_balance, to_checksum_address(address)))

    def call(self, to: str, data: bytes) -> bytes:
        result = self._rpc("eth_call", self.w3.eth.call, {
            "to": to_checksum_address(to),
            "data": encode_hex(data),
        })
        return bytes(result)

    def send_raw_transaction(self, raw: bytes) -> str:
        tx_hash = self._rpc("eth_sendRawTransaction", self.w3.eth.send_raw_transaction, raw)
        logger.debug("Broadcast %d bytes as %s", len(raw), encode_hex(bytes(tx_hash)))
        return encode_hex(bytes(tx_hash))

    def get_transaction_receipt(self, tx_hash: str) -> Optional[Receipt]:
        try:
            receipt = self.w3.eth.get_transaction_receipt(tx_hash)
        except TransactionNotFound:
            return None
        except _WEB3_ERRORS as exc:
            raise ProviderError(f"eth_getTransactionReceipt failed: {exc}") from exc

        if receipt is None or receipt.get("blockNumber") is None:
            return None
        return Receipt(
            tx_hash=tx_hash,
            block_number=int(receipt["blockNumber"]),
            status=int(receipt["status"]),
            gas_used=int(receipt.get("gasUsed", 0)),
        )

    def block_number(self) -> int:
        return int(self._rpc("eth_blockNumber", lambda: self.w3.eth.block_number))
