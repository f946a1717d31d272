"""
In-memory development network implementing the provider surface.

Envelopes are decoded from their wire form and checked the way the
network and the account contract check them: signature over the typed
digest (account signing key for contract origins, the origin's own key
otherwise), exact nonce, fee affordability. Each accepted envelope is
mined into its own block; reverted envelopes are still included and
consume their nonce.
"""

import copy
import logging
from collections import defaultdict
from typing import Dict, Optional

from eth_utils import encode_hex, keccak, to_checksum_address

from ..credentials import recover_address
from ..envelope import decode_envelope
from ..errors import SigningError
from ..signer import digest
from ..states import ZERO_ADDRESS
from ..submission import SubmissionPipeline, CONFIRMATION_DEPTH
from .account_contract import AccountContract, AccountFactory, CallContext, Revert, SimulatedContract
from .provider import NetworkProvider, ProviderError, Receipt

logger = logging.getLogger(__name__)

DEVNET_CHAIN_ID = 270
DEVNET_GAS_PRICE = 250_000_000  # 0.25 gwei
GAS_PER_CALL = 150_000


class DevNetwork(NetworkProvider):
    """Single-process chain for demos and tests"""

    def __init__(self, chain_id: int = DEVNET_CHAIN_ID, gas_price: int = DEVNET_GAS_PRICE,
                 gas_per_call: int = GAS_PER_CALL, automine: bool = True):
        self._chain_id = chain_id
        self._gas_price = gas_price
        self.gas_per_call = gas_per_call
        self.automine = automine
        self.balances: Dict[str, int] = defaultdict(int)
        self.nonces: Dict[str, int] = defaultdict(int)
        self.contracts: Dict[str, SimulatedContract] = {}
        self.receipts: Dict[str, Receipt] = {}
        self.height = 0
        self._next_factory = 1

    # setup helpers

    def fund(self, address: str, amount: int):
        """Genesis credit"""
        self.balances[to_checksum_address(address)] += amount

    def install(self, contract: SimulatedContract) -> SimulatedContract:
        if contract.address in self.contracts:
            raise ValueError(f"Contract already at {contract.address}")
        self.contracts[contract.address] = contract
        return contract

    def has_contract(self, address: str) -> bool:
        return to_checksum_address(address) in self.contracts

    def deploy_factory(self, bytecode_hash: Optional[bytes] = None, withdraw_threshold: int = 2) -> str:
        address = to_checksum_address(keccak(text=f"devnet-factory-{self._next_factory}")[-20:])
        self._next_factory += 1
        self.install(AccountFactory(address, bytecode_hash, withdraw_threshold))
        return address

    def deploy_account(self, signing_address: str, withdraw_threshold: int = 2) -> str:
        """Install an account directly, bypassing the factory"""
        address = to_checksum_address(keccak(text=f"devnet-account-{signing_address}")[-20:])
        self.install(AccountContract(address, signing_address, withdraw_threshold))
        return address

    def pipeline(self, confirmations: int = CONFIRMATION_DEPTH, timeout: float = 30.0) -> SubmissionPipeline:
        """Submission pipeline that polls without sleeping"""
        return SubmissionPipeline(self, confirmations=confirmations, timeout=timeout,
                                  poll_interval=0, sleep=lambda _: None)

    def mine(self, blocks: int = 1) -> int:
        self.height += blocks
        return self.height

    def transfer(self, source: str, destination: str, amount: int):
        if self.balances[source] < amount:
            raise Revert(f"insufficient balance in {source}")
        self.balances[source] -= amount
        self.balances[to_checksum_address(destination)] += amount

    # execution

    def _snapshot(self):
        return dict(self.balances), copy.deepcopy(self.contracts)

    def _restore(self, snapshot):
        """Roll back in place so contract objects keep their identity"""
        balances, contracts = snapshot
        self.balances.clear()
        self.balances.update(balances)

        for address in list(self.contracts):
            if address not in contracts:
                del self.contracts[address]
        for address, saved in contracts.items():
            live = self.contracts.get(address)
            if live is None:
                self.contracts[address] = saved
            else:
                live.__dict__.clear()
                live.__dict__.update(saved.__dict__)

    def _apply(self, sender: str, to: str, value: int, data: bytes) -> tuple:
        if value:
            self.transfer(sender, to, value)

        contract = self.contracts.get(to)
        if contract is None or not data:
            return ()

        try:
            name, args = contract.interface.decode_call(data)
        except KeyError:
            raise Revert("unknown function selector") from None
        except Exception as exc:
            raise Revert(f"bad calldata: {exc}") from exc
        return contract.execute(CallContext(sender, value, self), name, args)

    # NetworkProvider

    def chain_id(self) -> int:
        return self._chain_id

    def gas_price(self) -> int:
        return self._gas_price

    def estimate_gas(self, call: dict) -> int:
        data = call.get("data") or b""
        if isinstance(data, str):
            data = bytes.fromhex(data[2:] if data.startswith("0x") else data)

        snapshot = self._snapshot()
        try:
            self._apply(
                to_checksum_address(call["from"]), to_checksum_address(call["to"]),
                call.get("value", 0), data,
            )
        except Revert as exc:
            raise ProviderError(f"execution reverted: {exc}") from exc
        finally:
            self._restore(snapshot)
        return self.gas_per_call

    def get_transaction_count(self, address: str) -> int:
        return self.nonces[to_checksum_address(address)]

    def get_balance(self, address: str) -> int:
        return self.balances[to_checksum_address(address)]

    def call(self, to: str, data: bytes) -> bytes:
        contract = self.contracts.get(to_checksum_address(to))
        if contract is None:
            return b""

        snapshot = self._snapshot()
        try:
            name, args = contract.interface.decode_call(data)
            result = contract.execute(CallContext(ZERO_ADDRESS, 0, self), name, args)
        except KeyError:
            raise ProviderError("unknown function selector") from None
        except Revert as exc:
            raise ProviderError(f"execution reverted: {exc}") from exc
        finally:
            self._restore(snapshot)
        return contract.interface.encode_result(name, *result)

    def _authorize(self, envelope) -> None:
        try:
            signer = recover_address(digest(envelope), envelope.custom_signature)
        except SigningError as exc:
            raise ProviderError(f"invalid signature: {exc}") from exc

        account = self.contracts.get(envelope.origin)
        if isinstance(account, AccountContract):
            authorized = account.is_authorized_signer(signer)
        else:
            authorized = signer == envelope.origin
        if not authorized:
            raise ProviderError(f"signature mismatch: {signer} cannot act for {envelope.origin}")

    def send_raw_transaction(self, raw: bytes) -> str:
        try:
            envelope = decode_envelope(bytes(raw))
        except Exception as exc:
            raise ProviderError(f"malformed transaction: {exc}") from exc

        if envelope.chain_id != self._chain_id:
            raise ProviderError(f"wrong chain id {envelope.chain_id}")
        self._authorize(envelope)

        origin = envelope.origin
        expected = self.nonces[origin]
        if envelope.nonce != expected:
            raise ProviderError(f"nonce mismatch for {origin}: expected {expected}, got {envelope.nonce}")

        gas_used = min(envelope.gas_limit, self.gas_per_call)
        fee = gas_used * envelope.gas_price
        if self.balances[origin] < fee + envelope.value:
            raise ProviderError(f"insufficient funds for fee and value in {origin}")

        tx_hash = encode_hex(keccak(bytes(raw)))
        self.nonces[origin] += 1
        self.balances[origin] -= fee

        snapshot = self._snapshot()
        status = 1
        try:
            self._apply(origin, envelope.to, envelope.value, envelope.data)
        except Revert as exc:
            logger.debug("%s reverted: %s", tx_hash, exc)
            self._restore(snapshot)
            status = 0

        self.height += 1
        self.receipts[tx_hash] = Receipt(tx_hash, self.height, status, gas_used)
        return tx_hash

    def get_transaction_receipt(self, tx_hash: str) -> Optional[Receipt]:
        return self.receipts.get(tx_hash)

    def block_number(self) -> int:
        # each poll produces an empty block so confirmation waits make progress
        if self.automine:
            self.height += 1
        return self.height
