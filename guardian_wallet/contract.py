"""
Account Contract and factory call surface: ABI payload encoding and query decoding
"""

from typing import Dict, List, Tuple

from eth_abi import decode, encode
from eth_utils import keccak, to_checksum_address

from .errors import PreconditionFailure
from .states import RecoveryProcess, WithdrawRequest
from .zksync_stack.provider import NetworkProvider, ProviderError

# name -> (argument types, return types)
ACCOUNT_FUNCTIONS: Dict[str, Tuple[Tuple[str, ...], Tuple[str, ...]]] = {
    # guardian management
    "addGuardian": (("address",), ()),
    "removeGuardian": (("uint256",), ()),
    "getGuardians": ((), ("address[]",)),
    # recovery
    "initiateRecovery": (("address",), ()),
    "supportRecovery": ((), ()),
    "executeRecovery": ((), ()),
    "getSigningAddress": ((), ("address",)),
    "getRecoveryProcess": ((), ("address", "address", "address[]")),
    # vault
    "createWithdrawRequest": (("uint256", "address"), ()),
    "approveWithdrawRequest": (("uint256",), ()),
    "executeWithdrawRequest": (("uint256",), ()),
    "cancelWithdrawRequest": (("uint256",), ()),
    "getWithdrawRequests": ((), ("(uint256,address,address[],bool,bool)[]",)),
    "getWithdrawThreshold": ((), ("uint256",)),
}

FACTORY_FUNCTIONS: Dict[str, Tuple[Tuple[str, ...], Tuple[str, ...]]] = {
    "deployAccount": (("bytes32", "address"), ()),
    "aaBytecodeHash": ((), ("bytes32",)),
}


def function_selector(name: str, arg_types: Tuple[str, ...]) -> bytes:
    return keccak(text=f"{name}({','.join(arg_types)})")[:4]


class ContractInterface:
    """Encodes calls and decodes results for one function table"""

    def __init__(self, functions: Dict[str, Tuple[Tuple[str, ...], Tuple[str, ...]]]):
        self.functions = functions
        self._by_selector = {
            function_selector(name, args): name for name, (args, _) in functions.items()
        }

    def encode_call(self, name: str, *args) -> bytes:
        arg_types, _ = self.functions[name]
        if len(args) != len(arg_types):
            raise ValueError(f"{name} takes {len(arg_types)} arguments, got {len(args)}")
        return function_selector(name, arg_types) + encode(list(arg_types), list(args))

    def decode_call(self, payload: bytes) -> Tuple[str, tuple]:
        """Inverse of encode_call; raises KeyError for an unknown selector"""
        name = self._by_selector[bytes(payload[:4])]
        arg_types, _ = self.functions[name]
        return name, tuple(decode(list(arg_types), bytes(payload[4:])))

    def encode_result(self, name: str, *values) -> bytes:
        _, return_types = self.functions[name]
        return encode(list(return_types), list(values))

    def decode_result(self, name: str, raw: bytes) -> tuple:
        _, return_types = self.functions[name]
        return tuple(decode(list(return_types), raw))


ACCOUNT = ContractInterface(ACCOUNT_FUNCTIONS)
FACTORY = ContractInterface(FACTORY_FUNCTIONS)


class AccountClient:
    """Read-only queries against a deployed account"""

    def __init__(self, provider: NetworkProvider, address: str):
        self.provider = provider
        self.address = to_checksum_address(address)

    def _query(self, name: str) -> tuple:
        raw = self.provider.call(self.address, ACCOUNT.encode_call(name))
        if not raw:
            raise ProviderError(f"{self.address} returned no data for {name}; is it deployed?")
        return ACCOUNT.decode_result(name, raw)

    def balance(self) -> int:
        return self.provider.get_balance(self.address)

    def guardians(self) -> Tuple[str, ...]:
        (guardians,) = self._query("getGuardians")
        return tuple(to_checksum_address(g) for g in guardians)

    def signing_address(self) -> str:
        (address,) = self._query("getSigningAddress")
        return to_checksum_address(address)

    def recovery_process(self) -> RecoveryProcess:
        initiator, proposed, supporters = self._query("getRecoveryProcess")
        return RecoveryProcess.from_chain(initiator, proposed, supporters)

    def withdraw_threshold(self) -> int:
        (threshold,) = self._query("getWithdrawThreshold")
        return int(threshold)

    def withdraw_requests(self) -> List[WithdrawRequest]:
        threshold = self.withdraw_threshold()
        guardians = self.guardians()
        (requests,) = self._query("getWithdrawRequests")
        return [WithdrawRequest.from_chain(i, raw, threshold, guardians) for i, raw in enumerate(requests)]

    def withdraw_request(self, request_id: int) -> WithdrawRequest:
        requests = self.withdraw_requests()
        if not 0 <= request_id < len(requests):
            raise PreconditionFailure(f"No withdraw request {request_id} on {self.address}")
        return requests[request_id]


class FactoryClient:
    """Queries against the account factory"""

    def __init__(self, provider: NetworkProvider, address: str):
        self.provider = provider
        self.address = to_checksum_address(address)

    def bytecode_hash(self) -> bytes:
        raw = self.provider.call(self.address, FACTORY.encode_call("aaBytecodeHash"))
        if not raw:
            raise ProviderError(f"{self.address} returned no bytecode hash; is the factory deployed?")
        (code_hash,) = FACTORY.decode_result("aaBytecodeHash", raw)
        return bytes(code_hash)
