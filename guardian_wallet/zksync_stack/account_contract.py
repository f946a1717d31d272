"""
Account Contract and factory (Python implementation for the development network)

Mirrors the on-chain authorization rules the orchestration layer relies on:
owner-only guardian and vault management, guardian-only recovery and
approvals, distinct supporting guardian, approval threshold, terminal
cancellation.
"""

from dataclasses import dataclass, field
from typing import List, Optional

from eth_abi import encode
from eth_utils import keccak, to_checksum_address

from ..contract import ACCOUNT, FACTORY, ContractInterface
from ..create2 import create2_address
from ..states import ZERO_ADDRESS

DEFAULT_WITHDRAW_THRESHOLD = 2


class Revert(Exception):
    """Contract execution reverted"""


@dataclass
class CallContext:
    """Who is calling, with how much value, on which network"""
    sender: str
    value: int
    network: 'DevNetwork'


class SimulatedContract:
    """Dispatches decoded calls to ``fn_<name>`` methods"""

    interface: ContractInterface = None

    def __init__(self, address: str):
        self.address = to_checksum_address(address)

    def execute(self, ctx: CallContext, name: str, args: tuple) -> tuple:
        handler = getattr(self, f"fn_{name}", None)
        if handler is None:
            raise Revert(f"function {name} not implemented")
        result = handler(ctx, *args)
        return () if result is None else result


@dataclass
class _RecoveryRecord:
    initiator: str = ZERO_ADDRESS
    proposed: str = ZERO_ADDRESS
    supporters: List[str] = field(default_factory=list)


@dataclass
class _WithdrawRecord:
    amount: int
    recipient: str
    approvers: List[str] = field(default_factory=list)
    executed: bool = False
    cancelled: bool = False


class AccountContract(SimulatedContract):
    """Smart account with guardians, social recovery and a withdraw vault"""

    interface = ACCOUNT

    def __init__(self, address: str, signing_address: str, withdraw_threshold: int = DEFAULT_WITHDRAW_THRESHOLD):
        super().__init__(address)
        self.signing_address = to_checksum_address(signing_address)
        self.withdraw_threshold = withdraw_threshold
        self.guardians: List[str] = []
        self.recovery = _RecoveryRecord()
        self.requests: List[_WithdrawRecord] = []

    def is_authorized_signer(self, signer: str) -> bool:
        return to_checksum_address(signer) == self.signing_address

    # access checks

    def _only_self(self, ctx: CallContext):
        if ctx.sender != self.address:
            raise Revert("caller is not the account")

    def _only_guardian(self, ctx: CallContext):
        if ctx.sender not in self.guardians:
            raise Revert("caller is not a guardian")

    def _request(self, request_id: int) -> _WithdrawRecord:
        if request_id >= len(self.requests):
            raise Revert("unknown withdraw request")
        return self.requests[request_id]

    # guardians

    def fn_addGuardian(self, ctx, guardian):
        self._only_self(ctx)
        guardian = to_checksum_address(guardian)
        if guardian == ZERO_ADDRESS:
            raise Revert("zero address guardian")
        if guardian in self.guardians:
            raise Revert("already a guardian")
        self.guardians.append(guardian)

    def fn_removeGuardian(self, ctx, index):
        self._only_self(ctx)
        if index >= len(self.guardians):
            raise Revert("guardian index out of range")
        self.guardians.pop(index)

    def fn_getGuardians(self, ctx):
        return (list(self.guardians),)

    # recovery

    def fn_initiateRecovery(self, ctx, new_signer):
        self._only_guardian(ctx)
        if self.recovery.initiator != ZERO_ADDRESS:
            raise Revert("recovery already in progress")
        self.recovery = _RecoveryRecord(ctx.sender, to_checksum_address(new_signer))

    def fn_supportRecovery(self, ctx):
        self._only_guardian(ctx)
        if self.recovery.initiator == ZERO_ADDRESS:
            raise Revert("no recovery in progress")
        if ctx.sender == self.recovery.initiator:
            raise Revert("initiator cannot support")
        if ctx.sender in self.recovery.supporters:
            raise Revert("already supported")
        self.recovery.supporters.append(ctx.sender)

    def fn_executeRecovery(self, ctx):
        self._only_guardian(ctx)
        if self.recovery.initiator == ZERO_ADDRESS or not self.recovery.supporters:
            raise Revert("recovery not supported")
        self.signing_address = self.recovery.proposed
        self.recovery = _RecoveryRecord()

    def fn_getSigningAddress(self, ctx):
        return (self.signing_address,)

    def fn_getRecoveryProcess(self, ctx):
        return (self.recovery.initiator, self.recovery.proposed, list(self.recovery.supporters))

    # vault

    def fn_createWithdrawRequest(self, ctx, amount, recipient):
        self._only_self(ctx)
        self.requests.append(_WithdrawRecord(amount, to_checksum_address(recipient)))

    def fn_approveWithdrawRequest(self, ctx, request_id):
        self._only_guardian(ctx)
        request = self._request(request_id)
        if request.executed or request.cancelled:
            raise Revert("request closed")
        if ctx.sender in request.approvers:
            raise Revert("already approved")
        request.approvers.append(ctx.sender)

    def fn_executeWithdrawRequest(self, ctx, request_id):
        self._only_self(ctx)
        request = self._request(request_id)
        if request.executed or request.cancelled:
            raise Revert("request closed")
        approvals = [a for a in request.approvers if a in self.guardians]
        if len(approvals) < self.withdraw_threshold:
            raise Revert("not enough approvals")
        request.executed = True
        ctx.network.transfer(self.address, request.recipient, request.amount)

    def fn_cancelWithdrawRequest(self, ctx, request_id):
        self._only_self(ctx)
        request = self._request(request_id)
        if request.executed or request.cancelled:
            raise Revert("request closed")
        request.cancelled = True

    def fn_getWithdrawRequests(self, ctx):
        return ([
            (r.amount, r.recipient, list(r.approvers), r.executed, r.cancelled)
            for r in self.requests
        ],)

    def fn_getWithdrawThreshold(self, ctx):
        return (self.withdraw_threshold,)


class AccountFactory(SimulatedContract):
    """Deploys AccountContract instances at their create2 address"""

    interface = FACTORY

    def __init__(self, address: str, bytecode_hash: Optional[bytes] = None,
                 withdraw_threshold: int = DEFAULT_WITHDRAW_THRESHOLD):
        super().__init__(address)
        self.bytecode_hash = bytecode_hash or keccak(text="guardian-wallet:AccountContract")
        self.withdraw_threshold = withdraw_threshold

    def fn_deployAccount(self, ctx, salt, signing_address):
        signing_address = to_checksum_address(signing_address)
        address = create2_address(
            self.address, self.bytecode_hash, salt, encode(["address"], [signing_address])
        )
        if ctx.network.has_contract(address):
            raise Revert("account already deployed")
        ctx.network.install(AccountContract(address, signing_address, self.withdraw_threshold))

    def fn_aaBytecodeHash(self, ctx):
        return (self.bytecode_hash,)
