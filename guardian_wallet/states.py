"""
Client-side models of the account's recovery and withdraw-request state machines.

The account contract remains authoritative; these models are rebuilt from
fresh queries before every step so the orchestrator can refuse a step the
observed state does not allow.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from eth_utils import to_checksum_address

from .errors import InvalidTransition

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"


class RecoveryState(Enum):
    NONE = "none"
    INITIATED = "initiated"
    SUPPORTED = "supported"
    EXECUTED = "executed"


class WithdrawState(Enum):
    CREATED = "created"
    APPROVED = "approved"
    EXECUTED = "executed"
    CANCELLED = "cancelled"


RECOVERY_TRANSITIONS = {
    RecoveryState.NONE: {RecoveryState.INITIATED},
    RecoveryState.INITIATED: {RecoveryState.SUPPORTED},
    RecoveryState.SUPPORTED: {RecoveryState.EXECUTED},
    RecoveryState.EXECUTED: set(),
}

WITHDRAW_TRANSITIONS = {
    WithdrawState.CREATED: {WithdrawState.APPROVED, WithdrawState.CANCELLED},
    WithdrawState.APPROVED: {WithdrawState.EXECUTED, WithdrawState.CANCELLED},
    WithdrawState.EXECUTED: set(),
    WithdrawState.CANCELLED: set(),
}


def _is_zero(address: Optional[str]) -> bool:
    return address is None or int(address, 16) == 0


@dataclass(frozen=True)
class RecoveryProcess:
    """Observed recovery process of an account"""
    state: RecoveryState
    initiator: Optional[str] = None
    proposed_signer: Optional[str] = None
    supporters: Tuple[str, ...] = ()

    @classmethod
    def from_chain(cls, initiator: str, proposed_signer: str, supporters) -> 'RecoveryProcess':
        """Build from the raw getRecoveryProcess() tuple"""
        if _is_zero(initiator):
            return cls(RecoveryState.NONE)

        supporters = tuple(to_checksum_address(s) for s in supporters)
        state = RecoveryState.SUPPORTED if supporters else RecoveryState.INITIATED
        return cls(
            state,
            to_checksum_address(initiator),
            to_checksum_address(proposed_signer),
            supporters,
        )

    def check_transition(self, target: RecoveryState) -> Tuple[bool, str]:
        if target in RECOVERY_TRANSITIONS[self.state]:
            return True, "Transition allowed"
        return False, f"Recovery is {self.state.value}, cannot move to {target.value}"

    def require_transition(self, target: RecoveryState):
        allowed, reason = self.check_transition(target)
        if not allowed:
            raise InvalidTransition(reason)

    def check_supporter(self, guardian: str) -> Tuple[bool, str]:
        """A supporter must be distinct from the initiator and not have supported already"""
        guardian = to_checksum_address(guardian)
        if guardian == self.initiator:
            return False, "Supporting guardian must differ from the initiator"
        if guardian in self.supporters:
            return False, "Guardian already supports this recovery"
        return True, "Supporter allowed"


@dataclass(frozen=True)
class WithdrawRequest:
    """Observed withdraw request"""
    request_id: int
    amount: int
    recipient: str
    approvers: Tuple[str, ...] = ()
    executed: bool = False
    cancelled: bool = False
    threshold: int = 0
    # current guardian set; None counts every recorded approver
    guardians: Optional[Tuple[str, ...]] = None

    @classmethod
    def from_chain(cls, request_id: int, raw: tuple, threshold: int,
                   guardians: Optional[Tuple[str, ...]] = None) -> 'WithdrawRequest':
        """Build from one getWithdrawRequests() element and the account's current guardians"""
        amount, recipient, approvers, executed, cancelled = raw
        return cls(
            request_id=request_id,
            amount=int(amount),
            recipient=to_checksum_address(recipient),
            approvers=tuple(to_checksum_address(a) for a in approvers),
            executed=bool(executed),
            cancelled=bool(cancelled),
            threshold=int(threshold),
            guardians=None if guardians is None else tuple(to_checksum_address(g) for g in guardians),
        )

    @property
    def counted_approvers(self) -> Tuple[str, ...]:
        """Approvers the account counts toward the threshold: those still guardians"""
        if self.guardians is None:
            return self.approvers
        return tuple(a for a in self.approvers if a in self.guardians)

    @property
    def state(self) -> WithdrawState:
        if self.cancelled:
            return WithdrawState.CANCELLED
        if self.executed:
            return WithdrawState.EXECUTED
        if len(self.counted_approvers) >= self.threshold:
            return WithdrawState.APPROVED
        return WithdrawState.CREATED

    @property
    def approvals_missing(self) -> int:
        return max(self.threshold - len(self.counted_approvers), 0)

    @property
    def is_terminal(self) -> bool:
        return not WITHDRAW_TRANSITIONS[self.state]

    def check_transition(self, target: WithdrawState) -> Tuple[bool, str]:
        if target in WITHDRAW_TRANSITIONS[self.state]:
            return True, "Transition allowed"
        return False, f"Withdraw request {self.request_id} is {self.state.value}, cannot move to {target.value}"

    def require_transition(self, target: WithdrawState):
        allowed, reason = self.check_transition(target)
        if not allowed:
            raise InvalidTransition(reason)

    def check_approver(self, guardian: str) -> Tuple[bool, str]:
        if self.is_terminal:
            return False, f"Withdraw request {self.request_id} is {self.state.value}"
        if to_checksum_address(guardian) in self.approvers:
            return False, "Guardian already approved this request"
        return True, "Approval allowed"
