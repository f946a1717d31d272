"""
Vault sub-protocol: threshold-approved withdrawals from an account.

    (none) --createWithdrawRequest(amount, to)--> CREATED          (owner)
    CREATED --approveWithdrawRequest(id) x threshold--> APPROVED   (guardians, one envelope each)
    APPROVED --executeWithdrawRequest(id)--> EXECUTED              (owner)
    CREATED/APPROVED --cancelWithdrawRequest(id)--> CANCELLED      (owner)
"""

import logging
from typing import List, Optional

from eth_utils import to_checksum_address

from .actors import Actor, ActorRegistry, FUNDER
from .contract import ACCOUNT, AccountClient
from .errors import PreconditionFailure, InvalidTransition, StateVerificationError
from .executor import StepExecutor
from .rules import ProtocolRules
from .states import WithdrawRequest, WithdrawState

logger = logging.getLogger(__name__)


class VaultWorkflow:
    """Drives withdraw requests of one account"""

    def __init__(self, executor: StepExecutor, registry: ActorRegistry, account_address: str,
                 rules: Optional[ProtocolRules] = None):
        self.executor = executor
        self.registry = registry
        self.account = AccountClient(executor.provider, account_address)
        self.rules = rules or ProtocolRules.default()

    def _owner(self, step: str) -> Actor:
        owner = self.registry.owner()
        if owner.address != self.account.address:
            raise PreconditionFailure(
                f"Owner actor controls {owner.address}, not {self.account.address}",
                step=step, actor=owner.name,
            )
        return owner

    def _request(self, request_id: int, step: str) -> WithdrawRequest:
        try:
            return self.account.withdraw_request(request_id)
        except PreconditionFailure as exc:
            raise exc.with_context(step=step, account=self.account.address)

    def _fail(self, error_cls, message: str, step: str, actor: Actor):
        raise error_cls(message, step=step, actor=actor.name, account=self.account.address)

    def preflight(self, step: str = "vault preflight"):
        """Balance floors checked before any transaction of a multi-step run"""
        funder_balance = None
        if FUNDER in self.registry:
            funder_balance = self.executor.provider.get_balance(self.registry.get(FUNDER).address)
        self.rules.require(self.rules.check_balances(funder_balance, self.account.balance()), step=step)

    def requests(self) -> List[WithdrawRequest]:
        return self.account.withdraw_requests()

    def create_request(self, amount: int, recipient: str) -> WithdrawRequest:
        step = "create withdraw request"
        owner = self._owner(step)
        recipient = to_checksum_address(recipient)
        self.rules.require(self.rules.validate_withdrawal(amount, self.account.balance()), step=step)

        before = len(self.requests())
        self.executor.execute(
            step, owner, self.account.address,
            ACCOUNT.encode_call("createWithdrawRequest", amount, recipient),
        )

        requests = self.requests()
        if len(requests) != before + 1:
            self._fail(StateVerificationError, f"Expected request {before}, account has {len(requests)}", step, owner)
        request = requests[before]
        if request.amount != amount or request.recipient != recipient:
            self._fail(StateVerificationError, f"Request {before} does not match what was submitted", step, owner)

        logger.info("Withdraw request %d created: %d wei to %s", request.request_id, amount, recipient)
        return request

    def approve(self, request_id: int, guardians: Optional[List[str]] = None) -> WithdrawRequest:
        """Collect guardian approvals, one confirmed envelope per guardian, until the threshold is met"""
        step = "approve withdraw request"
        request = self._request(request_id, step)
        if request.is_terminal:
            raise InvalidTransition(
                f"Withdraw request {request_id} is {request.state.value}",
                step=step, account=self.account.address,
            )
        if request.state == WithdrawState.APPROVED:
            return request

        candidates = [self.registry.get(name) for name in guardians] if guardians else self.registry.guardians()
        on_chain = self.account.guardians()
        eligible = []
        for actor in candidates:
            if actor.address in on_chain and actor.address not in request.approvers \
                    and actor.address not in [a.address for a in eligible]:
                eligible.append(actor)

        if len(eligible) < request.approvals_missing:
            raise PreconditionFailure(
                f"Request {request_id} needs {request.approvals_missing} more approvals, "
                f"only {len(eligible)} eligible guardians available",
                step=step, account=self.account.address,
            )

        for actor in eligible:
            # membership and approvals may change between steps
            request = self._request(request_id, step)
            if request.state == WithdrawState.APPROVED:
                break
            allowed, reason = request.check_approver(actor.address)
            if not allowed:
                self._fail(InvalidTransition, reason, step, actor)
            if actor.address not in self.account.guardians():
                self._fail(PreconditionFailure, f"{actor.address} is no longer a guardian", step, actor)

            self.executor.execute(
                step, actor, self.account.address,
                ACCOUNT.encode_call("approveWithdrawRequest", request_id),
            )

            request = self._request(request_id, step)
            if actor.address not in request.approvers:
                self._fail(StateVerificationError, f"Approval of request {request_id} not recorded", step, actor)
            logger.info("Request %d approved by %s (%d/%d)",
                        request_id, actor.name, len(request.counted_approvers), request.threshold)

        if request.state != WithdrawState.APPROVED:
            raise StateVerificationError(
                f"Request {request_id} still {request.state.value} after approvals",
                step=step, account=self.account.address,
            )
        return request

    def execute(self, request_id: int) -> WithdrawRequest:
        step = "execute withdraw request"
        owner = self._owner(step)
        request = self._request(request_id, step)
        allowed, reason = request.check_transition(WithdrawState.EXECUTED)
        if not allowed:
            self._fail(InvalidTransition, reason, step, owner)

        self.executor.execute(
            step, owner, self.account.address,
            ACCOUNT.encode_call("executeWithdrawRequest", request_id),
        )

        request = self._request(request_id, step)
        if request.state != WithdrawState.EXECUTED:
            self._fail(StateVerificationError, f"Request {request_id} is {request.state.value}", step, owner)

        logger.info("Request %d executed: %d wei sent to %s", request_id, request.amount, request.recipient)
        return request

    def cancel(self, request_id: int) -> WithdrawRequest:
        step = "cancel withdraw request"
        owner = self._owner(step)
        request = self._request(request_id, step)
        allowed, reason = request.check_transition(WithdrawState.CANCELLED)
        if not allowed:
            self._fail(InvalidTransition, reason, step, owner)

        self.executor.execute(
            step, owner, self.account.address,
            ACCOUNT.encode_call("cancelWithdrawRequest", request_id),
        )

        request = self._request(request_id, step)
        if request.state != WithdrawState.CANCELLED:
            self._fail(StateVerificationError, f"Request {request_id} is {request.state.value}", step, owner)

        logger.info("Request %d cancelled", request_id)
        return request

    def run_withdrawal(self, amount: int, recipient: str,
                       guardians: Optional[List[str]] = None) -> WithdrawRequest:
        """Create, approve and execute a withdrawal in one sequential run"""
        self.preflight()
        request = self.create_request(amount, recipient)
        self.approve(request.request_id, guardians)
        return self.execute(request.request_id)
