"""
Recovery sub-protocol: guardians replace a lost account signing key.

    NONE --initiateRecovery(addr)--> INITIATED   (guardian A)
    INITIATED --supportRecovery()--> SUPPORTED   (guardian B, B != A)
    SUPPORTED --executeRecovery()--> EXECUTED    (any guardian; B here)

Every transition is its own confirmed envelope cycle. The process is
re-read from the account before and after each step.
"""

import logging
from typing import Optional, Tuple

from eth_utils import to_checksum_address

from .actors import Actor, ActorRegistry, Role
from .contract import ACCOUNT, AccountClient
from .credentials import SigningCredential
from .errors import PreconditionFailure, InvalidTransition, StateVerificationError
from .executor import StepExecutor
from .states import RecoveryProcess, RecoveryState

logger = logging.getLogger(__name__)


class RecoveryWorkflow:
    """Drives guardian social recovery of one account"""

    def __init__(self, executor: StepExecutor, registry: ActorRegistry, account_address: str):
        self.executor = executor
        self.registry = registry
        self.account = AccountClient(executor.provider, account_address)

    def status(self) -> RecoveryProcess:
        return self.account.recovery_process()

    def _guardian(self, name: str, step: str) -> Actor:
        """Registry actor that is a guardian both locally and on-chain right now"""
        actor = self.registry.get(name)
        if actor.role != Role.GUARDIAN:
            raise PreconditionFailure(f"{name} is not a guardian actor", step=step, actor=name)
        if actor.address not in self.account.guardians():
            raise PreconditionFailure(
                f"{actor.address} is not a guardian of {self.account.address}",
                step=step, actor=name, account=self.account.address,
            )
        return actor

    def _fail(self, error_cls, message: str, step: str, actor: Actor):
        raise error_cls(message, step=step, actor=actor.name, account=self.account.address)

    def initiate(self, guardian: str, new_signing_address: str) -> RecoveryProcess:
        step = "initiate recovery"
        actor = self._guardian(guardian, step)
        new_signing_address = to_checksum_address(new_signing_address)

        process = self.status()
        allowed, reason = process.check_transition(RecoveryState.INITIATED)
        if not allowed:
            self._fail(InvalidTransition, reason, step, actor)

        self.executor.execute(
            step, actor, self.account.address,
            ACCOUNT.encode_call("initiateRecovery", new_signing_address),
        )

        process = self.status()
        if (process.state != RecoveryState.INITIATED
                or process.initiator != actor.address
                or process.proposed_signer != new_signing_address):
            self._fail(StateVerificationError, f"Recovery not initiated as requested: {process}", step, actor)

        logger.info("Recovery initiated by %s for new signer %s", actor.name, new_signing_address)
        return process

    def support(self, guardian: str) -> RecoveryProcess:
        step = "support recovery"
        actor = self._guardian(guardian, step)

        process = self.status()
        for allowed, reason in (process.check_transition(RecoveryState.SUPPORTED),
                                process.check_supporter(actor.address)):
            if not allowed:
                self._fail(InvalidTransition, reason, step, actor)

        self.executor.execute(step, actor, self.account.address, ACCOUNT.encode_call("supportRecovery"))

        process = self.status()
        if process.state != RecoveryState.SUPPORTED or actor.address not in process.supporters:
            self._fail(StateVerificationError, f"Support not recorded: {process}", step, actor)

        logger.info("Recovery supported by %s", actor.name)
        return process

    def execute(self, guardian: str) -> RecoveryProcess:
        step = "execute recovery"
        actor = self._guardian(guardian, step)

        process = self.status()
        allowed, reason = process.check_transition(RecoveryState.EXECUTED)
        if not allowed:
            self._fail(InvalidTransition, reason, step, actor)

        self.executor.execute(step, actor, self.account.address, ACCOUNT.encode_call("executeRecovery"))

        # success of the transaction alone does not prove the key was replaced
        signer = self.account.signing_address()
        if signer != process.proposed_signer:
            self._fail(
                StateVerificationError,
                f"Signing address is {signer}, expected {process.proposed_signer}",
                step, actor,
            )

        logger.info("Recovery executed; signing address is now %s", signer)
        return RecoveryProcess(
            RecoveryState.EXECUTED, process.initiator, process.proposed_signer, process.supporters
        )

    def run(self, initiator: str, supporter: str,
            new_credential: Optional[SigningCredential] = None) -> Tuple[RecoveryProcess, SigningCredential]:
        """Full recovery: initiate, support by a second guardian, execute, verify.

        Returns the executed process and the credential now controlling the
        account. A registered owner actor for this account is rebound to it.
        """
        if initiator == supporter:
            raise PreconditionFailure("Initiating and supporting guardians must differ", step="recovery")

        credential = new_credential or SigningCredential.generate()
        self.initiate(initiator, credential.address)
        self.support(supporter)
        process = self.execute(supporter)

        for owner in self.registry.by_role(Role.OWNER):
            if owner.address == self.account.address:
                self.registry.rebind(owner.name, credential)
                logger.info("Rebound %s to the recovered signing key", owner.name)

        return process, credential
