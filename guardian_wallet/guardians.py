"""
Guardian set management; only owner-originated envelopes may change it
"""

import logging
from typing import Tuple

from eth_utils import to_checksum_address

from .actors import Actor, ActorRegistry
from .contract import ACCOUNT, AccountClient
from .errors import InvalidTransition, PreconditionFailure, StateVerificationError
from .executor import StepExecutor

logger = logging.getLogger(__name__)


class GuardianManager:
    """Add, remove and list the guardians of one account"""

    def __init__(self, executor: StepExecutor, registry: ActorRegistry, account_address: str):
        self.executor = executor
        self.registry = registry
        self.account = AccountClient(executor.provider, account_address)

    def _owner(self, step: str) -> Actor:
        owner = self.registry.owner()
        if owner.address != self.account.address:
            raise PreconditionFailure(
                f"Owner actor controls {owner.address}, not {self.account.address}",
                step=step, actor=owner.name,
            )
        return owner

    def guardians(self) -> Tuple[str, ...]:
        return self.account.guardians()

    def add(self, guardian_address: str) -> Tuple[str, ...]:
        step = "add guardian"
        owner = self._owner(step)
        guardian_address = to_checksum_address(guardian_address)

        if guardian_address in self.guardians():
            raise InvalidTransition(
                f"{guardian_address} is already a guardian",
                step=step, actor=owner.name, account=self.account.address,
            )

        self.executor.execute(step, owner, self.account.address, ACCOUNT.encode_call("addGuardian", guardian_address))

        guardians = self.guardians()
        if guardian_address not in guardians:
            raise StateVerificationError(
                f"{guardian_address} missing from guardian set after add",
                step=step, actor=owner.name, account=self.account.address,
            )
        logger.info("Guardians of %s: %s", self.account.address, ", ".join(guardians))
        return guardians

    def ensure(self, *guardian_addresses: str) -> Tuple[str, ...]:
        """Add each address that is not yet a guardian, in order"""
        guardians = self.guardians()
        for address in guardian_addresses:
            if to_checksum_address(address) not in guardians:
                guardians = self.add(address)
        return guardians

    def remove(self, index: int) -> Tuple[str, ...]:
        step = "remove guardian"
        owner = self._owner(step)

        before = self.guardians()
        if not 0 <= index < len(before):
            raise PreconditionFailure(
                f"No guardian at index {index} ({len(before)} registered)",
                step=step, actor=owner.name, account=self.account.address,
            )
        removed = before[index]

        self.executor.execute(step, owner, self.account.address, ACCOUNT.encode_call("removeGuardian", index))

        guardians = self.guardians()
        if removed in guardians:
            raise StateVerificationError(
                f"{removed} still a guardian after removal",
                step=step, actor=owner.name, account=self.account.address,
            )
        logger.info("Removed guardian %s from %s", removed, self.account.address)
        return guardians
