"""
Account setup steps: deploy through the factory, fund, provision guardian accounts.

Each step persists what it created to the config store so later runs can
pick it up.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Tuple

from eth_utils import to_checksum_address

from .actors import OWNER, Actor, Role, guardian_name
from .config import ConfigStore
from .contract import FACTORY, AccountClient, FactoryClient
from .create2 import ZERO_SALT, account_address
from .credentials import SigningCredential
from .errors import StateVerificationError
from .executor import StepExecutor
from .rules import to_wei
from .zksync_stack.provider import ProviderError, Receipt

logger = logging.getLogger(__name__)

DEFAULT_FUNDING = to_wei(0.001)


@dataclass(frozen=True)
class Account:
    """A deployed account contract"""
    address: str
    code_hash: bytes
    salt: bytes = ZERO_SALT


class AccountDeployer:
    """Deploys and funds accounts using a funding actor's envelopes"""

    def __init__(self, executor: StepExecutor, factory_address: str, store: Optional[ConfigStore] = None):
        self.executor = executor
        self.factory = FactoryClient(executor.provider, factory_address)
        self.store = store

    def predict_address(self, signing_address: str, salt: bytes = ZERO_SALT) -> str:
        return account_address(self.factory.address, self.factory.bytecode_hash(), signing_address, salt)

    def deploy_account(self, deployer: Actor, signing_address: str, salt: bytes = ZERO_SALT) -> Account:
        step = "deploy account"
        signing_address = to_checksum_address(signing_address)
        code_hash = self.factory.bytecode_hash()
        address = account_address(self.factory.address, code_hash, signing_address, salt)

        self.executor.execute(
            step, deployer, self.factory.address,
            FACTORY.encode_call("deployAccount", salt, signing_address),
        )

        try:
            deployed_signer = AccountClient(self.executor.provider, address).signing_address()
        except ProviderError as exc:
            raise StateVerificationError(
                f"No account answering at derived address {address}: {exc}",
                step=step, actor=deployer.name, account=address,
            ) from exc
        if deployed_signer != signing_address:
            raise StateVerificationError(
                f"Account at {address} is controlled by {deployed_signer}, expected {signing_address}",
                step=step, actor=deployer.name, account=address,
            )

        logger.info("Account deployed at %s", address)
        return Account(address, code_hash, salt)

    def fund(self, funder: Actor, address: str, amount: int = DEFAULT_FUNDING) -> Receipt:
        receipt = self.executor.execute("fund account", funder, address, b"", value=amount)
        logger.info("Funded %s with %d wei", address, amount)
        return receipt

    def create_wallet(self, deployer: Actor, amount: Optional[int] = None) -> Tuple[Actor, Account]:
        """Deploy the owner account with a fresh signing key, optionally funding it"""
        credential = SigningCredential.generate()
        account = self.deploy_account(deployer, credential.address)
        # key is on disk before any value is sent to the account
        if self.store is not None:
            self.store.append(WALLET_ADDRESS=account.address, WALLET_SIGNING_KEY=credential.private_key_hex)
        if amount:
            self.fund(deployer, account.address, amount)
        return Actor(OWNER, Role.OWNER, account.address, credential), account

    def provision_guardian(self, funder: Actor, index: int, amount: int = DEFAULT_FUNDING) -> Actor:
        """Deploy a guardian account, record its address and key, then fund it"""
        credential = SigningCredential.generate()
        account = self.deploy_account(funder, credential.address)
        if self.store is not None:
            self.store.append(**{
                f"GUARDIAN_ADDRESS_{index}": account.address,
                f"GUARDIAN_SK_{index}": credential.private_key_hex,
            })

        self.fund(funder, account.address, amount)
        return Actor(guardian_name(index), Role.GUARDIAN, account.address, credential)
