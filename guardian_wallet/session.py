"""
Wiring for scripts: settings -> provider, executor, actor registry, workflows
"""

import logging
from typing import Optional, Tuple

from .actors import ActorRegistry
from .config import ConfigStore, Settings, DEFAULT_CONFIG_PATH
from .credentials import SigningCredential
from .deployment import AccountDeployer
from .executor import StepExecutor
from .guardians import GuardianManager
from .recovery import RecoveryWorkflow
from .rules import ProtocolRules
from .states import RecoveryProcess
from .vault import VaultWorkflow
from .zksync_stack.provider import NetworkProvider, Web3Provider

logger = logging.getLogger(__name__)


class Session:
    """Everything one orchestrated run needs, built from persisted configuration"""

    def __init__(self, provider: NetworkProvider, registry: ActorRegistry, settings: Settings,
                 store: Optional[ConfigStore] = None, executor: Optional[StepExecutor] = None):
        self.provider = provider
        self.registry = registry
        self.settings = settings
        self.store = store
        self.executor = executor or StepExecutor(provider)

    @classmethod
    def from_config(cls, path=DEFAULT_CONFIG_PATH, provider: Optional[NetworkProvider] = None,
                    executor: Optional[StepExecutor] = None) -> 'Session':
        settings = Settings.load(path)
        if provider is None:
            provider = Web3Provider.from_url(settings.require("RPC_URL"))
        return cls(provider, ActorRegistry.from_settings(settings), settings, ConfigStore(path), executor)

    def reload(self) -> 'Session':
        """Pick up values appended to the config file since this session was built"""
        settings = Settings.load(self.store.path) if self.store else self.settings
        return Session(self.provider, ActorRegistry.from_settings(settings), settings, self.store, self.executor)

    @property
    def wallet_address(self) -> str:
        return self.settings.require("WALLET_ADDRESS")

    def deployer(self) -> AccountDeployer:
        return AccountDeployer(self.executor, self.settings.require("FACTORY_ADDRESS"), self.store)

    def guardians(self) -> GuardianManager:
        return GuardianManager(self.executor, self.registry, self.wallet_address)

    def vault(self, rules: Optional[ProtocolRules] = None) -> VaultWorkflow:
        return VaultWorkflow(self.executor, self.registry, self.wallet_address, rules)

    def recovery(self) -> RecoveryWorkflow:
        return RecoveryWorkflow(self.executor, self.registry, self.wallet_address)

    def recover(self, initiator: str, supporter: str) -> Tuple[RecoveryProcess, SigningCredential]:
        """Guardian recovery with the replacement key persisted before the first step is sent.

        The key is recorded as PENDING_WALLET_SIGNING_KEY up front and as
        WALLET_SIGNING_KEY once the account reports it as its signer.
        """
        credential = SigningCredential.generate()
        if self.store is not None:
            self.store.append(PENDING_WALLET_SIGNING_KEY=credential.private_key_hex)
            logger.info("Replacement signing key for %s recorded as pending", self.wallet_address)

        process, credential = self.recovery().run(initiator, supporter, credential)

        if self.store is not None:
            self.store.append(WALLET_SIGNING_KEY=credential.private_key_hex)
        return process, credential
