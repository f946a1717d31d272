"""
Actor Registry - logical roles bound to an origin address and a signing credential
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional

from eth_utils import is_address, to_checksum_address

from .credentials import SigningCredential
from .errors import PreconditionFailure

OWNER = "owner"
FUNDER = "funder"


def guardian_name(index: int) -> str:
    return f"guardian-{index}"


class Role(Enum):
    OWNER = "owner"
    GUARDIAN = "guardian"
    THIRD_PARTY = "third_party"


@dataclass
class Actor:
    """A signer: origin account address plus the key that authorizes it.

    For account contracts the credential's own address differs from
    ``address``; for plain externally-owned accounts they are equal.
    """
    name: str
    role: Role
    address: str
    credential: SigningCredential

    def __post_init__(self):
        if not is_address(self.address):
            raise ValueError(f"Actor {self.name} has an invalid address: {self.address!r}")
        self.address = to_checksum_address(self.address)

    @classmethod
    def externally_owned(cls, name: str, role: Role, credential: SigningCredential) -> 'Actor':
        """Actor whose origin address is its own key's address"""
        return cls(name, role, credential.address, credential)


class ActorRegistry:
    """Role name -> Actor lookup; no I/O"""

    def __init__(self, actors: Optional[List[Actor]] = None):
        self._actors: Dict[str, Actor] = {}
        for actor in actors or []:
            self.register(actor)

    def register(self, actor: Actor) -> Actor:
        if actor.name in self._actors:
            raise ValueError(f"Actor {actor.name} already registered")
        self._actors[actor.name] = actor
        return actor

    def rebind(self, name: str, credential: SigningCredential) -> Actor:
        """Replace the credential of an existing actor, keeping its address"""
        current = self.get(name)
        actor = Actor(current.name, current.role, current.address, credential)
        self._actors[name] = actor
        return actor

    def get(self, name: str) -> Actor:
        try:
            return self._actors[name]
        except KeyError:
            raise PreconditionFailure(f"No actor registered as {name!r}") from None

    def __contains__(self, name: str) -> bool:
        return name in self._actors

    def __len__(self) -> int:
        return len(self._actors)

    def by_role(self, role: Role) -> List[Actor]:
        """Actors of a role, in registration order"""
        return [actor for actor in self._actors.values() if actor.role == role]

    def owner(self) -> Actor:
        owners = self.by_role(Role.OWNER)
        if not owners:
            raise PreconditionFailure("No owner actor registered")
        return owners[0]

    def guardians(self) -> List[Actor]:
        return self.by_role(Role.GUARDIAN)

    def find_by_address(self, address: str) -> Optional[Actor]:
        address = to_checksum_address(address)
        for actor in self._actors.values():
            if actor.address == address:
                return actor
        return None

    @classmethod
    def from_settings(cls, settings: 'Settings') -> 'ActorRegistry':
        """Build the registry from persisted configuration values"""
        registry = cls()

        if settings.private_key:
            registry.register(Actor.externally_owned(
                FUNDER, Role.THIRD_PARTY, SigningCredential.from_hex(settings.private_key)
            ))

        if settings.wallet_address and settings.wallet_signing_key:
            registry.register(Actor(
                OWNER, Role.OWNER, settings.wallet_address,
                SigningCredential.from_hex(settings.wallet_signing_key)
            ))

        for index, (address, key) in sorted(settings.guardians().items()):
            registry.register(Actor(
                guardian_name(index), Role.GUARDIAN, address, SigningCredential.from_hex(key)
            ))

        return registry
