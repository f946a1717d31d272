"""
Persisted configuration: flat KEY="value" file written append-only by setup steps
"""

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Mapping, Optional, Tuple

from dotenv import dotenv_values

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = ".env"

_KEY_PATTERN = re.compile(r"^[A-Z_][A-Z0-9_]*$")
_GUARDIAN_ADDRESS = re.compile(r"^GUARDIAN_ADDRESS_(\d+)$")
_GUARDIAN_KEY = re.compile(r"^GUARDIAN_(ADDRESS|SK)_\d+$")

KNOWN_KEYS = (
    "RPC_URL",
    "FACTORY_ADDRESS",
    "PRIVATE_KEY",
    "WALLET_ADDRESS",
    "WALLET_SIGNING_KEY",
    "PENDING_WALLET_SIGNING_KEY",
)


class ConfigStore:
    """Key/value file; later lines override earlier ones"""

    def __init__(self, path=DEFAULT_CONFIG_PATH):
        self.path = Path(path)

    def load(self) -> Dict[str, str]:
        values = {}
        if not self.path.exists():
            return values

        for key, value in dotenv_values(self.path, interpolate=False).items():
            if value is None:
                logger.warning("Ignoring %s without a value in %s", key, self.path)
                continue
            values[key] = value
        return values

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        return self.load().get(key, default)

    def append(self, **pairs: str):
        """Record values at the end of the file; existing lines are never rewritten"""
        lines = []
        for key, value in pairs.items():
            value = str(value)
            if not _KEY_PATTERN.match(key):
                raise ValueError(f"Invalid config key {key!r}")
            if any(ch in value for ch in "\"\n\r"):
                raise ValueError(f"Invalid characters in value for {key}")
            lines.append(f'{key}="{value}"\n')

        with open(self.path, "a") as fh:
            fh.writelines(lines)
        logger.info("Recorded %s in %s", ", ".join(pairs), self.path)


@dataclass
class Settings:
    """Values the scripts read from the config file and the environment"""
    values: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def load(cls, path=DEFAULT_CONFIG_PATH, environ: Optional[Mapping[str, str]] = None) -> 'Settings':
        values = ConfigStore(path).load()
        environ = os.environ if environ is None else environ
        # environment wins over the file
        values.update({k: v for k, v in environ.items() if is_known_key(k)})
        return cls(values)

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        value = self.values.get(key)
        return value if value else default

    def require(self, key: str) -> str:
        value = self.get(key)
        if value is None:
            raise KeyError(f"Missing configuration value {key}")
        return value

    @property
    def rpc_url(self) -> Optional[str]:
        return self.get("RPC_URL")

    @property
    def factory_address(self) -> Optional[str]:
        return self.get("FACTORY_ADDRESS")

    @property
    def private_key(self) -> Optional[str]:
        return self.get("PRIVATE_KEY")

    @property
    def wallet_address(self) -> Optional[str]:
        return self.get("WALLET_ADDRESS")

    @property
    def wallet_signing_key(self) -> Optional[str]:
        return self.get("WALLET_SIGNING_KEY")

    def guardians(self) -> Dict[int, Tuple[str, str]]:
        """index -> (guardian account address, guardian signing key)"""
        guardians = {}
        for key, address in self.values.items():
            match = _GUARDIAN_ADDRESS.match(key)
            if not match or not address:
                continue
            signing_key = self.get(f"GUARDIAN_SK_{match.group(1)}")
            if signing_key:
                guardians[int(match.group(1))] = (address, signing_key)
        return guardians


def is_known_key(key: str) -> bool:
    return key in KNOWN_KEYS or bool(_GUARDIAN_KEY.match(key))
