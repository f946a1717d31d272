"""
zkSync stack - network provider surface, web3 adapter and an in-memory
development network (import ``guardian_wallet.zksync_stack.devnet`` for it)
"""

from .provider import NetworkProvider, ProviderError, Receipt, Web3Provider

__all__ = [
    "NetworkProvider",
    "ProviderError",
    "Receipt",
    "Web3Provider",
]
