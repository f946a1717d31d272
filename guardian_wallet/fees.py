"""
Fee Estimator - simulated fee limit with a fixed fallback, live fee price
"""

import logging
from typing import Tuple, Union

from .envelope import EnvelopeBuilder
from .errors import EstimationFailure, FeeQueryFailure
from .zksync_stack.provider import NetworkProvider, ProviderError

logger = logging.getLogger(__name__)

# Generous ceiling used whenever simulation fails
FALLBACK_GAS_LIMIT = 500_000_000


class FeeEstimator:
    """Produces (gas_limit, gas_price) for an envelope under construction"""

    def __init__(self, provider: NetworkProvider, fallback_gas_limit: int = FALLBACK_GAS_LIMIT):
        self.provider = provider
        self.fallback_gas_limit = fallback_gas_limit

    def estimate_gas_limit(self, call: dict) -> int:
        """Simulated gas limit, or the fallback when simulation fails for any reason"""
        try:
            return self._simulate(call)
        except EstimationFailure as exc:
            logger.warning("Fee limit estimation failed (%s); using fallback %d", exc, self.fallback_gas_limit)
            return self.fallback_gas_limit

    def _simulate(self, call: dict) -> int:
        try:
            estimate = self.provider.estimate_gas(call)
        except Exception as exc:
            raise EstimationFailure(f"simulation failed: {exc}") from exc

        if isinstance(estimate, bool) or not isinstance(estimate, int) or estimate <= 0:
            raise EstimationFailure(f"malformed estimate {estimate!r}")
        return estimate

    def gas_price(self) -> int:
        try:
            price = self.provider.gas_price()
        except ProviderError as exc:
            raise FeeQueryFailure(f"Could not fetch fee price: {exc}") from exc

        if isinstance(price, bool) or not isinstance(price, int) or price <= 0:
            raise FeeQueryFailure(f"Malformed fee price {price!r}")
        return price

    def estimate(self, envelope: Union[EnvelopeBuilder, dict]) -> Tuple[int, int]:
        """Return (gas_limit, gas_price) for a builder or a draft call"""
        call = envelope.draft() if isinstance(envelope, EnvelopeBuilder) else envelope
        gas_limit = self.estimate_gas_limit(call)
        gas_price = self.gas_price()
        return gas_limit, gas_price
