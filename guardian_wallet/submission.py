"""
Submission Pipeline - broadcast a signed envelope and wait for confirmation depth
"""

import logging
import time
from typing import Callable

from .envelope import TransactionEnvelope
from .errors import SubmissionError
from .zksync_stack.provider import NetworkProvider, ProviderError, Receipt

logger = logging.getLogger(__name__)

CONFIRMATION_DEPTH = 6
DEFAULT_TIMEOUT = 300.0  # seconds
DEFAULT_POLL_INTERVAL = 1.0


class SubmissionPipeline:
    """Broadcasts envelopes and blocks until they are final"""

    def __init__(self, provider: NetworkProvider, confirmations: int = CONFIRMATION_DEPTH,
                 timeout: float = DEFAULT_TIMEOUT, poll_interval: float = DEFAULT_POLL_INTERVAL,
                 clock: Callable[[], float] = time.monotonic,
                 sleep: Callable[[float], None] = time.sleep):
        if confirmations < 1:
            raise ValueError("Confirmation depth must be at least 1")
        self.provider = provider
        self.confirmations = confirmations
        self.timeout = timeout
        self.poll_interval = poll_interval
        self._clock = clock
        self._sleep = sleep

    def broadcast(self, envelope: TransactionEnvelope) -> str:
        if not envelope.is_signed:
            raise SubmissionError("Envelope is not signed")
        try:
            tx_hash = self.provider.send_raw_transaction(envelope.serialize())
        except ProviderError as exc:
            raise SubmissionError(f"Broadcast rejected: {exc}") from exc

        logger.info("Broadcast nonce %d from %s as %s", envelope.nonce, envelope.origin, tx_hash)
        return tx_hash

    def wait(self, tx_hash: str) -> Receipt:
        """Block until tx_hash is buried under the configured confirmation depth"""
        deadline = self._clock() + self.timeout

        while True:
            try:
                receipt = self.provider.get_transaction_receipt(tx_hash)
                if receipt is not None:
                    if not receipt.succeeded:
                        raise SubmissionError(
                            f"Transaction reverted in block {receipt.block_number}", tx_hash=tx_hash
                        )
                    depth = self.provider.block_number() - receipt.block_number + 1
                    if depth >= self.confirmations:
                        logger.info("%s confirmed (%d blocks)", tx_hash, depth)
                        return receipt
            except ProviderError as exc:
                # transient polling errors count against the deadline only
                logger.debug("Polling %s failed: %s", tx_hash, exc)

            if self._clock() >= deadline:
                raise SubmissionError(
                    f"Not confirmed to depth {self.confirmations} within {self.timeout}s", tx_hash=tx_hash
                )
            self._sleep(self.poll_interval)

    def submit(self, envelope: TransactionEnvelope) -> Receipt:
        return self.wait(self.broadcast(envelope))
