"""
One protocol step: build -> estimate -> sign -> submit -> wait
"""

import logging

from eth_utils import to_checksum_address

from .actors import Actor
from .envelope import EnvelopeBuilder
from .errors import GuardianWalletError, SubmissionError
from .fees import FeeEstimator
from .signer import sign
from .submission import SubmissionPipeline
from .zksync_stack.provider import NetworkProvider, ProviderError, Receipt

logger = logging.getLogger(__name__)


class StepExecutor:
    """Runs a single envelope cycle on behalf of an actor.

    The nonce is read from the network only after the previous step has
    been confirmed, so steps must be executed strictly one after another.
    """

    def __init__(self, provider: NetworkProvider, estimator: FeeEstimator = None,
                 pipeline: SubmissionPipeline = None):
        self.provider = provider
        self.estimator = estimator or FeeEstimator(provider)
        self.pipeline = pipeline or SubmissionPipeline(provider)

    def execute(self, step: str, actor: Actor, target: str, payload: bytes = b"", value: int = 0) -> Receipt:
        target = to_checksum_address(target)
        logger.info("[%s] %s -> %s", step, actor.name, target)
        try:
            builder = self._build(actor, target, payload, value)
            builder.with_fees(*self.estimator.estimate(builder))
            envelope = sign(builder.finalize(), actor.credential)
            receipt = self.pipeline.submit(envelope)
        except GuardianWalletError as exc:
            raise exc.with_context(step=step, actor=actor.name, account=actor.address)

        logger.info("[%s] confirmed in block %d (%s)", step, receipt.block_number, receipt.tx_hash)
        return receipt

    def _build(self, actor: Actor, target: str, payload: bytes, value: int) -> EnvelopeBuilder:
        try:
            chain_id = self.provider.chain_id()
            nonce = self.provider.get_transaction_count(actor.address)
        except ProviderError as exc:
            raise SubmissionError(f"Could not read chain id / nonce: {exc}") from exc
        return EnvelopeBuilder(target, payload, chain_id, actor.address, value).with_nonce(nonce)
