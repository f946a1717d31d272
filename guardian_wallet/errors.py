"""
Error taxonomy for orchestrated account protocols
"""

from typing import Optional


class GuardianWalletError(Exception):
    """Base error carrying the step, actor and account it happened in"""

    def __init__(self, message: str, step: Optional[str] = None,
                 actor: Optional[str] = None, account: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.step = step
        self.actor = actor
        self.account = account

    def with_context(self, step: Optional[str] = None, actor: Optional[str] = None,
                     account: Optional[str] = None) -> 'GuardianWalletError':
        """Fill in missing context, keeping what is already set"""
        self.step = self.step or step
        self.actor = self.actor or actor
        self.account = self.account or account
        return self

    def __str__(self) -> str:
        context = [
            f"{name}={value}"
            for name, value in (("step", self.step), ("actor", self.actor), ("account", self.account))
            if value
        ]
        if not context:
            return self.message
        return f"{self.message} [{', '.join(context)}]"


class EstimationFailure(GuardianWalletError):
    """Fee limit simulation failed; recovered with the fallback limit"""


class FeeQueryFailure(GuardianWalletError):
    """Live fee price could not be fetched"""


class SigningError(GuardianWalletError):
    """Malformed credential or incomplete envelope"""


class SubmissionError(GuardianWalletError):
    """Network state unreadable, broadcast rejected, transaction reverted or
    confirmation timed out.

    On-chain protocol state may already have advanced; re-query it before
    reissuing anything.
    """

    def __init__(self, message: str, tx_hash: Optional[str] = None, **context):
        super().__init__(message, **context)
        self.tx_hash = tx_hash


class PreconditionFailure(GuardianWalletError):
    """Local guard failed before any transaction was sent"""


class InvalidTransition(PreconditionFailure):
    """Observed protocol state does not allow the requested step"""


class StateVerificationError(GuardianWalletError):
    """State queried after a confirmed step differs from what the step should produce"""
