"""
Guardian Wallet - client-side orchestration for a programmable account:
guardian social recovery and threshold-approved withdrawals
"""

from .actors import Actor, ActorRegistry, Role
from .credentials import SigningCredential
from .envelope import EnvelopeBuilder, TransactionEnvelope
from .executor import StepExecutor
from .fees import FeeEstimator
from .guardians import GuardianManager
from .recovery import RecoveryWorkflow
from .states import RecoveryProcess, RecoveryState, WithdrawRequest, WithdrawState
from .submission import SubmissionPipeline
from .vault import VaultWorkflow

__version__ = "0.1.0"
__all__ = [
    "Actor",
    "ActorRegistry",
    "Role",
    "SigningCredential",
    "EnvelopeBuilder",
    "TransactionEnvelope",
    "StepExecutor",
    "FeeEstimator",
    "GuardianManager",
    "RecoveryWorkflow",
    "RecoveryProcess",
    "RecoveryState",
    "WithdrawRequest",
    "WithdrawState",
    "SubmissionPipeline",
    "VaultWorkflow",
]
