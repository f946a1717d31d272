from dataclasses import dataclass
from typing import Optional

from .errors import PreconditionFailure

WEI_PER_ETHER = 10 ** 18


def to_wei(ether: float) -> int:
    return int(round(ether * WEI_PER_ETHER))


def from_wei(wei: int) -> float:
    return wei / WEI_PER_ETHER


@dataclass
class ProtocolRules:
    """Local pre-flight guards checked before a multi-step flow sends anything"""

    # Balance floors (wei)
    min_funder_balance: int
    min_account_balance: int

    # Withdrawals
    max_single_withdrawal: Optional[int] = None

    @classmethod
    def default(cls) -> 'ProtocolRules':
        """Floors used by the testnet scripts"""
        return cls(
            min_funder_balance=to_wei(0.01),
            min_account_balance=to_wei(0.0015),
        )

    @classmethod
    def permissive(cls) -> 'ProtocolRules':
        """No balance floors"""
        return cls(min_funder_balance=0, min_account_balance=0)

    def check_balances(self, funder_balance: Optional[int], account_balance: int) -> tuple[bool, str]:
        """Check that the funding account and the protocol account can pay for a run"""
        if funder_balance is not None and funder_balance < self.min_funder_balance:
            return False, f"Funder balance {from_wei(funder_balance)} ETH below {from_wei(self.min_funder_balance)} ETH"

        if account_balance < self.min_account_balance:
            return False, f"Account balance {from_wei(account_balance)} ETH below {from_wei(self.min_account_balance)} ETH"

        return True, "Balances sufficient"

    def validate_withdrawal(self, amount: int, account_balance: int) -> tuple[bool, str]:
        """Validate a withdraw request before creating it"""
        if amount <= 0:
            return False, "Withdrawal amount must be positive"

        if self.max_single_withdrawal is not None and amount > self.max_single_withdrawal:
            return False, f"Withdrawal {amount} exceeds maximum {self.max_single_withdrawal}"

        if amount > account_balance:
            return False, f"Insufficient balance: need {amount}, have {account_balance}"

        return True, "Valid withdrawal"

    def require(self, result: tuple[bool, str], step: Optional[str] = None):
        ok, reason = result
        if not ok:
            raise PreconditionFailure(reason, step=step)
