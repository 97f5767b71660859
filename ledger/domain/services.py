"""
Ledger domain services.

``TokenLedgerPolicy`` holds the state machine rules shared by the
application handlers. It never touches the store.
"""
from typing import Optional

from core.domain.value_objects import ErrorKind
from ledger.domain.record import LedgerState, LicenseRecord

# Accounts are cut off as soon as the balance reaches this value.
TERMINATION_THRESHOLD = 0


class TokenLedgerPolicy:
    """Domain service for claim, consume and validity rules."""

    @staticmethod
    def is_valid_amount(amount) -> bool:
        """
        Check a token amount for consume and add operations.

        Args:
            amount: Requested amount

        Returns:
            True for positive integers (booleans excluded)
        """
        return isinstance(amount, int) and not isinstance(amount, bool) and amount > 0

    @staticmethod
    def claim_rejection(record: LicenseRecord) -> Optional[ErrorKind]:
        """
        Check whether an order may be claimed.

        Termination is checked first: a terminated order is never
        reactivated, whatever its activated flag says.

        Args:
            record: Order record

        Returns:
            Rejection kind, or None if the claim may proceed
        """
        if record.state is LedgerState.TERMINATED:
            return ErrorKind.ALREADY_TERMINATED
        if record.state is LedgerState.ACTIVE:
            return ErrorKind.ALREADY_ACTIVATED
        return None

    @staticmethod
    def consume_rejection(record: LicenseRecord, amount: int) -> Optional[ErrorKind]:
        """
        Check sufficiency against the pre-deduction balance.

        Args:
            record: Serial record
            amount: Tokens to deduct

        Returns:
            Rejection kind, or None if the deduction may proceed
        """
        if record.token_balance < amount:
            return ErrorKind.INSUFFICIENT_TOKENS
        return None

    @staticmethod
    def should_terminate(record: LicenseRecord, new_balance: int) -> bool:
        """
        Decide whether a deduction terminates the account.

        Already-terminated records are never terminated again, which keeps
        the terminated flag write idempotent.
        """
        return new_balance <= TERMINATION_THRESHOLD and not record.terminated

    @staticmethod
    def is_account_valid(record: LicenseRecord) -> bool:
        """An account is usable when not terminated and holding tokens."""
        return not record.terminated and record.token_balance > 0
