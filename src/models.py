from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Optional


MAX_CLIENT_ID = 2**16 - 1
MAX_TRANSACTION_ID = 2**32 - 1


class LedgerError(Exception):
    """Fatal error: the run is aborted and no report is produced."""


class MalformedRecordError(LedgerError):
    """An input row could not be parsed into a transaction."""


class MissingAmountError(LedgerError):
    """A transaction that needs an amount does not carry one."""


class TransactionType(Enum):
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    DISPUTE = "dispute"
    RESOLVE = "resolve"
    CHARGEBACK = "chargeback"


class ProcessingResult(Enum):
    APPLIED = "applied"
    FAILED = "failed"
    IGNORED = "ignored"


@dataclass
class Transaction:
    transaction_type: TransactionType
    client_id: int
    transaction_id: int
    amount: Optional[Decimal] = None
    is_under_dispute: bool = False
    failed: bool = False

    def signed_amount(self) -> Optional[Decimal]:
        """
        Amount moved by a dispute, resolve or chargeback of this transaction.

        Withdrawals move in the opposite direction of deposits, so a disputed
        withdrawal raises available funds and lowers held funds.
        """
        if self.amount is None:
            return None
        if self.transaction_type == TransactionType.WITHDRAWAL:
            return -self.amount
        return self.amount

    def __repr__(self) -> str:
        return f"Transaction({self.transaction_type.value}, client={self.client_id}, tx={self.transaction_id}, amount={self.amount})"


@dataclass
class ClientAccount:
    client_id: int
    available: Decimal = Decimal("0")
    held: Decimal = Decimal("0")
    locked: bool = False

    @property
    def total(self) -> Decimal:
        return self.available + self.held

    def credit(self, amount: Decimal) -> None:
        self.available += amount

    def debit(self, amount: Decimal) -> None:
        self.available -= amount

    def hold(self, amount: Decimal) -> None:
        self.available -= amount
        self.held += amount

    def release_hold(self, amount: Decimal) -> None:
        self.held -= amount
        self.available += amount

    def remove_held(self, amount: Decimal) -> None:
        self.held -= amount

    def lock(self) -> None:
        self.locked = True


class ProcessingStats:
    """Counters for tracking processing outcomes."""

    def __init__(self):
        self.applied = 0
        self.failed = 0
        self.ignored = 0

    def record(self, result: ProcessingResult) -> None:
        if result == ProcessingResult.APPLIED:
            self.applied += 1
        elif result == ProcessingResult.FAILED:
            self.failed += 1
        else:
            self.ignored += 1

    @property
    def processed(self) -> int:
        return self.applied + self.failed + self.ignored
