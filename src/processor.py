import logging
from decimal import Decimal
from typing import Optional

from models import (
    Transaction,
    TransactionType,
    ClientAccount,
    ProcessingResult,
    MissingAmountError,
)
from state import StateManager

logger = logging.getLogger(__name__)


class TransactionProcessor:
    """
    Applies transactions to ledger state, one at a time, in arrival order.

    Returns a ProcessingResult describing the outcome. Business no-ops
    (unknown or foreign transaction ids, wrong dispute state) are IGNORED,
    never raised. A record that lacks a required amount raises
    MissingAmountError and must abort the run.
    """

    def __init__(self, state: StateManager):
        self._state = state

    def process(self, transaction: Transaction) -> ProcessingResult:
        account = self._state.get_or_create_account(transaction.client_id)

        match transaction.transaction_type:
            case TransactionType.DEPOSIT:
                return self._handle_deposit(account, transaction)
            case TransactionType.WITHDRAWAL:
                return self._handle_withdrawal(account, transaction)
            case TransactionType.DISPUTE:
                return self._handle_dispute(account, transaction)
            case TransactionType.RESOLVE:
                return self._handle_resolve(account, transaction)
            case TransactionType.CHARGEBACK:
                return self._handle_chargeback(account, transaction)

        raise ValueError(f"Unsupported transaction type: {transaction.transaction_type}")

    def _handle_deposit(self, account: ClientAccount, transaction: Transaction) -> ProcessingResult:
        if transaction.amount is None:
            raise MissingAmountError("Deposit transaction without amount")

        account.credit(transaction.amount)
        self._state.store_transaction(transaction)
        return ProcessingResult.APPLIED

    def _handle_withdrawal(self, account: ClientAccount, transaction: Transaction) -> ProcessingResult:
        if transaction.amount is None:
            raise MissingAmountError("Withdraw transaction without amount")

        if transaction.amount <= account.available:
            account.debit(transaction.amount)
            self._state.store_transaction(transaction)
            return ProcessingResult.APPLIED

        transaction.failed = True
        self._state.store_transaction(transaction)
        logger.debug(f"Insufficient funds for {transaction}, available={account.available}")
        return ProcessingResult.FAILED

    def _handle_dispute(self, account: ClientAccount, transaction: Transaction) -> ProcessingResult:
        original = self._find_disputable(account, transaction, under_dispute=False)
        if original is None:
            return ProcessingResult.IGNORED

        original.is_under_dispute = True
        amount = self._require_signed_amount(original, "Dispute references transaction without amount")
        account.hold(amount)
        return ProcessingResult.APPLIED

    def _handle_resolve(self, account: ClientAccount, transaction: Transaction) -> ProcessingResult:
        original = self._find_disputable(account, transaction, under_dispute=True)
        if original is None:
            return ProcessingResult.IGNORED

        original.is_under_dispute = False
        amount = self._require_signed_amount(original, "Resolve references transaction without amount")
        account.release_hold(amount)
        return ProcessingResult.APPLIED

    def _handle_chargeback(self, account: ClientAccount, transaction: Transaction) -> ProcessingResult:
        original = self._find_disputable(account, transaction, under_dispute=True)
        if original is None:
            return ProcessingResult.IGNORED

        original.is_under_dispute = False
        amount = self._require_signed_amount(original, "Dispute references transaction without amount")
        account.remove_held(amount)
        account.lock()
        return ProcessingResult.APPLIED

    def _find_disputable(
        self, account: ClientAccount, transaction: Transaction, under_dispute: bool
    ) -> Optional[Transaction]:
        """
        Look up the transaction referenced by a dispute, resolve or chargeback.

        Returns None when the id is unknown, when the stored transaction belongs
        to another client, or when its dispute state does not match.
        """
        original = self._state.get_transaction(transaction.transaction_id)

        if original is None:
            logger.debug(f"Ignoring {transaction}: transaction not found")
            return None

        if original.client_id != account.client_id:
            logger.debug(f"Ignoring {transaction}: transaction belongs to client {original.client_id}")
            return None

        if original.is_under_dispute != under_dispute:
            state = "already" if original.is_under_dispute else "not"
            logger.debug(f"Ignoring {transaction}: transaction is {state} under dispute")
            return None

        return original

    @staticmethod
    def _require_signed_amount(original: Transaction, message: str) -> Decimal:
        amount = original.signed_amount()
        if amount is None:
            raise MissingAmountError(message)
        return amount
