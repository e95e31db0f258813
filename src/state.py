from typing import Dict, Optional

from models import Transaction, ClientAccount


class StateManager:
    """
    Owns the two ledger tables for a single run: client accounts keyed by
    client id, and stored deposits/withdrawals keyed by transaction id.
    """

    def __init__(self):
        self._accounts: Dict[int, ClientAccount] = {}
        self._transactions: Dict[int, Transaction] = {}

    def get_or_create_account(self, client_id: int) -> ClientAccount:
        """Get existing account or create an empty unlocked one."""
        if client_id not in self._accounts:
            self._accounts[client_id] = ClientAccount(client_id=client_id)
        return self._accounts[client_id]

    def store_transaction(self, transaction: Transaction) -> None:
        """Store transaction for future dispute lookups, replacing any entry with the same id."""
        self._transactions[transaction.transaction_id] = transaction

    def get_transaction(self, transaction_id: int) -> Optional[Transaction]:
        return self._transactions.get(transaction_id)

    def get_all_transactions(self) -> Dict[int, Transaction]:
        return dict(self._transactions)

    def get_all_accounts(self) -> Dict[int, ClientAccount]:
        """Return all accounts (for final output)."""
        return dict(self._accounts)
