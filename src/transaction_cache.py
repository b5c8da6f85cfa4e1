from typing import Dict, Optional

from errors import DuplicateTransactionId
from models import CachedTransaction, TransactionId


class TransactionCache:
    """
    Stores every accepted deposit and withdrawal for later dispute lookups.
    Entries are never removed.
    """

    def __init__(self):
        self._transactions: Dict[TransactionId, CachedTransaction] = {}

    def record(self, transaction_id: TransactionId, entry: CachedTransaction) -> None:
        """
        Store a transaction for future dispute lookups.

        Raises:
            DuplicateTransactionId: the id was already recorded
        """
        if transaction_id in self._transactions:
            raise DuplicateTransactionId(transaction_id)
        self._transactions[transaction_id] = entry

    def lookup(self, transaction_id: TransactionId) -> Optional[CachedTransaction]:
        """Retrieve stored transaction by ID."""
        return self._transactions.get(transaction_id)

    def contains(self, transaction_id: TransactionId) -> bool:
        return transaction_id in self._transactions

    def __len__(self) -> int:
        return len(self._transactions)
