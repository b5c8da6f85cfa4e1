import csv
import logging
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Dict, Iterable, Iterator, List, Optional

from account_ledger import AccountLedger
from errors import InvalidTransactionRecord
from models import (
    AMOUNT_PRECISION,
    MAX_BALANCE,
    AccountView,
    ClientId,
    ProcessingResult,
    ProcessingStats,
    Transaction,
    TransactionId,
    TransactionType,
)
from transaction_cache import TransactionCache
from transaction_processor import TransactionProcessor

logger = logging.getLogger(__name__)

MAX_CLIENT_ID = 2**16 - 1
MAX_TRANSACTION_ID = 2**32 - 1


class PaymentsEngine:
    """
    Replays an ordered stream of transactions against a fresh ledger.
    Transactions are applied one at a time, in input order.
    """

    def __init__(self):
        self._ledger = AccountLedger()
        self._cache = TransactionCache()
        self._processor = TransactionProcessor(self._ledger, self._cache)
        self._stats = ProcessingStats()

    @property
    def stats(self) -> ProcessingStats:
        return self._stats

    def process(self, transaction: Transaction) -> ProcessingResult:
        """Apply one transaction. IntegrityError propagates and ends the run."""
        result = self._processor.process_transaction(transaction)
        if result == ProcessingResult.SUCCESS:
            self._stats.record_success()
        else:
            self._stats.record_ignored()
        return result

    def process_all(self, transactions: Iterable[Transaction]) -> List[AccountView]:
        for transaction in transactions:
            self.process(transaction)
        return self.snapshot()

    def snapshot(self) -> List[AccountView]:
        return self._ledger.snapshot()

    def process_file(self, filepath: str) -> Dict[ClientId, AccountView]:
        """Process CSV file and return final account states keyed by client."""
        logger.info(f"Processing {filepath}")

        with open(filepath, "r", newline="", encoding="utf-8") as f:
            accounts = self.process_all(self.read_transactions(f))

        logger.info(
            f"Processed: {self._stats.processed}, "
            f"Ignored: {self._stats.ignored}, "
            f"Skipped rows: {self._stats.skipped_rows}"
        )
        return {account.client_id: account for account in accounts}

    def read_transactions(self, lines: Iterable[str]) -> Iterator[Transaction]:
        """Lazily parse CSV rows, skipping the ones that are malformed."""
        reader = csv.DictReader(lines)
        for row in reader:
            try:
                yield parse_csv_row(row)
            except InvalidTransactionRecord as e:
                self._stats.record_skipped_row()
                logger.warning(f"Skipping line {reader.line_num}: {e}")


def parse_csv_row(row: Dict[Optional[str], Optional[str]]) -> Transaction:
    """
    Parse CSV row into Transaction.

    Raises:
        InvalidTransactionRecord: unknown type, bad ids or bad amount
    """
    normalized = {k.strip(): (v or "").strip() for k, v in row.items() if isinstance(k, str)}

    try:
        transaction_type = TransactionType(normalized["type"].lower())
        client_id = int(normalized["client"])
        transaction_id = int(normalized["tx"])
    except (KeyError, ValueError) as e:
        raise InvalidTransactionRecord(f"cannot parse row {row}: {e}") from e

    if not 0 <= client_id <= MAX_CLIENT_ID:
        raise InvalidTransactionRecord(f"client id {client_id} out of range")
    if not 0 <= transaction_id <= MAX_TRANSACTION_ID:
        raise InvalidTransactionRecord(f"transaction id {transaction_id} out of range")

    amount = None
    if transaction_type.is_cacheable:
        amount_str = normalized.get("amount", "")
        if not amount_str:
            raise InvalidTransactionRecord(f"{transaction_type.value} tx {transaction_id} has no amount")
        amount = parse_amount(amount_str)

    return Transaction(
        transaction_type=transaction_type,
        client_id=ClientId(client_id),
        transaction_id=TransactionId(transaction_id),
        amount=amount,
    )


def parse_amount(amount_str: str) -> Decimal:
    """Parse an amount, rounding to four decimal places."""
    try:
        amount = Decimal(amount_str)
        if not amount.is_finite():
            raise InvalidTransactionRecord(f"amount {amount_str!r} is not a finite number")
        amount = amount.quantize(AMOUNT_PRECISION, rounding=ROUND_HALF_UP)
        # Larger amounts could never be held by any balance
        if abs(amount) > MAX_BALANCE:
            raise InvalidTransactionRecord(f"amount {amount_str!r} is out of range")
        return amount
    except InvalidOperation as e:
        raise InvalidTransactionRecord(f"invalid amount {amount_str!r}") from e
