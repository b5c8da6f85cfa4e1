import logging
from dataclasses import dataclass
from decimal import Decimal
from operator import attrgetter
from typing import Callable, Dict, FrozenSet

from account_ledger import AccountLedger
from errors import DuplicateTransactionId, TransactionRejected
from models import (
    CachedTransaction,
    ClientId,
    DisputeState,
    ProcessingResult,
    Transaction,
    TransactionType,
)
from transaction_cache import TransactionCache

logger = logging.getLogger(__name__)

LedgerOperation = Callable[[AccountLedger, ClientId, Decimal], None]


@dataclass(frozen=True)
class DisputeEffects:
    """Ledger operations used to dispute, resolve and charge back one kind of transaction."""

    hold: LedgerOperation
    release: LedgerOperation
    chargeback: LedgerOperation


# A disputed deposit moves funds from available to held. A disputed withdrawal
# already left available, so its amount is held on top of the current balance
# and a chargeback pays it back to the client.
DISPUTE_EFFECTS: Dict[TransactionType, DisputeEffects] = {
    TransactionType.DEPOSIT: DisputeEffects(
        hold=AccountLedger.hold,
        release=AccountLedger.release,
        chargeback=AccountLedger.chargeback_from_held,
    ),
    TransactionType.WITHDRAWAL: DisputeEffects(
        hold=AccountLedger.hold_without_reducing_available,
        release=AccountLedger.release_without_restoring_available,
        chargeback=AccountLedger.chargeback_reimburse,
    ),
}


@dataclass(frozen=True)
class DisputeTransition:
    allowed_from: FrozenSet[DisputeState]
    target: DisputeState
    effect: Callable[[DisputeEffects], LedgerOperation]


DISPUTE_TRANSITIONS: Dict[TransactionType, DisputeTransition] = {
    TransactionType.DISPUTE: DisputeTransition(
        allowed_from=frozenset({DisputeState.ACTIVE, DisputeState.RESOLVED}),
        target=DisputeState.DISPUTED,
        effect=attrgetter("hold"),
    ),
    TransactionType.RESOLVE: DisputeTransition(
        allowed_from=frozenset({DisputeState.DISPUTED}),
        target=DisputeState.RESOLVED,
        effect=attrgetter("release"),
    ),
    TransactionType.CHARGEBACK: DisputeTransition(
        allowed_from=frozenset({DisputeState.DISPUTED}),
        target=DisputeState.CHARGED_BACK,
        effect=attrgetter("chargeback"),
    ),
}


class TransactionProcessor:
    """
    Applies one transaction at a time to the ledger and the transaction cache.

    Business-rule failures leave all state untouched and return IGNORED.
    Integrity failures (IntegrityError) propagate to the caller, which must
    stop processing.
    """

    def __init__(self, ledger: AccountLedger, cache: TransactionCache):
        self._ledger = ledger
        self._cache = cache

    def process_transaction(self, transaction: Transaction) -> ProcessingResult:
        """
        Process a single transaction.

        Returns:
            SUCCESS: Applied to the ledger
            IGNORED: Discarded without any state change (e.g. insufficient funds, unknown tx)

        Raises:
            DuplicateTransactionId: a deposit or withdrawal reuses a cached id
            BalanceOverflow: a balance left the fixed-precision range
        """
        match transaction.transaction_type:
            case TransactionType.DEPOSIT:
                return self._handle_deposit(transaction)
            case TransactionType.WITHDRAWAL:
                return self._handle_withdrawal(transaction)
            case TransactionType.DISPUTE | TransactionType.RESOLVE | TransactionType.CHARGEBACK:
                return self._handle_dispute_family(transaction)
            case _:
                return ProcessingResult.IGNORED

    def _handle_deposit(self, transaction: Transaction) -> ProcessingResult:
        self._reject_duplicate(transaction)
        if not self._has_valid_amount(transaction):
            return ProcessingResult.IGNORED

        self._cache.record(transaction.transaction_id, self._to_cached(transaction))
        self._ledger.credit(transaction.client_id, transaction.amount)
        return ProcessingResult.SUCCESS

    def _handle_withdrawal(self, transaction: Transaction) -> ProcessingResult:
        self._reject_duplicate(transaction)
        if not self._has_valid_amount(transaction):
            return ProcessingResult.IGNORED

        try:
            self._ledger.debit(transaction.client_id, transaction.amount)
        except TransactionRejected as e:
            logger.info(f"Withdrawal tx {transaction.transaction_id}: rejected, {e}")
            return ProcessingResult.IGNORED

        # Only successful withdrawals can be disputed later
        self._cache.record(transaction.transaction_id, self._to_cached(transaction))
        return ProcessingResult.SUCCESS

    def _handle_dispute_family(self, transaction: Transaction) -> ProcessingResult:
        action = transaction.transaction_type.value.capitalize()
        transition = DISPUTE_TRANSITIONS[transaction.transaction_type]

        original = self._cache.lookup(transaction.transaction_id)
        if original is None:
            logger.info(f"{action} for tx {transaction.transaction_id}: transaction not found")
            return ProcessingResult.IGNORED

        effects = DISPUTE_EFFECTS.get(original.kind)
        if effects is None:
            logger.warning(f"{action} for tx {transaction.transaction_id}: {original.kind.value} cannot be disputed")
            return ProcessingResult.IGNORED

        if original.dispute_state not in transition.allowed_from:
            logger.info(
                f"{action} for tx {transaction.transaction_id}: transaction is {original.dispute_state.value}"
            )
            return ProcessingResult.IGNORED

        # The client on the instruction is not trusted; the owner of the
        # original transaction is the account affected.
        if transaction.client_id != original.client_id:
            logger.debug(
                f"{action} for tx {transaction.transaction_id}: names client {transaction.client_id}, "
                f"applying to owner {original.client_id}"
            )

        apply_effect = transition.effect(effects)
        apply_effect(self._ledger, original.client_id, original.amount)
        original.dispute_state = transition.target
        return ProcessingResult.SUCCESS

    def _reject_duplicate(self, transaction: Transaction) -> None:
        """Any reuse of a cached id is fatal, whatever the amount."""
        if self._cache.contains(transaction.transaction_id):
            raise DuplicateTransactionId(transaction.transaction_id)

    @staticmethod
    def _has_valid_amount(transaction: Transaction) -> bool:
        if transaction.amount is None or transaction.amount <= 0:
            logger.warning(
                f"{transaction.transaction_type.value.capitalize()} tx {transaction.transaction_id}: "
                f"invalid amount {transaction.amount}"
            )
            return False
        return True

    @staticmethod
    def _to_cached(transaction: Transaction) -> CachedTransaction:
        return CachedTransaction(
            client_id=transaction.client_id,
            amount=transaction.amount,
            kind=transaction.transaction_type,
        )
