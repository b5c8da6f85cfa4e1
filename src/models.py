from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Optional


# Amounts carry four fractional digits; balances must fit a signed 64-bit
# count of AMOUNT_PRECISION units.
AMOUNT_PRECISION = Decimal("0.0001")
MAX_BALANCE = Decimal(2**63 - 1) * AMOUNT_PRECISION
MIN_BALANCE = Decimal(-(2**63)) * AMOUNT_PRECISION


@dataclass(frozen=True, order=True)
class ClientId:
    value: int

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True, order=True)
class TransactionId:
    value: int

    def __str__(self) -> str:
        return str(self.value)


class TransactionType(Enum):
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    DISPUTE = "dispute"
    RESOLVE = "resolve"
    CHARGEBACK = "chargeback"

    @property
    def is_cacheable(self) -> bool:
        return self in (TransactionType.DEPOSIT, TransactionType.WITHDRAWAL)


class DisputeState(Enum):
    ACTIVE = "active"
    DISPUTED = "disputed"
    RESOLVED = "resolved"
    CHARGED_BACK = "charged_back"


class ProcessingResult(Enum):
    SUCCESS = "success"
    IGNORED = "ignored"


@dataclass
class Transaction:
    transaction_type: TransactionType
    client_id: ClientId
    transaction_id: TransactionId
    amount: Optional[Decimal] = None

    def __repr__(self) -> str:
        return f"Transaction({self.transaction_type.value}, client={self.client_id}, tx={self.transaction_id}, amount={self.amount})"


@dataclass
class CachedTransaction:
    """The part of a deposit or withdrawal that later disputes refer back to."""

    client_id: ClientId
    amount: Decimal
    kind: TransactionType
    dispute_state: DisputeState = DisputeState.ACTIVE


@dataclass
class ClientAccount:
    client_id: ClientId
    available: Decimal = Decimal("0")
    held: Decimal = Decimal("0")
    locked: bool = False

    @property
    def total(self) -> Decimal:
        return self.available + self.held


@dataclass(frozen=True)
class AccountView:
    client_id: ClientId
    available: Decimal
    held: Decimal
    total: Decimal
    locked: bool

    @classmethod
    def from_account(cls, account: ClientAccount) -> "AccountView":
        return cls(
            client_id=account.client_id,
            available=account.available,
            held=account.held,
            total=account.total,
            locked=account.locked,
        )


class ProcessingStats:
    """Counters for tracking processing statistics."""

    def __init__(self):
        self.processed = 0
        self.ignored = 0
        self.skipped_rows = 0

    def record_success(self):
        self.processed += 1

    def record_ignored(self):
        self.ignored += 1

    def record_skipped_row(self):
        self.skipped_rows += 1
