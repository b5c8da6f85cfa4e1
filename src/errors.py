class PaymentsError(Exception):
    """Base exception for all payments ledger errors."""
    pass


class TransactionRejected(PaymentsError):
    """An instruction was refused by a business rule. The run continues."""
    pass


class InsufficientFunds(TransactionRejected):
    """Raised when a withdrawal exceeds the available balance."""
    pass


class AccountLocked(TransactionRejected):
    """Raised when a withdrawal targets an account frozen by a chargeback."""
    pass


class IntegrityError(PaymentsError):
    """The input or the ledger arithmetic is corrupt. The run must halt."""
    pass


class DuplicateTransactionId(IntegrityError):
    """Raised when two deposits or withdrawals share a transaction id."""

    def __init__(self, transaction_id):
        super().__init__(f"Duplicate transaction id: {transaction_id}")
        self.transaction_id = transaction_id


class BalanceOverflow(IntegrityError):
    """Raised when a balance leaves the fixed-precision range."""
    pass


class InvalidTransactionRecord(PaymentsError):
    """Raised when an input row cannot be turned into a transaction."""
    pass
