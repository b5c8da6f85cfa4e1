import sys
import os
from decimal import Decimal

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from models import (
    AccountView,
    CachedTransaction,
    ClientAccount,
    ClientId,
    DisputeState,
    ProcessingResult,
    Transaction,
    TransactionId,
    TransactionType,
)


class TestIdentifiers:
    def test_same_type_equal(self):
        assert ClientId(7) == ClientId(7)
        assert TransactionId(7) == TransactionId(7)

    def test_client_and_transaction_ids_never_equal(self):
        assert ClientId(1) != TransactionId(1)

    def test_usable_as_distinct_keys(self):
        mapping = {ClientId(1): "client", TransactionId(1): "tx"}
        assert len(mapping) == 2
        assert mapping[ClientId(1)] == "client"

    def test_str_is_bare_number(self):
        assert str(ClientId(42)) == "42"
        assert str(TransactionId(4294967295)) == "4294967295"

    def test_client_ids_sort_numerically(self):
        assert sorted([ClientId(10), ClientId(2), ClientId(1)]) == [ClientId(1), ClientId(2), ClientId(10)]


class TestTransaction:
    def test_create_deposit(self):
        transaction = Transaction(
            transaction_type=TransactionType.DEPOSIT,
            client_id=ClientId(1),
            transaction_id=TransactionId(1),
            amount=Decimal("100.0"),
        )
        assert transaction.transaction_type == TransactionType.DEPOSIT
        assert transaction.client_id == ClientId(1)
        assert transaction.transaction_id == TransactionId(1)
        assert transaction.amount == Decimal("100.0")

    def test_create_dispute_no_amount(self):
        transaction = Transaction(
            transaction_type=TransactionType.DISPUTE,
            client_id=ClientId(1),
            transaction_id=TransactionId(1),
        )
        assert transaction.amount is None

    def test_only_deposits_and_withdrawals_are_cacheable(self):
        cacheable = {t for t in TransactionType if t.is_cacheable}
        assert cacheable == {TransactionType.DEPOSIT, TransactionType.WITHDRAWAL}


class TestCachedTransaction:
    def test_starts_active(self):
        entry = CachedTransaction(client_id=ClientId(1), amount=Decimal("5"), kind=TransactionType.DEPOSIT)
        assert entry.dispute_state == DisputeState.ACTIVE


class TestClientAccount:
    def test_default_values(self):
        account = ClientAccount(client_id=ClientId(1))
        assert account.available == Decimal("0")
        assert account.held == Decimal("0")
        assert account.total == Decimal("0")
        assert account.locked is False

    def test_total_property(self):
        account = ClientAccount(
            client_id=ClientId(1),
            available=Decimal("100"),
            held=Decimal("50"),
        )
        assert account.total == Decimal("150")

    def test_view_copies_balances(self):
        account = ClientAccount(client_id=ClientId(3), available=Decimal("-30"), held=Decimal("100"), locked=True)
        view = AccountView.from_account(account)
        account.available = Decimal("0")

        assert view == AccountView(
            client_id=ClientId(3),
            available=Decimal("-30"),
            held=Decimal("100"),
            total=Decimal("70"),
            locked=True,
        )


class TestProcessingResult:
    def test_enum_values(self):
        assert ProcessingResult.SUCCESS.value == "success"
        assert ProcessingResult.IGNORED.value == "ignored"
