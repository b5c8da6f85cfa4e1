import logging
from decimal import Decimal
from typing import Dict, List, Optional

from errors import AccountLocked, BalanceOverflow, InsufficientFunds
from models import AccountView, ClientAccount, ClientId, MAX_BALANCE, MIN_BALANCE

logger = logging.getLogger(__name__)


class AccountLedger:
    """
    Owns one ClientAccount per client.

    Balances only change through the named operations below. Each operation
    computes the new balances, checks them against the fixed-precision range
    and only then writes them, so total == available + held holds after
    every call, including ones that raise.
    """

    def __init__(self):
        self._accounts: Dict[ClientId, ClientAccount] = {}

    def get_or_create_account(self, client_id: ClientId) -> ClientAccount:
        """Get existing account or create new one."""
        if client_id not in self._accounts:
            self._accounts[client_id] = ClientAccount(client_id=client_id)
        return self._accounts[client_id]

    def get_account(self, client_id: ClientId) -> Optional[ClientAccount]:
        return self._accounts.get(client_id)

    def credit(self, client_id: ClientId, amount: Decimal) -> None:
        """Add funds. Locked accounts still accept deposits."""
        account = self.get_or_create_account(client_id)
        self._apply(account, available=account.available + amount)

    def debit(self, client_id: ClientId, amount: Decimal) -> None:
        """
        Remove available funds.

        Raises:
            AccountLocked: the account was frozen by a chargeback
            InsufficientFunds: available < amount
        """
        account = self.get_or_create_account(client_id)
        if account.locked:
            raise AccountLocked(f"account {client_id} is locked")
        if account.available < amount:
            raise InsufficientFunds(
                f"account {client_id} has {account.available} available, {amount} requested"
            )
        self._apply(account, available=account.available - amount)

    def hold(self, client_id: ClientId, amount: Decimal) -> None:
        account = self.get_or_create_account(client_id)
        self._apply(account, available=account.available - amount, held=account.held + amount)

    def hold_without_reducing_available(self, client_id: ClientId, amount: Decimal) -> None:
        """Hold funds that already left available, e.g. a disputed withdrawal."""
        account = self.get_or_create_account(client_id)
        self._apply(account, held=account.held + amount)

    def release(self, client_id: ClientId, amount: Decimal) -> None:
        account = self.get_or_create_account(client_id)
        self._apply(account, available=account.available + amount, held=account.held - amount)

    def release_without_restoring_available(self, client_id: ClientId, amount: Decimal) -> None:
        account = self.get_or_create_account(client_id)
        self._apply(account, held=account.held - amount)

    def chargeback_from_held(self, client_id: ClientId, amount: Decimal) -> None:
        """Held funds leave the account for good and the account is frozen."""
        account = self.get_or_create_account(client_id)
        self._apply(account, held=account.held - amount, lock=True)

    def chargeback_reimburse(self, client_id: ClientId, amount: Decimal) -> None:
        """Held funds go back to the client and the account is frozen."""
        account = self.get_or_create_account(client_id)
        self._apply(account, available=account.available + amount, held=account.held - amount, lock=True)

    def snapshot(self) -> List[AccountView]:
        """Return all accounts in ascending client id order (for final output)."""
        return [AccountView.from_account(self._accounts[client_id]) for client_id in sorted(self._accounts)]

    def __len__(self) -> int:
        return len(self._accounts)

    def _apply(
        self,
        account: ClientAccount,
        available: Optional[Decimal] = None,
        held: Optional[Decimal] = None,
        lock: bool = False,
    ) -> None:
        if available is None:
            available = account.available
        if held is None:
            held = account.held

        for name, value in (("available", available), ("held", held), ("total", available + held)):
            if not MIN_BALANCE <= value <= MAX_BALANCE:
                raise BalanceOverflow(f"account {account.client_id}: {name} balance {value} is out of range")

        account.available = available
        account.held = held
        if lock and not account.locked:
            logger.info(f"Account {account.client_id} locked after chargeback")
            account.locked = True
