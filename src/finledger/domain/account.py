"""Account domain service."""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from finledger.config import DEFAULT_OWNER
from finledger.database.base import Database
from finledger.domain.entities import Account, AccountKind
from finledger.domain.errors import (
    ConflictError,
    NotFoundError,
    ValidationError,
    account_inactive,
    account_not_found,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BalanceDiscrepancy:
    """Stored balance that disagrees with the balance derived from history."""

    account_id: int
    account_name: str
    stored_balance: Decimal
    derived_balance: Decimal

    @property
    def difference(self) -> Decimal:
        return self.stored_balance - self.derived_balance


class AccountService:
    """Service for managing accounts."""

    def __init__(self, db: Database, owner_id: str = DEFAULT_OWNER):
        """Initialize account service.

        Args:
            db: Database instance
            owner_id: Owner whose accounts this service manages
        """
        self.db = db
        self.owner_id = owner_id

    def create_account(
        self,
        name: str,
        kind: AccountKind | str = AccountKind.CHECKING,
        initial_balance: Decimal = Decimal("0"),
    ) -> int:
        """Create a new account.

        Args:
            name: Account name
            kind: "checking" or "investment"
            initial_balance: Opening balance, fixed for the account's lifetime

        Returns:
            Account ID

        Raises:
            ValidationError: If name is empty or kind is unknown
            ConflictError: If account name already exists
        """
        name = name.strip()
        if not name:
            raise ValidationError("Account name cannot be empty")
        account_kind = self._coerce_kind(kind)

        for acc in self.db.list_accounts(self.owner_id, include_inactive=True):
            if acc.name == name:
                raise ConflictError(f"Account with name '{name}' already exists")

        account_id = self.db.create_account(
            owner_id=self.owner_id,
            name=name,
            kind=account_kind.value,
            initial_balance=Decimal(initial_balance),
        )
        logger.info("Created account %s '%s' with initial balance %s", account_id, name, initial_balance)
        return account_id

    def get_account(self, account_id: int) -> Optional[Account]:
        """Get account by ID.

        Returns:
            Account entity or None if not found or owned by someone else
        """
        account = self.db.get_account(account_id)
        if account is None or account.owner_id != self.owner_id:
            return None
        return account

    def require_account(self, account_id: int, active: bool = False) -> Account:
        """Get an account or raise.

        Args:
            account_id: Account ID
            active: If True, also reject deactivated accounts

        Raises:
            NotFoundError: If the account doesn't exist for this owner
            ValidationError: If ``active`` is set and the account is inactive
        """
        account = self.get_account(account_id)
        if account is None:
            raise NotFoundError(account_not_found(account_id))
        if active and not account.active:
            raise ValidationError(account_inactive(account_id))
        return account

    def list_accounts(self, include_inactive: bool = False) -> list[Account]:
        return self.db.list_accounts(self.owner_id, include_inactive=include_inactive)

    def update_account(
        self,
        account_id: int,
        name: Optional[str] = None,
        kind: Optional[AccountKind | str] = None,
    ) -> None:
        """Rename an account or change its kind.

        The initial balance is fixed at creation and cannot be edited.

        Raises:
            NotFoundError: If account not found
            ConflictError: If name already exists
        """
        self.require_account(account_id)
        if name is not None:
            name = name.strip()
            if not name:
                raise ValidationError("Account name cannot be empty")
            for acc in self.db.list_accounts(self.owner_id, include_inactive=True):
                if acc.id != account_id and acc.name == name:
                    raise ConflictError(f"Account with name '{name}' already exists")
        kind_value = None if kind is None else self._coerce_kind(kind).value
        self.db.update_account(account_id, name=name, kind=kind_value)

    def deactivate_account(self, account_id: int) -> None:
        """Exclude an account from new mutations; its history remains."""
        self.require_account(account_id)
        self.db.set_account_active(account_id, False)
        logger.info("Deactivated account %s", account_id)

    def get_balance(self, account_id: int) -> Decimal:
        """Return the stored balance of an account."""
        return self.require_account(account_id).balance

    def derived_balance(self, account_id: int) -> Decimal:
        """Return initial balance + completed income - completed expense."""
        account = self.require_account(account_id)
        income, expense = self.db.get_completed_totals(account_id)
        return account.initial_balance + income - expense

    def total_balance(self) -> Decimal:
        """Sum of stored balances over active accounts."""
        return sum((acc.balance for acc in self.list_accounts()), Decimal("0"))

    def reconcile(self) -> list[BalanceDiscrepancy]:
        """Compare every stored balance with the balance derived from history.

        Returns:
            One entry per account whose balances disagree (empty when consistent)
        """
        discrepancies = []
        for account in self.list_accounts(include_inactive=True):
            income, expense = self.db.get_completed_totals(account.id)
            derived = account.initial_balance + income - expense
            if derived != account.balance:
                logger.warning(
                    "Account %s balance %s disagrees with derived balance %s",
                    account.id,
                    account.balance,
                    derived,
                )
                discrepancies.append(
                    BalanceDiscrepancy(
                        account_id=account.id,
                        account_name=account.name,
                        stored_balance=account.balance,
                        derived_balance=derived,
                    )
                )
        return discrepancies

    @staticmethod
    def _coerce_kind(kind: AccountKind | str) -> AccountKind:
        try:
            return AccountKind(kind)
        except ValueError:
            raise ValidationError(f"Unknown account kind '{kind}'; expected 'checking' or 'investment'")
