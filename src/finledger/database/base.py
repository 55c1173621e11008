"""Abstract database interface."""

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from typing import Optional, Iterable
from datetime import date
from decimal import Decimal

# Import entities directly to avoid circular import through domain/__init__.py
from finledger.domain.entities import (
    Account,
    Category,
    Transaction,
    CreditCard,
    CreditCardPurchase,
    Installment,
    Debt,
    DebtPayment,
    Investment,
    InvestmentTransaction,
)


class Database(ABC):
    """Abstract database interface for finledger.

    Every single write is atomic on its own. Writes issued inside a
    ``transaction()`` block are committed together when the outermost block
    exits, or rolled back together if it raises.
    """

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    @abstractmethod
    def transaction(self) -> AbstractContextManager[None]:
        """Open a unit of work. Nested calls join the enclosing unit."""
        pass

    # Account operations
    @abstractmethod
    def create_account(
        self, owner_id: str, name: str, kind: str, initial_balance: Decimal
    ) -> int:
        """Create a new account with balance equal to its initial balance."""
        pass

    @abstractmethod
    def get_account(self, account_id: int) -> Optional[Account]:
        """Get account by ID, read fresh from the store."""
        pass

    @abstractmethod
    def list_accounts(self, owner_id: str, include_inactive: bool = False) -> list[Account]:
        """List accounts of an owner."""
        pass

    @abstractmethod
    def update_account(
        self, account_id: int, name: Optional[str] = None, kind: Optional[str] = None
    ) -> None:
        """Update descriptive account fields."""
        pass

    @abstractmethod
    def set_account_active(self, account_id: int, active: bool) -> None:
        """Activate or deactivate an account."""
        pass

    @abstractmethod
    def apply_balance_delta(self, account_id: int, delta: Decimal) -> None:
        """Atomically add ``delta`` to the stored account balance."""
        pass

    @abstractmethod
    def get_completed_totals(
        self, account_id: int, before: Optional[date] = None
    ) -> tuple[Decimal, Decimal]:
        """Return (income, expense) sums of completed transactions of an account.

        When ``before`` is given, only transactions dated strictly before it
        are included.
        """
        pass

    @abstractmethod
    def get_account_transaction_count(self, account_id: int) -> int:
        pass

    # Category operations
    @abstractmethod
    def create_category(self, name: str, type: str, icon: str, color: str) -> int:
        pass

    @abstractmethod
    def get_category(self, category_id: int) -> Optional[Category]:
        pass

    @abstractmethod
    def get_category_by_name(self, name: str, type: str) -> Optional[Category]:
        pass

    @abstractmethod
    def list_categories(self, type: Optional[str] = None) -> list[Category]:
        pass

    @abstractmethod
    def update_category(
        self,
        category_id: int,
        name: Optional[str] = None,
        icon: Optional[str] = None,
        color: Optional[str] = None,
    ) -> None:
        pass

    @abstractmethod
    def delete_category(self, category_id: int) -> None:
        pass

    @abstractmethod
    def get_category_usage(self, category_id: int) -> tuple[int, int]:
        """Return (transaction count, purchase count) referencing a category."""
        pass

    # Transaction operations
    @abstractmethod
    def create_transaction(
        self,
        owner_id: str,
        account_id: int,
        category_id: int,
        type: str,
        amount: Decimal,
        transaction_date: date,
        status: str,
        description: str = "",
        transfer_group: Optional[str] = None,
    ) -> int:
        """Create a transaction. Returns transaction ID."""
        pass

    @abstractmethod
    def get_transaction(self, transaction_id: int) -> Optional[Transaction]:
        pass

    @abstractmethod
    def update_transaction(
        self,
        transaction_id: int,
        account_id: int,
        category_id: int,
        type: str,
        amount: Decimal,
        transaction_date: date,
        status: str,
        description: str,
    ) -> None:
        """Overwrite the mutable fields of a transaction."""
        pass

    @abstractmethod
    def set_transaction_status(self, transaction_id: int, status: str) -> None:
        pass

    @abstractmethod
    def delete_transaction(self, transaction_id: int) -> None:
        pass

    @abstractmethod
    def list_transactions(
        self,
        owner_id: str,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        account_id: Optional[int] = None,
        status: Optional[str] = None,
        type: Optional[str] = None,
        category_id: Optional[int] = None,
        transfer_group: Optional[str] = None,
    ) -> list[Transaction]:
        """List transactions with optional filters, oldest first."""
        pass

    # Credit card operations
    @abstractmethod
    def create_credit_card(
        self, owner_id: str, name: str, due_day: int, card_limit: Decimal
    ) -> int:
        pass

    @abstractmethod
    def get_credit_card(self, card_id: int) -> Optional[CreditCard]:
        pass

    @abstractmethod
    def list_credit_cards(self, owner_id: str, include_inactive: bool = False) -> list[CreditCard]:
        pass

    @abstractmethod
    def update_credit_card(
        self,
        card_id: int,
        name: Optional[str] = None,
        due_day: Optional[int] = None,
        card_limit: Optional[Decimal] = None,
        active: Optional[bool] = None,
    ) -> None:
        pass

    @abstractmethod
    def create_purchase(
        self,
        card_id: int,
        category_id: int,
        total_amount: Decimal,
        installments: int,
        purchase_date: date,
        first_due_month: date,
        description: str = "",
    ) -> int:
        pass

    @abstractmethod
    def get_purchase(self, purchase_id: int) -> Optional[CreditCardPurchase]:
        pass

    @abstractmethod
    def list_purchases(self, card_id: int) -> list[CreditCardPurchase]:
        pass

    @abstractmethod
    def delete_purchase(self, purchase_id: int) -> None:
        """Delete a purchase together with its installments."""
        pass

    @abstractmethod
    def create_installments(
        self, purchase_id: int, schedule: Iterable[tuple[int, Decimal, date]]
    ) -> list[int]:
        """Create installments from (number, amount, due_date) tuples."""
        pass

    @abstractmethod
    def list_installments(
        self,
        card_id: Optional[int] = None,
        purchase_id: Optional[int] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        paid: Optional[bool] = None,
    ) -> list[Installment]:
        """List installments ordered by due date then number."""
        pass

    @abstractmethod
    def mark_installments_paid(self, installment_ids: Iterable[int]) -> int:
        """Flag unpaid installments as paid. Returns the number flipped."""
        pass

    # Debt operations
    @abstractmethod
    def create_debt(
        self,
        owner_id: str,
        name: str,
        lender: str,
        total_amount: Decimal,
        interest_rate: Decimal,
        start_date: date,
        due_day: int,
        total_installments: Optional[int] = None,
        installment_value: Optional[Decimal] = None,
        description: str = "",
    ) -> int:
        """Create a debt whose current balance equals its total amount."""
        pass

    @abstractmethod
    def get_debt(self, debt_id: int) -> Optional[Debt]:
        pass

    @abstractmethod
    def list_debts(self, owner_id: str) -> list[Debt]:
        pass

    @abstractmethod
    def update_debt(self, debt_id: int, **fields) -> None:
        """Overwrite the given debt columns (manual correction path)."""
        pass

    @abstractmethod
    def delete_debt(self, debt_id: int) -> None:
        """Delete a debt together with its payments."""
        pass

    @abstractmethod
    def reduce_debt_balance(self, debt_id: int, principal: Decimal) -> None:
        """Atomically subtract ``principal`` from a debt balance, floored at 0."""
        pass

    @abstractmethod
    def create_debt_payment(
        self,
        debt_id: int,
        payment_date: date,
        amount: Decimal,
        principal_amount: Decimal,
        interest_amount: Decimal,
        transaction_id: Optional[int] = None,
        description: str = "",
    ) -> int:
        pass

    @abstractmethod
    def list_debt_payments(self, debt_id: int) -> list[DebtPayment]:
        pass

    # Investment operations
    @abstractmethod
    def create_investment(
        self,
        owner_id: str,
        name: str,
        ticker: Optional[str],
        kind: str,
        quantity: Decimal,
        average_price: Decimal,
        current_price: Decimal,
    ) -> int:
        pass

    @abstractmethod
    def get_investment(self, investment_id: int) -> Optional[Investment]:
        pass

    @abstractmethod
    def list_investments(self, owner_id: str) -> list[Investment]:
        pass

    @abstractmethod
    def update_investment(self, investment_id: int, **fields) -> None:
        pass

    @abstractmethod
    def delete_investment(self, investment_id: int) -> None:
        """Delete an investment together with its operation history."""
        pass

    @abstractmethod
    def create_investment_transaction(
        self,
        investment_id: int,
        operation: str,
        operation_date: date,
        quantity: Decimal,
        price: Decimal,
        fees: Decimal,
        total_amount: Decimal,
        realized_gain: Optional[Decimal] = None,
        transaction_id: Optional[int] = None,
    ) -> int:
        pass

    @abstractmethod
    def list_investment_transactions(self, investment_id: int) -> list[InvestmentTransaction]:
        pass
