"""Domain model entities for finledger.

These are pure data classes representing business concepts, independent of
database schema. Services and the database interface exchange these objects,
never ORM rows, so the ledger rules do not depend on how records are stored.
"""

from dataclasses import dataclass, field
from datetime import datetime, date
from decimal import Decimal
from enum import Enum
from typing import Optional


class AccountKind(str, Enum):
    CHECKING = "checking"
    INVESTMENT = "investment"


class CategoryType(str, Enum):
    INCOME = "income"
    EXPENSE = "expense"


class TransactionType(str, Enum):
    """Kind of money movement.

    Only ``INCOME`` and ``EXPENSE`` are ever persisted. ``TRANSFER`` is a
    request kind that is stored as an expense/income pair.
    """

    INCOME = "income"
    EXPENSE = "expense"
    TRANSFER = "transfer"


class TransactionStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"


class InvestmentKind(str, Enum):
    STOCK = "stock"
    FII = "fii"
    FIXED_INCOME = "fixed_income"
    TREASURE = "treasure"
    CRYPTO = "crypto"
    OTHER = "other"


class InvestmentOperation(str, Enum):
    BUY = "buy"
    SELL = "sell"
    DIVIDEND = "dividend"
    INTEREST = "interest"


@dataclass(frozen=True)
class Account:
    """Bank or brokerage account domain entity."""

    id: int
    owner_id: str
    name: str
    kind: AccountKind
    initial_balance: Decimal
    balance: Decimal
    active: bool
    created_at: datetime


@dataclass(frozen=True)
class Category:
    """Global, typed category domain entity."""

    id: int
    name: str
    type: CategoryType
    icon: str
    color: str
    created_at: datetime


@dataclass(frozen=True)
class Transaction:
    """Ledger transaction domain entity."""

    id: int
    owner_id: str
    account_id: int
    category_id: int
    type: TransactionType
    amount: Decimal
    transaction_date: date
    status: TransactionStatus
    description: str
    transfer_group: Optional[str]
    created_at: datetime

    @property
    def is_completed(self) -> bool:
        return self.status == TransactionStatus.COMPLETED

    @property
    def signed_amount(self) -> Decimal:
        """Balance effect of this transaction once completed."""
        if self.type == TransactionType.INCOME:
            return self.amount
        if self.type == TransactionType.EXPENSE:
            return -self.amount
        return Decimal("0")


@dataclass(frozen=True)
class CreditCard:
    """Credit card domain entity."""

    id: int
    owner_id: str
    name: str
    due_day: int
    card_limit: Decimal
    active: bool
    created_at: datetime


@dataclass(frozen=True)
class CreditCardPurchase:
    """Purchase made on a credit card, split into installments."""

    id: int
    card_id: int
    category_id: int
    total_amount: Decimal
    installments: int
    purchase_date: date
    first_due_month: date
    description: str
    created_at: datetime


@dataclass(frozen=True)
class Installment:
    """One share of a credit-card purchase, due in a given month."""

    id: int
    purchase_id: int
    installment_number: int
    amount: Decimal
    due_date: date
    paid: bool


@dataclass(frozen=True)
class Invoice:
    """Derived monthly total of unpaid installments for one card."""

    card_id: int
    month: date
    installments: tuple[Installment, ...] = field(default_factory=tuple)

    @property
    def total(self) -> Decimal:
        return sum((inst.amount for inst in self.installments), Decimal("0"))

    @property
    def is_empty(self) -> bool:
        return not self.installments


@dataclass(frozen=True)
class Debt:
    """Debt domain entity."""

    id: int
    owner_id: str
    name: str
    lender: str
    total_amount: Decimal
    current_balance: Decimal
    interest_rate: Decimal
    start_date: date
    due_day: int
    total_installments: Optional[int]
    installment_value: Optional[Decimal]
    description: str
    created_at: datetime

    @property
    def is_paid_off(self) -> bool:
        return self.current_balance <= Decimal("0.01")


@dataclass(frozen=True)
class DebtPayment:
    """Payment recorded against a debt."""

    id: int
    debt_id: int
    payment_date: date
    amount: Decimal
    principal_amount: Decimal
    interest_amount: Decimal
    transaction_id: Optional[int]
    description: str
    created_at: datetime


@dataclass(frozen=True)
class Investment:
    """Investment position domain entity."""

    id: int
    owner_id: str
    name: str
    ticker: Optional[str]
    kind: InvestmentKind
    quantity: Decimal
    average_price: Decimal
    current_price: Decimal
    created_at: datetime

    @property
    def cost_basis(self) -> Decimal:
        return self.quantity * self.average_price

    @property
    def market_value(self) -> Decimal:
        return self.quantity * self.current_price


@dataclass(frozen=True)
class InvestmentTransaction:
    """Audit row for one operation on an investment position."""

    id: int
    investment_id: int
    operation: InvestmentOperation
    operation_date: date
    quantity: Decimal
    price: Decimal
    fees: Decimal
    total_amount: Decimal
    realized_gain: Optional[Decimal]
    transaction_id: Optional[int]
    created_at: datetime
