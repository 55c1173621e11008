"""Monthly account statements and category breakdowns."""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Optional

from finledger.config import DEFAULT_OWNER
from finledger.database.base import Database
from finledger.domain.account import AccountService
from finledger.domain.category import CategoryService
from finledger.domain.entities import (
    Category,
    Transaction,
    TransactionStatus,
    TransactionType,
)
from finledger.utils.date_parser import month_end, month_start


@dataclass(frozen=True)
class StatementEntry:
    """One transaction of a statement.

    ``running_balance`` is the balance right after the entry; pending entries
    don't move it and carry ``None``.
    """

    transaction: Transaction
    running_balance: Optional[Decimal]


@dataclass(frozen=True)
class MonthlyStatement:
    month: date
    account_id: Optional[int]
    opening_balance: Decimal
    entries: list[StatementEntry] = field(default_factory=list)
    completed_income: Decimal = Decimal("0")
    completed_expense: Decimal = Decimal("0")
    pending_income: Decimal = Decimal("0")
    pending_expense: Decimal = Decimal("0")

    @property
    def closing_balance(self) -> Decimal:
        return self.opening_balance + self.completed_income - self.completed_expense

    @property
    def projected_balance(self) -> Decimal:
        """Closing balance once every pending entry of the month is realized."""
        return self.closing_balance + self.pending_income - self.pending_expense


@dataclass(frozen=True)
class CategoryTotal:
    category: Category
    total: Decimal
    count: int


class StatementService:
    """Read-only reports built from the transaction history."""

    def __init__(self, db: Database, owner_id: str = DEFAULT_OWNER):
        self.db = db
        self.owner_id = owner_id
        self.account_service = AccountService(db, owner_id)
        self.category_service = CategoryService(db)

    def monthly_statement(self, month: date, account_id: Optional[int] = None) -> MonthlyStatement:
        """Build the statement of one month for an account or for all accounts.

        The opening balance is the initial balance of the accounts in scope
        plus every completed movement dated before the month.

        Args:
            month: Any day of the month to report
            account_id: Restrict to one account (all accounts when None)

        Returns:
            MonthlyStatement with entries oldest first
        """
        start = month_start(month)
        end = month_end(start)
        if account_id is not None:
            accounts = [self.account_service.require_account(account_id)]
        else:
            accounts = self.account_service.list_accounts(include_inactive=True)

        opening = Decimal("0")
        for account in accounts:
            income, expense = self.db.get_completed_totals(account.id, before=start)
            opening += account.initial_balance + income - expense

        transactions = self.db.list_transactions(
            owner_id=self.owner_id, start_date=start, end_date=end, account_id=account_id
        )
        totals = {
            (TransactionStatus.COMPLETED, TransactionType.INCOME): Decimal("0"),
            (TransactionStatus.COMPLETED, TransactionType.EXPENSE): Decimal("0"),
            (TransactionStatus.PENDING, TransactionType.INCOME): Decimal("0"),
            (TransactionStatus.PENDING, TransactionType.EXPENSE): Decimal("0"),
        }
        running = opening
        entries = []
        for txn in transactions:
            totals[(txn.status, txn.type)] += txn.amount
            if txn.is_completed:
                running += txn.signed_amount
                entries.append(StatementEntry(transaction=txn, running_balance=running))
            else:
                entries.append(StatementEntry(transaction=txn, running_balance=None))

        return MonthlyStatement(
            month=start,
            account_id=account_id,
            opening_balance=opening,
            entries=entries,
            completed_income=totals[(TransactionStatus.COMPLETED, TransactionType.INCOME)],
            completed_expense=totals[(TransactionStatus.COMPLETED, TransactionType.EXPENSE)],
            pending_income=totals[(TransactionStatus.PENDING, TransactionType.INCOME)],
            pending_expense=totals[(TransactionStatus.PENDING, TransactionType.EXPENSE)],
        )

    def category_breakdown(
        self,
        start_date: date,
        end_date: date,
        account_id: Optional[int] = None,
        type: TransactionType | str = TransactionType.EXPENSE,
    ) -> list[CategoryTotal]:
        """Total completed transactions per category, largest first."""
        txn_type = TransactionType(type)
        totals: dict[int, Decimal] = {}
        counts: dict[int, int] = {}
        for txn in self.db.list_transactions(
            owner_id=self.owner_id,
            start_date=start_date,
            end_date=end_date,
            account_id=account_id,
            status=TransactionStatus.COMPLETED.value,
            type=txn_type.value,
        ):
            totals[txn.category_id] = totals.get(txn.category_id, Decimal("0")) + txn.amount
            counts[txn.category_id] = counts.get(txn.category_id, 0) + 1

        breakdown = [
            CategoryTotal(
                category=self.category_service.require_category(category_id),
                total=total,
                count=counts[category_id],
            )
            for category_id, total in totals.items()
        ]
        breakdown.sort(key=lambda item: (-item.total, item.category.name))
        return breakdown
