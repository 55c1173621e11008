"""Transaction domain service.

Keeps account balances consistent with the set of completed transactions.
Every balance change goes through ``Database.apply_balance_delta`` inside the
same unit of work as the row it belongs to, so for every account::

    balance == initial_balance + sum(completed income) - sum(completed expense)
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Callable, Optional

from finledger.config import DEFAULT_OWNER
from finledger.database.base import Database
from finledger.domain.account import AccountService
from finledger.domain.category import CategoryService, SystemCategories
from finledger.domain.entities import (
    Transaction,
    TransactionStatus,
    TransactionType,
)
from finledger.domain.errors import (
    InvalidStateError,
    NotFoundError,
    PreconditionError,
    ValidationError,
    category_type_mismatch,
    non_positive_amount,
    transaction_not_found,
)
from finledger.utils.amount_parser import to_cents

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TransactionSummary:
    """Income and expense totals split by status."""

    completed_income: Decimal
    completed_expense: Decimal
    pending_income: Decimal
    pending_expense: Decimal

    @property
    def net(self) -> Decimal:
        return self.completed_income - self.completed_expense

    @property
    def projected_net(self) -> Decimal:
        return self.net + self.pending_income - self.pending_expense


def balance_effect(type: TransactionType, amount: Decimal) -> Decimal:
    """Signed balance change a completed transaction applies to its account."""
    if type == TransactionType.INCOME:
        return amount
    if type == TransactionType.EXPENSE:
        return -amount
    raise ValidationError(f"Transaction type '{type.value}' has no balance effect")


def validate_amount(amount: Decimal) -> Decimal:
    """Return ``amount`` rounded to cents, rejecting zero and negative values.

    Balances move by exactly the amount that is stored, so a sub-cent amount
    that rounds to zero is rejected too.
    """
    amount = Decimal(amount)
    if not amount.is_finite():
        raise ValidationError(non_positive_amount(amount))
    rounded = to_cents(amount)
    if rounded <= 0:
        raise ValidationError(non_positive_amount(amount))
    return rounded


class TransactionService:
    """Service for creating and mutating ledger transactions."""

    def __init__(
        self,
        db: Database,
        owner_id: str = DEFAULT_OWNER,
        system_categories: Optional[SystemCategories] = None,
        today: Optional[Callable[[], date]] = None,
    ):
        """Initialize transaction service.

        Args:
            db: Database instance
            owner_id: Owner whose transactions this service manages
            system_categories: Resolved system category IDs; resolved from the
                default names on first use when omitted
            today: Clock used to derive status from dates (defaults to date.today)
        """
        self.db = db
        self.owner_id = owner_id
        self.today = today or date.today
        self.account_service = AccountService(db, owner_id)
        self.category_service = CategoryService(db)
        self._system_categories = system_categories

    @property
    def system_categories(self) -> SystemCategories:
        if self._system_categories is None:
            self._system_categories = self.category_service.resolve_system_categories()
        return self._system_categories

    def derive_status(self, transaction_date: date) -> TransactionStatus:
        """Dates up to today are completed; future dates are pending."""
        if transaction_date <= self.today():
            return TransactionStatus.COMPLETED
        return TransactionStatus.PENDING

    def create_transaction(
        self,
        account_id: int,
        category_id: int,
        type: TransactionType | str,
        amount: Decimal,
        transaction_date: date,
        description: str = "",
    ) -> int:
        """Create an income or expense transaction.

        Status is derived from ``transaction_date``; a completed transaction
        adjusts the account balance exactly once.

        Args:
            account_id: Account ID
            category_id: Category ID; its type must match ``type``
            type: "income" or "expense"
            amount: Positive amount
            transaction_date: Date of the movement
            description: Free text

        Returns:
            Transaction ID

        Raises:
            NotFoundError: If the account or category doesn't exist
            ValidationError: If the amount, type or category is invalid, or the
                account is inactive
        """
        txn_type = self._coerce_type(type)
        amount = validate_amount(amount)
        self.account_service.require_account(account_id, active=True)
        self._check_category(category_id, txn_type)
        status = self.derive_status(transaction_date)

        with self.db.transaction():
            transaction_id = self.db.create_transaction(
                owner_id=self.owner_id,
                account_id=account_id,
                category_id=category_id,
                type=txn_type.value,
                amount=amount,
                transaction_date=transaction_date,
                status=status.value,
                description=description or "",
            )
            if status == TransactionStatus.COMPLETED:
                self.db.apply_balance_delta(account_id, balance_effect(txn_type, amount))

        logger.info(
            "Created %s %s transaction %s of %s on account %s",
            status.value,
            txn_type.value,
            transaction_id,
            amount,
            account_id,
        )
        return transaction_id

    def create_transfer(
        self,
        from_account_id: int,
        to_account_id: int,
        amount: Decimal,
        transaction_date: date,
        description: str = "",
    ) -> tuple[int, int]:
        """Move money between two accounts as an expense/income pair.

        Both legs share amount, date, status and a transfer group token, and
        are written in one unit of work together with their balance effects.

        Returns:
            (expense leg ID, income leg ID)

        Raises:
            PreconditionError: If the accounts are the same or the transfer
                categories are not configured
        """
        if from_account_id == to_account_id:
            raise PreconditionError("Transfer source and destination accounts must differ")
        categories = self.system_categories
        if categories.transfer_expense_id is None or categories.transfer_income_id is None:
            raise PreconditionError(
                "Transfer categories (income and expense) are not configured; "
                "create them before recording transfers"
            )
        amount = validate_amount(amount)
        source = self.account_service.require_account(from_account_id, active=True)
        destination = self.account_service.require_account(to_account_id, active=True)
        status = self.derive_status(transaction_date)
        group = uuid.uuid4().hex
        suffix = f": {description}" if description else ""

        with self.db.transaction():
            expense_id = self.db.create_transaction(
                owner_id=self.owner_id,
                account_id=source.id,
                category_id=categories.transfer_expense_id,
                type=TransactionType.EXPENSE.value,
                amount=amount,
                transaction_date=transaction_date,
                status=status.value,
                description=f"Transfer to {destination.name}{suffix}",
                transfer_group=group,
            )
            income_id = self.db.create_transaction(
                owner_id=self.owner_id,
                account_id=destination.id,
                category_id=categories.transfer_income_id,
                type=TransactionType.INCOME.value,
                amount=amount,
                transaction_date=transaction_date,
                status=status.value,
                description=f"Transfer from {source.name}{suffix}",
                transfer_group=group,
            )
            if status == TransactionStatus.COMPLETED:
                self.db.apply_balance_delta(source.id, -amount)
                self.db.apply_balance_delta(destination.id, amount)

        logger.info(
            "Created %s transfer of %s from account %s to account %s (%s, %s)",
            status.value,
            amount,
            source.id,
            destination.id,
            expense_id,
            income_id,
        )
        return expense_id, income_id

    def get_transaction(self, transaction_id: int) -> Optional[Transaction]:
        """Get transaction by ID.

        Returns:
            Transaction entity or None if not found
        """
        txn = self.db.get_transaction(transaction_id)
        if txn is None or txn.owner_id != self.owner_id:
            return None
        return txn

    def require_transaction(self, transaction_id: int) -> Transaction:
        txn = self.get_transaction(transaction_id)
        if txn is None:
            raise NotFoundError(transaction_not_found(transaction_id))
        return txn

    def transfer_legs(self, txn: Transaction) -> list[Transaction]:
        """Return every leg that shares ``txn``'s transfer group.

        A transaction outside a transfer is its own only leg.
        """
        if txn.transfer_group is None:
            return [txn]
        return self.db.list_transactions(
            owner_id=self.owner_id, transfer_group=txn.transfer_group
        )

    def update_transaction(
        self,
        transaction_id: int,
        account_id: Optional[int] = None,
        category_id: Optional[int] = None,
        type: Optional[TransactionType | str] = None,
        amount: Optional[Decimal] = None,
        transaction_date: Optional[date] = None,
        description: Optional[str] = None,
    ) -> None:
        """Edit a transaction.

        The old balance effect is reversed on the old account before the new
        effect is applied to the (possibly different) new account. Status is
        re-derived from the resulting date.

        A transfer leg only accepts amount, date and description changes; the
        amount and date are applied to both legs so they keep matching.

        Raises:
            NotFoundError: If the transaction, account or category doesn't exist
            ValidationError: If the new values are invalid
        """
        old = self.require_transaction(transaction_id)
        if old.transfer_group is not None:
            reassigns = account_id is not None or category_id is not None or type is not None
            self._update_transfer(old, amount, transaction_date, description, reassigns)
            return

        new_type = old.type if type is None else self._coerce_type(type)
        new_amount = old.amount if amount is None else validate_amount(amount)
        new_account_id = old.account_id if account_id is None else account_id
        new_category_id = old.category_id if category_id is None else category_id
        new_date = old.transaction_date if transaction_date is None else transaction_date
        new_description = old.description if description is None else description

        if new_account_id != old.account_id:
            self.account_service.require_account(new_account_id, active=True)
        self._check_category(new_category_id, new_type)
        new_status = self.derive_status(new_date)

        with self.db.transaction():
            self._rewrite(
                old, new_account_id, new_category_id, new_type, new_amount, new_date, new_status, new_description
            )

        logger.info(
            "Updated transaction %s: %s %s on account %s -> %s %s on account %s",
            transaction_id,
            old.status.value,
            old.amount,
            old.account_id,
            new_status.value,
            new_amount,
            new_account_id,
        )

    def _update_transfer(
        self,
        old: Transaction,
        amount: Optional[Decimal],
        transaction_date: Optional[date],
        description: Optional[str],
        reassigns: bool,
    ) -> None:
        if reassigns:
            raise ValidationError(
                f"Transaction {old.id} is a transfer leg; only amount, date and "
                "description can change (delete and recreate the transfer instead)"
            )
        new_amount = old.amount if amount is None else validate_amount(amount)
        new_date = old.transaction_date if transaction_date is None else transaction_date
        new_status = self.derive_status(new_date)

        legs = self.transfer_legs(old)
        with self.db.transaction():
            for leg in legs:
                leg_description = leg.description
                if leg.id == old.id and description is not None:
                    leg_description = description
                self._rewrite(
                    leg, leg.account_id, leg.category_id, leg.type, new_amount, new_date, new_status, leg_description
                )

        logger.info(
            "Updated transfer %s: %s %s -> %s %s",
            old.transfer_group,
            old.status.value,
            old.amount,
            new_status.value,
            new_amount,
        )

    def _rewrite(
        self,
        old: Transaction,
        account_id: int,
        category_id: int,
        txn_type: TransactionType,
        amount: Decimal,
        transaction_date: date,
        status: TransactionStatus,
        description: str,
    ) -> None:
        if old.is_completed:
            self.db.apply_balance_delta(old.account_id, -old.signed_amount)
        self.db.update_transaction(
            old.id,
            account_id=account_id,
            category_id=category_id,
            type=txn_type.value,
            amount=amount,
            transaction_date=transaction_date,
            status=status.value,
            description=description,
        )
        if status == TransactionStatus.COMPLETED:
            self.db.apply_balance_delta(account_id, balance_effect(txn_type, amount))

    def complete_transaction(self, transaction_id: int) -> None:
        """Advance a pending transaction to completed and apply its effect.

        Both legs of a transfer complete together.

        Raises:
            InvalidStateError: If the transaction is already completed
        """
        txn = self.require_transaction(transaction_id)
        if txn.status != TransactionStatus.PENDING:
            raise InvalidStateError(f"Transaction {transaction_id} is not pending")

        legs = self.transfer_legs(txn)
        for leg in legs:
            if leg.status != TransactionStatus.PENDING:
                raise InvalidStateError(f"Transaction {leg.id} is not pending")

        with self.db.transaction():
            for leg in legs:
                self.db.set_transaction_status(leg.id, TransactionStatus.COMPLETED.value)
                self.db.apply_balance_delta(leg.account_id, leg.signed_amount)
        for leg in legs:
            logger.info("Completed transaction %s (%s on account %s)", leg.id, leg.signed_amount, leg.account_id)

    def revert_transaction(self, transaction_id: int) -> None:
        """Return a completed transaction to pending and undo its effect.

        Both legs of a transfer revert together.

        Raises:
            InvalidStateError: If the transaction is not completed
        """
        txn = self.require_transaction(transaction_id)
        if txn.status != TransactionStatus.COMPLETED:
            raise InvalidStateError(f"Transaction {transaction_id} is not completed")

        legs = self.transfer_legs(txn)
        for leg in legs:
            if leg.status != TransactionStatus.COMPLETED:
                raise InvalidStateError(f"Transaction {leg.id} is not completed")

        with self.db.transaction():
            for leg in legs:
                self.db.set_transaction_status(leg.id, TransactionStatus.PENDING.value)
                self.db.apply_balance_delta(leg.account_id, -leg.signed_amount)
        for leg in legs:
            logger.info("Reverted transaction %s (%s on account %s)", leg.id, -leg.signed_amount, leg.account_id)

    def delete_transaction(self, transaction_id: int) -> None:
        """Delete a transaction, reversing its effect if it was completed.

        Deleting either leg of a transfer deletes the whole transfer.
        """
        txn = self.require_transaction(transaction_id)
        legs = self.transfer_legs(txn)

        with self.db.transaction():
            for leg in legs:
                if leg.is_completed:
                    self.db.apply_balance_delta(leg.account_id, -leg.signed_amount)
                self.db.delete_transaction(leg.id)
        for leg in legs:
            logger.info("Deleted %s transaction %s", leg.status.value, leg.id)

    def list_transactions(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        account_id: Optional[int] = None,
        status: Optional[TransactionStatus | str] = None,
        type: Optional[TransactionType | str] = None,
        category_id: Optional[int] = None,
    ) -> list[Transaction]:
        """List transactions with filters, oldest first."""
        return self.db.list_transactions(
            owner_id=self.owner_id,
            start_date=start_date,
            end_date=end_date,
            account_id=account_id,
            status=None if status is None else TransactionStatus(status).value,
            type=None if type is None else TransactionType(type).value,
            category_id=category_id,
        )

    def summarize(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        account_id: Optional[int] = None,
    ) -> TransactionSummary:
        """Total income and expense by status over a filter."""
        totals = {
            (TransactionStatus.COMPLETED, TransactionType.INCOME): Decimal("0"),
            (TransactionStatus.COMPLETED, TransactionType.EXPENSE): Decimal("0"),
            (TransactionStatus.PENDING, TransactionType.INCOME): Decimal("0"),
            (TransactionStatus.PENDING, TransactionType.EXPENSE): Decimal("0"),
        }
        for txn in self.list_transactions(
            start_date=start_date, end_date=end_date, account_id=account_id
        ):
            key = (txn.status, txn.type)
            if key in totals:
                totals[key] += txn.amount
        return TransactionSummary(
            completed_income=totals[(TransactionStatus.COMPLETED, TransactionType.INCOME)],
            completed_expense=totals[(TransactionStatus.COMPLETED, TransactionType.EXPENSE)],
            pending_income=totals[(TransactionStatus.PENDING, TransactionType.INCOME)],
            pending_expense=totals[(TransactionStatus.PENDING, TransactionType.EXPENSE)],
        )

    def category_or_fallback(
        self, preferred_id: Optional[int], type: TransactionType, purpose: str
    ) -> int:
        """Return ``preferred_id`` or, when it is not configured, the first
        category of ``type``.

        Raises:
            PreconditionError: If no category of ``type`` exists at all
        """
        if preferred_id is not None:
            return preferred_id
        fallback = self.category_service.first_category_of_type(type.value)
        if fallback is None:
            raise PreconditionError(
                f"No {type.value} category available for {purpose}; create one first"
            )
        logger.warning(
            "No configured category for %s; falling back to '%s'", purpose, fallback.name
        )
        return fallback.id

    def _check_category(self, category_id: int, txn_type: TransactionType) -> None:
        category = self.category_service.require_category(category_id)
        if category.type.value != txn_type.value:
            raise ValidationError(
                category_type_mismatch(category.name, category.type.value, txn_type.value)
            )

    @staticmethod
    def _coerce_type(type: TransactionType | str) -> TransactionType:
        try:
            txn_type = TransactionType(type)
        except ValueError:
            raise ValidationError(f"Unknown transaction type '{type}'")
        if txn_type == TransactionType.TRANSFER:
            raise ValidationError("Transfers must be created with create_transfer")
        return txn_type
