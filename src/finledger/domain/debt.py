"""Debt domain service.

A debt's ``current_balance`` starts at its ``total_amount`` and only goes
down, by the principal portion of each recorded payment. ``update_debt`` is
the manual correction path and the only way to raise it again.
"""

import logging
from datetime import date
from decimal import Decimal
from typing import Callable, Optional

from finledger.config import DEFAULT_OWNER
from finledger.database.base import Database
from finledger.domain.category import SystemCategories
from finledger.domain.entities import Debt, DebtPayment, TransactionType
from finledger.domain.errors import NotFoundError, ValidationError, debt_not_found
from finledger.domain.transaction import TransactionService, validate_amount
from finledger.utils.amount_parser import to_cents

logger = logging.getLogger(__name__)

_EDITABLE_FIELDS = (
    "name",
    "lender",
    "total_amount",
    "current_balance",
    "interest_rate",
    "start_date",
    "due_day",
    "total_installments",
    "installment_value",
    "description",
)


class DebtService:
    """Service for debts and their payment history."""

    def __init__(
        self,
        db: Database,
        owner_id: str = DEFAULT_OWNER,
        system_categories: Optional[SystemCategories] = None,
        today: Optional[Callable[[], date]] = None,
    ):
        self.db = db
        self.owner_id = owner_id
        self.transactions = TransactionService(
            db, owner_id=owner_id, system_categories=system_categories, today=today
        )

    def create_debt(
        self,
        name: str,
        total_amount: Decimal,
        start_date: date,
        due_day: int,
        lender: str = "",
        interest_rate: Decimal = Decimal("0"),
        total_installments: Optional[int] = None,
        installment_value: Optional[Decimal] = None,
        description: str = "",
    ) -> int:
        """Create a debt whose outstanding balance equals its total amount.

        Args:
            name: Debt name
            total_amount: Original principal
            start_date: Date the debt started
            due_day: Day of month payments are due (1-31)
            lender: Who lent the money
            interest_rate: Monthly interest rate in percent (informational)
            total_installments: Optional number of planned installments
            installment_value: Optional planned installment value
            description: Free text

        Returns:
            Debt ID
        """
        name = name.strip()
        if not name:
            raise ValidationError("Debt name cannot be empty")
        total_amount = validate_amount(total_amount)
        self._check_fields(
            due_day=due_day,
            interest_rate=interest_rate,
            total_installments=total_installments,
            installment_value=installment_value,
        )
        debt_id = self.db.create_debt(
            owner_id=self.owner_id,
            name=name,
            lender=lender or "",
            total_amount=total_amount,
            interest_rate=Decimal(interest_rate),
            start_date=start_date,
            due_day=due_day,
            total_installments=total_installments,
            installment_value=installment_value,
            description=description or "",
        )
        logger.info("Created debt %s '%s' of %s", debt_id, name, total_amount)
        return debt_id

    def get_debt(self, debt_id: int) -> Optional[Debt]:
        debt = self.db.get_debt(debt_id)
        if debt is None or debt.owner_id != self.owner_id:
            return None
        return debt

    def require_debt(self, debt_id: int) -> Debt:
        debt = self.get_debt(debt_id)
        if debt is None:
            raise NotFoundError(debt_not_found(debt_id))
        return debt

    def list_debts(self) -> list[Debt]:
        return self.db.list_debts(self.owner_id)

    def update_debt(self, debt_id: int, **fields) -> None:
        """Correct debt fields by hand, including the outstanding balance.

        Raises:
            ValidationError: On unknown fields or invalid values
        """
        self.require_debt(debt_id)
        unknown = set(fields) - set(_EDITABLE_FIELDS)
        if unknown:
            raise ValidationError(f"Cannot update debt fields: {', '.join(sorted(unknown))}")
        if "name" in fields and not str(fields["name"]).strip():
            raise ValidationError("Debt name cannot be empty")
        if "total_amount" in fields:
            fields["total_amount"] = validate_amount(fields["total_amount"])
        if "current_balance" in fields:
            balance = to_cents(Decimal(fields["current_balance"]))
            if balance < 0:
                raise ValidationError(f"Debt balance cannot be negative, got {balance}")
            fields["current_balance"] = balance
        self._check_fields(
            due_day=fields.get("due_day"),
            interest_rate=fields.get("interest_rate"),
            total_installments=fields.get("total_installments"),
            installment_value=fields.get("installment_value"),
        )
        self.db.update_debt(debt_id, **fields)
        logger.info("Updated debt %s: %s", debt_id, ", ".join(sorted(fields)))

    def delete_debt(self, debt_id: int) -> None:
        """Delete a debt; its payment history goes with it.

        Linked expense transactions are kept, since they already moved money.
        """
        self.require_debt(debt_id)
        self.db.delete_debt(debt_id)
        logger.info("Deleted debt %s", debt_id)

    def estimate_interest(self, debt_id: int) -> Decimal:
        """One month of simple interest on the outstanding balance."""
        debt = self.require_debt(debt_id)
        return to_cents(debt.current_balance * debt.interest_rate / Decimal("100"))

    def suggest_split(self, debt_id: int, total_amount: Decimal) -> tuple[Decimal, Decimal]:
        """Split a payment total into (principal, interest) using the estimate.

        Interest is capped at the total so both parts are non-negative and
        always add up to it.
        """
        total_amount = validate_amount(total_amount)
        interest = min(self.estimate_interest(debt_id), total_amount)
        return max(Decimal("0"), total_amount - interest), interest

    def record_payment(
        self,
        debt_id: int,
        payment_date: date,
        total_amount: Decimal,
        principal_amount: Decimal,
        interest_amount: Decimal,
        account_id: Optional[int] = None,
        description: Optional[str] = None,
    ) -> int:
        """Record a payment and amortize the debt by its principal.

        When ``account_id`` is given, a linked expense is created on that
        account through the normal transaction rules. The linked expense, the
        payment row and the balance reduction share one unit of work; the
        balance is floored at zero.

        Returns:
            Payment ID

        Raises:
            ValidationError: If amounts are negative or principal + interest
                does not equal the total
        """
        debt = self.require_debt(debt_id)
        total_amount = validate_amount(total_amount)
        principal_amount = to_cents(Decimal(principal_amount))
        interest_amount = to_cents(Decimal(interest_amount))
        if principal_amount < 0 or interest_amount < 0:
            raise ValidationError("Principal and interest cannot be negative")
        if principal_amount + interest_amount != total_amount:
            raise ValidationError(
                f"Principal {principal_amount} + interest {interest_amount} "
                f"must equal the payment total {total_amount}"
            )
        description = description or f"Debt payment - {debt.name}"

        with self.db.transaction():
            transaction_id = None
            if account_id is not None:
                category_id = self.transactions.category_or_fallback(
                    self.transactions.system_categories.debt_payment_id,
                    TransactionType.EXPENSE,
                    "debt payments",
                )
                transaction_id = self.transactions.create_transaction(
                    account_id=account_id,
                    category_id=category_id,
                    type=TransactionType.EXPENSE,
                    amount=total_amount,
                    transaction_date=payment_date,
                    description=description,
                )
            payment_id = self.db.create_debt_payment(
                debt_id=debt_id,
                payment_date=payment_date,
                amount=total_amount,
                principal_amount=principal_amount,
                interest_amount=interest_amount,
                transaction_id=transaction_id,
                description=description,
            )
            self.db.reduce_debt_balance(debt_id, principal_amount)

        logger.info(
            "Recorded payment %s on debt %s: principal %s, interest %s",
            payment_id,
            debt_id,
            principal_amount,
            interest_amount,
        )
        return payment_id

    def list_payments(self, debt_id: int) -> list[DebtPayment]:
        self.require_debt(debt_id)
        return self.db.list_debt_payments(debt_id)

    def paid_principal(self, debt_id: int) -> Decimal:
        """Total principal amortized by recorded payments."""
        return sum((p.principal_amount for p in self.list_payments(debt_id)), Decimal("0"))

    @staticmethod
    def _check_fields(
        due_day: Optional[int] = None,
        interest_rate: Optional[Decimal] = None,
        total_installments: Optional[int] = None,
        installment_value: Optional[Decimal] = None,
    ) -> None:
        if due_day is not None and not 1 <= due_day <= 31:
            raise ValidationError(f"Due day must be between 1 and 31, got {due_day}")
        if interest_rate is not None and Decimal(interest_rate) < 0:
            raise ValidationError(f"Interest rate cannot be negative, got {interest_rate}")
        if total_installments is not None and total_installments < 1:
            raise ValidationError("Total installments must be at least 1")
        if installment_value is not None and Decimal(installment_value) <= 0:
            raise ValidationError("Installment value must be greater than zero")
