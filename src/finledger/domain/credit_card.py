"""Credit card domain service: purchases, installment schedules and invoices."""

import logging
from datetime import date
from decimal import Decimal, ROUND_DOWN
from typing import Callable, Optional

from finledger.config import DEFAULT_OWNER
from finledger.database.base import Database
from finledger.domain.category import SystemCategories
from finledger.domain.entities import (
    CategoryType,
    CreditCard,
    CreditCardPurchase,
    Installment,
    Invoice,
    TransactionType,
)
from finledger.domain.errors import (
    NotFoundError,
    PreconditionError,
    ValidationError,
    card_not_found,
    category_type_mismatch,
    purchase_not_found,
)
from finledger.domain.transaction import TransactionService, validate_amount
from finledger.utils.amount_parser import CENT, to_cents
from finledger.utils.date_parser import add_months, month_end, month_start

logger = logging.getLogger(__name__)


def installment_schedule(
    total_amount: Decimal, installments: int, first_due_month: date
) -> list[tuple[int, Decimal, date]]:
    """Split a purchase into ``installments`` monthly shares.

    Each share is ``total / N`` truncated to cents and the last share absorbs
    the remainder, so the schedule always sums exactly to the total.

    Returns:
        List of (installment number, amount, due date), numbered from 1
    """
    if installments < 1:
        raise ValidationError(f"Installments must be at least 1, got {installments}")
    total = to_cents(Decimal(total_amount))
    share = (total / installments).quantize(CENT, rounding=ROUND_DOWN)
    first = month_start(first_due_month)

    schedule = []
    for number in range(1, installments + 1):
        amount = share if number < installments else total - share * (installments - 1)
        schedule.append((number, amount, add_months(first, number - 1)))
    return schedule


class CreditCardService:
    """Service for credit cards, their purchases and invoice settlement."""

    def __init__(
        self,
        db: Database,
        owner_id: str = DEFAULT_OWNER,
        system_categories: Optional[SystemCategories] = None,
        today: Optional[Callable[[], date]] = None,
    ):
        """Initialize credit card service.

        Args:
            db: Database instance
            owner_id: Owner whose cards this service manages
            system_categories: Resolved system category IDs
            today: Clock used to date invoice payments
        """
        self.db = db
        self.owner_id = owner_id
        self.transactions = TransactionService(
            db, owner_id=owner_id, system_categories=system_categories, today=today
        )

    @property
    def today(self) -> Callable[[], date]:
        return self.transactions.today

    def create_card(self, name: str, due_day: int, card_limit: Decimal = Decimal("0")) -> int:
        """Create a credit card.

        Raises:
            ValidationError: If the name is empty, the due day is outside 1-31
                or the limit is negative
        """
        name = name.strip()
        if not name:
            raise ValidationError("Card name cannot be empty")
        self._check_due_day(due_day)
        card_limit = self._check_limit(card_limit)
        card_id = self.db.create_credit_card(
            owner_id=self.owner_id, name=name, due_day=due_day, card_limit=card_limit
        )
        logger.info("Created credit card %s '%s' (limit %s)", card_id, name, card_limit)
        return card_id

    def get_card(self, card_id: int) -> Optional[CreditCard]:
        card = self.db.get_credit_card(card_id)
        if card is None or card.owner_id != self.owner_id:
            return None
        return card

    def require_card(self, card_id: int, active: bool = False) -> CreditCard:
        card = self.get_card(card_id)
        if card is None:
            raise NotFoundError(card_not_found(card_id))
        if active and not card.active:
            raise ValidationError(f"Credit card {card_id} is inactive")
        return card

    def list_cards(self, include_inactive: bool = False) -> list[CreditCard]:
        return self.db.list_credit_cards(self.owner_id, include_inactive=include_inactive)

    def update_card(
        self,
        card_id: int,
        name: Optional[str] = None,
        due_day: Optional[int] = None,
        card_limit: Optional[Decimal] = None,
    ) -> None:
        self.require_card(card_id)
        if name is not None:
            name = name.strip()
            if not name:
                raise ValidationError("Card name cannot be empty")
        if due_day is not None:
            self._check_due_day(due_day)
        if card_limit is not None:
            card_limit = self._check_limit(card_limit)
        self.db.update_credit_card(card_id, name=name, due_day=due_day, card_limit=card_limit)

    def deactivate_card(self, card_id: int) -> None:
        """Stop accepting purchases on a card; existing installments remain."""
        self.require_card(card_id)
        self.db.update_credit_card(card_id, active=False)
        logger.info("Deactivated credit card %s", card_id)

    def record_purchase(
        self,
        card_id: int,
        category_id: int,
        total_amount: Decimal,
        installments: int,
        purchase_date: date,
        first_due_month: date,
        description: str = "",
    ) -> int:
        """Record a purchase and its full installment schedule.

        The purchase and all of its installments are written in one unit of
        work; a purchase never exists with a partial schedule.

        Args:
            card_id: Card ID
            category_id: Expense category ID
            total_amount: Positive purchase total
            installments: Number of monthly installments (>= 1)
            purchase_date: Date of the purchase
            first_due_month: Month of the first installment (day is ignored)
            description: Free text

        Returns:
            Purchase ID
        """
        self.require_card(card_id, active=True)
        total_amount = validate_amount(total_amount)
        category = self.transactions.category_service.require_category(category_id)
        if category.type != CategoryType.EXPENSE:
            raise ValidationError(
                category_type_mismatch(category.name, category.type.value, "expense")
            )
        schedule = installment_schedule(total_amount, installments, first_due_month)

        with self.db.transaction():
            purchase_id = self.db.create_purchase(
                card_id=card_id,
                category_id=category_id,
                total_amount=total_amount,
                installments=installments,
                purchase_date=purchase_date,
                first_due_month=month_start(first_due_month),
                description=description or "",
            )
            self.db.create_installments(purchase_id, schedule)

        logger.info(
            "Recorded purchase %s of %s in %d installments on card %s",
            purchase_id,
            total_amount,
            installments,
            card_id,
        )
        return purchase_id

    def get_purchase(self, purchase_id: int) -> Optional[CreditCardPurchase]:
        purchase = self.db.get_purchase(purchase_id)
        if purchase is None or self.get_card(purchase.card_id) is None:
            return None
        return purchase

    def delete_purchase(self, purchase_id: int) -> None:
        """Delete a purchase together with all of its installments."""
        if self.get_purchase(purchase_id) is None:
            raise NotFoundError(purchase_not_found(purchase_id))
        self.db.delete_purchase(purchase_id)
        logger.info("Deleted purchase %s", purchase_id)

    def list_purchases(self, card_id: int) -> list[CreditCardPurchase]:
        self.require_card(card_id)
        return self.db.list_purchases(card_id)

    def list_installments(
        self,
        card_id: int,
        purchase_id: Optional[int] = None,
        paid: Optional[bool] = None,
    ) -> list[Installment]:
        self.require_card(card_id)
        return self.db.list_installments(card_id=card_id, purchase_id=purchase_id, paid=paid)

    def compute_invoice(self, card_id: int, month: date) -> Invoice:
        """Collect the unpaid installments of a card due within ``month``.

        Always read from the store; invoices are never cached.
        """
        self.require_card(card_id)
        start = month_start(month)
        installments = self.db.list_installments(
            card_id=card_id, start_date=start, end_date=month_end(start), paid=False
        )
        return Invoice(card_id=card_id, month=start, installments=tuple(installments))

    def pay_invoice(self, card_id: int, month: date, paying_account_id: int) -> int:
        """Settle a month's invoice from an account.

        Creates one completed expense for the invoice total dated today,
        applies it to the paying account and marks every installment of the
        invoice paid, all in one unit of work.

        Returns:
            ID of the payment transaction

        Raises:
            PreconditionError: If the invoice is empty (including when it was
                already paid) or no expense category exists
        """
        card = self.require_card(card_id)
        invoice = self.compute_invoice(card_id, month)
        if invoice.is_empty:
            logger.warning("Rejected payment of empty invoice %s for card %s", invoice.month, card_id)
            raise PreconditionError(
                f"No unpaid installments for card '{card.name}' in {invoice.month:%Y-%m}"
            )
        category_id = self.transactions.category_or_fallback(
            self.transactions.system_categories.card_payment_id,
            TransactionType.EXPENSE,
            "card payments",
        )

        with self.db.transaction():
            transaction_id = self.transactions.create_transaction(
                account_id=paying_account_id,
                category_id=category_id,
                type=TransactionType.EXPENSE,
                amount=invoice.total,
                transaction_date=self.today(),
                description=f"Invoice payment {card.name} - {invoice.month:%m/%Y}",
            )
            marked = self.db.mark_installments_paid(i.id for i in invoice.installments)
            if marked != len(invoice.installments):
                raise PreconditionError(
                    f"Invoice {invoice.month:%Y-%m} for card '{card.name}' changed while paying"
                )

        logger.info(
            "Paid invoice %s of card %s: %s from account %s (%d installments)",
            invoice.month,
            card_id,
            invoice.total,
            paying_account_id,
            len(invoice.installments),
        )
        return transaction_id

    def outstanding_amount(self, card_id: int) -> Decimal:
        """Sum of all unpaid installments of a card."""
        return sum(
            (i.amount for i in self.list_installments(card_id, paid=False)), Decimal("0")
        )

    def available_limit(self, card_id: int) -> Decimal:
        card = self.require_card(card_id)
        return card.card_limit - self.outstanding_amount(card_id)

    @staticmethod
    def _check_due_day(due_day: int) -> None:
        if not 1 <= due_day <= 31:
            raise ValidationError(f"Due day must be between 1 and 31, got {due_day}")

    @staticmethod
    def _check_limit(card_limit: Decimal) -> Decimal:
        card_limit = Decimal(card_limit)
        if card_limit < 0:
            raise ValidationError(f"Card limit cannot be negative, got {card_limit}")
        return card_limit
