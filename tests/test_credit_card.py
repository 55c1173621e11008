"""Tests for credit card purchases, installments and invoices."""

import pytest
from datetime import date
from decimal import Decimal

from sqlalchemy.exc import OperationalError

from finledger.domain.category import SystemCategories
from finledger.domain.credit_card import CreditCardService, installment_schedule
from finledger.domain.entities import CategoryType, TransactionStatus, TransactionType
from finledger.domain.errors import (
    NotFoundError,
    PreconditionError,
    StorageError,
    ValidationError,
)


@pytest.fixture
def card(credit_card_service):
    card_id = credit_card_service.create_card("Visa", due_day=10, card_limit=Decimal("5000"))
    return credit_card_service.get_card(card_id)


@pytest.fixture
def purchase_900(credit_card_service, card, sample_categories):
    """900 split in 3 installments starting 2024-01."""
    return credit_card_service.record_purchase(
        card_id=card.id,
        category_id=sample_categories["expense:Leisure"],
        total_amount=Decimal("900.00"),
        installments=3,
        purchase_date=date(2023, 12, 20),
        first_due_month=date(2024, 1, 1),
        description="TV",
    )


class TestInstallmentSchedule:
    def test_equal_split(self):
        schedule = installment_schedule(Decimal("1000"), 4, date(2024, 1, 1))

        assert [amount for _, amount, _ in schedule] == [Decimal("250.00")] * 4
        assert [due for _, _, due in schedule] == [
            date(2024, 1, 1),
            date(2024, 2, 1),
            date(2024, 3, 1),
            date(2024, 4, 1),
        ]
        assert [number for number, _, _ in schedule] == [1, 2, 3, 4]

    def test_last_installment_absorbs_remainder(self):
        schedule = installment_schedule(Decimal("100.00"), 3, date(2024, 11, 1))

        amounts = [amount for _, amount, _ in schedule]
        assert amounts == [Decimal("33.33"), Decimal("33.33"), Decimal("33.34")]
        assert sum(amounts) == Decimal("100.00")
        assert schedule[-1][2] == date(2025, 1, 1)

    def test_first_due_month_day_is_ignored(self):
        schedule = installment_schedule(Decimal("10.00"), 1, date(2024, 3, 27))

        assert schedule == [(1, Decimal("10.00"), date(2024, 3, 1))]

    def test_rejects_zero_installments(self):
        with pytest.raises(ValidationError):
            installment_schedule(Decimal("10.00"), 0, date(2024, 3, 1))


class TestCards:
    def test_create_and_list(self, credit_card_service, card):
        assert card.name == "Visa"
        assert card.due_day == 10
        assert card.card_limit == Decimal("5000.00")
        assert card.active is True
        assert [c.id for c in credit_card_service.list_cards()] == [card.id]

    @pytest.mark.parametrize("due_day", [0, 32])
    def test_rejects_invalid_due_day(self, credit_card_service, due_day):
        with pytest.raises(ValidationError, match="Due day"):
            credit_card_service.create_card("Bad", due_day=due_day)

    def test_update_card(self, credit_card_service, card):
        credit_card_service.update_card(card.id, name="Visa Gold", card_limit=Decimal("8000"))

        updated = credit_card_service.get_card(card.id)
        assert updated.name == "Visa Gold"
        assert updated.card_limit == Decimal("8000.00")

    def test_deactivated_card_rejects_purchases(
        self, credit_card_service, card, sample_categories
    ):
        credit_card_service.deactivate_card(card.id)

        assert credit_card_service.list_cards() == []
        assert len(credit_card_service.list_cards(include_inactive=True)) == 1
        with pytest.raises(ValidationError, match="inactive"):
            credit_card_service.record_purchase(
                card.id,
                sample_categories["expense:Food"],
                Decimal("10.00"),
                1,
                date(2024, 6, 1),
                date(2024, 7, 1),
            )


class TestPurchases:
    def test_purchase_generates_installments(self, credit_card_service, card, purchase_900):
        installments = credit_card_service.list_installments(card.id, purchase_id=purchase_900)

        assert [(i.installment_number, i.amount, i.due_date) for i in installments] == [
            (1, Decimal("300.00"), date(2024, 1, 1)),
            (2, Decimal("300.00"), date(2024, 2, 1)),
            (3, Decimal("300.00"), date(2024, 3, 1)),
        ]
        assert not any(i.paid for i in installments)
        purchase = credit_card_service.get_purchase(purchase_900)
        assert purchase.installments == 3
        assert purchase.first_due_month == date(2024, 1, 1)

    def test_purchase_requires_expense_category(
        self, credit_card_service, card, sample_categories
    ):
        with pytest.raises(ValidationError, match="income category"):
            credit_card_service.record_purchase(
                card.id,
                sample_categories["income:Salary"],
                Decimal("10.00"),
                1,
                date(2024, 6, 1),
                date(2024, 7, 1),
            )
        assert credit_card_service.list_purchases(card.id) == []

    def test_purchase_does_not_touch_account_balances(
        self, credit_card_service, account_service, sample_account, purchase_900
    ):
        assert account_service.get_balance(sample_account.id) == Decimal("1000.00")

    def test_delete_purchase_removes_installments(
        self, credit_card_service, card, purchase_900
    ):
        credit_card_service.delete_purchase(purchase_900)

        assert credit_card_service.get_purchase(purchase_900) is None
        assert credit_card_service.list_installments(card.id) == []
        with pytest.raises(NotFoundError):
            credit_card_service.delete_purchase(purchase_900)

    def test_outstanding_and_available_limit(self, credit_card_service, card, purchase_900):
        assert credit_card_service.outstanding_amount(card.id) == Decimal("900.00")
        assert credit_card_service.available_limit(card.id) == Decimal("4100.00")


class TestInvoices:
    def test_compute_invoice(self, credit_card_service, card, purchase_900, sample_categories):
        credit_card_service.record_purchase(
            card.id,
            sample_categories["expense:Food"],
            Decimal("45.50"),
            1,
            date(2024, 1, 5),
            date(2024, 1, 1),
        )

        invoice = credit_card_service.compute_invoice(card.id, date(2024, 1, 20))

        assert invoice.month == date(2024, 1, 1)
        assert len(invoice.installments) == 2
        assert invoice.total == Decimal("345.50")
        assert credit_card_service.compute_invoice(card.id, date(2024, 4, 1)).is_empty

    def test_pay_invoice_scenario(
        self, credit_card_service, account_service, card, sample_account, purchase_900, today
    ):
        transaction_id = credit_card_service.pay_invoice(card.id, date(2024, 1, 1), sample_account.id)

        assert account_service.get_balance(sample_account.id) == Decimal("700.00")
        installments = credit_card_service.list_installments(card.id, purchase_id=purchase_900)
        assert [i.paid for i in installments] == [True, False, False]

        payment = credit_card_service.transactions.get_transaction(transaction_id)
        assert payment.type == TransactionType.EXPENSE
        assert payment.status == TransactionStatus.COMPLETED
        assert payment.amount == Decimal("300.00")
        assert payment.transaction_date == today
        assert payment.description == "Invoice payment Visa - 01/2024"
        assert account_service.reconcile() == []

    def test_paying_twice_is_rejected(
        self, credit_card_service, account_service, card, sample_account, purchase_900
    ):
        credit_card_service.pay_invoice(card.id, date(2024, 1, 1), sample_account.id)

        with pytest.raises(PreconditionError, match="No unpaid installments"):
            credit_card_service.pay_invoice(card.id, date(2024, 1, 1), sample_account.id)
        assert account_service.get_balance(sample_account.id) == Decimal("700.00")
        assert len(credit_card_service.transactions.list_transactions()) == 1

    def test_paid_installments_leave_invoice(
        self, credit_card_service, card, sample_account, purchase_900
    ):
        credit_card_service.pay_invoice(card.id, date(2024, 1, 1), sample_account.id)

        assert credit_card_service.compute_invoice(card.id, date(2024, 1, 1)).is_empty
        assert credit_card_service.outstanding_amount(card.id) == Decimal("600.00")

    def test_payment_uses_card_payment_category(
        self, credit_card_service, card, sample_account, purchase_900, sample_categories
    ):
        transaction_id = credit_card_service.pay_invoice(card.id, date(2024, 1, 1), sample_account.id)

        payment = credit_card_service.transactions.get_transaction(transaction_id)
        assert payment.category_id == sample_categories["expense:Credit Card"]

    def test_payment_falls_back_to_any_expense_category(
        self, temp_db, card, sample_account, purchase_900, category_service, clock
    ):
        service = CreditCardService(temp_db, system_categories=SystemCategories(), today=clock)

        transaction_id = service.pay_invoice(card.id, date(2024, 1, 1), sample_account.id)

        payment = service.transactions.get_transaction(transaction_id)
        assert category_service.get_category(payment.category_id).type == CategoryType.EXPENSE

    def test_storage_failure_rolls_back_payment(
        self,
        temp_db,
        monkeypatch,
        credit_card_service,
        account_service,
        card,
        sample_account,
        purchase_900,
    ):
        def failing_mark(installment_ids):
            raise OperationalError("UPDATE installments", {}, Exception("disk I/O error"))

        monkeypatch.setattr(temp_db, "mark_installments_paid", failing_mark)

        with pytest.raises(StorageError):
            credit_card_service.pay_invoice(card.id, date(2024, 1, 1), sample_account.id)

        assert account_service.get_balance(sample_account.id) == Decimal("1000.00")
        assert credit_card_service.transactions.list_transactions() == []
        assert credit_card_service.compute_invoice(card.id, date(2024, 1, 1)).total == Decimal("300.00")

    def test_inactive_paying_account_is_rejected(
        self, credit_card_service, account_service, card, sample_account, purchase_900
    ):
        account_service.deactivate_account(sample_account.id)

        with pytest.raises(ValidationError, match="inactive"):
            credit_card_service.pay_invoice(card.id, date(2024, 1, 1), sample_account.id)
        assert credit_card_service.compute_invoice(card.id, date(2024, 1, 1)).total == Decimal("300.00")
