"""Tests for domain entities."""

import pytest
from dataclasses import FrozenInstanceError
from datetime import datetime, date, UTC
from decimal import Decimal

from finledger.domain.entities import (
    Account,
    AccountKind,
    Debt,
    Installment,
    Investment,
    InvestmentKind,
    Invoice,
    Transaction,
    TransactionStatus,
    TransactionType,
)


def make_transaction(**overrides):
    values = dict(
        id=1,
        owner_id="default",
        account_id=1,
        category_id=1,
        type=TransactionType.EXPENSE,
        amount=Decimal("25.00"),
        transaction_date=date(2024, 1, 15),
        status=TransactionStatus.COMPLETED,
        description="",
        transfer_group=None,
        created_at=datetime.now(UTC),
    )
    values.update(overrides)
    return Transaction(**values)


class TestAccount:
    def test_account_immutability(self):
        """Test that Account entities are immutable."""
        account = Account(
            id=1,
            owner_id="default",
            name="Checking",
            kind=AccountKind.CHECKING,
            initial_balance=Decimal("0"),
            balance=Decimal("0"),
            active=True,
            created_at=datetime.now(UTC),
        )
        with pytest.raises(FrozenInstanceError):
            account.balance = Decimal("10")


class TestTransaction:
    def test_signed_amount(self):
        assert make_transaction().signed_amount == Decimal("-25.00")
        assert make_transaction(type=TransactionType.INCOME).signed_amount == Decimal("25.00")

    def test_is_completed(self):
        assert make_transaction().is_completed
        assert not make_transaction(status=TransactionStatus.PENDING).is_completed

    def test_equality(self):
        created_at = datetime.now(UTC)
        assert make_transaction(created_at=created_at) == make_transaction(created_at=created_at)
        assert make_transaction(created_at=created_at) != make_transaction(id=2, created_at=created_at)

    def test_enums_compare_to_strings(self):
        assert TransactionType("income") == TransactionType.INCOME
        assert TransactionStatus.PENDING == "pending"


def test_invoice_total():
    installments = tuple(
        Installment(
            id=i, purchase_id=1, installment_number=i, amount=Decimal("33.33"), due_date=date(2024, i, 1), paid=False
        )
        for i in (1, 2)
    )

    assert Invoice(card_id=1, month=date(2024, 1, 1), installments=installments).total == Decimal("66.66")
    assert Invoice(card_id=1, month=date(2024, 1, 1)).is_empty


def test_debt_paid_off_tolerates_a_cent():
    debt = Debt(
        id=1,
        owner_id="default",
        name="Loan",
        lender="",
        total_amount=Decimal("100"),
        current_balance=Decimal("0.01"),
        interest_rate=Decimal("0"),
        start_date=date(2024, 1, 1),
        due_day=1,
        total_installments=None,
        installment_value=None,
        description="",
        created_at=datetime.now(UTC),
    )

    assert debt.is_paid_off


def test_investment_valuation():
    investment = Investment(
        id=1,
        owner_id="default",
        name="Acme",
        ticker="ACME",
        kind=InvestmentKind.STOCK,
        quantity=Decimal("4"),
        average_price=Decimal("10"),
        current_price=Decimal("12.5"),
        created_at=datetime.now(UTC),
    )

    assert investment.cost_basis == Decimal("40")
    assert investment.market_value == Decimal("50")
