"""Tests for TransactionService balance rules."""

import pytest
from datetime import date
from decimal import Decimal

from finledger.domain.entities import TransactionStatus, TransactionType
from finledger.domain.errors import (
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from finledger.domain.transaction import TransactionService, balance_effect

# Same day as the clock injected by the conftest fixtures
TODAY = date(2024, 6, 15)


def balance_of(account_service, account_id):
    return account_service.get_balance(account_id)


class TestCreateTransaction:
    """Tests for creating transactions."""

    def test_completed_expense_reduces_balance(
        self, transaction_service, account_service, sample_account, sample_categories
    ):
        txn_id = transaction_service.create_transaction(
            account_id=sample_account.id,
            category_id=sample_categories["expense:Food"],
            type="expense",
            amount=Decimal("100.00"),
            transaction_date=date(2024, 6, 1),
            description="Groceries",
        )

        txn = transaction_service.get_transaction(txn_id)
        assert txn.status == TransactionStatus.COMPLETED
        assert txn.type == TransactionType.EXPENSE
        assert txn.description == "Groceries"
        assert balance_of(account_service, sample_account.id) == Decimal("900.00")

    def test_completed_income_increases_balance(
        self, transaction_service, account_service, sample_account, sample_categories
    ):
        transaction_service.create_transaction(
            account_id=sample_account.id,
            category_id=sample_categories["income:Salary"],
            type=TransactionType.INCOME,
            amount=Decimal("2500.00"),
            transaction_date=TODAY,
        )

        assert balance_of(account_service, sample_account.id) == Decimal("3500.00")

    def test_future_transaction_is_pending_and_leaves_balance(
        self, transaction_service, account_service, sample_account, sample_categories
    ):
        txn_id = transaction_service.create_transaction(
            account_id=sample_account.id,
            category_id=sample_categories["expense:Housing"],
            type="expense",
            amount=Decimal("800.00"),
            transaction_date=date(2024, 7, 5),
        )

        assert transaction_service.get_transaction(txn_id).status == TransactionStatus.PENDING
        assert balance_of(account_service, sample_account.id) == Decimal("1000.00")

    @pytest.mark.parametrize("amount", [Decimal("0"), Decimal("-10.00")])
    def test_rejects_non_positive_amount(
        self, transaction_service, sample_account, sample_categories, amount
    ):
        with pytest.raises(ValidationError, match="greater than zero"):
            transaction_service.create_transaction(
                account_id=sample_account.id,
                category_id=sample_categories["expense:Food"],
                type="expense",
                amount=amount,
                transaction_date=TODAY,
            )

    def test_rejects_category_of_other_type(
        self, transaction_service, sample_account, sample_categories
    ):
        with pytest.raises(ValidationError, match="income category"):
            transaction_service.create_transaction(
                account_id=sample_account.id,
                category_id=sample_categories["income:Salary"],
                type="expense",
                amount=Decimal("10.00"),
                transaction_date=TODAY,
            )

    def test_rejects_transfer_type(self, transaction_service, sample_account, sample_categories):
        with pytest.raises(ValidationError, match="create_transfer"):
            transaction_service.create_transaction(
                account_id=sample_account.id,
                category_id=sample_categories["expense:Transfer"],
                type="transfer",
                amount=Decimal("10.00"),
                transaction_date=TODAY,
            )

    def test_rejects_unknown_account(self, transaction_service, sample_categories):
        with pytest.raises(NotFoundError, match="Account 999 not found"):
            transaction_service.create_transaction(
                account_id=999,
                category_id=sample_categories["expense:Food"],
                type="expense",
                amount=Decimal("10.00"),
                transaction_date=TODAY,
            )

    def test_rejects_inactive_account(
        self, transaction_service, account_service, sample_account, sample_categories
    ):
        account_service.deactivate_account(sample_account.id)

        with pytest.raises(ValidationError, match="inactive"):
            transaction_service.create_transaction(
                account_id=sample_account.id,
                category_id=sample_categories["expense:Food"],
                type="expense",
                amount=Decimal("10.00"),
                transaction_date=TODAY,
            )

    def test_other_owner_cannot_see_transaction(
        self, temp_db, transaction_service, sample_account, sample_categories, clock
    ):
        txn_id = transaction_service.create_transaction(
            account_id=sample_account.id,
            category_id=sample_categories["expense:Food"],
            type="expense",
            amount=Decimal("10.00"),
            transaction_date=TODAY,
        )
        other = TransactionService(temp_db, owner_id="someone-else", today=clock)

        assert other.get_transaction(txn_id) is None
        assert other.list_transactions() == []
        with pytest.raises(NotFoundError):
            other.delete_transaction(txn_id)


class TestUpdateTransaction:
    """Tests for editing transactions."""

    def test_amount_change_applies_difference(
        self, transaction_service, account_service, sample_account, sample_categories
    ):
        txn_id = transaction_service.create_transaction(
            account_id=sample_account.id,
            category_id=sample_categories["expense:Food"],
            type="expense",
            amount=Decimal("100.00"),
            transaction_date=TODAY,
        )

        transaction_service.update_transaction(txn_id, amount=Decimal("150.00"))

        assert balance_of(account_service, sample_account.id) == Decimal("850.00")
        assert transaction_service.get_transaction(txn_id).amount == Decimal("150.00")

    def test_moving_account_reverses_old_and_applies_new(
        self, transaction_service, account_service, sample_account, second_account, sample_categories
    ):
        txn_id = transaction_service.create_transaction(
            account_id=sample_account.id,
            category_id=sample_categories["expense:Food"],
            type="expense",
            amount=Decimal("100.00"),
            transaction_date=TODAY,
        )

        transaction_service.update_transaction(txn_id, account_id=second_account.id)

        assert balance_of(account_service, sample_account.id) == Decimal("1000.00")
        assert balance_of(account_service, second_account.id) == Decimal("-100.00")

    def test_moving_to_future_date_makes_pending(
        self, transaction_service, account_service, sample_account, sample_categories
    ):
        txn_id = transaction_service.create_transaction(
            account_id=sample_account.id,
            category_id=sample_categories["expense:Food"],
            type="expense",
            amount=Decimal("100.00"),
            transaction_date=TODAY,
        )

        transaction_service.update_transaction(txn_id, transaction_date=date(2024, 8, 1))

        assert transaction_service.get_transaction(txn_id).status == TransactionStatus.PENDING
        assert balance_of(account_service, sample_account.id) == Decimal("1000.00")

    def test_moving_to_past_date_completes(
        self, transaction_service, account_service, sample_account, sample_categories
    ):
        txn_id = transaction_service.create_transaction(
            account_id=sample_account.id,
            category_id=sample_categories["income:Salary"],
            type="income",
            amount=Decimal("300.00"),
            transaction_date=date(2024, 9, 1),
        )

        transaction_service.update_transaction(txn_id, transaction_date=date(2024, 6, 1))

        assert transaction_service.get_transaction(txn_id).status == TransactionStatus.COMPLETED
        assert balance_of(account_service, sample_account.id) == Decimal("1300.00")

    def test_type_change_requires_matching_category(
        self, transaction_service, account_service, sample_account, sample_categories
    ):
        txn_id = transaction_service.create_transaction(
            account_id=sample_account.id,
            category_id=sample_categories["expense:Food"],
            type="expense",
            amount=Decimal("100.00"),
            transaction_date=TODAY,
        )

        with pytest.raises(ValidationError):
            transaction_service.update_transaction(txn_id, type="income")
        assert balance_of(account_service, sample_account.id) == Decimal("900.00")

        transaction_service.update_transaction(
            txn_id, type="income", category_id=sample_categories["income:Other Income"]
        )
        assert balance_of(account_service, sample_account.id) == Decimal("1100.00")

    def test_rejected_update_leaves_everything_unchanged(
        self, transaction_service, account_service, sample_account, sample_categories
    ):
        txn_id = transaction_service.create_transaction(
            account_id=sample_account.id,
            category_id=sample_categories["expense:Food"],
            type="expense",
            amount=Decimal("100.00"),
            transaction_date=TODAY,
        )

        with pytest.raises(NotFoundError):
            transaction_service.update_transaction(txn_id, account_id=424242)

        txn = transaction_service.get_transaction(txn_id)
        assert txn.account_id == sample_account.id
        assert balance_of(account_service, sample_account.id) == Decimal("900.00")


class TestStatusTransitions:
    """Tests for complete, revert and delete."""

    def test_complete_applies_effect_once(
        self, transaction_service, account_service, sample_account, sample_categories
    ):
        txn_id = transaction_service.create_transaction(
            account_id=sample_account.id,
            category_id=sample_categories["expense:Housing"],
            type="expense",
            amount=Decimal("800.00"),
            transaction_date=date(2024, 7, 5),
        )

        transaction_service.complete_transaction(txn_id)

        assert transaction_service.get_transaction(txn_id).status == TransactionStatus.COMPLETED
        assert balance_of(account_service, sample_account.id) == Decimal("200.00")
        with pytest.raises(InvalidStateError):
            transaction_service.complete_transaction(txn_id)
        assert balance_of(account_service, sample_account.id) == Decimal("200.00")

    def test_revert_undoes_effect(
        self, transaction_service, account_service, sample_account, sample_categories
    ):
        txn_id = transaction_service.create_transaction(
            account_id=sample_account.id,
            category_id=sample_categories["expense:Food"],
            type="expense",
            amount=Decimal("40.00"),
            transaction_date=TODAY,
        )

        transaction_service.revert_transaction(txn_id)

        assert transaction_service.get_transaction(txn_id).status == TransactionStatus.PENDING
        assert balance_of(account_service, sample_account.id) == Decimal("1000.00")
        with pytest.raises(InvalidStateError):
            transaction_service.revert_transaction(txn_id)

    def test_complete_then_revert_is_identity(
        self, transaction_service, account_service, sample_account, sample_categories
    ):
        txn_id = transaction_service.create_transaction(
            account_id=sample_account.id,
            category_id=sample_categories["income:Salary"],
            type="income",
            amount=Decimal("123.45"),
            transaction_date=date(2024, 12, 1),
        )

        transaction_service.complete_transaction(txn_id)
        transaction_service.revert_transaction(txn_id)

        assert balance_of(account_service, sample_account.id) == Decimal("1000.00")

    def test_delete_completed_reverses_effect(
        self, transaction_service, account_service, sample_account, sample_categories
    ):
        txn_id = transaction_service.create_transaction(
            account_id=sample_account.id,
            category_id=sample_categories["expense:Food"],
            type="expense",
            amount=Decimal("60.00"),
            transaction_date=TODAY,
        )

        transaction_service.delete_transaction(txn_id)

        assert transaction_service.get_transaction(txn_id) is None
        assert balance_of(account_service, sample_account.id) == Decimal("1000.00")

    def test_delete_pending_leaves_balance(
        self, transaction_service, account_service, sample_account, sample_categories
    ):
        txn_id = transaction_service.create_transaction(
            account_id=sample_account.id,
            category_id=sample_categories["expense:Food"],
            type="expense",
            amount=Decimal("60.00"),
            transaction_date=date(2025, 1, 1),
        )

        transaction_service.delete_transaction(txn_id)

        assert balance_of(account_service, sample_account.id) == Decimal("1000.00")

    def test_history_of_inactive_account_can_still_change(
        self, transaction_service, account_service, sample_account, sample_categories
    ):
        txn_id = transaction_service.create_transaction(
            account_id=sample_account.id,
            category_id=sample_categories["expense:Food"],
            type="expense",
            amount=Decimal("60.00"),
            transaction_date=TODAY,
        )
        account_service.deactivate_account(sample_account.id)

        transaction_service.revert_transaction(txn_id)
        transaction_service.delete_transaction(txn_id)

        assert balance_of(account_service, sample_account.id) == Decimal("1000.00")


class TestBalanceClosure:
    """The stored balance always equals initial + completed income - completed expense."""

    def test_balance_matches_history_after_mixed_operations(
        self, transaction_service, account_service, sample_account, second_account, sample_categories
    ):
        food = sample_categories["expense:Food"]
        salary = sample_categories["income:Salary"]
        t1 = transaction_service.create_transaction(
            sample_account.id, salary, "income", Decimal("2000.00"), date(2024, 6, 1)
        )
        t2 = transaction_service.create_transaction(
            sample_account.id, food, "expense", Decimal("35.10"), date(2024, 6, 2)
        )
        t3 = transaction_service.create_transaction(
            sample_account.id, food, "expense", Decimal("99.99"), date(2024, 7, 2)
        )
        transaction_service.create_transfer(
            sample_account.id, second_account.id, Decimal("500.00"), date(2024, 6, 3)
        )
        transaction_service.update_transaction(t2, amount=Decimal("45.10"))
        transaction_service.complete_transaction(t3)
        transaction_service.revert_transaction(t1)
        transaction_service.update_transaction(t1, transaction_date=date(2024, 6, 10))
        transaction_service.delete_transaction(t3)

        for account in account_service.list_accounts():
            assert account.balance == account_service.derived_balance(account.id)
        assert account_service.reconcile() == []
        assert account_service.get_balance(sample_account.id) == Decimal("2454.90")
        assert account_service.get_balance(second_account.id) == Decimal("500.00")


class TestQueries:
    """Tests for listing and summarizing."""

    def test_list_filters(self, transaction_service, sample_account, second_account, sample_categories):
        food = sample_categories["expense:Food"]
        salary = sample_categories["income:Salary"]
        transaction_service.create_transaction(sample_account.id, food, "expense", Decimal("10"), date(2024, 5, 1))
        transaction_service.create_transaction(sample_account.id, salary, "income", Decimal("20"), date(2024, 6, 1))
        transaction_service.create_transaction(second_account.id, food, "expense", Decimal("30"), date(2024, 6, 2))
        transaction_service.create_transaction(sample_account.id, food, "expense", Decimal("40"), date(2024, 7, 1))

        assert len(transaction_service.list_transactions()) == 4
        assert [t.amount for t in transaction_service.list_transactions(account_id=sample_account.id)] == [
            Decimal("10.00"),
            Decimal("20.00"),
            Decimal("40.00"),
        ]
        june = transaction_service.list_transactions(
            start_date=date(2024, 6, 1), end_date=date(2024, 6, 30)
        )
        assert [t.amount for t in june] == [Decimal("20.00"), Decimal("30.00")]
        assert len(transaction_service.list_transactions(status="pending")) == 1
        assert len(transaction_service.list_transactions(type="income")) == 1
        assert len(transaction_service.list_transactions(category_id=food)) == 3

    def test_summarize_splits_by_status(self, transaction_service, sample_account, sample_categories):
        food = sample_categories["expense:Food"]
        salary = sample_categories["income:Salary"]
        transaction_service.create_transaction(sample_account.id, salary, "income", Decimal("100"), date(2024, 6, 1))
        transaction_service.create_transaction(sample_account.id, food, "expense", Decimal("30"), date(2024, 6, 2))
        transaction_service.create_transaction(sample_account.id, salary, "income", Decimal("50"), date(2024, 6, 20))
        transaction_service.create_transaction(sample_account.id, food, "expense", Decimal("5"), date(2024, 6, 25))

        summary = transaction_service.summarize(account_id=sample_account.id)

        assert summary.completed_income == Decimal("100.00")
        assert summary.completed_expense == Decimal("30.00")
        assert summary.pending_income == Decimal("50.00")
        assert summary.pending_expense == Decimal("5.00")
        assert summary.net == Decimal("70.00")
        assert summary.projected_net == Decimal("115.00")


def test_balance_effect_signs():
    assert balance_effect(TransactionType.INCOME, Decimal("5")) == Decimal("5")
    assert balance_effect(TransactionType.EXPENSE, Decimal("5")) == Decimal("-5")
    with pytest.raises(ValidationError):
        balance_effect(TransactionType.TRANSFER, Decimal("5"))


class TestCentRounding:
    """Amounts are rounded to cents before they reach the balance."""

    def test_sub_cent_amount_keeps_balance_closed(
        self, transaction_service, account_service, sample_account, sample_categories
    ):
        food = sample_categories["expense:Food"]
        txn_id = transaction_service.create_transaction(
            sample_account.id, food, "expense", Decimal("10.005"), date(2024, 6, 1)
        )
        transaction_service.update_transaction(txn_id, amount=Decimal("20.004"))
        transaction_service.create_transaction(
            sample_account.id, food, "expense", Decimal("0.015"), date(2024, 6, 2)
        )

        assert transaction_service.get_transaction(txn_id).amount == Decimal("20.00")
        assert account_service.get_balance(sample_account.id) == Decimal("979.98")
        assert account_service.derived_balance(sample_account.id) == Decimal("979.98")
        assert account_service.reconcile() == []

    def test_amount_rounding_to_zero_is_rejected(
        self, transaction_service, account_service, sample_account, sample_categories
    ):
        food = sample_categories["expense:Food"]

        with pytest.raises(ValidationError, match="greater than zero"):
            transaction_service.create_transaction(
                sample_account.id, food, "expense", Decimal("0.004"), date(2024, 6, 1)
            )

        assert transaction_service.list_transactions() == []
        assert account_service.reconcile() == []
