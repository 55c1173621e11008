"""Tests for investment positions and operations."""

import pytest
from datetime import date
from decimal import Decimal

from finledger.domain.entities import InvestmentKind, InvestmentOperation, TransactionType
from finledger.domain.errors import NotFoundError, ValidationError
from finledger.domain.investment import cash_amount, weighted_average


@pytest.fixture
def stock(investment_service):
    investment_id = investment_service.create_investment("Acme Corp", kind="stock", ticker="acme")
    return investment_service.get_investment(investment_id)


def test_cash_amount_by_operation():
    qty, price, fees = Decimal("10"), Decimal("12.345"), Decimal("1.50")

    assert cash_amount(InvestmentOperation.BUY, qty, price, fees) == Decimal("124.95")
    assert cash_amount(InvestmentOperation.SELL, qty, price, fees) == Decimal("121.95")
    assert cash_amount(InvestmentOperation.DIVIDEND, qty, price, fees) == Decimal("123.45")


def test_weighted_average():
    assert weighted_average(Decimal("10"), Decimal("10"), Decimal("10"), Decimal("20")) == Decimal("15")
    assert weighted_average(Decimal("0"), Decimal("0"), Decimal("3"), Decimal("7.5")) == Decimal("7.5")


class TestCreateInvestment:
    def test_defaults(self, stock):
        assert stock.name == "Acme Corp"
        assert stock.ticker == "ACME"
        assert stock.kind == InvestmentKind.STOCK
        assert stock.quantity == Decimal("0")
        assert stock.average_price == Decimal("0")

    def test_unknown_kind_rejected(self, investment_service):
        with pytest.raises(ValidationError, match="Unknown investment kind"):
            investment_service.create_investment("Gold", kind="metal")

    def test_current_price_defaults_to_average(self, investment_service):
        investment_id = investment_service.create_investment(
            "Bond", kind=InvestmentKind.FIXED_INCOME, quantity=Decimal("2"), average_price=Decimal("500")
        )

        assert investment_service.get_investment(investment_id).current_price == Decimal("500")


class TestOperations:
    def test_buys_move_average_to_weighted_mean(self, investment_service, stock):
        investment_service.record_operation(stock.id, "buy", date(2024, 1, 5), Decimal("10"), Decimal("10"))
        investment_service.record_operation(stock.id, "buy", date(2024, 2, 5), Decimal("10"), Decimal("20"))

        position = investment_service.get_investment(stock.id)
        assert position.quantity == Decimal("20")
        assert position.average_price == Decimal("15")
        assert position.current_price == Decimal("20")

    def test_fees_do_not_change_average(self, investment_service, stock):
        investment_service.record_operation(
            stock.id, "buy", date(2024, 1, 5), Decimal("10"), Decimal("10"), fees=Decimal("5")
        )

        assert investment_service.get_investment(stock.id).average_price == Decimal("10")
        operation = investment_service.list_operations(stock.id)[0]
        assert operation.total_amount == Decimal("105.00")

    def test_sell_keeps_average_and_records_gain(self, investment_service, stock):
        investment_service.record_operation(stock.id, "buy", date(2024, 1, 5), Decimal("10"), Decimal("10"))
        investment_service.record_operation(stock.id, "buy", date(2024, 2, 5), Decimal("10"), Decimal("20"))

        investment_service.record_operation(
            stock.id, "sell", date(2024, 3, 5), Decimal("5"), Decimal("18"), fees=Decimal("1")
        )

        position = investment_service.get_investment(stock.id)
        assert position.quantity == Decimal("15")
        assert position.average_price == Decimal("15")
        sell = investment_service.list_operations(stock.id)[-1]
        assert sell.operation == InvestmentOperation.SELL
        assert sell.total_amount == Decimal("89.00")
        assert sell.realized_gain == Decimal("14.00")

    def test_sell_more_than_held_is_rejected(self, investment_service, stock):
        investment_service.record_operation(stock.id, "buy", date(2024, 1, 5), Decimal("3"), Decimal("10"))

        with pytest.raises(ValidationError, match="Cannot sell"):
            investment_service.record_operation(
                stock.id, "sell", date(2024, 2, 5), Decimal("4"), Decimal("10")
            )

        assert investment_service.get_investment(stock.id).quantity == Decimal("3")
        assert len(investment_service.list_operations(stock.id)) == 1

    def test_dividend_leaves_position(self, investment_service, stock):
        investment_service.record_operation(stock.id, "buy", date(2024, 1, 5), Decimal("20"), Decimal("10"))

        investment_service.record_operation(
            stock.id, "dividend", date(2024, 3, 1), Decimal("20"), Decimal("0.5")
        )

        position = investment_service.get_investment(stock.id)
        assert position.quantity == Decimal("20")
        assert position.average_price == Decimal("10")
        assert investment_service.list_operations(stock.id)[-1].total_amount == Decimal("10.00")

    @pytest.mark.parametrize(
        "quantity,price,fees",
        [
            (Decimal("0"), Decimal("10"), Decimal("0")),
            (Decimal("1"), Decimal("-1"), Decimal("0")),
            (Decimal("1"), Decimal("10"), Decimal("-1")),
        ],
    )
    def test_invalid_inputs(self, investment_service, stock, quantity, price, fees):
        with pytest.raises(ValidationError):
            investment_service.record_operation(
                stock.id, "buy", date(2024, 1, 5), quantity, price, fees=fees
            )

    def test_sell_eaten_by_fees_is_rejected(self, investment_service, stock):
        investment_service.record_operation(stock.id, "buy", date(2024, 1, 5), Decimal("1"), Decimal("10"))

        with pytest.raises(ValidationError, match="Operation amount"):
            investment_service.record_operation(
                stock.id, "sell", date(2024, 2, 5), Decimal("1"), Decimal("10"), fees=Decimal("10")
            )

    def test_unknown_operation_rejected(self, investment_service, stock):
        with pytest.raises(ValidationError, match="Unknown operation"):
            investment_service.record_operation(stock.id, "split", date(2024, 1, 5), Decimal("1"), Decimal("1"))


class TestLinkedTransactions:
    def test_buy_creates_expense(
        self, investment_service, account_service, stock, sample_account, sample_categories
    ):
        investment_service.record_operation(
            stock.id,
            "buy",
            date(2024, 1, 5),
            Decimal("10"),
            Decimal("10"),
            fees=Decimal("2"),
            account_id=sample_account.id,
        )

        operation = investment_service.list_operations(stock.id)[0]
        linked = investment_service.transactions.get_transaction(operation.transaction_id)
        assert linked.type == TransactionType.EXPENSE
        assert linked.amount == Decimal("102.00")
        assert linked.category_id == sample_categories["expense:Investments"]
        assert linked.description == "Buy - ACME"
        assert account_service.get_balance(sample_account.id) == Decimal("898.00")

    def test_sell_and_dividend_create_income(
        self, investment_service, account_service, stock, sample_account, sample_categories
    ):
        investment_service.record_operation(stock.id, "buy", date(2024, 1, 5), Decimal("10"), Decimal("10"))

        investment_service.record_operation(
            stock.id, "sell", date(2024, 2, 5), Decimal("5"), Decimal("12"), account_id=sample_account.id
        )
        investment_service.record_operation(
            stock.id, "dividend", date(2024, 3, 1), Decimal("5"), Decimal("1"), account_id=sample_account.id
        )

        sell, dividend = investment_service.list_operations(stock.id)[1:]
        sell_txn = investment_service.transactions.get_transaction(sell.transaction_id)
        dividend_txn = investment_service.transactions.get_transaction(dividend.transaction_id)
        assert sell_txn.type == dividend_txn.type == TransactionType.INCOME
        assert sell_txn.category_id == sample_categories["income:Investment Redemption"]
        assert dividend_txn.category_id == sample_categories["income:Investment Income"]
        assert dividend_txn.description == "Dividend - ACME"
        assert account_service.get_balance(sample_account.id) == Decimal("1065.00")

    def test_rejected_sell_writes_no_transaction(self, investment_service, stock, sample_account):
        with pytest.raises(ValidationError):
            investment_service.record_operation(
                stock.id, "sell", date(2024, 2, 5), Decimal("1"), Decimal("10"), account_id=sample_account.id
            )

        assert investment_service.transactions.list_transactions() == []


class TestPortfolio:
    def test_position_valuation(self, investment_service, stock):
        investment_service.record_operation(stock.id, "buy", date(2024, 1, 5), Decimal("10"), Decimal("10"))
        investment_service.update_investment(stock.id, current_price=Decimal("12.5"))

        position = investment_service.position(stock.id)
        assert position.cost_basis == Decimal("100.00")
        assert position.market_value == Decimal("125.00")
        assert position.unrealized_gain == Decimal("25.00")
        assert position.unrealized_gain_pct == Decimal("25")

    def test_portfolio_summary_groups_by_kind(self, investment_service, stock):
        investment_service.record_operation(stock.id, "buy", date(2024, 1, 5), Decimal("10"), Decimal("10"))
        investment_service.record_operation(stock.id, "buy", date(2024, 2, 5), Decimal("10"), Decimal("20"))
        investment_service.create_investment(
            "Treasury", kind="treasure", quantity=Decimal("1"), average_price=Decimal("1000")
        )

        summary = investment_service.portfolio_summary()

        assert len(summary.positions) == 2
        assert summary.total_cost == Decimal("1300.00")
        assert summary.total_value == Decimal("1400.00")
        assert summary.unrealized_gain == Decimal("100.00")
        assert summary.cost_by_kind[InvestmentKind.STOCK] == Decimal("300.00")
        assert summary.value_by_kind[InvestmentKind.TREASURE] == Decimal("1000.00")

    def test_delete_investment(self, investment_service, stock):
        investment_service.record_operation(stock.id, "buy", date(2024, 1, 5), Decimal("1"), Decimal("10"))

        investment_service.delete_investment(stock.id)

        assert investment_service.get_investment(stock.id) is None
        with pytest.raises(NotFoundError):
            investment_service.list_operations(stock.id)
