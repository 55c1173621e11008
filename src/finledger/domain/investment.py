"""Investment domain service: positions and their operation history."""

import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Callable, Optional

from finledger.config import DEFAULT_OWNER
from finledger.database.base import Database
from finledger.domain.category import SystemCategories
from finledger.domain.entities import (
    Investment,
    InvestmentKind,
    InvestmentOperation,
    InvestmentTransaction,
    TransactionType,
)
from finledger.domain.errors import NotFoundError, ValidationError, investment_not_found
from finledger.domain.transaction import TransactionService
from finledger.utils.amount_parser import to_cents

logger = logging.getLogger(__name__)

PRICE_QUANTUM = Decimal("0.00000001")

_OPERATION_LABELS = {
    InvestmentOperation.BUY: "Buy",
    InvestmentOperation.SELL: "Sell",
    InvestmentOperation.DIVIDEND: "Dividend",
    InvestmentOperation.INTEREST: "Interest",
}


@dataclass(frozen=True)
class Position:
    """Valuation of one investment at its current price."""

    investment: Investment
    cost_basis: Decimal
    market_value: Decimal

    @property
    def unrealized_gain(self) -> Decimal:
        return self.market_value - self.cost_basis

    @property
    def unrealized_gain_pct(self) -> Decimal:
        if self.cost_basis == 0:
            return Decimal("0")
        return self.unrealized_gain / self.cost_basis * Decimal("100")


@dataclass(frozen=True)
class PortfolioSummary:
    """Aggregated valuation of all positions of an owner."""

    positions: list[Position] = field(default_factory=list)
    cost_by_kind: dict[InvestmentKind, Decimal] = field(default_factory=dict)
    value_by_kind: dict[InvestmentKind, Decimal] = field(default_factory=dict)

    @property
    def total_cost(self) -> Decimal:
        return sum((p.cost_basis for p in self.positions), Decimal("0"))

    @property
    def total_value(self) -> Decimal:
        return sum((p.market_value for p in self.positions), Decimal("0"))

    @property
    def unrealized_gain(self) -> Decimal:
        return self.total_value - self.total_cost


def cash_amount(
    operation: InvestmentOperation, quantity: Decimal, price: Decimal, fees: Decimal
) -> Decimal:
    """Money that moves for an operation: buys pay fees on top, sells net them out."""
    gross = quantity * price
    if operation == InvestmentOperation.BUY:
        return to_cents(gross + fees)
    if operation == InvestmentOperation.SELL:
        return to_cents(gross - fees)
    return to_cents(gross)


def weighted_average(
    old_quantity: Decimal, old_average: Decimal, quantity: Decimal, price: Decimal
) -> Decimal:
    total_quantity = old_quantity + quantity
    if total_quantity <= 0:
        return Decimal("0")
    total_cost = old_quantity * old_average + quantity * price
    return (total_cost / total_quantity).quantize(PRICE_QUANTUM)


class InvestmentService:
    """Service for investment positions."""

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

    def create_investment(
        self,
        name: str,
        kind: InvestmentKind | str = InvestmentKind.STOCK,
        ticker: Optional[str] = None,
        quantity: Decimal = Decimal("0"),
        average_price: Decimal = Decimal("0"),
        current_price: Optional[Decimal] = None,
    ) -> int:
        """Create an investment position.

        An opening position can be given directly; later changes should go
        through ``record_operation`` so they leave an audit row.

        Returns:
            Investment ID
        """
        name = name.strip()
        if not name:
            raise ValidationError("Investment name cannot be empty")
        investment_kind = self._coerce_kind(kind)
        quantity = Decimal(quantity)
        average_price = Decimal(average_price)
        current_price = average_price if current_price is None else Decimal(current_price)
        if quantity < 0 or average_price < 0 or current_price < 0:
            raise ValidationError("Quantity and prices cannot be negative")

        investment_id = self.db.create_investment(
            owner_id=self.owner_id,
            name=name,
            ticker=ticker.strip().upper() if ticker else None,
            kind=investment_kind.value,
            quantity=quantity,
            average_price=average_price,
            current_price=current_price,
        )
        logger.info("Created investment %s '%s' (%s)", investment_id, name, investment_kind.value)
        return investment_id

    def get_investment(self, investment_id: int) -> Optional[Investment]:
        investment = self.db.get_investment(investment_id)
        if investment is None or investment.owner_id != self.owner_id:
            return None
        return investment

    def require_investment(self, investment_id: int) -> Investment:
        investment = self.get_investment(investment_id)
        if investment is None:
            raise NotFoundError(investment_not_found(investment_id))
        return investment

    def list_investments(self) -> list[Investment]:
        return self.db.list_investments(self.owner_id)

    def update_investment(
        self,
        investment_id: int,
        name: Optional[str] = None,
        ticker: Optional[str] = None,
        kind: Optional[InvestmentKind | str] = None,
        current_price: Optional[Decimal] = None,
    ) -> None:
        """Edit descriptive fields or mark the position to a new price."""
        self.require_investment(investment_id)
        fields = {}
        if name is not None:
            if not name.strip():
                raise ValidationError("Investment name cannot be empty")
            fields["name"] = name.strip()
        if ticker is not None:
            fields["ticker"] = ticker.strip().upper() or None
        if kind is not None:
            fields["kind"] = self._coerce_kind(kind).value
        if current_price is not None:
            current_price = Decimal(current_price)
            if current_price < 0:
                raise ValidationError("Current price cannot be negative")
            fields["current_price"] = current_price
        if fields:
            self.db.update_investment(investment_id, **fields)

    def delete_investment(self, investment_id: int) -> None:
        """Delete a position and its operation history."""
        self.require_investment(investment_id)
        self.db.delete_investment(investment_id)
        logger.info("Deleted investment %s", investment_id)

    def record_operation(
        self,
        investment_id: int,
        operation: InvestmentOperation | str,
        operation_date: date,
        quantity: Decimal,
        price: Decimal,
        fees: Decimal = Decimal("0"),
        account_id: Optional[int] = None,
    ) -> int:
        """Apply a buy, sell, dividend or interest operation to a position.

        Buys move the average price to the weighted average of the old
        position and the new lot; sells keep the average and record the
        realized gain on the operation row. Both mark the position to the
        operation price. Dividends and interest leave the position untouched.

        When ``account_id`` is given a linked transaction is created (buy as
        an expense, the others as income). Everything is one unit of work.

        Returns:
            ID of the operation row

        Raises:
            ValidationError: On non-positive quantity or price, negative fees,
                a non-positive cash amount, or a sell larger than the position
        """
        investment = self.require_investment(investment_id)
        op = self._coerce_operation(operation)
        quantity = Decimal(quantity)
        price = Decimal(price)
        fees = to_cents(Decimal(fees))
        if quantity <= 0 or price <= 0:
            raise ValidationError("Quantity and price must be greater than zero")
        if fees < 0:
            raise ValidationError("Fees cannot be negative")
        total = cash_amount(op, quantity, price, fees)
        if total <= 0:
            raise ValidationError(f"Operation amount must be greater than zero, got {total}")

        realized_gain = None
        updates = {}
        if op == InvestmentOperation.BUY:
            updates = {
                "quantity": investment.quantity + quantity,
                "average_price": weighted_average(
                    investment.quantity, investment.average_price, quantity, price
                ),
                "current_price": price,
            }
        elif op == InvestmentOperation.SELL:
            if quantity > investment.quantity:
                logger.warning(
                    "Rejected sell of %s units of investment %s holding %s",
                    quantity,
                    investment_id,
                    investment.quantity,
                )
                raise ValidationError(
                    f"Cannot sell {quantity} units of '{investment.name}': "
                    f"only {investment.quantity} held"
                )
            realized_gain = to_cents((price - investment.average_price) * quantity - fees)
            updates = {"quantity": investment.quantity - quantity, "current_price": price}

        with self.db.transaction():
            transaction_id = None
            if account_id is not None:
                transaction_id = self._create_linked_transaction(
                    investment, op, account_id, total, operation_date
                )
            if updates:
                self.db.update_investment(investment_id, **updates)
            operation_id = self.db.create_investment_transaction(
                investment_id=investment_id,
                operation=op.value,
                operation_date=operation_date,
                quantity=quantity,
                price=price,
                fees=fees,
                total_amount=total,
                realized_gain=realized_gain,
                transaction_id=transaction_id,
            )

        logger.info(
            "Recorded %s of %s x %s on investment %s (total %s)",
            op.value,
            quantity,
            price,
            investment_id,
            total,
        )
        return operation_id

    def list_operations(self, investment_id: int) -> list[InvestmentTransaction]:
        self.require_investment(investment_id)
        return self.db.list_investment_transactions(investment_id)

    def position(self, investment_id: int) -> Position:
        return self._position(self.require_investment(investment_id))

    def portfolio_summary(self) -> PortfolioSummary:
        """Value every position and group cost and value by asset kind."""
        positions = [self._position(i) for i in self.list_investments()]
        cost_by_kind: dict[InvestmentKind, Decimal] = {}
        value_by_kind: dict[InvestmentKind, Decimal] = {}
        for pos in positions:
            kind = pos.investment.kind
            cost_by_kind[kind] = cost_by_kind.get(kind, Decimal("0")) + pos.cost_basis
            value_by_kind[kind] = value_by_kind.get(kind, Decimal("0")) + pos.market_value
        return PortfolioSummary(
            positions=positions, cost_by_kind=cost_by_kind, value_by_kind=value_by_kind
        )

    def _create_linked_transaction(
        self,
        investment: Investment,
        op: InvestmentOperation,
        account_id: int,
        amount: Decimal,
        operation_date: date,
    ) -> int:
        categories = self.transactions.system_categories
        if op == InvestmentOperation.BUY:
            txn_type = TransactionType.EXPENSE
            preferred = categories.investment_purchase_id
        elif op == InvestmentOperation.SELL:
            txn_type = TransactionType.INCOME
            preferred = categories.investment_redemption_id
        else:
            txn_type = TransactionType.INCOME
            preferred = categories.investment_income_id
        category_id = self.transactions.category_or_fallback(
            preferred, txn_type, f"investment {op.value} operations"
        )
        return self.transactions.create_transaction(
            account_id=account_id,
            category_id=category_id,
            type=txn_type,
            amount=amount,
            transaction_date=operation_date,
            description=f"{_OPERATION_LABELS[op]} - {investment.ticker or investment.name}",
        )

    @staticmethod
    def _position(investment: Investment) -> Position:
        return Position(
            investment=investment,
            cost_basis=to_cents(investment.cost_basis),
            market_value=to_cents(investment.market_value),
        )

    @staticmethod
    def _coerce_kind(kind: InvestmentKind | str) -> InvestmentKind:
        try:
            return InvestmentKind(kind)
        except ValueError:
            choices = ", ".join(k.value for k in InvestmentKind)
            raise ValidationError(f"Unknown investment kind '{kind}'; expected one of {choices}")

    @staticmethod
    def _coerce_operation(operation: InvestmentOperation | str) -> InvestmentOperation:
        try:
            return InvestmentOperation(operation)
        except ValueError:
            choices = ", ".join(o.value for o in InvestmentOperation)
            raise ValidationError(f"Unknown operation '{operation}'; expected one of {choices}")
