"""Mapper functions to convert SQLAlchemy models into domain entities.

This layer isolates the conversion logic, including the string-to-enum
translation of type and status columns.
"""

from decimal import Decimal
from typing import Optional

from finledger.domain import entities as domain
from finledger.database.models import (
    Account as ORMAccount,
    Category as ORMCategory,
    Transaction as ORMTransaction,
    CreditCard as ORMCreditCard,
    CreditCardPurchase as ORMCreditCardPurchase,
    Installment as ORMInstallment,
    Debt as ORMDebt,
    DebtPayment as ORMDebtPayment,
    Investment as ORMInvestment,
    InvestmentTransaction as ORMInvestmentTransaction,
)


def _money(value) -> Decimal:
    return Decimal(value if value is not None else 0)


def _optional_money(value) -> Optional[Decimal]:
    return None if value is None else Decimal(value)


def account_to_domain(orm_account: ORMAccount) -> domain.Account:
    """Convert SQLAlchemy Account model to domain Account entity."""
    return domain.Account(
        id=orm_account.id,
        owner_id=orm_account.owner_id,
        name=orm_account.name,
        kind=domain.AccountKind(orm_account.kind),
        initial_balance=_money(orm_account.initial_balance),
        balance=_money(orm_account.balance),
        active=bool(orm_account.active),
        created_at=orm_account.created_at,
    )


def category_to_domain(orm_category: ORMCategory) -> domain.Category:
    """Convert SQLAlchemy Category model to domain Category entity."""
    return domain.Category(
        id=orm_category.id,
        name=orm_category.name,
        type=domain.CategoryType(orm_category.type),
        icon=orm_category.icon,
        color=orm_category.color,
        created_at=orm_category.created_at,
    )


def transaction_to_domain(orm_transaction: ORMTransaction) -> domain.Transaction:
    """Convert SQLAlchemy Transaction model to domain Transaction entity."""
    return domain.Transaction(
        id=orm_transaction.id,
        owner_id=orm_transaction.owner_id,
        account_id=orm_transaction.account_id,
        category_id=orm_transaction.category_id,
        type=domain.TransactionType(orm_transaction.type),
        amount=_money(orm_transaction.amount),
        transaction_date=orm_transaction.transaction_date,
        status=domain.TransactionStatus(orm_transaction.status),
        description=orm_transaction.description or "",
        transfer_group=orm_transaction.transfer_group,
        created_at=orm_transaction.created_at,
    )


def credit_card_to_domain(orm_card: ORMCreditCard) -> domain.CreditCard:
    return domain.CreditCard(
        id=orm_card.id,
        owner_id=orm_card.owner_id,
        name=orm_card.name,
        due_day=orm_card.due_day,
        card_limit=_money(orm_card.card_limit),
        active=bool(orm_card.active),
        created_at=orm_card.created_at,
    )


def purchase_to_domain(orm_purchase: ORMCreditCardPurchase) -> domain.CreditCardPurchase:
    return domain.CreditCardPurchase(
        id=orm_purchase.id,
        card_id=orm_purchase.card_id,
        category_id=orm_purchase.category_id,
        total_amount=_money(orm_purchase.total_amount),
        installments=orm_purchase.installments,
        purchase_date=orm_purchase.purchase_date,
        first_due_month=orm_purchase.first_due_month,
        description=orm_purchase.description or "",
        created_at=orm_purchase.created_at,
    )


def installment_to_domain(orm_installment: ORMInstallment) -> domain.Installment:
    return domain.Installment(
        id=orm_installment.id,
        purchase_id=orm_installment.purchase_id,
        installment_number=orm_installment.installment_number,
        amount=_money(orm_installment.amount),
        due_date=orm_installment.due_date,
        paid=bool(orm_installment.paid),
    )


def debt_to_domain(orm_debt: ORMDebt) -> domain.Debt:
    return domain.Debt(
        id=orm_debt.id,
        owner_id=orm_debt.owner_id,
        name=orm_debt.name,
        lender=orm_debt.lender or "",
        total_amount=_money(orm_debt.total_amount),
        current_balance=_money(orm_debt.current_balance),
        interest_rate=_money(orm_debt.interest_rate),
        start_date=orm_debt.start_date,
        due_day=orm_debt.due_day,
        total_installments=orm_debt.total_installments,
        installment_value=_optional_money(orm_debt.installment_value),
        description=orm_debt.description or "",
        created_at=orm_debt.created_at,
    )


def debt_payment_to_domain(orm_payment: ORMDebtPayment) -> domain.DebtPayment:
    return domain.DebtPayment(
        id=orm_payment.id,
        debt_id=orm_payment.debt_id,
        payment_date=orm_payment.payment_date,
        amount=_money(orm_payment.amount),
        principal_amount=_money(orm_payment.principal_amount),
        interest_amount=_money(orm_payment.interest_amount),
        transaction_id=orm_payment.transaction_id,
        description=orm_payment.description or "",
        created_at=orm_payment.created_at,
    )


def investment_to_domain(orm_investment: ORMInvestment) -> domain.Investment:
    return domain.Investment(
        id=orm_investment.id,
        owner_id=orm_investment.owner_id,
        name=orm_investment.name,
        ticker=orm_investment.ticker,
        kind=domain.InvestmentKind(orm_investment.kind),
        quantity=_money(orm_investment.quantity),
        average_price=_money(orm_investment.average_price),
        current_price=_money(orm_investment.current_price),
        created_at=orm_investment.created_at,
    )


def investment_transaction_to_domain(
    orm_operation: ORMInvestmentTransaction,
) -> domain.InvestmentTransaction:
    return domain.InvestmentTransaction(
        id=orm_operation.id,
        investment_id=orm_operation.investment_id,
        operation=domain.InvestmentOperation(orm_operation.operation),
        operation_date=orm_operation.operation_date,
        quantity=_money(orm_operation.quantity),
        price=_money(orm_operation.price),
        fees=_money(orm_operation.fees),
        total_amount=_money(orm_operation.total_amount),
        realized_gain=_optional_money(orm_operation.realized_gain),
        transaction_id=orm_operation.transaction_id,
        created_at=orm_operation.created_at,
    )
