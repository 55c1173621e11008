"""SQLAlchemy models for finledger database."""

from datetime import datetime, UTC
from sqlalchemy import (
    Column,
    Integer,
    String,
    ForeignKey,
    DateTime,
    Date,
    Numeric,
    Boolean,
    UniqueConstraint,
    create_engine,
    event,
)
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, relationship, sessionmaker, Session

Base = declarative_base()

MONEY = Numeric(14, 2)
QUANTITY = Numeric(20, 8)


class Account(Base):
    """Account model.

    ``balance`` is only ever written through an atomic ``balance + delta``
    update.
    """

    __tablename__ = "accounts"

    id = Column(Integer, primary_key=True)
    owner_id = Column(String, nullable=False, index=True)
    name = Column(String, nullable=False)
    kind = Column(String, nullable=False, default="checking")
    initial_balance = Column(MONEY, nullable=False, default=0)
    balance = Column(MONEY, nullable=False, default=0)
    active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    __table_args__ = (UniqueConstraint("owner_id", "name", name="uq_account_owner_name"),)

    transactions = relationship("Transaction", back_populates="account")


class Category(Base):
    """Global typed category model."""

    __tablename__ = "categories"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    type = Column(String, nullable=False)
    icon = Column(String, nullable=False, default="tag")
    color = Column(String, nullable=False, default="#6366f1")
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    __table_args__ = (UniqueConstraint("name", "type", name="uq_category_name_type"),)

    transactions = relationship("Transaction", back_populates="category")


class Transaction(Base):
    """Transaction model."""

    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True)
    owner_id = Column(String, nullable=False, index=True)
    account_id = Column(Integer, ForeignKey("accounts.id"), nullable=False)
    category_id = Column(Integer, ForeignKey("categories.id"), nullable=False)
    type = Column(String, nullable=False)
    amount = Column(MONEY, nullable=False)
    transaction_date = Column(Date, nullable=False)
    status = Column(String, nullable=False)
    description = Column(String, nullable=False, default="")
    transfer_group = Column(String, nullable=True, index=True)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    account = relationship("Account", back_populates="transactions")
    category = relationship("Category", back_populates="transactions")


class CreditCard(Base):
    """Credit card model."""

    __tablename__ = "credit_cards"

    id = Column(Integer, primary_key=True)
    owner_id = Column(String, nullable=False, index=True)
    name = Column(String, nullable=False)
    due_day = Column(Integer, nullable=False)
    card_limit = Column(MONEY, nullable=False, default=0)
    active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    purchases = relationship("CreditCardPurchase", back_populates="card")


class CreditCardPurchase(Base):
    """Credit card purchase model."""

    __tablename__ = "credit_card_purchases"

    id = Column(Integer, primary_key=True)
    card_id = Column(Integer, ForeignKey("credit_cards.id"), nullable=False)
    category_id = Column(Integer, ForeignKey("categories.id"), nullable=False)
    total_amount = Column(MONEY, nullable=False)
    installments = Column(Integer, nullable=False)
    purchase_date = Column(Date, nullable=False)
    first_due_month = Column(Date, nullable=False)
    description = Column(String, nullable=False, default="")
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    card = relationship("CreditCard", back_populates="purchases")
    installment_rows = relationship(
        "Installment", back_populates="purchase", cascade="all, delete-orphan"
    )


class Installment(Base):
    """Installment model."""

    __tablename__ = "installments"

    id = Column(Integer, primary_key=True)
    purchase_id = Column(Integer, ForeignKey("credit_card_purchases.id"), nullable=False)
    installment_number = Column(Integer, nullable=False)
    amount = Column(MONEY, nullable=False)
    due_date = Column(Date, nullable=False, index=True)
    paid = Column(Boolean, nullable=False, default=False)

    __table_args__ = (
        UniqueConstraint("purchase_id", "installment_number", name="uq_purchase_installment"),
    )

    purchase = relationship("CreditCardPurchase", back_populates="installment_rows")


class Debt(Base):
    """Debt model."""

    __tablename__ = "debts"

    id = Column(Integer, primary_key=True)
    owner_id = Column(String, nullable=False, index=True)
    name = Column(String, nullable=False)
    lender = Column(String, nullable=False, default="")
    total_amount = Column(MONEY, nullable=False)
    current_balance = Column(MONEY, nullable=False)
    interest_rate = Column(Numeric(8, 4), nullable=False, default=0)
    start_date = Column(Date, nullable=False)
    due_day = Column(Integer, nullable=False)
    total_installments = Column(Integer, nullable=True)
    installment_value = Column(MONEY, nullable=True)
    description = Column(String, nullable=False, default="")
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    payments = relationship("DebtPayment", back_populates="debt", cascade="all, delete-orphan")


class DebtPayment(Base):
    """Debt payment model."""

    __tablename__ = "debt_payments"

    id = Column(Integer, primary_key=True)
    debt_id = Column(Integer, ForeignKey("debts.id"), nullable=False)
    payment_date = Column(Date, nullable=False)
    amount = Column(MONEY, nullable=False)
    principal_amount = Column(MONEY, nullable=False)
    interest_amount = Column(MONEY, nullable=False)
    transaction_id = Column(
        Integer, ForeignKey("transactions.id", ondelete="SET NULL"), nullable=True
    )
    description = Column(String, nullable=False, default="")
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    debt = relationship("Debt", back_populates="payments")


class Investment(Base):
    """Investment position model."""

    __tablename__ = "investments"

    id = Column(Integer, primary_key=True)
    owner_id = Column(String, nullable=False, index=True)
    name = Column(String, nullable=False)
    ticker = Column(String, nullable=True)
    kind = Column(String, nullable=False)
    quantity = Column(QUANTITY, nullable=False, default=0)
    average_price = Column(QUANTITY, nullable=False, default=0)
    current_price = Column(QUANTITY, nullable=False, default=0)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    operations = relationship(
        "InvestmentTransaction", back_populates="investment", cascade="all, delete-orphan"
    )


class InvestmentTransaction(Base):
    """Investment operation audit model."""

    __tablename__ = "investment_transactions"

    id = Column(Integer, primary_key=True)
    investment_id = Column(Integer, ForeignKey("investments.id"), nullable=False)
    operation = Column(String, nullable=False)
    operation_date = Column(Date, nullable=False)
    quantity = Column(QUANTITY, nullable=False, default=0)
    price = Column(QUANTITY, nullable=False, default=0)
    fees = Column(MONEY, nullable=False, default=0)
    total_amount = Column(MONEY, nullable=False)
    realized_gain = Column(MONEY, nullable=True)
    transaction_id = Column(
        Integer, ForeignKey("transactions.id", ondelete="SET NULL"), nullable=True
    )
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    investment = relationship("Investment", back_populates="operations")


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_session_factory(database_url: str) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory."""
    engine: Engine = create_engine(database_url, echo=False)
    if engine.dialect.name == "sqlite":
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine)
