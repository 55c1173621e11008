"""Shared pytest fixtures for finledger tests."""

import tempfile
import os
from datetime import date
from decimal import Decimal
import pytest

from finledger.database.factories import create_sqlite_database
from finledger.domain.account import AccountService
from finledger.domain.category import CategoryService
from finledger.domain.credit_card import CreditCardService
from finledger.domain.debt import DebtService
from finledger.domain.importer import ImportService
from finledger.domain.investment import InvestmentService
from finledger.domain.statement import StatementService
from finledger.domain.transaction import TransactionService

# Fixed clock for status derivation: dates up to TODAY are completed.
TODAY = date(2024, 6, 15)


def fixed_today() -> date:
    return TODAY


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    # Create a temporary file for the database
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    # Create database
    db = create_sqlite_database(database_path=db_path)
    # Store the path for tests that need it
    db.database_path = db_path
    db.connect()
    db.initialize_schema()

    yield db

    # Cleanup
    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def account_service(temp_db):
    """Create an AccountService with a temporary database."""
    return AccountService(temp_db)


@pytest.fixture
def category_service(temp_db):
    """Create a CategoryService with a temporary database."""
    return CategoryService(temp_db)


@pytest.fixture
def sample_categories(category_service):
    """Create the default categories.

    Returns:
        Dict mapping "type:name" (e.g. "expense:Food") to category ID
    """
    category_service.init_default_categories()
    return {
        f"{cat.type.value}:{cat.name}": cat.id for cat in category_service.list_categories()
    }


@pytest.fixture
def system_categories(category_service, sample_categories):
    """Resolve the system categories after the defaults exist."""
    return category_service.resolve_system_categories()


@pytest.fixture
def transaction_service(temp_db, system_categories):
    """Create a TransactionService with a fixed clock."""
    return TransactionService(temp_db, system_categories=system_categories, today=fixed_today)


@pytest.fixture
def credit_card_service(temp_db, system_categories):
    return CreditCardService(temp_db, system_categories=system_categories, today=fixed_today)


@pytest.fixture
def debt_service(temp_db, system_categories):
    return DebtService(temp_db, system_categories=system_categories, today=fixed_today)


@pytest.fixture
def investment_service(temp_db, system_categories):
    return InvestmentService(temp_db, system_categories=system_categories, today=fixed_today)


@pytest.fixture
def statement_service(temp_db):
    return StatementService(temp_db)


@pytest.fixture
def import_service(temp_db, system_categories):
    return ImportService(temp_db, system_categories=system_categories, today=fixed_today)


@pytest.fixture
def sample_account(account_service):
    """Create a checking account with an opening balance of 1000."""
    account_id = account_service.create_account(
        name="Checking", initial_balance=Decimal("1000.00")
    )
    return account_service.get_account(account_id)


@pytest.fixture
def second_account(account_service):
    """Create an empty savings account."""
    account_id = account_service.create_account(name="Savings")
    return account_service.get_account(account_id)


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()


@pytest.fixture
def today():
    """The fixed date the services treat as today."""
    return TODAY


@pytest.fixture
def clock():
    """Clock callable to inject into services built inside a test."""
    return fixed_today
