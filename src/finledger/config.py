"""Settings for finledger, sourced from environment variables."""

from dataclasses import dataclass
import os
from pathlib import Path
from typing import Optional

DEFAULT_OWNER = "default"


@dataclass(frozen=True)
class LedgerSettings:
    """Runtime settings.

    Attributes:
        database_path: SQLite file path, or None for ~/.finledger/finledger.db.
        owner_id: Identifier of the user that owns every record created.
        transfer_category: Name of the income/expense category pair used for
            transfer legs.
        card_payment_category: Expense category used when paying an invoice.
        debt_payment_category: Expense category used for debt payments.
        investment_category: Expense category used for investment purchases.
        redemption_category: Income category used for investment sales.
        investment_income_category: Income category used for dividends and
            interest.
    """

    database_path: Optional[str] = None
    owner_id: str = DEFAULT_OWNER
    transfer_category: str = "Transfer"
    card_payment_category: str = "Credit Card"
    debt_payment_category: str = "Debt Payment"
    investment_category: str = "Investments"
    redemption_category: str = "Investment Redemption"
    investment_income_category: str = "Investment Income"

    @classmethod
    def from_env(cls) -> "LedgerSettings":
        """Build settings from environment variables.

        Returns:
            LedgerSettings: Settings with environment overrides applied.
        """
        defaults = cls()
        return cls(
            database_path=os.environ.get("FINLEDGER_DB_PATH"),
            owner_id=os.environ.get("FINLEDGER_OWNER", defaults.owner_id),
            transfer_category=os.environ.get(
                "FINLEDGER_TRANSFER_CATEGORY", defaults.transfer_category
            ),
            card_payment_category=os.environ.get(
                "FINLEDGER_CARD_PAYMENT_CATEGORY", defaults.card_payment_category
            ),
            debt_payment_category=os.environ.get(
                "FINLEDGER_DEBT_PAYMENT_CATEGORY", defaults.debt_payment_category
            ),
            investment_category=os.environ.get(
                "FINLEDGER_INVESTMENT_CATEGORY", defaults.investment_category
            ),
            redemption_category=os.environ.get(
                "FINLEDGER_REDEMPTION_CATEGORY", defaults.redemption_category
            ),
            investment_income_category=os.environ.get(
                "FINLEDGER_INVESTMENT_INCOME_CATEGORY",
                defaults.investment_income_category,
            ),
        )

    def resolved_database_path(self) -> str:
        """Return the database path, creating the default directory if needed."""
        if self.database_path is not None:
            return self.database_path
        db_dir = Path.home() / ".finledger"
        db_dir.mkdir(exist_ok=True)
        return str(db_dir / "finledger.db")
