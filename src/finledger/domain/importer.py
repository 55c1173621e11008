"""Import of already-parsed bank statement rows.

Reading statement files is left to the caller; this service takes rows that
were parsed elsewhere and records them as ordinary transactions.
"""

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Callable, Iterable, Optional

from finledger.config import DEFAULT_OWNER
from finledger.database.base import Database
from finledger.domain.category import SystemCategories
from finledger.domain.entities import Category, TransactionType
from finledger.domain.errors import PreconditionError, ValidationError
from finledger.domain.transaction import TransactionService

logger = logging.getLogger(__name__)

# (keywords, category name); the first rule with a matching keyword wins
AUTO_CATEGORY_RULES = [
    (("supermarket", "grocery", "mercado", "atacad", "bakery"), "Food"),
    (("fuel", "gas station", "posto", "uber", "99app", "parking", "toll"), "Transport"),
    (("restaurant", "ifood", "mcdonalds", "pizza", "burger", "coffee"), "Food"),
    (("pharmacy", "farmacia", "drugstore", "hospital", "clinic", "doctor"), "Health"),
    (("rent", "aluguel", "condo", "electricity", "water", "internet"), "Housing"),
    (("netflix", "spotify", "disney", "cinema", "steam"), "Leisure"),
    (("pix", "transfer", "transferencia"), "Transfer"),
]


@dataclass(frozen=True)
class ImportCandidate:
    """A parsed statement row ready to be recorded."""

    date: date
    description: str
    amount: Decimal
    type: TransactionType
    category_id: Optional[int] = None


def candidate_from_signed_amount(
    row_date: date, description: str, amount: Decimal
) -> ImportCandidate:
    """Build a candidate from a signed amount: negative rows are expenses."""
    amount = Decimal(amount)
    if amount == 0:
        raise ValidationError(f"Cannot import a zero amount row: '{description}'")
    txn_type = TransactionType.EXPENSE if amount < 0 else TransactionType.INCOME
    return ImportCandidate(
        date=row_date, description=description.strip(), amount=abs(amount), type=txn_type
    )


def auto_categorize(
    description: str, type: TransactionType, categories: Iterable[Category]
) -> Optional[int]:
    """Guess a category from keywords in the description.

    Returns:
        ID of a category with the rule's name and the given type, or None
    """
    text = description.lower()
    by_name = {c.name.lower(): c.id for c in categories if c.type.value == type.value}
    for keywords, category_name in AUTO_CATEGORY_RULES:
        if any(keyword in text for keyword in keywords):
            category_id = by_name.get(category_name.lower())
            if category_id is not None:
                return category_id
    return None


class ImportService:
    """Service for recording imported statement rows."""

    def __init__(
        self,
        db: Database,
        owner_id: str = DEFAULT_OWNER,
        system_categories: Optional[SystemCategories] = None,
        today: Optional[Callable[[], date]] = None,
    ):
        self.db = db
        self.transactions = TransactionService(
            db, owner_id=owner_id, system_categories=system_categories, today=today
        )

    def resolve_category(self, candidate: ImportCandidate, categories: list[Category]) -> int:
        """Pick the category for a candidate.

        An explicit category wins, then the keyword rules, then the first
        category of the candidate's type.

        Raises:
            PreconditionError: If no category of the candidate's type exists
        """
        if candidate.category_id is not None:
            return candidate.category_id
        category_id = auto_categorize(candidate.description, candidate.type, categories)
        if category_id is not None:
            return category_id
        for category in categories:
            if category.type.value == candidate.type.value:
                return category.id
        raise PreconditionError(
            f"No {candidate.type.value} category available to import '{candidate.description}'"
        )

    def import_candidates(
        self, account_id: int, candidates: Iterable[ImportCandidate]
    ) -> list[int]:
        """Record every candidate on an account.

        Rows go through the normal transaction rules, so past-dated rows
        become completed and move the balance while future rows stay pending.
        The batch is one unit of work: if any row is rejected nothing is
        imported.

        Returns:
            IDs of the created transactions, in input order
        """
        candidates = list(candidates)
        categories = self.transactions.category_service.list_categories()
        transaction_ids = []
        with self.db.transaction():
            for candidate in candidates:
                transaction_ids.append(
                    self.transactions.create_transaction(
                        account_id=account_id,
                        category_id=self.resolve_category(candidate, categories),
                        type=candidate.type,
                        amount=candidate.amount,
                        transaction_date=candidate.date,
                        description=candidate.description,
                    )
                )
        logger.info("Imported %d transactions into account %s", len(transaction_ids), account_id)
        return transaction_ids
