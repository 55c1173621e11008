"""Category domain service."""

import logging
from dataclasses import dataclass
from typing import Optional

from finledger.config import LedgerSettings
from finledger.database.base import Database
from finledger.domain.entities import Category, CategoryType
from finledger.domain.errors import (
    ConflictError,
    DependencyError,
    NotFoundError,
    ValidationError,
    category_delete_blocked,
    category_not_found,
)

logger = logging.getLogger(__name__)

# (name, type, icon, color)
DEFAULT_CATEGORIES = [
    ("Salary", CategoryType.INCOME, "briefcase", "#10b981"),
    ("Other Income", CategoryType.INCOME, "plus-circle", "#22c55e"),
    ("Transfer", CategoryType.INCOME, "repeat", "#64748b"),
    ("Investment Redemption", CategoryType.INCOME, "trending-up", "#0ea5e9"),
    ("Investment Income", CategoryType.INCOME, "dollar-sign", "#14b8a6"),
    ("Food", CategoryType.EXPENSE, "shopping-cart", "#f97316"),
    ("Transport", CategoryType.EXPENSE, "car", "#eab308"),
    ("Health", CategoryType.EXPENSE, "heart", "#ef4444"),
    ("Housing", CategoryType.EXPENSE, "home", "#8b5cf6"),
    ("Leisure", CategoryType.EXPENSE, "film", "#ec4899"),
    ("Transfer", CategoryType.EXPENSE, "repeat", "#64748b"),
    ("Credit Card", CategoryType.EXPENSE, "credit-card", "#6366f1"),
    ("Debt Payment", CategoryType.EXPENSE, "file-minus", "#dc2626"),
    ("Investments", CategoryType.EXPENSE, "trending-up", "#0ea5e9"),
    ("Other Expenses", CategoryType.EXPENSE, "more-horizontal", "#94a3b8"),
]


@dataclass(frozen=True)
class SystemCategories:
    """Category IDs the ledger uses for movements it generates itself.

    Resolved once at setup; a ``None`` entry means the category is not
    configured.
    """

    transfer_expense_id: Optional[int] = None
    transfer_income_id: Optional[int] = None
    card_payment_id: Optional[int] = None
    debt_payment_id: Optional[int] = None
    investment_purchase_id: Optional[int] = None
    investment_redemption_id: Optional[int] = None
    investment_income_id: Optional[int] = None


def _coerce_type(type: CategoryType | str) -> CategoryType:
    try:
        return CategoryType(type)
    except ValueError:
        raise ValidationError(f"Unknown category type '{type}'; expected 'income' or 'expense'")


class CategoryService:
    """Service for managing categories."""

    def __init__(self, db: Database):
        """Initialize category service.

        Args:
            db: Database instance
        """
        self.db = db

    def create_category(
        self,
        name: str,
        type: CategoryType | str,
        icon: str = "tag",
        color: str = "#6366f1",
    ) -> int:
        """Create a category.

        Args:
            name: Category name
            type: "income" or "expense"
            icon: Icon token for display
            color: Color token for display

        Returns:
            Category ID

        Raises:
            ValidationError: If the name is empty or the type is unknown
            ConflictError: If a category with the same name and type exists
        """
        category_type = _coerce_type(type)
        name = name.strip()
        if not name:
            raise ValidationError("Category name cannot be empty")
        if self.db.get_category_by_name(name, category_type.value) is not None:
            raise ConflictError(f"Category '{name}' ({category_type.value}) already exists")

        category_id = self.db.create_category(
            name=name, type=category_type.value, icon=icon, color=color
        )
        logger.info("Created %s category %s '%s'", category_type.value, category_id, name)
        return category_id

    def get_category(self, category_id: int) -> Optional[Category]:
        return self.db.get_category(category_id)

    def require_category(self, category_id: int) -> Category:
        """Get a category or raise NotFoundError."""
        category = self.db.get_category(category_id)
        if category is None:
            raise NotFoundError(category_not_found(category_id))
        return category

    def get_category_by_name(self, name: str, type: CategoryType | str) -> Optional[Category]:
        return self.db.get_category_by_name(name, _coerce_type(type).value)

    def list_categories(self, type: Optional[CategoryType | str] = None) -> list[Category]:
        """List categories, optionally only those of one type."""
        type_value = None if type is None else _coerce_type(type).value
        return self.db.list_categories(type=type_value)

    def update_category(
        self,
        category_id: int,
        name: Optional[str] = None,
        icon: Optional[str] = None,
        color: Optional[str] = None,
    ) -> None:
        """Update category display fields. The type of a category is fixed.

        Raises:
            NotFoundError: If the category doesn't exist
            ConflictError: If the new name is taken for this type
        """
        category = self.require_category(category_id)
        if name is not None:
            name = name.strip()
            if not name:
                raise ValidationError("Category name cannot be empty")
            existing = self.db.get_category_by_name(name, category.type.value)
            if existing is not None and existing.id != category_id:
                raise ConflictError(f"Category '{name}' ({category.type.value}) already exists")
        self.db.update_category(category_id, name=name, icon=icon, color=color)

    def delete_category(self, category_id: int) -> None:
        """Delete a category that nothing references.

        Raises:
            NotFoundError: If the category doesn't exist
            DependencyError: If transactions or card purchases use it
        """
        self.require_category(category_id)
        transaction_count, purchase_count = self.db.get_category_usage(category_id)
        if transaction_count > 0 or purchase_count > 0:
            raise DependencyError(
                category_delete_blocked(category_id, transaction_count, purchase_count)
            )
        self.db.delete_category(category_id)
        logger.info("Deleted category %s", category_id)

    def first_category_of_type(self, type: CategoryType | str) -> Optional[Category]:
        """Return the first category of a type, used as a fallback."""
        categories = self.list_categories(type)
        return categories[0] if categories else None

    def init_default_categories(self) -> int:
        """Create the default categories that don't exist yet.

        Returns:
            Number of categories created
        """
        created = 0
        with self.db.transaction():
            for name, category_type, icon, color in DEFAULT_CATEGORIES:
                if self.db.get_category_by_name(name, category_type.value) is None:
                    self.db.create_category(
                        name=name, type=category_type.value, icon=icon, color=color
                    )
                    created += 1
        logger.info("Initialized %d default categories", created)
        return created

    def resolve_system_categories(
        self, settings: Optional[LedgerSettings] = None
    ) -> SystemCategories:
        """Resolve the configured system category names to IDs."""
        settings = settings or LedgerSettings()

        def lookup(name: str, type: CategoryType) -> Optional[int]:
            category = self.db.get_category_by_name(name, type.value)
            return None if category is None else category.id

        return SystemCategories(
            transfer_expense_id=lookup(settings.transfer_category, CategoryType.EXPENSE),
            transfer_income_id=lookup(settings.transfer_category, CategoryType.INCOME),
            card_payment_id=lookup(settings.card_payment_category, CategoryType.EXPENSE),
            debt_payment_id=lookup(settings.debt_payment_category, CategoryType.EXPENSE),
            investment_purchase_id=lookup(settings.investment_category, CategoryType.EXPENSE),
            investment_redemption_id=lookup(settings.redemption_category, CategoryType.INCOME),
            investment_income_id=lookup(
                settings.investment_income_category, CategoryType.INCOME
            ),
        )
