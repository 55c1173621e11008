"""Shared domain error messages and error types."""

from decimal import Decimal


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling. A domain error is always
    raised before anything is written, so the caller can correct the input
    and try again.
    """


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""


class NotFoundError(DomainError):
    """Requested domain entity does not exist."""


class ConflictError(DomainError):
    """Domain conflict, such as uniqueness violations."""


class DependencyError(DomainError):
    """Operation blocked due to dependent domain data."""


class PreconditionError(DomainError):
    """A required piece of ledger setup or state is missing."""


class InvalidStateError(DomainError):
    """Operation is not valid from the entity's current status."""


class StorageError(Exception):
    """The store failed while applying a unit of work.

    The unit of work has been rolled back; the original driver error is
    chained as ``__cause__``.
    """


def account_not_found(account_id: int) -> str:
    """Return message for missing account."""
    return f"Account {account_id} not found"


def account_inactive(account_id: int) -> str:
    """Return message for a mutation targeting a deactivated account."""
    return f"Account {account_id} is inactive"


def category_not_found(category_id: int) -> str:
    """Return message for missing category by ID."""
    return f"Category {category_id} not found"


def transaction_not_found(transaction_id: int) -> str:
    return f"Transaction {transaction_id} not found"


def card_not_found(card_id: int) -> str:
    return f"Credit card {card_id} not found"


def purchase_not_found(purchase_id: int) -> str:
    return f"Purchase {purchase_id} not found"


def debt_not_found(debt_id: int) -> str:
    return f"Debt {debt_id} not found"


def investment_not_found(investment_id: int) -> str:
    return f"Investment {investment_id} not found"


def category_type_mismatch(category_name: str, category_type: str, transaction_type: str) -> str:
    """Return message when a category is used with the wrong transaction type."""
    return (
        f"Category '{category_name}' is a {category_type} category "
        f"and cannot be used for a {transaction_type} transaction"
    )


def non_positive_amount(amount: Decimal) -> str:
    return f"Amount must be greater than zero, got {amount}"


def category_delete_blocked(category_id: int, transaction_count: int, purchase_count: int) -> str:
    """Return message when a category is still referenced."""
    parts = []
    if transaction_count > 0:
        parts.append(f"{transaction_count} transaction{'s' if transaction_count != 1 else ''}")
    if purchase_count > 0:
        parts.append(f"{purchase_count} card purchase{'s' if purchase_count != 1 else ''}")
    return (
        f"Cannot delete category {category_id}: it is used by {', '.join(parts)}. "
        "Please reassign or delete them first."
    )
