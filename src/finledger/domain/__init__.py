"""Domain layer for finledger application."""

# Services are imported lazily: the database layer imports domain.entities,
# and the services import the database layer.
_SERVICES = {
    "AccountService": "finledger.domain.account",
    "CategoryService": "finledger.domain.category",
    "TransactionService": "finledger.domain.transaction",
    "CreditCardService": "finledger.domain.credit_card",
    "DebtService": "finledger.domain.debt",
    "InvestmentService": "finledger.domain.investment",
    "StatementService": "finledger.domain.statement",
    "ImportService": "finledger.domain.importer",
}

__all__ = list(_SERVICES)


def __getattr__(name):
    if name in _SERVICES:
        import importlib

        return getattr(importlib.import_module(_SERVICES[name]), name)
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
