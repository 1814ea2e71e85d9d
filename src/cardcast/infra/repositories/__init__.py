"""Concrete repository implementations using SQLModel."""

from .credit_card import SQLModelCreditCardRepository
from .debt_config import SQLModelDebtConfigRepository
from .forecast import SQLModelForecastRepository
from .ledger import SQLModelLedgerRepository

__all__ = [
    "SQLModelCreditCardRepository",
    "SQLModelDebtConfigRepository",
    "SQLModelForecastRepository",
    "SQLModelLedgerRepository",
]
