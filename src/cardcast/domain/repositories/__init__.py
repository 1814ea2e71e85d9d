"""Repository protocol definitions for domain layer."""

from .credit_card import CreditCardRepository
from .debt_config import DebtConfigRepository
from .forecast import ForecastRepository
from .ledger import LedgerRepository

__all__ = [
    "CreditCardRepository",
    "DebtConfigRepository",
    "ForecastRepository",
    "LedgerRepository",
]
