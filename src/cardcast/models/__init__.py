"""SQLModel table exports."""

from .account import Account
from .budget import MonthlyBudget
from .credit_card import CardBucket, CreditCard
from .debt_config import DebtConfig
from .forecast import ForecastResult, PayoffSchedule
from .transaction import Transaction

__all__ = [
    "Account",
    "CardBucket",
    "CreditCard",
    "DebtConfig",
    "ForecastResult",
    "MonthlyBudget",
    "PayoffSchedule",
    "Transaction",
]
