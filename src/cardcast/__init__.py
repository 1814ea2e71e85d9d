"""CardCast: personal finance tracking around a credit card payoff simulator."""

from __future__ import annotations

from .config import BaseConfig, DevConfig
from .domain.strategy import Strategy
from .services.forecast import ForecastRequest, run_forecast

__all__ = ["BaseConfig", "DevConfig", "ForecastRequest", "Strategy", "run_forecast"]
