"""Exceptions raised at the portfolio book and market-data boundaries."""

from __future__ import annotations


class PortfolioHubError(Exception):
    """Base class for Portfolio Hub errors."""


class InvalidTransactionError(PortfolioHubError, ValueError):
    pass


class InsufficientCashError(PortfolioHubError, ValueError):
    def __init__(self, portfolio: str, required: float, available: float):
        super().__init__(
            f"Insufficient cash in {portfolio}: need {required:.2f}, have {available:.2f}"
        )
        self.portfolio = portfolio
        self.required = required
        self.available = available


class UnknownDividendError(PortfolioHubError, KeyError):
    pass


class MarketDataUnavailable(PortfolioHubError, LookupError):
    """Raised by a market-data provider when it has nothing for a request."""


__all__ = [
    "PortfolioHubError",
    "InvalidTransactionError",
    "InsufficientCashError",
    "UnknownDividendError",
    "MarketDataUnavailable",
]
