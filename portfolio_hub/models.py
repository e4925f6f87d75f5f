"""Domain models used by the Portfolio Hub accounting engine."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional

BUY = "BUY"
SELL = "SELL"
TRANSACTION_SIDES = (BUY, SELL)


@dataclass(frozen=True)
class Transaction:
    """A single buy or sell recorded in a portfolio ledger."""

    id: str
    portfolio: str
    date: date
    ticker: str
    side: str
    quantity: float
    price: float
    fees: float = 0.0
    note: Optional[str] = None

    def normalized_side(self) -> str:
        """Return the upper-cased side for consistent comparisons."""

        return self.side.upper()

    def signed_quantity(self) -> float:
        return self.quantity if self.normalized_side() == BUY else -self.quantity


@dataclass(frozen=True)
class PricePoint:
    """Daily close observation for one ticker."""

    ticker: str
    date: date
    close: float

    @property
    def key(self) -> tuple[str, date]:
        return (self.ticker, self.date)


@dataclass(frozen=True)
class Position:
    """Current holding in one instrument, derived from the ledger."""

    ticker: str
    quantity: float
    last_price: float
    market_value: float
    weight: float
    held_since: Optional[date]
    average_cost: float
    unrealized_pnl_abs: float
    unrealized_pnl_pct: float


@dataclass(frozen=True)
class SeriesPoint:
    date: date
    value: float


@dataclass(frozen=True)
class PerformanceSummary:
    absolute: float = 0.0
    percent: float = 0.0


@dataclass(frozen=True)
class Dividend:
    """Cash dividend credited to a portfolio for one ex-date."""

    id: str
    portfolio: str
    ticker: str
    date: date
    amount: float


@dataclass(frozen=True)
class DividendPayment:
    """Historical per-share payment reported by the market-data provider."""

    date: date
    amount: float


@dataclass(frozen=True)
class DividendHistory:
    payments: List[DividendPayment] = field(default_factory=list)
    next_ex_date: Optional[date] = None
    annual_rate: Optional[float] = None


@dataclass(frozen=True)
class DividendForecast:
    ex_date: date
    amount_estimate: Optional[float] = None


@dataclass(frozen=True)
class DividendAttribution:
    """Outcome of one attribution pass: new records, cash credits and forecasts."""

    new_dividends: List[Dividend] = field(default_factory=list)
    cash_deltas: Dict[str, float] = field(default_factory=dict)
    forecasts: Dict[str, Optional[DividendForecast]] = field(default_factory=dict)


@dataclass(frozen=True)
class DailyClose:
    date: date
    close: float


@dataclass(frozen=True)
class Quote:
    """Latest quote returned by the market-data provider."""

    price: Optional[float] = None
    currency: Optional[str] = None
    name: Optional[str] = None


@dataclass(frozen=True)
class InstrumentMeta:
    name: str
    currency: Optional[str] = None


__all__ = [
    "BUY",
    "SELL",
    "TRANSACTION_SIDES",
    "Transaction",
    "PricePoint",
    "Position",
    "SeriesPoint",
    "PerformanceSummary",
    "Dividend",
    "DividendPayment",
    "DividendHistory",
    "DividendForecast",
    "DividendAttribution",
    "DailyClose",
    "Quote",
    "InstrumentMeta",
]
