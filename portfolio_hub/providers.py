"""Market-data collaborator interface.

The engine never fetches anything itself. Callers hand it a provider that
satisfies :class:`MarketDataProvider`; network-backed implementations live
outside this package.
"""

from __future__ import annotations

from datetime import date
from typing import Iterable, Mapping, Protocol

from .errors import MarketDataUnavailable
from .models import DailyClose, DividendHistory, DividendPayment, Quote


class MarketDataProvider(Protocol):
    """Pluggable source of closes, quotes and dividend history."""

    def get_daily_closes(self, ticker: str, start: date, end: date) -> list[DailyClose]:
        ...

    def get_latest_quote(self, ticker: str) -> Quote:
        ...

    def get_dividend_history(self, ticker: str, start: date) -> DividendHistory:
        ...


class InMemoryMarketData:
    """Simple provider for tests and offline use."""

    def __init__(
        self,
        closes: Mapping[str, Mapping[date, float]] | None = None,
        quotes: Mapping[str, Quote] | None = None,
        dividends: Mapping[str, DividendHistory] | None = None,
    ):
        self._closes: dict[str, dict[date, float]] = {
            ticker: {d: float(v) for d, v in series.items()}
            for ticker, series in (closes or {}).items()
        }
        self._quotes: dict[str, Quote] = dict(quotes or {})
        self._dividends: dict[str, DividendHistory] = dict(dividends or {})

    def get_daily_closes(self, ticker: str, start: date, end: date) -> list[DailyClose]:
        series = self._closes.get(ticker, {})
        return [DailyClose(date=d, close=c) for d, c in series.items() if start <= d <= end]

    def get_latest_quote(self, ticker: str) -> Quote:
        if ticker not in self._quotes:
            raise MarketDataUnavailable(f"No quote for ticker {ticker}")
        return self._quotes[ticker]

    def get_dividend_history(self, ticker: str, start: date) -> DividendHistory:
        history = self._dividends.get(ticker)
        if history is None:
            return DividendHistory()
        return DividendHistory(
            payments=[p for p in history.payments if p.date >= start],
            next_ex_date=history.next_ex_date,
            annual_rate=history.annual_rate,
        )

    def set_quote(self, ticker: str, quote: Quote) -> None:
        self._quotes[ticker] = quote

    def add_dividends(self, ticker: str, payments: Iterable[DividendPayment]) -> None:
        current = self._dividends.get(ticker, DividendHistory())
        self._dividends[ticker] = DividendHistory(
            payments=sorted([*current.payments, *payments], key=lambda p: p.date),
            next_ex_date=current.next_ex_date,
            annual_rate=current.annual_rate,
        )


__all__ = ["MarketDataProvider", "InMemoryMarketData"]
