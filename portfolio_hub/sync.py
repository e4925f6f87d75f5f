"""Synchronise a portfolio book with a market-data provider.

Fetches run one ticker at a time and every batch is merged into the book
before the next fetch starts, so the last-write-wins price merge stays
deterministic. A provider that has nothing for a request only shrinks what
the book knows; it never aborts the remaining work.
"""

from __future__ import annotations

import logging
import math
from dataclasses import replace
from datetime import date
from typing import Optional

from opentelemetry import trace

from .dividends import attribute_dividends
from .errors import MarketDataUnavailable
from .ledger import PortfolioBook
from .models import DividendForecast, DividendHistory, InstrumentMeta, PricePoint
from .providers import MarketDataProvider

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)


def load_history(
    book: PortfolioBook,
    provider: MarketDataProvider,
    ticker: str,
    today: date,
) -> int:
    """Backfill daily closes from the ticker's first trade date to ``today``."""

    first = book.first_trade_date(ticker)
    if first is None:
        return 0
    with tracer.start_as_current_span("portfolio_hub.load_history") as span:
        span.set_attribute("portfolio_hub.ticker", ticker)
        try:
            closes = provider.get_daily_closes(ticker, first, today)
        except MarketDataUnavailable as exc:
            logger.warning("History unavailable for %s: %s", ticker, exc)
            return 0
        points = [
            PricePoint(ticker=ticker, date=c.date, close=c.close)
            for c in closes
            if math.isfinite(c.close)
        ]
        merged = book.merge_prices(points)
        span.set_attribute("portfolio_hub.points", merged)
    logger.info("Merged %d closes for %s since %s", merged, ticker, first)
    return merged


def _quote_point(book: PortfolioBook, provider: MarketDataProvider, ticker: str, today: date) -> Optional[PricePoint]:
    try:
        quote = provider.get_latest_quote(ticker)
    except MarketDataUnavailable as exc:
        logger.warning("Quote unavailable for %s: %s", ticker, exc)
        return None
    current = book.instruments.get(ticker)
    if quote.name or current is None:
        book.instruments[ticker] = InstrumentMeta(
            name=quote.name or ticker,
            currency=quote.currency or (current.currency if current else book.settings.base_currency),
        )
    if quote.price is None or not math.isfinite(quote.price):
        return None
    return PricePoint(ticker=ticker, date=today, close=float(quote.price))


def ensure_quote(
    book: PortfolioBook,
    provider: MarketDataProvider,
    ticker: str,
    today: date,
) -> bool:
    """Load metadata and today's quote the first time a ticker is seen."""

    if ticker in book.instruments:
        return False
    with tracer.start_as_current_span("portfolio_hub.ensure_quote") as span:
        span.set_attribute("portfolio_hub.ticker", ticker)
        point = _quote_point(book, provider, ticker, today)
        if point is not None:
            book.merge_prices([point])
    return True


def refresh_quotes(book: PortfolioBook, provider: MarketDataProvider, today: date) -> int:
    """Record the latest quote of every held ticker as today's close."""

    with tracer.start_as_current_span("portfolio_hub.refresh_quotes") as span:
        updates = []
        for ticker in book.held_tickers():
            point = _quote_point(book, provider, ticker, today)
            if point is not None:
                updates.append(point)
        merged = book.merge_prices(updates)
        span.set_attribute("portfolio_hub.points", merged)
    logger.info("Refreshed %d quotes", merged)
    return merged


def _usable_payments(ticker: str, history: DividendHistory) -> DividendHistory:
    usable = [p for p in history.payments if math.isfinite(p.amount) and p.amount != 0]
    dropped = len(history.payments) - len(usable)
    if dropped:
        logger.warning("Ignored %d unusable dividend payments for %s", dropped, ticker)
    return replace(history, payments=usable)


def sync_dividends(
    book: PortfolioBook,
    provider: MarketDataProvider,
    ticker: str,
) -> Optional[DividendForecast]:
    """Credit any dividends of ``ticker`` not yet on the book."""

    first = book.first_trade_date(ticker)
    if first is None:
        return None
    with tracer.start_as_current_span("portfolio_hub.sync_dividends") as span:
        span.set_attribute("portfolio_hub.ticker", ticker)
        try:
            history = provider.get_dividend_history(ticker, first)
        except MarketDataUnavailable as exc:
            logger.warning("Dividend history unavailable for %s: %s", ticker, exc)
            return None
        history = _usable_payments(ticker, history)
        attribution = attribute_dividends(
            book.transactions,
            {ticker: history},
            book.dividends,
            book.portfolios(),
            forecast_window=book.settings.dividend_forecast_window,
            decimals=book.settings.dividend_amount_decimals,
        )
        added = book.apply_dividends(attribution)
        span.set_attribute("portfolio_hub.dividends_added", len(added))
    return attribution.forecasts.get(ticker)


def sync_ticker(
    book: PortfolioBook,
    provider: MarketDataProvider,
    ticker: str,
    today: date,
) -> None:
    ensure_quote(book, provider, ticker, today)
    load_history(book, provider, ticker, today)
    sync_dividends(book, provider, ticker)


def sync_all(book: PortfolioBook, provider: MarketDataProvider, today: date) -> None:
    for ticker in book.tickers():
        sync_ticker(book, provider, ticker, today)


__all__ = [
    "load_history",
    "ensure_quote",
    "refresh_quotes",
    "sync_dividends",
    "sync_ticker",
    "sync_all",
]
