"""In-memory portfolio book: the mutable state around the pure engine.

The book owns the transaction ledger, the price set, dividend records, cash
balances, instrument metadata and dividend forecasts. Every mutation is a
single discrete event (a deposit, a submitted trade, a merged price batch, an
applied dividend attribution) and callers are expected to serialise them.
Derived views are recomputed from scratch on each call.
"""

from __future__ import annotations

import logging
import math
import uuid
from datetime import date
from typing import Callable, Dict, Iterable, List, Optional, Sequence

from .config import AppSettings, get_settings
from .errors import InsufficientCashError, InvalidTransactionError, UnknownDividendError
from .models import (
    BUY,
    TRANSACTION_SIDES,
    Dividend,
    DividendAttribution,
    DividendForecast,
    InstrumentMeta,
    PerformanceSummary,
    Position,
    PricePoint,
    SeriesPoint,
    Transaction,
)
from .nav import NavRange, compute_nav_series, filter_nav_range, summarize_performance
from .positions import compute_positions, replay_holding
from .prices import merge_prices

logger = logging.getLogger(__name__)

FALLBACK_PORTFOLIO_NAME = "Portefeuille"


def _new_transaction_id() -> str:
    return f"tx-{uuid.uuid4().hex[:12]}"


def _validate_transaction(
    portfolio: str,
    ticker: str,
    side: str,
    quantity: float,
    price: float,
    fees: float,
) -> None:
    if not portfolio.strip():
        raise InvalidTransactionError("portfolio is required")
    if not ticker.strip():
        raise InvalidTransactionError("ticker is required")
    if side.upper() not in TRANSACTION_SIDES:
        raise InvalidTransactionError(f"side must be one of {', '.join(TRANSACTION_SIDES)}")
    if not math.isfinite(quantity) or quantity <= 0:
        raise InvalidTransactionError("quantity must be > 0")
    if not math.isfinite(price) or price < 0:
        raise InvalidTransactionError("price must be >= 0")
    if not math.isfinite(fees) or fees < 0:
        raise InvalidTransactionError("fees must be >= 0")


class PortfolioBook:
    """Minimal in-memory portfolio repository."""

    def __init__(
        self,
        settings: AppSettings | None = None,
        *,
        id_factory: Callable[[], str] = _new_transaction_id,
    ):
        self.settings = settings or get_settings()
        self._id_factory = id_factory
        self.transactions: List[Transaction] = []
        self.prices: List[PricePoint] = []
        self.dividends: List[Dividend] = []
        self.cash: Dict[str, float] = {}
        self.instruments: Dict[str, InstrumentMeta] = {}
        self.forecasts: Dict[str, Optional[DividendForecast]] = {}
        self._opened: set[str] = {self.settings.default_portfolio}

    # Portfolios and cash

    def portfolios(self) -> List[str]:
        names = set(self._opened)
        names.update(tx.portfolio for tx in self.transactions)
        names.update(d.portfolio for d in self.dividends)
        names.update(self.cash)
        return sorted(names)

    def open_portfolio(self, name: str, initial_deposit: float = 0.0) -> str:
        name = name.strip() or FALLBACK_PORTFOLIO_NAME
        self._opened.add(name)
        if initial_deposit != 0:
            self._credit(name, initial_deposit)
        logger.info("Opened portfolio %s with %.2f", name, initial_deposit)
        return name

    def deposit(self, portfolio: str, amount: float) -> float:
        portfolio = portfolio.strip()
        balance = self._credit(portfolio, amount)
        logger.info("Cash movement of %.2f on %s, balance %.2f", amount, portfolio, balance)
        return balance

    def withdraw(self, portfolio: str, amount: float) -> float:
        return self.deposit(portfolio, -amount)

    def balance(self, portfolio: str) -> float:
        return self.cash.get(portfolio, 0.0)

    def cash_total(self, portfolios: Optional[Sequence[str]] = None) -> float:
        keys = portfolios if portfolios else list(self.cash)
        return sum(self.cash.get(k, 0.0) for k in keys)

    def _credit(self, portfolio: str, amount: float) -> float:
        self.cash[portfolio] = self.cash.get(portfolio, 0.0) + amount
        return self.cash[portfolio]

    # Transactions

    def submit_transaction(
        self,
        *,
        portfolio: str,
        trade_date: date,
        ticker: str,
        side: str,
        quantity: float,
        price: float,
        fees: float = 0.0,
        note: str | None = None,
    ) -> Transaction:
        """Validate, settle against cash and append a trade to the ledger."""

        _validate_transaction(portfolio, ticker, side, quantity, price, fees)
        portfolio = portfolio.strip()
        side = side.upper()
        if side == BUY:
            gross = quantity * price + fees
            available = self.balance(portfolio)
            if available < gross:
                raise InsufficientCashError(portfolio, gross, available)
            self._credit(portfolio, -gross)
        else:
            self._credit(portfolio, quantity * price - fees)

        tx = Transaction(
            id=self._id_factory(),
            portfolio=portfolio,
            date=trade_date,
            ticker=ticker.strip(),
            side=side,
            quantity=quantity,
            price=price,
            fees=fees,
            note=note,
        )
        self.transactions.append(tx)
        logger.info(
            "Recorded %s %s x%s @ %s in %s (%s)",
            tx.side,
            tx.ticker,
            tx.quantity,
            tx.price,
            tx.portfolio,
            tx.id,
        )
        return tx

    def tickers(self) -> List[str]:
        """Tickers appearing in the ledger, in first-seen order."""

        return list(dict.fromkeys(tx.ticker for tx in self.transactions))

    def held_tickers(self, portfolios: Optional[Sequence[str]] = None) -> List[str]:
        return [p.ticker for p in self.positions(portfolios)]

    def first_trade_date(self, ticker: str) -> Optional[date]:
        dates = [tx.date for tx in self.transactions if tx.ticker == ticker]
        return min(dates) if dates else None

    def quantity(self, ticker: str, portfolios: Optional[Sequence[str]] = None) -> float:
        scoped = [
            tx
            for tx in self.transactions
            if tx.ticker == ticker and (not portfolios or tx.portfolio in portfolios)
        ]
        return replay_holding(scoped).quantity

    # Prices

    def merge_prices(self, incoming: Iterable[PricePoint]) -> int:
        batch = list(incoming)
        if batch:
            self.prices = merge_prices(self.prices, batch)
        return len(batch)

    # Dividends

    def apply_dividends(self, attribution: DividendAttribution) -> List[Dividend]:
        """Insert new dividend records and credit their cash."""

        known = {d.id for d in self.dividends}
        added: List[Dividend] = []
        for dividend in attribution.new_dividends:
            if dividend.id in known:
                continue
            self.dividends.append(dividend)
            self._credit(dividend.portfolio, dividend.amount)
            known.add(dividend.id)
            added.append(dividend)
        self.dividends.sort(key=lambda d: d.date)
        self.forecasts.update(attribution.forecasts)
        if added:
            logger.info("Credited %d dividends totalling %.2f", len(added), sum(d.amount for d in added))
        return added

    def delete_dividend(self, dividend_id: str) -> Dividend:
        """Remove a dividend record and debit its amount back."""

        for index, dividend in enumerate(self.dividends):
            if dividend.id == dividend_id:
                del self.dividends[index]
                self._credit(dividend.portfolio, -dividend.amount)
                logger.info("Reversed dividend %s (%.2f)", dividend_id, dividend.amount)
                return dividend
        raise UnknownDividendError(dividend_id)

    # Derived views

    def positions(self, portfolios: Optional[Sequence[str]] = None) -> List[Position]:
        return compute_positions(self.transactions, self.prices, portfolios)

    def total_value(self, portfolios: Optional[Sequence[str]] = None) -> float:
        return sum(p.market_value for p in self.positions(portfolios))

    def nav_series(
        self,
        portfolios: Optional[Sequence[str]] = None,
        nav_range: NavRange | str = NavRange.ALL,
    ) -> List[SeriesPoint]:
        full = compute_nav_series(self.transactions, self.prices, portfolios)
        return filter_nav_range(full, nav_range)

    def performance(
        self,
        portfolios: Optional[Sequence[str]] = None,
        nav_range: NavRange | str = NavRange.ALL,
    ) -> PerformanceSummary:
        return summarize_performance(self.nav_series(portfolios, nav_range))


__all__ = ["PortfolioBook", "FALLBACK_PORTFOLIO_NAME"]
