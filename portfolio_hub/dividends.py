"""Dividend entitlement attribution.

For every historical ex-date the quantity each portfolio held on that day is
reconstructed from the ledger and turned into a cash dividend record. Record
ids are derived from (portfolio, ticker, ex-date), so running attribution
again over the same data never credits the same payment twice.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from .models import (
    Dividend,
    DividendAttribution,
    DividendForecast,
    DividendHistory,
    Transaction,
)

logger = logging.getLogger(__name__)

DEFAULT_FORECAST_WINDOW = 4
DEFAULT_AMOUNT_DECIMALS = 6


def dividend_id(portfolio: str, ticker: str, ex_date: date) -> str:
    return f"div|{portfolio}|{ticker}|{ex_date.isoformat()}"


def held_quantity(
    transactions: Iterable[Transaction],
    portfolio: str,
    ticker: str,
    as_of: date,
) -> float:
    """Shares of ``ticker`` held by ``portfolio`` at the end of ``as_of``."""

    quantity = 0.0
    for tx in transactions:
        if tx.portfolio == portfolio and tx.ticker == ticker and tx.date <= as_of:
            quantity += tx.signed_quantity()
    return max(quantity, 0.0)


def estimate_next_payment(
    history: DividendHistory,
    *,
    window: int = DEFAULT_FORECAST_WINDOW,
) -> Optional[DividendForecast]:
    """Estimate the per-share amount of the next known ex-date.

    Uses the mean of the last ``window`` payments, falling back to a quarter
    of the annual rate. Display data only; never used for accounting.
    """

    if history.next_ex_date is None:
        return None
    recent = sorted(history.payments, key=lambda p: p.date)[-window:] if window > 0 else []
    estimate: Optional[float] = None
    if recent:
        estimate = sum(p.amount for p in recent) / len(recent)
    elif history.annual_rate is not None:
        estimate = history.annual_rate / 4
    return DividendForecast(ex_date=history.next_ex_date, amount_estimate=estimate)


def attribute_dividends(
    transactions: Iterable[Transaction],
    histories: Mapping[str, DividendHistory],
    existing: Iterable[Dividend],
    portfolios: Sequence[str],
    *,
    forecast_window: int = DEFAULT_FORECAST_WINDOW,
    decimals: int = DEFAULT_AMOUNT_DECIMALS,
) -> DividendAttribution:
    """Create the dividend records (and cash credits) not yet present."""

    ledger = list(transactions)
    known_ids = {d.id for d in existing}
    new_dividends: List[Dividend] = []
    cash_deltas: Dict[str, float] = {}
    forecasts: Dict[str, Optional[DividendForecast]] = {}

    for ticker, history in histories.items():
        ticker_txs = [tx for tx in ledger if tx.ticker == ticker]
        for portfolio in portfolios:
            for payment in history.payments:
                qty = held_quantity(ticker_txs, portfolio, ticker, payment.date)
                if qty <= 0:
                    continue
                record_id = dividend_id(portfolio, ticker, payment.date)
                if record_id in known_ids:
                    continue
                amount = round(qty * payment.amount, decimals)
                new_dividends.append(
                    Dividend(
                        id=record_id,
                        portfolio=portfolio,
                        ticker=ticker,
                        date=payment.date,
                        amount=amount,
                    )
                )
                known_ids.add(record_id)
                cash_deltas[portfolio] = cash_deltas.get(portfolio, 0.0) + amount
        forecasts[ticker] = estimate_next_payment(history, window=forecast_window)

    new_dividends.sort(key=lambda d: d.date)
    if new_dividends:
        logger.debug("Attributed %d new dividend records", len(new_dividends))
    return DividendAttribution(
        new_dividends=new_dividends,
        cash_deltas=cash_deltas,
        forecasts=forecasts,
    )


__all__ = [
    "DEFAULT_FORECAST_WINDOW",
    "DEFAULT_AMOUNT_DECIMALS",
    "dividend_id",
    "held_quantity",
    "estimate_next_payment",
    "attribute_dividends",
]
