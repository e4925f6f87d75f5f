"""Daily net-asset-value reconstruction."""

from __future__ import annotations

import logging
from datetime import timedelta
from enum import Enum
from typing import Dict, Iterable, List, Optional, Sequence

from .models import PerformanceSummary, PricePoint, SeriesPoint, Transaction
from .positions import filter_portfolios
from .prices import forward_fill

logger = logging.getLogger(__name__)


class NavRange(str, Enum):
    ONE_WEEK = "1W"
    ONE_MONTH = "1M"
    ONE_YEAR = "1Y"
    ALL = "ALL"

    @property
    def days(self) -> Optional[int]:
        return _RANGE_DAYS[self]


_RANGE_DAYS: Dict[NavRange, Optional[int]] = {
    NavRange.ONE_WEEK: 7,
    NavRange.ONE_MONTH: 31,
    NavRange.ONE_YEAR: 366,
    NavRange.ALL: None,
}


def compute_nav_series(
    transactions: Iterable[Transaction],
    prices: Iterable[PricePoint],
    portfolios: Optional[Sequence[str]] = None,
) -> List[SeriesPoint]:
    """Replay the ledger against the forward-filled price grid.

    Returns one point per grid date from the first trade date onward. Trades
    and dates are both walked in ascending order with a single cursor, so each
    trade is applied exactly once, on the first grid date on or after it.
    Tickers that have not been priced yet contribute nothing to the value.
    """

    scoped = filter_portfolios(transactions, portfolios)
    price_points = list(prices)
    if not scoped or not price_points:
        return []

    grid = forward_fill(price_points)
    first_trade = min(tx.date for tx in scoped)
    axis = [d for d in grid.dates if d >= first_trade]

    ordered = sorted(scoped, key=lambda tx: tx.date)
    quantities: Dict[str, float] = {ticker: 0.0 for ticker in grid.tickers}
    cursor = 0
    series: List[SeriesPoint] = []
    for day in axis:
        while cursor < len(ordered) and ordered[cursor].date <= day:
            tx = ordered[cursor]
            quantities[tx.ticker] = quantities.get(tx.ticker, 0.0) + tx.signed_quantity()
            cursor += 1
        closes = grid.row(day)
        value = sum(qty * closes.get(ticker, 0.0) for ticker, qty in quantities.items())
        series.append(SeriesPoint(date=day, value=value))

    logger.debug("Reconstructed NAV over %d dates from %s", len(series), first_trade)
    return series


def filter_nav_range(series: Sequence[SeriesPoint], nav_range: NavRange | str) -> List[SeriesPoint]:
    """Keep the trailing window of ``series`` ending at its last date."""

    if not series:
        return []
    days = NavRange(nav_range).days
    if days is None:
        return list(series)
    cutoff = series[-1].date - timedelta(days=days)
    return [point for point in series if point.date >= cutoff]


def summarize_performance(series: Sequence[SeriesPoint]) -> PerformanceSummary:
    if len(series) < 2:
        return PerformanceSummary()
    first = series[0].value
    absolute = series[-1].value - first
    percent = absolute / first if first > 0 else 0.0
    return PerformanceSummary(absolute=absolute, percent=percent)


__all__ = [
    "NavRange",
    "compute_nav_series",
    "filter_nav_range",
    "summarize_performance",
]
