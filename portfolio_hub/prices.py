"""Price lookups over a sparse set of daily closes.

Prices arrive as (ticker, date, close) observations with gaps: not every
ticker trades or gets fetched every day. The helpers here answer "what is the
latest known close" and build a wide, forward-filled grid that the NAV replay
walks date by date.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, Iterable, List

import pandas as pd

from .models import PricePoint

logger = logging.getLogger(__name__)


@dataclass
class PriceGrid:
    """Forward-filled closes on the union of all observed dates.

    A ticker is absent from a row until its first observation; absence means
    "not yet priced", never zero.
    """

    dates: List[date] = field(default_factory=list)
    tickers: List[str] = field(default_factory=list)
    rows: Dict[date, Dict[str, float]] = field(default_factory=dict)

    def row(self, day: date) -> Dict[str, float]:
        return self.rows.get(day, {})

    def __len__(self) -> int:
        return len(self.dates)


def last_price_map(prices: Iterable[PricePoint]) -> Dict[str, float]:
    """Return each ticker's close on its chronologically latest date."""

    latest: Dict[str, float] = {}
    for point in sorted(prices, key=lambda p: p.date):
        latest[point.ticker] = point.close
    return latest


def _to_frame(points: List[PricePoint]) -> pd.DataFrame:
    frame = pd.DataFrame(
        [{"date": p.date, "ticker": p.ticker, "close": p.close} for p in points]
    )
    # one close per (date, ticker); the last observation in input order wins
    return frame.drop_duplicates(subset=["date", "ticker"], keep="last")


def forward_fill(prices: Iterable[PricePoint]) -> PriceGrid:
    """Pivot observations into a date x ticker grid and carry closes forward."""

    points = list(prices)
    if not points:
        return PriceGrid()

    wide = (
        _to_frame(points)
        .pivot(index="date", columns="ticker", values="close")
        .sort_index()
        .sort_index(axis=1)
    )
    filled = wide.ffill()

    rows: Dict[date, Dict[str, float]] = {}
    for day, values in filled.iterrows():
        rows[day] = {
            ticker: float(close) for ticker, close in values.items() if not pd.isna(close)
        }

    grid = PriceGrid(
        dates=list(filled.index),
        tickers=[str(t) for t in filled.columns],
        rows=rows,
    )
    logger.debug("Built price grid with %d dates and %d tickers", len(grid.dates), len(grid.tickers))
    return grid


def merge_prices(
    existing: Iterable[PricePoint],
    incoming: Iterable[PricePoint],
) -> List[PricePoint]:
    """Upsert ``incoming`` into ``existing`` keyed by (ticker, date).

    The incoming record replaces any existing record with the same key. The
    merged set is returned sorted ascending by date.
    """

    merged: Dict[tuple[str, date], PricePoint] = {}
    for point in existing:
        merged[point.key] = point
    for point in incoming:
        merged[point.key] = point
    return sorted(merged.values(), key=lambda p: p.date)


__all__ = [
    "PriceGrid",
    "last_price_map",
    "forward_fill",
    "merge_prices",
]
