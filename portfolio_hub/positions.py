"""Current positions from the transaction ledger.

Each ticker's trades are replayed in date order with weighted-average cost
accounting. A sale never changes the average cost; selling down to zero
closes the position and wipes its cost basis, so a later buy starts fresh.
Realized gains are not tracked.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import date
from typing import Dict, Iterable, List, Optional, Sequence

from .models import BUY, Position, PricePoint, Transaction
from .prices import last_price_map

logger = logging.getLogger(__name__)


@dataclass
class _RunningHolding:
    """Mutable replay state for one ticker."""

    quantity: float = 0.0
    average_cost: float = 0.0
    held_since: Optional[date] = None

    def apply(self, tx: Transaction) -> None:
        if tx.normalized_side() == BUY:
            total_cost = self.quantity * self.average_cost + tx.quantity * tx.price + tx.fees
            self.quantity += tx.quantity
            self.average_cost = total_cost / self.quantity if self.quantity > 0 else 0.0
            if self.held_since is None:
                self.held_since = tx.date
        else:
            self.quantity -= tx.quantity
            if self.quantity <= 0:
                self.quantity = 0.0
                self.average_cost = 0.0
                self.held_since = None


def filter_portfolios(
    transactions: Iterable[Transaction],
    portfolios: Optional[Sequence[str]] = None,
) -> List[Transaction]:
    """Restrict the ledger to ``portfolios``; an empty filter keeps everything."""

    if not portfolios:
        return list(transactions)
    allowed = set(portfolios)
    return [tx for tx in transactions if tx.portfolio in allowed]


def _group_by_ticker(transactions: Iterable[Transaction]) -> Dict[str, List[Transaction]]:
    grouped: Dict[str, List[Transaction]] = {}
    for tx in transactions:
        grouped.setdefault(tx.ticker, []).append(tx)
    return grouped


def replay_holding(transactions: Iterable[Transaction]) -> _RunningHolding:
    """Replay one ticker's trades (stable date sort) and return the end state."""

    holding = _RunningHolding()
    for tx in sorted(transactions, key=lambda t: t.date):
        holding.apply(tx)
    return holding


def compute_positions(
    transactions: Iterable[Transaction],
    prices: Iterable[PricePoint],
    portfolios: Optional[Sequence[str]] = None,
) -> List[Position]:
    """Value every open position and weight it against the scoped total."""

    scoped = filter_portfolios(transactions, portfolios)
    last = last_price_map(prices)

    open_positions: List[Position] = []
    for ticker, ticker_txs in _group_by_ticker(scoped).items():
        holding = replay_holding(ticker_txs)
        if holding.quantity == 0:
            continue
        last_price = last.get(ticker, 0.0)
        avg = holding.average_cost
        open_positions.append(
            Position(
                ticker=ticker,
                quantity=holding.quantity,
                last_price=last_price,
                market_value=holding.quantity * last_price,
                weight=0.0,
                held_since=holding.held_since,
                average_cost=avg,
                unrealized_pnl_abs=holding.quantity * (last_price - avg),
                unrealized_pnl_pct=(last_price - avg) / avg if avg > 0 else 0.0,
            )
        )

    open_positions.sort(key=lambda p: p.market_value, reverse=True)
    total = sum(p.market_value for p in open_positions)
    weighted = [
        replace(p, weight=p.market_value / total if total else 0.0) for p in open_positions
    ]
    logger.debug("Computed %d open positions (total value %.2f)", len(weighted), total)
    return weighted


__all__ = [
    "compute_positions",
    "filter_portfolios",
    "replay_holding",
]
