"""Core package for the Portfolio Hub accounting engine."""

from .dividends import attribute_dividends, estimate_next_payment, held_quantity
from .ledger import PortfolioBook
from .models import (
    Dividend,
    DividendAttribution,
    DividendForecast,
    DividendHistory,
    DividendPayment,
    Position,
    PricePoint,
    SeriesPoint,
    Transaction,
)
from .nav import NavRange, compute_nav_series, filter_nav_range, summarize_performance
from .positions import compute_positions
from .prices import forward_fill, last_price_map, merge_prices

__all__ = [
    "Transaction",
    "PricePoint",
    "Position",
    "SeriesPoint",
    "Dividend",
    "DividendPayment",
    "DividendHistory",
    "DividendForecast",
    "DividendAttribution",
    "PortfolioBook",
    "NavRange",
    "compute_positions",
    "compute_nav_series",
    "filter_nav_range",
    "summarize_performance",
    "attribute_dividends",
    "estimate_next_payment",
    "held_quantity",
    "forward_fill",
    "last_price_map",
    "merge_prices",
]
