import pathlib
import sys
from datetime import date

import pytest

ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from portfolio_hub.config import AppSettings, get_settings  # noqa: E402
from portfolio_hub.models import Transaction  # noqa: E402


@pytest.fixture(autouse=True)
def _clear_settings_cache():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture()
def settings() -> AppSettings:
    return AppSettings()


@pytest.fixture()
def make_tx():
    """Build transactions with sequential ids."""

    counter = {"n": 0}

    def _make(
        ticker: str,
        side: str,
        quantity: float,
        price: float = 0.0,
        day: date = date(2024, 1, 1),
        *,
        portfolio: str = "PEA",
        fees: float = 0.0,
    ) -> Transaction:
        counter["n"] += 1
        return Transaction(
            id=f"tx{counter['n']}",
            portfolio=portfolio,
            date=day,
            ticker=ticker,
            side=side,
            quantity=quantity,
            price=price,
            fees=fees,
        )

    return _make
