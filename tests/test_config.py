from __future__ import annotations

import logging

import pytest
from pydantic import ValidationError

from portfolio_hub.config import AppSettings, get_settings
from portfolio_hub.core import setup_logging, setup_telemetry
from portfolio_hub.ledger import PortfolioBook


def test_defaults():
    settings = get_settings()
    assert settings.base_currency == "EUR"
    assert settings.default_portfolio == "PEA"
    assert settings.dividend_forecast_window == 4
    assert settings.dividend_amount_decimals == 6
    assert settings.telemetry_enabled is False
    assert get_settings() is settings


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("PORTFOLIO_HUB_DEFAULT_PORTFOLIO", "CTO")
    monkeypatch.setenv("PORTFOLIO_HUB_DIVIDEND_FORECAST_WINDOW", "8")
    settings = AppSettings()

    assert settings.default_portfolio == "CTO"
    assert settings.dividend_forecast_window == 8
    assert PortfolioBook(settings).portfolios() == ["CTO"]


def test_keyword_overrides_and_validation():
    assert get_settings(base_currency="USD").base_currency == "USD"
    with pytest.raises(ValidationError):
        AppSettings(telemetry_sample_ratio=2.0)


def test_dict_for_logging_lists_fields():
    dumped = AppSettings().dict_for_logging()
    assert dumped["app_name"] == "Portfolio Hub"
    assert "telemetry_otlp_endpoint" in dumped


def test_telemetry_disabled_is_a_noop(caplog):
    with caplog.at_level(logging.INFO, logger="portfolio_hub.core.telemetry"):
        assert setup_telemetry(AppSettings(telemetry_enabled=False)) is False
    assert "Telemetry disabled" in caplog.text


def test_setup_logging_follows_settings_and_replaces_its_handler():
    root = logging.getLogger()
    previous_level, previous_handlers = root.level, list(root.handlers)
    try:
        first = setup_logging(AppSettings(log_level="debug"))
        assert root.level == logging.DEBUG
        second = setup_logging(AppSettings(log_level="WARNING"))
        assert root.level == logging.WARNING
        assert second in root.handlers
        assert first not in root.handlers
        assert logging.getLogger("grpc").level == logging.WARNING
    finally:
        root.handlers = previous_handlers
        root.setLevel(previous_level)
