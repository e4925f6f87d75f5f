"""Application configuration and environment helpers."""

from __future__ import annotations

from functools import lru_cache
from typing import Any

from pydantic import Field
from pydantic_settings import BaseSettings

DEFAULT_BASE_CURRENCY = "EUR"
DEFAULT_PORTFOLIO = "PEA"


class AppSettings(BaseSettings):
    """Configuration options for the Portfolio Hub engine."""

    app_name: str = Field(default="Portfolio Hub")
    base_currency: str = Field(default=DEFAULT_BASE_CURRENCY)
    default_portfolio: str = Field(
        default=DEFAULT_PORTFOLIO,
        description="Portfolio opened on every new book.",
    )

    dividend_forecast_window: int = Field(
        default=4,
        ge=1,
        description="Number of recent payments averaged for the next-dividend estimate.",
    )
    dividend_amount_decimals: int = Field(default=6, ge=0)

    log_level: str = Field(default="INFO")

    telemetry_enabled: bool = Field(default=False)
    telemetry_service_name: str = Field(default="portfolio-hub")
    telemetry_otlp_endpoint: str | None = Field(default=None)
    telemetry_otlp_insecure: bool = Field(default=True)
    telemetry_sample_ratio: float = Field(default=1.0, ge=0.0, le=1.0)

    class Config:
        env_prefix = "PORTFOLIO_HUB_"
        env_file = ".env"
        env_file_encoding = "utf-8"

    def dict_for_logging(self) -> dict[str, Any]:
        """Return a dict suitable for startup logging."""

        return self.model_dump()


@lru_cache(maxsize=1)
def get_settings(**overrides: Any) -> AppSettings:
    """Return cached application settings with optional overrides."""

    if overrides:
        return AppSettings(**overrides)
    return AppSettings()


__all__ = [
    "AppSettings",
    "DEFAULT_BASE_CURRENCY",
    "DEFAULT_PORTFOLIO",
    "get_settings",
]
