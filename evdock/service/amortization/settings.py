"""
Amortization Settings for the EVDock installment engine.

Environment variables use the INSTALLMENT_ prefix:
    INSTALLMENT_DEFAULT_INTEREST_RATE=6.0
    INSTALLMENT_MAX_INSTALLMENT_MONTHS=120

Usage:
    from evdock.service.amortization.settings import amortization_settings

    rate = amortization_settings.default_interest_rate

    # Or create custom settings for testing
    custom = AmortizationSettings(default_interest_rate=Decimal("0"))
"""

from decimal import Decimal
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AmortizationSettings(BaseSettings):
    """
    Configurable parameters for payment schedule calculation.

    Rates are annual percentages (6.0 means 6% per year).
    """

    model_config = SettingsConfigDict(
        env_prefix="INSTALLMENT_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    default_interest_rate: Decimal = Field(
        default=Decimal("6.0"),
        ge=0,
        description="Annual interest rate applied when a request omits one",
    )
    max_installment_months: int = Field(
        default=120,
        gt=0,
        description="Longest accepted financing term in months",
    )


@lru_cache
def get_amortization_settings() -> AmortizationSettings:
    """Get cached amortization settings."""
    return AmortizationSettings()


amortization_settings = get_amortization_settings()
