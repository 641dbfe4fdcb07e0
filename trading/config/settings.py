"""Application settings using pydantic-settings."""

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Trading simulator configuration with environment variable overrides."""

    model_config = SettingsConfigDict(
        env_prefix="TRADING_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Mock identity (authentication is handled outside the core)
    default_user_id: str = Field(
        default="user_001", description="Fixed user id attached to every request"
    )

    # Market simulation
    price_jitter_probability: float = Field(
        default=0.1,
        description="Chance per instrument per listing that its price is nudged",
    )
    price_jitter_pct: float = Field(
        default=1.0, description="Maximum listing price nudge in percent (+/-)"
    )
    max_slippage_pct: float = Field(
        default=0.1, description="Maximum MARKET order slippage in percent (+/-)"
    )

    # Order limits
    max_order_quantity: int = Field(
        default=10000, description="Largest quantity accepted for a single order"
    )

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO", description="Logging level"
    )
    log_format: Literal["json", "console"] = Field(
        default="console", description="Log output format"
    )

    @field_validator("price_jitter_probability")
    @classmethod
    def validate_probability(cls, v: float) -> float:
        """Validate probability is between 0 and 1."""
        if not 0 <= v <= 1:
            raise ValueError(f"Probability must be between 0 and 1, got {v}")
        return v

    @field_validator("price_jitter_pct", "max_slippage_pct")
    @classmethod
    def validate_percentages(cls, v: float) -> float:
        """Validate percentage values are between 0 and 100."""
        if not 0 <= v < 100:
            raise ValueError(f"Percentage must be between 0 and 100, got {v}")
        return v

    @field_validator("max_order_quantity")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        """Validate order quantity cap is positive."""
        if v < 1:
            raise ValueError(f"Max order quantity must be positive, got {v}")
        return v


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
