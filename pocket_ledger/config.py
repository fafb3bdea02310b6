"""Configuration management using Pydantic Settings"""

from decimal import Decimal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="POCKET_LEDGER_",
        extra="ignore",
    )

    # Service
    service_name: str = "pocket-ledger"
    log_level: str = "INFO"

    # Projection
    projection_months: int = 6
    warning_buffer_ratio: Decimal = Decimal("0.5")  # Tunable heuristic, not a hard limit

    # Aggregates
    average_cashflow_months: int = 3

    # Payments: fall back to available cash as the ceiling when the caller sends none
    enforce_cash_ceiling: bool = True


settings = Settings()
