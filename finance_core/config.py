"""Configuration management using Pydantic Settings"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables"""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Database
    database_url: str = "sqlite:///./finance_core.db"

    # Service
    service_name: str = "finance-core"
    log_level: str = "INFO"

    # Calculations
    default_locale: str = "es-CO"
    forecast_default_horizon_months: int = 6
    recurring_run_max_backfill: int = 120  # Newest occurrences per rule that may auto-post; older ones queue


settings = Settings()
