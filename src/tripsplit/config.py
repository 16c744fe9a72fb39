"""Configuration management for TripSplit."""

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import ConfigurationError
from .money import Currency


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="TRIPSPLIT_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Currency settings (one currency per trip, no conversion)
    currency_code: str = "USD"
    minor_unit_digits: int = 2  # 2 for USD/EUR, 0 for JPY/KRW

    # Trip used when --trip is not given
    default_trip: str = "default"

    # Database path
    database_path: Path = Path.home() / ".tripsplit" / "tripsplit.db"

    def __init__(self, **kwargs):
        """Initialize settings and create database directory if needed."""
        super().__init__(**kwargs)
        self.database_path.parent.mkdir(parents=True, exist_ok=True)

    @property
    def currency(self) -> Currency:
        """The trip currency as a value object."""
        return Currency(code=self.currency_code, minor_unit_digits=self.minor_unit_digits)


def load_settings(**overrides) -> Settings:
    """Load application settings from environment variables."""
    try:
        return Settings(**overrides)
    except Exception as e:
        raise ConfigurationError(
            f"Failed to load settings. Check the TRIPSPLIT_* variables in your "
            f"environment or .env file.\n"
            f"Error: {e}"
        ) from e
