"""Configuration management for the dashboard backend."""

import os
from dataclasses import dataclass

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

VALID_ORDERS = ("market_cap_desc", "volume_desc")
VALID_TIMEFRAMES = ("7d", "30d")
VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class MarketDataConfig:
    """Market data provider configuration."""

    base_url: str = "https://api.coingecko.com/api/v3"
    vs_currency: str = "usd"
    page_size: int = 10
    history_days: int = 200
    request_timeout: float = 10.0  # Seconds per HTTP request
    history_workers: int = 10


@dataclass
class RefreshConfig:
    """Refresh loop configuration."""

    interval_seconds: int = 60
    default_order: str = "market_cap_desc"
    default_timeframe: str = "30d"


@dataclass
class PreferencesConfig:
    """User preference storage configuration."""

    path: str = "./data/preferences.json"
    dark_mode_key: str = "cryptoDarkMode"


@dataclass
class LoggingConfig:
    """Structured logging configuration."""

    level: str = "INFO"
    file_path: str | None = None


class Config:
    """Main application configuration."""

    def __init__(self):
        self.market_data = MarketDataConfig(
            base_url=os.getenv("COINGECKO_BASE_URL", "https://api.coingecko.com/api/v3"),
            vs_currency=os.getenv("VS_CURRENCY", "usd"),
            page_size=int(os.getenv("PAGE_SIZE", "10")),
            history_days=int(os.getenv("HISTORY_DAYS", "200")),
            request_timeout=float(os.getenv("REQUEST_TIMEOUT", "10")),
            history_workers=int(os.getenv("HISTORY_WORKERS", "10")),
        )

        self.refresh = RefreshConfig(
            interval_seconds=int(os.getenv("REFRESH_INTERVAL_SECONDS", "60")),
            default_order=os.getenv("DEFAULT_ORDER", "market_cap_desc"),
            default_timeframe=os.getenv("DEFAULT_TIMEFRAME", "30d"),
        )

        self.preferences = PreferencesConfig(
            path=os.getenv("PREFERENCES_PATH", "./data/preferences.json"),
        )

        self.logging = LoggingConfig(
            level=os.getenv("LOG_LEVEL", "INFO").upper(),
            file_path=os.getenv("LOG_FILE") or None,
        )

    def validate(self) -> bool:
        """
        Validate configuration.

        Returns:
            True if configuration is valid

        Raises:
            ValueError if configuration is invalid
        """
        if not self.market_data.base_url:
            raise ValueError("COINGECKO_BASE_URL environment variable is required")
        if self.market_data.page_size <= 0:
            raise ValueError("PAGE_SIZE must be a positive integer")
        if self.market_data.history_days <= 0:
            raise ValueError("HISTORY_DAYS must be a positive integer")
        if self.market_data.request_timeout <= 0:
            raise ValueError("REQUEST_TIMEOUT must be positive")
        if self.market_data.history_workers <= 0:
            raise ValueError("HISTORY_WORKERS must be a positive integer")
        if self.refresh.interval_seconds <= 0:
            raise ValueError("REFRESH_INTERVAL_SECONDS must be a positive integer")

        if self.refresh.default_order not in VALID_ORDERS:
            raise ValueError(
                f"Invalid DEFAULT_ORDER: {self.refresh.default_order}. "
                f"Use one of {', '.join(VALID_ORDERS)}"
            )
        if self.refresh.default_timeframe not in VALID_TIMEFRAMES:
            raise ValueError(
                f"Invalid DEFAULT_TIMEFRAME: {self.refresh.default_timeframe}. "
                f"Use one of {', '.join(VALID_TIMEFRAMES)}"
            )
        if self.logging.level not in VALID_LOG_LEVELS:
            raise ValueError(f"Invalid LOG_LEVEL: {self.logging.level}")

        return True


# Global config instance
config = Config()
