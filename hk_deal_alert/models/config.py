"""
Configuration models for the system.
"""

import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional
from urllib.parse import urlparse

from .filter import FilterCriteria

DEFAULT_BASE_URL = "https://www.healthkart.com"

CATEGORY_CODES: Dict[str, str] = {
    "wheyProtein": "SCT-snt-pt-wp",
    "massGainer": "SCT-snt-pt-mg",
    "creatine": "SCT-snt-pt-cr",
    "preworkout": "SCT-snt-pt-pw",
}

DEFAULT_BRANDS = [
    "muscleblaze",
    "optimum nutrition",
    "dymatize",
    "gnc",
    "on",
    "fuel one",
    "bsn",
    "muscletech",
]

BOT_TOKEN_PATTERN = re.compile(r"^\d+:[\w-]+$")


@dataclass
class CatalogConfig:
    """Settings for the catalog API client."""

    base_url: str = DEFAULT_BASE_URL
    category_code: str = CATEGORY_CODES["wheyProtein"]
    categories: Dict[str, str] = field(default_factory=lambda: dict(CATEGORY_CODES))
    request_delay: float = 1.0
    max_retries: int = 3
    retry_delay: float = 1.0
    per_page: int = 24
    request_timeout: float = 30.0

    def resolve_category(self, category: Optional[str]) -> str:
        """Accept either a configured category key or a raw category code."""
        if not category:
            return self.category_code
        return self.categories.get(category, category)

    def validate(self) -> bool:
        """Validate catalog configuration."""
        parsed = urlparse(self.base_url)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError(f"Invalid catalog base_url: {self.base_url}")

        if not self.category_code or not self.category_code.strip():
            raise ValueError("category_code cannot be empty")

        if self.request_delay < 0:
            raise ValueError("request_delay cannot be negative")

        if self.max_retries < 0:
            raise ValueError("max_retries cannot be negative")

        if self.retry_delay < 0:
            raise ValueError("retry_delay cannot be negative")

        if self.per_page < 1:
            raise ValueError("per_page must be at least 1")

        if self.request_timeout < 1:
            raise ValueError("request_timeout must be at least 1 second")

        return True


@dataclass
class TelegramConfig:
    """Telegram bot credentials and delivery settings."""

    bot_token: str
    chat_id: str
    max_retries: int = 3
    retry_delay: float = 1.0

    def validate(self) -> bool:
        """Validate Telegram configuration."""
        if not self.bot_token:
            raise ValueError("Telegram bot_token is required")

        if not BOT_TOKEN_PATTERN.match(self.bot_token):
            raise ValueError("Invalid Telegram bot token format")

        if not self.chat_id or not str(self.chat_id).strip():
            raise ValueError("Telegram chat_id is required")

        if self.max_retries < 0:
            raise ValueError("Telegram max_retries cannot be negative")

        if self.retry_delay < 0:
            raise ValueError("Telegram retry_delay cannot be negative")

        return True


@dataclass
class AlertSettings:
    """Alert composition settings."""

    max_products_in_alert: int = 5
    dry_run: bool = False
    send_summary: bool = False

    def validate(self) -> bool:
        if self.max_products_in_alert < 1:
            raise ValueError("max_products_in_alert must be at least 1")
        return True


@dataclass
class SchedulerConfig:
    """Timer loop and HTTP server settings."""

    interval_minutes: float = 30
    categories: List[str] = field(default_factory=list)
    api_url: Optional[str] = None
    host: str = "0.0.0.0"
    port: int = 8080
    environment: str = "development"

    def validate(self) -> bool:
        if self.interval_minutes < 1:
            raise ValueError("interval_minutes must be at least 1")

        if not (0 < self.port < 65536):
            raise ValueError("port must be between 1 and 65535")

        if self.api_url:
            parsed = urlparse(self.api_url)
            if parsed.scheme not in ("http", "https") or not parsed.netloc:
                raise ValueError(f"Invalid api_url: {self.api_url}")

        return True


@dataclass
class LoggingConfig:
    level: str = "INFO"
    log_dir: str = "logs"
    log_to_file: bool = True

    def validate(self) -> bool:
        if self.level.upper() not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Invalid log level: {self.level}")
        return True


@dataclass
class Configuration:
    """Main system configuration."""

    telegram: TelegramConfig
    catalog: CatalogConfig = field(default_factory=CatalogConfig)
    filters: FilterCriteria = field(default_factory=lambda: FilterCriteria(
        min_discount=10,
        max_price=10000,
        min_rating=3.5,
        min_reviews=1,
        in_stock_only=True,
        brands=list(DEFAULT_BRANDS),
        categories=["whey protein"],
    ))
    alerts: AlertSettings = field(default_factory=AlertSettings)
    scheduler: SchedulerConfig = field(default_factory=SchedulerConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def validate(self) -> bool:
        """Validate entire configuration."""
        self.telegram.validate()
        self.catalog.validate()
        self.filters.validate()
        self.alerts.validate()
        self.scheduler.validate()
        self.logging.validate()

        for key in self.scheduler.categories:
            if key not in self.catalog.categories and not key.startswith("SCT-"):
                raise ValueError(f"Unknown scheduler category: {key}")

        return True
