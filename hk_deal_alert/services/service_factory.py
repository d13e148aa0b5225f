"""
Service factory wiring configured components together.

Retry behaviour is composed at construction time: the catalog client
receives a ``RetryingCatalogTransport`` wrapping the aiohttp transport,
and the notifier receives its own ``RetryConfig``.
"""

from typing import Optional

from ..components.alert_formatter import AlertFormatter
from ..components.catalog_client import (
    AiohttpCatalogTransport,
    CatalogClient,
    RetryingCatalogTransport,
)
from ..components.telegram_notifier import TelegramNotifier
from ..components.transform_service import TransformService
from ..models.config import Configuration
from ..utils.error_handling import RetryConfig
from ..utils.rate_limiter import RequestRateLimiter
from .alert_service import AlertService


class ServiceFactory:
    """Builds the alert pipeline from a validated configuration."""

    def __init__(self, config: Configuration, rate_limiter: Optional[RequestRateLimiter] = None):
        """
        Initialize factory.

        Args:
            config: Validated configuration
            rate_limiter: Limiter shared by every catalog client this factory
                creates; one is created from ``catalog.request_delay`` if omitted
        """
        self.config = config
        self.rate_limiter = rate_limiter or RequestRateLimiter(config.catalog.request_delay)

    def create_catalog_client(self) -> CatalogClient:
        catalog = self.config.catalog
        transport = RetryingCatalogTransport(
            AiohttpCatalogTransport(base_url=catalog.base_url, timeout=catalog.request_timeout),
            retry_config=RetryConfig(
                max_retries=catalog.max_retries,
                base_delay=catalog.retry_delay,
            ),
            timeout=catalog.request_timeout,
        )
        return CatalogClient(transport, rate_limiter=self.rate_limiter, per_page=catalog.per_page)

    def create_transform_service(self) -> TransformService:
        return TransformService(base_url=self.config.catalog.base_url)

    def create_formatter(self) -> AlertFormatter:
        return AlertFormatter(max_products=self.config.alerts.max_products_in_alert)

    def create_notifier(self) -> TelegramNotifier:
        telegram = self.config.telegram
        return TelegramNotifier.from_token(
            telegram.bot_token,
            telegram.chat_id,
            formatter=self.create_formatter(),
            retry_config=RetryConfig(
                max_retries=telegram.max_retries,
                base_delay=telegram.retry_delay,
            ),
        )

    def create_alert_service(self) -> AlertService:
        return AlertService(
            catalog_client=self.create_catalog_client(),
            transform_service=self.create_transform_service(),
            notifier=self.create_notifier(),
            criteria=self.config.filters,
            default_category=self.config.catalog.category_code,
            max_products_in_alert=self.config.alerts.max_products_in_alert,
            dry_run=self.config.alerts.dry_run,
            send_summary=self.config.alerts.send_summary,
        )
