"""
Protocol interfaces for the HealthKart Deal Alert system.

This module defines the protocol interfaces that establish system
boundaries and enable dependency injection throughout the application.
"""

from typing import TYPE_CHECKING, Any, Dict, List, Optional, Protocol

from .models.catalog import CatalogPage, RawCatalogItem
from .models.delivery import DeliveryResult
from .models.filter import FilterCriteria
from .models.product import Product

if TYPE_CHECKING:
    from .models.config import Configuration
    from .models.telegram import ConnectionTestResult, TelegramMessage


class ICatalogTransport(Protocol):
    """Protocol for issuing GET requests against the catalog API."""

    async def get_json(self, path: str, params: Dict[str, Any]) -> Any:
        """Fetch ``path`` with query ``params`` and return the decoded body."""
        ...

    async def close(self) -> None:
        ...


class ICatalogClient(Protocol):
    """Protocol for catalog listing clients."""

    async def fetch_category_page(
        self, category_code: str, page_no: int = 1, per_page: Optional[int] = None
    ) -> CatalogPage:
        """Fetch and validate one page of a category listing."""
        ...

    async def fetch_all_category_products(self, category_code: str) -> List[RawCatalogItem]:
        """Fetch every page of a category listing."""
        ...

    async def fetch_filtered_products(
        self, category_code: str, criteria: FilterCriteria
    ) -> List[RawCatalogItem]:
        """Fetch a category listing and apply raw-item filters."""
        ...

    async def close(self) -> None:
        ...


class ITransformService(Protocol):
    """Protocol for converting catalog items into products."""

    def transform(self, item: RawCatalogItem) -> Product:
        """Transform one raw item, raising on invalid data."""
        ...

    def transform_to_products(self, items: List[RawCatalogItem]) -> List[Product]:
        """Transform many raw items, skipping invalid ones."""
        ...


class INotifier(Protocol):
    """Protocol for deal notification delivery."""

    async def send_message(self, message: "TelegramMessage") -> DeliveryResult:
        """Deliver one message."""
        ...

    async def send_deal_alerts(
        self, products: List[Product], chat_id: Optional[str] = None
    ) -> DeliveryResult:
        """Deliver a consolidated alert for the top products."""
        ...

    async def send_monitoring_summary(
        self,
        total_products: int,
        matching_products: int,
        top_deals: List[Product],
        errors: Optional[List[str]] = None,
        chat_id: Optional[str] = None,
    ) -> DeliveryResult:
        """Deliver a summary of a multi-category run."""
        ...

    async def test_connection(self) -> "ConnectionTestResult":
        """Check bot identity and deliver a canary message."""
        ...


class IConfigurationManager(Protocol):
    """Protocol for configuration management."""

    def load_config(self) -> "Configuration":
        """Load configuration from file or environment."""
        ...

    def get_config(self) -> "Configuration":
        """Get current configuration, loading if necessary."""
        ...
