"""
Alert execution result models.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from .product import Product


@dataclass(frozen=True)
class ProductSummary:
    """Compact product description returned to API callers."""

    name: str
    brand: str
    current_price: float
    original_price: float
    discount_percentage: float
    rating: float
    url: str

    @classmethod
    def from_product(cls, product: Product) -> "ProductSummary":
        return cls(
            name=product.name,
            brand=product.brand,
            current_price=product.current_price,
            original_price=product.original_price,
            discount_percentage=product.discount_percentage,
            rating=product.rating,
            url=product.url,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "brand": self.brand,
            "currentPrice": self.current_price,
            "originalPrice": self.original_price,
            "discountPercentage": self.discount_percentage,
            "rating": self.rating,
            "url": self.url,
        }


@dataclass
class AlertExecutionResult:
    """Outcome of one fetch → filter → notify run."""

    category_code: str
    total_products_fetched: int
    qualifying_deals: int
    telegram_sent: bool
    deals: List[ProductSummary] = field(default_factory=list)
    request_id: Optional[str] = None
    execution_time_ms: int = 0
    timestamp: datetime = field(default_factory=datetime.now)

    def validate(self) -> bool:
        """Validate result data."""
        if self.total_products_fetched < 0:
            raise ValueError("total_products_fetched cannot be negative")

        if not (0 <= self.qualifying_deals <= max(self.total_products_fetched, 0)):
            raise ValueError("qualifying_deals must be between 0 and total_products_fetched")

        if self.telegram_sent and self.qualifying_deals == 0:
            raise ValueError("telegram_sent cannot be true without qualifying deals")

        return True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalProductsFetched": self.total_products_fetched,
            "qualifyingDeals": self.qualifying_deals,
            "telegramSent": self.telegram_sent,
            "deals": [deal.to_dict() for deal in self.deals],
        }


@dataclass
class MonitoringResult:
    """Aggregate of a multi-category run."""

    results: List[AlertExecutionResult] = field(default_factory=list)
    errors: List[Dict[str, str]] = field(default_factory=list)
    execution_time_ms: int = 0
    statistics: Dict[str, Any] = field(default_factory=dict)
    distribution: Dict[str, List[Dict[str, Any]]] = field(default_factory=dict)
    summary_sent: bool = False

    @property
    def total_products(self) -> int:
        return sum(r.total_products_fetched for r in self.results)

    @property
    def matching_products(self) -> int:
        return sum(r.qualifying_deals for r in self.results)

    @property
    def successful_categories(self) -> int:
        return len(self.results)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalProducts": self.total_products,
            "matchingProducts": self.matching_products,
            "categories": {r.category_code: r.to_dict() for r in self.results},
            "errors": list(self.errors),
            "executionTimeMs": self.execution_time_ms,
            "statistics": dict(self.statistics),
            "distribution": dict(self.distribution),
            "summarySent": self.summary_sent,
        }
