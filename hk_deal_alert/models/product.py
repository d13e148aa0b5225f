"""
Product data models for the HealthKart Deal Alert system.
"""

import dataclasses
import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Any, Dict, Optional

if TYPE_CHECKING:
    from .filter import AlertCriteria

_NON_NUMERIC = re.compile(r"[^\d.]")


def parse_numeric(value: Any) -> float:
    """
    Coerce a number or a string with units ("24g", "₹1,299") to float.

    Unparsable values coerce to 0.
    """
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, (int, float)):
        return 0.0 if value != value else float(value)  # NaN
    if value is None:
        return 0.0
    cleaned = _NON_NUMERIC.sub("", str(value))
    try:
        return float(cleaned)
    except ValueError:
        return 0.0


@dataclass(frozen=True)
class ProductSpecifications:
    """Flattened specification fields extracted from attribute groups."""

    weight: str = "Unknown"
    weight_bucket: str = "Unknown"
    flavor: str = "Unknown"
    flavor_base: str = "Unknown"
    serving_size: str = "Unknown"
    protein_per_serving: str = "0g"
    protein_percentage: float = 0.0
    servings_per_container: int = 0
    price_per_kg: float = 0.0

    def validate(self) -> bool:
        """Validate specification data."""
        if not (0 <= self.protein_percentage <= 100):
            raise ValueError("protein_percentage must be between 0 and 100")

        if self.servings_per_container < 0:
            raise ValueError("servings_per_container cannot be negative")

        if self.price_per_kg < 0:
            raise ValueError("price_per_kg cannot be negative")

        return True


@dataclass(frozen=True)
class Product:
    """Normalized, validated product. Immutable once constructed."""

    id: str
    name: str
    brand: str
    category: str
    url: str
    original_price: float
    current_price: float
    discount_percentage: float
    rating: float
    review_count: int
    in_stock: bool
    specifications: ProductSpecifications = field(default_factory=ProductSpecifications)
    last_updated: datetime = field(default_factory=datetime.now)

    def __post_init__(self):
        self.validate()

    def validate(self) -> bool:
        """Validate the product data."""
        if not self.id or not str(self.id).strip():
            raise ValueError("Product ID cannot be empty")

        if not self.name or not self.name.strip():
            raise ValueError("Product name cannot be empty")

        if not self.brand or not self.brand.strip():
            raise ValueError("Product brand cannot be empty")

        if self.original_price < 0:
            raise ValueError("Original price cannot be negative")

        if self.current_price < 0:
            raise ValueError("Current price cannot be negative")

        if not (0 <= self.discount_percentage <= 100):
            raise ValueError("Discount percentage must be between 0 and 100")

        if not (0 <= self.rating <= 5):
            raise ValueError("Rating must be between 0 and 5")

        if self.review_count < 0:
            raise ValueError("Review count cannot be negative")

        self.specifications.validate()
        return True

    def get_savings_amount(self) -> float:
        return self.original_price - self.current_price

    def get_calculated_discount_percentage(self) -> float:
        """Discount implied by the two prices, which may differ from the listed one."""
        if self.original_price <= 0:
            return 0.0
        return round(self.get_savings_amount() / self.original_price * 100, 2)

    def has_significant_discount(self, threshold: float = 10) -> bool:
        return self.discount_percentage >= threshold

    def has_good_rating(self, threshold: float = 4.0) -> bool:
        return self.rating >= threshold

    def has_sufficient_reviews(self, threshold: int = 10) -> bool:
        return self.review_count >= threshold

    def get_price_per_gram_protein(self) -> float:
        """Current price divided by total protein grams; 0 when unknown."""
        protein_grams = parse_numeric(self.specifications.protein_per_serving)
        servings = self.specifications.servings_per_container
        total_protein = protein_grams * servings
        if total_protein <= 0:
            return 0.0
        return self.current_price / total_protein

    def meets_alert_criteria(self, criteria: "AlertCriteria") -> bool:
        """
        Check the product against alert thresholds.

        Out-of-stock products never qualify. Brand matching is a
        case-insensitive substring match against the preferred brands.
        """
        if not self.in_stock:
            return False

        if self.discount_percentage < criteria.min_discount:
            return False

        if criteria.max_price is not None and self.current_price > criteria.max_price:
            return False

        if criteria.min_rating is not None and self.rating < criteria.min_rating:
            return False

        if criteria.min_reviews is not None and self.review_count < criteria.min_reviews:
            return False

        if criteria.preferred_brands:
            brand = self.brand.lower()
            if not any(preferred.lower() in brand for preferred in criteria.preferred_brands):
                return False

        return True

    def update_pricing(self, new_price: float, new_discount: float) -> "Product":
        """Return a copy with new pricing; the receiver is left unchanged."""
        return dataclasses.replace(
            self,
            current_price=new_price,
            discount_percentage=new_discount,
            last_updated=datetime.now(),
        )

    def get_display_name(self) -> str:
        return f"{self.brand} {self.name}"

    def get_short_description(self) -> str:
        specs = self.specifications
        parts = [self.get_display_name()]
        if specs.weight != "Unknown":
            parts.append(specs.weight)
        if specs.flavor != "Unknown":
            parts.append(specs.flavor)
        return " - ".join(parts)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to a JSON-friendly dictionary."""
        data = dataclasses.asdict(self)
        data["last_updated"] = self.last_updated.isoformat()
        return data


def sort_by_discount(products, limit: Optional[int] = None):
    """Sort products by descending discount, optionally truncated."""
    ordered = sorted(products, key=lambda p: p.discount_percentage, reverse=True)
    return ordered if limit is None else ordered[:limit]
