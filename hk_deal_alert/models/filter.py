"""
Filter criteria models.
"""

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass(frozen=True)
class AlertCriteria:
    """Thresholds a single product must meet to be alerted on."""

    min_discount: float = 0.0
    max_price: Optional[float] = None
    min_rating: Optional[float] = None
    min_reviews: Optional[int] = None
    preferred_brands: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class FilterCriteria:
    """
    User-defined deal criteria.

    ``brands`` match the catalog brand exactly (case-insensitive) while
    ``categories`` and ``flavors`` match as substrings. ``weight_buckets``
    is accepted and validated but not applied by the filters.
    """

    min_discount: float = 0.0
    max_price: Optional[float] = None
    min_rating: Optional[float] = None
    min_reviews: Optional[int] = None
    in_stock_only: bool = True
    brands: List[str] = field(default_factory=list)
    categories: List[str] = field(default_factory=list)
    flavors: List[str] = field(default_factory=list)
    weight_buckets: List[str] = field(default_factory=list)

    def validate(self) -> bool:
        """Validate filter criteria."""
        if not (0 <= self.min_discount <= 100):
            raise ValueError("min_discount must be between 0 and 100")

        if self.max_price is not None and self.max_price <= 0:
            raise ValueError("max_price must be positive")

        if self.min_rating is not None and not (0 <= self.min_rating <= 5):
            raise ValueError("min_rating must be between 0 and 5")

        if self.min_reviews is not None and self.min_reviews < 0:
            raise ValueError("min_reviews cannot be negative")

        for name, values in (
            ("brands", self.brands),
            ("categories", self.categories),
            ("flavors", self.flavors),
            ("weight_buckets", self.weight_buckets),
        ):
            if any(not isinstance(v, str) or not v.strip() for v in values):
                raise ValueError(f"{name} must contain non-empty strings")

        return True

    def to_alert_criteria(self) -> AlertCriteria:
        return AlertCriteria(
            min_discount=self.min_discount,
            max_price=self.max_price,
            min_rating=self.min_rating,
            min_reviews=self.min_reviews,
            preferred_brands=list(self.brands),
        )
