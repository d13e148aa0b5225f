"""Filter engine for applying deal criteria to catalog items and products."""

from collections import Counter
from typing import Any, Callable, Dict, Iterable, List, Optional

from ..models.catalog import RawCatalogItem
from ..models.filter import FilterCriteria
from ..models.product import Product, parse_numeric, sort_by_discount
from ..utils.logging import get_logger

logger = get_logger("filter.engine")

PREMIUM_BRANDS = ["optimum nutrition", "dymatize", "muscletech", "bsn", "isopure"]

HOT_DEAL_THRESHOLD = 50
GOOD_DEAL_THRESHOLD = 40


def _matches_brand(brand: Optional[str], brands: Iterable[str]) -> bool:
    """Exact, case-insensitive brand comparison."""
    if not brand:
        return False
    normalized = brand.strip().lower()
    return any(normalized == b.strip().lower() for b in brands)


def _contains_any(value: Optional[str], needles: Iterable[str]) -> bool:
    if not value:
        return False
    haystack = value.lower()
    return any(needle.lower() in haystack for needle in needles)


class RawItemFilter:
    """Applies criteria to raw catalog items before transformation."""

    def __init__(self, criteria: FilterCriteria):
        self.criteria = criteria

    def matches(self, item: RawCatalogItem) -> bool:
        """True when every active predicate passes."""
        criteria = self.criteria

        if parse_numeric(item.discount) < criteria.min_discount:
            return False

        if criteria.max_price is not None and parse_numeric(item.offer_price) > criteria.max_price:
            return False

        if criteria.min_rating is not None and parse_numeric(item.rating) < criteria.min_rating:
            return False

        if criteria.in_stock_only and item.out_of_stock:
            return False

        if criteria.min_reviews is not None and parse_numeric(item.review_count) < criteria.min_reviews:
            return False

        if criteria.brands and not _matches_brand(
            str(item.brand) if item.brand else None, criteria.brands
        ):
            return False

        if criteria.categories and not _contains_any(
            str(item.category) if item.category else None, criteria.categories
        ):
            return False

        if criteria.flavors and not any(
            _contains_any(flavor, criteria.flavors) for flavor in item.flavor_values()
        ):
            return False

        return True


def filter_raw_items(items: List[RawCatalogItem], criteria: FilterCriteria) -> List[RawCatalogItem]:
    """Return the raw items matching ``criteria``, preserving order."""
    item_filter = RawItemFilter(criteria)
    matched = [item for item in items if item_filter.matches(item)]
    logger.info(f"Raw item filter kept {len(matched)} of {len(items)} items")
    return matched


class FilterEngine:
    """Main filter engine that applies all criteria to normalized products."""

    def __init__(self, criteria: FilterCriteria):
        """Initialize filter engine with user criteria."""
        self.criteria = criteria
        self.alert_criteria = criteria.to_alert_criteria()
        logger.info(
            "FilterEngine initialized",
            extra={
                "min_discount": criteria.min_discount,
                "max_price": criteria.max_price,
                "min_rating": criteria.min_rating,
            },
        )

    def matches(self, product: Product) -> bool:
        """
        Check a single product against the criteria.

        Thresholds and stock go through ``Product.meets_alert_criteria``, so
        an out-of-stock product never matches even when ``in_stock_only`` is
        off. Brand, category and flavor rules are applied on top.
        """
        criteria = self.criteria

        if not product.meets_alert_criteria(self.alert_criteria):
            return False

        if criteria.brands and not _matches_brand(product.brand, criteria.brands):
            return False

        if criteria.categories and not _contains_any(product.category, criteria.categories):
            return False

        if criteria.flavors and not _contains_any(product.specifications.flavor, criteria.flavors):
            return False

        return True

    def filter_products(self, products: List[Product]) -> List[Product]:
        """Return qualifying products; does not mutate its input."""
        qualifying = [product for product in products if self.matches(product)]
        logger.debug(
            "Filtered products",
            extra={"input": len(products), "qualifying": len(qualifying)},
        )
        return qualifying

    @staticmethod
    def get_top_deals(products: List[Product], limit: int = 10) -> List[Product]:
        """Sort by discount, then rating, both descending."""
        ordered = sorted(
            products,
            key=lambda p: (p.discount_percentage, p.rating),
            reverse=True,
        )
        return ordered[:limit]

    @staticmethod
    def analyze_deals(products: List[Product], limit: int = 5) -> Dict[str, Any]:
        """Group products into hot, good, premium and value deals."""
        hot = [p for p in products if p.discount_percentage >= HOT_DEAL_THRESHOLD]
        good = [
            p
            for p in products
            if GOOD_DEAL_THRESHOLD <= p.discount_percentage < HOT_DEAL_THRESHOLD
        ]
        premium = [p for p in products if _contains_any(p.brand, PREMIUM_BRANDS)]

        priced = [p for p in products if p.get_price_per_gram_protein() > 0]
        value = sorted(priced, key=lambda p: p.get_price_per_gram_protein())

        return {
            "hot_deals": sort_by_discount(hot, limit),
            "good_deals": sort_by_discount(good, limit),
            "premium_deals": sort_by_discount(premium, limit),
            "value_deals": value[:limit],
            "total_analyzed": len(products),
        }

    @staticmethod
    def analyze_product_distribution(products: List[Product]) -> Dict[str, List[Dict[str, Any]]]:
        """
        Count products per flavor, weight bucket and flavor base.

        Each entry carries the label, the product count and the average
        discount rounded to two decimals. Entries are ordered by count,
        most common first.
        """
        return {
            "flavor_distribution": _distribution(
                products, "flavor", lambda p: p.specifications.flavor
            ),
            "weight_distribution": _distribution(
                products,
                "weight",
                lambda p: _known(p.specifications.weight_bucket) or p.specifications.weight,
            ),
            "flavor_base_distribution": _distribution(
                products, "flavor_base", lambda p: p.specifications.flavor_base
            ),
        }

    @staticmethod
    def get_monitoring_stats(total_products: int, matching: List[Product]) -> Dict[str, Any]:
        """Summary statistics for the products that matched in one run."""
        match_rate = len(matching) / total_products * 100 if total_products > 0 else 0.0
        discounts = [p.discount_percentage for p in matching]
        ratings = [p.rating for p in matching]
        brand_counts = Counter(p.brand for p in matching)

        return {
            "total_products": total_products,
            "matching_products": len(matching),
            "match_rate": round(match_rate, 2),
            "avg_discount": round(sum(discounts) / len(discounts), 2) if discounts else 0.0,
            "max_discount": max(discounts) if discounts else 0.0,
            "avg_rating": round(sum(ratings) / len(ratings), 2) if ratings else 0.0,
            "top_brands": [
                {"brand": brand, "count": count}
                for brand, count in brand_counts.most_common(5)
            ],
        }


def _known(label: Optional[str]) -> Optional[str]:
    return label if label and label != "Unknown" else None


def _distribution(
    products: List[Product], label_key: str, label_of: Callable[[Product], Optional[str]]
) -> List[Dict[str, Any]]:
    counts: Counter = Counter()
    discount_totals: Dict[str, float] = {}
    for product in products:
        label = label_of(product) or "Unknown"
        counts[label] += 1
        discount_totals[label] = discount_totals.get(label, 0.0) + product.discount_percentage

    return [
        {
            label_key: label,
            "count": count,
            "avg_discount": round(discount_totals[label] / count, 2),
        }
        for label, count in counts.most_common()
    ]
