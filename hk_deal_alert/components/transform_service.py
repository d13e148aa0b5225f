"""
Transform service for converting catalog items into products.

This module maps the vendor's nested attribute groups onto flat product
specifications, validates and clamps commercial fields, and derives
normalized weight and flavor classes.
"""

import math
import re
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from ..models.catalog import (
    FLAVOR_KEY,
    PRICE_PER_KG_KEY,
    PROTEIN_PER_SERVING_KEY,
    PROTEIN_PERCENTAGE_KEY,
    SERVING_SIZE_KEY,
    SERVINGS_PER_CONTAINER_KEY,
    WEIGHT_KEY,
    RawCatalogItem,
)
from ..models.config import DEFAULT_BASE_URL
from ..models.product import Product, ProductSpecifications, parse_numeric
from ..utils.error_handling import DealAlertError, parsing_error
from ..utils.logging import get_logger

# Attribute key -> specification field.
ATTRIBUTE_FIELD_MAP: Dict[str, str] = {
    WEIGHT_KEY: "weight",
    SERVING_SIZE_KEY: "serving_size",
    PROTEIN_PER_SERVING_KEY: "protein_per_serving",
    PROTEIN_PERCENTAGE_KEY: "protein_percentage",
    SERVINGS_PER_CONTAINER_KEY: "servings_per_container",
    FLAVOR_KEY: "flavor",
    PRICE_PER_KG_KEY: "price_per_kg",
}

# Display-name fragment -> specification field, for keys not in the map.
DISPLAY_NAME_FALLBACKS: List[Tuple[str, str]] = [
    ("weight", "weight"),
    ("flavour", "flavor"),
]

SPEC_DEFAULTS: Dict[str, Any] = {
    "weight": "Unknown",
    "serving_size": "Unknown",
    "protein_per_serving": "0g",
    "protein_percentage": 0.0,
    "servings_per_container": 0,
    "flavor": "Unknown",
    "price_per_kg": 0.0,
}

_WEIGHT_PATTERN = re.compile(r"(\d+(?:\.\d+)?)\s*(kg|kgs|g|gm|gms|grams?|lb|lbs|pounds?)\b", re.IGNORECASE)
_GRAMS_PER_UNIT = {"kg": 1000.0, "g": 1.0, "lb": 453.592}

# Checked in order; the first keyword found names the flavor class.
FLAVOR_CLASSES: List[Tuple[str, str]] = [
    ("cookie", "Cookies & Cream"),
    ("chocolate", "Chocolate"),
    ("choco", "Chocolate"),
    ("mocha", "Coffee"),
    ("coffee", "Coffee"),
    ("cafe", "Coffee"),
    ("vanilla", "Vanilla"),
    ("strawberr", "Strawberry"),
    ("banana", "Banana"),
    ("mango", "Mango"),
    ("kulfi", "Kulfi"),
    ("unflavo", "Unflavoured"),
    ("natural", "Unflavoured"),
]


def _normalize_unit(unit: str) -> str:
    unit = unit.lower()
    if unit.startswith("k"):
        return "kg"
    if unit.startswith("l") or unit.startswith("p"):
        return "lb"
    return "g"


def weight_bucket(weight: Optional[str]) -> str:
    """
    Normalize free-text weight to a kilogram label, e.g. "2.0 kg".

    "2 kg", "2000g" and "2000 gms" share one bucket. Pounds are
    converted to kilograms. Unparsable text maps to "Unknown".
    """
    if not weight:
        return "Unknown"
    match = _WEIGHT_PATTERN.search(str(weight))
    if not match:
        return "Unknown"
    amount = float(match.group(1))
    grams = amount * _GRAMS_PER_UNIT[_normalize_unit(match.group(2))]
    if grams <= 0:
        return "Unknown"
    return f"{grams / 1000:.1f} kg"


def flavor_base(flavor: Optional[str]) -> str:
    """Classify a flavor description into a base flavor label."""
    if not flavor or flavor == "Unknown":
        return "Unknown"
    lowered = flavor.lower()
    for keyword, label in FLAVOR_CLASSES:
        if keyword in lowered:
            return label
    return "Other"


def _attribute_text(value: Any, unit: Optional[str]) -> str:
    text = str(value).strip()
    if unit and not text.lower().endswith(unit.lower()):
        text = f"{text}{unit}"
    return text


class TransformService:
    """Converts raw catalog items into validated products."""

    def __init__(self, base_url: str = DEFAULT_BASE_URL):
        self.base_url = base_url.rstrip("/")
        self.logger = get_logger("transform.service")

    def transform(self, item: RawCatalogItem) -> Product:
        """
        Transform one raw item into a product.

        Raises:
            DealAlertError: DATA_PARSING, carrying the offending raw record
        """
        try:
            self._validate_raw(item)

            return Product(
                id=str(int(parse_numeric(item.id))),
                name=str(item.name).strip(),
                brand=str(item.brand).strip(),
                category=str(item.category).strip() if item.category else "Unknown",
                url=self._build_url(str(item.url_fragment)),
                original_price=self._validate_price(item.mrp, "mrp"),
                current_price=self._validate_price(item.offer_price, "offer_pr"),
                discount_percentage=self._clamp(item.discount, 0, 100),
                rating=self._clamp(item.rating, 0, 5),
                review_count=self._validate_count(item.review_count),
                in_stock=item.in_stock,
                specifications=self.extract_specifications(item),
                last_updated=datetime.now(),
            )
        except DealAlertError:
            raise
        except (TypeError, ValueError) as e:
            raise parsing_error(
                f"Failed to transform catalog item {item.id}: {e}",
                invalid_data=item.raw,
            ) from e

    def transform_to_products(self, items: List[RawCatalogItem]) -> List[Product]:
        """Transform a batch, skipping items that fail."""
        products: List[Product] = []
        failed_ids: List[Any] = []

        for item in items:
            try:
                products.append(self.transform(item))
            except DealAlertError as e:
                failed_ids.append(item.id)
                self.logger.warning(
                    "Skipping invalid catalog item",
                    extra={"item_id": item.id, "error": e.message},
                )

        if failed_ids:
            self.logger.warning(
                f"Skipped {len(failed_ids)} of {len(items)} catalog items",
                extra={"failed_ids": failed_ids},
            )

        self.logger.info(
            "Transformed catalog items",
            extra=self.get_transformation_stats(len(items), len(products)),
        )
        return products

    @staticmethod
    def get_transformation_stats(input_count: int, output_count: int) -> Dict[str, Any]:
        failed = input_count - output_count
        success_rate = round(output_count / input_count * 100, 2) if input_count else 0.0
        return {
            "total_input": input_count,
            "successful": output_count,
            "failed": failed,
            "success_rate": success_rate,
        }

    def extract_specifications(self, item: RawCatalogItem) -> ProductSpecifications:
        """Map attribute groups onto specification fields via the lookup table."""
        found: Dict[str, Any] = {}

        for attribute in item.iter_attributes():
            if attribute.value is None or str(attribute.value).strip() == "":
                continue

            field_name = ATTRIBUTE_FIELD_MAP.get(attribute.name)
            if field_name is None:
                display = attribute.display_name.lower()
                for fragment, fallback in DISPLAY_NAME_FALLBACKS:
                    if fragment in display:
                        field_name = fallback
                        break
            if field_name is None or field_name in found:
                continue

            found[field_name] = (attribute.value, attribute.unit)

        specs = dict(SPEC_DEFAULTS)
        for field_name, (value, unit) in found.items():
            if field_name in ("weight", "serving_size", "protein_per_serving"):
                specs[field_name] = _attribute_text(value, unit)
            elif field_name == "flavor":
                specs[field_name] = str(value).strip()
            elif field_name == "servings_per_container":
                specs[field_name] = int(parse_numeric(value))
            else:
                specs[field_name] = parse_numeric(value)

        protein_percentage = min(max(specs["protein_percentage"], 0.0), 100.0)
        servings = max(specs["servings_per_container"], 0)
        price_per_kg = max(specs["price_per_kg"], 0.0)

        return ProductSpecifications(
            weight=specs["weight"],
            weight_bucket=weight_bucket(specs["weight"]),
            flavor=specs["flavor"],
            flavor_base=flavor_base(specs["flavor"]),
            serving_size=specs["serving_size"],
            protein_per_serving=specs["protein_per_serving"],
            protein_percentage=protein_percentage,
            servings_per_container=servings,
            price_per_kg=price_per_kg,
        )

    def _validate_raw(self, item: RawCatalogItem) -> None:
        if parse_numeric(item.id) <= 0 or isinstance(item.id, bool):
            raise parsing_error("Invalid product ID", invalid_data=item.raw)

        for label, value in (
            ("name", item.name),
            ("brand", item.brand),
            ("url fragment", item.url_fragment),
        ):
            if not isinstance(value, str) or not value.strip():
                raise parsing_error(
                    f"Missing or invalid product {label}", invalid_data=item.raw
                )

    def _build_url(self, fragment: str) -> str:
        fragment = fragment.strip()
        if fragment.startswith("http://") or fragment.startswith("https://"):
            return fragment
        if not fragment.startswith("/"):
            fragment = f"/{fragment}"
        return f"{self.base_url}{fragment}"

    @staticmethod
    def _validate_price(value: Any, label: str) -> float:
        price = parse_numeric(value) if not isinstance(value, (int, float)) else float(value)
        if math.isnan(price) or price < 0:
            raise ValueError(f"Invalid {label}: {value}")
        return round(price, 2)

    @staticmethod
    def _clamp(value: Any, low: float, high: float) -> float:
        number = parse_numeric(value)
        return min(max(number, low), high)

    @staticmethod
    def _validate_count(value: Any) -> int:
        count = parse_numeric(value)
        if count < 0:
            return 0
        return int(math.floor(count))
