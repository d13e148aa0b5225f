"""
Raw catalog models for the HealthKart best-seller listing API.

These mirror the vendor payload closely; values are kept as received and
only coerced by the transform service.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

# Attribute keys used by the catalog for product specifications.
WEIGHT_KEY = "gen-pro-siz"
SERVING_SIZE_KEY = "gen-pro-sev"
PROTEIN_PER_SERVING_KEY = "sn-pro-sev"
PROTEIN_PERCENTAGE_KEY = "gen-pro-prctn"
SERVINGS_PER_CONTAINER_KEY = "gen-pro-ser-pck"
FLAVOR_KEY = "gen-sn-flv"
FLAVOR_BASE_KEY = "Flavor-base"
PRICE_PER_KG_KEY = "ppk-pro"


@dataclass(frozen=True)
class CatalogAttribute:
    """A single specification value inside an attribute group."""

    name: str
    display_name: str
    value: Any
    unit: Optional[str] = None

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "CatalogAttribute":
        return cls(
            name=str(data.get("nm") or ""),
            display_name=str(data.get("dis_nm") or ""),
            value=data.get("val"),
            unit=data.get("unt"),
        )


@dataclass(frozen=True)
class AttributeGroup:
    """Named group of specification attributes (e.g. "Specifications")."""

    name: str
    display_name: str
    values: List[CatalogAttribute] = field(default_factory=list)

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "AttributeGroup":
        raw_values = data.get("values") or []
        return cls(
            name=str(data.get("nm") or ""),
            display_name=str(data.get("dis_nm") or ""),
            values=[CatalogAttribute.from_api(v) for v in raw_values if isinstance(v, dict)],
        )


@dataclass(frozen=True)
class RawCatalogItem:
    """One product variant as returned by the catalog API."""

    id: Any
    name: Any
    brand: Any
    mrp: Any
    offer_price: Any
    discount: Any
    rating: Any
    review_count: Any
    out_of_stock: bool
    order_enabled: bool
    category: Any
    url_fragment: Any
    groups: List[AttributeGroup] = field(default_factory=list)
    raw: Dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "RawCatalogItem":
        """Build an item from a decoded ``variants`` entry."""
        groups = data.get("grps") or []
        return cls(
            id=data.get("id"),
            name=data.get("nm"),
            brand=data.get("brName"),
            mrp=data.get("mrp"),
            offer_price=data.get("offer_pr"),
            discount=data.get("discount"),
            rating=data.get("rating"),
            review_count=data.get("nrvw"),
            out_of_stock=bool(data.get("oos", False)),
            order_enabled=bool(data.get("ordrEnbld", True)),
            category=data.get("catName"),
            url_fragment=data.get("urlFragment"),
            groups=[AttributeGroup.from_api(g) for g in groups if isinstance(g, dict)],
            raw=data,
        )

    @property
    def in_stock(self) -> bool:
        return not self.out_of_stock and self.order_enabled

    def iter_attributes(self):
        for group in self.groups:
            yield from group.values

    def find_attribute(self, key: str) -> Optional[CatalogAttribute]:
        """Return the first attribute with the given key, if any."""
        for attribute in self.iter_attributes():
            if attribute.name == key:
                return attribute
        return None

    def flavor_values(self) -> List[str]:
        """All flavor-like attribute values on this item."""
        flavors = []
        for attribute in self.iter_attributes():
            if (
                attribute.name in (FLAVOR_KEY, FLAVOR_BASE_KEY)
                or "flavour" in attribute.display_name.lower()
            ):
                if attribute.value is not None:
                    flavors.append(str(attribute.value))
        return flavors


@dataclass(frozen=True)
class CatalogPage:
    """A validated page of the category listing."""

    category_code: str
    page_no: int
    per_page: int
    total_count: int
    items: List[RawCatalogItem]

    @property
    def total_pages(self) -> int:
        if self.per_page <= 0:
            return 1 if self.items else 0
        return -(-self.total_count // self.per_page)
