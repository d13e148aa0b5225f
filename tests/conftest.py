"""
Pytest configuration and shared fixtures.

This module provides builders for catalog payloads and products used
across the HealthKart Deal Alert test suite.
"""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, Mock

import pytest

from hk_deal_alert.models.catalog import RawCatalogItem
from hk_deal_alert.models.config import (
    AlertSettings,
    CatalogConfig,
    Configuration,
    LoggingConfig,
    TelegramConfig,
)
from hk_deal_alert.models.filter import FilterCriteria
from hk_deal_alert.models.product import Product, ProductSpecifications
from hk_deal_alert.utils.error_handling import RetryConfig


def _build_variant(
    item_id=1,
    name="Biozyme Performance Whey",
    brand="MuscleBlaze",
    mrp=4000,
    offer_pr=2400,
    discount=40,
    rating=4.5,
    nrvw=120,
    oos=False,
    ordrEnbld=True,
    catName="Whey Protein",
    urlFragment="/sv/muscleblaze-biozyme-performance-whey/SP-1",
    weight="2 kg",
    flavor="Rich Milk Chocolate",
    protein="25",
    servings="30",
    protein_pct="78",
    price_per_kg="1200",
):
    return {
        "id": item_id,
        "nm": name,
        "brName": brand,
        "mrp": mrp,
        "offer_pr": offer_pr,
        "discount": discount,
        "rating": rating,
        "nrvw": nrvw,
        "oos": oos,
        "ordrEnbld": ordrEnbld,
        "catName": catName,
        "urlFragment": urlFragment,
        "grps": [
            {
                "dis_nm": "Specifications",
                "nm": "specs",
                "values": [
                    {"nm": "gen-pro-siz", "dis_nm": "Weight", "val": weight},
                    {"nm": "gen-sn-flv", "dis_nm": "Flavour", "val": flavor},
                    {"nm": "sn-pro-sev", "dis_nm": "Protein Per Serving", "val": protein, "unt": "g"},
                    {"nm": "gen-pro-ser-pck", "dis_nm": "Servings Per Pack", "val": servings},
                    {"nm": "gen-pro-prctn", "dis_nm": "Protein Percentage", "val": protein_pct},
                    {"nm": "ppk-pro", "dis_nm": "Price Per Kg", "val": price_per_kg},
                ],
            }
        ],
    }


def _build_envelope(variants, total=None, page_no=1, per_page=24, exception=False):
    return {
        "results": {
            "exception": exception,
            "total_variants": len(variants) if total is None else total,
            "perPage": per_page,
            "pageNo": page_no,
            "variants": variants,
        },
        "statusCode": 200,
    }


def _build_product(
    product_id="1",
    name="Biozyme Performance Whey",
    brand="MuscleBlaze",
    original_price=4000.0,
    current_price=2400.0,
    discount_percentage=40.0,
    rating=4.5,
    review_count=120,
    in_stock=True,
    category="Whey Protein",
    protein_per_serving="25g",
    servings_per_container=30,
    flavor="Rich Milk Chocolate",
    weight="2 kg",
    weight_bucket="2.0 kg",
    flavor_base="Chocolate",
):
    return Product(
        id=product_id,
        name=name,
        brand=brand,
        category=category,
        url=f"https://www.healthkart.com/sv/product/SP-{product_id}",
        original_price=original_price,
        current_price=current_price,
        discount_percentage=discount_percentage,
        rating=rating,
        review_count=review_count,
        in_stock=in_stock,
        specifications=ProductSpecifications(
            weight=weight,
            weight_bucket=weight_bucket,
            flavor=flavor,
            flavor_base=flavor_base,
            protein_per_serving=protein_per_serving,
            servings_per_container=servings_per_container,
        ),
        last_updated=datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc),
    )


@pytest.fixture
def variant_factory():
    """Build raw catalog variant dicts as returned by the API."""
    return _build_variant


@pytest.fixture
def raw_item_factory():
    """Build RawCatalogItem instances."""

    def build(**overrides):
        return RawCatalogItem.from_api(_build_variant(**overrides))

    return build


@pytest.fixture
def envelope_factory():
    """Build catalog API response envelopes."""
    return _build_envelope


@pytest.fixture
def product_factory():
    """Build valid Product instances."""
    return _build_product


@pytest.fixture
def sample_product():
    """Create a sample Product for testing."""
    return _build_product()


@pytest.fixture
def fast_retry():
    """Retry configuration without delays."""
    return RetryConfig(max_retries=3, base_delay=0, jitter=0)


@pytest.fixture
def deal_criteria():
    """Criteria matching the end-to-end scenarios."""
    return FilterCriteria(
        min_discount=40,
        max_price=10000,
        min_rating=3.5,
        in_stock_only=True,
        brands=["muscleblaze", "gnc"],
    )


@pytest.fixture
def sample_config():
    """Create a valid Configuration for testing."""
    return Configuration(
        telegram=TelegramConfig(bot_token="123456:ABC-def_ghi", chat_id="-1001234567890"),
        catalog=CatalogConfig(request_delay=0, retry_delay=0),
        alerts=AlertSettings(max_products_in_alert=5),
        logging=LoggingConfig(log_to_file=False),
    )


@pytest.fixture
def mock_bot():
    """Mock python-telegram-bot Bot."""
    bot = AsyncMock()
    bot.send_message.return_value = Mock(message_id=42)
    bot.get_me.return_value = Mock(username="hk_deal_bot", id=123456)
    return bot
