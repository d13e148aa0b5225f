"""
Unit tests for the transform service.
"""

import pytest

from hk_deal_alert.components.transform_service import (
    TransformService,
    flavor_base,
    weight_bucket,
)
from hk_deal_alert.models.catalog import RawCatalogItem
from hk_deal_alert.utils.error_handling import DealAlertError, ErrorKind


class TestTransform:
    """Test cases for TransformService.transform."""

    def setup_method(self):
        """Set up test fixtures."""
        self.service = TransformService()

    def test_transform_valid_item(self, raw_item_factory):
        """A well-formed item maps onto every product field."""
        product = self.service.transform(raw_item_factory(item_id=42))

        assert product.id == "42"
        assert product.name == "Biozyme Performance Whey"
        assert product.brand == "MuscleBlaze"
        assert product.category == "Whey Protein"
        assert product.url == "https://www.healthkart.com/sv/muscleblaze-biozyme-performance-whey/SP-1"
        assert product.original_price == 4000.0
        assert product.current_price == 2400.0
        assert product.discount_percentage == 40.0
        assert product.rating == 4.5
        assert product.review_count == 120
        assert product.in_stock is True

    def test_specifications_extracted(self, raw_item_factory):
        """Attribute groups map onto specification fields."""
        specs = self.service.transform(raw_item_factory()).specifications

        assert specs.weight == "2 kg"
        assert specs.weight_bucket == "2.0 kg"
        assert specs.flavor == "Rich Milk Chocolate"
        assert specs.flavor_base == "Chocolate"
        assert specs.protein_per_serving == "25g"
        assert specs.servings_per_container == 30
        assert specs.protein_percentage == 78.0
        assert specs.price_per_kg == 1200.0

    @pytest.mark.parametrize(
        "discount, rating, expected_discount, expected_rating",
        [
            (150, 7, 100.0, 5.0),
            (-20, -1, 0.0, 0.0),
            ("35%", "4.2", 35.0, 4.2),
            (None, None, 0.0, 0.0),
            (float("nan"), float("nan"), 0.0, 0.0),
        ],
    )
    def test_discount_and_rating_are_clamped(
        self, raw_item_factory, discount, rating, expected_discount, expected_rating
    ):
        """Out-of-range values are clamped instead of rejected."""
        product = self.service.transform(raw_item_factory(discount=discount, rating=rating))

        assert product.discount_percentage == expected_discount
        assert product.rating == expected_rating

    def test_prices_are_rounded(self, raw_item_factory):
        product = self.service.transform(raw_item_factory(mrp=3999.999, offer_pr="₹2,399.50"))

        assert product.original_price == 4000.0
        assert product.current_price == 2399.5

    def test_negative_review_count_floors_at_zero(self, raw_item_factory):
        product = self.service.transform(raw_item_factory(nrvw=-5))
        assert product.review_count == 0

    def test_fractional_review_count_is_floored(self, raw_item_factory):
        product = self.service.transform(raw_item_factory(nrvw=12.8))
        assert product.review_count == 12

    def test_out_of_stock_item(self, raw_item_factory):
        assert self.service.transform(raw_item_factory(oos=True)).in_stock is False

    @pytest.mark.parametrize(
        "overrides",
        [
            {"item_id": 0},
            {"item_id": -3},
            {"item_id": None},
            {"name": ""},
            {"brand": "   "},
            {"urlFragment": ""},
            {"mrp": -100},
        ],
    )
    def test_invalid_items_raise_parsing_error(self, raw_item_factory, overrides):
        """Invalid items raise DATA_PARSING errors holding the raw record."""
        item = raw_item_factory(**overrides)

        with pytest.raises(DealAlertError) as exc_info:
            self.service.transform(item)

        assert exc_info.value.kind == ErrorKind.DATA_PARSING
        assert exc_info.value.details["invalid_data"] is item.raw

    def test_missing_attributes_use_defaults(self, variant_factory):
        data = variant_factory()
        data["grps"] = []
        specs = self.service.transform(RawCatalogItem.from_api(data)).specifications

        assert specs.weight == "Unknown"
        assert specs.weight_bucket == "Unknown"
        assert specs.flavor == "Unknown"
        assert specs.flavor_base == "Unknown"
        assert specs.protein_per_serving == "0g"
        assert specs.servings_per_container == 0
        assert specs.price_per_kg == 0.0

    def test_display_name_fallback(self, variant_factory):
        """Unknown keys fall back to display names containing weight or flavour."""
        data = variant_factory()
        data["grps"] = [
            {
                "dis_nm": "Details",
                "nm": "details",
                "values": [
                    {"nm": "x-size", "dis_nm": "Net Weight", "val": "1", "unt": "kg"},
                    {"nm": "x-taste", "dis_nm": "Flavour", "val": "Cafe Mocha"},
                    {"nm": "x-colour", "dis_nm": "Colour", "val": "Blue"},
                ],
            }
        ]
        specs = self.service.transform(RawCatalogItem.from_api(data)).specifications

        assert specs.weight == "1kg"
        assert specs.weight_bucket == "1.0 kg"
        assert specs.flavor == "Cafe Mocha"
        assert specs.flavor_base == "Coffee"

    def test_protein_percentage_is_clamped(self, raw_item_factory):
        specs = self.service.transform(raw_item_factory(protein_pct="180")).specifications
        assert specs.protein_percentage == 100.0

    def test_custom_base_url(self, raw_item_factory):
        service = TransformService(base_url="https://example.test/")
        product = service.transform(raw_item_factory(urlFragment="sv/item"))
        assert product.url == "https://example.test/sv/item"


class TestTransformToProducts:
    """Test cases for batch transformation."""

    def test_skips_invalid_items(self, raw_item_factory):
        """Invalid items are skipped without aborting the batch."""
        service = TransformService()
        items = [
            raw_item_factory(item_id=1),
            raw_item_factory(item_id=0),
            raw_item_factory(item_id=3, brand=""),
            raw_item_factory(item_id=4),
        ]

        products = service.transform_to_products(items)

        assert [p.id for p in products] == ["1", "4"]

    def test_transformation_stats(self):
        stats = TransformService.get_transformation_stats(10, 8)

        assert stats == {"total_input": 10, "successful": 8, "failed": 2, "success_rate": 80.0}
        assert TransformService.get_transformation_stats(0, 0)["success_rate"] == 0.0


class TestNormalizedLabels:
    """Test cases for weight buckets and flavor bases."""

    @pytest.mark.parametrize("text", ["2 kg", "2kg", "2000g", "2000 g", "2000 gms", "2.0 KG"])
    def test_same_weight_same_bucket(self, text):
        assert weight_bucket(text) == "2.0 kg"

    def test_pounds_convert_to_kilograms(self):
        assert weight_bucket("4.4 lbs") == "2.0 kg"
        assert weight_bucket("5 lb") == "2.3 kg"

    @pytest.mark.parametrize("text", [None, "", "Unknown", "one scoop"])
    def test_unknown_weight(self, text):
        assert weight_bucket(text) == "Unknown"

    @pytest.mark.parametrize(
        "flavor, expected",
        [
            ("Double Rich Chocolate", "Chocolate"),
            ("Cookies & Cream", "Cookies & Cream"),
            ("French Vanilla Creme", "Vanilla"),
            ("Cafe Mocha", "Coffee"),
            ("Unflavoured", "Unflavoured"),
            ("Blueberry Cheesecake", "Other"),
            ("Unknown", "Unknown"),
        ],
    )
    def test_flavor_base(self, flavor, expected):
        assert flavor_base(flavor) == expected
