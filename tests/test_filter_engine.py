"""
Unit tests for the filter engine.
"""

import pytest

from hk_deal_alert.components.filter_engine import FilterEngine, RawItemFilter, filter_raw_items
from hk_deal_alert.models.filter import FilterCriteria


class TestRawItemFilter:
    """Test cases for raw catalog item filtering."""

    def test_all_predicates_pass(self, raw_item_factory, deal_criteria):
        assert RawItemFilter(deal_criteria).matches(raw_item_factory()) is True

    @pytest.mark.parametrize(
        "overrides",
        [
            {"discount": 39},
            {"offer_pr": 10001},
            {"rating": 3.4},
            {"oos": True},
            {"brand": "Optimum Nutrition"},
        ],
    )
    def test_single_failing_predicate_rejects(self, raw_item_factory, deal_criteria, overrides):
        assert RawItemFilter(deal_criteria).matches(raw_item_factory(**overrides)) is False

    def test_brand_match_is_exact_not_substring(self, raw_item_factory):
        """Brands compare case-insensitively but never as substrings."""
        item_filter = RawItemFilter(FilterCriteria(brands=["on"]))

        assert item_filter.matches(raw_item_factory(brand="ON")) is True
        assert item_filter.matches(raw_item_factory(brand="Optimum Nutrition (ON)")) is False
        assert item_filter.matches(raw_item_factory(brand="Bon Appetit")) is False

    def test_category_match_is_substring(self, raw_item_factory):
        item_filter = RawItemFilter(FilterCriteria(categories=["whey"]))

        assert item_filter.matches(raw_item_factory(catName="Whey Protein Isolate")) is True
        assert item_filter.matches(raw_item_factory(catName="Creatine")) is False
        assert item_filter.matches(raw_item_factory(catName=None)) is False

    def test_flavor_searched_across_attribute_groups(self, raw_item_factory):
        item_filter = RawItemFilter(FilterCriteria(flavors=["chocolate"]))

        assert item_filter.matches(raw_item_factory(flavor="Double Rich Chocolate")) is True
        assert item_filter.matches(raw_item_factory(flavor="Vanilla")) is False

    def test_in_stock_only_disabled_keeps_out_of_stock(self, raw_item_factory):
        item_filter = RawItemFilter(FilterCriteria(in_stock_only=False))
        assert item_filter.matches(raw_item_factory(oos=True)) is True

    def test_unset_optional_thresholds_are_ignored(self, raw_item_factory):
        item_filter = RawItemFilter(FilterCriteria())
        assert item_filter.matches(raw_item_factory(rating=0, nrvw=0, offer_pr=99999)) is True

    def test_weight_buckets_are_not_applied(self, raw_item_factory):
        item_filter = RawItemFilter(FilterCriteria(weight_buckets=["5.0 kg"]))
        assert item_filter.matches(raw_item_factory(weight="1 kg")) is True

    def test_filter_raw_items_preserves_order(self, raw_item_factory, deal_criteria):
        items = [
            raw_item_factory(item_id=1, brand="GNC"),
            raw_item_factory(item_id=2, discount=10),
            raw_item_factory(item_id=3),
        ]

        assert [i.id for i in filter_raw_items(items, deal_criteria)] == [1, 3]


class TestFilterEngine:
    """Test cases for product filtering and analysis."""

    def setup_method(self):
        """Set up test fixtures."""
        self.criteria = FilterCriteria(
            min_discount=40, max_price=10000, min_rating=3.5, min_reviews=5, brands=["muscleblaze", "gnc"]
        )
        self.engine = FilterEngine(self.criteria)

    def test_filter_products(self, product_factory):
        products = [
            product_factory(product_id="1"),
            product_factory(product_id="2", discount_percentage=20.0),
            product_factory(product_id="3", brand="GNC"),
            product_factory(product_id="4", in_stock=False),
            product_factory(product_id="5", review_count=2),
            product_factory(product_id="6", brand="Dymatize"),
        ]

        assert [p.id for p in self.engine.filter_products(products)] == ["1", "3"]

    def test_filtering_is_idempotent(self, product_factory):
        """Filtering twice yields identical output and leaves input untouched."""
        products = [
            product_factory(product_id=str(i), discount_percentage=float(30 + i * 5))
            for i in range(6)
        ]
        snapshot = list(products)

        first = self.engine.filter_products(products)
        second = self.engine.filter_products(products)

        assert first == second
        assert products == snapshot

    def test_get_top_deals_orders_by_discount_then_rating(self, product_factory):
        products = [
            product_factory(product_id="a", discount_percentage=40.0, rating=4.9),
            product_factory(product_id="b", discount_percentage=55.0, rating=3.0),
            product_factory(product_id="c", discount_percentage=40.0, rating=4.0),
        ]

        top = FilterEngine.get_top_deals(products, limit=2)

        assert [p.id for p in top] == ["b", "a"]

    def test_analyze_deals(self, product_factory):
        products = [
            product_factory(product_id="hot", discount_percentage=60.0, current_price=1600.0),
            product_factory(product_id="good", discount_percentage=45.0, current_price=2200.0),
            product_factory(product_id="premium", brand="Optimum Nutrition", discount_percentage=20.0, current_price=3200.0),
            product_factory(product_id="noprotein", protein_per_serving="0g", discount_percentage=10.0, current_price=3600.0),
        ]

        analysis = FilterEngine.analyze_deals(products)

        assert [p.id for p in analysis["hot_deals"]] == ["hot"]
        assert [p.id for p in analysis["good_deals"]] == ["good"]
        assert [p.id for p in analysis["premium_deals"]] == ["premium"]
        assert [p.id for p in analysis["value_deals"]] == ["hot", "good", "premium"]
        assert analysis["total_analyzed"] == 4

    def test_out_of_stock_never_matches_without_stock_filter(self, product_factory):
        """Stock is enforced even when in_stock_only is switched off."""
        engine = FilterEngine(FilterCriteria(min_discount=40, in_stock_only=False))
        products = [
            product_factory(product_id="oos", in_stock=False, discount_percentage=60.0),
            product_factory(product_id="ok", discount_percentage=60.0),
        ]

        assert engine.matches(products[0]) is False
        assert [p.id for p in engine.filter_products(products)] == ["ok"]

    def test_analyze_product_distribution(self, product_factory):
        products = [
            product_factory(product_id="a", discount_percentage=40.0),
            product_factory(product_id="b", discount_percentage=50.0, weight_bucket="1.0 kg"),
            product_factory(
                product_id="c",
                discount_percentage=45.0,
                flavor="Vanilla",
                flavor_base="Vanilla",
                weight="500 g",
                weight_bucket="Unknown",
            ),
        ]

        distribution = FilterEngine.analyze_product_distribution(products)

        assert distribution["flavor_distribution"] == [
            {"flavor": "Rich Milk Chocolate", "count": 2, "avg_discount": 45.0},
            {"flavor": "Vanilla", "count": 1, "avg_discount": 45.0},
        ]
        assert distribution["weight_distribution"] == [
            {"weight": "2.0 kg", "count": 1, "avg_discount": 40.0},
            {"weight": "1.0 kg", "count": 1, "avg_discount": 50.0},
            {"weight": "500 g", "count": 1, "avg_discount": 45.0},
        ]
        assert distribution["flavor_base_distribution"] == [
            {"flavor_base": "Chocolate", "count": 2, "avg_discount": 45.0},
            {"flavor_base": "Vanilla", "count": 1, "avg_discount": 45.0},
        ]

    def test_analyze_product_distribution_empty(self):
        distribution = FilterEngine.analyze_product_distribution([])

        assert distribution == {
            "flavor_distribution": [],
            "weight_distribution": [],
            "flavor_base_distribution": [],
        }

    def test_get_monitoring_stats(self, product_factory):
        matching = [
            product_factory(product_id="1", discount_percentage=40.0, rating=4.5),
            product_factory(product_id="2", discount_percentage=50.0, rating=4.0),
            product_factory(product_id="3", brand="GNC", discount_percentage=60.0, rating=3.5),
        ]

        stats = FilterEngine.get_monitoring_stats(12, matching)

        assert stats["total_products"] == 12
        assert stats["matching_products"] == 3
        assert stats["match_rate"] == 25.0
        assert stats["avg_discount"] == 50.0
        assert stats["max_discount"] == 60.0
        assert stats["avg_rating"] == 4.0
        assert stats["top_brands"] == [
            {"brand": "MuscleBlaze", "count": 2},
            {"brand": "GNC", "count": 1},
        ]

    def test_get_monitoring_stats_limits_brands(self, product_factory):
        matching = [product_factory(product_id=str(i), brand=f"Brand {i}") for i in range(7)]

        stats = FilterEngine.get_monitoring_stats(7, matching)

        assert len(stats["top_brands"]) == 5
        assert stats["match_rate"] == 100.0

    def test_get_monitoring_stats_without_products(self):
        stats = FilterEngine.get_monitoring_stats(0, [])

        assert stats["match_rate"] == 0.0
        assert stats["avg_discount"] == 0.0
        assert stats["max_discount"] == 0.0
        assert stats["avg_rating"] == 0.0
        assert stats["top_brands"] == []
