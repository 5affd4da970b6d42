"""
Unit tests for the catalog grouping engine.

Run: pytest tests/unit/test_catalog_grouping.py -v
"""

import pytest
from decimal import Decimal
from unittest.mock import patch

from services.catalog_grouping import (
    build_grouped_page,
    coerce_sort,
    is_mixed_mode,
    partition_variants,
)
from services.display_rules import build_display_rules
from models.catalog import IndividualItem, ListingMode, ProductGroup
from models.product import SortBy, VariantWithProduct
from exceptions import ValidationError

from tests.factories import ProductFactory, VariantFactory

RULES = build_display_rules({
    "Tas": "grouped",
    "Boneka": "individual",
    "Gelang": "grouped",
    "Gantungan": "individual",
})


def make_variant(product: dict = None, **kwargs) -> VariantWithProduct:
    return VariantWithProduct(**VariantFactory.create(product=product, **kwargs))


def variant_ids(items) -> list[str]:
    ids = []
    for item in items:
        if isinstance(item, ProductGroup):
            ids.extend(v.id for v in item.variants)
        else:
            ids.append(item.id)
    return ids


@pytest.fixture
def mixed_batch() -> list[VariantWithProduct]:
    """Two grouped products, two individual products, interleaved."""
    tas = ProductFactory.create(id="p-tas", name="Tas Kanvas", category="Tas")
    gelang = ProductFactory.create(id="p-gelang", name="Gelang Manik", category="Gelang")
    boneka = ProductFactory.create(id="p-boneka", name="Boneka Kelinci", category="Boneka")
    kunci = ProductFactory.create(id="p-kunci", name="Gantungan Kunci", category="Gantungan")
    return [
        make_variant(tas, id="v1", variant_name="Tas Merah", price=120),
        make_variant(boneka, id="v2", variant_name="Kelinci S", price=50),
        make_variant(gelang, id="v3", variant_name="Gelang Biru", price=30),
        make_variant(tas, id="v4", variant_name="Tas Hitam", price=90),
        make_variant(boneka, id="v5", variant_name="Kelinci L", price=75),
        make_variant(kunci, id="v6", variant_name="Kunci Bintang", price=15),
        make_variant(gelang, id="v7", variant_name="Gelang Hijau", price=45),
    ]


class TestModeSelection:
    """Tests for is_mixed_mode() and coerce_sort()"""

    @pytest.mark.parametrize("category", [None, "", "all"])
    def test_missing_or_all_category_is_mixed(self, category):
        assert is_mixed_mode(category) is True

    def test_named_category_is_not_mixed(self):
        assert is_mixed_mode("Tas") is False

    def test_unknown_sort_falls_back_to_name(self):
        assert coerce_sort("cheapest") == SortBy.NAME
        assert coerce_sort(None) == SortBy.NAME
        assert coerce_sort("price-high") == SortBy.PRICE_HIGH


class TestBuildGroupedPageScenarios:
    """Concrete listing scenarios"""

    def test_mixed_price_low_puts_cheap_individual_before_group(self):
        """A(grouped) at 100/150 and B(individual) at 80, sorted by lowest price."""
        # Arrange
        product_a = ProductFactory.create(id="A", name="Product A", display_mode="grouped")
        product_b = ProductFactory.create(id="B", name="Product B", display_mode="individual")
        variants = [
            make_variant(product_a, id="V1", price=100),
            make_variant(product_a, id="V2", price=150),
            make_variant(product_b, id="V3", price=80),
        ]

        # Act
        page = build_grouped_page(
            variants, page=0, size=10, sort_by="price-low", category_filter="all", rules=RULES
        )

        # Assert
        assert page.total == 2
        assert page.display_mode == ListingMode.MIXED
        first, second = page.items
        assert isinstance(first, IndividualItem)
        assert first.id == "V3"
        assert first.is_grouped is False
        assert isinstance(second, ProductGroup)
        assert second.is_grouped is True
        assert second.product.id == "A"
        assert second.price_range.min == Decimal("100")
        assert second.price_range.max == Decimal("150")
        assert [v.id for v in second.variants] == ["V1", "V2"]
        assert second.primary_variant.id == "V1"

    def test_individual_category_pages_through_variants(self):
        """25 variants in a table-individual category, third page of 10."""
        # Arrange
        boneka = ProductFactory.create(category="Boneka")
        variants = [make_variant(boneka, id=f"v{i:02d}") for i in range(25)]

        # Act
        page = build_grouped_page(
            variants, page=2, size=10, category_filter="Boneka", rules=RULES
        )

        # Assert
        assert len(page.items) == 5
        assert page.total == 25
        assert page.display_mode == ListingMode.INDIVIDUAL
        assert [item.id for item in page.items] == [f"v{i:02d}" for i in range(20, 25)]

    def test_individual_category_keeps_input_order(self):
        """Single-category individual listings are not re-sorted."""
        # Arrange
        boneka = ProductFactory.create(category="Boneka")
        variants = [
            make_variant(boneka, id="z", variant_name="Zebra", price=10),
            make_variant(boneka, id="a", variant_name="Anjing", price=99),
        ]

        # Act
        page = build_grouped_page(
            variants, sort_by="name", category_filter="Boneka", rules=RULES
        )

        # Assert
        assert [item.id for item in page.items] == ["z", "a"]
        assert all(isinstance(item, IndividualItem) for item in page.items)

    def test_grouped_category_from_rules(self):
        # Arrange
        tas = ProductFactory.create(id="tas", category="Tas")
        variants = [make_variant(tas, price=50), make_variant(tas, price=70)]

        # Act
        page = build_grouped_page(variants, category_filter="Tas", rules=RULES)

        # Assert
        assert page.display_mode == ListingMode.GROUPED
        assert page.total == 1
        assert isinstance(page.items[0], ProductGroup)

    def test_explicit_product_mode_overrides_category_rule(self):
        """A product marked grouped wins over the category's individual rule."""
        # Arrange
        boneka = ProductFactory.create(id="b", category="Boneka", display_mode="grouped")
        variants = [make_variant(boneka), make_variant(boneka)]

        # Act
        page = build_grouped_page(variants, category_filter="Boneka", rules=RULES)

        # Assert
        assert page.display_mode == ListingMode.GROUPED
        assert page.total == 1

    def test_unknown_category_defaults_to_individual(self):
        # Arrange
        product = ProductFactory.create(category="Sepatu")
        variants = [make_variant(product), make_variant(product)]

        # Act
        page = build_grouped_page(variants, category_filter="Sepatu", rules=RULES)

        # Assert
        assert page.display_mode == ListingMode.INDIVIDUAL
        assert page.total == 2

    def test_non_contiguous_variants_join_their_group(self, mixed_batch):
        # Act
        page = build_grouped_page(mixed_batch, rules=RULES)

        # Assert
        groups = {item.product.id: item for item in page.items if isinstance(item, ProductGroup)}
        assert [v.id for v in groups["p-tas"].variants] == ["v1", "v4"]
        assert [v.id for v in groups["p-gelang"].variants] == ["v3", "v7"]

    def test_past_the_end_page_is_empty(self, mixed_batch):
        # Act
        page = build_grouped_page(mixed_batch, page=5, size=10, rules=RULES)

        # Assert
        assert page.items == []
        assert page.total == 5


class TestBuildGroupedPageProperties:
    """Properties that hold for any input"""

    def test_idempotent(self, mixed_batch):
        # Act
        first = build_grouped_page(mixed_batch, page=0, size=3, sort_by="price-high", rules=RULES)
        second = build_grouped_page(mixed_batch, page=0, size=3, sort_by="price-high", rules=RULES)

        # Assert
        assert first.model_dump() == second.model_dump()

    def test_every_variant_appears_exactly_once(self, mixed_batch):
        # Act
        page = build_grouped_page(mixed_batch, size=100, rules=RULES)

        # Assert
        ids = variant_ids(page.items)
        assert sorted(ids) == sorted(v.id for v in mixed_batch)
        assert len(ids) == len(set(ids))

    def test_price_range_is_ordered(self, mixed_batch):
        # Act
        page = build_grouped_page(mixed_batch, size=100, rules=RULES)

        # Assert
        for item in page.items:
            if isinstance(item, ProductGroup):
                prices = [v.price for v in item.variants]
                assert item.price_range.min == min(prices)
                assert item.price_range.max == max(prices)
                assert item.price_range.min <= item.price_range.max

    @pytest.mark.parametrize("page_number", [0, 1, 2, 3])
    def test_page_size_and_total_are_bounded(self, mixed_batch, page_number):
        # Act
        page = build_grouped_page(mixed_batch, page=page_number, size=2, rules=RULES)

        # Assert
        assert len(page.items) <= 2
        assert page.total == 5

    @pytest.mark.parametrize("category,expected", [
        (None, ListingMode.MIXED),
        ("all", ListingMode.MIXED),
        ("Tas", ListingMode.GROUPED),
        ("Boneka", ListingMode.INDIVIDUAL),
    ])
    def test_empty_input(self, category, expected):
        # Act
        page = build_grouped_page([], category_filter=category, rules=RULES)

        # Assert
        assert page.items == []
        assert page.total == 0
        assert page.display_mode == expected

    def test_price_low_is_non_decreasing(self, mixed_batch):
        # Act
        page = build_grouped_page(mixed_batch, size=100, sort_by="price-low", rules=RULES)

        # Assert
        prices = [
            item.price_range.min if isinstance(item, ProductGroup) else item.price
            for item in page.items
        ]
        assert prices == sorted(prices)

    def test_price_high_is_non_increasing(self, mixed_batch):
        # Act
        page = build_grouped_page(mixed_batch, size=100, sort_by="price-high", rules=RULES)

        # Assert
        prices = [
            item.price_range.min if isinstance(item, ProductGroup) else item.price
            for item in page.items
        ]
        assert prices == sorted(prices, reverse=True)


class TestSorting:
    """Tests for name and newest ordering"""

    def test_name_sort_ignores_case(self):
        # Arrange
        product = ProductFactory.create(category="Boneka")
        variants = [
            make_variant(product, id="c", variant_name="cangkir"),
            make_variant(product, id="b", variant_name="Bola"),
            make_variant(product, id="a", variant_name="apel"),
        ]

        # Act
        page = build_grouped_page(variants, sort_by="name", rules=RULES)

        # Assert
        assert [item.id for item in page.items] == ["a", "b", "c"]

    def test_name_sort_ignores_accents(self):
        # Arrange
        product = ProductFactory.create(category="Boneka")
        variants = [
            make_variant(product, id="z", variant_name="Zebra"),
            make_variant(product, id="e", variant_name="Éclair"),
            make_variant(product, id="a", variant_name="apel"),
        ]

        # Act
        page = build_grouped_page(variants, sort_by="name", rules=RULES)

        # Assert
        assert [item.id for item in page.items] == ["a", "e", "z"]

    def test_groups_sort_by_product_name(self):
        # Arrange
        tas = ProductFactory.create(id="tas", name="Tas", category="Tas")
        boneka = ProductFactory.create(name="Boneka", category="Boneka")
        variants = [
            make_variant(tas, variant_name="Aaa"),
            make_variant(boneka, id="boneka-v", variant_name="Zzz"),
        ]

        # Act
        page = build_grouped_page(variants, sort_by="name", rules=RULES)

        # Assert
        assert isinstance(page.items[0], ProductGroup)
        assert page.items[1].id == "boneka-v"

    def test_newest_first(self):
        # Arrange
        product = ProductFactory.create(category="Boneka")
        variants = [
            make_variant(product, id="old", created_at="2025-01-01T00:00:00+00:00"),
            make_variant(product, id="new", created_at="2025-03-01T00:00:00+00:00"),
            make_variant(product, id="naive", created_at="2025-02-01T00:00:00"),
        ]

        # Act
        page = build_grouped_page(variants, sort_by="newest", rules=RULES)

        # Assert
        assert [item.id for item in page.items] == ["new", "naive", "old"]

    def test_ties_keep_input_order(self):
        # Arrange
        product = ProductFactory.create(category="Boneka")
        variants = [
            make_variant(product, id="first", price=10),
            make_variant(product, id="second", price=10),
        ]

        # Act
        page = build_grouped_page(variants, sort_by="price-low", rules=RULES)

        # Assert
        assert [item.id for item in page.items] == ["first", "second"]


class TestPartitionVariants:
    """Tests for partition_variants() edge cases"""

    def test_individual_product_emits_every_variant(self):
        # Arrange
        boneka = ProductFactory.create(category="Boneka")
        variants = [make_variant(boneka, id=f"v{i}") for i in range(3)]

        # Act
        items = partition_variants(variants, RULES)

        # Assert
        assert [item.id for item in items] == ["v0", "v1", "v2"]

    def test_collapse_shows_first_variant_of_individual_product(self):
        # Arrange
        boneka = ProductFactory.create(category="Boneka")
        variants = [make_variant(boneka, id=f"v{i}") for i in range(3)]

        # Act
        items = partition_variants(variants, RULES, collapse_individual_variants=True)

        # Assert
        assert [item.id for item in items] == ["v0"]

    def test_collapse_setting_reaches_page_builder(self):
        # Arrange
        boneka = ProductFactory.create(category="Boneka")
        variants = [make_variant(boneka) for _ in range(3)]

        # Act
        page = build_grouped_page(variants, rules=RULES, collapse_individual_variants=True)

        # Assert
        assert page.total == 1

    def test_variant_without_product_becomes_individual_item(self):
        """Regression: a variant whose product is missing from the batch."""
        # Arrange
        orphan = make_variant(id="orphan", product_id="gone", embed_product=False)
        tas = ProductFactory.create(category="Tas")
        variants = [orphan, make_variant(tas), make_variant(tas)]

        # Act
        with patch("services.catalog_grouping.logger") as mock_logger:
            items = partition_variants(variants, RULES)

        # Assert
        assert isinstance(items[0], IndividualItem)
        assert items[0].id == "orphan"
        assert items[0].product is None
        assert isinstance(items[1], ProductGroup)
        mock_logger.warning.assert_called_once()

    def test_product_found_on_a_later_variant_is_shared(self):
        """Product embedded on only one of its variants still groups them all."""
        # Arrange
        tas = ProductFactory.create(id="tas", category="Tas")
        variants = [
            make_variant(product_id="tas", embed_product=False, id="a"),
            make_variant(tas, id="b"),
        ]

        # Act
        items = partition_variants(variants, RULES)

        # Assert
        assert len(items) == 1
        assert [v.id for v in items[0].variants] == ["a", "b"]


class TestValidation:
    """Tests for page/size preconditions"""

    def test_negative_page_raises(self):
        with pytest.raises(ValidationError):
            build_grouped_page([], page=-1, size=10)

    def test_zero_size_raises(self):
        with pytest.raises(ValidationError):
            build_grouped_page([], page=0, size=0)

    def test_no_rules_defaults_to_individual(self):
        # Arrange
        tas = ProductFactory.create(category="Tas")
        variants = [make_variant(tas), make_variant(tas)]

        # Act
        page = build_grouped_page(variants, category_filter="Tas")

        # Assert
        assert page.display_mode == ListingMode.INDIVIDUAL
        assert page.total == 2
