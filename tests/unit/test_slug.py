"""
Unit tests for slug helpers.

Run: pytest tests/unit/test_slug.py -v
"""

import pytest

from utils.slug import slug_from_variant, slugify, strip_accents, unique_slug


class TestSlugify:
    """Tests for slugify()"""

    @pytest.mark.parametrize("text,expected", [
        ("Tas Kulit Coklat", "tas-kulit-coklat"),
        ("Café  Crème_Large", "cafe-creme-large"),
        ("  --Boneka!! Kelinci--  ", "boneka-kelinci"),
        ("Gelang (Biru) 2cm", "gelang-biru-2cm"),
        ("a---b", "a-b"),
    ])
    def test_slugify(self, text, expected):
        assert slugify(text) == expected

    @pytest.mark.parametrize("text", [None, "", "!!!", "   "])
    def test_nothing_usable_gives_empty_slug(self, text):
        assert slugify(text) == ""

    def test_strip_accents(self):
        assert strip_accents("crème brûlée") == "creme brulee"


class TestSlugFromVariant:
    """Tests for slug_from_variant()"""

    def test_name_color_and_size(self):
        assert slug_from_variant("Tas Ransel", "Hitam", "L") == "tas-ransel-hitam-l"

    def test_missing_parts_are_skipped(self):
        assert slug_from_variant("Tas Ransel", None, "L") == "tas-ransel-l"
        assert slug_from_variant("Tas Ransel") == "tas-ransel"


class TestUniqueSlug:
    """Tests for unique_slug()"""

    def test_free_slug_is_kept(self):
        assert unique_slug("tas", lambda slug: False) == "tas"

    def test_counter_appended_until_free(self):
        # Arrange
        taken = {"tas", "tas-1", "tas-2"}

        # Act
        slug = unique_slug("tas", taken.__contains__)

        # Assert
        assert slug == "tas-3"
