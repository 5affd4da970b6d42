"""
Display rule resolution.

Decides whether a product's variants are listed as one grouped card or as
separate cards. A product's own display_mode wins; otherwise the category
rules table is consulted; anything unknown is shown individually.

The rules table is always passed in. Callers build it with
build_display_rules() from settings and the categories table.
"""

from typing import Iterable, Mapping, Optional, Union

from models.product import DisplayMode, ProductResponse, VariantWithProduct

DisplayRules = Mapping[str, Union[DisplayMode, str]]

DEFAULT_DISPLAY_MODE = DisplayMode.INDIVIDUAL


def recognize(value: object) -> Optional[DisplayMode]:
    """Return the DisplayMode for a recognized value, None otherwise."""
    if isinstance(value, DisplayMode):
        return value
    if isinstance(value, str):
        try:
            return DisplayMode(value)
        except ValueError:
            return None
    return None


def resolve_display_mode(
    display_mode: Optional[str],
    category: Optional[str],
    rules: DisplayRules
) -> DisplayMode:
    """
    Resolve the display mode for one product.

    Args:
        display_mode: The product's stored display_mode (may be None or junk)
        category: The product's category label
        rules: Category label -> display mode fallback table

    Returns:
        GROUPED or INDIVIDUAL, never fails
    """
    explicit = recognize(display_mode)
    if explicit is not None:
        return explicit

    if category:
        fallback = recognize(rules.get(category))
        if fallback is not None:
            return fallback

    return DEFAULT_DISPLAY_MODE


def resolve_product_mode(
    product: Optional[ProductResponse],
    rules: DisplayRules
) -> DisplayMode:
    """Resolve for a product row; a missing product resolves to the default."""
    if product is None:
        return DEFAULT_DISPLAY_MODE
    return resolve_display_mode(product.display_mode, product.category, rules)


def resolve_category_mode(
    category: str,
    variants: Iterable[VariantWithProduct],
    rules: DisplayRules
) -> DisplayMode:
    """
    Resolve the display mode of a whole single-category listing.

    The variants are the batch already filtered to this category. The first
    product in the batch with an explicit display_mode decides; otherwise the
    rules table does.
    """
    for variant in variants:
        if variant.product is None:
            continue
        explicit = recognize(variant.product.display_mode)
        if explicit is not None:
            return explicit

    return resolve_display_mode(None, category, rules)


def build_display_rules(
    defaults: DisplayRules,
    overrides: Optional[DisplayRules] = None
) -> dict[str, DisplayMode]:
    """
    Merge the configured fallback table with per-category overrides.

    Unrecognized values in either table are dropped.
    """
    merged: dict[str, DisplayMode] = {}
    for table in (defaults, overrides or {}):
        for category, value in table.items():
            mode = recognize(value)
            if mode is not None:
                merged[category] = mode
    return merged
