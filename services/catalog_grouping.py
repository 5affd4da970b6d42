"""
Catalog grouping and ranking.

Turns a flat list of variant rows into one page of listing items. Each
product is shown either as a ProductGroup card (all of its variants, with a
price range) or as one card per variant, depending on its display mode.

Pure and synchronous: the caller fetches the variants, this module only
shapes them.

Steps:
    1. Mode selection: no category (or "all") is a mixed listing where every
       product is resolved on its own; a named category is resolved once.
    2. Single category resolving to individual: pass-through, input order.
    3. Partition: one pass over the input with a set of emitted product ids.
       Grouped products collect every variant with their product id, even
       non-contiguous ones.
    4. Stable sort by the requested key.
    5. Slice [page * size, page * size + size).
"""

from datetime import datetime, timezone
from typing import Optional, Sequence, Union
import structlog

from exceptions import ValidationError
from models.catalog import (
    GroupedPage,
    IndividualItem,
    ListingMode,
    MixedItem,
    PriceRange,
    ProductGroup,
)
from models.product import DisplayMode, ProductResponse, SortBy, VariantWithProduct
from utils.slug import strip_accents
from services.display_rules import (
    DisplayRules,
    resolve_category_mode,
    resolve_product_mode,
)

logger = structlog.get_logger(__name__)

ALL_CATEGORIES = "all"


def is_mixed_mode(category_filter: Optional[str]) -> bool:
    """A listing without a category (or with the "all" sentinel) is mixed."""
    return not category_filter or category_filter == ALL_CATEGORIES


def coerce_sort(sort_by: Union[SortBy, str, None]) -> SortBy:
    """Unknown or missing sort keys sort by name."""
    if isinstance(sort_by, SortBy):
        return sort_by
    try:
        return SortBy(sort_by)
    except ValueError:
        return SortBy.NAME


# ===================
# ITEM BUILDERS
# ===================

def as_individual(
    variant: VariantWithProduct,
    product: Optional[ProductResponse] = None
) -> IndividualItem:
    """Tag a variant row as an individual listing item."""
    fields = dict(variant)
    if fields.get("product") is None and product is not None:
        fields["product"] = product
    return IndividualItem.model_construct(
        _fields_set=set(variant.model_fields_set) | {"is_grouped"},
        **fields
    )


def as_group(
    product: ProductResponse,
    variants: list[VariantWithProduct]
) -> ProductGroup:
    """Build a group card; the first variant in input order is primary."""
    prices = [v.price for v in variants]
    return ProductGroup(
        product=product,
        variants=variants,
        primary_variant=variants[0],
        price_range=PriceRange(min=min(prices), max=max(prices)),
    )


# ===================
# PARTITION
# ===================

def partition_variants(
    variants: Sequence[VariantWithProduct],
    rules: DisplayRules,
    collapse_individual_variants: bool = False
) -> list[MixedItem]:
    """
    Split variants into group cards and individual cards.

    Args:
        variants: Flat variant rows, in fetch order
        rules: Category fallback table
        collapse_individual_variants: Show only the first variant of an
            individual-mode product (legacy listing behavior)

    Returns:
        Items in first-appearance order of their product
    """
    by_product: dict[str, list[VariantWithProduct]] = {}
    products: dict[str, ProductResponse] = {}
    for variant in variants:
        by_product.setdefault(variant.product_id, []).append(variant)
        if variant.product is not None:
            products.setdefault(variant.product_id, variant.product)

    items: list[MixedItem] = []
    emitted: set[str] = set()

    for variant in variants:
        product_id = variant.product_id
        product = products.get(product_id)
        mode = resolve_product_mode(product, rules)

        if mode == DisplayMode.GROUPED:
            if product_id in emitted:
                continue
            items.append(as_group(product, by_product[product_id]))
            emitted.add(product_id)
            continue

        if collapse_individual_variants and product_id in emitted:
            continue

        if product is None:
            # Product filtered out of the batch or missing; show the variant alone
            logger.warning(
                "variant_without_product",
                variant_id=variant.id,
                product_id=product_id
            )

        items.append(as_individual(variant, product))
        emitted.add(product_id)

    return items


# ===================
# SORT
# ===================

def _effective_price(item: MixedItem):
    if isinstance(item, ProductGroup):
        return item.price_range.min
    return item.price


def _created_at(item: MixedItem) -> datetime:
    created = (
        item.primary_variant.created_at
        if isinstance(item, ProductGroup)
        else item.created_at
    )
    if created.tzinfo is None:
        return created.replace(tzinfo=timezone.utc)
    return created


def _display_name(item: MixedItem) -> str:
    if isinstance(item, ProductGroup):
        return item.product.name
    return item.variant_name


def sort_items(items: list[MixedItem], sort_by: SortBy) -> list[MixedItem]:
    """
    Stable sort of listing items; input order breaks ties.

    Groups sort by their lowest price, their primary variant's creation time
    and their product name; individual items by their own fields.
    """
    if sort_by == SortBy.PRICE_LOW:
        return sorted(items, key=_effective_price)
    if sort_by == SortBy.PRICE_HIGH:
        return sorted(items, key=_effective_price, reverse=True)
    if sort_by == SortBy.NEWEST:
        return sorted(items, key=_created_at, reverse=True)
    return sorted(items, key=lambda item: strip_accents(_display_name(item)).casefold())


# ===================
# PAGE
# ===================

def build_grouped_page(
    variants: Sequence[VariantWithProduct],
    page: int = 0,
    size: int = 10,
    sort_by: Union[SortBy, str, None] = SortBy.NAME,
    category_filter: Optional[str] = None,
    rules: Optional[DisplayRules] = None,
    collapse_individual_variants: bool = False
) -> GroupedPage:
    """
    Build one page of a grouped catalog listing.

    Args:
        variants: All matching variant rows (unpaginated)
        page: 0-indexed page number
        size: Items per page
        sort_by: name (default), price-low, price-high or newest
        category_filter: Category label, None or "all" for a mixed listing
        rules: Category fallback table
        collapse_individual_variants: See partition_variants()

    Returns:
        GroupedPage with the page items, pre-slice total and listing mode

    Raises:
        ValidationError: page < 0 or size < 1
    """
    if page < 0:
        raise ValidationError("page must be >= 0", details={"page": page})
    if size < 1:
        raise ValidationError("size must be >= 1", details={"size": size})

    rules = rules or {}
    sort_key = coerce_sort(sort_by)

    if is_mixed_mode(category_filter):
        listing_mode = ListingMode.MIXED
    else:
        category_mode = resolve_category_mode(category_filter, variants, rules)
        listing_mode = ListingMode(category_mode.value)

    if listing_mode == ListingMode.INDIVIDUAL:
        items: list[MixedItem] = [as_individual(v) for v in variants]
    else:
        items = sort_items(
            partition_variants(variants, rules, collapse_individual_variants),
            sort_key
        )

    start = page * size
    page_items = items[start:start + size]

    logger.debug(
        "grouped_page_built",
        variants=len(variants),
        items=len(items),
        page=page,
        size=size,
        display_mode=listing_mode.value
    )

    return GroupedPage(
        items=page_items,
        total=len(items),
        page=page,
        size=size,
        display_mode=listing_mode,
    )
