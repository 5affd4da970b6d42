"""
Catalog listing service.

Fetches active variants of active products from Supabase and, for the
grouped listing, hands them to the grouping engine together with the
display rules.
"""

from typing import Optional, Union
import structlog

from config import get_supabase_client, settings
from models.catalog import GroupedPage, VariantPage
from models.base import PaginationParams
from models.product import SortBy, VariantWithProduct
from services.catalog_grouping import build_grouped_page, coerce_sort, is_mixed_mode
from services.category_service import get_category_service
from exceptions import DatabaseError, ValidationError

logger = structlog.get_logger(__name__)

CATALOG_SELECT = "*, products!inner(*), images:variant_images(*)"

# Server-side order per sort key: (column, descending)
SERVER_ORDER = {
    SortBy.NAME: ("variant_name", False),
    SortBy.PRICE_LOW: ("price", False),
    SortBy.PRICE_HIGH: ("price", True),
    SortBy.NEWEST: ("created_at", True),
}


class CatalogService:
    """Read-only catalog queries used by the dashboard listings."""

    def __init__(self):
        self.db = get_supabase_client()
        self.table = "variants"

    def get_variants_paginated(
        self,
        page: int = 0,
        size: int = 10,
        category: Optional[str] = None,
        sort_by: Union[SortBy, str, None] = None,
        search: Optional[str] = None,
        featured: bool = False
    ) -> VariantPage:
        """
        One page of variants joined with their product.

        Args:
            page: 0-indexed page
            size: Variants per page
            category: Product category label; None or "all" for every category
            sort_by: name | price-low | price-high | newest
            search: Substring of the variant name
            featured: Only featured products

        Raises:
            ValidationError: page < 0 or size < 1
        """
        if page < 0 or size < 1:
            raise ValidationError(
                "Invalid pagination",
                details={"page": page, "size": size}
            )

        paging = PaginationParams(page=page, page_size=size)
        sort = coerce_sort(sort_by)
        column, descending = SERVER_ORDER[sort]

        logger.info(
            "getting_catalog_variants",
            page=page,
            size=size,
            category=category,
            sort_by=sort.value,
            search=search,
            featured=featured
        )

        try:
            query = (
                self.db.table(self.table)
                .select(CATALOG_SELECT, count="exact")
                .eq("is_active", True)
                .eq("products.is_active", True)
            )

            if not is_mixed_mode(category):
                query = query.eq("products.category", category)
            if search and search.strip():
                query = query.ilike("variant_name", f"%{search.strip()}%")
            if featured:
                query = query.eq("products.is_featured", True)

            result = (
                query.order(column, desc=descending)
                .range(paging.offset, paging.range_end)
                .execute()
            )
        except Exception as e:
            logger.error("get_catalog_variants_failed", error=str(e))
            raise DatabaseError("select", str(e))

        variants = [VariantWithProduct(**row) for row in result.data]
        total = result.count or 0

        logger.info("catalog_variants_retrieved", count=len(variants), total=total)

        return VariantPage(data=variants, total=total, page=page, size=size)

    def get_products_grouped_paginated(
        self,
        page: int = 0,
        size: int = 10,
        category: Optional[str] = None,
        sort_by: Union[SortBy, str, None] = None,
        search: Optional[str] = None,
        featured: bool = False
    ) -> GroupedPage:
        """
        One page of the grouped listing.

        Fetches up to catalog_fetch_limit variants with the same filters,
        then groups, sorts and slices them in memory.
        """
        if page < 0 or size < 1:
            raise ValidationError(
                "Invalid pagination",
                details={"page": page, "size": size}
            )

        fetched = self.get_variants_paginated(
            page=0,
            size=settings.catalog_fetch_limit,
            category=category,
            sort_by=sort_by,
            search=search,
            featured=featured
        )

        if fetched.total > len(fetched.data):
            logger.warning(
                "catalog_fetch_truncated",
                fetched=len(fetched.data),
                total=fetched.total,
                limit=settings.catalog_fetch_limit
            )

        rules = get_category_service().get_display_rules()

        return build_grouped_page(
            fetched.data,
            page=page,
            size=size,
            sort_by=coerce_sort(sort_by),
            category_filter=category,
            rules=rules,
            collapse_individual_variants=settings.catalog_collapse_individual_variants
        )


# Singleton instance for convenience
_catalog_service: Optional[CatalogService] = None


def get_catalog_service() -> CatalogService:
    """Get or create CatalogService instance."""
    global _catalog_service
    if _catalog_service is None:
        _catalog_service = CatalogService()
    return _catalog_service
