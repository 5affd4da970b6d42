"""
Catalog listing routes.

/variants is a flat page of variants; /grouped is the storefront-style
listing where grouped products collapse into one card.
"""

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from typing import Optional
import structlog

from models.admin import AdminProfile
from models.catalog import GroupedPage, VariantPage
from models.product import SortBy
from services.access_control import Capability
from services.catalog_service import get_catalog_service
from routes.dependencies import require
from exceptions import AppError

logger = structlog.get_logger(__name__)

router = APIRouter()


def handle_error(e: Exception) -> JSONResponse:
    """Convert exception to JSON response."""
    if isinstance(e, AppError):
        return JSONResponse(
            status_code=e.status_code,
            content=e.to_dict()
        )
    logger.error("unexpected_error", error=str(e), type=type(e).__name__)
    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "INTERNAL_ERROR",
                "message": "An unexpected error occurred"
            }
        }
    )


@router.get("/variants", response_model=VariantPage)
async def list_variants(
    page: int = Query(0, ge=0, description="Page number (0-indexed)"),
    size: int = Query(10, ge=1, le=100, description="Items per page"),
    category: Optional[str] = Query(None, description="Category label or 'all'"),
    sort_by: SortBy = Query(SortBy.NAME, description="Sort order"),
    search: Optional[str] = Query(None, description="Variant name contains"),
    featured: bool = Query(False, description="Only featured products"),
    admin: AdminProfile = Depends(require(Capability.VIEW_DASHBOARD))
):
    """Paginated variants joined with their product."""
    try:
        return get_catalog_service().get_variants_paginated(
            page=page,
            size=size,
            category=category,
            sort_by=sort_by,
            search=search,
            featured=featured
        )
    except Exception as e:
        return handle_error(e)


@router.get("/grouped", response_model=GroupedPage)
async def list_grouped(
    page: int = Query(0, ge=0, description="Page number (0-indexed)"),
    size: int = Query(10, ge=1, le=100, description="Items per page"),
    category: Optional[str] = Query(None, description="Category label or 'all'"),
    sort_by: SortBy = Query(SortBy.NAME, description="Sort order"),
    search: Optional[str] = Query(None, description="Variant name contains"),
    featured: bool = Query(False, description="Only featured products"),
    admin: AdminProfile = Depends(require(Capability.VIEW_DASHBOARD))
):
    """
    Grouped listing.

    display_mode in the response is "mixed" across all categories, else the
    resolved mode of the requested category.
    """
    try:
        return get_catalog_service().get_products_grouped_paginated(
            page=page,
            size=size,
            category=category,
            sort_by=sort_by,
            search=search,
            featured=featured
        )
    except Exception as e:
        return handle_error(e)
