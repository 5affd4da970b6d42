"""
Category API routes.
"""

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from typing import Union
import structlog

from models.admin import AdminProfile
from models.category import (
    CategoryCreate,
    CategoryResponse,
    CategoryUpdate,
    CategoryWithCount,
)
from services.access_control import Capability
from services.category_service import get_category_service
from routes.dependencies import require
from exceptions import AppError

logger = structlog.get_logger(__name__)

router = APIRouter()

manage_settings = require(Capability.MANAGE_SETTINGS)


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


@router.get("", response_model=Union[list[CategoryWithCount], list[CategoryResponse]])
async def list_categories(
    with_counts: bool = Query(False, description="Include product counts"),
    admin: AdminProfile = Depends(manage_settings)
):
    """All categories by name."""
    try:
        service = get_category_service()
        if with_counts:
            return service.get_with_counts()
        return service.get_all()
    except Exception as e:
        return handle_error(e)


@router.get("/{category_id}", response_model=CategoryResponse)
async def get_category(category_id: str, admin: AdminProfile = Depends(manage_settings)):
    try:
        return get_category_service().get_by_id(category_id)
    except Exception as e:
        return handle_error(e)


@router.post("", response_model=CategoryResponse, status_code=201)
async def create_category(data: CategoryCreate, admin: AdminProfile = Depends(manage_settings)):
    """
    Raises:
        409: Name already exists
    """
    try:
        return get_category_service().create(data)
    except Exception as e:
        return handle_error(e)


@router.patch("/{category_id}", response_model=CategoryResponse)
async def update_category(
    category_id: str,
    data: CategoryUpdate,
    admin: AdminProfile = Depends(manage_settings)
):
    try:
        return get_category_service().update(category_id, data)
    except Exception as e:
        return handle_error(e)


@router.delete("/{category_id}", status_code=204)
async def delete_category(category_id: str, admin: AdminProfile = Depends(manage_settings)):
    """
    Raises:
        409: Products still use this category
    """
    try:
        get_category_service().delete(category_id)
        return None
    except Exception as e:
        return handle_error(e)
