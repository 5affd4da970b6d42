"""
Store location API routes.
"""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
import structlog

from models.admin import AdminProfile
from models.location import (
    StoreLocationActiveUpdate,
    StoreLocationCreate,
    StoreLocationResponse,
    StoreLocationUpdate,
)
from services.access_control import Capability
from services.location_service import get_location_service
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


@router.get("", response_model=list[StoreLocationResponse])
async def list_locations(admin: AdminProfile = Depends(manage_settings)):
    """Default location first, then newest."""
    try:
        return get_location_service().get_all()
    except Exception as e:
        return handle_error(e)


@router.get("/default", response_model=StoreLocationResponse)
async def get_default_location(admin: AdminProfile = Depends(manage_settings)):
    try:
        return get_location_service().get_default()
    except Exception as e:
        return handle_error(e)


@router.get("/{location_id}", response_model=StoreLocationResponse)
async def get_location(location_id: str, admin: AdminProfile = Depends(manage_settings)):
    try:
        return get_location_service().get_by_id(location_id)
    except Exception as e:
        return handle_error(e)


@router.post("", response_model=StoreLocationResponse, status_code=201)
async def create_location(
    data: StoreLocationCreate,
    admin: AdminProfile = Depends(manage_settings)
):
    """The first location created becomes the default."""
    try:
        return get_location_service().create(data)
    except Exception as e:
        return handle_error(e)


@router.patch("/{location_id}", response_model=StoreLocationResponse)
async def update_location(
    location_id: str,
    data: StoreLocationUpdate,
    admin: AdminProfile = Depends(manage_settings)
):
    try:
        return get_location_service().update(location_id, data)
    except Exception as e:
        return handle_error(e)


@router.post("/{location_id}/default", response_model=StoreLocationResponse)
async def set_default_location(location_id: str, admin: AdminProfile = Depends(manage_settings)):
    try:
        return get_location_service().set_default(location_id)
    except Exception as e:
        return handle_error(e)


@router.patch("/{location_id}/active", response_model=StoreLocationResponse)
async def set_location_active(
    location_id: str,
    data: StoreLocationActiveUpdate,
    admin: AdminProfile = Depends(manage_settings)
):
    """
    Raises:
        409: Deactivating the default location
    """
    try:
        return get_location_service().set_active(location_id, data.is_active)
    except Exception as e:
        return handle_error(e)


@router.delete("/{location_id}", status_code=204)
async def delete_location(location_id: str, admin: AdminProfile = Depends(manage_settings)):
    """
    Raises:
        409: Last or default location
    """
    try:
        get_location_service().delete(location_id)
        return None
    except Exception as e:
        return handle_error(e)
