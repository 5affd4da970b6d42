"""
Administrator management routes.
"""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
import structlog

from models.admin import (
    AdminDeleteResult,
    AdminListResponse,
    AdminProfile,
    AdminRegister,
)
from services.access_control import Capability
from services.admin_service import get_admin_service
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


@router.get("", response_model=AdminListResponse)
async def list_admins(admin: AdminProfile = Depends(require(Capability.VIEW_ADMINS))):
    """All admins, newest first."""
    try:
        admins = get_admin_service().get_all(admin)
        return AdminListResponse(data=admins, total=len(admins))
    except Exception as e:
        return handle_error(e)


@router.post("", response_model=AdminProfile, status_code=201)
async def register_admin(
    data: AdminRegister,
    admin: AdminProfile = Depends(require(Capability.MANAGE_ADMINS))
):
    """
    Create an admin account. Super admins only.

    Raises:
        409: Email already registered
    """
    try:
        return get_admin_service().register(admin, data)
    except Exception as e:
        return handle_error(e)


@router.delete("/{admin_id}", response_model=AdminDeleteResult)
async def delete_admin(
    admin_id: str,
    admin: AdminProfile = Depends(require(Capability.MANAGE_ADMINS))
):
    """
    Remove an admin account. Super admins only.

    Raises:
        409: Last super admin
        422: Deleting yourself
    """
    try:
        return get_admin_service().delete(admin, admin_id)
    except Exception as e:
        return handle_error(e)
