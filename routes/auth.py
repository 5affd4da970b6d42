"""
Authentication routes.
"""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
import structlog

from models.admin import AdminLogin, AdminProfile, AdminSession
from services.auth_service import get_auth_service
from routes.dependencies import get_current_admin
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


@router.post("/login", response_model=AdminSession)
async def login(data: AdminLogin):
    """
    Sign in with email and password.

    Raises:
        401: Wrong credentials
        403: Account is not an admin
    """
    try:
        return get_auth_service().login(data)
    except Exception as e:
        return handle_error(e)


@router.post("/logout")
async def logout(admin: AdminProfile = Depends(get_current_admin)):
    """End the current session."""
    try:
        get_auth_service().logout()
        return {"success": True}
    except Exception as e:
        return handle_error(e)


@router.get("/me", response_model=AdminProfile)
async def me(admin: AdminProfile = Depends(get_current_admin)):
    """Profile of the calling admin."""
    return admin
