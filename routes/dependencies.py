"""
Shared FastAPI dependencies: bearer token auth and capability checks.

Usage:
    @router.get("")
    async def list_orders(admin: AdminProfile = Depends(require(Capability.MANAGE_ORDERS))):
        ...
"""

from typing import Callable, Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from models.admin import AdminProfile
from services.access_control import Capability, require_capability
from services.auth_service import get_auth_service
from exceptions import AuthenticationError

bearer_scheme = HTTPBearer(auto_error=False)


def get_access_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme)
) -> str:
    """Token from "Authorization: Bearer <token>"."""
    if credentials is None or not credentials.credentials:
        raise AuthenticationError()
    return credentials.credentials


def get_current_admin(token: str = Depends(get_access_token)) -> AdminProfile:
    return get_auth_service().get_current_admin(token)


def require(capability: Capability) -> Callable[..., AdminProfile]:
    """Dependency resolving the calling admin and checking one capability."""

    def dependency(admin: AdminProfile = Depends(get_current_admin)) -> AdminProfile:
        return require_capability(admin, capability)

    dependency.__name__ = f"require_{capability.value}"
    return dependency
