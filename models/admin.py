"""
Administrator and session schemas.
"""

from pydantic import Field
from typing import Optional
from enum import Enum
from datetime import datetime

from models.base import BaseSchema, TimestampMixin


class AdminRole(str, Enum):
    """Administrator roles."""
    ADMIN = "admin"
    SUPER_ADMIN = "super_admin"


class AdminLogin(BaseSchema):
    """Email/password sign-in."""

    email: str = Field(..., min_length=3, max_length=254)
    password: str = Field(..., min_length=1)


class AdminRegister(BaseSchema):
    """Register a new administrator (super admins only)."""

    email: str = Field(..., min_length=3, max_length=254, pattern=r"^[^@\s]+@[^@\s]+$")
    password: str = Field(..., min_length=6)
    name: str = Field(..., min_length=1, max_length=200)
    role: AdminRole = AdminRole.ADMIN


class AdminProfile(BaseSchema, TimestampMixin):
    """Row of the admins table; id equals the auth user id."""

    id: str
    name: str
    email: str
    role: AdminRole = AdminRole.ADMIN
    last_login: Optional[datetime] = None

    @property
    def is_super_admin(self) -> bool:
        return self.role == AdminRole.SUPER_ADMIN


class AdminSession(BaseSchema):
    """Tokens issued at login."""

    access_token: str
    refresh_token: Optional[str] = None
    expires_at: Optional[int] = None
    admin: AdminProfile


class AdminDeleteResult(BaseSchema):
    """Outcome of removing an admin."""

    success: bool = True
    warning: Optional[str] = None


class AdminListResponse(BaseSchema):
    """List of administrators, newest first."""

    data: list[AdminProfile]
    total: int
