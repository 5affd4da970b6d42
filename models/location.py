"""
Store location schemas.
"""

from pydantic import Field, field_validator
from typing import Optional

from models.base import BaseSchema, TimestampMixin


def _required_text(v: Optional[str], field: str) -> Optional[str]:
    if v is not None and not v.strip():
        raise ValueError(f"{field} is required")
    return v


class StoreLocationCreate(BaseSchema):
    """
    Create a store location.

    Required: name, address, city, phone (non-blank).
    The first location created becomes the default.
    """

    name: str = Field(..., max_length=200)
    address: str = Field(..., max_length=500)
    city: str = Field(..., max_length=100)
    region: Optional[str] = Field(None, max_length=100)
    district: Optional[str] = Field(None, max_length=100)
    postcode: Optional[str] = Field(None, max_length=20)
    phone: str = Field(..., max_length=50)
    email: Optional[str] = Field(None, max_length=200)
    maps_url: Optional[str] = Field(None, max_length=1000)
    is_active: bool = True

    @field_validator("name", "address", "city", "phone")
    @classmethod
    def not_blank(cls, v: str, info) -> str:
        return _required_text(v, info.field_name.capitalize())


class StoreLocationUpdate(BaseSchema):
    """Update a store location. Only provided fields are updated."""

    name: Optional[str] = Field(None, max_length=200)
    address: Optional[str] = Field(None, max_length=500)
    city: Optional[str] = Field(None, max_length=100)
    region: Optional[str] = Field(None, max_length=100)
    district: Optional[str] = Field(None, max_length=100)
    postcode: Optional[str] = Field(None, max_length=20)
    phone: Optional[str] = Field(None, max_length=50)
    email: Optional[str] = Field(None, max_length=200)
    maps_url: Optional[str] = Field(None, max_length=1000)
    is_default: Optional[bool] = None
    is_active: Optional[bool] = None

    @field_validator("name", "address", "city", "phone")
    @classmethod
    def not_blank(cls, v: Optional[str], info) -> Optional[str]:
        return _required_text(v, info.field_name.capitalize())


class StoreLocationResponse(BaseSchema, TimestampMixin):
    """Store location row."""

    id: str
    name: str
    address: str
    city: str
    region: Optional[str] = None
    district: Optional[str] = None
    postcode: Optional[str] = None
    phone: str
    email: Optional[str] = None
    maps_url: Optional[str] = None
    is_default: bool = False
    is_active: bool = True


class StoreLocationActiveUpdate(BaseSchema):
    """Toggle active status."""

    is_active: bool
