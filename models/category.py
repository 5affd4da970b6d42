"""
Category schemas.
"""

from pydantic import Field
from typing import Optional

from models.base import BaseSchema, TimestampMixin
from models.product import DisplayMode


class CategoryCreate(BaseSchema):
    """Create a new category."""

    name: str = Field(..., min_length=1, max_length=100)
    default_display_mode: DisplayMode = DisplayMode.INDIVIDUAL


class CategoryUpdate(BaseSchema):
    """Update a category. Only provided fields are updated."""

    name: Optional[str] = Field(None, min_length=1, max_length=100)
    default_display_mode: Optional[DisplayMode] = None


class CategoryResponse(BaseSchema, TimestampMixin):
    """Category row."""

    id: str
    name: str
    default_display_mode: DisplayMode = DisplayMode.INDIVIDUAL


class CategoryWithCount(CategoryResponse):
    """Category with the number of products assigned to it."""

    product_count: int = 0


class CategoryListResponse(BaseSchema):
    """List of categories."""

    data: list[CategoryWithCount]
    total: int
