"""
Product, variant and variant image schemas.

Row shapes follow the Supabase tables: products, variants, variant_images.
"""

from pydantic import ConfigDict, Field, field_validator
from typing import Optional
from enum import Enum
from datetime import datetime
from decimal import Decimal

from models.base import BaseSchema, TimestampMixin


class DisplayMode(str, Enum):
    """How a product's variants are shown in listings."""
    GROUPED = "grouped"
    INDIVIDUAL = "individual"


class SortBy(str, Enum):
    """Listing sort keys."""
    NAME = "name"
    PRICE_LOW = "price-low"
    PRICE_HIGH = "price-high"
    NEWEST = "newest"


HEX_COLOR_PATTERN = r"^#[0-9A-Fa-f]{6}$"


# ===================
# PRODUCTS
# ===================

class ProductCreate(BaseSchema):
    """
    Create a new product.

    Required: name, category_id
    The category label is copied from the category row by the service.
    """

    name: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="Product display name"
    )
    category_id: str = Field(
        ...,
        min_length=1,
        description="Category UUID"
    )
    description: Optional[str] = Field(None, max_length=5000)
    description_english: Optional[str] = Field(None, max_length=5000)
    display_mode: DisplayMode = Field(
        DisplayMode.INDIVIDUAL,
        description="Grouped card or one card per variant"
    )
    is_featured: bool = False
    is_active: bool = True


class ProductUpdate(BaseSchema):
    """
    Update existing product.

    All fields optional - only provided fields are updated.
    """

    name: Optional[str] = Field(None, min_length=1, max_length=200)
    category_id: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = Field(None, max_length=5000)
    description_english: Optional[str] = Field(None, max_length=5000)
    display_mode: Optional[DisplayMode] = None
    is_featured: Optional[bool] = None
    is_active: Optional[bool] = None


class ProductResponse(BaseSchema, TimestampMixin):
    """
    Product row.

    display_mode is kept as the raw stored string; unrecognized or missing
    values fall back to the category rules when listing.
    """

    id: str = Field(..., description="Product UUID")
    name: str = Field(..., description="Product name")
    category: Optional[str] = Field(None, description="Category label")
    category_id: Optional[str] = Field(None, description="Category UUID")
    description: Optional[str] = None
    description_english: Optional[str] = None
    display_mode: Optional[str] = Field(None, description="grouped | individual")
    is_featured: bool = False
    is_active: bool = True


# ===================
# VARIANT IMAGES
# ===================

class VariantImageResponse(BaseSchema):
    """Variant image row."""

    id: str
    variant_id: str
    image_url: str
    display_order: int = 0
    is_primary: bool = False
    created_at: Optional[datetime] = None


class VariantImageUpdate(BaseSchema):
    """Update image metadata."""

    display_order: Optional[int] = Field(None, ge=0)
    is_primary: Optional[bool] = None


# ===================
# VARIANTS
# ===================

class VariantCreate(BaseSchema):
    """
    Create a new variant.

    Slug is generated from name, color and size when omitted.
    """

    product_id: str = Field(..., min_length=1)
    sku: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Variant SKU (unique in catalog)"
    )
    slug: Optional[str] = Field(None, max_length=200)
    variant_name: str = Field(..., min_length=1, max_length=200)
    size: Optional[str] = Field(None, max_length=50)
    color: Optional[str] = Field(None, max_length=50)
    color_hex: Optional[str] = Field(None, pattern=HEX_COLOR_PATTERN)
    price: Decimal = Field(..., gt=0, description="Price, must be greater than 0")
    stock: int = Field(0, ge=0)
    image_url: Optional[str] = None
    is_active: bool = True


class VariantDraft(BaseSchema):
    """Variant fields for the create-product-with-variant flow (no product_id yet)."""

    sku: str = Field(..., min_length=1, max_length=100)
    slug: Optional[str] = Field(None, max_length=200)
    variant_name: str = Field(..., min_length=1, max_length=200)
    size: Optional[str] = Field(None, max_length=50)
    color: Optional[str] = Field(None, max_length=50)
    color_hex: Optional[str] = Field(None, pattern=HEX_COLOR_PATTERN)
    price: Decimal = Field(..., gt=0)
    stock: int = Field(0, ge=0)

    def for_product(self, product_id: str) -> VariantCreate:
        return VariantCreate(product_id=product_id, **self.model_dump())


class VariantUpdate(BaseSchema):
    """Update existing variant. Only provided fields are updated."""

    sku: Optional[str] = Field(None, min_length=1, max_length=100)
    slug: Optional[str] = Field(None, max_length=200)
    variant_name: Optional[str] = Field(None, min_length=1, max_length=200)
    size: Optional[str] = Field(None, max_length=50)
    color: Optional[str] = Field(None, max_length=50)
    color_hex: Optional[str] = Field(None, pattern=HEX_COLOR_PATTERN)
    price: Optional[Decimal] = Field(None, gt=0)
    stock: Optional[int] = Field(None, ge=0)
    image_url: Optional[str] = None
    is_active: Optional[bool] = None


class StockUpdate(BaseSchema):
    """Set or decrease stock."""

    quantity: int = Field(..., ge=0)


class VariantResponse(BaseSchema):
    """Variant row, images sorted by display_order."""

    id: str
    product_id: str
    sku: str
    slug: Optional[str] = None
    variant_name: str
    size: Optional[str] = None
    color: Optional[str] = None
    color_hex: Optional[str] = None
    price: Decimal = Field(..., ge=0)
    stock: int = Field(0, ge=0)
    image_url: Optional[str] = None
    images: list[VariantImageResponse] = Field(default_factory=list)
    is_active: bool = True
    created_at: datetime

    @field_validator("images", mode="before")
    @classmethod
    def images_default(cls, v):
        """Embedded selects return null when there are no rows."""
        return v or []

    @field_validator("images")
    @classmethod
    def images_in_display_order(cls, v: list[VariantImageResponse]) -> list[VariantImageResponse]:
        """Stable ascending sort, ties keep stored order."""
        return sorted(v, key=lambda image: image.display_order)


class VariantWithProduct(VariantResponse):
    """
    Variant joined with its owning product.

    Supabase returns the embedded product under "products", sometimes
    wrapped in a one-element list.
    """

    model_config = ConfigDict(populate_by_name=True)

    product: Optional[ProductResponse] = Field(None, alias="products")

    @field_validator("product", mode="before")
    @classmethod
    def unwrap_product(cls, v):
        if isinstance(v, list):
            return v[0] if v else None
        return v


class ProductWithVariants(ProductResponse):
    """Product with its variants (admin list and detail views)."""

    variants: list[VariantResponse] = Field(default_factory=list)
    category_name: Optional[str] = None

    @field_validator("variants", mode="before")
    @classmethod
    def variants_default(cls, v):
        return v or []


class ProductCreateFull(BaseSchema):
    """Product plus its first variant, created in one workflow."""

    product: ProductCreate
    variant: VariantDraft


class ProductStats(BaseSchema):
    """Catalog stock summary for the dashboard."""

    total_products: int
    total_variants: int
    low_stock_count: int
    out_of_stock_count: int


class ProductListResponse(BaseSchema):
    """List of products."""

    data: list[ProductWithVariants]
    total: int
