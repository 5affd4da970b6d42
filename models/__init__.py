"""
Pydantic models for validation and serialization.
"""

from models.base import (
    BaseSchema,
    TimestampMixin,
    PaginationParams,
    total_pages,
)
from models.product import (
    DisplayMode,
    SortBy,
    ProductCreate,
    ProductUpdate,
    ProductResponse,
    ProductWithVariants,
    ProductCreateFull,
    ProductStats,
    ProductListResponse,
    VariantCreate,
    VariantDraft,
    VariantUpdate,
    VariantResponse,
    VariantWithProduct,
    VariantImageResponse,
    VariantImageUpdate,
    StockUpdate,
)
from models.catalog import (
    ListingMode,
    PriceRange,
    ProductGroup,
    IndividualItem,
    MixedItem,
    GroupedPage,
    VariantPage,
)
from models.category import (
    CategoryCreate,
    CategoryUpdate,
    CategoryResponse,
    CategoryWithCount,
    CategoryListResponse,
)
from models.location import (
    StoreLocationCreate,
    StoreLocationUpdate,
    StoreLocationResponse,
    StoreLocationActiveUpdate,
)
from models.order import (
    OrderStatus,
    PaymentStatus,
    OrderResponse,
    OrderItemResponse,
    OrderListResponse,
    OrderStatusUpdate,
    PaymentProofResponse,
    PaymentDecision,
    PaymentRejection,
    OrderStats,
)
from models.admin import (
    AdminRole,
    AdminLogin,
    AdminRegister,
    AdminProfile,
    AdminSession,
    AdminDeleteResult,
    AdminListResponse,
)
from models.log import LogLevel, LogEntry

__all__ = [
    # Base
    "BaseSchema",
    "TimestampMixin",
    "PaginationParams",
    "total_pages",
    # Product
    "DisplayMode",
    "SortBy",
    "ProductCreate",
    "ProductUpdate",
    "ProductResponse",
    "ProductWithVariants",
    "ProductCreateFull",
    "ProductStats",
    "ProductListResponse",
    "VariantCreate",
    "VariantDraft",
    "VariantUpdate",
    "VariantResponse",
    "VariantWithProduct",
    "VariantImageResponse",
    "VariantImageUpdate",
    "StockUpdate",
    # Catalog
    "ListingMode",
    "PriceRange",
    "ProductGroup",
    "IndividualItem",
    "MixedItem",
    "GroupedPage",
    "VariantPage",
    # Category
    "CategoryCreate",
    "CategoryUpdate",
    "CategoryResponse",
    "CategoryWithCount",
    "CategoryListResponse",
    # Location
    "StoreLocationCreate",
    "StoreLocationUpdate",
    "StoreLocationResponse",
    "StoreLocationActiveUpdate",
    # Order
    "OrderStatus",
    "PaymentStatus",
    "OrderResponse",
    "OrderItemResponse",
    "OrderListResponse",
    "OrderStatusUpdate",
    "PaymentProofResponse",
    "PaymentDecision",
    "PaymentRejection",
    "OrderStats",
    # Admin
    "AdminRole",
    "AdminLogin",
    "AdminRegister",
    "AdminProfile",
    "AdminSession",
    "AdminDeleteResult",
    "AdminListResponse",
    # Log
    "LogLevel",
    "LogEntry",
]
