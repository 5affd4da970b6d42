"""
Business logic services.

Each service handles one domain area.
"""

from services.display_rules import resolve_display_mode, build_display_rules
from services.catalog_grouping import build_grouped_page
from services.access_control import Capability, has_capability, require_capability
from services.category_service import CategoryService, get_category_service
from services.image_service import ImageFile, ImageService, get_image_service
from services.product_service import ProductService, get_product_service
from services.product_creation_service import (
    ProductCreationService,
    get_product_creation_service,
)
from services.catalog_service import CatalogService, get_catalog_service
from services.location_service import StoreLocationService, get_location_service
from services.order_service import OrderService, get_order_service
from services.auth_service import AuthService, get_auth_service
from services.admin_service import AdminService, get_admin_service
from services.log_service import LogService, get_log_service

__all__ = [
    "resolve_display_mode",
    "build_display_rules",
    "build_grouped_page",
    "Capability",
    "has_capability",
    "require_capability",
    "CategoryService",
    "get_category_service",
    "ImageFile",
    "ImageService",
    "get_image_service",
    "ProductService",
    "get_product_service",
    "ProductCreationService",
    "get_product_creation_service",
    "CatalogService",
    "get_catalog_service",
    "StoreLocationService",
    "get_location_service",
    "OrderService",
    "get_order_service",
    "AuthService",
    "get_auth_service",
    "AdminService",
    "get_admin_service",
    "LogService",
    "get_log_service",
]
