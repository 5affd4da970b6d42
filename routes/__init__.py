"""
API route modules.

Each module defines routes for one domain area.
"""

from routes.auth import router as auth_router
from routes.catalog import router as catalog_router
from routes.products import router as products_router
from routes.categories import router as categories_router
from routes.locations import router as locations_router
from routes.orders import router as orders_router
from routes.admins import router as admins_router

__all__ = [
    "auth_router",
    "catalog_router",
    "products_router",
    "categories_router",
    "locations_router",
    "orders_router",
    "admins_router",
]
