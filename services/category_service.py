"""
Category service.

Categories carry a default display mode, which overrides the configured
category rules when listing the catalog.
"""

from typing import Optional
import structlog

from config import get_supabase_client, settings
from models.category import (
    CategoryCreate,
    CategoryResponse,
    CategoryUpdate,
    CategoryWithCount,
)
from models.product import DisplayMode
from services.display_rules import build_display_rules
from exceptions import (
    CategoryInUseError,
    CategoryNameExistsError,
    CategoryNotFoundError,
    DatabaseError,
)

logger = structlog.get_logger(__name__)


class CategoryService:
    """CRUD for categories."""

    def __init__(self):
        self.db = get_supabase_client()
        self.table = "categories"

    # ===================
    # READ OPERATIONS
    # ===================

    def get_all(self) -> list[CategoryResponse]:
        """All categories ordered by name."""
        try:
            result = (
                self.db.table(self.table)
                .select("*")
                .order("name")
                .execute()
            )
            return [CategoryResponse(**row) for row in result.data]
        except Exception as e:
            logger.error("get_categories_failed", error=str(e))
            raise DatabaseError("select", str(e))

    def get_with_counts(self) -> list[CategoryWithCount]:
        """All categories with their product counts."""
        try:
            result = (
                self.db.table(self.table)
                .select("*, products!category_id(count)")
                .order("name")
                .execute()
            )
        except Exception as e:
            logger.error("get_categories_with_count_failed", error=str(e))
            raise DatabaseError("select", str(e))

        categories = []
        for row in result.data:
            counts = row.pop("products", None) or []
            product_count = counts[0].get("count", 0) if counts else 0
            categories.append(CategoryWithCount(**row, product_count=product_count))

        logger.info("categories_retrieved", count=len(categories))
        return categories

    def get_by_id(self, category_id: str) -> CategoryResponse:
        """
        Raises:
            CategoryNotFoundError: No such category
        """
        try:
            result = (
                self.db.table(self.table)
                .select("*")
                .eq("id", category_id)
                .execute()
            )
        except Exception as e:
            logger.error("get_category_failed", category_id=category_id, error=str(e))
            raise DatabaseError("select", str(e))

        if not result.data:
            raise CategoryNotFoundError(category_id)
        return CategoryResponse(**result.data[0])

    def name_exists(self, name: str, exclude_id: Optional[str] = None) -> bool:
        """Case-insensitive name check."""
        try:
            query = self.db.table(self.table).select("id").ilike("name", name.strip())
            if exclude_id:
                query = query.neq("id", exclude_id)
            return bool(query.execute().data)
        except Exception as e:
            logger.error("category_name_check_failed", error=str(e))
            raise DatabaseError("select", str(e))

    def get_display_rules(self) -> dict[str, DisplayMode]:
        """
        Configured fallback rules overlaid with each category's default.

        If categories cannot be read the configured rules are used alone.
        """
        overrides: dict[str, str] = {}
        try:
            result = (
                self.db.table(self.table)
                .select("name, default_display_mode")
                .execute()
            )
            overrides = {
                row["name"]: row.get("default_display_mode")
                for row in result.data
                if row.get("name")
            }
        except Exception as e:
            logger.warning("category_rules_unavailable", error=str(e))

        return build_display_rules(settings.category_display_rules, overrides)

    # ===================
    # WRITE OPERATIONS
    # ===================

    def create(self, data: CategoryCreate) -> CategoryResponse:
        """
        Raises:
            CategoryNameExistsError: Name already used (any case)
        """
        logger.info("creating_category", name=data.name)

        if self.name_exists(data.name):
            raise CategoryNameExistsError(data.name)

        try:
            result = (
                self.db.table(self.table)
                .insert({
                    "name": data.name.strip(),
                    "default_display_mode": data.default_display_mode.value,
                })
                .execute()
            )
            category = CategoryResponse(**result.data[0])
            logger.info("category_created", category_id=category.id)
            return category
        except Exception as e:
            logger.error("create_category_failed", name=data.name, error=str(e))
            raise DatabaseError("insert", str(e))

    def update(self, category_id: str, data: CategoryUpdate) -> CategoryResponse:
        """
        Raises:
            CategoryNotFoundError: No such category
            CategoryNameExistsError: New name used by another category
        """
        logger.info("updating_category", category_id=category_id)

        existing = self.get_by_id(category_id)

        if data.name and self.name_exists(data.name, exclude_id=category_id):
            raise CategoryNameExistsError(data.name)

        update_data = {}
        if data.name is not None:
            update_data["name"] = data.name.strip()
        if data.default_display_mode is not None:
            update_data["default_display_mode"] = data.default_display_mode.value

        if not update_data:
            return existing

        try:
            result = (
                self.db.table(self.table)
                .update(update_data)
                .eq("id", category_id)
                .execute()
            )
            logger.info(
                "category_updated",
                category_id=category_id,
                fields=list(update_data.keys())
            )
            return CategoryResponse(**result.data[0])
        except Exception as e:
            logger.error("update_category_failed", category_id=category_id, error=str(e))
            raise DatabaseError("update", str(e))

    def delete(self, category_id: str) -> bool:
        """
        Delete a category nobody uses.

        Raises:
            CategoryNotFoundError: No such category
            CategoryInUseError: Products still reference it
        """
        logger.info("deleting_category", category_id=category_id)

        self.get_by_id(category_id)

        try:
            usage = (
                self.db.table("products")
                .select("id", count="exact")
                .eq("category_id", category_id)
                .execute()
            )
        except Exception as e:
            logger.error("category_usage_check_failed", category_id=category_id, error=str(e))
            raise DatabaseError("count", str(e))

        product_count = usage.count or 0
        if product_count > 0:
            raise CategoryInUseError(category_id, product_count)

        try:
            self.db.table(self.table).delete().eq("id", category_id).execute()
            logger.info("category_deleted", category_id=category_id)
            return True
        except Exception as e:
            logger.error("delete_category_failed", category_id=category_id, error=str(e))
            raise DatabaseError("delete", str(e))


# Singleton instance for convenience
_category_service: Optional[CategoryService] = None


def get_category_service() -> CategoryService:
    """Get or create CategoryService instance."""
    global _category_service
    if _category_service is None:
        _category_service = CategoryService()
    return _category_service
