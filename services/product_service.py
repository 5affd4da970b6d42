"""
Product and variant service.

Products own variants (the purchasable SKUs). Variant images are handled
by ImageService.
"""

from datetime import datetime, timezone
from typing import Optional
import structlog

from config import get_supabase_client, settings
from models.product import (
    ProductCreate,
    ProductResponse,
    ProductStats,
    ProductUpdate,
    ProductWithVariants,
    VariantCreate,
    VariantResponse,
    VariantUpdate,
    VariantWithProduct,
)
from services.category_service import get_category_service
from services.image_service import get_image_service
from exceptions import (
    DatabaseError,
    ProductHasVariantsError,
    ProductNotFoundError,
    VariantNotFoundError,
    VariantSKUExistsError,
)
from utils.slug import slug_from_variant, slugify, unique_slug

logger = structlog.get_logger(__name__)

PRODUCT_DETAIL_SELECT = (
    "*, variants(*, images:variant_images(*)), categories!category_id(name)"
)
VARIANT_SELECT = "*, images:variant_images(*)"
VARIANT_WITH_PRODUCT_SELECT = "*, products(*), images:variant_images(*)"


def _product_with_variants(row: dict) -> ProductWithVariants:
    """Flatten the embedded category name."""
    row = dict(row)
    category = row.pop("categories", None)
    if isinstance(category, list):
        category = category[0] if category else None
    return ProductWithVariants(
        **row,
        category_name=category.get("name") if category else None
    )


class ProductService:
    """
    Product and variant business logic.

    Handles CRUD operations for products and their variants.
    """

    def __init__(self):
        self.db = get_supabase_client()
        self.table = "products"
        self.variants_table = "variants"

    # ===================
    # PRODUCT READS
    # ===================

    def get_all_admin(self) -> list[ProductWithVariants]:
        """
        All products with variants and category name, newest first.

        Includes inactive products and variants.
        """
        logger.info("getting_products_admin")

        try:
            result = (
                self.db.table(self.table)
                .select(PRODUCT_DETAIL_SELECT)
                .order("created_at", desc=True)
                .execute()
            )
        except Exception as e:
            logger.error("get_products_failed", error=str(e))
            raise DatabaseError("select", str(e))

        products = [_product_with_variants(row) for row in result.data]
        logger.info("products_retrieved", count=len(products))
        return products

    def get_by_id(self, product_id: str) -> ProductWithVariants:
        """
        Get a single product with its variants and their images.

        Raises:
            ProductNotFoundError: If product doesn't exist
        """
        logger.debug("getting_product", product_id=product_id)

        try:
            result = (
                self.db.table(self.table)
                .select(PRODUCT_DETAIL_SELECT)
                .eq("id", product_id)
                .execute()
            )
        except Exception as e:
            logger.error("get_product_failed", product_id=product_id, error=str(e))
            raise DatabaseError("select", str(e))

        if not result.data:
            raise ProductNotFoundError(product_id)
        return _product_with_variants(result.data[0])

    def get_by_variant_id(self, variant_id: str) -> ProductWithVariants:
        """
        Product owning a variant.

        Raises:
            VariantNotFoundError: If variant doesn't exist
        """
        variant = self.get_variant(variant_id)
        return self.get_by_id(variant.product_id)

    def get_by_sku(self, sku: str) -> Optional[VariantWithProduct]:
        """
        Variant by SKU joined with its product.

        Returns:
            VariantWithProduct or None if not found
        """
        logger.debug("getting_variant_by_sku", sku=sku)

        try:
            result = (
                self.db.table(self.variants_table)
                .select(VARIANT_WITH_PRODUCT_SELECT)
                .eq("sku", sku)
                .execute()
            )
        except Exception as e:
            logger.error("get_variant_by_sku_failed", sku=sku, error=str(e))
            raise DatabaseError("select", str(e))

        if not result.data:
            return None
        return VariantWithProduct(**result.data[0])

    def get_by_category(self, category: str) -> list[ProductResponse]:
        """Active products with this category label."""
        try:
            result = (
                self.db.table(self.table)
                .select("*")
                .eq("category", category)
                .eq("is_active", True)
                .order("name")
                .execute()
            )
            return [ProductResponse(**row) for row in result.data]
        except Exception as e:
            logger.error("get_products_by_category_failed", category=category, error=str(e))
            raise DatabaseError("select", str(e))

    def search(self, query: str) -> list[ProductResponse]:
        """Active products whose name contains the query (case-insensitive)."""
        term = query.strip()
        if not term:
            return []

        try:
            result = (
                self.db.table(self.table)
                .select("*")
                .ilike("name", f"%{term}%")
                .eq("is_active", True)
                .order("name")
                .execute()
            )
            return [ProductResponse(**row) for row in result.data]
        except Exception as e:
            logger.error("search_products_failed", query=term, error=str(e))
            raise DatabaseError("select", str(e))

    def get_categories_in_use(self) -> list[str]:
        """Distinct category labels of active products, sorted."""
        try:
            result = (
                self.db.table(self.table)
                .select("category")
                .eq("is_active", True)
                .execute()
            )
        except Exception as e:
            logger.error("get_categories_in_use_failed", error=str(e))
            raise DatabaseError("select", str(e))

        return sorted({row["category"] for row in result.data if row.get("category")})

    def get_stats(self) -> ProductStats:
        """Product count plus variant stock levels."""
        try:
            products = self.db.table(self.table).select("id", count="exact").execute()
            variants = self.db.table(self.variants_table).select("stock").execute()
        except Exception as e:
            logger.error("get_product_stats_failed", error=str(e))
            raise DatabaseError("select", str(e))

        threshold = settings.low_stock_threshold
        stocks = [row.get("stock") or 0 for row in variants.data]

        return ProductStats(
            total_products=products.count or 0,
            total_variants=len(stocks),
            low_stock_count=sum(1 for s in stocks if 0 < s < threshold),
            out_of_stock_count=sum(1 for s in stocks if s == 0),
        )

    # ===================
    # PRODUCT WRITES
    # ===================

    def create(self, data: ProductCreate) -> ProductResponse:
        """
        Create a new product.

        Raises:
            CategoryNotFoundError: If category_id is unknown
        """
        logger.info("creating_product", name=data.name, category_id=data.category_id)

        category = get_category_service().get_by_id(data.category_id)

        try:
            result = (
                self.db.table(self.table)
                .insert({
                    "name": data.name,
                    "category_id": category.id,
                    "category": category.name,
                    "description": data.description,
                    "description_english": data.description_english,
                    "display_mode": data.display_mode.value,
                    "is_featured": data.is_featured,
                    "is_active": data.is_active,
                })
                .execute()
            )
        except Exception as e:
            logger.error("create_product_failed", name=data.name, error=str(e))
            raise DatabaseError("insert", str(e))

        product = ProductResponse(**result.data[0])
        logger.info("product_created", product_id=product.id, name=product.name)
        return product

    def update(self, product_id: str, data: ProductUpdate) -> ProductResponse:
        """
        Update an existing product. Only provided fields are written.

        Raises:
            ProductNotFoundError: If product doesn't exist
            CategoryNotFoundError: If the new category_id is unknown
        """
        logger.info("updating_product", product_id=product_id)

        existing = self.get_by_id(product_id)

        update_data = data.model_dump(exclude_unset=True, mode="json")

        if not update_data:
            return ProductResponse(**existing.model_dump(exclude={"variants", "category_name"}))

        if update_data.get("category_id"):
            category = get_category_service().get_by_id(update_data["category_id"])
            update_data["category"] = category.name

        update_data["updated_at"] = datetime.now(timezone.utc).isoformat()

        try:
            result = (
                self.db.table(self.table)
                .update(update_data)
                .eq("id", product_id)
                .execute()
            )
        except Exception as e:
            logger.error("update_product_failed", product_id=product_id, error=str(e))
            raise DatabaseError("update", str(e))

        logger.info(
            "product_updated",
            product_id=product_id,
            fields=[k for k in update_data if k != "updated_at"]
        )
        return ProductResponse(**result.data[0])

    def delete(self, product_id: str) -> bool:
        """
        Delete a product that has no variants left.

        Raises:
            ProductNotFoundError: If product doesn't exist
            ProductHasVariantsError: Variants must be deleted first
        """
        logger.info("deleting_product", product_id=product_id)

        product = self.get_by_id(product_id)
        if product.variants:
            raise ProductHasVariantsError(product_id, len(product.variants))

        self.hard_delete(product_id)
        return True

    def hard_delete(self, product_id: str) -> None:
        """Delete the product row without checks."""
        try:
            self.db.table(self.table).delete().eq("id", product_id).execute()
            logger.info("product_deleted", product_id=product_id)
        except Exception as e:
            logger.error("delete_product_failed", product_id=product_id, error=str(e))
            raise DatabaseError("delete", str(e))

    # ===================
    # VARIANT READS
    # ===================

    def get_variants_by_product(self, product_id: str) -> list[VariantResponse]:
        """Variants of a product with images, oldest first."""
        try:
            result = (
                self.db.table(self.variants_table)
                .select(VARIANT_SELECT)
                .eq("product_id", product_id)
                .order("created_at")
                .execute()
            )
            return [VariantResponse(**row) for row in result.data]
        except Exception as e:
            logger.error("get_variants_failed", product_id=product_id, error=str(e))
            raise DatabaseError("select", str(e))

    def get_variant(self, variant_id: str) -> VariantResponse:
        """
        Raises:
            VariantNotFoundError: If variant doesn't exist
        """
        try:
            result = (
                self.db.table(self.variants_table)
                .select(VARIANT_SELECT)
                .eq("id", variant_id)
                .execute()
            )
        except Exception as e:
            logger.error("get_variant_failed", variant_id=variant_id, error=str(e))
            raise DatabaseError("select", str(e))

        if not result.data:
            raise VariantNotFoundError(variant_id)
        return VariantResponse(**result.data[0])

    def sku_exists(self, sku: str, exclude_id: Optional[str] = None) -> bool:
        """Check if a SKU is already used by another variant."""
        try:
            query = self.db.table(self.variants_table).select("id").eq("sku", sku)
            if exclude_id:
                query = query.neq("id", exclude_id)
            return bool(query.execute().data)
        except Exception as e:
            logger.error("variant_sku_check_failed", sku=sku, error=str(e))
            raise DatabaseError("select", str(e))

    def slug_exists(self, slug: str) -> bool:
        try:
            result = (
                self.db.table(self.variants_table)
                .select("id")
                .eq("slug", slug)
                .execute()
            )
            return bool(result.data)
        except Exception as e:
            logger.error("variant_slug_check_failed", slug=slug, error=str(e))
            raise DatabaseError("select", str(e))

    # ===================
    # VARIANT WRITES
    # ===================

    def create_variant(self, data: VariantCreate) -> VariantResponse:
        """
        Create a variant under an existing product.

        Raises:
            ProductNotFoundError: If product doesn't exist
            VariantSKUExistsError: If SKU already exists
        """
        logger.info("creating_variant", product_id=data.product_id, sku=data.sku)

        self.get_by_id(data.product_id)

        if self.sku_exists(data.sku):
            raise VariantSKUExistsError(data.sku)

        base_slug = slugify(data.slug) if data.slug else slug_from_variant(
            data.variant_name, data.color, data.size
        )
        slug = unique_slug(base_slug or slugify(data.sku), self.slug_exists)

        insert_data = data.model_dump(mode="json")
        insert_data["slug"] = slug

        try:
            result = (
                self.db.table(self.variants_table)
                .insert(insert_data)
                .execute()
            )
        except Exception as e:
            logger.error("create_variant_failed", sku=data.sku, error=str(e))
            raise DatabaseError("insert", str(e))

        variant = VariantResponse(**result.data[0])
        logger.info("variant_created", variant_id=variant.id, sku=variant.sku, slug=slug)
        return variant

    def update_variant(self, variant_id: str, data: VariantUpdate) -> VariantResponse:
        """
        Raises:
            VariantNotFoundError: If variant doesn't exist
            VariantSKUExistsError: If new SKU is used by another variant
        """
        logger.info("updating_variant", variant_id=variant_id)

        existing = self.get_variant(variant_id)

        update_data = data.model_dump(exclude_unset=True, mode="json")
        if not update_data:
            return existing

        if "sku" in update_data and update_data["sku"] != existing.sku:
            if self.sku_exists(update_data["sku"], exclude_id=variant_id):
                raise VariantSKUExistsError(update_data["sku"])

        if update_data.get("slug"):
            update_data["slug"] = slugify(update_data["slug"])

        try:
            result = (
                self.db.table(self.variants_table)
                .update(update_data)
                .eq("id", variant_id)
                .execute()
            )
        except Exception as e:
            logger.error("update_variant_failed", variant_id=variant_id, error=str(e))
            raise DatabaseError("update", str(e))

        logger.info("variant_updated", variant_id=variant_id, fields=list(update_data.keys()))
        return VariantResponse(**result.data[0])

    def delete_variant(self, variant_id: str) -> bool:
        """
        Delete a variant and its images.

        Raises:
            VariantNotFoundError: If variant doesn't exist
        """
        logger.info("deleting_variant", variant_id=variant_id)

        self.get_variant(variant_id)
        get_image_service().delete_for_variant(variant_id)

        try:
            self.db.table(self.variants_table).delete().eq("id", variant_id).execute()
        except Exception as e:
            logger.error("delete_variant_failed", variant_id=variant_id, error=str(e))
            raise DatabaseError("delete", str(e))

        logger.info("variant_deleted", variant_id=variant_id)
        return True

    def update_stock(self, variant_id: str, quantity: int) -> VariantResponse:
        """Set stock to an absolute quantity."""
        self.get_variant(variant_id)
        return self._write_stock(variant_id, quantity)

    def decrease_stock(self, variant_id: str, quantity: int) -> VariantResponse:
        """Decrease stock, never below zero."""
        variant = self.get_variant(variant_id)
        new_stock = max(0, variant.stock - quantity)

        if variant.stock - quantity < 0:
            logger.warning(
                "stock_floored_at_zero",
                variant_id=variant_id,
                stock=variant.stock,
                requested=quantity
            )

        return self._write_stock(variant_id, new_stock)

    def _write_stock(self, variant_id: str, stock: int) -> VariantResponse:
        try:
            result = (
                self.db.table(self.variants_table)
                .update({"stock": stock})
                .eq("id", variant_id)
                .execute()
            )
        except Exception as e:
            logger.error("update_stock_failed", variant_id=variant_id, error=str(e))
            raise DatabaseError("update", str(e))

        if not result.data:
            raise VariantNotFoundError(variant_id)

        logger.info("stock_updated", variant_id=variant_id, stock=stock)
        return VariantResponse(**result.data[0])


# Singleton instance for convenience
_product_service: Optional[ProductService] = None

def get_product_service() -> ProductService:
    """Get or create ProductService instance."""
    global _product_service
    if _product_service is None:
        _product_service = ProductService()
    return _product_service
