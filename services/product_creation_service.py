"""
Create a product, its first variant and its images in one request.

Each piece is a separate Supabase call, so the creation runs as a Workflow:
a failure part way through deletes what was already created and reports
the failed step.
"""

from typing import Optional, Sequence
import structlog

from models.product import ProductCreate, ProductWithVariants, VariantDraft
from services.image_service import ImageFile, get_image_service
from services.product_service import get_product_service
from utils.workflow import Workflow

logger = structlog.get_logger(__name__)


class ProductCreationService:
    """Orchestrates product + variant + images creation."""

    def __init__(self):
        self.products = get_product_service()
        self.images = get_image_service()

    def create_product_with_variant(
        self,
        product: ProductCreate,
        variant: VariantDraft,
        images: Sequence[ImageFile] = ()
    ) -> ProductWithVariants:
        """
        Steps:
            create_product   (compensate: delete product)
            create_variant   (compensate: delete variant)
            upload_image_<n> (compensate: delete image), first one primary

        Raises:
            WorkflowStepError: A step failed; earlier steps were undone
        """
        logger.info(
            "creating_product_with_variant",
            name=product.name,
            sku=variant.sku,
            images=len(images)
        )

        workflow = Workflow("create_product_with_variant")

        workflow.step(
            "create_product",
            lambda results: self.products.create(product),
            compensate=lambda created: self.products.hard_delete(created.id)
        )
        workflow.step(
            "create_variant",
            lambda results: self.products.create_variant(
                variant.for_product(results["create_product"].id)
            ),
            compensate=lambda created: self.products.delete_variant(created.id)
        )

        for index, image in enumerate(images):
            workflow.step(
                f"upload_image_{index}",
                self._upload_action(image, index),
                compensate=lambda uploaded: self.images.delete(uploaded.id)
            )

        results = workflow.run()

        product_id = results["create_product"].id
        logger.info(
            "product_with_variant_created",
            product_id=product_id,
            variant_id=results["create_variant"].id
        )
        return self.products.get_by_id(product_id)

    def _upload_action(self, image: ImageFile, index: int):
        def upload(results):
            return self.images.upload(
                results["create_variant"].id,
                image,
                display_order=index,
                is_primary=index == 0
            )
        return upload


# Singleton instance for convenience
_product_creation_service: Optional[ProductCreationService] = None


def get_product_creation_service() -> ProductCreationService:
    """Get or create ProductCreationService instance."""
    global _product_creation_service
    if _product_creation_service is None:
        _product_creation_service = ProductCreationService()
    return _product_creation_service
