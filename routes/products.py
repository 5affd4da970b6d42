"""
Product, variant and image API routes.

All endpoints require the manage_catalog capability.
"""

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from fastapi.responses import JSONResponse
from pydantic import ValidationError as PydanticValidationError
import structlog

from models.admin import AdminProfile
from models.product import (
    ProductCreate,
    ProductCreateFull,
    ProductListResponse,
    ProductResponse,
    ProductStats,
    ProductUpdate,
    ProductWithVariants,
    StockUpdate,
    VariantDraft,
    VariantImageResponse,
    VariantImageUpdate,
    VariantResponse,
    VariantUpdate,
    VariantWithProduct,
)
from services.access_control import Capability
from services.image_service import ImageFile, get_image_service
from services.product_creation_service import get_product_creation_service
from services.product_service import get_product_service
from routes.dependencies import require
from exceptions import AppError, ValidationError, VariantNotFoundError

logger = structlog.get_logger(__name__)

router = APIRouter()

manage_catalog = require(Capability.MANAGE_CATALOG)


# ===================
# EXCEPTION HANDLER
# ===================

def handle_error(e: Exception) -> JSONResponse:
    """Convert exception to JSON response."""
    if isinstance(e, AppError):
        return JSONResponse(
            status_code=e.status_code,
            content=e.to_dict()
        )
    # Unexpected error
    logger.error("unexpected_error", error=str(e), type=type(e).__name__)
    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "INTERNAL_ERROR",
                "message": "An unexpected error occurred"
            }
        }
    )


async def _read_images(files: list[UploadFile]) -> list[ImageFile]:
    return [
        ImageFile(
            content=await f.read(),
            filename=f.filename or "",
            content_type=f.content_type
        )
        for f in files
    ]


# ===================
# PRODUCTS
# ===================

@router.get("", response_model=ProductListResponse)
async def list_products(admin: AdminProfile = Depends(manage_catalog)):
    """All products with variants, newest first."""
    try:
        products = get_product_service().get_all_admin()
        return ProductListResponse(data=products, total=len(products))
    except Exception as e:
        return handle_error(e)


@router.get("/stats", response_model=ProductStats)
async def product_stats(admin: AdminProfile = Depends(manage_catalog)):
    """Product and stock counts for the dashboard."""
    try:
        return get_product_service().get_stats()
    except Exception as e:
        return handle_error(e)


@router.get("/categories-in-use", response_model=list[str])
async def categories_in_use(admin: AdminProfile = Depends(manage_catalog)):
    try:
        return get_product_service().get_categories_in_use()
    except Exception as e:
        return handle_error(e)


@router.get("/search", response_model=list[ProductResponse])
async def search_products(
    q: str = Query(..., min_length=1, description="Name contains"),
    admin: AdminProfile = Depends(manage_catalog)
):
    try:
        return get_product_service().search(q)
    except Exception as e:
        return handle_error(e)


@router.get("/category/{category}", response_model=list[ProductResponse])
async def products_by_category(category: str, admin: AdminProfile = Depends(manage_catalog)):
    try:
        return get_product_service().get_by_category(category)
    except Exception as e:
        return handle_error(e)


@router.get("/sku/{sku}", response_model=VariantWithProduct)
async def get_by_sku(sku: str, admin: AdminProfile = Depends(manage_catalog)):
    """
    Variant by SKU with its product.

    Raises:
        404: No variant with this SKU
    """
    try:
        variant = get_product_service().get_by_sku(sku)
        if variant is None:
            raise VariantNotFoundError(sku)
        return variant
    except Exception as e:
        return handle_error(e)


@router.get("/by-variant/{variant_id}", response_model=ProductWithVariants)
async def get_by_variant(variant_id: str, admin: AdminProfile = Depends(manage_catalog)):
    try:
        return get_product_service().get_by_variant_id(variant_id)
    except Exception as e:
        return handle_error(e)


@router.post("/full", response_model=ProductWithVariants, status_code=201)
async def create_product_full(
    payload: str = Form(..., description="ProductCreateFull as JSON"),
    images: list[UploadFile] = File(default=[]),
    admin: AdminProfile = Depends(manage_catalog)
):
    """
    Create a product, its first variant and its images.

    Multipart form: "payload" holds {"product": ..., "variant": ...} as JSON,
    "images" the files. The first image becomes primary.

    Raises:
        422: Invalid payload
        4xx/5xx: WORKFLOW_STEP_FAILED with the failed step in details
    """
    try:
        try:
            data = ProductCreateFull.model_validate_json(payload)
        except PydanticValidationError as e:
            raise ValidationError(
                "Invalid product payload",
                details={
                    "errors": [
                        f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}"
                        for err in e.errors()
                    ]
                }
            )

        files = await _read_images(images)
        return get_product_creation_service().create_product_with_variant(
            data.product,
            data.variant,
            files
        )
    except Exception as e:
        return handle_error(e)


@router.get("/{product_id}", response_model=ProductWithVariants)
async def get_product(product_id: str, admin: AdminProfile = Depends(manage_catalog)):
    """
    Get a single product with variants and images.

    Raises:
        404: Product not found
    """
    try:
        return get_product_service().get_by_id(product_id)
    except Exception as e:
        return handle_error(e)


@router.post("", response_model=ProductResponse, status_code=201)
async def create_product(data: ProductCreate, admin: AdminProfile = Depends(manage_catalog)):
    """
    Create a new product.

    Raises:
        404: Category not found
    """
    try:
        return get_product_service().create(data)
    except Exception as e:
        return handle_error(e)


@router.patch("/{product_id}", response_model=ProductResponse)
async def update_product(
    product_id: str,
    data: ProductUpdate,
    admin: AdminProfile = Depends(manage_catalog)
):
    """
    Update an existing product.

    Only provided fields are updated.
    """
    try:
        return get_product_service().update(product_id, data)
    except Exception as e:
        return handle_error(e)


@router.delete("/{product_id}", status_code=204)
async def delete_product(product_id: str, admin: AdminProfile = Depends(manage_catalog)):
    """
    Delete a product.

    Raises:
        404: Product not found
        409: Product still has variants
    """
    try:
        get_product_service().delete(product_id)
        return None
    except Exception as e:
        return handle_error(e)


# ===================
# VARIANTS
# ===================

@router.get("/{product_id}/variants", response_model=list[VariantResponse])
async def list_variants(product_id: str, admin: AdminProfile = Depends(manage_catalog)):
    try:
        return get_product_service().get_variants_by_product(product_id)
    except Exception as e:
        return handle_error(e)


@router.post("/{product_id}/variants", response_model=VariantResponse, status_code=201)
async def create_variant(
    product_id: str,
    data: VariantDraft,
    admin: AdminProfile = Depends(manage_catalog)
):
    """
    Add a variant to a product.

    Raises:
        404: Product not found
        409: SKU already exists
    """
    try:
        return get_product_service().create_variant(data.for_product(product_id))
    except Exception as e:
        return handle_error(e)


@router.patch("/variants/{variant_id}", response_model=VariantResponse)
async def update_variant(
    variant_id: str,
    data: VariantUpdate,
    admin: AdminProfile = Depends(manage_catalog)
):
    try:
        return get_product_service().update_variant(variant_id, data)
    except Exception as e:
        return handle_error(e)


@router.delete("/variants/{variant_id}", status_code=204)
async def delete_variant(variant_id: str, admin: AdminProfile = Depends(manage_catalog)):
    """Delete a variant together with its images."""
    try:
        get_product_service().delete_variant(variant_id)
        return None
    except Exception as e:
        return handle_error(e)


@router.put("/variants/{variant_id}/stock", response_model=VariantResponse)
async def set_stock(
    variant_id: str,
    data: StockUpdate,
    admin: AdminProfile = Depends(manage_catalog)
):
    try:
        return get_product_service().update_stock(variant_id, data.quantity)
    except Exception as e:
        return handle_error(e)


@router.post("/variants/{variant_id}/stock/decrease", response_model=VariantResponse)
async def decrease_stock(
    variant_id: str,
    data: StockUpdate,
    admin: AdminProfile = Depends(manage_catalog)
):
    """Decrease stock by quantity; stock never goes below zero."""
    try:
        return get_product_service().decrease_stock(variant_id, data.quantity)
    except Exception as e:
        return handle_error(e)


# ===================
# IMAGES
# ===================

@router.get("/variants/{variant_id}/images", response_model=list[VariantImageResponse])
async def list_images(variant_id: str, admin: AdminProfile = Depends(manage_catalog)):
    try:
        return get_image_service().list_for_variant(variant_id)
    except Exception as e:
        return handle_error(e)


@router.post(
    "/variants/{variant_id}/images",
    response_model=list[VariantImageResponse],
    status_code=201
)
async def upload_images(
    variant_id: str,
    images: list[UploadFile] = File(...),
    admin: AdminProfile = Depends(manage_catalog)
):
    """
    Upload images after the existing ones.

    The first becomes primary if the variant had none.
    """
    try:
        files = await _read_images(images)
        return get_image_service().upload_many(variant_id, files)
    except Exception as e:
        return handle_error(e)


@router.patch("/images/{image_id}", response_model=VariantImageResponse)
async def update_image(
    image_id: str,
    data: VariantImageUpdate,
    admin: AdminProfile = Depends(manage_catalog)
):
    try:
        return get_image_service().update(image_id, data)
    except Exception as e:
        return handle_error(e)


@router.post("/images/{image_id}/primary", response_model=VariantImageResponse)
async def set_primary_image(image_id: str, admin: AdminProfile = Depends(manage_catalog)):
    try:
        return get_image_service().set_primary(image_id)
    except Exception as e:
        return handle_error(e)


@router.delete("/images/{image_id}", status_code=204)
async def delete_image(image_id: str, admin: AdminProfile = Depends(manage_catalog)):
    try:
        get_image_service().delete(image_id)
        return None
    except Exception as e:
        return handle_error(e)
