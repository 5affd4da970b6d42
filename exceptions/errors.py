"""
Custom exception classes for the application.

Every error carries a stable code, an HTTP status and a details dict.
"""

from typing import Optional, Any
from datetime import datetime


class AppError(Exception):
    """
    Base exception for all application errors.

    All custom exceptions inherit from this.

    Attributes:
        code: Error code (e.g., "PRODUCT_NOT_FOUND")
        message: Human-readable message
        status_code: HTTP status code
        details: Additional context
    """

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 500,
        details: Optional[dict[str, Any]] = None
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        self.timestamp = datetime.utcnow().isoformat()
        super().__init__(message)

    def to_dict(self) -> dict:
        """Convert to API response format."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "details": self.details,
                "timestamp": self.timestamp
            }
        }


class NotFoundError(AppError):
    """Resource not found (404)."""

    def __init__(
        self,
        resource: str,
        identifier: str,
        code: Optional[str] = None
    ):
        super().__init__(
            code=code or f"{resource.upper()}_NOT_FOUND",
            message=f"{resource} not found",
            status_code=404,
            details={"id": identifier}
        )


class ValidationError(AppError):
    """Validation failed (422)."""

    def __init__(
        self,
        message: str,
        code: str = "VALIDATION_ERROR",
        details: Optional[dict] = None
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=422,
            details=details
        )


class ConflictError(AppError):
    """Conflict with existing resource (409)."""

    def __init__(
        self,
        message: str,
        code: str = "CONFLICT",
        details: Optional[dict] = None
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=409,
            details=details
        )


class DuplicateError(ConflictError):
    """Duplicate resource (409)."""

    def __init__(
        self,
        resource: str,
        field: str,
        value: str
    ):
        super().__init__(
            code=f"{resource.upper()}_{field.upper()}_EXISTS",
            message=f"{resource} with this {field} already exists",
            details={field: value}
        )


class ExternalServiceError(AppError):
    """External service failure (503)."""

    def __init__(
        self,
        service: str,
        message: str,
        details: Optional[dict] = None
    ):
        super().__init__(
            code=f"{service.upper()}_ERROR",
            message=message,
            status_code=503,
            details={"service": service, **(details or {})}
        )


class DatabaseError(AppError):
    """Database operation failed (500)."""

    def __init__(
        self,
        operation: str,
        message: str,
        details: Optional[dict] = None
    ):
        super().__init__(
            code="DATABASE_ERROR",
            message=f"Database {operation} failed: {message}",
            status_code=500,
            details={"operation": operation, **(details or {})}
        )


class AuthenticationError(AppError):
    """Missing or invalid credentials (401)."""

    def __init__(self, message: str = "Not authenticated"):
        super().__init__(
            code="NOT_AUTHENTICATED",
            message=message,
            status_code=401
        )


class AuthorizationError(AppError):
    """Authenticated but not allowed (403)."""

    def __init__(
        self,
        message: str = "Admin access required",
        details: Optional[dict] = None
    ):
        super().__init__(
            code="FORBIDDEN",
            message=message,
            status_code=403,
            details=details
        )


# ===================
# PRODUCT ERRORS
# ===================

class ProductNotFoundError(NotFoundError):
    """Product not found."""

    def __init__(self, product_id: str):
        super().__init__(
            resource="Product",
            identifier=product_id,
            code="PRODUCT_NOT_FOUND"
        )


class ProductHasVariantsError(ConflictError):
    """Product cannot be deleted while it still has variants."""

    def __init__(self, product_id: str, variant_count: int):
        super().__init__(
            code="PRODUCT_HAS_VARIANTS",
            message=(
                f"Cannot delete product. It has {variant_count} variant(s). "
                "Delete variants first."
            ),
            details={"product_id": product_id, "variant_count": variant_count}
        )


# ===================
# VARIANT ERRORS
# ===================

class VariantNotFoundError(NotFoundError):
    """Variant not found."""

    def __init__(self, variant_id: str):
        super().__init__(
            resource="Variant",
            identifier=variant_id,
            code="VARIANT_NOT_FOUND"
        )


class VariantSKUExistsError(DuplicateError):
    """Variant SKU already exists."""

    def __init__(self, sku: str):
        super().__init__(
            resource="Variant",
            field="sku",
            value=sku
        )


class VariantImageNotFoundError(NotFoundError):
    """Variant image not found."""

    def __init__(self, image_id: str):
        super().__init__(
            resource="Variant image",
            identifier=image_id,
            code="VARIANT_IMAGE_NOT_FOUND"
        )


# ===================
# CATEGORY ERRORS
# ===================

class CategoryNotFoundError(NotFoundError):
    """Category not found."""

    def __init__(self, category_id: str):
        super().__init__(
            resource="Category",
            identifier=category_id,
            code="CATEGORY_NOT_FOUND"
        )


class CategoryNameExistsError(DuplicateError):
    """Category name already exists (case-insensitive)."""

    def __init__(self, name: str):
        super().__init__(
            resource="Category",
            field="name",
            value=name
        )


class CategoryInUseError(ConflictError):
    """Category still referenced by products."""

    def __init__(self, category_id: str, product_count: int):
        super().__init__(
            code="CATEGORY_IN_USE",
            message=(
                f"Cannot delete category. It has {product_count} "
                "product(s) assigned to it."
            ),
            details={"category_id": category_id, "product_count": product_count}
        )


# ===================
# STORE LOCATION ERRORS
# ===================

class StoreLocationNotFoundError(NotFoundError):
    """Store location not found."""

    def __init__(self, location_id: str):
        super().__init__(
            resource="Store location",
            identifier=location_id,
            code="STORE_LOCATION_NOT_FOUND"
        )


class StoreLocationProtectedError(ConflictError):
    """Operation would leave the store without a usable default location."""

    def __init__(self, location_id: str, reason: str):
        super().__init__(
            code="STORE_LOCATION_PROTECTED",
            message=reason,
            details={"location_id": location_id}
        )


# ===================
# ORDER ERRORS
# ===================

class OrderNotFoundError(NotFoundError):
    """Order not found."""

    def __init__(self, order_id: str):
        super().__init__(
            resource="Order",
            identifier=order_id,
            code="ORDER_NOT_FOUND"
        )


class PaymentProofNotFoundError(NotFoundError):
    """No payment proof uploaded for order."""

    def __init__(self, order_id: str):
        super().__init__(
            resource="Payment proof",
            identifier=order_id,
            code="PAYMENT_PROOF_NOT_FOUND"
        )


# ===================
# ADMIN ERRORS
# ===================

class AdminNotFoundError(NotFoundError):
    """Admin profile not found."""

    def __init__(self, admin_id: str):
        super().__init__(
            resource="Admin",
            identifier=admin_id,
            code="ADMIN_NOT_FOUND"
        )


class AdminEmailExistsError(DuplicateError):
    """Admin email already registered."""

    def __init__(self, email: str):
        super().__init__(
            resource="Admin",
            field="email",
            value=email
        )


class SelfDeletionError(ValidationError):
    """Admins cannot delete their own account."""

    def __init__(self, admin_id: str):
        super().__init__(
            code="ADMIN_SELF_DELETION",
            message="Cannot delete your own account",
            details={"admin_id": admin_id}
        )


class LastSuperAdminError(ConflictError):
    """The last super admin cannot be removed."""

    def __init__(self, admin_id: str):
        super().__init__(
            code="LAST_SUPER_ADMIN",
            message="Cannot delete the last super admin",
            details={"admin_id": admin_id}
        )


# ===================
# STORAGE ERRORS
# ===================

class StorageError(ExternalServiceError):
    """Object storage call failed."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(
            service="storage",
            message=message,
            details=details
        )


# ===================
# WORKFLOW ERRORS
# ===================

class WorkflowStepError(AppError):
    """
    A multi-step operation failed part way through.

    Attributes in details:
        workflow: Workflow name
        failed_step: Name of the step that raised
        completed_steps: Steps that finished before the failure
        compensated_steps: Steps whose compensation succeeded
        compensation_failures: Steps whose compensation also failed
    """

    def __init__(
        self,
        workflow: str,
        failed_step: str,
        error: Exception,
        completed_steps: list[str],
        compensated_steps: list[str],
        compensation_failures: list[str]
    ):
        self.failed_step = failed_step
        self.cause = error
        self.completed_steps = completed_steps
        self.compensated_steps = compensated_steps
        self.compensation_failures = compensation_failures

        cause_status = error.status_code if isinstance(error, AppError) else 500
        cause_message = error.message if isinstance(error, AppError) else str(error)

        super().__init__(
            code="WORKFLOW_STEP_FAILED",
            message=f"{workflow} failed at step '{failed_step}': {cause_message}",
            status_code=cause_status,
            details={
                "workflow": workflow,
                "failed_step": failed_step,
                "completed_steps": completed_steps,
                "compensated_steps": compensated_steps,
                "compensation_failures": compensation_failures,
                "cause": getattr(error, "code", type(error).__name__),
            }
        )
