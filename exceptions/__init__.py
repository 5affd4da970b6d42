"""
Custom exceptions module.
"""

from exceptions.errors import (
    # Base exceptions
    AppError,
    NotFoundError,
    ValidationError,
    ConflictError,
    DuplicateError,
    ExternalServiceError,
    DatabaseError,
    AuthenticationError,
    AuthorizationError,

    # Products and variants
    ProductNotFoundError,
    ProductHasVariantsError,
    VariantNotFoundError,
    VariantSKUExistsError,
    VariantImageNotFoundError,

    # Categories
    CategoryNotFoundError,
    CategoryNameExistsError,
    CategoryInUseError,

    # Store locations
    StoreLocationNotFoundError,
    StoreLocationProtectedError,

    # Orders
    OrderNotFoundError,
    PaymentProofNotFoundError,

    # Admins
    AdminNotFoundError,
    AdminEmailExistsError,
    SelfDeletionError,
    LastSuperAdminError,

    # Storage
    StorageError,

    # Workflows
    WorkflowStepError,
)

__all__ = [
    # Base
    "AppError",
    "NotFoundError",
    "ValidationError",
    "ConflictError",
    "DuplicateError",
    "ExternalServiceError",
    "DatabaseError",
    "AuthenticationError",
    "AuthorizationError",

    # Products and variants
    "ProductNotFoundError",
    "ProductHasVariantsError",
    "VariantNotFoundError",
    "VariantSKUExistsError",
    "VariantImageNotFoundError",

    # Categories
    "CategoryNotFoundError",
    "CategoryNameExistsError",
    "CategoryInUseError",

    # Store locations
    "StoreLocationNotFoundError",
    "StoreLocationProtectedError",

    # Orders
    "OrderNotFoundError",
    "PaymentProofNotFoundError",

    # Admins
    "AdminNotFoundError",
    "AdminEmailExistsError",
    "SelfDeletionError",
    "LastSuperAdminError",

    # Storage
    "StorageError",

    # Workflows
    "WorkflowStepError",
]
