"""
Order and payment proof schemas.

Orders are placed by the storefront; the admin API reads them, moves them
through their status lifecycle and verifies uploaded payment proofs.
"""

from pydantic import Field
from typing import Optional
from enum import Enum
from datetime import datetime
from decimal import Decimal

from models.base import BaseSchema, TimestampMixin


class OrderStatus(str, Enum):
    """Order lifecycle."""
    PENDING_PAYMENT = "pending_payment"
    PAYMENT_UPLOADED = "payment_uploaded"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class PaymentStatus(str, Enum):
    """Payment proof verification state."""
    PENDING = "pending"
    VERIFIED = "verified"
    REJECTED = "rejected"


class VariantSnapshot(BaseSchema):
    """Variant details frozen at purchase time."""

    variant_name: str
    size: Optional[str] = None
    color: Optional[str] = None
    image_url: Optional[str] = None


class OrderItemResponse(BaseSchema):
    """Order line."""

    id: str
    order_id: str
    variant_id: str
    quantity: int
    price_at_purchase: Decimal
    variant_snapshot: Optional[VariantSnapshot] = None
    created_at: datetime


class OrderResponse(BaseSchema, TimestampMixin):
    """Order with its items."""

    id: str
    user_id: str
    order_number: str
    total_amount: Decimal
    status: OrderStatus
    recipient_name: str
    phone: str
    country: str
    region: str
    district: str
    city: str
    address: str
    address_optional: Optional[str] = None
    postcode: str
    order_items: list[OrderItemResponse] = Field(default_factory=list)


class OrderListResponse(BaseSchema):
    """Paginated orders (page is 0-indexed)."""

    orders: list[OrderResponse]
    total: int
    page: int
    total_pages: int


class OrderStatusUpdate(BaseSchema):
    """Move an order to a new status."""

    status: OrderStatus


class PaymentProofResponse(BaseSchema):
    """Payment proof row; image_url is a signed URL when one could be created."""

    id: str
    order_id: str
    image_url: str
    status: PaymentStatus
    admin_notes: Optional[str] = None
    uploaded_at: datetime
    verified_at: Optional[datetime] = None
    verified_by: Optional[str] = None


class PaymentDecision(BaseSchema):
    """Approve or reject a payment proof."""

    admin_notes: Optional[str] = Field(None, max_length=1000)


class PaymentRejection(BaseSchema):
    """Rejections must say why."""

    admin_notes: str = Field(..., min_length=1, max_length=1000)


class OrderStats(BaseSchema):
    """Order counts per status."""

    total: int = 0
    pending_payment: int = 0
    payment_uploaded: int = 0
    processing: int = 0
    shipped: int = 0
    delivered: int = 0
    cancelled: int = 0
