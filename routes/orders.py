"""
Order API routes.

Payment decisions and shipping are also written to the persisted audit log.
"""

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from typing import Optional
import structlog

from models.admin import AdminProfile
from models.order import (
    OrderListResponse,
    OrderResponse,
    OrderStats,
    OrderStatus,
    OrderStatusUpdate,
    PaymentDecision,
    PaymentProofResponse,
    PaymentRejection,
)
from services.access_control import Capability
from services.log_service import get_log_service
from services.order_service import get_order_service
from routes.dependencies import require
from exceptions import AppError, PaymentProofNotFoundError

logger = structlog.get_logger(__name__)

router = APIRouter()

manage_orders = require(Capability.MANAGE_ORDERS)


def handle_error(e: Exception) -> JSONResponse:
    """Convert exception to JSON response."""
    if isinstance(e, AppError):
        return JSONResponse(
            status_code=e.status_code,
            content=e.to_dict()
        )
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


@router.get("", response_model=OrderListResponse)
async def list_orders(
    status: Optional[OrderStatus] = Query(None, description="Filter by status"),
    page: int = Query(0, ge=0, description="Page number (0-indexed)"),
    limit: int = Query(10, ge=1, le=100, description="Orders per page"),
    search: Optional[str] = Query(None, description="Order number or recipient name"),
    admin: AdminProfile = Depends(manage_orders)
):
    """Orders with items, newest first."""
    try:
        return get_order_service().get_all(
            status=status,
            page=page,
            limit=limit,
            search=search
        )
    except Exception as e:
        return handle_error(e)


@router.get("/stats", response_model=OrderStats)
async def order_stats(admin: AdminProfile = Depends(manage_orders)):
    try:
        return get_order_service().get_stats()
    except Exception as e:
        return handle_error(e)


@router.get("/{order_id}", response_model=OrderResponse)
async def get_order(order_id: str, admin: AdminProfile = Depends(manage_orders)):
    try:
        return get_order_service().get_by_id(order_id)
    except Exception as e:
        return handle_error(e)


@router.patch("/{order_id}/status", response_model=OrderResponse)
async def update_order_status(
    order_id: str,
    data: OrderStatusUpdate,
    admin: AdminProfile = Depends(manage_orders)
):
    try:
        order = get_order_service().update_status(order_id, data.status)
        get_log_service().info(
            f"Order status changed to {data.status.value}",
            "orders",
            user_id=admin.id,
            order_id=order_id
        )
        return order
    except Exception as e:
        return handle_error(e)


@router.get("/{order_id}/payment-proof", response_model=PaymentProofResponse)
async def get_payment_proof(order_id: str, admin: AdminProfile = Depends(manage_orders)):
    """
    Latest payment proof with a short-lived image URL.

    Raises:
        404: No proof uploaded
    """
    try:
        proof = get_order_service().get_payment_proof(order_id)
        if proof is None:
            raise PaymentProofNotFoundError(order_id)
        return proof
    except Exception as e:
        return handle_error(e)


@router.post("/{order_id}/approve", response_model=OrderResponse)
async def approve_payment(
    order_id: str,
    data: Optional[PaymentDecision] = None,
    admin: AdminProfile = Depends(manage_orders)
):
    """Verify the payment proof and move the order to processing."""
    notes = data.admin_notes if data else None
    try:
        order = get_order_service().approve_payment(admin, order_id, notes)
        get_log_service().info(
            "Payment approved",
            "orders",
            context={"admin_notes": notes},
            user_id=admin.id,
            order_id=order_id
        )
        return order
    except Exception as e:
        return handle_error(e)


@router.post("/{order_id}/reject", response_model=OrderResponse)
async def reject_payment(
    order_id: str,
    data: PaymentRejection,
    admin: AdminProfile = Depends(manage_orders)
):
    """Reject the payment proof; the order goes back to pending_payment."""
    try:
        order = get_order_service().reject_payment(admin, order_id, data.admin_notes)
        get_log_service().warn(
            "Payment rejected",
            "orders",
            context={"admin_notes": data.admin_notes},
            user_id=admin.id,
            order_id=order_id
        )
        return order
    except Exception as e:
        return handle_error(e)


@router.post("/{order_id}/ship", response_model=OrderResponse)
async def mark_as_shipped(order_id: str, admin: AdminProfile = Depends(manage_orders)):
    try:
        order = get_order_service().mark_as_shipped(order_id)
        get_log_service().info(
            "Order shipped",
            "orders",
            user_id=admin.id,
            order_id=order_id
        )
        return order
    except Exception as e:
        return handle_error(e)
