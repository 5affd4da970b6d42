"""
Order service.

Orders are created by the storefront. Admins page through them, move them
through their status lifecycle and verify payment proofs:

    pending_payment → payment_uploaded → processing → shipped → delivered
                      (reject → pending_payment)      (any → cancelled)
"""

import re
from datetime import datetime, timezone
from typing import Optional
import structlog

from config import get_supabase_client, settings
from models.admin import AdminProfile
from models.base import PaginationParams, total_pages
from models.order import (
    OrderListResponse,
    OrderResponse,
    OrderStats,
    OrderStatus,
    PaymentProofResponse,
    PaymentStatus,
)
from services.access_control import Capability, require_capability
from exceptions import (
    DatabaseError,
    OrderNotFoundError,
    PaymentProofNotFoundError,
)
from utils.storage import extract_object_path, read_signed_url
from utils.workflow import Workflow

logger = structlog.get_logger(__name__)

ORDER_SELECT = "*, order_items(*)"

# Characters that would break a PostgREST or() filter
_SEARCH_UNSAFE = re.compile(r"[,()]")


class OrderService:
    """Admin view of orders and payment proofs."""

    def __init__(self):
        self.db = get_supabase_client()
        self.table = "orders"
        self.proofs_table = "payment_proofs"

    # ===================
    # READ OPERATIONS
    # ===================

    def get_all(
        self,
        status: Optional[OrderStatus] = None,
        page: int = 0,
        limit: int = 10,
        search: Optional[str] = None
    ) -> OrderListResponse:
        """
        Orders with items, newest first.

        Args:
            status: Filter by status
            page: 0-indexed page
            limit: Orders per page
            search: Matches order number or recipient name
        """
        logger.info("getting_orders", status=status, page=page, limit=limit, search=search)

        paging = PaginationParams(page=page, page_size=limit)

        try:
            query = (
                self.db.table(self.table)
                .select(ORDER_SELECT, count="exact")
                .order("created_at", desc=True)
            )

            if status:
                query = query.eq("status", status.value)

            term = _SEARCH_UNSAFE.sub(" ", search or "").strip()
            if term:
                query = query.or_(
                    f"order_number.ilike.%{term}%,recipient_name.ilike.%{term}%"
                )

            result = query.range(paging.offset, paging.range_end).execute()

        except Exception as e:
            logger.error("get_orders_failed", error=str(e))
            raise DatabaseError("select", str(e))

        orders = [OrderResponse(**row) for row in result.data]
        total = result.count or 0

        logger.info("orders_retrieved", count=len(orders), total=total)

        return OrderListResponse(
            orders=orders,
            total=total,
            page=page,
            total_pages=total_pages(total, limit),
        )

    def get_by_id(self, order_id: str) -> OrderResponse:
        """
        Raises:
            OrderNotFoundError: No such order
        """
        try:
            result = (
                self.db.table(self.table)
                .select(ORDER_SELECT)
                .eq("id", order_id)
                .execute()
            )
        except Exception as e:
            logger.error("get_order_failed", order_id=order_id, error=str(e))
            raise DatabaseError("select", str(e))

        if not result.data:
            raise OrderNotFoundError(order_id)
        return OrderResponse(**result.data[0])

    def get_stats(self) -> OrderStats:
        """Order counts per status."""
        try:
            result = self.db.table(self.table).select("status").execute()
        except Exception as e:
            logger.error("get_order_stats_failed", error=str(e))
            raise DatabaseError("select", str(e))

        counts = {s.value: 0 for s in OrderStatus}
        for row in result.data:
            if row.get("status") in counts:
                counts[row["status"]] += 1

        return OrderStats(total=len(result.data), **counts)

    # ===================
    # STATUS
    # ===================

    def update_status(self, order_id: str, status: OrderStatus) -> OrderResponse:
        """
        Raises:
            OrderNotFoundError: No such order
        """
        logger.info("updating_order_status", order_id=order_id, status=status.value)

        self.get_by_id(order_id)
        self._set_status(order_id, status)

        logger.info("order_status_updated", order_id=order_id, status=status.value)
        return self.get_by_id(order_id)

    def mark_as_shipped(self, order_id: str) -> OrderResponse:
        return self.update_status(order_id, OrderStatus.SHIPPED)

    def _set_status(self, order_id: str, status: OrderStatus) -> None:
        try:
            self.db.table(self.table).update({
                "status": status.value,
                "updated_at": datetime.now(timezone.utc).isoformat(),
            }).eq("id", order_id).execute()
        except Exception as e:
            logger.error("set_order_status_failed", order_id=order_id, error=str(e))
            raise DatabaseError("update", str(e))

    # ===================
    # PAYMENT PROOFS
    # ===================

    def get_latest_proof(self, order_id: str) -> Optional[PaymentProofResponse]:
        """Most recent proof row as stored, or None."""
        try:
            result = (
                self.db.table(self.proofs_table)
                .select("*")
                .eq("order_id", order_id)
                .order("uploaded_at", desc=True)
                .limit(1)
                .execute()
            )
        except Exception as e:
            logger.error("get_payment_proof_failed", order_id=order_id, error=str(e))
            raise DatabaseError("select", str(e))

        if not result.data:
            return None
        return PaymentProofResponse(**result.data[0])

    def get_payment_proof(self, order_id: str) -> Optional[PaymentProofResponse]:
        """
        Latest proof with a short-lived signed image URL.

        Falls back to the stored URL if the object path cannot be read from
        it or signing fails.
        """
        proof = self.get_latest_proof(order_id)
        if proof is None:
            logger.info("payment_proof_missing", order_id=order_id)
            return None

        bucket = settings.payment_proofs_bucket
        path = extract_object_path(proof.image_url, bucket)
        if not path:
            logger.warning("payment_proof_path_unreadable", order_id=order_id)
            return proof

        try:
            signed = self.db.storage.from_(bucket).create_signed_url(
                path,
                settings.payment_proof_url_ttl_seconds
            )
            signed_url = read_signed_url(signed)
        except Exception as e:
            logger.warning("payment_proof_signing_failed", order_id=order_id, error=str(e))
            return proof

        if not signed_url:
            return proof
        return proof.model_copy(update={"image_url": signed_url})

    def approve_payment(
        self,
        actor: AdminProfile,
        order_id: str,
        admin_notes: Optional[str] = None
    ) -> OrderResponse:
        """Proof → verified, order → processing."""
        return self._decide_payment(
            actor, order_id, PaymentStatus.VERIFIED, OrderStatus.PROCESSING, admin_notes
        )

    def reject_payment(
        self,
        actor: AdminProfile,
        order_id: str,
        admin_notes: str
    ) -> OrderResponse:
        """Proof → rejected, order back to pending_payment."""
        return self._decide_payment(
            actor, order_id, PaymentStatus.REJECTED, OrderStatus.PENDING_PAYMENT, admin_notes
        )

    def _decide_payment(
        self,
        actor: AdminProfile,
        order_id: str,
        proof_status: PaymentStatus,
        order_status: OrderStatus,
        admin_notes: Optional[str]
    ) -> OrderResponse:
        """
        Record a payment decision and move the order.

        Runs as a workflow: if the order update fails the proof is put back
        to its previous state.

        Raises:
            OrderNotFoundError: No such order
            PaymentProofNotFoundError: Nothing uploaded yet
            WorkflowStepError: One of the two updates failed
        """
        require_capability(actor, Capability.MANAGE_ORDERS)

        order = self.get_by_id(order_id)
        proof = self.get_latest_proof(order_id)
        if proof is None:
            raise PaymentProofNotFoundError(order_id)

        logger.info(
            "deciding_payment",
            order_id=order_id,
            decision=proof_status.value,
            by=actor.id
        )

        previous_proof = {
            "status": proof.status.value,
            "verified_at": proof.verified_at.isoformat() if proof.verified_at else None,
            "verified_by": proof.verified_by,
            "admin_notes": proof.admin_notes,
        }

        workflow = Workflow(f"payment_{proof_status.value}")
        workflow.step(
            "update_payment_proof",
            lambda results: self._update_proof(proof.id, {
                "status": proof_status.value,
                "verified_at": datetime.now(timezone.utc).isoformat(),
                "verified_by": actor.id,
                "admin_notes": admin_notes,
            }),
            compensate=lambda _: self._update_proof(proof.id, previous_proof)
        )
        workflow.step(
            "update_order_status",
            lambda results: self._set_status(order.id, order_status),
            compensate=lambda _: self._set_status(order.id, order.status)
        )
        workflow.run()

        logger.info(
            "payment_decided",
            order_id=order_id,
            decision=proof_status.value,
            order_status=order_status.value
        )
        return self.get_by_id(order_id)

    def _update_proof(self, proof_id: str, data: dict) -> None:
        try:
            self.db.table(self.proofs_table).update(data).eq("id", proof_id).execute()
        except Exception as e:
            logger.error("update_payment_proof_failed", proof_id=proof_id, error=str(e))
            raise DatabaseError("update", str(e))


# Singleton instance for convenience
_order_service: Optional[OrderService] = None


def get_order_service() -> OrderService:
    """Get or create OrderService instance."""
    global _order_service
    if _order_service is None:
        _order_service = OrderService()
    return _order_service
