"""
Unit tests for OrderService.

Run: pytest tests/unit/test_order_service.py -v
"""

import pytest

from services.order_service import OrderService, get_order_service
from models.order import OrderStatus, PaymentStatus
from exceptions import (
    AuthenticationError,
    DatabaseError,
    OrderNotFoundError,
    PaymentProofNotFoundError,
    WorkflowStepError,
)

from tests.conftest import SIGNED_URL
from tests.factories import OrderFactory, PaymentProofFactory


class TestOrderServiceGetAll:
    """Tests for get_all()"""

    def test_get_all_returns_page_and_total_pages(self, mock_db, mock_supabase):
        # Arrange
        mock_supabase.set_table_data("orders", [OrderFactory.create() for _ in range(23)])
        service = OrderService()

        # Act
        result = service.get_all(page=2, limit=10)

        # Assert
        assert len(result.orders) == 3
        assert result.total == 23
        assert result.page == 2
        assert result.total_pages == 3

    def test_get_all_requests_page_range(self, mock_db, mock_supabase):
        # Arrange
        mock_supabase.set_table_data("orders", [])
        service = OrderService()

        # Act
        result = service.get_all(page=1, limit=5)

        # Assert
        assert result.orders == []
        assert result.total_pages == 0

    def test_get_all_filters_by_status(self, mock_db, mock_supabase):
        # Arrange
        mock_supabase.set_table_data("orders", [
            OrderFactory.create(status="processing"),
            OrderFactory.create(status="shipped"),
        ])
        service = OrderService()

        # Act
        result = service.get_all(status=OrderStatus.SHIPPED)

        # Assert
        assert [o.status for o in result.orders] == [OrderStatus.SHIPPED]

    def test_search_strips_filter_syntax(self, mock_db, mock_supabase):
        # Arrange
        mock_supabase.set_table_data("orders", [])
        service = OrderService()

        # Act
        service.get_all(search="ORD,(1)")

        # Assert
        filters = mock_supabase.operations[-1]["filters"]
        or_filter = next(f for f in filters if f[0] == "or")
        assert or_filter[1] == "order_number.ilike.%ORD  1%,recipient_name.ilike.%ORD  1%"

    def test_blank_search_is_ignored(self, mock_db, mock_supabase):
        # Arrange
        mock_supabase.set_table_data("orders", [])
        service = OrderService()

        # Act
        service.get_all(search="  ")

        # Assert
        filters = mock_supabase.operations[-1]["filters"]
        assert not any(f[0] == "or" for f in filters)

    def test_database_failure_raises_database_error(self, mock_db, mock_supabase):
        # Arrange
        mock_supabase.fail("orders", "select")
        service = OrderService()

        # Act & Assert
        with pytest.raises(DatabaseError):
            service.get_all()


class TestOrderServiceGetById:
    """Tests for get_by_id() and get_stats()"""

    def test_get_by_id_includes_items(self, mock_db, mock_supabase):
        # Arrange
        mock_supabase.set_table_data("orders", [OrderFactory.create(id="o1")])
        service = OrderService()

        # Act
        order = service.get_by_id("o1")

        # Assert
        assert order.id == "o1"
        assert order.order_items[0].quantity == 2
        assert order.order_items[0].variant_snapshot.variant_name == "Boneka Kelinci"

    def test_get_by_id_not_found_raises_error(self, mock_db, mock_supabase):
        # Arrange
        mock_supabase.set_table_data("orders", [])
        service = OrderService()

        # Act & Assert
        with pytest.raises(OrderNotFoundError):
            service.get_by_id("missing")

    def test_get_stats_counts_per_status(self, mock_db, mock_supabase):
        # Arrange
        mock_supabase.set_table_data("orders", [
            {"status": "pending_payment"},
            {"status": "processing"},
            {"status": "processing"},
            {"status": "delivered"},
        ])
        service = OrderService()

        # Act
        stats = service.get_stats()

        # Assert
        assert stats.total == 4
        assert stats.pending_payment == 1
        assert stats.processing == 2
        assert stats.delivered == 1
        assert stats.shipped == 0


class TestOrderServiceStatus:
    """Tests for update_status() and mark_as_shipped()"""

    def test_mark_as_shipped_writes_status(self, mock_db, mock_supabase):
        # Arrange
        mock_supabase.set_table_data("orders", [OrderFactory.create(id="o1", status="processing")])
        service = OrderService()

        # Act
        service.mark_as_shipped("o1")

        # Assert
        update = mock_supabase.writes("orders", "update")[0]
        assert update["payload"]["status"] == "shipped"
        assert "updated_at" in update["payload"]
        assert ("eq", "id", "o1") in update["filters"]

    def test_update_missing_order_raises_error(self, mock_db, mock_supabase):
        # Arrange
        mock_supabase.set_table_data("orders", [])
        service = OrderService()

        # Act & Assert
        with pytest.raises(OrderNotFoundError):
            service.update_status("missing", OrderStatus.CANCELLED)

        assert mock_supabase.writes("orders") == []


class TestOrderServicePaymentProof:
    """Tests for get_payment_proof()"""

    def test_returns_signed_url(self, mock_db, mock_supabase):
        # Arrange
        mock_supabase.set_table_data("payment_proofs", [PaymentProofFactory.create(order_id="o1")])
        service = OrderService()

        # Act
        proof = service.get_payment_proof("o1")

        # Assert
        assert proof.image_url == SIGNED_URL
        mock_supabase.storage.from_.assert_called_with("OrderReceipts")
        mock_supabase.storage.from_.return_value.create_signed_url.assert_called_once_with(
            "o1/receipt.jpg", 3600
        )

    def test_no_proof_returns_none(self, mock_db, mock_supabase):
        # Arrange
        mock_supabase.set_table_data("payment_proofs", [])
        service = OrderService()

        # Act & Assert
        assert service.get_payment_proof("o1") is None

    def test_unreadable_url_falls_back_to_stored_url(self, mock_db, mock_supabase):
        # Arrange
        stored = "https://cdn.example.com/receipt.jpg"
        mock_supabase.set_table_data("payment_proofs", [
            PaymentProofFactory.create(order_id="o1", image_url=stored)
        ])
        service = OrderService()

        # Act
        proof = service.get_payment_proof("o1")

        # Assert
        assert proof.image_url == stored
        mock_supabase.storage.from_.return_value.create_signed_url.assert_not_called()

    def test_signing_failure_falls_back_to_stored_url(self, mock_db, mock_supabase):
        # Arrange
        row = PaymentProofFactory.create(order_id="o1")
        mock_supabase.set_table_data("payment_proofs", [row])
        mock_supabase.storage.from_.return_value.create_signed_url.side_effect = Exception("denied")
        service = OrderService()

        # Act
        proof = service.get_payment_proof("o1")

        # Assert
        assert proof.image_url == row["image_url"]


class TestOrderServicePaymentDecision:
    """Tests for approve_payment() and reject_payment()"""

    @pytest.fixture
    def order_with_proof(self, mock_supabase):
        mock_supabase.set_table_data("orders", [OrderFactory.create(id="o1")])
        mock_supabase.set_table_data("payment_proofs", [
            PaymentProofFactory.create(order_id="o1", id="proof-1")
        ])

    def test_approve_verifies_proof_and_processes_order(
        self, mock_db, mock_supabase, super_admin, order_with_proof
    ):
        # Arrange
        service = OrderService()

        # Act
        service.approve_payment(super_admin, "o1", admin_notes="Transfer diterima")

        # Assert
        proof_update = mock_supabase.writes("payment_proofs", "update")[0]
        assert proof_update["payload"]["status"] == "verified"
        assert proof_update["payload"]["verified_by"] == "super-1"
        assert proof_update["payload"]["admin_notes"] == "Transfer diterima"
        assert proof_update["payload"]["verified_at"] is not None
        assert ("eq", "id", "proof-1") in proof_update["filters"]

        order_update = mock_supabase.writes("orders", "update")[0]
        assert order_update["payload"]["status"] == "processing"

    def test_reject_returns_order_to_pending_payment(
        self, mock_db, mock_supabase, regular_admin, order_with_proof
    ):
        # Arrange
        service = OrderService()

        # Act
        service.reject_payment(regular_admin, "o1", admin_notes="Nominal kurang")

        # Assert
        proof_update = mock_supabase.writes("payment_proofs", "update")[0]
        assert proof_update["payload"]["status"] == PaymentStatus.REJECTED.value
        order_update = mock_supabase.writes("orders", "update")[0]
        assert order_update["payload"]["status"] == "pending_payment"

    def test_failed_order_update_restores_proof(
        self, mock_db, mock_supabase, super_admin, order_with_proof
    ):
        # Arrange
        mock_supabase.fail("orders", "update")
        service = OrderService()

        # Act
        with pytest.raises(WorkflowStepError) as exc_info:
            service.approve_payment(super_admin, "o1")

        # Assert
        assert exc_info.value.failed_step == "update_order_status"
        assert exc_info.value.compensated_steps == ["update_payment_proof"]

        decided, restored = mock_supabase.writes("payment_proofs", "update")
        assert decided["payload"]["status"] == "verified"
        assert restored["payload"] == {
            "status": "pending",
            "verified_at": None,
            "verified_by": None,
            "admin_notes": None,
        }

    def test_missing_proof_raises_error(self, mock_db, mock_supabase, super_admin):
        # Arrange
        mock_supabase.set_table_data("orders", [OrderFactory.create(id="o1")])
        mock_supabase.set_table_data("payment_proofs", [])
        service = OrderService()

        # Act & Assert
        with pytest.raises(PaymentProofNotFoundError):
            service.approve_payment(super_admin, "o1")

        assert mock_supabase.writes("orders") == []

    def test_missing_actor_is_refused(self, mock_db, mock_supabase, order_with_proof):
        # Arrange
        service = OrderService()

        # Act & Assert
        with pytest.raises(AuthenticationError):
            service.approve_payment(None, "o1")

        assert mock_supabase.writes("payment_proofs") == []


class TestGetOrderService:
    """Tests for get_order_service() singleton"""

    def test_returns_same_instance(self, mock_db):
        assert get_order_service() is get_order_service()
