"""
Unit tests for AuthService.

Run: pytest tests/unit/test_auth_service.py -v
"""

import pytest
from types import SimpleNamespace

from services.auth_service import AuthService
from models.admin import AdminLogin
from exceptions import AuthenticationError, AuthorizationError

from tests.factories import AdminFactory


def sign_in_response(user_id: str = "admin-1"):
    return SimpleNamespace(
        user=SimpleNamespace(id=user_id),
        session=SimpleNamespace(access_token="access", refresh_token="refresh", expires_at=1750000000),
    )


class TestAuthServiceLogin:
    """Tests for login()"""

    def test_login_returns_session_and_stamps_last_login(self, mock_db, mock_supabase):
        # Arrange
        mock_supabase.set_table_data("admins", [AdminFactory.create(id="admin-1")])
        mock_supabase.auth.sign_in_with_password.return_value = sign_in_response()
        service = AuthService()

        # Act
        session = service.login(AdminLogin(email="admin@example.com", password="secret"))

        # Assert
        assert session.access_token == "access"
        assert session.refresh_token == "refresh"
        assert session.admin.id == "admin-1"
        update = mock_supabase.writes("admins", "update")[0]
        assert "last_login" in update["payload"]

    def test_bad_credentials_raise_authentication_error(self, mock_db, mock_supabase):
        # Arrange
        mock_supabase.auth.sign_in_with_password.side_effect = Exception("Invalid login credentials")
        service = AuthService()

        # Act & Assert
        with pytest.raises(AuthenticationError):
            service.login(AdminLogin(email="admin@example.com", password="wrong"))

    def test_user_without_admin_profile_is_forbidden(self, mock_db, mock_supabase):
        # Arrange
        mock_supabase.set_table_data("admins", [])
        mock_supabase.auth.sign_in_with_password.return_value = sign_in_response("shopper-1")
        service = AuthService()

        # Act & Assert
        with pytest.raises(AuthorizationError):
            service.login(AdminLogin(email="shopper@example.com", password="secret"))

        assert mock_supabase.writes("admins") == []

    def test_last_login_failure_does_not_block_login(self, mock_db, mock_supabase):
        # Arrange
        mock_supabase.set_table_data("admins", [AdminFactory.create(id="admin-1")])
        mock_supabase.auth.sign_in_with_password.return_value = sign_in_response()
        mock_supabase.fail("admins", "update")
        service = AuthService()

        # Act
        session = service.login(AdminLogin(email="admin@example.com", password="secret"))

        # Assert
        assert session.admin.id == "admin-1"


class TestAuthServiceCurrentAdmin:
    """Tests for get_current_admin()"""

    def test_valid_token_resolves_admin(self, mock_db, mock_supabase):
        # Arrange
        mock_supabase.set_table_data("admins", [AdminFactory.create(id="admin-1")])
        mock_supabase.auth.get_user.return_value = SimpleNamespace(user=SimpleNamespace(id="admin-1"))
        service = AuthService()

        # Act
        admin = service.get_current_admin("token")

        # Assert
        assert admin.id == "admin-1"
        mock_supabase.auth.get_user.assert_called_once_with("token")

    @pytest.mark.parametrize("token", [None, ""])
    def test_missing_token_is_unauthenticated(self, mock_db, token):
        with pytest.raises(AuthenticationError):
            AuthService().get_current_admin(token)

    def test_invalid_token_is_unauthenticated(self, mock_db, mock_supabase):
        # Arrange
        mock_supabase.auth.get_user.side_effect = Exception("JWT expired")
        service = AuthService()

        # Act & Assert
        with pytest.raises(AuthenticationError):
            service.get_current_admin("expired")

    def test_token_of_non_admin_is_forbidden(self, mock_db, mock_supabase):
        # Arrange
        mock_supabase.set_table_data("admins", [])
        mock_supabase.auth.get_user.return_value = SimpleNamespace(user=SimpleNamespace(id="shopper-1"))
        service = AuthService()

        # Act & Assert
        with pytest.raises(AuthorizationError):
            service.get_current_admin("token")
