"""
Admin authentication against Supabase Auth.

A signed-in auth user is only an admin if a row with the same id exists in
the admins table.
"""

from datetime import datetime, timezone
from typing import Optional
import structlog

from config import get_supabase_client
from models.admin import AdminLogin, AdminProfile, AdminSession
from exceptions import (
    AuthenticationError,
    AuthorizationError,
    DatabaseError,
    ExternalServiceError,
)

logger = structlog.get_logger(__name__)


class AuthService:
    """Sign-in, sign-out and bearer token resolution."""

    def __init__(self):
        self.db = get_supabase_client()
        self.table = "admins"

    def login(self, data: AdminLogin) -> AdminSession:
        """
        Sign in with email and password.

        Raises:
            AuthenticationError: Bad credentials
            AuthorizationError: Valid user without an admin profile
        """
        logger.info("admin_login_attempt", email=data.email)

        try:
            response = self.db.auth.sign_in_with_password({
                "email": data.email,
                "password": data.password,
            })
        except Exception as e:
            logger.warning("admin_login_failed", email=data.email, error=str(e))
            raise AuthenticationError("Invalid email or password")

        user = getattr(response, "user", None)
        session = getattr(response, "session", None)
        if user is None or session is None:
            raise AuthenticationError("Invalid email or password")

        admin = self.get_profile(user.id)
        if admin is None:
            logger.warning("non_admin_login_rejected", user_id=user.id)
            raise AuthorizationError("Admin access required")

        self._stamp_last_login(admin.id)

        logger.info("admin_logged_in", admin_id=admin.id, role=admin.role.value)

        return AdminSession(
            access_token=session.access_token,
            refresh_token=getattr(session, "refresh_token", None),
            expires_at=getattr(session, "expires_at", None),
            admin=admin,
        )

    def logout(self) -> None:
        """End the current auth session."""
        try:
            self.db.auth.sign_out()
            logger.info("admin_logged_out")
        except Exception as e:
            logger.error("admin_logout_failed", error=str(e))
            raise ExternalServiceError("auth", f"Sign out failed: {e}")

    def get_current_admin(self, access_token: Optional[str]) -> AdminProfile:
        """
        Resolve a bearer token to an admin profile.

        Raises:
            AuthenticationError: Missing, invalid or expired token
            AuthorizationError: Token belongs to a non-admin user
        """
        if not access_token:
            raise AuthenticationError()

        try:
            response = self.db.auth.get_user(access_token)
        except Exception as e:
            logger.debug("token_rejected", error=str(e))
            raise AuthenticationError("Invalid or expired token")

        user = getattr(response, "user", None) if response else None
        if user is None:
            raise AuthenticationError("Invalid or expired token")

        admin = self.get_profile(user.id)
        if admin is None:
            raise AuthorizationError("Admin access required")

        return admin

    def get_profile(self, user_id: str) -> Optional[AdminProfile]:
        """Admin row for an auth user id, or None."""
        try:
            result = (
                self.db.table(self.table)
                .select("*")
                .eq("id", user_id)
                .execute()
            )
        except Exception as e:
            logger.error("get_admin_profile_failed", user_id=user_id, error=str(e))
            raise DatabaseError("select", str(e))

        if not result.data:
            return None
        return AdminProfile(**result.data[0])

    def _stamp_last_login(self, admin_id: str) -> None:
        try:
            self.db.table(self.table).update({
                "last_login": datetime.now(timezone.utc).isoformat()
            }).eq("id", admin_id).execute()
        except Exception as e:
            # Login stands without the timestamp
            logger.warning("last_login_update_failed", admin_id=admin_id, error=str(e))


# Singleton instance for convenience
_auth_service: Optional[AuthService] = None


def get_auth_service() -> AuthService:
    """Get or create AuthService instance."""
    global _auth_service
    if _auth_service is None:
        _auth_service = AuthService()
    return _auth_service
