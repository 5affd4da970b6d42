"""
Administrator account management.

Registering an admin is two calls (auth user, then admins row) and runs as a
Workflow so a failed profile insert removes the orphaned auth user.
"""

from typing import Optional
import structlog

from config import get_supabase_client, get_admin_client
from models.admin import (
    AdminDeleteResult,
    AdminProfile,
    AdminRegister,
    AdminRole,
)
from services.access_control import Capability, require_capability
from exceptions import (
    AdminEmailExistsError,
    AdminNotFoundError,
    DatabaseError,
    ExternalServiceError,
    LastSuperAdminError,
    SelfDeletionError,
)
from utils.workflow import Workflow

logger = structlog.get_logger(__name__)


class AdminService:
    """Listing, registering and removing admins."""

    def __init__(self):
        self.db = get_supabase_client()
        self.table = "admins"

    # ===================
    # READ OPERATIONS
    # ===================

    def get_all(self, actor: AdminProfile) -> list[AdminProfile]:
        """All admins, newest first."""
        require_capability(actor, Capability.VIEW_ADMINS)

        try:
            result = (
                self.db.table(self.table)
                .select("*")
                .order("created_at", desc=True)
                .execute()
            )
            admins = [AdminProfile(**row) for row in result.data]
            logger.info("admins_retrieved", count=len(admins))
            return admins
        except Exception as e:
            logger.error("get_admins_failed", error=str(e))
            raise DatabaseError("select", str(e))

    def get_by_id(self, admin_id: str) -> AdminProfile:
        """
        Raises:
            AdminNotFoundError: No admin with this id
        """
        try:
            result = (
                self.db.table(self.table)
                .select("*")
                .eq("id", admin_id)
                .execute()
            )
        except Exception as e:
            logger.error("get_admin_failed", admin_id=admin_id, error=str(e))
            raise DatabaseError("select", str(e))

        if not result.data:
            raise AdminNotFoundError(admin_id)
        return AdminProfile(**result.data[0])

    def email_exists(self, email: str) -> bool:
        try:
            result = (
                self.db.table(self.table)
                .select("id")
                .ilike("email", email)
                .execute()
            )
            return bool(result.data)
        except Exception as e:
            logger.error("admin_email_check_failed", error=str(e))
            raise DatabaseError("select", str(e))

    def count_super_admins(self) -> int:
        try:
            result = (
                self.db.table(self.table)
                .select("id", count="exact")
                .eq("role", AdminRole.SUPER_ADMIN.value)
                .execute()
            )
            return result.count or 0
        except Exception as e:
            logger.error("count_super_admins_failed", error=str(e))
            raise DatabaseError("count", str(e))

    # ===================
    # WRITE OPERATIONS
    # ===================

    def register(self, actor: AdminProfile, data: AdminRegister) -> AdminProfile:
        """
        Create an auth user and its admin profile.

        Raises:
            AuthorizationError: Actor is not a super admin
            AdminEmailExistsError: Email already registered as admin
            WorkflowStepError: Either call failed
        """
        require_capability(actor, Capability.MANAGE_ADMINS)

        logger.info("registering_admin", email=data.email, role=data.role.value, by=actor.id)

        if self.email_exists(data.email):
            raise AdminEmailExistsError(data.email)

        workflow = Workflow("register_admin")
        workflow.step(
            "create_auth_user",
            lambda results: self._create_auth_user(data),
            compensate=self._delete_auth_user
        )
        workflow.step(
            "create_admin_profile",
            lambda results: self._insert_profile(results["create_auth_user"], data)
        )
        results = workflow.run()

        admin = results["create_admin_profile"]
        logger.info("admin_registered", admin_id=admin.id, role=admin.role.value)
        return admin

    def delete(self, actor: AdminProfile, admin_id: str) -> AdminDeleteResult:
        """
        Remove an admin profile and its auth user.

        Auth user cleanup failure is reported as a warning; the admin has
        already lost access once the profile row is gone.

        Raises:
            AuthorizationError: Actor is not a super admin
            SelfDeletionError: Actor tried to remove themselves
            AdminNotFoundError: No such admin
            LastSuperAdminError: Target is the only super admin
        """
        require_capability(actor, Capability.MANAGE_ADMINS)

        if actor.id == admin_id:
            raise SelfDeletionError(admin_id)

        target = self.get_by_id(admin_id)
        if target.is_super_admin and self.count_super_admins() <= 1:
            raise LastSuperAdminError(admin_id)

        logger.info("deleting_admin", admin_id=admin_id, by=actor.id)

        try:
            self.db.table(self.table).delete().eq("id", admin_id).execute()
        except Exception as e:
            logger.error("delete_admin_failed", admin_id=admin_id, error=str(e))
            raise DatabaseError("delete", str(e))

        try:
            self._delete_auth_user(admin_id)
        except Exception as e:
            logger.warning("admin_auth_cleanup_failed", admin_id=admin_id, error=str(e))
            return AdminDeleteResult(
                success=True,
                warning="Admin removed but auth cleanup failed"
            )

        logger.info("admin_deleted", admin_id=admin_id)
        return AdminDeleteResult(success=True)

    # ===================
    # WORKFLOW STEPS
    # ===================

    def _create_auth_user(self, data: AdminRegister) -> str:
        """Create the auth user; returns its id."""
        credentials = {"email": data.email, "password": data.password}
        admin_client = get_admin_client()

        if admin_client is not None:
            response = admin_client.auth.admin.create_user(
                {**credentials, "email_confirm": True}
            )
        else:
            response = self.db.auth.sign_up(credentials)

        user = getattr(response, "user", None)
        if user is None:
            raise ExternalServiceError("auth", "Failed to create user")
        return user.id

    def _delete_auth_user(self, user_id: str) -> None:
        admin_client = get_admin_client()
        if admin_client is None:
            raise ExternalServiceError("auth", "Service role key not configured")
        admin_client.auth.admin.delete_user(user_id)

    def _insert_profile(self, user_id: str, data: AdminRegister) -> AdminProfile:
        try:
            result = (
                self.db.table(self.table)
                .insert({
                    "id": user_id,
                    "name": data.name,
                    "email": data.email,
                    "role": data.role.value,
                })
                .execute()
            )
        except Exception as e:
            raise DatabaseError("insert", str(e))
        return AdminProfile(**result.data[0])


# Singleton instance for convenience
_admin_service: Optional[AdminService] = None


def get_admin_service() -> AdminService:
    """Get or create AdminService instance."""
    global _admin_service
    if _admin_service is None:
        _admin_service = AdminService()
    return _admin_service
