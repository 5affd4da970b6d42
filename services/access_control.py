"""
Role-based access control.

The one place that maps admin roles to what they may do. Routes and
services call require_capability() instead of comparing role strings.
"""

from enum import Enum
from typing import Optional

from exceptions import AuthenticationError, AuthorizationError
from models.admin import AdminProfile, AdminRole


class Capability(str, Enum):
    """Things an admin can be allowed to do."""
    VIEW_DASHBOARD = "view_dashboard"
    MANAGE_CATALOG = "manage_catalog"
    MANAGE_ORDERS = "manage_orders"
    MANAGE_SETTINGS = "manage_settings"
    VIEW_ADMINS = "view_admins"
    MANAGE_ADMINS = "manage_admins"


_ADMIN_CAPABILITIES = frozenset({
    Capability.VIEW_DASHBOARD,
    Capability.MANAGE_CATALOG,
    Capability.MANAGE_ORDERS,
    Capability.MANAGE_SETTINGS,
    Capability.VIEW_ADMINS,
})

ROLE_CAPABILITIES: dict[AdminRole, frozenset[Capability]] = {
    AdminRole.ADMIN: _ADMIN_CAPABILITIES,
    AdminRole.SUPER_ADMIN: _ADMIN_CAPABILITIES | {Capability.MANAGE_ADMINS},
}


def capabilities_for(role: AdminRole) -> frozenset[Capability]:
    return ROLE_CAPABILITIES.get(role, frozenset())


def has_capability(admin: Optional[AdminProfile], capability: Capability) -> bool:
    """True when the admin's role grants the capability."""
    if admin is None:
        return False
    return capability in capabilities_for(admin.role)


def require_capability(admin: Optional[AdminProfile], capability: Capability) -> AdminProfile:
    """
    Gate an operation.

    Returns:
        The admin, for chaining

    Raises:
        AuthenticationError: No admin
        AuthorizationError: Role lacks the capability
    """
    if admin is None:
        raise AuthenticationError()
    if not has_capability(admin, capability):
        raise AuthorizationError(
            message=f"Requires {capability.value} permission",
            details={"role": admin.role.value, "capability": capability.value}
        )
    return admin
