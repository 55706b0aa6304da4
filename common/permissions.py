"""Role-based DRF permissions.

Reads are open to any authenticated user; unsafe methods require one of the
roles configured on the view (``write_roles``).
"""

from rest_framework import permissions

from .choices import Role

APPROVER_ROLES = frozenset({Role.ADMIN, Role.MANAGER})
DISPATCH_ROLES = frozenset({Role.ADMIN, Role.SALES, Role.WAREHOUSE, Role.MANAGER})
RETURNS_ROLES = frozenset({Role.ADMIN, Role.SALES, Role.MANAGER})
FINANCE_ROLES = frozenset({Role.ADMIN, Role.ACCOUNTS, Role.MANAGER})
CATALOG_ROLES = frozenset({Role.ADMIN, Role.WAREHOUSE, Role.MANAGER})
CRM_ROLES = frozenset({Role.ADMIN, Role.SALES, Role.MANAGER})


def user_has_role(user, roles) -> bool:
    if user is None or not getattr(user, "is_authenticated", False):
        return False
    if getattr(user, "is_superuser", False):
        return True
    return getattr(user, "role", None) in roles


class RoleWritePermission(permissions.BasePermission):
    message = "You do not have permission to modify these records."

    def has_permission(self, request, view):
        if not (request.user and request.user.is_authenticated):
            return False
        if request.method in permissions.SAFE_METHODS:
            return True
        roles = getattr(view, "write_roles", None)
        if roles is None:
            return True
        return user_has_role(request.user, roles)
