"""
Role-based authorization.

``authorize`` is the one capability check used before order and review
mutations; ``HasRole`` exposes it as a DRF permission class.
"""

from rest_framework.permissions import BasePermission

from .models import User


def authorize(user, required_role: str) -> bool:
    """
    Decide whether ``user`` satisfies ``required_role``.

    ``User.Role.USER`` only requires an authenticated account;
    ``User.Role.ADMIN`` requires the admin role (or a superuser).
    """
    if user is None or not user.is_authenticated or not user.is_active:
        return False
    if required_role == User.Role.USER:
        return True
    return user.has_role(required_role)


def HasRole(required_role: str):
    """Build a DRF permission class bound to ``required_role``."""

    class _HasRole(BasePermission):
        message = (
            "Forbidden - Admin access required"
            if required_role == User.Role.ADMIN
            else "Unauthorized"
        )

        def has_permission(self, request, view):
            return authorize(request.user, required_role)

    _HasRole.__name__ = f"HasRole_{required_role}"
    return _HasRole


IsCustomer = HasRole(User.Role.USER)
IsAdmin = HasRole(User.Role.ADMIN)
