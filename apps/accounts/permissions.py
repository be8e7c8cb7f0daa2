"""
Role checks on top of the session identity.

All classes expect ``request.user`` to be an ``Identity`` (or Django's
``AnonymousUser`` for callers without a session). Combine them with
``IsAuthenticated`` so that anonymous callers get 401 rather than 403.

Usage:
    @permission_classes([IsAuthenticated, IsStaffIdentity])
    def some_view(request):
        ...
"""
from rest_framework.permissions import BasePermission


class IsStaffIdentity(BasePermission):
    """Owner, admin or repair staff."""

    message = 'Staff access required.'

    def has_permission(self, request, view):
        return bool(getattr(request.user, 'is_staff', False))


class IsPrivilegedIdentity(BasePermission):
    """Owner or admin."""

    message = 'Owner or admin access required.'

    def has_permission(self, request, view):
        return bool(getattr(request.user, 'is_privileged', False))


class IsMemberSelfOrStaff(BasePermission):
    """
    Members may only touch their own record; staff may touch any.

    Works for objects that are members themselves or that carry a
    ``member_id`` (ledger rows, carts).
    """

    message = 'You can only access your own member account.'

    def has_object_permission(self, request, view, obj):
        member_id = getattr(obj, 'member_id', obj.pk)
        can_access = getattr(request.user, 'can_access_member', None)
        return bool(can_access and can_access(member_id))
