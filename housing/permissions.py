"""
DRF permission classes generated from ``housing.policy.POLICY``.
"""
from rest_framework.exceptions import PermissionDenied
from rest_framework.permissions import BasePermission

from .exceptions import HostelAccessDenied
from .policy import Operation, can_access_hostel, is_allowed


class PolicyPermission(BasePermission):
    """Allow the request when the user's role may perform ``operation``."""
    operation: Operation = None
    message = 'You do not have permission to perform this action.'

    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        return is_allowed(getattr(request, 'user', None), self.operation)


def allows(operation: Operation) -> type:
    """Build a permission class bound to one policy row."""
    name = 'Allows' + ''.join(part.title() for part in operation.value.split('_'))
    return type(name, (PolicyPermission,), {'operation': operation})


def ensure_hostel_access(user, hostel) -> None:
    if not can_access_hostel(user, hostel):
        raise HostelAccessDenied()


def require(request, operation: Operation) -> None:
    """Per-method policy check for views that serve several operations on one path."""
    if not is_allowed(getattr(request, 'user', None), operation):
        raise PermissionDenied()
