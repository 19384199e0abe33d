"""
Authorization policy for the allocation API.

Every operation the API exposes is listed in ``POLICY`` together with the
roles allowed to call it.  Superadmins appear explicitly in each row they
may use; there is no role that bypasses the table.  Hostel scoping (an admin
may only act on the hostels they own) is a second, per-object check done by
``can_access_hostel``.
"""
from __future__ import annotations

import enum

from .models import User

Role = User.Role


class Operation(enum.Enum):
    VIEW_PROFILE = 'view_profile'
    VIEW_HOSTELS = 'view_hostels'
    SUBMIT_APPLICATION = 'submit_application'
    VIEW_OWN_APPLICATION = 'view_own_application'
    CANCEL_APPLICATION = 'cancel_application'
    VIEW_APPLICATION = 'view_application'
    LIST_APPLICATIONS = 'list_applications'
    APPROVE_APPLICATION = 'approve_application'
    REJECT_APPLICATION = 'reject_application'
    VIEW_INVENTORY = 'view_inventory'
    CREATE_ROOM = 'create_room'
    CHANGE_ROOM_STATUS = 'change_room_status'
    VIEW_STUDENTS = 'view_students'
    ASSIGN_ROOM = 'assign_room'
    CHANGE_ROOM = 'change_room'
    REASSIGN_ROOM = 'reassign_room'
    REMOVE_FROM_ROOM = 'remove_from_room'
    REJECT_BY_PNR = 'reject_by_pnr'
    BLACKLIST_STUDENT = 'blacklist_student'
    MANAGE_ADMINS = 'manage_admins'
    MANAGE_HOSTELS = 'manage_hostels'
    VIEW_DASHBOARD = 'view_dashboard'


_ANY = frozenset({Role.STUDENT.value, Role.ADMIN.value, Role.SUPERADMIN.value})
_STAFF = frozenset({Role.ADMIN.value, Role.SUPERADMIN.value})
_STUDENT = frozenset({Role.STUDENT.value})
_SUPERADMIN = frozenset({Role.SUPERADMIN.value})

# Role values are stored as plain strings on User.role
POLICY: dict[Operation, frozenset[str]] = {
    Operation.VIEW_PROFILE: _ANY,
    Operation.VIEW_HOSTELS: _ANY,
    Operation.SUBMIT_APPLICATION: _STUDENT,
    Operation.VIEW_OWN_APPLICATION: _STUDENT,
    Operation.CANCEL_APPLICATION: _STUDENT,
    Operation.VIEW_APPLICATION: _ANY,
    Operation.LIST_APPLICATIONS: _STAFF,
    Operation.APPROVE_APPLICATION: _STAFF,
    Operation.REJECT_APPLICATION: _STAFF,
    Operation.VIEW_INVENTORY: _STAFF,
    Operation.CREATE_ROOM: _STAFF,
    Operation.CHANGE_ROOM_STATUS: _STAFF,
    Operation.VIEW_STUDENTS: _SUPERADMIN,
    Operation.ASSIGN_ROOM: _SUPERADMIN,
    Operation.CHANGE_ROOM: _SUPERADMIN,
    Operation.REASSIGN_ROOM: _SUPERADMIN,
    Operation.REMOVE_FROM_ROOM: _SUPERADMIN,
    Operation.REJECT_BY_PNR: _SUPERADMIN,
    Operation.BLACKLIST_STUDENT: _SUPERADMIN,
    Operation.MANAGE_ADMINS: _SUPERADMIN,
    Operation.MANAGE_HOSTELS: _SUPERADMIN,
    Operation.VIEW_DASHBOARD: _SUPERADMIN,
}


def is_allowed(user, operation: Operation) -> bool:
    """True when ``user`` holds a role listed for ``operation``."""
    if not (user and getattr(user, 'is_authenticated', False)):
        return False
    return str(getattr(user, 'role', '')) in POLICY.get(operation, frozenset())


def can_access_hostel(user, hostel) -> bool:
    """Superadmins see every hostel; admins only the hostels they own."""
    role = getattr(user, 'role', None)
    if role == Role.SUPERADMIN:
        return True
    if role == Role.ADMIN:
        return hostel is not None and hostel.admin_id == user.id
    return False
