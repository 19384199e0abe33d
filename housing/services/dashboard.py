"""
Superadmin dashboard aggregation.

The detailed dashboard is expensive (it lists every student, room and
application) so it is served through ``DashboardCache``.  The cache is
read-side only: allocation operations never read or invalidate it, and a
stale dashboard simply lags behind for up to ``DASHBOARD_CACHE_TTL``
seconds.
"""
from __future__ import annotations

from typing import Any, Optional

from django.conf import settings
from django.core.cache import cache as default_cache
from django.utils import timezone

from housing.models import Application, ApplicationStatus, Hostel, Room, Student, User
from housing.services.allocation import available_rooms_queryset
from housing.services.formats import (
    format_admin,
    format_application,
    format_hostel,
    format_room,
    format_student,
)
from housing.services.hostels import hostel_statistics

DETAILED_KEY = 'dashboard:detailed'


class DashboardCache:
    """get / set / invalidate port over a Django cache backend."""

    def __init__(self, backend=None, ttl: Optional[int] = None, key: str = DETAILED_KEY):
        self.backend = backend if backend is not None else default_cache
        self.ttl = ttl if ttl is not None else getattr(settings, 'DASHBOARD_CACHE_TTL', 300)
        self.key = key

    def get(self) -> Optional[tuple[Any, float]]:
        """Return ``(data, stored_at_timestamp)`` or None on a miss."""
        entry = self.backend.get(self.key)
        if not entry:
            return None
        return entry['data'], entry['storedAt']

    def set(self, data: Any) -> None:
        self.backend.set(self.key, {'data': data, 'storedAt': timezone.now().timestamp()}, self.ttl)

    def invalidate(self) -> None:
        self.backend.delete(self.key)


def overview() -> dict:
    return {
        'counts': {
            'admins': User.objects.exclude(role=User.Role.STUDENT).count(),
            'students': Student.objects.count(),
            'hostels': Hostel.objects.count(),
            'rooms': Room.objects.count(),
            'applications': Application.objects.count(),
        }
    }


def _applications(status: str, order: str) -> list[dict]:
    qs = Application.objects.filter(status=status).select_related('hostel').order_by(order)
    return [format_application(a) for a in qs]


def build_detailed() -> dict:
    students = [format_student(s) for s in Student.objects.order_by('-created_at')]
    admins = [format_admin(a, with_hostels=True)
              for a in User.objects.exclude(role=User.Role.STUDENT).order_by('-date_joined')]
    hostels = []
    for hostel in Hostel.objects.select_related('admin').order_by('-created_at'):
        hostels.append({**format_hostel(hostel), **hostel_statistics(hostel)})
    rooms = [format_room(r) for r in Room.objects.order_by('floor', 'room_number')]
    occupied = [format_room(r) for r in Room.objects.filter(occupied_spaces__gt=0).order_by('floor', 'room_number')]
    available = [format_room(r) for r in available_rooms_queryset().order_by('floor', 'room_number')]
    pending = _applications(ApplicationStatus.PENDING, '-applied_on')
    approved = _applications(ApplicationStatus.APPROVED, '-approved_on')
    rejected = _applications(ApplicationStatus.REJECTED, '-updated_at')
    blacklisted = [format_student(s) for s in Student.objects.filter(is_blacklisted=True).order_by('-created_at')]

    return {
        'totalStudentsCount': len(students),
        'totalStudents': students,
        'totalAdminsCount': len(admins),
        'totalAdmins': admins,
        'totalHostelsCount': len(hostels),
        'totalHostels': hostels,
        'totalRoomsCount': len(rooms),
        'totalRooms': rooms,
        'occupiedRoomsCount': len(occupied),
        'occupiedRooms': occupied,
        'availableRoomsCount': len(available),
        'availableRooms': available,
        'pendingApplicationsCount': len(pending),
        'pendingApplications': pending,
        'approvedApplicationsCount': len(approved),
        'approvedApplications': approved,
        'rejectedApplicationsCount': len(rejected),
        'rejectedApplications': rejected,
        'blacklistedStudentsCount': len(blacklisted),
        'blacklistedStudents': blacklisted,
    }


def detailed(cache: DashboardCache, *, refresh: bool = False) -> dict:
    """Detailed dashboard payload with ``cached`` and ``cacheAge`` (seconds) markers."""
    if not refresh:
        hit = cache.get()
        if hit is not None:
            data, stored_at = hit
            age = int(timezone.now().timestamp() - stored_at)
            return {'cached': True, 'cacheAge': max(age, 0), 'data': data}
    data = build_detailed()
    cache.set(data)
    return {'cached': False, 'cacheAge': 0, 'data': data}
