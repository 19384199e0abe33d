"""
Hostel administration and room reporting.

Hostel CRUD is a superadmin concern; room statistics and the inventory
seat map are read-only views over ``Room`` rows shared by the admin,
superadmin and dashboard endpoints.
"""
from __future__ import annotations

import logging
from collections import OrderedDict
from typing import Iterable, Optional

from django.db import transaction
from django.db.models import Prefetch

from housing.exceptions import AdminNotFound, ConflictError, InvalidInput, MissingField
from housing.models import ApplicationStatus, Hostel, Room, RoomStatus, Student, User
from housing.services.accounts import get_staff
from housing.services.allocation import get_hostel
from housing.services.audit import log_action

logger = logging.getLogger(__name__)

HOSTEL_REQUIRED = ('name', 'location', 'capacity', 'gender', 'adminId')
HOSTEL_EDITABLE = {
    'name': 'name',
    'description': 'description',
    'location': 'location',
    'warden': 'warden',
    'wardenPhone': 'warden_phone',
    'capacity': 'capacity',
    'gender': 'gender',
    'rentPerMonth': 'rent_per_month',
    'amenities': 'amenities',
    'rules': 'rules',
}


def _empty_counts() -> dict:
    return {'totalRooms': 0, 'available': 0, 'occupied': 0, 'damaged': 0, 'underMaintenance': 0}


def _bucket(room: Room) -> Optional[str]:
    if room.status == RoomStatus.DAMAGED:
        return 'damaged'
    if room.status == RoomStatus.MAINTENANCE:
        return 'underMaintenance'
    if room.occupied_spaces > 0:
        return 'occupied'
    return 'available'


def room_statistics(rooms: Iterable[Room]) -> tuple[dict, dict]:
    """Overall and per-floor counts of available/occupied/damaged/maintenance rooms.

    A room with any occupant counts as occupied whether or not it is full.
    """
    overall = _empty_counts()
    per_floor: dict = OrderedDict()
    for room in rooms:
        floor = per_floor.setdefault(str(room.floor), _empty_counts())
        bucket = _bucket(room)
        for counts in (overall, floor):
            counts['totalRooms'] += 1
            counts[bucket] += 1
    return overall, per_floor


def hostel_statistics(hostel: Hostel) -> dict:
    rooms = hostel.rooms.all().order_by('floor', 'room_number')
    overall, per_floor = room_statistics(rooms)
    return {'roomStatistics': overall, 'floorStatistics': per_floor}


def inventory(hostel: Hostel, *, floor=None, status=None) -> dict:
    """Room inventory of a hostel: filtered rooms, totals and a per-floor seat map."""
    rooms = hostel.rooms.all()
    if floor not in (None, ''):
        try:
            rooms = rooms.filter(floor=int(floor))
        except (TypeError, ValueError):
            raise InvalidInput('floor must be an integer')
    if status:
        if status not in RoomStatus.values:
            raise InvalidInput(f"Invalid status. Allowed: {', '.join(RoomStatus.values)}")
        rooms = rooms.filter(status=status)
    rooms = list(
        rooms.order_by('floor', 'room_number').prefetch_related(
            Prefetch('assigned_students', queryset=Student.objects.order_by('pnr'))
        )
    )

    total_capacity = sum(r.capacity for r in rooms)
    total_occupied = sum(r.occupied_spaces for r in rooms)
    stats = {
        'totalRooms': len(rooms),
        'emptyRooms': sum(1 for r in rooms if r.status == RoomStatus.EMPTY),
        'filledRooms': sum(1 for r in rooms if r.status == RoomStatus.FILLED),
        'damagedRooms': sum(1 for r in rooms if r.status == RoomStatus.DAMAGED),
        'maintenanceRooms': sum(1 for r in rooms if r.status == RoomStatus.MAINTENANCE),
        'totalCapacity': total_capacity,
        'totalOccupied': total_occupied,
        'availableSpaces': total_capacity - total_occupied,
    }

    seat_map: dict = OrderedDict()
    for room in rooms:
        seat_map.setdefault(str(room.floor), []).append({
            'roomId': room.pk,
            'roomNumber': room.room_number,
            'capacity': room.capacity,
            'occupiedSpaces': room.occupied_spaces,
            'status': room.status,
            'assignedStudents': [
                {'id': s.pk, 'name': s.name, 'email': s.email, 'pnr': s.pnr, 'gender': s.gender, 'year': s.year}
                for s in room.assigned_students.all()
            ],
        })

    return {
        'hostel': {'id': hostel.pk, 'name': hostel.name},
        'stats': stats,
        'rooms': rooms,
        'seatMap': seat_map,
    }


def create_hostel(actor, data: dict) -> Hostel:
    missing = [f for f in HOSTEL_REQUIRED if data.get(f) in (None, '')]
    if missing:
        raise MissingField(*missing)
    admin = get_staff(data['adminId'])
    if Hostel.objects.filter(name=data['name']).exists():
        raise ConflictError('Hostel with this name already exists')

    fields = {model_field: data[key] for key, model_field in HOSTEL_EDITABLE.items() if data.get(key) is not None}
    hostel = Hostel.objects.create(admin=admin, available_rooms=0, **fields)
    log_action(user=actor, action='hostel.create', object_type='Hostel', object_id=hostel.pk,
               detail={'adminId': admin.username})
    logger.info("hostel %s created, admin %s", hostel.pk, admin.username)
    return hostel


def update_hostel(actor, hostel_id, data: dict) -> Hostel:
    hostel = get_hostel(hostel_id)
    new_name = data.get('name')
    if new_name and new_name != hostel.name and Hostel.objects.filter(name=new_name).exists():
        raise ConflictError('Hostel with this name already exists')
    changed = []
    for key, model_field in HOSTEL_EDITABLE.items():
        if key in data and data[key] is not None:
            setattr(hostel, model_field, data[key])
            changed.append(model_field)
    if changed:
        hostel.save(update_fields=changed + ['updated_at'])
        log_action(user=actor, action='hostel.update', object_type='Hostel', object_id=hostel.pk,
                   detail={'fields': changed})
    return hostel


def delete_hostel(actor, hostel_id) -> None:
    """Delete a hostel with its rooms and applications; refused while anyone lives there."""
    with transaction.atomic():
        hostel = get_hostel(hostel_id)
        if hostel.rooms.filter(occupied_spaces__gt=0).exists():
            raise ConflictError('Cannot delete hostel with occupied rooms. Please reassign students first.')
        applicant_ids = list(hostel.applications.values_list('student_id', flat=True))
        Student.objects.filter(pk__in=applicant_ids, assigned_room__isnull=True).update(
            application_status=ApplicationStatus.NOT_APPLIED
        )
        pk = hostel.pk
        hostel.delete()
        log_action(user=actor, action='hostel.delete', object_type='Hostel', object_id=pk)
    logger.info("hostel %s deleted", pk)


def set_hostel_active(actor, hostel_id, active: bool) -> Hostel:
    hostel = get_hostel(hostel_id)
    hostel.is_active = active
    hostel.save(update_fields=['is_active', 'updated_at'])
    log_action(user=actor, action='hostel.enable' if active else 'hostel.disable',
               object_type='Hostel', object_id=hostel.pk)
    return hostel


def change_hostel_admin(actor, hostel_id, admin_id) -> Hostel:
    if not admin_id:
        raise MissingField('adminId')
    hostel = get_hostel(hostel_id)
    admin = User.objects.filter(username=admin_id).exclude(role=User.Role.STUDENT).first()
    if admin is None:
        raise AdminNotFound('New admin not found.')
    if admin.role != User.Role.ADMIN:
        raise ConflictError('Target must be an admin')
    previous = hostel.admin.username if hostel.admin_id else None
    hostel.admin = admin
    hostel.save(update_fields=['admin', 'updated_at'])
    log_action(user=actor, action='hostel.change_admin', object_type='Hostel', object_id=hostel.pk,
               detail={'from': previous, 'to': admin.username})
    return hostel


