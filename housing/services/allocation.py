"""
Allocation engine: moves students through the application lifecycle and in
and out of rooms.

Every public operation runs in one database transaction.  The room row is
always written first: a seat is claimed with a conditional UPDATE that only
succeeds while ``occupied_spaces < capacity``, so two requests racing for
the last seat cannot both win even when they read the room at the same
time.  Student, application and hostel rows are updated afterwards; any
failure rolls the whole operation back.

After each operation the following hold:

* ``room.occupied_spaces == room.assigned_students.count() == len(room.student_details)``
* ``0 <= room.occupied_spaces <= room.capacity``
* ``student.assigned_room`` is set iff the student is listed in that room
* ``hostel.available_rooms`` equals the number of its bookable rooms with a free seat

Rows are always locked in the same order: student, application, rooms by
primary key, then hostels by primary key.
"""
from __future__ import annotations

import logging
from typing import Iterable, Optional

from django.conf import settings
from django.db import IntegrityError, transaction
from django.db.models import F
from django.utils import timezone

from housing.exceptions import (
    AlreadyAssigned,
    AlreadyAssignedToThisRoom,
    AlreadyProcessed,
    ApplicationNotFound,
    DuplicateApplication,
    HostelNotFound,
    InvalidInput,
    MissingField,
    NoApprovedApplication,
    NoAssignedRoom,
    RoomFull,
    RoomMismatch,
    RoomNotFound,
    StudentBlacklisted,
    StudentNotFound,
)
from housing.models import (
    BOOKABLE_STATUSES,
    STAFF_STATUSES,
    Application,
    ApplicationStatus,
    Hostel,
    Room,
    RoomStatus,
    Student,
)
from housing.permissions import ensure_hostel_access
from housing.services.audit import log_action

logger = logging.getLogger(__name__)

FILL_AT_CAPACITY = 'at_capacity'
FILL_IMMEDIATE = 'immediate'

DEFAULT_REJECTION_REASON = 'Rejected by superadmin'
DEFAULT_REASSIGN_REMARK = 'Student room reassigned by admin'
DEFAULT_REMOVE_REMARK = 'Student is removed from room by admin'


# ---------------------------------------------------------------------------
# Status and availability
# ---------------------------------------------------------------------------

def fill_policy() -> str:
    return getattr(settings, 'ROOM_FILL_POLICY', FILL_AT_CAPACITY)


def derive_status(current: str, occupied: int, capacity: int, policy: Optional[str] = None) -> str:
    """Status a room should have for the given occupancy.

    Damaged and maintenance rooms keep their status; otherwise the room is
    'filled' when full (``at_capacity``) or as soon as anyone sits in it
    (``immediate``), and 'empty' otherwise.
    """
    if current in STAFF_STATUSES:
        return current
    policy = policy or fill_policy()
    if policy == FILL_IMMEDIATE:
        filled = occupied > 0
    else:
        filled = occupied >= capacity
    return RoomStatus.FILLED if filled else RoomStatus.EMPTY


def available_rooms_queryset(hostel_id=None):
    """Bookable rooms with at least one free seat, optionally within one hostel."""
    qs = Room.objects.filter(occupied_spaces__lt=F('capacity'), status__in=sorted(BOOKABLE_STATUSES))
    if hostel_id is not None:
        qs = qs.filter(hostel_id=hostel_id)
    return qs


def recompute_availability(hostel_id) -> int:
    """Recount the bookable rooms with a free seat and store the result."""
    count = available_rooms_queryset(hostel_id).count()
    Hostel.objects.filter(pk=hostel_id).update(available_rooms=count)
    return count


def _recompute_all(hostel_ids: Iterable) -> None:
    for hostel_id in sorted(set(hostel_ids)):
        recompute_availability(hostel_id)


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------

def get_student(pnr: str, *, lock: bool = False) -> Student:
    if not pnr:
        raise MissingField('pnr')
    qs = Student.objects.select_related('assigned_room')
    if lock:
        qs = qs.select_for_update(of=('self',))
    student = qs.filter(pnr=pnr).first()
    if student is None:
        raise StudentNotFound()
    return student


def get_hostel(hostel_id) -> Hostel:
    if hostel_id in (None, ''):
        raise MissingField('hostelId')
    try:
        hostel = Hostel.objects.filter(pk=int(hostel_id)).first()
    except (TypeError, ValueError):
        raise InvalidInput('hostelId must be an integer')
    if hostel is None:
        raise HostelNotFound()
    return hostel


def find_room(hostel: Hostel, *, room_id=None, room_number=None, floor=None, lock: bool = True) -> Room:
    """Resolve a room of ``hostel`` by id or by its (room_number, floor) key.

    A room id that exists but belongs to another hostel raises RoomMismatch.
    """
    qs = Room.objects.all()
    if lock:
        qs = qs.select_for_update()
    if room_id not in (None, ''):
        try:
            room = qs.filter(pk=int(room_id)).first()
        except (TypeError, ValueError):
            raise InvalidInput('roomId must be an integer')
        if room is None:
            raise RoomNotFound()
        if room.hostel_id != hostel.pk:
            raise RoomMismatch()
    else:
        if room_number in (None, '') or floor in (None, ''):
            raise MissingField('roomNumber', 'floor')
        room = qs.filter(hostel=hostel, room_number=str(room_number), floor=floor).first()
        if room is None:
            raise RoomNotFound()
    room.hostel = hostel
    return room


def _lock_application(application_id) -> Application:
    """Lock the applicant's student row, then the application."""
    try:
        pk = int(application_id)
    except (TypeError, ValueError):
        raise ApplicationNotFound()
    student_id = Application.objects.filter(pk=pk).values_list('student_id', flat=True).first()
    if student_id is None:
        raise ApplicationNotFound()
    Student.objects.select_for_update().filter(pk=student_id).first()
    application = (
        Application.objects.select_for_update(of=('self',))
        .select_related('student', 'hostel')
        .filter(pk=pk)
        .first()
    )
    if application is None:
        raise ApplicationNotFound()
    return application


def _application_of(student: Student) -> Optional[Application]:
    return Application.objects.select_for_update().filter(student=student).first()


# ---------------------------------------------------------------------------
# Seats
# ---------------------------------------------------------------------------

def _claim_seat(room: Room, student: Student) -> Room:
    """Take one seat in ``room`` for ``student`` or raise RoomFull."""
    claimed = Room.objects.filter(pk=room.pk, occupied_spaces__lt=F('capacity')).update(
        occupied_spaces=F('occupied_spaces') + 1,
        updated_at=timezone.now(),
    )
    if not claimed:
        raise RoomFull()
    room.refresh_from_db(fields=['occupied_spaces', 'capacity', 'status', 'student_details'])
    details = [d for d in room.student_details if d.get('studentId') != student.pk]
    details.append({'studentId': student.pk, 'name': student.name, 'pnr': student.pnr})
    room.student_details = details
    room.status = derive_status(room.status, room.occupied_spaces, room.capacity)
    room.save(update_fields=['student_details', 'status', 'updated_at'])
    return room


def _release_seat(room: Room, student: Student) -> Room:
    Room.objects.filter(pk=room.pk, occupied_spaces__gt=0).update(
        occupied_spaces=F('occupied_spaces') - 1,
        updated_at=timezone.now(),
    )
    room.refresh_from_db(fields=['occupied_spaces', 'capacity', 'status', 'student_details'])
    room.student_details = [
        d for d in room.student_details
        if d.get('studentId') != student.pk and d.get('pnr') != student.pnr
    ]
    room.status = derive_status(room.status, room.occupied_spaces, room.capacity)
    room.save(update_fields=['student_details', 'status', 'updated_at'])
    return room


def _seat_student(student: Student, room: Room) -> None:
    student.assigned_room = room
    student.room_number = room.room_number
    student.floor = room.floor
    student.hostel_name = room.hostel.name
    student.application_status = ApplicationStatus.APPROVED


def _unseat_student(student: Student) -> None:
    student.assigned_room = None
    student.room_number = ''
    student.floor = None
    student.hostel_name = ''


def _mirror_room_on_application(application: Application, room: Room) -> None:
    application.status = ApplicationStatus.APPROVED
    application.hostel = room.hostel
    application.room_number = room.room_number
    application.floor = room.floor
    if application.approved_on is None:
        application.approved_on = timezone.now()


def _check_free_seat(room: Room) -> None:
    if room.occupied_spaces >= room.capacity:
        raise RoomFull()


# ---------------------------------------------------------------------------
# Application lifecycle
# ---------------------------------------------------------------------------

APPLICATION_FIELDS = ('hostelId', 'branch', 'caste', 'dateOfBirth', 'aadharCard', 'admissionReceipt')


def submit_application(student: Optional[Student], *, hostel_id, branch, caste, date_of_birth,
                       aadhar_card, admission_receipt) -> Application:
    values = dict(zip(APPLICATION_FIELDS, (hostel_id, branch, caste, date_of_birth, aadhar_card, admission_receipt)))
    missing = [name for name, value in values.items() if value in (None, '')]
    if missing:
        raise MissingField(*missing)
    if student is None:
        raise StudentNotFound()

    with transaction.atomic():
        student = Student.objects.select_for_update().get(pk=student.pk)
        if Application.objects.filter(student=student).exists():
            raise DuplicateApplication()
        hostel = get_hostel(hostel_id)
        if not hostel.is_active:
            raise HostelNotFound()
        try:
            with transaction.atomic():
                application = Application.objects.create(
                    student=student,
                    hostel=hostel,
                    student_name=student.name,
                    student_pnr=student.pnr,
                    student_year=student.year,
                    branch=branch,
                    caste=caste,
                    date_of_birth=date_of_birth,
                    aadhar_card=aadhar_card,
                    admission_receipt=admission_receipt,
                    status=ApplicationStatus.PENDING,
                )
        except IntegrityError:
            # Lost a race with a concurrent submission for the same student
            raise DuplicateApplication()
        student.application_status = ApplicationStatus.PENDING
        student.save(update_fields=['application_status', 'updated_at'])
        log_action(user=student.user, action='application.submit', object_type='Application',
                   object_id=application.pk, detail={'hostelId': hostel.pk})

    logger.info("application %s submitted by %s for hostel %s", application.pk, student.pnr, hostel.pk)
    return application


def approve_application(actor, application_id, *, room_number, floor) -> Application:
    """Approve a pending application into the room (hostel, room_number, floor)."""
    if room_number in (None, '') or floor in (None, ''):
        raise MissingField('roomNumber', 'floor')

    with transaction.atomic():
        application = _lock_application(application_id)
        ensure_hostel_access(actor, application.hostel)
        if application.status != ApplicationStatus.PENDING:
            raise AlreadyProcessed()
        student = Student.objects.select_for_update().get(pk=application.student_id)
        if student.assigned_room_id:
            raise AlreadyAssigned()
        room = find_room(application.hostel, room_number=room_number, floor=floor)
        _check_free_seat(room)

        _claim_seat(room, student)
        _seat_student(student, room)
        student.save()
        application.approved_on = timezone.now()
        _mirror_room_on_application(application, room)
        application.save()
        recompute_availability(room.hostel_id)
        log_action(user=actor, action='application.approve', object_type='Application',
                   object_id=application.pk, detail={'roomId': room.pk, 'pnr': student.pnr})

    logger.info("application %s approved into room %s", application.pk, room.pk)
    application.student = student
    return application


def _reject(actor, application: Application, reason: str) -> Application:
    if application.status != ApplicationStatus.PENDING:
        raise AlreadyProcessed()
    application.status = ApplicationStatus.REJECTED
    application.rejection_reason = reason
    application.save(update_fields=['status', 'rejection_reason', 'updated_at'])
    Student.objects.filter(pk=application.student_id).update(
        application_status=ApplicationStatus.REJECTED, updated_at=timezone.now()
    )
    log_action(user=actor, action='application.reject', object_type='Application',
               object_id=application.pk, detail={'reason': reason})
    logger.info("application %s rejected", application.pk)
    return application


def reject_application(actor, application_id, *, reason) -> Application:
    if not reason or not str(reason).strip():
        raise MissingField('rejectionReason')
    with transaction.atomic():
        application = _lock_application(application_id)
        ensure_hostel_access(actor, application.hostel)
        return _reject(actor, application, str(reason).strip())


def reject_by_pnr(actor, pnr, *, reason=None) -> Application:
    with transaction.atomic():
        student = get_student(pnr, lock=True)
        application = Application.objects.select_for_update().filter(student=student).first()
        if application is None:
            raise ApplicationNotFound()
        return _reject(actor, application, (reason or '').strip() or DEFAULT_REJECTION_REASON)


def cancel_application(student: Optional[Student], application_id) -> Application:
    """Withdraw the student's own pending application; the row is kept."""
    if student is None:
        raise StudentNotFound()
    with transaction.atomic():
        application = _lock_application(application_id)
        if application.student_id != student.pk:
            raise ApplicationNotFound()
        if application.status != ApplicationStatus.PENDING:
            raise AlreadyProcessed()
        application.status = ApplicationStatus.CANCELLED
        application.save(update_fields=['status', 'updated_at'])
        Student.objects.filter(pk=student.pk).update(
            application_status=ApplicationStatus.CANCELLED, updated_at=timezone.now()
        )
        log_action(user=student.user, action='application.cancel', object_type='Application',
                   object_id=application.pk)
    logger.info("application %s cancelled by %s", application.pk, student.pnr)
    return application


# ---------------------------------------------------------------------------
# Administrative room moves
# ---------------------------------------------------------------------------

def assign_room(actor, pnr, *, hostel_id, room_id) -> tuple[Student, Room]:
    """Seat a student who has no room yet, with or without an application."""
    if room_id in (None, ''):
        raise MissingField('roomId')

    with transaction.atomic():
        student = get_student(pnr, lock=True)
        if student.is_blacklisted:
            raise StudentBlacklisted()
        application = _application_of(student)
        hostel = get_hostel(hostel_id)
        room = find_room(hostel, room_id=room_id)
        if student.assigned_room_id == room.pk:
            raise AlreadyAssignedToThisRoom()
        if student.assigned_room_id:
            raise AlreadyAssigned()
        _check_free_seat(room)

        _claim_seat(room, student)
        _seat_student(student, room)
        student.save()
        if application is not None:
            _mirror_room_on_application(application, room)
            application.save()
        recompute_availability(hostel.pk)
        log_action(user=actor, action='room.assign', object_type='Student', object_id=student.pk,
                   detail={'roomId': room.pk, 'hostelId': hostel.pk})

    logger.info("student %s assigned to room %s", student.pnr, room.pk)
    return student, room


def _move(actor, pnr, *, hostel_id, room_id, require_approved: bool, check_blacklist: bool,
          remark: Optional[str], action: str):
    if room_id in (None, ''):
        raise MissingField('roomId')

    with transaction.atomic():
        student = get_student(pnr, lock=True)
        if not student.assigned_room_id:
            raise NoAssignedRoom()
        application = _application_of(student)
        if require_approved and (application is None or application.status != ApplicationStatus.APPROVED):
            raise NoApprovedApplication()
        if check_blacklist and student.is_blacklisted:
            raise StudentBlacklisted()
        hostel = get_hostel(hostel_id)
        target = find_room(hostel, room_id=room_id, lock=False)
        if student.assigned_room_id == target.pk:
            raise AlreadyAssignedToThisRoom()
        _check_free_seat(target)

        # Lock both rooms in a stable order before touching either
        locked = {r.pk: r for r in Room.objects.select_for_update()
                  .filter(pk__in=[student.assigned_room_id, target.pk]).order_by('pk')}
        old_room = locked[student.assigned_room_id]
        target = locked[target.pk]
        target.hostel = hostel

        # Claim first: a full target leaves the old seat untouched
        _claim_seat(target, student)
        _release_seat(old_room, student)

        _seat_student(student, target)
        if remark is not None:
            student.remarks = remark
        student.save()
        if application is not None:
            if application.status != ApplicationStatus.APPROVED:
                application.approved_on = timezone.now()
            _mirror_room_on_application(application, target)
            if remark is not None:
                application.remarks = remark
            application.save()
        _recompute_all([old_room.hostel_id, hostel.pk])
        log_action(user=actor, action=action, object_type='Student', object_id=student.pk,
                   detail={'fromRoomId': old_room.pk, 'toRoomId': target.pk})

    logger.info("student %s moved from room %s to room %s", student.pnr, old_room.pk, target.pk)
    return student, target, application


def change_room(actor, pnr, *, hostel_id, room_id) -> tuple[Student, Room]:
    student, room, _ = _move(actor, pnr, hostel_id=hostel_id, room_id=room_id, require_approved=True,
                             check_blacklist=False, remark=None, action='room.change')
    return student, room


def reassign_room(actor, pnr, *, hostel_id, room_id, remark=None):
    return _move(actor, pnr, hostel_id=hostel_id, room_id=room_id, require_approved=False,
                 check_blacklist=True, remark=(remark or '').strip() or DEFAULT_REASSIGN_REMARK,
                 action='room.reassign')


def remove_from_room(actor, pnr, *, remark=None):
    """Release the student's seat and mark them (and their application) DISALLOCATED."""
    remark = (remark or '').strip() or DEFAULT_REMOVE_REMARK
    with transaction.atomic():
        student = get_student(pnr, lock=True)
        if not student.assigned_room_id:
            raise NoAssignedRoom()
        application = _application_of(student)
        room = Room.objects.select_for_update().select_related('hostel').get(pk=student.assigned_room_id)

        _release_seat(room, student)
        _unseat_student(student)
        student.application_status = ApplicationStatus.DISALLOCATED
        student.remarks = remark
        student.save()
        if application is not None:
            application.status = ApplicationStatus.DISALLOCATED
            application.approved_on = None
            application.room_number = ''
            application.floor = None
            application.remarks = remark
            application.save()
        recompute_availability(room.hostel_id)
        log_action(user=actor, action='room.remove', object_type='Student', object_id=student.pk,
                   detail={'roomId': room.pk})

    logger.info("student %s removed from room %s", student.pnr, room.pk)
    return student, room, application


# ---------------------------------------------------------------------------
# Room administration
# ---------------------------------------------------------------------------

def change_room_status(actor, hostel_id, room_id, *, status) -> Room:
    if not status:
        raise MissingField('status')
    if status not in RoomStatus.values:
        raise InvalidInput(f"Invalid status. Allowed: {', '.join(RoomStatus.values)}")

    with transaction.atomic():
        hostel = get_hostel(hostel_id)
        ensure_hostel_access(actor, hostel)
        room = find_room(hostel, room_id=room_id)
        # empty/filled must agree with occupancy under the fill policy
        if status in BOOKABLE_STATUSES and status != derive_status(status, room.occupied_spaces, room.capacity):
            raise InvalidInput(
                f"Cannot mark room as {status} with {room.occupied_spaces} of {room.capacity} seats taken"
            )
        previous = room.status
        room.status = status
        room.save(update_fields=['status', 'updated_at'])
        recompute_availability(hostel.pk)
        log_action(user=actor, action='room.status', object_type='Room', object_id=room.pk,
                   detail={'from': previous, 'to': status})

    logger.info("room %s status %s -> %s", room.pk, previous, status)
    return room


def create_room(actor, hostel_id, *, room_number, floor, capacity, notes='') -> Room:
    with transaction.atomic():
        hostel = get_hostel(hostel_id)
        ensure_hostel_access(actor, hostel)
        if Room.objects.filter(hostel=hostel, room_number=str(room_number)).exists():
            raise InvalidInput(f"Room {room_number} already exists in this hostel")
        room = Room.objects.create(
            hostel=hostel,
            room_number=str(room_number),
            floor=floor,
            capacity=capacity,
            notes=notes or '',
            status=derive_status(RoomStatus.EMPTY, 0, capacity),
        )
        recompute_availability(hostel.pk)
        log_action(user=actor, action='room.create', object_type='Room', object_id=room.pk,
                   detail={'hostelId': hostel.pk})
    logger.info("room %s created in hostel %s", room.pk, hostel.pk)
    return room


def set_blacklisted(actor, pnr, flag: bool) -> Student:
    student = get_student(pnr)
    student.is_blacklisted = flag
    student.save(update_fields=['is_blacklisted', 'updated_at'])
    log_action(user=actor, action='student.blacklist' if flag else 'student.unblacklist',
               object_type='Student', object_id=student.pk)
    return student
