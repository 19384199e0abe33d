"""
Consistency check for the denormalized allocation data.

``find_violations`` reports every place where the stored counters and
mirrors disagree with the source of truth (``Student.assigned_room`` and
the ``Application`` rows).  ``repair`` rebuilds the derived values from
that source of truth inside one transaction.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

from django.db import transaction

from housing.models import Application, ApplicationStatus, Hostel, Room, Student
from housing.services.allocation import available_rooms_queryset, derive_status, recompute_availability
from housing.services.audit import log_action

logger = logging.getLogger(__name__)


@dataclass
class Violation:
    kind: str
    object_type: str
    object_id: int
    expected: object = None
    actual: object = None

    def __str__(self) -> str:
        return f"{self.object_type}#{self.object_id} {self.kind}: expected {self.expected!r}, found {self.actual!r}"


@dataclass
class Report:
    violations: list = field(default_factory=list)
    unfixable: list = field(default_factory=list)

    def add(self, *args, **kwargs) -> None:
        self.violations.append(Violation(*args, **kwargs))

    @property
    def ok(self) -> bool:
        return not self.violations


def expected_student_status(student: Student, application: Optional[Application]) -> str:
    """Application status a student should carry.

    The application's status when one exists; otherwise APPROVED for a
    directly assigned student, and NOT_APPLIED (or DISALLOCATED after a
    removal) for everyone else.
    """
    if application is not None:
        return application.status
    if student.assigned_room_id:
        return ApplicationStatus.APPROVED
    if student.application_status == ApplicationStatus.DISALLOCATED:
        return ApplicationStatus.DISALLOCATED
    return ApplicationStatus.NOT_APPLIED


def _check_room(room: Room, report: Report) -> None:
    seated = sorted(s.pk for s in room.assigned_students.all())
    listed = sorted(d.get('studentId') for d in room.student_details)
    if room.occupied_spaces != len(seated):
        report.add('occupied_spaces', 'Room', room.pk, len(seated), room.occupied_spaces)
    if listed != seated:
        report.add('student_details', 'Room', room.pk, seated, listed)
    if len(seated) > room.capacity:
        report.add('over_capacity', 'Room', room.pk, room.capacity, len(seated))
    status = derive_status(room.status, len(seated), room.capacity)
    if status != room.status:
        report.add('status', 'Room', room.pk, status, room.status)


def _check_student(student: Student, report: Report) -> None:
    room = student.assigned_room
    mirror = (student.room_number, student.floor, student.hostel_name)
    expected = (room.room_number, room.floor, room.hostel.name) if room else ('', None, '')
    if mirror != expected:
        report.add('room_mirror', 'Student', student.pk, expected, mirror)

    application = getattr(student, 'application', None)
    status = expected_student_status(student, application)
    if student.application_status != status:
        report.add('application_status', 'Student', student.pk, status, student.application_status)
    if application is not None and application.status == ApplicationStatus.APPROVED:
        if room is None:
            report.add('approved_without_room', 'Application', application.pk, 'assigned room', None)
        else:
            app_mirror = (application.hostel_id, application.room_number, application.floor)
            want = (room.hostel_id, room.room_number, room.floor)
            if app_mirror != want:
                report.add('room_mirror', 'Application', application.pk, want, app_mirror)


def find_violations() -> Report:
    report = Report()
    rooms = Room.objects.prefetch_related('assigned_students').order_by('pk')
    for room in rooms:
        _check_room(room, report)
    students = Student.objects.select_related('assigned_room__hostel', 'application').order_by('pk')
    for student in students:
        _check_student(student, report)
    for hostel in Hostel.objects.order_by('pk'):
        count = available_rooms_queryset(hostel.pk).count()
        if hostel.available_rooms != count:
            report.add('available_rooms', 'Hostel', hostel.pk, count, hostel.available_rooms)
    return report


@transaction.atomic
def repair(actor=None) -> Report:
    """Rebuild every derived value; returns the violations found beforehand."""
    report = find_violations()
    if report.ok:
        return report

    for room in Room.objects.select_for_update().order_by('pk'):
        seated = list(room.assigned_students.order_by('pnr'))
        if len(seated) > room.capacity:
            # More students than seats needs a human to move someone out
            report.unfixable.append(Violation('over_capacity', 'Room', room.pk, room.capacity, len(seated)))
            continue
        room.occupied_spaces = len(seated)
        room.student_details = [{'studentId': s.pk, 'name': s.name, 'pnr': s.pnr} for s in seated]
        room.status = derive_status(room.status, room.occupied_spaces, room.capacity)
        room.save(update_fields=['occupied_spaces', 'student_details', 'status', 'updated_at'])

    students = Student.objects.select_for_update(of=('self',)).select_related('assigned_room__hostel')
    for student in students.order_by('pk'):
        room = student.assigned_room
        if room is not None:
            student.room_number, student.floor, student.hostel_name = room.room_number, room.floor, room.hostel.name
        else:
            student.room_number, student.floor, student.hostel_name = '', None, ''
        application = Application.objects.select_for_update().filter(student=student).first()
        if application is not None and application.status == ApplicationStatus.APPROVED:
            if room is None:
                application.status = ApplicationStatus.DISALLOCATED
                application.room_number, application.floor = '', None
            else:
                application.hostel_id = room.hostel_id
                application.room_number, application.floor = room.room_number, room.floor
            application.save(update_fields=['status', 'hostel', 'room_number', 'floor', 'updated_at'])
        student.application_status = expected_student_status(student, application)
        student.save(update_fields=['room_number', 'floor', 'hostel_name', 'application_status', 'updated_at'])

    for hostel_id in Hostel.objects.order_by('pk').values_list('pk', flat=True):
        recompute_availability(hostel_id)

    log_action(user=actor, action='allocations.reconcile', detail={
        'violations': len(report.violations), 'unfixable': len(report.unfixable),
    })
    logger.warning("reconciled %d allocation violations (%d unfixable)",
                   len(report.violations), len(report.unfixable))
    return report
