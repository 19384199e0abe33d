"""
Database models for the hostel allocation backend.

Students apply for a place in a hostel, staff approve the application into
a concrete room, and the room keeps a seat counter plus a snapshot of the
students sitting in it.  Several values are stored twice on purpose (the
room mirrors on ``Student`` and ``Application``, ``Hostel.available_rooms``
and ``Room.student_details``); they are only written by
``housing.services.allocation`` and can be rebuilt with the
``reconcile_allocations`` management command.
"""
from __future__ import annotations

from django.contrib.auth.models import AbstractUser
from django.db import models
from django.db.models import F, Q
from django.utils import timezone


class User(AbstractUser):
    """Account used for authentication.

    Students log in with their PNR as username, admins with their admin id.
    """

    class Role(models.TextChoices):
        STUDENT = 'student', 'Student'
        ADMIN = 'admin', 'Admin'
        SUPERADMIN = 'superadmin', 'Superadmin'

    role = models.CharField(max_length=12, choices=Role.choices, default=Role.STUDENT, db_index=True)
    phone = models.CharField(max_length=20, blank=True)

    def __str__(self) -> str:
        return f"{self.username} ({self.role})"


class ApplicationStatus(models.TextChoices):
    NOT_APPLIED = 'NOT_APPLIED', 'Not applied'
    PENDING = 'PENDING', 'Pending'
    APPROVED = 'APPROVED', 'Approved'
    REJECTED = 'REJECTED', 'Rejected'
    CANCELLED = 'CANCELLED', 'Cancelled'
    DISALLOCATED = 'DISALLOCATED', 'Disallocated'


class RoomStatus(models.TextChoices):
    EMPTY = 'empty', 'Empty'
    FILLED = 'filled', 'Filled'
    DAMAGED = 'damaged', 'Damaged'
    MAINTENANCE = 'maintenance', 'Maintenance'


# Rooms in these states are set by staff and survive occupancy changes.
STAFF_STATUSES = frozenset({RoomStatus.DAMAGED.value, RoomStatus.MAINTENANCE.value})
# Rooms in these states count towards hostel availability.
BOOKABLE_STATUSES = frozenset({RoomStatus.EMPTY.value, RoomStatus.FILLED.value})


class Hostel(models.Model):
    class Gender(models.TextChoices):
        MALE = 'Male', 'Male'
        FEMALE = 'Female', 'Female'
        COED = 'Co-ed', 'Co-ed'

    name = models.CharField(max_length=120, unique=True)
    description = models.TextField(blank=True)
    location = models.CharField(max_length=255)
    warden = models.CharField(max_length=120, blank=True)
    warden_phone = models.CharField(max_length=20, blank=True)
    capacity = models.PositiveIntegerField()
    # Derived counter; see housing.services.allocation.recompute_availability
    available_rooms = models.PositiveIntegerField(default=0)
    amenities = models.JSONField(default=list, blank=True)
    gender = models.CharField(max_length=10, choices=Gender.choices)
    rent_per_month = models.PositiveIntegerField(default=0)
    rules = models.JSONField(default=list, blank=True)
    admin = models.ForeignKey(
        User,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='managed_hostels',
    )
    is_active = models.BooleanField(default=True, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['name']
        constraints = [
            models.CheckConstraint(condition=Q(capacity__gte=1), name='hostel_capacity_positive'),
        ]

    def __str__(self) -> str:
        return self.name


class Room(models.Model):
    hostel = models.ForeignKey(Hostel, on_delete=models.CASCADE, related_name='rooms')
    room_number = models.CharField(max_length=20)
    floor = models.IntegerField()
    capacity = models.PositiveIntegerField()
    occupied_spaces = models.PositiveIntegerField(default=0)
    status = models.CharField(max_length=12, choices=RoomStatus.choices, default=RoomStatus.EMPTY)
    # [{"studentId": int, "name": str, "pnr": str}], one entry per assigned student
    student_details = models.JSONField(default=list, blank=True)
    notes = models.TextField(blank=True)
    last_inspection = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['hostel_id', 'floor', 'room_number']
        constraints = [
            models.UniqueConstraint(fields=['hostel', 'room_number'], name='room_number_unique_per_hostel'),
            models.UniqueConstraint(fields=['hostel', 'room_number', 'floor'], name='room_natural_key'),
            models.CheckConstraint(condition=Q(capacity__gte=1), name='room_capacity_positive'),
            models.CheckConstraint(
                condition=Q(occupied_spaces__gte=0) & Q(occupied_spaces__lte=F('capacity')),
                name='room_occupancy_within_capacity',
            ),
        ]
        indexes = [
            models.Index(fields=['hostel', 'status'], name='room_hostel_status_idx'),
        ]

    @property
    def has_free_seat(self) -> bool:
        return self.occupied_spaces < self.capacity

    def __str__(self) -> str:
        return f"{self.hostel_id}/{self.floor}/{self.room_number}"


class Student(models.Model):
    class Gender(models.TextChoices):
        MALE = 'Male', 'Male'
        FEMALE = 'Female', 'Female'
        OTHER = 'Other', 'Other'

    class Year(models.TextChoices):
        FIRST = '1st', '1st'
        SECOND = '2nd', '2nd'
        THIRD = '3rd', '3rd'
        FOURTH = '4th', '4th'

    user = models.OneToOneField(User, on_delete=models.CASCADE, related_name='student')
    name = models.CharField(max_length=120)
    email = models.EmailField(unique=True)
    pnr = models.CharField(max_length=32, unique=True)
    gender = models.CharField(max_length=10, choices=Gender.choices)
    year = models.CharField(max_length=4, choices=Year.choices)
    phone = models.CharField(max_length=20, blank=True)
    address = models.TextField(blank=True)
    parent_name = models.CharField(max_length=120, blank=True)
    parent_phone = models.CharField(max_length=20, blank=True)
    application_status = models.CharField(
        max_length=16,
        choices=ApplicationStatus.choices,
        default=ApplicationStatus.NOT_APPLIED,
        db_index=True,
    )
    # A student sits in at most one room; the reverse accessor is the room's
    # list of assigned students.
    assigned_room = models.ForeignKey(
        Room,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='assigned_students',
    )
    room_number = models.CharField(max_length=20, blank=True)
    floor = models.IntegerField(null=True, blank=True)
    hostel_name = models.CharField(max_length=120, blank=True)
    is_blacklisted = models.BooleanField(default=False)
    remarks = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['pnr']

    def __str__(self) -> str:
        return f"{self.name} ({self.pnr})"


class Application(models.Model):
    """A student's request for a place in a hostel (at most one per student)."""

    student = models.OneToOneField(Student, on_delete=models.CASCADE, related_name='application')
    hostel = models.ForeignKey(Hostel, on_delete=models.CASCADE, related_name='applications')
    student_name = models.CharField(max_length=120)
    student_pnr = models.CharField(max_length=32, db_index=True)
    student_year = models.CharField(max_length=4)
    branch = models.CharField(max_length=120)
    caste = models.CharField(max_length=60)
    date_of_birth = models.DateField()
    aadhar_card = models.CharField(max_length=255)
    admission_receipt = models.CharField(max_length=255)
    status = models.CharField(
        max_length=16,
        choices=ApplicationStatus.choices,
        default=ApplicationStatus.PENDING,
        db_index=True,
    )
    applied_on = models.DateTimeField(default=timezone.now)
    approved_on = models.DateTimeField(null=True, blank=True)
    rejection_reason = models.TextField(blank=True)
    remarks = models.TextField(blank=True)
    room_number = models.CharField(max_length=20, blank=True)
    floor = models.IntegerField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-applied_on']
        indexes = [
            models.Index(fields=['hostel', 'status'], name='application_hostel_status_idx'),
        ]

    def __str__(self) -> str:
        return f"{self.student_pnr} -> {self.hostel_id} [{self.status}]"


class AuditEvent(models.Model):
    user = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True)
    action = models.CharField(max_length=64)
    object_type = models.CharField(max_length=64, blank=True, null=True)
    object_id = models.IntegerField(blank=True, null=True)
    detail = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [
            models.Index(fields=['action', 'created_at'], name='audit_action_created_idx'),
            models.Index(fields=['object_type', 'object_id', 'created_at'], name='audit_object_created_idx'),
        ]
