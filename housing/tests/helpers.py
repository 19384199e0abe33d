"""Small builders shared by the test modules."""
from housing.models import Hostel, Room, Student, User
from housing.services.allocation import recompute_availability

PASSWORD = 'Str0ng!Passw0rd'


def make_user(username, role, **extra):
    return User.objects.create_user(username=username, password=PASSWORD, role=role,
                                    email=extra.pop('email', f'{username.lower()}@example.com'), **extra)


def make_student(pnr, name=None, **extra):
    user = make_user(pnr, User.Role.STUDENT)
    return Student.objects.create(
        user=user,
        name=name or f'Student {pnr}',
        email=user.email,
        pnr=pnr,
        gender=extra.pop('gender', Student.Gender.MALE),
        year=extra.pop('year', Student.Year.FIRST),
        **extra,
    )


def make_hostel(name, admin, **extra):
    return Hostel.objects.create(
        name=name,
        location=extra.pop('location', 'Main campus'),
        capacity=extra.pop('capacity', 100),
        gender=extra.pop('gender', Hostel.Gender.MALE),
        admin=admin,
        **extra,
    )


def make_room(hostel, room_number, floor, capacity):
    room = Room.objects.create(hostel=hostel, room_number=room_number, floor=floor, capacity=capacity)
    recompute_availability(hostel.pk)
    return room


def application_payload(hostel):
    return {
        'hostelId': hostel.pk,
        'branch': 'Computer Engineering',
        'caste': 'General',
        'dateOfBirth': '2005-04-12',
        'aadharCard': 'uploads/aadhar.pdf',
        'admissionReceipt': 'uploads/receipt.pdf',
    }
