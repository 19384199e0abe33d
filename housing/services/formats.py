"""JSON shapes returned by the API for each model."""
from typing import Optional

from housing.models import Application, Hostel, Room, Student, User


def _iso(dt) -> Optional[str]:
    return dt.isoformat() if dt else None


def format_user(user: User) -> dict:
    return {
        'id': user.id,
        'username': user.username,
        'name': user.get_full_name() or user.username,
        'email': user.email,
        'phone': user.phone,
        'role': user.role,
        'isActive': user.is_active,
    }


def format_admin(user: User, *, with_hostels: bool = False) -> dict:
    data = {**format_user(user), 'adminId': user.username}
    if with_hostels:
        data['hostelIds'] = list(user.managed_hostels.values_list('id', flat=True))
    return data


def format_student(student: Student) -> dict:
    return {
        'id': student.id,
        'name': student.name,
        'email': student.email,
        'pnr': student.pnr,
        'gender': student.gender,
        'year': student.year,
        'phone': student.phone,
        'address': student.address,
        'parentName': student.parent_name,
        'parentPhone': student.parent_phone,
        'applicationStatus': student.application_status,
        'assignedRoom': student.assigned_room_id,
        'roomNumber': student.room_number or None,
        'floor': student.floor,
        'hostelName': student.hostel_name or None,
        'isBlacklisted': student.is_blacklisted,
        'remarks': student.remarks,
        'createdAt': _iso(student.created_at),
    }


def format_room(room: Room) -> dict:
    return {
        'id': room.id,
        'hostelId': room.hostel_id,
        'roomNumber': room.room_number,
        'floor': room.floor,
        'capacity': room.capacity,
        'occupiedSpaces': room.occupied_spaces,
        'status': room.status,
        'studentDetails': list(room.student_details),
        'notes': room.notes,
        'lastInspection': _iso(room.last_inspection),
        'updatedAt': _iso(room.updated_at),
    }


def format_hostel(hostel: Hostel) -> dict:
    admin = hostel.admin if hostel.admin_id else None
    return {
        'id': hostel.id,
        'name': hostel.name,
        'description': hostel.description,
        'location': hostel.location,
        'warden': hostel.warden,
        'wardenPhone': hostel.warden_phone,
        'capacity': hostel.capacity,
        'availableRooms': hostel.available_rooms,
        'amenities': hostel.amenities,
        'gender': hostel.gender,
        'rentPerMonth': hostel.rent_per_month,
        'rules': hostel.rules,
        'admin': {'adminId': admin.username, 'name': admin.get_full_name() or admin.username,
                  'email': admin.email} if admin else None,
        'isActive': hostel.is_active,
        'createdAt': _iso(hostel.created_at),
    }


def format_application(application: Application) -> dict:
    return {
        'id': application.id,
        'studentId': application.student_id,
        'hostelId': application.hostel_id,
        'hostelName': application.hostel.name if application.hostel_id else None,
        'studentName': application.student_name,
        'studentPnr': application.student_pnr,
        'studentYear': application.student_year,
        'branch': application.branch,
        'caste': application.caste,
        'dateOfBirth': _iso(application.date_of_birth),
        'aadharCard': application.aadhar_card,
        'admissionReceipt': application.admission_receipt,
        'status': application.status,
        'appliedOn': _iso(application.applied_on),
        'approvedOn': _iso(application.approved_on),
        'rejectionReason': application.rejection_reason or None,
        'remarks': application.remarks,
        'roomNumber': application.room_number or None,
        'floor': application.floor,
    }
