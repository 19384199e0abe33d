"""
Superadmin endpoints.

Covers the operations dashboard, admin account management, student
lookups, the administrative room moves (assign, change, reassign,
remove), blacklisting, and hostel CRUD.  Every view here is limited to the
superadmin role by the policy table except ``create_superadmin``, which
is public but guarded by the configured pass key.
"""
from __future__ import annotations

from django.db.models import Q
from rest_framework.decorators import api_view, permission_classes, throttle_classes
from rest_framework.permissions import AllowAny, IsAuthenticated

from ..exceptions import StudentNotFound
from ..models import Application, Hostel, Student, User
from ..permissions import allows
from ..policy import Operation
from ..responses import created, ok
from ..serializers.allocation import (
    ReassignSerializer,
    RemoveSerializer,
    RoomStatusSerializer,
    RoomTargetSerializer,
)
from ..serializers.application import RejectSerializer
from ..serializers.auth import StaffCreateSerializer, SuperadminCreateSerializer
from ..serializers.hostel import ChangeAdminSerializer, HostelWriteSerializer, SearchQuerySerializer
from ..services import accounts, allocation, dashboard as dashboard_svc, hostels as hostel_svc
from ..services.formats import (
    format_admin,
    format_application,
    format_hostel,
    format_room,
    format_student,
)
from ..throttling import LoginRateThrottle


def _search(request) -> str:
    q = SearchQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    return (q.validated_data.get('q') or '').strip()


def _staff_fields(vd) -> dict:
    return {
        'name': vd['name'],
        'email': vd['email'],
        'admin_id': vd['adminId'],
        'password': vd['password'],
        'confirm_password': vd['confirmPassword'],
        'phone': vd.get('phone'),
    }


def _application_payload(application):
    return format_application(application) if application is not None else None


# ---------------------------------------------------------------------------
# Dashboard
# ---------------------------------------------------------------------------

@api_view(['GET'])
@permission_classes([IsAuthenticated, allows(Operation.VIEW_DASHBOARD)])
def dashboard_overview(request):
    return ok('Overview retrieved successfully', dashboard_svc.overview())


@api_view(['GET'])
@permission_classes([IsAuthenticated, allows(Operation.VIEW_DASHBOARD)])
def dashboard_detailed(request):
    """Detailed dashboard; ``?refresh=true`` bypasses the cache."""
    refresh = request.query_params.get('refresh', '').lower() == 'true'
    result = dashboard_svc.detailed(dashboard_svc.DashboardCache(), refresh=refresh)
    return ok('Dashboard retrieved successfully', result['data'],
              cached=result['cached'], cacheAge=result['cacheAge'])


# ---------------------------------------------------------------------------
# Admin accounts
# ---------------------------------------------------------------------------

@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, allows(Operation.MANAGE_ADMINS)])
def admins(request):
    if request.method == 'POST':
        s = StaffCreateSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        admin = accounts.create_admin(request.user, **_staff_fields(s.validated_data))
        return created('Admin created successfully', {'admin': format_admin(admin)})

    qs = User.objects.exclude(role=User.Role.STUDENT).order_by('-date_joined')
    q = _search(request)
    if q:
        qs = qs.filter(Q(first_name__icontains=q) | Q(email__icontains=q) | Q(username__icontains=q))
    data = [format_admin(a, with_hostels=True) for a in qs]
    return ok('Admins retrieved successfully', {'total': len(data), 'admins': data})


@api_view(['GET', 'DELETE'])
@permission_classes([IsAuthenticated, allows(Operation.MANAGE_ADMINS)])
def admin_detail(request, admin_id: str):
    if request.method == 'DELETE':
        accounts.delete_admin(request.user, admin_id)
        return ok('Admin deleted successfully')

    admin = accounts.get_staff(admin_id)
    hostels = list(Hostel.objects.filter(admin=admin).order_by('-created_at'))
    applications = Application.objects.filter(hostel__in=hostels).count()
    return ok('Admin retrieved successfully', {
        'admin': format_admin(admin, with_hostels=True),
        'hostels': [format_hostel(h) for h in hostels],
        'stats': {'hostels': len(hostels), 'applications': applications},
    })


@api_view(['PATCH'])
@permission_classes([IsAuthenticated, allows(Operation.MANAGE_ADMINS)])
def disable_admin(request, admin_id: str):
    admin = accounts.set_admin_active(request.user, admin_id, False)
    return ok('Admin disabled successfully', {'admin': format_admin(admin)})


@api_view(['PATCH'])
@permission_classes([IsAuthenticated, allows(Operation.MANAGE_ADMINS)])
def enable_admin(request, admin_id: str):
    admin = accounts.set_admin_active(request.user, admin_id, True)
    return ok('Admin enabled successfully', {'admin': format_admin(admin)})


@api_view(['POST'])
@permission_classes([AllowAny])
@throttle_classes([LoginRateThrottle])
def create_superadmin(request):
    s = SuperadminCreateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    user = accounts.create_superadmin(s.validated_data['passKey'], **_staff_fields(s.validated_data))
    return created('Superadmin created successfully', {'admin': format_admin(user)})


# ---------------------------------------------------------------------------
# Students and room moves
# ---------------------------------------------------------------------------

@api_view(['GET'])
@permission_classes([IsAuthenticated, allows(Operation.VIEW_STUDENTS)])
def students(request):
    qs = Student.objects.order_by('-created_at')
    q = _search(request)
    if q:
        qs = qs.filter(Q(name__icontains=q) | Q(email__icontains=q) | Q(pnr__icontains=q))
    data = [format_student(s) for s in qs]
    return ok('Students retrieved successfully', {'total': len(data), 'students': data})


@api_view(['GET'])
@permission_classes([IsAuthenticated, allows(Operation.VIEW_STUDENTS)])
def student_detail(request, pnr: str):
    student = Student.objects.select_related('assigned_room').filter(pnr=pnr).first()
    if student is None:
        raise StudentNotFound()
    application = Application.objects.select_related('hostel').filter(student=student).first()
    return ok('Student retrieved successfully', {
        'student': format_student(student),
        'room': format_room(student.assigned_room) if student.assigned_room_id else None,
        'application': _application_payload(application),
    })


@api_view(['PUT'])
@permission_classes([IsAuthenticated, allows(Operation.ASSIGN_ROOM)])
def assign_room(request, pnr: str):
    s = RoomTargetSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    student, room = allocation.assign_room(
        request.user, pnr, hostel_id=s.validated_data['hostelId'], room_id=s.validated_data['roomId']
    )
    return ok('Room assigned successfully', {'student': format_student(student), 'room': format_room(room)})


@api_view(['PUT'])
@permission_classes([IsAuthenticated, allows(Operation.CHANGE_ROOM)])
def change_room(request, pnr: str):
    s = RoomTargetSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    student, room = allocation.change_room(
        request.user, pnr, hostel_id=s.validated_data['hostelId'], room_id=s.validated_data['roomId']
    )
    return ok('Room changed successfully', {'student': format_student(student), 'room': format_room(room)})


@api_view(['PUT'])
@permission_classes([IsAuthenticated, allows(Operation.REASSIGN_ROOM)])
def reassign_room(request, pnr: str):
    s = ReassignSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    student, room, application = allocation.reassign_room(
        request.user, pnr,
        hostel_id=s.validated_data['hostelId'], room_id=s.validated_data['roomId'],
        remark=s.validated_data.get('remark'),
    )
    return ok('Room reassigned successfully', {
        'student': format_student(student),
        'room': format_room(room),
        'application': _application_payload(application),
    })


@api_view(['PUT'])
@permission_classes([IsAuthenticated, allows(Operation.REMOVE_FROM_ROOM)])
def remove_from_room(request, pnr: str):
    s = RemoveSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    student, room, application = allocation.remove_from_room(request.user, pnr, remark=s.validated_data.get('remark'))
    return ok('Student removed from room successfully', {
        'student': format_student(student),
        'room': format_room(room),
        'application': _application_payload(application),
    })


@api_view(['PUT'])
@permission_classes([IsAuthenticated, allows(Operation.REJECT_BY_PNR)])
def reject_application(request, pnr: str):
    s = RejectSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    application = allocation.reject_by_pnr(request.user, pnr, reason=s.validated_data.get('rejectionReason'))
    return ok('Application rejected successfully', {'application': format_application(application)})


@api_view(['PUT'])
@permission_classes([IsAuthenticated, allows(Operation.BLACKLIST_STUDENT)])
def blacklist_student(request, pnr: str):
    student = allocation.set_blacklisted(request.user, pnr, True)
    return ok('Student blacklisted successfully', {'student': format_student(student)})


@api_view(['PUT'])
@permission_classes([IsAuthenticated, allows(Operation.BLACKLIST_STUDENT)])
def unblacklist_student(request, pnr: str):
    student = allocation.set_blacklisted(request.user, pnr, False)
    return ok('Student removed from blacklist successfully', {'student': format_student(student)})


# ---------------------------------------------------------------------------
# Hostels
# ---------------------------------------------------------------------------

@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, allows(Operation.MANAGE_HOSTELS)])
def hostels(request):
    if request.method == 'POST':
        s = HostelWriteSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        hostel = hostel_svc.create_hostel(request.user, s.validated_data)
        return created('Hostel created successfully', {'hostel': format_hostel(hostel)})

    qs = Hostel.objects.select_related('admin').order_by('-created_at')
    q = _search(request)
    if q:
        qs = qs.filter(Q(name__icontains=q) | Q(location__icontains=q) | Q(warden__icontains=q))
    data = [{**format_hostel(h), **hostel_svc.hostel_statistics(h)} for h in qs]
    return ok('Hostels retrieved successfully', {'total': len(data), 'hostels': data})


@api_view(['GET', 'PUT', 'DELETE'])
@permission_classes([IsAuthenticated, allows(Operation.MANAGE_HOSTELS)])
def hostel_detail(request, hostel_id: int):
    if request.method == 'DELETE':
        hostel_svc.delete_hostel(request.user, hostel_id)
        return ok('Hostel deleted successfully')
    if request.method == 'PUT':
        s = HostelWriteSerializer(data=request.data, partial=True)
        s.is_valid(raise_exception=True)
        hostel = hostel_svc.update_hostel(request.user, hostel_id, s.validated_data)
        return ok('Hostel updated successfully', {'hostel': format_hostel(hostel)})

    hostel = allocation.get_hostel(hostel_id)
    rooms = [format_room(r) for r in hostel.rooms.order_by('floor', 'room_number')]
    return ok('Hostel retrieved successfully', {
        'hostel': {**format_hostel(hostel), **hostel_svc.hostel_statistics(hostel)},
        'rooms': rooms,
        'applications': hostel.applications.count(),
    })


@api_view(['PATCH'])
@permission_classes([IsAuthenticated, allows(Operation.MANAGE_HOSTELS)])
def enable_hostel(request, hostel_id: int):
    hostel = hostel_svc.set_hostel_active(request.user, hostel_id, True)
    return ok('Hostel enabled successfully', {'hostel': format_hostel(hostel)})


@api_view(['PATCH'])
@permission_classes([IsAuthenticated, allows(Operation.MANAGE_HOSTELS)])
def disable_hostel(request, hostel_id: int):
    hostel = hostel_svc.set_hostel_active(request.user, hostel_id, False)
    return ok('Hostel disabled successfully', {'hostel': format_hostel(hostel)})


@api_view(['PUT'])
@permission_classes([IsAuthenticated, allows(Operation.MANAGE_HOSTELS)])
def change_hostel_admin(request, hostel_id: int):
    s = ChangeAdminSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    hostel = hostel_svc.change_hostel_admin(request.user, hostel_id, s.validated_data['adminId'])
    return ok('Hostel admin changed successfully', {'hostel': format_hostel(hostel)})


@api_view(['PUT'])
@permission_classes([IsAuthenticated, allows(Operation.MANAGE_HOSTELS)])
def change_room_status(request, hostel_id: int, room_id: int):
    s = RoomStatusSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    room = allocation.change_room_status(request.user, hostel_id, room_id, status=s.validated_data['status'])
    return ok('Room status updated successfully', {'room': format_room(room)})
