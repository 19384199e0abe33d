"""
Hostel staff endpoints.

Admins act only on the hostels they own; superadmins pass the same checks
for every hostel.  Approving an application seats the student in the room
named by (roomNumber, floor) inside the application's hostel.
"""
from __future__ import annotations

from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated

from ..exceptions import InvalidInput
from ..models import ApplicationStatus, Hostel, User
from ..permissions import allows, ensure_hostel_access, require
from ..policy import Operation
from ..responses import created, ok
from ..serializers.allocation import RoomCreateSerializer, RoomListQuerySerializer, RoomStatusSerializer
from ..serializers.application import ApplicationListQuerySerializer, ApproveSerializer, RejectSerializer
from ..services import allocation, hostels as hostel_svc
from ..services.formats import format_application, format_hostel, format_room


def _managed_hostel(request, hostel_id) -> Hostel:
    hostel = allocation.get_hostel(hostel_id)
    ensure_hostel_access(request.user, hostel)
    return hostel


@api_view(['GET'])
@permission_classes([IsAuthenticated, allows(Operation.VIEW_INVENTORY)])
def admin_hostels(request):
    qs = Hostel.objects.select_related('admin')
    if request.user.role != User.Role.SUPERADMIN:
        qs = qs.filter(admin=request.user)
    data = [{**format_hostel(h), **hostel_svc.hostel_statistics(h)} for h in qs]
    return ok('Hostels retrieved successfully', {'total': len(data), 'hostels': data})


@api_view(['GET'])
@permission_classes([IsAuthenticated, allows(Operation.LIST_APPLICATIONS)])
def hostel_applications(request, hostel_id: int):
    hostel = _managed_hostel(request, hostel_id)
    q = ApplicationListQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    qs = hostel.applications.select_related('hostel')
    if q.validated_data.get('status'):
        qs = qs.filter(status=q.validated_data['status'])
    data = [format_application(a) for a in qs]
    return ok('Applications retrieved successfully', {'total': len(data), 'applications': data})


@api_view(['PUT'])
@permission_classes([IsAuthenticated])
def decide_application(request, application_id: int, decision: str):
    """PUT .../applications/<id>/APPROVED or .../REJECTED."""
    decision = decision.upper()
    if decision == ApplicationStatus.APPROVED:
        require(request, Operation.APPROVE_APPLICATION)
        s = ApproveSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        application = allocation.approve_application(
            request.user, application_id,
            room_number=s.validated_data['roomNumber'], floor=s.validated_data['floor'],
        )
        return ok('Application approved successfully', {'application': format_application(application)})
    if decision == ApplicationStatus.REJECTED:
        require(request, Operation.REJECT_APPLICATION)
        s = RejectSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        application = allocation.reject_application(
            request.user, application_id, reason=s.validated_data.get('rejectionReason')
        )
        return ok('Application rejected successfully', {'application': format_application(application)})
    raise InvalidInput('Status must be APPROVED or REJECTED')


@api_view(['GET'])
@permission_classes([IsAuthenticated, allows(Operation.VIEW_INVENTORY)])
def hostel_inventory(request, hostel_id: int):
    hostel = _managed_hostel(request, hostel_id)
    q = RoomListQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    inv = hostel_svc.inventory(hostel, floor=q.validated_data.get('floor'), status=q.validated_data.get('status'))
    inv['rooms'] = [format_room(r) for r in inv['rooms']]
    return ok('Inventory retrieved successfully', inv)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def hostel_rooms(request, hostel_id: int):
    """GET: rooms filtered by ``floor``/``status``.  POST: create a room."""
    if request.method == 'POST':
        require(request, Operation.CREATE_ROOM)
        s = RoomCreateSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        vd = s.validated_data
        room = allocation.create_room(
            request.user, hostel_id,
            room_number=vd['roomNumber'], floor=vd['floor'], capacity=vd['capacity'], notes=vd.get('notes', ''),
        )
        return created('Room created successfully', {'room': format_room(room)})

    require(request, Operation.VIEW_INVENTORY)
    hostel = _managed_hostel(request, hostel_id)
    q = RoomListQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    rooms = hostel.rooms.all()
    if q.validated_data.get('floor') is not None:
        rooms = rooms.filter(floor=q.validated_data['floor'])
    if q.validated_data.get('status'):
        rooms = rooms.filter(status=q.validated_data['status'])
    data = [format_room(r) for r in rooms.order_by('floor', 'room_number')]
    return ok('Rooms retrieved successfully', {'total': len(data), 'rooms': data})


@api_view(['PUT'])
@permission_classes([IsAuthenticated, allows(Operation.CHANGE_ROOM_STATUS)])
def change_room_status(request, hostel_id: int, room_id: int):
    s = RoomStatusSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    room = allocation.change_room_status(request.user, hostel_id, room_id, status=s.validated_data['status'])
    return ok('Room status updated successfully', {'room': format_room(room)})
