"""Hostel catalogue visible to every signed-in user."""
from __future__ import annotations

from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated

from ..exceptions import HostelNotFound
from ..models import Hostel
from ..permissions import allows
from ..policy import Operation
from ..responses import ok
from ..services.formats import format_hostel


@api_view(['GET'])
@permission_classes([IsAuthenticated, allows(Operation.VIEW_HOSTELS)])
def list_hostels(request):
    """Active hostels, optionally filtered by ``gender``."""
    qs = Hostel.objects.filter(is_active=True).select_related('admin')
    gender = request.query_params.get('gender')
    if gender:
        qs = qs.filter(gender__in=[gender, Hostel.Gender.COED])
    data = [format_hostel(h) for h in qs]
    return ok('Hostels retrieved successfully', {'total': len(data), 'hostels': data})


@api_view(['GET'])
@permission_classes([IsAuthenticated, allows(Operation.VIEW_HOSTELS)])
def hostel_detail(request, hostel_id: int):
    hostel = Hostel.objects.select_related('admin').filter(pk=hostel_id, is_active=True).first()
    if hostel is None:
        raise HostelNotFound()
    return ok('Hostel retrieved successfully', {'hostel': format_hostel(hostel)})
