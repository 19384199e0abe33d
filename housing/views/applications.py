"""
Student application endpoints.

Students submit, read and cancel their own application; staff list the
applications of the hostels they manage.  Approval and rejection live in
``housing.views.admin``.
"""
from __future__ import annotations

from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import PermissionDenied
from rest_framework.permissions import IsAuthenticated

from ..exceptions import ApplicationNotFound, StudentNotFound
from ..models import Application, Student, User
from ..permissions import allows, ensure_hostel_access, require
from ..policy import Operation
from ..responses import created, ok
from ..serializers.application import ApplicationListQuerySerializer, ApplicationSubmitSerializer
from ..services import allocation
from ..services.formats import format_application


def _student_of(user) -> Student:
    student = Student.objects.select_related('user').filter(user=user).first()
    if student is None:
        raise StudentNotFound()
    return student


def _visible_applications(user):
    qs = Application.objects.select_related('hostel', 'student')
    if user.role == User.Role.SUPERADMIN:
        return qs
    return qs.filter(hostel__admin=user)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def applications(request):
    """POST: submit an application (student).  GET: list applications (staff)."""
    if request.method == 'POST':
        require(request, Operation.SUBMIT_APPLICATION)
        s = ApplicationSubmitSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        vd = s.validated_data
        application = allocation.submit_application(
            _student_of(request.user),
            hostel_id=vd['hostelId'],
            branch=vd['branch'],
            caste=vd['caste'],
            date_of_birth=vd['dateOfBirth'],
            aadhar_card=vd['aadharCard'],
            admission_receipt=vd['admissionReceipt'],
        )
        return created('Application submitted successfully', {'application': format_application(application)})

    require(request, Operation.LIST_APPLICATIONS)
    q = ApplicationListQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    qs = _visible_applications(request.user)
    if q.validated_data.get('status'):
        qs = qs.filter(status=q.validated_data['status'])
    if q.validated_data.get('hostelId'):
        qs = qs.filter(hostel_id=q.validated_data['hostelId'])
    data = [format_application(a) for a in qs]
    return ok('Applications retrieved successfully', {'total': len(data), 'applications': data})


@api_view(['GET'])
@permission_classes([IsAuthenticated, allows(Operation.VIEW_OWN_APPLICATION)])
def my_application(request):
    student = _student_of(request.user)
    application = Application.objects.select_related('hostel').filter(student=student).first()
    if application is None:
        raise ApplicationNotFound('No application found')
    return ok('Application retrieved successfully', {'application': format_application(application)})


@api_view(['GET'])
@permission_classes([IsAuthenticated, allows(Operation.VIEW_APPLICATION)])
def application_by_pnr(request, pnr: str):
    """Students may only read their own; admins only those of their hostels."""
    user = request.user
    if user.role == User.Role.STUDENT and _student_of(user).pnr != pnr:
        raise PermissionDenied('You can only view your own application')
    application = Application.objects.select_related('hostel').filter(student__pnr=pnr).first()
    if application is None:
        raise ApplicationNotFound()
    if user.role != User.Role.STUDENT:
        ensure_hostel_access(user, application.hostel)
    return ok('Application retrieved successfully', {'application': format_application(application)})


@api_view(['PUT'])
@permission_classes([IsAuthenticated, allows(Operation.CANCEL_APPLICATION)])
def cancel_application(request, application_id: int):
    application = allocation.cancel_application(_student_of(request.user), application_id)
    return ok('Application cancelled successfully', {'application': format_application(application)})
