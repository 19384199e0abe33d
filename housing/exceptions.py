"""
Error taxonomy for the allocation API and the project-wide DRF exception
handler that renders every failure as ``{"success": false, "message": ...}``.
"""
import logging

from rest_framework import status
from rest_framework.exceptions import APIException, ValidationError
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

logger = logging.getLogger(__name__)


class AllocationError(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Allocation request could not be completed.'
    default_code = 'allocation_error'


# 400: missing or malformed input

class MissingField(AllocationError):
    default_detail = 'Required fields are missing.'
    default_code = 'missing_field'

    def __init__(self, *fields):
        if fields:
            super().__init__(f"Missing required field(s): {', '.join(fields)}")
        else:
            super().__init__()
        self.fields = fields


class InvalidInput(AllocationError):
    default_detail = 'Invalid input.'
    default_code = 'invalid_input'


# 404: entity lookup misses

class NotFoundError(AllocationError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = 'Not found.'
    default_code = 'not_found'


class StudentNotFound(NotFoundError):
    default_detail = 'Student not found.'
    default_code = 'student_not_found'


class ApplicationNotFound(NotFoundError):
    default_detail = 'Application not found.'
    default_code = 'application_not_found'


class HostelNotFound(NotFoundError):
    default_detail = 'Hostel not found.'
    default_code = 'hostel_not_found'


class RoomNotFound(NotFoundError):
    default_detail = 'Room not found.'
    default_code = 'room_not_found'


class AdminNotFound(NotFoundError):
    default_detail = 'Admin not found.'
    default_code = 'admin_not_found'


# 400: business rule violations

class ConflictError(AllocationError):
    default_detail = 'Request conflicts with the current state.'
    default_code = 'conflict'


class DuplicateApplication(ConflictError):
    default_detail = 'You have already submitted an application.'
    default_code = 'duplicate_application'


class AlreadyProcessed(ConflictError):
    default_detail = 'Application has already been processed.'
    default_code = 'already_processed'


class RoomFull(ConflictError):
    default_detail = 'Room is already full.'
    default_code = 'room_full'


class AlreadyAssignedToThisRoom(ConflictError):
    default_detail = 'Student is already assigned to this room.'
    default_code = 'already_assigned_to_this_room'


class AlreadyAssigned(ConflictError):
    default_detail = 'Student already has a room. Use change-room or reassign-room instead.'
    default_code = 'already_assigned'


class NoAssignedRoom(ConflictError):
    default_detail = 'Student is not currently assigned to any room.'
    default_code = 'no_assigned_room'


class NoApprovedApplication(ConflictError):
    default_detail = 'Student does not have an approved application.'
    default_code = 'no_approved_application'


class RoomMismatch(ConflictError):
    default_detail = 'Room does not belong to the specified hostel.'
    default_code = 'room_mismatch'


class StudentBlacklisted(ConflictError):
    default_detail = 'Student is blacklisted and cannot be assigned a room.'
    default_code = 'student_blacklisted'


# 403: caller may not act on this resource

class HostelAccessDenied(AllocationError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = 'You are not authorized to manage this hostel.'
    default_code = 'hostel_access_denied'


def api_exception_handler(exc, context):
    resp = drf_exception_handler(exc, context)
    if resp is None:
        view = context.get('view')
        logger.error("Unhandled error in %s", getattr(view, '__name__', view), exc_info=exc)
        return Response({'success': False, 'message': str(exc) or 'Internal server error'}, status=500)

    body = {'success': False}
    if isinstance(exc, ValidationError) and isinstance(resp.data, dict):
        body['message'] = 'Validation failed'
        body['errors'] = resp.data
    elif isinstance(resp.data, dict) and 'detail' in resp.data:
        body['message'] = str(resp.data['detail'])
    elif isinstance(resp.data, list):
        body['message'] = '; '.join(str(item) for item in resp.data)
    else:
        body['message'] = str(resp.data)
    return Response(body, status=resp.status_code, headers=_passthrough_headers(resp))


def _passthrough_headers(resp):
    # Keep WWW-Authenticate / Retry-After produced by DRF
    return {k: v for k, v in resp.items() if k in ('WWW-Authenticate', 'Retry-After')}
