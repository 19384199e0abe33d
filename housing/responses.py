"""Success envelope shared by all API views: ``{success, message, data?}``."""
from rest_framework import status as http_status
from rest_framework.response import Response


def ok(message: str, data=None, *, status: int = http_status.HTTP_200_OK, **extra) -> Response:
    body = {'success': True, 'message': message}
    if data is not None:
        body['data'] = data
    body.update(extra)
    return Response(body, status=status)


def created(message: str, data=None, **extra) -> Response:
    return ok(message, data, status=http_status.HTTP_201_CREATED, **extra)
