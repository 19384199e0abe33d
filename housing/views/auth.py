"""
Authentication endpoints: student registration, login for every role,
token refresh, logout and the current-user profile.

Tokens are simplejwt access/refresh pairs; logout blacklists refresh
tokens through the ``token_blacklist`` app.
"""
from __future__ import annotations

from rest_framework.decorators import api_view, permission_classes, throttle_classes
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework_simplejwt.exceptions import InvalidToken, TokenError
from rest_framework_simplejwt.serializers import TokenRefreshSerializer
from rest_framework_simplejwt.token_blacklist.models import BlacklistedToken, OutstandingToken
from rest_framework_simplejwt.tokens import RefreshToken

from ..exceptions import InvalidInput
from ..models import Student
from ..responses import created, ok
from ..serializers.auth import LoginSerializer, LogoutSerializer, RegisterSerializer
from ..services import accounts
from ..services.formats import format_student, format_user
from ..throttling import LoginRateThrottle


def _tokens(user) -> dict:
    refresh = RefreshToken.for_user(user)
    return {'access': str(refresh.access_token), 'refresh': str(refresh)}


def _profile(user) -> dict:
    data = format_user(user)
    student = Student.objects.filter(user=user).first()
    if student is not None:
        data['student'] = format_student(student)
    return data


@api_view(['POST'])
@permission_classes([AllowAny])
@throttle_classes([LoginRateThrottle])
def register_view(request):
    s = RegisterSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    vd = s.validated_data
    student = accounts.register_student(
        name=vd['name'], email=vd['email'], pnr=vd['pnr'], password=vd['password'],
        gender=vd['gender'], year=vd['year'], phone=vd.get('phone'), address=vd.get('address'),
        parent_name=vd.get('parentName'), parent_phone=vd.get('parentPhone'),
    )
    return created('Student registered successfully', {
        **_tokens(student.user),
        'user': _profile(student.user),
    })



@api_view(['POST'])
@permission_classes([AllowAny])
@throttle_classes([LoginRateThrottle])
def login_view(request):
    """Login with a student email/PNR or an admin id; role is taken from the account, never the request."""
    s = LoginSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    user = accounts.login(request, s.validated_data['identifier'], s.validated_data['password'])
    return ok('Login successful', {**_tokens(user), 'role': user.role, 'user': _profile(user)})



@api_view(['POST'])
@permission_classes([AllowAny])
def refresh_view(request):
    """Return a new access token from a refresh token."""
    s = TokenRefreshSerializer(data=request.data)
    try:
        s.is_valid(raise_exception=True)
    except TokenError as e:
        raise InvalidToken(e.args[0])
    return ok('Token refreshed', s.validated_data)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def logout_view(request):
    """Blacklist the given refresh token, or every outstanding token of the user."""
    if request.data.get('refresh'):
        s = LogoutSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        try:
            token = RefreshToken(s.validated_data['refresh'])
        except TokenError as e:
            raise InvalidInput(str(e))
        if str(token.get('user_id')) != str(request.user.pk):
            raise InvalidInput('Token does not belong to the current user')
        token.blacklist()
        return ok('Logged out', {'blacklisted': 1})
    count = 0
    for outstanding in OutstandingToken.objects.filter(user=request.user):
        _, was_created = BlacklistedToken.objects.get_or_create(token=outstanding)
        count += int(was_created)
    return ok('Logged out', {'blacklisted': count})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def me_view(request):
    return ok('Current user', _profile(request.user))
