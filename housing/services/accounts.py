"""
Account management: student registration, login identity resolution and
admin/superadmin administration.
"""
from __future__ import annotations

import logging
from typing import Optional

from django.conf import settings
from django.contrib.auth import authenticate
from django.contrib.auth.password_validation import validate_password
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import Q
from rest_framework.exceptions import AuthenticationFailed
from rest_framework.exceptions import ValidationError as DRFValidation

from housing.exceptions import AdminNotFound, ConflictError, InvalidInput, MissingField
from housing.models import Student, User
from housing.services.audit import log_action

logger = logging.getLogger(__name__)


def _check_password(password: str, confirm: Optional[str] = None, user: Optional[User] = None) -> None:
    if confirm is not None and password != confirm:
        raise InvalidInput('Passwords do not match')
    try:
        validate_password(password, user=user)
    except ValidationError as e:
        raise DRFValidation({'password': e.messages})


def register_student(*, name, email, pnr, password, gender, year, **extra) -> Student:
    """Create the login account and the student profile; the PNR is the username."""
    required = {'name': name, 'email': email, 'pnr': pnr, 'password': password, 'gender': gender, 'year': year}
    missing = [k for k, v in required.items() if v in (None, '')]
    if missing:
        raise MissingField(*missing)
    if Student.objects.filter(Q(email__iexact=email) | Q(pnr=pnr)).exists() or \
            User.objects.filter(username=pnr).exists():
        raise ConflictError('Email or PNR already exists')
    _check_password(password)

    with transaction.atomic():
        user = User.objects.create_user(username=pnr, email=email, password=password,
                                        first_name=name, role=User.Role.STUDENT)
        student = Student.objects.create(
            user=user,
            name=name,
            email=email,
            pnr=pnr,
            gender=gender,
            year=year,
            phone=extra.get('phone') or '',
            address=extra.get('address') or '',
            parent_name=extra.get('parent_name') or '',
            parent_phone=extra.get('parent_phone') or '',
        )
        log_action(user=user, action='student.register', object_type='Student', object_id=student.pk)
    logger.info("student %s registered", pnr)
    return student


def resolve_username(identifier: str) -> str:
    """Map a student email/PNR or an admin id to the account username."""
    student = Student.objects.select_related('user').filter(
        Q(email__iexact=identifier) | Q(pnr=identifier)
    ).first()
    if student is not None:
        return student.user.username
    return identifier


def login(request, identifier: str, password: str) -> User:
    if not identifier or not password:
        raise MissingField('identifier', 'password')
    username = resolve_username(identifier)
    user = authenticate(request, username=username, password=password)
    if user is None:
        log_action(user=None, action='login', object_type='user',
                   detail={'result': 'fail', 'identifier': identifier, 'ip': request.META.get('REMOTE_ADDR')})
        raise AuthenticationFailed('Invalid credentials')
    log_action(user=user, action='login', object_type='user', object_id=user.pk,
               detail={'result': 'ok', 'ip': request.META.get('REMOTE_ADDR')})
    return user


def _create_staff(*, name, email, admin_id, password, confirm_password, phone, role) -> User:
    required = {'name': name, 'email': email, 'adminId': admin_id, 'password': password,
                'confirmPassword': confirm_password}
    missing = [k for k, v in required.items() if v in (None, '')]
    if missing:
        raise MissingField(*missing)
    if User.objects.filter(Q(username=admin_id) | Q(email__iexact=email)).exists():
        raise ConflictError('Email or Admin ID already exists')
    _check_password(password, confirm_password)
    user = User.objects.create_user(username=admin_id, email=email, password=password,
                                    first_name=name, phone=phone or '', role=role)
    logger.info("%s %s created", role, admin_id)
    return user


def create_admin(actor, **fields) -> User:
    admin = _create_staff(role=User.Role.ADMIN, **fields)
    log_action(user=actor, action='admin.create', object_type='User', object_id=admin.pk)
    return admin


def create_superadmin(pass_key: Optional[str], **fields) -> User:
    expected = getattr(settings, 'SUPERADMIN_PASSKEY', '')
    if not pass_key or not expected or pass_key.upper() != expected.upper():
        raise AuthenticationFailed('Invalid Passkey')
    user = _create_staff(role=User.Role.SUPERADMIN, **fields)
    log_action(user=user, action='superadmin.create', object_type='User', object_id=user.pk)
    return user


def get_staff(admin_id: str) -> User:
    admin = User.objects.filter(username=admin_id).exclude(role=User.Role.STUDENT).first()
    if admin is None:
        raise AdminNotFound()
    return admin


def set_admin_active(actor, admin_id: str, active: bool) -> User:
    admin = get_staff(admin_id)
    if not active and admin.role == User.Role.SUPERADMIN:
        raise ConflictError('Cannot disable a superadmin')
    admin.is_active = active
    admin.save(update_fields=['is_active'])
    log_action(user=actor, action='admin.enable' if active else 'admin.disable',
               object_type='User', object_id=admin.pk)
    return admin


def delete_admin(actor, admin_id: str) -> None:
    admin = get_staff(admin_id)
    if admin.role == User.Role.SUPERADMIN:
        raise ConflictError('Cannot delete a superadmin')
    owned = admin.managed_hostels.count()
    if owned:
        raise ConflictError(
            f"Cannot delete admin with {owned} assigned hostel(s). Please reassign hostels first."
        )
    pk = admin.pk
    admin.delete()
    log_action(user=actor, action='admin.delete', object_type='User', object_id=pk)
    logger.info("admin %s deleted", admin_id)
