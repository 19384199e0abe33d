import bleach
from rest_framework import serializers

from housing.models import Student


def _clean(v):
    return bleach.clean((v or '').strip(), strip=True)


class RegisterSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=120)
    email = serializers.EmailField()
    pnr = serializers.CharField(max_length=32)
    password = serializers.CharField(write_only=True)
    gender = serializers.ChoiceField(choices=Student.Gender.choices)
    year = serializers.ChoiceField(choices=Student.Year.choices)
    phone = serializers.CharField(required=False, allow_blank=True, max_length=20)
    address = serializers.CharField(required=False, allow_blank=True)
    parentName = serializers.CharField(required=False, allow_blank=True, max_length=120)
    parentPhone = serializers.CharField(required=False, allow_blank=True, max_length=20)

    def validate_name(self, v):
        v = _clean(v)
        if len(v) < 2:
            raise serializers.ValidationError('Name must be at least 2 characters')
        return v

    def validate_pnr(self, v):
        v = (v or '').strip()
        if not v.isalnum():
            raise serializers.ValidationError('PNR must be alphanumeric')
        return v

    def validate_address(self, v):
        return _clean(v)


class LoginSerializer(serializers.Serializer):
    """``identifier`` is a student email or PNR, or an admin id; ``email`` and ``adminId`` are accepted aliases."""
    identifier = serializers.CharField(required=False)
    email = serializers.CharField(required=False)
    adminId = serializers.CharField(required=False)
    password = serializers.CharField()

    def validate(self, attrs):
        ident = (attrs.get('identifier') or attrs.get('email') or attrs.get('adminId') or '').strip()
        if not ident:
            raise serializers.ValidationError({'identifier': 'This field is required.'})
        attrs['identifier'] = ident
        return attrs


class StaffCreateSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=120)
    email = serializers.EmailField()
    adminId = serializers.CharField(max_length=64)
    password = serializers.CharField(write_only=True)
    confirmPassword = serializers.CharField(write_only=True)
    phone = serializers.CharField(required=False, allow_blank=True, max_length=20)

    def validate_name(self, v):
        return _clean(v)


class SuperadminCreateSerializer(StaffCreateSerializer):
    passKey = serializers.CharField(write_only=True)


class LogoutSerializer(serializers.Serializer):
    refresh = serializers.CharField()
