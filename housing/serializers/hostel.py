import bleach
from rest_framework import serializers

from housing.models import Hostel


class HostelWriteSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=120)
    description = serializers.CharField(required=False, allow_blank=True)
    location = serializers.CharField(max_length=255)
    warden = serializers.CharField(required=False, allow_blank=True, max_length=120)
    wardenPhone = serializers.CharField(required=False, allow_blank=True, max_length=20)
    capacity = serializers.IntegerField(min_value=1)
    gender = serializers.ChoiceField(choices=Hostel.Gender.choices)
    rentPerMonth = serializers.IntegerField(required=False, min_value=0)
    adminId = serializers.CharField(max_length=64)
    amenities = serializers.ListField(child=serializers.CharField(max_length=120), required=False)
    rules = serializers.ListField(child=serializers.CharField(max_length=500), required=False)

    def validate_name(self, v):
        return bleach.clean(v.strip(), strip=True)

    def validate_description(self, v):
        return bleach.clean((v or '').strip(), strip=True)


class ChangeAdminSerializer(serializers.Serializer):
    adminId = serializers.CharField(max_length=64)


class SearchQuerySerializer(serializers.Serializer):
    q = serializers.CharField(max_length=64, required=False, allow_blank=True)
