import bleach
from rest_framework import serializers

from housing.models import RoomStatus


class RoomTargetSerializer(serializers.Serializer):
    hostelId = serializers.IntegerField(min_value=1)
    roomId = serializers.IntegerField(min_value=1)


class ReassignSerializer(RoomTargetSerializer):
    remark = serializers.CharField(required=False, allow_blank=True, max_length=1000)

    def validate_remark(self, v):
        return bleach.clean((v or '').strip(), strip=True)


class RemoveSerializer(serializers.Serializer):
    remark = serializers.CharField(required=False, allow_blank=True, max_length=1000)

    def validate_remark(self, v):
        return bleach.clean((v or '').strip(), strip=True)


class RoomStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=RoomStatus.values)


class RoomCreateSerializer(serializers.Serializer):
    roomNumber = serializers.CharField(max_length=20)
    floor = serializers.IntegerField()
    capacity = serializers.IntegerField(min_value=1, max_value=50)
    notes = serializers.CharField(required=False, allow_blank=True)


class RoomListQuerySerializer(serializers.Serializer):
    floor = serializers.IntegerField(required=False)
    status = serializers.ChoiceField(choices=RoomStatus.values, required=False)
