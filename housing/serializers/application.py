import bleach
from rest_framework import serializers


class ApplicationSubmitSerializer(serializers.Serializer):
    hostelId = serializers.IntegerField(min_value=1)
    branch = serializers.CharField(max_length=120)
    caste = serializers.CharField(max_length=60)
    dateOfBirth = serializers.DateField()
    aadharCard = serializers.CharField(max_length=255)
    admissionReceipt = serializers.CharField(max_length=255)

    def validate_branch(self, v):
        return bleach.clean(v.strip(), strip=True)


class ApproveSerializer(serializers.Serializer):
    roomNumber = serializers.CharField(max_length=20)
    floor = serializers.IntegerField()


class RejectSerializer(serializers.Serializer):
    rejectionReason = serializers.CharField(required=False, allow_blank=True, max_length=1000)

    def validate_rejectionReason(self, v):
        return bleach.clean((v or '').strip(), strip=True)


class ApplicationListQuerySerializer(serializers.Serializer):
    status = serializers.ChoiceField(
        choices=['PENDING', 'APPROVED', 'REJECTED', 'CANCELLED', 'DISALLOCATED'], required=False
    )
    hostelId = serializers.IntegerField(min_value=1, required=False)
