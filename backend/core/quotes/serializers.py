from rest_framework import serializers


class PaymentScheduleCreateSerializer(serializers.Serializer):
    calculationResult = serializers.DictField()


class ResiliationSerializer(serializers.Serializer):
    resiliationDate = serializers.DateField(allow_null=True, default=None)
    resiliationReason = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=255)
