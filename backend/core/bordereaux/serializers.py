from dateutil import parser as date_parser
from rest_framework import serializers

from bordereaux.builders.common import DateRange
from bordereaux.builders.legacy import LegacyFilters
from bordereaux.builders.v2 import InclusionOptions
from quotes.models import InsuranceContract

DATE_RANGE_REQUIRED_MESSAGE = "dateRange.startDate et dateRange.endDate requis"


class IsoDateField(serializers.DateField):
    """Accepts plain dates as well as ISO timestamps sent by the admin UI."""

    def to_internal_value(self, value):
        if isinstance(value, str) and "T" in value:
            try:
                return date_parser.isoparse(value).date()
            except ValueError:
                self.fail("invalid", format="YYYY-MM-DD")
        return super().to_internal_value(value)


class DateRangeSerializer(serializers.Serializer):
    startDate = IsoDateField()
    endDate = IsoDateField()

    def validate(self, attrs):
        if attrs["startDate"] > attrs["endDate"]:
            raise serializers.ValidationError("La date de début doit précéder la date de fin")
        return attrs


class LegacyPreviewSerializer(serializers.Serializer):
    dateRange = DateRangeSerializer()
    brokerIds = serializers.ListField(child=serializers.IntegerField(), required=False, default=list)
    contractStatus = serializers.ListField(
        child=serializers.ChoiceField(choices=InsuranceContract.STATUS_CHOICES),
        required=False,
        default=list,
    )
    productType = serializers.CharField(required=False, allow_blank=True, allow_null=True, default="")
    includeQuotes = serializers.BooleanField(required=False, default=True)

    def to_filters(self) -> LegacyFilters:
        data = self.validated_data
        return LegacyFilters(
            date_range=DateRange(start_date=data["dateRange"]["startDate"], end_date=data["dateRange"]["endDate"]),
            broker_ids=tuple(data["brokerIds"]),
            contract_status=tuple(data["contractStatus"]),
            product_type=data["productType"] or "",
            include_quotes=data["includeQuotes"],
        )


class LegacyExportSerializer(serializers.Serializer):
    rows = serializers.ListField(child=serializers.DictField(), allow_empty=True, required=False, default=list)
    fileName = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=120)


class InclusionOptionsSerializer(serializers.Serializer):
    includeActivities = serializers.BooleanField(required=False, default=True)
    includeCompanyDetails = serializers.BooleanField(required=False, default=True)
    includeCommissions = serializers.BooleanField(required=False, default=True)
    includePaymentDetails = serializers.BooleanField(required=False, default=True)


class V2PreviewSerializer(serializers.Serializer):
    dateRange = DateRangeSerializer()
    inclusionOptions = InclusionOptionsSerializer(required=False)

    def to_date_range(self) -> DateRange:
        data = self.validated_data["dateRange"]
        return DateRange(start_date=data["startDate"], end_date=data["endDate"])

    def to_options(self) -> InclusionOptions:
        return InclusionOptions.from_payload(self.validated_data.get("inclusionOptions"))


class V2ExportSerializer(V2PreviewSerializer):
    polices = serializers.ListField(child=serializers.DictField(), required=False, allow_null=True)
    quittances = serializers.ListField(child=serializers.DictField(), required=False, allow_null=True)
