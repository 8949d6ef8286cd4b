from rest_framework import serializers

from payments.models import PaymentInstallment, PaymentSchedule


class PaymentInstallmentSerializer(serializers.ModelSerializer):
    schedule_id = serializers.IntegerField(read_only=True)
    schedule_status = serializers.CharField(source="schedule.status", read_only=True)
    quote_id = serializers.IntegerField(source="schedule.quote_id", read_only=True)
    quote_reference = serializers.CharField(source="schedule.quote.reference", read_only=True)
    validated_by_name = serializers.SerializerMethodField()

    class Meta:
        model = PaymentInstallment
        fields = (
            "id",
            "schedule_id",
            "schedule_status",
            "quote_id",
            "quote_reference",
            "installment_number",
            "due_date",
            "amount_ht",
            "tax_amount",
            "amount_ttc",
            "rcd_amount",
            "pj_amount",
            "fees_amount",
            "resume_amount",
            "period_start",
            "period_end",
            "status",
            "paid_at",
            "paid_amount",
            "payment_method",
            "payment_reference",
            "admin_notes",
            "validated_by",
            "validated_by_name",
            "validated_at",
            "reminder_count",
            "last_reminder_sent",
            "created_at",
            "updated_at",
        )
        read_only_fields = fields

    def get_validated_by_name(self, obj: PaymentInstallment) -> str:
        user = obj.validated_by
        if user is None:
            return ""
        return user.get_full_name() or user.username


class OverdueInstallmentSerializer(PaymentInstallmentSerializer):
    broker_id = serializers.IntegerField(source="schedule.quote.broker_id", read_only=True)
    broker_email = serializers.EmailField(source="schedule.quote.broker.email", read_only=True)
    product_name = serializers.CharField(source="schedule.quote.product.name", read_only=True)
    days_overdue = serializers.SerializerMethodField()

    class Meta(PaymentInstallmentSerializer.Meta):
        fields = PaymentInstallmentSerializer.Meta.fields + (
            "broker_id",
            "broker_email",
            "product_name",
            "days_overdue",
        )
        read_only_fields = fields

    def get_days_overdue(self, obj: PaymentInstallment) -> int:
        return self.context.get("days_overdue", {}).get(obj.pk, 0)


class PaymentScheduleSerializer(serializers.ModelSerializer):
    installments = PaymentInstallmentSerializer(many=True, read_only=True)

    class Meta:
        model = PaymentSchedule
        fields = (
            "id",
            "quote",
            "total_amount_ht",
            "total_tax_amount",
            "total_amount_ttc",
            "start_date",
            "end_date",
            "status",
            "resiliation_date",
            "resiliation_reason",
            "installments",
            "created_at",
            "updated_at",
        )
        read_only_fields = fields


class MarkPaidSerializer(serializers.Serializer):
    paymentMethod = serializers.ChoiceField(
        choices=PaymentInstallment.METHOD_CHOICES,
        required=False,
        allow_null=True,
        allow_blank=True,
    )
    paymentReference = serializers.CharField(required=False, allow_null=True, allow_blank=True, max_length=120)
    adminNotes = serializers.CharField(required=False, allow_null=True, allow_blank=True)
