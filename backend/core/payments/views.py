import math

from django.conf import settings
from django.core.exceptions import ValidationError as DjangoValidationError
from rest_framework import status
from rest_framework.views import APIView

from accounts.errors import NotFoundError, api_response, error_response, validation_message
from accounts.permissions import HasAccessRole, is_admin
from payments.models import PaymentInstallment
from payments.serializers import (
    MarkPaidSerializer,
    OverdueInstallmentSerializer,
    PaymentInstallmentSerializer,
)
from payments.services import (
    list_installments,
    list_overdue_installments,
    mark_installment_paid,
    mark_installment_unpaid,
    rectify_swapped_amounts,
    send_payment_reminder,
)

INSTALLMENT_NOT_FOUND_MESSAGE = "Échéance de paiement non trouvée"


def _get_installment(pk: int) -> PaymentInstallment:
    installment = (
        PaymentInstallment.objects.select_related(
            "schedule",
            "schedule__quote",
            "schedule__quote__broker",
            "schedule__quote__product",
            "validated_by",
        )
        .filter(pk=pk)
        .first()
    )
    if installment is None:
        raise NotFoundError(INSTALLMENT_NOT_FOUND_MESSAGE)
    return installment


class PaymentInstallmentListAPIView(APIView):
    permission_classes = [HasAccessRole]
    access_resource_key = "payment_installments"

    def get(self, request):
        quote_id = (request.query_params.get("quoteId") or "").strip()
        queryset = list_installments(quote_id=quote_id or None)
        if not is_admin(request):
            queryset = queryset.filter(schedule__quote__broker=request.user)

        total = queryset.count()
        page_size = getattr(settings, "PAYMENT_INSTALLMENTS_PAGE_SIZE", 50)
        return api_response(
            {
                "installments": PaymentInstallmentSerializer(queryset, many=True).data,
                "pagination": {
                    "total": total,
                    "totalPages": math.ceil(total / page_size),
                },
            }
        )


class OverdueInstallmentListAPIView(APIView):
    permission_classes = [HasAccessRole]
    access_resource_key = "payment_installments_admin"

    def get(self, request):
        overdue = list_overdue_installments()
        serializer = OverdueInstallmentSerializer(
            [item["installment"] for item in overdue],
            many=True,
            context={
                "days_overdue": {item["installment"].pk: item["days_overdue"] for item in overdue},
            },
        )
        return api_response({"payments": serializer.data, "total": len(overdue)})


class PaymentInstallmentMarkPaidAPIView(APIView):
    permission_classes = [HasAccessRole]
    access_resource_key = "payment_installments_admin"

    def patch(self, request, pk: int):
        serializer = MarkPaidSerializer(data=request.data or {})
        serializer.is_valid(raise_exception=True)

        installment = _get_installment(pk)
        try:
            mark_installment_paid(
                installment=installment,
                actor=request.user,
                payment_method=serializer.validated_data.get("paymentMethod"),
                payment_reference=serializer.validated_data.get("paymentReference"),
                admin_notes=serializer.validated_data.get("adminNotes"),
            )
        except DjangoValidationError as exc:
            return error_response(validation_message(exc), status.HTTP_400_BAD_REQUEST)

        return api_response(
            PaymentInstallmentSerializer(_get_installment(pk)).data,
            message="Paiement marqué comme payé avec succès",
        )


class PaymentInstallmentMarkUnpaidAPIView(APIView):
    permission_classes = [HasAccessRole]
    access_resource_key = "payment_installments_admin"

    def patch(self, request, pk: int):
        installment = _get_installment(pk)
        try:
            mark_installment_unpaid(installment=installment, actor=request.user)
        except DjangoValidationError as exc:
            return error_response(validation_message(exc), status.HTTP_400_BAD_REQUEST)

        return api_response(
            PaymentInstallmentSerializer(_get_installment(pk)).data,
            message="Paiement marqué comme non payé",
        )


class PaymentInstallmentSendReminderAPIView(APIView):
    permission_classes = [HasAccessRole]
    access_resource_key = "payment_installments_admin"

    def post(self, request, pk: int):
        installment = _get_installment(pk)
        try:
            send_payment_reminder(installment=installment, actor=request.user)
        except DjangoValidationError as exc:
            return error_response(validation_message(exc), status.HTTP_400_BAD_REQUEST)

        return api_response(
            PaymentInstallmentSerializer(installment).data,
            message="Rappel de paiement envoyé avec succès",
        )


class RectifyAmountsAPIView(APIView):
    permission_classes = [HasAccessRole]
    access_resource_key = "maintenance"

    def post(self, request):
        result = rectify_swapped_amounts()
        return api_response(
            result,
            message=f"{result['updated']} échéance(s) rectifiée(s) (montants HT/TTC inversés).",
        )
