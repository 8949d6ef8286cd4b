from django.core.exceptions import ValidationError as DjangoValidationError
from rest_framework import status
from rest_framework.views import APIView

from accounts.errors import (
    ForbiddenError,
    NotFoundError,
    api_response,
    error_response,
    validation_message,
)
from accounts.permissions import HasAccessRole, is_admin
from payments.models import PaymentSchedule
from payments.serializers import PaymentScheduleSerializer
from quotes.models import Quote
from quotes.serializers import PaymentScheduleCreateSerializer, ResiliationSerializer
from quotes.services import create_payment_schedule_from_calculation, resiliate_quote


def _get_quote(pk: int) -> Quote:
    quote = Quote.objects.select_related("broker", "product").filter(pk=pk).first()
    if quote is None:
        raise NotFoundError("Devis non trouvé")
    return quote


def _schedule_payload(schedule: PaymentSchedule) -> dict:
    schedule = PaymentSchedule.objects.prefetch_related("installments").get(pk=schedule.pk)
    return PaymentScheduleSerializer(schedule).data


class QuotePaymentScheduleAPIView(APIView):
    permission_classes = [HasAccessRole]
    access_resource_key = "quotes"

    def post(self, request, pk: int):
        serializer = PaymentScheduleCreateSerializer(data=request.data or {})
        serializer.is_valid(raise_exception=True)

        quote = _get_quote(pk)
        if not is_admin(request) and quote.broker_id != request.user.pk:
            raise ForbiddenError("Accès refusé à ce devis")

        try:
            schedule = create_payment_schedule_from_calculation(
                quote=quote,
                calculation_result=serializer.validated_data["calculationResult"],
            )
        except DjangoValidationError as exc:
            return error_response(validation_message(exc), status.HTTP_400_BAD_REQUEST)

        return api_response(
            _schedule_payload(schedule),
            message="Échéancier créé avec succès",
            status_code=status.HTTP_201_CREATED,
        )


class QuoteResiliationAPIView(APIView):
    permission_classes = [HasAccessRole]
    access_resource_key = "quotes_admin"

    def post(self, request, pk: int):
        serializer = ResiliationSerializer(data=request.data or {})
        serializer.is_valid(raise_exception=True)

        quote = _get_quote(pk)
        resiliation_date = serializer.validated_data.get("resiliationDate")
        try:
            schedule = resiliate_quote(
                quote=quote,
                resiliation_date=resiliation_date,
                resiliation_reason=serializer.validated_data.get("resiliationReason") or "",
            )
        except DjangoValidationError as exc:
            return error_response(validation_message(exc), status.HTTP_400_BAD_REQUEST)

        message = (
            f"Contrat résilié au {resiliation_date:%d/%m/%Y}"
            if resiliation_date is not None
            else "Résiliation annulée"
        )
        return api_response(_schedule_payload(schedule), message=message)
