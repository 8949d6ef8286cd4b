from django.http import HttpResponse
from django.utils import timezone
from rest_framework import serializers, status
from rest_framework.response import Response
from rest_framework.views import APIView

from accounts.errors import BadRequestError, NotFoundError, api_response, error_response
from accounts.permissions import HasAccessRole
from bordereaux.builders.legacy import build_legacy_rows
from bordereaux.exporters import CSV_CONTENT_TYPE, ZIP_CONTENT_TYPE, EmptyBordereauError
from bordereaux.models import Bordereau
from bordereaux.serializers import (
    DATE_RANGE_REQUIRED_MESSAGE,
    LegacyExportSerializer,
    LegacyPreviewSerializer,
    V2ExportSerializer,
    V2PreviewSerializer,
)
from bordereaux.services import export_legacy_csv, export_v2, list_history, preview_v2, regenerate_zip

NO_ROWS_MESSAGE = "Aucune donnée fournie pour l'export CSV"
BORDEREAU_NOT_FOUND_MESSAGE = "Bordereau introuvable"


def _validated(serializer):
    if serializer.is_valid():
        return serializer
    if "dateRange" in serializer.errors:
        raise BadRequestError(DATE_RANGE_REQUIRED_MESSAGE)
    raise serializers.ValidationError(serializer.errors)


def _attachment(content, *, content_type: str, file_name: str, with_length: bool = False) -> HttpResponse:
    response = HttpResponse(content, content_type=content_type)
    response["Content-Disposition"] = f'attachment; filename="{file_name}"'
    if with_length:
        response["Content-Length"] = str(len(content))
    return response


class BordereauPreviewAPIView(APIView):
    permission_classes = [HasAccessRole]
    access_resource_key = "bordereaux"

    def post(self, request):
        serializer = _validated(LegacyPreviewSerializer(data=request.data or {}))
        result = build_legacy_rows(serializer.to_filters())
        return Response(
            {
                "success": True,
                "data": result.rows,
                "sourceDataPerRow": result.source_data_per_row,
                "metadata": result.metadata,
            }
        )


class BordereauExportAPIView(APIView):
    permission_classes = [HasAccessRole]
    access_resource_key = "bordereaux"

    def post(self, request):
        serializer = LegacyExportSerializer(data=request.data or {})
        serializer.is_valid(raise_exception=True)

        try:
            content, file_name = export_legacy_csv(
                rows=serializer.validated_data["rows"],
                file_name=serializer.validated_data.get("fileName") or "",
                today=timezone.localdate(),
            )
        except EmptyBordereauError:
            return error_response(NO_ROWS_MESSAGE, status.HTTP_400_BAD_REQUEST)

        return _attachment(content, content_type=CSV_CONTENT_TYPE, file_name=file_name)


class BordereauPreviewV2APIView(APIView):
    permission_classes = [HasAccessRole]
    access_resource_key = "bordereaux_admin"

    def post(self, request):
        serializer = _validated(V2PreviewSerializer(data=request.data or {}))
        date_range = serializer.to_date_range()
        sheets = preview_v2(date_range=date_range, options=serializer.to_options())
        return Response(
            {
                "success": True,
                "polices": sheets["polices"],
                "quittances": sheets["quittances"],
                "metadata": {
                    "dateRange": date_range.as_dict(),
                    "generatedAt": timezone.now().isoformat(),
                },
            }
        )


class BordereauExportV2APIView(APIView):
    permission_classes = [HasAccessRole]
    access_resource_key = "bordereaux_admin"

    def post(self, request):
        serializer = _validated(V2ExportSerializer(data=request.data or {}))
        bordereau, archive, zip_name = export_v2(
            date_range=serializer.to_date_range(),
            actor=request.user,
            polices=serializer.validated_data.get("polices"),
            quittances=serializer.validated_data.get("quittances"),
            options=serializer.to_options(),
        )
        response = _attachment(archive, content_type=ZIP_CONTENT_TYPE, file_name=zip_name, with_length=True)
        response["X-Bordereau-ID"] = str(bordereau.pk)
        return response


class BordereauHistoryAPIView(APIView):
    permission_classes = [HasAccessRole]
    access_resource_key = "bordereaux_admin"

    def get(self, request):
        return api_response(
            list_history(
                page=request.query_params.get("page"),
                limit=request.query_params.get("limit"),
            )
        )


class BordereauDownloadAPIView(APIView):
    permission_classes = [HasAccessRole]
    access_resource_key = "bordereaux_admin"

    def get(self, request, pk: int):
        bordereau = Bordereau.objects.filter(pk=pk).first()
        if bordereau is None:
            raise NotFoundError(BORDEREAU_NOT_FOUND_MESSAGE)

        archive, zip_name = regenerate_zip(bordereau)
        return _attachment(archive, content_type=ZIP_CONTENT_TYPE, file_name=zip_name, with_length=True)
