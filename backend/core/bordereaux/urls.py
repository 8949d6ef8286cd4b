from django.urls import path

from bordereaux.views import (
    BordereauDownloadAPIView,
    BordereauExportAPIView,
    BordereauExportV2APIView,
    BordereauHistoryAPIView,
    BordereauPreviewAPIView,
    BordereauPreviewV2APIView,
)

urlpatterns = [
    path("preview/", BordereauPreviewAPIView.as_view(), name="bordereaux-preview"),
    path("preview-v2/", BordereauPreviewV2APIView.as_view(), name="bordereaux-preview-v2"),
    path("export/", BordereauExportAPIView.as_view(), name="bordereaux-export"),
    path("export-v2/", BordereauExportV2APIView.as_view(), name="bordereaux-export-v2"),
    path("history/", BordereauHistoryAPIView.as_view(), name="bordereaux-history"),
    path("<int:pk>/download/", BordereauDownloadAPIView.as_view(), name="bordereaux-download"),
]
