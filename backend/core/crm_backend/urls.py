"""
URL configuration for crm_backend project.

Each app owns its routes; access control is declared on the views through
`access_resource_key` and enforced by `accounts.middleware.AccessGateMiddleware`.
"""
from django.contrib import admin
from django.http import JsonResponse
from django.urls import include, path

from payments.views import RectifyAmountsAPIView


def healthz(_request):
    return JsonResponse({"status": "ok"})


urlpatterns = [
    path("admin/", admin.site.urls),
    path("healthz/", healthz, name="healthz"),
    path("api/auth/", include("accounts.urls")),
    path("api/quotes/", include("quotes.urls")),
    path("api/payment-installments/", include("payments.urls")),
    path(
        "api/admin/rectifier-montants/",
        RectifyAmountsAPIView.as_view(),
        name="admin-rectify-amounts",
    ),
    path("api/admin/bordereaux/", include("bordereaux.urls")),
    path("api/tariff/", include("tariff.urls")),
]
