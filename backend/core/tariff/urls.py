from django.urls import path

from tariff.views import RcdPremiumAPIView

urlpatterns = [
    path("rcd/", RcdPremiumAPIView.as_view(), name="tariff-rcd"),
]
