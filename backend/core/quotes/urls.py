from django.urls import path

from quotes.views import QuotePaymentScheduleAPIView, QuoteResiliationAPIView

urlpatterns = [
    path(
        "<int:pk>/payment-schedule/",
        QuotePaymentScheduleAPIView.as_view(),
        name="quotes-payment-schedule",
    ),
    path(
        "<int:pk>/resiliate/",
        QuoteResiliationAPIView.as_view(),
        name="quotes-resiliate",
    ),
]
