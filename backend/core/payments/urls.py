from django.urls import path

from payments.views import (
    OverdueInstallmentListAPIView,
    PaymentInstallmentListAPIView,
    PaymentInstallmentMarkPaidAPIView,
    PaymentInstallmentMarkUnpaidAPIView,
    PaymentInstallmentSendReminderAPIView,
)

urlpatterns = [
    path(
        "",
        PaymentInstallmentListAPIView.as_view(),
        name="payment-installments-list",
    ),
    path(
        "overdue/",
        OverdueInstallmentListAPIView.as_view(),
        name="payment-installments-overdue",
    ),
    path(
        "<int:pk>/mark-paid/",
        PaymentInstallmentMarkPaidAPIView.as_view(),
        name="payment-installments-mark-paid",
    ),
    path(
        "<int:pk>/mark-unpaid/",
        PaymentInstallmentMarkUnpaidAPIView.as_view(),
        name="payment-installments-mark-unpaid",
    ),
    path(
        "<int:pk>/send-reminder/",
        PaymentInstallmentSendReminderAPIView.as_view(),
        name="payment-installments-send-reminder",
    ),
]
