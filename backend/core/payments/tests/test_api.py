from datetime import timedelta
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.test import TestCase, override_settings
from django.utils import timezone

from accounts.models import UserProfile
from payments.models import PaymentInstallment, PaymentSchedule
from quotes.models import Product, Quote


class PaymentInstallmentAPITests(TestCase):
    def setUp(self):
        User = get_user_model()
        self.broker = User.objects.create_user(username="broker", password="pass-123", email="broker@example.com")
        self.other_broker = User.objects.create_user(username="other", password="pass-123")
        self.admin = User.objects.create_user(username="admin", password="pass-123")
        UserProfile.objects.create(user=self.admin, role=UserProfile.ROLE_ADMIN)
        self.product = Product.objects.create(name="RC Décennale", code="RCD")

        today = timezone.localdate()
        self.past_due = today - timedelta(days=10)
        self.future_due = today + timedelta(days=20)
        self.installment = self._schedule_with_installment("Q-001", self.broker, self.past_due)
        self.other_installment = self._schedule_with_installment("Q-002", self.other_broker, self.future_due)

    def _schedule_with_installment(self, reference, broker, due_date):
        quote = Quote.objects.create(
            reference=reference,
            status=Quote.STATUS_ACCEPTED,
            broker=broker,
            product=self.product,
        )
        schedule = PaymentSchedule.objects.create(
            quote=quote,
            start_date=due_date,
            end_date=due_date + timedelta(days=365),
        )
        return PaymentInstallment.objects.create(
            schedule=schedule,
            installment_number=1,
            due_date=due_date,
            amount_ht=Decimal("100.00"),
            tax_amount=Decimal("9.00"),
            amount_ttc=Decimal("109.00"),
            period_start=due_date,
            period_end=due_date + timedelta(days=90),
        )

    def test_broker_lists_only_own_installments(self):
        self.client.force_login(self.broker)
        response = self.client.get("/api/payment-installments/")
        self.assertEqual(response.status_code, 200)
        data = response.json()["data"]
        self.assertEqual([item["id"] for item in data["installments"]], [self.installment.pk])
        self.assertEqual(data["pagination"], {"total": 1, "totalPages": 1})

    @override_settings(PAYMENT_INSTALLMENTS_PAGE_SIZE=1)
    def test_admin_lists_all_and_filters_by_quote(self):
        self.client.force_login(self.admin)
        response = self.client.get("/api/payment-installments/")
        self.assertEqual(response.json()["data"]["pagination"], {"total": 2, "totalPages": 2})

        response = self.client.get(
            "/api/payment-installments/",
            {"quoteId": self.other_installment.schedule.quote_id},
        )
        installments = response.json()["data"]["installments"]
        self.assertEqual([item["id"] for item in installments], [self.other_installment.pk])

    def test_overdue_lists_past_due_installments(self):
        self.client.force_login(self.admin)
        response = self.client.get("/api/payment-installments/overdue/")
        data = response.json()["data"]
        self.assertEqual(data["total"], 1)
        self.assertEqual(data["payments"][0]["id"], self.installment.pk)
        self.assertEqual(data["payments"][0]["days_overdue"], 10)
        self.assertEqual(data["payments"][0]["broker_email"], "broker@example.com")

    def test_mark_paid_then_unpaid(self):
        self.client.force_login(self.admin)
        url = f"/api/payment-installments/{self.installment.pk}/mark-paid/"
        response = self.client.patch(
            url,
            data={"paymentMethod": "CHECK", "paymentReference": "CHQ-42"},
            content_type="application/json",
        )
        self.assertEqual(response.status_code, 200)
        payload = response.json()
        self.assertEqual(payload["message"], "Paiement marqué comme payé avec succès")
        self.assertEqual(payload["data"]["status"], "PAID")
        self.assertEqual(payload["data"]["schedule_status"], "PAID")

        response = self.client.patch(url, data={}, content_type="application/json")
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"], "Ce paiement est déjà marqué comme payé")

        response = self.client.patch(f"/api/payment-installments/{self.installment.pk}/mark-unpaid/")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["data"]["status"], "OVERDUE")
        self.assertEqual(response.json()["data"]["schedule_status"], "PENDING")

    def test_mark_paid_rejects_unknown_method(self):
        self.client.force_login(self.admin)
        response = self.client.patch(
            f"/api/payment-installments/{self.installment.pk}/mark-paid/",
            data={"paymentMethod": "BITCOIN"},
            content_type="application/json",
        )
        self.assertEqual(response.status_code, 400)
        self.assertFalse(response.json()["success"])

    def test_unknown_installment_returns_404(self):
        self.client.force_login(self.admin)
        response = self.client.patch("/api/payment-installments/999999/mark-unpaid/")
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json(), {"success": False, "error": "Échéance de paiement non trouvée"})

    def test_broker_cannot_mark_paid(self):
        self.client.force_login(self.broker)
        response = self.client.patch(
            f"/api/payment-installments/{self.installment.pk}/mark-paid/",
            data={},
            content_type="application/json",
        )
        self.assertEqual(response.status_code, 403)

    def test_send_reminder(self):
        self.client.force_login(self.admin)
        response = self.client.post(f"/api/payment-installments/{self.installment.pk}/send-reminder/")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["data"]["reminder_count"], 1)

    def test_rectify_amounts_endpoint(self):
        PaymentInstallment.objects.filter(pk=self.installment.pk).update(
            amount_ht=Decimal("100.00"),
            amount_ttc=Decimal("80.00"),
        )
        self.client.force_login(self.admin)
        response = self.client.post("/api/admin/rectifier-montants/")
        self.assertEqual(response.status_code, 200)
        payload = response.json()
        self.assertEqual(payload["data"], {"updated": 1, "total": 1})
        self.assertEqual(payload["message"], "1 échéance(s) rectifiée(s) (montants HT/TTC inversés).")

    def test_rectify_amounts_requires_admin(self):
        self.client.force_login(self.broker)
        response = self.client.post("/api/admin/rectifier-montants/")
        self.assertEqual(response.status_code, 403)
