from datetime import date
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.test import TestCase

from accounts.models import UserProfile
from payments.models import PaymentInstallment, PaymentSchedule
from quotes.models import InsuranceContract, Product, Quote


def _calculation_result():
    return {
        "primeTotal": 1000,
        "totalTTC": 1090,
        "autres": {"taxeAssurance": 90},
        "echeancier": {
            "echeances": [
                {
                    "date": "2024-01-01",
                    "debutPeriode": "2024-01-01",
                    "finPeriode": "2024-06-30",
                    "totalHT": 500,
                    "taxe": 45,
                    "totalTTC": 545,
                    "rcd": 480,
                    "pj": 20,
                    "frais": 0,
                    "reprise": 0,
                },
                {
                    "date": "2024-07-01",
                    "debutPeriode": "2024-07-01",
                    "finPeriode": "2024-12-31",
                    "totalHT": 500,
                    "taxe": 45,
                    "totalTTC": 545,
                    "rcd": 480,
                    "pj": 20,
                    "frais": 0,
                    "reprise": 0,
                },
            ]
        },
    }


class QuotePaymentScheduleAPITests(TestCase):
    def setUp(self):
        User = get_user_model()
        self.broker = User.objects.create_user(username="broker", password="pass-123")
        self.intruder = User.objects.create_user(username="intruder", password="pass-123")
        self.admin = User.objects.create_user(username="admin", password="pass-123")
        UserProfile.objects.create(user=self.admin, role=UserProfile.ROLE_ADMIN)
        self.product = Product.objects.create(name="RC Décennale", code="RCD")
        self.quote = Quote.objects.create(
            reference="Q-2024-010",
            status=Quote.STATUS_ACCEPTED,
            broker=self.broker,
            product=self.product,
        )
        self.url = f"/api/quotes/{self.quote.pk}/payment-schedule/"

    def test_broker_creates_schedule_for_own_quote(self):
        self.client.force_login(self.broker)
        response = self.client.post(
            self.url,
            data={"calculationResult": _calculation_result()},
            content_type="application/json",
        )

        self.assertEqual(response.status_code, 201)
        payload = response.json()
        self.assertTrue(payload["success"])
        self.assertEqual(len(payload["data"]["installments"]), 2)

        schedule = PaymentSchedule.objects.get(quote=self.quote)
        self.assertEqual(schedule.total_amount_ttc, Decimal("1090.00"))
        self.assertEqual(schedule.start_date, date(2024, 1, 1))
        self.assertEqual(schedule.end_date, date(2024, 12, 31))
        second = PaymentInstallment.objects.get(schedule=schedule, installment_number=2)
        self.assertEqual(second.due_date, date(2024, 7, 1))
        self.assertEqual(second.amount_ht, Decimal("500.00"))
        self.assertEqual(second.status, PaymentInstallment.STATUS_PENDING)

        self.quote.refresh_from_db()
        self.assertEqual(self.quote.calculated_premium["totalTTC"], 1090)

    def test_second_schedule_is_rejected(self):
        self.client.force_login(self.broker)
        body = {"calculationResult": _calculation_result()}
        self.client.post(self.url, data=body, content_type="application/json")
        response = self.client.post(self.url, data=body, content_type="application/json")

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"], "Un échéancier existe déjà pour ce devis")
        self.assertEqual(PaymentSchedule.objects.filter(quote=self.quote).count(), 1)

    def test_calculation_without_installments_is_rejected(self):
        self.client.force_login(self.broker)
        response = self.client.post(
            self.url,
            data={"calculationResult": {"primeTotal": 10}},
            content_type="application/json",
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"], "Données de calcul invalides")

    def test_other_broker_is_forbidden(self):
        self.client.force_login(self.intruder)
        response = self.client.post(
            self.url,
            data={"calculationResult": _calculation_result()},
            content_type="application/json",
        )
        self.assertEqual(response.status_code, 403)
        self.assertFalse(PaymentSchedule.objects.exists())

    def test_unknown_quote_returns_404(self):
        self.client.force_login(self.admin)
        response = self.client.post(
            "/api/quotes/999999/payment-schedule/",
            data={"calculationResult": _calculation_result()},
            content_type="application/json",
        )
        self.assertEqual(response.status_code, 404)


class QuoteResiliationAPITests(TestCase):
    def setUp(self):
        User = get_user_model()
        self.broker = User.objects.create_user(username="broker", password="pass-123")
        self.admin = User.objects.create_user(username="admin", password="pass-123")
        UserProfile.objects.create(user=self.admin, role=UserProfile.ROLE_ADMIN)
        product = Product.objects.create(name="RC Décennale", code="RCD")
        self.quote = Quote.objects.create(
            reference="Q-2024-020",
            status=Quote.STATUS_ACCEPTED,
            broker=self.broker,
            product=product,
        )
        self.contract = InsuranceContract.objects.create(
            quote=self.quote,
            broker=self.broker,
            product=product,
            reference="C-2024-020",
            start_date=date(2024, 1, 1),
            end_date=date(2024, 12, 31),
        )
        self.schedule = PaymentSchedule.objects.create(
            quote=self.quote,
            start_date=date(2024, 1, 1),
            end_date=date(2024, 12, 31),
        )
        self.url = f"/api/quotes/{self.quote.pk}/resiliate/"

    def test_resiliation_cancels_contract_and_can_be_withdrawn(self):
        self.client.force_login(self.admin)
        response = self.client.post(
            self.url,
            data={"resiliationDate": "2024-05-15", "resiliationReason": "Cessation d'activité"},
            content_type="application/json",
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["message"], "Contrat résilié au 15/05/2024")
        self.schedule.refresh_from_db()
        self.contract.refresh_from_db()
        self.assertEqual(self.schedule.resiliation_date, date(2024, 5, 15))
        self.assertEqual(self.schedule.resiliation_reason, "Cessation d'activité")
        self.assertEqual(self.contract.status, InsuranceContract.STATUS_CANCELLED)

        response = self.client.post(self.url, data={"resiliationDate": None}, content_type="application/json")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["message"], "Résiliation annulée")
        self.schedule.refresh_from_db()
        self.contract.refresh_from_db()
        self.assertIsNone(self.schedule.resiliation_date)
        self.assertEqual(self.schedule.resiliation_reason, "")
        self.assertEqual(self.contract.status, InsuranceContract.STATUS_ACTIVE)

    def test_broker_cannot_resiliate(self):
        self.client.force_login(self.broker)
        response = self.client.post(self.url, data={"resiliationDate": "2024-05-15"}, content_type="application/json")
        self.assertEqual(response.status_code, 403)

    def test_quote_without_schedule_is_rejected(self):
        self.schedule.delete()
        self.client.force_login(self.admin)
        response = self.client.post(self.url, data={"resiliationDate": "2024-05-15"}, content_type="application/json")
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"], "Échéancier non trouvé pour ce devis")
