from datetime import date, datetime, timedelta
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.test import TestCase, override_settings
from django.utils import timezone

from accounts.models import BrokerProfile
from bordereaux.builders.common import DateRange
from bordereaux.builders.legacy import LegacyFilters, build_legacy_rows
from bordereaux.builders.v2 import (
    InclusionOptions,
    build_polices_rows,
    build_quittances_rows,
    compute_commission,
    resiliation_cutoff,
)
from payments.models import PaymentInstallment, PaymentSchedule
from quotes.models import InsuranceContract, Product, Quote

MARCH_2024 = DateRange(start_date=date(2024, 3, 1), end_date=date(2024, 3, 31))

FORM_DATA = {
    "companyName": "Bâtiments Leroy",
    "siret": "12345678900011",
    "chiffreAffaires": 500000,
    "nombreSalaries": 4,
    "codeNaf": "4399C",
    "activities": [
        {"code": 2, "caSharePercent": 60},
        {"code": 13, "caSharePercent": 40},
    ],
}

COMPANY_DATA = {
    "siret": "12345678900011",
    "address": "3 rue des Artisans",
    "city": "Lyon",
    "postalCode": "69003",
    "revenue": 500000,
    "employeeCount": 4,
}

CALCULATION = {
    "echeancier": {
        "echeances": [
            {"totalHT": 1000, "frais": 50, "pj": 30, "reprise": 20},
            {"totalHT": 1000, "frais": 0, "pj": 30, "reprise": 0},
        ]
    }
}


class BordereauBuilderTestMixin:
    def setUp(self):
        User = get_user_model()
        self.broker = User.objects.create_user(username="broker", password="pass-123")
        BrokerProfile.objects.create(user=self.broker, code="BRK-01")
        self.product = Product.objects.create(name="RC Décennale", code="RCD", product_type="RCD")

    def _quote(self, reference, *, status=Quote.STATUS_ACCEPTED, broker=None, **extra):
        values = {
            "reference": reference,
            "status": status,
            "broker": broker or self.broker,
            "product": self.product,
            "form_data": FORM_DATA,
            "company_data": COMPANY_DATA,
        }
        values.update(extra)
        return Quote.objects.create(**values)

    def _schedule(self, quote, **extra):
        return PaymentSchedule.objects.create(
            quote=quote,
            start_date=date(2024, 3, 1),
            end_date=date(2025, 2, 28),
            **extra,
        )

    def _installment(self, schedule, number, due_date, period_end, **extra):
        values = {
            "schedule": schedule,
            "installment_number": number,
            "due_date": due_date,
            "amount_ht": Decimal("1000.00"),
            "tax_amount": Decimal("90.00"),
            "amount_ttc": Decimal("1090.00"),
            "period_start": due_date,
            "period_end": period_end,
        }
        values.update(extra)
        return PaymentInstallment.objects.create(**values)


@override_settings(BORDEREAU_APPORTEUR="2518107500", BORDEREAU_COMPANY_NAME="FIDELIDADE", BORDEREAU_COMMISSION_RATE="10")
class V2BuilderTests(BordereauBuilderTestMixin, TestCase):
    def setUp(self):
        super().setUp()
        self.quote_b = self._quote("Q-B", calculated_premium=CALCULATION)
        self.schedule_b = self._schedule(self.quote_b)
        self.b1 = self._installment(self.schedule_b, 1, date(2024, 3, 1), date(2024, 5, 31))
        self.b2 = self._installment(self.schedule_b, 2, date(2024, 6, 1), date(2024, 8, 31))

        self.quote_a = self._quote("Q-A")
        self.a1 = self._installment(
            self._schedule(self.quote_a),
            1,
            date(2024, 3, 15),
            date(2024, 6, 14),
            amount_ht=Decimal("500.00"),
        )

        draft = self._quote("Q-C", status=Quote.STATUS_DRAFT)
        self._installment(self._schedule(draft), 1, date(2024, 3, 10), date(2024, 6, 9))

    def test_rows_follow_reference_then_installment_order(self):
        rows = build_quittances_rows(MARCH_2024)

        self.assertEqual([row["IDENTIFIANT_QUITTANCE"] for row in rows], ["Q-AQ1", "Q-BQ1"])

    def test_overlapping_period_is_selected(self):
        rows = build_quittances_rows(DateRange(start_date=date(2024, 4, 1), end_date=date(2024, 4, 30)))

        self.assertEqual([row["IDENTIFIANT_QUITTANCE"] for row in rows], ["Q-AQ1", "Q-BQ1"])

    def test_polices_row(self):
        row = build_polices_rows(MARCH_2024)[1]

        self.assertEqual(row["APPORTEUR"], "2518107500")
        self.assertEqual(row["IDENTIFIANT_POLICE"], "Q-B")
        self.assertEqual(row["DATE_DEMANDE"], "2024-03-01")
        self.assertEqual(row["DATE_FIN_CONTRAT"], "2024-05-31")
        self.assertEqual(row["STATUT_POLICE"], "ACCEPTE")
        self.assertEqual(row["MOTIF_STATUT"], "EMISSION")
        self.assertEqual(row["TYPE_CONTRAT"], "RCD")
        self.assertEqual(row["COMPAGNIE"], "FIDELIDADE")
        self.assertEqual(row["NOM_ENTREPRISE_ASSURE"], "Bâtiments Leroy")
        self.assertEqual(row["SIREN"], "123456789")
        self.assertEqual(row["ACTIVITE"], "Maçonnerie et béton armé")
        self.assertEqual(row["LIBELLE_ACTIVITE_2"], "Peinture")
        self.assertEqual(row["POIDS_ACTIVITE_1"], "60")
        self.assertEqual(row["LIBELLE_ACTIVITE_3"], "")
        self.assertEqual(row["VILLE_RISQUE"], "Lyon")
        self.assertEqual(row["CODE_NAF"], "4399C")

    def test_contract_drives_policy_status(self):
        InsuranceContract.objects.create(
            quote=self.quote_b,
            broker=self.broker,
            product=self.product,
            reference="C-B",
            start_date=date(2024, 3, 1),
            end_date=date(2025, 2, 28),
            status=InsuranceContract.STATUS_ACTIVE,
        )

        row = build_polices_rows(MARCH_2024)[1]

        self.assertEqual(row["STATUT_POLICE"], "EN COURS")
        self.assertEqual(row["DATE_EFFET_CONTRAT"], "2024-03-01")

    def test_quittances_row_and_commission(self):
        row = build_quittances_rows(MARCH_2024)[1]

        self.assertEqual(row["GARANTIE"], "RC_RCD")
        self.assertEqual(row["STATUT_QUITTANCE"], "EMISE")
        self.assertEqual(row["DATE_EMISSION_QUITTANCE"], "2024-03-01")
        self.assertEqual(row["PRIME_TTC"], "1090.00")
        self.assertEqual(row["PRIME_HT"], "1000.00")
        self.assertEqual(row["TAXES"], "90.00")
        self.assertEqual(row["TAUX_COMMISSIONS"], "10")
        self.assertEqual(row["COMMISSIONS"], "90.00")
        self.assertEqual(row["MODE_PAIEMENT"], "")

    def test_commission_falls_back_to_installment_amount(self):
        self.assertEqual(compute_commission(self.a1), Decimal("50.00"))
        self.assertEqual(compute_commission(self.b2), Decimal("97.00"))

    def test_paid_installment_reports_settlement(self):
        paid_at = timezone.make_aware(datetime(2024, 3, 5, 10, 0))
        PaymentInstallment.objects.filter(pk=self.b1.pk).update(
            status=PaymentInstallment.STATUS_PAID,
            paid_at=paid_at,
            payment_method=PaymentInstallment.METHOD_CHECK,
        )

        polices = build_polices_rows(MARCH_2024)[1]
        quittances = build_quittances_rows(MARCH_2024)[1]

        self.assertEqual(polices["MOTIF_STATUT"], "REGLEMENT")
        self.assertEqual(polices["DATE_STAT_POLICE"], "2024-03-05")
        self.assertEqual(quittances["STATUT_QUITTANCE"], "ENCAISSE")
        self.assertEqual(quittances["DATE_ENCAISSEMENT"], "2024-03-05")
        self.assertEqual(quittances["MODE_PAIEMENT"], "CHEQUE")

    def test_resiliation_drops_installments_after_the_resiliation_month(self):
        self.schedule_b.resiliation_date = date(2024, 4, 10)
        self.schedule_b.save(update_fields=["resiliation_date", "updated_at"])
        first_half = DateRange(start_date=date(2024, 3, 1), end_date=date(2024, 6, 30))

        polices = build_polices_rows(first_half)

        self.assertEqual(resiliation_cutoff(date(2024, 4, 10)), date(2024, 4, 30))
        self.assertEqual([row["IDENTIFIANT_POLICE"] for row in polices], ["Q-A", "Q-B"])
        self.assertEqual(polices[1]["STATUT_POLICE"], "RESILIE")
        self.assertEqual(polices[1]["MOTIF_STATUT"], "RESILIATION")

    def test_inclusion_options_blank_cells_but_keep_columns(self):
        options = InclusionOptions.from_payload({"includeActivities": False, "includeCommissions": False})

        polices = build_polices_rows(MARCH_2024, options)[1]
        quittances = build_quittances_rows(MARCH_2024, options)[1]

        self.assertEqual(polices["ACTIVITE"], "")
        self.assertEqual(polices["LIBELLE_ACTIVITE_1"], "")
        self.assertEqual(polices["POIDS_ACTIVITE_1"], "")
        self.assertEqual(polices["SIREN"], "123456789")
        self.assertEqual(quittances["COMMISSIONS"], "")
        self.assertEqual(quittances["TAUX_COMMISSIONS"], "")
        self.assertEqual(quittances["PRIME_HT"], "1000.00")
        self.assertIn("COMMISSIONS", quittances)


class LegacyBuilderTests(BordereauBuilderTestMixin, TestCase):
    def setUp(self):
        super().setUp()
        self.quote = self._quote("Q-L")
        schedule = self._schedule(self.quote)
        self._installment(schedule, 1, date(2024, 3, 1), date(2024, 5, 31))
        self._installment(schedule, 2, date(2024, 6, 1), date(2024, 8, 31))
        self.contract = InsuranceContract.objects.create(
            quote=self.quote,
            broker=self.broker,
            product=self.product,
            reference="C-L",
            start_date=date(2024, 3, 1),
            end_date=date(2025, 2, 28),
        )

    def test_contract_rows_per_due_date_in_range(self):
        result = build_legacy_rows(LegacyFilters(date_range=MARCH_2024, include_quotes=False))

        self.assertEqual(len(result.rows), 1)
        row = result.rows[0]
        self.assertEqual(row["APPORTEUR"], "BRK-01")
        self.assertEqual(row["DATE_ECHEANCE"], "2024-03-01")
        self.assertEqual(row["DATE_EFFET_CONTRAT"], "2024-03-01")
        self.assertEqual(row["DATE_FIN_CONTRAT"], "2025-02-28")
        self.assertEqual(row["ETAT_POLICE"], "EN COURS")
        self.assertEqual(row["SIREN"], "123456789")
        self.assertEqual(row["VILLE_RISQUE"], "Lyon")
        self.assertEqual(row["LIBELLE_ACTIVITE_1"], "2")
        self.assertEqual(row["POID_ACTIVITE_1"], "60")

        self.assertEqual(result.metadata["totalContracts"], 1)
        self.assertNotIn("totalQuotes", result.metadata)
        self.assertEqual(result.metadata["totalRows"], 1)
        self.assertEqual(result.metadata["dateRange"], {"startDate": "2024-03-01", "endDate": "2024-03-31"})
        self.assertIn({"key": "companyData.siret", "value": "12345678900011"}, result.source_data_per_row[0])
        self.assertIn({"key": "contract.reference", "value": "C-L"}, result.source_data_per_row[0])

    def test_contract_status_filter(self):
        result = build_legacy_rows(
            LegacyFilters(
                date_range=MARCH_2024,
                contract_status=(InsuranceContract.STATUS_CANCELLED,),
                include_quotes=False,
            )
        )
        self.assertEqual(result.rows, [])

    def test_overlapping_contract_without_due_installment(self):
        result = build_legacy_rows(
            LegacyFilters(
                date_range=DateRange(start_date=date(2024, 10, 1), end_date=date(2024, 10, 31)),
                include_quotes=False,
            )
        )

        self.assertEqual(len(result.rows), 1)
        self.assertEqual(result.rows[0]["DATE_ECHEANCE"], "2024-03-01")

    def test_quote_rows_skip_brokers_without_profile(self):
        User = get_user_model()
        orphan = User.objects.create_user(username="orphan", password="pass-123")
        self._quote("Q-D", status=Quote.STATUS_DRAFT)
        self._quote("Q-O", broker=orphan)
        today = timezone.localdate()
        around_today = DateRange(start_date=today - timedelta(days=1), end_date=today + timedelta(days=1))

        result = build_legacy_rows(LegacyFilters(date_range=around_today))

        self.assertEqual(result.metadata["totalContracts"], 0)
        self.assertEqual(result.metadata["totalQuotes"], 3)
        self.assertEqual(
            [row["ETAT_POLICE"] for row in result.rows],
            ["ACCEPTE", "BROUILLON"],
        )
        self.assertEqual(result.rows[0]["DATE_ECHEANCE"], today.isoformat())
