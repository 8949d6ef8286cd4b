from datetime import date
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core import mail
from django.core.exceptions import ValidationError
from django.test import TestCase

from accounts.models import Notification
from payments.models import PaymentInstallment, PaymentSchedule
from payments.services import (
    list_overdue_installments,
    mark_installment_paid,
    mark_installment_unpaid,
    rectify_swapped_amounts,
    send_payment_reminder,
)
from quotes.models import Product, Quote


class PaymentServicesTests(TestCase):
    def setUp(self):
        User = get_user_model()
        self.broker = User.objects.create_user(username="broker", password="pass-123", email="broker@example.com")
        self.admin = User.objects.create_user(username="admin", password="pass-123")
        self.product = Product.objects.create(name="RC Décennale", code="RCD")
        self.quote = Quote.objects.create(
            reference="Q-2024-001",
            status=Quote.STATUS_ACCEPTED,
            broker=self.broker,
            product=self.product,
        )
        self.schedule = PaymentSchedule.objects.create(
            quote=self.quote,
            total_amount_ht=Decimal("200.00"),
            total_amount_ttc=Decimal("218.00"),
            start_date=date(2024, 1, 1),
            end_date=date(2024, 12, 31),
        )
        self.first = self._installment(1, date(2024, 1, 1))
        self.second = self._installment(2, date(2024, 7, 1))

    def _installment(self, number, due_date, **extra):
        values = {
            "schedule": self.schedule,
            "installment_number": number,
            "due_date": due_date,
            "amount_ht": Decimal("100.00"),
            "tax_amount": Decimal("9.00"),
            "amount_ttc": Decimal("109.00"),
            "period_start": due_date,
            "period_end": date(due_date.year, due_date.month + 5, 28),
        }
        values.update(extra)
        return PaymentInstallment.objects.create(**values)

    def test_mark_paid_sets_confirmation_and_notifies_broker(self):
        mark_installment_paid(
            installment=self.first,
            actor=self.admin,
            payment_method=PaymentInstallment.METHOD_BANK_TRANSFER,
            payment_reference="VIR-001",
        )

        self.first.refresh_from_db()
        self.assertEqual(self.first.status, PaymentInstallment.STATUS_PAID)
        self.assertEqual(self.first.paid_amount, Decimal("109.00"))
        self.assertEqual(self.first.validated_by, self.admin)
        self.assertIsNotNone(self.first.paid_at)
        self.schedule.refresh_from_db()
        self.assertEqual(self.schedule.status, PaymentSchedule.STATUS_PENDING)
        notification = Notification.objects.get(user=self.broker)
        self.assertEqual(notification.type, Notification.TYPE_PAYMENT_DUE)
        self.assertEqual(notification.related_entity_id, str(self.quote.pk))

    def test_schedule_paid_once_every_installment_is_paid(self):
        mark_installment_paid(installment=self.first, actor=self.admin)
        mark_installment_paid(installment=self.second, actor=self.admin)

        self.schedule.refresh_from_db()
        self.assertEqual(self.schedule.status, PaymentSchedule.STATUS_PAID)

    def test_cancelled_schedule_becomes_paid_once_every_installment_is_paid(self):
        PaymentSchedule.objects.filter(pk=self.schedule.pk).update(status=PaymentSchedule.STATUS_CANCELLED)
        self.schedule.refresh_from_db()

        mark_installment_paid(installment=self.first, actor=self.admin)
        mark_installment_paid(installment=self.second, actor=self.admin)

        self.schedule.refresh_from_db()
        self.assertEqual(self.schedule.status, PaymentSchedule.STATUS_PAID)

    def test_mark_paid_twice_is_rejected(self):
        mark_installment_paid(installment=self.first, actor=self.admin)
        with self.assertRaisesMessage(ValidationError, "Ce paiement est déjà marqué comme payé"):
            mark_installment_paid(installment=self.first, actor=self.admin)

    def test_mark_unpaid_past_due_becomes_overdue(self):
        mark_installment_paid(installment=self.first, actor=self.admin)
        mark_installment_paid(installment=self.second, actor=self.admin)

        mark_installment_unpaid(installment=self.first, actor=self.admin, today=date(2024, 6, 1))

        self.first.refresh_from_db()
        self.assertEqual(self.first.status, PaymentInstallment.STATUS_OVERDUE)
        for field_name in PaymentInstallment.CONFIRMATION_FIELDS:
            self.assertIsNone(getattr(self.first, field_name), field_name)
        self.schedule.refresh_from_db()
        self.assertEqual(self.schedule.status, PaymentSchedule.STATUS_PENDING)

    def test_mark_unpaid_not_yet_due_becomes_pending(self):
        mark_installment_paid(installment=self.second, actor=self.admin)
        mark_installment_unpaid(installment=self.second, actor=self.admin, today=date(2024, 6, 1))

        self.second.refresh_from_db()
        self.assertEqual(self.second.status, PaymentInstallment.STATUS_PENDING)

    def test_mark_unpaid_requires_paid_installment(self):
        with self.assertRaisesMessage(ValidationError, "Cette échéance n'est pas marquée comme payée"):
            mark_installment_unpaid(installment=self.first, actor=self.admin)

    def test_overdue_listing_excludes_paid_and_sorts_oldest_first(self):
        third = self._installment(3, date(2024, 3, 1))
        mark_installment_paid(installment=third, actor=self.admin)

        overdue = list_overdue_installments(today=date(2024, 8, 1))

        self.assertEqual([item["installment"].pk for item in overdue], [self.first.pk, self.second.pk])
        self.assertEqual(overdue[0]["days_overdue"], 213)
        self.assertEqual(overdue[1]["days_overdue"], 31)

    def test_overdue_listing_includes_installment_due_today(self):
        overdue = list_overdue_installments(today=date(2024, 7, 1))

        self.assertEqual([item["installment"].pk for item in overdue], [self.first.pk, self.second.pk])
        self.assertEqual(overdue[1]["days_overdue"], 0)

        self.assertEqual(list_overdue_installments(today=date(2024, 6, 30))[-1]["installment"], self.first)

    def test_send_reminder_emails_broker_and_counts(self):
        send_payment_reminder(installment=self.first, actor=self.admin)

        self.assertEqual(len(mail.outbox), 1)
        self.assertEqual(mail.outbox[0].to, ["broker@example.com"])
        self.assertIn("Q-2024-001", mail.outbox[0].subject)
        self.first.refresh_from_db()
        self.assertEqual(self.first.reminder_count, 1)
        self.assertIsNotNone(self.first.last_reminder_sent)

    def test_send_reminder_refuses_paid_installment(self):
        mark_installment_paid(installment=self.first, actor=self.admin)
        with self.assertRaisesMessage(ValidationError, "Ce paiement a déjà été effectué"):
            send_payment_reminder(installment=self.first, actor=self.admin)
        self.assertEqual(len(mail.outbox), 0)

    def test_rectify_swaps_inverted_amounts_once(self):
        swapped = self._installment(3, date(2024, 3, 1), amount_ht=Decimal("100.00"), amount_ttc=Decimal("80.00"))

        self.assertEqual(rectify_swapped_amounts(), {"updated": 1, "total": 1})
        swapped.refresh_from_db()
        self.assertEqual(swapped.amount_ht, Decimal("80.00"))
        self.assertEqual(swapped.amount_ttc, Decimal("100.00"))

        self.assertEqual(rectify_swapped_amounts(), {"updated": 0, "total": 0})
