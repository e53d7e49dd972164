import datetime
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.test import SimpleTestCase, TestCase, override_settings

from ..exceptions import NotFoundError
from ..models import Invoice, LedgerAccount
from ..services.credit import NEAR_LIMIT, OK, OVER_LIMIT, classify, evaluate


class ClassifyTests(SimpleTestCase):
    def test_over_limit(self):
        check = classify(Decimal("120000"), Decimal("100000"))
        self.assertEqual(check.status, OVER_LIMIT)

    def test_near_limit(self):
        check = classify(Decimal("82000"), Decimal("100000"))
        self.assertEqual(check.status, NEAR_LIMIT)
        self.assertEqual(check.usage_ratio, Decimal("0.82"))

    def test_zero_limit_is_never_enforced(self):
        for balance in ("0", "1", "99999999.99", "-50"):
            with self.subTest(balance=balance):
                check = classify(Decimal(balance), Decimal("0"))
                self.assertEqual(check.status, OK)
                self.assertIsNone(check.usage_ratio)

    def test_boundaries(self):
        limit = Decimal("100000")
        self.assertEqual(classify(Decimal("79999.99"), limit).status, OK)
        self.assertEqual(classify(Decimal("80000"), limit).status, NEAR_LIMIT)
        self.assertEqual(classify(Decimal("99999.99"), limit).status, NEAR_LIMIT)
        self.assertEqual(classify(Decimal("100000"), limit).status, OVER_LIMIT)

    def test_pending_amount_counts(self):
        limit = Decimal("100000")
        self.assertEqual(classify(Decimal("70000"), limit).status, OK)
        self.assertEqual(classify(Decimal("70000"), limit, Decimal("15000")).status, NEAR_LIMIT)
        check = classify(Decimal("70000"), limit, Decimal("30000"))
        self.assertEqual(check.status, OVER_LIMIT)
        self.assertEqual(check.projected_balance, Decimal("100000.00"))

    def test_out_of_range_amounts_are_rejected(self):
        for pending in ("1e30", Decimal("NaN"), Decimal("-Infinity")):
            with self.subTest(pending=pending):
                with self.assertRaises(ValidationError):
                    classify(Decimal("0"), Decimal("100000"), pending)

    @override_settings(LEDGER_CREDIT_WARNING_RATIO=Decimal("0.90"))
    def test_warning_ratio_is_configurable(self):
        self.assertEqual(classify(Decimal("82000"), Decimal("100000")).status, OK)


class EvaluateTests(TestCase):
    def setUp(self):
        self.account = LedgerAccount.objects.create(
            account_code="Z-DISTRIZ2/RTL", name="Regional Distributors",
            credit_limit=Decimal("100000.00"))

    def invoice(self, total):
        today = datetime.date(2026, 10, 17)
        return Invoice.objects.create(
            number=f"INV-{total}", account=self.account, issue_date=today,
            due_date=today, subtotal=Decimal(total), total=Decimal(total),
            status="sent")

    def test_over_limit_account_is_reported_not_blocked(self):
        self.invoice("120000.00")
        with self.assertLogs("ledger_core.services.credit", level="WARNING"):
            check = evaluate(self.account.pk)
        self.assertEqual(check.status, OVER_LIMIT)
        self.assertEqual(check.balance, Decimal("120000.00"))
        self.assertEqual(check.limit, Decimal("100000.00"))

    def test_near_limit_with_pending_sale(self):
        self.invoice("60000.00")
        self.assertEqual(evaluate(self.account.pk).status, OK)
        self.assertEqual(evaluate(self.account.pk, Decimal("22000")).status, NEAR_LIMIT)

    def test_unlimited_account(self):
        self.account.credit_limit = Decimal("0.00")
        self.account.save()
        self.invoice("999999.00")
        self.assertEqual(evaluate(self.account.pk).status, OK)

    def test_unknown_account(self):
        with self.assertRaises(NotFoundError):
            evaluate(555555)

    def test_out_of_range_pending_amount(self):
        with self.assertRaises(ValidationError):
            evaluate(self.account.pk, pending_amount="1e30")
