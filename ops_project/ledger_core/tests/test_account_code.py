from decimal import Decimal

from django.core.exceptions import ValidationError
from django.test import SimpleTestCase, TestCase

from ..models import LedgerAccount
from ..utils import parse_account_code, to_money, to_pk, to_quantity


class ParseAccountCodeTests(SimpleTestCase):
    def test_empty_code_has_no_level_or_zone(self):
        self.assertEqual(parse_account_code(""), ("N/A", "N/A"))
        self.assertEqual(parse_account_code(None), ("N/A", "N/A"))

    def test_price_level_is_the_code_itself(self):
        level, _ = parse_account_code("R-RETAILER-Z1/RTL")
        self.assertEqual(level, "R-RETAILER-Z1/RTL")

    def test_known_fragments_decide_the_zone(self):
        cases = {
            "B1-EX-F/DLR": "B1",
            "R-RETAILER-Z1/RTL": "Z1",
            "Z-DISTRIZ2/RTL": "Z2",
            "Y-B3-Z3/DLR": "Z3",
            "AZ-Z1-DIST/RTL": "Z1",
        }
        for code, zone in cases.items():
            with self.subTest(code=code):
                self.assertEqual(parse_account_code(code)[1], zone)

    def test_zone_keyword_part(self):
        self.assertEqual(parse_account_code("C-Z3/WHOLESALE")[1], "Z3")

    def test_leading_zone_pattern(self):
        self.assertEqual(parse_account_code("B12/DLR")[1], "B12")

    def test_unknown_code_has_no_zone(self):
        self.assertEqual(parse_account_code("SUP-GEN-001"), ("SUP-GEN-001", "N/A"))


class MoneyCoercionTests(SimpleTestCase):
    def test_floats_are_read_through_their_repr(self):
        self.assertEqual(to_money(0.1 + 0.2), Decimal("0.30"))

    def test_half_up_rounding(self):
        self.assertEqual(to_money("2.675"), Decimal("2.68"))
        self.assertEqual(to_quantity("1.00005"), Decimal("1.0001"))

    def test_rejects_non_numbers(self):
        for bad in ("abc", None, True, "NaN", "Infinity"):
            with self.subTest(value=bad):
                with self.assertRaises(ValidationError):
                    to_money(bad)

    def test_rejects_non_finite_decimals(self):
        for bad in (Decimal("NaN"), Decimal("sNaN"), Decimal("-Infinity")):
            with self.subTest(value=bad):
                with self.assertRaises(ValidationError):
                    to_quantity(bad)

    def test_out_of_range_values_are_validation_errors(self):
        for big in ("1e30", Decimal("1e30"), 1e30):
            with self.subTest(value=big):
                with self.assertRaises(ValidationError):
                    to_money(big)
                with self.assertRaises(ValidationError):
                    to_quantity(big)


class IdParsingTests(SimpleTestCase):
    def test_integers_and_digit_strings(self):
        self.assertEqual(to_pk(7), 7)
        self.assertEqual(to_pk(" 12 "), 12)

    def test_rejects_everything_else(self):
        for bad in (1.9, 2.0, "1.0", "-3", True, None, ""):
            with self.subTest(value=bad):
                with self.assertRaises(ValidationError):
                    to_pk(bad)


class LedgerAccountTests(TestCase):
    def test_price_level_and_zone_follow_the_code(self):
        account = LedgerAccount.objects.create(
            account_code="R-RETAILER-Z1/RTL", name="Good Foods Retail")
        self.assertEqual(account.price_level, "R-RETAILER-Z1/RTL")
        self.assertEqual(account.zone, "Z1")

        account.account_code = "B1-EX-F/DLR"
        account.save()
        account.refresh_from_db()
        self.assertEqual(account.price_level, "B1-EX-F/DLR")
        self.assertEqual(account.zone, "B1")

    def test_account_code_required(self):
        with self.assertRaises(ValidationError):
            LedgerAccount.objects.create(account_code="  ", name="Nameless")

    def test_negative_credit_limit_rejected(self):
        with self.assertRaises(ValidationError):
            LedgerAccount.objects.create(
                account_code="SUP-GEN-001", name="Supplier",
                credit_limit=Decimal("-1.00"))
