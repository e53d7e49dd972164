import json
from decimal import Decimal
from unittest import mock

from django.db import OperationalError
from django.test import TestCase
from django.urls import reverse

from ..models import LedgerAccount, Receipt, StockItem
from ..services import append_adjustment, record_receipt, register_item


class LedgerApiTests(TestCase):
    def setUp(self):
        self.account = LedgerAccount.objects.create(
            account_code="B1-EX-F/DLR", name="John Doe (Sales Rep)",
            credit_limit=Decimal("1000.00"))
        self.item = register_item(
            name="Classic Vanilla Yogurt", sku="VAN001",
            sell_price=Decimal("1700.00"), opening_stock=150,
            price_tiers='[{"priceLevel": "B1-EX-F/DLR", "price": 1500}]')

    def post_json(self, url, payload):
        return self.client.post(url, data=json.dumps(payload),
                                content_type="application/json")

    def test_balance(self):
        record_receipt(self.account.pk, "250.50")
        response = self.client.get(reverse("ledger_core:account-balance", args=[self.account.pk]))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["balance"], "-250.50")
        self.assertEqual(response.json()["total_received"], "250.50")

    def test_balance_unknown_account(self):
        response = self.client.get(reverse("ledger_core:account-balance", args=[999]))
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json()["error"], "not_found")

    def test_balance_upstream_unavailable(self):
        with mock.patch.object(Receipt.objects, "for_account",
                               side_effect=OperationalError("timeout")):
            response = self.client.get(
                reverse("ledger_core:account-balance", args=[self.account.pk]))
        self.assertEqual(response.status_code, 503)

    def test_credit_check(self):
        url = reverse("ledger_core:credit-check", args=[self.account.pk])
        self.assertEqual(self.client.get(url).json()["status"], "ok")
        self.assertEqual(self.client.get(url, {"pending": "850"}).json()["status"], "near_limit")
        self.assertEqual(self.client.get(url, {"pending": "1000"}).json()["status"], "over_limit")
        self.assertEqual(self.client.get(url, {"pending": "lots"}).status_code, 400)
        response = self.client.get(url, {"pending": "1e30"})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"], "validation_error")

    def test_item_price(self):
        url = reverse("ledger_core:item-price", args=[self.item.pk])
        tiered = self.client.get(url, {"account": self.account.pk}).json()
        self.assertEqual(tiered, {"item_id": self.item.pk, "price": "1500.00",
                                  "tier_applied": "B1-EX-F/DLR"})
        standard = self.client.get(url).json()
        self.assertEqual(standard["price"], "1700.00")
        self.assertEqual(standard["tier_applied"], "Standard")

    def test_append_adjustment(self):
        url = reverse("ledger_core:append-adjustment", args=[self.item.pk])
        response = self.post_json(url, {"quantity_delta": 50, "adjustment_type": "addition",
                                        "date": "2026-10-17"})
        self.assertEqual(response.status_code, 201)
        entry = response.json()["entry"]
        self.assertEqual(Decimal(entry["previous_stock"]), Decimal("150"))
        self.assertEqual(Decimal(entry["new_stock"]), Decimal("200"))
        self.assertEqual(entry["adjustment_date"], "2026-10-17")

    def test_append_adjustment_errors(self):
        url = reverse("ledger_core:append-adjustment", args=[self.item.pk])

        response = self.post_json(url, {"quantity_delta": -1000,
                                        "adjustment_type": "manual_correction_subtract"})
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.json()["error"], "insufficient_stock")

        response = self.post_json(url, {"quantity_delta": 5})
        self.assertEqual(response.status_code, 400)

        response = self.client.post(url, data="{oops", content_type="application/json")
        self.assertEqual(response.status_code, 400)

        # JSON numbers arrive as Decimal
        response = self.client.post(
            url, data='{"quantity_delta": 1e30, "adjustment_type": "addition"}',
            content_type="application/json")
        self.assertEqual(response.status_code, 400)

        missing = reverse("ledger_core:append-adjustment", args=[4040])
        response = self.post_json(missing, {"quantity_delta": 1, "adjustment_type": "addition"})
        self.assertEqual(response.status_code, 404)

        self.assertEqual(StockItem.objects.get(pk=self.item.pk).stock, Decimal("150"))

    def test_batch(self):
        url = reverse("ledger_core:append-batch")
        response = self.post_json(url, {"entries": [
            {"item_id": self.item.pk, "quantity_delta": 10, "adjustment_type": "addition"},
            {"item_id": self.item.pk, "quantity_delta": 2.5,
             "adjustment_type": "manual_correction_add", "date": "2026-10-16"},
        ]})
        self.assertEqual(response.status_code, 201)
        self.assertEqual(len(response.json()["entries"]), 2)
        self.assertEqual(StockItem.objects.get(pk=self.item.pk).stock, Decimal("162.5"))

        response = self.post_json(url, {"entries": [
            {"item_id": self.item.pk, "quantity_delta": 1, "adjustment_type": "addition"},
            {"item_id": self.item.pk, "quantity_delta": -500, "adjustment_type": "sale_deduction"},
        ]})
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.json()["error"], "batch_rejected")
        self.assertEqual(response.json()["index"], 1)
        self.assertEqual(StockItem.objects.get(pk=self.item.pk).stock, Decimal("162.5"))

    def test_reverse(self):
        manual = append_adjustment(self.item.pk, -20, "manual_correction_subtract")
        sale = append_adjustment(self.item.pk, -5, "sale_deduction")

        response = self.post_json(
            reverse("ledger_core:reverse-adjustment", args=[manual.pk]), {})
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()["entry"]["reverses"], manual.pk)

        response = self.post_json(
            reverse("ledger_core:reverse-adjustment", args=[sale.pk]), {})
        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.json()["error"], "policy_violation")

        self.assertEqual(StockItem.objects.get(pk=self.item.pk).stock, Decimal("145"))

    def test_methods_are_enforced(self):
        url = reverse("ledger_core:append-batch")
        self.assertEqual(self.client.get(url).status_code, 405)
