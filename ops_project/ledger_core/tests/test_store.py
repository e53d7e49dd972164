import datetime
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.test import TestCase

from ..exceptions import BatchRejected, InsufficientStock, NotFoundError
from ..models import AuditLog, MaterialUsage, StockAdjustmentLog, StockItem
from ..services import (receive_purchase, record_usage, register_item,
                        reverse_adjustment)

USAGE_DATE = datetime.date(2026, 10, 12)


class MaterialUsageTests(TestCase):
    def setUp(self):
        self.milk = register_item(
            name="Fresh Cow Milk", sku="RAWMLK001", kind="raw_material",
            unit_of_measure="Litres", opening_stock=1000)
        self.yogurt = register_item(
            name="Classic Vanilla Yogurt", sku="VAN001", opening_stock=150)

    def stock_of(self, item):
        return StockItem.objects.get(pk=item.pk).stock

    def test_usage_deducts_stock_and_is_logged(self):
        usage = record_usage(self.milk.pk, "120.5", "Production",
                             usage_date=USAGE_DATE, recorded_by="storekeeper")

        self.assertEqual(self.stock_of(self.milk), Decimal("879.5"))
        self.assertEqual(usage.quantity_used, Decimal("120.5"))
        self.assertEqual(usage.unit_of_measure, "Litres")
        self.assertEqual(usage.department, "Production")
        self.assertTrue(usage.usage_number.startswith("USE-20261012-"))

        entry = usage.adjustment
        self.assertEqual(entry.adjustment_type, "usage_deduction")
        self.assertEqual(entry.quantity_adjusted, Decimal("-120.5"))
        self.assertEqual(entry.previous_stock, Decimal("1000"))
        self.assertEqual(entry.source_type, "material_usage")
        self.assertEqual(entry.source_id, usage.usage_number)
        self.assertTrue(AuditLog.objects.filter(
            object_type="MaterialUsage", object_id=str(usage.pk)).exists())

    def test_usage_above_stock_is_refused(self):
        entries_before = StockAdjustmentLog.objects.count()
        with self.assertRaises(InsufficientStock):
            record_usage(self.milk.pk, 1001, "Production")
        self.assertEqual(self.stock_of(self.milk), Decimal("1000"))
        self.assertEqual(StockAdjustmentLog.objects.count(), entries_before)
        self.assertFalse(MaterialUsage.objects.exists())

    def test_invalid_usage_input(self):
        bad_calls = [
            (self.milk.pk, 0, "Production"),
            (self.milk.pk, -5, "Production"),
            (self.milk.pk, "1e30", "Production"),
            (self.milk.pk, 5, "Marketing"),
            (1.9, 5, "Production"),
            # finished goods are sold, not issued
            (self.yogurt.pk, 5, "Production"),
        ]
        for args in bad_calls:
            with self.subTest(args=args):
                with self.assertRaises(ValidationError):
                    record_usage(*args)
        self.assertEqual(self.stock_of(self.milk), Decimal("1000"))
        self.assertEqual(self.stock_of(self.yogurt), Decimal("150"))

    def test_unknown_material(self):
        with self.assertRaises(NotFoundError):
            record_usage(987654, 1, "Cleaning")

    def test_usage_can_be_corrected_by_reversal(self):
        usage = record_usage(self.milk.pk, 40, "Wastage")
        counter = reverse_adjustment(usage.adjustment_id)
        self.assertEqual(counter.quantity_adjusted, Decimal("40"))
        self.assertEqual(self.stock_of(self.milk), Decimal("1000"))
        self.assertTrue(MaterialUsage.objects.get(pk=usage.pk).adjustment.is_superseded)

    def test_raw_materials_listing(self):
        self.assertEqual(list(StockItem.objects.raw_materials()), [self.milk])


class PurchaseReceiptTests(TestCase):
    def setUp(self):
        self.milk = register_item(
            name="Fresh Cow Milk", sku="RAWMLK001", kind="raw_material",
            unit_of_measure="Litres", opening_stock=1000)
        self.sugar = register_item(
            name="Granulated Sugar", sku="SUG001BG", kind="raw_material",
            unit_of_measure="KG", opening_stock=0)

    def stock_of(self, item):
        return StockItem.objects.get(pk=item.pk).stock

    def test_received_lines_become_additions(self):
        entries = receive_purchase(
            "PO-2026-0007",
            [{"item_id": self.milk.pk, "quantity": 500},
             {"item_id": self.sugar.pk, "quantity": "25.5"}],
            supplier="Dairy Farm Supplies Co.",
            received_date=USAGE_DATE,
        )

        self.assertEqual(self.stock_of(self.milk), Decimal("1500"))
        self.assertEqual(self.stock_of(self.sugar), Decimal("25.5"))
        self.assertEqual([e.adjustment_type for e in entries], ["addition", "addition"])
        self.assertEqual({e.source_id for e in entries}, {"PO-2026-0007"})
        self.assertEqual({e.source_type for e in entries}, {"purchase_order"})
        self.assertIn("Dairy Farm Supplies Co.", entries[0].notes)
        self.assertEqual(entries[0].adjustment_date, USAGE_DATE)

    def test_bad_receipts_change_nothing(self):
        with self.assertRaises(ValidationError):
            receive_purchase("", [{"item_id": self.milk.pk, "quantity": 1}])
        with self.assertRaises(ValidationError):
            receive_purchase("PO-1", [])
        with self.assertRaises(ValidationError):
            receive_purchase("PO-1", [{"item_id": self.milk.pk, "quantity": 0}])

        with self.assertRaises(BatchRejected) as ctx:
            receive_purchase("PO-1", [{"item_id": self.milk.pk, "quantity": 10},
                                      {"item_id": 987654, "quantity": 10}])
        self.assertEqual(ctx.exception.index, 1)
        self.assertEqual(self.stock_of(self.milk), Decimal("1000"))
