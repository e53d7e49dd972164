from decimal import Decimal

from django.core.exceptions import ValidationError
from django.test import TestCase

from ..exceptions import PolicyViolation
from ..models import LedgerAccount, PriceTier, StockItem
from ..services.pricing import (parse_price_tiers, price_for_account,
                                resolve_price, set_price_tiers)

RETAIL = "R-RETAILER-Z1/RTL"
DEALER = "B1-EX-F/DLR"


class ResolvePriceTests(TestCase):
    def setUp(self):
        self.item = StockItem.objects.create(
            name="Classic Vanilla Yogurt", sku="VAN001",
            sell_price=Decimal("1700.00"), cost_price=Decimal("1000.00"))
        set_price_tiers(self.item, [
            {"priceLevel": DEALER, "price": "1500.00"},
            {"priceLevel": RETAIL, "price": "1600.00"},
        ])
        self.plain = StockItem.objects.create(
            name="Plain Yogurt", sku="PLN003", sell_price=Decimal("1400.00"))

    def test_no_price_level_uses_standard_price(self):
        for level in (None, "", "N/A"):
            with self.subTest(level=level):
                quote = resolve_price(self.item, level)
                self.assertEqual(quote.price, Decimal("1700.00"))
                self.assertEqual(quote.tier_applied, "Standard")

    def test_matching_tier_wins(self):
        quote = resolve_price(self.item, RETAIL)
        self.assertEqual(quote.price, Decimal("1600.00"))
        self.assertEqual(quote.tier_applied, RETAIL)

    def test_unmatched_level_falls_back(self):
        quote = resolve_price(self.item, "Z-DISTRIZ2/RTL")
        self.assertEqual(quote.price, Decimal("1700.00"))
        self.assertEqual(quote.tier_applied, "Standard")

    def test_item_without_tiers_uses_sell_price(self):
        quote = resolve_price(self.plain, RETAIL)
        self.assertEqual(quote.price, Decimal("1400.00"))

    def test_match_is_exact(self):
        # no case folding or prefix matching
        self.assertEqual(resolve_price(self.item, RETAIL.lower()).tier_applied, "Standard")
        self.assertEqual(resolve_price(self.item, "R-RETAILER").tier_applied, "Standard")

    def test_prefetched_tiers_are_used_in_list_order(self):
        item = StockItem.objects.prefetch_related("price_tiers").get(pk=self.item.pk)
        with self.assertNumQueries(0):
            quote = resolve_price(item, DEALER)
        self.assertEqual(quote.price, Decimal("1500.00"))

    def test_price_for_account_uses_derived_level(self):
        account = LedgerAccount.objects.create(account_code=DEALER, name="Dealer")
        self.assertEqual(price_for_account(self.item, account).price, Decimal("1500.00"))

        no_tier = LedgerAccount.objects.create(account_code="SUP-GEN-001", name="Supplier")
        self.assertEqual(price_for_account(self.item, no_tier).price, Decimal("1700.00"))


class PriceTierWriteTests(TestCase):
    def setUp(self):
        self.item = StockItem.objects.create(
            name="Strawberry Bliss Yogurt", sku="STR002", sell_price=Decimal("2000.00"))

    def test_accepts_json_encoded_lists(self):
        parsed = parse_price_tiers('[{"priceLevel": "B1-EX-F/DLR", "price": 1800}]')
        self.assertEqual(parsed, [
            {"price_level": "B1-EX-F/DLR", "price": Decimal("1800.00"), "position": 0}])

    def test_snake_case_keys_accepted(self):
        parsed = parse_price_tiers([{"price_level": RETAIL, "price": "1900.5"}])
        self.assertEqual(parsed[0]["price"], Decimal("1900.50"))

    def test_empty_input_means_no_tiers(self):
        self.assertEqual(parse_price_tiers(None), [])
        self.assertEqual(parse_price_tiers(""), [])
        self.assertEqual(parse_price_tiers("[]"), [])

    def test_malformed_input_is_rejected_not_ignored(self):
        bad_inputs = [
            "{not json",
            '{"priceLevel": "X", "price": 1}',
            [{"priceLevel": "X"}],
            [{"price": 10}],
            [{"priceLevel": "", "price": 10}],
            [{"priceLevel": "X", "price": "ten"}],
            [{"priceLevel": "X", "price": -1}],
            ["X"],
            42,
        ]
        for raw in bad_inputs:
            with self.subTest(raw=raw):
                with self.assertRaises(ValidationError):
                    parse_price_tiers(raw)

    def test_duplicate_levels_rejected_and_existing_tiers_kept(self):
        set_price_tiers(self.item, [{"priceLevel": RETAIL, "price": 1900}])

        with self.assertRaises(PolicyViolation):
            set_price_tiers(self.item, [
                {"priceLevel": DEALER, "price": 1800},
                {"priceLevel": DEALER, "price": 1750},
            ])

        tiers = list(self.item.price_tiers.values_list("price_level", "price"))
        self.assertEqual(tiers, [(RETAIL, Decimal("1900.00"))])

    def test_replace_keeps_list_order(self):
        set_price_tiers(self.item, [{"priceLevel": RETAIL, "price": 1900}])
        set_price_tiers(self.item, [
            {"priceLevel": "Z-DISTRIZ2/RTL", "price": 1700},
            {"priceLevel": DEALER, "price": 1800},
        ])
        levels = list(
            PriceTier.objects.filter(item=self.item).values_list("price_level", flat=True))
        self.assertEqual(levels, ["Z-DISTRIZ2/RTL", DEALER])
