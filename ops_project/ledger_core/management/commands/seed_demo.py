from decimal import Decimal

from django.core.management.base import BaseCommand
from django.db import transaction

from ledger_core.models import LedgerAccount, StockItem
from ledger_core.services import (receive_purchase, record_receipt, record_sale,
                                  record_usage, register_item)

# (code, credit period, credit limit, name, type)
DEMO_ACCOUNTS = [
    ("B1-EX-F/DLR", 30, Decimal("10000000"), "John Doe (Sales Rep)", "sales_rep"),
    ("R-RETAILER-Z1/RTL", 15, Decimal("5000000"), "Good Foods Retail", "customer"),
    ("Z-DISTRIZ2/RTL", 45, Decimal("25000000"), "Regional Distributors Inc.", "customer"),
    ("SUP-GEN-001", 0, Decimal("0"), "Dairy Farm Supplies Co.", "supplier"),
]

# (sku, name, sell price, cost price, opening stock, threshold, tier prices per account code)
DEMO_ITEMS = [
    ("VAN001", "Classic Vanilla Yogurt", "1700.00", "1000.00", 150, 20,
     ["1500.00", "1600.00", "1400.00"]),
    ("STR002", "Strawberry Bliss Yogurt", "2000.00", "1200.00", 200, 30,
     ["1800.00", "1900.00", "1700.00"]),
    ("PLN003", "Plain Natural Yogurt - 1 Litre", "1400.00", "800.00", 80, 15,
     ["1200.00", "1300.00", "1100.00"]),
]

# (sku, name, unit, cost price, opening stock, threshold)
DEMO_RAW_MATERIALS = [
    ("RAWMLK001", "Fresh Cow Milk", "Litres", "350.00", 1000, 100),
    ("SUG001BG", "Granulated Sugar", "KG", "900.00", 2500, 200),
]


class Command(BaseCommand):
    help = "Seeds the database with demo accounts, items and one sale."

    @transaction.atomic
    def handle(self, *args, **options):
        self.stdout.write(self.style.NOTICE("Seeding demo ledger data..."))

        accounts = []
        for code, period, limit, name, account_type in DEMO_ACCOUNTS:
            # get_or_create returns (object, created)
            account, _ = LedgerAccount.objects.get_or_create(
                account_code=code,
                defaults={
                    "name": name,
                    "account_type": account_type,
                    "credit_period_days": period,
                    "credit_limit": limit,
                },
            )
            accounts.append(account)

        tier_levels = [code for code, *_ in DEMO_ACCOUNTS[:3]]
        items = []
        for sku, name, price, cost, opening, threshold, tier_prices in DEMO_ITEMS:
            item = StockItem.objects.filter(sku=sku).first()
            if item is None:
                item = register_item(
                    name=name,
                    sku=sku,
                    sell_price=Decimal(price),
                    cost_price=Decimal(cost),
                    low_stock_threshold=threshold,
                    opening_stock=opening,
                    price_tiers=[
                        {"priceLevel": level, "price": tier_price}
                        for level, tier_price in zip(tier_levels, tier_prices)
                    ],
                    recorded_by="seed_demo",
                )
            items.append(item)

        # a credit sale to the retailer, partly paid
        retailer = accounts[1]
        if not retailer.invoices.exists():
            sale = record_sale(
                retailer.pk,
                [{"item_id": items[0].pk, "quantity": 10},
                 {"item_id": items[1].pk, "quantity": 5}],
                payment_method="Credit",
                recorded_by="seed_demo",
            )
            record_receipt(retailer.pk, sale.invoice.total / 2, method="Transfer")

        materials = []
        for sku, name, unit, cost, opening, threshold in DEMO_RAW_MATERIALS:
            material = StockItem.objects.filter(sku=sku).first()
            if material is None:
                material = register_item(
                    name=name,
                    sku=sku,
                    kind="raw_material",
                    unit_of_measure=unit,
                    cost_price=Decimal(cost),
                    low_stock_threshold=threshold,
                    opening_stock=opening,
                    recorded_by="seed_demo",
                )
            materials.append(material)

        # a delivery from the supplier, then a production run
        milk = materials[0]
        if not milk.usages.exists():
            receive_purchase(
                "PO-DEMO-0001",
                [{"item_id": milk.pk, "quantity": 500}],
                supplier=accounts[3].name,
                recorded_by="seed_demo",
            )
            record_usage(milk.pk, 120, "Production", recorded_by="seed_demo")

        self.stdout.write(self.style.SUCCESS("Demo data seeded successfully!"))
