from django.db import models

from .utils import to_money

# -----------------------------------------
# Query helpers shared by the ledger models
# -----------------------------------------


# Receipts and credit notes are always filtered per ledger account
class AccountDocumentQuerySet(models.QuerySet):
    def for_account(self, account):  # accepts an instance or a pk
        return self.filter(account=account)


class InvoiceQuerySet(AccountDocumentQuerySet):
    # Invoices that count towards the outstanding balance
    def outstanding(self):
        return self.exclude(status="cancelled")

    # Sent invoices whose due date has passed
    def past_due(self, today):
        return self.filter(status="sent", due_date__lt=today)


class AccountDocumentManager(models.Manager):
    def get_queryset(self):
        return AccountDocumentQuerySet(self.model, using=self._db)

    def for_account(self, account):
        return self.get_queryset().for_account(account)


class InvoiceManager(models.Manager):
    def get_queryset(self):
        return InvoiceQuerySet(self.model, using=self._db)

    def for_account(self, account):
        return self.get_queryset().for_account(account)

    def outstanding(self):
        return self.get_queryset().outstanding()

    def past_due(self, today):
        return self.get_queryset().past_due(today)


class StockItemQuerySet(models.QuerySet):
    # Dashboard rule: stock at or below the item's threshold
    def low_stock(self):
        return self.filter(stock__lte=models.F("low_stock_threshold"))

    def finished_goods(self):
        return self.filter(kind="finished_good")

    def raw_materials(self):
        return self.filter(kind="raw_material")


class StockItemManager(models.Manager):
    def get_queryset(self):
        return StockItemQuerySet(self.model, using=self._db)

    def low_stock(self):
        return self.get_queryset().low_stock()

    def finished_goods(self):
        return self.get_queryset().finished_goods()

    def raw_materials(self):
        return self.get_queryset().raw_materials()


class StockLogQuerySet(models.QuerySet):
    def for_item(self, item):
        return self.filter(item=item)

    # Entries written by the sales/return workflow
    def protected(self):
        return self.filter(adjustment_type__in=("sale_deduction", "return_addition"))

    # Entries that a counter-entry has cancelled
    def superseded(self):
        return self.filter(reversed_by__isnull=False)


class StockLogManager(models.Manager):
    def get_queryset(self):
        return StockLogQuerySet(self.model, using=self._db)

    def for_item(self, item):
        return self.get_queryset().for_item(item)

    def protected(self):
        return self.get_queryset().protected()

    def superseded(self):
        return self.get_queryset().superseded()


# Create an InvoiceLine from a resolved price quote
class InvoiceLineManager(models.Manager):
    def create_from_quote(self, invoice, item, quantity, quote):
        return self.create(
            invoice=invoice,
            item=item,
            item_name=item.name,
            quantity=quantity,
            unit_price=quote.price,
            line_total=to_money(quantity * quote.price),
            tier_applied=quote.tier_applied,
        )
