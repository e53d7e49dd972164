from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models

from ..managers import InvoiceLineManager, InvoiceManager
from .item import StockItem
from .ledger_account import LedgerAccount

INV_STATUS_CHOICES = [
    ("draft", "Draft"),
    ("sent", "Sent"),
    ("paid", "Paid"),
    ("overdue", "Overdue"),
    ("cancelled", "Cancelled"),
]

# Current state vs. allowed next states
INV_TRANSITIONS = {
    "draft": ["sent", "paid", "cancelled"],
    "sent": ["paid", "overdue", "cancelled"],
    "overdue": ["paid", "cancelled"],
    "paid": [],
    "cancelled": [],
}

# Fields frozen once an invoice reaches a terminal state
LOCKED_FIELDS = ["number", "account_id", "subtotal", "discount", "tax", "total"]


class Invoice(models.Model):  # Represents an invoice raised against a ledger account

    # human-readable (e.g. "INV-20261017-3F9A1C")
    number = models.CharField(max_length=64, unique=True)

    # prevent deleting an account that still has invoices
    account = models.ForeignKey(
        LedgerAccount, on_delete=models.PROTECT, related_name="invoices"
    )

    issue_date = models.DateField()
    due_date = models.DateField()

    subtotal = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00")
    )
    discount = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00")
    )
    tax = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00")
    )
    # subtotal - discount + tax
    total = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00")
    )

    status = models.CharField(
        max_length=10, choices=INV_STATUS_CHOICES, default="draft"
    )
    """ Workflow:
        draft = not yet finalized.
        sent = issued, awaiting payment.
        paid = settled at issue or later.
        overdue = sent and past its due date.
        cancelled = kept for reporting, excluded from the balance. """

    notes = models.TextField(blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)

    objects = InvoiceManager()

    class Meta:
        indexes = [
            models.Index(fields=["account", "status"], name="invoice_account_status_idx"),
            models.Index(fields=["issue_date"], name="invoice_issue_date_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(subtotal__gte=0)
                & models.Q(discount__gte=0)
                & models.Q(tax__gte=0)
                & models.Q(total__gte=0),
                name="invoice_non_negative_amounts",
            ),
        ]

    def __str__(self):
        return f"Inv {self.number}"

    @property
    def contributes_to_balance(self):
        return self.status != "cancelled"

    def clean(self):
        if self.due_date and self.issue_date and self.due_date < self.issue_date:
            raise ValidationError("Due date cannot be before the issue date.")

        expected = (self.subtotal or 0) - (self.discount or 0) + (self.tax or 0)
        if self.total != expected:
            raise ValidationError(
                f"Invoice total {self.total} does not equal "
                f"subtotal - discount + tax ({expected})."
            )

        """ Paid and cancelled invoices are immutable in all code paths """
        if self.pk:
            orig = Invoice.objects.filter(pk=self.pk).first()
            if orig and orig.status in ("paid", "cancelled"):
                changed_fields = [
                    field for field in LOCKED_FIELDS
                    if getattr(orig, field) != getattr(self, field)
                ]
                if changed_fields:
                    raise ValidationError(
                        f"Cannot modify {changed_fields} on a {orig.status} invoice."
                    )

    def save(self, *args, **kwargs):
        self.full_clean()  # will trigger clean()
        return super().save(*args, **kwargs)

    def transition_to(self, new_status):
        # Look up what states are allowed from current self.status
        if new_status not in INV_TRANSITIONS.get(self.status, []):
            raise ValidationError(
                f"Cannot go from {self.status} to {new_status}")

        self.status = new_status
        self.save(update_fields=["status"])


class InvoiceLine(models.Model):  # Each line describes an item sold on the invoice

    invoice = models.ForeignKey(
        Invoice, on_delete=models.CASCADE, related_name="lines")

    # Prevent deleting an item which has been invoiced
    item = models.ForeignKey(StockItem, on_delete=models.PROTECT)
    # denormalized for display after the item is renamed
    item_name = models.CharField(max_length=200)

    # quantity x unit_price = line_total
    quantity = models.DecimalField(max_digits=14, decimal_places=4)
    unit_price = models.DecimalField(max_digits=18, decimal_places=2)
    line_total = models.DecimalField(max_digits=18, decimal_places=2)

    # Price level used for unit_price, or "Standard"
    tier_applied = models.CharField(max_length=64, default="Standard")

    objects = InvoiceLineManager()

    class Meta:
        constraints = [
            models.CheckConstraint(
                condition=models.Q(quantity__gt=0) & models.Q(unit_price__gte=0),
                name="invl_positive_quantity_non_negative_price",
            ),
        ]

    def __str__(self):
        return f"Invoice: {self.invoice.number} - Item: {self.item_name} - Total: {self.line_total}"

    def clean(self):
        if self.quantity is not None and self.quantity <= 0:
            raise ValidationError("Quantity must be > 0")
        if self.unit_price is not None and self.unit_price < 0:
            raise ValidationError("Unit price must be >= 0")

    def save(self, *args, **kwargs):
        self.full_clean()
        return super().save(*args, **kwargs)
