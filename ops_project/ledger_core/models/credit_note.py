from django.core.exceptions import ValidationError
from django.db import models

from ..managers import AccountDocumentManager
from .invoice import Invoice
from .item import StockItem
from .ledger_account import LedgerAccount

RETURNED_GOODS = "Returned Goods"

CREDIT_REASON_CHOICES = [
    ("Travel Expense Reimbursement", "Travel Expense Reimbursement"),
    (RETURNED_GOODS, RETURNED_GOODS),
    ("Damages", "Damages"),
    ("Service Credit/Discount", "Service Credit/Discount"),
    ("Error Correction", "Error Correction"),
    ("Sales Rep Commission", "Sales Rep Commission"),
    ("Other Expense Reimbursement", "Other Expense Reimbursement"),
    ("Write Off", "Write Off"),
    ("Debt to be Credited", "Debt to be Credited"),
    ("Other", "Other"),
]


# ---------- Credit notes (reduce what an account owes) ----------
class CreditNote(models.Model):

    number = models.CharField(max_length=64, unique=True)

    account = models.ForeignKey(
        LedgerAccount, on_delete=models.PROTECT, related_name="credit_notes"
    )
    date = models.DateField()

    amount = models.DecimalField(max_digits=18, decimal_places=2)
    reason = models.CharField(max_length=40, choices=CREDIT_REASON_CHOICES)
    description = models.TextField(blank=True, default="")

    # Invoice being credited, when there is one
    related_invoice = models.ForeignKey(
        Invoice,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="credit_notes",
    )

    created_at = models.DateTimeField(auto_now_add=True)

    objects = AccountDocumentManager()

    class Meta:
        indexes = [models.Index(fields=["account", "date"], name="credit_note_account_date_idx")]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(amount__gt=0),
                name="credit_note_amount_positive",
            ),
        ]

    def __str__(self):
        return f"CN {self.number} ({self.reason})"

    @property
    def is_return(self):
        return self.reason == RETURNED_GOODS

    def clean(self):
        if self.amount is not None and self.amount <= 0:
            raise ValidationError("Credit note amount must be > 0")
        # A credit note can only relieve the account it was raised against
        if self.related_invoice_id and self.account_id:
            invoice_account = (
                Invoice.objects.filter(pk=self.related_invoice_id)
                .values_list("account_id", flat=True)
                .first()
            )
            # unknown invoice ids are reported by clean_fields()
            if invoice_account is not None and invoice_account != self.account_id:
                raise ValidationError(
                    "Related invoice belongs to a different account.")

    def save(self, *args, **kwargs):
        self.full_clean()
        return super().save(*args, **kwargs)


# Returned items on a "Returned Goods" credit note
class CreditNoteLine(models.Model):

    credit_note = models.ForeignKey(
        CreditNote, on_delete=models.CASCADE, related_name="lines"
    )
    item = models.ForeignKey(StockItem, on_delete=models.PROTECT)
    item_name = models.CharField(max_length=200)

    quantity = models.DecimalField(max_digits=14, decimal_places=4)
    unit_price = models.DecimalField(max_digits=18, decimal_places=2)
    line_total = models.DecimalField(max_digits=18, decimal_places=2)

    class Meta:
        constraints = [
            models.CheckConstraint(
                condition=models.Q(quantity__gt=0),
                name="cnl_quantity_positive",
            ),
        ]

    def __str__(self):
        return f"{self.credit_note.number}: {self.item_name} x {self.quantity}"

    def clean(self):
        if self.quantity is not None and self.quantity <= 0:
            raise ValidationError("Quantity must be > 0")
        if self.credit_note_id and not self.credit_note.is_return:
            raise ValidationError(
                "Only Returned Goods credit notes carry item lines.")

    def save(self, *args, **kwargs):
        self.full_clean()
        return super().save(*args, **kwargs)
