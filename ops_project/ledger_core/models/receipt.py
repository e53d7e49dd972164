from django.core.exceptions import ValidationError
from django.db import models

from ..managers import AccountDocumentManager
from .ledger_account import LedgerAccount

RECEIPT_METHOD_CHOICES = [
    ("Cash", "Cash"),
    ("Card", "Card"),
    ("Transfer", "Transfer"),
    ("Online", "Online"),
    ("Cheque", "Cheque"),
]


# ---------- Receipts (money received from an account) ----------
class Receipt(models.Model):

    number = models.CharField(max_length=64, unique=True)

    account = models.ForeignKey(
        LedgerAccount, on_delete=models.PROTECT, related_name="receipts"
    )
    date = models.DateField()

    amount_received = models.DecimalField(max_digits=18, decimal_places=2)

    method = models.CharField(
        max_length=10, choices=RECEIPT_METHOD_CHOICES, default="Cash"
    )
    # Only meaningful for Transfer / Cheque
    bank_name = models.CharField(max_length=120, blank=True, default="")
    reference = models.CharField(max_length=120, blank=True, default="")
    notes = models.TextField(blank=True, default="")

    created_at = models.DateTimeField(auto_now_add=True)

    objects = AccountDocumentManager()

    class Meta:
        indexes = [models.Index(fields=["account", "date"], name="receipt_account_date_idx")]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(amount_received__gt=0),
                name="receipt_amount_positive",
            ),
        ]

    def __str__(self):
        return f"Rcpt {self.number} ({self.amount_received})"

    def clean(self):
        if self.amount_received is not None and self.amount_received <= 0:
            raise ValidationError("Amount received must be > 0")

    def save(self, *args, **kwargs):
        self.full_clean()
        return super().save(*args, **kwargs)
