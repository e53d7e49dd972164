from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models

from ..utils import parse_account_code

ACCOUNT_TYPE_CHOICES = [
    ("customer", "Customer"),
    ("supplier", "Supplier"),
    ("sales_rep", "Sales Rep"),
    ("premium_product", "Premium Product"),
    ("standard_product", "Standard Product"),
    ("bank", "Bank"),
    ("expense", "Expense"),
    ("income", "Income"),
    ("asset", "Asset"),
    ("liability", "Liability"),
    ("equity", "Equity"),
]


# ---------- Ledger account ----------
# A customer, supplier or internal payee tracked for invoicing/payment
class LedgerAccount(models.Model):

    # Opaque code that encodes price level + zone (e.g. "R-RETAILER-Z1/RTL")
    account_code = models.CharField(max_length=64)

    name = models.CharField(max_length=200)
    account_type = models.CharField(
        max_length=20, choices=ACCOUNT_TYPE_CHOICES, default="customer"
    )

    # Days until an invoice falls due (0 = use the configured default)
    credit_period_days = models.PositiveIntegerField(default=0)

    # 0 means no limit is enforced
    credit_limit = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00")
    )

    address = models.TextField(blank=True, default="")
    phone = models.CharField(max_length=40, blank=True, default="")
    bank_details = models.TextField(blank=True, default="")

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        indexes = [models.Index(fields=["account_code"], name="ledger_acct_code_idx")]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(credit_limit__gte=0),
                name="ledger_account_credit_limit_non_negative",
            ),
        ]

    def __str__(self):
        return f"{self.name} ({self.account_code})"

    """ price_level and zone are derived from account_code only,
    so they can never drift from the code """

    @property
    def price_level(self):
        return parse_account_code(self.account_code)[0]

    @property
    def zone(self):
        return parse_account_code(self.account_code)[1]

    def clean(self):
        if not (self.account_code or "").strip():
            raise ValidationError("Account code is required.")
        if self.credit_limit is not None and self.credit_limit < 0:
            raise ValidationError("Credit limit cannot be negative.")

    def save(self, *args, **kwargs):
        self.full_clean()  # run validations before saving
        return super().save(*args, **kwargs)
