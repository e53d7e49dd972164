from django.core.exceptions import ValidationError
from django.db import models

from ..exceptions import PolicyViolation
from ..managers import StockLogManager
from ..write_barrier import SALES_WORKFLOW, STOCK_LEDGER, write_context_active
from .item import StockItem

ADJUSTMENT_TYPE_CHOICES = [
    ("addition", "Addition"),
    ("initial_stock", "Initial Stock"),
    ("manual_correction_add", "Manual Correction (Add)"),
    ("manual_correction_subtract", "Manual Correction (Subtract)"),
    ("sale_deduction", "Sale Deduction"),
    ("return_addition", "Return Addition"),
    ("usage_deduction", "Raw Material Usage"),
]

POSITIVE_TYPES = {
    "addition", "initial_stock", "manual_correction_add", "return_addition"}
NEGATIVE_TYPES = {"manual_correction_subtract", "sale_deduction", "usage_deduction"}

# Written by the sales / return workflow only
PROTECTED_TYPES = {"sale_deduction", "return_addition"}

# Everything except notes is frozen once written
IMMUTABLE_FIELDS = [
    "log_number", "item_id", "item_name", "adjustment_type",
    "quantity_adjusted", "previous_stock", "new_stock", "adjustment_date",
    "recorded_by", "source_type", "source_id", "reverses_id",
]


# ---------- Stock adjustment log (append-only) ----------
class StockAdjustmentLog(models.Model):

    # e.g. "STKBTCH-2026-48213-SKU1-0"
    log_number = models.CharField(max_length=80, unique=True)

    item = models.ForeignKey(
        StockItem, on_delete=models.PROTECT, related_name="adjustments"
    )
    # Name at the time of the adjustment
    item_name = models.CharField(max_length=200)

    adjustment_type = models.CharField(
        max_length=30, choices=ADJUSTMENT_TYPE_CHOICES)

    # Signed change, never zero
    quantity_adjusted = models.DecimalField(max_digits=14, decimal_places=4)
    # new_stock = previous_stock + quantity_adjusted
    previous_stock = models.DecimalField(max_digits=14, decimal_places=4)
    new_stock = models.DecimalField(max_digits=14, decimal_places=4)

    adjustment_date = models.DateField()
    notes = models.TextField(blank=True, default="")
    recorded_by = models.CharField(max_length=120, blank=True, default="")

    # Document that caused the movement (e.g. "invoice", "credit_note")
    source_type = models.CharField(max_length=40, blank=True, default="")
    source_id = models.CharField(max_length=64, blank=True, default="")

    # Set on a counter-entry; the cancelled entry is never written again
    reverses = models.OneToOneField(
        "self",
        null=True,
        blank=True,
        on_delete=models.PROTECT,
        related_name="reversed_by",
    )

    created_at = models.DateTimeField(auto_now_add=True)

    objects = StockLogManager()

    class Meta:
        ordering = ["created_at", "id"]
        indexes = [
            models.Index(fields=["item", "created_at"], name="stock_log_item_created_idx"),
            models.Index(fields=["source_type", "source_id"], name="stock_log_source_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=~models.Q(quantity_adjusted=0),
                name="stock_log_non_zero_quantity",
            ),
        ]

    def __str__(self):
        return (
            f"{self.log_number}: {self.item_name} "
            f"{self.quantity_adjusted:+} ({self.adjustment_type})"
        )

    @property
    def is_protected(self):
        return self.adjustment_type in PROTECTED_TYPES

    @property
    def is_superseded(self):
        return StockAdjustmentLog.objects.filter(reverses_id=self.pk).exists()

    @property
    def is_counter_entry(self):
        return self.reverses_id is not None

    def clean(self):
        qty = self.quantity_adjusted
        if qty is None:
            return
        if qty == 0:
            raise ValidationError("Quantity adjusted must be non-zero.")
        if self.adjustment_type in POSITIVE_TYPES and qty < 0:
            raise ValidationError(
                f"{self.adjustment_type} requires a positive quantity.")
        if self.adjustment_type in NEGATIVE_TYPES and qty > 0:
            raise ValidationError(
                f"{self.adjustment_type} requires a negative quantity.")
        if (
            self.previous_stock is not None
            and self.new_stock != self.previous_stock + qty
        ):
            raise ValidationError(
                "New stock must equal previous stock plus the adjustment.")

    def _guard_append_only(self):
        """ New rows come from the stock ledger only.
        Existing rows may change their notes, and protected rows
        only from inside the sales workflow. """
        if not self.pk:
            if not write_context_active(STOCK_LEDGER):
                raise PolicyViolation(
                    "Stock log entries can only be appended by the stock ledger.")
            return

        orig = StockAdjustmentLog.objects.filter(pk=self.pk).first()
        if orig is None:
            return
        changed = [
            field for field in IMMUTABLE_FIELDS
            if getattr(orig, field) != getattr(self, field)
        ]
        if changed:
            raise PolicyViolation(
                f"Stock log entry {orig.log_number} is append-only; "
                f"cannot change {changed}. Record a reversal instead.")
        if (
            orig.notes != self.notes
            and orig.is_protected
            and not write_context_active(SALES_WORKFLOW)
        ):
            raise PolicyViolation(
                f"{orig.log_number} is managed by the sales workflow.")

    def save(self, *args, **kwargs):
        self._guard_append_only()
        self.full_clean()
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        """ Deleting a manual entry appends its counter-entry; the row stays.
        Returns the counter-entry. Protected entries, reversed entries and
        counter-entries raise PolicyViolation. """
        from ..services.stock import reverse_adjustment

        if self.pk is None:
            raise PolicyViolation("Unsaved stock log entries cannot be deleted.")
        return reverse_adjustment(self.pk)
