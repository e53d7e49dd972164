from django.core.exceptions import ValidationError
from django.db import models

from .item import UNIT_OF_MEASURE_CHOICES, StockItem
from .stock_log import StockAdjustmentLog

USAGE_DEPARTMENT_CHOICES = [
    ("Production", "Production"),
    ("Cleaning", "Cleaning"),
    ("Packaging", "Packaging"),
    ("Maintenance", "Maintenance"),
    ("Office", "Office"),
    ("Wastage", "Wastage"),
    ("Other", "Other"),
]


# ---------- Raw material usage (store issues to a department) ----------
class MaterialUsage(models.Model):

    # e.g. "USE-20261017-3F9A1C"
    usage_number = models.CharField(max_length=64, unique=True)

    item = models.ForeignKey(
        StockItem, on_delete=models.PROTECT, related_name="usages"
    )
    item_name = models.CharField(max_length=200)

    quantity_used = models.DecimalField(max_digits=14, decimal_places=4)
    unit_of_measure = models.CharField(max_length=10, choices=UNIT_OF_MEASURE_CHOICES)
    department = models.CharField(max_length=20, choices=USAGE_DEPARTMENT_CHOICES)

    usage_date = models.DateField()
    notes = models.TextField(blank=True, default="")
    recorded_by = models.CharField(max_length=120, blank=True, default="")

    # The usage_deduction entry that took the quantity out of stock
    adjustment = models.OneToOneField(
        StockAdjustmentLog, on_delete=models.PROTECT, related_name="usage"
    )

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-usage_date", "-id"]
        indexes = [
            models.Index(fields=["department", "usage_date"], name="usage_department_date_idx"),
            models.Index(fields=["item", "usage_date"], name="usage_item_date_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(quantity_used__gt=0),
                name="usage_quantity_positive",
            ),
        ]

    def __str__(self):
        return f"{self.usage_number}: {self.item_name} x {self.quantity_used} ({self.department})"

    def clean(self):
        if self.quantity_used is not None and self.quantity_used <= 0:
            raise ValidationError("Quantity used must be > 0")
        if self.item_id and self.item.kind != "raw_material":
            raise ValidationError("Only raw materials are issued through usage.")

    def save(self, *args, **kwargs):
        self.full_clean()
        return super().save(*args, **kwargs)
