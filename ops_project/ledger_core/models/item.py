from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models

from ..exceptions import PolicyViolation
from ..managers import StockItemManager
from ..write_barrier import STOCK_LEDGER, write_context_active

ITEM_KIND_CHOICES = [
    ("finished_good", "Finished good"),
    ("raw_material", "Raw material"),
]

UNIT_OF_MEASURE_CHOICES = [
    ("PCS", "PCS"),
    ("Litres", "Litres"),
    ("KG", "KG"),
    ("Grams", "Grams"),
    ("Pack", "Pack"),
    ("Sachet", "Sachet"),
    ("Unit", "Unit"),
    ("Carton", "Carton"),
    ("Bag", "Bag"),
    ("Other", "Other"),
]


# ---------- Stock-bearing items (finished goods & raw materials) ----------
class StockItem(models.Model):

    name = models.CharField(max_length=200)

    # Stock Keeping Unit, unique across the catalogue
    sku = models.CharField(max_length=80, unique=True)

    kind = models.CharField(
        max_length=20, choices=ITEM_KIND_CHOICES, default="finished_good"
    )
    category = models.CharField(max_length=80, blank=True, default="")
    unit_of_measure = models.CharField(
        max_length=10, choices=UNIT_OF_MEASURE_CHOICES, default="PCS"
    )

    # Materialized current quantity.
    """ A projection of the stock adjustment log, not a source of truth.
    Only the stock ledger service may change it. """
    stock = models.DecimalField(
        max_digits=14, decimal_places=4, default=Decimal("0")
    )

    low_stock_threshold = models.DecimalField(
        max_digits=14, decimal_places=4, default=Decimal("0")
    )

    cost_price = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00")
    )
    # Standard price, used when no price tier applies
    sell_price = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00")
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = StockItemManager()

    class Meta:
        indexes = [models.Index(fields=["name"], name="stock_item_name_idx")]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(cost_price__gte=0) & models.Q(sell_price__gte=0),
                name="stock_item_non_negative_prices",
            ),
        ]

    def __str__(self):
        return f"{self.name} [{self.sku}]"

    @property
    def is_low_stock(self):
        return self.stock <= self.low_stock_threshold

    def clean(self):
        if self.sell_price is not None and self.sell_price < 0:
            raise ValidationError("Sell price must be >= 0")
        if self.cost_price is not None and self.cost_price < 0:
            raise ValidationError("Cost price must be >= 0")

    def _guard_stock_projection(self):
        """ Stock may only move through the stock ledger,
        which writes a log entry for every change """
        if write_context_active(STOCK_LEDGER):
            return
        if not self.pk:
            if self.stock:
                raise PolicyViolation(
                    "Opening stock must be recorded through the stock ledger."
                )
            return
        stored = (
            StockItem.objects.filter(pk=self.pk)
            .values_list("stock", flat=True)
            .first()
        )
        if stored is not None and stored != self.stock:
            raise PolicyViolation(
                f"Stock of {self} can only change through a stock adjustment."
            )

    def save(self, *args, **kwargs):
        self._guard_stock_projection()
        self.full_clean()  # run validations before saving
        return super().save(*args, **kwargs)


# ---------- Tiered prices ----------
# Price an account pays for this item at a given price level
class PriceTier(models.Model):

    item = models.ForeignKey(
        StockItem, on_delete=models.CASCADE, related_name="price_tiers"
    )
    # Matches LedgerAccount.price_level
    price_level = models.CharField(max_length=64)
    price = models.DecimalField(max_digits=18, decimal_places=2)

    # Keeps the order the tier list was written in
    position = models.PositiveIntegerField(default=0)

    class Meta:
        ordering = ["item", "position", "id"]
        constraints = [
            # one price per level per item
            models.UniqueConstraint(
                fields=["item", "price_level"], name="uq_item_price_level"
            ),
            models.CheckConstraint(
                condition=models.Q(price__gte=0), name="price_tier_non_negative"
            ),
        ]

    def __str__(self):
        return f"{self.item.sku} @ {self.price_level}: {self.price}"

    def clean(self):
        if not (self.price_level or "").strip():
            raise ValidationError("Price level is required.")
        if self.price is not None and self.price < 0:
            raise ValidationError("Tier price must be >= 0")

    def save(self, *args, **kwargs):
        self.full_clean()
        return super().save(*args, **kwargs)
