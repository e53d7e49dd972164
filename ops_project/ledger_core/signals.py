from django.db.models.signals import pre_delete
from django.dispatch import receiver

from .exceptions import PolicyViolation
from .models import Invoice, StockAdjustmentLog

""" Block removal of stock history.
StockAdjustmentLog.delete() turns into a reversal, but QuerySet.delete()
skips Model.delete(), so bulk deletes are refused here. """


# pre_delete fires for every row, including bulk queryset deletes
@receiver(pre_delete, sender=StockAdjustmentLog)
def prevent_delete_stock_log(sender, instance, **kwargs):
    raise PolicyViolation(
        f"Stock log entry {instance.log_number} cannot be deleted in bulk; "
        "delete entries one at a time to record their reversals.")


"""Sales are cancelled, never deleted."""


@receiver(pre_delete, sender=Invoice)
def prevent_delete_invoice_with_stock_entries(sender, instance, **kwargs):
    if StockAdjustmentLog.objects.filter(
        source_type="invoice", source_id=str(instance.pk)
    ).exists():
        raise PolicyViolation(
            f"Invoice {instance.number} has stock entries; cancel it instead.")
