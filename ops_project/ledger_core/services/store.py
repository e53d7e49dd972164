import logging
from collections.abc import Mapping
from typing import List

from django.core.exceptions import ValidationError
from django.db import DatabaseError, transaction
from django.utils import timezone

from ..exceptions import NotFoundError, UpstreamUnavailable
from ..models import MaterialUsage, StockAdjustmentLog, StockItem
from ..models.usage import USAGE_DEPARTMENT_CHOICES
from ..utils import generate_number, to_pk, to_quantity
from .audit_helper import log_action
from .stock import AdjustmentRequest, append_adjustment, append_batch

logger = logging.getLogger(__name__)

USAGE_DEPARTMENTS = [value for value, _ in USAGE_DEPARTMENT_CHOICES]


def _get_raw_material(item_pk) -> StockItem:
    item = StockItem.objects.raw_materials().filter(pk=item_pk).first()
    if item is not None:
        return item
    if StockItem.objects.filter(pk=item_pk).exists():
        raise ValidationError(f"Stock item {item_pk} is not a raw material.")
    raise NotFoundError(f"Stock item {item_pk} not found.")


def record_usage(
    item_id,
    quantity,
    department: str,
    usage_date=None,
    notes: str = "",
    recorded_by: str = "",
    user=None,
) -> MaterialUsage:
    """
    Issue a raw material to a department.

    The quantity leaves stock as a usage_deduction entry; using more
    than is on hand raises InsufficientStock and records nothing.
    """
    if department not in USAGE_DEPARTMENTS:
        raise ValidationError(f"Unknown department '{department}'.")
    item_pk = to_pk(item_id, label="item id")
    qty = to_quantity(quantity, label="quantity used")
    if qty <= 0:
        raise ValidationError("Quantity used must be greater than zero.")
    usage_date = usage_date or timezone.localdate()

    try:
        with transaction.atomic():
            item = _get_raw_material(item_pk)
            number = generate_number("USE", on=usage_date)

            entry = append_adjustment(
                item.pk, -qty, "usage_deduction",
                notes=notes or f"Used by {department}",
                date=usage_date,
                recorded_by=recorded_by,
                source_type="material_usage",
                source_id=number,
            )
            usage = MaterialUsage.objects.create(
                usage_number=number,
                item=item,
                item_name=item.name,
                quantity_used=qty,
                unit_of_measure=item.unit_of_measure,
                department=department,
                usage_date=usage_date,
                notes=notes,
                recorded_by=recorded_by,
                adjustment=entry,
            )
            log_action(action="create", instance=usage, user=user,
                       changes={"quantity_used": qty, "department": department})
    except DatabaseError as exc:
        logger.error("Usage could not be stored", exc_info=True,
                     extra={"item_id": item_pk})
        raise UpstreamUnavailable(f"Could not record usage: {exc}") from exc

    logger.info(
        "Material usage recorded",
        extra={"usage_number": usage.usage_number, "item_id": item.pk,
               "department": department, "quantity_used": str(qty)},
    )
    return usage


def receive_purchase(
    reference: str,
    lines,
    supplier: str = "",
    received_date=None,
    recorded_by: str = "",
    user=None,
) -> List[StockAdjustmentLog]:
    """
    Book goods received against a purchase order.
    One addition entry per line, all in a single batch.
    """
    reference = (reference or "").strip()
    if not reference:
        raise ValidationError("A purchase order reference is required.")
    if not lines:
        raise ValidationError("At least one received line is required.")

    requests = []
    for index, line in enumerate(lines):
        if not isinstance(line, Mapping) or "item_id" not in line:
            raise ValidationError(f"Line #{index} needs an item_id.")
        qty = to_quantity(line.get("quantity"), label=f"line #{index} quantity")
        if qty <= 0:
            raise ValidationError(f"Line #{index} quantity must be > 0.")
        requests.append(AdjustmentRequest(
            item_id=to_pk(line["item_id"], label=f"line #{index} item id"),
            quantity_delta=qty,
            adjustment_type="addition",
            notes=f"Received on {reference}" + (f" from {supplier}" if supplier else ""),
            date=received_date,
            recorded_by=recorded_by,
            source_type="purchase_order",
            source_id=reference,
        ))

    with transaction.atomic():
        entries = append_batch(requests)
        for entry in entries:
            log_action(action="receive", instance=entry, user=user,
                       changes={"reference": reference,
                                "quantity_adjusted": entry.quantity_adjusted})

    logger.info("Purchase received",
                extra={"reference": reference, "supplier": supplier,
                       "lines": len(entries)})
    return entries
