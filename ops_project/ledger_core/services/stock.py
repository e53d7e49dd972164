import logging
import uuid
from dataclasses import asdict, dataclass, fields
from datetime import date as date_cls
from decimal import Decimal
from collections.abc import Mapping
from typing import Iterable, List, Optional, Union

from django.core.exceptions import ValidationError
from django.db import DatabaseError, transaction
from django.utils import timezone

from ..exceptions import (BatchRejected, InsufficientStock, NotFoundError,
                          PolicyViolation, UpstreamUnavailable)
from ..models import StockAdjustmentLog, StockItem
from ..models.stock_log import (ADJUSTMENT_TYPE_CHOICES, NEGATIVE_TYPES,
                                POSITIVE_TYPES)
from ..utils import generate_number, to_pk, to_quantity
from ..write_barrier import stock_writes_allowed
from .audit_helper import log_action
from .pricing import set_price_tiers

logger = logging.getLogger(__name__)

ADJUSTMENT_TYPES = {value for value, _ in ADJUSTMENT_TYPE_CHOICES}


@dataclass
class AdjustmentRequest:
    """One entry of a stock batch."""
    item_id: int
    quantity_delta: Union[Decimal, int, str]
    adjustment_type: str
    notes: str = ""
    date: Optional[date_cls] = None
    allow_negative: bool = False
    recorded_by: str = ""
    log_number: Optional[str] = None
    source_type: str = ""
    source_id: str = ""


@dataclass(frozen=True)
class StockRebuild:
    item_id: int
    stored: Decimal
    rebuilt: Decimal

    @property
    def drift(self) -> Decimal:
        return self.stored - self.rebuilt


# ----------------------------
# Internal helpers
# ----------------------------
def _validate_delta(quantity_delta, adjustment_type) -> Decimal:
    if adjustment_type not in ADJUSTMENT_TYPES:
        raise ValidationError(f"Unknown adjustment type '{adjustment_type}'.")

    delta = to_quantity(quantity_delta, label="quantity_delta")
    if delta == 0:
        raise ValidationError("Quantity delta must be non-zero.")
    if adjustment_type in POSITIVE_TYPES and delta < 0:
        raise ValidationError(f"{adjustment_type} requires a positive quantity.")
    if adjustment_type in NEGATIVE_TYPES and delta > 0:
        raise ValidationError(f"{adjustment_type} requires a negative quantity.")
    return delta


def _apply(item: StockItem, request: AdjustmentRequest, log_number: str,
           reverses=None) -> StockAdjustmentLog:
    """
    Append one entry against an item that is already row-locked.
    Mutates `item.stock` in place so later entries in the same
    transaction observe the new value.
    """
    delta = _validate_delta(request.quantity_delta, request.adjustment_type)

    previous = item.stock
    new_stock = previous + delta
    if new_stock < 0 and not request.allow_negative:
        raise InsufficientStock(item.pk, previous, delta)

    with stock_writes_allowed():
        entry = StockAdjustmentLog(
            log_number=log_number,
            item=item,
            item_name=item.name,
            adjustment_type=request.adjustment_type,
            quantity_adjusted=delta,
            previous_stock=previous,
            new_stock=new_stock,
            adjustment_date=request.date or timezone.localdate(),
            notes=request.notes or "",
            recorded_by=request.recorded_by or "",
            source_type=request.source_type or "",
            source_id=str(request.source_id or ""),
            reverses=reverses,
        )
        entry.save()

        item.stock = new_stock
        item.save(update_fields=["stock", "updated_at"])

    return entry


def _lock_item(item_id) -> StockItem:
    try:
        return StockItem.objects.select_for_update().get(pk=item_id)
    except (StockItem.DoesNotExist, ValueError, TypeError):
        raise NotFoundError(f"Stock item {item_id} not found.")


def _item_pk(item_id) -> int:
    return to_pk(item_id, label="item id")


def _batch_prefix(on: date_cls) -> str:
    # STKBTCH-<year>-<5 hex>; entries append "-<sku>-<index>"
    return f"STKBTCH-{on:%Y}-{uuid.uuid4().hex[:5].upper()}"


def _as_request(entry) -> AdjustmentRequest:
    if isinstance(entry, AdjustmentRequest):
        return entry
    if not isinstance(entry, Mapping):
        raise ValidationError("Batch entries must be objects.")
    allowed = {f.name for f in fields(AdjustmentRequest)}
    unknown = set(entry) - allowed
    if unknown:
        raise ValidationError(f"Unknown batch entry fields: {sorted(unknown)}")
    try:
        return AdjustmentRequest(**entry)
    except TypeError as exc:
        raise ValidationError(f"Incomplete batch entry: {exc}")


def _log_committed(entry: StockAdjustmentLog, message: str):
    logger.info(
        message,
        extra={
            "item_id": entry.item_id,
            "log_number": entry.log_number,
            "adjustment_type": entry.adjustment_type,
            "quantity_adjusted": str(entry.quantity_adjusted),
            "new_stock": str(entry.new_stock),
        },
    )


# ----------------------------
# Stock ledger operations
# ----------------------------
def append_adjustment(
    item_id,
    quantity_delta,
    adjustment_type: str,
    notes: str = "",
    date: Optional[date_cls] = None,
    allow_negative: bool = False,
    recorded_by: str = "",
    log_number: Optional[str] = None,
    source_type: str = "",
    source_id: str = "",
) -> StockAdjustmentLog:
    """
    Record one stock movement and update the item's materialized stock.
    The item row stays locked from the read of the current stock
    until the new value is written.
    """
    request = AdjustmentRequest(
        item_id=item_id,
        quantity_delta=quantity_delta,
        adjustment_type=adjustment_type,
        notes=notes,
        date=date,
        allow_negative=allow_negative,
        recorded_by=recorded_by,
        log_number=log_number,
        source_type=source_type,
        source_id=source_id,
    )
    try:
        with transaction.atomic():
            item = _lock_item(_item_pk(item_id))
            number = log_number or generate_number("STK", on=date)
            entry = _apply(item, request, number)
    except InsufficientStock as exc:
        logger.warning(
            "Rejected stock adjustment",
            extra={"item_id": item_id, "available": str(exc.available),
                   "requested": str(exc.requested)},
        )
        raise
    except DatabaseError as exc:
        logger.error("Stock store unavailable", exc_info=True,
                     extra={"item_id": item_id})
        raise UpstreamUnavailable(f"Could not record adjustment: {exc}") from exc

    _log_committed(entry, "Stock adjustment recorded")
    return entry


def append_batch(entries: Iterable) -> List[StockAdjustmentLog]:
    """
    Apply several adjustments as one unit.

    Every touched item is locked up front in primary-key order,
    entries then apply in submission order. The first failing entry
    raises BatchRejected and nothing in the batch is kept.
    """
    requests = []
    item_pks = []
    for index, raw in enumerate(entries):
        try:
            request = _as_request(raw)
            item_pks.append(_item_pk(request.item_id))
        except ValidationError as exc:
            raise BatchRejected(index, exc) from exc
        requests.append(request)

    if not requests:
        return []

    try:
        with transaction.atomic():
            # fixed lock order keeps concurrent batches from deadlocking
            locked = {
                item.pk: item
                for item in StockItem.objects.select_for_update()
                .filter(pk__in=set(item_pks)).order_by("pk")
            }

            first_date = next((r.date for r in requests if r.date), None)
            prefix = _batch_prefix(first_date or timezone.localdate())

            created = []
            for index, (request, item_pk) in enumerate(zip(requests, item_pks)):
                try:
                    item = locked.get(item_pk)
                    if item is None:
                        raise NotFoundError(f"Stock item {item_pk} not found.")
                    number = request.log_number or f"{prefix}-{item.sku}-{index}"
                    created.append(_apply(item, request, number))
                except (ValidationError, NotFoundError,
                        InsufficientStock, PolicyViolation) as exc:
                    raise BatchRejected(index, exc) from exc
    except BatchRejected as exc:
        logger.warning(
            "Rejected stock batch",
            extra={"batch_index": exc.index, "reason": str(exc.error)},
        )
        raise
    except DatabaseError as exc:
        logger.error("Stock store unavailable", exc_info=True)
        raise UpstreamUnavailable(f"Could not record batch: {exc}") from exc

    for entry in created:
        _log_committed(entry, "Stock adjustment recorded (batch)")
    return created


def reverse_adjustment(
    log_id,
    notes: str = "",
    allow_negative: bool = False,
    recorded_by: str = "",
    user=None,
) -> StockAdjustmentLog:
    """
    Cancel a manual entry by appending its opposite.
    The original row is left untouched and reads as superseded.
    Sale deductions and return additions belong to their documents
    and cannot be reversed here.
    """
    try:
        with transaction.atomic():
            try:
                original = (
                    StockAdjustmentLog.objects.select_for_update()
                    .get(pk=log_id)
                )
            except (StockAdjustmentLog.DoesNotExist, ValueError, TypeError):
                raise NotFoundError(f"Stock log entry {log_id} not found.")

            if original.is_protected:
                raise PolicyViolation(
                    f"{original.log_number} is a {original.adjustment_type} entry "
                    "and can only be changed through its sale or return document.")
            if original.is_counter_entry:
                raise PolicyViolation(
                    f"{original.log_number} is itself a reversal.")
            if original.is_superseded:
                raise PolicyViolation(
                    f"{original.log_number} has already been reversed.")

            item = _lock_item(original.item_id)
            delta = -original.quantity_adjusted
            request = AdjustmentRequest(
                item_id=item.pk,
                quantity_delta=delta,
                adjustment_type=(
                    "manual_correction_add" if delta > 0
                    else "manual_correction_subtract"
                ),
                notes=notes or f"Reversal of {original.log_number}",
                allow_negative=allow_negative,
                recorded_by=recorded_by,
                source_type="stock_adjustment",
                source_id=str(original.pk),
            )
            entry = _apply(item, request, generate_number("STKREV"),
                           reverses=original)

            log_action(
                action="reverse",
                instance=original,
                user=user,
                changes={"counter_entry": entry.log_number,
                         "quantity_adjusted": entry.quantity_adjusted},
            )
    except PolicyViolation:
        logger.warning("Rejected stock reversal", extra={"log_id": log_id})
        raise
    except DatabaseError as exc:
        logger.error("Stock store unavailable", exc_info=True,
                     extra={"log_id": log_id})
        raise UpstreamUnavailable(f"Could not reverse adjustment: {exc}") from exc

    _log_committed(entry, "Stock adjustment reversed")
    return entry


def update_adjustment_notes(log_id, notes: str, user=None) -> StockAdjustmentLog:
    """Notes are the only editable part of a manual entry."""
    try:
        entry = StockAdjustmentLog.objects.get(pk=log_id)
    except (StockAdjustmentLog.DoesNotExist, ValueError, TypeError):
        raise NotFoundError(f"Stock log entry {log_id} not found.")

    before = entry.notes
    entry.notes = notes or ""
    with transaction.atomic():
        entry.save(update_fields=["notes"])
        log_action(action="update", instance=entry, user=user,
                   changes={"notes": {"before": before, "after": entry.notes}})
    return entry


def register_item(
    *,
    name: str,
    sku: str,
    kind: str = "finished_good",
    category: str = "",
    unit_of_measure: str = "PCS",
    cost_price=Decimal("0"),
    sell_price=Decimal("0"),
    low_stock_threshold=Decimal("0"),
    opening_stock=Decimal("0"),
    price_tiers=None,
    recorded_by: str = "",
) -> StockItem:
    """
    Create a stock item. Opening stock goes through the ledger
    as an initial_stock entry so the log explains every unit on hand.
    """
    opening = to_quantity(opening_stock, label="opening_stock")
    if opening < 0:
        raise ValidationError("Opening stock cannot be negative.")

    with transaction.atomic():
        item = StockItem(
            name=name,
            sku=sku,
            kind=kind,
            category=category,
            unit_of_measure=unit_of_measure,
            cost_price=cost_price,
            sell_price=sell_price,
            low_stock_threshold=low_stock_threshold,
        )
        item.save()

        if price_tiers:
            set_price_tiers(item, price_tiers)

        if opening > 0:
            append_adjustment(
                item.pk, opening, "initial_stock",
                notes="Opening stock", recorded_by=recorded_by,
                source_type="stock_item", source_id=str(item.pk),
            )
            item.refresh_from_db()

        log_action(action="create", instance=item,
                   changes={"sku": sku, "opening_stock": opening})

    logger.info("Stock item registered",
                extra={"item_id": item.pk, "sku": sku,
                       "opening_stock": str(opening)})
    return item


def rebuild_stock(item_id) -> StockRebuild:
    """
    Recompute an item's materialized stock from its log
    and write it back when the two disagree.
    """
    with transaction.atomic():
        item = _lock_item(item_id)
        deltas = (
            StockAdjustmentLog.objects.for_item(item)
            .values_list("quantity_adjusted", flat=True)
        )
        # python-side Decimal sum (like recalc_totals)
        rebuilt = sum(deltas, Decimal("0"))
        result = StockRebuild(item_id=item.pk, stored=item.stock, rebuilt=rebuilt)

        if result.drift:
            logger.warning(
                "Stock projection drift corrected",
                extra={"item_id": item.pk, "stored": str(item.stock),
                       "rebuilt": str(rebuilt)},
            )
            with stock_writes_allowed():
                item.stock = rebuilt
                item.save(update_fields=["stock", "updated_at"])
            log_action(action="rebuild", instance=item,
                       changes=asdict(result) | {"drift": result.drift})

    return result
