import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import timedelta
from decimal import Decimal
from typing import List, Optional

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import DatabaseError, transaction
from django.utils import timezone

from ..exceptions import NotFoundError, PolicyViolation, UpstreamUnavailable
from ..models import (CreditNote, CreditNoteLine, Invoice, InvoiceLine,
                      LedgerAccount, Receipt, StockAdjustmentLog, StockItem)
from ..models.credit_note import RETURNED_GOODS
from ..utils import generate_number, to_money, to_pk, to_quantity
from ..write_barrier import sales_workflow_writes_allowed
from .audit_helper import log_action
from .credit import CreditCheck, evaluate
from .pricing import price_for_account
from .stock import AdjustmentRequest, append_batch

logger = logging.getLogger(__name__)

# Settled at the point of sale
IMMEDIATE_PAYMENT_METHODS = ("Cash", "Card", "Transfer", "Online")
PAYMENT_METHODS = IMMEDIATE_PAYMENT_METHODS + ("Credit",)


@dataclass
class SaleResult:
    invoice: Invoice
    adjustments: List[StockAdjustmentLog] = field(default_factory=list)
    credit_check: Optional[CreditCheck] = None


# ----------------------------
# Shared helpers
# ----------------------------
def tax_rate() -> Decimal:
    return Decimal(str(getattr(settings, "LEDGER_TAX_RATE", "0.075")))


def _get_account(account_id) -> LedgerAccount:
    try:
        return LedgerAccount.objects.get(pk=account_id)
    except (LedgerAccount.DoesNotExist, ValueError, TypeError):
        raise NotFoundError(f"Ledger account {account_id} not found.")


def _parse_lines(lines) -> list[dict]:
    """Normalize [{"item_id": .., "quantity": ..}, ...]; quantities must be > 0."""
    if not lines:
        raise ValidationError("At least one line is required.")
    parsed = []
    for index, line in enumerate(lines):
        if not isinstance(line, Mapping) or "item_id" not in line:
            raise ValidationError(f"Line #{index} needs an item_id.")
        item_id = to_pk(line["item_id"], label=f"line #{index} item id")
        qty = to_quantity(line.get("quantity"), label=f"line #{index} quantity")
        if qty <= 0:
            raise ValidationError(f"Line #{index} quantity must be > 0.")
        parsed.append({**line, "item_id": item_id, "quantity": qty})
    return parsed


def _load_items(lines) -> dict:
    ids = {line["item_id"] for line in lines}
    items = StockItem.objects.prefetch_related("price_tiers").in_bulk(ids)
    for item_id in ids:
        if item_id not in items:
            raise NotFoundError(f"Stock item {item_id} not found.")
    return items


def _invoice_unit_prices(invoice) -> dict:
    if invoice is None:
        return {}
    return {line.item_id: line.unit_price for line in invoice.lines.all()}


# ----------------------------
# Sales
# ----------------------------
def record_sale(
    account_id,
    lines,
    sale_date=None,
    discount=Decimal("0"),
    payment_method: str = "Cash",
    notes: str = "",
    allow_negative: bool = False,
    recorded_by: str = "",
    user=None,
) -> SaleResult:
    """
    Record a sale: price every line for the account, raise the invoice
    and deduct stock, all in one transaction.

    The credit check is advisory; its result is logged and returned.
    """
    if payment_method not in PAYMENT_METHODS:
        raise ValidationError(f"Unknown payment method '{payment_method}'.")
    parsed = _parse_lines(lines)
    sale_date = sale_date or timezone.localdate()

    try:
        with transaction.atomic(), sales_workflow_writes_allowed():
            account = _get_account(account_id)
            items = _load_items(parsed)

            priced = []
            for line in parsed:
                item = items[line["item_id"]]
                quote = price_for_account(item, account)
                priced.append((item, line["quantity"], quote))

            subtotal = to_money(sum(
                (qty * quote.price for _, qty, quote in priced), Decimal("0")))
            discount_amount = to_money(discount, label="discount")
            if discount_amount < 0 or discount_amount > subtotal:
                raise ValidationError("Discount must be between 0 and the subtotal.")
            tax = to_money((subtotal - discount_amount) * tax_rate())
            total = subtotal - discount_amount + tax

            # checked before the new invoice is counted in the balance
            credit_check = evaluate(account.pk, pending_amount=total)

            period = account.credit_period_days or settings.LEDGER_DEFAULT_CREDIT_PERIOD_DAYS
            invoice = Invoice.objects.create(
                number=generate_number("INV", on=sale_date),
                account=account,
                issue_date=sale_date,
                due_date=sale_date + timedelta(days=period),
                subtotal=subtotal,
                discount=discount_amount,
                tax=tax,
                total=total,
                status="paid" if payment_method in IMMEDIATE_PAYMENT_METHODS else "sent",
                notes=notes,
            )
            for item, qty, quote in priced:
                InvoiceLine.objects.create_from_quote(invoice, item, qty, quote)

            adjustments = append_batch([
                AdjustmentRequest(
                    item_id=item.pk,
                    quantity_delta=-qty,
                    adjustment_type="sale_deduction",
                    notes=f"Sale {invoice.number}",
                    date=sale_date,
                    allow_negative=allow_negative,
                    recorded_by=recorded_by,
                    source_type="invoice",
                    source_id=str(invoice.pk),
                )
                for item, qty, _ in priced
            ])

            log_action(
                action="create", instance=invoice, user=user,
                changes={"total": total, "payment_method": payment_method,
                         "credit_status": credit_check.status},
            )
    except DatabaseError as exc:
        logger.error("Sale could not be stored", exc_info=True,
                     extra={"account_id": account_id})
        raise UpstreamUnavailable(f"Could not record sale: {exc}") from exc

    logger.info(
        "Sale recorded",
        extra={"invoice_number": invoice.number, "account_id": account.pk,
               "total": str(total), "credit_status": credit_check.status},
    )
    return SaleResult(invoice=invoice, adjustments=adjustments,
                      credit_check=credit_check)


def record_return(
    account_id,
    lines,
    return_date=None,
    related_invoice_id=None,
    description: str = "",
    recorded_by: str = "",
    user=None,
) -> CreditNote:
    """
    Goods coming back: a Returned Goods credit note with one line per item,
    and a return_addition stock entry per line.

    Unit prices come from the line, then the related invoice,
    then the account's current price.
    """
    parsed = _parse_lines(lines)
    return_date = return_date or timezone.localdate()

    try:
        with transaction.atomic(), sales_workflow_writes_allowed():
            account = _get_account(account_id)
            items = _load_items(parsed)

            invoice = None
            if related_invoice_id is not None:
                invoice = Invoice.objects.filter(pk=related_invoice_id).first()
                if invoice is None:
                    raise NotFoundError(f"Invoice {related_invoice_id} not found.")
            invoiced_prices = _invoice_unit_prices(invoice)

            priced = []
            for line in parsed:
                item = items[line["item_id"]]
                if line.get("unit_price") is not None:
                    unit_price = to_money(line["unit_price"], label="unit_price")
                elif item.pk in invoiced_prices:
                    unit_price = invoiced_prices[item.pk]
                else:
                    unit_price = price_for_account(item, account).price
                priced.append((item, line["quantity"], unit_price))

            amount = to_money(sum(
                (qty * price for _, qty, price in priced), Decimal("0")))

            note = CreditNote.objects.create(
                number=generate_number("CN", on=return_date),
                account=account,
                date=return_date,
                amount=amount,
                reason=RETURNED_GOODS,
                description=description,
                related_invoice=invoice,
            )
            for item, qty, unit_price in priced:
                CreditNoteLine.objects.create(
                    credit_note=note,
                    item=item,
                    item_name=item.name,
                    quantity=qty,
                    unit_price=unit_price,
                    line_total=to_money(qty * unit_price),
                )

            append_batch([
                AdjustmentRequest(
                    item_id=item.pk,
                    quantity_delta=qty,
                    adjustment_type="return_addition",
                    notes=f"Return {note.number}",
                    date=return_date,
                    recorded_by=recorded_by,
                    source_type="credit_note",
                    source_id=str(note.pk),
                )
                for item, qty, _ in priced
            ])

            log_action(action="create", instance=note, user=user,
                       changes={"amount": amount, "reason": RETURNED_GOODS})
    except DatabaseError as exc:
        logger.error("Return could not be stored", exc_info=True,
                     extra={"account_id": account_id})
        raise UpstreamUnavailable(f"Could not record return: {exc}") from exc

    logger.info("Return recorded",
                extra={"credit_note_number": note.number,
                       "account_id": account.pk, "amount": str(amount)})
    return note


def issue_credit_note(
    account_id,
    amount,
    reason: str,
    date=None,
    description: str = "",
    related_invoice_id=None,
    user=None,
) -> CreditNote:
    """Credit an account without goods coming back."""
    if reason == RETURNED_GOODS:
        raise PolicyViolation(
            "Returned Goods credit notes must be recorded as a return.")

    with transaction.atomic():
        account = _get_account(account_id)
        note = CreditNote.objects.create(
            number=generate_number("CN", on=date),
            account=account,
            date=date or timezone.localdate(),
            amount=to_money(amount),
            reason=reason,
            description=description,
            related_invoice_id=related_invoice_id,
        )
        log_action(action="create", instance=note, user=user,
                   changes={"amount": note.amount, "reason": reason})

    logger.info("Credit note issued",
                extra={"credit_note_number": note.number,
                       "account_id": account.pk, "reason": reason})
    return note


def record_receipt(
    account_id,
    amount,
    method: str = "Cash",
    date=None,
    bank_name: str = "",
    reference: str = "",
    notes: str = "",
    user=None,
) -> Receipt:
    with transaction.atomic():
        account = _get_account(account_id)
        receipt = Receipt.objects.create(
            number=generate_number("RCPT", on=date),
            account=account,
            date=date or timezone.localdate(),
            amount_received=to_money(amount, label="amount_received"),
            method=method,
            bank_name=bank_name,
            reference=reference,
            notes=notes,
        )
        log_action(action="create", instance=receipt, user=user,
                   changes={"amount_received": receipt.amount_received,
                            "method": method})

    logger.info("Receipt recorded",
                extra={"receipt_number": receipt.number,
                       "account_id": account.pk,
                       "amount": str(receipt.amount_received)})
    return receipt


# ----------------------------
# Invoice status changes
# ----------------------------
def cancel_invoice(invoice_id, user=None) -> Invoice:
    """
    Cancel an invoice. It stays on record but drops out of the balance.
    Stock is not restored here; goods coming back go through record_return.
    """
    with transaction.atomic(), sales_workflow_writes_allowed():
        try:
            invoice = Invoice.objects.select_for_update().get(pk=invoice_id)
        except (Invoice.DoesNotExist, ValueError, TypeError):
            raise NotFoundError(f"Invoice {invoice_id} not found.")

        previous = invoice.status
        invoice.transition_to("cancelled")

        # flag the sale's stock entries for anyone reading the log
        for entry in StockAdjustmentLog.objects.protected().filter(
            source_type="invoice", source_id=str(invoice.pk)
        ):
            entry.notes = f"{entry.notes} (invoice cancelled)".strip()
            entry.save(update_fields=["notes"])

        log_action(action="cancel", instance=invoice, user=user,
                   changes={"status": {"before": previous, "after": "cancelled"}})

    logger.info("Invoice cancelled",
                extra={"invoice_number": invoice.number, "previous_status": previous})
    return invoice


def mark_overdue_invoices(today=None) -> int:
    """Move sent invoices past their due date to overdue."""
    today = today or timezone.localdate()
    count = 0
    with transaction.atomic():
        for invoice in Invoice.objects.select_for_update().past_due(today):
            invoice.transition_to("overdue")
            count += 1
    if count:
        logger.info("Invoices marked overdue",
                    extra={"invoice_count": count, "as_of": today.isoformat()})
    return count
