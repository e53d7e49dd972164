import json
from datetime import date
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_POST

from .exceptions import NotFoundError
from .models import LedgerAccount, StockItem
from .services import (append_adjustment, append_batch, compute_balance,
                       evaluate, price_for_account, resolve_price,
                       reverse_adjustment)

# Typed service errors raised here are turned into JSON
# responses by LedgerErrorMiddleware


def _json_body(request):
    # Decimal keeps money/quantities exact
    try:
        payload = json.loads(request.body or b"{}", parse_float=Decimal)
    except (ValueError, UnicodeDecodeError):
        raise ValidationError("Request body must be valid JSON.")
    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a JSON object.")
    return payload


def _parse_date(value):
    if not value:
        return None
    try:
        return date.fromisoformat(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid ISO date {value!r}.")


def _entry_json(entry):
    return {
        "id": entry.pk,
        "log_number": entry.log_number,
        "item_id": entry.item_id,
        "adjustment_type": entry.adjustment_type,
        "quantity_adjusted": str(entry.quantity_adjusted),
        "previous_stock": str(entry.previous_stock),
        "new_stock": str(entry.new_stock),
        "adjustment_date": entry.adjustment_date.isoformat(),
        "reverses": entry.reverses_id,
    }


@require_GET
def account_balance_view(request, account_id):
    balance = compute_balance(account_id)
    return JsonResponse(balance.as_dict())


@require_GET
def credit_check_view(request, account_id):
    pending = request.GET.get("pending") or "0"
    check = evaluate(account_id, pending_amount=pending)
    return JsonResponse(check.as_dict())


@require_GET
def item_price_view(request, item_id):
    item = StockItem.objects.prefetch_related("price_tiers").filter(pk=item_id).first()
    if item is None:
        raise NotFoundError(f"Stock item {item_id} not found.")

    account_id = request.GET.get("account")
    if account_id:
        if not account_id.isdigit():
            raise ValidationError(f"Invalid account id {account_id!r}.")
        account = LedgerAccount.objects.filter(pk=account_id).first()
        if account is None:
            raise NotFoundError(f"Ledger account {account_id} not found.")
        quote = price_for_account(item, account)
    else:
        # no account -> explicit price_level query or the standard price
        quote = resolve_price(item, request.GET.get("price_level"))

    return JsonResponse({
        "item_id": item.pk,
        "price": f"{quote.price:.2f}",
        "tier_applied": quote.tier_applied,
    })


@csrf_exempt
@require_POST
def append_adjustment_view(request, item_id):
    data = _json_body(request)
    if "quantity_delta" not in data or "adjustment_type" not in data:
        raise ValidationError("quantity_delta and adjustment_type are required.")

    entry = append_adjustment(
        item_id,
        data["quantity_delta"],
        data["adjustment_type"],
        notes=data.get("notes", ""),
        date=_parse_date(data.get("date")),
        allow_negative=bool(data.get("allow_negative", False)),
        recorded_by=data.get("recorded_by", ""),
    )
    return JsonResponse({"ok": True, "entry": _entry_json(entry)}, status=201)


@csrf_exempt
@require_POST
def append_batch_view(request):
    data = _json_body(request)
    entries = data.get("entries")
    if not isinstance(entries, list):
        raise ValidationError("'entries' must be a list.")

    # dates arrive as ISO strings
    for entry in entries:
        if isinstance(entry, dict) and "date" in entry:
            entry["date"] = _parse_date(entry["date"])

    created = append_batch(entries)
    return JsonResponse(
        {"ok": True, "entries": [_entry_json(e) for e in created]}, status=201)


@csrf_exempt
@require_POST
def reverse_adjustment_view(request, log_id):
    data = _json_body(request)
    entry = reverse_adjustment(
        log_id,
        notes=data.get("notes", ""),
        allow_negative=bool(data.get("allow_negative", False)),
        recorded_by=data.get("recorded_by", ""),
    )
    return JsonResponse({"ok": True, "entry": _entry_json(entry)}, status=201)
