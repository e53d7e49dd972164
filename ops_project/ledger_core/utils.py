import re
import uuid
from datetime import date
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from django.core.exceptions import ValidationError

CENTS = Decimal("0.01")
QTY_PLACES = Decimal("0.0001")

ZONE_KEYWORDS = ("Z1", "Z2", "Z3", "B1", "B3", "AZ")

# Checked in order against the upper-cased account code
ZONE_OVERRIDES = (
    ("B1-EX", "B1"),
    ("RETAILER-Z1", "Z1"),
    ("DISTRIZ2", "Z2"),
    ("B3-Z3", "Z3"),
    ("AZ-Z1", "Z1"),
)


def _to_decimal(value, label):
    if isinstance(value, bool) or value is None:
        raise ValidationError(f"{label} must be a number, got {value!r}.")
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            # str() keeps floats at their shortest repr instead of binary expansion
            result = Decimal(str(value).strip())
        except (InvalidOperation, ValueError):
            raise ValidationError(f"{label} must be a number, got {value!r}.")
    if not result.is_finite():
        raise ValidationError(f"{label} must be finite, got {value!r}.")
    return result


def _quantize(value, places, label) -> Decimal:
    try:
        return _to_decimal(value, label).quantize(places, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        # more digits than the decimal context can hold
        raise ValidationError(f"{label} is out of range, got {value!r}.")


def to_money(value, label="amount") -> Decimal:
    """Coerce to a 2-decimal Decimal (half-up)."""
    return _quantize(value, CENTS, label)


def to_quantity(value, label="quantity") -> Decimal:
    return _quantize(value, QTY_PLACES, label)


def to_pk(value, label="id") -> int:
    """Strict integer id: 7 and "7" pass, 1.9, "1.0" and True do not."""
    if isinstance(value, bool):
        raise ValidationError(f"Invalid {label} {value!r}.")
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    raise ValidationError(f"Invalid {label} {value!r}.")


def parse_account_code(code):
    """
    Split an account code into (price_level, zone).

    The price level is the code itself. The zone comes from known
    code fragments first, then from the first part that is a zone keyword.
    """
    if not code:
        return "N/A", "N/A"

    upper = code.upper()
    parts = re.split(r"[-/]", upper)

    for fragment, zone in ZONE_OVERRIDES:
        if fragment in upper:
            return code, zone

    for part in parts:
        if part in ZONE_KEYWORDS:
            return code, part

    if re.match(r"^(Z|B)\d*$", parts[0]):
        return code, parts[0]

    return code, "N/A"


def generate_number(prefix: str, on: date | None = None) -> str:
    """Human-readable document number, e.g. INV-20261017-3F9A1C."""
    on = on or date.today()
    return f"{prefix}-{on:%Y%m%d}-{uuid.uuid4().hex[:6].upper()}"
