import json
import logging
from dataclasses import dataclass
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import transaction

from ..exceptions import PolicyViolation
from ..models import PriceTier
from ..utils import to_money

logger = logging.getLogger(__name__)

STANDARD_TIER = "Standard"


@dataclass(frozen=True)
class PriceQuote:
    price: Decimal
    # price level of the matched tier, or "Standard"
    tier_applied: str


# ----------------------------
# Price resolution
# ----------------------------
def _tiers_for(item):
    # prefetched tiers keep list order without another query
    cache = getattr(item, "_prefetched_objects_cache", {})
    if "price_tiers" in cache:
        return sorted(cache["price_tiers"], key=lambda t: (t.position, t.pk or 0))
    return list(item.price_tiers.all())


def resolve_price(item, price_level) -> PriceQuote:
    """
    Price an account at `price_level` pays for `item`.

    No level, no tiers or no match -> the item's standard sell price.
    Otherwise the first tier (in list order) whose level matches exactly.
    """
    if not price_level or price_level == "N/A":
        return PriceQuote(price=item.sell_price, tier_applied=STANDARD_TIER)

    for tier in _tiers_for(item):
        if tier.price_level == price_level:
            return PriceQuote(price=tier.price, tier_applied=tier.price_level)

    return PriceQuote(price=item.sell_price, tier_applied=STANDARD_TIER)


def price_for_account(item, account) -> PriceQuote:
    return resolve_price(item, account.price_level if account else None)


# ----------------------------
# Tier list validation / writes
# ----------------------------
def parse_price_tiers(raw) -> list[dict]:
    """
    Validate an incoming tier list.
    Accepts a list (or a JSON string of a list) of
    {"priceLevel": str, "price": number}; snake_case keys work too.
    Malformed input raises ValidationError.
    """
    if raw is None or raw == "":
        return []

    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise ValidationError(f"Price tiers are not valid JSON: {exc}")

    if not isinstance(raw, (list, tuple)):
        raise ValidationError("Price tiers must be a list.")

    parsed = []
    for position, entry in enumerate(raw):
        if not isinstance(entry, dict):
            raise ValidationError(f"Price tier #{position} must be an object.")

        level = entry.get("priceLevel", entry.get("price_level"))
        if not isinstance(level, str) or not level.strip():
            raise ValidationError(
                f"Price tier #{position} needs a non-empty price level.")

        if "price" not in entry:
            raise ValidationError(f"Price tier #{position} needs a price.")
        price = to_money(entry["price"], label=f"price tier #{position} price")
        if price < 0:
            raise ValidationError(
                f"Price tier #{position} price must be >= 0.")

        parsed.append(
            {"price_level": level.strip(), "price": price, "position": position})
    return parsed


def set_price_tiers(item, tiers) -> list[PriceTier]:
    """Replace the item's tiers; duplicate levels are rejected."""
    parsed = parse_price_tiers(tiers)

    seen = set()
    for entry in parsed:
        if entry["price_level"] in seen:
            logger.warning(
                "Rejected duplicate price level",
                extra={"item_id": item.pk, "price_level": entry["price_level"]},
            )
            raise PolicyViolation(
                f"Duplicate price level '{entry['price_level']}' for {item}.")
        seen.add(entry["price_level"])

    with transaction.atomic():
        item.price_tiers.all().delete()
        created = [PriceTier(item=item, **entry) for entry in parsed]
        for tier in created:
            tier.save()

    logger.info(
        "Price tiers replaced",
        extra={"item_id": item.pk, "tier_count": len(created)},
    )
    return created
