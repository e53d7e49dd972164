import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from django.conf import settings

from ..utils import to_money
from .balance import compute_balance

logger = logging.getLogger(__name__)

OK = "ok"
NEAR_LIMIT = "near_limit"
OVER_LIMIT = "over_limit"


@dataclass(frozen=True)
class CreditCheck:
    status: str
    balance: Decimal
    limit: Decimal
    projected_balance: Decimal
    # projected / limit, None when no limit is set
    usage_ratio: Optional[Decimal]

    @property
    def is_ok(self):
        return self.status == OK

    def as_dict(self):
        return {
            "status": self.status,
            "balance": f"{self.balance:.2f}",
            "limit": f"{self.limit:.2f}",
            "projected_balance": f"{self.projected_balance:.2f}",
            "usage_ratio": (
                None if self.usage_ratio is None else f"{self.usage_ratio:.4f}"
            ),
        }


def warning_ratio() -> Decimal:
    return Decimal(str(getattr(settings, "LEDGER_CREDIT_WARNING_RATIO", "0.80")))


def classify(balance, limit, pending_amount=Decimal("0")) -> CreditCheck:
    """
    Pure credit status rule.
    limit 0 -> always ok; projected >= limit -> over;
    projected / limit in [warning ratio, 1) -> near.
    """
    balance = to_money(balance, label="balance")
    limit = to_money(limit, label="limit")
    projected = balance + to_money(pending_amount, label="pending_amount")

    if limit <= 0:
        return CreditCheck(OK, balance, limit, projected, None)

    ratio = projected / limit
    if projected >= limit:
        status = OVER_LIMIT
    elif ratio >= warning_ratio():
        status = NEAR_LIMIT
    else:
        status = OK
    return CreditCheck(status, balance, limit, projected, ratio)


def evaluate(account_id, pending_amount=Decimal("0")) -> CreditCheck:
    """
    Advisory credit check for an account.
    Never blocks anything; callers decide what to do with the status.
    """
    current = compute_balance(account_id)
    check = classify(current.balance, current.credit_limit, pending_amount)

    if check.status != OK:
        logger.warning(
            "Credit limit %s", check.status,
            extra={
                "account_id": current.account_id,
                "projected_balance": str(check.projected_balance),
                "credit_limit": str(check.limit),
            },
        )
    return check
