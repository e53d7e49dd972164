import logging
from dataclasses import dataclass
from decimal import Decimal

from django.db import DatabaseError, transaction

from ..exceptions import NotFoundError, UpstreamUnavailable
from ..models import CreditNote, Invoice, LedgerAccount, Receipt
from ..utils import to_money

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AccountBalance:
    account_id: int
    account_name: str
    credit_limit: Decimal
    # positive = account owes, negative = account is in credit
    balance: Decimal
    total_invoiced: Decimal
    total_received: Decimal
    total_credited: Decimal

    def as_dict(self):
        return {
            "account_id": self.account_id,
            "account_name": self.account_name,
            "credit_limit": f"{self.credit_limit:.2f}",
            "balance": f"{self.balance:.2f}",
            "total_invoiced": f"{self.total_invoiced:.2f}",
            "total_received": f"{self.total_received:.2f}",
            "total_credited": f"{self.total_credited:.2f}",
        }


def _sum(values) -> Decimal:
    # Decimal sum over 2dp values, never float
    return to_money(sum(values, Decimal("0.00")))


def compute_balance(account_id) -> AccountBalance:
    """
    Outstanding balance of one ledger account:
    invoices (not cancelled) - receipts - credit notes.

    Recomputed from the documents on every call, nothing is cached.
    If any of the three document sets cannot be read the whole
    call fails with UpstreamUnavailable; a missing set is never zero.
    """
    try:
        # one transaction so the three reads see the same snapshot
        with transaction.atomic():
            try:
                account = LedgerAccount.objects.get(pk=account_id)
            except (LedgerAccount.DoesNotExist, ValueError, TypeError):
                raise NotFoundError(f"Ledger account {account_id} not found.")

            invoiced = _sum(
                Invoice.objects.for_account(account).outstanding()
                .values_list("total", flat=True)
            )
            received = _sum(
                Receipt.objects.for_account(account)
                .values_list("amount_received", flat=True)
            )
            credited = _sum(
                CreditNote.objects.for_account(account)
                .values_list("amount", flat=True)
            )
    except DatabaseError as exc:
        logger.error(
            "Balance inputs unavailable", exc_info=True,
            extra={"account_id": account_id},
        )
        raise UpstreamUnavailable(
            f"Could not read documents for account {account_id}: {exc}"
        ) from exc

    return AccountBalance(
        account_id=account.pk,
        account_name=account.name,
        credit_limit=account.credit_limit,
        balance=invoiced - received - credited,
        total_invoiced=invoiced,
        total_received=received,
        total_credited=credited,
    )
