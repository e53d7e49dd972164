from .balance import AccountBalance, compute_balance
from .credit import CreditCheck, evaluate
from .pricing import (PriceQuote, parse_price_tiers, price_for_account,
                      resolve_price, set_price_tiers)
from .sales import (SaleResult, cancel_invoice, issue_credit_note,
                    mark_overdue_invoices, record_receipt, record_return,
                    record_sale)
from .stock import (AdjustmentRequest, StockRebuild, append_adjustment,
                    append_batch, rebuild_stock, register_item,
                    reverse_adjustment, update_adjustment_notes)
from .store import USAGE_DEPARTMENTS, receive_purchase, record_usage
