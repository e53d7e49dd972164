from .auditlog import AuditLog
from .credit_note import CreditNote, CreditNoteLine
from .invoice import Invoice, InvoiceLine
from .item import PriceTier, StockItem
from .ledger_account import LedgerAccount
from .receipt import Receipt
from .stock_log import StockAdjustmentLog
from .usage import MaterialUsage
