# ledger_core/write_barrier.py
"""
Thread-local write contexts.

Models consult the current context before persisting guarded changes:
- "stock_ledger": the only place StockItem.stock may change
- "sales_workflow": the only place sale/return log entries may be edited
"""
from contextlib import contextmanager
import threading


STOCK_LEDGER = "stock_ledger"
SALES_WORKFLOW = "sales_workflow"

_state = threading.local()


def _context_stack() -> list[str]:
    stack = getattr(_state, "write_context_stack", None)
    if stack is None:
        stack = []
        _state.write_context_stack = stack
    return stack


def current_write_context() -> str | None:
    stack = _context_stack()
    return stack[-1] if stack else None


def write_context_active(name: str) -> bool:
    # nested contexts count, e.g. a sale appending stock entries
    return name in _context_stack()


@contextmanager
def _push_write_context(name: str):
    stack = _context_stack()
    stack.append(name)
    try:
        yield
    finally:
        stack.pop()


@contextmanager
def stock_writes_allowed():
    with _push_write_context(STOCK_LEDGER):
        yield


@contextmanager
def sales_workflow_writes_allowed():
    with _push_write_context(SALES_WORKFLOW):
        yield
