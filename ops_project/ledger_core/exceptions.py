""" Typed failures raised by the ledger services.

Malformed input uses Django's own ValidationError,
everything else derives from LedgerError. """
from django.core.exceptions import ValidationError  # noqa: F401  (re-exported)


class LedgerError(Exception):
    """Base class for ledger domain failures."""
    pass


class NotFoundError(LedgerError):
    """Raised when an item, account or log entry does not exist."""
    pass


class PolicyViolation(LedgerError):
    """Raised when an operation breaks a protection rule
    (protected log entries, duplicate price tiers, append-only history)."""
    pass


class InsufficientStock(LedgerError):
    """Raised when an adjustment would drive stock below zero
    without explicit authorization."""

    def __init__(self, item_id, available, requested):
        self.item_id = item_id
        self.available = available
        self.requested = requested
        super().__init__(
            f"Insufficient stock for item {item_id}: "
            f"{available} available, adjustment of {requested} requested."
        )


class UpstreamUnavailable(LedgerError):
    """Raised when the persistence layer is unreachable
    or returned data that cannot be used. Never retried here."""
    pass


class BatchRejected(LedgerError):
    """Raised when one entry of a batch fails; nothing in the batch was applied."""

    def __init__(self, index, error):
        self.index = index
        self.error = error
        super().__init__(f"Batch entry {index} rejected: {error}")
