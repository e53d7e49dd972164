import logging

from django.core.exceptions import ValidationError
from django.http import JsonResponse
from django.utils.deprecation import MiddlewareMixin

from .exceptions import (BatchRejected, InsufficientStock, NotFoundError,
                         PolicyViolation, UpstreamUnavailable)

logger = logging.getLogger(__name__)

# Typed ledger failure -> (HTTP status, error code)
ERROR_STATUS = [
    (BatchRejected, 409, "batch_rejected"),
    (InsufficientStock, 409, "insufficient_stock"),
    (NotFoundError, 404, "not_found"),
    (PolicyViolation, 403, "policy_violation"),
    (UpstreamUnavailable, 503, "upstream_unavailable"),
    (ValidationError, 400, "validation_error"),
]


def _message(exc):
    if isinstance(exc, ValidationError):
        return "; ".join(exc.messages)
    return str(exc)


def error_payload(exc):
    """JSON body for a typed failure, or None for anything else."""
    for exc_type, status, code in ERROR_STATUS:
        if isinstance(exc, exc_type):
            body = {"ok": False, "error": code, "detail": _message(exc)}
            if isinstance(exc, BatchRejected):
                body["index"] = exc.index
                body["cause"] = _message(exc.error)
            if isinstance(exc, InsufficientStock):
                body["available"] = str(exc.available)
                body["requested"] = str(exc.requested)
            return status, body
    return None


class LedgerErrorMiddleware(MiddlewareMixin):
    # Turn typed service errors raised by a view into JSON responses;
    # anything untyped falls through to Django's 500 handling
    def process_exception(self, request, exception):
        mapped = error_payload(exception)
        if mapped is None:
            return None
        status, body = mapped
        logger.info(
            "Request failed with %s", body["error"],
            extra={"path": request.path, "status_code": status},
        )
        return JsonResponse(body, status=status)
