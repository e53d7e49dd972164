from decimal import Decimal

from ..models import AuditLog


def _jsonable(changes):
    # JSONField cannot store Decimal / date values directly
    if changes is None:
        return None
    return {
        key: str(value) if isinstance(value, Decimal) or hasattr(value, "isoformat")
        else value
        for key, value in changes.items()
    }


def log_action(
    *,
    action: str,
    instance,
    user=None,
    changes: dict | None = None,
):
    """
    Central audit logger.
    Safe to call multiple times (caller ensures idempotency).
    """
    AuditLog.objects.create(
        user=user,
        action=action,
        object_type=instance.__class__.__name__,
        object_id=str(instance.pk),
        changes=_jsonable(changes),
    )
