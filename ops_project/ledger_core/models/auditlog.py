from django.conf import settings  # To access global project settings
from django.db import models


# ---------- Audit / Event log ----------
class AuditLog(
    models.Model
):  # Traceability for every ledger write
    # Which user performed the action
    # (Nullable for automated work, e.g. a Celery task or management command)
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True, blank=True, on_delete=models.SET_NULL
    )
    # Common choices: create, adjust, reverse, cancel, rebuild
    action = models.CharField(max_length=50)
    # (e.g., "Invoice", "StockAdjustmentLog", "Receipt")
    object_type = models.CharField(max_length=100)
    object_id = models.CharField(max_length=100)
    # Before/after details of what changed, in JSON format
    changes = models.JSONField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [
            models.Index(fields=["object_type", "object_id"], name="auditlog_object_idx"),
            models.Index(fields=["created_at"], name="auditlog_created_idx"),
        ]

    def __str__(self):
        return (
            f"[{self.created_at:%Y-%m-%d %H:%M}] {self.user} "
            f"{self.action} {self.object_type}({self.object_id})"
        )

    def save(self, *args, **kwargs):
        self.full_clean()  # run validations before saving
        return super().save(*args, **kwargs)
