"""
apps.audit.models
~~~~~~~~~~~~~~~~~
AuditLog – append-only record of a mutation, global or per resource.
"""
from django.core.serializers.json import DjangoJSONEncoder
from django.db import models


class AuditLog(models.Model):
    """
    One audit event.

    ``properties`` identifies the subject, e.g. ``{"METADATA": "support-email"}``.
    ``old_value`` / ``new_value`` hold JSON snapshots of the subject before
    and after the event; either may be ``NULL``.
    """

    class ReferenceType(models.TextChoices):
        PORTAL = "PORTAL", "Portal"
        RESOURCE = "RESOURCE", "Resource"

    reference_type = models.CharField(max_length=20, choices=ReferenceType.choices)
    reference_id = models.CharField(max_length=255, blank=True, default="")
    event = models.CharField(max_length=100)
    properties = models.JSONField(default=dict, encoder=DjangoJSONEncoder)
    old_value = models.JSONField(null=True, blank=True, encoder=DjangoJSONEncoder)
    new_value = models.JSONField(null=True, blank=True, encoder=DjangoJSONEncoder)
    created_at = models.DateTimeField()

    class Meta:
        ordering = ["created_at", "id"]
        verbose_name = "Audit Log"
        verbose_name_plural = "Audit Logs"
        indexes = [
            models.Index(fields=["reference_type", "reference_id"], name="audit_reference_idx"),
        ]

    def __str__(self) -> str:
        scope = self.reference_id or self.reference_type.lower()
        return f"{self.event} [{scope}] @ {self.created_at:%Y-%m-%d %H:%M:%S}"
