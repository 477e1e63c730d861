"""
apps.audit.admin
"""
from django.contrib import admin

from .models import AuditLog


@admin.register(AuditLog)
class AuditLogAdmin(admin.ModelAdmin):
    """Read-only view of the audit trail; rows are written by the services."""

    list_display = ["event", "reference_type", "reference_id", "properties", "created_at"]
    list_filter = ["event", "reference_type"]
    search_fields = ["reference_id", "event"]
    ordering = ["-created_at"]

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
