"""
apps.metadata.admin
~~~~~~~~~~~~~~~~~~~
Django admin registration for Metadata.
"""
from django.contrib import admin

from .models import Metadata


@admin.register(Metadata)
class MetadataAdmin(admin.ModelAdmin):
    """
    Read-only browser for default and override rows.

    Mutations must go through
    :class:`~apps.metadata.services.metadata_service.MetadataService` so that
    name uniqueness, format validation, cascade delete and auditing apply.
    """

    list_display = ["key", "name", "format", "value", "reference_type", "reference_id", "updated_at"]
    list_filter = ["reference_type", "format"]
    search_fields = ["key", "name", "reference_id"]
    ordering = ["reference_type", "reference_id", "name"]

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
