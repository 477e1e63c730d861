"""
Root URL configuration for metadata_engine.

Metadata has no REST surface of its own; callers use
:func:`apps.metadata.services.get_metadata_service`.
"""
from django.contrib import admin
from django.urls import path

from common.health import health_check

urlpatterns = [
    # Admin
    path("admin/", admin.site.urls),

    # Health check
    path("health/", health_check, name="health-check"),
]
