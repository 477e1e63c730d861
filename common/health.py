"""
common.health
~~~~~~~~~~~~~
GET /health/ – liveness + readiness probe.

Returns:
    200  {"status": "ok", "db": "ok", "default_metadata": <count>}
    503  {"status": "degraded", "db": "error: <msg>"} – DB unreachable or
         metadata table missing (migrations not applied)
"""
import structlog
from django.db import DatabaseError, connection
from django.http import JsonResponse

from apps.metadata.domain import ReferenceType
from apps.metadata.models import Metadata

logger = structlog.get_logger(__name__)


def health_check(request):
    """Return service health including database and metadata table status."""
    try:
        connection.ensure_connection()
        default_count = Metadata.objects.filter(
            reference_type=ReferenceType.DEFAULT
        ).count()
    except DatabaseError as exc:
        logger.error("health_check_db_failure", error=str(exc))
        return JsonResponse(
            {"status": "degraded", "db": f"error: {exc}"},
            status=503,
        )

    return JsonResponse(
        {"status": "ok", "db": "ok", "default_metadata": default_count},
        status=200,
    )
