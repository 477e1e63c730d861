"""
apps.audit.services
~~~~~~~~~~~~~~~~~~~
ORM implementation of :class:`~apps.metadata.ports.AuditSink`.
"""
from __future__ import annotations

from datetime import datetime

import structlog
from django.db import DatabaseError

from apps.metadata.domain import MetadataEntry
from apps.metadata.ports import RepositoryError

from .models import AuditLog

logger = structlog.get_logger(__name__)

#: Property name identifying the audited metadata key.
METADATA_PROPERTY = "METADATA"


def _snapshot(entry: MetadataEntry | None) -> dict | None:
    return entry.to_dict() if entry is not None else None


class DjangoAuditSink:
    """Writes one :class:`AuditLog` row per recorded event."""

    def record_global(
        self,
        subject_key: str,
        event_type: str,
        timestamp: datetime,
        before: MetadataEntry | None,
        after: MetadataEntry | None,
    ) -> None:
        self._record(
            AuditLog.ReferenceType.PORTAL, "", subject_key, event_type, timestamp, before, after
        )

    def record_for_resource(
        self,
        resource_id: str,
        subject_key: str,
        event_type: str,
        timestamp: datetime,
        before: MetadataEntry | None,
        after: MetadataEntry | None,
    ) -> None:
        self._record(
            AuditLog.ReferenceType.RESOURCE,
            resource_id,
            subject_key,
            event_type,
            timestamp,
            before,
            after,
        )

    def _record(
        self,
        reference_type: str,
        reference_id: str,
        subject_key: str,
        event_type: str,
        timestamp: datetime,
        before: MetadataEntry | None,
        after: MetadataEntry | None,
    ) -> None:
        try:
            log = AuditLog.objects.create(
                reference_type=reference_type,
                reference_id=reference_id,
                event=str(event_type),
                properties={METADATA_PROPERTY: subject_key},
                old_value=_snapshot(before),
                new_value=_snapshot(after),
                created_at=timestamp,
            )
        except DatabaseError as exc:
            raise RepositoryError(f"audit of {event_type} failed: {exc}") from exc
        logger.debug(
            "audit_recorded",
            audit_id=log.id,
            audit_event=log.event,
            reference_type=reference_type,
            reference_id=reference_id,
            subject_key=subject_key,
        )
