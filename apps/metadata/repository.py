"""
apps.metadata.repository
~~~~~~~~~~~~~~~~~~~~~~~~
ORM implementation of :class:`~apps.metadata.ports.MetadataRepository`.

Every :class:`django.db.DatabaseError` (``IntegrityError`` included) is
re-raised as :class:`~apps.metadata.ports.RepositoryError`.
"""
from __future__ import annotations

import functools
from typing import ContextManager

import structlog
from django.db import DatabaseError, transaction

from .domain import MetadataEntry, MetadataFormat, MetadataScope, ReferenceType
from .models import Metadata
from .ports import RepositoryError

logger = structlog.get_logger(__name__)

#: Stored ``reference_id`` of default rows.
_DEFAULT_REFERENCE_ID = "_"


def _translate_errors(method):
    @functools.wraps(method)
    def wrapper(*args, **kwargs):
        try:
            return method(*args, **kwargs)
        except DatabaseError as exc:
            raise RepositoryError(f"{method.__name__} failed: {exc}") from exc

    return wrapper


def _reference_of(scope: MetadataScope) -> tuple[str, str]:
    if scope.is_default:
        return ReferenceType.DEFAULT, _DEFAULT_REFERENCE_ID
    return ReferenceType.RESOURCE, scope.resource_id


def _to_entry(row: Metadata) -> MetadataEntry:
    if row.reference_type == ReferenceType.DEFAULT:
        scope = MetadataScope.DEFAULT
    else:
        scope = MetadataScope.for_resource(row.reference_id)
    return MetadataEntry(
        key=row.key,
        name=row.name,
        format=MetadataFormat(row.format),
        value=row.value,
        scope=scope,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


class DjangoMetadataRepository:
    """Stores metadata entries in the ``Metadata`` table."""

    @_translate_errors
    def find_by_scope(self, scope: MetadataScope) -> list[MetadataEntry]:
        reference_type, reference_id = _reference_of(scope)
        rows = Metadata.objects.filter(
            reference_type=reference_type,
            reference_id=reference_id,
        )
        return [_to_entry(row) for row in rows]

    @_translate_errors
    def find_by_key_and_scope(self, key: str, scope: MetadataScope) -> MetadataEntry | None:
        reference_type, reference_id = _reference_of(scope)
        row = Metadata.objects.filter(
            key=key,
            reference_type=reference_type,
            reference_id=reference_id,
        ).first()
        return _to_entry(row) if row is not None else None

    @_translate_errors
    def find_overrides_of(self, key: str) -> list[MetadataEntry]:
        rows = Metadata.objects.filter(key=key, reference_type=ReferenceType.RESOURCE)
        return [_to_entry(row) for row in rows]

    @_translate_errors
    def create(self, entry: MetadataEntry) -> None:
        reference_type, reference_id = _reference_of(entry.scope)
        Metadata.objects.create(
            key=entry.key,
            reference_type=reference_type,
            reference_id=reference_id,
            name=entry.name,
            format=entry.format,
            value=entry.value,
            created_at=entry.created_at,
            updated_at=entry.updated_at,
        )

    @_translate_errors
    def update(self, entry: MetadataEntry) -> None:
        """Write name, format, value and ``updated_at``; ``created_at`` is kept as stored."""
        reference_type, reference_id = _reference_of(entry.scope)
        updated = Metadata.objects.filter(
            key=entry.key,
            reference_type=reference_type,
            reference_id=reference_id,
        ).update(
            name=entry.name,
            format=entry.format,
            value=entry.value,
            updated_at=entry.updated_at,
        )
        if updated == 0:
            raise RepositoryError(f"No metadata '{entry.key}' in scope {entry.scope}.")

    @_translate_errors
    def delete(self, key: str, scope: MetadataScope) -> None:
        reference_type, reference_id = _reference_of(scope)
        deleted, _ = Metadata.objects.filter(
            key=key,
            reference_type=reference_type,
            reference_id=reference_id,
        ).delete()
        logger.debug("metadata_row_deleted", key=key, scope=str(scope), rows=deleted)

    def atomic(self) -> ContextManager:
        return transaction.atomic()
