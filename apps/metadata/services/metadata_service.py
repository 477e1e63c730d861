"""
apps.metadata.services.metadata_service
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~
Business logic for default metadata and the overrides derived from it.

The service is independent of Django: it talks to its collaborators through
the contracts in :mod:`apps.metadata.ports`.  Use
:func:`apps.metadata.services.get_metadata_service` for an instance wired to
the ORM and the audit log.

Responsibilities
----------------
- Case-insensitive name uniqueness among default entries.
- Format validation (and DATE truncation) on create and update.
- Cascade delete of resource overrides when a default is deleted.
- One audit event per persisted mutation.
- Wrapping every adapter failure into :class:`~common.exceptions.StorageFailure`.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable, Iterable

import structlog

from apps.metadata.domain import (
    MetadataAuditEvent,
    MetadataEntry,
    MetadataFormat,
    MetadataScope,
    generate_key,
)
from apps.metadata.ports import (
    AuditSink,
    IdGenerator,
    MetadataRepository,
    RepositoryError,
)
from common.exceptions import DuplicateNameError, StorageFailure

from .format_validator import check_format, normalize_value
from .metadata_resolver import MetadataResolver, ResolvedMetadata

logger = structlog.get_logger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _storage_failure(operation: str, exc: Exception) -> StorageFailure:
    logger.error("metadata_storage_failure", operation=operation, exc_info=exc)
    return StorageFailure(operation)


class MetadataService:
    """
    Orchestrates validation, uniqueness, cascade delete and auditing on top
    of a :class:`~apps.metadata.ports.MetadataRepository` and an
    :class:`~apps.metadata.ports.AuditSink`.

    Usage::

        service = MetadataService(repository, audit)
        entry = service.create("Support email", MetadataFormat.MAIL, "help@acme.io")
        service.update(entry.key, "Support e-mail", MetadataFormat.MAIL, "ops@acme.io")
        service.delete(entry.key)  # also removes every resource override
    """

    def __init__(
        self,
        repository: MetadataRepository,
        audit: AuditSink,
        *,
        id_generator: IdGenerator = generate_key,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._repository = repository
        self._audit = audit
        self._id_generator = id_generator
        self._clock = clock

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def list_defaults(self) -> list[MetadataEntry]:
        """Return every default entry sorted by name, ignoring case."""
        logger.debug("metadata_list_defaults")
        try:
            entries = self._repository.find_by_scope(MetadataScope.DEFAULT)
        except RepositoryError as exc:
            raise _storage_failure("find all default metadata", exc) from exc
        return sorted(entries, key=lambda entry: entry.name.lower())

    def find_default_by_key(self, key: str) -> MetadataEntry | None:
        """Return the default entry for *key*, or ``None`` when absent."""
        logger.debug("metadata_find_default", key=key)
        try:
            return self._repository.find_by_key_and_scope(key, MetadataScope.DEFAULT)
        except RepositoryError as exc:
            raise _storage_failure(f"find default metadata '{key}'", exc) from exc

    def resolve_for_resource(self, resource_id: str) -> list[ResolvedMetadata]:
        """
        Return the effective metadata of *resource_id*: each default with the
        resource's override value applied, ordered like :meth:`list_defaults`.
        """
        scope = MetadataScope.for_resource(resource_id)
        defaults = self.list_defaults()
        try:
            overrides = self._repository.find_by_scope(scope)
        except RepositoryError as exc:
            raise _storage_failure(
                f"find metadata of resource '{resource_id}'", exc
            ) from exc
        return MetadataResolver.resolve(defaults, overrides)

    @staticmethod
    def check_format(format: MetadataFormat, value: str | None) -> None:  # noqa: A002
        """Validate *value* for *format* without persisting anything."""
        check_format(format, value)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def create(
        self,
        name: str,
        format: MetadataFormat | None = None,  # noqa: A002
        value: str | None = None,
    ) -> MetadataEntry:
        """
        Create a default entry.

        Args:
            name: Display name; must not match an existing default name,
                ignoring case.
            format: Value format, STRING when omitted.
            value: Raw value; DATE values are stored truncated to 10 chars.

        Returns:
            The persisted entry.

        Raises:
            DuplicateNameError: If the name is already taken.
            FormatError: If *value* does not match *format*.
            StorageFailure: If the store or the audit log fails.
        """
        format = MetadataFormat(format) if format is not None else MetadataFormat.STRING  # noqa: A001

        try:
            with self._repository.atomic():
                self._ensure_unique_name(name)
                check_format(format, value)

                now = self._clock()
                entry = MetadataEntry(
                    key=self._id_generator(name),
                    name=name,
                    format=format,
                    value=normalize_value(format, value),
                    scope=MetadataScope.DEFAULT,
                    created_at=now,
                    updated_at=now,
                )
                self._repository.create(entry)
                self._audit.record_global(
                    entry.key,
                    MetadataAuditEvent.METADATA_CREATED,
                    entry.created_at,
                    None,
                    entry,
                )
        except RepositoryError as exc:
            raise _storage_failure(f"create metadata '{name}'", exc) from exc

        logger.info("metadata_created", key=entry.key, name=name, format=str(format))
        return entry

    def update(
        self,
        key: str,
        name: str,
        format: MetadataFormat,  # noqa: A002
        value: str | None = None,
    ) -> MetadataEntry:
        """
        Update the default entry identified by *key*.

        The stored record is not read back: the returned entry has
        ``created_at=None`` and the audit event carries no before-state.

        Raises:
            DuplicateNameError: If another default already uses *name*.
            FormatError: If *value* does not match *format*.
            StorageFailure: If the store or the audit log fails, including
                when *key* is not stored.
        """
        format = MetadataFormat(format)  # noqa: A001

        try:
            with self._repository.atomic():
                self._ensure_unique_name(name, excluding_key=key)
                check_format(format, value)

                entry = MetadataEntry(
                    key=key,
                    name=name,
                    format=format,
                    value=normalize_value(format, value),
                    scope=MetadataScope.DEFAULT,
                    updated_at=self._clock(),
                )
                self._repository.update(entry)
                self._audit.record_global(
                    key,
                    MetadataAuditEvent.METADATA_UPDATED,
                    entry.updated_at,
                    None,
                    entry,
                )
        except RepositoryError as exc:
            raise _storage_failure(f"update metadata '{name}'", exc) from exc

        logger.info("metadata_updated", key=key, name=name, format=str(format))
        return entry

    def delete(self, key: str) -> None:
        """
        Delete the default entry *key* and every resource override of it.

        A key that is not a default entry is a silent no-op.  All writes run
        inside :meth:`MetadataRepository.atomic`; with a repository that does
        not support transactions a failure part-way leaves the default
        deleted and the remaining overrides in place.
        """
        try:
            with self._repository.atomic():
                deleted_overrides = self._delete_cascade(key)
        except RepositoryError as exc:
            raise _storage_failure(f"delete metadata '{key}'", exc) from exc

        if deleted_overrides is None:
            logger.debug("metadata_delete_skipped", key=key)
        else:
            logger.info("metadata_deleted", key=key, overrides_deleted=deleted_overrides)

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _ensure_unique_name(self, name: str, excluding_key: str | None = None) -> None:
        folded = name.lower()
        defaults: Iterable[MetadataEntry] = self._repository.find_by_scope(
            MetadataScope.DEFAULT
        )
        for entry in defaults:
            if entry.key != excluding_key and entry.name.lower() == folded:
                logger.warning("metadata_duplicate_name", name=name, existing_key=entry.key)
                raise DuplicateNameError(entry.name)

    def _delete_cascade(self, key: str) -> int | None:
        """Return the number of overrides deleted, or ``None`` if *key* is unknown."""
        existing = self._repository.find_by_key_and_scope(key, MetadataScope.DEFAULT)
        if existing is None:
            return None

        self._repository.delete(key, MetadataScope.DEFAULT)
        self._audit.record_global(
            key,
            MetadataAuditEvent.METADATA_DELETED,
            self._clock(),
            existing,
            None,
        )

        overrides = self._repository.find_overrides_of(key)
        for override in overrides:
            self._repository.delete(key, override.scope)
            self._audit.record_for_resource(
                override.scope.resource_id,
                key,
                MetadataAuditEvent.METADATA_DELETED,
                self._clock(),
                override,
                None,
            )
        return len(overrides)
