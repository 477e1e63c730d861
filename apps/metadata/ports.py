"""
apps.metadata.ports
~~~~~~~~~~~~~~~~~~~
Contracts the metadata service needs from its collaborators.

The Django implementations live in :mod:`apps.metadata.repository` and
:mod:`apps.audit.services`; tests supply in-memory ones.
"""
from __future__ import annotations

from datetime import datetime
from typing import Callable, ContextManager, Protocol, Sequence

from .domain import MetadataEntry, MetadataScope

#: Deterministic ``name -> key`` function.
IdGenerator = Callable[[str], str]


class RepositoryError(Exception):
    """Raised by adapters when the underlying storage fails."""


class MetadataRepository(Protocol):
    """Persistence contract for metadata entries."""

    def find_by_scope(self, scope: MetadataScope) -> Sequence[MetadataEntry]:
        """Return every entry in *scope*, in no particular order."""

    def find_by_key_and_scope(self, key: str, scope: MetadataScope) -> MetadataEntry | None:
        """Return the entry or ``None``."""

    def find_overrides_of(self, key: str) -> Sequence[MetadataEntry]:
        """Return every RESOURCE-scoped entry sharing *key*."""

    def create(self, entry: MetadataEntry) -> None:
        """Persist a new entry."""

    def update(self, entry: MetadataEntry) -> None:
        """Replace name, format, value and ``updated_at`` of a stored entry."""

    def delete(self, key: str, scope: MetadataScope) -> None:
        """Remove the entry identified by *key* in *scope*."""

    def atomic(self) -> ContextManager:
        """Context manager grouping several writes into one unit, if supported."""


class AuditSink(Protocol):
    """Append-only audit trail, global or per resource."""

    def record_global(
        self,
        subject_key: str,
        event_type: str,
        timestamp: datetime,
        before: MetadataEntry | None,
        after: MetadataEntry | None,
    ) -> None:
        """Record an event on the global (portal) audit trail."""

    def record_for_resource(
        self,
        resource_id: str,
        subject_key: str,
        event_type: str,
        timestamp: datetime,
        before: MetadataEntry | None,
        after: MetadataEntry | None,
    ) -> None:
        """Record an event on the audit trail of *resource_id*."""
