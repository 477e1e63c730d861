"""
apps.metadata.domain
~~~~~~~~~~~~~~~~~~~~
Value types shared by the metadata service, its adapters and the ORM model.

This module has no ORM or view imports; ``TextChoices`` is used only so the
enumerations double as model field choices.

Public API
----------
MetadataFormat      – closed set of value grammars
ReferenceType       – the two scope tiers
MetadataAuditEvent  – audit event types emitted on mutation
MetadataScope       – DEFAULT or RESOURCE(resource_id)
MetadataEntry       – a single metadata value in a scope
generate_key        – deterministic ``name -> key`` identifier generator
"""
from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime
from typing import ClassVar

from django.db import models
from django.utils.text import slugify


class MetadataFormat(models.TextChoices):
    STRING = "STRING", "String"
    BOOLEAN = "BOOLEAN", "Boolean"
    URL = "URL", "URL"
    MAIL = "MAIL", "Mail"
    DATE = "DATE", "Date"
    NUMERIC = "NUMERIC", "Numeric"


class ReferenceType(models.TextChoices):
    DEFAULT = "DEFAULT", "Default"
    RESOURCE = "RESOURCE", "Resource"


class MetadataAuditEvent(models.TextChoices):
    METADATA_CREATED = "METADATA_CREATED", "Metadata created"
    METADATA_UPDATED = "METADATA_UPDATED", "Metadata updated"
    METADATA_DELETED = "METADATA_DELETED", "Metadata deleted"


@dataclass(frozen=True)
class MetadataScope:
    """
    The tier a metadata entry lives in.

    Use :attr:`MetadataScope.DEFAULT` for the global tier and
    :meth:`MetadataScope.for_resource` for a resource's override set.  The two
    variants never compare equal, whatever the resource id.
    """

    DEFAULT: ClassVar[MetadataScope]

    reference_type: ReferenceType
    resource_id: str | None = None

    def __post_init__(self) -> None:
        if self.reference_type == ReferenceType.DEFAULT and self.resource_id is not None:
            raise ValueError("The default scope does not carry a resource id.")
        if self.reference_type == ReferenceType.RESOURCE and not (self.resource_id or "").strip():
            raise ValueError("A resource scope requires a non-blank resource id.")

    @classmethod
    def for_resource(cls, resource_id: str) -> MetadataScope:
        return cls(ReferenceType.RESOURCE, resource_id)

    @property
    def is_default(self) -> bool:
        return self.reference_type == ReferenceType.DEFAULT

    def __str__(self) -> str:
        if self.is_default:
            return "default"
        return f"resource:{self.resource_id}"


MetadataScope.DEFAULT = MetadataScope(ReferenceType.DEFAULT)


@dataclass(frozen=True)
class MetadataEntry:
    """
    A metadata value in one scope.

    ``created_at`` is ``None`` on entries produced by an update, which never
    re-reads the stored record.
    """

    key: str
    name: str
    format: MetadataFormat = MetadataFormat.STRING
    value: str | None = None
    scope: MetadataScope = MetadataScope.DEFAULT
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def to_dict(self) -> dict:
        """JSON-friendly snapshot used for audit before/after states."""
        data = asdict(self)
        data["format"] = str(self.format)
        data["scope"] = {
            "reference_type": str(self.scope.reference_type),
            "resource_id": self.scope.resource_id,
        }
        return data


def generate_key(name: str) -> str:
    """Derive a stable key from a metadata name, e.g. ``"Support Email" -> "support-email"``."""
    return slugify(name)
