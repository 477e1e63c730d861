"""
apps.metadata.models
~~~~~~~~~~~~~~~~~~~~
Metadata – persisted form of a :class:`~apps.metadata.domain.MetadataEntry`.
"""
from django.db import models
from django.db.models import Q
from django.db.models.functions import Lower

from .domain import MetadataFormat, ReferenceType


class Metadata(models.Model):
    """
    One metadata value, either a default (``reference_type=DEFAULT``) or a
    resource override (``reference_type=RESOURCE``).

    Rows are written only through
    :class:`~apps.metadata.repository.DjangoMetadataRepository`; timestamps
    are set by the service, not by the ORM.

    Fields
    ------
    key
        Stable identifier shared by a default and its overrides.
    reference_type / reference_id
        Scope of the row.  Default rows store a fixed placeholder id that is
        only meaningful together with ``reference_type``.
    name
        Display name; unique among default rows, ignoring case.
    format / value
        Declared grammar and raw value (``NULL`` allowed).
    """

    key = models.CharField(max_length=255)
    reference_type = models.CharField(
        max_length=20,
        choices=ReferenceType.choices,
        default=ReferenceType.DEFAULT,
    )
    reference_id = models.CharField(max_length=255)
    name = models.CharField(max_length=255)
    format = models.CharField(
        max_length=20,
        choices=MetadataFormat.choices,
        default=MetadataFormat.STRING,
    )
    value = models.TextField(null=True, blank=True)
    created_at = models.DateTimeField()
    updated_at = models.DateTimeField()

    class Meta:
        ordering = ["reference_type", "reference_id", "key"]
        verbose_name = "Metadata"
        verbose_name_plural = "Metadata"
        constraints = [
            models.UniqueConstraint(
                fields=["key", "reference_type", "reference_id"],
                name="unique_metadata_key_per_reference",
            ),
            models.UniqueConstraint(
                Lower("name"),
                condition=Q(reference_type=ReferenceType.DEFAULT),
                name="unique_default_metadata_name",
                violation_error_message="A default metadata with that name already exists.",
            ),
        ]

    def __str__(self) -> str:
        if self.reference_type == ReferenceType.DEFAULT:
            return f"{self.key} [default]"
        return f"{self.key} [{self.reference_id}]"
