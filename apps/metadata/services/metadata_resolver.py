"""
apps.metadata.services.metadata_resolver
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~
Deterministic, pure-function resolver for the effective metadata of one
resource.

Merge precedence (lowest → highest priority):
    1. **Default entries** - every default provides a key, name, format and
       value.
    2. **Resource overrides** - an override sharing a default's key replaces
       the value.  The default's name and format are kept.

Overrides whose key has no default are silently ignored, the same way a
stale override is ignored after its default has been removed.

Public API
----------
ResolvedMetadata                             – Output dataclass
MetadataResolver.resolve(defaults, overrides) -> list[ResolvedMetadata]
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from apps.metadata.domain import MetadataEntry, MetadataFormat


@dataclass(frozen=True)
class ResolvedMetadata:
    """
    Effective metadata of a resource for one key.

    Attributes:
        key: Key shared by the default and its override.
        name: Name of the default entry.
        format: Format of the default entry.
        value: Override value when ``overridden`` is ``True``, otherwise the
            default value.
        default_value: Value of the default entry.
        overridden: Whether the resource overrides this key.
    """

    key: str
    name: str
    format: MetadataFormat
    value: str | None
    default_value: str | None
    overridden: bool


class MetadataResolver:
    """
    Merges default entries with a single resource's overrides.

    Example::

        resolved = MetadataResolver.resolve(
            defaults=[MetadataEntry(key="email", name="email", value="a@x.io")],
            overrides=[MetadataEntry(key="email", name="email", value="b@x.io",
                                     scope=MetadataScope.for_resource("api-1"))],
        )
        # → [ResolvedMetadata(key="email", ..., value="b@x.io",
        #                     default_value="a@x.io", overridden=True)]
    """

    @staticmethod
    def resolve(
        defaults: Iterable[MetadataEntry],
        overrides: Iterable[MetadataEntry] | None = None,
    ) -> list[ResolvedMetadata]:
        """
        Produce the effective metadata list.

        The output keeps the order of *defaults*; callers pass them already
        sorted by name.  Input entries are never mutated.

        Args:
            defaults: DEFAULT-scope entries.
            overrides: RESOURCE-scope entries of a single resource.  ``None``
                or empty means pure defaults.

        Returns:
            One :class:`ResolvedMetadata` per default entry.
        """
        overrides_by_key = {entry.key: entry for entry in overrides or ()}

        resolved: list[ResolvedMetadata] = []
        for default in defaults:
            override = overrides_by_key.get(default.key)
            resolved.append(
                ResolvedMetadata(
                    key=default.key,
                    name=default.name,
                    format=default.format,
                    value=override.value if override is not None else default.value,
                    default_value=default.value,
                    overridden=override is not None,
                )
            )
        return resolved
