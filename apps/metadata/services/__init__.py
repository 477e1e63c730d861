"""
apps.metadata.services package.
"""
from .format_validator import check_format, normalize_value  # noqa: F401
from .metadata_resolver import MetadataResolver, ResolvedMetadata  # noqa: F401
from .metadata_service import MetadataService  # noqa: F401


def get_metadata_service() -> MetadataService:
    """Return a :class:`MetadataService` backed by the ORM and the audit log."""
    # Imported lazily: both adapters need a populated app registry.
    from apps.audit.services import DjangoAuditSink  # noqa: PLC0415
    from apps.metadata.repository import DjangoMetadataRepository  # noqa: PLC0415

    return MetadataService(DjangoMetadataRepository(), DjangoAuditSink())
