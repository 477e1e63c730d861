"""
tests.test_metadata_integration
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~
pytest-django integration tests: MetadataService wired to the ORM adapters.

Covers:
- DjangoMetadataRepository   (round-trip, constraints, error translation)
- DjangoAuditSink            (audit rows)
- MetadataService            (create / update / cascade delete, rollback)
- GET /health/
"""
from __future__ import annotations

from datetime import datetime, timezone

import pytest

from apps.audit.models import AuditLog
from apps.audit.services import DjangoAuditSink
from apps.metadata.domain import (
    MetadataAuditEvent,
    MetadataEntry,
    MetadataFormat,
    MetadataScope,
    ReferenceType,
)
from apps.metadata.models import Metadata
from apps.metadata.ports import RepositoryError
from apps.metadata.repository import DjangoMetadataRepository
from apps.metadata.services import MetadataService, get_metadata_service
from common.exceptions import DuplicateNameError, StorageFailure


CREATED = datetime(2024, 1, 1, 8, 0, tzinfo=timezone.utc)


# ===========================================================================
# Fixtures
# ===========================================================================

@pytest.fixture
def repository() -> DjangoMetadataRepository:
    return DjangoMetadataRepository()


@pytest.fixture
def service(db) -> MetadataService:
    return get_metadata_service()


def _store_override(repository, default: MetadataEntry, resource_id: str, value: str) -> MetadataEntry:
    override = MetadataEntry(
        key=default.key,
        name=default.name,
        format=default.format,
        value=value,
        scope=MetadataScope.for_resource(resource_id),
        created_at=CREATED,
        updated_at=CREATED,
    )
    repository.create(override)
    return override


# ===========================================================================
# TestDjangoMetadataRepository
# ===========================================================================

@pytest.mark.django_db
class TestDjangoMetadataRepository:

    def test_round_trip_by_scope(self, repository):
        entry = MetadataEntry(
            key="launch",
            name="Launch",
            format=MetadataFormat.DATE,
            value="2024-05-01",
            created_at=CREATED,
            updated_at=CREATED,
        )
        repository.create(entry)

        assert repository.find_by_key_and_scope("launch", MetadataScope.DEFAULT) == entry
        assert repository.find_by_scope(MetadataScope.DEFAULT) == [entry]
        assert repository.find_by_scope(MetadataScope.for_resource("api-1")) == []

    def test_default_and_override_rows_are_distinct(self, repository):
        default = MetadataEntry(key="team", name="Team", value="core",
                                created_at=CREATED, updated_at=CREATED)
        repository.create(default)
        override = _store_override(repository, default, "_", "edge")

        assert repository.find_by_key_and_scope("team", MetadataScope.DEFAULT).value == "core"
        assert repository.find_overrides_of("team") == [override]
        row = Metadata.objects.get(reference_type=ReferenceType.RESOURCE)
        assert row.reference_id == "_"

    def test_update_keeps_stored_created_at(self, repository):
        repository.create(MetadataEntry(key="team", name="Team", value="core",
                                        created_at=CREATED, updated_at=CREATED))
        later = datetime(2024, 6, 1, tzinfo=timezone.utc)
        repository.update(MetadataEntry(key="team", name="Team", value="platform", updated_at=later))

        stored = repository.find_by_key_and_scope("team", MetadataScope.DEFAULT)
        assert stored.value == "platform"
        assert stored.created_at == CREATED
        assert stored.updated_at == later

    def test_update_unknown_key_raises(self, repository):
        with pytest.raises(RepositoryError):
            repository.update(MetadataEntry(key="ghost", name="Ghost", updated_at=CREATED))

    def test_default_names_unique_ignoring_case(self, repository):
        repository.create(MetadataEntry(key="foo", name="Foo", created_at=CREATED, updated_at=CREATED))
        with pytest.raises(RepositoryError):
            with repository.atomic():
                repository.create(
                    MetadataEntry(key="foo-2", name="FOO", created_at=CREATED, updated_at=CREATED)
                )
        assert len(repository.find_by_scope(MetadataScope.DEFAULT)) == 1

    def test_override_names_not_constrained(self, repository):
        default = MetadataEntry(key="foo", name="Foo", created_at=CREATED, updated_at=CREATED)
        repository.create(default)
        _store_override(repository, default, "api-1", "a")
        _store_override(repository, default, "api-2", "b")
        assert len(repository.find_overrides_of("foo")) == 2


# ===========================================================================
# TestDjangoAuditSink
# ===========================================================================

@pytest.mark.django_db
class TestDjangoAuditSink:

    def test_record_global(self):
        entry = MetadataEntry(key="team", name="Team", value="core",
                              created_at=CREATED, updated_at=CREATED)

        DjangoAuditSink().record_global(
            "team", MetadataAuditEvent.METADATA_CREATED, CREATED, None, entry
        )

        log = AuditLog.objects.get()
        assert log.reference_type == AuditLog.ReferenceType.PORTAL
        assert log.reference_id == ""
        assert log.event == MetadataAuditEvent.METADATA_CREATED
        assert log.properties == {"METADATA": "team"}
        assert log.old_value is None
        assert log.new_value["value"] == "core"
        assert log.new_value["scope"] == {"reference_type": "DEFAULT", "resource_id": None}
        assert log.created_at == CREATED

    def test_record_for_resource(self):
        default = MetadataEntry(key="team", name="Team", value="core",
                                created_at=CREATED, updated_at=CREATED)
        override = MetadataEntry(key="team", name="Team", value="edge",
                                 scope=MetadataScope.for_resource("api-1"),
                                 created_at=CREATED, updated_at=CREATED)

        DjangoAuditSink().record_for_resource(
            "api-1", "team", MetadataAuditEvent.METADATA_DELETED, CREATED, override, None
        )
        DjangoAuditSink().record_global(
            "team", MetadataAuditEvent.METADATA_DELETED, CREATED, default, None
        )

        resource_log = AuditLog.objects.get(reference_type=AuditLog.ReferenceType.RESOURCE)
        assert resource_log.reference_id == "api-1"
        assert resource_log.event == MetadataAuditEvent.METADATA_DELETED
        assert resource_log.properties == {"METADATA": "team"}
        assert resource_log.old_value["value"] == "edge"
        assert resource_log.old_value["scope"]["resource_id"] == "api-1"
        assert resource_log.new_value is None
        assert AuditLog.objects.filter(reference_type=AuditLog.ReferenceType.PORTAL).count() == 1


# ===========================================================================
# TestMetadataServiceWithDatabase
# ===========================================================================

@pytest.mark.django_db
class TestMetadataServiceWithDatabase:

    def test_create_writes_row_and_portal_audit(self, service):
        entry = service.create("Support Email", MetadataFormat.MAIL, "help@acme.io")

        row = Metadata.objects.get(key=entry.key)
        assert row.reference_type == ReferenceType.DEFAULT
        assert row.format == MetadataFormat.MAIL

        log = AuditLog.objects.get()
        assert log.reference_type == AuditLog.ReferenceType.PORTAL
        assert log.event == MetadataAuditEvent.METADATA_CREATED
        assert log.properties == {"METADATA": "support-email"}
        assert log.old_value is None
        assert log.new_value["name"] == "Support Email"
        assert log.new_value["value"] == "help@acme.io"

    def test_date_value_round_trips_truncated(self, service):
        entry = service.create("Foo", MetadataFormat.DATE, "2024-05-01T10:00")
        assert service.find_default_by_key(entry.key).value == "2024-05-01"

    def test_list_defaults_sorted(self, service):
        for name in ("beta", "Alpha", "gamma"):
            service.create(name)
        assert [e.name for e in service.list_defaults()] == ["Alpha", "beta", "gamma"]

    def test_duplicate_name_rejected(self, service):
        service.create("Team")
        with pytest.raises(DuplicateNameError):
            service.create("tEAM")
        assert Metadata.objects.count() == 1

    def test_concurrent_duplicate_caught_by_database(self, db):
        """A create that misses the duplicate check is still rejected by the unique index."""

        class StaleRepository(DjangoMetadataRepository):
            def find_by_scope(self, scope):
                return []

        DjangoMetadataRepository().create(
            MetadataEntry(key="team", name="Team", created_at=CREATED, updated_at=CREATED)
        )
        racing = MetadataService(StaleRepository(), DjangoAuditSink(),
                                 id_generator=lambda name: "team-2")

        with pytest.raises(StorageFailure):
            racing.create("TEAM")
        assert Metadata.objects.count() == 1
        assert AuditLog.objects.count() == 0

    def test_update_preserves_stored_created_at(self, service):
        entry = service.create("Team", value="core")
        updated = service.update(entry.key, "Team", MetadataFormat.STRING, "platform")

        assert updated.created_at is None
        stored = service.find_default_by_key(entry.key)
        assert stored.value == "platform"
        assert stored.created_at == entry.created_at

        log = AuditLog.objects.get(event=MetadataAuditEvent.METADATA_UPDATED)
        assert log.old_value is None
        assert log.new_value["value"] == "platform"

    def test_delete_cascades_with_three_audit_rows(self, service, repository):
        team = service.create("Team", value="core")
        _store_override(repository, team, "api-1", "edge")
        _store_override(repository, team, "api-2", "payments")
        AuditLog.objects.all().delete()

        service.delete(team.key)

        assert Metadata.objects.count() == 0
        logs = list(AuditLog.objects.all())
        assert len(logs) == 3
        assert all(log.event == MetadataAuditEvent.METADATA_DELETED for log in logs)
        assert all(log.new_value is None for log in logs)

        portal = [log for log in logs if log.reference_type == AuditLog.ReferenceType.PORTAL]
        assert len(portal) == 1
        assert portal[0].old_value["value"] == "core"

        resource_logs = {
            log.reference_id: log.old_value
            for log in logs
            if log.reference_type == AuditLog.ReferenceType.RESOURCE
        }
        assert set(resource_logs) == {"api-1", "api-2"}
        assert resource_logs["api-1"]["value"] == "edge"
        assert resource_logs["api-2"]["scope"]["resource_id"] == "api-2"

    def test_delete_unknown_key_writes_nothing(self, service):
        service.create("Team")
        AuditLog.objects.all().delete()
        service.delete("ghost")
        assert Metadata.objects.count() == 1
        assert AuditLog.objects.count() == 0

    def test_failed_cascade_is_rolled_back(self, service, repository, monkeypatch):
        team = service.create("Team", value="core")
        _store_override(repository, team, "api-1", "edge")
        _store_override(repository, team, "api-2", "payments")
        audit_rows_before = AuditLog.objects.count()

        def broken(self, *args, **kwargs):
            raise RepositoryError("audit store unavailable")

        monkeypatch.setattr(DjangoAuditSink, "record_for_resource", broken)

        with pytest.raises(StorageFailure) as exc_info:
            service.delete(team.key)

        assert exc_info.value.operation == "delete metadata 'team'"
        assert Metadata.objects.count() == 3
        assert AuditLog.objects.count() == audit_rows_before

    def test_resolve_for_resource(self, service, repository):
        team = service.create("Team", value="core")
        service.create("Email", MetadataFormat.MAIL, "a@acme.io")
        _store_override(repository, team, "api-1", "edge")

        resolved = service.resolve_for_resource("api-1")
        assert [(r.key, r.value, r.overridden) for r in resolved] == [
            ("email", "a@acme.io", False),
            ("team", "edge", True),
        ]


# ===========================================================================
# TestHealthCheck
# ===========================================================================

@pytest.mark.django_db
class TestHealthCheck:

    def test_health_ok(self, client, service):
        service.create("Team")
        resp = client.get("/health/")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok", "db": "ok", "default_metadata": 1}

    def test_request_id_echoed(self, client):
        resp = client.get("/health/", HTTP_X_REQUEST_ID="req-123")
        assert resp["X-Request-ID"] == "req-123"
