"""
Tenant registry: onboarding, status partition, default tenant and status transitions.
"""

import logging
from datetime import timedelta
from unittest import mock

import pytest
from django.utils import timezone

from django_tenantdb.conf import settings as tenantdb_settings
from django_tenantdb.enums import DatabaseStatus, DriverType
from django_tenantdb.exceptions import NoDefaultTenantError
from django_tenantdb.models import TenantDatabase
from django_tenantdb.registry import TenantRegistry

pytestmark = pytest.mark.django_db


def test_onboard_is_idempotent():
    registry = TenantRegistry()

    first = registry.onboard("tenant7")
    second = registry.onboard("tenant7")

    assert first == second
    assert TenantDatabase.objects.filter(db_name="tenant7").count() == 1

    record = TenantDatabase.objects.get(pk=first)
    assert record.database_status == DatabaseStatus.NOT_CREATED
    assert record.driver_type == DriverType.SQLSERVER
    assert record.created_at is not None


def test_onboard_uses_driver_of_base_url(settings):
    settings.TENANTDB_CONFIG = {"BASE_DATABASE_URL": "postgresql://app:pw@pg.local:5432/control"}
    tenantdb_settings.reload()

    record = TenantDatabase.objects.get(pk=TenantRegistry().onboard("tenant7"))

    assert record.driver_type == DriverType.POSTGRESQL


def test_onboard_does_not_touch_existing_record(make_record):
    existing = make_record("tenant7", DatabaseStatus.MIGRATED, db_host="db2.local")

    assert TenantRegistry().onboard("tenant7") == existing.pk

    existing.refresh_from_db()
    assert existing.database_status == DatabaseStatus.MIGRATED
    assert existing.db_host == "db2.local"


def test_onboard_rejects_empty_name():
    with pytest.raises(ValueError):
        TenantRegistry().onboard("")


def test_onboard_returns_winner_after_losing_insert_race(make_record):
    winner = make_record("tenant7")
    registry = TenantRegistry()

    # The fast-path lookup misses; the unique constraint catches the duplicate
    with mock.patch.object(registry, "find_one_by", side_effect=[None, winner]):
        assert registry.onboard("tenant7") == winner.pk

    assert TenantDatabase.objects.filter(db_name="tenant7").count() == 1


def test_status_lists_partition_the_registry(make_record):
    make_record("a")
    make_record("b", DatabaseStatus.CREATED)
    make_record("c", DatabaseStatus.MIGRATED)
    make_record("d", DatabaseStatus.MIGRATED)
    registry = TenantRegistry()

    lists = [registry.list_by_status(status) for status in DatabaseStatus]
    names = [sorted(r.db_name for r in records) for records in lists]

    assert names == [["a"], ["b"], ["c", "d"]]
    assert sum(len(records) for records in lists) == TenantDatabase.objects.count()


def test_get_default_prefers_earliest_created(make_record, caplog):
    now = timezone.now()
    newer = make_record("newer", DatabaseStatus.CREATED)
    older = make_record("older", DatabaseStatus.CREATED)
    TenantDatabase.objects.filter(pk=newer.pk).update(created_at=now)
    TenantDatabase.objects.filter(pk=older.pk).update(created_at=now - timedelta(days=1))

    with caplog.at_level(logging.WARNING, logger="django_tenantdb.registry"):
        default = TenantRegistry().get_default()

    assert default.pk == older.pk
    assert "More than one tenant database is CREATED" in caplog.text


def test_get_default_breaks_timestamp_ties_by_id(make_record):
    now = timezone.now()
    first = make_record("first", DatabaseStatus.CREATED)
    second = make_record("second", DatabaseStatus.CREATED)
    TenantDatabase.objects.filter(pk__in=[first.pk, second.pk]).update(created_at=now)

    assert TenantRegistry().get_default().pk == first.pk


def test_get_default_ignores_other_statuses(make_record):
    make_record("migrated", DatabaseStatus.MIGRATED)
    make_record("pending")

    with pytest.raises(NoDefaultTenantError):
        TenantRegistry().get_default()


def test_advance_status_moves_forward(make_record):
    record = make_record("tenant7")
    registry = TenantRegistry()

    registry.advance_status(record, DatabaseStatus.CREATED)
    registry.advance_status(record, DatabaseStatus.MIGRATED)

    record.refresh_from_db()
    assert record.database_status == DatabaseStatus.MIGRATED


def test_advance_status_never_regresses(make_record):
    record = make_record("tenant7", DatabaseStatus.MIGRATED)

    TenantRegistry().advance_status(record, DatabaseStatus.CREATED)

    record.refresh_from_db()
    assert record.database_status == DatabaseStatus.MIGRATED
