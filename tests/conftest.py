"""
Shared fixtures: registry records, a scripted schema manager and a patched
server connection so no real database server is needed.
"""

from collections import defaultdict
from contextlib import contextmanager
from unittest import mock

import pytest
from django.db import connections

from django_tenantdb.conf import settings as tenantdb_settings
from django_tenantdb.enums import DatabaseStatus
from django_tenantdb.models import TenantDatabase
from django_tenantdb.tenant_context import TenantContext
from django_tenantdb.utils import unbind_tenant_database


@pytest.fixture(autouse=True)
def _reset_tenantdb_state():
    yield
    tenantdb_settings.reload()
    TenantContext.restore(())


@pytest.fixture
def make_record(db):
    def _make(db_name, status=DatabaseStatus.NOT_CREATED, **fields):
        record = TenantDatabase(db_name=db_name, database_status=status, **fields)
        record.touch()
        record.save()
        return record

    return _make


class FakeSchemaManager:
    """Records every call; behaviour is scripted through class attributes."""

    statements: list = []
    databases: list = []
    create_error = None
    diff_error = None
    calls: list = []

    def __init__(self, connection):
        self.connection = connection

    def create_database(self, name):
        self.calls.append(("create", name))
        if self.create_error is not None:
            raise self.create_error

    def list_databases(self):
        self.calls.append(("list",))
        return list(self.databases)

    def drop_database(self, name, check_exists=True):
        self.calls.append(("drop", name, check_exists))

    def diff_schema(self, targets):
        self.calls.append(("diff", self.connection_alias()))
        if self.diff_error is not None:
            raise self.diff_error
        return list(self.statements)

    def apply_schema(self, targets):
        self.calls.append(("apply", self.connection_alias()))
        return bool(self.statements)

    def connection_alias(self):
        return getattr(self.connection, "alias", None)


@pytest.fixture
def fake_schema_manager():
    """A fresh FakeSchemaManager subclass so scripted state never leaks between tests."""
    return type("ScriptedSchemaManager", (FakeSchemaManager,), {"statements": [], "databases": [], "calls": []})


@pytest.fixture
def server_connections(monkeypatch):
    """Replaces server-level connections; yields the settings dict of every connection opened."""
    opened = []

    @contextmanager
    def fake_open(settings_dict):
        opened.append(settings_dict)
        yield mock.MagicMock(settings_dict=settings_dict)

    monkeypatch.setattr("django_tenantdb.services.open_server_connection", fake_open)
    return opened


@pytest.fixture
def switched_connections(monkeypatch):
    """
    Keeps the default receiver from registering driver-backed aliases and
    hands out mock connections keyed by alias.
    """
    pool = defaultdict(mock.MagicMock)

    def fake_bind(record):
        pool[record.alias].alias = record.alias
        return record.alias

    monkeypatch.setattr("django_tenantdb.receivers.bind_tenant_database", fake_bind)
    monkeypatch.setattr("django_tenantdb.services.connections", pool)
    return pool


def sqlite_settings(path):
    """A complete ``DATABASES`` entry for a SQLite file."""
    return {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": str(path),
        "USER": "",
        "PASSWORD": "",
        "HOST": "",
        "PORT": "",
        "OPTIONS": {},
        "TIME_ZONE": None,
        "ATOMIC_REQUESTS": False,
        "AUTOCOMMIT": True,
        "CONN_MAX_AGE": 0,
        "CONN_HEALTH_CHECKS": False,
        "TEST": {"NAME": None},
    }


@pytest.fixture
def sqlite_tenants(db, tmp_path, monkeypatch):
    """
    Binds tenant aliases to SQLite files instead of driver-backed servers.

    Depends on ``db`` so the aliases are gone before the test database
    wrapper inspects the configured connections on teardown.
    """
    bound = []

    def bind(record):
        connections.settings[record.alias] = sqlite_settings(tmp_path / f"{record.alias}.sqlite3")
        bound.append(record.alias)
        return record.alias

    monkeypatch.setattr("django_tenantdb.receivers.bind_tenant_database", bind)
    yield bound
    for alias in bound:
        unbind_tenant_database(alias)
