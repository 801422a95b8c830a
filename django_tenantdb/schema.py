"""
Schema manager adapter.

``SchemaManager`` wraps one live Django connection and exposes the DDL the
lifecycle service needs: create, drop and list databases, and compute/apply
the tenant schema through Django's migration executor. Driver errors are
re-raised as ``django_tenantdb.exceptions`` classes.
"""

import logging
from contextlib import contextmanager

from django.db import DatabaseError
from django.db.migrations.executor import MigrationExecutor
from django.db.migrations.loader import MigrationLoader
from django.db.utils import load_backend

from .constants import constants
from .exceptions import (
    DatabaseCreationError,
    DatabaseNotFoundError,
    TenantProvisioningError,
    get_error_code,
)
from .utils import get_tenant_apps

logger = logging.getLogger(__name__)

LIST_DATABASES_SQL = {
    "postgresql": "SELECT datname FROM pg_database WHERE datistemplate = false",
    "mysql": "SHOW DATABASES",
    "microsoft": "SELECT name FROM sys.databases",
}


@contextmanager
def open_server_connection(settings_dict: dict):
    """
    Short-lived connection outside Django's connection handler.

    Used for CREATE/DROP DATABASE, which must not run on the pooled
    application connections. Closed on every exit path.
    """
    backend = load_backend(settings_dict["ENGINE"])
    connection = backend.DatabaseWrapper(settings_dict, constants.SERVER_CONNECTION_ALIAS)
    try:
        yield connection
    finally:
        connection.close()


def tenant_schema_targets(loader: MigrationLoader | None = None, app_labels=None) -> list[tuple[str, str]]:
    """
    The declared tenant schema: latest migration of every tenant app.

    Built from the migration files on disk only; no database is queried.
    """
    if loader is None:
        loader = MigrationLoader(None, ignore_no_migrations=True)
    app_labels = set(app_labels or get_tenant_apps())
    return sorted(node for node in loader.graph.leaf_nodes() if node[0] in app_labels)


class SchemaManager:
    def __init__(self, connection):
        self.connection = connection

    @property
    def vendor(self) -> str:
        return self.connection.vendor

    def _quote(self, name: str) -> str:
        return self.connection.ops.quote_name(name)

    def create_database(self, name: str) -> None:
        try:
            with self.connection.cursor() as cursor:
                cursor.execute(f"CREATE DATABASE {self._quote(name)}")
        except DatabaseError as exc:
            raise DatabaseCreationError(name, str(exc), get_error_code(exc)) from exc
        finally:
            self.connection.close()

        logger.info("Database %s created on %s", name, self.connection.settings_dict.get("HOST") or "local server")

    def list_databases(self) -> list[str]:
        sql = LIST_DATABASES_SQL.get(self.vendor)
        if sql is None:
            raise TenantProvisioningError(f"Listing databases is not supported on {self.vendor}.")

        try:
            with self.connection.cursor() as cursor:
                cursor.execute(sql)
                return [row[0] for row in cursor.fetchall()]
        except DatabaseError as exc:
            raise TenantProvisioningError(f"Unable to list databases: {exc}", get_error_code(exc)) from exc

    def drop_database(self, name: str, check_exists: bool = True) -> None:
        """
        Drop ``name``.

        With ``check_exists`` the server catalog is read first and
        DatabaseNotFoundError is raised before any DROP statement, instead of
        relying on each driver's own "database does not exist" error.
        """
        try:
            if check_exists and name not in self.list_databases():
                raise DatabaseNotFoundError(name)

            try:
                with self.connection.cursor() as cursor:
                    cursor.execute(f"DROP DATABASE {self._quote(name)}")
            except DatabaseError as exc:
                raise TenantProvisioningError(f"Unable to drop database {name}: {exc}", get_error_code(exc)) from exc
        finally:
            self.connection.close()

        logger.info("Database %s dropped", name)

    def diff_schema(self, targets) -> list[str]:
        """SQL statements needed to bring the connection's schema up to ``targets``. Empty means no-op."""
        try:
            executor = MigrationExecutor(self.connection)
            plan = executor.migration_plan(targets)
            if not plan:
                return []
            return executor.loader.collect_sql(plan)
        except DatabaseError as exc:
            raise TenantProvisioningError(
                f"Unable to compute schema for {self.connection.alias}: {exc}", get_error_code(exc)
            ) from exc

    def apply_schema(self, targets) -> bool:
        """Apply pending migrations up to ``targets``. Returns False, without opening a transaction, when none are pending."""
        try:
            executor = MigrationExecutor(self.connection)
            plan = executor.migration_plan(targets)
            if not plan:
                logger.debug("Schema of %s is up to date", self.connection.alias)
                return False

            executor.migrate(targets, plan=plan)
        except DatabaseError as exc:
            raise TenantProvisioningError(
                f"Unable to apply schema to {self.connection.alias}: {exc}", get_error_code(exc)
            ) from exc

        logger.info("Applied %d migration(s) to %s", len(plan), self.connection.alias)
        return True
