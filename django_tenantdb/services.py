"""
Database Lifecycle Service

This module orchestrates the lifecycle of per-tenant databases: it creates the
physical database on a server, registers the tenant in the control registry,
synchronizes the tenant schema and drops databases.

Architecture:
    - The control database (TENANTDB_CONFIG['CONTROL_DB_ALIAS']) holds the
      tenant registry model
    - Each tenant database is created through a short-lived server connection
      that never joins Django's connection pool
    - Schema synchronization sends the ``switch_database`` signal so the ORM is
      retargeted to the tenant before the migration plan is computed
    - DSN construction is delegated to ``django_tenantdb.dsn``

Lifecycle:
    ```
    NOT_CREATED --[create_database succeeds]----> CREATED
    CREATED     --[create_schema_in_db succeeds]--> MIGRATED
    ```
    The building blocks (create_database, create_schema_in_db, drop_database)
    do not change status themselves. ``provision_database`` and
    ``migrate_database`` drive the state machine for callers such as the
    management commands. Nothing is retried automatically.

Usage Example:
    ```python
    from django_tenantdb.services import DatabaseLifecycleService

    service = DatabaseLifecycleService()

    # Onboard + create + migrate in one go
    record = service.provision_database("tenant7")

    # Or step by step
    tenant_id = service.onboard_database_config("tenant8")
    record = service.registry.get(tenant_id)
    service.create_database(record)
    service.create_schema_in_db(tenant_id)
    ```

Concurrency:
    The ORM retargeting done by ``switch_database`` is stored in a ContextVar,
    so schema syncs on different threads or tasks do not interfere. Within
    one thread, schema syncs must not interleave.

Related:
    - dsn.py: Connection string parsing and building
    - schema.py: DDL and migration adapter
    - registry.py: Tenant registry persistence
    - receivers.py: Default ``switch_database`` receiver
"""

import logging

from django.core.exceptions import ObjectDoesNotExist
from django.db import connections
from django.utils.functional import cached_property

from .conf import settings
from .dsn import (
    build_dsn,
    get_url_driver,
    parse_connection_url,
    resolve_credentials,
    server_settings,
    server_settings_from,
)
from .enums import DatabaseStatus
from .exceptions import (
    MalformedUrlError,
    TenantNotFoundError,
    TenantProvisioningError,
    get_error_code,
)
from .registry import TenantRegistry
from .schema import SchemaManager, open_server_connection, tenant_schema_targets
from .signals import (
    switch_database,
    tenant_database_created,
    tenant_database_dropped,
    tenant_database_migrated,
)
from .tenant_context import TenantContext
from .utils import reset_db_connection, unbind_tenant_database

logger = logging.getLogger(__name__)

RECORD_OVERRIDE_FIELDS = ("driver_type", "db_user_name", "db_password", "db_host", "db_port")


class DatabaseLifecycleService:
    """
    Orchestrator for tenant database creation, schema sync and removal.

    Attributes:
        registry (TenantRegistry): Registry used for bookkeeping
        base_url (str | None): Base connection URL supplying default credentials
        schema_manager_class: Adapter class wrapping a live connection
    """

    def __init__(
        self,
        registry: TenantRegistry | None = None,
        base_url: str | None = None,
        schema_manager_class=SchemaManager,
    ):
        self.registry = registry or TenantRegistry()
        self.base_url = base_url if base_url is not None else settings.BASE_DATABASE_URL
        self.schema_manager_class = schema_manager_class

    @cached_property
    def base_params(self):
        """Parsed base connection URL, or None when none is configured."""
        if not self.base_url:
            return None
        return parse_connection_url(self.base_url)

    def get_dsn_url(self) -> str:
        """
        Server-level DSN built from the base connection URL.

        Raises:
            MalformedUrlError: No base URL is configured or it is malformed.
        """
        if self.base_params is None:
            raise MalformedUrlError("No base database URL configured (TENANTDB_CONFIG['BASE_DATABASE_URL']).")

        params = self.base_params
        return build_dsn(get_url_driver(self.base_url).value, params.user, params.password, params.host, params.port)

    # ========== Physical database operations ==========

    def create_database(self, record) -> int:
        """
        Create the physical database described by ``record``.

        Connects to the server (not the target database, which does not exist
        yet) using the record's overrides over the base connection URL.

        Returns:
            int: number of databases created, always 1

        Raises:
            TenantProvisioningError: Any failure, with the original message and
                code; the original exception is chained.
        """
        params = resolve_credentials(record, self.base_params)
        try:
            with open_server_connection(server_settings(record.driver_type, params)) as connection:
                self.schema_manager_class(connection).create_database(record.db_name)
        except Exception as exc:
            message = getattr(exc, "message", None) or str(exc)
            logger.error("Creating tenant database %s failed: %s", record.db_name, message)
            raise TenantProvisioningError(
                f"Unable to create new tenant database {record.db_name}: {message}",
                get_error_code(exc),
            ) from exc

        return 1

    def create_schema_in_db(self, tenant_id) -> bool:
        """
        Bring the tenant database's schema up to the declared tenant schema.

        Process:
            1. Load the tenant schema targets (migration files, no I/O on the DB)
            2. Send ``switch_database`` with ``tenant_id``; receivers retarget the
               ORM and return the alias
            3. Compute the schema diff on that alias
            4. Empty diff: return False, no DDL, no status change
            5. Otherwise apply and return True

        The database must already exist; a missing database surfaces as a
        TenantProvisioningError from the schema manager. The ambient routing
        state is restored and the tenant connection closed before returning.
        """
        targets = tenant_schema_targets()

        state = TenantContext.snapshot()
        db_alias = None
        try:
            try:
                responses = switch_database.send(sender=self.__class__, tenant_id=tenant_id)
            except ObjectDoesNotExist as exc:
                raise TenantNotFoundError(
                    str(tenant_id), f"No tenant database registered with id {tenant_id}."
                ) from exc
            db_alias = self._switched_alias(responses, tenant_id)

            schema_manager = self.schema_manager_class(connections[db_alias])
            statements = schema_manager.diff_schema(targets)
            if not statements:
                logger.debug("Tenant database %s (id=%s) schema is up to date", db_alias, tenant_id)
                return False

            schema_manager.apply_schema(targets)
        finally:
            TenantContext.restore(state)
            if db_alias is not None and db_alias != settings.CONTROL_DB_ALIAS:
                reset_db_connection(db_alias)

        logger.info("Applied %d schema statement(s) to tenant database %s", len(statements), db_alias)
        return True

    def drop_database(self, db_name: str) -> None:
        """
        Drop a tenant database.

        The server connection reuses the parameters of the currently active
        connection (the active tenant alias, else the control alias) pointed
        at the server's maintenance database. The registry is not touched;
        updating the record is the caller's job.

        Raises:
            TenantNotFoundError: ``db_name`` is absent from the server catalog;
                no DROP statement is issued.
            TenantProvisioningError: The server rejected the drop.
        """
        active_alias = TenantContext.get_db_alias() or settings.CONTROL_DB_ALIAS
        active = connections[active_alias]
        server_config = server_settings_from(active.settings_dict, active.vendor)

        with open_server_connection(server_config) as connection:
            schema_manager = self.schema_manager_class(connection)
            if db_name not in schema_manager.list_databases():
                raise TenantNotFoundError(db_name)

            if db_name != active_alias:
                reset_db_connection(db_name)
            schema_manager.drop_database(db_name, check_exists=False)

        if db_name != active_alias:
            unbind_tenant_database(db_name)
        tenant_database_dropped.send(sender=self.__class__, db_name=db_name)

    # ========== Registry operations ==========

    def onboard_database_config(self, db_name: str) -> int:
        """Lookup-or-create the registry record for ``db_name``; returns its id."""
        return self.registry.onboard(db_name)

    def get_list_of_not_created_databases(self) -> list:
        return self.registry.list_by_status(DatabaseStatus.NOT_CREATED)

    def get_list_of_new_created_databases(self) -> list:
        return self.registry.list_by_status(DatabaseStatus.CREATED)

    def get_list_of_tenant_databases(self) -> list:
        return self.registry.list_by_status(DatabaseStatus.MIGRATED)

    def get_default_tenant_database(self):
        """
        The CREATED record used as default tenant database.

        Earliest ``created_at`` wins when several are CREATED.

        Raises:
            NoDefaultTenantError: No record is CREATED.
        """
        return self.registry.get_default()

    # ========== Orchestration ==========

    def provision_database(self, db_name: str, migrate: bool = True, **overrides):
        """
        Onboard, create and (optionally) migrate ``db_name``. Safe to re-run.

        ``overrides`` (driver_type, db_user_name, db_password, db_host,
        db_port) are stored only while the record is still NOT_CREATED.
        """
        unknown = set(overrides) - set(RECORD_OVERRIDE_FIELDS)
        if unknown:
            raise TypeError(f"Unknown tenant database fields: {', '.join(sorted(unknown))}")

        record = self.registry.get(self.onboard_database_config(db_name))

        if record.database_status == DatabaseStatus.NOT_CREATED:
            if overrides:
                for field, value in overrides.items():
                    setattr(record, field, value)
                self.registry.persist(record)

            self.create_database(record)
            self.registry.advance_status(record, DatabaseStatus.CREATED)
            tenant_database_created.send(sender=self.__class__, record=record)

        if migrate:
            self.migrate_database(record)

        return record

    def migrate_database(self, record) -> bool:
        """
        Sync the schema of an existing tenant database.

        The record moves to MIGRATED once the schema is current, whether or
        not this call had statements to apply. Returns whether any were applied.
        """
        applied = self.create_schema_in_db(record.pk)
        self.registry.advance_status(record, DatabaseStatus.MIGRATED)
        tenant_database_migrated.send(sender=self.__class__, record=record, applied=applied)
        return applied

    # ========== Helper Methods ==========

    @staticmethod
    def _switched_alias(responses, tenant_id) -> str:
        for _receiver, response in reversed(responses):
            if response:
                return response

        db_alias = TenantContext.get_db_alias()
        if db_alias is None:
            raise TenantProvisioningError(f"No switch_database receiver retargeted tenant {tenant_id}.")
        return db_alias
