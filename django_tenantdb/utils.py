"""
Utility Functions for django-tenantdb

Helpers shared by the registry, the lifecycle service, the router and the
management commands:
    - Registry model retrieval
    - Tenant schema app discovery
    - Runtime registration of tenant databases in ``settings.DATABASES``
    - Connection eviction

Common Imports:
    ```python
    from django_tenantdb.utils import (
        get_tenant_database_model,
        get_tenant_apps,
        bind_tenant_database,
        reset_db_connection,
    )
    ```
"""

import logging

from django.apps import apps
from django.db import connections
from django.db.models.base import Model

from .conf import settings
from .dsn import database_settings, parse_connection_url, resolve_credentials

logger = logging.getLogger(__name__)

APP_LABEL = "django_tenantdb"


# Model Retrieval Functions
# ==========================


def get_tenant_database_model() -> type[Model]:
    """
    Retrieve the tenant database registry model configured in settings.

    The model is specified as ``"app_label.ModelName"`` in
    TENANTDB_CONFIG['TENANT_DATABASE_MODEL'].

    Raises:
        LookupError: If the configured model cannot be found
        RuntimeError: If called before Django apps are ready
    """
    return apps.get_model(settings.TENANT_DATABASE_MODEL)


# App and Configuration Functions
# ================================


def get_tenant_apps() -> list[str]:
    """
    App labels whose migrations form the tenant schema.

    Returns TENANTDB_CONFIG['TENANT_APPS'] when configured. Otherwise every
    installed app except the one holding the registry model and this app.
    """
    if settings.TENANT_APPS:
        return list(settings.TENANT_APPS)

    control_labels = {APP_LABEL, settings.TENANT_DATABASE_MODEL.split(".")[0]}
    return [app_config.label for app_config in apps.get_app_configs() if app_config.label not in control_labels]


# Database Connection Management
# ==============================


def get_base_connection_params():
    """Parsed base connection URL, or None when none is configured."""
    if not settings.BASE_DATABASE_URL:
        return None
    return parse_connection_url(settings.BASE_DATABASE_URL)


def get_tenant_database_settings(record) -> tuple[str, dict]:
    """
    Build the connection alias and complete ``DATABASES`` entry for a registry record.

    Credentials resolve record override -> base URL -> hard defaults.
    """
    params = resolve_credentials(record, get_base_connection_params())
    db_config = database_settings(record.driver_type, params, time_zone=getattr(settings, "TIME_ZONE", None))
    return record.alias, db_config


def bind_tenant_database(record) -> str:
    """
    Register a tenant database in ``settings.DATABASES`` and return its alias.

    Re-binding with different settings evicts the cached connection so the
    next access reconnects with the new credentials.
    """
    db_alias, db_config = get_tenant_database_settings(record)

    current = connections.settings.get(db_alias)
    if current == db_config:
        return db_alias

    connections.settings[db_alias] = db_config
    if current is not None:
        reset_db_connection(db_alias)

    logger.debug("Bound tenant database %s to alias %s", record.db_name, db_alias)
    return db_alias


def unbind_tenant_database(db_alias: str) -> None:
    """Remove a tenant alias from ``settings.DATABASES`` and close its connection."""
    if db_alias == settings.CONTROL_DB_ALIAS:
        return
    reset_db_connection(db_alias)
    connections.settings.pop(db_alias, None)


def reset_db_connection(alias: str) -> None:
    """
    Close and evict the current thread's connection for ``alias``.

    Django creates connections lazily, so the next ``connections[alias]``
    access builds a fresh one from the (possibly updated) settings.
    """
    connection = getattr(connections._connections, alias, None)  # type: ignore[attr-defined]
    if connection is None:
        return

    connection.close()
    del connections[alias]
