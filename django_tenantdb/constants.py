"""
Configuration key names used by django-tenantdb.

All keys live inside the ``TENANTDB_CONFIG`` dictionary of the Django settings
module. Keeping the names in one place avoids typos between ``conf.py`` and
``bootstrap.py``.
"""


class _Constants:
    TENANTDB_CONFIG = "TENANTDB_CONFIG"

    BASE_DATABASE_URL = "BASE_DATABASE_URL"
    CONTROL_DB_ALIAS = "CONTROL_DB_ALIAS"
    TENANT_DATABASE_MODEL = "TENANT_DATABASE_MODEL"
    TENANT_APPS = "TENANT_APPS"
    DEFAULT_DRIVER = "DEFAULT_DRIVER"
    PATCHES = "PATCHES"

    # Environment variables consulted when BASE_DATABASE_URL is not configured
    BASE_DATABASE_URL_ENV_VARS = ("TENANTDB_DATABASE_URL", "DATABASE_URL")

    # Hard defaults used when neither a tenant record nor the base URL
    # supplies a value
    DEFAULT_HOST = "127.0.0.1"
    DEFAULT_PORT = "1433"
    DEFAULT_USER = "sa"
    DEFAULT_PASSWORD = ""

    SERVER_CONNECTION_ALIAS = "__tenantdb_server__"


constants = _Constants()
